"""Achievement criteria - the structured predicate stored on each catalog entry.

Criteria are stored as JSON text and parsed into one of the models below,
discriminated by "type".
"""

import json
import logging
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

logger = logging.getLogger(__name__)


class InvalidCriteriaError(ValueError):
    """Achievement criteria that can't be parsed - the catalog is corrupt."""

    def __init__(self, achievement_id: int | None, reason: str):
        self.achievement_id = achievement_id
        self.reason = reason
        super().__init__(f"Invalid criteria for achievement {achievement_id}: {reason}")


class PointsCriteria(BaseModel):
    type: Literal["points"]
    threshold: int = Field(ge=0)


class ActivityCountCriteria(BaseModel):
    type: Literal["activity_count"]
    threshold: int = Field(ge=0)
    category: str | None = None  # matched case-sensitively


class StreakCriteria(BaseModel):
    type: Literal["streak"]
    threshold: int = Field(ge=0)


class CategoryMasterCriteria(BaseModel):
    type: Literal["category_master"]
    category: str  # matched case-insensitively
    threshold: int = Field(ge=0)


class SpecialCriteria(BaseModel):
    """Named conditions.

    mode "first" decides on the first listed condition only. "any" and
    "all" are opt-in.
    """

    type: Literal["special"]
    conditions: list[str]
    mode: Literal["first", "any", "all"] = "first"


AchievementCriteria = Annotated[
    Union[
        PointsCriteria,
        ActivityCountCriteria,
        StreakCriteria,
        CategoryMasterCriteria,
        SpecialCriteria,
    ],
    Field(discriminator="type"),
]

_criteria_adapter = TypeAdapter(AchievementCriteria)

CRITERIA_TYPES = frozenset(
    {"points", "activity_count", "streak", "category_master", "special"}
)


def parse_criteria(raw: str, achievement_id: int | None = None) -> AchievementCriteria | None:
    """Parse a criteria payload.

    Returns None for a well-formed payload with an unrecognized type (such
    achievements never qualify). Raises InvalidCriteriaError for anything else
    that doesn't parse.
    """
    try:
        data = json.loads(raw)
    except (TypeError, json.JSONDecodeError) as e:
        raise InvalidCriteriaError(achievement_id, f"not valid JSON ({e})") from e

    if not isinstance(data, dict):
        raise InvalidCriteriaError(achievement_id, "expected a JSON object")

    criteria_type = data.get("type")
    if not isinstance(criteria_type, str):
        raise InvalidCriteriaError(achievement_id, "missing 'type'")

    if criteria_type not in CRITERIA_TYPES:
        logger.warning(
            "Achievement %s has unrecognized criteria type %r; it will never unlock",
            achievement_id,
            criteria_type,
        )
        return None

    try:
        return _criteria_adapter.validate_python(data)
    except ValidationError as e:
        raise InvalidCriteriaError(achievement_id, str(e)) from e


def dump_criteria(criteria: AchievementCriteria) -> str:
    """Serialize criteria for storage."""
    return criteria.model_dump_json(exclude_defaults=True)
