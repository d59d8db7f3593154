from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from appreciatemate.core.database import get_db
from appreciatemate.models.user import User
from appreciatemate.services.storage import Storage
from appreciatemate.services.suggestions import SuggestionService, suggestion_service


async def get_current_user(
    x_user_id: int | None = Header(default=None),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the caller from the X-User-Id header.

    Authentication happens upstream; this only checks that the user exists.
    """
    if x_user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not authenticated",
        )

    user = await Storage(db).get_user(x_user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return user


def get_suggestion_service() -> SuggestionService:
    return suggestion_service
