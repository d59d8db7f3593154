"""
Script to seed activity categories and the achievement catalog.
Run with: python -m scripts.seed_achievements [--force]
"""

import asyncio
import logging
import sys

from appreciatemate.core.database import async_session_maker, engine, init_db
from appreciatemate.services.achievement_seeder import (
    get_achievement_count,
    seed_achievements,
    seed_categories,
)


async def run(force: bool = False) -> None:
    await init_db()

    async with async_session_maker() as session:
        categories = await seed_categories(session)
        achievements = await seed_achievements(session, force=force)
        await session.commit()

    await engine.dispose()

    print(f"Categories added: {categories}")
    if achievements:
        print(f"Seeded {achievements} achievements.")
    else:
        print(f"Achievements already seeded ({get_achievement_count()} in catalog). Use --force to re-seed.")


def main():
    logging.basicConfig(level=logging.INFO)
    force = "--force" in sys.argv
    asyncio.run(run(force))


if __name__ == "__main__":
    main()
