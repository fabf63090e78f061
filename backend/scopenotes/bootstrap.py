"""
ScopeNotes Backend — Bootstrap Seed
=====================================

What:  Inserts the default category with three notes at startup.
When:  Called from the application lifespan after the schema is created,
       when SEED_ON_STARTUP is enabled.

The seed is skipped when the category already exists, so restarting against
a persistent database does not fail on duplicate keys.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from scopenotes.models.category import Category
from scopenotes.models.note import Note

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY_ID = 1


async def seed_default_category(session: AsyncSession) -> bool:
    """
    Seed category 1 ("Category 1") with notes 1-3, all incomplete.

    Returns:
        True if rows were inserted, False if the category was already present
    """
    if await session.get(Category, DEFAULT_CATEGORY_ID) is not None:
        logger.info("Category %d already present, skipping seed", DEFAULT_CATEGORY_ID)
        return False

    category = Category(
        id=DEFAULT_CATEGORY_ID,
        name=f"Category {DEFAULT_CATEGORY_ID}",
        notes=[
            Note(id=note_id, name=f"Note {note_id}", category_id=DEFAULT_CATEGORY_ID)
            for note_id in (1, 2, 3)
        ],
    )
    session.add(category)
    await session.commit()
    logger.info("Seeded category %d with %d notes", DEFAULT_CATEGORY_ID, len(category.notes))
    return True
