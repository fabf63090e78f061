"""
ScopeNotes Backend — Notes Service (Business Logic)
=====================================================

What:  Lists and deletes the completed notes of the current category.
How:   Asks its ScopeResolver for the category, then queries the store.
Who:   Called by route handlers (request path) and by CleanupJob (job path).

The service never looks at headers or job arguments. Whatever resolver it is
given decides the category, which makes scope resolution the access-control
boundary: a note outside the resolved category is never read or deleted.

Error Handling:
    - ScopeResolutionError propagates unchanged, before any query is issued
    - SQLAlchemyError is rolled back and re-raised as PersistenceError
"""

import logging
from typing import List, Optional

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from scopenotes.context.resolvers import ScopeResolver
from scopenotes.context.selector import ScopeSelector, get_scope_selector
from scopenotes.database import get_db_session
from scopenotes.exceptions import PersistenceError
from scopenotes.models.category import Category
from scopenotes.models.note import Note

logger = logging.getLogger(__name__)


class NotesService:
    """
    Business logic for notes, bound to one session and one scope resolver.

    Responsibilities:
        - list_completed_notes(): completed notes of the resolved category
        - delete_completed_notes(): remove them in a single transaction
        - find_category(): unscoped lookup by id (utility)
    """

    def __init__(self, session: AsyncSession, scope: ScopeResolver):
        self._session = session
        self._scope = scope

    async def list_completed_notes(self) -> List[Note]:
        """
        Return every completed note of the resolved category.

        Order is the store's native order. The result is a snapshot list.

        Raises:
            ScopeResolutionError: The category cannot be determined
            PersistenceError: The query failed
        """
        category = await self._scope.resolve()
        return await self._select_completed(category.id)

    async def delete_completed_notes(self) -> int:
        """
        Remove every completed note of the resolved category and commit.

        The scope is resolved before anything else, so an unresolvable scope
        aborts the call without touching the store. Select, remove and commit
        run inside one transaction; on failure the transaction is rolled back.
        Calling it again with nothing newly completed removes nothing.

        Returns:
            Number of notes removed

        Raises:
            ScopeResolutionError: The category cannot be determined
            PersistenceError: The query, delete or commit failed
        """
        category = await self._scope.resolve()

        notes = await self._select_completed(category.id)
        try:
            for note in notes:
                await self._session.delete(note)
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            logger.error(
                "Cleanup of category %s failed: %s", category.id, str(e), exc_info=True
            )
            raise PersistenceError(
                message="Could not delete completed notes. Please try again.",
                context={"category_id": category.id, "original_error": type(e).__name__},
            ) from e

        logger.info(
            "Deleted %d completed note(s) from category %s", len(notes), category.id
        )
        return len(notes)

    async def find_category(self, category_id: int) -> Optional[Category]:
        """Look a category up by id, ignoring the current scope."""
        try:
            return await self._session.get(Category, category_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching category %s: %s", category_id, str(e))
            raise PersistenceError(
                message="Could not retrieve the category. Please try again.",
                context={"category_id": category_id},
            ) from e

    async def _select_completed(self, category_id: int) -> List[Note]:
        try:
            result = await self._session.execute(
                select(Note).where(
                    Note.category_id == category_id,
                    Note.is_completed.is_(True),
                )
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            await self._session.rollback()
            logger.error(
                "Database error listing completed notes of category %s: %s",
                category_id,
                str(e),
            )
            raise PersistenceError(
                message="Could not retrieve notes. Please try again.",
                context={"category_id": category_id, "original_error": type(e).__name__},
            ) from e


async def get_notes_service(
    db: AsyncSession = Depends(get_db_session),
    scope: ScopeSelector = Depends(get_scope_selector),
) -> NotesService:
    """FastAPI dependency: a NotesService bound to this request's session and scope."""
    return NotesService(db, scope)
