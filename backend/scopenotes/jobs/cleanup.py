"""
ScopeNotes Backend — Cleanup Job
==================================

What:  Background unit of work that deletes the completed notes of one category.
How:   `run(category_id)` first pushes the id into the execution's
       JobScopeResolver, then calls NotesService.delete_completed_notes().
       No request exists on a worker, so the explicit id is the only way
       the service can learn its category.
Who:   Submitted by POST /api/notes/run-cleanup-task; executed by JobQueue.

Policy:
    max_attempts=0 (zero automatic retries). A failed cleanup is logged once
    and recorded as failed; resubmitting is up to the caller.

Overlapping cleanups:
    Two cleanup jobs for the same category share the concurrency key
    "category:<id>" and therefore run one after the other. Cleanups of
    different categories run concurrently.
"""

import logging
from typing import ClassVar, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from scopenotes.context.selector import ScopeSelector
from scopenotes.jobs.base import BackgroundJob, JobPolicy
from scopenotes.services.notes_service import NotesService

logger = logging.getLogger(__name__)


class CleanupJob(BackgroundJob):
    """Deletes completed notes of the category passed to `run()`."""

    kind: ClassVar[str] = "notes.cleanup_completed"
    policy: ClassVar[JobPolicy] = JobPolicy(max_attempts=0)

    def __init__(self, scope: ScopeSelector, notes_service: NotesService):
        self._scope = scope
        self._notes_service = notes_service

    @classmethod
    def for_session(cls, session: AsyncSession) -> "CleanupJob":
        scope = ScopeSelector(session)
        return cls(scope, NotesService(session, scope))

    @classmethod
    def concurrency_key(cls, category_id: int) -> Optional[str]:
        return f"category:{category_id}"

    async def run(self, category_id: int) -> None:
        self._scope.job_resolver.set_category_id(category_id)
        deleted = await self._notes_service.delete_completed_notes()
        logger.info("Cleanup job removed %d note(s) from category %s", deleted, category_id)
