"""
ScopeNotes Backend — Scope Selector
=====================================

What:  Picks the scope resolver for one execution and exposes it as a
       plain `ScopeResolver`.
How:   On first use, asks its request provider whether a live request exists.
       Request present → RequestScopeResolver; absent → JobScopeResolver.
       The choice is made once and never revisited for that execution.
Who:   Built once per request by `get_scope_selector` (FastAPI dependency)
       and once per job attempt by the job class factory.

Control flow:
    request path:  route → get_notes_service → ScopeSelector → RequestScopeResolver
    job path:      worker → CleanupJob.run(id) → selector.job_resolver.set_category_id(id)
                   → NotesService → ScopeSelector → JobScopeResolver
"""

import logging
from typing import Callable, Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request

from scopenotes.context.resolvers import (
    JobScopeResolver,
    RequestScopeResolver,
    ScopeResolver,
)
from scopenotes.database import get_db_session
from scopenotes.middleware.request_context import get_current_request
from scopenotes.models.category import Category

logger = logging.getLogger(__name__)

RequestProvider = Callable[[], Optional[Request]]


class ScopeSelector(ScopeResolver):
    """
    Execution-scoped router between the request and job resolvers.

    Attributes:
        job_resolver: The JobScopeResolver of this execution. The job entry
            point pushes its category id here; if the selector binds to the
            job path, this is the instance that gets consulted.
    """

    REQUEST = "request"
    JOB = "job"

    def __init__(
        self,
        session: AsyncSession,
        request_provider: RequestProvider = get_current_request,
    ):
        self._session = session
        self._request_provider = request_provider
        self._job_resolver: Optional[JobScopeResolver] = None
        self._bound: Optional[ScopeResolver] = None
        self.mode: Optional[str] = None

    @property
    def job_resolver(self) -> JobScopeResolver:
        if self._job_resolver is None:
            self._job_resolver = JobScopeResolver(self._session)
        return self._job_resolver

    @property
    def bound(self) -> Optional[ScopeResolver]:
        """The resolver chosen for this execution, or None before first use."""
        return self._bound

    def bind(self) -> ScopeResolver:
        """Choose the resolver on first call; return the same one afterwards."""
        if self._bound is None:
            request = self._request_provider()
            if request is not None:
                self._bound = RequestScopeResolver(request, self._session)
                self.mode = self.REQUEST
            else:
                self._bound = self.job_resolver
                self.mode = self.JOB
            logger.debug("Scope selector bound to %s resolver", self.mode)
        return self._bound

    async def resolve(self) -> Category:
        return await self.bind().resolve()


async def get_scope_selector(
    db: AsyncSession = Depends(get_db_session),
) -> ScopeSelector:
    """
    FastAPI dependency: one selector per request.

    FastAPI caches dependencies per request, so every consumer in the same
    request shares this selector and its memoized category.
    """
    return ScopeSelector(db)
