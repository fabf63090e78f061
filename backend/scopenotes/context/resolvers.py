"""
ScopeNotes Backend — Scope Resolvers
======================================

What:  Resolve "which category is the current execution working on?"
How:   Two resolvers share one memoizing base:
       - RequestScopeResolver reads the category id from a request header
       - JobScopeResolver receives it through an explicit setter
Who:   Built by ScopeSelector, one set per execution (request or job attempt).

State machine (per resolver instance):
    UNRESOLVED → RESOLVING → RESOLVED   (category cached, never looked up again)
    UNRESOLVED → RESOLVING → FAILED     (the same error is raised on every call)

There is no way back to UNRESOLVED. A resolver lives exactly as long as the
execution that created it and is never shared between executions.
"""

import asyncio
import enum
import logging
import re
from abc import ABC, abstractmethod
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request

from scopenotes.config import settings
from scopenotes.exceptions import PersistenceError, ScopeResolutionError
from scopenotes.models.category import Category

logger = logging.getLogger(__name__)

_CATEGORY_ID_PATTERN = re.compile(r"[+-]?[0-9]+")

# Category ids are stored as signed 32-bit integers
CATEGORY_ID_MIN = -(2**31)
CATEGORY_ID_MAX = 2**31 - 1


class ResolutionState(str, enum.Enum):
    UNRESOLVED = "unresolved"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    FAILED = "failed"


def parse_category_id(raw: Optional[str], source: str) -> int:
    """
    Parse a category identifier supplied as text.

    Accepts an optionally signed base-10 integer surrounded by whitespace
    that fits a signed 32-bit id. Anything else ("abc", "1.5", "1_000", "",
    "99999999999") raises ScopeResolutionError.

    Args:
        raw:    The raw text, or None when it was not supplied at all
        source: Where the value came from, used in the error message
    """
    if raw is None:
        raise ScopeResolutionError(
            message=f"{source} is missing",
            context={"source": source},
        )
    value = raw.strip()
    if not _CATEGORY_ID_PATTERN.fullmatch(value):
        raise ScopeResolutionError(
            message=f"{source} must be an integer category id",
            context={"source": source, "value": raw},
        )
    category_id = int(value)
    if not CATEGORY_ID_MIN <= category_id <= CATEGORY_ID_MAX:
        raise ScopeResolutionError(
            message=f"{source} is out of range for a category id",
            context={"source": source, "value": raw},
        )
    return category_id


class ScopeResolver(ABC):
    """
    Capability shared by every scope source: `resolve() -> Category`.

    Consumers (NotesService) depend on this interface only and never learn
    whether a request header or a job parameter supplied the category.
    """

    @abstractmethod
    async def resolve(self) -> Category:
        """
        Return the category of the current execution.

        Raises:
            ScopeResolutionError: The category cannot be determined.
            PersistenceError: The store failed during the lookup.
        """
        ...


class MemoizedScopeResolver(ScopeResolver):
    """
    Base for resolvers that look the category up once and cache it.

    Subclasses implement `_lookup()`. Concurrent `resolve()` calls inside one
    execution wait for the first lookup instead of querying again.
    """

    def __init__(self, session: AsyncSession):
        self._session = session
        self._category: Optional[Category] = None
        self._error: Optional[Exception] = None
        self._lock = asyncio.Lock()
        self.state = ResolutionState.UNRESOLVED

    @property
    def category(self) -> Optional[Category]:
        """The cached category, or None before a successful resolve()."""
        return self._category

    async def resolve(self) -> Category:
        if self.state is ResolutionState.RESOLVED:
            return self._category
        if self.state is ResolutionState.FAILED:
            raise self._error

        async with self._lock:
            # Another caller may have finished while we waited
            if self.state is ResolutionState.RESOLVED:
                return self._category
            if self.state is ResolutionState.FAILED:
                raise self._error

            self.state = ResolutionState.RESOLVING
            try:
                category = await self._lookup()
            except ScopeResolutionError as e:
                self._fail(e)
                logger.warning("%s failed: %s", type(self).__name__, e.message)
                raise
            except SQLAlchemyError as e:
                error = PersistenceError(
                    message="Could not resolve the category. Please try again.",
                    context={"original_error": type(e).__name__},
                )
                self._fail(error)
                logger.error("%s lookup failed: %s", type(self).__name__, str(e))
                raise error from e
            except Exception as e:
                self._fail(e)
                logger.error(
                    "%s lookup failed unexpectedly: %s", type(self).__name__, str(e),
                    exc_info=True,
                )
                raise

            self._category = category
            self.state = ResolutionState.RESOLVED
            logger.debug("%s resolved category %s", type(self).__name__, category.id)
            return category

    def _fail(self, error: Exception) -> None:
        self._error = error
        self.state = ResolutionState.FAILED

    @abstractmethod
    async def _lookup(self) -> Category:
        ...

    async def _load_category(self, category_id: int) -> Category:
        category = await self._session.get(Category, category_id)
        if category is None:
            raise ScopeResolutionError(
                message=f"Category {category_id} was not found",
                category_id=category_id,
            )
        return category


class RequestScopeResolver(MemoizedScopeResolver):
    """
    Resolves the category from a header of the live request.

    Fails with ScopeResolutionError when the header is absent, is not an
    integer, or names a category that does not exist.
    """

    def __init__(
        self,
        request: Request,
        session: AsyncSession,
        header_name: Optional[str] = None,
    ):
        super().__init__(session)
        self._request = request
        self._header_name = header_name or settings.category_header

    async def _lookup(self) -> Category:
        # Starlette header lookup is case-insensitive
        raw = self._request.headers.get(self._header_name)
        category_id = parse_category_id(raw, source=f"Header '{self._header_name}'")
        return await self._load_category(category_id)


class JobScopeResolver(MemoizedScopeResolver):
    """
    Resolves the category from an id pushed in by the job entry point.

    No request is consulted. `set_category_id()` must be called before
    `resolve()`, and cannot change the id once resolution has started.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(session)
        self._category_id: Optional[int] = None

    @property
    def category_id(self) -> Optional[int]:
        return self._category_id

    def set_category_id(self, category_id: int) -> None:
        if self.state is not ResolutionState.UNRESOLVED:
            raise ScopeResolutionError(
                message="Category scope is already bound for this execution",
                category_id=category_id,
            )
        if isinstance(category_id, bool) or not isinstance(category_id, int):
            raise ScopeResolutionError(
                message="Job category id must be an integer",
                context={"value": repr(category_id)},
            )
        if not CATEGORY_ID_MIN <= category_id <= CATEGORY_ID_MAX:
            raise ScopeResolutionError(
                message="Job category id is out of range for a category id",
                category_id=category_id,
            )
        self._category_id = category_id

    async def _lookup(self) -> Category:
        if self._category_id is None:
            raise ScopeResolutionError(message="No category id was set for this job")
        return await self._load_category(self._category_id)
