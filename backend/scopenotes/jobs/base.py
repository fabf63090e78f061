"""
ScopeNotes Backend — Background Job Contract
==============================================

What:  The contract every unit of work submitted to JobQueue implements.
How:   A job class declares a `kind` (message routing key), a `policy`
       (retry behaviour) and a factory building one instance per execution
       from a fresh database session.

A job never receives the request that triggered it. Its only inputs are the
plain values captured at submission time and passed to `run(*args)`.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar, Optional

from sqlalchemy.ext.asyncio import AsyncSession


@dataclass(frozen=True)
class JobPolicy:
    """
    Execution policy of a job type.

    Attributes:
        max_attempts: Automatic retries after the first run fails.
            0 means the job runs exactly once and a failure is final.
    """
    max_attempts: int = 0

    def __post_init__(self) -> None:
        if self.max_attempts < 0:
            raise ValueError("max_attempts cannot be negative")


class BackgroundJob(ABC):
    """
    Base class for units of work executed by JobQueue workers.

    Subclasses must set `kind` and `policy`, and implement `for_session`
    and `run`.
    """

    kind: ClassVar[str]
    policy: ClassVar[JobPolicy]

    @classmethod
    @abstractmethod
    def for_session(cls, session: AsyncSession) -> "BackgroundJob":
        """Build an instance wired to a session owned by one execution."""
        ...

    @classmethod
    def concurrency_key(cls, *args: Any) -> Optional[str]:
        """
        Jobs returning the same key never run at the same time.
        None (default) places no restriction.
        """
        return None

    @abstractmethod
    async def run(self, *args: Any) -> None:
        ...
