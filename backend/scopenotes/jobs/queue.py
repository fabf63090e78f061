"""
ScopeNotes Backend — In-Process Job Queue
===========================================

What:  Fire-and-forget execution of background jobs on a pool of worker tasks.
How:   `enqueue()` pushes an immutable JobMessage onto an asyncio.Queue and
       returns at once. Worker tasks pop messages, open a fresh session,
       build the job through its factory and call `run(*args)`.
Who:   Created and started in the application lifespan; used by the
       cleanup-trigger route.

Message flow:
    route ──enqueue(CleanupJob, 1)──▶ [JobMessage] ──▶ worker
                                                       ├─ new AsyncSession
                                                       ├─ CleanupJob.for_session(session)
                                                       └─ job.run(1)

Retry policy:
    Each job class carries a JobPolicy. tenacity runs the job at most
    `policy.max_attempts + 1` times, each attempt in a fresh execution.
    ScopeResolutionError is never retried. A job that still fails is marked
    failed and logged once; nothing is reported to the submitter.

Concurrency:
    Jobs of different concurrency keys run in parallel on different workers.
    Jobs sharing a key wait on a per-key asyncio.Lock and run one at a time.
    A key's lock is dropped as soon as no job holds or waits on it.
    There is no ordering guarantee between messages.

Lifetime:
    Messages and status records live in memory only and are lost when the
    process exits.
"""

import asyncio
import contextlib
import inspect
import logging
import uuid
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple, Type, Union

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from scopenotes.config import settings
from scopenotes.exceptions import JobDispatchError, ScopeNotesError, ScopeResolutionError
from scopenotes.jobs.base import BackgroundJob
from scopenotes.middleware.request_context import current_request_var

logger = logging.getLogger(__name__)


class JobStatus:
    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class JobMessage:
    """A queued unit of work: which job kind to run and with which values."""
    job_id: str
    kind: str
    args: Tuple[Any, ...]
    enqueued_at: datetime


@dataclass
class JobRecord:
    """In-memory status of one submitted job."""
    job_id: str
    kind: str
    args: Tuple[Any, ...]
    enqueued_at: datetime
    status: str = JobStatus.QUEUED
    attempts: int = 0
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    error: Optional[str] = None

    @classmethod
    def from_message(cls, message: JobMessage) -> "JobRecord":
        return cls(
            job_id=message.job_id,
            kind=message.kind,
            args=message.args,
            enqueued_at=message.enqueued_at,
        )


def _is_retryable(error: BaseException) -> bool:
    return not isinstance(error, ScopeResolutionError)


class JobQueue:
    """
    Bounded in-process queue with a fixed pool of asyncio worker tasks.

    Args:
        session_factory: Opens one AsyncSession per job attempt
        worker_count: Number of worker tasks started by `start()`
        max_size: Maximum queued messages (0 = unbounded)
        history_size: Number of job records kept for status lookups
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        worker_count: Optional[int] = None,
        max_size: Optional[int] = None,
        history_size: Optional[int] = None,
    ):
        self._session_factory = session_factory
        self._worker_count = worker_count or settings.job_worker_count
        self._max_size = settings.job_queue_max_size if max_size is None else max_size
        self._history_size = history_size or settings.job_history_size

        self._queue: "asyncio.Queue[JobMessage]" = asyncio.Queue(maxsize=self._max_size)
        self._registry: Dict[str, Type[BackgroundJob]] = {}
        self._records: "OrderedDict[str, JobRecord]" = OrderedDict()
        self._key_locks: Dict[str, asyncio.Lock] = {}
        self._key_users: Dict[str, int] = {}
        self._workers: List[asyncio.Task] = []
        self._closed = False

    # ── Registration & Submission ─────────────────────────────────────────

    def register(self, job_cls: Type[BackgroundJob]) -> None:
        """Make a job class available to `enqueue()` under its `kind`."""
        self._registry[job_cls.kind] = job_cls
        logger.debug(
            "Registered job kind '%s' (max_attempts=%d)",
            job_cls.kind,
            job_cls.policy.max_attempts,
        )

    def enqueue(self, job: Union[Type[BackgroundJob], str], *args: Any) -> str:
        """
        Submit a job and return its id without waiting for it to run.

        `args` must be plain values; they are stored in the message as given.

        Raises:
            JobDispatchError: Queue stopped, kind not registered, arguments
                that do not match the job's `run()` signature, or queue full
        """
        kind = job if isinstance(job, str) else job.kind

        if self._closed:
            raise JobDispatchError(message="Background job queue is stopped", kind=kind)
        if kind not in self._registry:
            raise JobDispatchError(message=f"Job kind '{kind}' is not registered", kind=kind)

        try:
            inspect.signature(self._registry[kind].run).bind(None, *args)
        except TypeError as e:
            raise JobDispatchError(
                message=f"Invalid arguments for job kind '{kind}': {e}",
                kind=kind,
                context={"args": repr(args)},
            ) from e

        message = JobMessage(
            job_id=uuid.uuid4().hex,
            kind=kind,
            args=tuple(args),
            enqueued_at=datetime.now(timezone.utc),
        )
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            raise JobDispatchError(
                message="Background job queue is full. Please try again later.",
                kind=kind,
                context={"max_size": self._max_size},
            )

        self._remember(JobRecord.from_message(message))
        logger.info("Enqueued job %s (%s) args=%r", message.job_id, kind, message.args)
        return message.job_id

    # ── Introspection ─────────────────────────────────────────────────────

    @property
    def running(self) -> bool:
        return bool(self._workers) and not self._closed

    @property
    def pending(self) -> int:
        """Messages waiting for a worker."""
        return self._queue.qsize()

    def get_record(self, job_id: str) -> Optional[JobRecord]:
        return self._records.get(job_id)

    @property
    def held_keys(self) -> int:
        """Concurrency keys with a job running or waiting on them."""
        return len(self._key_locks)

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def start(self) -> None:
        """Start the worker tasks (no-op when already running)."""
        if self._workers:
            return
        self._closed = False
        self._workers = [
            asyncio.create_task(self._worker(index), name=f"job-worker-{index}")
            for index in range(self._worker_count)
        ]
        logger.info("Job queue started with %d worker(s)", self._worker_count)

    async def join(self) -> None:
        """Wait until every message enqueued so far has been processed."""
        await self._queue.join()

    async def stop(self, drain: bool = True) -> None:
        """
        Stop accepting jobs, optionally finish queued ones, then stop workers.

        With drain=False, queued messages that no worker picked up are dropped.
        """
        self._closed = True
        if drain and self._workers:
            await self._queue.join()
        for task in self._workers:
            task.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        logger.info("Job queue stopped (%d message(s) left unprocessed)", self.pending)

    # ── Workers ───────────────────────────────────────────────────────────

    async def _worker(self, index: int) -> None:
        # Worker tasks copy the context of whoever started the queue.
        # Clear the ambient request so jobs always see "no request".
        current_request_var.set(None)
        while True:
            message = await self._queue.get()
            try:
                await self._process(message)
            finally:
                self._queue.task_done()

    async def _process(self, message: JobMessage) -> None:
        job_cls = self._registry[message.kind]
        record = self._records.get(message.job_id) or JobRecord.from_message(message)

        # Any failure, including a bad concurrency key, ends in a FAILED record;
        # nothing may escape into the worker loop
        try:
            key = job_cls.concurrency_key(*message.args)
            async with self._exclusive(key):
                record.status = JobStatus.RUNNING
                record.started_at = datetime.now(timezone.utc)
                logger.info("Job %s (%s) started", message.job_id, message.kind)
                await self._run_with_policy(job_cls, message, record)
        except Exception as e:
            record.status = JobStatus.FAILED
            record.error = e.message if isinstance(e, ScopeNotesError) else str(e)
            # Application errors are expected failures; anything else gets a traceback
            logger.error(
                "Job %s (%s) failed after %d attempt(s): %s",
                message.job_id,
                message.kind,
                record.attempts,
                record.error,
                exc_info=not isinstance(e, ScopeNotesError),
            )
        else:
            record.status = JobStatus.SUCCEEDED
            logger.info("Job %s (%s) succeeded", message.job_id, message.kind)
        finally:
            record.finished_at = datetime.now(timezone.utc)

    async def _run_with_policy(
        self,
        job_cls: Type[BackgroundJob],
        message: JobMessage,
        record: JobRecord,
    ) -> None:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(job_cls.policy.max_attempts + 1),
            wait=wait_exponential(
                multiplier=1,
                min=settings.job_retry_min_wait,
                max=settings.job_retry_max_wait,
            ),
            retry=retry_if_exception(_is_retryable),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                record.attempts += 1
                await self._run_once(job_cls, message)

    async def _run_once(self, job_cls: Type[BackgroundJob], message: JobMessage) -> None:
        # One session and one job instance per attempt
        async with self._session_factory() as session:
            job = job_cls.for_session(session)
            await job.run(*message.args)

    # ── Helpers ───────────────────────────────────────────────────────────

    @contextlib.asynccontextmanager
    async def _exclusive(self, key: Optional[str]) -> AsyncIterator[None]:
        """Hold the lock of `key` (no-op for None); drop it once nobody uses it."""
        if not key:
            yield
            return

        lock = self._key_locks.get(key)
        if lock is None:
            lock = self._key_locks[key] = asyncio.Lock()
        self._key_users[key] = self._key_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._key_users[key] -= 1
            if not self._key_users[key]:
                del self._key_users[key]
                del self._key_locks[key]

    def _remember(self, record: JobRecord) -> None:
        self._records[record.job_id] = record
        while len(self._records) > self._history_size:
            self._records.popitem(last=False)
