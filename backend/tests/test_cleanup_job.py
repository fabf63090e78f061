"""
ScopeNotes Backend — Cleanup Job Tests
========================================

What:  Tests for CleanupJob, run directly and through the job queue.

What we test:
    ✅ The category id is pushed into the job resolver before deleting
    ✅ Runs without any request in scope
    ✅ Unknown category fails once, is not retried, deletes nothing
    ✅ Overlapping cleanups of one category both succeed
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import select

from scopenotes.context.selector import ScopeSelector
from scopenotes.exceptions import JobDispatchError
from scopenotes.jobs import JobStatus
from scopenotes.jobs.cleanup import CleanupJob
from scopenotes.middleware.request_context import get_current_request
from scopenotes.models.note import Note


async def note_ids(session_factory) -> set:
    async with session_factory() as session:
        result = await session.execute(select(Note.id))
        return set(result.scalars().all())


class TestCleanupJobDefinition:

    def test_runs_exactly_once(self):
        assert CleanupJob.policy.max_attempts == 0

    def test_concurrency_key_is_per_category(self):
        assert CleanupJob.concurrency_key(1) == "category:1"
        assert CleanupJob.concurrency_key(1) != CleanupJob.concurrency_key(2)

    def test_factory_shares_one_selector(self, mock_db_session):
        job = CleanupJob.for_session(mock_db_session)

        assert job._notes_service._scope is job._scope


class TestCleanupJobRun:

    @pytest.mark.asyncio
    async def test_scope_is_set_before_deleting(self, mock_db_session):
        selector = ScopeSelector(mock_db_session, request_provider=lambda: None)
        seen = []

        async def delete_completed_notes():
            seen.append(selector.job_resolver.category_id)
            return 2

        notes_service = MagicMock()
        notes_service.delete_completed_notes = AsyncMock(side_effect=delete_completed_notes)

        await CleanupJob(selector, notes_service).run(1)

        assert seen == [1]

    @pytest.mark.asyncio
    async def test_deletes_completed_notes_without_request(self, seeded_factory):
        assert get_current_request() is None

        async with seeded_factory() as session:
            await CleanupJob.for_session(session).run(1)

        assert await note_ids(seeded_factory) == {1, 4, 5}


class TestCleanupJobThroughQueue:

    @pytest.mark.asyncio
    async def test_queued_cleanup_succeeds(self, job_queue, seeded_factory):
        job_id = job_queue.enqueue(CleanupJob, 1)
        await job_queue.join()

        record = job_queue.get_record(job_id)
        assert record.status == JobStatus.SUCCEEDED
        assert record.attempts == 1
        assert await note_ids(seeded_factory) == {1, 4, 5}

    @pytest.mark.asyncio
    async def test_unknown_category_fails_once(self, job_queue, seeded_factory):
        job_id = job_queue.enqueue(CleanupJob, 999)
        await job_queue.join()

        record = job_queue.get_record(job_id)
        assert record.status == JobStatus.FAILED
        assert record.attempts == 1
        assert "999" in record.error
        assert await note_ids(seeded_factory) == {1, 2, 3, 4, 5}

    @pytest.mark.asyncio
    async def test_overlapping_cleanups_of_one_category(self, job_queue, seeded_factory):
        first = job_queue.enqueue(CleanupJob, 1)
        second = job_queue.enqueue(CleanupJob, 1)
        await job_queue.join()

        statuses = {job_queue.get_record(job_id).status for job_id in (first, second)}
        assert statuses == {JobStatus.SUCCEEDED}
        assert await note_ids(seeded_factory) == {1, 4, 5}

    @pytest.mark.asyncio
    async def test_cleanups_of_different_categories(self, job_queue, seeded_factory):
        job_ids = [job_queue.enqueue(CleanupJob, category_id) for category_id in (1, 2)]
        await asyncio.wait_for(job_queue.join(), timeout=5)

        assert all(job_queue.get_record(job_id).status == JobStatus.SUCCEEDED for job_id in job_ids)
        assert await note_ids(seeded_factory) == {1, 5}

    @pytest.mark.asyncio
    async def test_out_of_range_category_fails_once(self, job_queue, seeded_factory):
        job_id = job_queue.enqueue(CleanupJob, 99999999999999999999)
        await asyncio.wait_for(job_queue.join(), timeout=5)

        record = job_queue.get_record(job_id)
        assert record.status == JobStatus.FAILED
        assert record.attempts == 1
        assert "out of range" in record.error
        assert await note_ids(seeded_factory) == {1, 2, 3, 4, 5}

    @pytest.mark.asyncio
    async def test_cleanup_without_category_is_rejected_at_submission(self, job_queue):
        with pytest.raises(JobDispatchError):
            job_queue.enqueue(CleanupJob)

        assert job_queue.pending == 0
        assert job_queue.running is True
