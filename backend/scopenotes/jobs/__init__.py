"""
ScopeNotes Backend — Background Jobs Package
=============================================

Contents:
    - base.py:    BackgroundJob contract and JobPolicy
    - queue.py:   JobQueue, the in-process scheduler and worker pool
    - cleanup.py: CleanupJob, deletes completed notes of one category
"""

from fastapi import Request

from scopenotes.jobs.base import BackgroundJob, JobPolicy
from scopenotes.jobs.queue import JobMessage, JobQueue, JobRecord, JobStatus


def get_job_queue(request: Request) -> JobQueue:
    """FastAPI dependency: the JobQueue created by the application lifespan."""
    return request.app.state.job_queue


__all__ = [
    "BackgroundJob",
    "JobMessage",
    "JobPolicy",
    "JobQueue",
    "JobRecord",
    "JobStatus",
    "get_job_queue",
]
