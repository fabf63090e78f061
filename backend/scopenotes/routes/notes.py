"""
ScopeNotes Backend — Notes Route Handlers
===========================================

What:  GET /api/notes, DELETE /api/notes/completed, POST /api/notes/run-cleanup-task
How:   The category comes from the `CategoryId` header. The read and the
       synchronous delete let NotesService resolve it through the request's
       ScopeSelector. The trigger reads it once, turns it into an int and
       hands that value to the job queue.

Error mapping (see main.py):
    ScopeResolutionError → 400   missing/invalid header, unknown category
    PersistenceError     → 500
    JobDispatchError     → 503   job queue stopped or full
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Request

from scopenotes.config import settings
from scopenotes.context.resolvers import parse_category_id
from scopenotes.context.selector import ScopeSelector, get_scope_selector
from scopenotes.jobs import JobQueue, get_job_queue
from scopenotes.jobs.cleanup import CleanupJob
from scopenotes.schemas.note import (
    CleanupResultResponse,
    ErrorResponse,
    NoteResponse,
    TaskQueuedResponse,
)
from scopenotes.services.notes_service import NotesService, get_notes_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notes", tags=["Notes"])


@router.get(
    "",
    response_model=List[NoteResponse],
    responses={
        400: {"description": "Missing or invalid category header", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="List completed notes of a category",
)
async def list_completed_notes(
    notes_service: NotesService = Depends(get_notes_service),
) -> List[NoteResponse]:
    notes = await notes_service.list_completed_notes()
    return [NoteResponse.model_validate(note) for note in notes]


@router.delete(
    "/completed",
    response_model=CleanupResultResponse,
    responses={
        400: {"description": "Missing or invalid category header", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Delete completed notes of a category now",
)
async def delete_completed_notes(
    notes_service: NotesService = Depends(get_notes_service),
    scope: ScopeSelector = Depends(get_scope_selector),
) -> CleanupResultResponse:
    """
    Synchronous cleanup: the response is sent after the deletion is committed.

    `scope` is the same selector the service uses (dependencies are cached
    per request), so reading the category here does not query again.
    """
    deleted = await notes_service.delete_completed_notes()
    category = await scope.resolve()
    return CleanupResultResponse(category_id=category.id, deleted_count=deleted)


@router.post(
    "/run-cleanup-task",
    status_code=202,
    response_model=TaskQueuedResponse,
    responses={
        202: {"description": "Cleanup task queued", "model": TaskQueuedResponse},
        400: {"description": "Missing or invalid category header", "model": ErrorResponse},
        503: {"description": "Job queue unavailable", "model": ErrorResponse},
    },
    summary="Queue a background cleanup of completed notes",
    description=(
        "Queues a cleanup job for the category in the header and returns at once. "
        "The response only confirms submission; an unknown category makes the job "
        "fail later, visible through GET /api/jobs/{job_id}."
    ),
)
async def run_cleanup_task(
    request: Request,
    job_queue: JobQueue = Depends(get_job_queue),
) -> TaskQueuedResponse:
    # Capture a plain int now; the job must not hold on to this request
    category_id = parse_category_id(
        request.headers.get(settings.category_header),
        source=f"Header '{settings.category_header}'",
    )
    job_id = job_queue.enqueue(CleanupJob, category_id)
    return TaskQueuedResponse(job_id=job_id, category_id=category_id)
