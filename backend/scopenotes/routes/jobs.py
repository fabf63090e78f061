"""
ScopeNotes Backend — Job Status Route Handlers
================================================

What:  GET /api/jobs/{job_id}
How:   Reads the in-memory JobRecord kept by JobQueue. Records disappear when
       the process restarts or when they fall out of the bounded history.
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends

from scopenotes.exceptions import NotFoundError
from scopenotes.jobs import JobQueue, get_job_queue
from scopenotes.schemas.note import ErrorResponse, JobStatusResponse

router = APIRouter(prefix="/api/jobs", tags=["Jobs"])


@router.get(
    "/{job_id}",
    response_model=JobStatusResponse,
    responses={
        404: {"description": "Unknown or expired job id", "model": ErrorResponse},
    },
    summary="Get the status of a background job",
)
async def get_job_status(
    job_id: str,
    job_queue: JobQueue = Depends(get_job_queue),
) -> JobStatusResponse:
    record = job_queue.get_record(job_id)
    if record is None:
        raise NotFoundError(resource="job", resource_id=job_id)
    return JobStatusResponse(**asdict(record))
