"""
ScopeNotes Backend — Pydantic Request/Response Schemas
=======================================================

What:  Pydantic models defining the API contract.
How:   FastAPI uses these models to serialize responses and generate
       OpenAPI documentation.

Schemas are separate from the SQLAlchemy models so the API exposes exactly
`{id, name, category_id}` for a note, never internal columns.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class NoteResponse(BaseModel):
    """A note as returned by GET /api/notes."""
    id: int = Field(description="Note identifier")
    name: str = Field(description="Display name")
    category_id: int = Field(description="Owning category identifier")

    model_config = {"from_attributes": True}


class CategoryResponse(BaseModel):
    """
    What:  A category with its notes, in note id order.
    Who:   Returned by GET /api/categories/{id}.
    """
    id: int = Field(description="Category identifier")
    name: str = Field(description="Display name")
    notes: List[NoteResponse] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class CleanupResultResponse(BaseModel):
    """Result of the synchronous cleanup (DELETE /api/notes/completed)."""
    category_id: int = Field(description="Category the cleanup ran against")
    deleted_count: int = Field(description="Number of completed notes removed")


class TaskQueuedResponse(BaseModel):
    """
    What:  Acknowledgment that a cleanup job was queued.
    Who:   Returned by POST /api/notes/run-cleanup-task with HTTP 202.

    This only confirms submission. The job may still fail later; its outcome
    is visible through GET /api/jobs/{job_id} while the process lives.
    """
    message: str = Field(default="Cleanup task triggered")
    job_id: str = Field(description="Identifier of the queued job")
    category_id: int = Field(description="Category captured at submission time")


class JobStatusResponse(BaseModel):
    """
    What:  In-memory status of a submitted job.
    Who:   Returned by GET /api/jobs/{job_id}.
    """
    job_id: str
    kind: str
    status: str = Field(description="queued, running, succeeded or failed")
    args: List[int | str] = Field(default_factory=list)
    attempts: int = Field(default=0, description="Attempts started so far")
    enqueued_at: datetime
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    error: Optional[str] = Field(default=None, description="Error message of a failed job")


# ══════════════════════════════════════════════════════════════════════════
# Error Response Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Example:
        {
            "error": "scope_resolution_error",
            "message": "Header 'CategoryId' is missing",
            "details": {"header": "CategoryId"},
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and dependency status."""
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    job_queue: str = Field(description="Job queue state: running, stopped")
    pending_jobs: int = Field(description="Jobs queued but not yet started")
    uptime_seconds: float = Field(description="Seconds since service started")
