"""
ScopeNotes Backend — Custom Exception Hierarchy
=================================================

What:  Defines application-specific exceptions for different error scenarios.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by resolvers, services and the job queue; caught by global handlers
       (request path) or by the job worker (background path).

Exception Hierarchy:
    ScopeNotesError (base)
    ├── ScopeResolutionError   → 400 Bad Request (category cannot be determined)
    ├── NotFoundError          → 404 Not Found
    ├── PersistenceError       → 500 Internal Server Error
    └── JobDispatchError       → 503 Service Unavailable (job could not be queued)
"""

from typing import Any, Dict, Optional


class ScopeNotesError(Exception):
    """
    Base exception for all ScopeNotes application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged; only returned for client errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ScopeResolutionError(ScopeNotesError):
    """
    Raised when the category for the current execution cannot be determined.

    When:    Missing header, non-numeric header, job parameter never set,
             or an identifier that matches no stored category.
    HTTP:    400 Bad Request

    Always fatal to the current execution and never retried. On the
    background path it surfaces only in the job's status and in the logs.
    """

    def __init__(
        self,
        message: str = "Category not found",
        category_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if category_id is not None:
            ctx["category_id"] = category_id
        super().__init__(message=message, context=ctx)
        self.category_id = category_id


class NotFoundError(ScopeNotesError):
    """
    Raised when a requested resource does not exist.

    When:    GET /api/categories/{id} or GET /api/jobs/{id} with an unknown id.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class PersistenceError(ScopeNotesError):
    """
    Raised when the store fails to query, remove or commit.

    HTTP:    500 Internal Server Error

    The message returned to the client is always generic; the original
    driver error is only recorded in `context` and logged server-side.
    Not retried by the service layer.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class JobDispatchError(ScopeNotesError):
    """
    Raised when a unit of work cannot be handed to the job queue.

    When:    Queue stopped, queue full, or job kind not registered.
    HTTP:    503 Service Unavailable

    Only submission failures raise this. Failures inside a running job are
    never reported back to the submitter.
    """

    def __init__(
        self,
        message: str = "Background job queue is unavailable",
        kind: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if kind:
            ctx["kind"] = kind
        super().__init__(message=message, context=ctx)
        self.kind = kind
