"""
ScopeNotes Backend — Request Context Middleware
=================================================

What:  Publishes the live request in a ContextVar for the duration of the request.
How:   Sets `current_request_var` before calling the route, resets it afterwards.
Who:   Read by ScopeSelector (through `get_current_request`) to decide whether
       the current execution is a request or a background job.

Background job workers are started from the application lifespan, outside any
request, so `get_current_request()` returns None inside them.
"""

from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

current_request_var: ContextVar[Optional[Request]] = ContextVar(
    "current_request", default=None
)


def get_current_request() -> Optional[Request]:
    """Return the request being served by the current task, or None."""
    return current_request_var.get()


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Makes the current request available to code that is not handed it."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        token = current_request_var.set(request)
        try:
            return await call_next(request)
        finally:
            current_request_var.reset(token)
