# Middleware package init
"""
ScopeNotes Backend — Middleware Package
========================================

Middleware Chain (order of execution):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → [Request Context] → Route

    - Request ID:      correlation id in a ContextVar and the X-Request-ID header
    - Logging:         one access-log line per request
    - Request Context: publishes the live request for ScopeSelector
"""
