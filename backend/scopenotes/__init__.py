"""
ScopeNotes Backend — Application Package Initializer
====================================================

Category-scoped notes service. The same business logic runs inside an HTTP
request (category taken from a header) and inside a background job (category
passed as a job argument).

Layers:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services │ Jobs (background work) │  ← Business logic, job execution
    ├─────────────────────────────────────┤
    │   Context (scope resolution)        │  ← Request or job → Category
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
