# Services package init
"""
ScopeNotes Backend — Services Layer
=====================================

Service Inventory:
    - NotesService: lists and deletes completed notes of the resolved category

Services receive their session and scope resolver from the caller (FastAPI
dependencies on the request path, the job factory on the job path), so the
same class serves both.
"""
