# Routes package init
"""
ScopeNotes Backend — API Routes Package
=========================================

Route Inventory:
    - notes.py:       GET    /api/notes                    (completed notes of a category)
                      DELETE /api/notes/completed          (synchronous cleanup)
                      POST   /api/notes/run-cleanup-task   (queue background cleanup)
    - categories.py:  GET    /api/categories/{id}          (unscoped category lookup)
    - jobs.py:        GET    /api/jobs/{id}                (background job status)
    - health.py:      GET    /health                       (service health check)

Routes stay thin: they read the request, call a service or the job queue,
and shape the response. Business logic lives in services.
"""
