"""
ScopeNotes Backend — Category Route Handlers
==============================================

What:  GET /api/categories/{category_id}
How:   Direct lookup through NotesService.find_category. The CategoryId
       header plays no part here; this lookup is not scope-gated.
"""

from fastapi import APIRouter, Depends

from scopenotes.exceptions import NotFoundError
from scopenotes.schemas.note import CategoryResponse, ErrorResponse
from scopenotes.services.notes_service import NotesService, get_notes_service

router = APIRouter(prefix="/api/categories", tags=["Categories"])


@router.get(
    "/{category_id}",
    response_model=CategoryResponse,
    responses={
        404: {"description": "Category not found", "model": ErrorResponse},
    },
    summary="Get a category and its notes",
)
async def get_category(
    category_id: int,
    notes_service: NotesService = Depends(get_notes_service),
) -> CategoryResponse:
    category = await notes_service.find_category(category_id)
    if category is None:
        raise NotFoundError(resource="category", resource_id=str(category_id))
    return CategoryResponse.model_validate(category)
