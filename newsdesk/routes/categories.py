"""
Newsdesk Backend — Category Routes
====================================

What:  /api/categories CRUD, subcategory management and category image
       serving. Subcategory changes respond with the whole parent category.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.database import get_db_session
from newsdesk.dependencies import get_category_service, get_media_service, get_page_request
from newsdesk.routes.media import IMAGE_RESPONSES, image_response
from newsdesk.schemas.category import (
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    SubcategoryResponse,
    SubcategoryUpdate,
)
from newsdesk.schemas.common import ErrorResponse, MessageResponse, Page, dump_body
from newsdesk.services.category_service import CategoryService
from newsdesk.services.media_service import KIND_CATEGORY, MediaService
from newsdesk.services.pagination import PageRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/categories", tags=["Categories"])

NOT_FOUND = {404: {"description": "Category or subcategory not found", "model": ErrorResponse}}


@router.get(
    "",
    response_model=Page[CategoryResponse],
    response_model_exclude_unset=True,
    summary="List categories sorted by name",
)
async def list_categories(
    response: Response,
    page: PageRequest = Depends(get_page_request),
    db: AsyncSession = Depends(get_db_session),
    service: CategoryService = Depends(get_category_service),
):
    result = await service.list_categories(db, page)
    response.headers["X-Total-Count"] = str(result["total"])
    return result


@router.get(
    "/image/{filename}",
    responses=IMAGE_RESPONSES,
    summary="Serve a category or subcategory image",
)
async def serve_category_image(
    filename: str,
    db: AsyncSession = Depends(get_db_session),
    media: MediaService = Depends(get_media_service),
) -> Response:
    return await image_response(media, db, filename, kinds=(KIND_CATEGORY,))


@router.get(
    "/{category_id}",
    response_model=CategoryResponse,
    responses=NOT_FOUND,
    summary="Get a category",
)
async def get_category(
    category_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    service: CategoryService = Depends(get_category_service),
):
    return await service.get_category(db, category_id)


@router.post(
    "",
    status_code=201,
    response_model=CategoryResponse,
    responses={
        404: {"description": "Parent category not found", "model": ErrorResponse},
        409: {"description": "Name already in use", "model": ErrorResponse},
    },
    summary="Create a category, or a subcategory when `parent` is set",
)
async def create_category(
    body: CategoryCreate,
    db: AsyncSession = Depends(get_db_session),
    service: CategoryService = Depends(get_category_service),
):
    return await service.create_category(db, dump_body(body))


@router.put(
    "/{category_id}",
    response_model=CategoryResponse,
    responses={**NOT_FOUND, 409: {"description": "Name already in use", "model": ErrorResponse}},
    summary="Update a category, or subcategory `category_id` of `parent` when set",
)
async def update_category(
    category_id: UUID,
    body: CategoryUpdate,
    db: AsyncSession = Depends(get_db_session),
    service: CategoryService = Depends(get_category_service),
):
    return await service.update_category(db, category_id, dump_body(body))


@router.delete(
    "/{category_id}",
    response_model=MessageResponse,
    responses=NOT_FOUND,
    summary="Delete a category and its subcategories",
)
async def delete_category(
    category_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    service: CategoryService = Depends(get_category_service),
) -> MessageResponse:
    await service.delete_category(db, category_id)
    return MessageResponse(message="Category deleted successfully")


# ── Subcategories ─────────────────────────────────────────────────────────
@router.get(
    "/{category_id}/subcategories",
    response_model=Page[SubcategoryResponse],
    response_model_exclude_unset=True,
    responses=NOT_FOUND,
    summary="List the subcategories of a category",
)
async def list_subcategories(
    category_id: UUID,
    response: Response,
    page: PageRequest = Depends(get_page_request),
    db: AsyncSession = Depends(get_db_session),
    service: CategoryService = Depends(get_category_service),
):
    result = await service.list_subcategories(db, category_id, page)
    response.headers["X-Total-Count"] = str(result["total"])
    return result


@router.put(
    "/{category_id}/subcategory/{subcategory_id}",
    response_model=CategoryResponse,
    responses=NOT_FOUND,
    summary="Update one subcategory",
)
async def update_subcategory(
    category_id: UUID,
    subcategory_id: str,
    body: SubcategoryUpdate,
    db: AsyncSession = Depends(get_db_session),
    service: CategoryService = Depends(get_category_service),
):
    return await service.update_subcategory(db, category_id, subcategory_id, dump_body(body))


@router.delete(
    "/{category_id}/subcategory/{subcategory_id}",
    response_model=MessageResponse,
    responses=NOT_FOUND,
    summary="Delete one subcategory",
)
async def delete_subcategory(
    category_id: UUID,
    subcategory_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: CategoryService = Depends(get_category_service),
) -> MessageResponse:
    await service.delete_subcategory(db, category_id, subcategory_id)
    return MessageResponse(message="Subcategory deleted successfully")
