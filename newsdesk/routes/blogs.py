"""
Newsdesk Backend — Blog Routes
================================

What:  /api/blogs CRUD plus blog image serving.
How:   Thin handlers; BlogService does the work. List endpoints set
       X-Total-Count so pagination UIs can show totals without reading
       the body.

Route order matters: /published and /image/{filename} are declared before
/{id_or_slug} so they are not captured as slugs.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.database import get_db_session
from newsdesk.dependencies import (
    get_blog_service,
    get_media_service,
    get_optional_user,
    get_page_request,
)
from newsdesk.models import User
from newsdesk.routes.media import IMAGE_RESPONSES, image_response
from newsdesk.schemas.blog import BlogCreate, BlogResponse, BlogUpdate
from newsdesk.schemas.common import ErrorResponse, MessageResponse, Page, dump_body
from newsdesk.services.blog_service import BlogService
from newsdesk.services.media_service import KIND_BLOG, MediaService
from newsdesk.services.pagination import PageRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/blogs", tags=["Blogs"])


@router.get(
    "",
    response_model=Page[BlogResponse],
    response_model_exclude_unset=True,
    summary="List blogs, newest first",
    description=(
        "Paginated list of all blogs with author, categories and tags populated. "
        "If the database cannot be reached in time, a single placeholder post is "
        "returned together with a `message` field."
    ),
)
async def list_blogs(
    response: Response,
    page: PageRequest = Depends(get_page_request),
    db: AsyncSession = Depends(get_db_session),
    service: BlogService = Depends(get_blog_service),
):
    result = await service.list_blogs(db, page)
    response.headers["X-Total-Count"] = str(result["total"])
    return result


@router.get(
    "/published",
    response_model=Page[BlogResponse],
    response_model_exclude_unset=True,
    summary="List published blogs, newest first",
)
async def list_published_blogs(
    response: Response,
    page: PageRequest = Depends(get_page_request),
    db: AsyncSession = Depends(get_db_session),
    service: BlogService = Depends(get_blog_service),
):
    result = await service.list_published(db, page)
    response.headers["X-Total-Count"] = str(result["total"])
    return result


@router.get(
    "/image/{filename}",
    responses=IMAGE_RESPONSES,
    summary="Serve a blog image",
)
async def serve_blog_image(
    filename: str,
    db: AsyncSession = Depends(get_db_session),
    media: MediaService = Depends(get_media_service),
) -> Response:
    return await image_response(media, db, filename, kinds=(KIND_BLOG,))


@router.get(
    "/{id_or_slug}",
    response_model=BlogResponse,
    responses={404: {"description": "Blog not found", "model": ErrorResponse}},
    summary="Get a blog by id or slug",
)
async def get_blog(
    id_or_slug: str,
    db: AsyncSession = Depends(get_db_session),
    service: BlogService = Depends(get_blog_service),
):
    return await service.get_blog(db, id_or_slug)


@router.post(
    "",
    status_code=201,
    response_model=BlogResponse,
    responses={
        409: {"description": "Slug already in use", "model": ErrorResponse},
        422: {"description": "Invalid body"},
    },
    summary="Create a blog",
    description=(
        "Image fields whose `original_url` is an embedded `data:image/...;base64,` "
        "payload are stored in the blog and served from `/uploads/<filename>`."
    ),
)
async def create_blog(
    body: BlogCreate,
    db: AsyncSession = Depends(get_db_session),
    service: BlogService = Depends(get_blog_service),
    user: Optional[User] = Depends(get_optional_user),
):
    return await service.create_blog(db, dump_body(body), author=user)


@router.put(
    "/{blog_id}",
    response_model=BlogResponse,
    responses={
        404: {"description": "Blog not found", "model": ErrorResponse},
        409: {"description": "Slug already in use", "model": ErrorResponse},
    },
    summary="Update a blog",
)
async def update_blog(
    blog_id: UUID,
    body: BlogUpdate,
    db: AsyncSession = Depends(get_db_session),
    service: BlogService = Depends(get_blog_service),
):
    return await service.update_blog(db, blog_id, dump_body(body))


@router.delete(
    "/{blog_id}",
    response_model=MessageResponse,
    responses={404: {"description": "Blog not found", "model": ErrorResponse}},
    summary="Delete a blog",
)
async def delete_blog(
    blog_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    service: BlogService = Depends(get_blog_service),
) -> MessageResponse:
    await service.delete_blog(db, blog_id)
    return MessageResponse(message="Blog deleted successfully")
