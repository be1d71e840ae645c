"""
Newsdesk Backend — Image File Routes
======================================

What:  Serves content store files by filename.
How:   MediaService.serve() returns the bytes, rebuilding the file from the
       owning blog or category document when it is missing from the store.

Routes:
    GET /uploads/{filename}                 any entity may own the file
    GET /api/blogs/image/{filename}         blogs only
    GET /api/categories/image/{filename}    categories and their subcategories

The two /api/*/image routes are registered by the blog and category routers
so they take precedence over `/{id}` on those prefixes.
"""

import logging
from typing import Sequence

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.database import get_db_session
from newsdesk.dependencies import get_media_service
from newsdesk.schemas.common import ErrorResponse
from newsdesk.services.image_codec import media_type_for_filename
from newsdesk.services.media_service import ALL_KINDS, MediaService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Images"])

IMAGE_RESPONSES = {
    200: {"description": "Image bytes", "content": {"image/*": {}}},
    400: {"description": "Invalid file name", "model": ErrorResponse},
    404: {"description": "Image not found", "model": ErrorResponse},
}


async def image_response(
    media: MediaService,
    db: AsyncSession,
    filename: str,
    kinds: Sequence[str] = ALL_KINDS,
) -> Response:
    data = await media.serve(db, filename, kinds)
    return Response(
        content=data,
        media_type=media_type_for_filename(filename),
        headers={"Cache-Control": "public, max-age=86400"},
    )


@router.get(
    "/uploads/{filename}",
    responses=IMAGE_RESPONSES,
    summary="Serve an uploaded or embedded image",
)
async def serve_upload(
    filename: str,
    db: AsyncSession = Depends(get_db_session),
    media: MediaService = Depends(get_media_service),
) -> Response:
    return await image_response(media, db, filename)
