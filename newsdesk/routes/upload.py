"""
Newsdesk Backend — Upload Routes
==================================

What:  Stores images that are not (yet) attached to a blog or category.

    POST /api/upload         multipart/form-data, field `image`
    POST /api/upload/base64  JSON {thumbnail?, metaImage?} with embedded payloads

Both respond with {original_url, filename} per stored image. The files are
not embedded in any document, so they are served only while the content
store keeps them.
"""

import logging

from fastapi import APIRouter, Depends, File, UploadFile

from newsdesk.dependencies import get_upload_service
from newsdesk.schemas.common import ErrorResponse, dump_body
from newsdesk.schemas.upload import EmbeddedUploadRequest, EmbeddedUploadResponse, StoredImage
from newsdesk.services.upload_service import UploadService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/upload", tags=["Upload"])


@router.post(
    "",
    response_model=StoredImage,
    responses={400: {"description": "Missing, oversized or invalid image", "model": ErrorResponse}},
    summary="Upload an image file",
)
async def upload_image(
    image: UploadFile = File(..., description="PNG, JPEG, GIF or WebP image"),
    service: UploadService = Depends(get_upload_service),
) -> StoredImage:
    try:
        content = await image.read()
        logger.info(
            "Received upload: filename=%s, size=%d bytes",
            image.filename or "unknown",
            len(content),
        )
        stored = await service.save_upload(image.filename, content, content_length=image.size)
    finally:
        await image.close()
    return StoredImage(**stored)


@router.post(
    "/base64",
    response_model=EmbeddedUploadResponse,
    response_model_exclude_unset=True,
    summary="Store embedded thumbnail / metaImage payloads",
)
async def upload_embedded(
    body: EmbeddedUploadRequest,
    service: UploadService = Depends(get_upload_service),
):
    return await service.save_embedded(dump_body(body))
