"""
Newsdesk Backend — Image Backfill
===================================

What:  One-off migration that copies existing content store files into the
       ImageRefs that point at them.
Why:   Images saved before payloads were embedded in documents exist only as
       files. Until they are backfilled, losing the uploads directory loses
       those images for good.
How:   For every ImageRef with a filename and no base64Data whose file is
       still in the store, read the file and store it as
       `data:image/<subtype>;base64,...`, the subtype guessed from the
       extension. Changed documents are written back with fresh JSON values.
Who:   `newsdesk backfill-images`.
"""

import copy
import logging
from dataclasses import dataclass
from typing import Any, Dict

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.exceptions import NotFoundError, ValidationError
from newsdesk.models import Blog, Category
from newsdesk.services.content_store import ContentStore
from newsdesk.services.image_codec import encode_image_payload, subtype_for_filename
from newsdesk.services.image_fields import (
    BASE64_KEY,
    BLOG_SHAPE,
    CATEGORY_SHAPE,
    DocumentShape,
    iter_image_refs,
)

logger = logging.getLogger(__name__)


@dataclass
class BackfillReport:
    blogs_updated: int = 0
    categories_updated: int = 0
    images_embedded: int = 0
    images_missing: int = 0

    def as_dict(self) -> Dict[str, int]:
        return {
            "blogs_updated": self.blogs_updated,
            "categories_updated": self.categories_updated,
            "images_embedded": self.images_embedded,
            "images_missing": self.images_missing,
        }


class ImageBackfillService:
    def __init__(self, store: ContentStore):
        self.store = store

    async def backfill(self, db: AsyncSession) -> BackfillReport:
        report = BackfillReport()

        for blog in (await db.execute(select(Blog))).scalars().all():
            document = {
                "thumbnail": copy.deepcopy(blog.thumbnail),
                "metaImage": copy.deepcopy(blog.meta_image),
            }
            if await self._embed_missing(document, BLOG_SHAPE, report):
                blog.thumbnail = document["thumbnail"]
                blog.meta_image = document["metaImage"]
                report.blogs_updated += 1
                logger.info("Backfilled images for blog '%s'", blog.title)

        for category in (await db.execute(select(Category))).scalars().all():
            document = {
                "icon": copy.deepcopy(category.icon),
                "image": copy.deepcopy(category.image),
                "subcategories": copy.deepcopy(category.subcategories or []),
            }
            if await self._embed_missing(document, CATEGORY_SHAPE, report):
                category.icon = document["icon"]
                category.image = document["image"]
                category.subcategories = document["subcategories"]
                report.categories_updated += 1
                logger.info("Backfilled images for category '%s'", category.name)

        await db.flush()
        return report

    async def _embed_missing(
        self, document: Dict[str, Any], shape: DocumentShape, report: BackfillReport
    ) -> bool:
        """Fill base64Data in place for every ref whose file is available."""
        changed = False
        for ref in iter_image_refs(document, shape):
            filename = ref.get("filename")
            if not filename or ref.get(BASE64_KEY):
                continue
            try:
                data = await self.store.read(filename)
            except (NotFoundError, ValidationError):
                report.images_missing += 1
                logger.warning("Cannot backfill '%s': file not in content store", filename)
                continue
            ref[BASE64_KEY] = encode_image_payload(subtype_for_filename(filename), data)
            report.images_embedded += 1
            changed = True
        return changed
