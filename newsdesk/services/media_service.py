"""
Newsdesk Backend — Media Service (Image Rehydration)
======================================================

What:  Keeps the content store in step with the images embedded in entity
       documents, and serves image files by filename.
Why:   The database copy (ImageRef.base64Data) is authoritative and the files
       under /uploads are a cache that may be wiped at any time (container
       restart, cleaned volume). Every read path therefore re-creates missing
       files before handing out URLs that point at them.
How:   Cache-aside. Check the store, and on a miss decode the embedded
       payload and write it back. Writes are first-writer-wins, so two
       requests rehydrating the same image at once both succeed.
Who:   Blog and category services on every read; the /uploads and
       /api/*/image routes for direct file requests.

Serving flow (GET /uploads/<filename>):
    ┌──────────────┐ hit  ┌────────────┐
    │ store.exists │─────▶│ read bytes │
    └──────┬───────┘      └────────────┘
           │ miss
    ┌──────▼──────────────────┐  found   ┌────────────────────┐
    │ search blog / category  │─────────▶│ ensure_materialized│──▶ read bytes
    │ documents for filename  │          └────────────────────┘
    └──────┬──────────────────┘
           │ nothing recoverable
           ▼
        404 Not Found
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import String, cast, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.exceptions import NewsdeskError, NotFoundError, ValidationError
from newsdesk.models import Blog, Category
from newsdesk.services.content_store import ContentStore
from newsdesk.services.image_codec import decode_image_payload
from newsdesk.services.image_fields import (
    BASE64_KEY,
    BLOG_SHAPE,
    CATEGORY_SHAPE,
    Document,
    DocumentShape,
    ImageRef,
    iter_image_refs,
)

logger = logging.getLogger(__name__)

# ── Entity kinds searched when a file is missing ──────────────────────────
KIND_BLOG = "blog"
KIND_CATEGORY = "category"
ALL_KINDS = (KIND_BLOG, KIND_CATEGORY)


class MediaService:
    """
    Rehydration and serving on top of a ContentStore.

    Stateless apart from the injected store; one instance per request is
    cheap and keeps tests free to pass their own store.
    """

    def __init__(self, store: ContentStore):
        self.store = store

    async def ensure_materialized(self, ref: Optional[ImageRef]) -> bool:
        """
        Make sure the file behind an ImageRef exists in the content store.

        Returns:
            True if the file exists afterwards (already there, or written now).
            False if it is missing and cannot be rebuilt: no filename, no
            base64Data, or a payload that does not decode.

        Raises:
            FileStorageError if the store itself fails while writing.
        """
        if not ref or not ref.get("filename"):
            return False
        filename = ref["filename"]

        try:
            if await self.store.exists(filename):
                return True
        except ValidationError:
            logger.warning("Stored image has an unusable filename: %r", filename)
            return False

        decoded = decode_image_payload(ref.get(BASE64_KEY))
        if decoded is None:
            logger.warning("Unrecoverable image '%s': no usable embedded payload", filename)
            return False

        await self.store.write(filename, decoded.data)
        return True

    async def materialize_document(self, document: Document, shape: DocumentShape) -> List[str]:
        """
        Rehydrate every image of a document, nested documents included.

        Never fails the read that triggered it: storage errors are logged and
        the image is reported as unrecoverable.

        Returns:
            Filenames that could not be materialized.
        """
        missing: List[str] = []
        for ref in iter_image_refs(document, shape):
            if not ref.get("filename"):
                # External URL without a stored copy; nothing to rehydrate
                continue
            try:
                ok = await self.ensure_materialized(ref)
            except NewsdeskError as e:
                logger.error("Failed to materialize '%s': %s", ref.get("filename"), e.message)
                ok = False
            if not ok:
                missing.append(ref["filename"])
        return missing

    async def materialize_documents(
        self, documents: Iterable[Document], shape: DocumentShape
    ) -> None:
        for document in documents:
            await self.materialize_document(document, shape)

    async def serve(
        self,
        db: AsyncSession,
        filename: str,
        kinds: Sequence[str] = ALL_KINDS,
    ) -> bytes:
        """
        Bytes of a stored image, rebuilding the file from the database if needed.

        Args:
            db:       Session used to search entity documents on a cache miss.
            filename: Content store key taken from the URL.
            kinds:    Which entity types may own the file (blog, category).

        Raises:
            ValidationError: filename is not a single path segment (400).
            NotFoundError:   no stored file and no recoverable document (404).
        """
        if await self.store.exists(filename):
            return await self.store.read(filename)

        for ref in await self._find_refs(db, filename, kinds):
            if await self.ensure_materialized(ref):
                logger.info("Rehydrated image '%s' from database", filename)
                return await self.store.read(filename)

        raise NotFoundError(resource="image", resource_id=filename)

    async def _find_refs(
        self, db: AsyncSession, filename: str, kinds: Sequence[str]
    ) -> List[ImageRef]:
        """
        ImageRefs whose filename equals `filename`, in blog-then-category order.

        The JSON columns are narrowed with a substring match in SQL and the
        exact filename comparison is done on the decoded documents.
        """
        refs: List[ImageRef] = []
        documents: List[tuple] = []

        if KIND_BLOG in kinds:
            result = await db.execute(
                select(Blog.thumbnail, Blog.meta_image).where(
                    or_(
                        _json_mentions(Blog.thumbnail, filename),
                        _json_mentions(Blog.meta_image, filename),
                    )
                )
            )
            for thumbnail, meta_image in result.all():
                documents.append(({"thumbnail": thumbnail, "metaImage": meta_image}, BLOG_SHAPE))

        if KIND_CATEGORY in kinds:
            result = await db.execute(
                select(Category.icon, Category.image, Category.subcategories).where(
                    or_(
                        _json_mentions(Category.icon, filename),
                        _json_mentions(Category.image, filename),
                        _json_mentions(Category.subcategories, filename),
                    )
                )
            )
            for icon, image, subcategories in result.all():
                document: Dict[str, Any] = {
                    "icon": icon,
                    "image": image,
                    "subcategories": subcategories or [],
                }
                documents.append((document, CATEGORY_SHAPE))

        for document, shape in documents:
            refs.extend(
                ref for ref in iter_image_refs(document, shape)
                if ref.get("filename") == filename
            )
        return refs


def _json_mentions(column, needle: str):
    return cast(column, String).contains(needle, autoescape=True)
