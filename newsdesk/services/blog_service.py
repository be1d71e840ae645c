"""
Newsdesk Backend — Blog Service
=================================

What:  Create, read, update and delete blog posts.
How:   Incoming bodies go through apply_image_fields() before they touch the
       row, every document read is rehydrated through MediaService, and every
       document returned is passed through sanitize_document().
Who:   /api/blogs routes.

Read path:
    SELECT blog (+ author, categories, tags)
        → to_document()
        → MediaService.materialize_document()   # files back on disk
        → sanitize_document()                   # base64Data stripped

The plain listing runs under a timeout. If the database is unreachable or
too slow, the caller gets a one-item placeholder page instead of an error
so that public pages keep rendering.
"""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from newsdesk.config import settings
from newsdesk.database import flush_or_conflict
from newsdesk.exceptions import ConflictError, DatabaseError, NotFoundError
from newsdesk.models import Blog, Category, Tag, User
from newsdesk.services.image_fields import BLOG_SHAPE, apply_image_fields, sanitize_document
from newsdesk.services.media_service import MediaService
from newsdesk.services.pagination import PageRequest, page_envelope

logger = logging.getLogger(__name__)

PLACEHOLDER_MESSAGE = "Using placeholder data - database unavailable"

# API key → column for the plain (non-relationship) fields
_COLUMNS = {
    "title": "title",
    "slug": "slug",
    "description": "description",
    "content": "content",
    "metaTitle": "meta_title",
    "metaDescription": "meta_description",
    "metaImage": "meta_image",
    "thumbnail": "thumbnail",
    "featured": "featured",
    "sticky": "sticky",
    "published": "published",
}

_POPULATE = (
    selectinload(Blog.author),
    selectinload(Blog.categories),
    selectinload(Blog.tags),
)


def parse_ids(values: Optional[Sequence[Any]]) -> List[uuid.UUID]:
    """Valid UUIDs from a list of client-supplied ids; anything else is dropped."""
    ids: List[uuid.UUID] = []
    for value in values or ():
        try:
            parsed = uuid.UUID(str(value))
        except (TypeError, ValueError):
            continue
        if parsed not in ids:
            ids.append(parsed)
    return ids


def placeholder_page(request: PageRequest) -> Dict[str, Any]:
    now = datetime.now(timezone.utc)
    sample = {
        "id": "1",
        "title": "Sample Blog Post",
        "slug": "sample-blog-post",
        "description": "",
        "content": "This is a sample blog post content.",
        "featured": False,
        "sticky": False,
        "published": True,
        "thumbnail": None,
        "metaImage": None,
        "created_by": None,
        "categories": [],
        "tags": [],
        "createdAt": now,
        "updatedAt": now,
    }
    body = page_envelope([sample], 1, request)
    body["message"] = PLACEHOLDER_MESSAGE
    return body


class BlogService:
    """Blog CRUD on top of one request's session and media service."""

    def __init__(self, media: MediaService, base_url: Optional[str] = None):
        self.media = media
        self.base_url = base_url or settings.public_base_url

    # ── Reads ─────────────────────────────────────────────────────────────
    async def list_blogs(self, db: AsyncSession, request: PageRequest) -> Dict[str, Any]:
        """
        Newest-first page of all blogs.

        Connectivity failures and timeouts return the placeholder page; any
        other database failure is a DatabaseError.
        """
        try:
            blogs, total = await asyncio.wait_for(
                self._fetch_page(db, request, published_only=False),
                timeout=settings.blog_list_timeout_seconds,
            )
        except (asyncio.TimeoutError, OperationalError, InterfaceError) as e:
            logger.warning("Blog list unavailable (%s); serving placeholder", type(e).__name__)
            await _discard_transaction(db)
            return placeholder_page(request)
        except SQLAlchemyError as e:
            logger.error("Database error listing blogs: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve blogs. Please try again.",
                context={"error_type": type(e).__name__},
            )
        return page_envelope(await self._present_many(blogs), total, request)

    async def list_published(self, db: AsyncSession, request: PageRequest) -> Dict[str, Any]:
        try:
            blogs, total = await self._fetch_page(db, request, published_only=True)
        except SQLAlchemyError as e:
            logger.error("Database error listing published blogs: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve blogs. Please try again.",
                context={"error_type": type(e).__name__},
            )
        return page_envelope(await self._present_many(blogs), total, request)

    async def get_blog(self, db: AsyncSession, id_or_slug: str) -> Dict[str, Any]:
        """Look a blog up by UUID, falling back to its slug."""
        query = select(Blog).options(*_POPULATE)
        try:
            blog_id = uuid.UUID(id_or_slug)
        except ValueError:
            query = query.where(Blog.slug == id_or_slug)
        else:
            query = query.where(Blog.id == blog_id)

        blog = (await db.execute(query)).scalar_one_or_none()
        if blog is None:
            raise NotFoundError(resource="blog", resource_id=id_or_slug)

        document = blog.to_document()
        await self.media.materialize_document(document, BLOG_SHAPE)
        return sanitize_document(document, BLOG_SHAPE)

    # ── Writes ────────────────────────────────────────────────────────────
    async def create_blog(
        self,
        db: AsyncSession,
        data: Dict[str, Any],
        author: Optional[User] = None,
    ) -> Dict[str, Any]:
        prepared = apply_image_fields(data, BLOG_SHAPE, self.base_url)
        if prepared.get("slug"):
            await self._ensure_slug_free(db, prepared["slug"])

        blog = Blog()
        self._assign_columns(blog, prepared)
        blog.author = await self._resolve_author(db, prepared.get("created_by"), author)
        blog.categories = await _load_by_ids(db, Category, prepared.get("categories"))
        blog.tags = await _load_by_ids(db, Tag, prepared.get("tags"))

        db.add(blog)
        await flush_or_conflict(db, "slug")
        logger.info("Blog created: %s", blog.id)
        return await self._reload(db, blog.id)

    async def update_blog(
        self, db: AsyncSession, blog_id: uuid.UUID, data: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Partial update: only keys present in `data` are touched."""
        blog = await self._get_row(db, blog_id)
        prepared = apply_image_fields(
            data, BLOG_SHAPE, self.base_url, current=blog.to_document()
        )

        if prepared.get("slug") and prepared["slug"] != blog.slug:
            await self._ensure_slug_free(db, prepared["slug"])

        self._assign_columns(blog, prepared)
        if "created_by" in prepared:
            blog.author = await self._resolve_author(db, prepared["created_by"], None)
        if "categories" in prepared:
            blog.categories = await _load_by_ids(db, Category, prepared["categories"])
        if "tags" in prepared:
            blog.tags = await _load_by_ids(db, Tag, prepared["tags"])

        await flush_or_conflict(db, "slug")
        logger.info("Blog updated: %s", blog.id)
        return await self._reload(db, blog.id)

    async def delete_blog(self, db: AsyncSession, blog_id: uuid.UUID) -> None:
        blog = await self._get_row(db, blog_id)
        await db.delete(blog)
        await db.flush()
        logger.info("Blog deleted: %s", blog_id)

    # ── Helpers ───────────────────────────────────────────────────────────
    async def _fetch_page(
        self, db: AsyncSession, request: PageRequest, published_only: bool
    ):
        query = select(Blog).options(*_POPULATE)
        count_query = select(func.count(Blog.id))
        if published_only:
            query = query.where(Blog.published.is_(True))
            count_query = count_query.where(Blog.published.is_(True))

        total = (await db.execute(count_query)).scalar_one()
        result = await db.execute(
            query.order_by(Blog.created_at.desc()).offset(request.offset).limit(request.limit)
        )
        return list(result.scalars().all()), total

    async def _present_many(self, blogs: Sequence[Blog]) -> List[Dict[str, Any]]:
        documents = [blog.to_document() for blog in blogs]
        await self.media.materialize_documents(documents, BLOG_SHAPE)
        return [sanitize_document(document, BLOG_SHAPE) for document in documents]

    async def _get_row(
        self, db: AsyncSession, blog_id: uuid.UUID, refresh: bool = False
    ) -> Blog:
        query = select(Blog).options(*_POPULATE).where(Blog.id == blog_id)
        if refresh:
            query = query.execution_options(populate_existing=True)
        blog = (await db.execute(query)).scalar_one_or_none()
        if blog is None:
            raise NotFoundError(resource="blog", resource_id=str(blog_id))
        return blog

    async def _reload(self, db: AsyncSession, blog_id: uuid.UUID) -> Dict[str, Any]:
        # Re-read so server-side timestamps and relationship order are current
        blog = await self._get_row(db, blog_id, refresh=True)
        return sanitize_document(blog.to_document(), BLOG_SHAPE)

    async def _ensure_slug_free(self, db: AsyncSession, slug: str) -> None:
        existing = await db.execute(select(Blog.id).where(Blog.slug == slug))
        if existing.first() is not None:
            raise ConflictError(message=f"A blog with slug '{slug}' already exists", field="slug")

    async def _resolve_author(
        self, db: AsyncSession, created_by: Any, fallback: Optional[User]
    ) -> Optional[User]:
        ids = parse_ids([created_by]) if created_by else []
        if ids:
            user = await db.get(User, ids[0])
            if user is not None:
                return user
        return fallback

    @staticmethod
    def _assign_columns(blog: Blog, data: Dict[str, Any]) -> None:
        for key, column in _COLUMNS.items():
            if key in data:
                setattr(blog, column, data[key])


async def _load_by_ids(db: AsyncSession, model, values: Optional[Sequence[Any]]) -> List[Any]:
    ids = parse_ids(values)
    if not ids:
        return []
    result = await db.execute(select(model).where(model.id.in_(ids)))
    return list(result.scalars().all())


async def _discard_transaction(db: AsyncSession) -> None:
    try:
        await db.rollback()
    except SQLAlchemyError as e:
        logger.warning("Rollback after failed blog listing also failed: %s", str(e))
