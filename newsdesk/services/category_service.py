"""
Newsdesk Backend — Category Service
=====================================

What:  Category CRUD plus management of the subcategories embedded in each
       category document.
How:   Subcategories live in the parent's `subcategories` JSON list. Every
       change builds a new list (copy, edit one entry, assign) so the row is
       replaced as a whole and the other entries are carried over untouched.
Who:   /api/categories routes.

Subcategory requests:
    POST /api/categories            body.parent set  → append to parent
    PUT  /api/categories/{sid}      body.parent set  → edit entry sid of parent
    PUT  /api/categories/{cid}/subcategory/{sid}     → edit entry sid of cid
    DELETE /api/categories/{cid}/subcategory/{sid}   → drop entry sid of cid

Subcategory images always use the subcategory-icon / subcategory-image roles,
whichever of the routes above carried them.
"""

import copy
import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.config import settings
from newsdesk.database import flush_or_conflict
from newsdesk.exceptions import ConflictError, NotFoundError
from newsdesk.models import Category
from newsdesk.services.image_fields import (
    CATEGORY_SHAPE,
    SUBCATEGORY_SHAPE,
    apply_image_fields,
    sanitize_document,
)
from newsdesk.services.media_service import MediaService
from newsdesk.services.pagination import PageRequest, page_envelope

logger = logging.getLogger(__name__)

# Keys a client may set on a category or on a subcategory entry
CATEGORY_FIELDS = ("name", "slug", "description", "status", "icon", "image")


def subcategory_key(subcategory_id: Any) -> str:
    """Subcategory ids are stored as UUID hex; accept any UUID spelling."""
    try:
        return uuid.UUID(str(subcategory_id)).hex
    except ValueError:
        return str(subcategory_id)


def parent_id_of(data: Dict[str, Any]) -> Optional[uuid.UUID]:
    """The parent category id of a request body, if it names a valid one."""
    parent = data.get("parent")
    if not parent:
        return None
    try:
        return uuid.UUID(str(parent))
    except ValueError:
        return None


class CategoryService:
    """Category and subcategory operations for one request."""

    def __init__(self, media: MediaService, base_url: Optional[str] = None):
        self.media = media
        self.base_url = base_url or settings.public_base_url

    # ── Categories ────────────────────────────────────────────────────────
    async def list_categories(self, db: AsyncSession, request: PageRequest) -> Dict[str, Any]:
        total = (await db.execute(select(func.count(Category.id)))).scalar_one()
        result = await db.execute(
            select(Category).order_by(Category.name).offset(request.offset).limit(request.limit)
        )
        documents = [category.to_document() for category in result.scalars().all()]
        await self.media.materialize_documents(documents, CATEGORY_SHAPE)
        data = [sanitize_document(document, CATEGORY_SHAPE) for document in documents]
        return page_envelope(data, total, request)

    async def get_category(self, db: AsyncSession, category_id: uuid.UUID) -> Dict[str, Any]:
        category = await self._get_row(db, category_id)
        document = category.to_document()
        await self.media.materialize_document(document, CATEGORY_SHAPE)
        return sanitize_document(document, CATEGORY_SHAPE)

    async def create_category(self, db: AsyncSession, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a top-level category, or a subcategory when `parent` is set.

        Returns:
            The new category, or the updated parent for a subcategory.
        """
        parent_id = parent_id_of(data)
        if parent_id is not None:
            return await self.add_subcategory(db, parent_id, data)

        prepared = apply_image_fields(data, CATEGORY_SHAPE, self.base_url)
        await self._ensure_name_free(db, prepared["name"])

        category = Category(subcategories=[])
        _assign(category, prepared)
        db.add(category)
        await flush_or_conflict(db, "name")
        logger.info("Category created: %s (%s)", category.id, category.name)
        return sanitize_document(category.to_document(), CATEGORY_SHAPE)

    async def update_category(
        self, db: AsyncSession, category_id: uuid.UUID, data: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Update a category. With `parent` set, `category_id` names a
        subcategory of that parent instead.
        """
        parent_id = parent_id_of(data)
        if parent_id is not None:
            return await self.update_subcategory(db, parent_id, category_id, data)

        category = await self._get_row(db, category_id)
        prepared = apply_image_fields(
            data, CATEGORY_SHAPE, self.base_url, current=category.to_document()
        )
        if prepared.get("name") and prepared["name"] != category.name:
            await self._ensure_name_free(db, prepared["name"])

        _assign(category, prepared)
        await flush_or_conflict(db, "name")
        logger.info("Category updated: %s", category.id)
        return sanitize_document(category.to_document(), CATEGORY_SHAPE)

    async def delete_category(self, db: AsyncSession, category_id: uuid.UUID) -> None:
        category = await self._get_row(db, category_id)
        await db.delete(category)
        await db.flush()
        logger.info("Category deleted: %s", category_id)

    # ── Subcategories ─────────────────────────────────────────────────────
    async def add_subcategory(
        self, db: AsyncSession, parent_id: uuid.UUID, data: Dict[str, Any]
    ) -> Dict[str, Any]:
        parent = await self._get_row(db, parent_id, resource="parent category")
        prepared = apply_image_fields(data, SUBCATEGORY_SHAPE, self.base_url)

        entry: Dict[str, Any] = {
            "id": uuid.uuid4().hex,
            "name": prepared.get("name"),
            "slug": prepared.get("slug"),
            "description": prepared.get("description"),
            "status": 1 if prepared.get("status") is None else prepared["status"],
            "icon": prepared.get("icon"),
            "image": prepared.get("image"),
        }
        parent.subcategories = copy.deepcopy(parent.subcategories or []) + [entry]
        await db.flush()
        logger.info("Subcategory %s added to %s", entry["id"], parent.id)
        return sanitize_document(parent.to_document(), CATEGORY_SHAPE)

    async def update_subcategory(
        self,
        db: AsyncSession,
        category_id: uuid.UUID,
        subcategory_id: Any,
        data: Dict[str, Any],
    ) -> Dict[str, Any]:
        """Merge the supplied fields into one entry; siblings are left as stored."""
        category = await self._get_row(db, category_id)
        subcategories = copy.deepcopy(category.subcategories or [])
        index = _index_of(subcategories, subcategory_id)

        prepared = apply_image_fields(
            data, SUBCATEGORY_SHAPE, self.base_url, current=subcategories[index]
        )
        for key in CATEGORY_FIELDS:
            if key in prepared:
                subcategories[index][key] = prepared[key]

        category.subcategories = subcategories
        await db.flush()
        logger.info("Subcategory %s of %s updated", subcategory_id, category.id)
        return sanitize_document(category.to_document(), CATEGORY_SHAPE)

    async def list_subcategories(
        self, db: AsyncSession, category_id: uuid.UUID, request: PageRequest
    ) -> Dict[str, Any]:
        category = await self._get_row(db, category_id)
        subcategories: List[Dict[str, Any]] = copy.deepcopy(category.subcategories or [])
        window = subcategories[request.offset:request.offset + request.limit]

        await self.media.materialize_documents(window, SUBCATEGORY_SHAPE)
        data = [sanitize_document(entry, SUBCATEGORY_SHAPE) for entry in window]
        return page_envelope(data, len(subcategories), request)

    async def delete_subcategory(
        self, db: AsyncSession, category_id: uuid.UUID, subcategory_id: Any
    ) -> None:
        category = await self._get_row(db, category_id)
        subcategories = copy.deepcopy(category.subcategories or [])
        del subcategories[_index_of(subcategories, subcategory_id)]

        category.subcategories = subcategories
        await db.flush()
        logger.info("Subcategory %s of %s deleted", subcategory_id, category.id)

    # ── Helpers ───────────────────────────────────────────────────────────
    async def _get_row(
        self, db: AsyncSession, category_id: uuid.UUID, resource: str = "category"
    ) -> Category:
        category = await db.get(Category, category_id)
        if category is None:
            raise NotFoundError(resource=resource, resource_id=str(category_id))
        return category

    async def _ensure_name_free(self, db: AsyncSession, name: str) -> None:
        existing = await db.execute(select(Category.id).where(Category.name == name))
        if existing.first() is not None:
            raise ConflictError(message=f"A category named '{name}' already exists", field="name")


def _assign(category: Category, data: Dict[str, Any]) -> None:
    for key in CATEGORY_FIELDS:
        if key in data:
            setattr(category, key, data[key])
    if category.status is None:
        category.status = 1


def _index_of(subcategories: List[Dict[str, Any]], subcategory_id: Any) -> int:
    key = subcategory_key(subcategory_id)
    for index, entry in enumerate(subcategories):
        if entry.get("id") == key:
            return index
    raise NotFoundError(resource="subcategory", resource_id=str(subcategory_id))
