"""Tag CRUD. Tags carry no images, so documents are returned as stored."""

import logging
import uuid
from typing import Any, Dict

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.database import flush_or_conflict
from newsdesk.exceptions import ConflictError, NotFoundError
from newsdesk.models import Tag
from newsdesk.services.pagination import PageRequest, page_envelope

logger = logging.getLogger(__name__)


class TagService:
    async def list_tags(self, db: AsyncSession, request: PageRequest) -> Dict[str, Any]:
        total = (await db.execute(select(func.count(Tag.id)))).scalar_one()
        result = await db.execute(
            select(Tag).order_by(Tag.name).offset(request.offset).limit(request.limit)
        )
        return page_envelope([tag.to_document() for tag in result.scalars().all()], total, request)

    async def get_tag(self, db: AsyncSession, tag_id: uuid.UUID) -> Dict[str, Any]:
        return (await self._get_row(db, tag_id)).to_document()

    async def create_tag(self, db: AsyncSession, data: Dict[str, Any]) -> Dict[str, Any]:
        await self._ensure_name_free(db, data["name"])
        tag = Tag(name=data["name"], slug=data.get("slug"))
        db.add(tag)
        await flush_or_conflict(db, "name")
        logger.info("Tag created: %s (%s)", tag.id, tag.name)
        return tag.to_document()

    async def update_tag(
        self, db: AsyncSession, tag_id: uuid.UUID, data: Dict[str, Any]
    ) -> Dict[str, Any]:
        tag = await self._get_row(db, tag_id)
        if data.get("name") and data["name"] != tag.name:
            await self._ensure_name_free(db, data["name"])
            tag.name = data["name"]
        if "slug" in data:
            tag.slug = data["slug"]
        await flush_or_conflict(db, "name")
        return tag.to_document()

    async def delete_tag(self, db: AsyncSession, tag_id: uuid.UUID) -> None:
        tag = await self._get_row(db, tag_id)
        await db.delete(tag)
        await db.flush()
        logger.info("Tag deleted: %s", tag_id)

    async def _get_row(self, db: AsyncSession, tag_id: uuid.UUID) -> Tag:
        tag = await db.get(Tag, tag_id)
        if tag is None:
            raise NotFoundError(resource="tag", resource_id=str(tag_id))
        return tag

    async def _ensure_name_free(self, db: AsyncSession, name: str) -> None:
        existing = await db.execute(select(Tag.id).where(Tag.name == name))
        if existing.first() is not None:
            raise ConflictError(message=f"A tag named '{name}' already exists", field="name")


tag_service = TagService()
