"""
Newsdesk Backend — Category SQLAlchemy Model
==============================================

What:  ORM model for the `categories` table.
How:   A category row is a document: scalar columns for the category itself,
       JSON columns for its two images and for the ordered list of embedded
       subcategories.

Subcategory entry (one element of the `subcategories` JSON list):
    {
        "id": "<uuid hex>",
        "name": "...", "slug": "...", "description": "...", "status": 1,
        "icon": ImageRef | null,
        "image": ImageRef | null
    }

Subcategories have no table of their own. They are created, updated and
removed by replacing the whole list on the parent, which is also the only
way SQLAlchemy notices a change to a JSON column.
"""

import copy
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, DateTime, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from newsdesk.database import Base
from newsdesk.models.user import utcnow


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    slug: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # 1 = active, 0 = hidden
    status: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    icon: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    image: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    subcategories: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    def to_document(self) -> Dict[str, Any]:
        """Full document, embedded payloads included (sanitize before returning it)."""
        return {
            "id": str(self.id),
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "status": self.status,
            "icon": copy.deepcopy(self.icon),
            "image": copy.deepcopy(self.image),
            "subcategories": copy.deepcopy(self.subcategories or []),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name='{self.name}')>"
