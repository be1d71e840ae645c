"""
Newsdesk Backend — Blog SQLAlchemy Model
==========================================

What:  ORM model for the `blogs` table plus its many-to-many links to
       categories and tags.
How:   Scalar columns for the post, JSON columns for `thumbnail` and
       `metaImage`, a nullable author reference.

Query Patterns:
    - List newest first:   ORDER BY created_at DESC (idx_blogs_created_at)
    - Lookup by slug:      WHERE slug = :slug (unique index)
    - Published listing:   WHERE published = true ORDER BY created_at DESC
"""

import copy
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Table,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from newsdesk.database import Base
from newsdesk.models.category import Category
from newsdesk.models.tag import Tag
from newsdesk.models.user import User, utcnow

blog_categories = Table(
    "blog_categories",
    Base.metadata,
    Column("blog_id", Uuid, ForeignKey("blogs.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", Uuid, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
)

blog_tags = Table(
    "blog_tags",
    Base.metadata,
    Column("blog_id", Uuid, ForeignKey("blogs.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Uuid, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class Blog(Base):
    __tablename__ = "blogs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    slug: Mapped[Optional[str]] = mapped_column(String(500), nullable=True, unique=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    meta_title: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    meta_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    meta_image: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    thumbnail: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)

    featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    sticky: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    author: Mapped[Optional[User]] = relationship(User, lazy="raise")
    categories: Mapped[List[Category]] = relationship(
        Category, secondary=blog_categories, lazy="raise", order_by=Category.name
    )
    tags: Mapped[List[Tag]] = relationship(
        Tag, secondary=blog_tags, lazy="raise", order_by=Tag.name
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        Index("idx_blogs_created_at", created_at.desc()),
    )

    def to_document(self) -> Dict[str, Any]:
        """
        Full document with author, categories and tags populated.

        The relationships must have been eager-loaded (lazy="raise" turns a
        forgotten selectinload into an immediate error instead of implicit
        I/O inside an async session).
        """
        return {
            "id": str(self.id),
            "title": self.title,
            "slug": self.slug,
            "description": self.description,
            "content": self.content,
            "metaTitle": self.meta_title,
            "metaDescription": self.meta_description,
            "metaImage": copy.deepcopy(self.meta_image),
            "thumbnail": copy.deepcopy(self.thumbnail),
            "featured": self.featured,
            "sticky": self.sticky,
            "published": self.published,
            "created_by": self.author.to_summary() if self.author else None,
            "categories": [category.to_document() for category in self.categories],
            "tags": [tag.to_document() for tag in self.tags],
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    def __repr__(self) -> str:
        return f"<Blog(id={self.id}, title='{self.title}')>"
