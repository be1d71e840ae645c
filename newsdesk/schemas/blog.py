"""
Newsdesk Backend — Blog Schemas
=================================

API names are camelCase (metaTitle, metaImage, createdAt); Python attributes
are snake_case with aliases. Request bodies are dumped by alias before they
reach BlogService, so the service and documents only ever see API names.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from newsdesk.schemas.category import CategoryResponse
from newsdesk.schemas.common import ImageRefIn, ImageRefOut
from newsdesk.schemas.tag import TagResponse


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class BlogBase(BaseModel):
    slug: Optional[str] = Field(default=None, max_length=500)
    meta_title: Optional[str] = Field(default=None, alias="metaTitle", max_length=500)
    meta_description: Optional[str] = Field(default=None, alias="metaDescription")
    meta_image: Optional[ImageRefIn] = Field(default=None, alias="metaImage")
    thumbnail: Optional[ImageRefIn] = None
    featured: Optional[bool] = None
    sticky: Optional[bool] = None
    published: Optional[bool] = None
    created_by: Optional[str] = Field(default=None, description="Author user id")
    categories: Optional[List[str]] = Field(
        default=None, description="Category ids; unknown or malformed ids are ignored"
    )
    tags: Optional[List[str]] = Field(
        default=None, description="Tag ids; unknown or malformed ids are ignored"
    )

    model_config = ConfigDict(populate_by_name=True)


class BlogCreate(BlogBase):
    title: str = Field(min_length=1, max_length=500)
    description: str = Field(min_length=1)
    content: str = Field(min_length=1)


class BlogUpdate(BlogBase):
    """Partial update: only fields present in the body are changed."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=500)
    description: Optional[str] = None
    content: Optional[str] = None

    @field_validator("title", "description", "content")
    @classmethod
    def reject_explicit_null(cls, v: Optional[str]) -> str:
        """Omit a field to leave it unchanged; null would blank a required column."""
        if v is None:
            raise ValueError("must not be null")
        return v



# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class AuthorSummary(BaseModel):
    id: str
    name: str
    email: str


class BlogResponse(BaseModel):
    id: str
    title: str
    slug: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None
    meta_title: Optional[str] = Field(default=None, alias="metaTitle")
    meta_description: Optional[str] = Field(default=None, alias="metaDescription")
    meta_image: Optional[ImageRefOut] = Field(default=None, alias="metaImage")
    thumbnail: Optional[ImageRefOut] = None
    featured: bool = False
    sticky: bool = False
    published: bool = True
    created_by: Optional[AuthorSummary] = None
    categories: List[CategoryResponse] = Field(default_factory=list)
    tags: List[TagResponse] = Field(default_factory=list)
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True)
