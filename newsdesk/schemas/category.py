"""
Newsdesk Backend — Category Schemas
=====================================

A body with `parent` set addresses a subcategory of that parent (create or
update), otherwise a top-level category.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from newsdesk.schemas.common import ImageRefIn, ImageRefOut


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class CategoryBase(BaseModel):
    slug: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    status: Optional[int] = Field(default=None, ge=0, le=1, description="1 active, 0 hidden")
    icon: Optional[ImageRefIn] = None
    image: Optional[ImageRefIn] = None
    parent: Optional[str] = Field(
        default=None, description="Parent category id; addresses a subcategory when set"
    )

    model_config = ConfigDict(populate_by_name=True)


class CategoryCreate(CategoryBase):
    name: str = Field(min_length=1, max_length=255)


def _reject_null_name(v: Optional[str]) -> str:
    if v is None:
        raise ValueError("name must not be null")
    return v


class CategoryUpdate(CategoryBase):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> str:
        return _reject_null_name(v)


class SubcategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    slug: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    status: Optional[int] = Field(default=None, ge=0, le=1)
    icon: Optional[ImageRefIn] = None
    image: Optional[ImageRefIn] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> str:
        return _reject_null_name(v)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class SubcategoryResponse(BaseModel):
    id: str
    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    status: Optional[int] = 1
    icon: Optional[ImageRefOut] = None
    image: Optional[ImageRefOut] = None


class CategoryResponse(BaseModel):
    id: str
    name: str
    slug: Optional[str] = None
    description: Optional[str] = None
    status: int = 1
    icon: Optional[ImageRefOut] = None
    image: Optional[ImageRefOut] = None
    subcategories: List[SubcategoryResponse] = Field(default_factory=list)
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True)
