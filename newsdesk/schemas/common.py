"""
Newsdesk Backend — Shared Pydantic Schemas
============================================

What:  Models used across resources: image references, list envelopes,
       error and health bodies.
Why:   Every entity returns images and lists in the same shape; defining them
       once keeps the OpenAPI contract consistent.

ImageRef on the wire:
    Request:   {"original_url": "data:image/png;base64,..."}   new image
               {"original_url": "https://cdn.example/x.png"}  external link
               {"original_url": "...", "filename": "..."}      keep current
    Response:  {"original_url": "<base_url>/uploads/<filename>", "filename": "..."}
               base64Data is never part of a response.
"""

from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


# ══════════════════════════════════════════════════════════════════════════
# Images
# ══════════════════════════════════════════════════════════════════════════


class ImageRefIn(BaseModel):
    """Image field as sent by clients (new payload, URL, or echoed ref)."""

    original_url: Optional[str] = Field(
        default=None,
        description="Embedded data:image/...;base64 payload or an external URL",
    )
    filename: Optional[str] = Field(default=None, description="Stored filename, if echoed back")


class ImageRefOut(BaseModel):
    """Image field as returned to clients."""

    original_url: Optional[str] = Field(default=None, description="Public URL of the image")
    filename: Optional[str] = Field(default=None, description="Content store key")


# ══════════════════════════════════════════════════════════════════════════
# Envelopes
# ══════════════════════════════════════════════════════════════════════════


class Page(BaseModel, Generic[T]):
    """
    Paginated list response.

    `message` is only set when the blog list falls back to placeholder data.
    """

    data: List[T] = Field(description="Items on this page")
    total: int = Field(description="Total number of items across all pages")
    page: int = Field(description="1-based page number")
    limit: int = Field(description="Page size")
    pages: int = Field(description="Number of pages")
    message: Optional[str] = Field(default=None, description="Set when data is a placeholder")

    model_config = ConfigDict(populate_by_name=True)


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """
    Standardized error body for all API errors.

    Example:
        {
            "error": "not_found",
            "message": "image '1718000000000-icon.png' was not found",
            "details": {"resource": "image", "resource_id": "1718000000000-icon.png"},
            "request_id": "550e8400-e29b-41d4-a716-446655440000"
        }
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy or unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    content_store: str = Field(description="Content store backend in use")
    uptime_seconds: float = Field(description="Seconds since service started")


def dump_body(model: BaseModel) -> dict:
    """Request body as a dict keyed by API names, without unset fields."""
    return model.model_dump(by_alias=True, exclude_unset=True)


__all__ = [
    "ImageRefIn",
    "ImageRefOut",
    "Page",
    "MessageResponse",
    "ErrorResponse",
    "HealthResponse",
    "dump_body",
]
