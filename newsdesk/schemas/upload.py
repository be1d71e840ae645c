"""Upload schemas."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from newsdesk.schemas.common import ImageRefIn


class StoredImage(BaseModel):
    original_url: str
    filename: str


class EmbeddedUploadRequest(BaseModel):
    thumbnail: Optional[ImageRefIn] = None
    meta_image: Optional[ImageRefIn] = Field(default=None, alias="metaImage")

    model_config = ConfigDict(populate_by_name=True)


class EmbeddedUploadResponse(BaseModel):
    """Only the keys sent in the request appear; null marks an invalid payload."""

    thumbnail: Optional[StoredImage] = None
    meta_image: Optional[StoredImage] = Field(default=None, alias="metaImage")

    model_config = ConfigDict(populate_by_name=True)
