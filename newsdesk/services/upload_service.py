"""
Newsdesk Backend — Upload Service
===================================

What:  Direct image uploads that go straight to the content store without
       an owning entity.
Why:   Editors upload images before the blog or category that will use them
       exists. These files have no embedded copy in the database, so unlike
       entity images they are not rebuilt if the store is wiped.
How:   Multipart files are checked (extension, size, actual content) and
       written under `<timestamp>-<sanitised original name>`. Embedded
       payloads are decoded and written under `<timestamp>-<role>.<ext>`.
Who:   POST /api/upload and POST /api/upload/base64.

Validation order (cheapest first):
    1. Extension check  no content needed
    2. Size check       Content-Length header, then actual byte count
    3. Content check    Pillow must identify the bytes as an allowed format
"""

import io
import logging
import re
from pathlib import PurePosixPath
from typing import Any, Callable, Dict, Optional

from PIL import Image, UnidentifiedImageError

from newsdesk.config import settings
from newsdesk.exceptions import ValidationError
from newsdesk.services.content_store import ContentStore
from newsdesk.services.image_codec import decode_image_payload, is_embedded_payload
from newsdesk.services.image_fields import BLOG_SHAPE, default_clock, image_url, prepare_image_ref

logger = logging.getLogger(__name__)

# ── Allowed File Types ────────────────────────────────────────────────────
ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp"}
ALLOWED_FORMATS = {"PNG", "JPEG", "GIF", "WEBP"}

_UNSAFE_CHARACTERS = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_upload_name(filename: Optional[str]) -> str:
    """
    Reduce a client-supplied filename to a safe single path segment.

    Directory parts are discarded and anything outside [A-Za-z0-9._-] is
    replaced with '-'.
    """
    name = PurePosixPath((filename or "").replace("\\", "/")).name
    name = _UNSAFE_CHARACTERS.sub("-", name).lstrip(".-")
    return name or "upload.jpg"


class UploadService:
    def __init__(
        self,
        store: ContentStore,
        base_url: Optional[str] = None,
        clock: Callable[[], int] = default_clock,
    ):
        self.store = store
        self.base_url = base_url or settings.public_base_url
        self.clock = clock

    # ── Validation ────────────────────────────────────────────────────────
    def validate_extension(self, filename: str) -> str:
        ext = PurePosixPath(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext or 'none'}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="image",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        max_mb = settings.max_file_size / (1024 * 1024)
        if (content_length and content_length > settings.max_file_size) or (
            actual_size > settings.max_file_size
        ):
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB. Please upload a smaller image.",
                field="image",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )
        if actual_size == 0:
            raise ValidationError(message="No file uploaded", field="image")

    def validate_image_content(self, content: bytes) -> str:
        """
        Check that the bytes really are an image of an allowed format.

        Returns:
            Pillow format name, e.g. 'PNG'.
        """
        try:
            with Image.open(io.BytesIO(content)) as image:
                image_format = image.format
                image.verify()
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
            raise ValidationError(
                message="The uploaded file is not a valid image.",
                field="image",
                context={"error": type(e).__name__},
            )

        if image_format not in ALLOWED_FORMATS:
            raise ValidationError(
                message=f"Image format '{image_format}' is not supported.",
                field="image",
                context={"detected_format": image_format, "allowed": sorted(ALLOWED_FORMATS)},
            )
        return image_format

    # ── Uploads ───────────────────────────────────────────────────────────
    async def save_upload(
        self,
        filename: Optional[str],
        content: bytes,
        content_length: Optional[int] = None,
    ) -> Dict[str, str]:
        """Validate and store a multipart upload. Returns {original_url, filename}."""
        safe_name = sanitize_upload_name(filename)
        self.validate_extension(safe_name)
        self.validate_size(content_length, len(content))
        self.validate_image_content(content)

        stored_name = f"{self.clock()}-{safe_name}"
        await self.store.write(stored_name, content)
        logger.info("Upload stored: %s (%d bytes)", stored_name, len(content))
        return {"original_url": image_url(self.base_url, stored_name), "filename": stored_name}

    async def save_embedded(self, data: Dict[str, Any]) -> Dict[str, Optional[Dict[str, str]]]:
        """
        Write the embedded `thumbnail` / `metaImage` payloads of a body.

        Only keys present in the body appear in the result. A key maps to
        None when its value is not a valid embedded image.
        """
        result: Dict[str, Optional[Dict[str, str]]] = {}
        for slot in BLOG_SHAPE.slots:
            value = data.get(slot.key)
            if not value or not value.get("original_url"):
                continue
            result[slot.key] = await self._write_payload(value, slot.role)
        return result

    async def _write_payload(self, value: Dict[str, Any], role: str) -> Optional[Dict[str, str]]:
        payload = value.get("original_url")
        if not is_embedded_payload(payload):
            return None
        ref = prepare_image_ref(value, role, self.base_url, self.clock)
        decoded = decode_image_payload(payload)
        if ref is None or decoded is None:
            return None
        await self.store.write(ref["filename"], decoded.data)
        return {"original_url": ref["original_url"], "filename": ref["filename"]}
