"""
Newsdesk Backend — Image Fields on Entity Documents
=====================================================

What:  The one place that knows where images live inside blog, category and
       subcategory documents, how an incoming embedded payload becomes an
       ImageRef, and how ImageRefs are stripped for API responses.
Why:   Blogs, categories and nested subcategories all carry images with the
       same three-field record. Declaring each document's shape once lets
       every create/update/read path share the same code.

ImageRef (stored as a JSON object):
    {
        "original_url": "<base_url>/uploads/<filename>",   # derived
        "filename": "1718000000000-icon.png",              # content store key
        "base64Data": "data:image/png;base64,iVBORw0..."   # source of truth
    }

Shapes:
    BLOG_SHAPE         thumbnail, metaImage; populated categories nested
    CATEGORY_SHAPE     icon, image; subcategories nested
    SUBCATEGORY_SHAPE  icon, image
"""

import copy
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, Optional, Tuple

from newsdesk.services.image_codec import decode_image_payload, is_embedded_payload

logger = logging.getLogger(__name__)

ImageRef = Dict[str, Any]
Document = Dict[str, Any]

BASE64_KEY = "base64Data"


@dataclass(frozen=True)
class ImageSlot:
    """A document key holding an ImageRef, and the role used in its filenames."""

    key: str
    role: str


@dataclass(frozen=True)
class DocumentShape:
    """Image slots of a document plus keys holding lists of nested documents."""

    slots: Tuple[ImageSlot, ...]
    children: Tuple[Tuple[str, "DocumentShape"], ...] = ()


SUBCATEGORY_SHAPE = DocumentShape(
    slots=(
        ImageSlot("icon", "subcategory-icon"),
        ImageSlot("image", "subcategory-image"),
    ),
)
CATEGORY_SHAPE = DocumentShape(
    slots=(
        ImageSlot("icon", "icon"),
        ImageSlot("image", "image"),
    ),
    children=(("subcategories", SUBCATEGORY_SHAPE),),
)
BLOG_SHAPE = DocumentShape(
    slots=(
        ImageSlot("thumbnail", "thumbnail"),
        ImageSlot("metaImage", "meta-image"),
    ),
    children=(("categories", CATEGORY_SHAPE),),
)


class MonotonicMillis:
    """
    Millisecond timestamps that never repeat within the process.

    Filenames are `<timestamp>-<role>.<ext>`; two images with the same role
    created in the same millisecond would otherwise collide.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            now = int(self._clock() * 1000)
            self._last = max(now, self._last + 1)
            return self._last


default_clock = MonotonicMillis()


def image_url(base_url: str, filename: str) -> str:
    """Externally reachable link for a content store file."""
    return f"{base_url.rstrip('/')}/uploads/{filename}"


def prepare_image_ref(
    value: Optional[ImageRef],
    role: str,
    base_url: str,
    clock: Callable[[], int] = default_clock,
) -> Optional[ImageRef]:
    """
    Turn an incoming image field into what gets stored.

    - None stays None.
    - original_url holding an embedded payload → fresh ImageRef with a new
      filename, a public URL and the payload kept verbatim as base64Data.
    - A malformed embedded payload drops the field (returns None).
    - Anything else (plain external URL, previously stored ImageRef) is
      passed through unchanged.
    """
    if value is None:
        return None

    payload = value.get("original_url")
    if not is_embedded_payload(payload):
        return dict(value)

    decoded = decode_image_payload(payload)
    if decoded is None:
        logger.warning("Dropping malformed embedded image for role '%s'", role)
        return None

    filename = f"{clock()}-{role}.{decoded.extension}"
    return {
        "original_url": image_url(base_url, filename),
        "filename": filename,
        BASE64_KEY: payload,
    }


def apply_image_fields(
    data: Document,
    shape: DocumentShape,
    base_url: str,
    clock: Callable[[], int] = default_clock,
    current: Optional[Document] = None,
) -> Document:
    """
    Run prepare_image_ref over every image slot present in an incoming body.

    Slots absent from `data` are left absent so partial updates do not touch
    images they did not mention. Each slot is handled independently.

    `current` is the stored document on updates. Clients only ever see
    sanitized refs, so a ref sent back unchanged (same filename, no new
    payload) keeps the stored ref and its base64Data.
    """
    prepared = dict(data)
    for slot in shape.slots:
        if slot.key not in prepared:
            continue
        ref = prepare_image_ref(prepared[slot.key], slot.role, base_url, clock)
        stored = (current or {}).get(slot.key)
        if (
            ref is not None
            and BASE64_KEY not in ref
            and isinstance(stored, dict)
            and ref.get("filename")
            and ref.get("filename") == stored.get("filename")
        ):
            ref = copy.deepcopy(stored)
        prepared[slot.key] = ref
    return prepared


def iter_image_refs(document: Document, shape: DocumentShape) -> Iterator[ImageRef]:
    """Yield every ImageRef in a document, nested documents included."""
    for slot in shape.slots:
        ref = document.get(slot.key)
        if isinstance(ref, dict):
            yield ref
    for key, child_shape in shape.children:
        for child in document.get(key) or ():
            if isinstance(child, dict):
                yield from iter_image_refs(child, child_shape)


def sanitize_document(document: Document, shape: DocumentShape) -> Document:
    """
    Copy of a document with base64Data removed from every ImageRef.

    The input is never modified, so the stored document keeps its payloads.
    """
    sanitized = copy.deepcopy(document)
    for ref in iter_image_refs(sanitized, shape):
        ref.pop(BASE64_KEY, None)
    return sanitized
