"""
Newsdesk Backend — Embedded Image Codec
=========================================

What:  Parses and produces self-describing embedded image payloads
       (`data:image/<subtype>;base64,<data>`).
Why:   Blog and category documents keep their images as these strings; every
       other piece of the media pipeline needs the media subtype and the raw
       bytes behind them.
How:   A single anchored regular expression plus strict base64 decoding.

Contract:
    decode_image_payload() never raises. Anything that does not look like an
    embedded image (an external URL, a truncated payload, bad base64) yields
    None, and callers treat that as "not an embedded image".
"""

import base64
import binascii
import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Optional

EMBEDDED_IMAGE_PREFIX = "data:image/"

_PAYLOAD_PATTERN = re.compile(
    r"^data:image/(?P<subtype>[A-Za-z0-9+/-]+);base64,(?P<data>.+)$"
)

# Extension → subtype for files whose payload has to be rebuilt from disk
_SUBTYPES_BY_EXTENSION = {
    ".jpg": "jpeg",
    ".jpeg": "jpeg",
    ".png": "png",
    ".gif": "gif",
    ".webp": "webp",
}
DEFAULT_SUBTYPE = "jpeg"


@dataclass(frozen=True)
class DecodedImage:
    """Media subtype (e.g. 'png') and the decoded bytes of an embedded payload."""

    subtype: str
    data: bytes

    @property
    def extension(self) -> str:
        return extension_for_subtype(self.subtype)

    @property
    def media_type(self) -> str:
        return f"image/{self.subtype}"


def is_embedded_payload(value: Optional[str]) -> bool:
    """Cheap prefix check used to tell embedded payloads from plain URLs."""
    return isinstance(value, str) and value.startswith(EMBEDDED_IMAGE_PREFIX)


def decode_image_payload(payload: Optional[str]) -> Optional[DecodedImage]:
    """
    Decode an embedded image payload.

    Returns:
        DecodedImage, or None when the payload is not a well-formed
        `data:image/<subtype>;base64,<data>` string.
    """
    if not is_embedded_payload(payload):
        return None

    match = _PAYLOAD_PATTERN.match(payload)
    if match is None:
        return None

    try:
        data = base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError):
        return None

    return DecodedImage(subtype=match.group("subtype"), data=data)


def encode_image_payload(subtype: str, data: bytes) -> str:
    """Build the canonical embedded form stored as ImageRef.base64Data."""
    encoded = base64.b64encode(data).decode("ascii")
    return f"{EMBEDDED_IMAGE_PREFIX}{subtype};base64,{encoded}"


def extension_for_subtype(subtype: str) -> str:
    """jpeg → jpg; every other subtype is used as its own extension."""
    return "jpg" if subtype == "jpeg" else subtype


def subtype_for_filename(filename: str) -> str:
    """Guess the media subtype from a filename, defaulting to jpeg."""
    return _SUBTYPES_BY_EXTENSION.get(PurePosixPath(filename).suffix.lower(), DEFAULT_SUBTYPE)


def media_type_for_filename(filename: str) -> str:
    """
    Content type for serving a stored file.

    Filenames generated from payloads carry the subtype as their extension
    (jpeg excepted), so the extension maps straight back to image/<ext>.
    """
    suffix = PurePosixPath(filename).suffix.lower().lstrip(".")
    if not suffix:
        return "application/octet-stream"
    if suffix in {"jpg", "jpeg"}:
        return "image/jpeg"
    return f"image/{suffix}"
