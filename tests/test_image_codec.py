"""
Newsdesk Backend — Image Codec Unit Tests
===========================================

Test Strategy:
    ✅ Well-formed payloads decode to subtype + bytes
    ✅ Plain URLs, truncated and corrupt payloads decode to None (never raise)
    ✅ Extension / subtype / content type mapping
"""

import base64

import pytest

from newsdesk.services.image_codec import (
    decode_image_payload,
    encode_image_payload,
    extension_for_subtype,
    is_embedded_payload,
    media_type_for_filename,
    subtype_for_filename,
)


class TestDecodeImagePayload:
    def test_decodes_png_payload(self, png_bytes, png_payload):
        decoded = decode_image_payload(png_payload)

        assert decoded is not None
        assert decoded.subtype == "png"
        assert decoded.data == png_bytes
        assert decoded.extension == "png"
        assert decoded.media_type == "image/png"

    def test_jpeg_payload_uses_jpg_extension(self):
        payload = "data:image/jpeg;base64," + base64.b64encode(b"\xff\xd8\xff\xd9").decode()
        decoded = decode_image_payload(payload)

        assert decoded.subtype == "jpeg"
        assert decoded.extension == "jpg"

    def test_subtype_with_plus_sign(self):
        payload = "data:image/svg+xml;base64," + base64.b64encode(b"<svg/>").decode()
        decoded = decode_image_payload(payload)

        assert decoded.subtype == "svg+xml"
        assert decoded.data == b"<svg/>"

    @pytest.mark.parametrize(
        "value",
        [
            None,
            "",
            "https://cdn.example.com/a.png",
            "data:image/png;base64,",
            "data:image/png,iVBORw0KGgo=",
            "data:text/plain;base64,aGVsbG8=",
            "data:image/png;base64,not base64!!",
            "data:image/png;base64,abc",
        ],
    )
    def test_invalid_payloads_return_none(self, value):
        assert decode_image_payload(value) is None

    def test_encode_then_decode_preserves_bytes(self, png_bytes):
        payload = encode_image_payload("png", png_bytes)

        assert payload.startswith("data:image/png;base64,")
        assert decode_image_payload(payload).data == png_bytes


class TestPayloadDetection:
    def test_prefix_check(self, png_payload):
        assert is_embedded_payload(png_payload)
        assert not is_embedded_payload("http://example.com/x.png")
        assert not is_embedded_payload(None)


class TestNameMapping:
    @pytest.mark.parametrize(
        "subtype, extension",
        [("jpeg", "jpg"), ("png", "png"), ("gif", "gif"), ("webp", "webp")],
    )
    def test_extension_for_subtype(self, subtype, extension):
        assert extension_for_subtype(subtype) == extension

    @pytest.mark.parametrize(
        "filename, subtype",
        [
            ("1-thumbnail.jpg", "jpeg"),
            ("1-thumbnail.JPEG", "jpeg"),
            ("1-icon.png", "png"),
            ("1-image.gif", "gif"),
            ("1-image.webp", "webp"),
            ("1-image.bmp", "jpeg"),
            ("noextension", "jpeg"),
        ],
    )
    def test_subtype_for_filename(self, filename, subtype):
        assert subtype_for_filename(filename) == subtype

    def test_media_type_for_filename(self):
        assert media_type_for_filename("1-icon.png") == "image/png"
        assert media_type_for_filename("1-thumbnail.jpg") == "image/jpeg"
        assert media_type_for_filename("blob") == "application/octet-stream"
