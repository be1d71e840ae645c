"""
Newsdesk Backend — Upload Tests
=================================

Test Strategy:
    ✅ Multipart upload of a real PNG is stored under `<ms>-<name>`
    ✅ Wrong extension, non-image bytes and empty files are rejected (400)
    ✅ Client filenames are reduced to a safe path segment
    ✅ Embedded thumbnail / metaImage payloads are written immediately
"""

import re

import pytest

from newsdesk.exceptions import ValidationError
from newsdesk.services.upload_service import UploadService, sanitize_upload_name


class TestMultipartUpload:
    async def test_png_is_stored(self, client, memory_store, png_bytes):
        response = await client.post(
            "/api/upload", files={"image": ("photo.png", png_bytes, "image/png")}
        )

        assert response.status_code == 200
        body = response.json()
        assert re.match(r"^\d+-photo\.png$", body["filename"])
        assert body["original_url"] == f"http://testserver/uploads/{body['filename']}"
        assert memory_store.files[body["filename"]] == png_bytes

    async def test_uploaded_file_is_served(self, client, png_bytes):
        body = (
            await client.post("/api/upload", files={"image": ("photo.png", png_bytes, "image/png")})
        ).json()

        response = await client.get(f"/uploads/{body['filename']}")

        assert response.status_code == 200
        assert response.content == png_bytes

    async def test_wrong_extension_rejected(self, client, png_bytes):
        response = await client.post(
            "/api/upload", files={"image": ("notes.txt", png_bytes, "text/plain")}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    async def test_non_image_bytes_rejected(self, client, memory_store):
        response = await client.post(
            "/api/upload", files={"image": ("fake.png", b"definitely not a png", "image/png")}
        )

        assert response.status_code == 400
        assert memory_store.files == {}

    async def test_empty_file_rejected(self, client):
        response = await client.post("/api/upload", files={"image": ("empty.png", b"", "image/png")})

        assert response.status_code == 400
        assert response.json()["message"] == "No file uploaded"

    async def test_missing_field_is_422(self, client):
        assert (await client.post("/api/upload")).status_code == 422


class TestEmbeddedUpload:
    async def test_writes_valid_payloads(self, client, memory_store, png_bytes, png_payload):
        response = await client.post(
            "/api/upload/base64",
            json={
                "thumbnail": {"original_url": png_payload},
                "metaImage": {"original_url": "data:image/png;base64,@@@"},
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert re.match(r"^\d+-thumbnail\.png$", body["thumbnail"]["filename"])
        assert memory_store.files[body["thumbnail"]["filename"]] == png_bytes
        assert body["metaImage"] is None

    async def test_only_sent_keys_are_returned(self, client, png_payload):
        response = await client.post(
            "/api/upload/base64", json={"metaImage": {"original_url": png_payload}}
        )

        body = response.json()
        assert "thumbnail" not in body
        assert re.match(r"^\d+-meta-image\.png$", body["metaImage"]["filename"])

    async def test_plain_url_is_not_stored(self, client, memory_store):
        response = await client.post(
            "/api/upload/base64",
            json={"thumbnail": {"original_url": "https://cdn.example.com/a.png"}},
        )

        assert response.json() == {"thumbnail": None}
        assert memory_store.files == {}


class TestUploadService:
    @pytest.mark.parametrize(
        "raw, safe",
        [
            ("photo.png", "photo.png"),
            ("../../etc/passwd.png", "passwd.png"),
            ("C:\\Users\\me\\cat pic.jpg", "cat-pic.jpg"),
            (".hidden.png", "hidden.png"),
            (None, "upload.jpg"),
        ],
    )
    def test_sanitize_upload_name(self, raw, safe):
        assert sanitize_upload_name(raw) == safe

    def test_size_limit(self, memory_store):
        service = UploadService(memory_store, base_url="http://testserver")

        with pytest.raises(ValidationError, match="exceeds maximum"):
            service.validate_size(content_length=None, actual_size=100 * 1024 * 1024)

    def test_gif_extension_allowed(self, memory_store):
        service = UploadService(memory_store, base_url="http://testserver")

        assert service.validate_extension("anim.GIF") == ".gif"
