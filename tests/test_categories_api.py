"""
Newsdesk Backend — Category API Tests
=======================================

Test Strategy:
    ✅ Embedded icon → ImageRef with `<ms>-icon.png` filename, sanitized response
    ✅ Image files wiped out-of-band are rebuilt on request
    ✅ Unknown image filenames are 404
    ✅ Subcategory create / update / delete leaves siblings untouched
    ✅ Duplicate names are 409, a null name is 422, pagination headers are set
"""

import re
import uuid

from sqlalchemy import select

from newsdesk.models import Category
from newsdesk.services.image_fields import BASE64_KEY

FILENAME_PATTERN = re.compile(r"^\d+-icon\.png$")


async def create_category(client, **body):
    response = await client.post("/api/categories", json=body)
    assert response.status_code == 201, response.text
    return response.json()


class TestCategoryImages:
    async def test_create_with_embedded_icon(self, client, png_payload):
        category = await create_category(client, name="News", icon={"original_url": png_payload})

        icon = category["icon"]
        assert FILENAME_PATTERN.match(icon["filename"])
        assert icon["original_url"] == f"http://testserver/uploads/{icon['filename']}"
        assert BASE64_KEY not in icon

    async def test_payload_is_stored_in_database(self, client, db_session, png_payload):
        category = await create_category(client, name="News", icon={"original_url": png_payload})

        row = await db_session.get(Category, uuid.UUID(category["id"]))
        assert row.icon[BASE64_KEY] == png_payload

    async def test_deleted_file_is_rehydrated(self, client, memory_store, png_bytes, png_payload):
        category = await create_category(client, name="News", icon={"original_url": png_payload})
        filename = category["icon"]["filename"]

        first = await client.get(f"/uploads/{filename}")
        assert first.status_code == 200
        assert first.content == png_bytes
        assert first.headers["content-type"] == "image/png"

        del memory_store.files[filename]

        second = await client.get(f"/uploads/{filename}")
        assert second.status_code == 200
        assert second.content == png_bytes
        assert filename in memory_store.files

    async def test_get_category_materializes_files(self, client, memory_store, png_payload):
        category = await create_category(client, name="News", image={"original_url": png_payload})
        memory_store.files.clear()

        response = await client.get(f"/api/categories/{category['id']}")

        assert response.status_code == 200
        assert category["image"]["filename"] in memory_store.files
        assert BASE64_KEY not in response.json()["image"]

    async def test_category_image_route(self, client, png_bytes, png_payload):
        category = await create_category(client, name="News", icon={"original_url": png_payload})

        response = await client.get(f"/api/categories/image/{category['icon']['filename']}")

        assert response.status_code == 200
        assert response.content == png_bytes

    async def test_unknown_file_is_404(self, client):
        response = await client.get("/uploads/nonexistent.png")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    async def test_malformed_payload_nulls_field(self, client):
        category = await create_category(
            client, name="News", icon={"original_url": "data:image/png;base64,@@@"}
        )

        assert category["icon"] is None

    async def test_external_url_passes_through(self, client):
        icon = {"original_url": "https://cdn.example.com/news.png"}
        category = await create_category(client, name="News", icon=icon)

        assert category["icon"] == {"original_url": icon["original_url"], "filename": None}

    async def test_echoed_icon_keeps_payload(self, client, db_session, png_payload):
        category = await create_category(client, name="News", icon={"original_url": png_payload})

        response = await client.put(
            f"/api/categories/{category['id']}",
            json={"description": "Updated", "icon": category["icon"]},
        )

        assert response.status_code == 200
        assert response.json()["icon"] == category["icon"]
        row = await db_session.get(Category, uuid.UUID(category["id"]))
        assert row.icon[BASE64_KEY] == png_payload


class TestCategoryCrud:
    async def test_list_sorted_by_name_with_pagination(self, client):
        for name in ["Sports", "Arts", "News"]:
            await create_category(client, name=name)

        response = await client.get("/api/categories", params={"page": 1, "limit": 2})

        assert response.status_code == 200
        assert response.headers["X-Total-Count"] == "3"
        body = response.json()
        assert [c["name"] for c in body["data"]] == ["Arts", "News"]
        assert body["total"] == 3
        assert body["pages"] == 2
        assert "message" not in body

    async def test_duplicate_name_conflicts(self, client):
        await create_category(client, name="News")

        response = await client.post("/api/categories", json={"name": "News"})

        assert response.status_code == 409
        assert response.json()["details"]["field"] == "name"

    async def test_update_and_delete(self, client):
        category = await create_category(client, name="News", status=1)

        updated = await client.put(f"/api/categories/{category['id']}", json={"status": 0})
        assert updated.json()["status"] == 0
        assert updated.json()["name"] == "News"

        deleted = await client.delete(f"/api/categories/{category['id']}")
        assert deleted.json() == {"message": "Category deleted successfully"}
        assert (await client.get(f"/api/categories/{category['id']}")).status_code == 404

    async def test_null_name_is_rejected(self, client):
        category = await create_category(client, name="News")

        response = await client.put(f"/api/categories/{category['id']}", json={"name": None})

        assert response.status_code == 422
        fetched = await client.get(f"/api/categories/{category['id']}")
        assert fetched.json()["name"] == "News"

    async def test_missing_category_is_404(self, client):
        response = await client.get(f"/api/categories/{uuid.uuid4()}")

        assert response.status_code == 404


class TestSubcategories:
    async def _parent_with_two_children(self, client, png_payload):
        parent = await create_category(client, name="News")
        await create_category(
            client, name="Local", parent=parent["id"], icon={"original_url": png_payload}
        )
        parent = await create_category(
            client, name="World", parent=parent["id"], image={"original_url": png_payload}
        )
        return parent

    async def test_create_appends_to_parent(self, client, png_payload):
        parent = await self._parent_with_two_children(client, png_payload)

        names = [s["name"] for s in parent["subcategories"]]
        assert names == ["Local", "World"]
        local = parent["subcategories"][0]
        assert re.match(r"^\d+-subcategory-icon\.png$", local["icon"]["filename"])
        assert BASE64_KEY not in local["icon"]
        assert local["status"] == 1

    async def test_missing_parent_is_404(self, client):
        response = await client.post(
            "/api/categories", json={"name": "Orphan", "parent": str(uuid.uuid4())}
        )

        assert response.status_code == 404

    async def test_update_leaves_siblings_untouched(self, client, db_session, png_payload):
        parent = await self._parent_with_two_children(client, png_payload)
        local, world = parent["subcategories"]
        row = await db_session.get(Category, uuid.UUID(parent["id"]))
        stored_world = row.subcategories[1]

        response = await client.put(
            f"/api/categories/{parent['id']}/subcategory/{local['id']}",
            json={"name": "Local News"},
        )

        assert response.status_code == 200
        local_after, world_after = response.json()["subcategories"]
        assert local_after["name"] == "Local News"
        assert local_after["icon"] == local["icon"]
        assert world_after == world

        db_session.expire_all()
        rows = await db_session.execute(select(Category).where(Category.id == uuid.UUID(parent["id"])))
        stored = rows.scalar_one().subcategories
        assert stored[1] == stored_world
        assert stored[0]["icon"][BASE64_KEY] == png_payload

    async def test_update_through_parent_field(self, client, png_payload):
        parent = await self._parent_with_two_children(client, png_payload)
        world = parent["subcategories"][1]

        response = await client.put(
            f"/api/categories/{world['id']}",
            json={"parent": parent["id"], "description": "Abroad"},
        )

        assert response.status_code == 200
        assert response.json()["subcategories"][1]["description"] == "Abroad"
        assert response.json()["subcategories"][0]["description"] is None

    async def test_list_and_delete(self, client, png_payload):
        parent = await self._parent_with_two_children(client, png_payload)
        local = parent["subcategories"][0]

        listing = await client.get(f"/api/categories/{parent['id']}/subcategories")
        assert listing.headers["X-Total-Count"] == "2"
        assert [s["name"] for s in listing.json()["data"]] == ["Local", "World"]

        deleted = await client.delete(f"/api/categories/{parent['id']}/subcategory/{local['id']}")
        assert deleted.status_code == 200

        remaining = (await client.get(f"/api/categories/{parent['id']}")).json()["subcategories"]
        assert [s["name"] for s in remaining] == ["World"]

    async def test_unknown_subcategory_is_404(self, client):
        parent = await create_category(client, name="News")

        response = await client.put(
            f"/api/categories/{parent['id']}/subcategory/{uuid.uuid4().hex}",
            json={"name": "x"},
        )

        assert response.status_code == 404

    async def test_subcategory_image_is_rehydrated(self, client, memory_store, png_bytes, png_payload):
        parent = await self._parent_with_two_children(client, png_payload)
        filename = parent["subcategories"][1]["image"]["filename"]
        memory_store.files.pop(filename, None)

        response = await client.get(f"/uploads/{filename}")

        assert response.status_code == 200
        assert response.content == png_bytes

    async def test_null_subcategory_name_is_rejected(self, client, png_payload):
        parent = await self._parent_with_two_children(client, png_payload)
        local = parent["subcategories"][0]

        response = await client.put(
            f"/api/categories/{parent['id']}/subcategory/{local['id']}", json={"name": None}
        )

        assert response.status_code == 422
