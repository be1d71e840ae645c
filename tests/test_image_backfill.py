"""Tests for embedding stored files into documents that only reference them."""

from sqlalchemy import select

from newsdesk.models import Blog, Category
from newsdesk.services.image_backfill import ImageBackfillService
from newsdesk.services.image_codec import decode_image_payload
from newsdesk.services.image_fields import BASE64_KEY


def bare_ref(filename):
    return {"original_url": f"http://testserver/uploads/{filename}", "filename": filename}


async def test_backfill_embeds_available_files(db_session, memory_store, png_bytes, png_payload):
    memory_store.files["1-thumbnail.png"] = png_bytes
    memory_store.files["2-subcategory-image.jpg"] = b"\xff\xd8jpeg\xff\xd9"
    db_session.add(
        Blog(
            title="Old post",
            description="d",
            content="c",
            thumbnail=bare_ref("1-thumbnail.png"),
            meta_image=bare_ref("3-meta-image.png"),
        )
    )
    db_session.add(
        Category(
            name="Archive",
            icon=dict(bare_ref("4-icon.png"), **{BASE64_KEY: png_payload}),
            subcategories=[{"id": "a", "icon": None, "image": bare_ref("2-subcategory-image.jpg")}],
        )
    )
    await db_session.flush()

    report = await ImageBackfillService(memory_store).backfill(db_session)

    assert report.as_dict() == {
        "blogs_updated": 1,
        "categories_updated": 1,
        "images_embedded": 2,
        "images_missing": 1,
    }

    blog = (await db_session.execute(select(Blog))).scalar_one()
    assert decode_image_payload(blog.thumbnail[BASE64_KEY]).data == png_bytes
    assert BASE64_KEY not in blog.meta_image

    category = (await db_session.execute(select(Category))).scalar_one()
    embedded = category.subcategories[0]["image"][BASE64_KEY]
    assert embedded.startswith("data:image/jpeg;base64,")
    assert category.icon[BASE64_KEY] == png_payload


async def test_backfill_is_a_no_op_when_everything_is_embedded(db_session, memory_store, png_payload):
    db_session.add(
        Category(name="Done", icon=dict(bare_ref("5-icon.png"), **{BASE64_KEY: png_payload}), subcategories=[])
    )
    await db_session.flush()

    report = await ImageBackfillService(memory_store).backfill(db_session)

    assert report.categories_updated == 0
    assert report.images_embedded == 0
