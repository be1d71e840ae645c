"""
Newsdesk Backend — Image Field Unit Tests
===========================================

Test Strategy:
    ✅ Embedded payloads become ImageRefs with role-based filenames
    ✅ External URLs and stored refs pass through; malformed payloads null the field
    ✅ Absent slots stay absent (partial updates)
    ✅ A sanitized ref echoed back keeps the stored payload
    ✅ Sanitizer strips base64Data everywhere without mutating its input
    ✅ Filename timestamps never repeat
"""

import copy
import re

from newsdesk.services.image_fields import (
    BASE64_KEY,
    BLOG_SHAPE,
    CATEGORY_SHAPE,
    MonotonicMillis,
    apply_image_fields,
    image_url,
    iter_image_refs,
    prepare_image_ref,
    sanitize_document,
)

BASE = "http://testserver"


def fixed_clock(value=1718000000000):
    return lambda: value


class TestPrepareImageRef:
    def test_embedded_payload_becomes_image_ref(self, png_payload):
        ref = prepare_image_ref({"original_url": png_payload}, "icon", BASE, fixed_clock())

        assert ref == {
            "original_url": "http://testserver/uploads/1718000000000-icon.png",
            "filename": "1718000000000-icon.png",
            BASE64_KEY: png_payload,
        }

    def test_external_url_passes_through(self):
        value = {"original_url": "https://cdn.example.com/cat.jpg"}

        assert prepare_image_ref(value, "icon", BASE) == value

    def test_none_stays_none(self):
        assert prepare_image_ref(None, "icon", BASE) is None

    def test_malformed_payload_nulls_field(self):
        value = {"original_url": "data:image/png;base64,%%%"}

        assert prepare_image_ref(value, "icon", BASE) is None

    def test_image_url_strips_trailing_slash(self):
        assert image_url("http://a.b/", "x.png") == "http://a.b/uploads/x.png"


class TestApplyImageFields:
    def test_each_slot_gets_its_role(self, png_payload):
        data = {
            "title": "Hello",
            "thumbnail": {"original_url": png_payload},
            "metaImage": {"original_url": png_payload},
        }
        prepared = apply_image_fields(data, BLOG_SHAPE, BASE, fixed_clock())

        assert prepared["title"] == "Hello"
        assert prepared["thumbnail"]["filename"] == "1718000000000-thumbnail.png"
        assert prepared["metaImage"]["filename"] == "1718000000000-meta-image.png"
        assert "original_url" in data["thumbnail"] and "filename" not in data["thumbnail"]

    def test_absent_slots_stay_absent(self):
        prepared = apply_image_fields({"name": "News"}, CATEGORY_SHAPE, BASE)

        assert "icon" not in prepared
        assert "image" not in prepared

    def test_explicit_null_clears_slot(self):
        prepared = apply_image_fields({"icon": None}, CATEGORY_SHAPE, BASE)

        assert prepared == {"icon": None}

    def test_one_bad_field_does_not_affect_another(self, png_payload):
        data = {
            "icon": {"original_url": "data:image/png;base64,@@"},
            "image": {"original_url": png_payload},
        }
        prepared = apply_image_fields(data, CATEGORY_SHAPE, BASE, fixed_clock())

        assert prepared["icon"] is None
        assert prepared["image"]["filename"] == "1718000000000-image.png"

    def test_echoed_ref_keeps_stored_payload(self, png_payload):
        stored = {
            "original_url": "http://testserver/uploads/5-icon.png",
            "filename": "5-icon.png",
            BASE64_KEY: png_payload,
        }
        echoed = {"original_url": stored["original_url"], "filename": "5-icon.png"}

        prepared = apply_image_fields({"icon": echoed}, CATEGORY_SHAPE, BASE, current={"icon": stored})

        assert prepared["icon"] == stored
        assert prepared["icon"] is not stored

    def test_different_filename_is_not_treated_as_echo(self, png_payload):
        stored = {"original_url": "u", "filename": "5-icon.png", BASE64_KEY: png_payload}
        other = {"original_url": "https://cdn.example.com/x.png", "filename": "x.png"}

        prepared = apply_image_fields({"icon": other}, CATEGORY_SHAPE, BASE, current={"icon": stored})

        assert prepared["icon"] == other


class TestSanitizeDocument:
    def _category(self, payload):
        ref = {"original_url": "u", "filename": "1-icon.png", BASE64_KEY: payload}
        return {
            "name": "News",
            "icon": ref,
            "image": None,
            "subcategories": [
                {"id": "a", "icon": dict(ref, filename="2-subcategory-icon.png"), "image": None},
            ],
        }

    def test_strips_every_payload(self, png_payload):
        sanitized = sanitize_document(self._category(png_payload), CATEGORY_SHAPE)

        assert all(BASE64_KEY not in ref for ref in iter_image_refs(sanitized, CATEGORY_SHAPE))
        assert sanitized["icon"] == {"original_url": "u", "filename": "1-icon.png"}
        assert sanitized["image"] is None

    def test_does_not_mutate_input(self, png_payload):
        document = self._category(png_payload)
        before = copy.deepcopy(document)

        sanitize_document(document, CATEGORY_SHAPE)

        assert document == before

    def test_blog_populated_categories_are_sanitized(self, png_payload):
        blog = {
            "thumbnail": None,
            "metaImage": None,
            "categories": [self._category(png_payload)],
        }
        sanitized = sanitize_document(blog, BLOG_SHAPE)

        assert BASE64_KEY not in sanitized["categories"][0]["icon"]
        assert BASE64_KEY not in sanitized["categories"][0]["subcategories"][0]["icon"]


class TestMonotonicMillis:
    def test_never_repeats_with_frozen_clock(self):
        clock = MonotonicMillis(lambda: 1718000000.0)
        values = [clock() for _ in range(100)]

        assert values == sorted(set(values))
        assert values[0] == 1718000000000

    def test_filenames_are_unique_for_same_role(self, png_payload):
        clock = MonotonicMillis(lambda: 1718000000.0)
        names = {
            prepare_image_ref({"original_url": png_payload}, "icon", BASE, clock)["filename"]
            for _ in range(10)
        }

        assert len(names) == 10
        assert all(re.match(r"^\d+-icon\.png$", name) for name in names)
