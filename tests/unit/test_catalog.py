"""Unit tests for catalog construction and loading."""

import orjson
import pytest

from guide_search.catalog import CatalogStore, load_catalog, parse_catalog
from guide_search.errors import CatalogIntegrityError
from tests.fixtures.catalog import SAMPLE_PAGES, make_record


class TestCatalogStore:
    def test_preserves_order_and_lookup(self, sample_catalog):
        assert sample_catalog.slugs == ("/parking", "/walks", "/salts-mill", "/food-drink", "/history/timeline")
        assert sample_catalog["/walks"].title == "Walks from Saltaire"
        assert sample_catalog.get("/missing") is None
        assert "/parking" in sample_catalog
        assert len(sample_catalog) == 5

    def test_duplicate_slug_is_fatal(self):
        records = [make_record("/plan", "Plan Your Visit"), make_record("/plan", "Plan a Day")]

        with pytest.raises(CatalogIntegrityError, match="Duplicate slug") as exc_info:
            CatalogStore(records)

        assert exc_info.value.slug == "/plan"

    def test_duplicate_is_never_silently_merged(self):
        pages = [*SAMPLE_PAGES, dict(SAMPLE_PAGES[0], title="Another parking page")]

        with pytest.raises(CatalogIntegrityError):
            CatalogStore.from_mappings(pages)

    def test_missing_title_is_fatal(self):
        with pytest.raises(CatalogIntegrityError, match="#0") as exc_info:
            CatalogStore.from_mappings([{"slug": "/untitled", "category": "Info"}])

        assert exc_info.value.slug == "/untitled"

    def test_blank_title_is_fatal(self):
        with pytest.raises(CatalogIntegrityError):
            CatalogStore.from_mappings([{"slug": "/blank", "title": "   ", "category": "Info"}])

    def test_non_object_entry_is_fatal(self):
        with pytest.raises(CatalogIntegrityError, match="not an object"):
            CatalogStore.from_mappings(["/walks"])

    def test_rejects_foreign_objects(self):
        with pytest.raises(CatalogIntegrityError):
            CatalogStore([{"slug": "/walks", "title": "Walks"}])

    def test_unknown_keys_are_ignored(self):
        catalog = CatalogStore.from_mappings([dict(SAMPLE_PAGES[0], featured=True)])

        assert catalog["/parking"].icon == "🅿️"

    def test_categories_keep_first_seen_order(self):
        catalog = CatalogStore(
            [
                make_record("/b", "B", category="Outdoors"),
                make_record("/a", "A", category="Practical"),
                make_record("/c", "C", category="Outdoors"),
            ]
        )

        assert catalog.categories == ("Outdoors", "Practical")


class TestCatalogLoading:
    def test_parse_object_document(self):
        catalog = parse_catalog(orjson.dumps({"pages": SAMPLE_PAGES}))

        assert len(catalog) == len(SAMPLE_PAGES)

    def test_parse_bare_list(self):
        catalog = parse_catalog(orjson.dumps(SAMPLE_PAGES[:1]).decode())

        assert catalog.slugs == ("/parking",)

    def test_invalid_json(self):
        with pytest.raises(CatalogIntegrityError, match="not valid JSON"):
            parse_catalog(b"{pages: ")

    def test_wrong_document_shape(self):
        with pytest.raises(CatalogIntegrityError, match="'pages' list"):
            parse_catalog(b'{"items": []}')

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_bytes(orjson.dumps({"pages": SAMPLE_PAGES}))

        assert load_catalog(path).slugs[0] == "/parking"

    def test_missing_file(self, tmp_path):
        with pytest.raises(CatalogIntegrityError, match="Cannot read catalog"):
            load_catalog(tmp_path / "nope.json")
