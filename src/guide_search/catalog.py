"""Catalog store: the fixed, validated list of guide pages for a session.

The catalog is supplied at build time and never mutated afterwards. All
integrity checks happen here, before an index is built, so authoring
mistakes (duplicate slugs, blank titles) fail loudly instead of producing
duplicate cards or unsearchable pages.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from importlib import resources
import logging
from pathlib import Path
from typing import Any

import orjson

from guide_search.domain.model import ContentRecord
from guide_search.errors import CatalogIntegrityError
from guide_search.observability.tracing import create_span


logger = logging.getLogger(__name__)

DEFAULT_CATALOG_RESOURCE = "saltaire_guide.json"


class CatalogStore:
    """Immutable, ordered collection of :class:`ContentRecord` keyed by slug."""

    def __init__(self, records: Iterable[ContentRecord]) -> None:
        ordered: list[ContentRecord] = []
        by_slug: dict[str, ContentRecord] = {}
        for record in records:
            if not isinstance(record, ContentRecord):
                raise CatalogIntegrityError(f"Catalog entries must be ContentRecord, got {type(record).__name__}")
            if record.slug in by_slug:
                raise CatalogIntegrityError(f"Duplicate slug in catalog: {record.slug}", slug=record.slug)
            if not record.title.strip():
                raise CatalogIntegrityError(f"Record {record.slug} has no title", slug=record.slug)
            by_slug[record.slug] = record
            ordered.append(record)

        self._records = tuple(ordered)
        self._by_slug = by_slug
        # First-seen order, used for facet chips
        self._categories = tuple(dict.fromkeys(record.category for record in ordered))

    @classmethod
    def from_mappings(cls, items: Iterable[Mapping[str, Any]]) -> CatalogStore:
        """Validate raw catalog entries (e.g. decoded JSON) into a store."""
        records: list[ContentRecord] = []
        for position, item in enumerate(items):
            if not isinstance(item, Mapping):
                raise CatalogIntegrityError(f"Catalog entry #{position} is not an object")
            slug = item.get("slug")
            try:
                records.append(ContentRecord.from_mapping(item))
            except (TypeError, ValueError) as exc:
                raise CatalogIntegrityError(
                    f"Invalid catalog entry #{position} ({slug!r}): {exc}",
                    slug=slug if isinstance(slug, str) else None,
                ) from exc
        return cls(records)

    @property
    def records(self) -> tuple[ContentRecord, ...]:
        return self._records

    @property
    def categories(self) -> tuple[str, ...]:
        return self._categories

    @property
    def slugs(self) -> tuple[str, ...]:
        return tuple(record.slug for record in self._records)

    def get(self, slug: str) -> ContentRecord | None:
        return self._by_slug.get(slug)

    def __getitem__(self, slug: str) -> ContentRecord:
        return self._by_slug[slug]

    def __contains__(self, slug: object) -> bool:
        return slug in self._by_slug

    def __iter__(self) -> Iterator[ContentRecord]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return f"CatalogStore(records={len(self._records)}, categories={len(self._categories)})"


def _entries_from_document(document: Any) -> list[Any]:
    if isinstance(document, list):
        return document
    if isinstance(document, dict) and isinstance(document.get("pages"), list):
        return document["pages"]
    raise CatalogIntegrityError("Catalog document must be a list of pages or an object with a 'pages' list")


def parse_catalog(raw: bytes | str) -> CatalogStore:
    """Parse a JSON catalog document into a validated store."""
    with create_span("guide_search.catalog.load", attributes={"catalog.bytes": len(raw)}):
        try:
            document = orjson.loads(raw)
        except orjson.JSONDecodeError as exc:
            raise CatalogIntegrityError(f"Catalog is not valid JSON: {exc}") from exc
        catalog = CatalogStore.from_mappings(_entries_from_document(document))
    logger.info(
        "Loaded catalog",
        extra={"record_count": len(catalog), "category_count": len(catalog.categories)},
    )
    return catalog


def load_catalog(path: str | Path) -> CatalogStore:
    """Read and validate a JSON catalog file."""
    catalog_path = Path(path)
    try:
        raw = catalog_path.read_bytes()
    except OSError as exc:
        raise CatalogIntegrityError(f"Cannot read catalog file {catalog_path}: {exc}") from exc
    return parse_catalog(raw)


def load_default_catalog() -> CatalogStore:
    """Load the bundled Saltaire guide catalog."""
    raw = resources.files("guide_search.data").joinpath(DEFAULT_CATALOG_RESOURCE).read_bytes()
    return parse_catalog(raw)
