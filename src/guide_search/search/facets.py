"""Category facet filtering that preserves the incoming order."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import TYPE_CHECKING, TypeVar

from guide_search.domain.model import ALL_CATEGORIES, ContentRecord, ScoredResult


if TYPE_CHECKING:
    from guide_search.catalog import CatalogStore

T = TypeVar("T")


def is_all(category: str | None) -> bool:
    return category is None or category == ALL_CATEGORIES


def facet_filter(items: Iterable[T], category: str | None, category_of: Callable[[T], str]) -> list[T]:
    """Keep items in ``category``; ``"all"`` passes everything through unchanged.

    An unknown category simply matches nothing.
    """
    if is_all(category):
        return list(items)
    return [item for item in items if category_of(item) == category]


def filter_records(records: Iterable[ContentRecord], category: str | None) -> list[ContentRecord]:
    """Pre-filter for browsing: catalog records in curated order."""
    return facet_filter(records, category, lambda record: record.category)


def filter_results(
    results: Sequence[ScoredResult],
    category: str | None,
    catalog: CatalogStore,
) -> list[ScoredResult]:
    """Post-filter for ranked results, keeping relevance order."""
    return facet_filter(results, category, lambda result: catalog[result.slug].category)
