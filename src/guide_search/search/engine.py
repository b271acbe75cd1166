"""Search engine facade: catalog + index + ranker + facets behind one call surface."""

from __future__ import annotations

import logging

from guide_search.catalog import CatalogStore
from guide_search.config import Settings
from guide_search.domain.model import ALL_CATEGORIES, ContentRecord, QueryState, ScoredResult, SearchSnapshot
from guide_search.observability.metrics import SEARCH_LATENCY, track_latency
from guide_search.search.analyzers import tokenize
from guide_search.search.facets import filter_records, filter_results
from guide_search.search.indexer import IndexBuilder, InvertedIndex
from guide_search.search.ranker import Ranker


logger = logging.getLogger(__name__)


class SearchEngine:
    """Synchronous search over one catalog snapshot.

    The index is built once in the constructor; a catalog change means a new
    engine. Nothing here mutates after construction, so one engine can serve
    any number of controllers.
    """

    def __init__(self, catalog: CatalogStore, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()
        self.catalog = catalog
        self.index: InvertedIndex = IndexBuilder.from_settings(self.settings).build(catalog)
        self.ranker = Ranker.from_settings(self.index, self.settings)

    @property
    def categories(self) -> tuple[str, ...]:
        return self.catalog.categories

    def search(self, text: str, category: str = ALL_CATEGORIES) -> list[ScoredResult]:
        """Rank ``text`` against the index, then narrow to ``category``."""
        with track_latency(SEARCH_LATENCY, mode="search"):
            ranked = self.ranker.rank(tokenize(text))
            return filter_results(ranked, category, self.catalog)

    def browse(self, category: str = ALL_CATEGORIES) -> list[ContentRecord]:
        """The catalog in curated order, optionally narrowed to one category."""
        with track_latency(SEARCH_LATENCY, mode="browse"):
            return filter_records(self.catalog.records, category)

    def records_for(self, results: list[ScoredResult]) -> list[ContentRecord]:
        return [self.catalog[result.slug] for result in results]

    def snapshot(self, state: QueryState) -> SearchSnapshot:
        """Evaluate ``state`` into the snapshot handed to renderers.

        Blank text bypasses ranking entirely, so browsing and searching share
        one output shape.
        """
        if state.is_blank:
            return SearchSnapshot(
                query=state.text,
                active_category=state.active_category,
                generation=state.generation,
                ranked=False,
                results=(),
                records=tuple(self.browse(state.active_category)),
                categories=self.categories,
            )

        results = self.search(state.text, state.active_category)
        return SearchSnapshot(
            query=state.text,
            active_category=state.active_category,
            generation=state.generation,
            ranked=True,
            results=tuple(results),
            records=tuple(self.records_for(results)),
            categories=self.categories,
        )
