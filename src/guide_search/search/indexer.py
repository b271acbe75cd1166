"""In-memory inverted index over the content catalog.

The index is a pure function of the catalog: it is built once when the
catalog is loaded and treated as read-only for the rest of the session.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
import logging
from types import MappingProxyType
from typing import TYPE_CHECKING

from guide_search.domain.model import ContentRecord, SearchField
from guide_search.errors import CatalogIntegrityError
from guide_search.observability.metrics import INDEX_POSTINGS
from guide_search.observability.tracing import create_span
from guide_search.search.analyzers import GuideAnalyzer
from guide_search.search.models import PostingEntry


if TYPE_CHECKING:
    from guide_search.catalog import CatalogStore
    from guide_search.config import Settings


logger = logging.getLogger(__name__)

DEFAULT_FIELD_WEIGHTS: Mapping[SearchField, float] = MappingProxyType(
    {
        SearchField.TITLE: 5.0,
        SearchField.KEYWORDS: 3.0,
        SearchField.CATEGORY: 2.0,
        SearchField.DESCRIPTION: 1.0,
    }
)


@dataclass(frozen=True)
class InvertedIndex:
    """Token -> postings mapping plus the sorted vocabulary.

    ``titles`` keeps each record's title tokens in reading order for phrase
    matching. ``weight_total`` is the most one query token can add to a record
    (a best hit in every field).
    """

    postings: Mapping[str, tuple[PostingEntry, ...]]
    record_count: int
    titles: Mapping[str, tuple[str, ...]] = field(default_factory=lambda: MappingProxyType({}))
    weight_total: float = 0.0
    vocabulary: tuple[str, ...] = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "vocabulary", tuple(sorted(self.postings)))

    def postings_for(self, token: str) -> tuple[PostingEntry, ...]:
        return self.postings.get(token, ())

    @property
    def posting_count(self) -> int:
        return sum(len(entries) for entries in self.postings.values())

    def __contains__(self, token: object) -> bool:
        return token in self.postings

    def __iter__(self) -> Iterator[str]:
        return iter(self.vocabulary)

    def __len__(self) -> int:
        return len(self.vocabulary)


class IndexBuilder:
    """Tokenizes every indexed field of every record into postings."""

    def __init__(
        self,
        *,
        field_weights: Mapping[SearchField, float] | None = None,
        analyzer: GuideAnalyzer | None = None,
    ) -> None:
        weights = dict(DEFAULT_FIELD_WEIGHTS)
        weights.update(field_weights or {})
        self.field_weights = MappingProxyType(weights)
        self.analyzer = analyzer or GuideAnalyzer()

    @classmethod
    def from_settings(cls, settings: Settings) -> IndexBuilder:
        return cls(field_weights=settings.field_weights())

    def _tokens(self, text: str) -> list[str]:
        return [token.text for token in self.analyzer(text)]

    def record_terms(self, record: ContentRecord) -> dict[SearchField, set[str]]:
        """Return the distinct tokens each field of ``record`` contributes."""
        title_terms = set(self._tokens(record.title))
        if not title_terms:
            raise CatalogIntegrityError(
                f"Record {record.slug} has a title with no searchable words: {record.title!r}",
                slug=record.slug,
            )

        keyword_terms: set[str] = set()
        # Keywords are tokenized one by one so any word of a multi-word keyword matches
        for keyword in record.keywords:
            keyword_terms.update(self._tokens(keyword))

        return {
            SearchField.TITLE: title_terms,
            SearchField.KEYWORDS: keyword_terms,
            SearchField.CATEGORY: set(self._tokens(record.category)),
            SearchField.DESCRIPTION: set(self._tokens(record.description)),
        }

    def build(self, catalog: CatalogStore) -> InvertedIndex:
        with create_span("guide_search.index.build", attributes={"catalog.records": len(catalog)}):
            collected: defaultdict[str, set[PostingEntry]] = defaultdict(set)
            titles: dict[str, tuple[str, ...]] = {}
            for record in catalog:
                terms_by_field = self.record_terms(record)
                titles[record.slug] = tuple(self._tokens(record.title))
                for search_field, terms in terms_by_field.items():
                    weight = self.field_weights[search_field]
                    for term in terms:
                        collected[term].add(PostingEntry(record.slug, search_field, weight))

            # Sorted so rebuilding from the same catalog yields identical postings
            postings = {
                term: tuple(sorted(entries, key=lambda p: (p.slug, p.field.value)))
                for term, entries in sorted(collected.items())
            }
            index = InvertedIndex(
                postings=MappingProxyType(postings),
                record_count=len(catalog),
                titles=MappingProxyType(titles),
                weight_total=sum(self.field_weights.values()),
            )

        per_field = Counter(entry.field for entries in index.postings.values() for entry in entries)
        for search_field in SearchField:
            INDEX_POSTINGS.labels(field=search_field.value).set(per_field[search_field])
        logger.info(
            "Built search index",
            extra={
                "record_count": index.record_count,
                "vocabulary_size": len(index),
                "posting_count": index.posting_count,
            },
        )
        return index


def build_index(catalog: CatalogStore, settings: Settings | None = None) -> InvertedIndex:
    """Build an index for ``catalog`` with weights from ``settings`` (or the defaults)."""
    builder = IndexBuilder.from_settings(settings) if settings is not None else IndexBuilder()
    return builder.build(catalog)
