"""Relevance ranking over the inverted index.

For each query token, every vocabulary term with nonzero similarity is
looked up and its postings contribute ``similarity * field_weight`` to the
record. Within one query token only the best contribution per (record,
field) counts, so "walk" matching both "walk" and "walks" in a title is not
double counted, while a hit in title *and* keywords still adds up. Query
tokens are summed (not AND-ed) so partial matches stay visible, ranked
below records that match more of the query.

On top of the per-token sums, the whole query is compared with each title.
A query equal to a title, or a multi-word query found as a phrase inside a
title, earns a bonus larger than any per-token sum can reach, so the page the
user named outranks pages that merely repeat its words more often.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from enum import IntEnum
import logging
from typing import TYPE_CHECKING

from guide_search.domain.model import ScoredResult, SearchField
from guide_search.search.fuzzy import FuzzyMatcher


if TYPE_CHECKING:
    from guide_search.config import Settings
    from guide_search.search.indexer import InvertedIndex


logger = logging.getLogger(__name__)

DEFAULT_SCORE_FLOOR = 0.5


class TitleMatch(IntEnum):
    NONE = 0
    PHRASE = 1
    EXACT = 2


def _contains_run(haystack: tuple[str, ...], needle: tuple[str, ...]) -> bool:
    size = len(needle)
    return any(haystack[start : start + size] == needle for start in range(len(haystack) - size + 1))


class Ranker:
    """Score and order catalog records for a tokenized query."""

    def __init__(
        self,
        index: InvertedIndex,
        *,
        matcher: FuzzyMatcher | None = None,
        score_floor: float = DEFAULT_SCORE_FLOOR,
    ) -> None:
        self.index = index
        self.matcher = matcher or FuzzyMatcher()
        self.score_floor = score_floor

    @classmethod
    def from_settings(cls, index: InvertedIndex, settings: Settings) -> Ranker:
        return cls(index, matcher=FuzzyMatcher.from_settings(settings), score_floor=settings.score_floor)

    def _token_contributions(self, query_token: str) -> dict[tuple[str, SearchField], float]:
        best: dict[tuple[str, SearchField], float] = {}
        for match in self.matcher.find_matches(query_token, self.index.vocabulary):
            for posting in self.index.postings_for(match.term):
                key = (posting.slug, posting.field)
                contribution = match.similarity * posting.weight
                if contribution > best.get(key, 0.0):
                    best[key] = contribution
        return best

    def title_match(self, query_tokens: tuple[str, ...], slug: str) -> TitleMatch:
        """How the ordered query tokens relate to the title of ``slug``."""
        title = self.index.titles.get(slug, ())
        if not query_tokens or not title:
            return TitleMatch.NONE
        if query_tokens == title:
            return TitleMatch.EXACT
        # Single words are already covered by the per-token title hit
        if len(query_tokens) > 1 and _contains_run(title, query_tokens):
            return TitleMatch.PHRASE
        return TitleMatch.NONE

    def rank(self, query_tokens: Sequence[str]) -> list[ScoredResult]:
        """Return records scoring at or above the floor, best first, ties by slug."""
        ordered_tokens = tuple(token for token in query_tokens if token)
        # Repeating a word should not double its weight
        distinct_tokens = list(dict.fromkeys(ordered_tokens))
        if not distinct_tokens:
            return []

        scores: defaultdict[str, float] = defaultdict(float)
        matched: defaultdict[str, set[SearchField]] = defaultdict(set)

        for query_token in distinct_tokens:
            # Sorted keys keep float accumulation order independent of dict history
            for (slug, search_field), contribution in sorted(self._token_contributions(query_token).items()):
                scores[slug] += contribution
                matched[slug].add(search_field)

        # No record can gain more than this from per-token hits alone
        bonus_unit = len(distinct_tokens) * self.index.weight_total
        for slug in scores:
            scores[slug] += self.title_match(ordered_tokens, slug) * bonus_unit

        results = [
            ScoredResult(slug=slug, score=score, matched_fields=frozenset(matched[slug]))
            for slug, score in scores.items()
            if score > 0 and score >= self.score_floor
        ]
        results.sort(key=lambda result: (-result.score, result.slug))

        logger.debug(
            "Ranked query",
            extra={"query_tokens": distinct_tokens, "candidates": len(scores), "results": len(results)},
        )
        return results
