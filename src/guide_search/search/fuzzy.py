"""Tiered token matching for typo-tolerant, as-you-type search.

A query token is compared with an index token in three tiers:

- exact: identical tokens, similarity 1.0
- prefix: the index token starts with the query token, so "walk" finds
  "walks" while the user is still typing
- fuzzy: bounded Damerau-Levenshtein distance, tolerance growing with the
  query length (``len // 4 + 1`` edits)

Fuzzy similarity never exceeds the prefix similarity, so finishing a word
cannot make a record rank lower than a typo of it would.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from guide_search.config import Settings


class MatchTier(IntEnum):
    NONE = 0
    FUZZY = 1
    PREFIX = 2
    EXACT = 3


@dataclass(frozen=True)
class TokenMatch:
    """Outcome of comparing one query token with one index token."""

    term: str
    tier: MatchTier
    similarity: float
    distance: int = 0

    @property
    def matched(self) -> bool:
        return self.tier is not MatchTier.NONE


def damerau_levenshtein_distance(s1: str, s2: str, max_distance: int | None = None) -> int:
    """Calculate the (optimal string alignment) Damerau-Levenshtein distance.

    Counts insertions, deletions, substitutions and transpositions of two
    adjacent characters, with optional early termination once the distance
    is guaranteed to exceed ``max_distance``.

    Args:
        s1: First string.
        s2: Second string.
        max_distance: If provided, return max_distance+1 as soon as the
            distance is known to exceed this threshold.

    Returns:
        The edit distance, or max_distance+1 when the bound was exceeded.

    Examples:
        >>> damerau_levenshtein_distance("parkign", "parking")
        1
        >>> damerau_levenshtein_distance("kitten", "sitting")
        3
        >>> damerau_levenshtein_distance("", "abc")
        3
    """
    if not s1:
        return len(s2)
    if not s2:
        return len(s1)

    # Use shorter string as columns for space efficiency
    if len(s1) > len(s2):
        s1, s2 = s2, s1

    m, n = len(s1), len(s2)

    if max_distance is not None and n - m > max_distance:
        return max_distance + 1

    # Three rows: transpositions look two rows back
    older_row: list[int] | None = None
    prev_row = list(range(m + 1))
    prev_min = 0

    for j in range(1, n + 1):
        curr_row = [j] + [0] * m
        row_min = j
        for i in range(1, m + 1):
            cost = 0 if s1[i - 1] == s2[j - 1] else 1
            value = min(
                prev_row[i] + 1,  # deletion
                curr_row[i - 1] + 1,  # insertion
                prev_row[i - 1] + cost,  # substitution
            )
            if older_row is not None and i > 1 and s1[i - 1] == s2[j - 2] and s1[i - 2] == s2[j - 1]:
                value = min(value, older_row[i - 2] + 1)  # transposition
            curr_row[i] = value
            row_min = min(row_min, value)

        # Both of the last two rows are over budget, so every later row is too
        if max_distance is not None and row_min > max_distance and prev_min > max_distance:
            return max_distance + 1

        older_row, prev_row, prev_min = prev_row, curr_row, row_min

    return prev_row[m]


def max_edit_distance(query_length: int) -> int:
    """Largest edit distance accepted for a query token of this length.

    1-3 chars allow 1 edit, 4-7 chars allow 2, 8-11 allow 3, and so on.
    """
    return query_length // 4 + 1


class FuzzyMatcher:
    """Scores query tokens against index tokens using the exact/prefix/fuzzy tiers."""

    def __init__(
        self,
        *,
        prefix_similarity: float = 0.85,
        min_prefix_length: int = 2,
        similarity_floor: float = 0.4,
    ) -> None:
        self.prefix_similarity = prefix_similarity
        self.min_prefix_length = min_prefix_length
        self.similarity_floor = similarity_floor

    @classmethod
    def from_settings(cls, settings: Settings) -> FuzzyMatcher:
        return cls(
            prefix_similarity=settings.prefix_similarity,
            min_prefix_length=settings.min_prefix_length,
            similarity_floor=settings.fuzzy_similarity_floor,
        )

    def match(self, query_token: str, index_token: str) -> TokenMatch:
        """Compare two normalized tokens and return the best applicable tier."""
        if not query_token or not index_token:
            return TokenMatch(index_token, MatchTier.NONE, 0.0)

        if query_token == index_token:
            return TokenMatch(index_token, MatchTier.EXACT, 1.0)

        if len(query_token) >= self.min_prefix_length and index_token.startswith(query_token):
            return TokenMatch(index_token, MatchTier.PREFIX, self.prefix_similarity)

        bound = max_edit_distance(len(query_token))
        if abs(len(query_token) - len(index_token)) > bound:
            return TokenMatch(index_token, MatchTier.NONE, 0.0)

        distance = damerau_levenshtein_distance(query_token, index_token, bound)
        if distance < 1 or distance > bound:
            return TokenMatch(index_token, MatchTier.NONE, 0.0, distance)

        similarity = 1.0 - distance / max(len(query_token), len(index_token))
        if similarity < self.similarity_floor:
            return TokenMatch(index_token, MatchTier.NONE, 0.0, distance)

        return TokenMatch(index_token, MatchTier.FUZZY, min(similarity, self.prefix_similarity), distance)

    def similarity(self, query_token: str, index_token: str) -> float:
        return self.match(query_token, index_token).similarity

    def find_matches(self, query_token: str, vocabulary: Iterable[str]) -> list[TokenMatch]:
        """Return every vocabulary term with nonzero similarity, best first.

        Cost scales with the vocabulary size, not with the number of records.
        """
        if not query_token:
            return []

        matches = [match for term in vocabulary if (match := self.match(query_token, term)).matched]
        matches.sort(key=lambda m: (-m.similarity, m.term))
        return matches
