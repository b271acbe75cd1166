"""Domain model - content records and search value objects.

Records are validated at construction with Pydantic dataclasses so a
malformed catalog entry fails at load time instead of surfacing as a blank
card at render time. Everything derived per query (scores, snapshots) is a
plain frozen dataclass: it is recomputed on every keystroke and never
crosses a validation boundary.
"""

from __future__ import annotations

from collections.abc import Mapping
import dataclasses
from enum import Enum
from typing import Annotated, Any

from pydantic import StringConstraints
from pydantic.dataclasses import dataclass


ALL_CATEGORIES = "all"


class SearchField(str, Enum):
    """Record fields that contribute postings to the index."""

    TITLE = "title"
    KEYWORDS = "keywords"
    CATEGORY = "category"
    DESCRIPTION = "description"


@dataclass(frozen=True)
class ContentRecord:
    """One page of the guide as supplied by the catalog.

    ``image`` and ``icon`` are presentation-only and never indexed.
    """

    slug: Annotated[str, StringConstraints(min_length=1, pattern=r"^/")]
    title: str
    category: Annotated[str, StringConstraints(min_length=1)]
    description: str = ""
    keywords: tuple[str, ...] = ()
    image: str = ""
    icon: str | None = None

    def __post_init__(self) -> None:
        if not self.title.strip():
            raise ValueError(f"Content record {self.slug!r} has a blank title")
        if not self.category.strip():
            raise ValueError(f"Content record {self.slug!r} has a blank category")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ContentRecord:
        """Build a record from a raw catalog entry, ignoring unknown keys."""
        known = {f.name for f in dataclasses.fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})


@dataclasses.dataclass(frozen=True)
class ScoredResult:
    """A ranked hit. ``slug`` always refers to a record in the catalog."""

    slug: str
    score: float
    matched_fields: frozenset[SearchField] = frozenset()


@dataclasses.dataclass(frozen=True)
class QueryState:
    """Latest user input, owned by the query controller."""

    text: str = ""
    active_category: str = ALL_CATEGORIES
    generation: int = 0

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()


class ControllerState(Enum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    COMPUTING = "computing"
    SETTLED = "settled"


@dataclasses.dataclass(frozen=True)
class SearchSnapshot:
    """Settled output handed to subscribers.

    ``records`` is already in display order. For a ranked query it follows
    ``results``; for browsing it is the (faceted) catalog in curated order and
    ``results`` is empty.
    """

    query: str
    active_category: str
    generation: int
    ranked: bool
    results: tuple[ScoredResult, ...]
    records: tuple[ContentRecord, ...]
    categories: tuple[str, ...]

    @property
    def count(self) -> int:
        return len(self.records)

    @property
    def is_empty(self) -> bool:
        return not self.records

    @property
    def is_filtered(self) -> bool:
        return bool(self.query.strip()) or self.active_category != ALL_CATEGORIES

    def summary(self) -> str:
        """Human readable result count, e.g. ``3 pages found for “walk”``."""
        noun = "page" if self.count == 1 else "pages"
        text = f"{self.count} {noun} found"
        if self.query.strip():
            text += f" for “{self.query.strip()}”"
        return text
