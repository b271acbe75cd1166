"""Domain layer - content records and search value objects with no infrastructure dependencies."""

from guide_search.domain.model import (
    ALL_CATEGORIES,
    ContentRecord,
    ControllerState,
    QueryState,
    ScoredResult,
    SearchField,
    SearchSnapshot,
)


__all__ = [
    "ALL_CATEGORIES",
    "ContentRecord",
    "ControllerState",
    "QueryState",
    "ScoredResult",
    "SearchField",
    "SearchSnapshot",
]
