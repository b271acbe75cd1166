"""Instant, typo-tolerant search over a local guide's content catalog."""

from guide_search.catalog import CatalogStore, load_catalog, load_default_catalog, parse_catalog
from guide_search.config import Settings
from guide_search.controller import QueryController
from guide_search.domain.model import (
    ALL_CATEGORIES,
    ContentRecord,
    ControllerState,
    QueryState,
    ScoredResult,
    SearchField,
    SearchSnapshot,
)
from guide_search.errors import CatalogIntegrityError, GuideSearchError
from guide_search.search.engine import SearchEngine


__all__ = [
    "ALL_CATEGORIES",
    "CatalogIntegrityError",
    "CatalogStore",
    "ContentRecord",
    "ControllerState",
    "GuideSearchError",
    "QueryController",
    "QueryState",
    "ScoredResult",
    "SearchEngine",
    "SearchField",
    "SearchSnapshot",
    "Settings",
    "load_catalog",
    "load_default_catalog",
    "parse_catalog",
]
