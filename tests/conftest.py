"""Shared test fixtures and configuration."""

import os

import pytest

from guide_search.catalog import CatalogStore
from guide_search.config import Settings
from guide_search.search.engine import SearchEngine
from tests.fixtures.catalog import SAMPLE_PAGES, SALTAIRE_PAIR


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep developer GUIDE_SEARCH_* variables and .env files out of the tests."""
    for key in list(os.environ):
        if key.upper().startswith("GUIDE_SEARCH_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def settings() -> Settings:
    return Settings()  # type: ignore[call-arg]


@pytest.fixture
def sample_catalog() -> CatalogStore:
    return CatalogStore.from_mappings(SAMPLE_PAGES)


@pytest.fixture
def saltaire_pair() -> CatalogStore:
    return CatalogStore.from_mappings(SALTAIRE_PAIR)


@pytest.fixture
def sample_engine(sample_catalog, settings) -> SearchEngine:
    return SearchEngine(sample_catalog, settings)
