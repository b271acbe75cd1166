"""Conftest for integration tests against the bundled catalog."""

import pytest

from guide_search.catalog import load_default_catalog
from guide_search.search.engine import SearchEngine


def pytest_collection_modifyitems(config, items):
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


@pytest.fixture(scope="session")
def default_engine() -> SearchEngine:
    return SearchEngine(load_default_catalog())
