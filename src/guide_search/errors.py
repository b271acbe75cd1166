"""Exceptions raised by the guide search engine."""

from __future__ import annotations


class GuideSearchError(Exception):
    """Base class for guide search failures."""


class CatalogIntegrityError(GuideSearchError, ValueError):
    """Raised when the content catalog cannot be trusted to build an index.

    Duplicate slugs, blank titles and malformed records are authoring bugs,
    so they stop catalog construction instead of being dropped or merged.
    """

    def __init__(self, message: str, *, slug: str | None = None) -> None:
        super().__init__(message)
        self.slug = slug
