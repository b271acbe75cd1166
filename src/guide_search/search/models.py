"""Search data models."""

from dataclasses import dataclass

from guide_search.domain.model import SearchField


@dataclass(frozen=True)
class PostingEntry:
    """A posting links a token to one field of one record.

    A token repeated inside the same field still yields a single posting.
    """

    slug: str
    field: SearchField
    weight: float
