"""
Search package for the guide's content hub.

This package provides a small, in-memory search stack:
- analyzers: normalization and tokenization shared by index and queries
- indexer: inverted index built once per catalog
- fuzzy: exact / prefix / edit-distance token matching
- ranker: weighted, field-aware relevance scoring
- facets: category filtering
- engine: the facade tying them together
"""
