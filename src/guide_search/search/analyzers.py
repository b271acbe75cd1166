"""Text normalization and tokenization for catalog fields and live queries.

Follows a composable tokenizer/filter design: character folding runs first,
then a regex tokenizer splits on word boundaries and token filters clean up
the stream. There is deliberately no stop-word removal and no stemming;
the catalog is small and short terms such as postcodes ("BD18") matter.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
import re
import unicodedata
from typing import Protocol


# Apostrophes join words ("Don't" -> "dont") instead of splitting them
_APOSTROPHES = str.maketrans("", "", "'‘’ʼ`")


@dataclass(frozen=True)
class Token:
    """A normalized word unit. Order within a field is the order of the token stream."""

    text: str


class Tokenizer(Protocol):
    def __call__(self, text: str) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class TokenFilter(Protocol):
    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


def fold_text(text: str) -> str:
    """Strip diacritics and apostrophes without changing case.

    Uses NFKD decomposition so "café" and "cafe" fold to the same string on
    every platform, independent of locale.
    """
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.translate(_APOSTROPHES)


class RegexTokenizer:
    """Regex-based tokenizer yielding alphanumeric runs (punctuation and underscores split words)."""

    def __init__(self, pattern: str = r"[^\W_]+", flags: int = re.UNICODE) -> None:
        self.pattern = re.compile(pattern, flags)

    def __call__(self, text: str) -> Iterator[Token]:
        for match in self.pattern.finditer(text):
            yield Token(match.group(0))


class LowercaseFilter:
    """Filter that lowercases token text."""

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            if token.text == token.text.lower():
                yield token
            else:
                yield Token(token.text.lower())


class MinLengthFilter:
    """Drops tokens shorter than ``min_length`` characters."""

    def __init__(self, min_length: int = 1) -> None:
        self.min_length = min_length

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            if len(token.text) >= self.min_length:
                yield token


class AnalyzerPipeline:
    """Composable analyzer pipeline (folding + tokenizer + filters)."""

    def __init__(self, tokenizer: Tokenizer, filters: Sequence[TokenFilter] | None = None) -> None:
        self.tokenizer = tokenizer
        self.filters = list(filters or [])

    def __call__(self, text: str) -> list[Token]:
        stream: Iterable[Token] = self.tokenizer(fold_text(text))
        for token_filter in self.filters:
            stream = token_filter(stream)
        return list(stream)


class GuideAnalyzer:
    """Analyzer shared by the index builder and the query path.

    Both sides must tokenize identically, otherwise an exact query would
    miss its own title.
    """

    def __init__(self, *, min_token_length: int = 1) -> None:
        self.pipeline = AnalyzerPipeline(
            RegexTokenizer(),
            [LowercaseFilter(), MinLengthFilter(min_token_length)],
        )

    def __call__(self, text: str) -> list[Token]:
        return self.pipeline(text)


_DEFAULT_ANALYZER = GuideAnalyzer()


def tokenize(text: str | None) -> list[str]:
    """Return the ordered normalized tokens of ``text``. Never raises on any string."""
    if not text:
        return []
    return [token.text for token in _DEFAULT_ANALYZER(text)]
