"""Search query parser for coach note full-text search.

Splits raw query text into quoted phrases, plain terms and ``-word``
exclusions. The parsed form is store-agnostic; ``query_builder`` turns it
into a PostgreSQL tsquery.

Matching rules applied downstream:

- With one or more phrases, a note must contain every phrase; plain terms
  then only influence relevance.
- Without phrases, a note must contain any of the plain terms.
- A note containing any excluded term never matches.
"""

from __future__ import annotations

import re
import unicodedata
from typing import NamedTuple


class ParsedQuery(NamedTuple):
    """Result of parsing a search query.

    Attributes:
        original: The query string as received.
        phrases: Quoted phrases, verbatim (quotes removed).
        terms: Plain whitespace-separated terms.
        excluded: Terms given with a leading ``-``.
        normalized: Canonical rendering of the parsed query.
    """

    original: str
    phrases: list[str]
    terms: list[str]
    excluded: list[str]
    normalized: str

    @property
    def is_empty(self) -> bool:
        return not (self.phrases or self.terms or self.excluded)


_PHRASE_RE = re.compile(r'"([^"]*)"')
_WORD_CHAR_RE = re.compile(r"[^\W_]")


def _dedupe(items: list[str]) -> list[str]:
    """Drop repeated items, keeping first-seen order."""
    seen: set[str] = set()
    unique: list[str] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            unique.append(item)
    return unique


def _has_word(token: str) -> bool:
    return bool(_WORD_CHAR_RE.search(token))


def _render(phrases: list[str], terms: list[str], excluded: list[str]) -> str:
    parts = [f'"{p}"' for p in phrases] + terms + [f"-{t}" for t in excluded]
    return " ".join(parts)


def parse_search_query(query: str | None) -> ParsedQuery:
    """Parse a raw search query into phrases, terms and exclusions.

    Args:
        query: Raw query text, e.g. ``'"session plan" goals -draft'``.

    Returns:
        ParsedQuery. ``is_empty`` is True when nothing searchable remains
        (blank input, ``""``, punctuation only), in which case no text
        constraint should be applied.
    """
    original = query or ""
    text = unicodedata.normalize("NFC", original).strip()
    if not text:
        return ParsedQuery(original=original, phrases=[], terms=[], excluded=[], normalized="")

    phrases = [" ".join(p.split()) for p in _PHRASE_RE.findall(text)]
    phrases = _dedupe([p for p in phrases if _has_word(p)])

    # Whatever is outside quotes; an unmatched quote is just noise
    remainder = _PHRASE_RE.sub(" ", text).replace('"', " ")

    terms: list[str] = []
    excluded: list[str] = []
    for token in remainder.split():
        if token.startswith("-") and len(token) > 1:
            word = token[1:]
            if _has_word(word):
                excluded.append(word)
        elif _has_word(token):
            terms.append(token)

    terms = _dedupe(terms)
    excluded = _dedupe(excluded)

    return ParsedQuery(
        original=original,
        phrases=phrases,
        terms=terms,
        excluded=excluded,
        normalized=_render(phrases, terms, excluded),
    )
