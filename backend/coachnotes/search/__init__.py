"""Search package for access-scoped full-text search over coach notes."""

from coachnotes.search.engine import (
    CoachNoteSearchService,
    NoteHit,
    SearchMetadata,
    SearchResult,
    SearchTimeoutError,
    TagCount,
)
from coachnotes.search.options import DateRange, SearchFilters, SearchOptions

__all__ = [
    "CoachNoteSearchService",
    "DateRange",
    "NoteHit",
    "SearchFilters",
    "SearchMetadata",
    "SearchOptions",
    "SearchResult",
    "SearchTimeoutError",
    "TagCount",
]
