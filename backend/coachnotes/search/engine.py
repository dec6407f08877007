# @TEST tests/test_search_engine.py

"""Coach note search service.

Runs access-scoped, filtered, full-text searches over coach notes using
PostgreSQL tsvector matching with ts_rank relevance, plus title/tag/body
autocomplete suggestions. The service holds no state beyond the request's
session; every call issues its own queries.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import Awaitable
from datetime import datetime
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession

from coachnotes.constants import MIN_SUGGESTION_QUERY_LENGTH
from coachnotes.search.options import SearchFilters
from coachnotes.search.query_builder import (
    NoteQuerySpec,
    build_query_spec,
    count_notes,
    select_notes,
    select_suggestion_sources,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SearchTimeoutError(Exception):
    """Raised when a search does not finish within its deadline."""


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NoteHit(_CamelModel):
    """A note as returned by search, with computed informational fields.

    The raw audit trail is not returned; only its length.
    """

    id: str
    coach_id: str
    session_id: str | None = None
    client_id: str | None = None
    title: str | None = None
    searchable_content: str = ""
    tags: list[str] = []
    access_level: str
    shared_with: list[str] = []
    audio_file_id: str | None = None
    access_count: int = 0
    last_accessed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    has_audio: bool = False
    tag_count: int = 0
    audit_count: int = 0
    search_score: float | None = None


class SearchMetadata(_CamelModel):
    query: str | None = None
    execution_time: float  # milliseconds
    filters: dict[str, Any] = {}


class SearchResult(_CamelModel):
    """One page of search results with totals over the full filtered set."""

    notes: list[NoteHit]
    total_count: int
    page: int
    total_pages: int
    search_metadata: SearchMetadata


class TagCount(_CamelModel):
    tag: str
    count: int


def _row_to_hit(row: Any) -> NoteHit:
    note = row.CoachNote
    score = row.search_score
    return NoteHit(
        id=note.id,
        coach_id=note.coach_id,
        session_id=note.session_id,
        client_id=note.client_id,
        title=note.title,
        searchable_content=note.searchable_content or "",
        tags=list(note.tags or []),
        access_level=note.access_level,
        shared_with=list(note.shared_with or []),
        audio_file_id=note.audio_file_id,
        access_count=note.access_count or 0,
        last_accessed_at=note.last_accessed_at,
        created_at=note.created_at,
        updated_at=note.updated_at,
        has_audio=bool(row.has_audio),
        tag_count=int(row.tag_count or 0),
        audit_count=int(row.audit_count or 0),
        search_score=float(score) if score is not None else None,
    )


def _suggestion_text(title: str | None, tags: list[str] | None) -> str:
    """Title followed by the space-joined tags."""
    return f"{title or ''} {' '.join(tags or [])}".strip()


class CoachNoteSearchService:
    """Search over coach notes bound to one database session.

    Args:
        session: An async SQLAlchemy session for database queries.
        timeout: Default deadline in seconds for each operation, or None
            for no deadline. Cancelling the awaiting task cancels the
            in-flight query as well.
    """

    def __init__(self, session: AsyncSession, timeout: float | None = None) -> None:
        self._session = session
        self._timeout = timeout

    async def _with_deadline(self, awaitable: Awaitable[T], timeout: float | None) -> T:
        effective = timeout if timeout is not None else self._timeout
        if effective is None:
            return await awaitable
        try:
            return await asyncio.wait_for(awaitable, timeout=effective)
        except TimeoutError as exc:
            raise SearchTimeoutError(f"Search did not complete within {effective:g}s") from exc

    async def _fetch_page(self, spec: NoteQuerySpec) -> tuple[list[Any], int]:
        rows = (await self._session.execute(select_notes(spec))).fetchall()
        total = (await self._session.execute(count_notes(spec))).scalar_one()
        return rows, int(total or 0)

    async def search_notes(
        self,
        filters: SearchFilters,
        *,
        timeout: float | None = None,
    ) -> SearchResult:
        """Search notes visible to the caller.

        Applies visibility scoping, structured filters and (when the query
        text is non-empty after parsing) full-text matching, then sorts and
        returns one page. ``total_count`` always covers the full filtered
        set, so it does not depend on ``page`` or ``limit``. Zero matches is
        a normal result.

        Raises:
            SearchTimeoutError: If the queries exceed the deadline.
            sqlalchemy.exc.SQLAlchemyError: Store failures propagate as-is.
        """
        started = time.perf_counter()
        options = filters.options
        spec = build_query_spec(filters)

        rows, total_count = await self._with_deadline(self._fetch_page(spec), timeout)

        notes = [_row_to_hit(row) for row in rows]
        total_pages = math.ceil(total_count / options.limit)
        execution_time = (time.perf_counter() - started) * 1000

        logger.debug(
            "Note search: user=%s role=%s text=%s returned=%d total=%d page=%d/%d in %.1fms",
            filters.user_id,
            filters.user_role,
            spec.has_text_search,
            len(notes),
            total_count,
            options.page,
            total_pages,
            execution_time,
        )

        return SearchResult(
            notes=notes,
            total_count=total_count,
            page=options.page,
            total_pages=total_pages,
            search_metadata=SearchMetadata(
                query=options.query,
                execution_time=round(execution_time, 3),
                filters=options.echoed_filters(),
            ),
        )

    async def get_search_suggestions(
        self,
        user_id: str,
        user_role: str,
        partial_query: str | None,
        limit: int = 10,
        *,
        timeout: float | None = None,
    ) -> list[str]:
        """Return distinct autocomplete suggestions for a partial query.

        Each suggestion is a matching note's title followed by its tags.
        Queries shorter than two characters return ``[]`` without touching
        the database. Order is retrieval order (newest notes first).
        """
        partial = (partial_query or "").strip()
        if len(partial) < MIN_SUGGESTION_QUERY_LENGTH or limit < 1:
            return []

        # Over-fetch so duplicates still leave enough distinct entries
        stmt = select_suggestion_sources(user_id, user_role, partial, limit * 2)
        result = await self._with_deadline(self._session.execute(stmt), timeout)

        suggestions: list[str] = []
        seen: set[str] = set()
        for row in result.fetchall():
            text = _suggestion_text(row.title, row.tags)
            if text and text not in seen:
                seen.add(text)
                suggestions.append(text)
                if len(suggestions) >= limit:
                    break
        return suggestions

    async def get_popular_tags(
        self,
        user_id: str,
        user_role: str,
        limit: int = 20,
    ) -> list[TagCount]:
        """Placeholder: always returns an empty list.

        How tags should be counted and ranked (per caller visibility, time
        window, ties) is not decided, so no aggregation is run.
        """
        logger.warning(
            "get_popular_tags is not implemented; returning no tags (user=%s, role=%s, limit=%d)",
            user_id,
            user_role,
            limit,
        )
        return []
