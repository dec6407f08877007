# @TEST tests/test_api_search.py

"""Coach note search API.

Provides:
- ``GET /coach-notes/search`` -- Filtered, access-scoped full-text search.
- ``GET /coach-notes/search/suggestions`` -- Autocomplete suggestions.
- ``GET /coach-notes/tags/popular`` -- Popular tags (placeholder, always empty).
- ``POST /coach-notes/search/reindex`` -- Rebuild search vectors (admin only).

All endpoints require JWT Bearer authentication. The caller's ``user_id``
and ``role`` come from the token and drive visibility scoping.
"""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from coachnotes.config import get_settings
from coachnotes.constants import NoteAccessLevel, SortField, SortOrder, UserRole
from coachnotes.database import get_db
from coachnotes.search.engine import (
    CoachNoteSearchService,
    SearchResult,
    SearchTimeoutError,
    TagCount,
)
from coachnotes.search.indexer import rebuild_search_vectors
from coachnotes.search.options import DateRange, SearchFilters, SearchOptions
from coachnotes.services.auth_service import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/coach-notes", tags=["search"])


class SuggestionResponse(BaseModel):
    """Search suggestion (autocomplete) response."""

    suggestions: list[str]


class PopularTagsResponse(BaseModel):
    tags: list[TagCount]


class ReindexResponse(BaseModel):
    rebuilt: int


async def require_admin(
    current_user: dict = Depends(get_current_user),  # noqa: B008
) -> dict:
    """Dependency that requires the admin role."""
    if current_user["role"] != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user


def _build_search_service(session: AsyncSession) -> CoachNoteSearchService:
    """Create a CoachNoteSearchService for the request.

    Extracted as a function to allow easy mocking in tests.
    """
    return CoachNoteSearchService(session=session, timeout=get_settings().search_timeout)


def _parse_date(date_str: str | None) -> datetime | None:
    """Parse an ISO 8601 date or datetime string, or None if absent/invalid."""
    if not date_str:
        return None
    try:
        return datetime.fromisoformat(date_str)
    except ValueError:
        logger.debug("Ignoring unparseable date filter: %r", date_str)
        return None


def _parse_int(value: str | None) -> int | None:
    """Parse an integer query value, or None if absent/invalid (the default applies)."""
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        logger.debug("Ignoring non-numeric pagination value: %r", value)
        return None


@router.get("/search", response_model=SearchResult)
async def search_coach_notes(
    query: str | None = Query(None, description="Search text; supports \"phrases\" and -exclusions"),  # noqa: B008
    tags: list[str] | None = Query(None, description="Match notes having any of these tags"),  # noqa: B008
    access_level: list[NoteAccessLevel] | None = Query(None, alias="accessLevel"),  # noqa: B008
    date_start: str | None = Query(None, alias="dateStart", description="Created on/after (ISO 8601)"),  # noqa: B008
    date_end: str | None = Query(None, alias="dateEnd", description="Created on/before (ISO 8601)"),  # noqa: B008
    coach_id: str | None = Query(None, alias="coachId"),  # noqa: B008
    client_id: str | None = Query(None, alias="clientId"),  # noqa: B008
    session_id: str | None = Query(None, alias="sessionId"),  # noqa: B008
    page: str | None = Query(None, description="Page number; values below 1 are clamped"),  # noqa: B008
    limit: str | None = Query(None, description="Page size; clamped to 1-100, default 20"),  # noqa: B008
    sort_by: SortField = Query(SortField.RELEVANCE, alias="sortBy"),  # noqa: B008
    sort_order: SortOrder = Query(SortOrder.DESC, alias="sortOrder"),  # noqa: B008
    current_user: dict = Depends(get_current_user),  # noqa: B008
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> SearchResult:
    """Search coach notes visible to the current user.

    Returns one page of notes plus the total count over the full filtered
    set. An empty page is a normal response.
    """
    user_id = current_user["user_id"]
    role = current_user["role"]

    start = _parse_date(date_start)
    end = _parse_date(date_end)
    options = SearchOptions(
        query=query,
        tags=tags,
        access_level=access_level,
        date_range=DateRange(start=start, end=end) if (start or end) else None,
        coach_id=coach_id,
        client_id=client_id,
        session_id=session_id,
        page=_parse_int(page),
        limit=_parse_int(limit),
        sort_by=sort_by,
        sort_order=sort_order,
    )

    logger.info(
        "Coach note search: user=%s, role=%s, query=%r, page=%d, limit=%d, sort=%s %s",
        user_id,
        role,
        query,
        options.page,
        options.limit,
        sort_by.value,
        sort_order.value,
    )

    service = _build_search_service(db)
    try:
        return await service.search_notes(SearchFilters(user_id=user_id, user_role=role, options=options))
    except SearchTimeoutError:
        logger.warning("Coach note search timed out: user=%s, query=%r", user_id, query)
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail="Search timed out",
        ) from None
    except SQLAlchemyError:
        logger.exception("Error searching coach notes")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to search coach notes",
        ) from None


@router.get("/search/suggestions", response_model=SuggestionResponse)
async def search_suggestions(
    query: str | None = Query(None, max_length=200, description="Partial query (min 2 characters)"),  # noqa: B008
    limit: int | None = Query(None, ge=1, le=50, description="Maximum suggestions"),  # noqa: B008
    current_user: dict = Depends(get_current_user),  # noqa: B008
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> SuggestionResponse:
    """Get autocomplete suggestions from titles and tags of visible notes."""
    if not query:
        return SuggestionResponse(suggestions=[])

    service = _build_search_service(db)
    try:
        suggestions = await service.get_search_suggestions(
            current_user["user_id"],
            current_user["role"],
            query,
            limit or get_settings().SUGGESTION_DEFAULT_LIMIT,
        )
    except SearchTimeoutError:
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail="Suggestion lookup timed out",
        ) from None
    except SQLAlchemyError:
        logger.exception("Error getting search suggestions")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get search suggestions",
        ) from None

    return SuggestionResponse(suggestions=suggestions)


@router.get("/tags/popular", response_model=PopularTagsResponse)
async def popular_tags(
    limit: int | None = Query(None, ge=1, le=100, description="Maximum tags"),  # noqa: B008
    current_user: dict = Depends(get_current_user),  # noqa: B008
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> PopularTagsResponse:
    """Get the most used tags. Not implemented yet: always an empty list."""
    service = _build_search_service(db)
    tags = await service.get_popular_tags(
        current_user["user_id"],
        current_user["role"],
        limit or get_settings().POPULAR_TAGS_DEFAULT_LIMIT,
    )
    return PopularTagsResponse(tags=tags)


@router.post("/search/reindex", response_model=ReindexResponse)
async def reindex_search_vectors(
    admin: dict = Depends(require_admin),  # noqa: B008
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> ReindexResponse:
    """Recompute search_vector for every note (admin only).

    Run after changing the search_vector trigger definition.
    """
    logger.info("Search vector rebuild requested by %s", admin["user_id"])
    try:
        rebuilt = await rebuild_search_vectors(db)
    except SQLAlchemyError:
        logger.exception("Error rebuilding search vectors")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to rebuild search vectors",
        ) from None
    return ReindexResponse(rebuilt=rebuilt)
