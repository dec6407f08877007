"""Search request models.

``SearchOptions`` mirrors the JSON search interface (camelCase aliases are
accepted alongside snake_case names). Out-of-range pagination is clamped
rather than rejected.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from coachnotes.constants import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    NoteAccessLevel,
    SortField,
    SortOrder,
)

# Fields echoed back in search metadata
_ECHOED_FILTERS = {"tags", "access_level", "date_range", "coach_id", "client_id", "session_id"}


class DateRange(BaseModel):
    """Inclusive creation-time bounds; either end may be open."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    start: datetime | None = None
    end: datetime | None = None


class SearchOptions(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    query: str | None = None
    tags: list[str] | None = None
    access_level: list[NoteAccessLevel] | None = None
    date_range: DateRange | None = None
    coach_id: str | None = None
    client_id: str | None = None
    session_id: str | None = None
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    sort_by: SortField | None = None
    sort_order: SortOrder = SortOrder.DESC

    @field_validator("page", mode="before")
    @classmethod
    def _default_page(cls, value: Any) -> Any:
        return 1 if value is None else value

    @field_validator("page")
    @classmethod
    def _clamp_page(cls, value: int) -> int:
        return max(1, value)

    @field_validator("limit", mode="before")
    @classmethod
    def _default_limit(cls, value: Any) -> Any:
        return DEFAULT_PAGE_SIZE if value is None else value

    @field_validator("limit")
    @classmethod
    def _clamp_limit(cls, value: int) -> int:
        return min(MAX_PAGE_SIZE, max(1, value))

    @field_validator("sort_order", mode="before")
    @classmethod
    def _default_sort_order(cls, value: Any) -> Any:
        return SortOrder.DESC if value is None else value

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def echoed_filters(self) -> dict[str, Any]:
        """Return the filter fields as they appear in the JSON interface."""
        return self.model_dump(mode="json", by_alias=True, include=_ECHOED_FILTERS)


@dataclass
class SearchFilters:
    """A search request: caller identity plus options.

    ``user_id`` and ``user_role`` are trusted as supplied by the
    authenticated HTTP layer.
    """

    user_id: str
    user_role: str
    options: SearchOptions
