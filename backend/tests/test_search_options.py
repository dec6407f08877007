from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from coachnotes.constants import NoteAccessLevel, SortField, SortOrder
from coachnotes.search.options import DateRange, SearchOptions


class TestPaginationClamping:
    def test_defaults(self):
        options = SearchOptions()

        assert options.page == 1
        assert options.limit == 20
        assert options.offset == 0
        assert options.sort_by is None
        assert options.sort_order == SortOrder.DESC

    @pytest.mark.parametrize(("page", "expected"), [(0, 1), (-5, 1), (None, 1), (3, 3)])
    def test_page_clamped(self, page, expected):
        assert SearchOptions(page=page).page == expected

    @pytest.mark.parametrize(("limit", "expected"), [(0, 1), (-1, 1), (101, 100), (5000, 100), (None, 20), (50, 50)])
    def test_limit_clamped(self, limit, expected):
        assert SearchOptions(limit=limit).limit == expected

    def test_offset(self):
        assert SearchOptions(page=3, limit=25).offset == 50


class TestAliases:
    def test_camel_case_input(self):
        options = SearchOptions.model_validate(
            {
                "query": "goals",
                "accessLevel": ["team"],
                "dateRange": {"start": "2026-01-01T00:00:00+00:00"},
                "coachId": "c1",
                "sessionId": "s1",
                "clientId": "cl1",
                "sortBy": "lastAccess",
                "sortOrder": "asc",
            }
        )

        assert options.access_level == [NoteAccessLevel.TEAM]
        assert options.date_range.start == datetime(2026, 1, 1, tzinfo=UTC)
        assert options.date_range.end is None
        assert options.coach_id == "c1"
        assert options.session_id == "s1"
        assert options.client_id == "cl1"
        assert options.sort_by == SortField.LAST_ACCESS
        assert options.sort_order == SortOrder.ASC

    def test_unknown_access_level_rejected(self):
        with pytest.raises(ValidationError):
            SearchOptions(access_level=["public"])

    def test_null_sort_order_defaults_to_desc(self):
        assert SearchOptions(sort_order=None).sort_order == SortOrder.DESC


class TestEchoedFilters:
    def test_echo_uses_json_names(self):
        options = SearchOptions(
            query="ignored in echo",
            tags=["a", "b"],
            access_level=[NoteAccessLevel.ORGANIZATION],
            date_range=DateRange(end=datetime(2026, 2, 1, tzinfo=UTC)),
            coach_id="c1",
        )

        echoed = options.echoed_filters()

        assert echoed == {
            "tags": ["a", "b"],
            "accessLevel": ["organization"],
            "dateRange": {"start": None, "end": "2026-02-01T00:00:00Z"},
            "coachId": "c1",
            "clientId": None,
            "sessionId": None,
        }

