# @TEST tests/test_indexer.py

"""Tests for search_vector trigger maintenance.

All connection and session calls are mocked; the SQL text itself is checked
for the weighting and normalisation the search queries rely on.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from coachnotes.search.indexer import (
    CREATE_SEARCH_VECTOR_FUNCTION_SQL,
    CREATE_SEARCH_VECTOR_TRIGGER_SQL,
    CREATE_UNACCENT_SQL,
    INSTALL_STATEMENTS,
    install_search_triggers,
    rebuild_search_vectors,
)

# ---------------------------------------------------------------------------
# 1. Trigger SQL
# ---------------------------------------------------------------------------


class TestTriggerSql:
    def test_field_weights(self):
        sql = CREATE_SEARCH_VECTOR_FUNCTION_SQL

        assert "unaccent(coalesce(NEW.title, ''))), 'A')" in sql
        assert "array_to_string(coalesce(NEW.tags, '{}'::varchar[]), ' '))), 'B')" in sql
        assert "unaccent(coalesce(NEW.searchable_content, ''))), 'C')" in sql

    def test_uses_simple_config(self):
        assert CREATE_SEARCH_VECTOR_FUNCTION_SQL.count("to_tsvector('simple'") == 3

    def test_trigger_fires_on_indexed_columns_only(self):
        assert "BEFORE INSERT OR UPDATE OF title, tags, searchable_content ON coach_notes" in (
            CREATE_SEARCH_VECTOR_TRIGGER_SQL
        )

    def test_unaccent_installed_first(self):
        assert INSTALL_STATEMENTS[0] == CREATE_UNACCENT_SQL
        assert INSTALL_STATEMENTS[-1] == CREATE_SEARCH_VECTOR_TRIGGER_SQL


# ---------------------------------------------------------------------------
# 2. Install / rebuild
# ---------------------------------------------------------------------------


class TestInstall:
    @pytest.mark.asyncio
    async def test_executes_every_statement(self):
        conn = AsyncMock()

        await install_search_triggers(conn)

        assert conn.execute.await_count == len(INSTALL_STATEMENTS)
        executed = [str(call.args[0]) for call in conn.execute.await_args_list]
        assert executed == list(INSTALL_STATEMENTS)

    @pytest.mark.asyncio
    async def test_error_propagates(self):
        conn = AsyncMock()
        conn.execute = AsyncMock(side_effect=RuntimeError("permission denied"))

        with pytest.raises(RuntimeError):
            await install_search_triggers(conn)


class TestRebuild:
    @pytest.mark.asyncio
    async def test_returns_rowcount_and_commits(self):
        result = MagicMock()
        result.rowcount = 12
        session = AsyncMock()
        session.execute = AsyncMock(return_value=result)

        count = await rebuild_search_vectors(session)

        assert count == 12
        session.commit.assert_awaited_once()
        assert "UPDATE coach_notes" in str(session.execute.call_args[0][0])

    @pytest.mark.asyncio
    async def test_unknown_rowcount_is_zero(self):
        result = MagicMock()
        result.rowcount = None
        session = AsyncMock()
        session.execute = AsyncMock(return_value=result)

        assert await rebuild_search_vectors(session) == 0
