# @TEST tests/test_indexer.py

"""Maintenance of the coach note full-text search vector.

``coach_notes.search_vector`` is computed by a BEFORE INSERT/UPDATE trigger:

- title   -> weight A
- tags    -> weight B
- content -> weight C

Text is passed through ``unaccent`` before ``to_tsvector('simple', ...)``,
which also lowercases, so stored tokens are case- and diacritic-free.
Queries apply the same ``unaccent`` (see ``query_builder.build_tsquery``).
"""

from __future__ import annotations

import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncSession

from coachnotes.constants import TEXT_SEARCH_CONFIG

logger = logging.getLogger(__name__)

CREATE_UNACCENT_SQL = "CREATE EXTENSION IF NOT EXISTS unaccent"

CREATE_SEARCH_VECTOR_FUNCTION_SQL = f"""
CREATE OR REPLACE FUNCTION coach_notes_search_vector_update()
RETURNS TRIGGER AS $$
BEGIN
    NEW.search_vector :=
        setweight(to_tsvector('{TEXT_SEARCH_CONFIG}', unaccent(coalesce(NEW.title, ''))), 'A') ||
        setweight(to_tsvector('{TEXT_SEARCH_CONFIG}',
            unaccent(array_to_string(coalesce(NEW.tags, '{{}}'::varchar[]), ' '))), 'B') ||
        setweight(to_tsvector('{TEXT_SEARCH_CONFIG}', unaccent(coalesce(NEW.searchable_content, ''))), 'C');
    RETURN NEW;
END;
$$ LANGUAGE plpgsql;
"""

DROP_SEARCH_VECTOR_TRIGGER_SQL = "DROP TRIGGER IF EXISTS coach_notes_search_vector_trigger ON coach_notes"

CREATE_SEARCH_VECTOR_TRIGGER_SQL = """
CREATE TRIGGER coach_notes_search_vector_trigger
BEFORE INSERT OR UPDATE OF title, tags, searchable_content ON coach_notes
FOR EACH ROW EXECUTE FUNCTION coach_notes_search_vector_update()
"""

DROP_SEARCH_VECTOR_FUNCTION_SQL = "DROP FUNCTION IF EXISTS coach_notes_search_vector_update()"

# Touching an indexed column fires the trigger for every row
REBUILD_SEARCH_VECTORS_SQL = "UPDATE coach_notes SET title = title"

INSTALL_STATEMENTS: tuple[str, ...] = (
    CREATE_UNACCENT_SQL,
    CREATE_SEARCH_VECTOR_FUNCTION_SQL,
    DROP_SEARCH_VECTOR_TRIGGER_SQL,
    CREATE_SEARCH_VECTOR_TRIGGER_SQL,
)


async def install_search_triggers(conn: AsyncConnection) -> None:
    """Create the unaccent extension and the search_vector trigger (idempotent)."""
    for statement in INSTALL_STATEMENTS:
        await conn.execute(text(statement))
    logger.info("Search vector trigger installed on coach_notes")


async def rebuild_search_vectors(session: AsyncSession) -> int:
    """Recompute search_vector for every note.

    Needed after changing the trigger definition. Returns the number of
    rows touched.
    """
    result = await session.execute(text(REBUILD_SEARCH_VECTORS_SQL))
    await session.commit()
    count = result.rowcount or 0
    logger.info("Rebuilt search vectors for %d coach notes", count)
    return count
