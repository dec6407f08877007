"""Create coach_notes with weighted, unaccented full-text search.

Revision ID: 001_coach_notes
Revises: None
Create Date: 2026-10-18 09:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

from coachnotes.search.indexer import (
    CREATE_SEARCH_VECTOR_FUNCTION_SQL,
    CREATE_SEARCH_VECTOR_TRIGGER_SQL,
    CREATE_UNACCENT_SQL,
    DROP_SEARCH_VECTOR_FUNCTION_SQL,
    DROP_SEARCH_VECTOR_TRIGGER_SQL,
)

# revision identifiers, used by Alembic.
revision: str = "001_coach_notes"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Apply schema migrations."""
    op.execute(CREATE_UNACCENT_SQL)

    op.create_table(
        "coach_notes",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("coach_id", sa.String(64), nullable=False),
        sa.Column("session_id", sa.String(64), nullable=True),
        sa.Column("client_id", sa.String(64), nullable=True),
        sa.Column("title", sa.String(500), nullable=True),
        sa.Column("searchable_content", sa.Text, nullable=False, server_default=""),
        sa.Column("tags", postgresql.ARRAY(sa.String(100)), nullable=False, server_default="{}"),
        sa.Column("access_level", sa.String(20), nullable=False, server_default="private"),
        sa.Column("shared_with", postgresql.ARRAY(sa.String(64)), nullable=False, server_default="{}"),
        sa.Column("audio_file_id", sa.String(64), nullable=True),
        sa.Column("audit_trail", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("access_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("last_accessed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("search_vector", postgresql.TSVECTOR, nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "access_level IN ('private', 'client', 'team', 'supervisor', 'organization')",
            name="ck_coach_notes_access_level",
        ),
    )

    op.create_index("ix_coach_notes_session_id", "coach_notes", ["session_id"])
    op.create_index("ix_coach_notes_client_id", "coach_notes", ["client_id"])
    op.create_index("idx_coach_notes_search_vector", "coach_notes", ["search_vector"], postgresql_using="gin")
    op.create_index("idx_coach_notes_tags", "coach_notes", ["tags"], postgresql_using="gin")
    op.create_index("idx_coach_notes_shared_with", "coach_notes", ["shared_with"], postgresql_using="gin")
    op.create_index("idx_coach_notes_coach_created", "coach_notes", ["coach_id", "created_at"])
    op.create_index("idx_coach_notes_access_created", "coach_notes", ["access_level", "created_at"])
    op.create_index("idx_coach_notes_last_accessed", "coach_notes", ["last_accessed_at"])

    op.execute(CREATE_SEARCH_VECTOR_FUNCTION_SQL)
    op.execute(CREATE_SEARCH_VECTOR_TRIGGER_SQL)


def downgrade() -> None:
    """Revert schema migrations."""
    op.execute(DROP_SEARCH_VECTOR_TRIGGER_SQL)
    op.execute(DROP_SEARCH_VECTOR_FUNCTION_SQL)
    op.drop_table("coach_notes")
