from datetime import datetime
from uuid import uuid4

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, TSVECTOR
from sqlalchemy.orm import Mapped, mapped_column

from coachnotes.constants import NoteAccessLevel
from coachnotes.database import Base


class CoachNote(Base):
    """Private note written by a coach, optionally tied to a session and client.

    Notes are created and edited elsewhere; this service only reads them.
    ``search_vector`` is maintained by a database trigger (see
    ``coachnotes.search.indexer``).
    """

    __tablename__ = "coach_notes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    coach_id: Mapped[str] = mapped_column(String(64), nullable=False)
    session_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    client_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)

    title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    searchable_content: Mapped[str] = mapped_column(Text, default="")
    tags: Mapped[list[str]] = mapped_column(ARRAY(String(100)), default=list, server_default="{}")

    access_level: Mapped[str] = mapped_column(
        String(20), default=NoteAccessLevel.PRIVATE.value, server_default=NoteAccessLevel.PRIVATE.value
    )
    shared_with: Mapped[list[str]] = mapped_column(ARRAY(String(64)), default=list, server_default="{}")

    audio_file_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # Append-only list of {action, user_id, user_role, timestamp, ...}
    audit_trail: Mapped[list | None] = mapped_column(JSONB, default=list)
    access_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    last_accessed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Full-text search vector (title A, tags B, content C)
    search_vector: Mapped[str | None] = mapped_column(TSVECTOR, nullable=True)

    __table_args__ = (
        Index("idx_coach_notes_search_vector", "search_vector", postgresql_using="gin"),
        Index("idx_coach_notes_tags", "tags", postgresql_using="gin"),
        Index("idx_coach_notes_shared_with", "shared_with", postgresql_using="gin"),
        Index("idx_coach_notes_coach_created", "coach_id", "created_at"),
        Index("idx_coach_notes_access_created", "access_level", "created_at"),
        Index("idx_coach_notes_last_accessed", "last_accessed_at"),
        CheckConstraint(
            "access_level IN ('private', 'client', 'team', 'supervisor', 'organization')",
            name="ck_coach_notes_access_level",
        ),
    )
