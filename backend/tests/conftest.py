import os
from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

# Set test environment variables before importing coachnotes modules
os.environ.setdefault("DATABASE_URL", "postgresql+asyncpg://coachnotes:coachnotes@db:5432/coachnotes_test")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-testing-only")


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


def make_auth_headers(user_id: str = "coach1", role: str = "coach") -> dict[str, str]:
    """Create Authorization headers with a valid access token."""
    from coachnotes.services.auth_service import create_access_token

    token = create_access_token(data={"sub": user_id, "user_id": user_id, "role": role})
    return {"Authorization": f"Bearer {token}"}


def make_note(**overrides) -> SimpleNamespace:
    """Build a stand-in for a CoachNote row object."""
    fields = {
        "id": "note-1",
        "coach_id": "coach1",
        "session_id": None,
        "client_id": None,
        "title": "Session plan",
        "searchable_content": "goals for next session",
        "tags": ["x"],
        "access_level": "private",
        "shared_with": [],
        "audio_file_id": None,
        "access_count": 0,
        "last_accessed_at": None,
        "created_at": datetime(2026, 1, 1, tzinfo=UTC),
        "updated_at": datetime(2026, 1, 1, tzinfo=UTC),
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


def make_hit_row(note: SimpleNamespace, *, score: float | None = None, audit_count: int = 0):
    """Build a mock result row as returned by the note page query."""
    row = MagicMock()
    row.CoachNote = note
    row.has_audio = note.audio_file_id is not None
    row.tag_count = len(note.tags or [])
    row.audit_count = audit_count
    row.search_score = score
    return row


def make_search_session(rows: list | None = None, total: int = 0):
    """Build a mock AsyncSession answering the page query then the count query."""
    page_result = MagicMock()
    page_result.fetchall.return_value = rows if rows is not None else []
    count_result = MagicMock()
    count_result.scalar_one.return_value = total

    session = AsyncMock()
    session.execute = AsyncMock(side_effect=[page_result, count_result])
    return session
