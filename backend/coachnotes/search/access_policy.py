from __future__ import annotations

from sqlalchemy import ColumnElement, or_

from coachnotes.constants import NoteAccessLevel, UserRole
from coachnotes.models import CoachNote

# Access levels a role may read on notes it neither owns nor was shared on.
# Roles missing from the table get nothing beyond their own and shared notes.
ROLE_ACCESS_LEVELS: dict[str, frozenset[NoteAccessLevel]] = {
    UserRole.ADMIN: frozenset(NoteAccessLevel),
    UserRole.SUPERVISOR: frozenset(
        {NoteAccessLevel.SUPERVISOR, NoteAccessLevel.TEAM, NoteAccessLevel.ORGANIZATION}
    ),
    UserRole.COACH: frozenset({NoteAccessLevel.TEAM, NoteAccessLevel.ORGANIZATION}),
}

# Roles that bypass visibility scoping entirely.
UNRESTRICTED_ROLES: frozenset[str] = frozenset({UserRole.ADMIN})


def allowed_access_levels(role: str) -> frozenset[NoteAccessLevel]:
    return ROLE_ACCESS_LEVELS.get(role, frozenset())


def visibility_clause(user_id: str, role: str) -> ColumnElement[bool] | None:
    """Build the SQL predicate restricting notes to those the caller may see.

    Returns None for unrestricted roles (no predicate needed).
    """
    if role in UNRESTRICTED_ROLES:
        return None

    conditions: list[ColumnElement[bool]] = [
        CoachNote.coach_id == user_id,
        CoachNote.shared_with.contains([user_id]),
    ]
    levels = allowed_access_levels(role)
    if levels:
        conditions.append(CoachNote.access_level.in_(sorted(level.value for level in levels)))

    return or_(*conditions)
