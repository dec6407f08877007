"""Note query specification and its SQLAlchemy translation.

A search is described by a ``NoteQuerySpec``: visibility scope, structured
filters, optional parsed text query, sort keys and a page window. The spec
holds plain values only; ``select_notes`` / ``count_notes`` translate it into
PostgreSQL statements at the boundary. The logical order is always
scope -> filters -> text match -> sort -> paginate.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from functools import reduce
from typing import NamedTuple

from sqlalchemy import ColumnElement, Float, Select, Text, cast, func, literal_column, null, or_, select

from coachnotes.constants import TEXT_SEARCH_CONFIG, SortField, SortOrder
from coachnotes.models import CoachNote
from coachnotes.search.access_policy import visibility_clause
from coachnotes.search.options import SearchFilters
from coachnotes.search.query_parser import ParsedQuery, parse_search_query

# Sort key field names
SCORE = "search_score"
CREATED_AT = "created_at"
TITLE = "title"
LAST_ACCESSED_AT = "last_accessed_at"

# Sort keys whose column may be NULL. NULL ranks lowest: last when
# descending, first when ascending.
NULLABLE_SORT_FIELDS = frozenset({TITLE, LAST_ACCESSED_AT})


class SortKey(NamedTuple):
    field: str
    descending: bool


@dataclass
class NoteQuerySpec:
    """Store-agnostic description of a note search."""

    user_id: str
    user_role: str
    equals: dict[str, str] = field(default_factory=dict)
    tags: list[str] = field(default_factory=list)
    access_levels: list[str] = field(default_factory=list)
    created_from: datetime | None = None
    created_to: datetime | None = None
    text: ParsedQuery | None = None
    sort: list[SortKey] = field(default_factory=list)
    offset: int = 0
    limit: int = 20

    @property
    def has_text_search(self) -> bool:
        return self.text is not None


def resolve_sort(
    sort_by: SortField | str | None,
    sort_order: SortOrder | str | None,
    has_text_search: bool,
) -> list[SortKey]:
    """Resolve the effective ordering for a search.

    Relevance ignores ``sort_order`` and degrades to newest-first without a
    text query. Title and last-access break ties by newest first.
    Anything unrecognised sorts by creation time.
    """
    descending = sort_order != SortOrder.ASC

    if sort_by == SortField.RELEVANCE:
        if has_text_search:
            return [SortKey(SCORE, True), SortKey(CREATED_AT, True)]
        return [SortKey(CREATED_AT, True)]
    if sort_by == SortField.TITLE:
        return [SortKey(TITLE, descending), SortKey(CREATED_AT, True)]
    if sort_by == SortField.LAST_ACCESS:
        return [SortKey(LAST_ACCESSED_AT, descending), SortKey(CREATED_AT, True)]
    return [SortKey(CREATED_AT, descending)]


def build_query_spec(filters: SearchFilters) -> NoteQuerySpec:
    """Translate a search request into a ``NoteQuerySpec``."""
    options = filters.options

    equals: dict[str, str] = {}
    if options.coach_id:
        equals["coach_id"] = options.coach_id
    if options.session_id:
        equals["session_id"] = options.session_id
    if options.client_id:
        equals["client_id"] = options.client_id

    text: ParsedQuery | None = None
    if options.query and options.query.strip():
        parsed = parse_search_query(options.query)
        if not parsed.is_empty:
            text = parsed

    date_range = options.date_range
    return NoteQuerySpec(
        user_id=filters.user_id,
        user_role=filters.user_role,
        equals=equals,
        tags=list(options.tags or []),
        access_levels=[level.value for level in options.access_level or []],
        created_from=date_range.start if date_range else None,
        created_to=date_range.end if date_range else None,
        text=text,
        sort=resolve_sort(options.sort_by, options.sort_order, text is not None),
        offset=options.offset,
        limit=options.limit,
    )


# ---------------------------------------------------------------------------
# SQLAlchemy translation
# ---------------------------------------------------------------------------


def _config():
    return literal_column(f"'{TEXT_SEARCH_CONFIG}'")


def build_tsquery(parsed: ParsedQuery) -> ColumnElement:
    """Build a tsquery from a parsed query.

    Phrases are AND-ed; without phrases, terms are OR-ed; exclusions are
    AND-NOT-ed onto either. Input is passed through ``unaccent`` so matching
    is diacritic-insensitive (the stored vector is unaccented too).
    """
    cfg = _config()

    def plain(term: str) -> ColumnElement:
        return func.plainto_tsquery(cfg, func.unaccent(term))

    positive: ColumnElement | None = None
    if parsed.phrases:
        positive = reduce(
            func.tsquery_and,
            [func.phraseto_tsquery(cfg, func.unaccent(phrase)) for phrase in parsed.phrases],
        )
    elif parsed.terms:
        positive = reduce(func.tsquery_or, [plain(term) for term in parsed.terms])

    for term in parsed.excluded:
        negated = func.tsquery_not(plain(term))
        positive = negated if positive is None else func.tsquery_and(positive, negated)

    return positive


def _where(spec: NoteQuerySpec, tsquery: ColumnElement | None) -> list[ColumnElement[bool]]:
    clauses: list[ColumnElement[bool]] = []

    scope = visibility_clause(spec.user_id, spec.user_role)
    if scope is not None:
        clauses.append(scope)

    for column_name, value in spec.equals.items():
        clauses.append(getattr(CoachNote, column_name) == value)
    if spec.tags:
        clauses.append(CoachNote.tags.overlap(spec.tags))
    if spec.access_levels:
        clauses.append(CoachNote.access_level.in_(spec.access_levels))
    if spec.created_from is not None:
        clauses.append(CoachNote.created_at >= spec.created_from)
    if spec.created_to is not None:
        clauses.append(CoachNote.created_at <= spec.created_to)

    if tsquery is not None:
        clauses.append(CoachNote.search_vector.op("@@")(tsquery))

    return clauses


def _order_clause(column: ColumnElement, key: SortKey) -> ColumnElement:
    if key.descending:
        clause = column.desc()
        return clause.nulls_last() if key.field in NULLABLE_SORT_FIELDS else clause
    clause = column.asc()
    return clause.nulls_first() if key.field in NULLABLE_SORT_FIELDS else clause


def select_notes(spec: NoteQuerySpec) -> Select:
    """Build the page query: notes plus computed fields, sorted and windowed."""
    tsquery = build_tsquery(spec.text) if spec.text is not None else None

    if tsquery is not None:
        score = func.ts_rank(CoachNote.search_vector, tsquery).label(SCORE)
    else:
        score = cast(null(), Float).label(SCORE)

    has_audio = CoachNote.audio_file_id.isnot(None).label("has_audio")
    tag_count = func.coalesce(func.cardinality(CoachNote.tags), 0).label("tag_count")
    audit_count = func.coalesce(func.jsonb_array_length(CoachNote.audit_trail), 0).label("audit_count")

    sort_columns = {
        SCORE: score,
        CREATED_AT: CoachNote.created_at,
        TITLE: CoachNote.title,
        LAST_ACCESSED_AT: CoachNote.last_accessed_at,
    }
    order_by = [_order_clause(sort_columns[key.field], key) for key in spec.sort]
    # Unique final key keeps page boundaries stable
    order_by.append(CoachNote.id.asc())

    return (
        select(CoachNote, has_audio, tag_count, audit_count, score)
        .where(*_where(spec, tsquery))
        .order_by(*order_by)
        .offset(spec.offset)
        .limit(spec.limit)
    )


def count_notes(spec: NoteQuerySpec) -> Select:
    """Build the total-count query over the full filtered set (no window)."""
    tsquery = build_tsquery(spec.text) if spec.text is not None else None
    return select(func.count()).select_from(CoachNote).where(*_where(spec, tsquery))


def select_suggestion_sources(
    user_id: str,
    user_role: str,
    partial_query: str,
    fetch_limit: int,
) -> Select:
    """Build the autocomplete candidate query.

    Case-insensitive substring match on title, any tag, or body, scoped by
    visibility. LIKE wildcards in the input are escaped.
    """
    # Each tag is tested on its own so a match never spans two tags
    tag = func.unnest(CoachNote.tags, type_=Text).column_valued("tag")
    tag_match = select(tag).where(tag.icontains(partial_query, autoescape=True)).exists()
    match = or_(
        CoachNote.title.icontains(partial_query, autoescape=True),
        tag_match,
        CoachNote.searchable_content.icontains(partial_query, autoescape=True),
    )

    stmt = select(CoachNote.title, CoachNote.tags).where(match)
    scope = visibility_clause(user_id, user_role)
    if scope is not None:
        stmt = stmt.where(scope)

    return stmt.order_by(CoachNote.created_at.desc(), CoachNote.id.asc()).limit(fetch_limit)
