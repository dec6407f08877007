from enum import StrEnum


class NoteAccessLevel(StrEnum):
    PRIVATE = "private"
    CLIENT = "client"
    TEAM = "team"
    SUPERVISOR = "supervisor"
    ORGANIZATION = "organization"


class UserRole(StrEnum):
    ADMIN = "admin"
    SUPERVISOR = "supervisor"
    COACH = "coach"
    CLIENT = "client"


class SortField(StrEnum):
    RELEVANCE = "relevance"
    DATE = "date"
    TITLE = "title"
    LAST_ACCESS = "lastAccess"


class SortOrder(StrEnum):
    ASC = "asc"
    DESC = "desc"


# Pagination
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# Suggestions
MIN_SUGGESTION_QUERY_LENGTH = 2

# PostgreSQL text search configuration. 'simple' lowercases without stemming,
# so coach vocabulary and names are matched as typed.
TEXT_SEARCH_CONFIG = "simple"
