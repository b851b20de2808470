"""Read-only policy checks applied before any statement reaches the upstream.

These are keyword denylists, not a SQL parser. They catch the obvious
mutating statements but cannot see through comments, keyword obfuscation or
stacked statements, so they are a best-effort guard and no substitute for a
database role that only holds read privileges.
"""

from __future__ import annotations

import re

FORBIDDEN_SQL_KEYWORDS: tuple[str, ...] = (
    "INSERT",
    "UPDATE",
    "DELETE",
    "DROP",
    "TRUNCATE",
    "ALTER",
    "CREATE",
    "GRANT",
    "REVOKE",
    "COMMIT",
    "ROLLBACK",
)

FORBIDDEN_IDENTIFIER_KEYWORDS: tuple[str, ...] = (
    "SELECT",
    "INSERT",
    "UPDATE",
    "DELETE",
    "DROP",
    "CREATE",
    "ALTER",
)

_IDENTIFIER_PATTERN = re.compile(r"[A-Za-z0-9_.]+")
# database.schema.table
MAX_IDENTIFIER_PARTS = 3


def _keyword_pattern(keywords: tuple[str, ...]) -> re.Pattern[str]:
    return re.compile(r"\b(" + "|".join(keywords) + r")\b", re.IGNORECASE)


_SQL_DENYLIST = _keyword_pattern(FORBIDDEN_SQL_KEYWORDS)
# Dots are non-word characters, so `db.drop.t` is caught while `my_select_log` is not.
_IDENTIFIER_DENYLIST = _keyword_pattern(FORBIDDEN_IDENTIFIER_KEYWORDS)


class PolicyRejection(ValueError):
    """Raised when input fails the read-only policy."""


def is_read_only(sql: object) -> bool:
    """Return True when `sql` contains none of the mutating or DDL keywords."""

    if not sql or not isinstance(sql, str):
        return False
    return _SQL_DENYLIST.search(sql) is None


def is_valid_identifier(name: object) -> bool:
    """Return True for plain or dotted table names free of statement keywords."""

    if not name or not isinstance(name, str):
        return False
    if _IDENTIFIER_PATTERN.fullmatch(name) is None:
        return False
    parts = name.split(".")
    if len(parts) > MAX_IDENTIFIER_PARTS or not all(parts):
        return False
    return _IDENTIFIER_DENYLIST.search(name) is None


def ensure_read_only(sql: object) -> str:
    """Return `sql` unchanged or raise PolicyRejection."""

    if not is_read_only(sql):
        raise PolicyRejection("Query contains a forbidden keyword or is not read-only.")
    return sql  # type: ignore[return-value]


def ensure_valid_identifier(name: object) -> str:
    """Return `name` unchanged or raise PolicyRejection."""

    if not is_valid_identifier(name):
        raise PolicyRejection(f"Invalid table name: {name!r}")
    return name  # type: ignore[return-value]


__all__ = [
    "FORBIDDEN_IDENTIFIER_KEYWORDS",
    "FORBIDDEN_SQL_KEYWORDS",
    "MAX_IDENTIFIER_PARTS",
    "PolicyRejection",
    "ensure_read_only",
    "ensure_valid_identifier",
    "is_read_only",
    "is_valid_identifier",
]
