"""Helpers for building portable filters."""

from __future__ import annotations

from sqlalchemy import type_coerce
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Session

LIKE_ESCAPE = "\\"


def like_pattern(term: str) -> str:
    """Wrap term for a substring (i)like match, escaping LIKE wildcards."""
    escaped = (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", f"{LIKE_ESCAPE}%")
        .replace("_", f"{LIKE_ESCAPE}_")
    )
    return f"%{escaped}%"


def supports_jsonb(db: Session) -> bool:
    return db.get_bind().dialect.name == "postgresql"


def json_list_contains(column, value):
    """`column @> [value]` for a JSON list column stored as JSONB."""
    return type_coerce(column, JSONB).contains([value])
