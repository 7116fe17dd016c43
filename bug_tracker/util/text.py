from __future__ import annotations

from bug_tracker.errors import InvalidInput


def require_utf8(value: str, field: str) -> str:
    """Reject strings that cannot be stored as UTF-8 (e.g. lone surrogates from JSON escapes)."""
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise InvalidInput(f"{field}_invalid", f"{field} contains invalid characters") from e
    return value
