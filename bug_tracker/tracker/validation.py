from __future__ import annotations

from typing import Any, Optional, Sequence

from bug_tracker.errors import InvalidInput
from bug_tracker.util.text import require_utf8


def required_str(value: Any, field: str) -> str:
    """Return the stripped string or raise InvalidInput('<field>_required')."""
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput(f"{field}_required", f"{field} is required")
    return require_utf8(value.strip(), field)


def optional_str(value: Any, field: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidInput(f"{field}_invalid", f"{field} must be a string")
    return require_utf8(value.strip(), field) or None


def one_of(value: Any, field: str, allowed: Sequence[str]) -> str:
    v = required_str(value, field)
    if v not in allowed:
        raise InvalidInput(f"{field}_invalid", f"{field} must be one of {', '.join(allowed)}")
    return v
