from __future__ import annotations

import secrets
import string

_ALPHABET = string.digits + string.ascii_lowercase
ID_LENGTH = 9


def new_id(length: int = ID_LENGTH) -> str:
    """Random lowercase base36 identifier (projects, bugs)."""
    return "".join(secrets.choice(_ALPHABET) for _ in range(max(1, int(length))))
