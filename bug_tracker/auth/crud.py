from __future__ import annotations

from typing import Any, Optional

from bug_tracker.errors import DuplicateIdentity, InvalidInput
from bug_tracker.models import ROLES, Account
from bug_tracker.util.text import require_utf8
from bug_tracker.util.time import utcnow_iso

from .security import hash_password, verify_password


def _debug(msg: str) -> None:
    print(f"[auth] {msg}")


def normalize_email(email: str) -> str:
    # Identity is case-sensitive; only surrounding whitespace is dropped.
    return require_utf8((email or "").strip(), "email")


def get_user_by_email(conn: Any, email: str) -> Optional[Any]:
    e = normalize_email(email)
    if not e:
        return None
    return conn.execute(
        "SELECT * FROM users WHERE email=?",
        (e,),
    ).fetchone()


def find_account(conn: Any, email: str) -> Optional[Account]:
    row = get_user_by_email(conn, email)
    if row is None:
        return None
    return Account.from_row(row)


def verify_user_credentials(conn: Any, email: str, password: str) -> Optional[Account]:
    row = get_user_by_email(conn, email)
    if row is None:
        return None
    if not verify_password(password, str(row["password_hash"])):
        return None
    return Account.from_row(row)


def create_user(conn: Any, *, email: str, password: str, role: str) -> Account:
    """Register an account.

    The uniqueness check and the insert are one statement
    (`ON CONFLICT(email) DO NOTHING RETURNING`), so two concurrent registrations
    for the same email cannot both succeed: the loser gets DuplicateIdentity.
    """
    e = normalize_email(email)
    if not e:
        raise InvalidInput("email_blank", "Email is required")
    if role not in ROLES:
        raise InvalidInput("invalid_role", f"Role must be one of {', '.join(ROLES)}")

    # Hash before touching the DB so the write lock is held only for the insert.
    password_hash = hash_password(password)

    now = utcnow_iso()
    rows = conn.execute(
        """
        INSERT INTO users (email, password_hash, role, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?)
        ON CONFLICT(email) DO NOTHING
        RETURNING user_id
        """,
        (e, password_hash, role, now, now),
    ).fetchall()
    inserted = rows[0] if rows else None
    if inserted is None:
        _debug("Registration rejected: email already registered")
        raise DuplicateIdentity()

    _debug(f"Registered user_id={inserted['user_id']} role={role}")
    return Account(user_id=int(inserted["user_id"]), email=e, role=role, created_at=now)


def touch_last_login(conn: Any, user_id: int) -> None:
    now = utcnow_iso()
    conn.execute(
        "UPDATE users SET last_login_at=?, updated_at=? WHERE user_id=?",
        (now, now, int(user_id)),
    )
