from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from passlib.context import CryptContext
from passlib.exc import PasswordValueError

from bug_tracker.errors import (
    ConfigError,
    InternalError,
    InvalidInput,
    TokenExpired,
    TokenMalformed,
    TokenSignatureInvalid,
)
from bug_tracker.models import ROLES
from bug_tracker.util.text import require_utf8


_pwd = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
_JWT_ALG = "HS256"
_REQUIRED_CLAIMS = ["sub", "role", "iat", "exp"]


@dataclass(frozen=True)
class TokenClaims:
    identity: str
    role: str
    issued_at: datetime
    expires_at: datetime

    def to_api(self) -> Dict[str, Any]:
        return {
            "email": self.identity,
            "role": self.role,
            "issuedAt": self.issued_at.isoformat(),
            "expiresAt": self.expires_at.isoformat(),
        }


def hash_password(password: str) -> str:
    """Salted pbkdf2-sha256; the salt travels inside the returned hash string."""
    if not password:
        raise InvalidInput("password_blank", "Password is required")
    require_utf8(password, "password")
    try:
        return _pwd.hash(password)
    except PasswordValueError as e:
        raise InvalidInput("password_invalid", str(e)) from e
    except Exception as e:
        raise InternalError("password_hash_failed") from e


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return _pwd.verify(password, password_hash)
    except ValueError:
        # Unknown or garbled hash format.
        return False


def _require_secret(secret: str) -> None:
    if not secret:
        raise ConfigError("jwt_secret_blank")


def create_access_token(
    *,
    secret: str,
    identity: str,
    role: str,
    expires_minutes: int,
    now: Optional[datetime] = None,
) -> str:
    _require_secret(secret)
    if role not in ROLES:
        raise InvalidInput("invalid_role")

    issued = now or datetime.now(timezone.utc)
    exp = issued + timedelta(minutes=max(1, int(expires_minutes)))

    payload: Dict[str, Any] = {
        "sub": identity,
        "role": role,
        "iat": int(issued.timestamp()),
        "exp": int(exp.timestamp()),
    }
    try:
        return jwt.encode(payload, secret, algorithm=_JWT_ALG)
    except jwt.PyJWTError as e:
        raise InternalError("token_signing_failed") from e


def verify_access_token(*, token: str, secret: str) -> TokenClaims:
    """Decode and fully verify a token.

    Signature is checked before expiry, so a forged token never reports
    itself as merely expired.
    """
    _require_secret(secret)
    if not token:
        raise TokenMalformed("token_blank")

    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[_JWT_ALG],
            options={"require": _REQUIRED_CLAIMS},
        )
    except jwt.ExpiredSignatureError as e:
        raise TokenExpired() from e
    except jwt.InvalidSignatureError as e:
        raise TokenSignatureInvalid() from e
    except jwt.InvalidTokenError as e:
        raise TokenMalformed() from e

    sub = payload.get("sub")
    role = payload.get("role")
    if not isinstance(sub, str) or not sub:
        raise TokenMalformed("token_missing_sub")
    if role not in ROLES:
        raise TokenMalformed("token_invalid_role")

    try:
        issued_at = datetime.fromtimestamp(int(payload["iat"]), tz=timezone.utc)
        expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc)
    except (TypeError, ValueError) as e:
        raise TokenMalformed("token_bad_timestamps") from e

    return TokenClaims(identity=sub, role=str(role), issued_at=issued_at, expires_at=expires_at)
