"""Error taxonomy shared by the service layer and the HTTP surface.

Each error carries the HTTP status it maps to, a stable snake_case ``detail``
code (what clients should branch on) and a human readable ``message``.
The API turns any ``TrackerError`` into ``{"message": ..., "detail": ...}``.
"""

from __future__ import annotations

from typing import Dict, Optional


class ConfigError(RuntimeError):
    """Raised at startup when required configuration is missing or invalid."""


class TrackerError(Exception):
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, detail: str = "internal_error", message: Optional[str] = None):
        super().__init__(detail)
        self.detail = detail
        self.message = message or self.default_message

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return None

    def to_body(self) -> Dict[str, str]:
        return {"message": self.message, "detail": self.detail}


class InvalidInput(TrackerError):
    status_code = 400
    default_message = "Invalid request data"


class Unauthorized(TrackerError):
    status_code = 401
    default_message = "Authentication required"

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return {"WWW-Authenticate": "Bearer"}


class Forbidden(TrackerError):
    status_code = 403
    default_message = "Insufficient role for this operation"


class NotFound(TrackerError):
    status_code = 404
    default_message = "Resource not found"


class DuplicateIdentity(TrackerError):
    status_code = 409
    default_message = "An account with this email already exists"

    def __init__(self, detail: str = "email_exists", message: Optional[str] = None):
        super().__init__(detail, message)


class InternalError(TrackerError):
    status_code = 500


class StorageError(InternalError):
    """Persistence backend failure (connection, constraint, I/O)."""

    def __init__(self, detail: str = "storage_error", message: Optional[str] = None):
        super().__init__(detail, message)


# Token verification failures. All of them are plain 401s to the client.


class TokenExpired(Unauthorized):
    def __init__(self, detail: str = "token_expired", message: Optional[str] = None):
        super().__init__(detail, message or "Token has expired")


class TokenSignatureInvalid(Unauthorized):
    def __init__(self, detail: str = "token_signature_invalid", message: Optional[str] = None):
        super().__init__(detail, message or "Token signature is invalid")


class TokenMalformed(Unauthorized):
    def __init__(self, detail: str = "token_invalid", message: Optional[str] = None):
        super().__init__(detail, message or "Token is malformed")
