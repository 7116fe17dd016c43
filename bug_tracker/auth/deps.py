from __future__ import annotations

from typing import Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from bug_tracker.config import Config
from bug_tracker.errors import ConfigError, Forbidden, Unauthorized

from .security import TokenClaims, verify_access_token


_bearer = HTTPBearer(auto_error=False)


def authorize(token: Optional[str], *, secret: str, required_role: Optional[str] = None) -> TokenClaims:
    """The authorization gate for a single request.

    no token            -> Unauthorized("missing_token")
    token fails verify  -> Unauthorized (expired / bad signature / malformed)
    role mismatch       -> Forbidden("role_required")
    otherwise           -> the verified claims

    Stateless: nothing is remembered between calls.
    """
    if not token:
        raise Unauthorized("missing_token")

    claims = verify_access_token(token=token, secret=secret)

    if required_role and claims.role != required_role:
        raise Forbidden("role_required", f"This operation requires the {required_role} role")
    return claims


def get_config(request: Request) -> Config:
    cfg = getattr(request.app.state, "cfg", None)
    if cfg is None:
        raise ConfigError("server_config_missing")
    return cfg


def _token(credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    if credentials is None or not credentials.credentials:
        return None
    return credentials.credentials


def get_current_user(
    cfg: Config = Depends(get_config),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> TokenClaims:
    """Authenticate a request from `Authorization: Bearer <jwt>`."""
    return authorize(_token(credentials), secret=cfg.AUTH_JWT_SECRET)


def get_optional_user(
    cfg: Config = Depends(get_config),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> Optional[TokenClaims]:
    """Read endpoints: anonymous access allowed when PUBLIC_READS is on.

    A token that *is* sent is still verified, so a bad token never degrades to
    anonymous access.
    """
    token = _token(credentials)
    if token is None and cfg.PUBLIC_READS:
        return None
    return authorize(token, secret=cfg.AUTH_JWT_SECRET)


def require_role(setting: str) -> Callable[..., TokenClaims]:
    """Dependency factory: the required role is read from Config attribute `setting`.

    An empty setting means any authenticated account is accepted.
    """

    def _dependency(
        cfg: Config = Depends(get_config),
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    ) -> TokenClaims:
        required = str(getattr(cfg, setting, "") or "")
        return authorize(_token(credentials), secret=cfg.AUTH_JWT_SECRET, required_role=required or None)

    _dependency.__name__ = f"require_role_{setting.lower()}"
    return _dependency


require_project_creator = require_role("PROJECT_CREATE_ROLE")
require_bug_reporter = require_role("BUG_REPORT_ROLE")
