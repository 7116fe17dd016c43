"""Authentication / authorization helpers.

Auth is intentionally lightweight:

- Users table (email/password hash + role)
- Stateless JWT access tokens, `Authorization: Bearer <token>`

Nothing about a login is stored server-side; a token is trusted exactly as
long as its signature and expiry check out.
"""

from .crud import create_user, verify_user_credentials
from .deps import (
    authorize,
    get_current_user,
    get_optional_user,
    require_bug_reporter,
    require_project_creator,
    require_role,
)
from .security import TokenClaims, create_access_token, hash_password, verify_access_token, verify_password

__all__ = [
    "TokenClaims",
    "authorize",
    "create_access_token",
    "create_user",
    "get_current_user",
    "get_optional_user",
    "hash_password",
    "require_bug_reporter",
    "require_project_creator",
    "require_role",
    "verify_access_token",
    "verify_password",
    "verify_user_credentials",
]
