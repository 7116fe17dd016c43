import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

from bug_tracker.errors import ConfigError
from bug_tracker.models import ROLE_MEMBER, ROLE_TESTER, ROLES

# Optional local .env file; real environment variables take precedence.
load_dotenv()


def _env_bool(name: str, default: Optional[bool] = None) -> Optional[bool]:
    """Parse a boolean environment variable.

    Returns:
      - True/False if the env var is set to a recognizable value
      - default if unset or unrecognized

    Accepted truthy: 1, true, yes, y, on
    Accepted falsy:  0, false, no, n, off
    """

    raw = os.environ.get(name)
    if raw is None:
        return default
    v = raw.strip().lower()
    if v in ("1", "true", "yes", "y", "on"):
        return True
    if v in ("0", "false", "no", "n", "off"):
        return False
    return default


def _env_str(name: str, default: str = "") -> str:
    return (os.environ.get(name, default) or "").strip()


def _env_int(name: str, default: int) -> int:
    raw = (os.environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e


def _default_dsn() -> str:
    return (
        os.environ.get("BUG_TRACKER_DATABASE_URL")
        or os.environ.get("DATABASE_URL")
        or os.environ.get("BUG_TRACKER_DB_PATH", "./bug_tracker.sqlite")
    )


@dataclass(frozen=True)
class Config:
    """Runtime configuration.

    Values are read from the environment (or a .env file) when the Config is
    built, so tests can construct one explicitly with keyword arguments.

    IMPORTANT: AUTH_JWT_SECRET has no default. The app refuses to start
    without it.
    """

    # -----------------
    # Core
    # -----------------
    # Postgres when the DSN is a postgres:// URL, otherwise a SQLite file path.
    DB_DSN: str = field(default_factory=_default_dsn)

    # -----------------
    # Auth (JWT)
    # -----------------
    AUTH_JWT_SECRET: str = field(default_factory=lambda: _env_str("AUTH_JWT_SECRET"))
    AUTH_TOKEN_EXPIRE_MINUTES: int = field(
        default_factory=lambda: _env_int("AUTH_TOKEN_EXPIRE_MINUTES", 60)
    )

    # Role given to self-registered accounts that don't ask for one.
    AUTH_DEFAULT_ROLE: str = field(default_factory=lambda: _env_str("AUTH_DEFAULT_ROLE", ROLE_MEMBER))

    # -----------------
    # Access policy
    # -----------------
    # Role required for each mutating operation. Empty string = any authenticated account.
    PROJECT_CREATE_ROLE: str = field(default_factory=lambda: _env_str("PROJECT_CREATE_ROLE", ROLE_MEMBER))
    BUG_REPORT_ROLE: str = field(default_factory=lambda: _env_str("BUG_REPORT_ROLE", ROLE_TESTER))

    # When enabled, listing projects and bugs does not require a token.
    PUBLIC_READS: bool = field(default_factory=lambda: _env_bool("PUBLIC_READS", True) is True)

    # -----------------
    # CORS (development)
    # -----------------
    CORS_ALLOW_ORIGINS: str = field(default_factory=lambda: _env_str("CORS_ALLOW_ORIGINS"))

    def cors_origins(self) -> List[str]:
        return [o.strip() for o in (self.CORS_ALLOW_ORIGINS or "").split(",") if o.strip()]

    def validate(self) -> "Config":
        if not (self.AUTH_JWT_SECRET or "").strip():
            raise ConfigError("AUTH_JWT_SECRET must be set to a strong random value")
        if int(self.AUTH_TOKEN_EXPIRE_MINUTES) < 1:
            raise ConfigError("AUTH_TOKEN_EXPIRE_MINUTES must be >= 1")
        if self.AUTH_DEFAULT_ROLE not in ROLES:
            raise ConfigError(f"AUTH_DEFAULT_ROLE must be one of {ROLES}")
        for name in ("PROJECT_CREATE_ROLE", "BUG_REPORT_ROLE"):
            value = getattr(self, name)
            if value and value not in ROLES:
                raise ConfigError(f"{name} must be empty or one of {ROLES}")
        if not (self.DB_DSN or "").strip():
            raise ConfigError("DB_DSN is empty")
        return self


def load_config() -> Config:
    return Config().validate()
