from __future__ import annotations

import re
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Sequence
from urllib.parse import urlparse

from bug_tracker.errors import StorageError
from bug_tracker.schema import get_schema_sql


def _debug(msg: str) -> None:
    print(f"[db] {msg}")


def detect_dialect(dsn: str) -> str:
    """Return 'postgres' or 'sqlite'."""
    s = (dsn or "").strip()
    if not s:
        return "sqlite"
    scheme = urlparse(s).scheme.lower()
    if scheme in ("postgres", "postgresql"):
        return "postgres"
    return "sqlite"


def _sqlite_path(dsn: str) -> str:
    s = (dsn or "").strip()
    if s.lower().startswith("sqlite:///"):
        s = s[len("sqlite:///") :]
    return s


# Quoted literals are matched first so a '?' inside them is left alone.
_PLACEHOLDER_RE = re.compile(r"'(?:[^']|'')*'|\"(?:[^\"]|\"\")*\"|\?")


def qmark_to_pyformat(sql: str) -> str:
    """Convert SQLite qmark placeholders (?) to psycopg2 placeholders (%s)."""
    return _PLACEHOLDER_RE.sub(lambda m: "%s" if m.group(0) == "?" else m.group(0), sql)


class PGConnection:
    """Adapter that lets psycopg2 connections run the same qmark SQL as sqlite3.

    Only the surface the service uses: execute() returning a cursor with
    fetchone()/fetchall()/rowcount.
    """

    dialect = "postgres"

    def __init__(self, conn: Any):
        self._conn = conn

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> Any:
        cur = self._conn.cursor()
        cur.execute(qmark_to_pyformat(sql), tuple(params or ()))
        return cur

    def commit(self) -> None:
        self._conn.commit()

    def rollback(self) -> None:
        self._conn.rollback()

    def close(self) -> None:
        self._conn.close()


@contextmanager
def _connect_postgres(dsn: str) -> Iterator[PGConnection]:
    try:
        import psycopg2
        import psycopg2.extras
    except ImportError as e:
        raise RuntimeError(
            "Postgres selected but psycopg2 is not installed. "
            "Install the 'postgres' extra (psycopg2-binary) and try again."
        ) from e

    try:
        raw = psycopg2.connect(dsn, cursor_factory=psycopg2.extras.RealDictCursor)
    except psycopg2.Error as e:
        raise StorageError("storage_unavailable") from e

    conn = PGConnection(raw)
    try:
        yield conn
        conn.commit()
    except psycopg2.Error as e:
        conn.rollback()
        _debug(f"postgres error, rolled back: {type(e).__name__}")
        raise StorageError() from e
    except BaseException:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def _connect_sqlite(dsn: str) -> Iterator[sqlite3.Connection]:
    path = _sqlite_path(dsn)
    if path != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)

    try:
        conn = sqlite3.connect(path, timeout=30, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
        conn.execute("PRAGMA busy_timeout=5000;")  # 5s
        conn.execute("PRAGMA foreign_keys = ON;")
    except sqlite3.Error as e:
        raise StorageError("storage_unavailable") from e

    try:
        yield conn
        conn.commit()
    except sqlite3.Error as e:
        conn.rollback()
        _debug(f"sqlite error, rolled back: {e}")
        raise StorageError() from e
    except BaseException:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def connect(db_dsn: str) -> Iterator[Any]:
    """Open one unit of work against SQLite or Postgres.

    Commits when the block exits normally and rolls back otherwise. Backend
    errors surface as StorageError; any other exception passes through untouched.
    """
    dsn = (db_dsn or "").strip()
    if detect_dialect(dsn) == "postgres":
        with _connect_postgres(dsn) as conn:
            yield conn
        return

    with _connect_sqlite(dsn) as conn:
        yield conn


def init_db(db_dsn: str) -> None:
    """Create all tables (idempotent)."""
    dialect = detect_dialect(db_dsn)
    _debug(f"Initializing DB ({dialect})")
    ddl = get_schema_sql(dialect)
    with connect(db_dsn) as conn:
        if dialect == "postgres":
            # Serialize DDL across processes starting at the same time.
            conn.execute("SELECT pg_advisory_lock(2147483646);")
            try:
                for stmt in [s.strip() for s in ddl.split(";") if s.strip()]:
                    conn.execute(stmt)
            finally:
                conn.execute("SELECT pg_advisory_unlock(2147483646);")
            return

        conn.executescript(ddl)
