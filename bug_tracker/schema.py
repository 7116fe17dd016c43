"""Database schema for the bug tracker.

SQLite is the default backend; Postgres is supported as well.

Timestamps are ISO-8601 TEXT (UTC, with 'Z') so both engines store and sort
them identically. They have one-second resolution, so listing order comes from `seq`, a
per-table insertion counter assigned as MAX(seq)+1 inside the INSERT.

`bugs.project_id` deliberately has no FOREIGN KEY: deleting a project leaves its
bugs in place. The service checks that the project exists when a bug is reported.

NOTE: The Postgres schema is generated from the SQLite schema with a small set of
transformations (pragmas + autoincrement).
"""

from __future__ import annotations

import re


SCHEMA_SQLITE = r"""
PRAGMA foreign_keys = ON;

-- Accounts. email is the login identity (case-sensitive) and must be unique.
CREATE TABLE IF NOT EXISTS users (
    user_id INTEGER PRIMARY KEY AUTOINCREMENT,
    email TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,
    role TEXT NOT NULL CHECK (role IN ('Member','Tester')),
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    last_login_at TEXT
);
CREATE INDEX IF NOT EXISTS idx_users_role ON users (role);

CREATE TABLE IF NOT EXISTS projects (
    project_id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    repository_url TEXT NOT NULL,
    team_members_json TEXT NOT NULL DEFAULT '[]',
    seq INTEGER NOT NULL DEFAULT 0,
    created_by TEXT NOT NULL,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_projects_seq ON projects (seq);

CREATE TABLE IF NOT EXISTS project_testers (
    project_id TEXT NOT NULL,
    tester_email TEXT NOT NULL,
    added_by TEXT,
    added_at TEXT NOT NULL,
    PRIMARY KEY (project_id, tester_email),
    FOREIGN KEY (project_id) REFERENCES projects(project_id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS bugs (
    bug_id TEXT PRIMARY KEY,
    project_id TEXT NOT NULL,
    title TEXT NOT NULL,
    description TEXT,
    severity TEXT NOT NULL CHECK (severity IN ('Low','Medium','High')),
    priority TEXT NOT NULL CHECK (priority IN ('Low','Medium','High')),
    status TEXT NOT NULL DEFAULT 'Open' CHECK (status IN ('Open','InProgress','Resolved')),
    commit_link TEXT,
    assignee TEXT,
    reported_by TEXT,
    created_at TEXT NOT NULL,
    seq INTEGER NOT NULL DEFAULT 0,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_bugs_project_seq ON bugs (project_id, seq);
CREATE INDEX IF NOT EXISTS idx_bugs_assignee ON bugs (assignee);
"""


def _sqlite_to_postgres(ddl: str) -> str:
    lines = [line for line in ddl.splitlines() if not line.strip().upper().startswith("PRAGMA ")]
    out = "\n".join(lines)
    out = re.sub(
        r"INTEGER\s+PRIMARY\s+KEY\s+AUTOINCREMENT",
        "BIGSERIAL PRIMARY KEY",
        out,
        flags=re.IGNORECASE,
    )
    return out


SCHEMA_POSTGRES = _sqlite_to_postgres(SCHEMA_SQLITE)

TABLES = ("users", "projects", "project_testers", "bugs")


def get_schema_sql(dialect: str) -> str:
    d = (dialect or "").lower()
    if d.startswith("post"):
        return SCHEMA_POSTGRES
    return SCHEMA_SQLITE
