from __future__ import annotations

import json
from collections import defaultdict
from typing import Any, Dict, List, Optional, Tuple

from bug_tracker.errors import InvalidInput, NotFound
from bug_tracker.models import Project
from bug_tracker.util.ids import new_id
from bug_tracker.util.text import require_utf8
from bug_tracker.util.time import utcnow_iso

from .validation import required_str


def _debug(msg: str) -> None:
    print(f"[projects] {msg}")


def _team_members(value: Any) -> List[str]:
    if value is None:
        raise InvalidInput("teamMembers_required", "teamMembers is required")
    if not isinstance(value, (list, tuple)):
        raise InvalidInput("teamMembers_not_a_list", "teamMembers must be a list")
    out: List[str] = []
    for m in value:
        if not isinstance(m, str) or not m.strip():
            raise InvalidInput("teamMembers_invalid", "teamMembers must contain non-empty strings")
        out.append(require_utf8(m.strip(), "teamMembers"))
    return out


def _testers_for(conn: Any, project_id: str) -> Tuple[str, ...]:
    rows = conn.execute(
        "SELECT tester_email FROM project_testers WHERE project_id=? ORDER BY added_at, tester_email",
        (project_id,),
    ).fetchall()
    return tuple(str(r["tester_email"]) for r in rows)


def create_project(
    conn: Any,
    *,
    name: Any,
    repository_url: Any,
    team_members: Any,
    created_by: str,
) -> Project:
    n = required_str(name, "name")
    url = required_str(repository_url, "repositoryUrl")
    members = _team_members(team_members)

    project_id = new_id()
    now = utcnow_iso()
    conn.execute(
        """
        INSERT INTO projects (project_id, name, repository_url, team_members_json, created_by, created_at, seq)
        VALUES (?, ?, ?, ?, ?, ?, (SELECT COALESCE(MAX(seq), 0) + 1 FROM projects))
        """,
        (project_id, n, url, json.dumps(members, ensure_ascii=False), created_by, now),
    )
    _debug(f"Created project {project_id} members={len(members)}")
    return Project(
        project_id=project_id,
        name=n,
        repository_url=url,
        team_members=tuple(members),
        created_by=created_by,
        created_at=now,
    )


def get_project(conn: Any, project_id: str) -> Optional[Project]:
    row = conn.execute("SELECT * FROM projects WHERE project_id=?", (project_id,)).fetchone()
    if row is None:
        return None
    return Project.from_row(row, testers=_testers_for(conn, str(row["project_id"])))


def project_exists(conn: Any, project_id: str) -> bool:
    row = conn.execute("SELECT 1 FROM projects WHERE project_id=?", (project_id,)).fetchone()
    return row is not None


def list_projects(conn: Any) -> List[Project]:
    """All projects, oldest first. No paging."""
    rows = conn.execute("SELECT * FROM projects ORDER BY seq, project_id").fetchall()

    testers: Dict[str, List[str]] = defaultdict(list)
    for r in conn.execute(
        "SELECT project_id, tester_email FROM project_testers ORDER BY added_at, tester_email"
    ).fetchall():
        testers[str(r["project_id"])].append(str(r["tester_email"]))

    return [Project.from_row(r, testers=tuple(testers.get(str(r["project_id"]), ()))) for r in rows]


def delete_project(conn: Any, project_id: str) -> None:
    """Remove a project. Its bugs are left in place."""
    cur = conn.execute("DELETE FROM projects WHERE project_id=?", (project_id,))
    if int(cur.rowcount or 0) == 0:
        raise NotFound("project_not_found", f"Project {project_id} not found")
    _debug(f"Deleted project {project_id}")


def add_tester(conn: Any, *, project_id: str, tester_email: Any, added_by: Optional[str] = None) -> Project:
    """Attach a tester (by email) to a project. Adding the same tester twice is a no-op."""
    email = required_str(tester_email, "testerEmail")
    if not project_exists(conn, project_id):
        raise NotFound("project_not_found", f"Project {project_id} not found")

    conn.execute(
        """
        INSERT INTO project_testers (project_id, tester_email, added_by, added_at)
        VALUES (?, ?, ?, ?)
        ON CONFLICT(project_id, tester_email) DO NOTHING
        """,
        (project_id, email, added_by, utcnow_iso()),
    )
    _debug(f"Tester added to project {project_id}")
    project = get_project(conn, project_id)
    assert project is not None
    return project
