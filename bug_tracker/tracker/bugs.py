from __future__ import annotations

from typing import Any, List, Optional

from bug_tracker.errors import InvalidInput, NotFound
from bug_tracker.models import LEVELS, STATUS_OPEN, STATUS_RESOLVED, Bug
from bug_tracker.util.ids import new_id
from bug_tracker.util.time import utcnow_iso

from .projects import project_exists
from .validation import one_of, optional_str, required_str


def _debug(msg: str) -> None:
    print(f"[bugs] {msg}")


def _bug_not_found(project_id: str, bug_id: str) -> NotFound:
    return NotFound("bug_not_found", f"Bug {bug_id} not found in project {project_id}")


def report_bug(
    conn: Any,
    *,
    project_id: str,
    title: Any,
    severity: Any,
    priority: Any,
    description: Any = None,
    commit_link: Any = None,
    reported_by: Optional[str] = None,
) -> Bug:
    """Create a bug in status Open. The project must exist."""
    t = required_str(title, "title")
    sev = one_of(severity, "severity", LEVELS)
    pri = one_of(priority, "priority", LEVELS)
    desc = optional_str(description, "description")
    link = optional_str(commit_link, "commitLink")

    if not project_exists(conn, project_id):
        raise NotFound("project_not_found", f"Project {project_id} not found")

    bug_id = new_id()
    now = utcnow_iso()
    conn.execute(
        """
        INSERT INTO bugs (bug_id, project_id, title, description, severity, priority, status,
                          commit_link, assignee, reported_by, created_at, updated_at, seq)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, NULL, ?, ?, ?, (SELECT COALESCE(MAX(seq), 0) + 1 FROM bugs))
        """,
        (bug_id, project_id, t, desc, sev, pri, STATUS_OPEN, link, reported_by, now, now),
    )
    _debug(f"Bug {bug_id} reported in project {project_id} severity={sev} priority={pri}")
    return Bug(
        bug_id=bug_id,
        project_id=project_id,
        title=t,
        description=desc,
        severity=sev,
        priority=pri,
        status=STATUS_OPEN,
        commit_link=link,
        assignee=None,
        reported_by=reported_by,
        created_at=now,
        updated_at=now,
    )


def list_bugs(conn: Any, project_id: str) -> List[Bug]:
    rows = conn.execute(
        "SELECT * FROM bugs WHERE project_id=? ORDER BY seq, bug_id",
        (project_id,),
    ).fetchall()
    return [Bug.from_row(r) for r in rows]


def get_bug(conn: Any, project_id: str, bug_id: str) -> Optional[Bug]:
    row = conn.execute(
        "SELECT * FROM bugs WHERE project_id=? AND bug_id=?",
        (project_id, bug_id),
    ).fetchone()
    if row is None:
        return None
    return Bug.from_row(row)


def assign_bug(conn: Any, *, project_id: str, bug_id: str, assignee: Any) -> Bug:
    who = required_str(assignee, "assignee")
    rows = conn.execute(
        """
        UPDATE bugs SET assignee=?, updated_at=?
        WHERE project_id=? AND bug_id=?
        RETURNING *
        """,
        (who, utcnow_iso(), project_id, bug_id),
    ).fetchall()
    row = rows[0] if rows else None
    if row is None:
        raise _bug_not_found(project_id, bug_id)
    _debug(f"Bug {bug_id} in project {project_id} assigned")
    return Bug.from_row(row)


def resolve_bug(
    conn: Any,
    *,
    project_id: str,
    bug_id: str,
    status: Any,
    resolution_commit_link: Any = None,
) -> Bug:
    """Move a bug to Resolved (from any state).

    `status` must literally be "Resolved"; this is the only transition offered.
    The previous commit link is kept when no resolution link is given.
    """
    if status != STATUS_RESOLVED:
        raise InvalidInput("invalid_status", f'Invalid status value, should be "{STATUS_RESOLVED}"')
    link = optional_str(resolution_commit_link, "resolutionCommitLink")

    rows = conn.execute(
        """
        UPDATE bugs SET status=?, commit_link=COALESCE(?, commit_link), updated_at=?
        WHERE project_id=? AND bug_id=?
        RETURNING *
        """,
        (STATUS_RESOLVED, link, utcnow_iso(), project_id, bug_id),
    ).fetchall()
    row = rows[0] if rows else None
    if row is None:
        raise _bug_not_found(project_id, bug_id)
    _debug(f"Bug {bug_id} in project {project_id} resolved")
    return Bug.from_row(row)
