"""Projects and bugs: validated CRUD against the SQL store.

Every function takes an open connection (see `bug_tracker.db.connect`) and
performs one unit of work; the caller owns the transaction.
"""

from .bugs import assign_bug, get_bug, list_bugs, report_bug, resolve_bug
from .projects import add_tester, create_project, delete_project, get_project, list_projects

__all__ = [
    "add_tester",
    "assign_bug",
    "create_project",
    "delete_project",
    "get_bug",
    "get_project",
    "list_bugs",
    "list_projects",
    "report_bug",
    "resolve_bug",
]
