"""Project / bug service behaviour against a real SQLite store."""
import pytest

from bug_tracker.errors import InvalidInput, NotFound
from bug_tracker.tracker import (
    add_tester,
    assign_bug,
    create_project,
    delete_project,
    get_bug,
    get_project,
    list_bugs,
    list_projects,
    report_bug,
    resolve_bug,
)


def _project(conn, name="Bug Tracking Application"):
    return create_project(
        conn,
        name=name,
        repository_url="https://github.com/example/bugs",
        team_members=["alice@x.com", "bob@x.com"],
        created_by="owner@x.com",
    )


def _bug(conn, project_id, **kw):
    fields = {"title": "Login Issue", "severity": "High", "priority": "Medium"}
    fields.update(kw)
    return report_bug(conn, project_id=project_id, **fields)


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------
def test_create_project_persists_fields(conn):
    p = _project(conn)
    assert len(p.project_id) == 9
    stored = get_project(conn, p.project_id)
    assert stored.name == "Bug Tracking Application"
    assert stored.team_members == ("alice@x.com", "bob@x.com")
    assert stored.created_by == "owner@x.com"


def test_project_ids_are_unique(conn):
    ids = {_project(conn, name=f"p{i}").project_id for i in range(20)}
    assert len(ids) == 20


@pytest.mark.parametrize(
    "kwargs,detail",
    [
        ({"name": None}, "name_required"),
        ({"name": "  "}, "name_required"),
        ({"repository_url": None}, "repositoryUrl_required"),
        ({"team_members": None}, "teamMembers_required"),
        ({"team_members": "alice@x.com"}, "teamMembers_not_a_list"),
        ({"team_members": {"a": 1}}, "teamMembers_not_a_list"),
        ({"team_members": ["ok", ""]}, "teamMembers_invalid"),
    ],
)
def test_create_project_validation(conn, kwargs, detail):
    fields = {
        "name": "P",
        "repository_url": "https://example.com/r",
        "team_members": [],
        "created_by": "owner@x.com",
    }
    fields.update(kwargs)
    with pytest.raises(InvalidInput) as ei:
        create_project(conn, **fields)
    assert ei.value.detail == detail
    assert list_projects(conn) == []


def test_empty_team_is_allowed(conn):
    p = create_project(conn, name="Solo", repository_url="https://e.com", team_members=[], created_by="me")
    assert get_project(conn, p.project_id).team_members == ()


def test_list_projects_returns_all(conn):
    a = _project(conn, "A")
    b = _project(conn, "B")
    assert {p.project_id for p in list_projects(conn)} == {a.project_id, b.project_id}


def test_delete_project_leaves_bugs(conn):
    p = _project(conn)
    bug = _bug(conn, p.project_id)
    delete_project(conn, p.project_id)
    assert get_project(conn, p.project_id) is None
    assert [b.bug_id for b in list_bugs(conn, p.project_id)] == [bug.bug_id]


def test_delete_missing_project(conn):
    with pytest.raises(NotFound):
        delete_project(conn, "nope")


def test_add_tester(conn):
    p = _project(conn)
    add_tester(conn, project_id=p.project_id, tester_email="t@x.com", added_by="owner@x.com")
    updated = add_tester(conn, project_id=p.project_id, tester_email="t@x.com")
    assert updated.testers == ("t@x.com",)
    assert list_projects(conn)[0].testers == ("t@x.com",)


def test_add_tester_errors(conn):
    p = _project(conn)
    with pytest.raises(InvalidInput):
        add_tester(conn, project_id=p.project_id, tester_email=None)
    with pytest.raises(NotFound):
        add_tester(conn, project_id="missing", tester_email="t@x.com")


# ---------------------------------------------------------------------------
# Bugs
# ---------------------------------------------------------------------------
def test_report_bug_starts_open(conn):
    p = _project(conn)
    bug = _bug(conn, p.project_id, description="Cannot log in", commit_link="abc123", reported_by="t@x.com")
    stored = get_bug(conn, p.project_id, bug.bug_id)
    assert stored.status == "Open"
    assert stored.description == "Cannot log in"
    assert stored.commit_link == "abc123"
    assert stored.assignee is None
    assert stored.reported_by == "t@x.com"


def test_report_bug_requires_existing_project(conn):
    with pytest.raises(NotFound) as ei:
        _bug(conn, "does-not-exist")
    assert ei.value.detail == "project_not_found"


@pytest.mark.parametrize(
    "kwargs",
    [{"title": None}, {"title": ""}, {"severity": None}, {"priority": None}, {"severity": "Critical"}, {"priority": "low"}],
)
def test_report_bug_validation(conn, kwargs):
    p = _project(conn)
    with pytest.raises(InvalidInput):
        _bug(conn, p.project_id, **kwargs)
    assert list_bugs(conn, p.project_id) == []


def test_list_bugs_scoped_to_project(conn):
    p1 = _project(conn, "one")
    p2 = _project(conn, "two")
    b1 = _bug(conn, p1.project_id)
    _bug(conn, p2.project_id)
    assert [b.bug_id for b in list_bugs(conn, p1.project_id)] == [b1.bug_id]
    assert list_bugs(conn, "unknown") == []


def test_assign_bug(conn):
    p = _project(conn)
    bug = _bug(conn, p.project_id)
    updated = assign_bug(conn, project_id=p.project_id, bug_id=bug.bug_id, assignee="bob@x.com")
    assert updated.assignee == "bob@x.com"
    assert get_bug(conn, p.project_id, bug.bug_id).assignee == "bob@x.com"


def test_assign_missing_bug_is_not_found(conn):
    p = _project(conn)
    with pytest.raises(NotFound):
        assign_bug(conn, project_id=p.project_id, bug_id="nope", assignee="bob@x.com")


def test_assign_bug_under_wrong_project_is_not_found(conn):
    p1 = _project(conn, "one")
    p2 = _project(conn, "two")
    bug = _bug(conn, p1.project_id)
    with pytest.raises(NotFound):
        assign_bug(conn, project_id=p2.project_id, bug_id=bug.bug_id, assignee="bob@x.com")
    assert get_bug(conn, p1.project_id, bug.bug_id).assignee is None


def test_assign_requires_assignee(conn):
    p = _project(conn)
    bug = _bug(conn, p.project_id)
    with pytest.raises(InvalidInput):
        assign_bug(conn, project_id=p.project_id, bug_id=bug.bug_id, assignee=None)


@pytest.mark.parametrize("status", ["InProgress", "Open", "resolved", None, ""])
def test_resolve_rejects_other_statuses(conn, status):
    p = _project(conn)
    bug = _bug(conn, p.project_id)
    with pytest.raises(InvalidInput):
        resolve_bug(conn, project_id=p.project_id, bug_id=bug.bug_id, status=status)
    assert get_bug(conn, p.project_id, bug.bug_id).status == "Open"


def test_resolve_bug(conn):
    p = _project(conn)
    bug = _bug(conn, p.project_id, commit_link="first")
    kept = resolve_bug(conn, project_id=p.project_id, bug_id=bug.bug_id, status="Resolved")
    assert kept.status == "Resolved"
    assert kept.commit_link == "first"

    again = resolve_bug(
        conn, project_id=p.project_id, bug_id=bug.bug_id, status="Resolved", resolution_commit_link="fix-sha"
    )
    assert again.status == "Resolved"
    assert again.commit_link == "fix-sha"


def test_resolve_missing_bug_is_not_found(conn):
    p = _project(conn)
    with pytest.raises(NotFound):
        resolve_bug(conn, project_id=p.project_id, bug_id="nope", status="Resolved")


# ---------------------------------------------------------------------------
# Ordering and text
# ---------------------------------------------------------------------------
def test_listing_follows_insertion_order_within_one_second(conn, monkeypatch):
    monkeypatch.setattr("bug_tracker.tracker.projects.utcnow_iso", lambda: "2024-01-01T00:00:00Z")
    monkeypatch.setattr("bug_tracker.tracker.bugs.utcnow_iso", lambda: "2024-01-01T00:00:00Z")

    projects = [_project(conn, f"p{i}") for i in range(6)]
    assert [p.project_id for p in list_projects(conn)] == [p.project_id for p in projects]

    target = projects[0].project_id
    bugs = [_bug(conn, target, title=f"bug {i}") for i in range(6)]
    assert [b.bug_id for b in list_bugs(conn, target)] == [b.bug_id for b in bugs]


@pytest.mark.parametrize(
    "kwargs,detail",
    [
        ({"name": "\ud800"}, "name_invalid"),
        ({"repository_url": "https://e.com/\udfff"}, "repositoryUrl_invalid"),
        ({"team_members": ["ok@x.com", "\ud800@x.com"]}, "teamMembers_invalid"),
    ],
)
def test_create_project_rejects_unencodable_text(conn, kwargs, detail):
    fields = {"name": "P", "repository_url": "https://e.com", "team_members": [], "created_by": "me"}
    fields.update(kwargs)
    with pytest.raises(InvalidInput) as ei:
        create_project(conn, **fields)
    assert ei.value.detail == detail
    assert list_projects(conn) == []


def test_report_bug_rejects_unencodable_text(conn):
    p = _project(conn)
    with pytest.raises(InvalidInput) as ei:
        _bug(conn, p.project_id, description="bad \ud83d tail")
    assert ei.value.detail == "description_invalid"
    assert list_bugs(conn, p.project_id) == []
