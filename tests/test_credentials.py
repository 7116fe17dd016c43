"""Credential store: registration uniqueness and login checks."""
import threading

import pytest

from bug_tracker.auth.crud import create_user, find_account, get_user_by_email, verify_user_credentials
from bug_tracker.db import connect
from bug_tracker.errors import DuplicateIdentity, InvalidInput


def test_register_and_find(conn):
    account = create_user(conn, email="a@x.com", password="pw", role="Tester")
    assert account.email == "a@x.com"
    assert account.role == "Tester"
    assert not hasattr(account, "password_hash")
    assert find_account(conn, "a@x.com") == find_account(conn, " a@x.com ")


def test_secret_is_stored_hashed(conn):
    create_user(conn, email="a@x.com", password="plain-secret", role="Member")
    row = get_user_by_email(conn, "a@x.com")
    assert row["password_hash"] != "plain-secret"
    assert "plain-secret" not in row["password_hash"]


def test_duplicate_registration_is_rejected(conn):
    create_user(conn, email="a@x.com", password="pw", role="Member")
    with pytest.raises(DuplicateIdentity):
        create_user(conn, email="a@x.com", password="other", role="Tester")
    # The first registration is untouched.
    assert find_account(conn, "a@x.com").role == "Member"


def test_identity_is_case_sensitive(conn):
    create_user(conn, email="a@x.com", password="pw", role="Member")
    create_user(conn, email="A@x.com", password="pw", role="Member")
    assert find_account(conn, "a@x.com") != find_account(conn, "A@x.com")


@pytest.mark.parametrize(
    "email,password,role",
    [("", "pw", "Member"), ("   ", "pw", "Member"), ("a@x.com", "", "Member"), ("a@x.com", "pw", "Admin")],
)
def test_invalid_registration(conn, email, password, role):
    with pytest.raises(InvalidInput):
        create_user(conn, email=email, password=password, role=role)
    assert find_account(conn, "a@x.com") is None


def test_verify_credentials(conn):
    create_user(conn, email="a@x.com", password="pw", role="Tester")
    assert verify_user_credentials(conn, "a@x.com", "pw").role == "Tester"
    assert verify_user_credentials(conn, "a@x.com", "wrong") is None
    assert verify_user_credentials(conn, "nobody@x.com", "pw") is None


def test_concurrent_registration_has_one_winner(db_dsn):
    n = 8
    barrier = threading.Barrier(n)
    results = []
    lock = threading.Lock()

    def register(i):
        barrier.wait()
        try:
            with connect(db_dsn) as c:
                create_user(c, email="race@x.com", password=f"pw-{i}", role="Member")
            outcome = "ok"
        except DuplicateIdentity:
            outcome = "duplicate"
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=register, args=(i,)) for i in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count("ok") == 1
    assert results.count("duplicate") == n - 1
    with connect(db_dsn) as c:
        count = c.execute("SELECT COUNT(*) AS n FROM users WHERE email=?", ("race@x.com",)).fetchone()["n"]
    assert count == 1


def test_unencodable_email_is_invalid_input(conn):
    with pytest.raises(InvalidInput) as ei:
        create_user(conn, email="\ud800@x.com", password="pw", role="Member")
    assert ei.value.detail == "email_invalid"
    with pytest.raises(InvalidInput):
        verify_user_credentials(conn, "\ud800@x.com", "pw")
    count = conn.execute("SELECT COUNT(*) AS n FROM users").fetchone()["n"]
    assert count == 0
