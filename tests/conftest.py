from typing import Dict

import pytest
from fastapi.testclient import TestClient

from bug_tracker.api.server import create_app
from bug_tracker.config import Config
from bug_tracker.db import connect, init_db

SECRET = "test-secret-0123456789abcdef0123456789abcdef"


@pytest.fixture
def db_dsn(tmp_path):
    dsn = str(tmp_path / "tracker.sqlite")
    init_db(dsn)
    return dsn


@pytest.fixture
def conn(db_dsn):
    with connect(db_dsn) as c:
        yield c


@pytest.fixture
def cfg(db_dsn):
    return Config(
        DB_DSN=db_dsn,
        AUTH_JWT_SECRET=SECRET,
        AUTH_TOKEN_EXPIRE_MINUTES=60,
        AUTH_DEFAULT_ROLE="Member",
        PROJECT_CREATE_ROLE="Member",
        BUG_REPORT_ROLE="Tester",
        PUBLIC_READS=True,
        CORS_ALLOW_ORIGINS="",
    )


@pytest.fixture
def client(cfg):
    return TestClient(create_app(cfg))


def register_and_login(client: TestClient, email: str, password: str, role: str) -> Dict[str, str]:
    """Register an account and return Authorization headers for it."""
    resp = client.post("/auth/register", json={"email": email, "password": password, "role": role})
    assert resp.status_code == 201, resp.text
    resp = client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}


@pytest.fixture
def member_headers(client):
    return register_and_login(client, "member@example.com", "member-pw", "Member")


@pytest.fixture
def tester_headers(client):
    return register_and_login(client, "tester@example.com", "tester-pw", "Tester")
