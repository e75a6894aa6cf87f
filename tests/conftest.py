"""Shared fixtures: an isolated SQLite database per test and an in-process API."""

from __future__ import annotations

from typing import Any, Callable, Dict

import pytest
from fastapi.testclient import TestClient

from studymate.api.server import create_app
from studymate.config import Config


TEST_SECRET = "test-secret"


@pytest.fixture()
def cfg(tmp_path) -> Config:
    return Config(
        DB_DSN=str(tmp_path / "studymate.sqlite"),
        AUTH_JWT_SECRET=TEST_SECRET,
        AUTH_TOKEN_EXPIRE_MINUTES=60,
        CORS_ALLOW_ORIGINS="",
        TOKEN_PATH=str(tmp_path / "session.json"),
    )


@pytest.fixture()
def client(cfg):
    app = create_app(cfg)
    # Entering the context runs the lifespan (schema creation).
    with TestClient(app) as c:
        yield c


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def make_student(client) -> Callable[..., Dict[str, Any]]:
    """Register + log in a student; returns {"student_id", "token", "headers", ...}."""

    def _make(username: str = "alice", password: str = "pw123", email: str | None = None, name: str | None = None):
        r = client.post(
            "/auth",
            params={"action": "register"},
            json={
                "fullName": name or username.title(),
                "username": username,
                "email": email or f"{username}@x.com",
                "password": password,
            },
        )
        assert r.status_code == 201, r.text

        r = client.post("/auth", params={"action": "login"}, json={"username": username, "password": password})
        assert r.status_code == 200, r.text
        data = r.json()
        token = data["access_token"]
        return {
            "student_id": int(data["student"]["student_id"]),
            "username": username,
            "token": token,
            "headers": bearer(token),
        }

    return _make


@pytest.fixture()
def alice(make_student):
    return make_student("alice")


@pytest.fixture()
def bob(make_student):
    return make_student("bob")
