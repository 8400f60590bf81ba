from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from expense_tracker.app import create_app

PASSWORD = "Secret@123"


@pytest.fixture()
def app(tmp_path):
    app = create_app(
        {
            "TESTING": True,
            "DATABASE_URL": f"sqlite:///{tmp_path / 'test.db'}",
            "JWT_SECRET_KEY": "test-secret-key-with-enough-length-32",
        }
    )
    yield app
    app.extensions["db_engine"].dispose()


@pytest.fixture()
def client(app):
    return app.test_client(use_cookies=False)


@pytest.fixture()
def register(client):
    def _register(username: str = "alice_user", email: str = "alice@example.com", password: str = PASSWORD):
        return client.post(
            "/api/auth/register",
            json={"username": username, "email": email, "password": password, "confirmPassword": password},
        )

    return _register


@pytest.fixture()
def login(client, register):
    def _login(username: str = "alice_user", email: str = "alice@example.com") -> dict:
        register(username=username, email=email)
        res = client.post("/api/auth/login", json={"email": email, "password": PASSWORD})
        assert res.status_code == 200
        return res.get_json()["data"]

    return _login


@pytest.fixture()
def auth_headers(login) -> dict:
    tokens = login()
    return {"Authorization": f"Bearer {tokens['accessToken']}"}
