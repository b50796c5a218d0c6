# tests/conftest.py

from __future__ import annotations

from pathlib import Path

import pytest

from app import create_app
from services import AccountService, AnalysisService, TaskService
from sessions import SessionRegistry
from storage import UserLocks, UserStore

from .fakes import FakeClock


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store(tmp_path: Path) -> UserStore:
    return UserStore(str(tmp_path / "users"))


@pytest.fixture()
def sessions() -> SessionRegistry:
    registry = SessionRegistry()
    yield registry
    registry.clear()


@pytest.fixture()
def locks() -> UserLocks:
    return UserLocks()


@pytest.fixture()
def accounts(store: UserStore, sessions: SessionRegistry, locks: UserLocks) -> AccountService:
    return AccountService(store, sessions, locks)


@pytest.fixture()
def tasks(store: UserStore, locks: UserLocks, clock: FakeClock) -> TaskService:
    return TaskService(store, locks, clock=clock)


@pytest.fixture()
def analysis(store: UserStore, locks: UserLocks, clock: FakeClock) -> AnalysisService:
    return AnalysisService(store, locks, clock=clock)


@pytest.fixture()
def alice(accounts: AccountService) -> str:
    accounts.register("Alice", "alice", "s3cret", "alice@gmail.com")
    return "alice"


@pytest.fixture()
def app(tmp_path: Path, clock: FakeClock):
    app = create_app({"TESTING": True, "USERS_FOLDER": str(tmp_path / "users")}, clock=clock)
    yield app
    app.extensions["tasktracker"]["sessions"].clear()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def logged_in(client):
    """Client with a registered user and a live session cookie."""
    client.post(
        "/register",
        json={"name": "Alice", "userId": "alice", "password": "s3cret", "gmail": "alice@gmail.com"},
    )
    resp = client.post("/login", json={"userId": "alice", "password": "s3cret"})
    assert resp.status_code == 200
    return client
