# tests/test_storage.py

from __future__ import annotations

import json
import os
import threading

import pytest

from errors import UserNotFoundError, ValidationError
from models import Task, User
from storage import UserLocks, UserStore


def _user(**kwargs) -> User:
    fields = {"name": "Bob", "user_id": "bob", "password": "pw", "gmail": "bob@gmail.com"}
    fields.update(kwargs)
    return User(**fields)


def test_save_writes_pretty_json_named_by_user_id(store: UserStore) -> None:
    user = _user()
    user.tasks["2024-05-10"] = [Task(id=1, text="a", date="2024-05-10")]
    store.save(user)

    path = os.path.join(store.folder, "bob.json")
    with open(path, encoding="utf-8") as f:
        raw = f.read()
    data = json.loads(raw)

    assert "\n  " in raw
    assert data["userId"] == "bob"
    assert data["password"] == "pw"
    assert data["tasks"]["2024-05-10"][0] == {
        "id": 1,
        "text": "a",
        "completed": False,
        "date": "2024-05-10",
    }


def test_load_returns_saved_record(store: UserStore) -> None:
    store.save(_user(gmail="other@gmail.com"))

    loaded = store.load("bob")

    assert loaded.user_id == "bob"
    assert loaded.gmail == "other@gmail.com"
    assert loaded.tasks == {}


def test_load_missing_user_raises(store: UserStore) -> None:
    with pytest.raises(UserNotFoundError):
        store.load("nobody")


def test_exists(store: UserStore) -> None:
    assert not store.exists("bob")
    store.save(_user())
    assert store.exists("bob")


def test_save_overwrites_whole_record(store: UserStore) -> None:
    store.save(_user(name="First"))
    store.save(_user(name="Second"))

    assert store.load("bob").name == "Second"


@pytest.mark.parametrize("bad_id", ["", "../evil", "a/b", ".hidden"])
def test_rejects_ids_that_are_not_plain_file_names(store: UserStore, bad_id: str) -> None:
    with pytest.raises(ValidationError):
        store.exists(bad_id)


def test_user_locks_serialize_same_user() -> None:
    locks = UserLocks()
    inside = []
    overlap = []

    def worker() -> None:
        with locks.hold("bob"):
            inside.append(1)
            if len(inside) > 1:
                overlap.append(True)
            inside.pop()

    threads = [threading.Thread(target=worker) for _ in range(20)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert overlap == []


def test_user_locks_are_per_user() -> None:
    locks = UserLocks()
    with locks.hold("bob"):
        # a different user's lock is free while bob's is held
        with locks.hold("alice"):
            pass


def test_save_leaves_only_the_record(store: UserStore) -> None:
    store.save(_user())
    store.save(_user(name="Again"))

    assert os.listdir(store.folder) == ["bob.json"]


def test_load_never_sees_a_partial_write(store: UserStore) -> None:
    big = _user()
    big.tasks["2024-05-10"] = [Task(id=n, text="x" * 200, date="2024-05-10") for n in range(200)]
    small = _user()
    store.save(small)

    def writer() -> None:
        for n in range(100):
            store.save(big if n % 2 else small)

    thread = threading.Thread(target=writer)
    thread.start()
    failures = []
    while thread.is_alive():
        try:
            loaded = store.load("bob")
        except Exception as exc:
            failures.append(type(exc).__name__)
        else:
            assert len(loaded.tasks.get("2024-05-10", [])) in (0, 200)
    thread.join()

    assert failures == []
