"""CredentialStore unit tests (signup, password checks, persistence)."""

from __future__ import annotations

import json
import threading

import pytest

from tests.conftest import FAST_HASH, FailingStore
from uniadvisor.services.auth_service import CredentialStore
from uniadvisor.services.errors import (
    DuplicateUser,
    InvalidCredentials,
    InvalidInput,
    NotFound,
    PersistenceError,
)
from uniadvisor.services.user_store import JsonUserStore


def test_create_then_verify_with_same_password(credentials):
    created = credentials.create("alice", "pw1")
    user = credentials.verify("alice", "pw1")

    assert user.username == created.username == "alice"
    assert user.profile.extracurriculars == ()
    assert user.profile.interest is None


def test_verify_with_wrong_password_fails(credentials):
    credentials.create("alice", "pw1")

    with pytest.raises(InvalidCredentials):
        credentials.verify("alice", "pw2")


def test_unknown_user_and_wrong_password_are_indistinguishable(credentials):
    credentials.create("alice", "pw1")

    with pytest.raises(InvalidCredentials) as unknown:
        credentials.verify("bob", "pw1")
    with pytest.raises(InvalidCredentials) as wrong:
        credentials.verify("alice", "nope")

    assert str(unknown.value) == str(wrong.value)


@pytest.mark.parametrize("username,password", [("", "pw"), ("alice", ""), (None, "pw"), ("   ", "pw")])
def test_create_requires_both_fields(credentials, username, password):
    with pytest.raises(InvalidInput):
        credentials.create(username, password)
    assert credentials.count() == 0


def test_signup_twice_fails_second_time(credentials):
    credentials.create("alice", "pw1")

    with pytest.raises(DuplicateUser):
        credentials.create("alice", "other")
    # Original password still works.
    assert credentials.verify("alice", "pw1").username == "alice"


def test_get_unknown_user(credentials):
    with pytest.raises(NotFound):
        credentials.get("ghost")


def test_password_is_hashed_and_users_survive_restart(credentials, users_path):
    credentials.create("alice", "pw1")

    stored = json.loads(users_path.read_text(encoding="utf-8"))
    record = stored["users"][0]
    assert record["username"] == "alice"
    assert record["password_hash"] != "pw1"
    assert "pw1" not in users_path.read_text(encoding="utf-8")

    reopened = CredentialStore(store=JsonUserStore(users_path), password_hash_method=FAST_HASH)
    assert reopened.verify("alice", "pw1").username == "alice"


def test_concurrent_duplicate_signups_only_one_wins(credentials, users_path):
    results = []
    barrier = threading.Barrier(8)

    def attempt(name):
        barrier.wait()
        try:
            credentials.create(name, "pw")
            results.append((name, "ok"))
        except DuplicateUser:
            results.append((name, "dup"))

    names = ["alice"] * 4 + ["bob", "carol", "dave", "erin"]
    threads = [threading.Thread(target=attempt, args=(n,)) for n in names]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    alice = [r for n, r in results if n == "alice"]
    assert alice.count("ok") == 1
    assert alice.count("dup") == 3
    assert credentials.count() == 5

    reopened = CredentialStore(store=JsonUserStore(users_path), password_hash_method=FAST_HASH)
    assert reopened.count() == 5


def test_failed_write_is_not_reported_and_not_kept(users_path):
    store = FailingStore(users_path)
    credentials = CredentialStore(store=store, password_hash_method=FAST_HASH)
    credentials.create("alice", "pw1")

    store.fail = True
    with pytest.raises(PersistenceError):
        credentials.create("bob", "pw2")

    with pytest.raises(NotFound):
        credentials.get("bob")
    assert credentials.count() == 1

    # A retry after the disk recovers succeeds.
    store.fail = False
    assert credentials.create("bob", "pw2").username == "bob"


def test_store_rejects_documents_without_users_object(users_path):
    users_path.write_text('[{"username": "alice", "password": "x", "ecs": []}]', encoding="utf-8")

    with pytest.raises(PersistenceError):
        JsonUserStore(users_path).load()
