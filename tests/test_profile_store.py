"""Unit tests for community/store.py -- ProfileStore."""

import pytest

from community.store import DuplicateProfileError, ProfileStore


def test_create_and_get(profile_store: ProfileStore) -> None:
    created = profile_store.create("subject-1", username="sam", avatar="https://img.test/a.png")
    fetched = profile_store.get("subject-1")
    assert fetched == created
    assert fetched.username == "sam"
    assert fetched.avatar == "https://img.test/a.png"
    assert profile_store.exists("subject-1")


def test_get_missing(profile_store: ProfileStore) -> None:
    assert profile_store.get("nobody") is None
    assert not profile_store.exists("nobody")


def test_one_profile_per_subject(profile_store: ProfileStore) -> None:
    profile_store.create("subject-1", username="sam")
    with pytest.raises(DuplicateProfileError):
        profile_store.create("subject-1", username="other")


def test_usernames_need_not_be_unique(profile_store: ProfileStore) -> None:
    profile_store.create("subject-1", username="sam")
    profile_store.create("subject-2", username="sam")
    assert profile_store.exists("subject-2")


def test_delete_is_idempotent(profile_store: ProfileStore) -> None:
    profile_store.create("subject-1", username="sam")
    assert profile_store.delete("subject-1")
    assert profile_store.get("subject-1") is None
    assert not profile_store.delete("subject-1")


def test_ping(profile_store: ProfileStore) -> None:
    assert profile_store.ping()
