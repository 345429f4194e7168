from datetime import datetime, timezone

import pytest

from blogauth.core.exceptions import DuplicateCredentialError
from blogauth.models.user import User, UserStatus


def _create(store, **overrides):
    fields = {
        "name": "Alice Smith",
        "email": "alice@example.com",
        "phone": None,
        "password_hash": "$2b$04$fakehashfakehashfakehu",
    }
    fields.update(overrides)
    return store.create(**fields)


def test_create_returns_signed_out_record(store):
    record = _create(store)

    assert record.id is not None
    assert record.token_version == 0
    assert record.status is UserStatus.LOGGED_OUT
    assert record.last_login_at is None


def test_find_by_email_or_phone(store):
    alice = _create(store, email="alice@example.com", phone="+15551234567")
    bob = _create(store, name="Bob", email=None, phone="+15557654321")

    assert store.find_by_email_or_phone(email="alice@example.com").id == alice.id
    assert store.find_by_email_or_phone(phone="+15557654321").id == bob.id
    assert store.find_by_email_or_phone(email="nobody@example.com") is None


def test_find_with_no_identifier_returns_none(store):
    _create(store)
    assert store.find_by_email_or_phone() is None
    assert store.find_by_email_or_phone(email=None, phone=None) is None


def test_find_by_id(store):
    record = _create(store)
    assert store.find_by_id(record.id).email == "alice@example.com"
    assert store.find_by_id(record.id + 100) is None


def test_duplicate_email_raises_and_session_stays_usable(store, db):
    _create(store, email="dup@example.com")

    with pytest.raises(DuplicateCredentialError):
        _create(store, name="Other", email="dup@example.com")

    other = _create(store, name="Other", email="other@example.com")
    assert other.id is not None
    assert db.query(User).count() == 2


def test_duplicate_phone_raises(store):
    _create(store, email=None, phone="+15551234567")
    with pytest.raises(DuplicateCredentialError):
        _create(store, name="Other", email=None, phone="+15551234567")


def test_increment_token_version_counts_up(store):
    record = _create(store)

    assert store.increment_token_version(record.id) == 1
    assert store.increment_token_version(record.id) == 2
    assert store.find_by_id(record.id).token_version == 2


def test_update_status_and_login(store):
    record = _create(store)
    when = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    store.update_status_and_login(record.id, UserStatus.LOGGED_IN, when)
    updated = store.find_by_id(record.id)
    assert updated.status is UserStatus.LOGGED_IN
    assert updated.last_login_at.replace(tzinfo=timezone.utc) == when

    store.update_status_and_login(record.id, UserStatus.LOGGED_OUT)
    updated = store.find_by_id(record.id)
    assert updated.status is UserStatus.LOGGED_OUT
    # signing out keeps the last sign-in time
    assert updated.last_login_at is not None


def test_update_password_hash(store):
    record = _create(store)
    store.update_password_hash(record.id, "new-hash")
    assert store.find_by_id(record.id).password_hash == "new-hash"


def test_public_view_omits_hash(store):
    public = _create(store).to_public()
    assert "password_hash" not in public.model_dump()
    assert public.status is UserStatus.LOGGED_OUT
