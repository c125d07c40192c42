"""Unit tests for accounts/passwords.py -- bcrypt hashing and login checks.

Covers:
- hash_password() salts every call and produces well-formed blobs
- verify_password() is byte-exact (whitespace matters) and never raises
- over-long passwords are rejected instead of truncated
- authenticate() success and every failure path
"""

from __future__ import annotations

import pytest

from accounts.models import UserRecord
from accounts.passwords import (
    HASH_SENTINEL,
    authenticate,
    hash_is_well_formed,
    hash_password,
    make_user_record,
    verify_password,
)

# ---------------------------------------------------------------------------
# Hashing
# ---------------------------------------------------------------------------


def test_hash_is_salted_per_call():
    first = hash_password("correct horse")
    second = hash_password("correct horse")
    assert first != second
    assert verify_password(first, "correct horse")
    assert verify_password(second, "correct horse")


def test_hash_starts_with_sentinel_and_is_well_formed():
    hashed = hash_password("pw")
    assert isinstance(hashed, bytes)
    assert hashed[:1] == HASH_SENTINEL
    assert hash_is_well_formed(hashed)


def test_hash_uses_configured_rounds():
    # conftest sets BCRYPT_ROUNDS=4
    assert hash_password("pw").startswith(b"$2b$04$")


def test_password_over_72_bytes_is_rejected():
    with pytest.raises(ValueError):
        hash_password("x" * 73)


def test_multibyte_password_counts_bytes_not_characters():
    # 24 characters, 72 bytes: exactly at the limit
    password = "€" * 24
    assert verify_password(hash_password(password), password)
    with pytest.raises(ValueError):
        hash_password("€" * 25)


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------


def test_verify_rejects_other_passwords():
    hashed = hash_password("hunter2")
    assert not verify_password(hashed, "hunter3")
    assert not verify_password(hashed, "HUNTER2")
    assert not verify_password(hashed, "")


@pytest.mark.parametrize("password", ["  padded  ", " leading", "trailing\t", "\nnewline"])
def test_whitespace_is_significant(password):
    hashed = hash_password(password)
    assert verify_password(hashed, password)
    assert not verify_password(hashed, password.strip())


@pytest.mark.parametrize("blob", [b"", b"$", b"not a hash", b"$2b$04$tooshort"])
def test_verify_malformed_hash_returns_false(blob):
    assert verify_password(blob, "anything") is False
    assert not hash_is_well_formed(blob)


def test_trailing_newline_is_not_well_formed():
    hashed = hash_password("pw")
    assert hash_is_well_formed(hashed)
    assert not hash_is_well_formed(hashed + b"\n")
    assert not hash_is_well_formed(b"\n" + hashed)


def test_make_user_record_hashes_and_copies_properties():
    props = {"lang": "en"}
    record = make_user_record("a@example.com", "pw", props)
    assert record.email == "a@example.com"
    assert verify_password(record.password_hash, "pw")
    assert record.properties == {"lang": "en"}
    props["lang"] = "fr"
    assert record.properties == {"lang": "en"}


def test_make_user_record_defaults_to_empty_properties():
    assert make_user_record("a@example.com", "pw").properties == {}


# ---------------------------------------------------------------------------
# authenticate()
# ---------------------------------------------------------------------------


def test_authenticate_success(store):
    store.save(make_user_record("a@example.com", "s3cret", {"role": "x"}))
    record = authenticate(store, "a@example.com", "s3cret")
    assert record is not None
    assert record.properties == {"role": "x"}


def test_authenticate_wrong_password(store):
    store.save(make_user_record("a@example.com", "s3cret"))
    assert authenticate(store, "a@example.com", "wrong") is None


def test_authenticate_unknown_email(store):
    assert authenticate(store, "nobody@example.com", "pw") is None


def test_authenticate_corrupt_hash_is_logged(store, caplog):
    store.save(UserRecord(email="a@example.com", password_hash=b"garbage"))
    assert authenticate(store, "a@example.com", "garbage") is None
    assert "Corrupt password hash" in caplog.text


def test_authenticate_legacy_hash_with_newline_is_logged_as_corrupt(store, write_raw, caplog):
    write_raw("a@example.com", hash_password("pw") + b"\n")
    assert authenticate(store, "a@example.com", "pw") is None
    assert "Corrupt password hash" in caplog.text
