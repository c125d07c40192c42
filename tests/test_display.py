"""Unit tests for accounts/display.py -- derive_display_name()."""

from __future__ import annotations

import hashlib

from accounts.display import derive_display_name


def test_fields():
    name = derive_display_name("alice@example.com")
    expected_hash = hashlib.sha256(b"alice@example.com").hexdigest()[:7]
    assert name.email == "alice@example.com"
    assert name.local_part == "alice"
    assert name.short_hash == expected_hash
    assert name.plain_tag == f"alice#{expected_hash}"
    assert name.obfuscated_tag == f"a****#{expected_hash}"


def test_hash_covers_full_address():
    assert derive_display_name("alice@example.com").short_hash != derive_display_name("alice@example.org").short_hash


def test_local_part_stops_at_first_at_sign():
    assert derive_display_name('"a@b"@example.com').local_part == '"a'


def test_address_without_at_sign():
    name = derive_display_name("localonly")
    assert name.local_part == "localonly"
    assert name.obfuscated_tag.startswith("l********#")


def test_empty_local_part():
    name = derive_display_name("@example.com")
    assert name.local_part == ""
    assert name.obfuscated_tag == f"#{name.short_hash}"


def test_memoized():
    assert derive_display_name("bob@example.com") is derive_display_name("bob@example.com")
