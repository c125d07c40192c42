"""
accounts/codec.py -- On-disk representation of a UserRecord.

Two formats are read, one is written:

  Legacy (read-only): the whole file is a bare bcrypt hash. Recognised by its
      first byte, HASH_SENTINEL ("$"). The email comes from the file name and
      properties are empty.

  Structured (canonical): a UTF-8 JSON object with three entries:

        {"email": "a@example.com",
         "password": "$2b$12$...",
         "properties": [["display", "Alice"], ["lang", "en"]]}

      properties is a list of [key, value] pairs rather than a JSON object so
      keys are not forced to be strings (they must still be JSON scalars).
      Pair order carries no meaning; when a key appears twice the later pair
      wins. password holds the hash bytes mapped 1:1 onto code points
      (latin-1), which leaves bcrypt's ASCII blobs readable and round-trips
      any other byte string exactly. Tuples inside property values read back
      as lists.

Layer rule: no filesystem access here. accounts/store.py reads and writes
the bytes this module produces and consumes.
"""

from __future__ import annotations

import json

from accounts.errors import EmailMismatch, MalformedRecord, MissingKey
from accounts.models import UserRecord
from accounts.passwords import HASH_SENTINEL

_SCALARS = (str, int, float, bool, type(None))


def decode(raw: bytes, expected_email: str) -> UserRecord:
    """Parse file content into a UserRecord.

    expected_email is the name the record was opened under. The structured
    form must repeat it exactly.

    Raises MalformedRecord, MissingKey or EmailMismatch.
    """
    if raw[:1] == HASH_SENTINEL:
        return UserRecord(email=expected_email, password_hash=raw, properties={})

    try:
        content = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise MalformedRecord(e) from e
    if not isinstance(content, dict):
        raise MalformedRecord(TypeError(f"expected a JSON object, got {type(content).__name__}"))

    if "email" not in content:
        raise MissingKey("email")
    if content["email"] != expected_email:
        raise EmailMismatch(expected_email, content["email"])
    if "password" not in content:
        raise MissingKey("password")

    password = content["password"]
    if not isinstance(password, str):
        raise MalformedRecord(TypeError(f"password must be a string, got {type(password).__name__}"))
    try:
        password_hash = password.encode("latin-1")
    except UnicodeEncodeError as e:
        raise MalformedRecord(e) from e

    return UserRecord(
        email=expected_email,
        password_hash=password_hash,
        properties=_pairs_to_dict(content.get("properties")),
    )


def encode(record: UserRecord) -> bytes:
    """Serialize record in the structured form. Never emits the legacy format.

    Raises TypeError for properties that would not read back unchanged:
    top-level keys that are not JSON scalars, and nested objects with
    non-string keys.
    """
    for key, value in record.properties.items():
        if not isinstance(key, _SCALARS):
            raise TypeError(f"Property key {key!r} is not a JSON scalar")
        _check_nested_keys(value)
    content = {
        "email": record.email,
        "password": record.password_hash.decode("latin-1"),
        "properties": [[key, value] for key, value in record.properties.items()],
    }
    return (json.dumps(content, ensure_ascii=False, indent=2) + "\n").encode("utf-8")


def _check_nested_keys(value: object) -> None:
    # json.dumps turns {1: "x"} into {"1": "x"}; refuse rather than change the data.
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"Nested property key {key!r} is not a string")
            _check_nested_keys(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            _check_nested_keys(item)


def _pairs_to_dict(pairs: object) -> dict:
    if pairs is None:
        return {}
    if not isinstance(pairs, list):
        raise MalformedRecord(TypeError(f"properties must be a list of pairs, got {type(pairs).__name__}"))
    properties: dict = {}
    for pair in pairs:
        if not isinstance(pair, list) or len(pair) != 2:
            raise MalformedRecord(ValueError(f"property entry is not a [key, value] pair: {pair!r}"))
        key, value = pair
        try:
            properties[key] = value
        except TypeError as e:
            # JSON arrays and objects cannot be dict keys.
            raise MalformedRecord(e) from e
    return properties
