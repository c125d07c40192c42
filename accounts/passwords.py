"""
accounts/passwords.py -- Password hashing, record construction and login checks.

Security design decisions:
  Passwords: bcrypt, used directly (no passlib wrapper). Every hash carries
       its own algorithm tag, cost factor and salt, so verify_password() needs
       nothing but the stored blob. The cost factor comes from
       Settings.bcrypt_rounds.

  Byte-exact input: the plaintext is UTF-8 encoded as given. No strip(), no
       Unicode normalization -- leading and trailing whitespace is part of
       the password.

  72-byte limit: bcrypt only looks at the first 72 bytes and recent releases
       reject longer input outright. hash_password() raises ValueError for
       such passwords on every bcrypt version instead of truncating silently.

  Timing equalization: authenticate() runs bcrypt against _DUMMY_HASH when
       the email has no usable record, so response time does not reveal
       whether an account exists.

Layer rule: no imports from main.py. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

import bcrypt

from accounts.models import UserRecord
from core.config import get_settings

if TYPE_CHECKING:
    from accounts.store import RecordStore

logger = logging.getLogger("accountstore.passwords")

_settings = get_settings()

# Every bcrypt blob starts with "$". The codec uses this byte to recognise
# legacy records whose whole content is a bare hash.
HASH_SENTINEL = b"$"

_MAX_PASSWORD_BYTES = 72

# $2b$12$ + 22 chars of salt + 31 chars of checksum, bcrypt's own base64 alphabet.
_BCRYPT_RE = re.compile(rb"\$2[abxy]?\$\d{2}\$[./A-Za-z0-9]{53}")


def hash_password(plain: str) -> bytes:
    """Return a fresh bcrypt hash of plain. Two calls never return the same blob."""
    secret = plain.encode("utf-8")
    if len(secret) > _MAX_PASSWORD_BYTES:
        raise ValueError(f"Password is {len(secret)} bytes; bcrypt accepts at most {_MAX_PASSWORD_BYTES}")
    return bcrypt.hashpw(secret, bcrypt.gensalt(rounds=_settings.bcrypt_rounds))


def hash_is_well_formed(hashed: bytes) -> bool:
    """Return True if hashed parses as a bcrypt blob.

    This is the distinguished check for stored hashes: verify_password() only
    answers match / no match, while a False here means the record itself is
    corrupt.
    """
    return bool(_BCRYPT_RE.fullmatch(hashed))


def verify_password(hashed: bytes, candidate: str) -> bool:
    """Return True if candidate matches hashed. Any failure is reported as False."""
    try:
        return bcrypt.checkpw(candidate.encode("utf-8"), hashed)
    except ValueError:
        # Malformed blob or over-long candidate.
        return False


def make_user_record(email: str, password: str, properties: dict[Any, Any] | None = None) -> UserRecord:
    """Build a new UserRecord with a freshly salted hash of password."""
    return UserRecord(email=email, password_hash=hash_password(password), properties=dict(properties or {}))


# Computed once at module load so the first failed login is not measurably
# faster than later ones.
_DUMMY_HASH: bytes = hash_password("accountstore_timing_dummy")


def authenticate(store: RecordStore, email: str, password: str) -> UserRecord | None:
    """Check an email/password login with timing equalization.

    Always runs bcrypt whether or not the account exists:
    - Unknown email or unreadable record: bcrypt runs against _DUMMY_HASH
    - Wrong password: bcrypt runs against the real hash

    A stored hash that does not parse is logged as a corrupt record.
    Returns the UserRecord on success, None on any failure.
    """
    record = store.lookup(email)
    if record is None:
        verify_password(_DUMMY_HASH, password)
        return None
    if not hash_is_well_formed(record.password_hash):
        logger.error("Corrupt password hash in record for %s", email)
        verify_password(_DUMMY_HASH, password)
        return None
    if not verify_password(record.password_hash, password):
        return None
    return record
