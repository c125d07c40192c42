"""
accounts/models.py -- Domain dataclasses for user accounts.

Pattern: Data class (pure data container, zero logic). The store, codec and
ledger do the work; these types only own the shape of what they pass around.

Layer rule: no imports from main.py.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass
class UserRecord:
    """One registered account, persisted as a single file named after `email`.

    password_hash is the raw bcrypt blob (bytes), never the plaintext.

    properties is an open-ended bag. Keys are unique: writing the same key
    twice keeps only the last value, both in memory and when a stored record
    lists a key more than once.
    """

    email: str
    password_hash: bytes
    properties: dict[Any, Any] = field(default_factory=dict)


class RecordStatus(str, Enum):
    """What RecordStore.status() found on disk for an email."""

    MISSING = "missing"  # no file
    PRESENT = "present"  # file decodes to a valid record
    UNREADABLE = "unreadable"  # file exists but cannot be read or decoded


class LookupKind(str, Enum):
    """Discriminator carried by every lookup failure."""

    EXCEPTION = "exception"  # filesystem fault or unparsable content
    MISSING_KEY = "missing-key"
    EMAIL_MISMATCH = "email-address-mismatch"


@dataclass(frozen=True)
class LookupFailure:
    """Tagged error value handed to a lookup error handler.

    error is the underlying exception (an OSError or a RecordDecodeError) so
    a handler can re-raise it unchanged.
    """

    email: str
    kind: LookupKind
    error: Exception

    @property
    def detail(self) -> str:
        return str(self.error)


class CodeCheck(str, Enum):
    """Outcome of RegistrationLedger.check()."""

    OK = "ok"
    NO_PENDING_CODE = "no-pending-code"
    MISMATCH = "mismatch"

    @property
    def ok(self) -> bool:
        return self is CodeCheck.OK


@dataclass(frozen=True)
class DisplayName:
    """Presentation-only identity derived from an email address.

    short_hash is the first 7 hex characters of SHA-256(email). plain_tag and
    obfuscated_tag are ready-to-render labels; the obfuscated one masks all
    but the first character of the local part.
    """

    email: str
    local_part: str
    short_hash: str
    plain_tag: str
    obfuscated_tag: str
