"""
accounts/errors.py -- Exception taxonomy for the account store.

PathSafetyError and WritePermissionError are always raised straight to the
caller. Decode errors and OSErrors raised while reading a record are routed
through the lookup error handler (see RecordStore.lookup), tagged with a
LookupKind so handlers can tell them apart.
"""

from __future__ import annotations

from accounts.models import LookupKind


class AccountStoreError(Exception):
    """Base class for every error this package raises on purpose."""


class PathSafetyError(AccountStoreError, ValueError):
    """The email would not map to exactly one file inside the record directory."""

    def __init__(self, email: str, reason: str) -> None:
        super().__init__(f"Unsafe record name {email!r}: {reason}")
        self.email = email
        self.reason = reason


class WritePermissionError(AccountStoreError, PermissionError):
    """A mutation was attempted through a read-only StoreConfig."""

    def __init__(self, email: str) -> None:
        super().__init__(f"Refusing to write record for {email!r}: store is read-only")
        self.email = email


class AccountExistsError(AccountStoreError):
    """Registration was attempted for an email that already has a record."""

    def __init__(self, email: str) -> None:
        super().__init__(f"An account for {email!r} already exists")
        self.email = email


class RecordDecodeError(AccountStoreError):
    """Base class for content problems found while decoding a record."""

    kind: LookupKind = LookupKind.EXCEPTION


class MissingKey(RecordDecodeError):
    kind = LookupKind.MISSING_KEY

    def __init__(self, key: str) -> None:
        super().__init__(f"Record has no {key!r} entry")
        self.key = key


class EmailMismatch(RecordDecodeError):
    """The stored email disagrees with the file it was read from.

    Either the file was renamed or its content was tampered with; the record
    is never returned in that state.
    """

    kind = LookupKind.EMAIL_MISMATCH

    def __init__(self, expected: str, found: object) -> None:
        super().__init__(f"Record email {found!r} does not match {expected!r}")
        self.expected = expected
        self.found = found


class MalformedRecord(RecordDecodeError):
    kind = LookupKind.EXCEPTION

    def __init__(self, cause: Exception) -> None:
        super().__init__(f"Malformed record: {cause}")
        self.cause = cause
