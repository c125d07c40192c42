"""
accounts/registration.py -- Registration and password-reset flows.

Both flows follow the same two steps: the ledger confirms the one-time code
the user typed, then the store writes the record. The code is only consumed
once the account state allows the write, so a user who hits "account already
exists" can still use the code for a reset.
"""

from __future__ import annotations

from typing import Any

from accounts.errors import AccountExistsError, WritePermissionError
from accounts.ledger import RegistrationLedger
from accounts.models import CodeCheck, RecordStatus, UserRecord
from accounts.passwords import hash_password, make_user_record
from accounts.store import RecordStore


def register_account(
    store: RecordStore,
    ledger: RegistrationLedger,
    email: str,
    code: str,
    password: str,
    properties: dict[Any, Any] | None = None,
) -> tuple[CodeCheck, UserRecord | None]:
    """Create email's record if code matches its pending registration code.

    Returns (outcome, record); record is None unless outcome is OK.
    Raises AccountExistsError if a record file is already there (readable or
    not) and WritePermissionError for a read-only store, both before the
    code is looked at.
    """
    if store.status(email) is not RecordStatus.MISSING:
        raise AccountExistsError(email)
    if not store.config.write_permitted:
        raise WritePermissionError(email)

    record = make_user_record(email, password, properties)
    outcome = ledger.check(email, code)
    if not outcome.ok:
        return outcome, None
    store.save(record)
    return outcome, record


def reset_password(
    store: RecordStore,
    ledger: RegistrationLedger,
    email: str,
    code: str,
    password: str,
) -> tuple[CodeCheck, UserRecord | None]:
    """Replace email's password if code matches its pending reset code.

    The existing record must load; its properties are kept. Raises whatever
    RecordStore.load() raises (FileNotFoundError for unknown emails) without
    consuming the code.
    """
    record = store.load(email)
    if not store.config.write_permitted:
        raise WritePermissionError(email)

    new_hash = hash_password(password)
    outcome = ledger.check(email, code)
    if not outcome.ok:
        return outcome, None
    record.password_hash = new_hash
    store.save(record)
    return outcome, record
