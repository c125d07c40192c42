"""
accounts/ledger.py -- In-memory one-time codes for registration and password reset.

Each email has at most one pending code. generate() replaces whatever was
pending; check() consumes the code on a match and leaves it in place on a
mismatch so the user can retry.

Codes are secrets.token_hex(16): 128 bits from the OS CSPRNG, 32 hex
characters. Comparison ignores case and runs in constant time.

Thread safety: one lock per ledger guards the dict. generate() and the
compare-and-remove in check() each run entirely under it, so two concurrent
checks with the same valid code cannot both succeed.

Pending codes live only in process memory and are lost on restart.
"""

from __future__ import annotations

import hmac
import logging
import secrets
import threading

from accounts.models import CodeCheck

logger = logging.getLogger("accountstore.ledger")

CODE_BYTES = 16


class RegistrationLedger:
    """Pending one-time codes keyed by email.

    Usage:
        ledger = RegistrationLedger()
        code = ledger.generate("a@example.com")   # deliver out of band
        if ledger.check("a@example.com", typed_code).ok:
            ...
    """

    def __init__(self) -> None:
        self._pending: dict[str, str] = {}
        self._lock = threading.Lock()

    def generate(self, email: str) -> str:
        """Create a fresh code for email, discarding any earlier one, and return it."""
        code = secrets.token_hex(CODE_BYTES)
        with self._lock:
            replaced = email in self._pending
            self._pending[email] = code
        logger.info("Issued code for %s%s", email, " (replaced pending code)" if replaced else "")
        return code

    def check(self, email: str, given_code: str) -> CodeCheck:
        """Compare given_code with email's pending code, consuming it on a match.

        Never raises for a missing or wrong code; those are ordinary outcomes.
        """
        with self._lock:
            pending = self._pending.get(email)
            if pending is None:
                result = CodeCheck.NO_PENDING_CODE
            elif _codes_match(pending, given_code):
                del self._pending[email]
                result = CodeCheck.OK
            else:
                result = CodeCheck.MISMATCH
        if result is CodeCheck.OK:
            logger.info("Code accepted for %s", email)
        else:
            logger.warning("Code rejected for %s: %s", email, result.value)
        return result

    def has_pending(self, email: str) -> bool:
        with self._lock:
            return email in self._pending

    def discard(self, email: str) -> bool:
        """Drop email's pending code, if any. Returns True if one was removed."""
        with self._lock:
            return self._pending.pop(email, None) is not None


def _codes_match(pending: str, given: str) -> bool:
    return hmac.compare_digest(pending.lower().encode("utf-8"), given.lower().encode("utf-8"))
