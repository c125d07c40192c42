"""
accounts/store.py -- Directory-of-files persistence layer for user records.

Pattern: Repository (same shape as a SQL-backed user store, one file per row).
RecordStore is the repository; accounts/codec.py is the mapper. Callers never
build paths or open record files themselves.

Layout:
  <directory>/<email>          one file per account, content per codec.py
  <directory>/.<email>.*.tmp   in-flight writes, never listed

Security:
  Emails arrive from web forms and are used as file names. record_path()
  accepts an email only if it is exactly one path segment; anything else
  raises PathSafetyError. Nothing is normalized or "fixed up".

Concurrency:
  save() writes to a temp file in the same directory, fsyncs it, then
  os.replace()s it over the record. rename is atomic on POSIX and Windows,
  so a reader sees either the old file or the complete new one, even if the
  writer dies half way. Saves for different emails touch different files and
  need no coordination. There is no lock; last rename wins.

Lookup errors:
  Filesystem and decode failures are wrapped in a LookupFailure and handed to
  an error handler. The default handler logs and returns None; pass
  raise_lookup_failure (or call load()) to get the exception instead.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

from accounts import codec
from accounts.errors import PathSafetyError, RecordDecodeError, WritePermissionError
from accounts.models import LookupFailure, LookupKind, RecordStatus, UserRecord
from accounts.passwords import hash_password
from core.config import StoreConfig

logger = logging.getLogger("accountstore.store")

LookupErrorHandler = Callable[[LookupFailure], Any]

_TEMP_PREFIX = "."
_TEMP_SUFFIX = ".tmp"
# NAME_MAX on common filesystems is 255 bytes; the temp name adds a dot, a
# separator, mkstemp's 8 random characters and the suffix.
_MAX_NAME_BYTES = 255 - len(_TEMP_PREFIX) - 1 - 8 - len(_TEMP_SUFFIX)


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------


def log_lookup_failure(failure: LookupFailure) -> None:
    """Default handler: log the failure and return None."""
    logger.error("Lookup of %s failed (%s): %s", failure.email, failure.kind.value, failure.detail)
    return None


def raise_lookup_failure(failure: LookupFailure) -> Any:
    """Handler that re-raises the underlying exception."""
    raise failure.error


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------


def record_path(config: StoreConfig, email: str) -> Path:
    """Return the file that holds email's record.

    email must be a single path segment. Raises PathSafetyError for empty
    names, "." and "..", anything containing a separator or NUL, names
    starting with "." (reserved for in-flight temp files), and names too
    long to be a file name once the temp-file decoration is added.
    """
    if not email:
        raise PathSafetyError(email, "empty name")
    if email in (".", ".."):
        raise PathSafetyError(email, "relative directory reference")
    if "/" in email or "\\" in email or (os.altsep and os.altsep in email):
        raise PathSafetyError(email, "contains a path separator")
    if "\x00" in email:
        raise PathSafetyError(email, "contains a NUL byte")
    if email.startswith(_TEMP_PREFIX):
        raise PathSafetyError(email, "leading '.' is reserved")
    if len(email.encode("utf-8", "surrogateescape")) > _MAX_NAME_BYTES:
        raise PathSafetyError(email, f"longer than {_MAX_NAME_BYTES} bytes")
    path = Path(config.directory) / email
    # The joined path must still be a direct child of the directory.
    if path.name != email or path.parent != Path(config.directory):
        raise PathSafetyError(email, "does not resolve to a single path segment")
    return path


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class RecordStore:
    """Repository for UserRecord files under config.directory.

    Usage:
        store = RecordStore(StoreConfig(Path("/srv/users"), write_permitted=True))
        store.save(make_user_record("a@example.com", "secret"))
        record = store.lookup("a@example.com")
    """

    def __init__(self, config: StoreConfig) -> None:
        self.config = config

    def record_path(self, email: str) -> Path:
        return record_path(self.config, email)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_users(self) -> list[str]:
        """Return the names of all record files, sorted.

        Names are not validated or decoded. Temp files from in-flight writes
        and subdirectories are skipped. A missing directory means no users.
        """
        directory = Path(self.config.directory)
        try:
            entries = list(directory.iterdir())
        except FileNotFoundError:
            return []
        return sorted(e.name for e in entries if not e.name.startswith(_TEMP_PREFIX) and not e.is_dir())

    def load(self, email: str) -> UserRecord:
        """Read and decode email's record.

        Raises PathSafetyError, OSError (FileNotFoundError when there is no
        record) or a RecordDecodeError subclass.
        """
        path = self.record_path(email)
        return codec.decode(path.read_bytes(), email)

    def lookup(self, email: str, on_error: LookupErrorHandler | None = None) -> UserRecord | Any:
        """Return email's record, or whatever on_error returns for a failure.

        on_error defaults to log_lookup_failure, so a failed lookup logs and
        returns None. PathSafetyError is raised directly, never handed to
        on_error.
        """
        handler = on_error if on_error is not None else log_lookup_failure
        try:
            return self.load(email)
        except PathSafetyError:
            raise
        except RecordDecodeError as e:
            return handler(LookupFailure(email=email, kind=e.kind, error=e))
        except OSError as e:
            return handler(LookupFailure(email=email, kind=LookupKind.EXCEPTION, error=e))

    def status(self, email: str) -> RecordStatus:
        """Classify email's record as MISSING, PRESENT or UNREADABLE.

        A missing file is not an error and is not logged. Anything else that
        stops the record from loading (permissions, I/O, bad content) is
        logged through log_lookup_failure and reported as UNREADABLE.
        """
        try:
            self.load(email)
        except PathSafetyError:
            raise
        except FileNotFoundError:
            return RecordStatus.MISSING
        except RecordDecodeError as e:
            log_lookup_failure(LookupFailure(email=email, kind=e.kind, error=e))
            return RecordStatus.UNREADABLE
        except OSError as e:
            log_lookup_failure(LookupFailure(email=email, kind=LookupKind.EXCEPTION, error=e))
            return RecordStatus.UNREADABLE
        return RecordStatus.PRESENT

    def exists(self, email: str) -> bool:
        """True only if email has a record that loads cleanly.

        Corrupt or unreadable records report False (after being logged); use
        status() to tell them apart from absent ones.
        """
        return self.status(email) is RecordStatus.PRESENT

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save(self, record: UserRecord) -> None:
        """Atomically replace record.email's file with the encoded record.

        Raises WritePermissionError before touching the filesystem if the
        config is read-only, and PathSafetyError for unsafe emails.
        """
        if not self.config.write_permitted:
            raise WritePermissionError(record.email)
        path = self.record_path(record.email)
        data = codec.encode(record)
        path.parent.mkdir(parents=True, exist_ok=True)
        _atomic_write(path, data)
        logger.info("Saved record for %s", record.email)

    def update_properties(self, email: str, changes: dict[Any, Any]) -> UserRecord:
        """Merge changes into email's properties and save the whole record.

        Raises the same errors as load() and save().
        """
        if not self.config.write_permitted:
            raise WritePermissionError(email)
        record = self.load(email)
        record.properties.update(changes)
        self.save(record)
        return record

    def set_password(self, email: str, password: str) -> UserRecord:
        """Re-hash email's password and save, keeping its properties."""
        if not self.config.write_permitted:
            raise WritePermissionError(email)
        record = self.load(email)
        record.password_hash = hash_password(password)
        self.save(record)
        return record


def _atomic_write(path: Path, data: bytes) -> None:
    """Write data to path so readers only ever see the old or the new content.

    The temp file lives in the destination directory so os.replace() is a
    same-filesystem rename. On any failure the temp file is removed and the
    original is left untouched.
    """
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f"{_TEMP_PREFIX}{path.name}.", suffix=_TEMP_SUFFIX)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise
    _fsync_directory(path.parent)


def _fsync_directory(directory: Path) -> None:
    """Flush the rename itself to disk. Not supported on every platform."""
    try:
        fd = os.open(directory, os.O_RDONLY)
    except OSError:
        return
    try:
        os.fsync(fd)
    except OSError:
        pass
    finally:
        os.close(fd)
