"""
tests/conftest.py -- Shared fixtures for the account store tests.

This module provides:
  - config / read_only_config: StoreConfig values backed by pytest's tmp_path
  - store / read_only_store: RecordStore instances over those configs
  - ledger: a fresh RegistrationLedger per test
  - write_raw(): drop arbitrary bytes into the record directory

Every test gets its own directory, so stores never share state.

BCRYPT_ROUNDS must be set before any accounts/ import: accounts.passwords
reads the cost factor once at module load via get_settings(), and the
default of 12 would make the suite take minutes.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path

# CRITICAL: Set before any accounts/core import so get_settings() sees it.
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest

from accounts.ledger import RegistrationLedger
from accounts.store import RecordStore
from core.config import StoreConfig


@pytest.fixture
def record_dir(tmp_path: Path) -> Path:
    """Record directory that does not exist yet; save() must create it."""
    return tmp_path / "records" / "users"


@pytest.fixture
def config(record_dir: Path) -> StoreConfig:
    return StoreConfig(directory=record_dir, write_permitted=True)


@pytest.fixture
def read_only_config(record_dir: Path) -> StoreConfig:
    return StoreConfig(directory=record_dir, write_permitted=False)


@pytest.fixture
def store(config: StoreConfig) -> RecordStore:
    return RecordStore(config)


@pytest.fixture
def read_only_store(read_only_config: StoreConfig) -> RecordStore:
    return RecordStore(read_only_config)


@pytest.fixture
def ledger() -> RegistrationLedger:
    return RegistrationLedger()


@pytest.fixture
def write_raw(record_dir: Path) -> Callable[[str, bytes], Path]:
    """Return a helper that writes raw bytes as a record file, bypassing the codec."""

    def _write(name: str, content: bytes) -> Path:
        record_dir.mkdir(parents=True, exist_ok=True)
        path = record_dir / name
        path.write_bytes(content)
        return path

    return _write
