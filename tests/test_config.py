"""Unit tests for core/config.py -- Settings parsing and StoreConfig."""

from __future__ import annotations

import dataclasses
from pathlib import Path

import pytest
from pydantic import ValidationError

from core.config import Settings, StoreConfig, get_settings


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    # Keep a developer's .env and shell out of these tests.
    monkeypatch.chdir(tmp_path)
    for var in ("ACCOUNTS_DIR", "ACCOUNTS_WRITE_PERMITTED", "LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)


def test_defaults_are_read_only():
    settings = Settings()
    assert settings.accounts_dir == Path("users")
    assert settings.accounts_write_permitted is False
    assert settings.log_level == "INFO"
    assert settings.store_config() == StoreConfig(directory=Path("users"), write_permitted=False)


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("ACCOUNTS_DIR", "/srv/users")
    monkeypatch.setenv("ACCOUNTS_WRITE_PERMITTED", "true")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    settings = Settings()
    assert settings.store_config() == StoreConfig(directory=Path("/srv/users"), write_permitted=True)
    assert settings.log_level == "DEBUG"


def test_dotenv_file_is_read(tmp_path):
    (tmp_path / ".env").write_text("ACCOUNTS_DIR=from-dotenv\n", encoding="utf-8")
    assert Settings().accounts_dir == Path("from-dotenv")


def test_invalid_log_level_rejected(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "LOUD")
    with pytest.raises(ValidationError):
        Settings()


@pytest.mark.parametrize("rounds", ["3", "32"])
def test_bcrypt_rounds_bounds(monkeypatch, rounds):
    monkeypatch.setenv("BCRYPT_ROUNDS", rounds)
    with pytest.raises(ValidationError):
        Settings()


def test_store_config_is_immutable():
    config = StoreConfig(directory=Path("x"))
    assert config.write_permitted is False
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.write_permitted = True


def test_get_settings_is_cached():
    get_settings.cache_clear()
    try:
        assert get_settings() is get_settings()
    finally:
        get_settings.cache_clear()
