"""
core/config.py -- Centralized configuration via pydantic-settings.

All environment variable reads for the account store happen here. No module
should call os.getenv() or os.environ.get() directly -- import get_settings()
instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. accounts_dir -> ACCOUNTS_DIR). Type coercion and validation are built in.

  StoreConfig: the immutable (directory, write_permitted) pair that every
      RecordStore is built from. Stores never read Settings themselves, so
      tests can run several independent stores side by side.

Layer rule: core/ is the kernel. This module may not import from accounts/.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("accountstore.config")

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


@dataclass(frozen=True)
class StoreConfig:
    """Where user records live and whether this process may change them.

    write_permitted gates save() only; lookups ignore it.
    """

    directory: Path
    write_permitted: bool = False


class Settings(BaseSettings):
    """Process settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    accounts_dir: Path = Path("users")
    # Read-only by default. A web front-end that only authenticates never
    # needs write access to the record directory.
    accounts_write_permitted: bool = False

    # ------------------------------------------------------------------
    # Password hashing
    # ------------------------------------------------------------------

    # bcrypt cost factor. 4 is the library minimum and is only sensible in tests.
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}, got {value!r}")
        return level

    def store_config(self) -> StoreConfig:
        """Freeze the storage fields into the value handed to RecordStore."""
        return StoreConfig(directory=self.accounts_dir, write_permitted=self.accounts_write_permitted)


@lru_cache
def get_settings() -> Settings:
    """Return the Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    settings = Settings()
    logger.debug(
        "Loaded settings: accounts_dir=%s write_permitted=%s",
        settings.accounts_dir,
        settings.accounts_write_permitted,
    )
    return settings
