"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads happen here. No module should call os.getenv()
or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY). Type coercion and validation are built in.

  @model_validator(mode="after"): Cross-field validation after all fields are
      resolved. Dev mode generates a signing key with a warning, production
      mode refuses to start without one, and token durations are checked
      against each other.

Security notes:
  SECRET_KEY shorter than 32 chars is rejected outright. It is the HS256
  signing key for both access and refresh tokens.

  The auth service never reads these settings itself. api/main.py and main.py
  pass the secret and durations into AuthService explicitly.

Layer rule: core/ is the kernel. This module may not import from api/, auth/
or inventory/.
"""

import logging
import secrets
from datetime import timedelta
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("inventory.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'inventory.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file. The model_validator enforces
    production-safety rules at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    log_level: str = "INFO"
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    secret_key: str = ""
    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Tokens and sessions
    # ------------------------------------------------------------------

    access_token_duration_seconds: int = 15 * 60
    refresh_token_duration_seconds: int = 24 * 60 * 60
    # Sessions whose expired_at is older than now - retention are purged.
    session_retention_seconds: int = 0
    session_purge_interval_seconds: int = 6 * 60 * 60

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost"]
    cors_origins: list[str] = ["http://localhost", "http://localhost:3000", "http://127.0.0.1"]
    login_rate_limit: str = "10/minute"
    rate_limit_enabled: bool = True

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def access_token_duration(self) -> timedelta:
        return timedelta(seconds=self.access_token_duration_seconds)

    @property
    def refresh_token_duration(self) -> timedelta:
        return timedelta(seconds=self.refresh_token_duration_seconds)

    @property
    def session_retention(self) -> timedelta:
        return timedelta(seconds=self.session_retention_seconds)

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the SECRET_KEY policy.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Issued tokens will not verify after a restart -- acceptable for
            local dev.

        Production mode (DEBUG=false or not set): refuse to start if
            SECRET_KEY is missing.

        Both modes: reject keys shorter than 32 characters.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning(
                    "WARNING: Using auto-generated SECRET_KEY. " "Issued tokens will not survive a restart."
                )
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return self

    @model_validator(mode="after")
    def validate_token_durations(self) -> "Settings":
        """Access tokens must be short-lived relative to the refresh credential."""
        if self.access_token_duration_seconds <= 0 or self.refresh_token_duration_seconds <= 0:
            raise ValueError("Token durations must be positive.")
        if self.access_token_duration_seconds >= self.refresh_token_duration_seconds:
            raise ValueError("ACCESS_TOKEN_DURATION_SECONDS must be shorter than REFRESH_TOKEN_DURATION_SECONDS.")
        if self.session_retention_seconds < 0:
            raise ValueError("SESSION_RETENTION_SECONDS must not be negative.")
        if self.session_purge_interval_seconds <= 0:
            raise ValueError("SESSION_PURGE_INTERVAL_SECONDS must be positive.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
