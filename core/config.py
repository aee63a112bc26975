"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for TokenGate happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY). Type coercion and validation are built in.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved from environment. Dev mode generates a signing key with a
      warning; production mode refuses to start without one.

Security notes:
  SECRET_KEY is the HMAC key for every token this process issues or verifies.
  All instances that must accept each other's tokens need the same value.
  The key is never logged.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
import secrets
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("tokengate.config")

# Tokens stay valid for 8 hours after issuance unless overridden.
DEFAULT_TOKEN_EXPIRE_SECONDS = 8 * 60 * 60

_MIN_SECRET_LENGTH = 32


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
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    secret_key: str = ""

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    token_expire_seconds: int = DEFAULT_TOKEN_EXPIRE_SECONDS
    # Tolerance applied by the verifier when comparing exp against the clock.
    clock_skew_seconds: int = 0

    # ------------------------------------------------------------------
    # Credential store
    # ------------------------------------------------------------------

    # Empty string means "use the SQLite file next to auth/store.py".
    auth_db_url: str = ""

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    login_rate_limit: str = "10/minute"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the SECRET_KEY policy.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Tokens will not survive restart -- acceptable for local dev.

        Production mode (DEBUG=false or not set): refuse to start if
            SECRET_KEY is missing or shorter than 32 characters.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("WARNING: Using auto-generated SECRET_KEY. Tokens will not persist across restarts.")
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if not self.debug and len(self.secret_key) < _MIN_SECRET_LENGTH:
            raise ValueError(f"SECRET_KEY must be at least {_MIN_SECRET_LENGTH} characters.")
        return self

    @model_validator(mode="after")
    def validate_token_window(self) -> "Settings":
        """Reject non-positive validity windows and negative clock skew."""
        if self.token_expire_seconds <= 0:
            raise ValueError("TOKEN_EXPIRE_SECONDS must be greater than zero.")
        if self.clock_skew_seconds < 0:
            raise ValueError("CLOCK_SKEW_SECONDS must not be negative.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    Uses lru_cache so Settings() is instantiated exactly once -- at first call.
    All modules should call get_settings() rather than constructing Settings() directly.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
