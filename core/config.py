"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for the gallery service happen here. No module
should call os.getenv() or os.environ.get() directly -- import get_settings()
instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY). Type coercion and validation are built in.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved from environment. SECRET_KEY policy and the secure-cookie
      default both depend on DEBUG, so they are resolved here.

Security notes:
  SECRET_KEY shorter than 32 chars is rejected outright. Session tokens are
  stored as HMAC-SHA256(SECRET_KEY, token) -- a short key weakens that.

  In production mode (DEBUG not set or false), a missing SECRET_KEY is a hard
  startup failure. A random key would invalidate every stored session on
  restart because the stored token hashes would no longer match.

Layer rule: core/ is the kernel. This module may not import from api/, web/,
auth/, or gallery/.
"""

import logging
import secrets
from functools import lru_cache
from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("gallery.config")

_THIRTY_DAYS = 30 * 24 * 60 * 60


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
    database_url: str = "sqlite:///gallery.db"

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    # None means "derive from debug": Secure everywhere except local/dev.
    secure_cookies: Optional[bool] = None
    session_cookie_name: str = "gallery_session"
    session_max_age_seconds: int = _THIRTY_DAYS
    session_purge_interval_seconds: int = 6 * 60 * 60

    # ------------------------------------------------------------------
    # Passwords and rate limiting
    # ------------------------------------------------------------------

    bcrypt_rounds: int = 12
    login_rate_limit: str = "10/minute"

    # ------------------------------------------------------------------
    # HTTP surface
    # ------------------------------------------------------------------

    cors_origins: list[str] = ["http://localhost", "http://localhost:3000", "http://127.0.0.1"]
    static_dir: str = "public"

    # ------------------------------------------------------------------
    # Seed data
    # ------------------------------------------------------------------

    seed_on_startup: bool = True
    seed_admin_username: str = "Admin"
    # Empty means "generate one and log it once" at seed time.
    seed_admin_password: str = ""

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_security(self) -> "Settings":
        """Enforce SECRET_KEY policy and resolve the secure-cookie default.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Sessions will not survive restart -- acceptable for local dev.

        Production mode (DEBUG=false or not set): refuse to start if
            SECRET_KEY is missing.

        Both modes: reject keys shorter than 32 characters and bcrypt cost
            factors outside the range the bcrypt library accepts.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning(
                    "WARNING: Using auto-generated SECRET_KEY. " "Sessions will not persist across restarts."
                )
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        if self.secure_cookies is None:
            self.secure_cookies = not self.debug
        if not 4 <= self.bcrypt_rounds <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
