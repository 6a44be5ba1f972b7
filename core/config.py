"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for SPADE happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. Token
      secrets are therefore process-wide and immutable after startup.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. access_token_secret -> ACCESS_TOKEN_SECRET).

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved from environment. Dev mode generates missing secrets with a
      warning, production mode refuses to start without them.

Security notes:
  [S1] Secrets shorter than 32 chars are rejected outright. HS256 signing
       relies on key entropy -- a short key weakens every issued token.

  [S2] Access and refresh secrets must differ. A refresh token must never
       verify as an access token, and vice versa.

  [S3] Rotating either secret invalidates every outstanding token of that
       kind. There is no dual-secret grace window.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, or community/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("spade.config")

_DATA_DIR = Path(__file__).resolve().parent.parent


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

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev secret or raises, so callers never see "".
    access_token_secret: str = ""
    refresh_token_secret: str = ""
    token_issuer: str = "auth.spadementalhealth.com"
    token_audience: str = "spadementalhealth.com"

    # ------------------------------------------------------------------
    # Stores -- two independently administered databases
    # ------------------------------------------------------------------

    auth_db_url: str = f"sqlite:///{_DATA_DIR / 'spade_auth.db'}"
    community_db_url: str = f"sqlite:///{_DATA_DIR / 'spade_community.db'}"

    # ------------------------------------------------------------------
    # HTTP transport
    # ------------------------------------------------------------------

    secure_cookies: bool = False
    login_rate_limit: str = "10/minute"
    cors_origins: list[str] = ["http://localhost:5173"]
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_token_secrets(self) -> "Settings":
        """Enforce the token secret policy [S1][S2].

        Dev mode (DEBUG=true): auto-generate any missing secret with a warning.
            Sessions will not survive restart -- acceptable for local dev.

        Production mode: refuse to start if either secret is missing.
        """
        for field in ("access_token_secret", "refresh_token_secret"):
            value = getattr(self, field)
            if not value:
                if not self.debug:
                    raise ValueError(
                        f"{field.upper()} is required in production mode. "
                        "Set it in your environment or .env file. "
                        "To run in development mode, set DEBUG=true."
                    )
                value = secrets.token_hex(32)
                setattr(self, field, value)
                logger.warning("Using auto-generated %s. Sessions will not persist across restarts.", field.upper())
            if len(value) < 32:
                raise ValueError(f"{field.upper()} must be at least 32 characters.")
        if self.access_token_secret == self.refresh_token_secret:
            raise ValueError("ACCESS_TOKEN_SECRET and REFRESH_TOKEN_SECRET must be different.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
