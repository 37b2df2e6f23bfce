"""
core/config.py -- Account service settings (pydantic-settings).

Every environment read goes through Settings; other modules call
get_settings() rather than touching os.environ.

get_settings() is lru_cached, so the environment and .env file are read once
per process. Field names double as env var names (jwt_issuer -> JWT_ISSUER).

Signing key policy (validate_secret_key):
  - DEBUG=true and no JWT_SECRET_KEY: a random 64-char hex key is generated and
    a warning logged. Tokens then die with the process.
  - DEBUG unset and no JWT_SECRET_KEY: startup fails.
  - Any key under 32 characters: startup fails.

Settings only carries the key. api/main.py hands it to
auth.tokens.TokenIssuer during lifespan startup.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.errors import ConfigurationError

logger = logging.getLogger("accountsvc.config")

MIN_SECRET_LENGTH = 32

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'auth' / 'accounts.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults (except the signing key outside debug mode) so
    Settings() can be instantiated in test environments without a real .env.

    Environment variable name mapping: field names are uppercased automatically.
    E.g. `jwt_issuer` reads from JWT_ISSUER, `debug` reads from DEBUG.
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
    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    jwt_secret_key: str = ""
    jwt_issuer: str = "AccountService"
    jwt_audience: str = "AccountServiceUsers"
    token_expire_seconds: int = 24 * 60 * 60

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    cors_origins: list[str] = ["http://localhost:3000"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the signing key policy.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Tokens will not survive restart -- acceptable for local dev.

        Production mode (DEBUG=false or not set): refuse to start if
            JWT_SECRET_KEY is missing.

        Both modes: reject keys shorter than 32 characters.

        Violations raise ConfigurationError. It is not a ValueError, so
        pydantic lets it propagate unwrapped.
        """
        if not self.jwt_secret_key:
            if self.debug:
                self.jwt_secret_key = secrets.token_hex(32)
                logger.warning("Using auto-generated JWT_SECRET_KEY. Tokens will not survive a restart.")
            else:
                raise ConfigurationError(
                    "JWT_SECRET_KEY is required in production mode. "
                    "Set JWT_SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.jwt_secret_key) < MIN_SECRET_LENGTH:
            raise ConfigurationError(f"JWT_SECRET_KEY must be at least {MIN_SECRET_LENGTH} characters.")
        if self.token_expire_seconds <= 0:
            raise ConfigurationError("TOKEN_EXPIRE_SECONDS must be positive.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
