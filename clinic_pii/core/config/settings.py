"""
Application settings module.

This module provides configuration for the PII protection layer: key material,
normalization policy constants, blob encryption parameters, the record store
connection and logging. Values are loaded from environment variables and an
optional ``.env`` file.
"""

import logging
from functools import lru_cache

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Settings using Pydantic for validation and environment variable loading."""

    # Environment
    ENVIRONMENT: str = "development"  # development, test, staging, production
    PROJECT_NAME: str = "Clinic PII"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str | None = None  # file handlers are only attached when set

    # --- PII key material ---
    # Absence is reported as KeyMissingError when key material is built, not here,
    # so that startup fails with the domain error rather than a settings error.
    PII_ENCRYPTION_KEY: SecretStr | None = Field(None, description="Current confidentiality key")
    PII_ENCRYPTION_KEY_VERSION: str = Field("k1", description="Tag written into every StoredField")
    PII_ENCRYPTION_PREVIOUS_KEY: SecretStr | None = Field(
        None, description="Previous confidentiality key, kept decrypt-only for rotation"
    )
    PII_ENCRYPTION_PREVIOUS_KEY_VERSION: str | None = None
    PII_LOOKUP_HASH_KEY: SecretStr | None = Field(
        None, description="Independent root for lookup hashes; derived from the encryption key if unset"
    )

    # Normalization / validation policy
    PHONE_MIN_DIGITS: int = 8
    PHONE_MAX_DIGITS: int = 15
    NAME_DUPLICATE_HEURISTIC_ENABLED: bool = True

    # Blob encryption
    BLOB_CHUNK_SIZE: int = 64 * 1024

    # Record store
    DATABASE_URL: str = "sqlite+aiosqlite:///./clinic_pii.db"
    DB_ECHO_LOG: bool = False

    # Blob store
    AWS_REGION: str | None = None

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log level is one of the valid levels."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()

    @field_validator("BLOB_CHUNK_SIZE")
    @classmethod
    def validate_chunk_size(cls, v: int) -> int:
        if v < 1024 or v > 16 * 1024 * 1024:
            raise ValueError("BLOB_CHUNK_SIZE must be between 1 KiB and 16 MiB")
        return v

    @model_validator(mode="after")
    def validate_phone_range(self) -> "Settings":
        if not 0 < self.PHONE_MIN_DIGITS <= self.PHONE_MAX_DIGITS:
            raise ValueError("PHONE_MIN_DIGITS must be positive and not exceed PHONE_MAX_DIGITS")
        if self.PII_ENCRYPTION_PREVIOUS_KEY is not None and not self.PII_ENCRYPTION_PREVIOUS_KEY_VERSION:
            raise ValueError("PII_ENCRYPTION_PREVIOUS_KEY_VERSION is required with a previous key")
        return self


@lru_cache
def get_settings() -> Settings:
    """
    Return the process-wide settings, loaded once.

    Tests build their own ``Settings`` instances instead of mutating this one.
    """
    settings = Settings()
    logger.info("Settings loaded for environment %s", settings.ENVIRONMENT)
    return settings
