"""
Configuration for the Emotion Journal service.

Settings are read from environment variables (or a ``.env`` file) by
pydantic-settings. Security-sensitive values have no defaults: a process
started without them fails in ``validate_required`` rather than running with
an insecure fallback.
"""

from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from the environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Storage ───────────────────────────────────────────────────────────
    storage_backend: Literal["mongo", "memory"] = Field(default="mongo")
    mongodb_uri: str | None = Field(
        default=None, description="MongoDB connection string"
    )
    # Used only when the URI does not name a database itself
    mongodb_database: str = Field(default="emotion_journal")

    # ── Tokens ────────────────────────────────────────────────────────────
    jwt_secret: SecretStr | None = Field(default=None)
    jwt_algorithm: str = Field(default="HS256")
    jwt_expires_minutes: int = Field(default=60, ge=1, le=60 * 24 * 30)

    # ── Server ────────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=5000, ge=1, le=65535)
    log_level: str = Field(default="INFO")
    cors_origins: str = Field(default="*")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'")
        return upper

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        """Only HMAC algorithms work with a shared secret."""
        valid_algorithms = {"HS256", "HS384", "HS512"}
        upper = v.upper()
        if upper not in valid_algorithms:
            raise ValueError(
                f"Invalid jwt_algorithm '{v}'. Must be one of: {sorted(valid_algorithms)}"
            )
        return upper

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def validate_required(self) -> None:
        """
        Check that every value the chosen configuration depends on is set.

        Raises:
            ConfigurationError: listing all missing values at once
        """
        problems = []
        if self.jwt_secret is None or not self.jwt_secret.get_secret_value():
            problems.append("JWT_SECRET is not set")
        if self.storage_backend == "mongo" and not self.mongodb_uri:
            problems.append(
                "MONGODB_URI is not set (or use STORAGE_BACKEND=memory for development)"
            )
        if problems:
            raise ConfigurationError(problems)
