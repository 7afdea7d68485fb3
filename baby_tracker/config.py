"""
Runtime configuration for Baby Tracker.

Values come from environment variables or a .env file in the working
directory; names match the field names in upper case (DATABASE_URL,
JWT_SECRET, ENC_HASH, ...).
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_JWT_SECRET = "baby-tracker-jwt-secret"


class Settings(BaseSettings):
    """Tracker settings. Defaults suit a single-household development install."""

    # Runtime
    python_env: Literal["development", "production"] = Field(
        default="development",
        description="development or production"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root log level"
    )

    # Database
    database_url: str = Field(
        default="sqlite:///./data/baby_tracker.db",
        description="SQLAlchemy URL; SQLite by default, PostgreSQL in production"
    )

    # Authentication
    jwt_secret: str = Field(
        default=DEFAULT_JWT_SECRET,
        description="Secret used to sign authentication tokens"
    )
    auth_life: int = Field(
        default=1800,
        description="Authentication token lifetime in seconds"
    )
    admin_password: str = Field(
        default="admin",
        description="Password for the system administrator login"
    )
    cookie_secure: bool = Field(
        default=False,
        description="Mark auth cookies as Secure (requires HTTPS)"
    )

    # Encryption of secrets stored in the database
    enc_hash: str = Field(
        default="",
        description="Key material for encrypting stored API keys and passwords"
    )

    # Notifications
    hermes_api_endpoint: str = Field(
        default="https://hermes.funk-isoft.com/api/sendAlert",
        description="Default Hermes push notification endpoint"
    )
    http_timeout: float = Field(
        default=10.0,
        description="Timeout in seconds for outbound HTTP calls"
    )

    # Family setup
    setup_token_lifetime_days: int = Field(
        default=7,
        description="Days before a family setup invitation expires"
    )

    # HTTP server
    api_host: str = Field(
        default="0.0.0.0",
        description="Interface uvicorn binds to"
    )
    api_port: int = Field(
        default=8000,
        description="Port uvicorn listens on"
    )
    api_reload: bool = Field(
        default=True,
        description="Reload on code changes (development only)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def is_development(self) -> bool:
        """Development installs create tables on startup."""
        return self.python_env == "development"

    @property
    def is_production(self) -> bool:
        """Production installs are validated before the engine is built."""
        return self.python_env == "production"

    @property
    def uses_postgresql(self) -> bool:
        return self.database_url.lower().startswith(("postgresql", "postgres:"))

    @property
    def uses_encryption(self) -> bool:
        """Stored secrets are encrypted only when ENC_HASH is set."""
        return bool(self.enc_hash)

    def validate_production_config(self) -> None:
        """
        Collect every production misconfiguration and raise once.

        Raises:
            ValueError: Listing every problem found
        """
        if not self.is_production:
            return

        errors = []

        if not self.uses_postgresql:
            errors.append(
                "Production requires PostgreSQL. "
                "Set DATABASE_URL to a PostgreSQL connection string."
            )

        if self.jwt_secret == DEFAULT_JWT_SECRET:
            errors.append("JWT_SECRET must be changed from the default in production.")

        if not self.enc_hash:
            errors.append("ENC_HASH is required in production.")

        if errors:
            raise ValueError("Production configuration errors:\n- " + "\n- ".join(errors))


@lru_cache()
def get_settings() -> Settings:
    """
    Settings loaded once per process.

    Build a Settings() directly to read a changed environment.
    """
    return Settings()
