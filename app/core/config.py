"""
Application configuration using pydantic-settings.
"""
import logging
from pathlib import Path
from typing import List, Optional

from pydantic import field_validator, model_validator, ValidationInfo
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_SQLITE_URL = "sqlite:///./data/thisday.db"
DEFAULT_LOCAL_TIMEZONE = "Asia/Kolkata"

# Define the project root directory
PROJECT_ROOT = Path(__file__).parent.parent.parent.resolve()


class Settings(BaseSettings):
    """Application settings."""

    # Application
    app_name: str = "ThisDay Service"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"

    # API
    api_v1_prefix: str = "/api/v1"
    enable_cors: bool = False
    cors_origins: Optional[List[str]] = None

    # Database Configuration
    database_url: str = DEFAULT_SQLITE_URL

    # PostgreSQL override (optional)
    postgres_url: Optional[str] = None
    postgres_user: Optional[str] = None
    postgres_password: Optional[str] = None
    postgres_db: Optional[str] = None
    postgres_host: Optional[str] = None
    postgres_port: Optional[int] = None

    # Calendar
    local_timezone: str = DEFAULT_LOCAL_TIMEZONE  # Single zone shared by all users
    recall_push_down: bool = True  # Rank "best entry" groups inside the database

    # Clerk (token verification)
    clerk_issuer: str = ""
    clerk_jwks_url: Optional[str] = None
    jwks_cache_ttl_seconds: int = 3600

    # Immich (media storage)
    immich_base_url: str = ""
    immich_api_key: str = ""
    immich_timeout_seconds: float = 60.0
    max_file_size_mb: int = 100

    # Application configuration
    app_port: int = 8081

    # Logging
    log_level: str = "INFO"
    log_dir: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def database_type(self) -> str:
        """Detect database type from configuration."""
        if self.postgres_url or (self.postgres_host and self.postgres_user):
            return "postgresql"

        if self.database_url.startswith(("postgresql", "postgres")):
            return "postgresql"

        return "sqlite"

    @property
    def effective_database_url(self) -> str:
        """Get the effective database URL based on configuration hierarchy."""
        if self.postgres_url:
            return self.postgres_url

        if self.postgres_host and self.postgres_user and self.postgres_db:
            password = self.postgres_password or ""
            port = self.postgres_port or 5432
            return f"postgresql://{self.postgres_user}:{password}@{self.postgres_host}:{port}/{self.postgres_db}"

        return self.database_url

    @property
    def effective_jwks_url(self) -> Optional[str]:
        """JWKS endpoint, derived from the Clerk issuer unless set explicitly."""
        if self.clerk_jwks_url:
            return self.clerk_jwks_url
        if not self.clerk_issuer:
            return None
        issuer = self.clerk_issuer
        if issuer.endswith("/"):
            return f"{issuer}.well-known/jwks.json"
        return f"{issuer}/.well-known/jwks.json"

    @field_validator('cors_origins', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from string or list."""
        if v is None:
            return []

        if isinstance(v, str):
            if not v.strip():
                return []
            return [origin.strip() for origin in v.split(',') if origin.strip()]

        if isinstance(v, list):
            return v

        return []

    @field_validator('cors_origins')
    @classmethod
    def validate_cors_origins(cls, v: Optional[List[str]], info: ValidationInfo) -> List[str]:
        """Validate CORS origins for production."""
        v = v or []
        env = info.data.get('environment', 'development')
        enable_cors = info.data.get('enable_cors', False)

        if env == 'production':
            if not enable_cors:
                return []
            if '*' in v:
                logger.error(
                    "Wildcard (*) CORS origin not allowed in production! "
                    "Specify exact domains, e.g., https://yourdomain.com"
                )
        else:
            if enable_cors and not v:
                return ["http://localhost:19006", "http://localhost:3000"]

        return v

    @field_validator('database_url')
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate primary database URL."""
        if not v or not v.strip():
            logger.info(
                "DATABASE_URL not provided; defaulting to SQLite at %s", DEFAULT_SQLITE_URL
            )
            return DEFAULT_SQLITE_URL

        url = v.strip()
        if url.startswith(("sqlite", "postgresql", "postgres")):
            return url

        logger.warning(
            "DATABASE_URL uses unsupported or untested dialect '%s'. Proceed with caution.",
            url.split("://", 1)[0]
        )
        return url

    @field_validator('local_timezone')
    @classmethod
    def validate_local_timezone(cls, v: str) -> str:
        """Validate that the configured zone is a valid IANA timezone."""
        from app.core.time_utils import validate_timezone
        v = (v or "").strip()
        if not v or not validate_timezone(v):
            raise ValueError(
                f'Invalid LOCAL_TIMEZONE: "{v}". Must be a valid IANA timezone name (e.g., "Asia/Kolkata").'
            )
        return v

    @field_validator('immich_base_url', 'clerk_issuer')
    @classmethod
    def strip_trailing_slash(cls, v: str, info: ValidationInfo) -> str:
        v = (v or "").strip()
        if v and not v.startswith(("http://", "https://")):
            raise ValueError(f"{info.field_name.upper()} must start with http:// or https://")
        if info.field_name == "immich_base_url":
            return v.rstrip("/")
        return v

    @field_validator('jwks_cache_ttl_seconds', 'max_file_size_mb')
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Value must be positive")
        return v

    @model_validator(mode='after')
    def validate_production_settings(self) -> 'Settings':
        """Collect production problems and raise them together."""
        if self.environment != "production":
            return self

        errors = []
        warnings = []

        if self.debug:
            errors.append("DEBUG must be False in production.")

        if not self.clerk_issuer and not self.clerk_jwks_url:
            errors.append("CLERK_ISSUER must be set in production.")

        if not self.immich_base_url or not self.immich_api_key:
            errors.append("IMMICH_BASE_URL and IMMICH_API_KEY must be set in production.")

        if self.enable_cors and not self.cors_origins:
            errors.append("CORS_ORIGINS must be configured when CORS is enabled.")

        if self.database_url.startswith("sqlite") and not (self.postgres_url or (self.postgres_host and self.postgres_user and self.postgres_db)):
            warnings.append(
                "Using SQLite in production. Ensure you understand the durability "
                "limitations and configure regular backups."
            )

        for warning in warnings:
            logger.warning(f"Production configuration warning: {warning}")

        if errors:
            error_message = "Production configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            raise ValueError(error_message)

        return self


# Create settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get settings instance."""
    return settings
