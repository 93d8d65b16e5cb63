"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

Mock mode enables local development without a real storage account.
"""

from functools import lru_cache
from typing import Optional
from urllib.parse import urlsplit

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised at startup when required configuration is missing or invalid."""
    pass


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    For lists (like cors_origins), use comma-separated values in env.
    """

    # API Configuration
    api_title: str = "Device Image Catalog API"
    api_version: str = "0.1.0"
    port: int = Field(
        default=5000,
        description="Port the HTTP server listens on"
    )

    # Object Storage Configuration
    storage_access_key_id: str = Field(
        default="",
        description="Storage account identity (access key ID)"
    )
    storage_secret_access_key: str = Field(
        default="",
        description="Storage account private key. Used only to sign URLs, never returned."
    )
    storage_container_name: str = Field(
        default="",
        description="Container (bucket) holding device/operation/image objects"
    )
    storage_endpoint_url: Optional[str] = Field(
        default=None,
        description="S3-compatible endpoint URL. AWS default endpoint when unset."
    )
    storage_region: str = Field(
        default="auto",
        description="Region used for request signing. R2 uses 'auto'."
    )
    storage_mock_mode: bool = Field(
        default=False,
        description="Use in-memory mock instead of real object storage. Enables local dev without credentials."
    )
    storage_mock_keys: str = Field(
        default="",
        description="Comma-separated object keys seeding the mock store, e.g. d1/op1/before.png"
    )

    # Signed URLs
    signed_url_ttl_hours: int = Field(
        default=48,
        ge=1,
        le=168,
        description="Validity window of signed image URLs. SigV4 caps presigned URLs at 7 days."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # CORS
    cors_origins: str = Field(
        default=(
            "http://localhost:3000,"
            "https://shudh-anvi-main.onrender.com,"
            "https://shudh.anvirobotics.com,"
            "https://shudh-anvi-main-l6pz.onrender.com"
        ),
        description="Comma-separated list of frontend origins allowed to call the API."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @field_validator("cors_origins")
    @classmethod
    def validate_cors_origins(cls, value: str) -> str:
        """
        Reject allow-list entries that can never match a browser Origin header.

        Origins are scheme://host[:port] with no path. Wildcards are refused
        because credentialed requests are allowed.
        """
        for origin in (o.strip() for o in value.split(",")):
            if not origin:
                continue
            if origin == "*":
                raise ValueError("Wildcard origin is not allowed with credentials")
            parts = urlsplit(origin)
            if parts.scheme not in ("http", "https") or not parts.netloc:
                raise ValueError(f"Invalid CORS origin: {origin!r}")
            if parts.path not in ("", "/") or parts.query or parts.fragment:
                raise ValueError(f"CORS origin must not contain a path: {origin!r}")
        return value

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        return [
            origin.strip().rstrip("/")
            for origin in self.cors_origins.split(",")
            if origin.strip()
        ]

    @property
    def storage_mock_keys_list(self) -> list[str]:
        """Parse comma-separated mock keys into a list, keeping order."""
        return [key.strip() for key in self.storage_mock_keys.split(",") if key.strip()]

    def validate_required_fields(self) -> list[str]:
        """
        Validate that required fields are set based on mock mode settings.

        Returns list of missing required fields.
        This is separate from Pydantic validation because requirements
        depend on whether we're in mock mode.
        """
        missing = []

        if not self.storage_mock_mode:
            if not self.storage_access_key_id:
                missing.append("STORAGE_ACCESS_KEY_ID")
            if not self.storage_secret_access_key:
                missing.append("STORAGE_SECRET_ACCESS_KEY")
            if not self.storage_container_name:
                missing.append("STORAGE_CONTAINER_NAME")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache means we only load settings once per process.
    For tests, you can call get_settings.cache_clear() to reset.
    """
    return Settings()
