"""
Configuration management using Pydantic settings.
Handles database URL, JWT secrets, upload limits and listing defaults.
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings
from typing import List
from functools import lru_cache
import os


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Application configuration
    app_name: str = "Property Portal API"
    app_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Database configuration
    database_url: str = "postgresql+asyncpg://postgres:postgres@db:5432/property_portal"

    # JWT configuration
    jwt_secret_key: str = "your-secret-key-change-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 30

    # File upload configuration
    upload_dir: str = "./uploads"
    max_image_size: int = 10 * 1024 * 1024  # 10MB
    max_document_size: int = 20 * 1024 * 1024  # 20MB
    allowed_image_types: List[str] = ["image/jpeg", "image/png", "image/webp"]
    allowed_document_types: List[str] = [
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "image/jpeg",
        "image/png",
    ]
    file_cleanup_max_attempts: int = 3

    # API configuration
    api_v1_prefix: str = "/api/v1"
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:8080"]

    # Listing defaults
    default_page_size: int = 10
    max_page_size: int = 100
    listing_image_limit: int = 5
    compact_image_limit: int = 3
    featured_default_limit: int = 10
    recent_properties_limit: int = 5
    default_property_status: str = "draft"

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 8000

    @field_validator("database_url", mode="before")
    @classmethod
    def validate_database_url(cls, v):
        """Ensure an async driver is used."""
        if v and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        if v and v.startswith("sqlite://"):
            return v.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return v

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment setting."""
        allowed_envs = ["development", "testing", "staging", "production"]
        if v not in allowed_envs:
            raise ValueError(f"Environment must be one of: {allowed_envs}")
        return v

    @field_validator("default_property_status")
    @classmethod
    def validate_default_status(cls, v):
        allowed = ["draft", "published", "blocked", "sold", "rented", "verified", "rejected"]
        if v not in allowed:
            raise ValueError(f"default_property_status must be one of: {allowed}")
        return v

    @field_validator("upload_dir", mode="before")
    @classmethod
    def create_upload_directory(cls, v):
        """Ensure the upload directory exists."""
        if v and not os.path.exists(v):
            os.makedirs(v, exist_ok=True)
        return v

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        return self.environment == "testing"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only create one instance of settings throughout the app lifecycle.
    """
    return Settings()


# Global settings instance
settings = get_settings()
