"""
Bootstrap configuration loaded from environment variables.
"""
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Bootstrap settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # MongoDB
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_initdb_root_username: Optional[str] = None
    mongo_initdb_root_password: Optional[str] = None
    ai_memory_db_name: str = "n8n_ai_memory"

    # Timeouts
    connect_timeout_seconds: float = Field(default=10.0, gt=0)
    apply_timeout_seconds: float = Field(default=5.0, gt=0)

    # Password references
    secrets_dir: str = "/run/secrets"
    # Insecure default - development only, refused in production mode
    insecure_default_password: str = "change-me"
    production_mode: bool = False

    # Manifest
    manifest_path: Optional[str] = None

    # Logging
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
