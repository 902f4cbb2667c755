"""Configuration management for the CREALINK backend"""
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_project_root() -> Path:
    """Get the project root directory"""
    return Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """Environment-based settings, read from CREALINK_* variables or .env"""
    model_config = SettingsConfigDict(
        env_prefix="CREALINK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "CREALINK API"

    # Firebase
    service_account_path: str = "service-account-key.json"
    firebase_config_path: str = "Firebase.json"
    firebase_project_id: Optional[str] = None

    # HTTP
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None
    log_max_size_mb: int = 10
    log_backup_count: int = 5

    # Directory and listings
    directory_page_size: int = 6
    directory_fallback_limit: int = 20
    expert_project_count_cap: int = 100
    default_page_size: int = 10

    def resolve_path(self, path: str) -> Path:
        """Resolve a configured path against the project root when relative."""
        candidate = Path(path)
        if candidate.is_absolute():
            return candidate
        return get_project_root() / candidate


@lru_cache
def get_settings() -> Settings:
    """Get the global settings instance"""
    return Settings()
