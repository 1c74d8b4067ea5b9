"""Application configuration using Pydantic Settings."""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_SCAN_FOLDERS = (
    "Documents",
    "Projects",
    "Development",
    "dev",
    "workspace",
    "repos",
    "code",
    "src",
)


def _default_scan_paths() -> list[str]:
    home = Path.home()
    return [str(home / folder) for folder in _DEFAULT_SCAN_FOLDERS]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application settings
    app_name: str = "typespeed"
    app_version: str = "0.1.0"
    debug: bool = False

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    trusted_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Request protection
    rate_limit_per_minute: int = Field(default=600, gt=0)
    scan_rate_limit_per_minute: int = Field(default=10, gt=0)
    max_request_size: int = Field(default=100 * 1024, gt=0)
    max_upload_request_size: int = Field(default=20 * 1024 * 1024, gt=0)

    # Logging
    log_level: str = "INFO"

    # Code sources
    allowed_scan_paths: list[str] = Field(default_factory=_default_scan_paths)
    max_scan_depth: int = Field(default=5, ge=0)
    max_file_size: int = Field(default=1024 * 1024, gt=0)

    # Snippets
    default_snippet_lines: int = 50
    min_snippet_lines: int = 10
    max_snippet_lines: int = 200

    # Sessions
    session_timeout_seconds: int = 30 * 60
    session_cleanup_interval_seconds: int = 5 * 60
    metrics_tick_interval: float = Field(default=0.5, ge=0.1, le=1.0)
    burst_window_seconds: float = Field(default=10.0, gt=0)

    # Statistics storage
    statistics_history_limit: int = Field(default=100, ge=1)
    statistics_backend: Literal["memory", "dynamodb"] = "memory"
    statistics_table_name: str = "TypeSpeedStatistics"
    aws_region: str = "us-west-2"


# Create a singleton instance
settings = Settings()
