"""
Configuration for the resource usage monitor.

We use pydantic-settings (Pydantic v2) to load settings from:
- environment variables
- a local `.env` file in the project root

Settings are loaded once at process start and are immutable afterwards.
Components receive the object explicitly instead of importing a global.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application-wide settings.

    Environment variables (with defaults):

    - BASE_PATH:             Directory to monitor (required for a check)
    - AVAILABLE_INODE:       Static available-inode value, skips `df -i`
    - AVAILABLE_SPACE:       Static available-space value in MB, skips `df -m`
    - FIND_TIMEOUT_SECONDS:  Bound for the file count step (default: 180)
    - DU_TIMEOUT_SECONDS:    Bound for the disk usage step (default: 300)
    - DF_TIMEOUT_SECONDS:    Bound for each availability step (default: 60)
    - FILE_COUNT_STRATEGY:   "find" (external command) or "native" (os.scandir)
    - CHECK_ATTEMPTS:        Attempts per check for retryable failures (default: 3)
    - POLL_INTERVAL_SECONDS: Collector loop interval (default: one day)
    - DATABASE_URL:          SQLAlchemy URL, default SQLite file "resource_usage.db"
    - API_KEY:               Value expected in the X-API-Key header
    - LOG_LEVEL:             Root log level (default: INFO)
    """

    base_path: Optional[str] = None

    available_inode: Optional[int] = None
    available_space: Optional[int] = None  # MB

    find_timeout_seconds: float = Field(default=180, gt=0)
    du_timeout_seconds: float = Field(default=300, gt=0)
    df_timeout_seconds: float = Field(default=60, gt=0)

    file_count_strategy: Literal["find", "native"] = "find"

    check_attempts: int = Field(default=3, ge=1)
    poll_interval_seconds: int = Field(default=24 * 60 * 60, gt=0)

    database_url: str = "sqlite:///./resource_usage.db"

    api_key: Optional[str] = None

    # Alert thresholds. Declared for external alerting consumers; nothing in
    # this package evaluates samples against them.
    inode_warning: int = 100_000
    inode_critical: int = 50_000
    space_warning: int = 10_000  # MB
    space_critical: int = 5_000  # MB

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    @field_validator("base_path", "api_key", mode="before")
    @classmethod
    def blank_as_none(cls, v):
        """Treat `BASE_PATH=` and friends as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("available_inode", "available_space", mode="before")
    @classmethod
    def parse_override(cls, v):
        """
        Overrides are only active when they hold a non-zero value:

        - ""      -> None
        - "0"     -> None
        - "12000" -> 12000
        """
        if v is None:
            return None
        if isinstance(v, str):
            v = v.strip()
            if not v:
                return None
            v = int(v)
        if not v:
            return None
        if v < 0:
            raise ValueError("override values must be non-negative")
        return v


@lru_cache
def get_settings() -> Settings:
    """Load settings once per process."""
    return Settings()
