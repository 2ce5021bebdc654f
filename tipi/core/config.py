"""
Centralized Configuration Management for Tipi

Provides pydantic-settings based configuration with:
- Environment variable loading (.env support)
- Type validation
- Default values

Usage:
    from tipi.core.config import get_config

    config = get_config()
    print(config.root_folder)
    print(config.redis_url)
"""

import logging
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tipi import __version__
from tipi.core.storage import paths

DEFAULT_RELEASE_URL = "https://api.github.com/repos/runtipi/runtipi/releases/latest"


class TipiConfig(BaseSettings):
    """
    Central configuration for Tipi

    All settings can be overridden via environment variables with TIPI_ prefix.
    For example: TIPI_ENVIRONMENT, TIPI_REDIS_URL, TIPI_ROOT_FOLDER.
    """

    model_config = SettingsConfigDict(
        env_prefix="TIPI_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ============================================
    # Application Configuration
    # ============================================

    environment: str = Field(
        default="production",
        description="Deployment environment: development, staging, production",
    )

    restricted_environments: List[str] = Field(
        default_factory=lambda: ["development"],
        description="Environments where system update/restart are refused",
    )

    version: str = Field(
        default=__version__,
        description="Version of the running build",
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )

    # ============================================
    # Storage Configuration
    # ============================================

    root_folder: Path = Field(
        default_factory=paths.tipi_home,
        description="Base directory for state shared with the runner",
    )

    database_path: Optional[Path] = Field(
        default=None,
        description="Status Store SQLite file (defaults to <root>/store/status.sqlite)",
    )

    sqlite_busy_timeout: int = Field(
        default=30000,
        description="SQLite busy timeout in milliseconds",
    )

    # ============================================
    # Cache Configuration
    # ============================================

    redis_url: Optional[str] = Field(
        default=None,
        description="Redis URL; SQLite cache is used when unset or unreachable",
    )

    cache_default_ttl_seconds: int = Field(
        default=86400,
        description="TTL for cache entries written without an explicit ttl",
    )

    # ============================================
    # Version Check Configuration
    # ============================================

    release_url: str = Field(
        default=DEFAULT_RELEASE_URL,
        description="Release metadata endpoint (GitHub latest release JSON)",
    )

    version_lookup_timeout_seconds: float = Field(
        default=5.0,
        description="Timeout for the release metadata request",
    )

    version_cache_ttl_seconds: int = Field(
        default=3600,
        description="How long the latest version is pinned in the cache",
    )

    # ============================================
    # Session Configuration
    # ============================================

    session_ttl_seconds: int = Field(
        default=86400,
        description="Lifetime of a session entry (default: 24 hours)",
    )

    session_refresh_grace_seconds: int = Field(
        default=6,
        description="How long a rotated-out session stays valid after refresh",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator("environment")
    @classmethod
    def normalize_environment(cls, v: str) -> str:
        return v.strip().lower()

    @property
    def is_restricted(self) -> bool:
        """True when lifecycle operations on the host itself are refused"""
        return self.environment in {e.lower() for e in self.restricted_environments}

    @property
    def store_path(self) -> Path:
        return paths.store_db_path(self.root_folder, self.database_path)

    @property
    def cache_path(self) -> Path:
        return paths.cache_db_path(self.root_folder)

    @property
    def events_dir(self) -> Path:
        return paths.events_dir(self.root_folder)

    @property
    def system_info_path(self) -> Path:
        return paths.system_info_path(self.root_folder)

    @property
    def log_level_value(self) -> int:
        return getattr(logging, self.log_level)


# Global configuration instance
_config: Optional[TipiConfig] = None


def get_config(force_reload: bool = False) -> TipiConfig:
    """
    Get global configuration instance

    Args:
        force_reload: Force reload configuration from environment

    Returns:
        TipiConfig instance
    """
    global _config

    if _config is None or force_reload:
        _config = TipiConfig()

    return _config
