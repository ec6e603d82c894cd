"""
Plugin Manager Configuration

This module provides configuration for the plugin manager, integrating with
environment variables and .env files and providing validation.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PluginManagerConfig(BaseSettings):
    """
    Plugin manager configuration with validation and environment variable support.

    All settings can be overridden via environment variables with the PLUGINS_
    prefix, e.g. PLUGINS_ENVIRONMENT=production or PLUGINS_EXCLUDES=legacy,debug.
    """

    environment: str = Field("development", description="Runtime environment plugins are loaded for")
    load_core_plugins: bool = Field(True, description="Attempt core plugins as well as user plugins")

    # Filtering
    includes: Optional[str] = Field(None, description="Comma-separated plugins to load (with their dependencies)")
    excludes: Optional[str] = Field(None, description="Comma-separated plugins to skip (with their dependents)")

    # Scheduling
    max_retry_factor: int = Field(4, description="Delayed retry attempts are capped at factor * n^2 + n")

    log_level: str = Field("INFO", description="Logging level for the command-line tool")

    model_config = SettingsConfigDict(
        env_prefix="PLUGINS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator('max_retry_factor')
    @classmethod
    def validate_retry_factor(cls, v):
        """Validate the retry factor is usable."""
        if v < 1:
            raise ValueError('max_retry_factor must be at least 1')
        if v > 100:
            raise ValueError('max_retry_factor should not exceed 100')
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ValueError(f'Unknown log level: {v}')
        return level

    @classmethod
    def from_env_file(cls, env_file_path: Optional[Path] = None) -> "PluginManagerConfig":
        """
        Create configuration from an environment file.

        Args:
            env_file_path: Optional path to .env file. Defaults to .env in the working directory

        Returns:
            PluginManagerConfig: Configured instance
        """
        if env_file_path is not None and Path(env_file_path).exists():
            return cls(_env_file=str(env_file_path))
        return cls()


# Global configuration instance
_config: Optional[PluginManagerConfig] = None


def get_plugin_config(env_file_path: Optional[Path] = None) -> PluginManagerConfig:
    """
    Get or create the global plugin manager configuration.

    Args:
        env_file_path: Optional path to environment file

    Returns:
        PluginManagerConfig: Global configuration instance
    """
    global _config
    if _config is None:
        _config = PluginManagerConfig.from_env_file(env_file_path)
    return _config


def reset_plugin_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _config
    _config = None
