"""Configuration management module.

This module provides:
- Environment-based configuration with validation
- Service-specific settings classes
- Cached settings access via get_settings()
"""

from .settings import (
    DatabaseSettings,
    Environment,
    LLMSettings,
    LogFormat,
    LogLevel,
    ReportEngineSettings,
    Settings,
    get_settings,
)

__all__ = [
    # Main settings
    "Settings",
    "get_settings",
    # Enums
    "Environment",
    "LogLevel",
    "LogFormat",
    # Component settings
    "DatabaseSettings",
    "LLMSettings",
    # Service-specific settings
    "ReportEngineSettings",
]
