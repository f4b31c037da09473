"""Application configuration helpers."""

from __future__ import annotations

from .delhivery import DelhiveryConfig
from .env import optional_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .jira import JiraConfig
from .logging import configure_logging
from .sync import AppConfig, SyncConfig, get_app_config

__all__ = [
    "AppConfig",
    "ConfigurationError",
    "DelhiveryConfig",
    "JiraConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "SyncConfig",
    "configure_logging",
    "get_app_config",
    "optional_env_var",
    "require_env_vars",
]
