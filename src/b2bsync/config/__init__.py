"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env, optional_int_env, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .sheets import SheetsConfig, get_sheets_config
from .shopify import ShopifyConfig, get_shopify_config
from .sync import StageRetry, SyncConfig, get_sync_config

__all__ = [
    "ConfigurationError",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "SheetsConfig",
    "ShopifyConfig",
    "StageRetry",
    "SyncConfig",
    "configure_logging",
    "get_sheets_config",
    "get_shopify_config",
    "get_sync_config",
    "optional_env",
    "optional_int_env",
    "require_env_vars",
]
