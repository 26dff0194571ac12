"""Application configuration helpers."""

from __future__ import annotations

from .env import require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .nabu import NabuConfig, get_nabu_config
from .polling import PollingConfig, get_polling_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .wallet import WalletApiConfig, get_wallet_config

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "NabuConfig",
    "PollingConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "WalletApiConfig",
    "configure_logging",
    "get_database_config",
    "get_nabu_config",
    "get_polling_config",
    "get_storage_config",
    "get_wallet_config",
    "require_env_var",
    "require_env_vars",
]
