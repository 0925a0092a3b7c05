"""Application configuration helpers."""

from __future__ import annotations

from .claims_api import ClaimsApiConfig, build_claims_api_config, get_claims_api_config
from .env import optional_env_float, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .mutations import MutationConfig, get_mutation_config
from .storage import StorageConfig, get_storage_config

__all__ = [
    "CacheConfig",
    "ClaimsApiConfig",
    "ConfigurationError",
    "MissingConfigurationError",
    "MutationConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "build_claims_api_config",
    "configure_logging",
    "get_claims_api_config",
    "get_mutation_config",
    "get_storage_config",
    "optional_env_float",
    "require_env_var",
    "require_env_vars",
]
