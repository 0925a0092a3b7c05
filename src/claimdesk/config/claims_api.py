"""Claims API configuration values."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final

from .env import optional_env_float, require_env_vars
from .errors import ConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .storage import get_storage_config

DEFAULT_TIMEOUT_SECONDS: Final[float] = 30.0
UPLOAD_TIMEOUT_SECONDS: Final[float] = 60.0
UPLOAD_MAX_ATTEMPTS: Final[int] = 3
DEFAULT_CACHE_TTL_SECONDS: Final[float] = 30.0


@dataclass(frozen=True, slots=True)
class ClaimsApiConfig:
    resilience: ResilienceConfig
    upload_resilience: ResilienceConfig

    @property
    def base_url(self) -> str:
        base_url = self.resilience.base_url
        if base_url is None:
            raise ConfigurationError("Claims API resilience profile has no base_url")
        return base_url


def is_cacheable_payload(payload: object) -> bool:
    """Error envelopes are never served from the HTTP cache."""

    return not (isinstance(payload, dict) and "error" in payload)


def _cache_from_environment() -> CacheConfig | None:
    backend = (os.getenv("CLAIMDESK_HTTP_CACHE") or "off").strip().lower()
    if backend == "off":
        return None
    ttl = optional_env_float("CLAIMDESK_HTTP_CACHE_TTL_SECONDS", DEFAULT_CACHE_TTL_SECONDS)
    if backend == "memory":
        return CacheConfig(
            backend="memory", default_ttl_seconds=ttl, should_cache=is_cacheable_payload
        )
    if backend == "sqlite":
        return CacheConfig(
            backend="sqlite",
            sqlite_path=str(get_storage_config().http_cache_path()),
            default_ttl_seconds=ttl,
            should_cache=is_cacheable_payload,
        )
    raise ConfigurationError(
        f"CLAIMDESK_HTTP_CACHE must be one of off, memory, sqlite; got {backend!r}"
    )


def build_claims_api_config(
    base_url: str,
    *,
    token: str | None = None,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    requests_per_second: float | None = None,
    cache: CacheConfig | None = None,
) -> ClaimsApiConfig:
    """Assemble the JSON and upload resilience profiles for one API deployment."""

    headers = {"Accept": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    ratelimit = (
        RateLimit(max_calls=1, per_seconds=1.0 / requests_per_second)
        if requests_per_second
        else None
    )

    resilience = ResilienceConfig(
        name="claims-api",
        base_url=base_url.rstrip("/"),
        timeout_seconds=timeout_seconds,
        retry=RetryPolicy(total=3),
        ratelimit=ratelimit,
        cache=cache,
        default_headers=headers,
    )
    # uploads are retried on server errors only and never on 4xx
    upload_resilience = ResilienceConfig(
        name="claims-api-upload",
        base_url=base_url.rstrip("/"),
        timeout_seconds=UPLOAD_TIMEOUT_SECONDS,
        retry=RetryPolicy(
            total=UPLOAD_MAX_ATTEMPTS - 1,
            backoff_factor=1.0,
            allowed_methods=frozenset({"POST"}),
            status_forcelist=frozenset({500, 502, 503, 504}),
        ),
        ratelimit=ratelimit,
        cache=None,
        default_headers=headers,
    )
    return ClaimsApiConfig(resilience=resilience, upload_resilience=upload_resilience)


def get_claims_api_config() -> ClaimsApiConfig:
    values = require_env_vars(("CLAIMDESK_API_URL",))
    timeout = optional_env_float("CLAIMDESK_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS)
    return build_claims_api_config(
        values["CLAIMDESK_API_URL"],
        token=os.getenv("CLAIMDESK_API_TOKEN") or None,
        timeout_seconds=timeout or DEFAULT_TIMEOUT_SECONDS,
        requests_per_second=optional_env_float("CLAIMDESK_MAX_REQUESTS_PER_SECOND", None),
        cache=_cache_from_environment(),
    )
