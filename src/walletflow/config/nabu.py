"""Custodial (nabu) API configuration values."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .env import require_env_vars
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, ShouldCacheHook

NABU_BASE_URL = "https://api.blockchain.info/nabu-gateway/"
NABU_TIMEOUT_SECONDS = 10.0
# Settled payloads never change; the TTL only keeps the cache file from growing forever.
NABU_CACHE_TTL_SECONDS = 30 * 24 * 3600.0


@dataclass(frozen=True)
class NabuConfig:
    """Holds custodial API configuration values."""

    api_token: str
    resilience: ResilienceConfig


def get_nabu_config(
    *,
    resilience: ResilienceConfig | None = None,
    cache_predicate: ShouldCacheHook | None = None,
) -> NabuConfig:
    values = require_env_vars(("NABU_API_TOKEN",))
    base_url = os.getenv("NABU_BASE_URL") or NABU_BASE_URL
    return NabuConfig(
        api_token=values["NABU_API_TOKEN"],
        resilience=resilience
        or ResilienceConfig(
            name="nabu",
            base_url=base_url,
            timeout_seconds=NABU_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
            cache=CacheConfig(should_cache=cache_predicate, ttl_seconds=NABU_CACHE_TTL_SECONDS)
            if cache_predicate is not None
            else None,
        ),
    )
