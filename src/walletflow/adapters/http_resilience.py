from __future__ import annotations

import json
from logging import getLogger
from typing import TYPE_CHECKING, Any

import httpx
from aiolimiter import AsyncLimiter
from hishel import AsyncSqliteStorage, FilterPolicy
from hishel import Response as HishelCacheResponse
from hishel._policies import BaseFilter
from hishel.httpx import AsyncCacheClient
from httpx_retries import Retry, RetryTransport

from walletflow.config.http_resilience import (
    CacheConfig,
    RateLimit,
    ResilienceConfig,
    RetryPolicy,
    ShouldCacheHook,
)
from walletflow.config.storage import get_storage_config

if TYPE_CHECKING:
    from types import TracebackType

    from httpx._types import HeaderTypes, QueryParamTypes, RequestData

log = getLogger(__name__)


def build_retry(policy: RetryPolicy) -> Retry:
    return Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        respect_retry_after_header=policy.respect_retry_after_header,
        allowed_methods=tuple(policy.allowed_methods),
        status_forcelist=tuple(policy.status_forcelist),
        retry_on_exceptions=policy.retry_on_exceptions,
        backoff_jitter=policy.backoff_jitter,
    )


class ResilientClient:
    """``httpx.AsyncClient`` behind a rate limiter, a retry transport and an optional cache.

    Layering, outermost first: limiter, hishel cache, retries, ``config.transport``.
    A cache hit therefore costs neither a retry budget nor a network round trip.
    """

    def __init__(self, config: ResilienceConfig) -> None:
        self.config = config
        self._limiter = _build_limiter(config.ratelimit)

        options: dict[str, Any] = {
            "timeout": config.timeout_seconds,
            "transport": RetryTransport(
                transport=config.transport, retry=build_retry(config.retry)
            ),
        }
        if config.base_url is not None:
            options["base_url"] = config.base_url

        if config.cache is None:
            self._client = httpx.AsyncClient(**options)
        else:
            storage, policy = _build_cache(config.name, config.cache)
            self._client = AsyncCacheClient(**options, storage=storage, policy=policy)

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(
        self,
        url: str,
        *,
        params: QueryParamTypes | None = None,
        headers: HeaderTypes | None = None,
    ) -> httpx.Response:
        return await self.request("GET", url, params=params, headers=headers)

    async def post(
        self,
        url: str,
        *,
        data: RequestData | None = None,
        params: QueryParamTypes | None = None,
        headers: HeaderTypes | None = None,
    ) -> httpx.Response:
        return await self.request("POST", url, data=data, params=params, headers=headers)

    async def request(
        self,
        method: str,
        url: str,
        *,
        data: RequestData | None = None,
        params: QueryParamTypes | None = None,
        headers: HeaderTypes | None = None,
    ) -> httpx.Response:
        if self._limiter is None:
            return await self._client.request(
                method, url, data=data, params=params, headers=headers
            )
        async with self._limiter:
            return await self._client.request(
                method, url, data=data, params=params, headers=headers
            )


def _build_limiter(ratelimit: RateLimit | None) -> AsyncLimiter | None:
    if ratelimit is None:
        return None
    return AsyncLimiter(ratelimit.max_calls, ratelimit.per_seconds)


class _JsonPayloadFilter(BaseFilter[HishelCacheResponse]):
    """Store a response only when its decoded JSON body satisfies the predicate."""

    def __init__(self, predicate: ShouldCacheHook) -> None:
        self._predicate = predicate

    def needs_body(self) -> bool:
        return True

    def apply(self, item: HishelCacheResponse, body: bytes | None) -> bool:  # noqa: ARG002
        if not body:
            return False
        try:
            payload = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            return False
        return bool(self._predicate(payload))


def _build_cache(name: str, config: CacheConfig) -> tuple[AsyncSqliteStorage, FilterPolicy]:
    path = config.path or get_storage_config().http_cache_path()
    log.debug("%s: caching settled responses in %s", name, path)
    storage = AsyncSqliteStorage(database_path=str(path), default_ttl=config.ttl_seconds)
    policy = FilterPolicy(response_filters=[_JsonPayloadFilter(config.should_cache)])
    return storage, policy


__all__ = [
    "CacheConfig",
    "RateLimit",
    "ResilienceConfig",
    "ResilientClient",
    "RetryPolicy",
    "build_retry",
]
