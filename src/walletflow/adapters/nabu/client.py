"""HTTP client for the custodial (nabu) API."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError

from walletflow.adapters.http_resilience import ResilientClient
from walletflow.config.nabu import NabuConfig, get_nabu_config
from walletflow.domain.ports.fetching import (
    CardSource,
    EligibilitySource,
    OrderSource,
    TierSource,
)

from .schema import (
    BuyOrderResponse,
    CardResponse,
    EligibilityResponse,
    ErrorResponse,
    TiersResponse,
)
from .translator import translate_buy_order, translate_card, translate_tiers

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from pydantic import BaseModel

    from walletflow.config.http_resilience import ResilienceConfig
    from walletflow.domain.model import BuyOrder, Card, KycTiers

log = getLogger(__name__)

# Final order states and expired cards never change, so their payloads are safe to cache.
_CACHEABLE_STATES = frozenset({"finished", "failed", "canceled", "cancelled", "expired"})


def should_cache_payload(payload: object) -> bool:
    if not isinstance(payload, dict):
        return False
    state = payload.get("state")
    return isinstance(state, str) and state.strip().lower() in _CACHEABLE_STATES


class NabuAPIError(RuntimeError):
    """Raised when the custodial API returns an application-level error."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class NabuClient:
    """Async client implementing the custodial status-source ports.

    One underlying HTTP client is kept open for the lifetime of the instance so
    repeated samples during a poll share connections, rate limiting and cache.
    """

    def __init__(
        self,
        *,
        config: NabuConfig | None = None,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config or get_nabu_config(cache_predicate=should_cache_payload)
        self._resilience = self._config.resilience
        self._client_factory = client_factory or ResilientClient
        self._client: ResilientClient | None = None

    async def __aenter__(self) -> NabuClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch_tiers(self) -> KycTiers:
        payload = await self._get("kyc/tiers", TiersResponse)
        return translate_tiers(payload)

    async def is_eligible_for_simple_buy(self, *, force_refresh: bool = False) -> bool:
        headers = {"Cache-Control": "no-cache"} if force_refresh else None
        payload = await self._get("eligible", EligibilityResponse, headers=headers)
        return payload.eligible

    async def fetch_buy_order(self, order_id: str) -> BuyOrder:
        payload = await self._get(f"simple-buy/trades/{order_id}", BuyOrderResponse)
        return translate_buy_order(payload)

    async def fetch_card(self, card_id: str) -> Card:
        payload = await self._get(f"payments/cards/{card_id}", CardResponse)
        return translate_card(payload)

    def _http(self) -> ResilientClient:
        if self._client is None:
            self._client = self._client_factory(self._resilience)
        return self._client

    async def _get[TModel: BaseModel](
        self,
        path: str,
        model: type[TModel],
        *,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> TModel:
        if self._resilience.base_url is None:
            raise NabuAPIError("Missing nabu base_url in resilience configuration")

        request_headers = {"Authorization": f"Bearer {self._config.api_token}"}
        if headers:
            request_headers.update(headers)

        response = await self._http().get(path, params=params, headers=request_headers)
        payload: Any = _decode(response)
        if response.is_error:
            error_payload = _parse_error(payload)
            description = error_payload.description if error_payload else None
            log.error(f"nabu API error {response.status_code} on {path}: {description}")
            raise NabuAPIError(
                description or f"nabu request failed: {response.status_code}",
                status=response.status_code,
            )

        if not isinstance(payload, dict):
            raise NabuAPIError(f"Unexpected nabu response payload for {path}")
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise NabuAPIError(f"Malformed nabu response payload for {path}") from exc


def _decode(response: httpx.Response) -> object:
    try:
        return response.json()
    except ValueError:
        return None


def _parse_error(payload: object) -> ErrorResponse | None:
    if not isinstance(payload, dict):
        return None
    try:
        return ErrorResponse.model_validate(payload)
    except ValidationError:
        return None


if TYPE_CHECKING:
    _tier_check: TierSource = NabuClient()
    _eligibility_check: EligibilitySource = NabuClient()
    _order_check: OrderSource = NabuClient()
    _card_check: CardSource = NabuClient()
