"""Public interface for the custodial (nabu) adapter."""

from __future__ import annotations

from .client import NabuAPIError, NabuClient, should_cache_payload
from .schema import BuyOrderResponse, CardResponse, EligibilityResponse, TiersResponse
from .translator import translate_buy_order, translate_card, translate_tiers

__all__ = [
    "BuyOrderResponse",
    "CardResponse",
    "EligibilityResponse",
    "NabuAPIError",
    "NabuClient",
    "TiersResponse",
    "should_cache_payload",
    "translate_buy_order",
    "translate_card",
    "translate_tiers",
]
