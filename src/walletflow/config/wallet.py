"""Wallet authentication API configuration values."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

WALLET_BASE_URL = "https://blockchain.info/"
WALLET_TIMEOUT_SECONDS = 15.0


@dataclass(frozen=True)
class WalletApiConfig:
    """Holds wallet authentication API configuration values."""

    resilience: ResilienceConfig
    api_code: str | None = None


def get_wallet_config(*, resilience: ResilienceConfig | None = None) -> WalletApiConfig:
    base_url = os.getenv("WALLET_BASE_URL") or WALLET_BASE_URL
    return WalletApiConfig(
        api_code=os.getenv("WALLET_API_CODE") or None,
        resilience=resilience
        or ResilienceConfig(
            name="wallet",
            base_url=base_url,
            timeout_seconds=WALLET_TIMEOUT_SECONDS,
            # Session and payload requests are never replayed by the transport.
            retry=RetryPolicy(total=0),
            ratelimit=RateLimit(max_calls=2, per_seconds=1.0),
        ),
    )
