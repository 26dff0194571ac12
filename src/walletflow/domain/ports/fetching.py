"""Ports for sampling custodial status sources."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from walletflow.domain.model import BuyOrder, Card, KycTiers


@runtime_checkable
class TierSource(Protocol):
    """One-shot lookup of the account's KYC tier snapshot."""

    async def fetch_tiers(self) -> KycTiers: ...


@runtime_checkable
class EligibilitySource(Protocol):
    """One-shot lookup of simple-buy eligibility for an approved account."""

    async def is_eligible_for_simple_buy(self, *, force_refresh: bool = False) -> bool: ...


@runtime_checkable
class OrderSource(Protocol):
    async def fetch_buy_order(self, order_id: str) -> BuyOrder: ...


@runtime_checkable
class CardSource(Protocol):
    async def fetch_card(self, card_id: str) -> Card: ...


__all__ = ["CardSource", "EligibilitySource", "OrderSource", "TierSource"]
