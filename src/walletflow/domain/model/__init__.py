"""Domain model package."""

from __future__ import annotations

from .custodial import BuyOrder, Card, KycTiers
from .enums import (
    AuthType,
    CardStatus,
    KycState,
    KycTierLevel,
    OrderState,
    TierDecision,
    TierState,
)
from .identity import WalletIdentity

__all__ = [
    "AuthType",
    "BuyOrder",
    "Card",
    "CardStatus",
    "KycState",
    "KycTierLevel",
    "KycTiers",
    "OrderState",
    "TierDecision",
    "TierState",
    "WalletIdentity",
]
