"""Custodial account records sampled by the convergence policies."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .enums import CardStatus, KycTierLevel, OrderState, TierState

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime
    from decimal import Decimal


@dataclass(frozen=True, slots=True)
class KycTiers:
    """Snapshot of the verification state for every KYC tier level."""

    states: Mapping[KycTierLevel, TierState] = field(default_factory=dict)

    def state_for(self, level: KycTierLevel) -> TierState:
        return self.states.get(level, TierState.NONE)

    def is_approved_for(self, level: KycTierLevel) -> bool:
        return self.state_for(level) is TierState.VERIFIED

    def is_rejected_for(self, level: KycTierLevel) -> bool:
        return self.state_for(level) is TierState.REJECTED

    def is_under_review_for(self, level: KycTierLevel) -> bool:
        return self.state_for(level) is TierState.UNDER_REVIEW


@dataclass(frozen=True, slots=True)
class BuyOrder:
    id: str
    state: OrderState
    pair: str | None = None
    fiat_amount: Decimal | None = None
    fiat_currency: str | None = None
    crypto_currency: str | None = None
    payment_method_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class Card:
    id: str
    status: CardStatus
    partner: str | None = None
    currency: str | None = None
    last_four: str | None = None
