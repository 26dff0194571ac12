"""Translate custodial API payloads into domain records."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from walletflow.domain.model import (
    BuyOrder,
    Card,
    CardStatus,
    KycTierLevel,
    KycTiers,
    OrderState,
    TierState,
)

if TYPE_CHECKING:
    from .schema import BuyOrderResponse, CardResponse, TiersResponse

log = getLogger(__name__)

_TIER_STATE_MAP: dict[str, TierState] = {
    "none": TierState.NONE,
    "pending": TierState.PENDING,
    "under_review": TierState.UNDER_REVIEW,
    "verified": TierState.VERIFIED,
    "rejected": TierState.REJECTED,
}

_ORDER_STATE_MAP: dict[str, OrderState] = {
    "pending_confirmation": OrderState.PENDING_CONFIRMATION,
    "pending_deposit": OrderState.PENDING_DEPOSIT,
    "deposit_matched": OrderState.DEPOSIT_MATCHED,
    "pending_execution": OrderState.PENDING_EXECUTION,
    "finished": OrderState.FINISHED,
    "failed": OrderState.FAILED,
    "expired": OrderState.FAILED,
    "canceled": OrderState.CANCELED,
    "cancelled": OrderState.CANCELED,
}

_CARD_STATUS_MAP: dict[str, CardStatus] = {
    "created": CardStatus.CREATED,
    "pending": CardStatus.PENDING,
    "fraud_review": CardStatus.FRAUD_REVIEW,
    "active": CardStatus.ACTIVE,
    "blocked": CardStatus.BLOCKED,
    "expired": CardStatus.EXPIRED,
}


def translate_tiers(payload: TiersResponse) -> KycTiers:
    states: dict[KycTierLevel, TierState] = {}
    for tier in payload.tiers:
        try:
            level = KycTierLevel(tier.index)
        except ValueError:
            log.debug("Ignoring unknown KYC tier index %s", tier.index)
            continue
        states[level] = _TIER_STATE_MAP.get(tier.state, TierState.NONE)
    return KycTiers(states=states)


def translate_buy_order(payload: BuyOrderResponse) -> BuyOrder:
    state = _ORDER_STATE_MAP.get(payload.state)
    if state is None:
        log.warning("Unknown buy order state %r for order %s", payload.state, payload.id)
        state = OrderState.UNKNOWN
    return BuyOrder(
        id=payload.id,
        state=state,
        pair=payload.pair,
        fiat_amount=payload.input_quantity,
        fiat_currency=payload.input_currency,
        crypto_currency=payload.output_currency,
        payment_method_id=payload.payment_method_id,
        created_at=payload.inserted_at,
        updated_at=payload.updated_at,
    )


def translate_card(payload: CardResponse) -> Card:
    status = _CARD_STATUS_MAP.get(payload.state)
    if status is None:
        log.warning("Unknown card state %r for card %s", payload.state, payload.id)
        status = CardStatus.UNKNOWN
    return Card(
        id=payload.id,
        status=status,
        partner=payload.partner,
        currency=payload.currency,
        last_four=payload.card.number if payload.card else None,
    )
