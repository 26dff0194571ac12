"""Convergence policies for the custodial status sources.

Each policy is plain data: interval, attempt budget, terminal set, how a sampled
record maps onto a state, and what to return when the budget runs out. The KYC
policy substitutes a fixed fallback (``UNDECIDED``) while the order and card
policies hand back the last record they observed.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import timedelta
from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING

from walletflow.domain.model import (
    BuyOrder,
    Card,
    CardStatus,
    KycState,
    KycTierLevel,
    KycTiers,
    OrderState,
    TierDecision,
)
from walletflow.domain.polling import BoundedPoller, PollOutcome, PollSpec

if TYPE_CHECKING:
    from collections.abc import Callable, Hashable

    from walletflow.domain.ports.fetching import (
        CardSource,
        EligibilitySource,
        OrderSource,
        TierSource,
    )

log = getLogger(__name__)

DEFAULT_POLL_INTERVAL = timedelta(seconds=5)


def _identity[V](value: V) -> V:
    return value


@dataclass(frozen=True, slots=True)
class ConvergencePolicy[V]:
    """Parameters that turn a status source into a converging poll.

    ``fallback`` of ``None`` means "return the last observed value" on exhaustion.
    ``error_value`` of ``None`` means source errors are retried like any pending
    sample; otherwise the first error stops the poll with that value.
    """

    name: str
    interval: timedelta
    max_attempts: int
    terminal_states: frozenset[Hashable]
    state_of: Callable[[V], Hashable] = _identity
    fallback: V | None = None
    error_value: V | None = None

    def is_terminal(self, value: V) -> bool:
        return self.state_of(value) in self.terminal_states

    def on_timeout(self, last_observed: V | None) -> V | None:
        if self.fallback is not None:
            return self.fallback
        return last_observed

    def spec(self) -> PollSpec[V]:
        error_value = self.error_value
        on_error: Callable[[Exception], V] | None = None
        if error_value is not None:

            def on_error(_exc: Exception) -> V:
                return error_value

        return PollSpec(
            interval=self.interval,
            max_attempts=self.max_attempts,
            is_terminal=self.is_terminal,
            on_timeout=self.on_timeout,
            on_error=on_error,
            name=self.name,
        )

    def retimed(
        self,
        *,
        interval: timedelta | None = None,
        max_attempts: int | None = None,
    ) -> ConvergencePolicy[V]:
        return replace(
            self,
            interval=interval if interval is not None else self.interval,
            max_attempts=max_attempts if max_attempts is not None else self.max_attempts,
        )


def _order_state(order: BuyOrder) -> OrderState:
    return order.state


def _card_status(card: Card) -> CardStatus:
    return card.status


KYC_POLICY: ConvergencePolicy[KycState] = ConvergencePolicy(
    name="kyc",
    interval=DEFAULT_POLL_INTERVAL,
    max_attempts=6,
    terminal_states=frozenset(
        {
            KycState.VERIFIED_AND_ELIGIBLE,
            KycState.VERIFIED_BUT_NOT_ELIGIBLE,
            KycState.FAILED,
            KycState.IN_REVIEW,
        }
    ),
    fallback=KycState.UNDECIDED,
    error_value=KycState.PENDING,
)

# Snapshot variant: one sample, pending stays pending.
TIER_CHECK_POLICY: ConvergencePolicy[KycState] = replace(
    KYC_POLICY, name="kyc-tier-check", max_attempts=1, fallback=None
)

CARD_POLICY: ConvergencePolicy[Card] = ConvergencePolicy(
    name="card",
    interval=DEFAULT_POLL_INTERVAL,
    max_attempts=24,
    terminal_states=frozenset({CardStatus.BLOCKED, CardStatus.EXPIRED, CardStatus.ACTIVE}),
    state_of=_card_status,
)

ORDER_POLICY: ConvergencePolicy[BuyOrder] = ConvergencePolicy(
    name="order",
    interval=DEFAULT_POLL_INTERVAL,
    max_attempts=20,
    terminal_states=frozenset({OrderState.FINISHED, OrderState.FAILED, OrderState.CANCELED}),
    state_of=_order_state,
)


def classify_tiers(tiers: KycTiers) -> TierDecision:
    """Reduce a tier snapshot to the decision that drives the KYC state."""

    if tiers.is_approved_for(KycTierLevel.GOLD):
        return TierDecision.APPROVED
    if tiers.is_rejected_for(KycTierLevel.SILVER) or tiers.is_rejected_for(KycTierLevel.GOLD):
        return TierDecision.REJECTED
    if tiers.is_under_review_for(KycTierLevel.SILVER) or tiers.is_under_review_for(
        KycTierLevel.GOLD
    ):
        return TierDecision.UNDER_REVIEW
    return TierDecision.PENDING


async def resolve_kyc_state(
    tier_source: TierSource,
    eligibility_source: EligibilitySource,
) -> KycState:
    """Take one composite KYC sample: tier classification plus eligibility when approved."""

    tiers = await tier_source.fetch_tiers()
    match classify_tiers(tiers):
        case TierDecision.APPROVED:
            eligible = await eligibility_source.is_eligible_for_simple_buy(force_refresh=True)
            if eligible:
                return KycState.VERIFIED_AND_ELIGIBLE
            return KycState.VERIFIED_BUT_NOT_ELIGIBLE
        case TierDecision.REJECTED:
            return KycState.FAILED
        case TierDecision.UNDER_REVIEW:
            return KycState.IN_REVIEW
        case TierDecision.PENDING:
            return KycState.PENDING


async def poll_kyc_state(
    tier_source: TierSource,
    eligibility_source: EligibilitySource,
    *,
    poller: BoundedPoller | None = None,
    policy: ConvergencePolicy[KycState] = KYC_POLICY,
) -> PollOutcome[KycState]:
    """Poll the KYC tiers until a decision is reached; never returns ``PENDING``."""

    active_poller = poller or BoundedPoller()
    outcome = await active_poller.poll(
        policy.spec(), partial(resolve_kyc_state, tier_source, eligibility_source)
    )
    log.info("KYC convergence finished after %s samples: %s", outcome.attempts, outcome.value)
    return outcome


async def check_tier_level(
    tier_source: TierSource,
    eligibility_source: EligibilitySource,
    *,
    poller: BoundedPoller | None = None,
) -> PollOutcome[KycState]:
    """Classify the KYC tiers once, without retrying."""

    active_poller = poller or BoundedPoller()
    return await active_poller.poll(
        TIER_CHECK_POLICY.spec(), partial(resolve_kyc_state, tier_source, eligibility_source)
    )


async def poll_order_status(
    order_source: OrderSource,
    order_id: str,
    *,
    poller: BoundedPoller | None = None,
    policy: ConvergencePolicy[BuyOrder] = ORDER_POLICY,
) -> PollOutcome[BuyOrder]:
    active_poller = poller or BoundedPoller()
    outcome = await active_poller.poll(
        policy.spec(), partial(order_source.fetch_buy_order, order_id)
    )
    log.info(
        "Order %s convergence finished after %s samples: %s",
        order_id,
        outcome.attempts,
        outcome.value.state if outcome.value is not None else None,
    )
    return outcome


async def poll_card_status(
    card_source: CardSource,
    card_id: str,
    *,
    poller: BoundedPoller | None = None,
    policy: ConvergencePolicy[Card] = CARD_POLICY,
) -> PollOutcome[Card]:
    active_poller = poller or BoundedPoller()
    outcome = await active_poller.poll(policy.spec(), partial(card_source.fetch_card, card_id))
    log.info(
        "Card %s convergence finished after %s samples: %s",
        card_id,
        outcome.attempts,
        outcome.value.status if outcome.value is not None else None,
    )
    return outcome


__all__ = [
    "CARD_POLICY",
    "KYC_POLICY",
    "ORDER_POLICY",
    "TIER_CHECK_POLICY",
    "ConvergencePolicy",
    "check_tier_level",
    "classify_tiers",
    "poll_card_status",
    "poll_kyc_state",
    "poll_order_status",
    "resolve_kyc_state",
]
