"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from walletflow.adapters.nabu import NabuClient
from walletflow.adapters.sqlalchemy import SqlAlchemyCredentialStore, startup
from walletflow.adapters.sqlalchemy.unit_of_work import is_started
from walletflow.adapters.wallet import WalletAuthClient
from walletflow.config.polling import PollingConfig, get_polling_config
from walletflow.domain import convergence
from walletflow.domain.auth import AUTH_STATUS_POLICY, AuthHandshake
from walletflow.domain.convergence import (
    CARD_POLICY,
    KYC_POLICY,
    ORDER_POLICY,
    ConvergencePolicy,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from walletflow.domain.auth import HandshakeListener
    from walletflow.domain.model import BuyOrder, Card, KycState
    from walletflow.domain.polling import BoundedPoller, PollOutcome
    from walletflow.domain.ports.auth import CredentialSessionSource, CredentialStore, Decryptor

log = getLogger(__name__)


def _effective_policy[V](
    policy: ConvergencePolicy[V], polling: PollingConfig
) -> ConvergencePolicy[V]:
    if polling.interval_override is None:
        return policy
    return policy.retimed(interval=polling.interval_override)


def poll_kyc_state(
    *,
    client: NabuClient | None = None,
    poller: BoundedPoller | None = None,
    polling: PollingConfig | None = None,
) -> PollOutcome[KycState]:
    """Wait for the KYC tiers to reach a decision using the configured adapters."""

    policy = _effective_policy(KYC_POLICY, polling or get_polling_config())
    log.info(
        "Starting KYC poll: interval=%s, max_attempts=%s", policy.interval, policy.max_attempts
    )

    async def run() -> PollOutcome[KycState]:
        async with client or NabuClient() as nabu:
            return await convergence.poll_kyc_state(nabu, nabu, poller=poller, policy=policy)

    return asyncio.run(run())


def check_tier_level(
    *,
    client: NabuClient | None = None,
    poller: BoundedPoller | None = None,
) -> PollOutcome[KycState]:
    """Classify the KYC tiers once."""

    async def run() -> PollOutcome[KycState]:
        async with client or NabuClient() as nabu:
            return await convergence.check_tier_level(nabu, nabu, poller=poller)

    return asyncio.run(run())


def poll_order_status(
    order_id: str,
    *,
    client: NabuClient | None = None,
    poller: BoundedPoller | None = None,
    polling: PollingConfig | None = None,
) -> PollOutcome[BuyOrder]:
    policy = _effective_policy(ORDER_POLICY, polling or get_polling_config())
    log.info("Starting order poll for %s: max_attempts=%s", order_id, policy.max_attempts)

    async def run() -> PollOutcome[BuyOrder]:
        async with client or NabuClient() as nabu:
            return await convergence.poll_order_status(
                nabu, order_id, poller=poller, policy=policy
            )

    return asyncio.run(run())


def poll_card_status(
    card_id: str,
    *,
    client: NabuClient | None = None,
    poller: BoundedPoller | None = None,
    polling: PollingConfig | None = None,
) -> PollOutcome[Card]:
    policy = _effective_policy(CARD_POLICY, polling or get_polling_config())
    log.info("Starting card poll for %s: max_attempts=%s", card_id, policy.max_attempts)

    async def run() -> PollOutcome[Card]:
        async with client or NabuClient() as nabu:
            return await convergence.poll_card_status(nabu, card_id, poller=poller, policy=policy)

    return asyncio.run(run())


def build_handshake(
    *,
    decryptor: Decryptor,
    listener: HandshakeListener,
    sessions: CredentialSessionSource | None = None,
    credentials: CredentialStore | None = None,
    poller: BoundedPoller | None = None,
    polling: PollingConfig | None = None,
    session_id: str | None = None,
) -> AuthHandshake:
    """Wire a single-use login handshake to the wallet API and the credential store.

    The default credential store needs the SQLAlchemy adapter; it is started on
    demand. A wallet client built here is closed when ``verify_password`` returns;
    an injected ``sessions`` source stays owned by the caller.
    """

    polling_config = polling or get_polling_config()
    if credentials is None:
        if not is_started():
            startup()
        credentials = SqlAlchemyCredentialStore()
    release_sessions: Callable[[], Awaitable[None]] | None = None
    if sessions is None:
        wallet = WalletAuthClient(polling=polling_config)
        sessions, release_sessions = wallet, wallet.aclose
    return AuthHandshake(
        sessions=sessions,
        decryptor=decryptor,
        credentials=credentials,
        listener=listener,
        poller=poller,
        auth_status_policy=AUTH_STATUS_POLICY.retimed(
            interval=polling_config.auth_status_interval
        ),
        session_id=session_id,
        release_sessions=release_sessions,
    )


__all__ = [
    "build_handshake",
    "check_tier_level",
    "poll_card_status",
    "poll_kyc_state",
    "poll_order_status",
]
