"""Email-confirmation countdown."""

from __future__ import annotations

from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from walletflow.domain.cancellation import CancellationToken

log = getLogger(__name__)


class CountdownOutcome(StrEnum):
    EXPIRED = "expired"
    CANCELLED = "cancelled"


async def run_countdown(
    ticks: AsyncIterator[int],
    *,
    on_tick: Callable[[int], None],
    token: CancellationToken,
) -> CountdownOutcome:
    """Report countdown ticks until the countdown hits zero or the token is set.

    The countdown never goes back up: a tick larger than the previous one is
    dropped. A stream that ends before reaching zero counts as expired. Errors
    raised by the tick source propagate to the caller.
    """

    remaining: int | None = None
    async for value in ticks:
        if token.cancelled:
            return CountdownOutcome.CANCELLED
        if remaining is not None and value > remaining:
            log.debug("Ignoring countdown tick %s above %s", value, remaining)
            continue
        remaining = value
        if value <= 0:
            return CountdownOutcome.EXPIRED
        on_tick(value)

    if token.cancelled:
        return CountdownOutcome.CANCELLED
    log.debug("Countdown source ended at %s", remaining)
    return CountdownOutcome.EXPIRED
