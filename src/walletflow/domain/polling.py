"""Bounded polling of eventually-consistent status sources.

A poll samples a source until a terminal predicate holds or the attempt budget is
spent. Timeouts are expressed as attempts, never as wall-clock deadlines: the only
waiting happens between samples, through an injectable ``sleep`` coroutine so tests
can run the loop deterministically.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import timedelta
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

log = getLogger(__name__)

type Sleep = Callable[[float], Awaitable[None]]
type StatusSource[V] = Callable[[], Awaitable[V]]


@dataclass(frozen=True, slots=True)
class PollSpec[V]:
    """Configuration of a single convergence run."""

    interval: timedelta
    max_attempts: int
    is_terminal: Callable[[V], bool]
    on_timeout: Callable[[V | None], V | None]
    on_error: Callable[[Exception], V] | None = None
    name: str = "poll"

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        if self.interval <= timedelta(0):
            raise ValueError(f"interval must be positive, got {self.interval}")


@dataclass(frozen=True, slots=True)
class Terminal[V]:
    """The terminal predicate held for ``value`` on sample number ``attempts``."""

    value: V
    attempts: int


@dataclass(frozen=True, slots=True)
class Exhausted[V]:
    """Polling stopped without a terminal sample; ``fallback`` comes from ``on_timeout``."""

    fallback: V | None
    attempts: int
    last_error: Exception | None = field(default=None, compare=False)

    @property
    def value(self) -> V | None:
        return self.fallback


type PollOutcome[V] = Terminal[V] | Exhausted[V]


async def _asyncio_sleep(seconds: float) -> None:
    await asyncio.sleep(seconds)


class BoundedPoller:
    """Sample a status source at a fixed interval until terminal or exhausted.

    The poller keeps no state between calls, so one instance can serve any number
    of concurrent polls. Cancelling the task running :meth:`poll` aborts it at the
    current sample or wait.
    """

    def __init__(self, *, sleep: Sleep | None = None) -> None:
        self._sleep: Sleep = sleep or _asyncio_sleep

    async def poll[V](self, spec: PollSpec[V], source: StatusSource[V]) -> PollOutcome[V]:
        last_observed: V | None = None
        last_error: Exception | None = None
        interval_seconds = spec.interval.total_seconds()

        for attempt in range(1, spec.max_attempts + 1):
            if attempt > 1:
                await self._sleep(interval_seconds)

            try:
                value = await source()
            except Exception as exc:
                last_error = exc
                if spec.on_error is not None:
                    log.warning(
                        "%s: sample %s/%s failed, converging immediately: %s",
                        spec.name,
                        attempt,
                        spec.max_attempts,
                        exc,
                    )
                    return Exhausted(
                        fallback=spec.on_timeout(spec.on_error(exc)),
                        attempts=attempt,
                        last_error=exc,
                    )
                log.warning(
                    "%s: sample %s/%s failed: %s", spec.name, attempt, spec.max_attempts, exc
                )
                continue

            last_observed = value
            if spec.is_terminal(value):
                log.debug("%s: terminal value on sample %s: %s", spec.name, attempt, value)
                return Terminal(value=value, attempts=attempt)
            log.debug("%s: sample %s/%s pending: %s", spec.name, attempt, spec.max_attempts, value)

        log.info("%s: no terminal value after %s samples", spec.name, spec.max_attempts)
        return Exhausted(
            fallback=spec.on_timeout(last_observed),
            attempts=spec.max_attempts,
            last_error=last_error,
        )


__all__ = [
    "BoundedPoller",
    "Exhausted",
    "PollOutcome",
    "PollSpec",
    "Sleep",
    "StatusSource",
    "Terminal",
]
