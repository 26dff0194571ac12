"""Cancellation primitives shared by competing asynchronous paths."""

from __future__ import annotations

import asyncio


class CancellationToken:
    """One-shot token: the first ``claim`` wins, every later claim is refused.

    Competing resumption paths claim the token before acting, so at most one of
    them performs the transition. Cancelling the token makes every pending
    ``claim`` fail and wakes up ``wait``.
    """

    __slots__ = ("_claimed_by", "_event")

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._claimed_by: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def claimed_by(self) -> str | None:
        return self._claimed_by

    def claim(self, owner: str) -> bool:
        if self._event.is_set():
            return False
        self._claimed_by = owner
        self._event.set()
        return True

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()
