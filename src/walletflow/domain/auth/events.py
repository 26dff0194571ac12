"""Notifications emitted by the authentication handshake."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from walletflow.domain.model import AuthType, WalletIdentity

    from .errors import FailureReason


@dataclass(frozen=True, slots=True)
class CheckEmailPrompt:
    """The user has to approve the login from their inbox."""


@dataclass(frozen=True, slots=True)
class CountdownTick:
    seconds_remaining: int


@dataclass(frozen=True, slots=True)
class SecondFactorRequired:
    auth_type: AuthType


@dataclass(frozen=True, slots=True)
class SecondFactorRejected:
    """A submitted code was refused without ending the attempt."""

    reason: FailureReason


@dataclass(frozen=True, slots=True)
class AuthSucceeded:
    identity: WalletIdentity


@dataclass(frozen=True, slots=True)
class AuthFailed:
    reason: FailureReason
    credentials_reset: bool = False


type InterimEvent = CheckEmailPrompt | CountdownTick | SecondFactorRequired | SecondFactorRejected
type TerminalEvent = AuthSucceeded | AuthFailed
type HandshakeEvent = InterimEvent | TerminalEvent

HandshakeListener = Callable[["HandshakeEvent"], None]
