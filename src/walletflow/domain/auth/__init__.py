"""Authentication handshake: response variants, events, errors and state machine."""

from __future__ import annotations

from .errors import (
    CredentialError,
    FailureReason,
    HandshakeError,
    HandshakeStateError,
    InvalidPasswordError,
    IrrecoverableAuthError,
    PairingDataError,
    ProtocolShapeError,
    SessionError,
)
from .events import (
    AuthFailed,
    AuthSucceeded,
    CheckEmailPrompt,
    CountdownTick,
    HandshakeEvent,
    HandshakeListener,
    SecondFactorRejected,
    SecondFactorRequired,
)
from .handshake import AUTH_STATUS_POLICY, AuthHandshake, HandshakeState
from .responses import (
    AUTH_REQUIRED_MARKER,
    ChallengeRequired,
    ChallengeResolved,
    HandshakeResponse,
    NoChallenge,
    classify_payload_response,
)

__all__ = [
    "AUTH_REQUIRED_MARKER",
    "AUTH_STATUS_POLICY",
    "AuthFailed",
    "AuthHandshake",
    "AuthSucceeded",
    "ChallengeRequired",
    "ChallengeResolved",
    "CheckEmailPrompt",
    "CountdownTick",
    "CredentialError",
    "FailureReason",
    "HandshakeError",
    "HandshakeEvent",
    "HandshakeListener",
    "HandshakeResponse",
    "HandshakeState",
    "HandshakeStateError",
    "InvalidPasswordError",
    "IrrecoverableAuthError",
    "NoChallenge",
    "PairingDataError",
    "ProtocolShapeError",
    "SecondFactorRejected",
    "SecondFactorRequired",
    "SessionError",
    "classify_payload_response",
]
