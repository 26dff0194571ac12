"""Failure taxonomy for the authentication handshake."""

from __future__ import annotations

from enum import StrEnum


class FailureReason(StrEnum):
    AUTH_FAILED = "auth_failed"
    PAIRING_FAILED = "pairing_failed"
    INVALID_PASSWORD = "invalid_password"
    TWO_FACTOR_INCORRECT = "two_factor_incorrect"
    TWO_FACTOR_CODE_MISSING = "two_factor_code_missing"
    AUTHORIZATION_EXPIRED = "authorization_expired"
    UNSUPPORTED_RESPONSE = "unsupported_response"


class HandshakeError(RuntimeError):
    """Base class for failures that end a login attempt."""

    reason: FailureReason = FailureReason.AUTH_FAILED
    reset_credentials: bool = False

    def __init__(self, message: str | None = None, *, reason: FailureReason | None = None) -> None:
        super().__init__(message or (reason or self.reason).value)
        if reason is not None:
            self.reason = reason


class SessionError(HandshakeError):
    """Session lookup or payload retrieval failed."""


class ProtocolShapeError(HandshakeError):
    """The server answered in a shape the handshake does not support."""

    reason = FailureReason.UNSUPPORTED_RESPONSE


class CredentialError(HandshakeError):
    """Wrong password, bad pairing data or a rejected second-factor code."""


class IrrecoverableAuthError(HandshakeError):
    """The attempt cannot be retried; stored credentials must be cleared."""

    reset_credentials = True


class HandshakeStateError(RuntimeError):
    """An operation was requested in a state that does not allow it."""


class PairingDataError(Exception):
    """Raised by decryptors when the pairing data is corrupt or incomplete."""


class InvalidPasswordError(Exception):
    """Raised by decryptors when the password does not decrypt the payload."""
