"""Ports consumed by the authentication handshake."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from walletflow.domain.model import WalletIdentity


@dataclass(frozen=True, slots=True)
class PayloadResponse:
    """Raw encrypted-payload response: a success body or an error body, as text."""

    body: str | None = field(default=None, repr=False)
    error_body: str | None = field(default=None, repr=False)


@runtime_checkable
class CredentialSessionSource(Protocol):
    """Remote wallet endpoints used while logging in."""

    async def get_session_id(self, guid: str) -> str: ...

    async def get_encrypted_payload(self, guid: str, session_id: str) -> PayloadResponse: ...

    async def submit_two_factor_code(self, session_id: str, guid: str, code: str) -> str: ...

    def email_confirmation_countdown(self) -> AsyncIterator[int]: ...


@runtime_checkable
class Decryptor(Protocol):
    """Decrypts a wallet payload document.

    Implementations raise ``PairingDataError`` for corrupt pairing data and
    ``InvalidPasswordError`` for a wrong password; anything else is treated as
    irrecoverable.
    """

    def decrypt(self, payload: str, password: str) -> WalletIdentity: ...


@runtime_checkable
class CredentialStore(Protocol):
    """Persisted login preferences."""

    def persist_identity(self, identity: WalletIdentity) -> None: ...

    def clear_credentials(self) -> None: ...


__all__ = ["CredentialSessionSource", "CredentialStore", "Decryptor", "PayloadResponse"]
