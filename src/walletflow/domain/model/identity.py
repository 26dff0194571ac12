"""Wallet identity derived from a decrypted payload."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class WalletIdentity:
    guid: str
    shared_key: str = field(repr=False)
