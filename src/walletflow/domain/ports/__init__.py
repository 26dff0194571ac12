"""Domain port definitions for adapters."""

from __future__ import annotations

from .auth import CredentialSessionSource, CredentialStore, Decryptor, PayloadResponse
from .fetching import CardSource, EligibilitySource, OrderSource, TierSource

__all__ = [
    "CardSource",
    "CredentialSessionSource",
    "CredentialStore",
    "Decryptor",
    "EligibilitySource",
    "OrderSource",
    "PayloadResponse",
    "TierSource",
]
