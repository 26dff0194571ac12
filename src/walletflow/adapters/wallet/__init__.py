"""Public interface for the wallet authentication adapter."""

from __future__ import annotations

from .client import WalletAPIError, WalletAuthClient
from .schema import SessionResponse

__all__ = ["SessionResponse", "WalletAPIError", "WalletAuthClient"]
