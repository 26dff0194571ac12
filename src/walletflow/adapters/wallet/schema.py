"""Pydantic models for the wallet authentication endpoints."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator


class WalletBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class SessionResponse(WalletBaseModel):
    token: str

    @field_validator("token")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("session token must not be empty")
        return value
