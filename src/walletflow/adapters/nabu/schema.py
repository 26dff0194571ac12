"""Pydantic models describing the custodial (nabu) API payloads."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003
from decimal import Decimal  # noqa: TC003

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _normalize_state(value: object) -> object:
    if isinstance(value, str):
        return value.strip().lower()
    return value


class NabuBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class TierPayload(NabuBaseModel):
    index: int
    name: str | None = None
    state: str

    _normalize = field_validator("state", mode="before")(_normalize_state)


class TiersResponse(NabuBaseModel):
    tiers: list[TierPayload]


class EligibilityResponse(NabuBaseModel):
    eligible: bool


class BuyOrderResponse(NabuBaseModel):
    id: str
    state: str
    pair: str | None = None
    input_currency: str | None = Field(default=None, alias="inputCurrency")
    input_quantity: Decimal | None = Field(default=None, alias="inputQuantity")
    output_currency: str | None = Field(default=None, alias="outputCurrency")
    payment_method_id: str | None = Field(default=None, alias="paymentMethodId")
    inserted_at: datetime | None = Field(default=None, alias="insertedAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    _normalize = field_validator("state", mode="before")(_normalize_state)


class CardDetailsPayload(NabuBaseModel):
    number: str | None = None
    type: str | None = None


class CardResponse(NabuBaseModel):
    id: str
    state: str
    partner: str | None = None
    currency: str | None = None
    card: CardDetailsPayload | None = None

    _normalize = field_validator("state", mode="before")(_normalize_state)


class ErrorResponse(NabuBaseModel):
    status: int | None = None
    type: str | None = None
    description: str | None = None
