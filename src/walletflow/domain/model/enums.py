"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import IntEnum, StrEnum


class KycTierLevel(IntEnum):
    BRONZE = 0
    SILVER = 1
    GOLD = 2


class TierState(StrEnum):
    NONE = "none"
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    VERIFIED = "verified"
    REJECTED = "rejected"


class TierDecision(StrEnum):
    """Outcome of classifying a tier snapshot before the eligibility lookup."""

    APPROVED = "approved"
    REJECTED = "rejected"
    UNDER_REVIEW = "under_review"
    PENDING = "pending"


class KycState(StrEnum):
    VERIFIED_AND_ELIGIBLE = "verified_and_eligible"
    VERIFIED_BUT_NOT_ELIGIBLE = "verified_but_not_eligible"
    FAILED = "failed"
    IN_REVIEW = "in_review"
    PENDING = "pending"  # only observed mid-poll, never returned by a finished poll
    UNDECIDED = "undecided"


class OrderState(StrEnum):
    UNINITIALISED = "uninitialised"
    PENDING_CONFIRMATION = "pending_confirmation"
    PENDING_DEPOSIT = "pending_deposit"
    DEPOSIT_MATCHED = "deposit_matched"
    PENDING_EXECUTION = "pending_execution"
    FINISHED = "finished"
    FAILED = "failed"
    CANCELED = "canceled"
    UNKNOWN = "unknown"


class CardStatus(StrEnum):
    CREATED = "created"
    PENDING = "pending"
    FRAUD_REVIEW = "fraud_review"
    ACTIVE = "active"
    BLOCKED = "blocked"
    EXPIRED = "expired"
    UNKNOWN = "unknown"


class AuthType(IntEnum):
    """Second-factor types advertised by the wallet payload endpoint."""

    NONE = 0
    YUBIKEY = 1
    EMAIL = 2
    YUBIKEY_MT_GOX = 3
    GOOGLE_AUTHENTICATOR = 4
    SMS = 5
