"""Polling and countdown defaults."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from .env import optional_float_env, optional_int_env

DEFAULT_EMAIL_COUNTDOWN_SECONDS = 120
DEFAULT_AUTH_STATUS_INTERVAL_SECONDS = 2.0


@dataclass(frozen=True, slots=True)
class PollingConfig:
    interval_override: timedelta | None = None
    email_countdown_seconds: int = DEFAULT_EMAIL_COUNTDOWN_SECONDS
    auth_status_interval: timedelta = timedelta(seconds=DEFAULT_AUTH_STATUS_INTERVAL_SECONDS)


def get_polling_config() -> PollingConfig:
    interval = optional_float_env("WALLETFLOW_POLL_INTERVAL_SECONDS", minimum=0.001)
    countdown = optional_int_env("WALLETFLOW_EMAIL_COUNTDOWN_SECONDS", minimum=1)
    auth_interval = optional_float_env("WALLETFLOW_AUTH_STATUS_INTERVAL_SECONDS", minimum=0.001)
    return PollingConfig(
        interval_override=timedelta(seconds=interval) if interval is not None else None,
        email_countdown_seconds=countdown or DEFAULT_EMAIL_COUNTDOWN_SECONDS,
        auth_status_interval=timedelta(
            seconds=auth_interval
            if auth_interval is not None
            else DEFAULT_AUTH_STATUS_INTERVAL_SECONDS
        ),
    )
