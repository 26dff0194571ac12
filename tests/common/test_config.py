from __future__ import annotations

import os
from datetime import timedelta

import pytest

from walletflow.config import (
    ConfigurationError,
    MissingConfigurationError,
    get_polling_config,
    require_env_var,
    require_env_vars,
)
from walletflow.config.env import optional_float_env, optional_int_env


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "value")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result["EXAMPLE_VAR"] == "value"


def test_require_env_vars_reports_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_A", raising=False)
    monkeypatch.delenv("MISSING_B", raising=False)

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_B", "MISSING_A"])

    assert "MISSING_A, MISSING_B" in str(exc.value)


def test_require_env_var_handles_blank_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "   ")

    with pytest.raises(MissingConfigurationError):
        require_env_var("EXAMPLE_VAR")


def test_require_env_var_reads_current_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TEMP_VAR", "123")

    assert os.getenv("TEMP_VAR") == "123"
    assert require_env_var("TEMP_VAR") == "123"


def test_optional_numbers_treat_blank_as_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPTIONAL_VAR", " ")

    assert optional_float_env("OPTIONAL_VAR") is None
    assert optional_int_env("OPTIONAL_VAR") is None


@pytest.mark.parametrize(("raw", "minimum"), [("soon", None), ("0", 1)])
def test_optional_int_rejects_bad_values(
    monkeypatch: pytest.MonkeyPatch, raw: str, minimum: int | None
) -> None:
    monkeypatch.setenv("OPTIONAL_VAR", raw)

    with pytest.raises(ConfigurationError):
        optional_int_env("OPTIONAL_VAR", minimum=minimum)


def test_polling_config_defaults() -> None:
    config = get_polling_config()

    assert config.interval_override is None
    assert config.email_countdown_seconds == 120
    assert config.auth_status_interval == timedelta(seconds=2)


def test_polling_config_reads_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WALLETFLOW_POLL_INTERVAL_SECONDS", "0.5")
    monkeypatch.setenv("WALLETFLOW_EMAIL_COUNTDOWN_SECONDS", "30")
    monkeypatch.setenv("WALLETFLOW_AUTH_STATUS_INTERVAL_SECONDS", "1")

    config = get_polling_config()

    assert config.interval_override == timedelta(seconds=0.5)
    assert config.email_countdown_seconds == 30
    assert config.auth_status_interval == timedelta(seconds=1)


def test_polling_config_rejects_non_positive_interval(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WALLETFLOW_POLL_INTERVAL_SECONDS", "0")

    with pytest.raises(ConfigurationError):
        get_polling_config()
