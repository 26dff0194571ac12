from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from walletflow.adapters.sqlalchemy import create_all_tables, start_mappers

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    start_mappers()
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture(autouse=True)
def _isolated_environment(
    monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory
) -> None:
    for name in (
        "WALLETFLOW_POLL_INTERVAL_SECONDS",
        "WALLETFLOW_EMAIL_COUNTDOWN_SECONDS",
        "WALLETFLOW_AUTH_STATUS_INTERVAL_SECONDS",
        "WALLET_API_CODE",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("WALLETFLOW_DATA_DIR", str(tmp_path_factory.mktemp("walletflow-data")))
