from __future__ import annotations

from collections.abc import Callable  # noqa: TC003
from dataclasses import replace

import httpx
import pytest

from walletflow.adapters.http_resilience import ResilienceConfig, ResilientClient

type Handler = Callable[[httpx.Request], httpx.Response]
type ClientFactoryBuilder = Callable[[Handler], Callable[[ResilienceConfig], ResilientClient]]


def make_client_factory(handler: Handler) -> Callable[[ResilienceConfig], ResilientClient]:
    def factory(resilience: ResilienceConfig) -> ResilientClient:
        return ResilientClient(replace(resilience, transport=httpx.MockTransport(handler)))

    return factory


@pytest.fixture
def client_factory() -> ClientFactoryBuilder:
    return make_client_factory
