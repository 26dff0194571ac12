"""HTTP client for the wallet authentication endpoints."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from walletflow.adapters.http_resilience import ResilientClient
from walletflow.config.polling import PollingConfig, get_polling_config
from walletflow.config.wallet import WalletApiConfig, get_wallet_config
from walletflow.domain.auth.responses import AUTH_REQUIRED_MARKER
from walletflow.domain.ports.auth import CredentialSessionSource, PayloadResponse

from .schema import SessionResponse

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable
    from types import TracebackType

    import httpx

    from walletflow.config.http_resilience import ResilienceConfig
    from walletflow.domain.polling import Sleep

log = getLogger(__name__)


class WalletAPIError(RuntimeError):
    """Raised when a wallet endpoint answers with an unexpected error."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class WalletAuthClient:
    """Async implementation of :class:`CredentialSessionSource` over the wallet API."""

    def __init__(
        self,
        *,
        config: WalletApiConfig | None = None,
        polling: PollingConfig | None = None,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
        sleep: Sleep | None = None,
    ) -> None:
        self._config = config or get_wallet_config()
        self._polling = polling or get_polling_config()
        self._client_factory = client_factory or ResilientClient
        self._client: ResilientClient | None = None
        self._sleep = sleep or asyncio.sleep

    async def __aenter__(self) -> WalletAuthClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def get_session_id(self, guid: str) -> str:
        response = await self._http().get("wallet/sessions", params=self._params())
        if response.is_error:
            raise _api_error(response, f"session request failed for {guid}")
        try:
            session = SessionResponse.model_validate_json(response.content)
        except ValidationError as exc:
            raise WalletAPIError("Malformed session response", status=response.status_code) from exc
        log.debug("Obtained wallet session for %s", guid)
        return session.token

    async def get_encrypted_payload(self, guid: str, session_id: str) -> PayloadResponse:
        response = await self._http().get(
            f"wallet/{guid}",
            params=self._params(format="json", resend_code="false"),
            headers=_session_headers(session_id),
        )
        if not response.is_error:
            return PayloadResponse(body=response.text)
        if AUTH_REQUIRED_MARKER in response.text:
            log.debug("Wallet %s is waiting for authorization", guid)
            return PayloadResponse(error_body=response.text)
        raise _api_error(response, f"payload request failed for {guid}")

    async def submit_two_factor_code(self, session_id: str, guid: str, code: str) -> str:
        response = await self._http().post(
            "wallet",
            data=self._params(
                method="get-wallet",
                guid=guid,
                payload=code,
                length=str(len(code)),
                format="plain",
            ),
            headers=_session_headers(session_id),
        )
        if response.is_error:
            raise _api_error(response, "second-factor code was not accepted")
        return response.text

    async def email_confirmation_countdown(self) -> AsyncIterator[int]:
        """Yield the seconds left on the email-approval window, once per second."""

        total = self._polling.email_countdown_seconds
        for remaining in range(total - 1, -1, -1):
            await self._sleep(1.0)
            yield remaining

    def _http(self) -> ResilientClient:
        if self._client is None:
            self._client = self._client_factory(self._config.resilience)
        return self._client

    def _params(self, **extra: str) -> dict[str, str]:
        params = dict(extra)
        if self._config.api_code:
            params["api_code"] = self._config.api_code
        return params


def _session_headers(session_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {session_id}"}


def _api_error(response: httpx.Response, message: str) -> WalletAPIError:
    log.error(f"wallet API error {response.status_code}: {message}")
    return WalletAPIError(f"{message} ({response.status_code})", status=response.status_code)


if TYPE_CHECKING:
    _session_source_check: CredentialSessionSource = WalletAuthClient()
