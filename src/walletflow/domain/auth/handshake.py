"""Password verification handshake for one login attempt.

States::

    IDLE -> SESSION_RESOLVING -> PAYLOAD_FETCHING -> TWO_FACTOR_PENDING -> DECRYPTING
                                                  \\-------------------> DECRYPTING
    DECRYPTING -> SUCCESS | FAILED          any non-terminal state -> CANCELLED

While a challenge is pending, the email-approval poll and an explicitly submitted
second-factor code race for the same ``CancellationToken``; only the path that
claims it resumes the attempt, the other one is cancelled.
"""

from __future__ import annotations

import asyncio
from datetime import timedelta
from enum import StrEnum
from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING, Any

from walletflow.domain.cancellation import CancellationToken
from walletflow.domain.convergence import ConvergencePolicy
from walletflow.domain.countdown import CountdownOutcome, run_countdown
from walletflow.domain.polling import BoundedPoller, Exhausted

from .errors import (
    CredentialError,
    FailureReason,
    HandshakeError,
    HandshakeStateError,
    InvalidPasswordError,
    IrrecoverableAuthError,
    PairingDataError,
    ProtocolShapeError,
    SessionError,
)
from .events import (
    AuthFailed,
    AuthSucceeded,
    CheckEmailPrompt,
    CountdownTick,
    SecondFactorRejected,
    SecondFactorRequired,
)
from .responses import (
    ChallengeRequired,
    ChallengeResolved,
    HandshakeResponse,
    NoChallenge,
    classify_payload_response,
    is_auth_required,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Coroutine

    from walletflow.domain.model import WalletIdentity
    from walletflow.domain.ports.auth import (
        CredentialSessionSource,
        CredentialStore,
        Decryptor,
        PayloadResponse,
    )

    from .events import HandshakeEvent, HandshakeListener

log = getLogger(__name__)


class HandshakeState(StrEnum):
    IDLE = "idle"
    SESSION_RESOLVING = "session_resolving"
    PAYLOAD_FETCHING = "payload_fetching"
    TWO_FACTOR_PENDING = "two_factor_pending"
    DECRYPTING = "decrypting"
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"


FINISHED_STATES = frozenset(
    {HandshakeState.SUCCESS, HandshakeState.FAILED, HandshakeState.CANCELLED}
)

AUTH_STATUS_POLICY: ConvergencePolicy[PayloadResponse] = ConvergencePolicy(
    name="auth-status",
    interval=timedelta(seconds=2),
    max_attempts=60,
    terminal_states=frozenset({False}),
    state_of=is_auth_required,
)


class AuthHandshake:
    """Drive one login attempt from session lookup to a decrypted wallet.

    Every attempt owns its own instance: the cached session id and the
    waiting-for-second-factor flag are private to it. ``release_sessions`` runs once
    when ``verify_password`` returns, whatever the outcome. Exactly one terminal event
    (``AuthSucceeded`` or ``AuthFailed``) reaches the listener per attempt, and none
    at all when the attempt is cancelled.
    """

    def __init__(
        self,
        *,
        sessions: CredentialSessionSource,
        decryptor: Decryptor,
        credentials: CredentialStore,
        listener: HandshakeListener,
        poller: BoundedPoller | None = None,
        auth_status_policy: ConvergencePolicy[PayloadResponse] = AUTH_STATUS_POLICY,
        session_id: str | None = None,
        release_sessions: Callable[[], Awaitable[None]] | None = None,
    ) -> None:
        self._sessions = sessions
        self._release_sessions = release_sessions
        self._decryptor = decryptor
        self._credentials = credentials
        self._listener = listener
        self._poller = poller or BoundedPoller()
        self._auth_status_policy = auth_status_policy

        self._state = HandshakeState.IDLE
        self._session_id = session_id
        self._guid: str | None = None
        self._password: str | None = None
        self._waiting = False
        self._challenge: ChallengeRequired | None = None
        self._token: CancellationToken | None = None
        self._resolution: asyncio.Future[HandshakeResponse] | None = None
        self._attempt: asyncio.Task[None] | None = None
        self._countdown: asyncio.Task[None] | None = None
        self._background: set[asyncio.Task[Any]] = set()

    @property
    def state(self) -> HandshakeState:
        return self._state

    @property
    def session_id(self) -> str | None:
        return self._session_id

    @property
    def waiting_for_second_factor(self) -> bool:
        return self._waiting

    @property
    def challenge(self) -> ChallengeRequired | None:
        return self._challenge

    async def verify_password(self, password: str, guid: str) -> HandshakeState:
        """Run the attempt to completion and return the state it finished in."""

        if self._state is not HandshakeState.IDLE:
            raise HandshakeStateError(f"Handshake already used (state: {self._state})")

        self._guid = guid
        self._password = password
        self._waiting = True
        self._state = HandshakeState.SESSION_RESOLVING
        self._attempt = asyncio.ensure_future(self._run(guid))
        try:
            await asyncio.wait({self._attempt})
        except asyncio.CancelledError:
            self.on_progress_cancelled()
            raise
        finally:
            await self._close_sessions()
        if not self._attempt.cancelled():
            self._attempt.result()
        return self._state

    async def submit_second_factor(self, code: str | None) -> None:
        """Verify a user-entered code against the pending challenge."""

        challenge, token = self._challenge, self._token
        pending = self._state is HandshakeState.TWO_FACTOR_PENDING
        if not pending or challenge is None or token is None:
            raise HandshakeStateError("No second-factor challenge is pending")
        if not challenge.needs_code:
            raise HandshakeStateError("The pending challenge is waiting for email approval")
        if not code or not code.strip():
            self._emit(SecondFactorRejected(reason=FailureReason.TWO_FACTOR_CODE_MISSING))
            return

        session_id, guid = self._session_id, self._guid
        if session_id is None or guid is None:
            raise HandshakeStateError("No session is available for the pending challenge")

        try:
            fragment = await self._sessions.submit_two_factor_code(session_id, guid, code.strip())
        except Exception as exc:  # noqa: BLE001
            log.warning("Second-factor code rejected: %s", exc)
            self._settle(
                token,
                "second-factor",
                error=CredentialError(reason=FailureReason.TWO_FACTOR_INCORRECT),
            )
            return
        self._settle(token, "second-factor", response=challenge.resolve(fragment))

    def on_progress_cancelled(self) -> None:
        """Abort the attempt without notifications or credential side effects."""

        self._waiting = False
        if self._state is HandshakeState.IDLE or self._state in FINISHED_STATES:
            return

        log.info("Login attempt cancelled in state %s", self._state)
        self._state = HandshakeState.CANCELLED
        self._release()
        if self._attempt is not None and not self._attempt.done():
            self._attempt.cancel()

    async def _run(self, guid: str) -> None:
        try:
            response = await self._fetch_payload(guid)
            if isinstance(response, ChallengeRequired):
                response = await self._await_challenge(response)
            identity = await self._complete(response)
        except HandshakeError as exc:
            self._fail(exc)
            return
        self._succeed(identity)

    async def _fetch_payload(self, guid: str) -> HandshakeResponse:
        try:
            if self._session_id is None:
                self._session_id = await self._sessions.get_session_id(guid)
            self._state = HandshakeState.PAYLOAD_FETCHING
            raw = await self._sessions.get_encrypted_payload(guid, self._session_id)
        except Exception as exc:
            log.warning("Session or payload lookup failed: %s", exc)
            raise SessionError("Session or payload lookup failed") from exc
        return classify_payload_response(raw)

    async def _await_challenge(self, challenge: ChallengeRequired) -> HandshakeResponse:
        self._state = HandshakeState.TWO_FACTOR_PENDING
        self._challenge = challenge
        token = self._token = CancellationToken()
        self._resolution = asyncio.get_running_loop().create_future()

        if challenge.email_approval:
            self._emit(CheckEmailPrompt())
            self._countdown = self._spawn(self._watch_countdown(token))
            self._spawn(self._watch_auth_status(token))
        if challenge.auth_type is not None:
            self._emit(SecondFactorRequired(auth_type=challenge.auth_type))

        try:
            return await self._resolution
        finally:
            self._stop_background()

    async def _watch_countdown(self, token: CancellationToken) -> None:
        def on_tick(seconds: int) -> None:
            if self._state is HandshakeState.TWO_FACTOR_PENDING and not token.cancelled:
                self._emit(CountdownTick(seconds_remaining=seconds))

        try:
            outcome = await run_countdown(
                self._sessions.email_confirmation_countdown(), on_tick=on_tick, token=token
            )
        except Exception as exc:  # noqa: BLE001
            log.warning("Email confirmation countdown failed: %s", exc)
            self._settle(
                token, "countdown", error=SessionError("Email confirmation countdown failed")
            )
            return
        if outcome is CountdownOutcome.EXPIRED:
            self._settle(
                token,
                "countdown",
                error=IrrecoverableAuthError(reason=FailureReason.AUTHORIZATION_EXPIRED),
            )

    async def _watch_auth_status(self, token: CancellationToken) -> None:
        guid, session_id = self._guid, self._session_id
        if guid is None or session_id is None:
            return
        outcome = await self._poller.poll(
            self._auth_status_policy.spec(),
            partial(self._sessions.get_encrypted_payload, guid, session_id),
        )
        if isinstance(outcome, Exhausted) or outcome.value is None:
            self._settle(token, "auth-status", error=SessionError("Email approval never arrived"))
            return

        try:
            response = classify_payload_response(outcome.value)
        except ProtocolShapeError as exc:
            self._settle(token, "auth-status", error=exc)
            return

        if isinstance(response, ChallengeRequired) and response.auth_type is not None:
            # Approved by email; the account still wants a code.
            prompted = self._challenge is not None and self._challenge.needs_code
            self._challenge = response
            if self._countdown is not None:
                self._countdown.cancel()
            if not prompted:
                self._emit(SecondFactorRequired(auth_type=response.auth_type))
            return
        self._settle(token, "auth-status", response=response)

    def _settle(
        self,
        token: CancellationToken,
        owner: str,
        *,
        response: HandshakeResponse | None = None,
        error: HandshakeError | None = None,
    ) -> bool:
        resolution = self._resolution
        if resolution is None or resolution.done() or not token.claim(owner):
            log.debug("%s lost the challenge race", owner)
            return False
        self._waiting = False
        if error is not None:
            resolution.set_exception(error)
        else:
            resolution.set_result(response)
        return True

    async def _complete(self, response: HandshakeResponse) -> WalletIdentity:
        if not isinstance(response, NoChallenge | ChallengeResolved):
            raise ProtocolShapeError("Challenge was not resolved before decryption")
        password = self._password
        if password is None:
            raise HandshakeStateError("Password was released before decryption")

        self._state = HandshakeState.DECRYPTING
        try:
            identity = await asyncio.to_thread(self._decryptor.decrypt, response.document, password)
            self._credentials.persist_identity(identity)
        except PairingDataError as exc:
            raise CredentialError(reason=FailureReason.PAIRING_FAILED) from exc
        except InvalidPasswordError as exc:
            raise CredentialError(reason=FailureReason.INVALID_PASSWORD) from exc
        except Exception as exc:
            log.warning("Unexpected failure while opening the wallet: %s", type(exc).__name__)
            raise IrrecoverableAuthError(reason=FailureReason.AUTH_FAILED) from exc
        return identity

    def _succeed(self, identity: WalletIdentity) -> None:
        if self._state in FINISHED_STATES:
            return
        self._release()
        self._state = HandshakeState.SUCCESS
        log.info("Login attempt succeeded")
        self._emit(AuthSucceeded(identity=identity))

    def _fail(self, error: HandshakeError) -> None:
        if self._state in FINISHED_STATES:
            return
        self._release()
        self._state = HandshakeState.FAILED
        if error.reset_credentials:
            self._credentials.clear_credentials()
        log.warning(
            "Login attempt failed: %s (credentials reset: %s)",
            error.reason,
            error.reset_credentials,
        )
        self._emit(AuthFailed(reason=error.reason, credentials_reset=error.reset_credentials))

    def _release(self) -> None:
        self._waiting = False
        self._session_id = None
        self._password = None
        self._challenge = None
        if self._token is not None:
            self._token.cancel()
        self._stop_background()

    async def _close_sessions(self) -> None:
        release, self._release_sessions = self._release_sessions, None
        if release is not None:
            await release()

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task[None]:
        task = asyncio.ensure_future(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    def _stop_background(self) -> None:
        for task in list(self._background):
            task.cancel()
        self._countdown = None

    def _emit(self, event: HandshakeEvent) -> None:
        self._listener(event)


__all__ = ["AUTH_STATUS_POLICY", "FINISHED_STATES", "AuthHandshake", "HandshakeState"]
