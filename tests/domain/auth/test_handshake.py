from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING

import pytest

from tests.helpers.sources import RecordingSleep, run
from tests.helpers.wallet import (
    GUID,
    IDENTITY,
    SESSION,
    FakeCredentialStore,
    FakeDecryptor,
    FakeSessionSource,
    RecordingListener,
    auth_required,
    challenge_body,
    payload_body,
    wait_until,
)
from walletflow.domain.auth import (
    AuthFailed,
    AuthHandshake,
    AuthSucceeded,
    CheckEmailPrompt,
    CountdownTick,
    FailureReason,
    HandshakeState,
    HandshakeStateError,
    InvalidPasswordError,
    PairingDataError,
    SecondFactorRejected,
    SecondFactorRequired,
)
from walletflow.domain.model import AuthType
from walletflow.domain.polling import BoundedPoller

if TYPE_CHECKING:
    from walletflow.domain.ports.auth import PayloadResponse

PASSWORD = "correct horse"


def _handshake(
    sessions: FakeSessionSource,
    *,
    decryptor: FakeDecryptor | None = None,
    store: FakeCredentialStore | None = None,
    listener: RecordingListener | None = None,
    session_id: str | None = None,
) -> AuthHandshake:
    return AuthHandshake(
        sessions=sessions,
        decryptor=decryptor or FakeDecryptor(),
        credentials=store or FakeCredentialStore(),
        listener=listener or RecordingListener(),
        poller=BoundedPoller(sleep=RecordingSleep()),
        session_id=session_id,
    )


def _needs_code(handshake: AuthHandshake) -> bool:
    challenge = handshake.challenge
    return (
        handshake.state is HandshakeState.TWO_FACTOR_PENDING
        and challenge is not None
        and challenge.needs_code
    )


def test_payload_without_challenge_succeeds() -> None:
    sessions = FakeSessionSource(payloads=[payload_body()])
    decryptor = FakeDecryptor()
    store = FakeCredentialStore()
    listener = RecordingListener()
    handshake = _handshake(sessions, decryptor=decryptor, store=store, listener=listener)

    state = run(handshake.verify_password(PASSWORD, GUID))

    assert state is HandshakeState.SUCCESS
    assert listener.events == [AuthSucceeded(identity=IDENTITY)]
    assert store.persisted == [IDENTITY]
    assert store.cleared == 0
    assert decryptor.calls == [(json.dumps({"payload": "encrypted"}), PASSWORD)]
    assert sessions.payload_calls == [(GUID, SESSION)]
    assert handshake.session_id is None
    assert not handshake.waiting_for_second_factor


def test_seeded_session_is_reused() -> None:
    sessions = FakeSessionSource(payloads=[payload_body()])
    handshake = _handshake(sessions, session_id="cached-session")

    run(handshake.verify_password(PASSWORD, GUID))

    assert sessions.session_calls == []
    assert sessions.payload_calls == [(GUID, "cached-session")]


def test_email_approval_prompts_once_then_succeeds() -> None:
    sessions = FakeSessionSource(payloads=[auth_required(), auth_required(), payload_body()])
    listener = RecordingListener()
    store = FakeCredentialStore()
    handshake = _handshake(sessions, listener=listener, store=store)

    state = run(handshake.verify_password(PASSWORD, GUID))

    assert state is HandshakeState.SUCCESS
    assert listener.events == [CheckEmailPrompt(), AuthSucceeded(identity=IDENTITY)]
    assert store.persisted == [IDENTITY]
    assert len(sessions.payload_calls) == 3


def test_countdown_expiry_resets_credentials() -> None:
    sessions = FakeSessionSource(payloads=[auth_required()], countdown=[3, 2, 1, 0])
    listener = RecordingListener()
    store = FakeCredentialStore()
    handshake = _handshake(sessions, listener=listener, store=store)

    state = run(handshake.verify_password(PASSWORD, GUID))

    assert state is HandshakeState.FAILED
    assert listener.events == [
        CheckEmailPrompt(),
        CountdownTick(seconds_remaining=3),
        CountdownTick(seconds_remaining=2),
        CountdownTick(seconds_remaining=1),
        AuthFailed(reason=FailureReason.AUTHORIZATION_EXPIRED, credentials_reset=True),
    ]
    assert store.cleared == 1
    assert store.persisted == []


def test_second_factor_code_is_spliced_into_payload() -> None:
    sessions = FakeSessionSource(
        payloads=[challenge_body(int(AuthType.GOOGLE_AUTHENTICATOR), guid=GUID)],
        code_result="fragment",
    )
    decryptor = FakeDecryptor()
    listener = RecordingListener()
    handshake = _handshake(sessions, decryptor=decryptor, listener=listener)

    async def scenario() -> HandshakeState:
        attempt = asyncio.ensure_future(handshake.verify_password(PASSWORD, GUID))
        await wait_until(lambda: _needs_code(handshake))
        assert handshake.waiting_for_second_factor
        await handshake.submit_second_factor(" 123456 ")
        return await attempt

    state = run(scenario())

    assert state is HandshakeState.SUCCESS
    assert listener.events == [
        SecondFactorRequired(auth_type=AuthType.GOOGLE_AUTHENTICATOR),
        AuthSucceeded(identity=IDENTITY),
    ]
    assert sessions.code_calls == [(SESSION, GUID, "123456")]
    document, password = decryptor.calls[0]
    assert password == PASSWORD
    assert json.loads(document) == {"auth_type": 4, "guid": GUID, "payload": "fragment"}


def test_incorrect_code_fails_without_reset() -> None:
    sessions = FakeSessionSource(
        payloads=[challenge_body(int(AuthType.SMS))], code_result=RuntimeError("403")
    )
    listener = RecordingListener()
    store = FakeCredentialStore()
    handshake = _handshake(sessions, listener=listener, store=store)

    async def scenario() -> HandshakeState:
        attempt = asyncio.ensure_future(handshake.verify_password(PASSWORD, GUID))
        await wait_until(lambda: _needs_code(handshake))
        await handshake.submit_second_factor("000000")
        return await attempt

    state = run(scenario())

    assert state is HandshakeState.FAILED
    assert listener.events[-1] == AuthFailed(
        reason=FailureReason.TWO_FACTOR_INCORRECT, credentials_reset=False
    )
    assert store.cleared == 0


def test_empty_code_is_rejected_without_ending_the_attempt() -> None:
    sessions = FakeSessionSource(payloads=[challenge_body(int(AuthType.SMS))])
    listener = RecordingListener()
    handshake = _handshake(sessions, listener=listener)

    async def scenario() -> HandshakeState:
        attempt = asyncio.ensure_future(handshake.verify_password(PASSWORD, GUID))
        await wait_until(lambda: _needs_code(handshake))
        await handshake.submit_second_factor("   ")
        assert handshake.state is HandshakeState.TWO_FACTOR_PENDING
        assert sessions.code_calls == []
        await handshake.submit_second_factor("654321")
        return await attempt

    state = run(scenario())

    assert state is HandshakeState.SUCCESS
    assert listener.events == [
        SecondFactorRequired(auth_type=AuthType.SMS),
        SecondFactorRejected(reason=FailureReason.TWO_FACTOR_CODE_MISSING),
        AuthSucceeded(identity=IDENTITY),
    ]


def test_email_approval_followed_by_second_factor() -> None:
    sessions = FakeSessionSource(
        payloads=[auth_required(), challenge_body(int(AuthType.SMS))], code_result="fragment"
    )
    listener = RecordingListener()
    handshake = _handshake(sessions, listener=listener)

    async def scenario() -> HandshakeState:
        attempt = asyncio.ensure_future(handshake.verify_password(PASSWORD, GUID))
        await wait_until(lambda: _needs_code(handshake))
        await handshake.submit_second_factor("123456")
        return await attempt

    state = run(scenario())

    assert state is HandshakeState.SUCCESS
    assert listener.events == [
        CheckEmailPrompt(),
        SecondFactorRequired(auth_type=AuthType.SMS),
        AuthSucceeded(identity=IDENTITY),
    ]


def test_code_submission_wins_race_against_email_poll() -> None:
    sessions = FakeSessionSource(
        payloads=[auth_required(auth_type=int(AuthType.SMS))], code_result="fragment"
    )
    listener = RecordingListener()
    handshake = _handshake(sessions, listener=listener)

    async def scenario() -> HandshakeState:
        attempt = asyncio.ensure_future(handshake.verify_password(PASSWORD, GUID))
        await wait_until(lambda: _needs_code(handshake))
        await handshake.submit_second_factor("123456")
        state = await attempt
        polls_at_finish = len(sessions.payload_calls)
        await asyncio.sleep(0)
        assert len(sessions.payload_calls) == polls_at_finish
        return state

    state = run(scenario())

    assert state is HandshakeState.SUCCESS
    assert listener.of_type(CheckEmailPrompt) == [CheckEmailPrompt()]
    assert listener.of_type(AuthSucceeded) == [AuthSucceeded(identity=IDENTITY)]
    assert listener.of_type(AuthFailed) == []


def test_session_failure_clears_session_without_reset() -> None:
    sessions = FakeSessionSource(payloads=[], session=RuntimeError("offline"))
    listener = RecordingListener()
    store = FakeCredentialStore()
    handshake = _handshake(sessions, listener=listener, store=store)

    state = run(handshake.verify_password(PASSWORD, GUID))

    assert state is HandshakeState.FAILED
    assert listener.events == [AuthFailed(reason=FailureReason.AUTH_FAILED)]
    assert store.cleared == 0
    assert handshake.session_id is None


def test_payload_failure_clears_cached_session() -> None:
    sessions = FakeSessionSource(payloads=[RuntimeError("500")])
    handshake = _handshake(sessions, session_id="cached-session")

    state = run(handshake.verify_password(PASSWORD, GUID))

    assert state is HandshakeState.FAILED
    assert handshake.session_id is None


def test_unsupported_second_factor_fails_without_reset() -> None:
    sessions = FakeSessionSource(payloads=[challenge_body(int(AuthType.YUBIKEY))])
    listener = RecordingListener()
    store = FakeCredentialStore()
    handshake = _handshake(sessions, listener=listener, store=store)

    state = run(handshake.verify_password(PASSWORD, GUID))

    assert state is HandshakeState.FAILED
    assert listener.events == [AuthFailed(reason=FailureReason.UNSUPPORTED_RESPONSE)]
    assert store.cleared == 0


@pytest.mark.parametrize(
    ("error", "reason", "reset"),
    [
        (PairingDataError("corrupt"), FailureReason.PAIRING_FAILED, False),
        (InvalidPasswordError("wrong"), FailureReason.INVALID_PASSWORD, False),
        (RuntimeError("unexpected"), FailureReason.AUTH_FAILED, True),
    ],
)
def test_decryption_errors_are_classified(
    error: Exception, reason: FailureReason, reset: bool
) -> None:
    sessions = FakeSessionSource(payloads=[payload_body()])
    listener = RecordingListener()
    store = FakeCredentialStore()
    handshake = _handshake(
        sessions, decryptor=FakeDecryptor(error=error), listener=listener, store=store
    )

    state = run(handshake.verify_password(PASSWORD, GUID))

    assert state is HandshakeState.FAILED
    assert listener.events == [AuthFailed(reason=reason, credentials_reset=reset)]
    assert store.cleared == (1 if reset else 0)
    assert store.persisted == []


def test_cancel_during_email_wait_is_silent_and_idempotent() -> None:
    sessions = FakeSessionSource(payloads=[auth_required()], countdown=[5])
    listener = RecordingListener()
    store = FakeCredentialStore()
    handshake = _handshake(sessions, listener=listener, store=store)

    async def scenario() -> HandshakeState:
        attempt = asyncio.ensure_future(handshake.verify_password(PASSWORD, GUID))
        await wait_until(lambda: CountdownTick(seconds_remaining=5) in listener.events)
        handshake.on_progress_cancelled()
        handshake.on_progress_cancelled()
        state = await attempt
        await asyncio.sleep(0)
        return state

    state = run(scenario())

    assert state is HandshakeState.CANCELLED
    assert listener.events == [CheckEmailPrompt(), CountdownTick(seconds_remaining=5)]
    assert store.cleared == 0
    assert store.persisted == []
    assert handshake.session_id is None
    assert not handshake.waiting_for_second_factor


def test_cancel_before_start_and_after_finish_is_a_no_op() -> None:
    sessions = FakeSessionSource(payloads=[payload_body()])
    listener = RecordingListener()
    handshake = _handshake(sessions, listener=listener)

    handshake.on_progress_cancelled()
    assert handshake.state is HandshakeState.IDLE

    run(handshake.verify_password(PASSWORD, GUID))
    handshake.on_progress_cancelled()

    assert handshake.state is HandshakeState.SUCCESS
    assert listener.events == [AuthSucceeded(identity=IDENTITY)]


def test_handshake_is_single_use() -> None:
    handshake = _handshake(FakeSessionSource(payloads=[payload_body()]))
    run(handshake.verify_password(PASSWORD, GUID))

    with pytest.raises(HandshakeStateError):
        run(handshake.verify_password(PASSWORD, GUID))


def test_submitting_without_pending_challenge_is_refused() -> None:
    handshake = _handshake(FakeSessionSource(payloads=[]))

    with pytest.raises(HandshakeStateError):
        run(handshake.submit_second_factor("123456"))


def test_submitting_code_during_email_only_wait_is_refused() -> None:
    sessions = FakeSessionSource(payloads=[auth_required()])
    handshake = _handshake(sessions)

    async def scenario() -> None:
        attempt = asyncio.ensure_future(handshake.verify_password(PASSWORD, GUID))
        await wait_until(lambda: handshake.state is HandshakeState.TWO_FACTOR_PENDING)
        try:
            with pytest.raises(HandshakeStateError):
                await handshake.submit_second_factor("123456")
        finally:
            handshake.on_progress_cancelled()
            await attempt

    run(scenario())


def test_code_prompt_is_not_repeated_when_email_approval_arrives() -> None:
    sessions = FakeSessionSource(
        payloads=[auth_required(auth_type=int(AuthType.SMS)), challenge_body(int(AuthType.SMS))],
        code_result="fragment",
    )
    listener = RecordingListener()
    handshake = _handshake(sessions, listener=listener)

    def approved_by_email() -> bool:
        challenge = handshake.challenge
        return challenge is not None and not challenge.email_approval

    async def scenario() -> HandshakeState:
        attempt = asyncio.ensure_future(handshake.verify_password(PASSWORD, GUID))
        await wait_until(approved_by_email)
        await handshake.submit_second_factor("123456")
        return await attempt

    state = run(scenario())

    assert state is HandshakeState.SUCCESS
    assert listener.events == [
        CheckEmailPrompt(),
        SecondFactorRequired(auth_type=AuthType.SMS),
        AuthSucceeded(identity=IDENTITY),
    ]


@pytest.mark.parametrize("payloads", [[payload_body()], [RuntimeError("offline")]])
def test_sessions_are_released_once_when_the_attempt_finishes(
    payloads: list[PayloadResponse | Exception],
) -> None:
    released: list[HandshakeState] = []

    async def release() -> None:
        released.append(handshake.state)

    handshake = AuthHandshake(
        sessions=FakeSessionSource(payloads=payloads),
        decryptor=FakeDecryptor(),
        credentials=FakeCredentialStore(),
        listener=RecordingListener(),
        poller=BoundedPoller(sleep=RecordingSleep()),
        release_sessions=release,
    )

    state = run(handshake.verify_password(PASSWORD, GUID))
    handshake.on_progress_cancelled()

    assert released == [state]


def test_sessions_are_released_when_the_attempt_is_cancelled() -> None:
    released: list[bool] = []

    async def release() -> None:
        released.append(True)

    sessions = FakeSessionSource(payloads=[auth_required()])
    handshake = AuthHandshake(
        sessions=sessions,
        decryptor=FakeDecryptor(),
        credentials=FakeCredentialStore(),
        listener=RecordingListener(),
        poller=BoundedPoller(sleep=RecordingSleep()),
        release_sessions=release,
    )

    async def scenario() -> HandshakeState:
        attempt = asyncio.ensure_future(handshake.verify_password(PASSWORD, GUID))
        await wait_until(lambda: handshake.state is HandshakeState.TWO_FACTOR_PENDING)
        handshake.on_progress_cancelled()
        return await attempt

    assert run(scenario()) is HandshakeState.CANCELLED
    assert released == [True]
