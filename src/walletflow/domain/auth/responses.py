"""Tagged variants for encrypted-payload responses.

The payload endpoint answers in three shapes that used to be told apart by
probing for fields at every step. :func:`classify_payload_response` decides the
shape once and every later step matches on the variant.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, cast

from walletflow.domain.model import AuthType

from .errors import ProtocolShapeError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from walletflow.domain.ports.auth import PayloadResponse

AUTH_REQUIRED_MARKER = "authorization_required"
PAYLOAD_FIELD = "payload"
AUTH_TYPE_FIELD = "auth_type"

SECOND_FACTOR_TYPES = frozenset({AuthType.GOOGLE_AUTHENTICATOR, AuthType.SMS})


@dataclass(frozen=True, slots=True)
class NoChallenge:
    """The response already carries the encrypted payload."""

    document: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class ChallengeRequired:
    """Login is blocked on email approval, a second-factor code, or both."""

    body: Mapping[str, Any] = field(repr=False)
    email_approval: bool = False
    auth_type: AuthType | None = None

    @property
    def needs_code(self) -> bool:
        return self.auth_type is not None

    def resolve(self, fragment: str) -> ChallengeResolved:
        """Splice the payload returned by the second-factor check into the body."""

        spliced = dict(self.body)
        spliced[PAYLOAD_FIELD] = fragment
        return ChallengeResolved(body=spliced)


@dataclass(frozen=True, slots=True)
class ChallengeResolved:
    """A challenge whose payload fragment has been merged back into the response."""

    body: Mapping[str, Any] = field(repr=False)

    @property
    def document(self) -> str:
        return json.dumps(self.body)


type HandshakeResponse = NoChallenge | ChallengeRequired | ChallengeResolved


def is_auth_required(response: PayloadResponse) -> bool:
    return AUTH_REQUIRED_MARKER in (response.error_body or "")


def _parse_object(text: str | None) -> dict[str, Any]:
    if not text:
        return {}
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ProtocolShapeError("Payload response is not valid JSON") from exc
    if not isinstance(parsed, dict):
        raise ProtocolShapeError("Payload response is not a JSON object")
    return cast("dict[str, Any]", parsed)


def _parse_error_object(text: str | None) -> dict[str, Any]:
    try:
        return _parse_object(text)
    except ProtocolShapeError:
        # Plain-text error bodies only carry the marker.
        return {}


def _parse_auth_type(raw: object) -> AuthType:
    try:
        return AuthType(int(cast("int | str", raw)))
    except (TypeError, ValueError) as exc:
        raise ProtocolShapeError(f"Unknown auth_type {raw!r}") from exc


def classify_payload_response(response: PayloadResponse) -> HandshakeResponse:
    """Decide which variant a raw payload response is.

    Raises ``ProtocolShapeError`` for shapes the handshake cannot continue from:
    a second-factor type other than authenticator/SMS, or neither a payload nor a
    challenge.
    """

    if is_auth_required(response):
        error_body = _parse_error_object(response.error_body)
        auth_type = None
        if AUTH_TYPE_FIELD in error_body and PAYLOAD_FIELD not in error_body:
            auth_type = _parse_auth_type(error_body[AUTH_TYPE_FIELD])
            if auth_type not in SECOND_FACTOR_TYPES:
                raise ProtocolShapeError(f"Unsupported second factor: {auth_type.name}")
        return ChallengeRequired(body=error_body, email_approval=True, auth_type=auth_type)

    body = _parse_object(response.body)
    if PAYLOAD_FIELD in body:
        return NoChallenge(document=response.body or "")
    if AUTH_TYPE_FIELD in body:
        auth_type = _parse_auth_type(body[AUTH_TYPE_FIELD])
        if auth_type not in SECOND_FACTOR_TYPES:
            raise ProtocolShapeError(f"Unsupported second factor: {auth_type.name}")
        return ChallengeRequired(body=body, auth_type=auth_type)
    raise ProtocolShapeError("Payload response carries neither a payload nor a challenge")


__all__ = [
    "AUTH_REQUIRED_MARKER",
    "ChallengeRequired",
    "ChallengeResolved",
    "HandshakeResponse",
    "NoChallenge",
    "classify_payload_response",
    "is_auth_required",
]
