"""Signed, expiring OAuth ``state`` tokens.

The state round-trips through Strava's redirect and carries everything the
callback needs (user, role, PKCE verifier), so nothing is stored server-side
between the two legs of the flow.

Wire format::

    base64url( json(payload) + "." + base64url(hmac_sha256(json(payload))) )

Both base64url layers are unpadded. The signature alphabet has no ".", so the
last dot always separates payload from signature.
"""

from __future__ import annotations

import binascii
import json
import secrets
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..core.time import epoch_now
from ..models import ConnectionRole
from .signing import b64url_decode, b64url_encode, constant_time_equal, sign

STATE_VERSION = 1
STATE_TTL_SECONDS = 10 * 60
_DELIMITER = "."


class StateError(Exception):
    """Base class for state token failures."""


class MalformedState(StateError):
    pass


class InvalidSignature(StateError):
    pass


class StateExpired(StateError):
    pass


@dataclass(frozen=True)
class AuthState:
    user_id: str
    role: ConnectionRole
    code_verifier: str
    nonce: str
    exp: int
    v: int = STATE_VERSION

    @classmethod
    def issue(
        cls,
        user_id: str,
        role: ConnectionRole,
        code_verifier: str,
        now: Optional[int] = None,
        ttl_seconds: int = STATE_TTL_SECONDS,
    ) -> "AuthState":
        issued_at = epoch_now() if now is None else now
        return cls(
            user_id=user_id,
            role=role,
            code_verifier=code_verifier,
            nonce=secrets.token_urlsafe(16),
            exp=issued_at + ttl_seconds,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "v": self.v,
            "userId": self.user_id,
            "role": self.role.value,
            "codeVerifier": self.code_verifier,
            "nonce": self.nonce,
            "exp": self.exp,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "AuthState":
        if not isinstance(data, dict):
            raise MalformedState("state payload is not an object")
        if data.get("v") != STATE_VERSION:
            raise MalformedState(f"unsupported state version: {data.get('v')!r}")

        user_id = data.get("userId")
        verifier = data.get("codeVerifier")
        nonce = data.get("nonce")
        exp = data.get("exp")
        for name, value in (("userId", user_id), ("codeVerifier", verifier), ("nonce", nonce)):
            if not isinstance(value, str) or not value:
                raise MalformedState(f"state field {name} missing")
        if not isinstance(exp, int) or isinstance(exp, bool):
            raise MalformedState("state field exp missing")
        try:
            role = ConnectionRole(data.get("role"))
        except ValueError as exc:
            raise MalformedState("state field role invalid") from exc

        return cls(user_id=user_id, role=role, code_verifier=verifier, nonce=nonce, exp=exp)


def _canonical_json(payload: AuthState) -> str:
    return json.dumps(payload.to_dict(), sort_keys=True, separators=(",", ":"))


def encode_state(payload: AuthState, secret: str) -> str:
    """Serialize, sign and wrap ``payload`` for use as a query parameter."""

    body = _canonical_json(payload)
    signature = sign(body, secret)
    return b64url_encode(f"{body}{_DELIMITER}{signature}".encode("utf-8"))


def decode_state(token: str, secret: str, now: Optional[int] = None) -> AuthState:
    """Unwrap and verify a state token produced by :func:`encode_state`.

    Raises ``MalformedState``, ``InvalidSignature`` or ``StateExpired``.
    """

    try:
        raw = b64url_decode(token).decode("utf-8")
    except (binascii.Error, ValueError) as exc:
        raise MalformedState("state is not base64url text") from exc

    body, delimiter, signature = raw.rpartition(_DELIMITER)
    if not delimiter or not body or not signature:
        raise MalformedState("state is missing its signature")

    if not constant_time_equal(sign(body, secret), signature):
        raise InvalidSignature("state signature mismatch")

    try:
        data = json.loads(body)
    except ValueError as exc:
        raise MalformedState("state payload is not JSON") from exc
    payload = AuthState.from_dict(data)

    current = epoch_now() if now is None else now
    if current > payload.exp:
        raise StateExpired("state expired")
    return payload


__all__ = [
    "STATE_TTL_SECONDS",
    "STATE_VERSION",
    "AuthState",
    "InvalidSignature",
    "MalformedState",
    "StateError",
    "StateExpired",
    "decode_state",
    "encode_state",
]
