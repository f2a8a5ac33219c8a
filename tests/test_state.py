import json

import pytest

from petsync.models import ConnectionRole
from petsync.services.signing import b64url_decode, b64url_encode, sign
from petsync.services.state import (
    STATE_TTL_SECONDS,
    AuthState,
    InvalidSignature,
    MalformedState,
    StateExpired,
    decode_state,
    encode_state,
)

SECRET = "state-secret"
NOW = 1_700_000_000


def _issue(**overrides):
    fields = dict(user_id="user-1", role=ConnectionRole.PET, code_verifier="v" * 43, now=NOW)
    fields.update(overrides)
    return AuthState.issue(**fields)


def _wrap(body: str, signature: str) -> str:
    return b64url_encode(f"{body}.{signature}".encode("utf-8"))


def test_roundtrip_preserves_payload():
    payload = _issue()
    token = encode_state(payload, SECRET)

    decoded = decode_state(token, SECRET, now=NOW + 1)

    assert decoded == payload
    assert decoded.exp == NOW + STATE_TTL_SECONDS
    assert decoded.role is ConnectionRole.PET


def test_token_is_query_safe():
    token = encode_state(_issue(), SECRET)
    assert "=" not in token
    assert all(ch.isalnum() or ch in "-_" for ch in token)


def test_each_issue_gets_a_fresh_nonce():
    assert _issue().nonce != _issue().nonce


def test_modified_payload_fails_signature():
    token = encode_state(_issue(), SECRET)
    body, _, signature = b64url_decode(token).decode("utf-8").rpartition(".")
    forged = body.replace('"user-1"', '"user-2"')

    with pytest.raises(InvalidSignature):
        decode_state(_wrap(forged, signature), SECRET, now=NOW)


def test_wrong_secret_fails_signature():
    token = encode_state(_issue(), SECRET)
    with pytest.raises(InvalidSignature):
        decode_state(token, "another-secret", now=NOW)


def test_expired_state_is_rejected():
    token = encode_state(_issue(), SECRET)

    assert decode_state(token, SECRET, now=NOW + STATE_TTL_SECONDS).user_id == "user-1"
    with pytest.raises(StateExpired):
        decode_state(token, SECRET, now=NOW + STATE_TTL_SECONDS + 1)


@pytest.mark.parametrize(
    "token",
    [
        b64url_encode(b"no delimiter here"),
        b64url_encode(b'{"v":1}.'),
        b64url_encode(b"\xff\xfe.abc"),
        "été",
    ],
)
def test_malformed_tokens(token):
    with pytest.raises(MalformedState):
        decode_state(token, SECRET, now=NOW)


def test_signed_garbage_is_malformed_not_trusted():
    body = "not json at all"
    with pytest.raises(MalformedState):
        decode_state(_wrap(body, sign(body, SECRET)), SECRET, now=NOW)


def test_unknown_version_is_malformed():
    data = _issue().to_dict()
    data["v"] = 2
    body = json.dumps(data, sort_keys=True, separators=(",", ":"))
    with pytest.raises(MalformedState):
        decode_state(_wrap(body, sign(body, SECRET)), SECRET, now=NOW)


def test_unknown_role_is_malformed():
    data = _issue().to_dict()
    data["role"] = "CAT"
    body = json.dumps(data, sort_keys=True, separators=(",", ":"))
    with pytest.raises(MalformedState):
        decode_state(_wrap(body, sign(body, SECRET)), SECRET, now=NOW)


def test_modified_signature_fails_signature():
    token = encode_state(_issue(), SECRET)
    body, _, signature = b64url_decode(token).decode("utf-8").rpartition(".")
    flipped = ("B" if signature[0] == "A" else "A") + signature[1:]

    with pytest.raises(InvalidSignature):
        decode_state(_wrap(body, flipped), SECRET, now=NOW)
