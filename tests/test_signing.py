from petsync.services.signing import (
    b64url_decode,
    b64url_encode,
    constant_time_equal,
    sign,
    verify,
)


def test_sign_is_deterministic_and_keyed():
    assert sign("payload", "secret") == sign("payload", "secret")
    assert sign("payload", "secret") != sign("payload", "other-secret")
    assert sign("payload", "secret") != sign("payload!", "secret")


def test_signature_is_unpadded_base64url():
    signature = sign("payload", "secret")
    assert "=" not in signature
    assert "." not in signature
    assert len(b64url_decode(signature)) == 32


def test_b64url_roundtrip_without_padding():
    encoded = b64url_encode(b"\xfb\xff\x00a")
    assert "=" not in encoded
    assert "+" not in encoded and "/" not in encoded
    assert b64url_decode(encoded) == b"\xfb\xff\x00a"


def test_verify_accepts_only_matching_signature():
    signature = sign("payload", "secret")
    assert verify("payload", "secret", signature)
    assert not verify("payload", "secret", signature[:-1] + ("A" if signature[-1] != "A" else "B"))
    assert not verify("tampered", "secret", signature)


def test_constant_time_equal_handles_odd_input():
    assert constant_time_equal("abc", "abc")
    assert constant_time_equal(b"abc", "abc")
    assert not constant_time_equal("abc", "abcd")
    assert not constant_time_equal("abc", None)
