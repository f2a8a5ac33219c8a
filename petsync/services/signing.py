"""HMAC-SHA256 signing helpers."""

from __future__ import annotations

import base64
import hashlib
import hmac
from typing import Union

BytesLike = Union[str, bytes]


def _to_bytes(value: BytesLike) -> bytes:
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode("utf-8")
    raise TypeError(f"expected str or bytes, got {type(value).__name__}")


def b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def b64url_decode(data: str) -> bytes:
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(f"{data}{padding}".encode("ascii"))


def sign(message: BytesLike, secret: BytesLike) -> str:
    """Return the unpadded base64url HMAC-SHA256 of ``message``."""

    mac = hmac.new(_to_bytes(secret), _to_bytes(message), hashlib.sha256).digest()
    return b64url_encode(mac)


def constant_time_equal(a: BytesLike, b: BytesLike) -> bool:
    """Compare without short-circuiting on the first differing byte."""

    try:
        return hmac.compare_digest(_to_bytes(a), _to_bytes(b))
    except (TypeError, UnicodeEncodeError):
        return False


def verify(message: BytesLike, secret: BytesLike, signature: BytesLike) -> bool:
    return constant_time_equal(sign(message, secret), signature)


__all__ = ["b64url_decode", "b64url_encode", "constant_time_equal", "sign", "verify"]
