"""FastAPI dependencies shared by the routers."""

from __future__ import annotations

import logging
from typing import Optional

from authlib.jose import JsonWebToken
from authlib.jose.errors import JoseError
from fastapi import Depends, Header, Request

from ..core.config import Settings
from ..errors import Unauthorized
from ..services.strava import StravaClient

logger = logging.getLogger(__name__)

# Sessions are issued by the identity provider as HS256 JWTs.
_jwt = JsonWebToken(["HS256"])


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_strava_client(
    request: Request, settings: Settings = Depends(get_settings)
) -> StravaClient:
    return StravaClient(settings, transport=getattr(request.app.state, "strava_transport", None))


def verify_bearer(authorization: Optional[str], secret: str) -> str:
    """Return the ``sub`` of a valid ``Authorization: Bearer <jwt>`` header."""

    if not authorization:
        raise Unauthorized("Missing authorization header")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthorized()

    try:
        claims = _jwt.decode(token.strip(), secret)
        claims.validate()
    except (JoseError, ValueError) as exc:
        logger.info("Rejected bearer credential: %s", type(exc).__name__)
        raise Unauthorized() from exc

    subject = claims.get("sub")
    if not subject:
        raise Unauthorized()
    return str(subject)


def get_current_user_id(
    authorization: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> str:
    return verify_bearer(authorization, settings.auth_jwt_secret)


__all__ = [
    "get_current_user_id",
    "get_settings",
    "get_strava_client",
    "verify_bearer",
]
