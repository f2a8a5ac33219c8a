"""Strava OAuth 2.0 + PKCE authorization flow.

``build_authorization_url`` starts the flow; ``complete_authorization`` runs
the callback leg and reports a :class:`CallbackResult` that the router turns
into a redirect back to the app. Raw token material never leaves this module
except into the database.
"""

from __future__ import annotations

import enum
import hashlib
import logging
import secrets
from dataclasses import dataclass
from typing import Dict, Optional
from urllib.parse import urlencode

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from ..core.config import Settings
from ..core.time import epoch_now
from ..errors import ConfigurationError, InvalidRequest, TokenExchangeFailed
from ..models import ConnectionRole, ConsumedState
from .connections import find_connection_by_athlete, upsert_connection
from .signing import b64url_encode
from .state import AuthState, StateError, decode_state, encode_state
from .strava import AUTHORIZE_URL, StravaClient

logger = logging.getLogger(__name__)

# The human side only ever reads, the pet side only ever writes.
ROLE_SCOPES: Dict[ConnectionRole, str] = {
    ConnectionRole.HUMAN: "read,activity:read,activity:read_all",
    ConnectionRole.PET: "activity:write",
}


def parse_role(raw: Optional[str]) -> ConnectionRole:
    try:
        return ConnectionRole(raw)
    except ValueError as exc:
        raise InvalidRequest("Invalid role") from exc


# ---------------------------------------------------------------------------
# PKCE
# ---------------------------------------------------------------------------


def generate_code_verifier() -> str:
    """Random RFC 7636 verifier (86 URL-safe characters)."""

    return secrets.token_urlsafe(64)


def code_challenge(verifier: str) -> str:
    """S256 challenge: unpadded base64url of SHA-256(verifier)."""

    return b64url_encode(hashlib.sha256(verifier.encode("ascii")).digest())


# ---------------------------------------------------------------------------
# Authorization start
# ---------------------------------------------------------------------------


def build_authorization_url(
    settings: Settings,
    role: Optional[str],
    user_id: Optional[str],
    now: Optional[int] = None,
) -> str:
    if not role or not user_id or role not in ConnectionRole.__members__:
        raise InvalidRequest("Invalid role or userId")
    if not settings.oauth_configured:
        logger.error("STRAVA_CLIENT_ID not configured")
        raise ConfigurationError()

    target = ConnectionRole(role)
    verifier = generate_code_verifier()
    state = encode_state(
        AuthState.issue(user_id=user_id, role=target, code_verifier=verifier, now=now),
        settings.state_secret,
    )
    params = {
        "client_id": settings.strava_client_id,
        "redirect_uri": settings.strava_redirect_uri,
        "response_type": "code",
        "approval_prompt": "auto",
        "scope": ROLE_SCOPES[target],
        "state": state,
        "code_challenge": code_challenge(verifier),
        "code_challenge_method": "S256",
    }
    logger.info("OAuth redirect issued for role %s, user %s", target.value, user_id)
    return f"{AUTHORIZE_URL}?{urlencode(params)}"


# ---------------------------------------------------------------------------
# Callback
# ---------------------------------------------------------------------------


class CallbackOutcome(str, enum.Enum):
    SUCCESS = "success"
    OAUTH_DENIED = "oauth_denied"
    INVALID_REQUEST = "invalid_request"
    INVALID_STATE = "invalid_state"
    SERVER_ERROR = "server_error"
    TOKEN_EXCHANGE_FAILED = "token_exchange_failed"
    DATABASE_ERROR = "database_error"
    ATHLETE_ROLE_CONFLICT = "athlete_role_conflict"


@dataclass(frozen=True)
class CallbackResult:
    outcome: CallbackOutcome
    role: Optional[ConnectionRole] = None
    athlete_id: Optional[int] = None

    def query(self) -> Dict[str, str]:
        """The only place callback outcomes become query parameters."""

        if self.outcome is CallbackOutcome.SUCCESS:
            return {"oauth_success": "true", "role": self.role.value if self.role else ""}
        params = {"error": self.outcome.value}
        if self.outcome is CallbackOutcome.ATHLETE_ROLE_CONFLICT:
            params["athlete_id"] = str(self.athlete_id)
        return params

    def redirect_url(self, base_url: str) -> str:
        separator = "&" if "?" in base_url else "?"
        return f"{base_url}{separator}{urlencode(self.query())}"


def _consume_nonce(session: Session, state: AuthState, now: int) -> bool:
    """Record the state's nonce; False if it was already spent."""

    expired = session.exec(
        select(ConsumedState).where(ConsumedState.expires_at < now)
    ).all()
    for row in expired:
        session.delete(row)
    session.add(ConsumedState(nonce=state.nonce, expires_at=state.exp))
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        return False
    return True


async def complete_authorization(
    settings: Settings,
    session: Session,
    client: StravaClient,
    *,
    code: Optional[str],
    state: Optional[str],
    error: Optional[str] = None,
    now: Optional[int] = None,
) -> CallbackResult:
    """Verify the callback, exchange the code and persist the connection."""

    if error:
        logger.warning("Strava reported OAuth error: %s", error)
        return CallbackResult(CallbackOutcome.OAUTH_DENIED)
    if not code or not state:
        return CallbackResult(CallbackOutcome.INVALID_REQUEST)

    current = epoch_now() if now is None else now
    try:
        payload = decode_state(state, settings.state_secret, now=current)
    except StateError as exc:
        # The caller only ever learns "invalid_state"; which check failed stays here.
        logger.warning("State validation failed: %s", type(exc).__name__)
        return CallbackResult(CallbackOutcome.INVALID_STATE)

    if not settings.token_exchange_configured:
        logger.error("Strava client credentials not configured")
        return CallbackResult(CallbackOutcome.SERVER_ERROR)

    try:
        fresh = _consume_nonce(session, payload, current)
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Recording state nonce failed")
        return CallbackResult(CallbackOutcome.DATABASE_ERROR)
    if not fresh:
        logger.warning("Replayed state for user %s rejected", payload.user_id)
        return CallbackResult(CallbackOutcome.INVALID_STATE)

    try:
        token_data = await client.exchange_code(code, payload.code_verifier)
    except TokenExchangeFailed:
        return CallbackResult(CallbackOutcome.TOKEN_EXCHANGE_FAILED)

    athlete = token_data.get("athlete") or {}
    if (
        athlete.get("id") is None
        or not token_data.get("access_token")
        or not token_data.get("refresh_token")
        or token_data.get("expires_at") is None
    ):
        logger.error("Strava token response missing athlete or tokens")
        return CallbackResult(CallbackOutcome.TOKEN_EXCHANGE_FAILED)
    athlete_id = int(athlete["id"])

    try:
        existing = find_connection_by_athlete(session, payload.user_id, athlete_id)
        if existing is not None and existing.role != payload.role:
            logger.info(
                "Athlete %s already connected as %s for user %s",
                athlete_id,
                existing.role.value,
                payload.user_id,
            )
            return CallbackResult(
                CallbackOutcome.ATHLETE_ROLE_CONFLICT, athlete_id=athlete_id
            )

        upsert_connection(
            session,
            user_id=payload.user_id,
            role=payload.role,
            athlete=athlete,
            token_data=token_data,
        )
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Saving connection failed")
        return CallbackResult(CallbackOutcome.DATABASE_ERROR)

    logger.info(
        "Connection saved: role=%s athlete=%s user=%s",
        payload.role.value,
        athlete_id,
        payload.user_id,
    )
    return CallbackResult(CallbackOutcome.SUCCESS, role=payload.role)


__all__ = [
    "ROLE_SCOPES",
    "CallbackOutcome",
    "CallbackResult",
    "build_authorization_url",
    "code_challenge",
    "complete_authorization",
    "generate_code_verifier",
    "parse_role",
]
