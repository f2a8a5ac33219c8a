"""Access-token freshness for stored connections."""

from __future__ import annotations

import logging
from typing import Optional

from sqlmodel import Session

from ..core.time import epoch_now
from ..errors import TokenRefreshFailed
from ..models import Connection
from .strava import StravaClient

logger = logging.getLogger(__name__)

# Tokens expiring within this window are refreshed before use.
REFRESH_BUFFER_SECONDS = 5 * 60


async def ensure_fresh_access_token(
    connection: Connection,
    session: Session,
    client: StravaClient,
    now: Optional[int] = None,
) -> str:
    """Return a usable access token for ``connection``, refreshing if needed."""

    current = epoch_now() if now is None else now
    if connection.expires_at > current + REFRESH_BUFFER_SECONDS:
        return connection.access_token

    refreshed = await client.refresh_token(connection.refresh_token)
    try:
        access_token = refreshed["access_token"]
        refresh_token = refreshed["refresh_token"]
        expires_at = int(refreshed["expires_at"])
    except (KeyError, TypeError, ValueError) as exc:
        logger.error("Strava refresh response for connection %s was incomplete", connection.id)
        raise TokenRefreshFailed() from exc

    stored = session.get(Connection, connection.id)
    if stored is None:
        raise TokenRefreshFailed("Connection no longer exists")
    stored.access_token = access_token
    stored.refresh_token = refresh_token
    stored.expires_at = expires_at
    session.add(stored)
    session.commit()
    session.refresh(stored)

    logger.info("Refreshed %s token for connection %s", stored.role.value, stored.id)
    return access_token


__all__ = ["REFRESH_BUFFER_SECONDS", "ensure_fresh_access_token"]
