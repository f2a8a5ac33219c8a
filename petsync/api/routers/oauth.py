"""Strava account linking endpoints."""

from __future__ import annotations

import logging
from typing import Dict, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse
from sqlmodel import Session

from ...core import Settings, get_session
from ...services.oauth import (
    CallbackOutcome,
    CallbackResult,
    build_authorization_url,
    complete_authorization,
)
from ...services.strava import StravaClient
from ..deps import get_settings, get_strava_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/oauth", tags=["oauth"])


@router.get("/authorize")
def oauth_authorize(
    role: Optional[str] = None,
    userId: Optional[str] = None,
    settings: Settings = Depends(get_settings),
) -> Dict[str, str]:
    """Return the Strava consent URL for linking ``role`` to ``userId``."""

    return {"authUrl": build_authorization_url(settings, role, userId)}


@router.get("/callback")
async def oauth_callback(
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    settings: Settings = Depends(get_settings),
    session: Session = Depends(get_session),
    client: StravaClient = Depends(get_strava_client),
):
    """Finish the OAuth flow and redirect back to the app with a status flag."""

    try:
        result = await complete_authorization(
            settings, session, client, code=code, state=state, error=error
        )
    except Exception:  # noqa: BLE001 - every outcome must still be a redirect
        logger.exception("OAuth callback error")
        result = CallbackResult(CallbackOutcome.SERVER_ERROR)

    return RedirectResponse(result.redirect_url(settings.app_base_url), status_code=302)


__all__ = ["router"]
