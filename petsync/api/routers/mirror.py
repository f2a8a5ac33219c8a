"""Activity mirroring endpoints."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from ...core import Settings, get_session
from ...errors import InvalidActivityUrl
from ...services.mirroring import list_mirrors, mirror_activity, refresh_mirror_status
from ...services.strava import StravaClient
from ..deps import get_current_user_id, get_settings, get_strava_client

router = APIRouter(tags=["mirror"])


async def _read_activity_url(request: Request) -> Optional[str]:
    """Pull ``activityUrl`` from the JSON body; the caller is already authenticated."""

    raw = await request.body()
    if not raw.strip():
        return None
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        raise InvalidActivityUrl() from exc
    if not isinstance(payload, dict):
        raise InvalidActivityUrl()
    activity_url = payload.get("activityUrl")
    if activity_url is not None and not isinstance(activity_url, str):
        raise InvalidActivityUrl()
    return activity_url


@router.post("/mirror-activity")
async def create_mirror(
    request: Request,
    user_id: str = Depends(get_current_user_id),
    settings: Settings = Depends(get_settings),
    session: Session = Depends(get_session),
    client: StravaClient = Depends(get_strava_client),
) -> Dict[str, Any]:
    """Mirror the referenced human activity onto the pet account."""

    return await mirror_activity(
        settings,
        session,
        client,
        user_id=user_id,
        activity_url=await _read_activity_url(request),
    )


@router.get("/mirrors")
def get_mirrors(
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
) -> Dict[str, List[Dict[str, Any]]]:
    return {"mirrors": list_mirrors(session, user_id)}


@router.post("/mirrors/{mirror_id}/refresh")
async def refresh_mirror(
    mirror_id: int,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
    client: StravaClient = Depends(get_strava_client),
) -> Dict[str, Any]:
    """Poll Strava for the upload result of a pending mirror."""

    mirror = await refresh_mirror_status(
        session, client, user_id=user_id, mirror_id=mirror_id
    )
    return {"mirror": mirror}


__all__ = ["router"]
