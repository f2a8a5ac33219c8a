"""Liveness endpoint."""

from __future__ import annotations

from typing import Dict

from fastapi import APIRouter, Depends

from ...core import Settings
from ..deps import get_settings

router = APIRouter(tags=["system"])


@router.get("/health")
def health(settings: Settings = Depends(get_settings)) -> Dict[str, bool]:
    """Readiness probe; also reports whether Strava linking can start."""

    return {"ok": True, "stravaConfigured": settings.token_exchange_configured}


__all__ = ["router"]
