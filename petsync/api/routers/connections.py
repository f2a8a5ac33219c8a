"""Linked account endpoints."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from ...core import get_session
from ...services.connections import delete_connection, list_connections
from ...services.oauth import parse_role
from ..deps import get_current_user_id

router = APIRouter(prefix="/connections", tags=["connections"])


@router.get("")
def get_connections(
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
) -> Dict[str, Optional[Dict[str, Any]]]:
    """Return the caller's human and pet connections without credentials."""

    return list_connections(session, user_id)


@router.delete("")
def remove_connection(
    role: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
) -> Dict[str, bool]:
    delete_connection(session, user_id, parse_role(role))
    return {"success": True}


__all__ = ["router"]
