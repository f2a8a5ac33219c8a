"""Copy one human activity's GPS track onto the pet account."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..core.config import Settings
from ..errors import (
    AlreadyMirrored,
    InvalidActivityUrl,
    MirrorNotFound,
    MissingConnection,
    OwnershipMismatch,
)
from ..models import ConnectionRole, Mirror, MirrorStatus
from .connections import get_connection
from .gpx import activity_to_gpx
from .strava import ACTIVITY_WEB_URL, StravaClient
from .tokens import ensure_fresh_access_token

logger = logging.getLogger(__name__)

_ACTIVITY_URL = re.compile(r"/activities/(\d+)")


def parse_activity_id(activity_url: Optional[str]) -> int:
    """Extract the numeric id from ``https://www.strava.com/activities/<id>``."""

    if not isinstance(activity_url, str):
        raise InvalidActivityUrl()
    match = _ACTIVITY_URL.search(activity_url)
    if not match:
        raise InvalidActivityUrl()
    return int(match.group(1))


def mirror_to_dict(mirror: Optional[Mirror]) -> Optional[Dict[str, Any]]:
    if mirror is None:
        return None
    return {
        "id": mirror.id,
        "source_activity_id": mirror.source_activity_id,
        "upload_id": mirror.upload_id,
        "dest_activity_id": mirror.dest_activity_id,
        "status": mirror.status.value,
        "error_message": mirror.error_message,
        "created_at": mirror.created_at.isoformat() if mirror.created_at else None,
        "updated_at": mirror.updated_at.isoformat() if mirror.updated_at else None,
    }


def find_mirror(session: Session, user_id: str, source_activity_id: int) -> Optional[Mirror]:
    return session.exec(
        select(Mirror).where(
            Mirror.user_id == user_id,
            Mirror.source_activity_id == source_activity_id,
        )
    ).first()


def list_mirrors(session: Session, user_id: str) -> List[Dict[str, Any]]:
    mirrors = session.exec(
        select(Mirror)
        .where(Mirror.user_id == user_id)
        .order_by(Mirror.created_at.desc(), Mirror.id.desc())
    ).all()
    return [mirror_to_dict(mirror) for mirror in mirrors]


def _record_mirror(
    session: Session, user_id: str, source_activity_id: int, upload_id: Optional[int]
) -> Optional[Mirror]:
    """Insert the PENDING record; the upload already happened, so never raise."""

    mirror = Mirror(
        user_id=user_id,
        source_activity_id=source_activity_id,
        upload_id=upload_id,
        status=MirrorStatus.PENDING,
    )
    try:
        session.add(mirror)
        session.commit()
        session.refresh(mirror)
    except SQLAlchemyError:
        session.rollback()
        logger.exception(
            "Failed to create mirror record for activity %s", source_activity_id
        )
        return None
    return mirror


async def mirror_activity(
    settings: Settings,
    session: Session,
    client: StravaClient,
    *,
    user_id: str,
    activity_url: Optional[str],
) -> Dict[str, Any]:
    """Run the mirror pipeline and return the API response body.

    Each failed precondition raises its own error from :mod:`petsync.errors`.
    """

    activity_id = parse_activity_id(activity_url)

    existing = find_mirror(session, user_id, activity_id)
    if existing is not None:
        raise AlreadyMirrored(mirror=mirror_to_dict(existing))

    human = get_connection(session, user_id, ConnectionRole.HUMAN)
    pet = get_connection(session, user_id, ConnectionRole.PET)
    if human is None or pet is None:
        raise MissingConnection()

    human_token = await ensure_fresh_access_token(human, session, client)
    pet_token = await ensure_fresh_access_token(pet, session, client)

    activity = await client.get_activity(human_token, activity_id)
    owner_id = (activity.get("athlete") or {}).get("id")
    if owner_id is None or int(owner_id) != human.athlete_id:
        logger.warning(
            "Activity %s belongs to athlete %s, not %s",
            activity_id,
            owner_id,
            human.athlete_id,
        )
        raise OwnershipMismatch()

    streams = await client.get_streams(human_token, activity_id)
    source_name = activity.get("name") or f"Activity {activity_id}"
    title = f"{settings.title_prefix}{source_name}"
    gpx_xml = activity_to_gpx(activity, streams, name=title, creator=settings.app_name)

    upload = await client.upload_gpx(pet_token, gpx_xml, title)
    upload_id = upload.get("id")
    logger.info("Uploaded activity %s to pet account as upload %s", activity_id, upload_id)

    mirror = _record_mirror(
        session, user_id, activity_id, int(upload_id) if upload_id is not None else None
    )

    return {
        "success": True,
        "uploadId": upload_id,
        "mirror": mirror_to_dict(mirror),
        "sourceActivity": {
            "id": activity.get("id", activity_id),
            "name": source_name,
            "url": ACTIVITY_WEB_URL.format(activity_id=activity.get("id", activity_id)),
        },
    }


async def refresh_mirror_status(
    session: Session,
    client: StravaClient,
    *,
    user_id: str,
    mirror_id: int,
) -> Dict[str, Any]:
    """Move a PENDING mirror to DONE or ERROR from Strava's upload status."""

    mirror = session.get(Mirror, mirror_id)
    if mirror is None or mirror.user_id != user_id:
        raise MirrorNotFound()
    if mirror.status != MirrorStatus.PENDING or mirror.upload_id is None:
        return mirror_to_dict(mirror)

    pet = get_connection(session, user_id, ConnectionRole.PET)
    if pet is None:
        raise MissingConnection("Pet connection required")
    pet_token = await ensure_fresh_access_token(pet, session, client)

    upload = await client.get_upload(pet_token, mirror.upload_id)
    if upload.get("activity_id"):
        mirror.status = MirrorStatus.DONE
        mirror.dest_activity_id = int(upload["activity_id"])
        mirror.error_message = None
    elif upload.get("error"):
        mirror.status = MirrorStatus.ERROR
        mirror.error_message = str(upload["error"])
    else:
        return mirror_to_dict(mirror)

    session.add(mirror)
    session.commit()
    session.refresh(mirror)
    logger.info("Mirror %s is now %s", mirror.id, mirror.status.value)
    return mirror_to_dict(mirror)


__all__ = [
    "find_mirror",
    "list_mirrors",
    "mirror_activity",
    "mirror_to_dict",
    "parse_activity_id",
    "refresh_mirror_status",
]
