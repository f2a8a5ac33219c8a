"""Helpers for stored Strava connections."""

from __future__ import annotations

from typing import Any, Dict, Optional

from sqlmodel import Session, select

from ..models import Connection, ConnectionRole


def connection_to_dict(connection: Optional[Connection]) -> Optional[Dict[str, Any]]:
    """Serialise a connection for the API, leaving out every credential."""

    if connection is None:
        return None
    return {
        "id": connection.id,
        "role": connection.role.value,
        "athlete_id": connection.athlete_id,
        "athlete_username": connection.athlete_username,
        "athlete_fullname": connection.athlete_fullname,
        "athlete_avatar": connection.athlete_avatar,
        "expires_at": connection.expires_at,
    }


def get_connection(
    session: Session, user_id: str, role: ConnectionRole
) -> Optional[Connection]:
    return session.exec(
        select(Connection).where(
            Connection.user_id == user_id, Connection.role == role
        )
    ).first()


def find_connection_by_athlete(
    session: Session, user_id: str, athlete_id: int
) -> Optional[Connection]:
    return session.exec(
        select(Connection).where(
            Connection.user_id == user_id, Connection.athlete_id == athlete_id
        )
    ).first()


def list_connections(session: Session, user_id: str) -> Dict[str, Optional[Dict[str, Any]]]:
    return {
        "humanConnection": connection_to_dict(
            get_connection(session, user_id, ConnectionRole.HUMAN)
        ),
        "petConnection": connection_to_dict(
            get_connection(session, user_id, ConnectionRole.PET)
        ),
    }


def delete_connection(session: Session, user_id: str, role: ConnectionRole) -> bool:
    connection = get_connection(session, user_id, role)
    if connection is None:
        return False
    session.delete(connection)
    session.commit()
    return True


def athlete_fullname(athlete: Dict[str, Any]) -> str:
    first = athlete.get("firstname") or ""
    last = athlete.get("lastname") or ""
    return f"{first} {last}".strip()


def athlete_avatar(athlete: Dict[str, Any]) -> Optional[str]:
    return athlete.get("profile") or athlete.get("profile_medium") or None


def upsert_connection(
    session: Session,
    *,
    user_id: str,
    role: ConnectionRole,
    athlete: Dict[str, Any],
    token_data: Dict[str, Any],
) -> Connection:
    """Create or overwrite the connection for ``(user_id, role)``."""

    connection = get_connection(session, user_id, role)
    if connection is None:
        connection = Connection(
            user_id=user_id,
            role=role,
            athlete_id=int(athlete["id"]),
            access_token=token_data["access_token"],
            refresh_token=token_data["refresh_token"],
            expires_at=int(token_data["expires_at"]),
        )

    connection.athlete_id = int(athlete["id"])
    connection.athlete_username = athlete.get("username") or ""
    connection.athlete_fullname = athlete_fullname(athlete)
    connection.athlete_avatar = athlete_avatar(athlete)
    connection.access_token = token_data["access_token"]
    connection.refresh_token = token_data["refresh_token"]
    connection.expires_at = int(token_data["expires_at"])

    session.add(connection)
    session.commit()
    session.refresh(connection)
    return connection


__all__ = [
    "athlete_avatar",
    "athlete_fullname",
    "connection_to_dict",
    "delete_connection",
    "find_connection_by_athlete",
    "get_connection",
    "list_connections",
    "upsert_connection",
]
