"""Database model for linked Strava accounts."""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, UniqueConstraint
from sqlmodel import Field as ORMField, SQLModel

from ..core.time import utcnow


class ConnectionRole(str, enum.Enum):
    """Which side of the mirror a Strava account plays."""

    HUMAN = "HUMAN"
    PET = "PET"


class Connection(SQLModel, table=True):
    """Strava credentials and athlete metadata for one (user, role) pair."""

    __tablename__ = "connections"
    __table_args__ = (
        UniqueConstraint("user_id", "role", name="uq_connections_user_role"),
        UniqueConstraint("user_id", "athlete_id", name="uq_connections_user_athlete"),
    )

    id: Optional[int] = ORMField(default=None, primary_key=True)
    user_id: str = ORMField(index=True)
    role: ConnectionRole
    athlete_id: int = ORMField(sa_type=BigInteger, index=True)
    athlete_username: str = ""
    athlete_fullname: str = ""
    athlete_avatar: Optional[str] = None
    access_token: str
    refresh_token: str
    expires_at: int = ORMField(sa_type=BigInteger)
    created_at: datetime = ORMField(default_factory=utcnow)
    updated_at: datetime = ORMField(
        default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow}
    )


__all__ = ["Connection", "ConnectionRole"]
