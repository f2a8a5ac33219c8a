"""Database model for mirrored activities."""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, UniqueConstraint
from sqlmodel import Field as ORMField, SQLModel

from ..core.time import utcnow


class MirrorStatus(str, enum.Enum):
    PENDING = "PENDING"
    DONE = "DONE"
    ERROR = "ERROR"


class Mirror(SQLModel, table=True):
    """One copy of a human activity onto the pet account."""

    __tablename__ = "mirrors"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "source_activity_id", name="uq_mirrors_user_source"
        ),
    )

    id: Optional[int] = ORMField(default=None, primary_key=True)
    user_id: str = ORMField(index=True)
    source_activity_id: int = ORMField(sa_type=BigInteger, index=True)
    upload_id: Optional[int] = ORMField(default=None, sa_type=BigInteger)
    dest_activity_id: Optional[int] = ORMField(default=None, sa_type=BigInteger)
    status: MirrorStatus = MirrorStatus.PENDING
    error_message: Optional[str] = None
    created_at: datetime = ORMField(default_factory=utcnow)
    updated_at: datetime = ORMField(
        default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow}
    )


__all__ = ["Mirror", "MirrorStatus"]
