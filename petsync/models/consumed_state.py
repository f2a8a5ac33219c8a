"""Database model for spent OAuth state nonces."""

from __future__ import annotations

from sqlalchemy import BigInteger
from sqlmodel import Field as ORMField, SQLModel


class ConsumedState(SQLModel, table=True):
    """Nonce of a state token that already reached the callback."""

    __tablename__ = "consumed_states"

    nonce: str = ORMField(primary_key=True, max_length=64)
    expires_at: int = ORMField(sa_type=BigInteger, index=True)


__all__ = ["ConsumedState"]
