"""Database configuration and session helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

from fastapi import Request
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine


def create_db_engine(database_url: str) -> Engine:
    """Build the SQLModel engine for ``database_url``.

    SQLite files get their parent directory created; ``sqlite://`` (memory)
    shares a single connection so every session sees the same tables.
    """

    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return create_engine(database_url, pool_pre_ping=True)

    connect_args = {"check_same_thread": False}
    if not url.database or url.database == ":memory:":
        return create_engine(
            database_url, connect_args=connect_args, poolclass=StaticPool
        )

    Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(database_url, connect_args=connect_args)


def get_session(request: Request) -> Iterator[Session]:
    """FastAPI dependency that yields a database session."""

    with Session(request.app.state.engine) as session:
        yield session


__all__ = ["create_db_engine", "get_session"]
