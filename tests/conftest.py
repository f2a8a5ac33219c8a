from __future__ import annotations

import time
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest
from authlib.jose import jwt
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from petsync.app import create_app
from petsync.core import Settings, create_db_engine
from petsync.models import Connection, ConnectionRole

APP_BASE_URL = "https://app.example.com"
STATE_SECRET = "state-secret-for-tests"
JWT_SECRET = "jwt-secret-for-tests"
USER_ID = "user-1"
HUMAN_ATHLETE_ID = 111
PET_ATHLETE_ID = 222


class FakeStrava:
    """Route table behind an ``httpx.MockTransport``; records every request."""

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: List[httpx.Request] = []

    def add(
        self,
        method: str,
        path: str,
        status: int = 200,
        json: Any = None,
        handler: Optional[Callable[[httpx.Request], httpx.Response]] = None,
    ) -> None:
        body = json if json is not None else {}

        def respond(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status, json=body)

        self.routes[(method, path)] = handler or respond

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(599, json={"message": "unexpected request"})
        return handler(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def make_bearer(sub: str = USER_ID, secret: str = JWT_SECRET, **claims: Any) -> str:
    payload = {"sub": sub, "exp": int(time.time()) + 3600, **claims}
    token = jwt.encode({"alg": "HS256"}, payload, secret)
    return token.decode("ascii")


def add_connection(
    session: Session,
    role: ConnectionRole,
    athlete_id: int,
    *,
    user_id: str = USER_ID,
    expires_at: Optional[int] = None,
) -> Connection:
    prefix = role.value.lower()
    connection = Connection(
        user_id=user_id,
        role=role,
        athlete_id=athlete_id,
        athlete_username=f"{prefix}-runner",
        athlete_fullname=f"{role.value.title()} Runner",
        access_token=f"{prefix}-access",
        refresh_token=f"{prefix}-refresh",
        expires_at=expires_at if expires_at is not None else int(time.time()) + 6 * 3600,
    )
    session.add(connection)
    session.commit()
    session.refresh(connection)
    return connection


@pytest.fixture
def settings() -> Settings:
    return Settings(
        app_base_url=APP_BASE_URL,
        state_secret=STATE_SECRET,
        auth_jwt_secret=JWT_SECRET,
        strava_client_id="12345",
        strava_client_secret="client-secret",
        strava_redirect_uri="http://testserver/oauth/callback",
        allowed_origins=(APP_BASE_URL,),
        database_url="sqlite://",
    )


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://")
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def strava() -> FakeStrava:
    return FakeStrava()


@pytest.fixture
def app(settings, engine, strava):
    app = create_app(settings, engine=engine)
    app.state.strava_transport = strava.transport
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_bearer()}"}
