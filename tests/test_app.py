from fastapi.testclient import TestClient
from sqlalchemy import inspect
from sqlmodel import SQLModel

from petsync.app import create_app
from petsync.core import create_db_engine

from conftest import APP_BASE_URL


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"ok": True, "stravaConfigured": True}


def test_lifespan_creates_tables(settings):
    engine = create_db_engine("sqlite://")
    app = create_app(settings, engine=engine)

    with TestClient(app) as client:
        assert client.get("/health").status_code == 200

    assert {"connections", "mirrors", "consumed_states"} <= set(SQLModel.metadata.tables)
    names = set(inspect(engine).get_table_names())
    assert {"connections", "mirrors", "consumed_states"} <= names
    engine.dispose()


def test_cors_preflight_allows_app_origin(client):
    response = client.options(
        "/mirror-activity",
        headers={
            "Origin": APP_BASE_URL,
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "authorization, content-type",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == APP_BASE_URL


def test_unknown_route_renders_error_body(client):
    response = client.get("/nope")

    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}
