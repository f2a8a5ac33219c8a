from petsync.models import ConnectionRole

from conftest import HUMAN_ATHLETE_ID, PET_ATHLETE_ID, add_connection


def test_connections_empty(client, auth_headers):
    response = client.get("/connections", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {"humanConnection": None, "petConnection": None}


def test_connections_never_expose_credentials(client, session, auth_headers):
    add_connection(session, ConnectionRole.HUMAN, HUMAN_ATHLETE_ID)
    add_connection(session, ConnectionRole.PET, PET_ATHLETE_ID)

    response = client.get("/connections", headers=auth_headers)

    body = response.json()
    assert body["humanConnection"]["athlete_id"] == HUMAN_ATHLETE_ID
    assert body["petConnection"]["role"] == "PET"
    for connection in body.values():
        assert "access_token" not in connection
        assert "refresh_token" not in connection
    assert "human-access" not in response.text
    assert "pet-refresh" not in response.text


def test_connections_are_scoped_to_caller(client, session, auth_headers):
    add_connection(session, ConnectionRole.HUMAN, HUMAN_ATHLETE_ID, user_id="someone-else")

    body = client.get("/connections", headers=auth_headers).json()

    assert body["humanConnection"] is None


def test_delete_connection(client, session, auth_headers):
    add_connection(session, ConnectionRole.HUMAN, HUMAN_ATHLETE_ID)
    add_connection(session, ConnectionRole.PET, PET_ATHLETE_ID)

    response = client.delete("/connections", params={"role": "PET"}, headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {"success": True}
    body = client.get("/connections", headers=auth_headers).json()
    assert body["petConnection"] is None
    assert body["humanConnection"] is not None


def test_delete_connection_rejects_unknown_role(client, auth_headers):
    response = client.delete("/connections", params={"role": "CAT"}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid role"}


def test_connections_require_credential(client):
    assert client.get("/connections").status_code == 401
    assert client.delete("/connections", params={"role": "PET"}).status_code == 401
