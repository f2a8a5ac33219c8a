from dataclasses import replace
from urllib.parse import parse_qs, urlsplit

import pytest

from petsync.models import ConnectionRole
from petsync.services.oauth import ROLE_SCOPES, code_challenge, generate_code_verifier
from petsync.services.state import decode_state

from conftest import STATE_SECRET


def _query(url: str) -> dict:
    return {key: values[0] for key, values in parse_qs(urlsplit(url).query).items()}


def test_code_verifier_and_challenge():
    verifier = generate_code_verifier()
    assert 43 <= len(verifier) <= 128
    # RFC 7636 appendix B
    assert (
        code_challenge("dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk")
        == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"
    )


@pytest.mark.parametrize("role", ["HUMAN", "PET"])
def test_authorize_returns_strava_url_with_signed_state(client, role):
    response = client.get("/oauth/authorize", params={"role": role, "userId": "user-1"})

    assert response.status_code == 200
    auth_url = response.json()["authUrl"]
    assert auth_url.startswith("https://www.strava.com/oauth/authorize?")

    params = _query(auth_url)
    assert params["client_id"] == "12345"
    assert params["redirect_uri"] == "http://testserver/oauth/callback"
    assert params["response_type"] == "code"
    assert params["approval_prompt"] == "auto"
    assert params["scope"] == ROLE_SCOPES[ConnectionRole(role)]
    assert params["code_challenge_method"] == "S256"

    state = decode_state(params["state"], STATE_SECRET)
    assert state.user_id == "user-1"
    assert state.role is ConnectionRole(role)
    assert params["code_challenge"] == code_challenge(state.code_verifier)
    assert state.code_verifier not in auth_url


def test_scopes_separate_reading_and_writing():
    assert "activity:write" not in ROLE_SCOPES[ConnectionRole.HUMAN]
    assert "activity:read_all" in ROLE_SCOPES[ConnectionRole.HUMAN]
    assert ROLE_SCOPES[ConnectionRole.PET] == "activity:write"


@pytest.mark.parametrize(
    "params",
    [
        {"role": "ADMIN", "userId": "user-1"},
        {"role": "human", "userId": "user-1"},
        {"role": "HUMAN"},
        {"userId": "user-1"},
        {"role": "PET", "userId": ""},
    ],
)
def test_authorize_rejects_bad_input(client, params):
    response = client.get("/oauth/authorize", params=params)

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid role or userId"}


def test_authorize_without_client_id_is_a_configuration_error(app, client, settings):
    app.state.settings = replace(settings, strava_client_id="")

    response = client.get("/oauth/authorize", params={"role": "HUMAN", "userId": "user-1"})

    assert response.status_code == 500
    assert response.json() == {"error": "OAuth not configured"}
