"""Strava HTTP API client.

Every call opens a short-lived ``httpx.AsyncClient``; nothing is cached
between requests. Non-success responses are translated into the error
taxonomy and logged with their status code only.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from ..core.config import Settings
from ..errors import (
    ActivityNotFound,
    TokenExchangeFailed,
    TokenRefreshFailed,
    UploadFailed,
    UpstreamFetchFailed,
)

logger = logging.getLogger(__name__)

AUTHORIZE_URL = "https://www.strava.com/oauth/authorize"
TOKEN_URL = "https://www.strava.com/oauth/token"
API_BASE = "https://www.strava.com/api/v3"
ACTIVITY_WEB_URL = "https://www.strava.com/activities/{activity_id}"

# Only position, time and elevation are ever requested.
STREAM_KEYS = "latlng,time,altitude"

TOKEN_TIMEOUT = 20
API_TIMEOUT = 30


class StravaClient:
    """Async wrapper around the Strava endpoints this service consumes.

    ``transport`` is handed to ``httpx.AsyncClient`` unchanged; tests pass an
    ``httpx.MockTransport`` there.
    """

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings
        self._transport = transport

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, transport=self._transport)

    @staticmethod
    def _auth(access_token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {access_token}"}

    # ------------------------------------------------------------------
    # OAuth token endpoint
    # ------------------------------------------------------------------

    async def _post_token(self, data: Dict[str, Any]) -> httpx.Response:
        payload = {
            "client_id": self.settings.strava_client_id,
            "client_secret": self.settings.strava_client_secret,
            **data,
        }
        async with self._client(TOKEN_TIMEOUT) as client:
            return await client.post(TOKEN_URL, data=payload)

    async def exchange_code(self, code: str, code_verifier: str) -> Dict[str, Any]:
        """Trade an authorization code plus PKCE verifier for tokens."""

        try:
            response = await self._post_token(
                {
                    "code": code,
                    "grant_type": "authorization_code",
                    "code_verifier": code_verifier,
                }
            )
        except httpx.HTTPError as exc:
            logger.error("Strava token exchange request failed: %s", type(exc).__name__)
            raise TokenExchangeFailed() from exc

        if not response.is_success:
            logger.error("Strava token exchange failed: %s", response.status_code)
            raise TokenExchangeFailed()
        return response.json()

    async def refresh_token(self, refresh_token: str) -> Dict[str, Any]:
        try:
            response = await self._post_token(
                {"grant_type": "refresh_token", "refresh_token": refresh_token}
            )
        except httpx.HTTPError as exc:
            logger.error("Strava token refresh request failed: %s", type(exc).__name__)
            raise TokenRefreshFailed() from exc

        if not response.is_success:
            logger.error("Strava token refresh failed: %s", response.status_code)
            raise TokenRefreshFailed()
        return response.json()

    # ------------------------------------------------------------------
    # REST API
    # ------------------------------------------------------------------

    async def _get(
        self, access_token: str, path: str, params: Optional[Dict[str, Any]] = None
    ) -> httpx.Response:
        async with self._client(API_TIMEOUT) as client:
            return await client.get(
                f"{API_BASE}{path}", headers=self._auth(access_token), params=params or {}
            )

    async def get_activity(self, access_token: str, activity_id: int) -> Dict[str, Any]:
        try:
            response = await self._get(access_token, f"/activities/{activity_id}")
        except httpx.HTTPError as exc:
            logger.error("Fetching activity %s failed: %s", activity_id, type(exc).__name__)
            raise UpstreamFetchFailed() from exc

        if response.status_code == 404:
            raise ActivityNotFound()
        if not response.is_success:
            logger.error(
                "Fetching activity %s failed: %s", activity_id, response.status_code
            )
            raise UpstreamFetchFailed()
        return response.json()

    async def get_streams(self, access_token: str, activity_id: int) -> Dict[str, Any]:
        try:
            response = await self._get(
                access_token,
                f"/activities/{activity_id}/streams",
                params={"keys": STREAM_KEYS, "key_by_type": "true"},
            )
        except httpx.HTTPError as exc:
            logger.error("Fetching streams for %s failed: %s", activity_id, type(exc).__name__)
            raise UpstreamFetchFailed("Failed to fetch activity streams") from exc

        if not response.is_success:
            logger.error(
                "Fetching streams for %s failed: %s", activity_id, response.status_code
            )
            raise UpstreamFetchFailed("Failed to fetch activity streams")
        return response.json()

    async def upload_gpx(self, access_token: str, gpx_xml: str, name: str) -> Dict[str, Any]:
        """Create a new activity from a GPX file on the token owner's account."""

        files = {"file": ("activity.gpx", gpx_xml.encode("utf-8"), "application/gpx+xml")}
        data = {"data_type": "gpx", "name": name}
        try:
            async with self._client(API_TIMEOUT) as client:
                response = await client.post(
                    f"{API_BASE}/uploads",
                    headers=self._auth(access_token),
                    data=data,
                    files=files,
                )
        except httpx.HTTPError as exc:
            logger.error("Strava upload request failed: %s", type(exc).__name__)
            raise UploadFailed() from exc

        if not response.is_success:
            logger.error("Strava upload failed: %s", response.status_code)
            raise UploadFailed()
        return response.json()

    async def get_upload(self, access_token: str, upload_id: int) -> Dict[str, Any]:
        try:
            response = await self._get(access_token, f"/uploads/{upload_id}")
        except httpx.HTTPError as exc:
            logger.error("Fetching upload %s failed: %s", upload_id, type(exc).__name__)
            raise UpstreamFetchFailed("Failed to fetch upload status") from exc

        if not response.is_success:
            logger.error("Fetching upload %s failed: %s", upload_id, response.status_code)
            raise UpstreamFetchFailed("Failed to fetch upload status")
        return response.json()


__all__ = [
    "ACTIVITY_WEB_URL",
    "API_BASE",
    "AUTHORIZE_URL",
    "STREAM_KEYS",
    "TOKEN_URL",
    "StravaClient",
]
