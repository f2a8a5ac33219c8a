"""Error taxonomy shared by the services and the HTTP layer.

Every error carries the HTTP status and the short, caller-safe message the
API returns as ``{"error": message}``. Details meant for operators go to the
log, never into ``message``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class PetSyncError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None, **extra: Any) -> None:
        self.message = message or self.message
        self.extra: Dict[str, Any] = extra
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, **self.extra}


# Bad caller input ------------------------------------------------------------
class InvalidRequest(PetSyncError):
    status_code = 400
    message = "Invalid request"


class InvalidActivityUrl(PetSyncError):
    status_code = 400
    message = "Invalid Strava activity URL"


# Identity / authorization ----------------------------------------------------
class Unauthorized(PetSyncError):
    status_code = 401
    message = "Unauthorized"


class OwnershipMismatch(PetSyncError):
    status_code = 403
    message = "Activity does not belong to connected human account"


# Domain conflicts / lookups --------------------------------------------------
class AlreadyMirrored(PetSyncError):
    status_code = 400
    message = "Activity already mirrored"


class MissingConnection(PetSyncError):
    status_code = 400
    message = "Both human and pet connections required"


class MissingGpsData(PetSyncError):
    status_code = 400
    message = "Activity missing GPS data"


class ActivityNotFound(PetSyncError):
    status_code = 404
    message = "Activity not found or private"


class MirrorNotFound(PetSyncError):
    status_code = 404
    message = "Mirror not found"


# Dependent services ----------------------------------------------------------
class UpstreamFetchFailed(PetSyncError):
    message = "Failed to fetch activity"


class TokenRefreshFailed(PetSyncError):
    message = "Failed to refresh Strava token"


class TokenExchangeFailed(PetSyncError):
    message = "Token exchange failed"


class UploadFailed(PetSyncError):
    message = "Failed to upload to pet account"


# Operator-fixable ------------------------------------------------------------
class ConfigurationError(PetSyncError):
    message = "OAuth not configured"


__all__ = [
    "ActivityNotFound",
    "AlreadyMirrored",
    "ConfigurationError",
    "InvalidActivityUrl",
    "InvalidRequest",
    "MirrorNotFound",
    "MissingConnection",
    "MissingGpsData",
    "OwnershipMismatch",
    "PetSyncError",
    "TokenExchangeFailed",
    "TokenRefreshFailed",
    "Unauthorized",
    "UploadFailed",
    "UpstreamFetchFailed",
]
