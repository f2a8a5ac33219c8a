"""Service layer helpers."""

from .connections import connection_to_dict, list_connections
from .gpx import activity_to_gpx, build_gpx, build_track_points
from .mirroring import list_mirrors, mirror_activity, refresh_mirror_status
from .oauth import build_authorization_url, complete_authorization
from .strava import StravaClient
from .tokens import ensure_fresh_access_token

__all__ = [
    "StravaClient",
    "activity_to_gpx",
    "build_authorization_url",
    "build_gpx",
    "build_track_points",
    "complete_authorization",
    "connection_to_dict",
    "ensure_fresh_access_token",
    "list_connections",
    "list_mirrors",
    "mirror_activity",
    "refresh_mirror_status",
]
