"""GPX generation from Strava activity streams."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

import gpxpy.gpx

from ..errors import MissingGpsData


@dataclass(frozen=True)
class TrackPoint:
    lat: float
    lon: float
    time: datetime
    ele: Optional[float] = None


def parse_start_time(raw: str) -> datetime:
    """Parse Strava's ``start_date`` (``...Z``) into an aware UTC datetime."""

    parsed = datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def streams_by_type(streams: Any) -> Dict[str, Any]:
    """Normalise a streams response to ``{type: stream}``.

    Strava returns a mapping when ``key_by_type=true`` and a list of stream
    objects otherwise.
    """

    if isinstance(streams, dict):
        return streams
    if isinstance(streams, list):
        return {item.get("type"): item for item in streams if isinstance(item, dict)}
    return {}


def _stream_data(streams: Dict[str, Any], key: str) -> List[Any]:
    stream = streams.get(key) or {}
    return list(stream.get("data") or [])


def build_track_points(start: datetime, streams: Any) -> List[TrackPoint]:
    """Pair every GPS sample with its absolute time and, if known, elevation."""

    by_type = streams_by_type(streams)
    latlngs = _stream_data(by_type, "latlng")
    offsets = _stream_data(by_type, "time")
    if not latlngs or not offsets:
        raise MissingGpsData()
    altitudes: Sequence[Any] = _stream_data(by_type, "altitude")

    points: List[TrackPoint] = []
    for idx, (latlng, offset) in enumerate(zip(latlngs, offsets)):
        elevation = altitudes[idx] if idx < len(altitudes) else None
        points.append(
            TrackPoint(
                lat=float(latlng[0]),
                lon=float(latlng[1]),
                time=start + timedelta(seconds=offset),
                ele=float(elevation) if elevation is not None else None,
            )
        )
    return points


def build_gpx(
    points: Sequence[TrackPoint],
    *,
    name: str,
    start: datetime,
    creator: str,
) -> str:
    """Render track points as a GPX 1.1 document with a single segment."""

    gpx = gpxpy.gpx.GPX()
    gpx.creator = creator
    gpx.name = name
    gpx.time = start

    track = gpxpy.gpx.GPXTrack(name=name)
    gpx.tracks.append(track)
    segment = gpxpy.gpx.GPXTrackSegment()
    track.segments.append(segment)

    for point in points:
        segment.points.append(
            gpxpy.gpx.GPXTrackPoint(
                latitude=point.lat,
                longitude=point.lon,
                elevation=point.ele,
                time=point.time,
            )
        )
    return gpx.to_xml(version="1.1")


def activity_to_gpx(
    activity: Dict[str, Any], streams: Any, *, name: str, creator: str
) -> str:
    start = parse_start_time(activity["start_date"])
    points = build_track_points(start, streams)
    return build_gpx(points, name=name, start=start, creator=creator)


__all__ = [
    "TrackPoint",
    "activity_to_gpx",
    "build_gpx",
    "build_track_points",
    "parse_start_time",
    "streams_by_type",
]
