"""Application settings and environment helpers."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Iterable, List

from dotenv import load_dotenv

DEFAULT_APP_NAME = "Pet Activity Syncer"
DEFAULT_TITLE_PREFIX = "Run with \N{PAW PRINTS} "


def _require_env(name: str) -> str:
    """Return a required environment variable or raise an error."""

    value = os.getenv(name)
    if not value:
        raise RuntimeError(f"Missing required environment variable: {name}")
    return value


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _split_csv(raw: str | None) -> List[str]:
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


def _unique(values: Iterable[str]) -> List[str]:
    seen = set()
    ordered: List[str] = []
    for value in values:
        if value not in seen:
            seen.add(value)
            ordered.append(value)
    return ordered


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, built once at startup and injected."""

    app_base_url: str
    state_secret: str = field(repr=False)
    auth_jwt_secret: str = field(repr=False)
    strava_client_id: str = ""
    strava_client_secret: str = field(default="", repr=False)
    strava_redirect_uri: str = "http://localhost:8000/oauth/callback"
    allowed_origins: tuple[str, ...] = ()
    app_name: str = DEFAULT_APP_NAME
    title_prefix: str = DEFAULT_TITLE_PREFIX
    database_url: str = "sqlite:///data/app.db"
    db_reset: bool = False
    log_level: str = "INFO"

    @property
    def oauth_configured(self) -> bool:
        return bool(self.strava_client_id)

    @property
    def token_exchange_configured(self) -> bool:
        return bool(self.strava_client_id and self.strava_client_secret)

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        """Read settings from the environment (and ``.env`` when present)."""

        if dotenv:
            load_dotenv(override=False)

        app_base_url = _require_env("APP_BASE_URL").rstrip("/")
        backend_url = os.getenv("BACKEND_URL", "http://localhost:8000").rstrip("/")

        # ALLOWED_ORIGIN can contain a comma-separated list for multi-domain deploys.
        origins = _split_csv(os.getenv("ALLOWED_ORIGIN")) or [app_base_url]

        return cls(
            app_base_url=app_base_url,
            state_secret=_require_env("STATE_SECRET"),
            auth_jwt_secret=_require_env("AUTH_JWT_SECRET"),
            strava_client_id=os.getenv("STRAVA_CLIENT_ID", "").strip(),
            strava_client_secret=os.getenv("STRAVA_CLIENT_SECRET", "").strip(),
            strava_redirect_uri=os.getenv(
                "STRAVA_REDIRECT_URI", f"{backend_url}/oauth/callback"
            ),
            allowed_origins=tuple(_unique(origins)),
            app_name=os.getenv("APP_NAME") or DEFAULT_APP_NAME,
            title_prefix=os.getenv("TITLE_PREFIX") or DEFAULT_TITLE_PREFIX,
            database_url=os.getenv("DATABASE_URL", "sqlite:///data/app.db"),
            db_reset=_env_bool("DB_RESET", False),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


__all__ = ["DEFAULT_APP_NAME", "DEFAULT_TITLE_PREFIX", "Settings"]
