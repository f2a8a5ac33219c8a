"""Aggregate API routers."""

from fastapi import APIRouter

from .connections import router as connections_router
from .mirror import router as mirror_router
from .oauth import router as oauth_router
from .system import router as system_router

ALL_ROUTERS: tuple[APIRouter, ...] = (
    system_router,
    oauth_router,
    connections_router,
    mirror_router,
)

__all__ = ["ALL_ROUTERS"]
