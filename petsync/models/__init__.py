"""Database model exports."""

from .connection import Connection, ConnectionRole
from .consumed_state import ConsumedState
from .mirror import Mirror, MirrorStatus

__all__ = [
    "Connection",
    "ConnectionRole",
    "ConsumedState",
    "Mirror",
    "MirrorStatus",
]
