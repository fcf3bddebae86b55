"""Public port exports for concrete bridge implementations."""

from .postgres import PgBridge, PgConnection
from .transport import SocketBridge

__all__ = [
    "SocketBridge",
    "PgBridge",
    "PgConnection",
]
