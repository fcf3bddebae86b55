"""PostgreSQL statement bridge."""

from .bridge import PgBridge
from .connection import PgConnection

__all__ = ["PgBridge", "PgConnection"]
