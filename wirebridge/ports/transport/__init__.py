"""Blocking TCP transport bridge."""

from .socket_bridge import SocketBridge

__all__ = ["SocketBridge"]
