"""Shared IRC data models."""

from __future__ import annotations

from enum import Enum


class ConnectionState(Enum):
    # Purposely disconnected, or reconnection disabled after a failure
    DISCONNECTED = "disconnected"
    # Socket opened, waiting for the welcome reply
    CONNECTING = "connecting"
    # Connection lost, waiting before the next attempt
    RECONNECTING = "reconnecting"
    CONNECTED = "connected"
