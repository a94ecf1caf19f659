"""Shared FastAPI dependencies.

The registry and handshake gate are created in the application lifespan and
kept on ``app.state``; route modules reach them only through these helpers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi.requests import HTTPConnection

if TYPE_CHECKING:  # pragma: no cover
    from bridge.handshake import HandshakeGate
    from bridge.registry import SessionRegistry


def get_registry(connection: HTTPConnection) -> SessionRegistry:
    return connection.app.state.registry


def get_handshake_gate(connection: HTTPConnection) -> HandshakeGate:
    return connection.app.state.handshake_gate
