"""WebSocket endpoint the call-control platform streams leg audio to."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, WebSocket

from api.dependencies import get_handshake_gate
from bridge.handshake import HandshakeGate
from bridge.transport import WebSocketLeg
from integrations.jambonz import AUDIO_STREAM_PATH

LOGGER = logging.getLogger(__name__)

router = APIRouter(tags=["audio"])


@router.websocket(AUDIO_STREAM_PATH)
async def audio_stream(
    websocket: WebSocket,
    gate: HandshakeGate = Depends(get_handshake_gate),
) -> None:
    # jambonz asks for its audio subprotocol; accept whatever it offers first.
    subprotocols = websocket.scope.get("subprotocols") or []
    await websocket.accept(subprotocol=subprotocols[0] if subprotocols else None)

    leg = WebSocketLeg(websocket)
    if await gate.admit(leg):
        await leg.serve()
