"""Leg connections: the sockets the call-control platform streams call audio on.

A leg carries UTF-8 JSON control frames and raw PCM16 audio frames. The first
frame is read directly by the handshake gate; afterwards `serve()` pumps
frames to whichever handlers the router and adapters registered.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from fastapi.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from bridge.errors import CLOSE_NORMAL

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Frame:
    data: bytes | str

    @property
    def is_binary(self) -> bool:
        return isinstance(self.data, bytes)


FrameHandler = Callable[[Frame], Awaitable[None]]
CloseHandler = Callable[["LegConnection"], Awaitable[None]]


class LegDisconnected(Exception):
    """Raised by `receive_frame` once the peer has gone away."""


class LegConnection(ABC):
    """Bidirectional frame socket for one call leg."""

    def __init__(self, label: str = "leg") -> None:
        self.label = label
        self._frame_handlers: list[FrameHandler] = []
        self._close_handlers: list[CloseHandler] = []
        self._closed = False
        self._close_handlers_fired = False

    @property
    def is_open(self) -> bool:
        return not self._closed

    def add_frame_handler(self, handler: FrameHandler) -> None:
        self._frame_handlers.append(handler)

    def remove_frame_handler(self, handler: FrameHandler) -> None:
        if handler in self._frame_handlers:
            self._frame_handlers.remove(handler)

    def add_close_handler(self, handler: CloseHandler) -> None:
        self._close_handlers.append(handler)

    @abstractmethod
    async def receive_frame(self) -> Frame:
        """Return the next frame or raise `LegDisconnected`."""

    @abstractmethod
    async def _send_bytes(self, data: bytes) -> None: ...

    @abstractmethod
    async def _close_transport(self, code: int, reason: str) -> None: ...

    async def send_bytes(self, data: bytes) -> bool:
        """Send one audio frame; returns False if the leg is gone."""

        if self._closed:
            return False
        try:
            await self._send_bytes(data)
        except (WebSocketDisconnect, RuntimeError, OSError) as exc:
            LOGGER.debug("Dropping %d bytes for closed %s: %s", len(data), self.label, exc)
            self._closed = True
            return False
        return True

    async def close(self, code: int = CLOSE_NORMAL, reason: str = "") -> None:
        if self._closed:
            return
        self._closed = True
        LOGGER.info("Closing %s (code=%s reason=%r)", self.label, code, reason)
        try:
            await self._close_transport(code, reason)
        except (RuntimeError, OSError) as exc:
            LOGGER.debug("Close of %s failed: %s", self.label, exc)

    async def serve(self) -> None:
        """Dispatch frames until the peer disconnects, then fire close handlers once."""

        try:
            while True:
                try:
                    frame = await self.receive_frame()
                except LegDisconnected:
                    break
                # Snapshot: handlers may detach themselves while running.
                for handler in list(self._frame_handlers):
                    try:
                        await handler(frame)
                    except Exception:
                        LOGGER.exception("Frame handler failed on %s", self.label)
        finally:
            self._closed = True
            await self._fire_close_handlers()

    async def _fire_close_handlers(self) -> None:
        if self._close_handlers_fired:
            return
        self._close_handlers_fired = True
        for handler in list(self._close_handlers):
            try:
                await handler(self)
            except Exception:
                LOGGER.exception("Close handler failed on %s", self.label)


class WebSocketLeg(LegConnection):
    """Leg backed by a FastAPI WebSocket."""

    def __init__(self, websocket: WebSocket, label: str = "audio-stream") -> None:
        super().__init__(label)
        self._websocket = websocket

    async def receive_frame(self) -> Frame:
        if self._closed:
            raise LegDisconnected()
        try:
            message = await self._websocket.receive()
        except (WebSocketDisconnect, RuntimeError) as exc:
            raise LegDisconnected() from exc

        if message["type"] == "websocket.disconnect":
            self._closed = True
            raise LegDisconnected()

        data = message.get("bytes")
        if data is not None:
            return Frame(data)
        return Frame(message.get("text") or "")

    async def _send_bytes(self, data: bytes) -> None:
        await self._websocket.send_bytes(data)

    async def _close_transport(self, code: int, reason: str) -> None:
        if self._websocket.application_state == WebSocketState.DISCONNECTED:
            return
        await self._websocket.close(code=code, reason=reason)
