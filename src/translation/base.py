"""Shared abstractions for speech-to-speech translation backends.

An adapter owns one backend connection and translates one direction of a
conversation: it reads raw PCM from its inbound leg, forwards it in the
backend's wire shape, and writes the translated PCM the backend returns to
its outbound leg.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Awaitable, Callable
from enum import Enum
from typing import Protocol

from websockets.asyncio.client import connect as websocket_connect
from websockets.exceptions import ConnectionClosed

from bridge.errors import TranslationBackendError
from bridge.transport import Frame, LegConnection
from translation.recording import AudioRecorder

LOGGER = logging.getLogger(__name__)


class AdapterState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    READY = "ready"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"
    ERRORED = "errored"


class AdapterEvent(str, Enum):
    CLOSED = "closed"
    ERRORED = "errored"


class BackendSocket(Protocol):
    """The subset of a websockets client connection the adapters use."""

    async def send(self, message: str | bytes) -> None:  # pragma: no cover - protocol stub
        ...

    async def close(self) -> None:  # pragma: no cover - protocol stub
        ...

    def __aiter__(self) -> AsyncIterator[str | bytes]:  # pragma: no cover - protocol stub
        ...


ConnectFn = Callable[..., Awaitable[BackendSocket]]
AdapterListener = Callable[["TranslationAdapter", AdapterEvent], None]


class TranslationAdapter(ABC):
    """Base class for translation backends.

    Subclasses provide the vendor specifics: how to open the backend
    connection, how to wrap inbound audio, and how to interpret backend
    messages. Lifecycle, frame accounting and error containment live here.
    """

    vendor: str = "backend"

    def __init__(
        self,
        instructions: str,
        *,
        name: str,
        recorder: AudioRecorder | None = None,
        connect: ConnectFn | None = None,
    ) -> None:
        self.instructions = instructions
        self.name = name
        self.dropped_frames = 0
        self._state = AdapterState.IDLE
        self._closed = False
        self._backend: BackendSocket | None = None
        self._task: asyncio.Task | None = None
        self._inbound: LegConnection | None = None
        self._sink: LegConnection | None = None
        self._listeners: list[AdapterListener] = []
        self._recorder = recorder
        self._connect: ConnectFn = connect or websocket_connect

    def __str__(self) -> str:
        return f"{self.vendor} adapter {self.name}"

    @property
    def state(self) -> AdapterState:
        return self._state

    def is_healthy(self) -> bool:
        return self._state is AdapterState.OPEN and not self._closed

    def add_listener(self, listener: AdapterListener) -> None:
        self._listeners.append(listener)

    def start(self) -> None:
        """Open the backend connection in the background."""

        if self._task is not None or self._closed:
            return
        self._task = asyncio.create_task(self._run(), name=str(self))

    def set_inbound_source(self, leg: LegConnection) -> None:
        if self._inbound is not None:
            raise RuntimeError(f"{self} already has an inbound source")
        self._inbound = leg
        leg.add_frame_handler(self._on_inbound_frame)

    def set_outbound_sink(self, leg: LegConnection) -> None:
        if self._sink is not None:
            raise RuntimeError(f"{self} already has an outbound sink")
        self._sink = leg

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        LOGGER.info("Closing %s connection", self)

        terminal = self._state in (AdapterState.CLOSED, AdapterState.ERRORED)
        if not terminal:
            self._set_state(AdapterState.CLOSING)

        if self._inbound is not None:
            self._inbound.remove_frame_handler(self._on_inbound_frame)

        task = self._task
        try:
            if task is not None and not task.done() and task is not asyncio.current_task():
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)
        finally:
            try:
                await self._close_backend()
            finally:
                if self._recorder is not None:
                    self._recorder.finish()
                if not terminal:
                    self._set_state(AdapterState.CLOSED)

    # -- vendor hooks -----------------------------------------------------

    @abstractmethod
    async def _open_backend(self) -> BackendSocket:
        """Provision and connect to the backend; raise on failure."""

    @abstractmethod
    def _encode_audio(self, audio: bytes) -> str | bytes:
        """Wrap one inbound PCM frame in the backend's wire shape."""

    @abstractmethod
    async def _handle_backend_message(self, message: str | bytes) -> None:
        """React to one message received from the backend."""

    # -- shared plumbing --------------------------------------------------

    async def _run(self) -> None:
        self._set_state(AdapterState.CONNECTING)
        try:
            backend = await self._open_backend()
        except TranslationBackendError as exc:
            LOGGER.error("%s could not start: %s", self, exc.detail)
            self._fail()
            return
        except Exception:
            LOGGER.exception("%s failed to connect", self)
            self._fail()
            return

        self._backend = backend
        self._set_state(AdapterState.READY)
        self._set_state(AdapterState.OPEN)
        LOGGER.info("%s connection open", self)

        try:
            async for message in backend:
                await self._handle_backend_message(message)
        except ConnectionClosed as exc:
            LOGGER.warning("%s connection lost: %s", self, exc)
            self._fail()
            return
        except Exception:
            LOGGER.exception("%s backend stream failed", self)
            self._fail()
            return

        if self._closed:
            return
        LOGGER.info("%s disconnected from us", self)
        self._backend = None
        self._set_state(AdapterState.CLOSED)
        self._notify(AdapterEvent.CLOSED)

    async def _on_inbound_frame(self, frame: Frame) -> None:
        if not frame.is_binary:
            return
        backend = self._backend
        if self._state is not AdapterState.OPEN or backend is None:
            self.dropped_frames += 1
            if self.dropped_frames == 1:
                LOGGER.debug("%s not open yet (%s), dropping inbound audio", self, self._state.value)
            return

        if self._recorder is not None:
            self._recorder.record_inbound(frame.data)
        try:
            await backend.send(self._encode_audio(frame.data))
        except ConnectionClosed as exc:
            LOGGER.debug("%s dropped %d bytes, backend closed: %s", self, len(frame.data), exc)

    async def _send_backend(self, message: str | bytes) -> None:
        if self._backend is None:
            return
        await self._backend.send(message)

    async def _deliver(self, audio: bytes) -> None:
        """Push translated audio to the outbound leg, in arrival order."""

        if self._recorder is not None:
            self._recorder.record_outbound(audio)
        sink = self._sink
        if sink is None or not sink.is_open:
            return
        await sink.send_bytes(audio)

    async def _close_backend(self) -> None:
        backend, self._backend = self._backend, None
        if backend is None:
            return
        try:
            await backend.close()
        except Exception as exc:
            LOGGER.debug("%s backend close failed: %s", self, exc)

    def _fail(self) -> None:
        if self._closed:
            return
        self._set_state(AdapterState.ERRORED)
        self._notify(AdapterEvent.ERRORED)

    def _set_state(self, state: AdapterState) -> None:
        if state is self._state:
            return
        LOGGER.debug("%s: %s -> %s", self, self._state.value, state.value)
        self._state = state

    def _notify(self, event: AdapterEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(self, event)
            except Exception:
                LOGGER.exception("%s listener failed on %s", self, event.value)
