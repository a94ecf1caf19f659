"""In-memory stand-ins for call legs and translation backends."""

from __future__ import annotations

import asyncio
from typing import Any

from bridge.transport import Frame, LegConnection, LegDisconnected
from prompts.loader import TranslationPrompts
from translation.base import TranslationAdapter
from translation.vendors import Vendor, VendorConfig

OPENAI_VENDOR = VendorConfig(
    vendor=Vendor.OPENAI,
    api_key="sk-test",
    url="wss://realtime.example.com/v1/realtime",
    model="gpt-4o-realtime-preview-2024-12-17",
    voice="alloy",
    sample_rate=24000,
    transcription_model="whisper-1",
)

ULTRAVOX_VENDOR = VendorConfig(
    vendor=Vendor.ULTRAVOX,
    api_key="uv-test",
    url="https://ultravox.example.com/api/calls",
    model="fixie-ai/ultravox",
    voice="Tanya-English",
    sample_rate=8000,
)

PROMPTS = TranslationPrompts(
    calling_party="Translate English to Spanish.",
    called_party="Translate Spanish to English.",
)


class FakeLeg(LegConnection):
    def __init__(self, label: str = "fake leg") -> None:
        super().__init__(label)
        self._incoming: asyncio.Queue[Frame | None] = asyncio.Queue()
        self.sent: list[bytes] = []
        self.close_calls: list[tuple[int, str]] = []

    def feed(self, data: bytes | str) -> None:
        self._incoming.put_nowait(Frame(data))

    def disconnect(self) -> None:
        self._incoming.put_nowait(None)

    async def receive_frame(self) -> Frame:
        if self._closed:
            raise LegDisconnected()
        frame = await self._incoming.get()
        if frame is None:
            raise LegDisconnected()
        return frame

    async def _send_bytes(self, data: bytes) -> None:
        self.sent.append(data)

    async def _close_transport(self, code: int, reason: str) -> None:
        self.close_calls.append((code, reason))
        self._incoming.put_nowait(None)


class FakeBackend:
    """Scripted backend socket; with `echo` every sent message comes straight back."""

    def __init__(self, *, echo: bool = False) -> None:
        self.echo = echo
        self.sent: list[str | bytes] = []
        self.close_count = 0
        self._queue: asyncio.Queue[Any] = asyncio.Queue()

    def push(self, message: str | bytes) -> None:
        self._queue.put_nowait(message)

    def finish(self) -> None:
        self._queue.put_nowait(None)

    def fail(self, exc: BaseException) -> None:
        self._queue.put_nowait(exc)

    async def send(self, message: str | bytes) -> None:
        self.sent.append(message)
        if self.echo:
            self.push(message)

    async def close(self) -> None:
        self.close_count += 1
        self.finish()

    def __aiter__(self) -> FakeBackend:
        return self

    async def __anext__(self) -> str | bytes:
        item = await self._queue.get()
        if item is None:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            raise item
        return item


class FakeConnect:
    def __init__(self, backend: FakeBackend | None = None, *, error: Exception | None = None) -> None:
        self.backend = backend or FakeBackend()
        self.error = error
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def __call__(self, url: str, **kwargs: Any) -> FakeBackend:
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.backend


class EchoAdapter(TranslationAdapter):
    """Adapter whose 'translation' returns the input audio unchanged."""

    vendor = "echo"

    def __init__(self, instructions: str, *, name: str, close_gate: asyncio.Event | None = None) -> None:
        super().__init__(instructions, name=name)
        self.backend = FakeBackend(echo=True)
        self.close_count = 0
        self.close_gate = close_gate

    async def close(self) -> None:
        self.close_count += 1
        if self.close_gate is not None:
            await self.close_gate.wait()
        await super().close()

    async def _open_backend(self) -> FakeBackend:
        return self.backend

    def _encode_audio(self, audio: bytes) -> bytes:
        return audio

    async def _handle_backend_message(self, message: str | bytes) -> None:
        if isinstance(message, bytes):
            await self._deliver(message)


class EchoAdapterFactory:
    def __init__(self, *, close_gate: asyncio.Event | None = None, fail_on: str | None = None) -> None:
        self.created: list[EchoAdapter] = []
        self.close_gate = close_gate
        self.fail_on = fail_on

    def __call__(self, vendor: VendorConfig, instructions: str, *, name: str) -> EchoAdapter:
        if name == self.fail_on:
            self.fail_on = None
            raise RuntimeError(f"cannot create adapter {name}")
        adapter = EchoAdapter(instructions, name=name, close_gate=self.close_gate)
        adapter.start()
        self.created.append(adapter)
        return adapter


async def wait_until(predicate, timeout: float = 1.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.001)
