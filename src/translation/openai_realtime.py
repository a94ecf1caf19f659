"""Streaming-protocol adapter for the OpenAI Realtime API."""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Any

from translation.base import BackendSocket, ConnectFn, TranslationAdapter
from translation.recording import AudioRecorder
from translation.vendors import VendorConfig

LOGGER = logging.getLogger(__name__)


class OpenAIRealtimeAdapter(TranslationAdapter):
    """Relays PCM16 between a call leg and one realtime session.

    Inbound audio is base64-encoded into ``input_audio_buffer.append``
    envelopes; ``response.audio.delta`` events are decoded back to raw PCM for
    the outbound leg. The session is configured once, on ``session.created``.
    """

    vendor = "openai"

    def __init__(
        self,
        config: VendorConfig,
        instructions: str,
        *,
        name: str,
        recorder: AudioRecorder | None = None,
        connect: ConnectFn | None = None,
    ) -> None:
        super().__init__(instructions, name=name, recorder=recorder, connect=connect)
        self._config = config
        self._update_sent = False

    async def _open_backend(self) -> BackendSocket:
        url = f"{self._config.url}?model={self._config.model}"
        LOGGER.info("%s connecting to %s", self, url)
        return await self._connect(
            url,
            additional_headers={
                "Authorization": f"Bearer {self._config.api_key}",
                "OpenAI-Beta": "realtime=v1",
            },
            ping_interval=20,
            ping_timeout=20,
        )

    def _encode_audio(self, audio: bytes) -> str:
        return json.dumps(
            {
                "type": "input_audio_buffer.append",
                "audio": base64.b64encode(audio).decode("ascii"),
            }
        )

    def session_update(self) -> dict[str, Any]:
        session: dict[str, Any] = {
            "modalities": ["audio", "text"],
            "instructions": self.instructions,
            "voice": self._config.voice,
            "input_audio_format": "pcm16",
            "output_audio_format": "pcm16",
            "turn_detection": {
                "type": "server_vad",
                "threshold": self._config.vad_threshold,
                "prefix_padding_ms": self._config.vad_prefix_padding_ms,
                "silence_duration_ms": self._config.vad_silence_duration_ms,
            },
        }
        if self._config.transcription_model:
            session["input_audio_transcription"] = {"model": self._config.transcription_model}
        return {"type": "session.update", "session": session}

    async def _handle_backend_message(self, message: str | bytes) -> None:
        if isinstance(message, bytes):
            LOGGER.debug("%s ignoring %d byte binary frame", self, len(message))
            return
        try:
            event = json.loads(message)
        except json.JSONDecodeError:
            LOGGER.warning("%s received invalid JSON: %r", self, message[:200])
            return

        event_type = str(event.get("type") or "")
        if event_type == "session.created":
            await self._send_initial_update()
        elif event_type == "response.audio.delta":
            await self._process_audio(event.get("delta"))
        elif event_type == "response.audio_transcript.delta":
            pass
        elif event_type == "error":
            LOGGER.warning("%s server error event: %s", self, event.get("error"))
        else:
            LOGGER.debug("%s server event %s", self, event_type)

    async def _send_initial_update(self) -> None:
        if self._update_sent:
            return
        self._update_sent = True
        LOGGER.info("%s sending session.update with instructions: %s", self, self.instructions)
        await self._send_backend(json.dumps(self.session_update()))

    async def _process_audio(self, delta: Any) -> None:
        if not isinstance(delta, str) or not delta:
            return
        try:
            audio = base64.b64decode(delta, validate=True)
        except (binascii.Error, ValueError):
            LOGGER.error("%s received undecodable audio delta", self)
            return
        await self._deliver(audio)
