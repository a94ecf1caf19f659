"""Call-then-stream adapter for Ultravox.

A call is first created over HTTP; the response carries a ``joinUrl`` that
the adapter then connects to. Audio is exchanged as raw PCM binary frames in
both directions, with occasional JSON control frames from the server.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from bridge.errors import PaymentRequiredError, ProvisioningError
from translation.base import BackendSocket, ConnectFn, TranslationAdapter
from translation.recording import AudioRecorder
from translation.vendors import VendorConfig

LOGGER = logging.getLogger(__name__)


def _response_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        return str(body.get("detail") or body.get("message") or "")
    return ""


class UltravoxAdapter(TranslationAdapter):
    vendor = "ultravox"

    def __init__(
        self,
        config: VendorConfig,
        instructions: str,
        *,
        name: str,
        recorder: AudioRecorder | None = None,
        connect: ConnectFn | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(instructions, name=name, recorder=recorder, connect=connect)
        self._config = config
        self._http_transport = http_transport
        self.join_url: str | None = None

    def call_payload(self) -> dict[str, Any]:
        return {
            "systemPrompt": self.instructions,
            "model": self._config.model,
            "voice": self._config.voice,
            "medium": {
                "serverWebSocket": {
                    "inputSampleRate": self._config.sample_rate,
                    "outputSampleRate": self._config.sample_rate,
                }
            },
        }

    async def _create_call(self) -> str:
        headers = {"Content-Type": "application/json", "X-API-Key": self._config.api_key}
        LOGGER.debug("%s creating call: %s", self, self.call_payload())

        async with httpx.AsyncClient(
            timeout=self._config.request_timeout_seconds,
            transport=self._http_transport,
        ) as client:
            try:
                response = await client.post(self._config.url, json=self.call_payload(), headers=headers)
            except httpx.HTTPError as exc:
                raise ProvisioningError(f"Failed to create Ultravox call: {exc}") from exc

        if response.status_code == 402:
            raise PaymentRequiredError(
                f"Ultravox subscription issue: Payment required. {_response_detail(response)}".strip()
            )
        if response.status_code != 201:
            raise ProvisioningError(
                f"Ultravox Error: Invalid response {response.status_code}: "
                f"{_response_detail(response) or 'No valid joinUrl'}"
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise ProvisioningError("Ultravox returned a non-JSON call body") from exc
        join_url = data.get("joinUrl") if isinstance(data, dict) else None
        if not join_url:
            raise ProvisioningError("No joinUrl returned from Ultravox API")

        LOGGER.info("%s call registered, joinUrl=%s", self, join_url)
        return str(join_url)

    async def _open_backend(self) -> BackendSocket:
        self.join_url = await self._create_call()
        LOGGER.info("%s connecting to Ultravox WebSocket", self)
        return await self._connect(self.join_url, ping_interval=20, ping_timeout=20)

    def _encode_audio(self, audio: bytes) -> bytes:
        return audio

    async def _handle_backend_message(self, message: str | bytes) -> None:
        if isinstance(message, bytes):
            await self._deliver(message)
            return
        try:
            event = json.loads(message)
        except json.JSONDecodeError:
            LOGGER.error("%s could not parse server message: %r", self, message[:200])
            return
        LOGGER.debug("%s server event message: %s", self, event)
