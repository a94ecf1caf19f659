"""Classify new audio-stream connections before they reach the registry.

The platform opens one connection per leg and identifies it with a single
JSON text frame: ``{"callSid": "...", "parentCallSid": "..."}``. Anything
else, or nothing within the setup window, gets the connection closed.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from bridge.errors import (
    CLOSE_POLICY_VIOLATION,
    HandshakeError,
    ProtocolViolationError,
    SetupTimeoutError,
)
from bridge.transport import Frame, LegConnection, LegDisconnected

if TYPE_CHECKING:  # pragma: no cover
    from bridge.registry import SessionRegistry

LOGGER = logging.getLogger(__name__)

DEFAULT_SETUP_TIMEOUT_SECONDS = 10.0


class HandshakeFrame(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    call_sid: str = Field(alias="callSid", min_length=1)
    parent_call_sid: str | None = Field(default=None, alias="parentCallSid")


def parse_handshake_frame(frame: Frame) -> HandshakeFrame:
    if frame.is_binary:
        raise ProtocolViolationError("Binary frame received before setup data")
    try:
        payload = json.loads(frame.data)
    except json.JSONDecodeError as exc:
        raise ProtocolViolationError() from exc
    if not isinstance(payload, dict):
        raise ProtocolViolationError()
    try:
        return HandshakeFrame.model_validate(payload)
    except ValidationError as exc:
        raise ProtocolViolationError() from exc


class HandshakeGate:
    def __init__(
        self,
        registry: SessionRegistry,
        *,
        timeout_seconds: float = DEFAULT_SETUP_TIMEOUT_SECONDS,
    ) -> None:
        self._registry = registry
        self._timeout = timeout_seconds

    async def admit(self, leg: LegConnection) -> bool:
        """Read the setup frame and hand the leg to the registry.

        Returns True only when the leg was bound to a conversation; in every
        other case the leg has been closed (or was already gone).
        """

        try:
            frame = await asyncio.wait_for(leg.receive_frame(), timeout=self._timeout)
        except asyncio.TimeoutError:
            await self._reject(leg, SetupTimeoutError())
            return False
        except LegDisconnected:
            LOGGER.info("Audio-stream connection went away before setup")
            return False

        try:
            setup = parse_handshake_frame(frame)
        except HandshakeError as exc:
            preview = frame.data[:200] if not frame.is_binary else f"<{len(frame.data)} bytes>"
            LOGGER.error("Invalid setup frame received: %s (%r)", exc.detail, preview)
            await self._reject(leg, exc)
            return False

        leg.label = f"leg {setup.call_sid}"
        bound = await self._registry.bind_leg(leg, setup.call_sid, setup.parent_call_sid)
        if not bound:
            await leg.close(CLOSE_POLICY_VIOLATION, "Unknown conversation")
        return bound

    @staticmethod
    async def _reject(leg: LegConnection, error: HandshakeError) -> None:
        if isinstance(error, SetupTimeoutError):
            LOGGER.warning("Closing audio-stream connection due to setup timeout")
        await leg.close(error.close_code, error.default_detail)
