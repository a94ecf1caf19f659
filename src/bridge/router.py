"""Per-conversation audio switching between the two call legs."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from bridge.errors import CLOSE_NORMAL, LegRejectedError
from bridge.transport import LegConnection
from prompts.loader import TranslationPrompts
from translation.base import AdapterEvent, TranslationAdapter
from translation.factory import AdapterFactory, build_adapter
from translation.vendors import VendorConfig

LOGGER = logging.getLogger(__name__)

ConversationEnded = Callable[[str], Awaitable[None]]


class AudioRouter:
    """Cross-wires one conversation's legs through two adapters.

    The A adapter translates the calling party and plays on the B leg; the B
    adapter translates the called party and plays on the A leg. Audio from a
    leg is never sent back to that same leg.
    """

    def __init__(
        self,
        conversation_id: str,
        vendor: VendorConfig,
        prompts: TranslationPrompts,
        *,
        adapter_factory: AdapterFactory = build_adapter,
        on_ended: ConversationEnded | None = None,
    ) -> None:
        self.conversation_id = conversation_id
        self._vendor = vendor
        self._prompts = prompts
        self._adapter_factory = adapter_factory
        self._on_ended = on_ended
        self.a_adapter: TranslationAdapter | None = None
        self.b_adapter: TranslationAdapter | None = None
        self._a_leg: LegConnection | None = None
        self._b_leg: LegConnection | None = None
        self._closed = False
        self._teardown: asyncio.Task | None = None
        self._discards: set[asyncio.Task] = set()

    @property
    def closed(self) -> bool:
        return self._closed

    async def bind_leg(self, leg: LegConnection, leg_call_id: str) -> bool:
        try:
            if leg_call_id == self.conversation_id:
                self._bind_a_leg(leg)
            else:
                self._bind_b_leg(leg, leg_call_id)
        except LegRejectedError as exc:
            LOGGER.warning("Conversation %s: rejecting leg %s: %s", self.conversation_id, leg_call_id, exc.detail)
            await leg.close(exc.close_code, exc.detail)
            return False

        leg.add_close_handler(self._on_leg_closed)
        return True

    def _bind_a_leg(self, leg: LegConnection) -> None:
        if self._closed:
            raise LegRejectedError("Conversation ended")
        if self._a_leg is not None or self.a_adapter is not None:
            raise LegRejectedError("Leg already bound")

        # Open both backend connections as soon as the caller is connected.
        a_adapter = self._adapter_factory(self._vendor, self._prompts.calling_party, name=f"{self.conversation_id}/A")
        try:
            b_adapter = self._adapter_factory(
                self._vendor, self._prompts.called_party, name=f"{self.conversation_id}/B"
            )
        except Exception:
            self._discard(a_adapter)
            raise

        a_adapter.add_listener(self._on_adapter_event)
        b_adapter.add_listener(self._on_adapter_event)
        a_adapter.set_inbound_source(leg)
        b_adapter.set_outbound_sink(leg)
        self.a_adapter, self.b_adapter = a_adapter, b_adapter
        self._a_leg = leg
        LOGGER.info("Conversation %s: A leg bound, %s adapters created", self.conversation_id, self._vendor.vendor.value)

    def _bind_b_leg(self, leg: LegConnection, leg_call_id: str) -> None:
        if self._closed:
            raise LegRejectedError("Conversation ended")
        if self.a_adapter is None or self.b_adapter is None:
            raise LegRejectedError("Conversation not ready")
        if self._b_leg is not None:
            raise LegRejectedError("Leg already bound")

        self._b_leg = leg
        self.b_adapter.set_inbound_source(leg)
        self.a_adapter.set_outbound_sink(leg)
        LOGGER.info("Conversation %s: B leg %s bound", self.conversation_id, leg_call_id)

    async def close(self) -> None:
        """Tear the conversation down once; later calls wait for that teardown.

        The teardown runs in its own task so a cancelled caller (e.g. the leg
        reader being torn down by the server) cannot leave it half done.
        """

        if self._teardown is None:
            self._closed = True
            self._teardown = asyncio.create_task(self._teardown_all(), name=f"teardown {self.conversation_id}")
        await asyncio.shield(self._teardown)

    async def _teardown_all(self) -> None:
        a_adapter, b_adapter = self.a_adapter, self.b_adapter
        self.a_adapter = self.b_adapter = None
        legs = [self._a_leg, self._b_leg]
        self._a_leg = self._b_leg = None
        try:
            try:
                await self._close_adapter(a_adapter)
            finally:
                await self._close_adapter(b_adapter)
        finally:
            for leg in legs:
                if leg is not None and leg.is_open:
                    await leg.close(CLOSE_NORMAL, "Conversation ended")
            LOGGER.info("Conversation %s: audio router closed", self.conversation_id)

    async def _close_adapter(self, adapter: TranslationAdapter | None) -> None:
        if adapter is None:
            return
        try:
            await adapter.close()
        except Exception:
            LOGGER.exception("Conversation %s: failed to close %s", self.conversation_id, adapter)

    async def _on_leg_closed(self, leg: LegConnection) -> None:
        LOGGER.info("Conversation %s: %s closed", self.conversation_id, leg.label)
        if self._closed:
            return
        if self._on_ended is not None:
            await self._on_ended(self.conversation_id)
        else:
            await self.close()

    def _on_adapter_event(self, adapter: TranslationAdapter, event: AdapterEvent) -> None:
        # The conversation keeps running; only this direction goes silent.
        LOGGER.warning(
            "Conversation %s: %s %s, translation in that direction stopped",
            self.conversation_id,
            adapter,
            event.value,
        )

    def _discard(self, adapter: TranslationAdapter) -> None:
        LOGGER.warning("Conversation %s: discarding %s after a failed A leg bind", self.conversation_id, adapter)
        task = asyncio.create_task(self._close_adapter(adapter))
        self._discards.add(task)
        task.add_done_callback(self._discards.discard)
