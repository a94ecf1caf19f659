"""Process-wide table of live conversations."""

from __future__ import annotations

import logging

from bridge.router import AudioRouter
from bridge.transport import LegConnection
from prompts.loader import TranslationPrompts
from translation.factory import AdapterFactory, build_adapter
from translation.vendors import VendorConfig

LOGGER = logging.getLogger(__name__)


class SessionRegistry:
    """Maps a conversation's call id to its audio router.

    Only touched from the event loop, so no locking. One instance is created
    per application and handed around explicitly.
    """

    def __init__(self, *, adapter_factory: AdapterFactory = build_adapter) -> None:
        self._adapter_factory = adapter_factory
        self._routers: dict[str, AudioRouter] = {}
        self._closing: dict[str, AudioRouter] = {}

    def __len__(self) -> int:
        return len(self._routers)

    def conversation_ids(self) -> list[str]:
        return list(self._routers)

    def has_conversation(self, call_id: str) -> bool:
        return call_id in self._routers

    def get(self, call_id: str) -> AudioRouter | None:
        return self._routers.get(call_id)

    def start_conversation(self, call_id: str, vendor: VendorConfig, prompts: TranslationPrompts) -> bool:
        """Create the router for a new call; a second start for a live id is rejected."""

        if call_id in self._routers:
            LOGGER.warning("Registry: conversation %s already exists, keeping the existing one", call_id)
            return False

        self._routers[call_id] = AudioRouter(
            call_id,
            vendor,
            prompts,
            adapter_factory=self._adapter_factory,
            on_ended=self.end_conversation,
        )
        LOGGER.info("Registry: added session for call_sid %s, there are %d sessions", call_id, len(self._routers))
        return True

    async def bind_leg(self, leg: LegConnection, call_id: str, parent_call_id: str | None = None) -> bool:
        target = parent_call_id or call_id
        router = self._routers.get(target)
        if router is None:
            LOGGER.warning("Registry: no conversation %s for leg %s", target, call_id)
            return False
        try:
            return await router.bind_leg(leg, call_id)
        except Exception:
            LOGGER.exception("Registry: binding leg %s to conversation %s failed", call_id, target)
            return False

    async def end_conversation(self, call_id: str) -> None:
        # Remove first so a racing teardown finds nothing new to start.
        router = self._routers.pop(call_id, None)
        if router is None:
            # A cancelled caller may have left this teardown still running.
            router = self._closing.get(call_id)
            if router is None:
                return
        else:
            self._closing[call_id] = router
            LOGGER.info(
                "Registry: removed session for call_sid %s, there are %d sessions", call_id, len(self._routers)
            )

        try:
            await router.close()
        except Exception:
            LOGGER.exception("Registry: error closing conversation %s", call_id)
        self._closing.pop(call_id, None)

    async def safe_end(self, call_id: str) -> None:
        """Teardown for external triggers: never raises."""

        try:
            if self.has_conversation(call_id) or call_id in self._closing:
                await self.end_conversation(call_id)
        except Exception:
            LOGGER.exception("Registry: error safely closing session %s", call_id)

    async def close_all(self) -> None:
        for call_id in [*self._routers, *self._closing]:
            await self.safe_end(call_id)
