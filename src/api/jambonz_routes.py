"""jambonz call-control webhooks.

This module provides:
- the new-call webhook, which starts a conversation and answers with the verbs
  that tap both legs onto the audio-stream WebSocket,
- the call-status webhook, which ends the conversation when the call is over.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request, Response

from api.dependencies import get_registry
from api.schemas import CallStatusWebhook, CallWebhook
from bridge.errors import VendorNotConfiguredError
from bridge.registry import SessionRegistry
from config.settings import Settings, get_settings, require_bridge_config
from integrations.jambonz import AUDIO_STREAM_PATH, build_translation_verbs, hangup_verbs, to_ws_url
from prompts.loader import build_translation_prompts
from translation.vendors import resolve_vendor

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/jambonz", tags=["jambonz"])

TERMINAL_CALL_STATUSES = frozenset({"completed", "failed", "busy", "no-answer"})


def _audio_stream_url(request: Request, settings: Settings) -> str:
    if settings.public_base_url:
        return to_ws_url(f"{settings.public_base_url.rstrip('/')}{AUDIO_STREAM_PATH}")
    # Fallback to request host. This may not work behind proxies; prefer PUBLIC_BASE_URL.
    return to_ws_url(str(request.base_url).rstrip("/") + AUDIO_STREAM_PATH)


@router.post("/call")
async def jambonz_call_webhook(
    payload: CallWebhook,
    request: Request,
    registry: SessionRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings),
) -> list[dict[str, Any]]:
    LOGGER.info("New incoming call %s from %s to %s", payload.call_sid, payload.from_, payload.to)

    try:
        require_bridge_config(settings)
        vendor = resolve_vendor(settings)
        prompts = build_translation_prompts(settings.calling_party_language, settings.called_party_language)
    except (ValueError, VendorNotConfiguredError) as exc:
        LOGGER.error("Cannot translate call %s: %s", payload.call_sid, exc)
        return hangup_verbs()

    if not registry.start_conversation(payload.call_sid, vendor, prompts):
        LOGGER.warning("Call webhook repeated for %s", payload.call_sid)

    return build_translation_verbs(
        caller=payload.from_,
        called=payload.to,
        audio_stream_url=_audio_stream_url(request, settings),
        sample_rate=vendor.sample_rate,
        caller_id_override=settings.caller_id_override,
        outbound_override=settings.outbound_override,
        lower_volume=settings.lower_volume,
    )


@router.post("/call-status")
async def jambonz_call_status(
    payload: CallStatusWebhook,
    registry: SessionRegistry = Depends(get_registry),
) -> Response:
    LOGGER.info("Call %s status %s", payload.call_sid, payload.call_status)
    if payload.call_status in TERMINAL_CALL_STATUSES:
        await registry.safe_end(payload.call_sid)
    return Response(status_code=204)
