"""Vendor selection: which translation backend a conversation uses."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from bridge.errors import VendorNotConfiguredError
from config.settings import Settings

LOGGER = logging.getLogger(__name__)


class Vendor(str, Enum):
    OPENAI = "openai"
    ULTRAVOX = "ultravox"


@dataclass(frozen=True)
class VendorConfig:
    vendor: Vendor
    api_key: str
    url: str
    model: str
    voice: str
    sample_rate: int
    transcription_model: str | None = None
    vad_threshold: float = 0.8
    vad_prefix_padding_ms: int = 300
    vad_silence_duration_ms: int = 500
    request_timeout_seconds: float = 10.0


def _openai_config(settings: Settings) -> VendorConfig | None:
    if not settings.openai_api_key:
        return None
    return VendorConfig(
        vendor=Vendor.OPENAI,
        api_key=settings.openai_api_key,
        url=settings.openai_realtime_url,
        model=settings.openai_realtime_model,
        voice=settings.openai_voice,
        sample_rate=settings.openai_sample_rate,
        transcription_model=settings.openai_transcription_model,
        vad_threshold=settings.openai_vad_threshold,
        vad_prefix_padding_ms=settings.openai_vad_prefix_padding_ms,
        vad_silence_duration_ms=settings.openai_vad_silence_duration_ms,
    )


def _ultravox_config(settings: Settings) -> VendorConfig | None:
    if not settings.ultravox_api_key:
        return None
    return VendorConfig(
        vendor=Vendor.ULTRAVOX,
        api_key=settings.ultravox_api_key,
        url=settings.ultravox_api_url,
        model=settings.ultravox_model,
        voice=settings.ultravox_voice,
        sample_rate=settings.ultravox_sample_rate,
        request_timeout_seconds=settings.ultravox_request_timeout_seconds,
    )


_BUILDERS = {
    Vendor.OPENAI: _openai_config,
    Vendor.ULTRAVOX: _ultravox_config,
}


def resolve_vendor(settings: Settings) -> VendorConfig:
    """Return the first vendor in `vendor_precedence` that has credentials."""

    for name in settings.vendor_precedence:
        config = _BUILDERS[Vendor(name)](settings)
        if config is not None:
            return config
    raise VendorNotConfiguredError()
