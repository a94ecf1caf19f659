"""Factory returning the configured translation adapter implementation."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from translation.base import TranslationAdapter
from translation.openai_realtime import OpenAIRealtimeAdapter
from translation.recording import AudioRecorder
from translation.ultravox import UltravoxAdapter
from translation.vendors import Vendor, VendorConfig


class AdapterFactory(Protocol):
    def __call__(self, vendor: VendorConfig, instructions: str, *, name: str) -> TranslationAdapter:  # pragma: no cover
        ...


def build_adapter(
    vendor: VendorConfig,
    instructions: str,
    *,
    name: str,
    debug_audio_dir: Path | None = None,
) -> TranslationAdapter:
    """Instantiate the adapter for `vendor` and start connecting right away."""

    recorder = AudioRecorder(debug_audio_dir, vendor.vendor.value) if debug_audio_dir else None
    if vendor.vendor is Vendor.OPENAI:
        adapter: TranslationAdapter = OpenAIRealtimeAdapter(vendor, instructions, name=name, recorder=recorder)
    elif vendor.vendor is Vendor.ULTRAVOX:
        adapter = UltravoxAdapter(vendor, instructions, name=name, recorder=recorder)
    else:
        raise ValueError(f"Unsupported vendor: {vendor.vendor}")

    adapter.start()
    return adapter
