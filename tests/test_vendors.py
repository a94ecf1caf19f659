from __future__ import annotations

import asyncio

import pytest

from bridge.errors import VendorNotConfiguredError
from config.settings import Settings, require_bridge_config
from translation.factory import build_adapter
from translation.openai_realtime import OpenAIRealtimeAdapter
from translation.ultravox import UltravoxAdapter
from translation.vendors import Vendor, resolve_vendor


def _settings(**overrides) -> Settings:
    values = {
        "openai_api_key": None,
        "ultravox_api_key": None,
        "calling_party_language": "English",
        "called_party_language": "Spanish",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_openai_wins_when_both_vendors_are_configured():
    vendor = resolve_vendor(_settings(openai_api_key="sk-1", ultravox_api_key="uv-1"))
    assert vendor.vendor is Vendor.OPENAI
    assert vendor.api_key == "sk-1"
    assert vendor.sample_rate == 24000


def test_precedence_can_be_reordered():
    settings = _settings(
        openai_api_key="sk-1",
        ultravox_api_key="uv-1",
        vendor_precedence=["ultravox", "openai"],
    )
    vendor = resolve_vendor(settings)
    assert vendor.vendor is Vendor.ULTRAVOX
    assert vendor.sample_rate == 8000


def test_falls_back_to_the_configured_vendor():
    vendor = resolve_vendor(_settings(ultravox_api_key="uv-1"))
    assert vendor.vendor is Vendor.ULTRAVOX
    assert vendor.voice == "Tanya-English"


def test_no_vendor_configured_raises():
    with pytest.raises(VendorNotConfiguredError):
        resolve_vendor(_settings())


def test_duplicate_vendors_in_precedence_are_rejected():
    with pytest.raises(ValueError):
        _settings(vendor_precedence=["openai", "openai"])


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({}, "OPENAI_API_KEY or ULTRAVOX_API_KEY"),
        ({"openai_api_key": "sk-1", "calling_party_language": None}, "CALLING_PARTY_LANGUAGE"),
        ({"openai_api_key": "sk-1", "called_party_language": None}, "CALLED_PARTY_LANGUAGE"),
    ],
)
def test_require_bridge_config_reports_missing_values(overrides, message):
    with pytest.raises(ValueError, match=message):
        require_bridge_config(_settings(**overrides))


@pytest.mark.parametrize(
    "settings, adapter_type",
    [
        (_settings(openai_api_key="sk-1"), OpenAIRealtimeAdapter),
        (_settings(ultravox_api_key="uv-1"), UltravoxAdapter),
    ],
)
def test_build_adapter_picks_the_vendor_implementation(settings, adapter_type, tmp_path):
    async def scenario():
        adapter = build_adapter(resolve_vendor(settings), "Translate.", name="CA1/A", debug_audio_dir=tmp_path)
        # Close before the background connection gets a chance to run.
        await adapter.close()
        return adapter

    adapter = asyncio.run(scenario())
    assert isinstance(adapter, adapter_type)
    assert len(list(tmp_path.glob("*.raw"))) == 2
