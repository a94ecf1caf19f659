"""Application-wide configuration loading and validation."""

from __future__ import annotations

import tempfile
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

VendorName = Literal["openai", "ultravox"]


class Settings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    environment: Literal["local", "dev", "prod"] = Field(default="local")
    log_level: str = Field(default="INFO")

    # Listener
    host: str = Field(default="0.0.0.0")
    ws_port: int = Field(default=3000, description="Port for the HTTP/WebSocket listener.")
    public_base_url: str | None = Field(
        default=None,
        description="Public base URL the call-control platform uses to reach us (e.g. https://<ngrok>.ngrok-free.app).",
    )

    # Party languages
    calling_party_language: str | None = Field(default=None, description="Language spoken by the caller (A leg).")
    called_party_language: str | None = Field(default=None, description="Language spoken by the called party (B leg).")

    # Streaming-protocol vendor (OpenAI Realtime)
    openai_api_key: str | None = Field(default=None)
    openai_realtime_url: str = Field(default="wss://api.openai.com/v1/realtime")
    openai_realtime_model: str = Field(default="gpt-4o-realtime-preview-2024-12-17")
    openai_voice: str = Field(default="alloy")
    openai_sample_rate: int = Field(default=24000, description="PCM16 sample rate the realtime API expects.")
    openai_transcription_model: str = Field(default="whisper-1")
    openai_vad_threshold: float = Field(default=0.8, ge=0.0, le=1.0)
    openai_vad_prefix_padding_ms: int = Field(default=300, ge=0)
    openai_vad_silence_duration_ms: int = Field(default=500, ge=0)

    # Call-then-stream vendor (Ultravox)
    ultravox_api_key: str | None = Field(default=None)
    ultravox_api_url: str = Field(default="https://api.ultravox.ai/api/calls")
    ultravox_model: str = Field(default="fixie-ai/ultravox")
    ultravox_voice: str = Field(default="Tanya-English")
    ultravox_sample_rate: int = Field(default=8000)
    ultravox_request_timeout_seconds: float = Field(default=10.0, gt=0.0)

    vendor_precedence: list[VendorName] = Field(
        default_factory=lambda: ["openai", "ultravox"],
        description="Vendors in order of preference; the first one with an API key wins.",
    )

    # Call control
    caller_id_override: str | None = Field(default=None, description="Caller id presented to the B leg.")
    outbound_override: str | None = Field(
        default=None,
        description="Dial target override: phone:<number>, user:<name> or sip:<uri>.",
    )
    lower_volume: str | None = Field(
        default=None,
        description="Lower the parties' own audio so the translation is clear, e.g. -10db (-1db .. -45db).",
    )

    handshake_timeout_seconds: float = Field(
        default=10.0,
        gt=0.0,
        description="How long a new audio-stream connection may take to send its setup frame.",
    )

    # Debugging
    debug_audio_file: bool = Field(
        default=False,
        description="If true, every adapter records its raw inbound/outbound audio to disk.",
    )
    debug_audio_dir: Path = Field(default_factory=lambda: Path(tempfile.gettempdir()))

    @field_validator("vendor_precedence")
    @classmethod
    def ensure_unique_vendors(cls, value: list[str]) -> list[str]:
        if len(set(value)) != len(value):
            raise ValueError("vendor_precedence must not list a vendor twice")
        return value


def require_bridge_config(settings: Settings) -> None:
    """Fail fast when the service cannot translate anything."""

    if not settings.openai_api_key and not settings.ultravox_api_key:
        raise ValueError("OPENAI_API_KEY or ULTRAVOX_API_KEY is required")
    if not settings.calling_party_language:
        raise ValueError("CALLING_PARTY_LANGUAGE is required")
    if not settings.called_party_language:
        raise ValueError("CALLED_PARTY_LANGUAGE is required")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()
