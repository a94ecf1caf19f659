"""jambonz call-control helpers.

Builds the verb list that taps both legs of a call onto our audio-stream
WebSocket and adds the dub tracks the translated audio is played on.
"""

from __future__ import annotations

import logging
import re
from typing import Any

LOGGER = logging.getLogger(__name__)

AUDIO_STREAM_PATH = "/audio-stream"

_LOWER_VOLUME_RE = re.compile(r"^-([1-9]|[1-3][0-9]|4[0-5])\s*db$", re.IGNORECASE)


def create_target(to: str, outbound_override: str | None = None) -> list[dict[str, str]]:
    """Return the dial target for the called party.

    `outbound_override` may redirect every call to ``phone:<number>``,
    ``user:<name>`` or ``sip:<uri>``; anything else falls back to `to`.
    """

    if outbound_override:
        if outbound_override.startswith("phone:"):
            return [{"type": "phone", "number": outbound_override.removeprefix("phone:")}]
        if outbound_override.startswith("user:"):
            return [{"type": "user", "name": outbound_override.removeprefix("user:")}]
        if outbound_override.startswith("sip:"):
            return [{"type": "sip", "sipUri": outbound_override}]
        LOGGER.info("Unrecognized OUTBOUND_OVERRIDE format: %s, using default target", outbound_override)

    return [{"type": "phone", "number": to}]


def boost_audio_signal(lower_volume: str | None) -> str | None:
    """Validate a LOWER_VOLUME value such as ``-10db``; None when unusable."""

    if not lower_volume:
        return None
    if not _LOWER_VOLUME_RE.match(lower_volume.strip()):
        LOGGER.warning("Ignoring LOWER_VOLUME=%r, expected -1db .. -45db", lower_volume)
        return None
    return lower_volume.strip()


def to_ws_url(http_url: str) -> str:
    if http_url.startswith("https://"):
        return "wss://" + http_url.removeprefix("https://")
    if http_url.startswith("http://"):
        return "ws://" + http_url.removeprefix("http://")
    return http_url


def _listen(url: str, sample_rate: int, *, channel: int | None = None) -> dict[str, Any]:
    listen: dict[str, Any] = {
        "url": url,
        "mixType": "mono",
        "sampleRate": sample_rate,
        "bidirectionalAudio": {
            "enabled": True,
            "streaming": True,
            "sampleRate": sample_rate,
        },
    }
    if channel is not None:
        # Only stream the called party's audio on the B leg socket.
        listen["channel"] = channel
    return listen


def build_translation_verbs(
    *,
    caller: str,
    called: str,
    audio_stream_url: str,
    sample_rate: int,
    caller_id_override: str | None = None,
    outbound_override: str | None = None,
    lower_volume: str | None = None,
) -> list[dict[str, Any]]:
    """Verbs for a translated call: tap A, dial B with its own tap, then hang up."""

    verbs: list[dict[str, Any]] = [
        # Background listen on the A leg; "enable" starts it.
        {"verb": "config", "listen": {"enable": True, **_listen(audio_stream_url, sample_rate)}},
        # Plays the called party's translated speech to the caller.
        {"verb": "dub", "action": "addTrack", "track": "b_translated"},
    ]

    boost = boost_audio_signal(lower_volume)
    if boost:
        verbs.append({"verb": "config", "boostAudioSignal": boost})

    verbs.append(
        {
            "verb": "dial",
            "callerId": caller_id_override or caller,
            "target": create_target(called, outbound_override),
            "listen": _listen(audio_stream_url, sample_rate, channel=2),
            "dub": [{"action": "addTrack", "track": "a_translated"}],
        }
    )
    verbs.append({"verb": "hangup"})
    return verbs


def hangup_verbs() -> list[dict[str, Any]]:
    return [{"verb": "hangup"}]
