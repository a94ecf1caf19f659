from __future__ import annotations

import pytest

from integrations.jambonz import boost_audio_signal, build_translation_verbs, create_target, to_ws_url


@pytest.mark.parametrize(
    "override, expected",
    [
        (None, [{"type": "phone", "number": "+15550002"}]),
        ("phone:+15559999", [{"type": "phone", "number": "+15559999"}]),
        ("user:alice", [{"type": "user", "name": "alice"}]),
        ("sip:bob@example.com", [{"type": "sip", "sipUri": "sip:bob@example.com"}]),
        ("fax:123", [{"type": "phone", "number": "+15550002"}]),
    ],
)
def test_create_target(override, expected):
    assert create_target("+15550002", override) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        ("-10db", "-10db"),
        ("-45 dB", "-45 dB"),
        ("-1db", "-1db"),
        ("-46db", None),
        ("10db", None),
        ("loud", None),
        (None, None),
    ],
)
def test_boost_audio_signal(value, expected):
    assert boost_audio_signal(value) == expected


def test_to_ws_url():
    assert to_ws_url("https://bridge.example.com/audio-stream") == "wss://bridge.example.com/audio-stream"
    assert to_ws_url("http://localhost:3000/audio-stream") == "ws://localhost:3000/audio-stream"


def test_translation_verbs_tap_both_legs_with_opposite_dub_tracks():
    verbs = build_translation_verbs(
        caller="+15550001",
        called="+15550002",
        audio_stream_url="wss://bridge.example.com/audio-stream",
        sample_rate=24000,
        lower_volume="-12db",
    )

    assert [verb["verb"] for verb in verbs] == ["config", "dub", "config", "dial", "hangup"]

    listen_a = verbs[0]["listen"]
    assert listen_a["enable"] is True
    assert listen_a["url"] == "wss://bridge.example.com/audio-stream"
    assert listen_a["sampleRate"] == 24000
    assert listen_a["bidirectionalAudio"] == {"enabled": True, "streaming": True, "sampleRate": 24000}
    assert "channel" not in listen_a

    assert verbs[1] == {"verb": "dub", "action": "addTrack", "track": "b_translated"}
    assert verbs[2] == {"verb": "config", "boostAudioSignal": "-12db"}

    dial = verbs[3]
    assert dial["callerId"] == "+15550001"
    assert dial["target"] == [{"type": "phone", "number": "+15550002"}]
    assert dial["listen"]["channel"] == 2
    assert "enable" not in dial["listen"]
    assert dial["dub"] == [{"action": "addTrack", "track": "a_translated"}]


def test_caller_id_override_and_no_volume_change():
    verbs = build_translation_verbs(
        caller="+15550001",
        called="+15550002",
        audio_stream_url="ws://localhost/audio-stream",
        sample_rate=8000,
        caller_id_override="+15557777",
    )

    assert [verb["verb"] for verb in verbs] == ["config", "dub", "dial", "hangup"]
    assert verbs[2]["callerId"] == "+15557777"
