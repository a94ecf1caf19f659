from __future__ import annotations

import itertools
import logging
from pathlib import Path

LOGGER = logging.getLogger(__name__)

_instance_counter = itertools.count(1)


class AudioRecorder:
    """Appends an adapter's raw inbound and outbound PCM to two files.

    Only used when ``DEBUG_AUDIO_FILE`` is enabled; the files can be played
    back with e.g. ``play -t raw -r 24000 -e signed -b 16 -c 1 <file>``.
    """

    def __init__(self, directory: Path, vendor: str) -> None:
        instance_id = next(_instance_counter)
        directory.mkdir(parents=True, exist_ok=True)
        self.inbound_path = directory / f"jambonz-in-audio-{vendor}-{instance_id}.raw"
        self.outbound_path = directory / f"{vendor}-out-audio-{instance_id}.raw"

        # Start every session with empty files.
        self.inbound_path.write_bytes(b"")
        self.outbound_path.write_bytes(b"")
        LOGGER.info("Audio debugging enabled, will log incoming audio to: %s", self.inbound_path)
        LOGGER.info("Audio debugging enabled, will log outgoing audio to: %s", self.outbound_path)

    def record_inbound(self, audio: bytes) -> None:
        self._append(self.inbound_path, audio)

    def record_outbound(self, audio: bytes) -> None:
        self._append(self.outbound_path, audio)

    def finish(self) -> None:
        LOGGER.info("Incoming audio saved to: %s", self.inbound_path)
        LOGGER.info("Outgoing audio saved to: %s", self.outbound_path)

    @staticmethod
    def _append(path: Path, audio: bytes) -> None:
        try:
            with path.open("ab") as fh:
                fh.write(audio)
        except OSError as exc:
            LOGGER.warning("Could not record %d bytes to %s: %s", len(audio), path, exc)
