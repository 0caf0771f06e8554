"""Per-connection bandwidth accounting for audio and video data."""

from __future__ import annotations

import time
from dataclasses import dataclass

SAVE_STATICS_INTERVAL = 5000


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


@dataclass
class BandwidthStats:
    """Byte counters and rates, recomputed every few seconds."""

    stream_id: int = 0
    video_bytes: int = 0
    last_video_bytes: int = 0
    video_speed: int = 0
    audio_bytes: int = 0
    last_audio_bytes: int = 0
    audio_speed: int = 0
    last_timestamp: int = 0

    def save(
        self, stream_id: int, length: int, is_video: bool, now_ms: int | None = None
    ) -> None:
        """Count ``length`` bytes and refresh the rates when due.

        Rates are in kilobits per second.
        """
        if now_ms is None:
            now_ms = _now_ms()
        self.stream_id = stream_id
        if is_video:
            self.video_bytes += length
        else:
            self.audio_bytes += length

        if self.last_timestamp == 0:
            self.last_timestamp = now_ms
        elif now_ms - self.last_timestamp >= SAVE_STATICS_INTERVAL:
            seconds = (now_ms - self.last_timestamp) // 1000
            self.video_speed = (
                (self.video_bytes - self.last_video_bytes) * 8 // seconds // 1000
            )
            self.audio_speed = (
                (self.audio_bytes - self.last_audio_bytes) * 8 // seconds // 1000
            )
            self.last_video_bytes = self.video_bytes
            self.last_audio_bytes = self.audio_bytes
            self.last_timestamp = now_ms