"""HLS segment bookkeeping: timestamp alignment, audio batching, the
segment cache and playlist generation, and request path parsing."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone

SYNC_MS = 2
H264_DEFAULT_HZ = 90
VIDEO_HZ = 90000
AAC_SAMPLE_LEN = 1024
SEGMENT_DURATION_MS = 3000

CACHE_MAX_FRAMES = 6
AUDIO_CACHE_LEN = 10 * 1024

CROSSDOMAIN_XML = b"""<?xml version="1.0" ?>
<cross-domain-policy>
\t<allow-access-from domain="*" />
\t<allow-http-request-headers-from domain="*" headers="*"/>
</cross-domain-policy>"""


class NoPublisherError(LookupError):
    """No stream is being published under the requested key."""

    def __init__(self, message: str = "no publisher") -> None:
        super().__init__(message)


class NoKeyError(KeyError):
    """The segment cache holds no item under the requested key."""

    def __init__(self, key: str = "") -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return "no key for cache"


@dataclass
class Align:
    """Snaps audio timestamps onto an evenly spaced frame grid."""

    frame_num: int = 0
    frame_base: int = 0

    def align(self, dts: int, inc: int) -> int:
        """Return ``dts`` snapped to the grid, or restart the grid at it."""
        estimated = self.frame_base + self.frame_num * inc
        if abs(estimated - dts) <= SYNC_MS * H264_DEFAULT_HZ:
            self.frame_num += 1
            return estimated
        self.frame_num = 1
        self.frame_base = dts
        return dts


@dataclass
class AudioCache:
    """Collects several audio frames so they can be muxed together."""

    sound_format: int = 0
    num: int = 0
    offset: int = 0
    pts: int = 0
    buf: bytearray = field(default_factory=bytearray)

    def cache(self, data, pts: int) -> None:
        """Append a frame; the first frame of a batch fixes its pts."""
        if self.num == 0:
            self.offset = 0
            self.pts = pts
            self.buf.clear()
        self.buf += data
        self.offset += len(data)
        self.num += 1

    def get_frame(self) -> tuple[int, int, bytes]:
        """Return ``(length, pts, data)`` of the batch and start a new one."""
        self.num = 0
        return self.offset, self.pts, bytes(self.buf)


@dataclass
class TSItem:
    """One finished transport stream segment."""

    name: str
    seq_num: int
    duration: int
    created: datetime
    data: bytes

    @classmethod
    def create(cls, name: str, duration: int, seq_num: int, data) -> "TSItem":
        """Build a segment holding a copy of ``data``, stamped with now."""
        return cls(
            name=name,
            seq_num=seq_num,
            duration=duration,
            created=datetime.now(timezone.utc),
            data=bytes(data),
        )


class TSCacheItem:
    """The most recent segments of one stream, oldest first."""

    def __init__(self, id: str, max_items: int) -> None:
        if max_items <= 0:
            raise ValueError(f"max_items must be positive, got {max_items}")
        self.id = id
        self.max_items = max_items
        self._order: deque[str] = deque()
        self._items: dict[str, TSItem] = {}
        self._lock = threading.RLock()

    def gen_m3u8_playlist(self) -> bytes:
        """Render the live playlist for the cached segments."""
        with self._lock:
            entries = [self._items[k] for k in self._order if k in self._items]
        max_duration = max((item.duration for item in entries), default=0)
        seq = entries[0].seq_num if entries else 0
        body = "".join(
            f"#EXTINF:{item.duration / 1000:.3f},\n/hls{item.name}\n"
            for item in entries
        )
        header = (
            "#EXTM3U\n#EXT-X-VERSION:3\n#EXT-X-ALLOW-CACHE:NO\n"
            f"#EXT-X-TARGETDURATION:{max_duration // 1000 + 1}\n"
            f"#EXT-X-MEDIA-SEQUENCE:{seq}\n\n"
        )
        return (header + body).encode()

    def set_item(self, key: str, item: TSItem) -> None:
        """Store a segment, evicting the oldest one when full."""
        with self._lock:
            if len(self._order) == self.max_items:
                oldest = self._order.popleft()
                self._items.pop(oldest, None)
            self._items[key] = item
            self._order.append(key)

    def get_item(self, key: str) -> TSItem:
        """Return the segment stored under ``key``."""
        with self._lock:
            try:
                return self._items[key]
            except KeyError:
                raise NoKeyError(key) from None


@dataclass
class SegmentStatus:
    """Timestamp span and flags of the segment being built."""

    has_video: bool = False
    seq_id: int = 0
    created_at: datetime | None = None
    seg_begin_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    has_set_first_ts: bool = False
    first_timestamp: int = 0
    last_timestamp: int = 0

    def update(self, is_video: bool, timestamp: int) -> None:
        """Record a packet's timestamp."""
        if is_video:
            self.has_video = True
        if not self.has_set_first_ts:
            self.has_set_first_ts = True
            self.first_timestamp = timestamp
        self.last_timestamp = timestamp

    def reset_and_new(self) -> None:
        """Start tracking the next segment."""
        self.seq_id += 1
        self.has_video = False
        self.created_at = datetime.now(timezone.utc)
        self.has_set_first_ts = False

    def duration_ms(self) -> int:
        """Milliseconds between the first and last recorded timestamps."""
        return self.last_timestamp - self.first_timestamp


def _extension(path: str) -> str:
    last = path.rsplit("/", 1)[-1]
    dot = last.rfind(".")
    return last[dot:] if dot >= 0 else ""


def parse_m3u8_key(path: str) -> str:
    """Stream key of a playlist path such as ``/app/name.m3u8``."""
    path = path.lstrip("/")
    ext = _extension(path)
    if not ext:
        raise ValueError(f"invalid path={path}")
    return path.split(ext)[0]


def parse_ts_key(path: str) -> str:
    """Stream key of a segment path such as ``/app/name/123.ts``."""
    path = path.lstrip("/")
    parts = path.split("/", 2)
    if len(parts) != 3:
        raise ValueError(f"invalid path={path}")
    return f"{parts[0]}/{parts[1]}"