"""RTMP chunk stream: splitting messages into chunks and reassembling them."""

from __future__ import annotations

from dataclasses import dataclass

from .pool import Pool
from .readwriter import ReadWriter

TAG_AUDIO = 8
TAG_VIDEO = 9
TAG_SCRIPTDATAAMF0 = 18
TAG_SCRIPTDATAAMF3 = 0x0F

_MAX_24 = 0xFFFFFF
_MASK_32 = 0xFFFFFFFF


@dataclass
class ChunkStream:
    """State of one chunk stream and the message being carried on it."""

    format: int = 0
    csid: int = 0
    timestamp: int = 0
    length: int = 0
    type_id: int = 0
    stream_id: int = 0
    data: bytes | bytearray | memoryview = b""
    time_delta: int = 0
    extended: bool = False
    index: int = 0
    remain: int = 0
    complete: bool = False
    tmp_format: int = 0

    def _new(self, pool: Pool) -> None:
        self.complete = False
        self.index = 0
        self.remain = self.length
        self.data = pool.get(self.length)

    def _read_time(self, rw: ReadWriter) -> int:
        value = rw.read_uint_be(3)
        if value == _MAX_24:
            self.extended = True
            return rw.read_uint_be(4)
        self.extended = False
        return value

    def write_header(self, rw: ReadWriter) -> None:
        """Write the basic and message headers for the current format."""
        head = self.format << 6
        if self.csid < 64:
            rw.write_uint_be(head | self.csid, 1)
        elif self.csid - 64 < 256:
            rw.write_uint_be(head, 1)
            rw.write_uint_le(self.csid - 64, 1)
        elif self.csid - 64 < 65536:
            rw.write_uint_be(head | 1, 1)
            rw.write_uint_le(self.csid - 64, 2)

        ts = self.timestamp
        if self.format != 3:
            ts = min(self.timestamp, _MAX_24)
            rw.write_uint_be(ts, 3)
            if self.format != 2:
                if self.length > _MAX_24:
                    raise ValueError(f"length={self.length}")
                rw.write_uint_be(self.length, 3)
                rw.write_uint_be(self.type_id, 1)
                if self.format != 1:
                    rw.write_uint_le(self.stream_id, 4)
        if ts >= _MAX_24:
            rw.write_uint_be(self.timestamp, 4)
        if rw.write_error is not None:
            raise rw.write_error

    def write_chunk(self, rw: ReadWriter, chunk_size: int) -> None:
        """Write the whole message as chunks of at most ``chunk_size`` bytes."""
        if self.type_id == TAG_AUDIO:
            self.csid = 4
        elif self.type_id in (TAG_VIDEO, TAG_SCRIPTDATAAMF0, TAG_SCRIPTDATAAMF3):
            self.csid = 6

        total = 0
        for i in range(self.length // chunk_size + 1):
            if total == self.length:
                break
            self.format = 0 if i == 0 else 3
            self.write_header(rw)
            start = i * chunk_size
            piece = self.data[start : start + chunk_size]
            total += len(piece)
            rw.write(piece)

    def read_chunk(self, rw: ReadWriter, chunk_size: int, pool: Pool) -> None:
        """Read one chunk, whose basic header byte has already been consumed.

        ``tmp_format`` and ``csid`` must hold the values from that byte.
        """
        if self.remain != 0 and self.tmp_format != 3:
            raise ValueError(f"invalid remain = {self.remain}")
        if self.csid == 0:
            self.csid = rw.read_uint_le(1) + 64
        elif self.csid == 1:
            self.csid = rw.read_uint_le(2) + 64

        fmt = self.tmp_format
        if fmt == 0:
            self.format = fmt
            self.timestamp = rw.read_uint_be(3)
            self.length = rw.read_uint_be(3)
            self.type_id = rw.read_uint_be(1)
            self.stream_id = rw.read_uint_le(4)
            if self.timestamp == _MAX_24:
                self.timestamp = rw.read_uint_be(4)
                self.extended = True
            else:
                self.extended = False
            self._new(pool)
        elif fmt == 1:
            self.format = fmt
            delta_raw = rw.read_uint_be(3)
            self.length = rw.read_uint_be(3)
            self.type_id = rw.read_uint_be(1)
            if delta_raw == _MAX_24:
                delta_raw = rw.read_uint_be(4)
                self.extended = True
            else:
                self.extended = False
            self.time_delta = delta_raw
            self.timestamp = (self.timestamp + delta_raw) & _MASK_32
            self._new(pool)
        elif fmt == 2:
            self.format = fmt
            delta = self._read_time(rw)
            self.time_delta = delta
            self.timestamp = (self.timestamp + delta) & _MASK_32
            self._new(pool)
        elif fmt == 3:
            if self.remain == 0:
                if self.format == 0:
                    if self.extended:
                        self.timestamp = rw.read_uint_be(4)
                elif self.format in (1, 2):
                    delta = rw.read_uint_be(4) if self.extended else self.time_delta
                    self.timestamp = (self.timestamp + delta) & _MASK_32
                self._new(pool)
            elif self.extended:
                if int.from_bytes(rw.peek(4), "big") == self.timestamp:
                    rw.discard(4)
        else:
            raise ValueError(f"invalid format={self.format}")

        size = min(self.remain, chunk_size)
        piece = rw.read(size)
        self.data[self.index : self.index + size] = piece
        self.index += size
        self.remain -= size
        if self.remain == 0:
            self.complete = True
        if rw.read_error is not None:
            raise rw.read_error