"""An RTMP connection: chunked message reading and writing with flow control."""

from __future__ import annotations

import dataclasses

from .chunk import ChunkStream
from .pio import pack_u32_be, u32_be
from .pool import Pool
from .readwriter import ReadWriter

ID_SET_CHUNK_SIZE = 1
ID_ABORT_MESSAGE = 2
ID_ACK = 3
ID_USER_CONTROL_MESSAGES = 4
ID_WINDOW_ACK_SIZE = 5
ID_SET_PEER_BANDWIDTH = 6

STREAM_BEGIN = 0
STREAM_EOF = 1
STREAM_DRY = 2
SET_BUFFER_LEN = 3
STREAM_IS_RECORDED = 4
PING_REQUEST = 6
PING_RESPONSE = 7

DEFAULT_CHUNK_SIZE = 128
DEFAULT_WINDOW_ACK_SIZE = 2500000

_RECEIVED_WRAP = 0xF0000000
_MASK_32 = 0xFFFFFFFF


def _control_msg(type_id: int, size: int, value: int) -> ChunkStream:
    data = bytearray(size)
    data[:4] = pack_u32_be(value)
    return ChunkStream(
        format=0, csid=2, type_id=type_id, stream_id=0, length=size, data=data
    )


def _user_control_msg(event_type: int, payload_len: int) -> ChunkStream:
    size = payload_len + 2
    data = bytearray(size)
    data[0] = (event_type >> 8) & 0xFF
    data[1] = event_type & 0xFF
    return ChunkStream(
        format=0,
        csid=2,
        type_id=ID_USER_CONTROL_MESSAGES,
        stream_id=1,
        length=size,
        data=data,
    )


class Conn:
    """Reads and writes whole RTMP messages over a socket or byte stream."""

    def __init__(self, stream, buffer_size: int) -> None:
        self._stream = stream
        self.rw = ReadWriter(stream, buffer_size)
        self.pool = Pool()
        self.chunk_size = DEFAULT_CHUNK_SIZE
        self.remote_chunk_size = DEFAULT_CHUNK_SIZE
        self.window_ack_size = DEFAULT_WINDOW_ACK_SIZE
        self.remote_window_ack_size = DEFAULT_WINDOW_ACK_SIZE
        self.received = 0
        self.ack_received = 0
        self._chunks: dict[int, ChunkStream] = {}

    def read(self) -> ChunkStream:
        """Read chunks until one message is complete and return it."""
        while True:
            header = self.rw.read_uint_be(1)
            fmt, csid = header >> 6, header & 0x3F
            chunk = dataclasses.replace(self._chunks.get(csid, ChunkStream()))
            chunk.tmp_format = fmt
            chunk.csid = csid
            chunk.read_chunk(self.rw, self.remote_chunk_size, self.pool)
            self._chunks[csid] = chunk
            if chunk.complete:
                break

        message = dataclasses.replace(chunk)
        self._handle_control_msg(message)
        self._ack(message.length)
        return message

    def write(self, chunk: ChunkStream) -> None:
        """Write a message, adopting a new chunk size if it announces one."""
        if chunk.type_id == ID_SET_CHUNK_SIZE:
            self.chunk_size = u32_be(chunk.data)
        chunk.write_chunk(self.rw, self.chunk_size)

    def flush(self) -> None:
        """Send everything buffered."""
        self.rw.flush()

    def close(self) -> None:
        """Close the underlying stream."""
        close = getattr(self._stream, "close", None)
        if close is not None:
            close()

    def set_timeout(self, seconds: float | None) -> None:
        """Set the I/O timeout of a socket stream; ``None`` removes it."""
        settimeout = getattr(self._stream, "settimeout", None)
        if settimeout is not None:
            settimeout(seconds)

    def new_ack(self, size: int) -> ChunkStream:
        """Build an acknowledgement message."""
        return _control_msg(ID_ACK, 4, size)

    def new_set_chunk_size(self, size: int) -> ChunkStream:
        """Build a set-chunk-size message."""
        return _control_msg(ID_SET_CHUNK_SIZE, 4, size)

    def new_window_ack_size(self, size: int) -> ChunkStream:
        """Build a window-acknowledgement-size message."""
        return _control_msg(ID_WINDOW_ACK_SIZE, 4, size)

    def new_set_peer_bandwidth(self, size: int) -> ChunkStream:
        """Build a set-peer-bandwidth message with the dynamic limit type."""
        chunk = _control_msg(ID_SET_PEER_BANDWIDTH, 5, size)
        chunk.data[4] = 2
        return chunk

    def set_begin(self) -> None:
        """Send a Stream Begin user control event for stream 1."""
        chunk = _user_control_msg(STREAM_BEGIN, 4)
        chunk.data[2:6] = pack_u32_be(1)
        self.write(chunk)

    def set_recorded(self) -> None:
        """Send a Stream Is Recorded user control event for stream 1."""
        chunk = _user_control_msg(STREAM_IS_RECORDED, 4)
        chunk.data[2:6] = pack_u32_be(1)
        self.write(chunk)

    def _handle_control_msg(self, chunk: ChunkStream) -> None:
        if chunk.type_id == ID_SET_CHUNK_SIZE:
            self.remote_chunk_size = u32_be(chunk.data)
        elif chunk.type_id == ID_WINDOW_ACK_SIZE:
            self.remote_window_ack_size = u32_be(chunk.data)

    def _ack(self, size: int) -> None:
        self.received = (self.received + size) & _MASK_32
        self.ack_received = (self.ack_received + size) & _MASK_32
        if self.received >= _RECEIVED_WRAP:
            self.received = 0
        if self.ack_received >= self.remote_window_ack_size:
            self.new_ack(self.ack_received).write_chunk(self.rw, self.chunk_size)
            self.ack_received = 0