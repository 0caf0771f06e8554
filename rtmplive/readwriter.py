"""Buffered reading and writing of protocol integers over a byte stream."""

from __future__ import annotations


class ReadWriter:
    """Buffers a byte stream in both directions.

    The stream is either a socket (``recv``/``send``) or a file-like object
    whose ``read`` returns whatever is available. Errors are sticky: once a
    read or a write fails, every later call raises the same error.
    """

    def __init__(self, stream, buf_size: int) -> None:
        self._buf_size = max(1, buf_size)
        self._rbuf = bytearray()
        self._wbuf = bytearray()
        self.read_error: BaseException | None = None
        self.write_error: BaseException | None = None
        if hasattr(stream, "recv") and hasattr(stream, "send"):
            self._raw_read = stream.recv
            self._raw_write = stream.send
        else:
            self._raw_read = getattr(stream, "read1", None) or stream.read
            self._raw_write = stream.write

    # reading

    def _fill(self, n: int) -> bool:
        while len(self._rbuf) < n:
            chunk = self._raw_read(max(self._buf_size, n - len(self._rbuf)))
            if not chunk:
                return False
            self._rbuf += chunk
        return True

    def _take(self, n: int) -> bytes:
        if self.read_error is not None:
            raise self.read_error
        try:
            filled = self._fill(n)
        except OSError as exc:
            self.read_error = exc
            raise
        if not filled:
            partial = bool(self._rbuf)
            self._rbuf.clear()
            self.read_error = EOFError("unexpected EOF" if partial else "EOF")
            raise self.read_error
        data = bytes(self._rbuf[:n])
        del self._rbuf[:n]
        return data

    def read(self, size: int) -> bytes:
        """Read exactly ``size`` bytes."""
        return self._take(size)

    def read_uint_be(self, n: int) -> int:
        """Read an unsigned big-endian integer of ``n`` bytes."""
        return int.from_bytes(self._take(n), "big")

    def read_uint_le(self, n: int) -> int:
        """Read an unsigned little-endian integer of ``n`` bytes."""
        return int.from_bytes(self._take(n), "little")

    def peek(self, n: int) -> bytes:
        """Return the next ``n`` bytes without consuming them."""
        if not self._fill(n):
            raise EOFError("EOF")
        return bytes(self._rbuf[:n])

    def discard(self, n: int) -> int:
        """Skip ``n`` bytes and return how many were skipped."""
        if not self._fill(n):
            skipped = len(self._rbuf)
            self._rbuf.clear()
            raise EOFError(f"EOF after discarding {skipped} bytes")
        del self._rbuf[:n]
        return n

    # writing

    def _send_all(self, data) -> None:
        view = memoryview(data)
        while view:
            sent = self._raw_write(view)
            if sent is None:
                return
            if sent <= 0:
                raise OSError("short write")
            view = view[sent:]

    def _drain(self) -> None:
        data = bytes(self._wbuf)
        self._wbuf.clear()
        try:
            self._send_all(data)
        except OSError as exc:
            self.write_error = exc
            raise

    def write(self, data) -> int:
        """Buffer ``data`` for sending and return its length."""
        if self.write_error is not None:
            raise self.write_error
        self._wbuf += data
        if len(self._wbuf) >= self._buf_size:
            self._drain()
        return len(data)

    def write_uint_be(self, value: int, n: int) -> None:
        """Write the low ``n`` bytes of ``value`` big-endian."""
        self.write((value & ((1 << (8 * n)) - 1)).to_bytes(n, "big"))

    def write_uint_le(self, value: int, n: int) -> None:
        """Write the low ``n`` bytes of ``value`` little-endian."""
        self.write((value & ((1 << (8 * n)) - 1)).to_bytes(n, "little"))

    def flush(self) -> None:
        """Send everything buffered."""
        if self.write_error is not None:
            raise self.write_error
        if self._wbuf:
            self._drain()