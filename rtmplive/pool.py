"""A bump allocator that hands out slices of a shared byte buffer."""

from __future__ import annotations

MAX_POOL_SIZE = 500 * 1024


class Pool:
    """Allocates writable views out of a large buffer, starting a fresh
    buffer when the current one is used up."""

    def __init__(self) -> None:
        self._pos = 0
        self._buf = bytearray(MAX_POOL_SIZE)

    def get(self, size: int) -> memoryview:
        """Return a writable view of ``size`` bytes."""
        if size < 0 or size > MAX_POOL_SIZE:
            raise ValueError(f"cannot allocate {size} bytes from pool")
        if MAX_POOL_SIZE - self._pos < size:
            self._pos = 0
            self._buf = bytearray(MAX_POOL_SIZE)
        view = memoryview(self._buf)[self._pos : self._pos + size]
        self._pos += size
        return view