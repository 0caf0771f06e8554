"""Big- and little-endian integer helpers for binary protocol fields."""

from __future__ import annotations


def _field(data: bytes | bytearray | memoryview, offset: int, size: int) -> bytes:
    end = offset + size
    if offset < 0 or end > len(data):
        raise ValueError(
            f"need {size} bytes at offset {offset}, buffer holds {len(data)}"
        )
    return bytes(data[offset:end])


def _big(data, offset: int, size: int, signed: bool = False) -> int:
    return int.from_bytes(_field(data, offset, size), "big", signed=signed)


def _pack(value: int, size: int, order: str = "big") -> bytes:
    return (value & ((1 << (size * 8)) - 1)).to_bytes(size, order)


def u8(data, offset: int = 0) -> int:
    """Read an unsigned byte."""
    return _big(data, offset, 1)


def u16_be(data, offset: int = 0) -> int:
    """Read an unsigned 16-bit big-endian integer."""
    return _big(data, offset, 2)


def i16_be(data, offset: int = 0) -> int:
    """Read a signed 16-bit big-endian integer."""
    return _big(data, offset, 2, signed=True)


def u24_be(data, offset: int = 0) -> int:
    """Read an unsigned 24-bit big-endian integer."""
    return _big(data, offset, 3)


def i24_be(data, offset: int = 0) -> int:
    """Read a signed 24-bit big-endian integer."""
    return _big(data, offset, 3, signed=True)


def u32_be(data, offset: int = 0) -> int:
    """Read an unsigned 32-bit big-endian integer."""
    return _big(data, offset, 4)


def i32_be(data, offset: int = 0) -> int:
    """Read a signed 32-bit big-endian integer."""
    return _big(data, offset, 4, signed=True)


def u32_le(data, offset: int = 0) -> int:
    """Read an unsigned 32-bit little-endian integer."""
    return int.from_bytes(_field(data, offset, 4), "little")


def u40_be(data, offset: int = 0) -> int:
    """Read an unsigned 40-bit big-endian integer."""
    return _big(data, offset, 5)


def u64_be(data, offset: int = 0) -> int:
    """Read an unsigned 64-bit big-endian integer."""
    return _big(data, offset, 8)


def i64_be(data, offset: int = 0) -> int:
    """Read a signed 64-bit big-endian integer."""
    return _big(data, offset, 8, signed=True)


def pack_u8(value: int) -> bytes:
    """Encode the low byte of ``value``."""
    return _pack(value, 1)


def pack_u16_be(value: int) -> bytes:
    """Encode the low 16 bits of ``value`` big-endian."""
    return _pack(value, 2)


def pack_i16_be(value: int) -> bytes:
    """Encode a signed 16-bit value big-endian (two's complement)."""
    return _pack(value, 2)


def pack_u24_be(value: int) -> bytes:
    """Encode the low 24 bits of ``value`` big-endian."""
    return _pack(value, 3)


def pack_i24_be(value: int) -> bytes:
    """Encode a signed 24-bit value big-endian (two's complement)."""
    return _pack(value, 3)


def pack_u32_be(value: int) -> bytes:
    """Encode the low 32 bits of ``value`` big-endian."""
    return _pack(value, 4)


def pack_i32_be(value: int) -> bytes:
    """Encode a signed 32-bit value big-endian (two's complement)."""
    return _pack(value, 4)


def pack_u32_le(value: int) -> bytes:
    """Encode the low 32 bits of ``value`` little-endian."""
    return _pack(value, 4, "little")


def pack_u40_be(value: int) -> bytes:
    """Encode the low 40 bits of ``value`` big-endian."""
    return _pack(value, 5)


def pack_u48_be(value: int) -> bytes:
    """Encode the low 48 bits of ``value`` big-endian."""
    return _pack(value, 6)


def pack_u64_be(value: int) -> bytes:
    """Encode the low 64 bits of ``value`` big-endian."""
    return _pack(value, 8)


def pack_i64_be(value: int) -> bytes:
    """Encode a signed 64-bit value big-endian (two's complement)."""
    return _pack(value, 8)