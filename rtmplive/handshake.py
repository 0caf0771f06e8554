"""The RTMP handshake, in both its simple and digest-signed forms."""

from __future__ import annotations

import hashlib
import hmac
import os

from .pio import pack_u32_be, u32_be

TIMEOUT = 5.0
HANDSHAKE_SIZE = 1536
RTMP_VERSION = 3
SERVER_VERSION = 0x0D0E0A0D

_KEY_TAIL = bytes(
    [
        0xF0, 0xEE, 0xC2, 0x4A, 0x80, 0x68, 0xBE, 0xE8, 0x2E, 0x00, 0xD0, 0xD1,
        0x02, 0x9E, 0x7E, 0x57, 0x6E, 0xEC, 0x5D, 0x2D, 0x29, 0x80, 0x6F, 0xAB,
        0x93, 0xB8, 0xE6, 0x36, 0xCF, 0xEB, 0x31, 0xAE,
    ]
)
CLIENT_FULL_KEY = b"Genuine Adobe Flash Player 001" + _KEY_TAIL
SERVER_FULL_KEY = b"Genuine Adobe Flash Media Server 001" + _KEY_TAIL
CLIENT_PARTIAL_KEY = CLIENT_FULL_KEY[:30]
SERVER_PARTIAL_KEY = SERVER_FULL_KEY[:36]


class HandshakeError(ConnectionError):
    """The peer sent an invalid handshake."""


def make_digest(key: bytes, src, gap: int) -> bytes:
    """HMAC-SHA256 of ``src``, leaving out the 32 bytes at ``gap`` if positive."""
    mac = hmac.new(key, digestmod=hashlib.sha256)
    if gap <= 0:
        mac.update(src)
    else:
        mac.update(src[:gap])
        mac.update(src[gap + 32 :])
    return mac.digest()


def calc_digest_pos(data, base: int) -> int:
    """Offset of the digest, derived from the four bytes at ``base``."""
    return sum(data[base : base + 4]) % 728 + base + 4


def find_digest(data, key: bytes, base: int) -> int:
    """Return the digest offset if the digest there is valid, else -1."""
    gap = calc_digest_pos(data, base)
    if bytes(data[gap : gap + 32]) != make_digest(key, data, gap):
        return -1
    return gap


def parse_c1(data, peer_key: bytes, key: bytes) -> bytes | None:
    """Validate a signed C1 and return the digest to sign S2 with, or None."""
    pos = find_digest(data, peer_key, 772)
    if pos == -1:
        pos = find_digest(data, peer_key, 8)
        if pos == -1:
            return None
    return make_digest(key, data[pos : pos + 32], -1)


def create_s0s1(timestamp: int, version: int, key: bytes) -> bytes:
    """Build a signed S0+S1 (or C0+C1) block."""
    p1 = bytearray(pack_u32_be(timestamp) + pack_u32_be(version))
    p1 += os.urandom(HANDSHAKE_SIZE - 8)
    gap = calc_digest_pos(p1, 8)
    p1[gap : gap + 32] = make_digest(key, p1, gap)
    return bytes([RTMP_VERSION]) + bytes(p1)


def create_s2(key: bytes) -> bytes:
    """Build a random S2 block signed in its last 32 bytes."""
    block = bytearray(os.urandom(HANDSHAKE_SIZE))
    gap = len(block) - 32
    block[gap:] = make_digest(key, block, gap)
    return bytes(block)


def handshake_client(conn) -> None:
    """Run the client side of the simple handshake on ``conn``."""
    c0c1 = bytes([RTMP_VERSION]) + bytes(HANDSHAKE_SIZE)
    conn.set_timeout(TIMEOUT)
    conn.rw.write(c0c1)
    conn.rw.flush()

    s0s1s2 = conn.rw.read(1 + HANDSHAKE_SIZE * 2)
    c2 = s0s1s2[1 : 1 + HANDSHAKE_SIZE]

    conn.rw.write(c2)
    conn.rw.flush()
    conn.set_timeout(None)


def handshake_server(conn) -> None:
    """Run the server side of the handshake on ``conn``."""
    conn.set_timeout(TIMEOUT)
    c0c1 = conn.rw.read(1 + HANDSHAKE_SIZE)
    if c0c1[0] != RTMP_VERSION:
        raise HandshakeError(f"rtmp: handshake version={c0c1[0]} invalid")
    c1 = c0c1[1:]

    client_time = u32_be(c1, 0)
    client_version = u32_be(c1, 4)

    if client_version != 0:
        digest = parse_c1(c1, CLIENT_PARTIAL_KEY, SERVER_FULL_KEY)
        if digest is None:
            raise HandshakeError("rtmp: handshake server: C1 invalid")
        s0s1 = create_s0s1(client_time, SERVER_VERSION, SERVER_PARTIAL_KEY)
        s2 = create_s2(digest)
    else:
        s0s1 = bytes([RTMP_VERSION]) + bytes(HANDSHAKE_SIZE)
        s2 = c1

    conn.rw.write(s0s1 + s2)
    conn.rw.flush()

    conn.rw.read(HANDSHAKE_SIZE)
    conn.set_timeout(None)