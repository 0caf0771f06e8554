"""Caches that let a newly joined player start from the current stream state.

Packets are duck-typed: they carry ``is_video``, ``is_audio``,
``is_metadata`` and ``header``. A video header offers ``is_key_frame()`` and
``is_seq()``; an audio header offers ``sound_format()`` and
``aac_packet_type()``. Writers offer ``write(packet)``, which raises on
failure.
"""

from __future__ import annotations

import copy

SOUND_AAC = 10
AAC_SEQHDR = 0
MAX_GOP_CAP = 1024

SET_DATA_FRAME = "@setDataFrame"
ON_META_DATA = "onMetaData"


class GopTooBigError(Exception):
    """A group of pictures holds more packets than the cache allows."""

    def __init__(self, message: str = "gop to big") -> None:
        super().__init__(message)


class _Gop:
    """The packets of one group of pictures, starting at a key frame."""

    def __init__(self) -> None:
        self.packets: list = []

    def reset(self) -> None:
        self.packets.clear()

    def write(self, packet) -> None:
        if len(self.packets) >= MAX_GOP_CAP:
            raise GopTooBigError()
        self.packets.append(packet)

    def send(self, writer) -> None:
        for packet in self.packets:
            writer.write(packet)


class GopCache:
    """Keeps the last ``num`` groups of pictures in a ring."""

    def __init__(self, num: int) -> None:
        if num <= 0:
            raise ValueError(f"gop count must be positive, got {num}")
        self.count = num
        self.num = 0
        self.start = False
        self.next_index = 0
        self._gops: list[_Gop | None] = [None] * num

    def _write_to_array(self, packet, start_new: bool) -> None:
        if start_new:
            gop = self._gops[self.next_index]
            if gop is None:
                gop = _Gop()
                self.num += 1
                self._gops[self.next_index] = gop
            else:
                gop.reset()
            self.next_index = (self.next_index + 1) % self.count
        else:
            gop = self._gops[(self.next_index - 1) % self.count]
        try:
            gop.write(packet)
        except GopTooBigError:
            # An oversized group keeps its first packets; the rest are dropped.
            pass

    def write(self, packet) -> None:
        """Add a packet; a non-sequence key frame opens a new group."""
        starts_group = False
        if packet.is_video:
            header = packet.header
            starts_group = header.is_key_frame() and not header.is_seq()
        if starts_group or self.start:
            self.start = True
            self._write_to_array(packet, starts_group)

    def send(self, writer) -> None:
        """Write every cached group to ``writer``, oldest first."""
        for k in range(self.num):
            gop = self._gops[(self.next_index - self.num + k) % self.count]
            gop.send(writer)


class SpecialCache:
    """Holds the latest packet of one kind, such as a sequence header."""

    def __init__(self) -> None:
        self.full = False
        self.packet = None

    def write(self, packet) -> None:
        """Remember ``packet``, replacing any earlier one."""
        self.packet = packet
        self.full = True

    def send(self, writer) -> None:
        """Write a copy of the remembered packet, if any."""
        if not self.full:
            return
        # Consumers may rewrite the packet's data, so each gets its own copy.
        writer.write(copy.copy(self.packet))


class Cache:
    """Metadata, sequence headers and recent groups of pictures."""

    def __init__(self, gop_num: int = 1) -> None:
        self.gop = GopCache(gop_num)
        self.video_seq = SpecialCache()
        self.audio_seq = SpecialCache()
        self.metadata = SpecialCache()

    def write(self, packet) -> None:
        """Route a copy of ``packet`` to the cache it belongs in."""
        packet = copy.copy(packet)
        if packet.is_metadata:
            self.metadata.write(packet)
            return
        header = packet.header
        if not packet.is_video:
            if header is not None and hasattr(header, "sound_format"):
                if (
                    header.sound_format() == SOUND_AAC
                    and header.aac_packet_type() == AAC_SEQHDR
                ):
                    self.audio_seq.write(packet)
                return
        else:
            if header is None or not hasattr(header, "is_seq"):
                return
            if header.is_seq():
                self.video_seq.write(packet)
                return
        self.gop.write(packet)

    def send(self, writer) -> None:
        """Replay metadata, video and audio headers, then the cached groups."""
        self.metadata.send(writer)
        self.video_seq.send(writer)
        self.audio_seq.send(writer)
        self.gop.send(writer)