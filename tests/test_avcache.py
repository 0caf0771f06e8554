from dataclasses import dataclass, field

import pytest

from rtmplive.avcache import (
    AAC_SEQHDR,
    MAX_GOP_CAP,
    SOUND_AAC,
    Cache,
    GopCache,
    GopTooBigError,
    SpecialCache,
)


@dataclass
class VideoHeader:
    key_frame: bool = False
    seq: bool = False

    def is_key_frame(self):
        return self.key_frame

    def is_seq(self):
        return self.seq


@dataclass
class AudioHeader:
    fmt: int = SOUND_AAC
    packet_type: int = 1

    def sound_format(self):
        return self.fmt

    def aac_packet_type(self):
        return self.packet_type


@dataclass
class Packet:
    is_video: bool = False
    is_audio: bool = False
    is_metadata: bool = False
    header: object = None
    data: bytes = b""


def key_frame(data=b"k"):
    return Packet(is_video=True, header=VideoHeader(key_frame=True), data=data)


def inter_frame(data=b"i"):
    return Packet(is_video=True, header=VideoHeader(), data=data)


@dataclass
class RecordingWriter:
    packets: list = field(default_factory=list)

    def write(self, packet):
        self.packets.append(packet)


class FailingWriter:
    def write(self, packet):
        raise OSError("broken pipe")


def test_gop_cache_ignores_packets_before_first_key_frame():
    gop = GopCache(1)
    gop.write(inter_frame(b"a"))
    gop.write(inter_frame(b"b"))
    writer = RecordingWriter()
    gop.send(writer)
    assert writer.packets == []


def test_gop_cache_keeps_group_in_order():
    gop = GopCache(1)
    packets = [key_frame(b"1"), inter_frame(b"2"), inter_frame(b"3")]
    for p in packets:
        gop.write(p)
    writer = RecordingWriter()
    gop.send(writer)
    assert [p.data for p in writer.packets] == [b"1", b"2", b"3"]


def test_single_gop_is_replaced_by_next_key_frame():
    gop = GopCache(1)
    for p in [key_frame(b"1"), inter_frame(b"2"), key_frame(b"3"), inter_frame(b"4")]:
        gop.write(p)
    writer = RecordingWriter()
    gop.send(writer)
    assert [p.data for p in writer.packets] == [b"3", b"4"]


@pytest.mark.parametrize("num", [2, 3, 4])
def test_ring_keeps_latest_groups_oldest_first(num):
    gop = GopCache(num)
    for n in range(num + 1):
        gop.write(key_frame(f"k{n}".encode()))
        gop.write(inter_frame(f"i{n}".encode()))
    writer = RecordingWriter()
    gop.send(writer)
    expected = []
    for n in range(1, num + 1):
        expected += [f"k{n}".encode(), f"i{n}".encode()]
    assert [p.data for p in writer.packets] == expected


def test_partially_filled_ring_sends_what_it_has():
    gop = GopCache(3)
    gop.write(key_frame(b"k0"))
    gop.write(inter_frame(b"i0"))
    writer = RecordingWriter()
    gop.send(writer)
    assert [p.data for p in writer.packets] == [b"k0", b"i0"]


def test_sequence_key_frame_does_not_open_a_group():
    gop = GopCache(1)
    seq = Packet(is_video=True, header=VideoHeader(key_frame=True, seq=True))
    gop.write(seq)
    writer = RecordingWriter()
    gop.send(writer)
    assert writer.packets == []


def test_oversized_group_drops_extra_packets():
    gop = GopCache(1)
    gop.write(key_frame())
    for _ in range(MAX_GOP_CAP + 50):
        gop.write(inter_frame())
    writer = RecordingWriter()
    gop.send(writer)
    assert len(writer.packets) == MAX_GOP_CAP


def test_gop_cache_rejects_non_positive_count():
    with pytest.raises(ValueError):
        GopCache(0)


def test_gop_too_big_error_message():
    assert str(GopTooBigError()) == "gop to big"


def test_special_cache_empty_sends_nothing():
    writer = RecordingWriter()
    SpecialCache().send(writer)
    assert writer.packets == []


def test_special_cache_sends_a_copy_of_latest():
    cache = SpecialCache()
    cache.write(Packet(is_metadata=True, data=b"old"))
    latest = Packet(is_metadata=True, data=b"new")
    cache.write(latest)
    writer = RecordingWriter()
    cache.send(writer)
    assert writer.packets == [latest]
    assert writer.packets[0] is not latest


def test_cache_send_order():
    cache = Cache(1)
    meta = Packet(is_metadata=True, data=b"meta")
    vseq = Packet(is_video=True, header=VideoHeader(key_frame=True, seq=True), data=b"vseq")
    aseq = Packet(is_audio=True, header=AudioHeader(packet_type=AAC_SEQHDR), data=b"aseq")
    kf = key_frame(b"kf")
    frame = inter_frame(b"fr")
    for p in [kf, aseq, frame, vseq, meta]:
        cache.write(p)
    writer = RecordingWriter()
    cache.send(writer)
    assert [p.data for p in writer.packets] == [b"meta", b"vseq", b"aseq", b"kf", b"fr"]


def test_cache_skips_audio_frames_and_headerless_video():
    cache = Cache(1)
    cache.write(key_frame(b"kf"))
    cache.write(Packet(is_audio=True, header=AudioHeader(packet_type=1), data=b"aac"))
    cache.write(Packet(is_audio=True, header=AudioHeader(fmt=2, packet_type=AAC_SEQHDR), data=b"mp3"))
    cache.write(Packet(is_video=True, header=None, data=b"nohdr"))
    writer = RecordingWriter()
    cache.send(writer)
    assert [p.data for p in writer.packets] == [b"kf"]


def test_cache_keeps_headerless_audio_in_group():
    cache = Cache(1)
    cache.write(key_frame(b"kf"))
    cache.write(Packet(is_audio=True, header=None, data=b"raw"))
    writer = RecordingWriter()
    cache.send(writer)
    assert [p.data for p in writer.packets] == [b"kf", b"raw"]


def test_cache_stores_its_own_copy():
    cache = Cache(1)
    packet = key_frame(b"before")
    cache.write(packet)
    packet.data = b"after"
    writer = RecordingWriter()
    cache.send(writer)
    assert writer.packets[0].data == b"before"


def test_cache_send_propagates_writer_error():
    cache = Cache(1)
    cache.write(Packet(is_metadata=True, data=b"meta"))
    with pytest.raises(OSError):
        cache.send(FailingWriter())