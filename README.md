# rtmplive

Pure-Python building blocks for a live video streaming server. The package
uses only the standard library.

## What it contains

- `rtmplive.pio` has integer readers that take a buffer and an offset, such as
  `u32_be(data, offset)`, `i24_be` and `u32_le`. It also has packers that take a
  value and return bytes, such as `pack_u24_be(value)` and `pack_u32_le`. A
  reader raises `ValueError` when the buffer is too short.
- `rtmplive.pool.Pool` hands out writable `memoryview` slices of a 500 KiB
  buffer through `get(size)`. When the buffer is used up, it starts a fresh one.
- `rtmplive.uid.new_id()` returns a short URL-safe identifier built from 12
  bytes of a random UUID.
- `rtmplive.readwriter.ReadWriter` buffers a socket or a file-like object in
  both directions. It offers `read`, `read_uint_be`, `read_uint_le`, `peek`,
  `discard`, `write`, `write_uint_be`, `write_uint_le` and `flush`. After a read
  or write fails, later calls raise the same error again. The end of input is
  reported as `EOFError`.
- `rtmplive.chunk.ChunkStream` is a dataclass for one chunk stream. It reads
  chunks in formats 0 to 3, including extended timestamps, with
  `read_chunk(rw, chunk_size, pool)`. It splits a message into chunks with
  `write_chunk(rw, chunk_size)`. Audio messages go out on chunk stream 4.
  Video and script data messages go out on chunk stream 6.
- `rtmplive.conn.Conn` wraps a stream as an RTMP connection.
  - `read()` returns the next complete message. It tracks the peer's
    set-chunk-size and window-acknowledgement-size messages, and it sends
    acknowledgements when the window fills.
  - `write(chunk)` sends a message. It adopts a chunk size that the connection
    itself announces.
  - It builds control messages with `new_ack`, `new_set_chunk_size`,
    `new_window_ack_size` and `new_set_peer_bandwidth`.
  - It sends Stream Begin and Stream Is Recorded events with `set_begin` and
    `set_recorded`.
- `rtmplive.handshake` covers the handshake in both directions.
  - `handshake_client(conn)` runs the simple handshake, echoing S1 as C2.
  - `handshake_server(conn)` accepts both the simple handshake and the
    HMAC-SHA256 digest handshake. It raises `HandshakeError` on a bad version
    or an invalid C1.
  - The lower-level helpers are `make_digest`, `calc_digest_pos`,
    `find_digest`, `parse_c1`, `create_s0s1` and `create_s2`.
- `rtmplive.hls` handles HLS segment bookkeeping.
  - `TSCacheItem` keeps the last `max_items` segments. It renders the live
    playlist with `gen_m3u8_playlist()`. `get_item` raises `NoKeyError` for an
    unknown key.
  - `TSItem.create(...)` builds a segment.
  - `SegmentStatus` tracks a segment's timestamp span.
  - `AudioCache` batches audio frames.
  - `Align` snaps audio timestamps onto a frame grid.
  - `parse_m3u8_key(path)` and `parse_ts_key(path)` extract stream keys from
    request paths and raise `ValueError` on a malformed path.
  - `CROSSDOMAIN_XML` holds a permissive cross-domain policy document.
- `rtmplive.stats.BandwidthStats` counts audio and video bytes. Every five
  seconds it recomputes the rates in kilobits per second.
- `rtmplive.avcache` holds the caches that bring a new player up to date.
  - `Cache` routes packets to the right cache: metadata, the video sequence
    header, the AAC sequence header, or a `GopCache` of recent groups of
    pictures.
  - `Cache.send(writer)` replays them in that order.
  - `GopCache` raises `ValueError` for a non-positive size.
- `rtmplive.stream` moves packets from publishers to players.
  - `Stream` forwards packets from one reader to its writers on a background
    thread.
  - `RtmpStream` keys streams by stream key. When a new publisher arrives, it
    takes over the players of the earlier one. Every five seconds it drops
    streams with no live reader or writer.
  - Readers, writers and packets are duck-typed. The module docstrings list
    the methods and attributes that are expected.

## Example

Write one RTMP chunk to an in-memory stream:

```python
import io

from rtmplive.chunk import ChunkStream
from rtmplive.readwriter import ReadWriter

out = io.BytesIO()
rw = ReadWriter(out, 1024)
chunk = ChunkStream(type_id=8, csid=3, timestamp=40, length=3, data=b"\x01\x02\x03")
chunk.write_chunk(rw, 128)
rw.flush()
print(out.getvalue().hex())
```

Build an HLS playlist:

```python
from rtmplive.hls import TSCacheItem, TSItem

cache = TSCacheItem("live/movie", 3)
cache.set_item("/live/movie/1.ts", TSItem.create("/live/movie/1.ts", 3000, 1, b""))
print(cache.gen_m3u8_playlist().decode())
```

## What it does not do

This is a library of parts, not a running server. The package has:

- no command-line program;
- no socket listener that accepts RTMP clients;
- no AMF encoding or decoding, so it does not handle RTMP commands such as
  connect, publish or play;
- no FLV demuxing, MPEG-TS muxing or codec parsing, so it does not turn RTMP
  packets into HLS segments itself;
- no HTTP server for playlists, segments or FLV streams.

Those pieces must be supplied by the application that uses these modules.

## Running the tests

```
pip install -e .[test]
pytest
```