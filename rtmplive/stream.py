"""Routing of packets from one publisher to its players.

Readers offer ``info()``, ``read()`` (returning a packet or raising),
``close(error)`` and ``alive()``. Writers offer ``info()``, ``write(packet)``,
``close(error)``, ``alive()`` and ``calc_base_timestamp()``. An info object
carries ``key``, ``uid`` and ``inter``.
"""

from __future__ import annotations

import copy
import logging
import threading
import time
import weakref
from dataclasses import dataclass

from .avcache import Cache

log = logging.getLogger(__name__)

EMPTY_ID = ""
CHECK_INTERVAL = 5.0


@dataclass
class PackWriterCloser:
    """A player, and whether it has been sent the cached stream state."""

    writer: object
    init: bool = False


class Stream:
    """One published stream with its reader and any number of writers."""

    def __init__(self, gop_num: int = 1) -> None:
        self.is_start = False
        self.cache = Cache(gop_num)
        self.reader = None
        self.writers: dict[str, PackWriterCloser] = {}
        self.info = None
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None

    def id(self) -> str:
        """The uid of the current reader, or an empty string."""
        if self.reader is not None:
            return self.reader.info().uid
        return EMPTY_ID

    def _snapshot(self) -> list[tuple[str, PackWriterCloser]]:
        with self._lock:
            return list(self.writers.items())

    def _remove(self, key: str) -> None:
        with self._lock:
            self.writers.pop(key, None)

    def copy_to(self, dst: "Stream") -> None:
        """Move every writer over to ``dst``, rebasing their timestamps."""
        dst.info = self.info
        with self._lock:
            moved = list(self.writers.values())
            self.writers.clear()
        for pw in moved:
            pw.writer.calc_base_timestamp()
            dst.add_writer(pw.writer)

    def add_reader(self, reader) -> None:
        """Attach the publisher and start forwarding in the background."""
        self.reader = reader
        self.is_start = True
        self._thread = threading.Thread(
            target=self.trans_start, daemon=True, name="stream-forward"
        )
        self._thread.start()

    def add_writer(self, writer) -> None:
        """Attach a player."""
        info = writer.info()
        with self._lock:
            self.writers[info.uid] = PackWriterCloser(writer)

    def trans_start(self) -> None:
        """Forward packets from the reader to every writer until it stops."""
        if self.reader is None:
            raise RuntimeError("stream has no reader")
        self.is_start = True
        log.debug("TransStart: %s", self.info)
        while True:
            if not self.is_start:
                self._close_inter()
                return
            try:
                packet = self.reader.read()
            except Exception as exc:
                log.debug("read stopped: %s", exc)
                self._close_inter()
                self.is_start = False
                return

            self.cache.write(packet)

            for key, pw in self._snapshot():
                if not pw.init:
                    try:
                        self.cache.send(pw.writer)
                    except Exception as exc:
                        log.debug("[%s] send cache packet error: %s, remove", key, exc)
                        self._remove(key)
                        continue
                    pw.init = True
                else:
                    try:
                        pw.writer.write(copy.copy(packet))
                    except Exception as exc:
                        log.debug("[%s] write packet error: %s, remove", key, exc)
                        self._remove(key)

    def trans_stop(self) -> None:
        """Stop forwarding, closing the reader if it was running."""
        log.debug("TransStop: %s", getattr(self.info, "key", None))
        if self.is_start and self.reader is not None:
            self.reader.close(ConnectionAbortedError("stop old"))
        self.is_start = False

    def check_alive(self) -> int:
        """Drop timed-out peers and return how many are still alive."""
        alive = 0
        if self.reader is not None and self.is_start:
            if self.reader.alive():
                alive += 1
            else:
                self.reader.close(TimeoutError("read timeout"))

        for key, pw in self._snapshot():
            if pw.writer is None:
                continue
            if not pw.writer.alive():
                log.info("write timeout remove")
                self._remove(key)
                pw.writer.close(TimeoutError("write timeout"))
                continue
            alive += 1
        return alive

    def _close_inter(self) -> None:
        for key, pw in self._snapshot():
            if pw.writer is None:
                continue
            pw.writer.close(ConnectionError("closed"))
            if pw.writer.info().inter:
                self._remove(key)
                log.debug("[%s] player closed and remove", key)


def _check_loop(ref: "weakref.ref[RtmpStream]") -> None:
    while True:
        time.sleep(CHECK_INTERVAL)
        hub = ref()
        if hub is None:
            return
        hub.check_alive()
        del hub


class RtmpStream:
    """All streams of a server, keyed by stream key."""

    def __init__(self, gop_num: int = 1) -> None:
        self.gop_num = gop_num
        self.streams: dict[str, Stream] = {}
        self._lock = threading.Lock()
        threading.Thread(
            target=_check_loop, args=(weakref.ref(self),), daemon=True,
            name="stream-check",
        ).start()

    def handle_reader(self, reader) -> None:
        """Attach a publisher, taking over the players of any earlier one."""
        info = reader.info()
        log.debug("HandleReader: info[%s]", info)
        with self._lock:
            stream = self.streams.get(info.key)
            if stream is not None:
                stream.trans_stop()
                current = stream.id()
                if current != EMPTY_ID and current != info.uid:
                    fresh = Stream(self.gop_num)
                    stream.copy_to(fresh)
                    stream = fresh
                    self.streams[info.key] = fresh
            else:
                stream = Stream(self.gop_num)
                self.streams[info.key] = stream
                stream.info = info
        stream.add_reader(reader)

    def handle_writer(self, writer) -> None:
        """Attach a player to an existing stream.

        For an unknown key only an empty stream is created; the writer is
        not attached.
        """
        info = writer.info()
        log.debug("HandleWriter: info[%s]", info)
        with self._lock:
            stream = self.streams.get(info.key)
            if stream is None:
                stream = Stream(self.gop_num)
                self.streams[info.key] = stream
                stream.info = info
                return
        stream.add_writer(writer)

    def check_alive(self) -> None:
        """Remove streams that have no live reader or writer left."""
        with self._lock:
            items = list(self.streams.items())
        for key, stream in items:
            if stream.check_alive() == 0:
                with self._lock:
                    if self.streams.get(key) is stream:
                        del self.streams[key]