"""
TelegramFramer: split a continuous P1 byte stream into telegrams on a background thread.

The framer reads lines from any object with ``readline() -> bytes`` (a
``serial.Serial``, an open binary file, ``io.BytesIO``), groups them into
telegram frames using a boundary rule, assembles each frame and puts the
resulting Telegram on a queue. End of input or a read error stops the loop
and closes the queue; a frame still being accumulated at that point is
discarded.
"""

import logging
import queue
import threading
from collections.abc import Iterator
from typing import Any, Protocol

from serial import SerialException

from .assembler import assemble
from .catalogue import ObisCatalogue, get_default_catalogue
from .errors import SerialIOError
from .types import Telegram

logger = logging.getLogger(__name__)

# Queued after the last telegram; consumers stop when they see it
CLOSED = object()


class LineSource(Protocol):
    def readline(self) -> bytes: ...


class BoundaryRule(Protocol):
    name: str
    emit_on_start: bool

    def is_start(self, line: str) -> bool: ...

    def is_end(self, line: str) -> bool: ...


class TerminatorBoundary:
    """
    A telegram runs from a '/' header line through the '!' checksum line (DSMR 4 and 5).

    A header arriving before the terminator restarts the frame; the truncated
    frame is dropped.
    """

    name = "terminator"
    emit_on_start = False

    def is_start(self, line: str) -> bool:
        return line.startswith("/")

    def is_end(self, line: str) -> bool:
        return line.startswith("!")


class HeaderBoundary:
    """
    A telegram runs from one '/' header line to the next (meters without a '!' footer).

    A frame is only known to be complete when the next header arrives, so the
    last frame in a finite stream is never emitted.
    """

    name = "header"
    emit_on_start = True

    def is_start(self, line: str) -> bool:
        return line.startswith("/")

    def is_end(self, line: str) -> bool:
        return False


_BOUNDARIES: dict[str, type] = {
    TerminatorBoundary.name: TerminatorBoundary,
    HeaderBoundary.name: HeaderBoundary,
}


def get_boundary(name: str) -> BoundaryRule:
    """Return a boundary rule instance by name ("terminator" or "header")."""
    try:
        return _BOUNDARIES[name.lower()]()
    except KeyError:
        raise ValueError(f"Unknown boundary rule: {name!r} (expected one of {', '.join(_BOUNDARIES)})") from None


def _decode(raw: bytes) -> str:
    # P1 is ASCII; stray bytes from line noise must not abort the stream
    return raw.decode("ascii", errors="replace").rstrip("\r\n\x00")


def iter_telegrams(incoming: "queue.Queue[Any]") -> Iterator[Telegram]:
    """Yield telegrams from a framer queue until it is closed."""
    while True:
        item = incoming.get()
        if item is CLOSED:
            # Leave the marker for any other reader of the same queue
            incoming.put(CLOSED)
            return
        yield item


class TelegramFramer:
    """
    Reads a line source to exhaustion and delivers one Telegram per frame.

    The source is owned by the framer: nothing else may read from it while
    the framer runs. The queue is unbounded unless ``maxsize`` is given.
    ``name`` labels the source (port or file) in logs and read errors.
    """

    def __init__(
        self,
        source: LineSource,
        catalogue: ObisCatalogue | None = None,
        boundary: BoundaryRule | None = None,
        incoming: "queue.Queue[Any] | None" = None,
        maxsize: int = 0,
        name: str | None = None,
    ) -> None:
        self._source = source
        self._name = name
        self._catalogue = catalogue if catalogue is not None else get_default_catalogue()
        self._boundary: BoundaryRule = boundary if boundary is not None else TerminatorBoundary()
        self._incoming: "queue.Queue[Any]" = incoming if incoming is not None else queue.Queue(maxsize=maxsize)
        self._thread: threading.Thread | None = None
        self._error: SerialIOError | None = None
        self.telegram_count = 0

    @property
    def incoming(self) -> "queue.Queue[Any]":
        return self._incoming

    @property
    def error(self) -> SerialIOError | None:
        """The read failure that stopped the framer, or None after a clean end of input."""
        return self._error

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _emit(self, group: list[str]) -> None:
        telegram = assemble(group, self._catalogue)
        self.telegram_count += 1
        logger.debug("Telegram %d from %r: %d objects", self.telegram_count, telegram.device, len(telegram.objects))
        self._incoming.put(telegram)

    def run(self) -> None:
        """Blocking framing loop; returns after end of input or a read error."""
        boundary = self._boundary
        group: list[str] | None = None
        logger.info("Framer started (%s boundary)", boundary.name)
        try:
            while True:
                try:
                    raw = self._source.readline()
                except (SerialException, OSError, ValueError) as e:
                    # ValueError: readline on a port or file closed under us
                    where = f" on {self._name}" if self._name else ""
                    self._error = SerialIOError(
                        f"Read failed{where}: {e}",
                        device=self._name,
                        cause=e,
                        telegrams_read=self.telegram_count,
                    )
                    logger.warning("Framer stopped on read error%s: %s", where, e)
                    break
                if not raw:
                    logger.info("Framer reached end of input after %d telegrams", self.telegram_count)
                    break

                line = _decode(raw)
                if boundary.is_start(line):
                    if group and boundary.emit_on_start:
                        self._emit(group)
                    elif group:
                        logger.debug("Dropping incomplete frame of %d lines", len(group))
                    group = [line]
                elif group is None:
                    # Not synchronized yet; wait for the first header
                    logger.debug("Skipping line before first header: %r", line)
                    continue
                else:
                    group.append(line)

                if boundary.is_end(line):
                    self._emit(group)
                    group = None
        finally:
            if group:
                logger.debug("Discarding %d lines of unfinished frame", len(group))
            self._incoming.put(CLOSED)

    def start(self) -> "queue.Queue[Any]":
        """Run the framing loop on a daemon thread; returns the incoming queue."""
        if self._thread is not None:
            raise RuntimeError("Framer already started")
        self._thread = threading.Thread(target=self.run, name="p1-framer", daemon=True)
        self._thread.start()
        return self._incoming

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def __iter__(self) -> Iterator[Telegram]:
        return iter_telegrams(self._incoming)
