"""P1Client: open the meter's P1 port with pyserial and stream decoded telegrams."""

import logging
import queue
from collections.abc import Iterator
from typing import Any

import serial

from .catalogue import ObisCatalogue, get_default_catalogue
from .errors import SerialIOError
from .framer import BoundaryRule, TelegramFramer, get_boundary, iter_telegrams
from .types import DSMRProfile, Telegram

logger = logging.getLogger(__name__)

# DSMR 2.2 meters talk 9600 7E1; DSMR 4 and later 115200 8N1
SERIAL_SETTINGS: dict[DSMRProfile, dict[str, Any]] = {
    DSMRProfile.DSMR22: {
        "baudrate": 9600,
        "bytesize": serial.SEVENBITS,
        "parity": serial.PARITY_EVEN,
        "stopbits": serial.STOPBITS_ONE,
    },
    DSMRProfile.DSMR4: {
        "baudrate": 115200,
        "bytesize": serial.EIGHTBITS,
        "parity": serial.PARITY_NONE,
        "stopbits": serial.STOPBITS_ONE,
    },
    DSMRProfile.DSMR5: {
        "baudrate": 115200,
        "bytesize": serial.EIGHTBITS,
        "parity": serial.PARITY_NONE,
        "stopbits": serial.STOPBITS_ONE,
    },
}


def get_serial_settings(profile: str | DSMRProfile) -> dict[str, Any]:
    """Return pyserial keyword arguments for a DSMR profile name."""
    try:
        key = DSMRProfile(profile.lower() if isinstance(profile, str) else profile)
    except ValueError:
        raise ValueError(f"Unknown profile: {profile!r}") from None
    return dict(SERIAL_SETTINGS[key])


class P1Client:
    """
    Reads telegrams from a smart meter's P1 port.

    connect() opens the port, start() launches the framer thread once and
    returns its queue; iterating the client yields telegrams until the port
    is closed or fails. The framer owns the port while it runs.
    """

    def __init__(
        self,
        device: str,
        profile: str = "dsmr5",
        boundary: str | BoundaryRule = "terminator",
        catalogue: ObisCatalogue | None = None,
    ) -> None:
        self._device = device
        self._settings = get_serial_settings(profile)
        self._profile = DSMRProfile(profile.lower())
        self._boundary = get_boundary(boundary) if isinstance(boundary, str) else boundary
        self._catalogue = catalogue if catalogue is not None else get_default_catalogue()
        self._serial: serial.Serial | None = None
        self._framer: TelegramFramer | None = None

    def _get_serial(self) -> serial.Serial:
        if self._serial is None:
            try:
                # timeout=None: readline blocks until a full line arrives
                self._serial = serial.Serial(self._device, timeout=None, **self._settings)
            except (serial.SerialException, OSError) as e:
                raise SerialIOError(f"Failed to open {self._device}: {e}", device=self._device, cause=e) from e
            logger.debug("Opened %s (%s, %d baud)", self._device, self._profile.value, self._settings["baudrate"])
        return self._serial

    @property
    def device(self) -> str:
        return self._device

    @property
    def profile(self) -> DSMRProfile:
        return self._profile

    @property
    def framer(self) -> TelegramFramer | None:
        return self._framer

    @property
    def incoming(self) -> "queue.Queue[Any]":
        """Queue of telegrams; starts the framer on first access."""
        return self.start()

    def connect(self) -> None:
        """Open the serial port."""
        self._get_serial()

    def start(self) -> "queue.Queue[Any]":
        """Start reading on a background thread (once) and return the telegram queue."""
        if self._framer is None:
            self._framer = TelegramFramer(
                self._get_serial(), catalogue=self._catalogue, boundary=self._boundary, name=self._device
            )
            self._framer.start()
        return self._framer.incoming

    def close(self) -> None:
        """
        Close the serial port and forget the framer.

        The port is opened with no read timeout, so a framer blocked in
        readline() only notices when pyserial raises or another line arrives;
        its queue is closed then. A later start() opens a fresh port and framer.
        """
        if self._serial is not None:
            try:
                self._serial.close()
            except Exception as e:
                logger.warning("Error closing serial port %s: %s", self._device, e)
            self._serial = None
        self._framer = None

    def __enter__(self) -> "P1Client":
        self.connect()
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def __iter__(self) -> Iterator[Telegram]:
        return iter_telegrams(self.start())

    def read_telegram(self) -> Telegram | None:
        """Block until the next telegram arrives; None once the stream has ended."""
        return next(iter(self), None)
