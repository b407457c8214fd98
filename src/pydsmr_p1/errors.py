"""Exceptions for pydsmr-p1: invalid/unknown OBIS identifiers and serial I/O errors."""


class PyDSMRP1Error(Exception):
    """Base exception for pydsmr-p1."""


class IdentifierError(PyDSMRP1Error):
    """An OBIS identifier the catalogue cannot resolve; ``identifier`` holds the offending text."""

    default_message = "Bad OBIS identifier"

    def __init__(self, identifier: str, message: str | None = None) -> None:
        self.identifier = identifier
        super().__init__(message or f"{self.default_message}: {identifier!r}")


class InvalidIdentifierError(IdentifierError):
    """The string does not have the A-B:C.D.E shape."""

    default_message = "Invalid OBIS identifier"


class UnknownIdentifierError(IdentifierError):
    """Well-formed, but neither an exact entry nor a device pattern matches."""

    default_message = "Unknown OBIS identifier"


class SerialIOError(PyDSMRP1Error):
    """
    Opening or reading the P1 source failed.

    ``device`` names the port or file that failed, ``cause`` is the pyserial
    or OS error underneath and ``telegrams_read`` counts the telegrams that
    were delivered before the failure (0 when the port never opened).
    """

    def __init__(
        self,
        message: str,
        *,
        device: str | None = None,
        cause: BaseException | None = None,
        telegrams_read: int = 0,
    ) -> None:
        self.device = device
        self.cause = cause
        self.telegrams_read = telegrams_read
        super().__init__(message)
