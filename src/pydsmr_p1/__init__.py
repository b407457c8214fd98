"""pydsmr-p1: decode DSMR smart meter P1 telegrams into typed OBIS objects."""

__version__ = "0.1.0"

from .assembler import assemble
from .catalogue import ObisCatalogue, get_default_catalogue
from .client import P1Client
from .errors import IdentifierError, InvalidIdentifierError, PyDSMRP1Error, SerialIOError, UnknownIdentifierError
from .framer import HeaderBoundary, TelegramFramer, TerminatorBoundary, get_boundary, iter_telegrams
from .parser import parse_header, parse_line
from .types import (
    DSMRProfile,
    ExplainInfo,
    MatchKind,
    NoMatch,
    NoMatchReason,
    OBISType,
    Telegram,
    TelegramObject,
    TelegramValue,
)

__all__ = [
    "__version__",
    "assemble",
    "ObisCatalogue",
    "get_default_catalogue",
    "P1Client",
    "IdentifierError",
    "InvalidIdentifierError",
    "PyDSMRP1Error",
    "SerialIOError",
    "UnknownIdentifierError",
    "HeaderBoundary",
    "TelegramFramer",
    "TerminatorBoundary",
    "get_boundary",
    "iter_telegrams",
    "parse_header",
    "parse_line",
    "DSMRProfile",
    "ExplainInfo",
    "MatchKind",
    "NoMatch",
    "NoMatchReason",
    "OBISType",
    "Telegram",
    "TelegramObject",
    "TelegramValue",
]
