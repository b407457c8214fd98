"""Parse single P1 lines: telegram header detection and OBIS measurement lines."""

import re

from .catalogue import IDENTIFIER_PATTERN, ObisCatalogue
from .types import NoMatch, NoMatchReason, TelegramObject, TelegramValue

# "/ISk5\2MT382-1000": manufacturer flag, baud id and model
_HEADER_PATTERN = re.compile(r"^/(.+)$")

# Identifier followed by one or more balanced, non-nested (...) groups; nothing else on the line
_LINE_PATTERN = re.compile(rf"^({IDENTIFIER_PATTERN})((?:\([^()]*\))+)$")
_GROUP_PATTERN = re.compile(r"\(([^()]*)\)")

# <number>*<unit>, unit letters case-insensitive and may end in digits (m3)
_UNIT_PATTERN = re.compile(r"^([\d.]+)\*([a-z][a-z0-9]*)$", re.IGNORECASE)


def parse_header(line: str) -> str | None:
    """Return the device identifier if line is a telegram header ('/' prefix), else None."""
    m = _HEADER_PATTERN.match(line.strip())
    if not m:
        return None
    device = m.group(1).strip()
    return device or None


def split_value(group: str) -> TelegramValue:
    """
    Split one group's content into value and unit.

    "123456.789*kWh" -> ("123456.789", "kWh"); anything else is kept whole
    with no unit. The numeric text is not converted or re-padded.
    """
    m = _UNIT_PATTERN.match(group)
    if m:
        return TelegramValue(m.group(1), m.group(2))
    return TelegramValue(group)


def parse_line(line: str, catalogue: ObisCatalogue) -> TelegramObject | NoMatch:
    """
    Parse an OBIS line like ``1-0:1.8.1(123456.789*kWh)``.

    Returns a NoMatch (falsy) for lines that do not fit the grammar or whose
    identifier is not in the catalogue; never a partial object.
    """
    m = _LINE_PATTERN.match(line)
    if not m:
        return NoMatch(line, NoMatchReason.GRAMMAR)

    obis_type = catalogue.resolve(m.group(1))
    if obis_type is None:
        return NoMatch(line, NoMatchReason.UNKNOWN_IDENTIFIER)

    groups = _GROUP_PATTERN.findall(m.group(2))
    if not groups:
        return NoMatch(line, NoMatchReason.GRAMMAR)

    return TelegramObject(obis_type, tuple(split_value(g) for g in groups))
