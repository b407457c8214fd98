"""Assemble the lines of one telegram into a Telegram record."""

import logging
from collections.abc import Iterable

from .catalogue import ObisCatalogue
from .parser import parse_header, parse_line
from .types import NoMatch, Telegram, TelegramObject

logger = logging.getLogger(__name__)


def _join_continuations(lines: Iterable[str]) -> list[str]:
    """
    Strip lines and append any line starting with '(' to the line before it.

    Older meters (DSMR 2.2) put the gas reading on its own line after the
    0-n:24.3.0 line.
    """
    joined: list[str] = []
    for raw in lines:
        line = raw.strip()
        if line.startswith("(") and joined:
            joined[-1] += line
            continue
        joined.append(line)
    return joined


def assemble(lines: Iterable[str], catalogue: ObisCatalogue) -> Telegram:
    """
    Build a Telegram from the lines of one frame.

    The first header line sets the device; every other line is parsed and
    kept when it matches. Lines that do not parse (checksum footer, blank
    lines, unknown identifiers) are skipped. Never raises for content.
    """
    device = ""
    objects: list[TelegramObject] = []

    for line in _join_continuations(lines):
        header = parse_header(line)
        if header is not None:
            if device:
                logger.debug("Ignoring extra header %r in telegram for %r", header, device)
            else:
                device = header
            continue

        result = parse_line(line, catalogue)
        if isinstance(result, NoMatch):
            if line:
                logger.debug("Skipping line %r (%s)", line, result.reason.value)
            continue
        objects.append(result)

    return Telegram(device=device, objects=tuple(objects))
