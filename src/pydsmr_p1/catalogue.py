"""ObisCatalogue: load embedded JSON via importlib.resources; exact lookup, then ordered patterns."""

import json
import logging
import re
from importlib import resources
from typing import Any

from .errors import InvalidIdentifierError, UnknownIdentifierError
from .types import CatalogueEntry, ExplainInfo, MatchKind, OBISType

logger = logging.getLogger(__name__)

# A-B:C.D.E, e.g. 1-0:1.8.1 or 0-1:24.2.1
IDENTIFIER_PATTERN = r"\d+-\d+:\d+\.\d+\.\d+"
_IDENTIFIER_RE = re.compile(rf"^{IDENTIFIER_PATTERN}$")

_CATALOGUE_PACKAGE = "pydsmr_p1.data"
_CATALOGUE_RESOURCE = "obis_catalogue.json"


def _parse_type(raw: Any, matcher: str) -> OBISType:
    try:
        return OBISType(raw)
    except ValueError:
        raise ValueError(f"Unknown type {raw!r} for {matcher!r}") from None


def _parse_entry(raw: dict[str, Any]) -> CatalogueEntry:
    """Build a CatalogueEntry from {identifier, type} or {pattern, type}."""
    if "identifier" in raw:
        identifier = str(raw["identifier"])
        if not _IDENTIFIER_RE.match(identifier):
            raise ValueError(f"Malformed identifier in catalogue: {identifier!r}")
        return CatalogueEntry(identifier, _parse_type(raw.get("type"), identifier), MatchKind.EXACT)
    if "pattern" in raw:
        pattern = str(raw["pattern"])
        try:
            compiled = re.compile(pattern)
        except re.error as e:
            raise ValueError(f"Invalid pattern {pattern!r}: {e}") from e
        if compiled.groups != 1:
            raise ValueError(f"Pattern {pattern!r} must have exactly one capture group, has {compiled.groups}")
        return CatalogueEntry(pattern, _parse_type(raw.get("type"), pattern), MatchKind.PATTERN)
    raise ValueError(f"Catalogue entry needs 'identifier' or 'pattern': {raw!r}")


def _load_resource() -> list[dict[str, Any]]:
    """Read the packaged catalogue and flatten it to a list of entry dicts."""
    try:
        with resources.files(_CATALOGUE_PACKAGE).joinpath(_CATALOGUE_RESOURCE).open("r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"Catalogue resource not found: {_CATALOGUE_PACKAGE}/{_CATALOGUE_RESOURCE}") from None

    entries: list[dict[str, Any]] = [
        {"identifier": identifier, "type": type_tag} for identifier, type_tag in data.get("exact", {}).items()
    ]
    entries.extend(e for e in data.get("patterns", []) if isinstance(e, dict))
    return entries


class ObisCatalogue:
    """
    Maps OBIS identifiers to OBISType tags.

    Two stages: an exact table (dict, O(1)) and an ordered list of patterns with
    a single numeric group for slave devices whose channel varies (0-1:24.2.1,
    0-2:24.2.1, ...). Exact entries always win; among patterns the first full
    match in definition order wins. Built once and passed to the parser.
    """

    def __init__(self, entries_override: list[dict[str, Any]] | None = None) -> None:
        self._exact: dict[str, OBISType] = {}
        self._patterns: list[tuple[re.Pattern[str], CatalogueEntry]] = []

        raw_entries = entries_override if entries_override is not None else _load_resource()
        for raw in raw_entries:
            entry = _parse_entry(raw)
            if entry.kind == MatchKind.EXACT:
                if entry.matcher in self._exact:
                    raise ValueError(f"Duplicate identifier in catalogue: {entry.matcher}")
                self._exact[entry.matcher] = entry.type
            else:
                if any(existing.matcher == entry.matcher for _, existing in self._patterns):
                    raise ValueError(f"Duplicate pattern in catalogue: {entry.matcher}")
                self._patterns.append((re.compile(entry.matcher), entry))

        # An exact entry may shadow a pattern only when both give the same tag
        for identifier, obis_type in self._exact.items():
            for compiled, entry in self._patterns:
                if compiled.fullmatch(identifier) and entry.type != obis_type:
                    raise ValueError(
                        f"Conflicting types for {identifier}: {obis_type.value} (exact) "
                        f"vs {entry.type.value} (pattern {entry.matcher})"
                    )

        logger.debug(
            "ObisCatalogue loaded%s: %d exact, %d patterns",
            " from override" if entries_override is not None else "",
            len(self._exact),
            len(self._patterns),
        )

    def _match(self, identifier: str) -> ExplainInfo | None:
        obis_type = self._exact.get(identifier)
        if obis_type is not None:
            return ExplainInfo(identifier, obis_type, MatchKind.EXACT, identifier)
        for compiled, entry in self._patterns:
            m = compiled.fullmatch(identifier)
            if m:
                return ExplainInfo(identifier, entry.type, MatchKind.PATTERN, entry.matcher, int(m.group(1)))
        return None

    def resolve(self, identifier: str) -> OBISType | None:
        """Return the type tag for identifier, or None when it is not catalogued."""
        info = self._match(identifier)
        return info.type if info is not None else None

    def lookup(self, identifier: str) -> OBISType:
        """Like resolve(), but raise InvalidIdentifierError/UnknownIdentifierError."""
        return self.explain(identifier).type

    def explain(self, identifier: str) -> ExplainInfo:
        """Return how identifier resolves (exact or pattern, device index); raise if it does not."""
        ident = identifier.strip()
        if not _IDENTIFIER_RE.match(ident):
            raise InvalidIdentifierError(identifier)
        info = self._match(ident)
        if info is None:
            raise UnknownIdentifierError(ident)
        return info

    def __contains__(self, identifier: object) -> bool:
        return isinstance(identifier, str) and self._match(identifier) is not None

    def __len__(self) -> int:
        return len(self._exact) + len(self._patterns)

    @property
    def exact_count(self) -> int:
        return len(self._exact)

    @property
    def pattern_count(self) -> int:
        return len(self._patterns)


def get_default_catalogue() -> ObisCatalogue:
    """Load and return the packaged OBIS catalogue."""
    return ObisCatalogue()
