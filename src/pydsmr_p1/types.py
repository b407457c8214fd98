"""Core data model: OBIS type tags, DSMR profiles, telegram records, and match results."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class OBISType(str, Enum):
    """Semantic type tags for the measurement objects found in a P1 telegram."""

    VERSION_INFORMATION = "version_information"
    DATE_TIMESTAMP = "date_timestamp"
    EQUIPMENT_IDENTIFIER = "equipment_identifier"
    ELECTRICITY_DELIVERED_TARIFF_1 = "electricity_delivered_tariff_1"
    ELECTRICITY_DELIVERED_TARIFF_2 = "electricity_delivered_tariff_2"
    ELECTRICITY_GENERATED_TARIFF_1 = "electricity_generated_tariff_1"
    ELECTRICITY_GENERATED_TARIFF_2 = "electricity_generated_tariff_2"
    ELECTRICITY_TARIFF_INDICATOR = "electricity_tariff_indicator"
    ELECTRICITY_DELIVERED = "electricity_delivered"
    ELECTRICITY_GENERATED = "electricity_generated"
    ELECTRICITY_THRESHOLD = "electricity_threshold"
    ELECTRICITY_SWITCH_POSITION = "electricity_switch_position"
    NUMBER_OF_POWER_FAILURES = "number_of_power_failures"
    NUMBER_OF_LONG_POWER_FAILURES = "number_of_long_power_failures"
    POWER_FAILURE_EVENT_LOG = "power_failure_event_log"
    NUMBER_OF_VOLTAGE_SAGS_L1 = "number_of_voltage_sags_l1"
    NUMBER_OF_VOLTAGE_SAGS_L2 = "number_of_voltage_sags_l2"
    NUMBER_OF_VOLTAGE_SAGS_L3 = "number_of_voltage_sags_l3"
    NUMBER_OF_VOLTAGE_SWELLS_L1 = "number_of_voltage_swells_l1"
    NUMBER_OF_VOLTAGE_SWELLS_L2 = "number_of_voltage_swells_l2"
    NUMBER_OF_VOLTAGE_SWELLS_L3 = "number_of_voltage_swells_l3"
    TEXT_MESSAGE_CODE = "text_message_code"
    TEXT_MESSAGE = "text_message"
    INSTANTANEOUS_VOLTAGE_L1 = "instantaneous_voltage_l1"
    INSTANTANEOUS_VOLTAGE_L2 = "instantaneous_voltage_l2"
    INSTANTANEOUS_VOLTAGE_L3 = "instantaneous_voltage_l3"
    INSTANTANEOUS_CURRENT_L1 = "instantaneous_current_l1"
    INSTANTANEOUS_CURRENT_L2 = "instantaneous_current_l2"
    INSTANTANEOUS_CURRENT_L3 = "instantaneous_current_l3"
    INSTANTANEOUS_POWER_DELIVERED_L1 = "instantaneous_power_delivered_l1"
    INSTANTANEOUS_POWER_DELIVERED_L2 = "instantaneous_power_delivered_l2"
    INSTANTANEOUS_POWER_DELIVERED_L3 = "instantaneous_power_delivered_l3"
    INSTANTANEOUS_POWER_GENERATED_L1 = "instantaneous_power_generated_l1"
    INSTANTANEOUS_POWER_GENERATED_L2 = "instantaneous_power_generated_l2"
    INSTANTANEOUS_POWER_GENERATED_L3 = "instantaneous_power_generated_l3"
    # Slave devices on the M-Bus (gas meters); identifier carries the device index
    GAS_DEVICE_TYPE = "gas_device_type"
    GAS_EQUIPMENT_IDENTIFIER = "gas_equipment_identifier"
    GAS_DELIVERED = "gas_delivered"
    GAS_VALVE_POSITION = "gas_valve_position"
    # DSMR 2.2 hourly gas reading; the value arrives on a continuation line
    GAS_DELIVERED_HOURLY = "gas_delivered_hourly"


class MatchKind(str, Enum):
    """How an identifier was resolved by the catalogue."""

    EXACT = "exact"
    PATTERN = "pattern"


class NoMatchReason(str, Enum):
    """Why a line did not produce a telegram object."""

    GRAMMAR = "grammar"
    UNKNOWN_IDENTIFIER = "unknown_identifier"


class DSMRProfile(str, Enum):
    """Supported DSMR serial profiles."""

    DSMR22 = "dsmr22"
    DSMR4 = "dsmr4"
    DSMR5 = "dsmr5"


@dataclass(frozen=True)
class TelegramValue:
    """One parenthesized group of a line; unit is None unless written as <number>*<unit>."""

    value: str
    unit: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "unit": self.unit}


@dataclass(frozen=True)
class TelegramObject:
    """A recognized measurement line: its type tag and values in line order."""

    type: OBISType
    values: tuple[TelegramValue, ...]

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "values": [v.to_dict() for v in self.values]}


@dataclass(frozen=True)
class Telegram:
    """A completed telegram: device identifier from the header and objects in line order."""

    device: str = ""
    objects: tuple[TelegramObject, ...] = field(default_factory=tuple)

    def find(self, obis_type: OBISType) -> list[TelegramObject]:
        """Return all objects of the given type, in telegram order."""
        return [obj for obj in self.objects if obj.type == obis_type]

    def to_dict(self) -> dict[str, Any]:
        return {"device": self.device, "objects": [obj.to_dict() for obj in self.objects]}


@dataclass(frozen=True)
class NoMatch:
    """
    Result of parse_line for a line that is not a recognized measurement.

    Falsy, so callers can write ``if obj: ...``. This is an expected outcome
    (checksum footers, blank lines, vendor extensions), not an error.
    """

    line: str
    reason: NoMatchReason

    def __bool__(self) -> bool:
        return False


@dataclass(frozen=True)
class CatalogueEntry:
    """Catalogue definition: exact identifier or single-group pattern, and its type tag."""

    matcher: str
    type: OBISType
    kind: MatchKind = MatchKind.EXACT


@dataclass(frozen=True)
class ExplainInfo:
    """Result of catalogue.explain(identifier): type tag, match kind, device index if any."""

    identifier: str
    type: OBISType
    kind: MatchKind
    matcher: str
    device_index: int | None = None
