"""Tests for CLI module - formatting and command structure."""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

from conftest import TELEGRAM_OBJECT_COUNT, telegram_bytes
from typer.testing import CliRunner

from pydsmr_p1.cli import app, format_telegram, format_value
from pydsmr_p1.errors import SerialIOError
from pydsmr_p1.types import OBISType, Telegram, TelegramObject, TelegramValue

runner = CliRunner()


# ============================================================================
# Formatting Tests
# ============================================================================


class TestFormatValue:
    """Test value formatting for display."""

    def test_with_unit(self) -> None:
        assert format_value(TelegramValue("123456.789", "kWh")) == "123456.789 kWh"

    def test_without_unit(self) -> None:
        assert format_value(TelegramValue("0002")) == "0002"


class TestFormatTelegram:
    """Test telegram rendering."""

    def test_device_and_objects(self) -> None:
        telegram = Telegram(
            device="ISk5\\2MT382-1000",
            objects=(
                TelegramObject(OBISType.ELECTRICITY_TARIFF_INDICATOR, (TelegramValue("0002"),)),
                TelegramObject(
                    OBISType.GAS_DELIVERED,
                    (TelegramValue("101209112500W"), TelegramValue("12785.123", "m3")),
                ),
            ),
        )
        assert format_telegram(telegram) == [
            "device: ISk5\\2MT382-1000",
            "electricity_tariff_indicator = 0002",
            "gas_delivered = 101209112500W, 12785.123 m3",
        ]

    def test_missing_device(self) -> None:
        assert format_telegram(Telegram()) == ["device: -"]


# ============================================================================
# Command Structure Tests
# ============================================================================


def test_parse_command(tmp_path: Path) -> None:
    capture = tmp_path / "p1.log"
    capture.write_bytes(telegram_bytes() + telegram_bytes())

    result = runner.invoke(app, ["parse", str(capture)])

    assert result.exit_code == 0
    assert result.stdout.count("device: ISk5\\2MT382-1000") == 2
    assert "electricity_delivered_tariff_1 = 123456.789 kWh" in result.stdout
    assert "electricity_tariff_indicator = 0002" in result.stdout


def test_parse_command_json(tmp_path: Path) -> None:
    capture = tmp_path / "p1.log"
    capture.write_bytes(telegram_bytes())

    result = runner.invoke(app, ["parse", str(capture), "--json"])

    assert result.exit_code == 0
    lines = result.stdout.strip().split("\n")
    assert len(lines) == 1
    data = json.loads(lines[0])
    assert data["device"] == "ISk5\\2MT382-1000"
    assert len(data["objects"]) == TELEGRAM_OBJECT_COUNT
    assert data["objects"][3] == {
        "type": "electricity_delivered_tariff_1",
        "values": [{"value": "123456.789", "unit": "kWh"}],
    }


def test_parse_command_header_boundary(tmp_path: Path) -> None:
    capture = tmp_path / "p1.log"
    capture.write_bytes(telegram_bytes() + telegram_bytes())

    result = runner.invoke(app, ["parse", str(capture), "--boundary", "header", "--json"])

    assert result.exit_code == 0
    assert len(result.stdout.strip().split("\n")) == 1


def test_parse_command_missing_file(tmp_path: Path) -> None:
    result = runner.invoke(app, ["parse", str(tmp_path / "nope.log")])
    assert result.exit_code == 2
    assert "File not found" in result.output


def test_parse_command_invalid_boundary(tmp_path: Path) -> None:
    capture = tmp_path / "p1.log"
    capture.write_bytes(telegram_bytes())
    result = runner.invoke(app, ["parse", str(capture), "--boundary", "crc"])
    assert result.exit_code == 2
    assert "Unknown boundary rule" in result.output


def test_explain_command_exact() -> None:
    result = runner.invoke(app, ["explain", "1-0:1.8.1"])

    assert result.exit_code == 0
    assert "electricity_delivered_tariff_1" in result.stdout
    assert "Match:           exact" in result.stdout


def test_explain_command_pattern_json() -> None:
    result = runner.invoke(app, ["explain", "0-2:24.2.1", "--json"])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["type"] == "gas_delivered"
    assert data["match"] == "pattern"
    assert data["device_index"] == 2


def test_explain_command_unknown() -> None:
    result = runner.invoke(app, ["explain", "1-100:0.2.8"])
    assert result.exit_code == 2
    assert "Unknown identifier" in result.output


def test_explain_command_invalid() -> None:
    result = runner.invoke(app, ["explain", "foo"])
    assert result.exit_code == 2
    assert "Invalid identifier" in result.output


def test_info_command_json() -> None:
    result = runner.invoke(app, ["info", "--json"])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert "version" in data
    assert data["profiles"]["dsmr5"] == {"baudrate": 115200, "framing": "8N1"}
    assert data["profiles"]["dsmr22"] == {"baudrate": 9600, "framing": "7E1"}
    assert data["catalogue"]["patterns"] == 5


def test_info_command_text() -> None:
    result = runner.invoke(app, ["info"])
    assert result.exit_code == 0
    assert "version:" in result.stdout.lower()
    assert "Profile dsmr4: 115200 baud 8N1" in result.stdout


@patch("pydsmr_p1.cli.P1Client")
def test_read_command_count(mock_client_class: MagicMock) -> None:
    telegram = Telegram(
        device="DEV-1",
        objects=(TelegramObject(OBISType.ELECTRICITY_DELIVERED, (TelegramValue("01.193", "kW"),)),),
    )
    mock_client = MagicMock()
    mock_client_class.return_value = mock_client
    mock_client.__enter__.return_value = mock_client
    mock_client.__iter__.return_value = iter([telegram, telegram, telegram])

    result = runner.invoke(app, ["read", "--device", "/dev/ttyUSB0", "--count", "2", "--json"])

    assert result.exit_code == 0
    lines = result.stdout.strip().split("\n")
    assert len(lines) == 2
    assert json.loads(lines[0])["device"] == "DEV-1"
    assert mock_client_class.call_args[0][0] == "/dev/ttyUSB0"
    assert mock_client_class.call_args[1]["profile"] == "dsmr5"


@patch("pydsmr_p1.cli.P1Client")
def test_read_command_stream_error(mock_client_class: MagicMock) -> None:
    mock_client = MagicMock()
    mock_client_class.return_value = mock_client
    mock_client.__enter__.return_value = mock_client
    mock_client.__iter__.return_value = iter([])
    mock_client.framer.error = SerialIOError("Read failed: device reports readiness to read but returned no data")

    result = runner.invoke(app, ["read", "--device", "/dev/ttyUSB0"])

    assert result.exit_code == 3
    assert "Serial error" in result.output


@patch("pydsmr_p1.cli.P1Client")
def test_read_command_open_failure(mock_client_class: MagicMock) -> None:
    mock_client = MagicMock()
    mock_client_class.return_value = mock_client
    mock_client.__enter__.side_effect = SerialIOError("Failed to open /dev/ttyUSB9", device="/dev/ttyUSB9")

    result = runner.invoke(app, ["read", "--device", "/dev/ttyUSB9"])

    assert result.exit_code == 3


def test_read_command_requires_device() -> None:
    result = runner.invoke(app, ["read"], env={"PYDSMR_DEVICE": ""})
    assert result.exit_code == 2
    assert "--device is required" in result.output


def test_read_command_unknown_profile() -> None:
    result = runner.invoke(app, ["read", "--device", "/dev/ttyUSB0", "--profile", "dsmr9"])
    assert result.exit_code == 2
    assert "Unknown profile" in result.output


def test_command_help() -> None:
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for command in ("read", "parse", "explain", "info"):
        assert command in result.stdout


def test_version_flag() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "pydsmr-p1" in result.stdout
