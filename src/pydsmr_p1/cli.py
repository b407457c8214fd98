#!/usr/bin/env python3
"""Command-line interface for pydsmr-p1 using Typer."""

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from . import __version__  # type: ignore
from .catalogue import get_default_catalogue
from .client import SERIAL_SETTINGS, P1Client
from .errors import InvalidIdentifierError, SerialIOError, UnknownIdentifierError
from .framer import BoundaryRule, TelegramFramer, get_boundary
from .types import Telegram, TelegramValue

app = typer.Typer(
    name="pydsmr",
    help="Read and decode DSMR smart meter P1 telegrams.",
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)

# ============================================================================
# Shared options and helpers
# ============================================================================

DeviceOption = Annotated[
    Optional[str],
    typer.Option("--device", "-d", help="Serial device of the P1 port (e.g. /dev/ttyUSB0)", envvar="PYDSMR_DEVICE"),
]
ProfileOption = Annotated[
    str,
    typer.Option("--profile", help="DSMR serial profile: dsmr22, dsmr4, dsmr5", envvar="PYDSMR_PROFILE"),
]
BoundaryOption = Annotated[
    str,
    typer.Option("--boundary", "-b", help="Telegram boundary rule: terminator or header", envvar="PYDSMR_BOUNDARY"),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Enable debug logging"),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Output as JSON (one document per telegram)"),
]


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbose flag."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if not verbose else "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def format_value(value: TelegramValue) -> str:
    """Format one telegram value for display: value, then unit if present."""
    if value.unit is None:
        return value.value
    return f"{value.value} {value.unit}"


def format_telegram(telegram: Telegram) -> list[str]:
    """Render a telegram as text lines: device first, then one line per object."""
    lines = [f"device: {telegram.device or '-'}"]
    for obj in telegram.objects:
        lines.append(f"{obj.type.value} = {', '.join(format_value(v) for v in obj.values)}")
    return lines


def echo_telegram(telegram: Telegram, json_output: bool) -> None:
    if json_output:
        typer.echo(json.dumps(telegram.to_dict()))
    else:
        for line in format_telegram(telegram):
            typer.echo(line)
        typer.echo("")


def resolve_boundary(name: str) -> BoundaryRule:
    """Return the boundary rule for name, exiting with code 2 when unknown."""
    try:
        return get_boundary(name)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2)


# ============================================================================
# Commands
# ============================================================================

@app.command()
def read(
    device: DeviceOption = None,
    profile: ProfileOption = "dsmr5",
    boundary: BoundaryOption = "terminator",
    count: Annotated[int, typer.Option("--count", "-n", help="Stop after this many telegrams (0 = forever)")] = 0,
    verbose: VerboseOption = False,
    json_output: JsonOption = False,
) -> None:
    """
    Stream decoded telegrams from a meter's P1 port.

    Runs until the port closes or fails, or until --count telegrams were read.
    Press Ctrl+C to stop.
    """
    setup_logging(verbose)

    if not device:
        typer.echo("Error: --device is required for this command", err=True)
        raise typer.Exit(2)
    if count < 0:
        typer.echo(f"Error: Count must not be negative, got {count}", err=True)
        raise typer.Exit(2)
    rule = resolve_boundary(boundary)

    try:
        try:
            client = P1Client(device, profile=profile, boundary=rule)
        except ValueError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(2)

        with client:
            received = 0
            for telegram in client:
                echo_telegram(telegram, json_output)
                received += 1
                if count and received >= count:
                    break
            else:
                framer = client.framer
                if framer is not None and framer.error is not None:
                    raise framer.error
    except SerialIOError as e:
        typer.echo(f"Error: Serial error: {e}", err=True)
        raise typer.Exit(3)
    except KeyboardInterrupt:
        typer.echo("\nStopped by user", err=True)
        raise typer.Exit(0)
    except typer.Exit:
        raise
    except Exception as e:
        typer.echo(f"Error: Unexpected error: {e}", err=True)
        if verbose:
            import traceback
            traceback.print_exc()
        raise typer.Exit(4)


@app.command()
def parse(
    path: Annotated[Path, typer.Argument(help="File with captured P1 output")],
    boundary: BoundaryOption = "terminator",
    verbose: VerboseOption = False,
    json_output: JsonOption = False,
) -> None:
    """
    Decode telegrams from a captured P1 trace file.

    Useful to check how a meter's output is framed and which lines are recognized.
    """
    setup_logging(verbose)

    if not path.is_file():
        typer.echo(f"Error: File not found: {path}", err=True)
        raise typer.Exit(2)
    rule = resolve_boundary(boundary)

    try:
        with open(path, "rb") as f:
            framer = TelegramFramer(f, boundary=rule, name=str(path))
            framer.start()
            received = 0
            for telegram in framer:
                echo_telegram(telegram, json_output)
                received += 1
            framer.join()
        if framer.error is not None:
            raise framer.error
        if received == 0:
            typer.echo(f"No complete telegrams found in {path}", err=True)
    except SerialIOError as e:
        typer.echo(f"Error: Read error: {e}", err=True)
        raise typer.Exit(3)
    except Exception as e:
        typer.echo(f"Error: Unexpected error: {e}", err=True)
        if verbose:
            import traceback
            traceback.print_exc()
        raise typer.Exit(4)


@app.command()
def explain(
    identifier: Annotated[str, typer.Argument(help="OBIS identifier (e.g. 1-0:1.8.1, 0-2:24.2.1)")],
    verbose: VerboseOption = False,
    json_output: JsonOption = False,
) -> None:
    """
    Show the type an OBIS identifier decodes to and how it matched.

    Does not require a meter; uses the embedded catalogue only.
    """
    setup_logging(verbose)

    try:
        info = get_default_catalogue().explain(identifier)
        data = {
            "identifier": info.identifier,
            "type": info.type.value,
            "match": info.kind.value,
            "matcher": info.matcher,
            "device_index": info.device_index,
        }
        if json_output:
            typer.echo(json.dumps(data, indent=2))
        else:
            typer.echo(f"Identifier:      {data['identifier']}")
            typer.echo(f"Type:            {data['type']}")
            typer.echo(f"Match:           {data['match']}")
            typer.echo(f"Matcher:         {data['matcher']}")
            if info.device_index is not None:
                typer.echo(f"Device index:    {info.device_index}")
    except InvalidIdentifierError as e:
        typer.echo(f"Error: Invalid identifier: {e}", err=True)
        raise typer.Exit(2)
    except UnknownIdentifierError as e:
        typer.echo(f"Error: Unknown identifier: {e}", err=True)
        raise typer.Exit(2)
    except Exception as e:
        typer.echo(f"Error: Unexpected error: {e}", err=True)
        if verbose:
            import traceback
            traceback.print_exc()
        raise typer.Exit(4)


@app.command()
def info(
    json_output: JsonOption = False,
) -> None:
    """Show package version, serial profiles, and catalogue size."""
    catalogue = get_default_catalogue()
    info_data = {
        "version": __version__,
        "profiles": {
            profile.value: {
                "baudrate": settings["baudrate"],
                "framing": f"{settings['bytesize']}{settings['parity']}{settings['stopbits']}",
            }
            for profile, settings in SERIAL_SETTINGS.items()
        },
        "catalogue": {
            "exact": catalogue.exact_count,
            "patterns": catalogue.pattern_count,
        },
    }

    if json_output:
        typer.echo(json.dumps(info_data, indent=2))
    else:
        typer.echo(f"pydsmr-p1 version: {info_data['version']}")
        for name, settings in info_data["profiles"].items():
            typer.echo(f"Profile {name}: {settings['baudrate']} baud {settings['framing']}")
        typer.echo(
            f"Catalogue: {catalogue.exact_count} identifiers, {catalogue.pattern_count} device patterns"
        )


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo(f"pydsmr-p1 {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=version_callback, is_eager=True, help="Show version and exit"),
    ] = None,
) -> None:
    """pydsmr - read and decode DSMR smart meter P1 telegrams."""
    pass


if __name__ == "__main__":
    app()
