from __future__ import annotations

from typing import Any, Dict, Iterable

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def format_measurements(measurements: Dict[str, Any]) -> str:
    return " ".join(f"{name}={value}" for name, value in measurements.items())


def render_reading(reading: Dict[str, Any]) -> None:
    line = (
        f"{reading.get('vehicle_id')}  {reading.get('timestamp')}  "
        f"lat={reading.get('latitude')} lon={reading.get('longitude')}"
    )
    measurements = reading.get("measurements") or {}
    if measurements:
        line = f"{line}  {format_measurements(measurements)}"
    typer.echo(line)


def render_readings(readings: Iterable[Dict[str, Any]], heading: str = "Readings") -> None:
    readings = list(readings)
    echo_heading(f"{heading} ({len(readings)})")
    if not readings:
        typer.echo("No readings found.")
        return
    for reading in readings:
        render_reading(reading)
