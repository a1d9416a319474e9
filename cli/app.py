from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_reading, render_readings


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


class SortOrder(str, Enum):
    asc = "asc"
    desc = "desc"


app = typer.Typer(
    help="Search vehicle telemetry through the search service API.",
    context_settings={"help_option_names": ["-h", "--help"]},
)

BBOX_HELP = "Bounding box as LAT1,LON1,LAT2,LON2 (top-left then bottom-right)."
CIRCLE_HELP = "Circle as LAT,LON,RADIUS."


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return state


def _parse_floats(raw: str, expected: int, option: str) -> list[float]:
    parts = [part.strip() for part in raw.split(",")]
    if len(parts) != expected:
        raise typer.BadParameter(f"{option} expects {expected} comma separated numbers.")
    try:
        return [float(part) for part in parts]
    except ValueError as exc:
        raise typer.BadParameter(f"{option} contains a non-numeric value.") from exc


def _area_body(bbox: Optional[str], circle: Optional[str]) -> Optional[Dict[str, Any]]:
    if bbox and circle:
        raise typer.BadParameter("Use either --bbox or --circle, not both.")
    if bbox:
        lat1, lon1, lat2, lon2 = _parse_floats(bbox, 4, "--bbox")
        return {
            "type": "bbox",
            "top_left": {"latitude": lat1, "longitude": lon1},
            "bottom_right": {"latitude": lat2, "longitude": lon2},
        }
    if circle:
        lat, lon, radius = _parse_floats(circle, 3, "--circle")
        return {
            "type": "circle",
            "center": {"latitude": lat, "longitude": lon},
            "radius": radius,
        }
    return None


def _require_area(bbox: Optional[str], circle: Optional[str]) -> Dict[str, Any]:
    area = _area_body(bbox, circle)
    if area is None:
        raise typer.BadParameter("An area is required: pass --bbox or --circle.")
    return area


def _parse_timestamp(value: Optional[str], option: str) -> Optional[str]:
    if value is None:
        return None
    candidate = value.strip()
    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(candidate).isoformat()
    except ValueError as exc:
        raise typer.BadParameter(f"{option} must be an ISO-8601 timestamp.") from exc


def _timeframe_body(start: Optional[str], end: Optional[str]) -> Optional[Dict[str, Any]]:
    start_value = _parse_timestamp(start, "--start")
    end_value = _parse_timestamp(end, "--end")
    if start_value is None and end_value is None:
        return None
    return {"start": start_value, "end": end_value}


def _order_body(order: Optional[SortOrder]) -> Optional[Dict[str, Any]]:
    if order is None:
        return None
    return {"descending": order is SortOrder.desc}


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Search API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each API request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("current")
def current_command(
    ctx: typer.Context,
    bbox: Optional[str] = typer.Option(None, "--bbox", help=BBOX_HELP),
    circle: Optional[str] = typer.Option(None, "--circle", help=CIRCLE_HELP),
    filter_text: Optional[str] = typer.Option(None, "--filter", help="Extra search predicate."),
    measurements: bool = typer.Option(
        False, "--measurements/--no-measurements", help="Include measurement values."
    ),
) -> None:
    """Show the current reading of every vehicle in an area."""
    state = _get_state(ctx)
    body = {
        "area": _require_area(bbox, circle),
        "filter": filter_text,
        "measurements_required": measurements,
    }
    payload = state.client.current_readings(body)
    render_readings(payload.get("readings") or [], heading="Current readings")


@app.command("historical")
def historical_command(
    ctx: typer.Context,
    bbox: Optional[str] = typer.Option(None, "--bbox", help=BBOX_HELP),
    circle: Optional[str] = typer.Option(None, "--circle", help=CIRCLE_HELP),
    start: Optional[str] = typer.Option(None, "--start", help="Timeframe start (ISO-8601)."),
    end: Optional[str] = typer.Option(None, "--end", help="Timeframe end (ISO-8601)."),
    filter_text: Optional[str] = typer.Option(None, "--filter", help="Extra search predicate."),
    order: Optional[SortOrder] = typer.Option(None, "--order", help="Sort by reading time."),
    measurements: bool = typer.Option(
        False, "--measurements/--no-measurements", help="Include measurement values."
    ),
) -> None:
    """Show readings in an area during a timeframe."""
    state = _get_state(ctx)
    timeframe = _timeframe_body(start, end)
    if timeframe is None:
        raise typer.BadParameter("A timeframe is required: pass --start and/or --end.")
    body = {
        "area": _require_area(bbox, circle),
        "timeframe": timeframe,
        "filter": filter_text,
        "order": _order_body(order),
        "measurements_required": measurements,
    }
    payload = state.client.historical_readings(body)
    render_readings(payload.get("readings") or [], heading="Historical readings")


@app.command("latest")
def latest_command(
    ctx: typer.Context,
    vehicle_id: str = typer.Argument(..., help="Vehicle identifier."),
    bbox: Optional[str] = typer.Option(None, "--bbox", help=BBOX_HELP),
    circle: Optional[str] = typer.Option(None, "--circle", help=CIRCLE_HELP),
    start: Optional[str] = typer.Option(None, "--start", help="Timeframe start (ISO-8601)."),
    end: Optional[str] = typer.Option(None, "--end", help="Timeframe end (ISO-8601)."),
    filter_text: Optional[str] = typer.Option(None, "--filter", help="Extra search predicate."),
    measurements: bool = typer.Option(
        False, "--measurements/--no-measurements", help="Include measurement values."
    ),
) -> None:
    """Show the most recent reading of a vehicle."""
    state = _get_state(ctx)
    body = {
        "area": _area_body(bbox, circle),
        "timeframe": _timeframe_body(start, end),
        "filter": filter_text,
        "measurements_required": measurements,
    }
    reading = state.client.latest_reading(vehicle_id, body)
    if reading is None:
        typer.secho(f"No reading found for vehicle {vehicle_id}.", fg=typer.colors.YELLOW)
        return
    render_reading(reading)


@app.command("vehicle-history")
def vehicle_history_command(
    ctx: typer.Context,
    vehicle_id: str = typer.Argument(..., help="Vehicle identifier."),
    bbox: Optional[str] = typer.Option(None, "--bbox", help=BBOX_HELP),
    circle: Optional[str] = typer.Option(None, "--circle", help=CIRCLE_HELP),
    start: Optional[str] = typer.Option(None, "--start", help="Timeframe start (ISO-8601)."),
    end: Optional[str] = typer.Option(None, "--end", help="Timeframe end (ISO-8601)."),
    filter_text: Optional[str] = typer.Option(None, "--filter", help="Extra search predicate."),
    order: Optional[SortOrder] = typer.Option(None, "--order", help="Sort by reading time."),
    measurements: bool = typer.Option(
        False, "--measurements/--no-measurements", help="Include measurement values."
    ),
) -> None:
    """Show the reading history of a vehicle."""
    state = _get_state(ctx)
    body = {
        "area": _area_body(bbox, circle),
        "timeframe": _timeframe_body(start, end),
        "filter": filter_text,
        "order": _order_body(order),
        "measurements_required": measurements,
    }
    payload = state.client.vehicle_history(vehicle_id, body)
    render_readings(payload.get("readings") or [], heading=f"History of {vehicle_id}")
