"""
Command line interface for the brolly umbrella advisor.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .api import ProviderError, handle_request
from .config import CheckConfig, ConfigError, build_config, get_secrets, load_config
from .pipeline import ForecastDataError, TimeWindow, run_check, window_label
from .pipeline.windows import hour_range

console = Console()
app = typer.Typer(help="Decide whether you need an umbrella today.")
logger = logging.getLogger(__name__)

LOG_LEVELS = ["critical", "error", "warning", "info", "debug"]


def _configure_logging(level_name: str) -> None:
    env_override = os.getenv("BROLLY_LOG_LEVEL")
    level_str = (env_override or level_name or "warning").upper()
    if level_str not in {lvl.upper() for lvl in LOG_LEVELS}:
        level_str = "WARNING"
    logging.basicConfig(
        level=getattr(logging, level_str, logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.debug("Logging configured at %s", level_str)


def _resolve_optional_file(value: Optional[Path]) -> Optional[Path]:
    """Ensure an optional file path exists and return the absolute path."""
    if value is None:
        return None
    resolved = value.expanduser().resolve()
    if not resolved.exists():
        raise typer.BadParameter(f"No file found at {resolved}")
    if not resolved.is_file():
        raise typer.BadParameter(f"Path must be a file, got directory: {resolved}")
    return resolved


def _build_check_config(
    config: Optional[Path],
    *,
    city: Optional[str],
    lat: Optional[float],
    lon: Optional[float],
    window: Optional[TimeWindow],
    timezone: Optional[str],
    wind_unit: Optional[str],
    payload: Optional[Path],
) -> CheckConfig:
    """Merge a config file (if any) with command-line overrides."""
    data: Dict[str, Any] = {}
    if config is not None:
        data = load_config(config).model_dump(exclude_none=True)

    overrides = {
        "location": city,
        "latitude": lat,
        "longitude": lon,
        "window": window.value if window else None,
        "timezone": timezone,
        "wind_unit": wind_unit,
    }
    data.update({key: value for key, value in overrides.items() if value is not None})
    if city is not None and lat is None and lon is None:
        data.pop("latitude", None)
        data.pop("longitude", None)

    if payload is not None and not data.get("location") and "latitude" not in data:
        data["location"] = payload.stem
    return build_config(data)


def _print_recommendation(place: str, payload: Dict[str, Any]) -> None:
    signals = payload["signals"]
    table = Table(title=f"{payload['icon']}  {payload['label']}")
    table.add_column("Key")
    table.add_column("Value", overflow="fold")
    table.add_row("Location", place)
    table.add_row("When", payload["date"])
    table.add_row("Score", f"{payload['score']} ({payload['level']})")
    table.add_row("Conditions", payload["description"] or "-")
    table.add_row("Rain probability", f"{round(signals['max_rain_probability'])}%")
    table.add_row("Precipitation", f"{signals['total_precipitation']:.1f} mm")
    temperature = signals["mean_temperature"]
    table.add_row("Temperature", f"{round(temperature)}°C" if temperature is not None else "n/a")
    table.add_row("Wind", f"{signals['peak_wind_speed']:.0f} km/h")
    if payload["daily_fallback"]:
        table.add_row("Source", "Daily forecast (no hourly data for this window)")
    console.print(table)


@app.callback(invoke_without_command=True)
def _root_command(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show brolly version and exit.",
        is_flag=True,
    ),
    log_level: str = typer.Option(
        "warning",
        "--log-level",
        help="Logging level (critical, error, warning, info, debug).",
        show_default=True,
        case_sensitive=False,
    ),
) -> None:
    """
    Default command when no subcommand is selected.
    """
    _configure_logging(log_level)

    if version:
        console.print(f"[bold green]brolly[/] {__version__}")
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(
            "[bold yellow]brolly[/] is ready. Run [cyan]brolly check --city Madrid[/] "
            "or [cyan]brolly check --config path/to/config.toml[/].",
        )


@app.command()
def check(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a TOML configuration file.",
        callback=_resolve_optional_file,
    ),
    city: Optional[str] = typer.Option(None, "--city", help="Place name to look up."),
    lat: Optional[float] = typer.Option(None, "--lat", help="Latitude (use with --lon)."),
    lon: Optional[float] = typer.Option(None, "--lon", help="Longitude (use with --lat)."),
    window: Optional[TimeWindow] = typer.Option(
        None,
        "--window",
        "-w",
        help="Time window to evaluate.",
        case_sensitive=False,
    ),
    timezone: Optional[str] = typer.Option(None, "--timezone", help="IANA timezone for the window hours."),
    wind_unit: Optional[str] = typer.Option(
        None,
        "--wind-unit",
        help="Wind speed unit of a saved payload (kmh, ms, mph).",
    ),
    payload: Optional[Path] = typer.Option(
        None,
        "--payload",
        "-p",
        help="Evaluate a saved provider JSON payload instead of calling the API.",
        callback=_resolve_optional_file,
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the recommendation as JSON."),
) -> None:
    """
    Fetch the forecast (or read a saved one) and print the umbrella advice.
    """
    try:
        check_config = _build_check_config(
            config,
            city=city,
            lat=lat,
            lon=lon,
            window=window,
            timezone=timezone,
            wind_unit=wind_unit,
            payload=payload,
        )
    except ConfigError as exc:
        console.print(f"[bold red]Configuration error:[/] {exc}")
        raise typer.Exit(code=1) from exc

    logger.info("Checking window %s", check_config.window)
    try:
        outcome = run_check(check_config, payload_path=payload)
    except (ProviderError, ForecastDataError) as exc:
        console.print(f"[bold red]Unable to build a recommendation:[/] {exc}")
        raise typer.Exit(code=1) from exc

    result = outcome.recommendation.as_dict()
    if as_json:
        typer.echo(json.dumps({"place": outcome.place, **result}, ensure_ascii=False, indent=2))
        return
    _print_recommendation(outcome.place, result)


@app.command()
def windows() -> None:
    """
    List the available time windows.
    """
    table = Table(title="Time Windows")
    table.add_column("Window")
    table.add_column("Hours")
    table.add_column("Label")
    for item in TimeWindow:
        if item is TimeWindow.TODAY:
            hours = "now - 24:00"
        else:
            start, end = hour_range(item, 0)
            hours = f"{start:02d}:00 - {end + 1:02d}:00"
        table.add_row(item.value, hours, window_label(item))
    console.print(table)


@app.command()
def proxy(
    endpoint: str = typer.Argument(..., help="Upstream endpoint: weather, geo-reverse or geo-direct."),
    lat: Optional[str] = typer.Option(None, "--lat", help="Latitude for weather/geo-reverse."),
    lon: Optional[str] = typer.Option(None, "--lon", help="Longitude for weather/geo-reverse."),
    query: Optional[str] = typer.Option(None, "--q", help="City name for geo-direct."),
) -> None:
    """
    Run one request through the key-hiding proxy and print the JSON it would return.
    """
    params = {"endpoint": endpoint, "lat": lat, "lon": lon, "q": query}
    response = handle_request(
        "GET",
        {key: value for key, value in params.items() if value is not None},
        api_key=get_secrets().openweathermap_api_key,
    )
    typer.echo(response.to_json())
    if not response.ok:
        raise typer.Exit(code=1)


def main() -> None:
    """
    Entry-point used by the console script defined in pyproject.toml.
    """
    app()
