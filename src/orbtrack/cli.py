"""orbtrack command-line interface.

Usage::

    orbtrack check data/active.tle
    orbtrack positions data/active.tle --limit 20
    orbtrack passes data/active.tle --norad-id 25544 --lat 40.7128 --lon -74.006
"""
from __future__ import annotations

import logging
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import click
from rich import box
from rich.console import Console
from rich.table import Table

from orbtrack.config import Settings
from orbtrack.core.errors import OrbitTrackError
from orbtrack.core.frames import ObserverLocation
from orbtrack.core.passes import PassWindow
from orbtrack.core.snapshot import Snapshot
from orbtrack.core.tle import CatalogParse, parse_catalog
from orbtrack.data.catalog import CatalogStore
from orbtrack.data.stations import InMemoryStationStore
from orbtrack.service import TrackingService

console = Console()


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """orbtrack — satellite positions and visibility passes from TLE feeds."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@main.command()
@click.argument("filepath", type=click.Path(exists=True, dir_okay=False))
def check(filepath: str):
    """Parse a TLE feed and report malformed records."""
    parsed = _load(filepath)

    table = Table(title=f"{len(parsed.element_sets)} element sets", box=box.SIMPLE)
    table.add_column("NORAD", justify="right")
    table.add_column("Name")
    table.add_column("Epoch (UTC)")
    table.add_column("Period (min)", justify="right")
    table.add_column("Branch")
    for e in parsed.element_sets:
        table.add_row(
            str(e.norad_id),
            e.name or "—",
            f"{e.epoch:%Y-%m-%d %H:%M:%S}",
            f"{e.period_minutes:.1f}",
            "deep-space" if e.is_deep_space else "near-earth",
        )
    console.print(table)

    for diagnostic in parsed.diagnostics:
        console.print(f"[yellow]skipped[/yellow] {diagnostic}")
    if parsed.diagnostics:
        sys.exit(1)


@main.command()
@click.argument("filepath", type=click.Path(exists=True, dir_okay=False))
@click.option("--limit", "-l", type=int, default=None, help="Maximum objects to position")
def positions(filepath: str, limit: int | None):
    """Show where each object in a TLE feed is right now."""
    service = _service(filepath)
    try:
        result = service.positions(limit=limit)
    except OrbitTrackError as exc:
        raise click.UsageError(str(exc)) from exc
    _display_positions(result)


@main.command()
@click.argument("filepath", type=click.Path(exists=True, dir_okay=False))
@click.option("--norad-id", "-n", type=int, required=True, help="NORAD catalog ID")
@click.option("--lat", type=float, required=True, help="Observer latitude (deg)")
@click.option("--lon", type=float, required=True, help="Observer longitude (deg)")
@click.option("--alt", type=float, default=0.0, help="Observer altitude (km)")
@click.option("--start", type=click.DateTime(), default=None, help="Search start (UTC), default now")
@click.option("--duration", "-d", type=float, default=None, help="Search window (minutes)")
@click.option("--step", "-s", type=float, default=None, help="Sampling step (seconds)")
@click.option("--min-el", type=float, default=None, help="Minimum elevation (deg)")
@click.option("--refine", is_flag=True, help="Refine rise/set between samples")
def passes(
    filepath: str,
    norad_id: int,
    lat: float,
    lon: float,
    alt: float,
    start: datetime | None,
    duration: float | None,
    step: float | None,
    min_el: float | None,
    refine: bool,
):
    """Predict visibility passes of one object over an observer."""
    service = _service(filepath)
    try:
        windows = service.passes(
            norad_id,
            observer=ObserverLocation(lat, lon, alt),
            start=start.replace(tzinfo=timezone.utc) if start else None,
            duration=timedelta(minutes=duration) if duration is not None else None,
            step=timedelta(seconds=step) if step is not None else None,
            min_elevation=min_el,
            refine=refine or None,
        )
    except OrbitTrackError as exc:
        raise click.UsageError(str(exc)) from exc
    _display_passes(norad_id, windows)


def _load(filepath: str) -> CatalogParse:
    parsed = parse_catalog(Path(filepath).read_text())
    console.print(f"Loaded {len(parsed.element_sets)} element sets from {filepath}")
    return parsed


def _service(filepath: str) -> TrackingService:
    parsed = _load(filepath)
    for diagnostic in parsed.diagnostics:
        console.print(f"[yellow]skipped[/yellow] {diagnostic}")
    try:
        settings = Settings.from_env()
    except OrbitTrackError as exc:
        raise click.UsageError(str(exc)) from exc
    return TrackingService(
        CatalogStore(parsed.element_sets),
        InMemoryStationStore(),
        settings=settings,
    )


def _display_positions(result: Snapshot):
    table = Table(title=f"Positions at {result.at:%Y-%m-%d %H:%M:%S} UTC", box=box.SIMPLE)
    table.add_column("NORAD", justify="right")
    table.add_column("Name")
    table.add_column("Lat", justify="right")
    table.add_column("Lon", justify="right")
    table.add_column("Alt (km)", justify="right")
    table.add_column("Speed (km/s)", justify="right")
    for p in result.positions:
        table.add_row(
            str(p.norad_id),
            p.name or "—",
            f"{p.position.latitude_deg:.3f}",
            f"{p.position.longitude_deg:.3f}",
            f"{p.position.altitude_km:.1f}",
            f"{p.speed_km_s:.3f}",
        )
    console.print(table)
    if result.excluded:
        console.print(f"[yellow]{result.excluded} objects excluded[/yellow]")
        for failure in result.failures:
            console.print(f"  {failure.norad_id}: {failure.reason}")


def _display_passes(norad_id: int, windows: list[PassWindow]):
    if not windows:
        console.print(f"[yellow]No passes found for NORAD {norad_id}.[/yellow]")
        return
    table = Table(title=f"Passes of NORAD {norad_id}", box=box.SIMPLE)
    table.add_column("#", justify="right")
    table.add_column("Rise (UTC)")
    table.add_column("Peak (UTC)")
    table.add_column("Set (UTC)")
    table.add_column("Max el", justify="right")
    for i, w in enumerate(windows, start=1):
        table.add_row(
            str(i),
            f"{w.rise_time:%Y-%m-%d %H:%M:%S}",
            f"{w.peak_time:%H:%M:%S}",
            f"{w.set_time:%H:%M:%S}" + (" +" if w.truncated else ""),
            f"{w.peak_elevation_deg:.1f}°",
        )
    console.print(table)


if __name__ == "__main__":
    main()
