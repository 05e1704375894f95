"""Integration test: parse → catalog → positions and passes end-to-end."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from orbtrack import (
    CatalogStore,
    InMemoryStationStore,
    ObserverLocation,
    Settings,
    TrackingService,
    parse_catalog,
)

# Hardcoded element sets (no network calls); the third record has a bad checksum.
FEED = """\
ISS (ZARYA)
1 25544U 98067A   08264.51782528 -.00002182  00000-0 -11606-4 0  2927
2 25544  51.6416 247.4627 0006703 130.5360 325.0288 15.72125391563537
VANGUARD 1
1 00005U 58002B   00179.78495062  .00000023  00000-0  28098-4 0  4753
2 00005  34.2682 348.7242 1859667 331.7664  19.3264 10.82419157413667
BROKEN
1 00006U 58002C   00179.78495062  .00000023  00000-0  28098-4 0  4755
2 00006  34.2682 348.7242 1859667 331.7664  19.3264 10.82419157413668
"""

NOW = datetime(2008, 9, 20, 18, 0, tzinfo=timezone.utc)


@pytest.fixture
def service() -> TrackingService:
    parsed = parse_catalog(FEED)
    assert parsed.skipped == 1
    return TrackingService(
        CatalogStore(parsed.element_sets),
        InMemoryStationStore(),
        clock=lambda: NOW,
        settings=Settings(pass_duration_min=24 * 60, pass_step_s=20.0),
    )


def test_feed_diagnostics():
    parsed = parse_catalog(FEED)
    assert [e.name for e in parsed.element_sets] == ["ISS (ZARYA)", "VANGUARD 1"]
    assert parsed.diagnostics[0].line_number == 8


def test_positions_for_whole_catalog(service: TrackingService):
    result = service.positions()
    assert [p.norad_id for p in result.positions] == [25544, 5]
    iss = result.positions[0]
    assert 300 < iss.position.altitude_km < 400
    assert abs(iss.position.latitude_deg) <= 51.7


def test_iss_passes_over_new_york(service: TrackingService):
    windows = service.passes(25544, observer=ObserverLocation(40.7128, -74.006, label="NYC"))
    assert len(windows) >= 2
    assert all(w.peak_elevation_deg >= 10.0 for w in windows)
    assert windows[0].rise_time >= NOW
    assert windows[-1].set_time <= NOW + timedelta(days=1)
