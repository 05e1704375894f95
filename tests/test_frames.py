"""Tests for sidereal time, geodetic conversion and look angles."""
from __future__ import annotations

import math
from datetime import datetime, timezone

import numpy as np
import pytest

from orbtrack.core.errors import InvalidParameters
from orbtrack.core.frames import (
    ObserverLocation,
    geodetic_arrays,
    gmst,
    look_angle_arrays,
    look_angles,
    observer_position_eci,
    to_geodetic,
)
from orbtrack.core.propagation import StateVector
from orbtrack.utils.constants import EARTH_ROTATION_RAD_S, WGS84_A_KM, WGS84_E2

T0 = datetime(2024, 3, 20, 6, 0, tzinfo=timezone.utc)


def _state(position, velocity=(0.0, 0.0, 0.0), at: datetime = T0) -> StateVector:
    return StateVector(
        position_km=np.asarray(position, dtype=np.float64),
        velocity_km_s=np.asarray(velocity, dtype=np.float64),
        epoch=at,
    )


@pytest.fixture
def equator() -> ObserverLocation:
    return ObserverLocation(latitude_deg=0.0, longitude_deg=0.0)


class TestSiderealTime:
    def test_j2000(self) -> None:
        theta = gmst(datetime(2000, 1, 1, 12, 0, tzinfo=timezone.utc))
        assert math.degrees(theta) == pytest.approx(280.46061837, abs=1e-6)

    def test_range(self) -> None:
        for hour in range(24):
            theta = gmst(datetime(2024, 6, 1, hour, tzinfo=timezone.utc))
            assert 0.0 <= theta < 2 * math.pi

    def test_sidereal_day(self) -> None:
        # The Earth turns slightly more than once per solar day.
        a = gmst(T0)
        b = gmst(datetime(2024, 3, 21, 6, 0, tzinfo=timezone.utc))
        assert math.degrees((b - a) % (2 * math.pi)) == pytest.approx(0.9856, abs=1e-3)


class TestGeodetic:
    def test_equator_longitude_and_altitude(self) -> None:
        lon = 37.5
        theta = gmst(T0) + math.radians(lon)
        r = WGS84_A_KM + 400.0
        position = to_geodetic(_state([r * math.cos(theta), r * math.sin(theta), 0.0]))
        assert position.latitude_deg == pytest.approx(0.0, abs=1e-9)
        assert position.longitude_deg == pytest.approx(lon, abs=1e-9)
        assert position.altitude_km == pytest.approx(400.0, abs=1e-6)

    def test_north_pole(self) -> None:
        polar_radius = WGS84_A_KM * math.sqrt(1.0 - WGS84_E2)
        position = to_geodetic(_state([0.0, 0.0, polar_radius + 500.0]))
        assert position.latitude_deg == pytest.approx(90.0, abs=1e-9)
        assert position.altitude_km == pytest.approx(500.0, abs=1e-6)

    def test_south_pole(self) -> None:
        polar_radius = WGS84_A_KM * math.sqrt(1.0 - WGS84_E2)
        position = to_geodetic(_state([0.0, 0.0, -(polar_radius + 200.0)]))
        assert position.latitude_deg == pytest.approx(-90.0, abs=1e-9)
        assert position.altitude_km == pytest.approx(200.0, abs=1e-6)

    def test_observer_round_trip(self) -> None:
        observer = ObserverLocation(latitude_deg=-33.9, longitude_deg=151.2, altitude_km=0.05)
        position = to_geodetic(_state(observer_position_eci(observer, T0)))
        assert position.latitude_deg == pytest.approx(-33.9, abs=1e-9)
        assert position.longitude_deg == pytest.approx(151.2, abs=1e-9)
        assert position.altitude_km == pytest.approx(0.05, abs=1e-6)

    def test_longitude_wraps(self) -> None:
        theta = np.zeros(3)
        angles = np.radians([90.0, -179.5, 540.0 - 0.5])
        positions = np.column_stack(
            (7000.0 * np.cos(angles), 7000.0 * np.sin(angles), np.zeros(3))
        )
        _, lon, _ = geodetic_arrays(positions, theta)
        assert np.all(lon >= -180.0) and np.all(lon < 180.0)
        assert lon[0] == pytest.approx(90.0)
        assert lon[1] == pytest.approx(-179.5)
        assert lon[2] == pytest.approx(179.5)


class TestLookAngles:
    def test_directly_overhead(self, equator: ObserverLocation) -> None:
        site = observer_position_eci(equator, T0)
        up = site / np.linalg.norm(site)
        angles = look_angles(_state(site + 500.0 * up), equator)
        assert angles.elevation_deg == pytest.approx(90.0, abs=1e-6)
        assert angles.range_km == pytest.approx(500.0, abs=1e-6)

    def test_due_north_on_horizon(self, equator: ObserverLocation) -> None:
        site = observer_position_eci(equator, T0)
        angles = look_angles(_state(site + [0.0, 0.0, 1000.0]), equator)
        assert angles.elevation_deg == pytest.approx(0.0, abs=1e-6)
        assert angles.azimuth_deg < 1e-6 or angles.azimuth_deg > 360.0 - 1e-6
        assert angles.azimuth_deg < 360.0

    def test_due_east(self, equator: ObserverLocation) -> None:
        site = observer_position_eci(equator, T0)
        lst = gmst(T0)
        east = np.array([-math.sin(lst), math.cos(lst), 0.0])
        angles = look_angles(_state(site + 800.0 * east), equator)
        assert angles.azimuth_deg == pytest.approx(90.0, abs=1e-6)
        assert angles.elevation_deg == pytest.approx(0.0, abs=1e-6)

    def test_below_horizon(self, equator: ObserverLocation) -> None:
        site = observer_position_eci(equator, T0)
        angles = look_angles(_state(-site), equator)
        assert angles.elevation_deg == pytest.approx(-90.0, abs=1e-6)

    def test_co_rotating_target_has_zero_range_rate(self, equator: ObserverLocation) -> None:
        site = observer_position_eci(equator, T0)
        up = site / np.linalg.norm(site)
        target = site + 500.0 * up
        velocity = EARTH_ROTATION_RAD_S * np.array([-target[1], target[0], 0.0])
        angles = look_angles(_state(target, velocity), equator)
        assert angles.range_rate_km_s == pytest.approx(0.0, abs=1e-9)

    def test_receding_target(self, equator: ObserverLocation) -> None:
        site = observer_position_eci(equator, T0)
        up = site / np.linalg.norm(site)
        target = site + 500.0 * up
        velocity = EARTH_ROTATION_RAD_S * np.array([-target[1], target[0], 0.0]) + 2.0 * up
        angles = look_angles(_state(target, velocity), equator)
        assert angles.range_rate_km_s == pytest.approx(2.0, abs=1e-9)

    def test_domains(self) -> None:
        rng = np.random.default_rng(42)
        observer = ObserverLocation(latitude_deg=47.0, longitude_deg=8.5, altitude_km=0.4)
        positions = rng.normal(size=(200, 3)) * 8000.0
        velocities = rng.normal(size=(200, 3))
        theta = rng.uniform(0.0, 2 * math.pi, size=200)
        az, el, rng_km, _ = look_angle_arrays(positions, velocities, theta, observer)
        assert np.all((az >= 0.0) & (az < 360.0))
        assert np.all((el >= -90.0) & (el <= 90.0))
        assert np.all(rng_km > 0.0)


class TestObserverLocation:
    @pytest.mark.parametrize(
        "lat,lon,alt",
        [(91.0, 0.0, 0.0), (-90.5, 0.0, 0.0), (0.0, 180.5, 0.0), (0.0, -181.0, 0.0), (0.0, 0.0, math.inf)],
    )
    def test_rejects_out_of_range(self, lat: float, lon: float, alt: float) -> None:
        with pytest.raises(InvalidParameters):
            ObserverLocation(latitude_deg=lat, longitude_deg=lon, altitude_km=alt)

    def test_rejects_nan(self) -> None:
        with pytest.raises(InvalidParameters):
            ObserverLocation(latitude_deg=math.nan, longitude_deg=0.0)

    def test_accepts_limits(self) -> None:
        observer = ObserverLocation(latitude_deg=-90.0, longitude_deg=180.0, label="pole")
        assert observer.label == "pole"
