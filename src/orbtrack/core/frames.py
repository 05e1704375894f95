"""Reference-frame transforms: inertial to geodetic, and observer look angles.

Inertial states are rotated to Earth-fixed coordinates by Greenwich Mean
Sidereal Time (IAU-82 polynomial). Geodetic coordinates refer to the
WGS-84 ellipsoid. The array helpers work on (m, 3) stacks so that a pass
search can transform every sample at once.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime

import numpy as np
from numpy.typing import NDArray

from orbtrack.core.errors import InvalidParameters
from orbtrack.core.propagation import StateVector, julian_date
from orbtrack.utils.constants import EARTH_ROTATION_RAD_S, WGS84_A_KM, WGS84_E2

TWO_PI = 2.0 * math.pi
J2000_JD = 2451545.0
_GEODETIC_MAX_ITERATIONS = 10
_GEODETIC_TOLERANCE_RAD = 1e-12


@dataclass(frozen=True)
class GeodeticPosition:
    """Latitude/longitude in degrees and altitude above the ellipsoid in km."""

    latitude_deg: float
    longitude_deg: float  # [-180, 180)
    altitude_km: float


@dataclass(frozen=True)
class ObserverLocation:
    """A ground observer.

    Attributes:
        latitude_deg: Geodetic latitude, degrees north (negative for south).
        longitude_deg: Longitude, degrees east (negative for west).
        altitude_km: Height above the ellipsoid in km (default sea level).
        label: Optional human-readable name.
    """

    latitude_deg: float
    longitude_deg: float
    altitude_km: float = 0.0
    label: str | None = None

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude_deg <= 90.0:
            raise InvalidParameters(f"latitude {self.latitude_deg} outside [-90, 90]")
        if not -180.0 <= self.longitude_deg <= 180.0:
            raise InvalidParameters(f"longitude {self.longitude_deg} outside [-180, 180]")
        if not math.isfinite(self.altitude_km):
            raise InvalidParameters(f"altitude {self.altitude_km} is not finite")


@dataclass(frozen=True)
class LookAngles:
    """Target direction as seen from an observer.

    Attributes:
        azimuth_deg: Clockwise from geographic north, [0, 360).
        elevation_deg: Above the local horizon, [-90, 90].
        range_km: Slant range.
        range_rate_km_s: Rate of change of the slant range (positive receding).
    """

    azimuth_deg: float
    elevation_deg: float
    range_km: float
    range_rate_km_s: float


def gmst_from_julian(jd: float | NDArray, fr: float | NDArray) -> float | NDArray:
    """Greenwich Mean Sidereal Time in radians, [0, 2π), from a split Julian date."""
    t_ut1 = ((jd - J2000_JD) + fr) / 36525.0
    seconds = (
        67310.54841
        + (876600.0 * 3600.0 + 8640184.812866) * t_ut1
        + 0.093104 * t_ut1 ** 2
        - 6.2e-6 * t_ut1 ** 3
    )
    # 240 seconds of sidereal time per degree
    return np.mod(np.radians(seconds / 240.0), TWO_PI)


def gmst(at: datetime) -> float:
    """Greenwich Mean Sidereal Time at ``at`` in radians."""
    jd, fr = julian_date(at)
    return float(gmst_from_julian(jd, fr))


def to_geodetic(state: StateVector) -> GeodeticPosition:
    """Sub-satellite point and altitude for an inertial state vector."""
    theta = gmst(state.epoch)
    lat, lon, alt = geodetic_arrays(state.position_km.reshape(1, 3), np.array([theta]))
    return GeodeticPosition(
        latitude_deg=float(lat[0]),
        longitude_deg=float(lon[0]),
        altitude_km=float(alt[0]),
    )


def look_angles(state: StateVector, observer: ObserverLocation) -> LookAngles:
    """Azimuth, elevation and range of ``state`` as seen from ``observer``."""
    theta = gmst(state.epoch)
    az, el, rng, rate = look_angle_arrays(
        state.position_km.reshape(1, 3),
        state.velocity_km_s.reshape(1, 3),
        np.array([theta]),
        observer,
    )
    return LookAngles(
        azimuth_deg=float(az[0]),
        elevation_deg=float(el[0]),
        range_km=float(rng[0]),
        range_rate_km_s=float(rate[0]),
    )


def observer_position_eci(observer: ObserverLocation, at: datetime) -> NDArray[np.float64]:
    """Observer position in the inertial frame at ``at``, in km."""
    return _observer_eci(observer, np.array([gmst(at)]))[0]


def geodetic_arrays(
    positions_km: NDArray[np.float64], theta: NDArray[np.float64]
) -> tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.float64]]:
    """Vectorized inertial -> geodetic conversion.

    Args:
        positions_km: Inertial positions, shape (m, 3).
        theta: Sidereal angle per row in radians, shape (m,).

    Returns:
        Latitude (deg), longitude (deg, [-180, 180)) and altitude (km) arrays.
    """
    cos_t, sin_t = np.cos(theta), np.sin(theta)
    x = cos_t * positions_km[:, 0] + sin_t * positions_km[:, 1]
    y = -sin_t * positions_km[:, 0] + cos_t * positions_km[:, 1]
    z = positions_km[:, 2]

    p = np.hypot(x, y)
    lat = np.arctan2(z, p * (1.0 - WGS84_E2))
    for _ in range(_GEODETIC_MAX_ITERATIONS):
        sin_lat = np.sin(lat)
        n = WGS84_A_KM / np.sqrt(1.0 - WGS84_E2 * sin_lat ** 2)
        updated = np.arctan2(z + n * WGS84_E2 * sin_lat, p)
        converged = np.all(np.abs(updated - lat) < _GEODETIC_TOLERANCE_RAD)
        lat = updated
        if converged:
            break

    sin_lat = np.sin(lat)
    # Valid at all latitudes, including the poles where p -> 0
    alt = p * np.cos(lat) + z * sin_lat - WGS84_A_KM * np.sqrt(1.0 - WGS84_E2 * sin_lat ** 2)
    lon = _wrap_longitude(np.degrees(np.arctan2(y, x)))
    return np.degrees(lat), lon, alt


def look_angle_arrays(
    positions_km: NDArray[np.float64],
    velocities_km_s: NDArray[np.float64],
    theta: NDArray[np.float64],
    observer: ObserverLocation,
) -> tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.float64], NDArray[np.float64]]:
    """Vectorized look angles in the observer's south-east-zenith frame.

    Returns:
        Azimuth (deg), elevation (deg), range (km) and range rate (km/s) arrays.
    """
    lat = math.radians(observer.latitude_deg)
    sin_lat, cos_lat = math.sin(lat), math.cos(lat)
    lst = theta + math.radians(observer.longitude_deg)
    sin_lst, cos_lst = np.sin(lst), np.cos(lst)

    obs = _observer_eci(observer, theta)
    obs_vel = np.column_stack(
        (-EARTH_ROTATION_RAD_S * obs[:, 1], EARTH_ROTATION_RAD_S * obs[:, 0], np.zeros(len(obs)))
    )
    rel = positions_km - obs
    rel_vel = velocities_km_s - obs_vel
    rng = np.linalg.norm(rel, axis=1)

    rx, ry, rz = rel[:, 0], rel[:, 1], rel[:, 2]
    south = sin_lat * cos_lst * rx + sin_lat * sin_lst * ry - cos_lat * rz
    east = -sin_lst * rx + cos_lst * ry
    zenith = cos_lat * cos_lst * rx + cos_lat * sin_lst * ry + sin_lat * rz

    el = np.degrees(np.arcsin(np.clip(zenith / rng, -1.0, 1.0)))
    az = np.mod(np.degrees(np.arctan2(east, -south)), 360.0)
    az = np.where(az >= 360.0, 0.0, az)
    rate = np.sum(rel * rel_vel, axis=1) / rng
    return az, el, rng, rate


def _observer_eci(observer: ObserverLocation, theta: NDArray[np.float64]) -> NDArray[np.float64]:
    lat = math.radians(observer.latitude_deg)
    sin_lat, cos_lat = math.sin(lat), math.cos(lat)
    n = WGS84_A_KM / math.sqrt(1.0 - WGS84_E2 * sin_lat ** 2)
    r_xy = (n + observer.altitude_km) * cos_lat
    z = (n * (1.0 - WGS84_E2) + observer.altitude_km) * sin_lat
    lst = theta + math.radians(observer.longitude_deg)
    return np.column_stack((r_xy * np.cos(lst), r_xy * np.sin(lst), np.full(len(lst), z)))


def _wrap_longitude(lon_deg: NDArray[np.float64]) -> NDArray[np.float64]:
    wrapped = np.mod(lon_deg + 180.0, 360.0) - 180.0
    return np.where(wrapped >= 180.0, wrapped - 360.0, wrapped)
