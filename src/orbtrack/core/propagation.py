"""Orbital propagation via SGP4.

The sgp4 library selects its near-earth or deep-space branch from the
element set's mean motion. Results are validated here so that a decayed
or diverged object is reported as a typed failure, never as a NaN vector.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

import numpy as np
from numpy.typing import NDArray
from sgp4.api import SGP4_ERRORS, SatrecArray, jday

from orbtrack.core.errors import Decayed, NumericalDivergence, PropagationError
from orbtrack.core.tle import OrbitalElementSet
from orbtrack.utils.constants import EARTH_RADIUS_KM

logger = logging.getLogger(__name__)

DECAYED_CODE = 6


@dataclass
class StateVector:
    """Position and velocity in the TEME inertial frame.

    Attributes:
        position_km: [x, y, z] position in km.
        velocity_km_s: [vx, vy, vz] velocity in km/s.
        epoch: Instant this state vector is valid for (UTC).
    """

    position_km: NDArray[np.float64]  # shape (3,)
    velocity_km_s: NDArray[np.float64]  # shape (3,)
    epoch: datetime

    @property
    def speed_km_s(self) -> float:
        return float(np.linalg.norm(self.velocity_km_s))

    @property
    def radius_km(self) -> float:
        return float(np.linalg.norm(self.position_km))


def as_utc(t: datetime) -> datetime:
    """Return ``t`` as an aware UTC datetime; naive values are taken as UTC."""
    if t.tzinfo is None:
        return t.replace(tzinfo=timezone.utc)
    return t.astimezone(timezone.utc)


def julian_date(t: datetime) -> tuple[float, float]:
    """Split Julian date (whole, fraction) of a UTC instant."""
    t = as_utc(t)
    return jday(t.year, t.month, t.day, t.hour, t.minute, t.second + t.microsecond / 1e6)


def minutes_since_epoch(element_set: OrbitalElementSet, at: datetime) -> float:
    """Signed minutes from the element set epoch to ``at``."""
    return (as_utc(at) - element_set.epoch).total_seconds() / 60.0


def check_state(
    element_set: OrbitalElementSet,
    at: datetime,
    code: int,
    position: NDArray[np.float64],
    velocity: NDArray[np.float64],
) -> PropagationError | None:
    """Classify one raw SGP4 result.

    Returns:
        ``None`` for a usable state, otherwise the failure describing it.
    """
    if code == DECAYED_CODE:
        return Decayed(element_set.norad_id, at, code, SGP4_ERRORS[code])
    if code != 0:
        message = SGP4_ERRORS.get(code, f"error code {code}")
        return NumericalDivergence(element_set.norad_id, at, code, message)
    if not (np.all(np.isfinite(position)) and np.all(np.isfinite(velocity))):
        return NumericalDivergence(element_set.norad_id, at, code, "non-finite state vector")
    radius = float(np.linalg.norm(position))
    if radius < EARTH_RADIUS_KM:
        return Decayed(
            element_set.norad_id, at, code, f"radius {radius:.1f} km is below the Earth's radius"
        )
    return None


def propagate(element_set: OrbitalElementSet, at: datetime) -> StateVector:
    """Propagate one element set to one instant.

    Args:
        element_set: A parsed element set.
        at: Target instant. May precede the epoch.

    Returns:
        The TEME state vector at ``at``.

    Raises:
        Decayed: If the object has re-entered by ``at``.
        NumericalDivergence: If the model fails to produce a valid state.
    """
    at = as_utc(at)
    jd, fr = julian_date(at)
    code, pos, vel = element_set.satrec.sgp4(jd, fr)
    position = np.array(pos, dtype=np.float64)
    velocity = np.array(vel, dtype=np.float64)

    failure = check_state(element_set, at, code, position, velocity)
    if failure is not None:
        logger.debug("Propagation failed: %s", failure)
        raise failure

    return StateVector(position_km=position, velocity_km_s=velocity, epoch=at)


def propagate_many(element_set: OrbitalElementSet, times: list[datetime]) -> list[StateVector]:
    """Propagate a single element set to multiple times.

    Raises:
        PropagationError: On the first instant that cannot be propagated.
    """
    result = [propagate(element_set, t) for t in times]
    logger.debug("Propagated NORAD %d to %d times", element_set.norad_id, len(times))
    return result


def propagate_series(
    element_set: OrbitalElementSet, start: datetime, offsets_s: NDArray[np.float64]
) -> tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.int_]]:
    """Propagate one element set to ``start + offsets_s`` in a single call.

    Returns:
        Tuple of:
            - positions: Array of shape (m, 3) in km
            - velocities: Array of shape (m, 3) in km/s
            - codes: SGP4 error code per sample, shape (m,)
    """
    base_jd, base_fr = julian_date(start)
    jd = np.full(len(offsets_s), base_jd)
    fr = base_fr + np.asarray(offsets_s, dtype=np.float64) / 86400.0
    codes, positions, velocities = element_set.satrec.sgp4_array(jd, fr)
    return (
        np.asarray(positions, dtype=np.float64),
        np.asarray(velocities, dtype=np.float64),
        np.asarray(codes),
    )


def propagate_batch(
    element_sets: list[OrbitalElementSet], time: datetime
) -> tuple[NDArray[np.float64], NDArray[np.int_]]:
    """Propagate many element sets to a single time using vectorized SGP4.

    Uses SatrecArray for C-level batch propagation (fast path for large catalogs).

    Args:
        element_sets: Element sets to propagate.
        time: Single UTC datetime to propagate all objects to.

    Returns:
        Tuple of:
            - states: Array of shape (n, 6) with [x,y,z,vx,vy,vz] in km, km/s
            - codes: SGP4 error code per object, shape (n,); 0 means success
    """
    if not element_sets:
        return np.empty((0, 6), dtype=np.float64), np.empty(0, dtype=np.int_)

    satrec_array = SatrecArray([e.satrec for e in element_sets])

    jd, fr = julian_date(time)
    jd_array = np.array([jd], dtype=np.float64)
    fr_array = np.array([fr], dtype=np.float64)

    # Output shape: errors (n,1), positions (n,1,3), velocities (n,1,3)
    errors, positions, velocities = satrec_array.sgp4(jd_array, fr_array)

    n = len(element_sets)
    states = np.empty((n, 6), dtype=np.float64)
    states[:, 0:3] = positions[:, 0, :]
    states[:, 3:6] = velocities[:, 0, :]

    return states, errors[:, 0].astype(np.int_)
