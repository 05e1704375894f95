"""Catalog snapshot: current positions for a batch of objects."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from itertools import islice
from typing import Callable, Iterable

import numpy as np

from orbtrack.core.errors import InvalidParameters, PropagationError
from orbtrack.core.frames import GeodeticPosition, geodetic_arrays, gmst
from orbtrack.core.propagation import as_utc, check_state, propagate_batch
from orbtrack.core.tle import OrbitalElementSet

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SatellitePosition:
    """Where one object is at the snapshot instant.

    Attributes:
        norad_id: NORAD catalog number.
        name: Object name (empty if the element set has none).
        position: Sub-satellite point and altitude above the ellipsoid.
        speed_km_s: Magnitude of the inertial velocity.
        epoch: Epoch of the element set the position was computed from.
    """

    norad_id: int
    name: str
    position: GeodeticPosition
    speed_km_s: float
    epoch: datetime


@dataclass
class ExcludedObject:
    """An object left out of a snapshot because it could not be propagated."""

    norad_id: int
    name: str
    error: PropagationError

    @property
    def reason(self) -> str:
        return self.error.reason


@dataclass
class Snapshot:
    """Positions of a batch of objects at one instant.

    Attributes:
        at: The instant all positions refer to.
        positions: Successfully propagated objects, in input order.
        failures: Objects excluded from ``positions``, in input order.
    """

    at: datetime
    positions: list[SatellitePosition]
    failures: list[ExcludedObject]

    @property
    def excluded(self) -> int:
        return len(self.failures)


def snapshot(
    element_sets: Iterable[OrbitalElementSet],
    limit: int,
    at: datetime | None = None,
    clock: Clock = utc_now,
) -> Snapshot:
    """Propagate up to ``limit`` element sets to one instant.

    The first ``limit`` entries are taken in iteration order, so callers
    prioritize by ordering the input. Objects that fail to propagate are
    reported in ``failures`` and never abort the batch.

    Args:
        element_sets: Element sets to position.
        limit: Maximum number of entries to consider.
        at: Target instant. Defaults to ``clock()``.
        clock: Source of the current instant.

    Returns:
        A Snapshot of positions and excluded objects.

    Raises:
        InvalidParameters: If ``limit`` is negative.
    """
    if limit < 0:
        raise InvalidParameters(f"limit must be non-negative, got {limit}")

    at = as_utc(at if at is not None else clock())
    selected = list(islice(element_sets, limit))
    states, codes = propagate_batch(selected, at)

    failures: list[ExcludedObject] = []
    valid = np.zeros(len(selected), dtype=np.bool_)
    for i, element_set in enumerate(selected):
        failure = check_state(element_set, at, int(codes[i]), states[i, 0:3], states[i, 3:6])
        if failure is None:
            valid[i] = True
            continue
        logger.warning("Excluding NORAD %d from snapshot: %s", element_set.norad_id, failure)
        failures.append(ExcludedObject(element_set.norad_id, element_set.name, failure))

    rows = np.flatnonzero(valid)
    lat, lon, alt = geodetic_arrays(states[rows, 0:3], np.full(len(rows), gmst(at)))
    speeds = np.linalg.norm(states[rows, 3:6], axis=1)

    positions = []
    for k, i in enumerate(rows):
        element_set = selected[i]
        positions.append(
            SatellitePosition(
                norad_id=element_set.norad_id,
                name=element_set.name,
                position=GeodeticPosition(float(lat[k]), float(lon[k]), float(alt[k])),
                speed_km_s=float(speeds[k]),
                epoch=element_set.epoch,
            )
        )

    logger.info(
        "snapshot: %d positions at %s (%d excluded)", len(positions), at.isoformat(), len(failures)
    )
    return Snapshot(at=at, positions=positions, failures=failures)
