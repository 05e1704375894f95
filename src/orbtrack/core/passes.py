"""Visibility pass prediction over a ground observer.

Elevation is sampled on a fixed time grid and a two-state machine
(below / above the threshold) turns consecutive samples into pass windows.
Rise and set are reported at sample precision unless ``refine`` is set,
in which case each bracketed threshold crossing is located by root finding.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta

import numpy as np
from numpy.typing import NDArray
from scipy.optimize import brentq

from orbtrack.core.errors import InvalidParameters, PropagationError
from orbtrack.core.frames import ObserverLocation, gmst_from_julian, look_angle_arrays
from orbtrack.core.propagation import as_utc, check_state, julian_date, propagate_series
from orbtrack.core.tle import OrbitalElementSet
from orbtrack.utils.constants import EARTH_RADIUS_KM, REFINE_TOLERANCE_S

logger = logging.getLogger(__name__)


@dataclass
class PassWindow:
    """A contiguous interval with elevation at or above the threshold.

    Attributes:
        rise_time: First sample (or refined crossing) at or above the threshold.
        set_time: First sample (or refined crossing) below the threshold after
            the run, or the last sampled instant for a truncated pass.
        peak_elevation_deg: Highest sampled elevation during the pass.
        peak_time: Instant of the highest sampled elevation.
        truncated: True if the pass may extend beyond the search window.
    """

    rise_time: datetime
    set_time: datetime
    peak_elevation_deg: float
    peak_time: datetime
    truncated: bool = False

    @property
    def duration(self) -> timedelta:
        return self.set_time - self.rise_time


def predict_passes(
    element_set: OrbitalElementSet,
    observer: ObserverLocation,
    start: datetime,
    duration: timedelta,
    step: timedelta,
    min_elevation: float,
    *,
    refine: bool = False,
    max_samples: int | None = None,
) -> list[PassWindow]:
    """Find the passes of one object over one observer.

    Samples are taken at ``start, start + step, ...`` up to and including
    ``start + duration``. A sample that cannot be propagated counts as below
    the threshold; it never aborts the search.

    Args:
        element_set: Element set of the object.
        observer: Ground observer.
        start: Beginning of the search window.
        duration: Length of the search window. Zero or negative yields no passes.
        step: Sampling step. Must be positive.
        min_elevation: Elevation threshold in degrees.
        refine: Locate rise/set crossings between samples by root finding.
        max_samples: Reject searches needing more samples than this.

    Returns:
        Disjoint pass windows in chronological order.

    Raises:
        InvalidParameters: If ``step``, ``min_elevation`` or the sample count
            is out of domain. Raised before any sampling.
    """
    if step <= timedelta(0):
        raise InvalidParameters(f"step must be positive, got {step}")
    if not (math.isfinite(min_elevation) and -90.0 <= min_elevation <= 90.0):
        raise InvalidParameters(f"min_elevation {min_elevation} outside [-90, 90]")
    if duration <= timedelta(0):
        return []

    n_samples = duration // step + 1
    if max_samples is not None and n_samples > max_samples:
        raise InvalidParameters(
            f"search needs {n_samples} samples, more than the maximum of {max_samples}"
        )

    start = as_utc(start)
    step_s = step.total_seconds()
    offsets = np.arange(n_samples, dtype=np.float64) * step_s
    elevation, failures = _sample_elevations(element_set, observer, start, offsets)
    if failures:
        logger.warning(
            "NORAD %d: %d of %d samples could not be propagated (first: %s)",
            element_set.norad_id, len(failures), n_samples, failures[0],
        )

    runs: list[tuple[int, int, int, bool]] = []
    in_pass = False
    rise_i = peak_i = 0
    for i in range(n_samples):
        if elevation[i] >= min_elevation:
            if not in_pass:
                in_pass = True
                rise_i = peak_i = i
            elif elevation[i] > elevation[peak_i]:
                peak_i = i
        elif in_pass:
            in_pass = False
            runs.append((rise_i, i, peak_i, rise_i == 0))
    if in_pass:
        runs.append((rise_i, n_samples - 1, peak_i, True))

    windows = []
    for rise_i, set_i, peak_i, truncated in runs:
        rise_time = start + rise_i * step
        set_time = start + set_i * step
        if refine:
            rise_time, set_time = _refine(
                element_set, observer, start, offsets, elevation, min_elevation,
                rise_i, set_i, rise_time, set_time,
            )
        windows.append(
            PassWindow(
                rise_time=rise_time,
                set_time=set_time,
                peak_elevation_deg=float(elevation[peak_i]),
                peak_time=start + peak_i * step,
                truncated=truncated,
            )
        )

    logger.debug(
        "NORAD %d: %d passes over %d samples (step %.1fs)",
        element_set.norad_id, len(windows), n_samples, step_s,
    )
    return windows


def _sample_elevations(
    element_set: OrbitalElementSet,
    observer: ObserverLocation,
    start: datetime,
    offsets_s: NDArray[np.float64],
) -> tuple[NDArray[np.float64], list[PropagationError]]:
    """Elevation at each offset; -inf where propagation failed."""
    positions, velocities, codes = propagate_series(element_set, start, offsets_s)
    ok = (
        (codes == 0)
        & np.all(np.isfinite(positions), axis=1)
        & np.all(np.isfinite(velocities), axis=1)
    )
    ok[ok] = np.linalg.norm(positions[ok], axis=1) >= EARTH_RADIUS_KM

    failures = []
    for i in np.flatnonzero(~ok):
        at = start + timedelta(seconds=float(offsets_s[i]))
        failure = check_state(element_set, at, int(codes[i]), positions[i], velocities[i])
        if failure is not None:
            failures.append(failure)

    base_jd, base_fr = julian_date(start)
    theta = gmst_from_julian(base_jd, base_fr + offsets_s[ok] / 86400.0)
    _, valid_elevation, _, _ = look_angle_arrays(positions[ok], velocities[ok], theta, observer)
    elevation = np.full(len(offsets_s), -np.inf)
    elevation[ok] = valid_elevation
    return elevation, failures


def _refine(
    element_set: OrbitalElementSet,
    observer: ObserverLocation,
    start: datetime,
    offsets: NDArray[np.float64],
    elevation: NDArray[np.float64],
    min_elevation: float,
    rise_i: int,
    set_i: int,
    rise_time: datetime,
    set_time: datetime,
) -> tuple[datetime, datetime]:
    """Move bracketed rise/set instants onto the threshold crossing."""

    def above_threshold(offset_s: float) -> float:
        value, failures = _sample_elevations(element_set, observer, start, np.array([offset_s]))
        if failures:
            raise failures[0]
        return float(value[0]) - min_elevation

    if rise_i > 0 and np.isfinite(elevation[rise_i - 1]):
        crossing = _crossing(above_threshold, offsets[rise_i - 1], offsets[rise_i])
        if crossing is not None:
            rise_time = start + timedelta(seconds=crossing)

    # A set on an above-threshold sample is the window edge, not a crossing.
    if set_i > rise_i and np.isfinite(elevation[set_i]) and elevation[set_i] < min_elevation:
        crossing = _crossing(above_threshold, offsets[set_i - 1], offsets[set_i])
        if crossing is not None:
            set_time = start + timedelta(seconds=crossing)

    return rise_time, set_time


def _crossing(func, a: float, b: float) -> float | None:
    try:
        return brentq(func, a, b, xtol=REFINE_TOLERANCE_S)
    except (PropagationError, ValueError, RuntimeError) as exc:
        logger.debug("Crossing refinement in [%.1f, %.1f]s failed: %s", a, b, exc)
        return None
