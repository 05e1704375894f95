"""Physical constants and default request parameters.

Distances in km, times in seconds unless otherwise noted.
"""

from __future__ import annotations

# --- Earth parameters (WGS-84 reference ellipsoid) ---
WGS84_A_KM: float = 6378.137
"""Semi-major axis of the WGS-84 ellipsoid in km."""

WGS84_F: float = 1.0 / 298.257223563
"""Flattening of the WGS-84 ellipsoid."""

WGS84_E2: float = WGS84_F * (2.0 - WGS84_F)
"""First eccentricity squared of the WGS-84 ellipsoid."""

EARTH_ROTATION_RAD_S: float = 7.292115e-5
"""Earth rotation rate in rad/s."""

# --- Propagation model (WGS-72, as used by SGP4) ---
EARTH_RADIUS_KM: float = 6378.135
"""Equatorial radius used by the propagation model in km."""

EARTH_MU_KM3_S2: float = 398600.8
"""Earth gravitational parameter used by the propagation model in km³/s²."""

MINUTES_PER_DAY: float = 1440.0

# --- Request defaults ---
DEFAULT_SNAPSHOT_LIMIT: int = 500
"""Maximum number of objects in a positions snapshot."""

DEFAULT_PASS_DURATION_MIN: float = 120.0
"""Default pass search window in minutes."""

DEFAULT_PASS_STEP_S: float = 15.0
"""Default sampling step for pass search in seconds."""

DEFAULT_MIN_ELEVATION_DEG: float = 10.0
"""Default minimum elevation for a pass in degrees."""

DEFAULT_MAX_PASS_SAMPLES: int = 100_000
"""Upper bound on samples a single pass search may take."""

REFINE_TOLERANCE_S: float = 1e-3
"""Time tolerance for rise/set refinement in seconds."""
