"""
orbtrack — Satellite positions and visibility passes from TLE feeds.

Parses two-line element sets, propagates them with SGP4, converts
states to geodetic coordinates and observer look angles, and searches
time windows for passes above a ground observer.
"""

from __future__ import annotations

__version__ = "0.1.0"

from orbtrack.core.errors import (
    Decayed,
    InvalidParameters,
    MalformedElementSet,
    NumericalDivergence,
    ObjectNotFound,
    OrbitTrackError,
    PropagationError,
    StationNotFound,
)
from orbtrack.core.tle import OrbitalElementSet, parse_tle, parse_catalog, format_tle
from orbtrack.core.propagation import propagate, propagate_many, propagate_batch, StateVector
from orbtrack.core.frames import (
    GeodeticPosition,
    LookAngles,
    ObserverLocation,
    gmst,
    look_angles,
    to_geodetic,
)
from orbtrack.core.snapshot import Snapshot, SatellitePosition, snapshot
from orbtrack.core.passes import PassWindow, predict_passes
from orbtrack.data.catalog import CatalogSnapshot, CatalogStore
from orbtrack.data.stations import InMemoryStationStore, StationStore
from orbtrack.config import Settings
from orbtrack.service import TrackingService

__all__ = [
    "__version__",
    "OrbitTrackError",
    "MalformedElementSet",
    "PropagationError",
    "Decayed",
    "NumericalDivergence",
    "InvalidParameters",
    "StationNotFound",
    "ObjectNotFound",
    "OrbitalElementSet",
    "parse_tle",
    "parse_catalog",
    "format_tle",
    "propagate",
    "propagate_many",
    "propagate_batch",
    "StateVector",
    "GeodeticPosition",
    "LookAngles",
    "ObserverLocation",
    "gmst",
    "look_angles",
    "to_geodetic",
    "Snapshot",
    "SatellitePosition",
    "snapshot",
    "PassWindow",
    "predict_passes",
    "CatalogSnapshot",
    "CatalogStore",
    "InMemoryStationStore",
    "StationStore",
    "Settings",
    "TrackingService",
]
