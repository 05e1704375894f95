"""Failure types raised or reported by the tracking core."""

from __future__ import annotations

from datetime import datetime


class OrbitTrackError(Exception):
    """Base class for all orbtrack errors."""


class MalformedElementSet(OrbitTrackError, ValueError):
    """Element set text that cannot be decoded.

    Attributes:
        line: Offending line (0 = name line, 1 or 2 = element lines).
        field: Name of the offending field.
    """

    def __init__(self, line: int, field: str, message: str) -> None:
        self.line = line
        self.field = field
        super().__init__(f"line {line}, {field}: {message}")


class PropagationError(OrbitTrackError):
    """Propagation of one object to one instant failed.

    Attributes:
        norad_id: Catalog number of the object.
        at: Instant the propagation was attempted for.
        code: Error code reported by the propagation model (0 if none).
    """

    reason = "propagation_error"

    def __init__(self, norad_id: int, at: datetime, code: int, message: str) -> None:
        self.norad_id = norad_id
        self.at = at
        self.code = code
        super().__init__(f"NORAD {norad_id} at {at.isoformat()}: {message}")


class Decayed(PropagationError):
    """The object has re-entered (radius below the Earth's radius)."""

    reason = "decayed"


class NumericalDivergence(PropagationError):
    """The perturbation model produced out-of-domain or non-finite values."""

    reason = "numerical_divergence"


class InvalidParameters(OrbitTrackError, ValueError):
    """Caller-supplied parameters out of domain."""


class StationNotFound(OrbitTrackError, LookupError):
    """No observer is stored under the requested identifier."""

    def __init__(self, station_id: object) -> None:
        self.station_id = station_id
        super().__init__(f"station {station_id!r} not found")


class ObjectNotFound(OrbitTrackError, LookupError):
    """No element set is loaded for the requested catalog number."""

    def __init__(self, norad_id: int) -> None:
        self.norad_id = norad_id
        super().__init__(f"NORAD {norad_id} not found in catalog")
