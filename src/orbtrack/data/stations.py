"""Observer (ground station) store interface and in-memory implementation."""

from __future__ import annotations

import itertools
import logging
import threading
from typing import Protocol

from orbtrack.core.errors import StationNotFound
from orbtrack.core.frames import ObserverLocation

logger = logging.getLogger(__name__)


class StationStore(Protocol):
    """What the tracking core needs from an observer store."""

    def create(self, observer: ObserverLocation) -> int: ...

    def get(self, station_id: int) -> ObserverLocation: ...

    def update(self, station_id: int, observer: ObserverLocation) -> None: ...

    def list(self) -> list[tuple[int, ObserverLocation]]: ...

    def delete(self, station_id: int) -> None: ...


class InMemoryStationStore:
    """Thread-safe station store keyed by integer identifiers."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._stations: dict[int, ObserverLocation] = {}

    def create(self, observer: ObserverLocation) -> int:
        with self._lock:
            station_id = next(self._ids)
            self._stations[station_id] = observer
        logger.debug("Created station %d (%s)", station_id, observer.label or "unnamed")
        return station_id

    def get(self, station_id: int) -> ObserverLocation:
        with self._lock:
            try:
                return self._stations[station_id]
            except KeyError:
                raise StationNotFound(station_id) from None

    def update(self, station_id: int, observer: ObserverLocation) -> None:
        with self._lock:
            if station_id not in self._stations:
                raise StationNotFound(station_id)
            self._stations[station_id] = observer
        logger.debug("Updated station %d (%s)", station_id, observer.label or "unnamed")

    def list(self) -> list[tuple[int, ObserverLocation]]:
        with self._lock:
            return sorted(self._stations.items())

    def delete(self, station_id: int) -> None:
        with self._lock:
            if self._stations.pop(station_id, None) is None:
                raise StationNotFound(station_id)
        logger.debug("Deleted station %d", station_id)
