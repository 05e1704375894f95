"""Request-level entry points over the tracking core.

``TrackingService`` binds the core functions to their collaborators: the
catalog snapshot, the station store, the clock and the configured limits.
It is what an HTTP handler, a CLI or a batch job calls.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from orbtrack.config import Settings
from orbtrack.core.errors import InvalidParameters
from orbtrack.core.frames import ObserverLocation
from orbtrack.core.passes import PassWindow, predict_passes
from orbtrack.core.snapshot import Clock, Snapshot, snapshot, utc_now
from orbtrack.data.catalog import CatalogStore
from orbtrack.data.stations import StationStore

logger = logging.getLogger(__name__)


class TrackingService:
    """Answers "where is it now" and "when is it visible" for a catalog.

    Args:
        catalog: Holder of the current catalog snapshot.
        stations: Observer store used to resolve station identifiers.
        clock: Source of the current instant.
        settings: Request defaults and limits.
    """

    def __init__(
        self,
        catalog: CatalogStore,
        stations: StationStore,
        clock: Clock = utc_now,
        settings: Settings | None = None,
    ) -> None:
        self._catalog = catalog
        self._stations = stations
        self._clock = clock
        self.settings = settings or Settings()

    def positions(self, limit: int | None = None, at: datetime | None = None) -> Snapshot:
        """Current positions of the first ``limit`` catalog entries."""
        catalog = self._catalog.current()
        limit = self.settings.snapshot_limit if limit is None else limit
        return snapshot(catalog, limit, at=at if at is not None else self._clock())

    def passes(
        self,
        norad_id: int,
        *,
        station_id: int | None = None,
        observer: ObserverLocation | None = None,
        start: datetime | None = None,
        duration: timedelta | None = None,
        step: timedelta | None = None,
        min_elevation: float | None = None,
        refine: bool | None = None,
    ) -> list[PassWindow]:
        """Upcoming passes of one object over a stored or explicit observer.

        Exactly one of ``station_id`` and ``observer`` must be given. Unset
        parameters fall back to ``settings``; the search starts now by default.

        Raises:
            InvalidParameters: Bad observer selection, step, threshold, or a
                search larger than ``settings.max_pass_samples``.
            ObjectNotFound: If ``norad_id`` is not in the catalog.
            StationNotFound: If ``station_id`` is not in the station store.
        """
        if (station_id is None) == (observer is None):
            raise InvalidParameters("provide exactly one of station_id or observer")

        element_set = self._catalog.current().get(norad_id)
        if station_id is not None:
            observer = self._stations.get(station_id)

        settings = self.settings
        logger.debug("Pass request for NORAD %d over %s", norad_id, observer)
        return predict_passes(
            element_set,
            observer,
            start if start is not None else self._clock(),
            duration if duration is not None else timedelta(minutes=settings.pass_duration_min),
            step if step is not None else timedelta(seconds=settings.pass_step_s),
            settings.min_elevation_deg if min_elevation is None else min_elevation,
            refine=settings.refine_passes if refine is None else refine,
            max_samples=settings.max_pass_samples,
        )

    def health(self) -> dict:
        catalog = self._catalog.current()
        return {
            "status": "ok",
            "catalog_version": catalog.version,
            "elements": len(catalog),
        }
