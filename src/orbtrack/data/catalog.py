"""Versioned, immutable catalog snapshots.

The element-set source refreshes the catalog on its own schedule. Every
computation works from one ``CatalogSnapshot``, so it sees one consistent
record per object for its whole duration.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Iterator

from orbtrack.core.errors import ObjectNotFound
from orbtrack.core.tle import OrbitalElementSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogSnapshot:
    """One consistent generation of the element-set catalog.

    Attributes:
        version: Generation counter, incremented on every refresh.
        element_sets: Element sets in priority order, one per catalog number.
        created_at: When this generation was built (UTC).
    """

    version: int
    element_sets: tuple[OrbitalElementSet, ...]
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    _index: dict[int, OrbitalElementSet] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        self._index.update((e.norad_id, e) for e in self.element_sets)

    @classmethod
    def build(
        cls, element_sets: Iterable[OrbitalElementSet], version: int = 0
    ) -> CatalogSnapshot:
        """Build a snapshot, keeping the newest epoch for repeated catalog numbers.

        A superseding record takes the position of the first occurrence.
        """
        latest: dict[int, OrbitalElementSet] = {}
        for element_set in element_sets:
            current = latest.get(element_set.norad_id)
            if current is None or element_set.epoch > current.epoch:
                latest[element_set.norad_id] = element_set
        return cls(version=version, element_sets=tuple(latest.values()))

    def get(self, norad_id: int) -> OrbitalElementSet:
        """Element set for ``norad_id``.

        Raises:
            ObjectNotFound: If the catalog has no record for it.
        """
        try:
            return self._index[norad_id]
        except KeyError:
            raise ObjectNotFound(norad_id) from None

    def ids(self) -> list[int]:
        return [e.norad_id for e in self.element_sets]

    def __contains__(self, norad_id: object) -> bool:
        return norad_id in self._index

    def __iter__(self) -> Iterator[OrbitalElementSet]:
        return iter(self.element_sets)

    def __len__(self) -> int:
        return len(self.element_sets)


class CatalogStore:
    """Holds the current catalog snapshot and swaps it atomically on refresh."""

    def __init__(self, element_sets: Iterable[OrbitalElementSet] = ()) -> None:
        self._lock = threading.Lock()
        self._current = CatalogSnapshot.build(element_sets, version=0)

    def current(self) -> CatalogSnapshot:
        """The latest snapshot. Holders keep a consistent view after a refresh."""
        return self._current

    def replace(self, element_sets: Iterable[OrbitalElementSet]) -> CatalogSnapshot:
        """Install a new generation built from ``element_sets``."""
        with self._lock:
            snapshot = CatalogSnapshot.build(element_sets, version=self._current.version + 1)
            self._current = snapshot
        logger.info("Catalog replaced: version %d, %d objects", snapshot.version, len(snapshot))
        return snapshot
