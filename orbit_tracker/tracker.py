"""
Satellite Tracker

Composes the TLE store, propagator, ground-track sampler and terminator into
the state a rendering layer consumes:

- a tagged position result per tracked object (Positioned / Unpositionable /
  Unavailable),
- a bounded position trail per object,
- the active object's orbit path, refreshed on a coarse cadence or when the
  active object changes,
- the night-side polygon, refreshed on its own coarse cadence.

Periodic work goes through ``PeriodicTask``: position refresh every few
seconds and terminator refresh every ~30 s while tracking is on. After
``stop_tracking`` no listener is notified, even when a refresh that was
already in flight completes.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Sequence

from config import config
from orbit_tracker.catalog import SATELLITE_CATALOG, find_entry
from orbit_tracker.ground_track import PositionHistory, build_path
from orbit_tracker.models import (
    CatalogEntry,
    OrbitPathPoint,
    Positioned,
    PositionResult,
    TwoLineElement,
    Unavailable,
)
from orbit_tracker.propagator import propagate_result
from orbit_tracker.scheduler import PeriodicTask
from orbit_tracker.terminator import LatLng, night_region
from orbit_tracker.tle_store import TLEStore, utc_now

logger = logging.getLogger(__name__)

Listener = Callable[[Dict[str, PositionResult]], None]


class SatelliteTracker:
    """
    Position, trail, orbit-path and terminator state for a catalog.

    Args:
        catalog: Trackable objects
        store: TLE source (a default store with the bundled fallback is created
            if omitted)
        active_id: Catalog ``id`` of the focused object
        show_all: Track every catalog entry instead of only the active one
        clock: Callable returning the current aware UTC datetime
    """

    def __init__(
        self,
        catalog: Sequence[CatalogEntry] = SATELLITE_CATALOG,
        store: Optional[TLEStore] = None,
        active_id: Optional[str] = None,
        show_all: bool = False,
        clock: Callable[[], datetime] = utc_now,
        update_interval: float = config.UPDATE_INTERVAL_S,
        terminator_interval: float = config.TERMINATOR_INTERVAL_S,
        orbit_path_interval: float = config.ORBIT_PATH_INTERVAL_S,
        orbit_window_minutes: float = config.ORBIT_WINDOW_MINUTES,
        orbit_step_minutes: float = config.ORBIT_STEP_MINUTES,
        history_size: int = config.POSITION_HISTORY_SIZE,
    ):
        if not catalog:
            raise ValueError("catalog must not be empty")

        self.catalog = tuple(catalog)
        self.store = store or TLEStore()
        self.show_all = show_all
        self.clock = clock
        self.time_offset = timedelta(0)

        self.orbit_path_interval = timedelta(seconds=orbit_path_interval)
        self.terminator_interval = timedelta(seconds=terminator_interval)
        self.orbit_window_minutes = orbit_window_minutes
        self.orbit_step_minutes = orbit_step_minutes
        self.history_size = history_size

        self._active_id = self.catalog[0].id
        if active_id is not None:
            self.set_active(active_id)

        self._lock = threading.RLock()
        self._listeners: List[Listener] = []
        self._latest: Dict[str, PositionResult] = {}
        self._histories: Dict[str, PositionHistory] = {}
        self._orbit_path: List[OrbitPathPoint] = []
        self._orbit_path_key = None
        self._night_region: List[List[LatLng]] = []
        self._night_region_at: Optional[datetime] = None

        self._tracking = False
        self._position_task = PeriodicTask(update_interval, self.refresh, name="position-refresh")
        self._terminator_task = PeriodicTask(
            terminator_interval, lambda: self.night_region(force=True), name="terminator-refresh"
        )

    # ------------------------------------------------------------------
    # Selection and time
    # ------------------------------------------------------------------

    @property
    def active_id(self) -> str:
        return self._active_id

    @property
    def active_entry(self) -> CatalogEntry:
        return find_entry(self._active_id, self.catalog)

    def set_active(self, entry_id: str) -> None:
        if find_entry(entry_id, self.catalog) is None:
            raise ValueError(f"Unknown catalog entry: {entry_id}")
        self._active_id = entry_id

    def set_time_offset(self, minutes: float) -> None:
        """Shift the tracker's notion of "now" (time replay)."""
        self.time_offset = timedelta(minutes=minutes)

    def current_instant(self) -> datetime:
        return self.clock() + self.time_offset

    def tracked_entries(self) -> List[CatalogEntry]:
        if self.show_all:
            return list(self.catalog)
        return [self.active_entry]

    # ------------------------------------------------------------------
    # Positions
    # ------------------------------------------------------------------

    def prepare(self) -> Dict[int, bool]:
        """Warm the TLE cache for the whole catalog. Returns availability per ID."""
        results = self.store.prefetch_all(entry.norad_id for entry in self.catalog)
        return {norad_id: tle is not None for norad_id, tle in results.items()}

    def position_of(self, entry: CatalogEntry, instant: Optional[datetime] = None) -> PositionResult:
        instant = instant or self.current_instant()
        return _position_result(entry, self.store.fetch_elements(entry.norad_id), instant)

    def refresh(self, instant: Optional[datetime] = None) -> Dict[str, PositionResult]:
        """
        Recompute the position of every tracked object.

        Failures are per object: one unavailable or unpositionable entry never
        blocks the others. Element sets are resolved concurrently, so a slow
        provider costs one network timeout per refresh, not one per object.
        """
        instant = instant or self.current_instant()
        entries = self.tracked_entries()
        elements = self.store.prefetch_all(entry.norad_id for entry in entries)
        results: Dict[str, PositionResult] = {}

        for entry in entries:
            result = _position_result(entry, elements.get(entry.norad_id), instant)
            results[entry.id] = result
            if isinstance(result, Positioned):
                state = result.state
                self._history(entry.id).append(OrbitPathPoint(
                    latitude=state.latitude,
                    longitude=state.longitude,
                    timestamp=state.timestamp,
                ))
            else:
                logger.debug(f"No position for {entry.id}: {result.kind}")

        with self._lock:
            self._latest = results
            tracking = self._tracking
            listeners = list(self._listeners)

        if tracking:
            for listener in listeners:
                try:
                    listener(results)
                except Exception:
                    logger.exception("Tracker listener failed")

        return results

    def latest(self) -> Dict[str, PositionResult]:
        with self._lock:
            return dict(self._latest)

    def history(self, entry_id: str) -> List[OrbitPathPoint]:
        with self._lock:
            history = self._histories.get(entry_id)
        return history.points() if history is not None else []

    def _history(self, entry_id: str) -> PositionHistory:
        with self._lock:
            if entry_id not in self._histories:
                self._histories[entry_id] = PositionHistory(self.history_size)
            return self._histories[entry_id]

    # ------------------------------------------------------------------
    # Orbit path and terminator
    # ------------------------------------------------------------------

    def orbit_path(self, instant: Optional[datetime] = None, force: bool = False) -> List[OrbitPathPoint]:
        """
        Ground track of the active object.

        Rebuilt when the active object changes, when the element set changes,
        or when the cached path is older than the orbit-path interval.
        """
        instant = instant or self.current_instant()
        entry = self.active_entry
        tle = self.store.fetch_elements(entry.norad_id)
        if tle is None:
            with self._lock:
                self._orbit_path = []
                self._orbit_path_key = None
            return []

        with self._lock:
            key = self._orbit_path_key
            if not force and key is not None:
                entry_id, line1, built_at = key
                fresh = abs(instant - built_at) < self.orbit_path_interval
                if entry_id == entry.id and line1 == tle.line1 and fresh:
                    return list(self._orbit_path)

        path = build_path(tle, instant, self.orbit_window_minutes, self.orbit_step_minutes)
        with self._lock:
            self._orbit_path = path
            self._orbit_path_key = (entry.id, tle.line1, instant)
        logger.debug(f"Rebuilt orbit path for {entry.id}: {len(path)} points")
        return list(path)

    def night_region(self, instant: Optional[datetime] = None, force: bool = False) -> List[List[LatLng]]:
        instant = instant or self.current_instant()
        with self._lock:
            built_at = self._night_region_at
            if (not force and built_at is not None
                    and abs(instant - built_at) < self.terminator_interval):
                return list(self._night_region)

        region = night_region(instant)
        with self._lock:
            self._night_region = region
            self._night_region_at = instant
        return list(region)

    # ------------------------------------------------------------------
    # Tracking lifecycle
    # ------------------------------------------------------------------

    @property
    def tracking(self) -> bool:
        return self._tracking

    def add_listener(self, listener: Listener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def start_tracking(self) -> None:
        with self._lock:
            if self._tracking:
                return
            self._tracking = True
        self._position_task.start()
        self._terminator_task.start()
        logger.info(f"Tracking started ({len(self.tracked_entries())} objects)")

    def stop_tracking(self) -> None:
        with self._lock:
            if not self._tracking:
                return
            self._tracking = False
        self._position_task.stop()
        self._terminator_task.stop()
        logger.info("Tracking stopped")


def _position_result(entry: CatalogEntry, tle: Optional[TwoLineElement], instant: datetime) -> PositionResult:
    if tle is None:
        return Unavailable(catalog_id=entry.norad_id)
    return propagate_result(tle, instant)
