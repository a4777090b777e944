"""
Tests for the satellite tracker: per-object results, trails, cached orbit
path and terminator, and the tracking lifecycle.

Run with:
    python -m pytest tests/test_tracker.py -v
"""

import threading
import time
import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import requests

from orbit_tracker import tracker as tracker_module
from orbit_tracker.models import (
    CatalogEntry,
    Positioned,
    TwoLineElement,
    Unavailable,
    Unpositionable,
)
from orbit_tracker.tle_store import TLECache, TLEStore
from orbit_tracker.tracker import SatelliteTracker

ISS_LINE1 = "1 25544U 98067A   23259.57580000  .00012022  00000-0  21844-3 0  9995"
ISS_LINE2 = "2 25544  51.6416 220.9944 0004263 122.0101 312.2755 15.49541986415598"
NOW = datetime(2023, 9, 16, 14, 0, tzinfo=timezone.utc)

CATALOG = (
    CatalogEntry(id="iss", norad_id=25544, display_name="International Space Station",
                 short_name="ISS", category="station"),
    CatalogEntry(id="twin", norad_id=25545, display_name="ISS Twin",
                 short_name="TWIN", category="test"),
    CatalogEntry(id="hubble", norad_id=20580, display_name="Hubble Space Telescope",
                 short_name="HST", category="science"),
    CatalogEntry(id="decayed", norad_id=11111, display_name="Decayed Object",
                 short_name="DEB", category="debris"),
)


def make_tle(norad_id, name="TEST"):
    return TwoLineElement(
        catalog_id=norad_id, line1=ISS_LINE1, line2=ISS_LINE2, name=name, fetched_at=NOW
    )


class FakeStore:
    """In-memory TLE source; missing IDs are unavailable."""

    def __init__(self, elements):
        self.elements = elements
        self.cache = {}
        self.requests = []

    def fetch_elements(self, norad_id):
        self.requests.append(norad_id)
        return self.elements.get(norad_id)

    def prefetch_all(self, norad_ids, max_workers=None):
        return {norad_id: self.fetch_elements(norad_id) for norad_id in dict.fromkeys(norad_ids)}


def fake_propagate_result(real):
    def propagate_result(tle, instant):
        if tle.catalog_id == 11111:
            return Unpositionable(catalog_id=11111, reason="Satellite has decayed")
        return real(tle, instant)
    return propagate_result


class TrackerTestCase(unittest.TestCase):

    def setUp(self):
        self.store = FakeStore({
            25544: make_tle(25544, "ISS (ZARYA)"),
            25545: make_tle(25545, "TWIN"),
            11111: make_tle(11111, "DEB"),
        })
        self.now = NOW
        patcher = patch.object(
            tracker_module, "propagate_result",
            side_effect=fake_propagate_result(tracker_module.propagate_result),
        )
        patcher.start()
        self.addCleanup(patcher.stop)

    def make_tracker(self, **kwargs):
        kwargs.setdefault("catalog", CATALOG)
        kwargs.setdefault("store", self.store)
        kwargs.setdefault("clock", lambda: self.now)
        tracker = SatelliteTracker(**kwargs)
        tracker._position_task = MagicMock()
        tracker._terminator_task = MagicMock()
        return tracker


class TestSelection(TrackerTestCase):
    """Test active object and time offset."""

    def test_defaults_to_first_entry(self):
        tracker = self.make_tracker()

        self.assertEqual(tracker.active_id, "iss")
        self.assertEqual(tracker.active_entry.norad_id, 25544)
        self.assertEqual(tracker.tracked_entries(), [CATALOG[0]])

    def test_set_active(self):
        tracker = self.make_tracker(active_id="hubble")
        self.assertEqual(tracker.active_id, "hubble")

        tracker.set_active("twin")
        self.assertEqual(tracker.active_entry.display_name, "ISS Twin")

    def test_unknown_entry_rejected(self):
        tracker = self.make_tracker()
        with self.assertRaises(ValueError):
            tracker.set_active("voyager")
        with self.assertRaises(ValueError):
            self.make_tracker(active_id="voyager")

    def test_empty_catalog_rejected(self):
        with self.assertRaises(ValueError):
            SatelliteTracker(catalog=(), store=self.store)

    def test_time_offset(self):
        tracker = self.make_tracker()
        tracker.set_time_offset(30)

        self.assertEqual(tracker.current_instant(), NOW + timedelta(minutes=30))

        tracker.set_time_offset(-15.5)
        self.assertEqual(tracker.current_instant(), NOW - timedelta(minutes=15.5))


class TestRefresh(TrackerTestCase):
    """Test per-object position results and trails."""

    def test_mixed_results(self):
        """Each object resolves independently of the others."""
        tracker = self.make_tracker(show_all=True)

        results = tracker.refresh()

        self.assertEqual(set(results), {"iss", "twin", "hubble", "decayed"})
        self.assertIsInstance(results["iss"], Positioned)
        self.assertIsInstance(results["twin"], Positioned)
        self.assertIsInstance(results["hubble"], Unavailable)
        self.assertEqual(results["hubble"].catalog_id, 20580)
        self.assertIsInstance(results["decayed"], Unpositionable)
        self.assertEqual(tracker.latest(), results)

    def test_only_active_when_not_showing_all(self):
        tracker = self.make_tracker(active_id="twin")

        results = tracker.refresh()

        self.assertEqual(list(results), ["twin"])

    def test_history_only_for_positioned(self):
        tracker = self.make_tracker(show_all=True)
        tracker.refresh()

        self.assertEqual(len(tracker.history("iss")), 1)
        self.assertEqual(tracker.history("hubble"), [])
        self.assertEqual(tracker.history("decayed"), [])

    def test_history_bounded(self):
        tracker = self.make_tracker(history_size=3)

        for minutes in range(5):
            tracker.refresh(NOW + timedelta(minutes=minutes))

        trail = tracker.history("iss")
        self.assertEqual(len(trail), 3)
        self.assertEqual(trail[0].timestamp, NOW + timedelta(minutes=2))
        self.assertEqual(trail[-1].timestamp, NOW + timedelta(minutes=4))

    def test_refresh_uses_time_offset(self):
        tracker = self.make_tracker()
        tracker.set_time_offset(60)

        results = tracker.refresh()

        self.assertEqual(results["iss"].state.timestamp, NOW + timedelta(minutes=60))

    def test_prepare_reports_availability(self):
        tracker = self.make_tracker()

        availability = tracker.prepare()

        self.assertEqual(availability, {25544: True, 25545: True, 20580: False, 11111: True})


class SlowSession:
    """Provider that waits, then times out, on every request."""

    def __init__(self, delay):
        self.delay = delay
        self.calls = 0
        self._lock = threading.Lock()

    def get(self, url, params=None, timeout=None):
        with self._lock:
            self.calls += 1
        time.sleep(self.delay)
        raise requests.Timeout("provider down")


class TestSlowProvider(TrackerTestCase):
    """Test that network waits do not serialise across tracked objects."""

    def test_slow_fetches_do_not_stack_up(self):
        """A cached object is positioned while uncached ones wait concurrently."""
        catalog = CATALOG[:1] + tuple(
            CatalogEntry(id=f"obj{n}", norad_id=30000 + n, display_name=f"Object {n}",
                         short_name=f"O{n}", category="test")
            for n in range(6)
        )
        cache = TLECache()
        cache.put(make_tle(25544, "ISS (ZARYA)"))
        session = SlowSession(0.3)
        store = TLEStore(cache=cache, session=session, fallback={}, clock=lambda: NOW)
        tracker = self.make_tracker(catalog=catalog, store=store, show_all=True)

        started = time.monotonic()
        results = tracker.refresh()
        elapsed = time.monotonic() - started

        self.assertLess(elapsed, 1.0)
        self.assertEqual(session.calls, 6)
        self.assertIsInstance(results["iss"], Positioned)
        for n in range(6):
            self.assertIsInstance(results[f"obj{n}"], Unavailable)

    def test_refresh_resolves_elements_in_one_batch(self):
        tracker = self.make_tracker(show_all=True)

        with patch.object(self.store, "prefetch_all", wraps=self.store.prefetch_all) as prefetch:
            tracker.refresh()

        prefetch.assert_called_once()
        self.assertEqual(sorted(self.store.requests), [11111, 20580, 25544, 25545])


class TestListeners(TrackerTestCase):
    """Test listener notification and the tracking lifecycle."""

    def test_start_and_stop_drive_tasks(self):
        tracker = self.make_tracker()

        tracker.start_tracking()
        tracker.start_tracking()
        self.assertTrue(tracker.tracking)
        tracker._position_task.start.assert_called_once()
        tracker._terminator_task.start.assert_called_once()

        tracker.stop_tracking()
        self.assertFalse(tracker.tracking)
        tracker._position_task.stop.assert_called_once()
        tracker._terminator_task.stop.assert_called_once()

    def test_no_notification_when_not_tracking(self):
        """A refresh finishing after stop never reaches listeners."""
        tracker = self.make_tracker()
        listener = MagicMock()
        tracker.add_listener(listener)

        tracker.refresh()
        listener.assert_not_called()

        tracker.start_tracking()
        tracker.refresh()
        self.assertEqual(listener.call_count, 1)

        tracker.stop_tracking()
        tracker.refresh()
        self.assertEqual(listener.call_count, 1)

    def test_failing_listener_does_not_block_others(self):
        tracker = self.make_tracker()
        broken = MagicMock(side_effect=RuntimeError("render failed"))
        listener = MagicMock()
        tracker.add_listener(broken)
        tracker.add_listener(listener)
        tracker.start_tracking()

        results = tracker.refresh()

        listener.assert_called_once_with(results)

    def test_remove_listener(self):
        tracker = self.make_tracker()
        listener = MagicMock()
        tracker.add_listener(listener)
        tracker.remove_listener(listener)
        tracker.remove_listener(listener)
        tracker.start_tracking()

        tracker.refresh()

        listener.assert_not_called()


class TestOrbitPath(TrackerTestCase):
    """Test orbit-path caching."""

    def setUp(self):
        super().setUp()
        patcher = patch.object(tracker_module, "build_path", wraps=tracker_module.build_path)
        self.build_path = patcher.start()
        self.addCleanup(patcher.stop)

    def test_path_cached_within_interval(self):
        tracker = self.make_tracker(orbit_window_minutes=10, orbit_step_minutes=1)

        first = tracker.orbit_path(NOW)
        second = tracker.orbit_path(NOW + timedelta(seconds=30))

        self.assertEqual(len(first), 11)
        self.assertEqual(first, second)
        self.assertEqual(self.build_path.call_count, 1)

    def test_path_rebuilt_after_interval(self):
        tracker = self.make_tracker(orbit_window_minutes=10, orbit_step_minutes=1)

        tracker.orbit_path(NOW)
        tracker.orbit_path(NOW + timedelta(seconds=61))

        self.assertEqual(self.build_path.call_count, 2)

    def test_path_rebuilt_on_active_change(self):
        tracker = self.make_tracker(orbit_window_minutes=10, orbit_step_minutes=1)

        tracker.orbit_path(NOW)
        tracker.set_active("twin")
        tracker.orbit_path(NOW)

        self.assertEqual(self.build_path.call_count, 2)

    def test_forced_rebuild(self):
        tracker = self.make_tracker(orbit_window_minutes=10, orbit_step_minutes=1)

        tracker.orbit_path(NOW)
        tracker.orbit_path(NOW, force=True)

        self.assertEqual(self.build_path.call_count, 2)

    def test_unavailable_active_object_has_no_path(self):
        tracker = self.make_tracker(active_id="hubble")

        self.assertEqual(tracker.orbit_path(NOW), [])
        self.build_path.assert_not_called()


class TestNightRegion(TrackerTestCase):
    """Test terminator caching."""

    def test_cached_within_interval(self):
        tracker = self.make_tracker()

        with patch.object(tracker_module, "night_region", wraps=tracker_module.night_region) as build:
            first = tracker.night_region(NOW)
            second = tracker.night_region(NOW + timedelta(seconds=10))
            tracker.night_region(NOW + timedelta(seconds=31))
            tracker.night_region(NOW + timedelta(seconds=31), force=True)

        self.assertEqual(first, second)
        self.assertEqual(build.call_count, 3)
        self.assertEqual(len(first), 1)

    def test_returned_region_is_a_copy(self):
        tracker = self.make_tracker()

        first = tracker.night_region(NOW)
        first.clear()
        first.append([])
        again = tracker.night_region(NOW + timedelta(seconds=5))

        self.assertEqual(len(again), 1)
        self.assertGreater(len(again[0]), 0)


if __name__ == "__main__":
    unittest.main()
