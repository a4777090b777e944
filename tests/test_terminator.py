"""
Tests for the day/night terminator polygon.

Run with:
    python -m pytest tests/test_terminator.py -v
"""

import math
import unittest
from datetime import datetime, timezone
from unittest.mock import patch

import numpy as np

from orbit_tracker.solar import SunPosition, gmst_rad, sun_position
from orbit_tracker.terminator import (
    LATITUDE_LIMIT_DEG,
    night_polygon,
    night_region,
    terminator_latitude,
    terminator_line,
)

JUNE_SOLSTICE_NOON = datetime(2024, 6, 20, 12, 0, tzinfo=timezone.utc)
DECEMBER_SOLSTICE_NOON = datetime(2024, 12, 21, 12, 0, tzinfo=timezone.utc)


class TestTerminatorLatitude(unittest.TestCase):
    """Test the per-longitude terminator latitude."""

    def test_equinox_declination_gives_equator(self):
        """With the sun on the equator the formula is degenerate; the line is the equator."""
        for declination in (0.0, 5e-5, -5e-5):
            for longitude in (-180.0, -45.0, 0.0, 90.0, 180.0):
                self.assertEqual(terminator_latitude(longitude, 1.0, 2.0, declination), 0.0)

    def test_noon_meridian_at_june_solstice(self):
        """At local noon the terminator lies on the antarctic circle."""
        declination = math.radians(23.44)
        latitude = terminator_latitude(0.0, 0.0, 0.0, declination)
        self.assertAlmostEqual(latitude, -(90.0 - 23.44), places=6)

    def test_midnight_meridian_at_june_solstice(self):
        declination = math.radians(23.44)
        latitude = terminator_latitude(180.0, 0.0, 0.0, declination)
        self.assertAlmostEqual(latitude, 90.0 - 23.44, places=6)


class TestTerminatorLine(unittest.TestCase):
    """Test longitude sampling of the terminator."""

    def test_one_degree_sampling(self):
        line = terminator_line(0.3, 1.2, math.radians(10.0), 1.0)

        self.assertEqual(len(line), 361)
        self.assertEqual(line[0][1], -180.0)
        self.assertEqual(line[-1][1], 180.0)
        longitudes = [lng for _, lng in line]
        self.assertEqual(longitudes, sorted(longitudes))

    def test_latitudes_clamped(self):
        """A sun barely off the equator pushes the line toward the poles."""
        line = terminator_line(0.0, 0.0, 1e-3, 1.0)

        latitudes = [lat for lat, _ in line]
        self.assertEqual(max(latitudes), LATITUDE_LIMIT_DEG)
        self.assertEqual(min(latitudes), -LATITUDE_LIMIT_DEG)

    def test_invalid_step(self):
        with self.assertRaises(ValueError):
            terminator_line(0.0, 0.0, 0.1, 0.0)
        with self.assertRaises(ValueError):
            terminator_line(0.0, 0.0, 0.1, -2.0)


class TestNightPolygon(unittest.TestCase):
    """Test closing the night side toward the dark pole."""

    def test_closes_south_when_sun_north(self):
        polygon = night_polygon(0.0, 0.0, math.radians(20.0))

        self.assertEqual(len(polygon), 363)
        self.assertEqual(polygon[-2], (-LATITUDE_LIMIT_DEG, 180.0))
        self.assertEqual(polygon[-1], (-LATITUDE_LIMIT_DEG, -180.0))

    def test_closes_north_when_sun_south(self):
        polygon = night_polygon(0.0, 0.0, math.radians(-20.0))

        self.assertEqual(polygon[-2], (LATITUDE_LIMIT_DEG, 180.0))
        self.assertEqual(polygon[-1], (LATITUDE_LIMIT_DEG, -180.0))

    def test_degenerate_declination_is_equator_band(self):
        polygon = night_polygon(0.0, 0.0, 0.0)

        self.assertTrue(all(lat == 0.0 for lat, _ in polygon[:-2]))
        self.assertEqual(polygon[-1], (-LATITUDE_LIMIT_DEG, -180.0))

    def test_all_vertices_in_range(self):
        polygon = night_polygon(1.7, -0.4, math.radians(-23.0), step_deg=2.0)

        for lat, lng in polygon:
            self.assertTrue(math.isfinite(lat))
            self.assertLessEqual(abs(lat), LATITUDE_LIMIT_DEG)
            self.assertLessEqual(abs(lng), 180.0)


class TestNightRegion(unittest.TestCase):
    """Test the terminator for real instants."""

    def test_june_solstice_noon(self):
        """Near the Greenwich meridian at noon the line sits on the antarctic circle."""
        region = night_region(JUNE_SOLSTICE_NOON)

        self.assertEqual(len(region), 1)
        polygon = region[0]
        self.assertEqual(len(polygon), 363)
        by_longitude = {lng: lat for lat, lng in polygon[:-2]}
        self.assertAlmostEqual(by_longitude[0.0], -66.56, delta=1.0)
        self.assertAlmostEqual(by_longitude[180.0], 66.56, delta=1.0)
        self.assertEqual(polygon[-1][0], -LATITUDE_LIMIT_DEG)

    def test_december_solstice_closes_north(self):
        polygon = night_region(DECEMBER_SOLSTICE_NOON)[0]

        by_longitude = {lng: lat for lat, lng in polygon[:-2]}
        self.assertAlmostEqual(by_longitude[0.0], 66.56, delta=1.0)
        self.assertEqual(polygon[-1][0], LATITUDE_LIMIT_DEG)

    def test_uses_shared_ephemeris(self):
        sun = sun_position(JUNE_SOLSTICE_NOON)
        expected = night_polygon(gmst_rad(JUNE_SOLSTICE_NOON), sun.right_ascension, sun.declination)

        self.assertEqual(night_region(JUNE_SOLSTICE_NOON)[0], expected)

    def test_equinox_sun_gives_flat_line(self):
        sun = SunPosition(0.5, 0.0, 0.0, np.array([1.0, 0.0, 0.0]))
        with patch("orbit_tracker.terminator.sun_position", return_value=sun):
            polygon = night_region(JUNE_SOLSTICE_NOON)[0]

        self.assertTrue(all(lat == 0.0 for lat, _ in polygon[:-2]))


if __name__ == "__main__":
    unittest.main()
