"""
Terminator Calculator

Computes the night-side polygon for map and globe overlays. For every
sampled longitude the terminator latitude is where the sun's elevation is
zero:

    latitude = atan(-cos(H) / tan(declination)),  H = GMST + longitude - RA

The polygon is closed toward the pole that is currently in darkness: the
south pole while the sun is north of the equator, the north pole otherwise.
Latitudes are clamped to +/-85 degrees so Web-Mercator renderers do not blow
up at the poles.

The terminator moves 360 degrees per day, so recomputing every ~30 s is
plenty.
"""

import math
from datetime import datetime
from typing import List, Tuple

from config import config
from orbit_tracker.solar import gmst_rad, sun_position

LATITUDE_LIMIT_DEG = 85.0
DECLINATION_EPSILON_RAD = 1e-4

LatLng = Tuple[float, float]


def terminator_latitude(
    longitude_deg: float, gmst: float, right_ascension: float, declination: float
) -> float:
    """Latitude in degrees of the terminator at ``longitude_deg``."""
    if abs(declination) < DECLINATION_EPSILON_RAD:
        return 0.0
    hour_angle = gmst + math.radians(longitude_deg) - right_ascension
    return math.degrees(math.atan(-math.cos(hour_angle) / math.tan(declination)))


def _clamp(latitude: float) -> float:
    return max(-LATITUDE_LIMIT_DEG, min(LATITUDE_LIMIT_DEG, latitude))


def terminator_line(
    gmst: float, right_ascension: float, declination: float, step_deg: float
) -> List[LatLng]:
    """Terminator vertices from longitude -180 to 180 inclusive."""
    if step_deg <= 0:
        raise ValueError(f"step_deg must be positive, got {step_deg}")

    count = int(round(360.0 / step_deg))
    line = []
    for i in range(count + 1):
        longitude = min(-180.0 + i * step_deg, 180.0)
        latitude = terminator_latitude(longitude, gmst, right_ascension, declination)
        if math.isfinite(latitude):
            line.append((_clamp(latitude), longitude))
    return line


def night_polygon(
    gmst: float, right_ascension: float, declination: float, step_deg: float = 1.0
) -> List[LatLng]:
    polygon = terminator_line(gmst, right_ascension, declination, step_deg)
    pole = -LATITUDE_LIMIT_DEG if declination >= 0 else LATITUDE_LIMIT_DEG
    polygon.append((pole, 180.0))
    polygon.append((pole, -180.0))
    return polygon


def night_region(instant: datetime, step_deg: float = config.TERMINATOR_STEP_DEG) -> List[List[LatLng]]:
    """
    Night hemisphere at ``instant`` as a list of (lat, lng) polygons.

    Args:
        instant: Time of the overlay
        step_deg: Longitude sampling interval

    Returns:
        A list holding a single closed polygon
    """
    sun = sun_position(instant)
    polygon = night_polygon(gmst_rad(instant), sun.right_ascension, sun.declination, step_deg)
    return [polygon]
