"""
Low-precision solar ephemeris and sidereal time.

One routine serves both the eclipse test and the day/night terminator:
mean longitude plus equation-of-center correction from the day number since
J2000, converted through the mean obliquity to right ascension, declination
and an inertial direction vector at 1 AU. Accuracy is about 0.01 degrees in
the sun's direction, which is far below what a cylindrical shadow model or a
map overlay can resolve.
"""

import math
from datetime import datetime, timezone
from typing import NamedTuple

import numpy as np

from config import ASTRONOMICAL_UNIT_KM, J2000_JD
from orbit_tracker.frames import normalize_longitude

UNIX_EPOCH_JD = 2440587.5
OBLIQUITY_DEG = 23.439


class SunPosition(NamedTuple):
    right_ascension: float  # rad, (-pi, pi]
    declination: float  # rad
    ecliptic_longitude: float  # rad
    eci_km: np.ndarray  # shape (3,)


def as_utc(instant: datetime) -> datetime:
    """Treat naive datetimes as UTC, convert aware ones to UTC."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def julian_date(instant: datetime) -> float:
    return as_utc(instant).timestamp() / 86400.0 + UNIX_EPOCH_JD


def gmst_rad(instant: datetime) -> float:
    """
    Greenwich Mean Sidereal Time in radians, in [0, 2pi).

    IAU 1982 expression in degrees, accurate to ~0.1 arc-second.
    """
    jd = julian_date(instant)
    d = jd - J2000_JD
    t = d / 36525.0
    theta_deg = 280.46061837 + 360.98564736629 * d + t * t * (0.000387933 - t / 38710000.0)
    return math.radians(theta_deg % 360.0)


def sun_position(instant: datetime) -> SunPosition:
    """Approximate geocentric sun position for ``instant``."""
    n = julian_date(instant) - J2000_JD
    mean_longitude = (280.460 + 0.9856474 * n) % 360.0
    mean_anomaly = math.radians((357.528 + 0.9856003 * n) % 360.0)
    ecliptic_longitude = math.radians(
        mean_longitude + 1.915 * math.sin(mean_anomaly) + 0.020 * math.sin(2.0 * mean_anomaly)
    )
    obliquity = math.radians(OBLIQUITY_DEG)

    sin_lambda = math.sin(ecliptic_longitude)
    cos_lambda = math.cos(ecliptic_longitude)

    right_ascension = math.atan2(math.cos(obliquity) * sin_lambda, cos_lambda)
    declination = math.asin(math.sin(obliquity) * sin_lambda)

    eci_km = ASTRONOMICAL_UNIT_KM * np.array([
        cos_lambda,
        math.cos(obliquity) * sin_lambda,
        math.sin(obliquity) * sin_lambda,
    ])

    return SunPosition(right_ascension, declination, ecliptic_longitude, eci_km)


def subsolar_point(instant: datetime):
    """Return (latitude, longitude) in degrees of the point with the sun at zenith."""
    sun = sun_position(instant)
    longitude = normalize_longitude(math.degrees(sun.right_ascension - gmst_rad(instant)))
    return math.degrees(sun.declination), longitude
