"""
Coordinate frame conversions.

SGP4 produces TEME vectors, treated here as quasi-inertial (ECI): the
TEME-J2000 difference is a few arc-seconds, negligible for a ground track.
ECI -> ECEF is a single rotation about the z axis by GMST, ECEF -> geodetic
uses the WGS-84 ellipsoid with Bowring's iteration.
"""

import math
from typing import Tuple

import numpy as np

from config import WGS84_A_KM, WGS84_B_KM, WGS84_E2


def normalize_longitude(longitude_deg: float) -> float:
    """Wrap a longitude in degrees into (-180, 180]. Idempotent."""
    if -180.0 < longitude_deg <= 180.0:
        return longitude_deg
    wrapped = math.fmod(longitude_deg + 180.0, 360.0)
    if wrapped <= 0.0:
        wrapped += 360.0
    result = wrapped - 180.0
    # rounding can land exactly on the excluded bound
    return 180.0 if result <= -180.0 else result


def eci_to_ecef(r_eci: np.ndarray, gmst: float) -> np.ndarray:
    """Rotate an ECI position vector (km) into the Earth-fixed frame."""
    cos_g = math.cos(gmst)
    sin_g = math.sin(gmst)
    x, y, z = r_eci
    return np.array([
        cos_g * x + sin_g * y,
        -sin_g * x + cos_g * y,
        z,
    ])


def ecef_to_geodetic(r_ecef: np.ndarray) -> Tuple[float, float, float]:
    """
    ECEF position (km) to geodetic latitude/longitude (degrees) and height (km).

    Bowring's method on WGS-84, converges to sub-millimetre in 2-3 iterations
    for LEO altitudes.
    """
    a = WGS84_A_KM
    b = WGS84_B_KM
    e2 = WGS84_E2
    ep2 = e2 / (1.0 - e2)

    x, y, z = (float(c) for c in r_ecef)
    lon = math.atan2(y, x)
    p = math.hypot(x, y)

    # Pole
    if p < 1e-10:
        lat = math.copysign(math.pi / 2.0, z) if z != 0.0 else 0.0
        return math.degrees(lat), normalize_longitude(math.degrees(lon)), abs(z) - b

    theta = math.atan2(z * a, p * b)
    lat = 0.0
    for _ in range(5):
        sin_theta = math.sin(theta)
        cos_theta = math.cos(theta)
        lat = math.atan2(
            z + ep2 * b * sin_theta ** 3,
            p - e2 * a * cos_theta ** 3,
        )
        new_theta = math.atan2(b * math.sin(lat), a * math.cos(lat))
        if abs(new_theta - theta) < 1e-12:
            break
        theta = new_theta

    sin_lat = math.sin(lat)
    cos_lat = math.cos(lat)
    n = a / math.sqrt(1.0 - e2 * sin_lat * sin_lat)

    if abs(cos_lat) > 1e-10:
        height = p / cos_lat - n
    else:
        height = z / sin_lat - n * (1.0 - e2)

    return math.degrees(lat), normalize_longitude(math.degrees(lon)), height
