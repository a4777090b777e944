"""
SGP4 Propagator

Turns a two-line element set and an instant into a kinematic state:
geodetic latitude/longitude/height on the WGS-84 ellipsoid, speed in km/h and
sunlit/eclipsed state.

``propagate`` is a pure function of (tle, instant). The only memoisation is
the parsed ``Satrec`` per TLE line pair, which is immutable input data.
Propagation failures (decayed orbit, corrupt elements, sub-surface result)
are reported as ``None`` rather than raised: the object is temporarily
unpositionable, which is different from having no TLE at all.
"""

import logging
import math
from datetime import datetime
from functools import lru_cache
from typing import Optional, Tuple

import numpy as np
from sgp4.api import Satrec, jday

from config import SECONDS_PER_HOUR
from orbit_tracker.eclipse import illumination
from orbit_tracker.frames import ecef_to_geodetic, eci_to_ecef
from orbit_tracker.models import KinematicState, Positioned, PositionResult, TwoLineElement, Unpositionable
from orbit_tracker.solar import as_utc, gmst_rad

logger = logging.getLogger(__name__)


# SGP4 error code meanings
SGP4_ERROR_CODES = {
    0: "No error",
    1: "Mean eccentricity < 0.0 or > 1.0",
    2: "Mean motion < 0.0",
    3: "Perturbed eccentricity < 0.0 or > 1.0",
    4: "Semi-latus rectum < 0.0",
    5: "Satellite has decayed",
    6: "Satellite has decayed (low altitude)",
}


def datetime_to_jd(instant: datetime) -> Tuple[float, float]:
    """Convert a datetime to the (julian_day, fraction) pair SGP4 expects."""
    dt = as_utc(instant)
    return jday(
        dt.year, dt.month, dt.day,
        dt.hour, dt.minute, dt.second + dt.microsecond / 1e6,
    )


@lru_cache(maxsize=256)
def load_satrec(line1: str, line2: str) -> Satrec:
    """Parse a TLE line pair. Raises ValueError on unparseable text."""
    try:
        return Satrec.twoline2rv(line1, line2)
    except Exception as e:
        raise ValueError(f"Failed to parse TLE: {e}") from e


def orbital_period_minutes(tle: TwoLineElement) -> float:
    """Orbital period from the TLE mean motion (``no_kozai`` is rad/min)."""
    satrec = load_satrec(tle.line1, tle.line2)
    return 2.0 * math.pi / satrec.no_kozai


def propagate_eci(tle: TwoLineElement, instant: datetime) -> Tuple[np.ndarray, np.ndarray]:
    """
    Propagate to ``instant`` and return TEME position (km) and velocity (km/s).

    Raises:
        ValueError: If the TLE cannot be parsed or SGP4 reports an error
    """
    satrec = load_satrec(tle.line1, tle.line2)
    jd, fr = datetime_to_jd(instant)
    error, position, velocity = satrec.sgp4(jd, fr)
    if error != 0:
        raise ValueError(
            f"SGP4 error {error}: {SGP4_ERROR_CODES.get(error, 'Unknown error')}"
        )
    r = np.array(position, dtype=float)
    v = np.array(velocity, dtype=float)
    if not (np.all(np.isfinite(r)) and np.all(np.isfinite(v))):
        raise ValueError("SGP4 returned non-finite state vector")
    return r, v


def _compute_state(tle: TwoLineElement, instant: datetime) -> KinematicState:
    r_eci, v_eci = propagate_eci(tle, instant)

    r_ecef = eci_to_ecef(r_eci, gmst_rad(instant))
    latitude, longitude, altitude_km = ecef_to_geodetic(r_ecef)
    velocity_kmh = float(np.linalg.norm(v_eci)) * SECONDS_PER_HOUR

    values = (latitude, longitude, altitude_km, velocity_kmh)
    if not all(math.isfinite(value) for value in values):
        raise ValueError("Non-finite geodetic result")
    if altitude_km <= 0.0:
        raise ValueError(f"Object below the ellipsoid ({altitude_km:.1f} km)")

    return KinematicState(
        latitude=latitude,
        longitude=longitude,
        altitude_km=altitude_km,
        timestamp=as_utc(instant),
        velocity_kmh=velocity_kmh,
        illumination=illumination(r_eci, instant),
        position_eci_km=tuple(float(c) for c in r_eci),
        velocity_eci_kms=tuple(float(c) for c in v_eci),
    )


def propagate(tle: TwoLineElement, instant: datetime) -> Optional[KinematicState]:
    """
    Compute the kinematic state of ``tle``'s object at ``instant``.

    Args:
        tle: Element set of the object
        instant: Target time (naive datetimes are taken as UTC)

    Returns:
        KinematicState, or None when no valid position can be produced
    """
    try:
        return _compute_state(tle, instant)
    except ValueError as e:
        logger.debug(f"Propagation failed for NORAD {tle.catalog_id} at {instant}: {e}")
        return None


def propagate_result(tle: TwoLineElement, instant: datetime) -> PositionResult:
    """Tagged variant of ``propagate``: Positioned or Unpositionable."""
    try:
        state = _compute_state(tle, instant)
    except ValueError as e:
        logger.debug(f"Propagation failed for NORAD {tle.catalog_id} at {instant}: {e}")
        return Unpositionable(catalog_id=tle.catalog_id, reason=str(e))
    return Positioned(catalog_id=tle.catalog_id, state=state)
