"""
Eclipse Calculator

Cylindrical shadow model: an object is eclipsed when it is on the anti-sun
side of Earth's centre and closer to the Earth-Sun line than Earth's mean
radius. Penumbra and oblateness are ignored, so the sunlit/eclipsed switch
can be off by a few seconds to minutes near shadow entry and exit.
"""

from datetime import datetime

import numpy as np

from config import EARTH_MEAN_RADIUS_KM
from orbit_tracker.models import Illumination
from orbit_tracker.solar import sun_position


def illumination(eci_position, instant: datetime) -> Illumination:
    """
    Determine whether an object at ``eci_position`` (km) is sunlit.

    Args:
        eci_position: ECI position vector [x, y, z] in km
        instant: Time of the position

    Returns:
        Illumination.SUNLIT or Illumination.ECLIPSED
    """
    r = np.asarray(eci_position, dtype=float)
    r_norm = np.linalg.norm(r)
    if r_norm == 0.0 or not np.isfinite(r_norm):
        return Illumination.SUNLIT

    sun = sun_position(instant).eci_km
    cos_angle = float(np.dot(r, sun) / (r_norm * np.linalg.norm(sun)))

    if cos_angle < 0.0:
        perpendicular_km = r_norm * np.sqrt(max(0.0, 1.0 - cos_angle * cos_angle))
        if perpendicular_km < EARTH_MEAN_RADIUS_KM:
            return Illumination.ECLIPSED

    return Illumination.SUNLIT
