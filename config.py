"""
Orbit Tracker Configuration and Constants

This module contains the physical constants, the bundled fallback TLE table
and the environment driven runtime settings used throughout the project.

Constants:
    WGS-84 ellipsoid parameters for the geodetic conversion, the mean Earth
    radius used by the cylindrical shadow model and the astronomical unit used
    to scale the sun vector.

Fallback TLE Data:
    Known-good (but aging) element sets used verbatim when the network
    provider cannot be reached.

    IMPORTANT: Update this TLE data periodically for accuracy.
    - Low Earth Orbit (LEO) satellites: Update weekly
    - Geostationary (GEO): Update quarterly

    Current TLE epochs: 2024-12-15 (bulk table), 2026-01-27 (ISS, Tiangong,
    Hubble, NOAA 19, Starlink-1007)

    Sources for updated TLEs:
    - CelesTrak.org (public access, gp.php?CATNR=<id>&FORMAT=TLE)
    - Space-Track.org (requires free registration)
"""

import os
from datetime import timedelta
from typing import Dict

# WGS-84 ellipsoid
WGS84_A_KM: float = 6378.137  # equatorial radius (km)
WGS84_F: float = 1.0 / 298.257223563  # flattening
WGS84_B_KM: float = WGS84_A_KM * (1.0 - WGS84_F)  # polar radius (km)
WGS84_E2: float = 2.0 * WGS84_F - WGS84_F ** 2  # first eccentricity squared

EARTH_MEAN_RADIUS_KM: float = 6371.0  # shadow cylinder radius
ASTRONOMICAL_UNIT_KM: float = 149597870.7

J2000_JD: float = 2451545.0
SECONDS_PER_HOUR: float = 3600.0

# Fallback TLE table, keyed by NORAD catalog ID
FALLBACK_TLES: Dict[int, Dict[str, str]] = {
    25544: {
        'name': 'ISS (ZARYA)',
        'line1': '1 25544U 98067A   26027.53120152  .00010421  00000+0  19003-3 0  9997',
        'line2': '2 25544  51.6415 153.2874 0005510 137.9547 348.6258 15.49830574488921',
    },
    48274: {
        'name': 'CSS (TIANHE)',
        'line1': '1 48274U 21035A   26027.60155093  .00063212  00000+0  34457-3 0  9991',
        'line2': '2 48274  41.4725 342.3021 0007831 292.8374 216.5912 15.60309990238838',
    },
    20580: {
        'name': 'HST',
        'line1': '1 20580U 90037B   26027.09457618  .00000987  00000+0  44390-4 0  9996',
        'line2': '2 20580  28.4695 197.6433 0003050 293.4566 179.9192 15.08864758933256',
    },
    33591: {
        'name': 'NOAA 19',
        'line1': '1 33591U 09005A   26027.42082697  .00000199  00000+0  16244-3 0  9998',
        'line2': '2 33591  99.1163 103.1897 0013867 213.3321 146.7324 14.12879549880665',
    },
    44713: {
        'name': 'STARLINK-1007',
        'line1': '1 44713U 19074A   26027.42082697  .00000199  00000+0  16244-3 0  9999',
        'line2': '2 44713  53.0543 177.1002 0001147  85.6660 274.4550 15.06411545214050',
    },
    25994: {
        'name': 'TERRA',
        'line1': '1 25994U 99068A   24350.50000000  .00000100  00000-0  20000-4 0  9999',
        'line2': '2 25994  98.2100 280.0000 0001200  90.0000 270.0000 14.57000000000000',
    },
    27424: {
        'name': 'AQUA',
        'line1': '1 27424U 02022A   24350.50000000  .00000100  00000-0  20000-4 0  9999',
        'line2': '2 27424  98.2000 320.0000 0001000 100.0000 260.0000 14.57000000000000',
    },
    39216: {
        'name': 'INSAT-3D',
        'line1': '1 39216U 13041A   24350.50000000  .00000100  00000-0  00000-0 0  9999',
        'line2': '2 39216   0.0500  82.0000 0002000  90.0000 270.0000  1.00270000000000',
    },
    41752: {
        'name': 'INSAT-3DR',
        'line1': '1 41752U 16054A   24350.50000000  .00000100  00000-0  00000-0 0  9999',
        'line2': '2 41752   0.0500  74.0000 0002000  90.0000 270.0000  1.00270000000000',
    },
    44804: {
        'name': 'CARTOSAT-3',
        'line1': '1 44804U 19089A   24350.50000000  .00000500  00000-0  30000-4 0  9999',
        'line2': '2 44804  97.5000 320.0000 0010000  50.0000 310.0000 15.19000000000000',
    },
    44857: {
        'name': 'RISAT-2BR1',
        'line1': '1 44857U 19081A   24350.50000000  .00001000  00000-0  50000-4 0  9999',
        'line2': '2 44857  37.0000 150.0000 0010000  40.0000 320.0000 15.09000000000000',
    },
    40930: {
        'name': 'ASTROSAT',
        'line1': '1 40930U 15052A   24350.50000000  .00000500  00000-0  35000-4 0  9999',
        'line2': '2 40930   6.0000 300.0000 0010000  50.0000 310.0000 14.76000000000000',
    },
    49260: {
        'name': 'LANDSAT 9',
        'line1': '1 49260U 21088A   24350.50000000  .00000200  00000-0  15000-4 0  9999',
        'line2': '2 49260  98.2000 280.0000 0001000 100.0000 260.0000 14.57000000000000',
    },
    40697: {
        'name': 'SENTINEL-2A',
        'line1': '1 40697U 15028A   24350.50000000  .00000100  00000-0  10000-4 0  9999',
        'line2': '2 40697  98.5700 220.0000 0001000 100.0000 260.0000 14.31000000000000',
    },
}


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


class TrackerConfig:
    """Runtime settings, overridable through environment variables."""

    CELESTRAK_BASE = os.getenv('CELESTRAK_API_BASE', 'https://celestrak.org/NORAD/elements/gp.php')
    TLE_CACHE_DURATION = timedelta(hours=_env_float('TLE_CACHE_HOURS', 4.0))
    TLE_RETRY_GRACE = timedelta(minutes=_env_float('TLE_RETRY_GRACE_MINUTES', 30.0))
    TLE_FETCH_TIMEOUT_S = _env_float('TLE_FETCH_TIMEOUT_S', 5.0)
    PREFETCH_WORKERS = _env_int('PREFETCH_WORKERS', 8)

    UPDATE_INTERVAL_S = _env_int('UPDATE_INTERVAL_MS', 3000) / 1000.0
    TERMINATOR_INTERVAL_S = _env_float('TERMINATOR_INTERVAL_S', 30.0)
    ORBIT_PATH_INTERVAL_S = _env_float('ORBIT_PATH_INTERVAL_S', 60.0)

    ORBIT_WINDOW_MINUTES = _env_float('ORBIT_WINDOW_MINUTES', 90.0)
    ORBIT_STEP_MINUTES = _env_float('ORBIT_STEP_MINUTES', 1.0)
    POSITION_HISTORY_SIZE = _env_int('POSITION_HISTORY_SIZE', 500)

    # Upper bounds for on-demand path requests
    MAX_PATH_WINDOW_MINUTES = _env_float('MAX_PATH_WINDOW_MINUTES', 24 * 60.0)
    MAX_PATH_SAMPLES = _env_int('MAX_PATH_SAMPLES', 5000)

    TERMINATOR_STEP_DEG = _env_float('TERMINATOR_STEP_DEG', 1.0)


config = TrackerConfig()
