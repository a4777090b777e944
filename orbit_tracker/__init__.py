"""
Orbit Tracker Package

Real-time position and ground track of catalogued Earth-orbiting objects from
two-line element sets, using the SGP4 propagation model.

Modules:
    tle_store: TLE fetching, parsing, caching and fallback data
    propagator: SGP4 propagation to geodetic position, speed and illumination
    eclipse: Cylindrical shadow test against an approximate sun position
    ground_track: Orbit-path sampling and antimeridian splitting
    terminator: Day/night boundary polygon
    tracker: Periodic tracking of a catalog of objects
    app: Flask JSON service

References:
    Vallado, D. A., Crawford, P., Hujsak, R., & Kelso, T. S. (2006).
    Revisiting Spacetrack Report #3. AIAA 2006-6753.
"""

__version__ = "1.0.0"
