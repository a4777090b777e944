"""
Satellite catalog.

Static registry of trackable objects. Entries are read-only; the tracking
core only uses ``norad_id`` as the TLE lookup key.
"""

from typing import Iterable, Optional, Tuple

from orbit_tracker.models import CatalogEntry

SATELLITE_CATALOG: Tuple[CatalogEntry, ...] = (
    # Space stations
    CatalogEntry(id="iss", norad_id=25544, display_name="International Space Station",
                 short_name="ISS", category="space-station", country="International", color="#00d4ff"),
    CatalogEntry(id="css", norad_id=48274, display_name="Tiangong Space Station",
                 short_name="Tiangong", category="space-station", country="China", color="#ff4444"),

    # Observatories
    CatalogEntry(id="hubble", norad_id=20580, display_name="Hubble Space Telescope",
                 short_name="Hubble", category="satellite", country="USA", color="#ffd700"),
    CatalogEntry(id="astrosat", norad_id=40930, display_name="AstroSat",
                 short_name="AstroSat", category="satellite", country="India", color="#8b5cf6"),

    # Earth observation
    CatalogEntry(id="terra", norad_id=25994, display_name="Terra (EOS AM-1)",
                 short_name="Terra", category="satellite", country="USA", color="#4ade80"),
    CatalogEntry(id="aqua", norad_id=27424, display_name="Aqua (EOS PM-1)",
                 short_name="Aqua", category="satellite", country="USA", color="#22d3ee"),
    CatalogEntry(id="landsat9", norad_id=49260, display_name="Landsat 9",
                 short_name="Landsat-9", category="satellite", country="USA", color="#a855f7"),
    CatalogEntry(id="sentinel2a", norad_id=40697, display_name="Sentinel-2A",
                 short_name="Sentinel-2A", category="satellite", country="Europe", color="#60a5fa"),
    CatalogEntry(id="cartosat3", norad_id=44804, display_name="Cartosat-3",
                 short_name="Cartosat-3", category="satellite", country="India", color="#fb923c"),
    CatalogEntry(id="risat2br1", norad_id=44857, display_name="RISAT-2BR1",
                 short_name="RISAT-2B", category="satellite", country="India", color="#f97316"),

    # Weather
    CatalogEntry(id="noaa19", norad_id=33591, display_name="NOAA 19",
                 short_name="NOAA-19", category="satellite", country="USA", color="#f472b6"),
    CatalogEntry(id="insat3d", norad_id=39216, display_name="INSAT-3D",
                 short_name="INSAT-3D", category="satellite", country="India", color="#ff6b00"),
    CatalogEntry(id="insat3dr", norad_id=41752, display_name="INSAT-3DR",
                 short_name="INSAT-3DR", category="satellite", country="India", color="#f59e0b"),

    # Communication
    CatalogEntry(id="starlink", norad_id=44713, display_name="Starlink-1007",
                 short_name="Starlink", category="satellite", country="SpaceX", color="#e879f9"),
)


def find_entry(entry_id: str, catalog: Iterable[CatalogEntry] = SATELLITE_CATALOG) -> Optional[CatalogEntry]:
    return next((entry for entry in catalog if entry.id == entry_id), None)


def find_by_norad(norad_id: int, catalog: Iterable[CatalogEntry] = SATELLITE_CATALOG) -> Optional[CatalogEntry]:
    return next((entry for entry in catalog if entry.norad_id == norad_id), None)
