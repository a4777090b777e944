"""
Data models for the orbit tracker.

All models are frozen pydantic models: a TLE snapshot or a computed state
never changes after creation, a new fetch or a new propagation produces a new
instance.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


class Illumination(str, Enum):
    """Whether an object is lit by the sun or inside Earth's shadow."""

    SUNLIT = "sunlit"
    ECLIPSED = "eclipsed"


class TwoLineElement(BaseModel):
    """A two-line element set as published by the tracking authority."""

    model_config = ConfigDict(frozen=True)

    catalog_id: int = Field(gt=0)
    line1: str
    line2: str
    name: str
    fetched_at: datetime
    source: Literal["network", "fallback"] = "network"

    def age(self, now: datetime) -> timedelta:
        return now - self.fetched_at

    def is_stale(self, now: datetime, max_age: timedelta) -> bool:
        return self.age(now) >= max_age


class GeodeticPosition(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(gt=-180.0, le=180.0)
    altitude_km: float = Field(ge=0.0)
    timestamp: datetime


class KinematicState(GeodeticPosition):
    """Full per-instant description of a tracked object."""

    velocity_kmh: float = Field(ge=0.0)
    illumination: Illumination
    position_eci_km: Tuple[float, float, float]
    velocity_eci_kms: Tuple[float, float, float]


class OrbitPathPoint(BaseModel):
    """A ground-track vertex. Antimeridian wraps are not flagged."""

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    timestamp: datetime


class CatalogEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    norad_id: int = Field(gt=0)
    display_name: str
    short_name: str
    category: str
    country: str = ""
    color: str = "#ffffff"


# Position lookup outcomes. Three distinct failure semantics are kept apart:
# no data at all, data that cannot be propagated, and success.

class Positioned(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["positioned"] = "positioned"
    catalog_id: int
    state: KinematicState


class Unpositionable(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["unpositionable"] = "unpositionable"
    catalog_id: int
    reason: Optional[str] = None


class Unavailable(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["unavailable"] = "unavailable"
    catalog_id: int


PositionResult = Union[Positioned, Unpositionable, Unavailable]
