"""
Observer site definition.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .coordinates import Geodetic, site_geodetic

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ObserverSite:
    """
    A fixed ground observer.

    The geodetic form used by the coordinate transforms is derived once in
    ``__post_init__``.
    """

    name: str
    latitude: float  # degrees, -90 to +90 (north positive)
    longitude: float  # degrees, -180 to +180 (east positive)
    altitude: float = 0.0  # metres above sea level
    location: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        if not -90 <= self.latitude <= 90:
            raise ValueError(f"Invalid latitude: {self.latitude}. Must be between -90 and 90 degrees.")
        if not -180 <= self.longitude <= 180:
            raise ValueError(f"Invalid longitude: {self.longitude}. Must be between -180 and 180 degrees.")
        if not math.isfinite(self.altitude):
            raise ValueError(f"Invalid altitude: {self.altitude}")
        object.__setattr__(self, "_geodetic", site_geodetic(self.latitude, self.longitude, self.altitude))

    @property
    def geodetic(self) -> Geodetic:
        """Latitude/longitude in radians, altitude in km."""
        return self._geodetic  # type: ignore[attr-defined]

    @property
    def maidenhead_locator(self) -> str:
        """Six-character Maidenhead (QRA) grid locator."""
        lon = self.longitude + 180.0
        lat = self.latitude + 90.0
        # The north pole / antimeridian edge belongs to the last square
        lon = min(lon, 359.999999)
        lat = min(lat, 179.999999)
        field = chr(ord("A") + int(lon // 20)) + chr(ord("A") + int(lat // 10))
        square = str(int((lon % 20) // 2)) + str(int(lat % 10))
        subsquare = chr(ord("a") + int((lon % 2) * 12)) + chr(ord("a") + int((lat % 1) * 24))
        return field + square + subsquare

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "altitude": self.altitude,
            "location": self.location,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ObserverSite":
        """Create an ObserverSite from a dictionary (e.g. a YAML ``site:`` block)."""
        return cls(**data)

    def __str__(self) -> str:
        return f"{self.name} ({self.latitude:.4f}°, {self.longitude:.4f}°, {self.altitude:.0f} m)"
