"""
Experimental apparent-magnitude estimate.

Scales a satellite's known intrinsic magnitude by the fraction of the disk
that is illuminated and by the inverse square of the range. Only satellites
listed in ``INTRINSIC_MAGNITUDES`` are supported.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, Optional

from .coordinates import observer_position_velocity
from .site import ObserverSite
from .solar import solar_position
from .vector_math import Vector3, degrees

logger = logging.getLogger(__name__)

# Fifth root of 100
POGSONS_RATIO = 2.5118864315096


@dataclass(frozen=True)
class IntrinsicMagnitude:
    """Reference magnitude at a given illuminated fraction and range (km)."""

    magnitude: float
    illumination: float
    distance_km: float


INTRINSIC_MAGNITUDES: Dict[int, IntrinsicMagnitude] = {
    25544: IntrinsicMagnitude(magnitude=-1.3, illumination=0.5, distance_km=1000.0),  # ISS
}


def apparent_magnitude(
    catalog_number: int,
    sat_position: Vector3,
    range_km: float,
    site: ObserverSite,
    jd: float,
) -> Optional[float]:
    """
    Estimate the visual magnitude of a satellite.

    Args:
        catalog_number: NORAD catalog number
        sat_position: Satellite ECI position, km
        range_km: Observer to satellite distance, km
        site: Observer
        jd: Julian date

    Returns:
        Estimated magnitude (smaller is brighter), or None if no intrinsic
        magnitude is known for this satellite
    """
    reference = INTRINSIC_MAGNITUDES.get(catalog_number)
    if reference is None:
        return None

    observer_position, _ = observer_position_velocity(site.geodetic, jd)
    line_of_sight = sat_position - observer_position
    phase_angle = degrees(solar_position(jd).angle(line_of_sight))
    illumination = phase_angle / 180.0
    if illumination <= 0.0 or range_km <= 0.0:
        return None

    ratio = (illumination / reference.illumination) * (reference.distance_km / range_km) ** 2
    return reference.magnitude - math.log(ratio) / math.log(POGSONS_RATIO)
