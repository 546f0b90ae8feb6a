"""
Optical visibility classification.

A satellite is VISIBLE to the naked eye when it is sunlit, above the
horizon, and the observer's sky is dark enough (sun below the twilight
threshold). Otherwise it is either DAYLIGHT (sunlit, but the sky is bright or
the satellite is below the horizon) or ECLIPSED (in the Earth's shadow).
"""

import logging
from enum import Enum

from .coordinates import topocentric
from .site import ObserverSite
from .solar import sat_eclipsed, solar_position
from .vector_math import ZERO_VECTOR, Vector3, degrees

logger = logging.getLogger(__name__)

# Civil twilight
DEFAULT_TWILIGHT_THRESHOLD_DEG = -6.0


class SatVisibility(Enum):
    """Visibility class of a satellite sample."""

    NONE = 0
    VISIBLE = 1
    DAYLIGHT = 2
    ECLIPSED = 3


def classify_visibility(
    sat_elevation_deg: float,
    sun_elevation_deg: float,
    eclipsed: bool,
    threshold_deg: float = DEFAULT_TWILIGHT_THRESHOLD_DEG,
) -> SatVisibility:
    """
    Classify from precomputed geometry.

    Args:
        sat_elevation_deg: Satellite elevation at the observer
        sun_elevation_deg: Sun elevation at the observer
        eclipsed: Whether the satellite is in the Earth's shadow
        threshold_deg: Sun elevation at or below which the sky counts as dark

    Returns:
        SatVisibility
    """
    if eclipsed:
        return SatVisibility.ECLIPSED
    if sun_elevation_deg <= threshold_deg and sat_elevation_deg >= 0.0:
        return SatVisibility.VISIBLE
    return SatVisibility.DAYLIGHT


def satellite_visibility(
    sat_position: Vector3,
    sat_elevation_deg: float,
    site: ObserverSite,
    jd: float,
    threshold_deg: float = DEFAULT_TWILIGHT_THRESHOLD_DEG,
) -> SatVisibility:
    """
    Classify a satellite at ``jd`` as seen from ``site``.

    Args:
        sat_position: Satellite ECI position, km
        sat_elevation_deg: Satellite elevation at the site
        site: Observer
        jd: Julian date
        threshold_deg: Twilight threshold
    """
    sun = solar_position(jd)
    sun_el = degrees(topocentric(sun, ZERO_VECTOR, site.geodetic, jd).el)
    eclipsed, _ = sat_eclipsed(sat_position, sun)
    return classify_visibility(sat_elevation_deg, sun_el, eclipsed, threshold_deg)
