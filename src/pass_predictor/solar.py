"""
Low-precision solar ephemeris and eclipse test.

The solar series is accurate to roughly 0.01 degrees, which is ample for
deciding whether a satellite is sunlit and whether the observer's sky is
dark.
"""

import logging
import math
from typing import Optional, Tuple

from .constants import AU_KM, JD_1900_JAN_0_5, SECDAY, SOLAR_RADIUS_KM, TWOPI, XKMPER
from .coordinates import ObservationSet, topocentric
from .site import ObserverSite
from .time_utils import current_julian_date, delta_et
from .vector_math import ZERO_VECTOR, Vector3, radians

logger = logging.getLogger(__name__)


def solar_position(jd: float) -> Vector3:
    """
    ECI position of the sun in km for a Julian date.

    Args:
        jd: Julian date (UT)

    Returns:
        Sun position vector; its magnitude is the Earth-Sun distance
    """
    mjd = jd - JD_1900_JAN_0_5
    year = 1900.0 + mjd / 365.25
    t = (mjd + delta_et(year) / SECDAY) / 36525.0

    m = radians((358.47583 + (35999.04975 * t) % 360.0 - (0.000150 + 0.0000033 * t) * t * t) % 360.0)
    l = radians((279.69668 + (36000.76892 * t) % 360.0 + 0.0003025 * t * t) % 360.0)
    e = 0.01675104 - (0.0000418 + 0.000000126 * t) * t
    c = radians(
        (1.919460 - (0.004789 + 0.000014 * t) * t) * math.sin(m)
        + (0.020094 - 0.000100 * t) * math.sin(2.0 * m)
        + 0.000293 * math.sin(3.0 * m)
    )
    o = radians((259.18 - 1934.142 * t) % 360.0)
    lsa = (l + c - radians(0.00569 - 0.00479 * math.sin(o))) % TWOPI
    nu = (m + c) % TWOPI
    r = AU_KM * 1.0000002 * (1.0 - e * e) / (1.0 + e * math.cos(nu))
    eps = radians(
        23.452294
        - (0.0130125 + (0.00000164 - 0.000000503 * t) * t) * t
        + 0.00256 * math.cos(o)
    )

    return Vector3(
        r * math.cos(lsa),
        r * math.sin(lsa) * math.cos(eps),
        r * math.sin(lsa) * math.sin(eps),
    )


def _safe_asin(x: float) -> float:
    return math.asin(max(-1.0, min(1.0, x)))


def sat_eclipsed(position: Vector3, sun: Vector3) -> Tuple[bool, float]:
    """
    Test whether a satellite is in the Earth's shadow.

    Compares the apparent radii of the Earth and the Sun as seen from the
    satellite with their angular separation.

    Args:
        position: Satellite ECI position, km
        sun: Sun ECI position, km

    Returns:
        Tuple of (eclipsed, depth) where depth is in radians; positive depth
        means the Sun's disk is fully behind the Earth
    """
    sd_earth = _safe_asin(XKMPER / position.w)
    sd_sun = _safe_asin(SOLAR_RADIUS_KM / (sun - position).w)
    delta = sun.angle(-position)
    depth = sd_earth - sd_sun - delta

    if sd_earth < sd_sun:
        return False, depth
    return depth >= 0.0, depth


def sun_observation(site: ObserverSite, jd: float) -> ObservationSet:
    """Topocentric az/el of the sun from a site (radians)."""
    return topocentric(solar_position(jd), ZERO_VECTOR, site.geodetic, jd)


def find_sun(site: ObserverSite, jd: Optional[float] = None) -> Tuple[float, float]:
    """
    Where the sun is in the sky for an observer.

    Args:
        site: Observer location
        jd: Julian date; defaults to now

    Returns:
        Tuple of (azimuth_deg, elevation_deg)
    """
    if jd is None:
        jd = current_julian_date()
    obs = sun_observation(site, jd)
    logger.debug(f"Sun at {site.name}: az={obs.az_deg:.2f} el={obs.el_deg:.2f}")
    return obs.az_deg, obs.el_deg
