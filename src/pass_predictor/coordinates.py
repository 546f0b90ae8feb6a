"""
Coordinate transforms between geodetic, Earth-centred inertial (ECI) and
topocentric frames.

The Earth is modelled as the WGS-72 oblate spheroid. Angles passed between
functions here are in radians; conversion to degrees happens at the
satellite/pass layer.
"""

import logging
import math
from dataclasses import dataclass
from typing import Tuple

from .constants import (
    EARTH_ROTATION_RATE,
    FLATTENING,
    JD_J2000,
    OMEGA_E,
    PI,
    SECDAY,
    TWOPI,
    XKMPER,
)
from .vector_math import Vector3, ac_tan, degrees, fmod2p, frac, radians

logger = logging.getLogger(__name__)

# Fixed-point latitude iteration
GEODETIC_TOLERANCE_RAD = 1e-10
GEODETIC_MAX_ITERATIONS = 50


@dataclass(frozen=True)
class Geodetic:
    """Geodetic coordinates: latitude/longitude in radians, altitude in km."""

    lat: float
    lon: float
    alt: float


@dataclass(frozen=True)
class ObservationSet:
    """Topocentric look angles (radians), range (km) and range rate (km/s)."""

    az: float
    el: float
    range: float
    range_rate: float

    @property
    def az_deg(self) -> float:
        return degrees(self.az)

    @property
    def el_deg(self) -> float:
        return degrees(self.el)


def sidereal_angle(jd: float) -> float:
    """
    Greenwich mean sidereal time for a Julian date, in radians [0, 2*pi).
    """
    ut = frac(jd + 0.5)
    jd0 = jd - ut
    tu = (jd0 - JD_J2000) / 36525.0
    gmst = 24110.54841 + tu * (8640184.812866 + tu * (0.093104 - tu * 6.2e-6))
    gmst = (gmst + SECDAY * OMEGA_E * ut) % SECDAY
    return TWOPI * gmst / SECDAY


def site_geodetic(latitude_deg: float, longitude_deg: float, altitude_m: float) -> Geodetic:
    return Geodetic(radians(latitude_deg), radians(longitude_deg), altitude_m / 1000.0)


def observer_position_velocity(geodetic: Geodetic, jd: float) -> Tuple[Vector3, Vector3]:
    """
    ECI position (km) and velocity (km/s) of a point fixed to the Earth's
    surface.

    The velocity only contains the Earth-rotation term.
    """
    theta = fmod2p(sidereal_angle(jd) + geodetic.lon)
    sin_lat = math.sin(geodetic.lat)
    c = 1.0 / math.sqrt(1.0 + FLATTENING * (FLATTENING - 2.0) * sin_lat * sin_lat)
    sq = (1.0 - FLATTENING) * (1.0 - FLATTENING) * c
    achcp = (XKMPER * c + geodetic.alt) * math.cos(geodetic.lat)

    position = Vector3(
        achcp * math.cos(theta),
        achcp * math.sin(theta),
        (XKMPER * sq + geodetic.alt) * sin_lat,
    )
    velocity = Vector3(
        -EARTH_ROTATION_RATE * position.y,
        EARTH_ROTATION_RATE * position.x,
        0.0,
    )
    return position, velocity


def geodetic_of(position: Vector3, jd: float) -> Geodetic:
    """
    Geodetic latitude, longitude and altitude of an ECI position (km).

    Longitude is returned in (-pi, pi].
    """
    theta = ac_tan(position.y, position.x)
    lon = fmod2p(theta - sidereal_angle(jd))
    if lon > PI:
        lon -= TWOPI

    r = math.sqrt(position.x * position.x + position.y * position.y)
    e2 = FLATTENING * (2.0 - FLATTENING)
    lat = math.atan2(position.z, r)
    c = 1.0

    for _ in range(GEODETIC_MAX_ITERATIONS):
        phi = lat
        sin_phi = math.sin(phi)
        c = 1.0 / math.sqrt(1.0 - e2 * sin_phi * sin_phi)
        lat = math.atan2(position.z + XKMPER * c * e2 * sin_phi, r)
        if abs(lat - phi) < GEODETIC_TOLERANCE_RAD:
            break
    else:
        logger.debug(f"Geodetic latitude iteration hit cap at lat={lat:.12f}")

    cos_lat = math.cos(lat)
    if abs(cos_lat) < 1e-12:
        # Over a pole the horizontal distance carries no altitude information
        alt = abs(position.z) - XKMPER * (1.0 - FLATTENING)
    else:
        alt = r / cos_lat - XKMPER * c
    return Geodetic(lat, lon, alt)


def topocentric(
    sat_position: Vector3,
    sat_velocity: Vector3,
    observer: Geodetic,
    jd: float,
    apply_refraction: bool = False,
) -> ObservationSet:
    """
    Azimuth, elevation, range and range rate of an ECI object seen from
    ``observer``.

    Azimuth is measured clockwise from geographic north. With
    ``apply_refraction`` the Meeus standard-atmosphere correction is added to
    elevations at or above the horizon; the geometric elevation is kept
    whenever the corrected value would be lower.
    """
    obs_pos, obs_vel = observer_position_velocity(observer, jd)
    rng = sat_position - obs_pos
    rgvel = sat_velocity - obs_vel
    range_km = rng.w

    theta = fmod2p(sidereal_angle(jd) + observer.lon)
    sin_lat = math.sin(observer.lat)
    cos_lat = math.cos(observer.lat)
    sin_theta = math.sin(theta)
    cos_theta = math.cos(theta)

    top_s = sin_lat * cos_theta * rng.x + sin_lat * sin_theta * rng.y - cos_lat * rng.z
    top_e = -sin_theta * rng.x + cos_theta * rng.y
    top_z = cos_lat * cos_theta * rng.x + cos_lat * sin_theta * rng.y + sin_lat * rng.z

    az = math.atan2(top_e, -top_s) % TWOPI
    el = math.asin(max(-1.0, min(1.0, top_z / range_km)))

    if apply_refraction:
        el = refract(el)

    return ObservationSet(az=az, el=el, range=range_km, range_rate=rng.dot(rgvel) / range_km)


def refract(el: float) -> float:
    """
    Apparent elevation for a geometric elevation, both in radians.

    Meeus, Astronomical Algorithms, eq. 16.4. Below the horizon the formula
    is meaningless and the geometric value is returned.
    """
    if el < 0.0:
        return el
    h = degrees(el)
    correction_arcmin = 1.02 / math.tan(radians(h + 10.3 / (h + 5.11)))
    corrected = el + radians(correction_arcmin / 60.0)
    return corrected if corrected >= el else el


def topocentric_radec(
    position: Vector3, velocity: Vector3, observer: Geodetic, jd: float
) -> Tuple[float, float]:
    """Topocentric right ascension and declination in radians."""
    obs = topocentric(position, velocity, observer, jd)
    theta = fmod2p(sidereal_angle(jd) + observer.lon)
    sin_theta = math.sin(theta)
    cos_theta = math.cos(theta)
    sin_phi = math.sin(observer.lat)
    cos_phi = math.cos(observer.lat)

    lxh = -math.cos(obs.az) * math.cos(obs.el)
    lyh = math.sin(obs.az) * math.cos(obs.el)
    lzh = math.sin(obs.el)

    lx = sin_phi * cos_theta * lxh - sin_theta * lyh + cos_theta * cos_phi * lzh
    ly = sin_phi * sin_theta * lxh + cos_theta * lyh + sin_theta * cos_phi * lzh
    lz = -cos_phi * lxh + sin_phi * lzh

    dec = math.asin(max(-1.0, min(1.0, lz)))
    cos_delta = math.sqrt(max(0.0, 1.0 - lz * lz))
    if cos_delta == 0.0:
        return 0.0, dec
    ra = fmod2p(ac_tan(ly / cos_delta, lx / cos_delta))
    return ra, dec
