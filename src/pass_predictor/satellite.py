"""
Satellite entity: elements, propagator and per-time state evaluation.

A :class:`Satellite` is immutable after construction. Evaluating it at a
time returns a fresh :class:`SatelliteState`; nothing is cached between
calls, so one satellite can be shared by several predictors.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from .constants import (
    AE,
    GEOSTATIONARY_MEAN_MOTION,
    GEOSTATIONARY_TOLERANCE,
    PI,
    TWOPI,
    XKMPER,
    XMNPDA,
)
from .coordinates import geodetic_of, topocentric
from .elements import OrbitalElements, PropagationMode, select_propagation_mode
from .magnitude import apparent_magnitude
from .propagation import Propagator
from .site import ObserverSite
from .time_utils import datetime_to_julian, minutes_between
from .tle import TLE, load_tle
from .vector_math import Vector3, degrees

logger = logging.getLogger(__name__)


class OrbitType(Enum):
    """Coarse orbit classification used to rule out pass searches."""

    UNKNOWN = "unknown"
    GEOSTATIONARY = "geostationary"
    DECAYED = "decayed"


@dataclass(frozen=True)
class SatelliteState:
    """Satellite state at one instant as seen from one site."""

    jd: float
    tsince: float  # minutes since epoch
    position: Vector3  # ECI, km
    velocity: Vector3  # ECI, km/s
    speed: float  # km/s
    az: float  # degrees
    el: float  # degrees
    range: float  # km
    range_rate: float  # km/s
    latitude: float  # sub-satellite point, degrees
    longitude: float  # sub-satellite point, degrees, (-180, 180]
    altitude: float  # km
    mean_anomaly: float  # 0-256 scale
    phase: float  # degrees
    footprint: float  # km
    orbit: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "jd": self.jd,
            "tsince": self.tsince,
            "position": self.position.as_tuple(),
            "velocity": self.velocity.as_tuple(),
            "speed": self.speed,
            "az": self.az,
            "el": self.el,
            "range": self.range,
            "range_rate": self.range_rate,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "altitude": self.altitude,
            "mean_anomaly": self.mean_anomaly,
            "phase": self.phase,
            "footprint": self.footprint,
            "orbit": self.orbit,
        }


class Satellite:
    """
    A satellite defined by a two-line element set.

    The propagation mode is selected once here and carried by the satellite
    and its propagator.
    """

    def __init__(self, name: str, elements: OrbitalElements, mode: Optional[PropagationMode] = None) -> None:
        """
        Args:
            name: Display name
            elements: Converted mean elements
            mode: Force a propagation model; selected from the period if omitted
        """
        self.name = name
        self.elements = elements
        self.mode = mode if mode is not None else select_propagation_mode(elements)
        self.propagator = Propagator(elements, self.mode)
        logger.info(f"Loaded satellite {name} (catalog {elements.catalog_number}, {self.mode.value})")

    @classmethod
    def from_tle(cls, tle: TLE) -> "Satellite":
        return cls(tle.name, OrbitalElements.from_tle(tle))

    @classmethod
    def from_lines(cls, name: Optional[str], line1: str, line2: str) -> "Satellite":
        return cls.from_tle(TLE.from_lines(name, line1, line2))

    @classmethod
    def from_tle_file(cls, tle_file_path: Union[str, Path], satellite_name: str) -> "Satellite":
        """
        Load a named satellite from a TLE file.

        Raises:
            FileNotFoundError: If the TLE file doesn't exist
            ValueError: If the satellite is not in the file
        """
        return cls.from_tle(load_tle(tle_file_path, satellite_name))

    @property
    def catalog_number(self) -> int:
        return self.elements.catalog_number

    @property
    def epoch_jd(self) -> float:
        return self.elements.epoch_jd

    @property
    def mean_motion(self) -> float:
        """Mean motion as given in the TLE, rev/day."""
        return self.elements.mean_motion_rev_per_day

    def is_geostationary(self) -> bool:
        return abs(self.mean_motion - GEOSTATIONARY_MEAN_MOTION) < GEOSTATIONARY_TOLERANCE

    def is_decayed(self, jd: float) -> bool:
        """
        Whether the drag term implies re-entry before ``jd``.

        Without a drag term the satellite never decays.
        """
        drag = abs(self.elements.ndot_over_2_rev_per_day2)
        if drag == 0.0:
            return False
        return self.epoch_jd + (16.666666 - self.mean_motion) / (10.0 * drag) < jd

    def orbit_type(self, jd: float) -> OrbitType:
        if self.is_geostationary():
            return OrbitType.GEOSTATIONARY
        if self.is_decayed(jd):
            return OrbitType.DECAYED
        return OrbitType.UNKNOWN

    def has_aos(self, site: ObserverSite) -> bool:
        """
        Whether the satellite can ever rise above the site's horizon.

        Compares the widest reachable latitude (inclination plus the footprint
        half-angle at apogee) with the site's latitude.
        """
        if self.mean_motion <= 0.0:
            return False

        lin = self.elements.xincl
        if lin >= PI / 2.0:
            lin = PI - lin

        sma = 331.25 * math.exp(math.log(XMNPDA / self.mean_motion) * (2.0 / 3.0))
        apogee = sma * (1.0 + self.elements.eo) - XKMPER
        ratio = XKMPER / (apogee + XKMPER)
        if ratio > 1.0:
            # Apogee below the surface
            return False
        return math.acos(ratio) + lin > abs(site.geodetic.lat)

    def orbit_number(self, jd: float) -> int:
        el = self.elements
        age = jd - el.epoch_jd
        return (
            math.floor((el.xno * XMNPDA / TWOPI + age * el.bstar * AE) * age + el.xmo / TWOPI)
            + el.revolution_number
            - 1
        )

    def calculate(self, site: ObserverSite, jd: float, apply_refraction: bool = False) -> SatelliteState:
        """
        Evaluate the satellite at a Julian date.

        Args:
            site: Observer
            jd: Julian date (UT)
            apply_refraction: Correct elevation for atmospheric refraction

        Returns:
            SatelliteState
        """
        tsince = minutes_between(self.epoch_jd, jd)
        result = self.propagator.propagate(tsince)
        obs = topocentric(result.position, result.velocity, site.geodetic, jd, apply_refraction)
        ssp = geodetic_of(result.position, jd)

        ratio = min(1.0, XKMPER / (XKMPER + ssp.alt))
        phase_deg = degrees(result.phase)

        return SatelliteState(
            jd=jd,
            tsince=tsince,
            position=result.position,
            velocity=result.velocity,
            speed=result.velocity.w,
            az=obs.az_deg,
            el=obs.el_deg,
            range=obs.range,
            range_rate=obs.range_rate,
            latitude=degrees(ssp.lat),
            longitude=degrees(ssp.lon),
            altitude=ssp.alt,
            mean_anomaly=phase_deg * 256.0 / 360.0,
            phase=phase_deg,
            footprint=12756.33 * math.acos(ratio),
            orbit=self.orbit_number(jd),
        )

    def apparent_magnitude(self, state: SatelliteState, site: ObserverSite) -> Optional[float]:
        """Estimated visual magnitude for a computed state, or None if unknown."""
        return apparent_magnitude(self.catalog_number, state.position, state.range, site, state.jd)

    def get_position(self, timestamp: datetime) -> Tuple[float, float, float]:
        """
        Sub-satellite point at a UTC timestamp.

        Returns:
            Tuple of (latitude_deg, longitude_deg, altitude_km)
        """
        jd = datetime_to_julian(timestamp)
        result = self.propagator.propagate(minutes_between(self.epoch_jd, jd))
        ssp = geodetic_of(result.position, jd)
        return degrees(ssp.lat), degrees(ssp.lon), ssp.alt

    def get_ground_track(
        self,
        start_time: datetime,
        end_time: datetime,
        time_step_minutes: float = 1.0,
    ) -> List[Tuple[datetime, float, float, float]]:
        """
        Sub-satellite points between two times.

        Returns:
            List of tuples: (timestamp, latitude, longitude, altitude_km)
        """
        if time_step_minutes <= 0:
            raise ValueError(f"time_step_minutes must be positive, got {time_step_minutes}")

        ground_track = []
        current_time = start_time
        time_step = timedelta(minutes=time_step_minutes)
        while current_time <= end_time:
            lat, lon, alt = self.get_position(current_time)
            ground_track.append((current_time, lat, lon, alt))
            current_time += time_step

        logger.debug(f"Generated ground track with {len(ground_track)} points")
        return ground_track

    def get_orbital_period(self) -> timedelta:
        return timedelta(minutes=self.elements.period_minutes())

    def __repr__(self) -> str:
        return f"Satellite(name='{self.name}', catalog={self.catalog_number}, mode={self.mode.value})"
