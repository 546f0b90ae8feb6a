"""
Pass records produced by the pass search.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple

from .satellite import SatelliteState
from .time_utils import julian_to_datetime
from .vector_math import Vector3
from .visibility import SatVisibility

COMPASS_POINTS = (
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
)


def azimuth_to_direction(az: float) -> str:
    """Sixteen-point compass direction for an azimuth in degrees."""
    return COMPASS_POINTS[int((az % 360.0) / 22.5 + 0.5) % 16]


@dataclass(frozen=True)
class PassDetail:
    """One sample of a pass."""

    time: float  # Julian date
    position: Vector3
    velocity: Vector3
    speed: float
    az: float
    el: float
    range: float
    range_rate: float
    latitude: float
    longitude: float
    altitude: float
    mean_anomaly: float
    phase: float
    footprint: float
    orbit: int
    visibility: SatVisibility

    @classmethod
    def from_state(cls, state: SatelliteState, visibility: SatVisibility) -> "PassDetail":
        return cls(
            time=state.jd,
            position=state.position,
            velocity=state.velocity,
            speed=state.speed,
            az=state.az,
            el=state.el,
            range=state.range,
            range_rate=state.range_rate,
            latitude=state.latitude,
            longitude=state.longitude,
            altitude=state.altitude,
            mean_anomaly=state.mean_anomaly,
            phase=state.phase,
            footprint=state.footprint,
            orbit=state.orbit,
            visibility=visibility,
        )

    @property
    def datetime(self) -> datetime:
        return julian_to_datetime(self.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "time": self.datetime.isoformat(),
            "az": self.az,
            "el": self.el,
            "range": self.range,
            "range_rate": self.range_rate,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "altitude": self.altitude,
            "visibility": self.visibility.name,
        }


@dataclass(frozen=True)
class VisibleWindow:
    """Naked-eye portion of a pass: samples both VISIBLE and above the minimum elevation."""

    aos: float
    aos_az: float
    aos_el: float
    tca: float
    max_el: float
    max_el_az: float
    los: float
    los_az: float
    los_el: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "aos": julian_to_datetime(self.aos).isoformat(),
            "aos_az": self.aos_az,
            "aos_el": self.aos_el,
            "tca": julian_to_datetime(self.tca).isoformat(),
            "max_el": self.max_el,
            "max_el_az": self.max_el_az,
            "los": julian_to_datetime(self.los).isoformat(),
            "los_az": self.los_az,
            "los_el": self.los_el,
        }


@dataclass(frozen=True)
class Pass:
    """
    A single pass of a satellite over a site.

    ``vis`` is a three character flag string: ``V`` at index 0 if any sample
    was VISIBLE, ``D`` at 1 for DAYLIGHT, ``E`` at 2 for ECLIPSED, ``-``
    otherwise.
    """

    satellite_name: str
    aos: float
    tca: float
    los: float
    aos_az: float
    los_az: float
    max_el: float
    max_el_az: float
    orbit: int
    vis: str
    details: Tuple[PassDetail, ...]
    max_apparent_magnitude: Optional[float] = None
    visible_window: Optional[VisibleWindow] = None

    @property
    def duration(self) -> timedelta:
        return timedelta(days=self.los - self.aos)

    @property
    def aos_datetime(self) -> datetime:
        return julian_to_datetime(self.aos)

    @property
    def tca_datetime(self) -> datetime:
        return julian_to_datetime(self.tca)

    @property
    def los_datetime(self) -> datetime:
        return julian_to_datetime(self.los)

    @property
    def is_visible(self) -> bool:
        return self.vis.startswith("V")

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "satellite": self.satellite_name,
            "aos": self.aos_datetime.isoformat(),
            "tca": self.tca_datetime.isoformat(),
            "los": self.los_datetime.isoformat(),
            "duration_s": self.duration.total_seconds(),
            "aos_az": self.aos_az,
            "aos_direction": azimuth_to_direction(self.aos_az),
            "los_az": self.los_az,
            "los_direction": azimuth_to_direction(self.los_az),
            "max_el": self.max_el,
            "max_el_az": self.max_el_az,
            "orbit": self.orbit,
            "vis": self.vis,
            "max_apparent_magnitude": self.max_apparent_magnitude,
            "num_details": len(self.details),
        }
        if self.visible_window is not None:
            result["visible_window"] = self.visible_window.to_dict()
        return result

    def __str__(self) -> str:
        return (
            f"{self.satellite_name}: AOS {self.aos_datetime:%Y-%m-%d %H:%M:%S} "
            f"max el {self.max_el:.1f}° LOS {self.los_datetime:%H:%M:%S} [{self.vis}]"
        )
