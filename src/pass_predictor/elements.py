"""
Orbital elements in propagator units and propagation mode selection.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum

from .constants import (
    AE,
    CK2,
    DEEP_SPACE_PERIOD_MINUTES,
    TOTHRD,
    TWOPI,
    XKE,
    XMNPDA,
)
from .time_utils import julian_date_of_epoch
from .tle import TLE
from .vector_math import radians

logger = logging.getLogger(__name__)

# rev/day -> rad/min conversion factor applied per time derivative
_REV_PER_DAY_TO_RAD_PER_MIN = TWOPI / XMNPDA


class PropagationMode(Enum):
    """Analytic model used for a satellite."""

    NEAR_EARTH = "near_earth"  # SGP4
    DEEP_SPACE = "deep_space"  # SDP4


@dataclass(frozen=True)
class OrbitalElements:
    """
    Mean orbital elements in the units the propagator expects.

    Angles are radians, ``xno`` is rad/min, ``xndt2o`` rad/min^2 and
    ``xndd6o`` rad/min^3. Instances are created once from TLE values via
    :meth:`from_tle` or :meth:`from_tle_values`; the constructor itself does
    no conversion.
    """

    epoch_jd: float
    xincl: float
    xnodeo: float
    eo: float
    omegao: float
    xmo: float
    xno: float
    xndt2o: float
    xndd6o: float
    bstar: float
    catalog_number: int = 0
    revolution_number: int = 0
    mean_motion_rev_per_day: float = 0.0
    ndot_over_2_rev_per_day2: float = 0.0

    def __post_init__(self) -> None:
        if self.xno <= 0.0:
            raise ValueError(f"Mean motion must be positive, got {self.xno}")
        if not 0.0 <= self.eo < 1.0:
            raise ValueError(f"Eccentricity must be in [0, 1), got {self.eo}")

    @classmethod
    def from_tle_values(
        cls,
        epoch: float,
        inclination_deg: float,
        raan_deg: float,
        eccentricity: float,
        arg_perigee_deg: float,
        mean_anomaly_deg: float,
        mean_motion_rev_per_day: float,
        ndot_over_2: float = 0.0,
        nddot_over_6: float = 0.0,
        bstar: float = 0.0,
        catalog_number: int = 0,
        revolution_number: int = 0,
    ) -> "OrbitalElements":
        """
        Build elements from values in TLE units (degrees, rev/day).

        Args:
            epoch: NORAD epoch ``YYDDD.FFFFFFFF``
        """
        temp = _REV_PER_DAY_TO_RAD_PER_MIN / XMNPDA
        return cls(
            epoch_jd=julian_date_of_epoch(epoch),
            xincl=radians(inclination_deg),
            xnodeo=radians(raan_deg),
            eo=eccentricity,
            omegao=radians(arg_perigee_deg),
            xmo=radians(mean_anomaly_deg),
            xno=mean_motion_rev_per_day * _REV_PER_DAY_TO_RAD_PER_MIN,
            xndt2o=ndot_over_2 * temp,
            xndd6o=nddot_over_6 * temp / XMNPDA,
            bstar=bstar / AE,
            catalog_number=catalog_number,
            revolution_number=revolution_number,
            mean_motion_rev_per_day=mean_motion_rev_per_day,
            ndot_over_2_rev_per_day2=ndot_over_2,
        )

    @classmethod
    def from_tle(cls, tle: TLE) -> "OrbitalElements":
        return cls.from_tle_values(
            epoch=tle.epoch,
            inclination_deg=tle.inclination_deg,
            raan_deg=tle.raan_deg,
            eccentricity=tle.eccentricity,
            arg_perigee_deg=tle.arg_perigee_deg,
            mean_anomaly_deg=tle.mean_anomaly_deg,
            mean_motion_rev_per_day=tle.mean_motion_rev_per_day,
            ndot_over_2=tle.ndot_over_2,
            nddot_over_6=tle.nddot_over_6,
            bstar=tle.bstar,
            catalog_number=tle.catalog_number,
            revolution_number=tle.revolution_number,
        )

    def unkozai_mean_motion(self) -> float:
        """Original (Brouwer) mean motion xnodp in rad/min."""
        a1 = (XKE / self.xno) ** TOTHRD
        cosio = math.cos(self.xincl)
        betao2 = 1.0 - self.eo * self.eo
        temp = 1.5 * CK2 * (3.0 * cosio * cosio - 1.0) / betao2 ** 1.5
        del1 = temp / (a1 * a1)
        ao = a1 * (1.0 - del1 * (0.5 * TOTHRD + del1 * (1.0 + 134.0 / 81.0 * del1)))
        delo = temp / (ao * ao)
        return self.xno / (1.0 + delo)

    def period_minutes(self) -> float:
        return TWOPI / self.unkozai_mean_motion()


def select_propagation_mode(elements: OrbitalElements) -> PropagationMode:
    """Periods of 225 minutes or more use the deep-space model."""
    period = elements.period_minutes()
    mode = (
        PropagationMode.DEEP_SPACE
        if period >= DEEP_SPACE_PERIOD_MINUTES
        else PropagationMode.NEAR_EARTH
    )
    logger.debug(f"Catalog {elements.catalog_number}: period {period:.1f} min -> {mode.value}")
    return mode
