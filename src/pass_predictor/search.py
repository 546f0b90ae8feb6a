"""
AOS/LOS search and pass assembly.

The search repeatedly evaluates the satellite at candidate times and walks
the elevation towards zero with step sizes scaled by the current elevation
and altitude: a coarse phase far from the horizon, then a fine phase until
the elevation is within 0.005 degrees of it.

Results use ``None`` for "no pass": the satellite is geostationary, decayed,
can never reach the site, or the search horizon ran out. Exceeding the
iteration cap of any root-finding loop raises :class:`SearchDidNotConverge`
instead.
"""

import logging
import math
from dataclasses import replace
from typing import Iterable, List, Optional

import numpy as np

from .config import PredictionConfig
from .passes import Pass, PassDetail, VisibleWindow
from .satellite import OrbitType, Satellite, SatelliteState
from .site import ObserverSite
from .time_utils import current_julian_date, julian_to_datetime
from .vector_math import radians
from .visibility import SatVisibility, satellite_visibility

logger = logging.getLogger(__name__)

# Step past AOS before searching for LOS (~1.5 min)
AOS_TO_LOS_OFFSET_DAYS = 0.001
# Backward step while looking for the AOS of an ongoing pass (~0.75 min)
PREV_AOS_STEP_DAYS = 0.0005
# Elevation (deg) treated as on the horizon
HORIZON_TOLERANCE_DEG = 0.005
# Pass count used when none is requested
DEFAULT_PASS_COUNT = 100

_VIS_FLAG_INDEX = {
    SatVisibility.VISIBLE: (0, "V"),
    SatVisibility.DAYLIGHT: (1, "D"),
    SatVisibility.ECLIPSED: (2, "E"),
}


class SearchDidNotConverge(RuntimeError):
    """A root-finding loop exceeded ``max_search_iterations``."""

    def __init__(self, phase: str, last_time: float, iterations: int) -> None:
        self.phase = phase
        self.last_time = last_time
        self.iterations = iterations
        super().__init__(
            f"{phase} did not converge after {iterations} iterations "
            f"(last time JD {last_time:.6f})"
        )


class PassPredictor:
    """
    Pass search for one satellite and one observer.

    Args:
        satellite: Satellite to predict
        site: Observer
        config: Search parameters; defaults are used if omitted
    """

    def __init__(
        self,
        satellite: Satellite,
        site: ObserverSite,
        config: Optional[PredictionConfig] = None,
    ) -> None:
        self.satellite = satellite
        self.site = site
        self.config = config or PredictionConfig()

    # ------------------------------------------------------------------
    # Evaluation helpers
    # ------------------------------------------------------------------

    def calculate(self, jd: float) -> SatelliteState:
        return self.satellite.calculate(self.site, jd, self.config.apply_refraction)

    def visibility(self, state: SatelliteState) -> SatVisibility:
        return satellite_visibility(
            state.position, state.el, self.site, state.jd, self.config.twilight_threshold_deg
        )

    def can_have_aos(self, jd: float) -> bool:
        """False for geostationary or decayed satellites, or an unreachable site."""
        orbit_type = self.satellite.orbit_type(jd)
        if orbit_type is not OrbitType.UNKNOWN:
            logger.debug(f"{self.satellite.name}: no AOS possible ({orbit_type.value})")
            return False
        if not self.satellite.has_aos(self.site):
            logger.debug(f"{self.satellite.name}: never rises above the horizon at {self.site.name}")
            return False
        return True

    def _count(self, phase: str, iterations: int, t: float) -> int:
        iterations += 1
        if iterations > self.config.max_search_iterations:
            raise SearchDidNotConverge(phase, t, iterations - 1)
        return iterations

    @staticmethod
    def _sqrt_alt(state: SatelliteState) -> float:
        return math.sqrt(max(state.altitude, 0.0))

    # ------------------------------------------------------------------
    # Root finding
    # ------------------------------------------------------------------

    def find_aos(self, start: float, maxdt: float = 0.0) -> Optional[float]:
        """
        Time of the next AOS no earlier than ``start``.

        If the satellite is already above the horizon the search starts after
        the current pass's LOS.

        Args:
            start: Julian date to search from
            maxdt: Search horizon in days; 0 for unbounded

        Returns:
            Julian date of AOS, or None
        """
        if not self.can_have_aos(start):
            return None

        state = self.calculate(start)
        t = start
        if state.el > 0.0:
            los = self.find_los(start, maxdt)
            if los is None:
                return None
            t = los + self.config.pass_margin_days
            state = self.calculate(t)

        limit = start + maxdt if maxdt > 0.0 else math.inf
        iterations = 0

        # Coarse steps
        while state.el < -1.0 and t <= limit:
            t -= 0.00035 * (state.el * ((state.altitude / 8400.0) + 0.46) - 2.0)
            state = self.calculate(t)
            iterations = self._count("find_aos", iterations, t)

        # Fine steps
        while t <= limit:
            if abs(state.el) < HORIZON_TOLERANCE_DEG:
                logger.debug(f"AOS at {julian_to_datetime(t)} after {iterations} iterations")
                return t
            t -= state.el * self._sqrt_alt(state) / 530000.0
            state = self.calculate(t)
            iterations = self._count("find_aos", iterations, t)

        return None

    def find_los(self, start: float, maxdt: float = 0.0) -> Optional[float]:
        """
        Time of the next LOS no earlier than ``start``.

        If the satellite is below the horizon the next AOS is found first.

        Args:
            start: Julian date to search from
            maxdt: Search horizon in days; 0 for unbounded

        Returns:
            Julian date of LOS, or None
        """
        if not self.can_have_aos(start):
            return None

        state = self.calculate(start)
        t = start
        if state.el < 0.0:
            aos = self.find_aos(start, maxdt)
            if aos is None:
                return None
            t = aos + AOS_TO_LOS_OFFSET_DAYS
            state = self.calculate(t)

        limit = start + maxdt if maxdt > 0.0 else math.inf
        iterations = 0

        # Coarse steps
        while state.el >= 1.0 and t <= limit:
            t += math.cos(radians(state.el - 1.0)) * self._sqrt_alt(state) / 25000.0
            state = self.calculate(t)
            iterations = self._count("find_los", iterations, t)

        # Fine steps
        while t <= limit:
            t += state.el * self._sqrt_alt(state) / 502500.0
            state = self.calculate(t)
            iterations = self._count("find_los", iterations, t)
            if abs(state.el) < HORIZON_TOLERANCE_DEG:
                logger.debug(f"LOS at {julian_to_datetime(t)} after {iterations} iterations")
                return t

        return None

    def find_prev_aos(self, start: float) -> Optional[float]:
        """AOS of a pass in progress at ``start``, found by stepping backwards."""
        if not self.can_have_aos(start):
            return None

        t = start
        state = self.calculate(t)
        iterations = 0
        while state.el >= 0.0:
            t -= PREV_AOS_STEP_DAYS
            state = self.calculate(t)
            iterations = self._count("find_prev_aos", iterations, t)
        return t

    # ------------------------------------------------------------------
    # Passes
    # ------------------------------------------------------------------

    def _build_pass(self, aos: float, los: float) -> Pass:
        step = max((los - aos) / self.config.num_entries, self.config.time_resolution_days)

        details: List[PassDetail] = []
        flags = ["-", "-", "-"]
        max_el = -math.inf
        max_el_az = 0.0
        tca = aos
        brightest: Optional[float] = None
        aos_az = 0.0
        orbit = 0

        i = 0
        t = aos
        while t <= los:
            state = self.calculate(t)
            vis = self.visibility(state)
            if i == 0:
                aos_az = state.az
                orbit = state.orbit

            if vis in _VIS_FLAG_INDEX:
                index, flag = _VIS_FLAG_INDEX[vis]
                flags[index] = flag

            details.append(PassDetail.from_state(state, vis))

            if vis is SatVisibility.VISIBLE:
                magnitude = self.satellite.apparent_magnitude(state, self.site)
                if magnitude is not None and (brightest is None or magnitude < brightest):
                    brightest = magnitude

            if state.el > max_el:
                max_el = state.el
                max_el_az = state.az
                tca = t

            i += 1
            t = aos + i * step

        los_state = self.calculate(los)

        return Pass(
            satellite_name=self.satellite.name,
            aos=aos,
            tca=tca,
            los=los,
            aos_az=aos_az,
            los_az=los_state.az,
            max_el=max_el,
            max_el_az=max_el_az,
            orbit=orbit,
            vis="".join(flags),
            details=tuple(details),
            max_apparent_magnitude=brightest,
        )

    def get_pass(self, start: float, maxdt: float = 0.0) -> Optional[Pass]:
        """
        First pass with AOS between ``start`` and ``start + maxdt`` whose
        peak elevation reaches the minimum elevation.

        A pass in progress at ``start`` counts; its AOS lies before ``start``.

        Args:
            start: Julian date to search from
            maxdt: Search horizon in days; 0 for unbounded

        Returns:
            Pass, or None if there is none

        Raises:
            SearchDidNotConverge: If a root-finding loop hits its iteration cap
        """
        t0 = start
        for _ in range(self.config.max_pass_candidates):
            los = self.find_los(t0, maxdt)
            aos = self.find_aos(t0, maxdt)

            if los is not None and (aos is None or aos > los):
                # In view at t0: the next AOS follows the LOS or lies past maxdt
                aos = self.find_prev_aos(t0)

            if aos is None:
                logger.debug(f"No AOS found for {self.satellite.name} after JD {t0:.6f}")
                return None
            if maxdt > 0.0 and aos > start + maxdt:
                return None
            if los is None:
                logger.debug(f"No LOS found for {self.satellite.name} within the search horizon")
                return None

            candidate = self._build_pass(aos, los)
            if candidate.max_el >= self.config.min_elevation_deg:
                logger.info(
                    f"Pass of {self.satellite.name}: AOS {candidate.aos_datetime:%Y-%m-%d %H:%M:%S} "
                    f"max el {candidate.max_el:.1f}° [{candidate.vis}]"
                )
                return candidate

            logger.debug(
                f"Skipping pass at {candidate.aos_datetime} with max el {candidate.max_el:.1f}° "
                f"< {self.config.min_elevation_deg}°"
            )
            t0 = los + self.config.pass_margin_days

        logger.warning(
            f"Gave up after {self.config.max_pass_candidates} passes below "
            f"{self.config.min_elevation_deg}° for {self.satellite.name}"
        )
        return None

    def get_next_pass(self, maxdt: float = 0.0) -> Optional[Pass]:
        """Next pass from the current time."""
        return self.get_pass(current_julian_date(), maxdt)

    def get_passes(self, start: float, maxdt: float = 0.0, count: int = 10) -> List[Pass]:
        """
        Consecutive passes starting at ``start``.

        Stops after ``count`` passes, at the end of the horizon, or when no
        further pass is found.

        Args:
            start: Julian date to search from
            maxdt: Search horizon in days; 0 for unbounded
            count: Maximum number of passes; 0 or less means 100
        """
        if count <= 0:
            count = DEFAULT_PASS_COUNT

        passes: List[Pass] = []
        t = start
        while len(passes) < count:
            remaining = 0.0
            if maxdt > 0.0:
                remaining = maxdt - (t - start)
                if remaining <= 0.0:
                    break

            found = self.get_pass(t, remaining)
            if found is None:
                break
            passes.append(found)
            t = found.los + self.config.pass_margin_days

        logger.info(f"Found {len(passes)} passes of {self.satellite.name} over {self.site.name}")
        return passes

    def filter_visible(self, passes: Iterable[Pass]) -> List[Pass]:
        """Visible passes under this predictor's minimum elevation."""
        return filter_visible(passes, self.config)


def get_pass(
    satellite: Satellite,
    site: ObserverSite,
    start: float,
    maxdt: float = 0.0,
    config: Optional[PredictionConfig] = None,
) -> Optional[Pass]:
    return PassPredictor(satellite, site, config).get_pass(start, maxdt)


def get_passes(
    satellite: Satellite,
    site: ObserverSite,
    start: float,
    maxdt: float = 0.0,
    count: int = 10,
    config: Optional[PredictionConfig] = None,
) -> List[Pass]:
    return PassPredictor(satellite, site, config).get_passes(start, maxdt, count)


def filter_visible(passes: Iterable[Pass], config: Optional[PredictionConfig] = None) -> List[Pass]:
    """
    Keep passes with at least one naked-eye sample above the minimum
    elevation and attach their :class:`VisibleWindow`.

    The window's first, peak and last samples are taken only from details
    that are both VISIBLE and at or above ``config.min_elevation_deg``.
    Passes without such a sample are dropped.
    """
    min_el = (config or PredictionConfig()).min_elevation_deg
    filtered = []
    for p in passes:
        if not p.is_visible or not p.details:
            continue

        elevations = np.array([d.el for d in p.details])
        visible = np.array([d.visibility is SatVisibility.VISIBLE for d in p.details])
        indices = np.flatnonzero(visible & (elevations >= min_el))
        if indices.size == 0:
            continue

        first = p.details[indices[0]]
        last = p.details[indices[-1]]
        peak = p.details[indices[int(np.argmax(elevations[indices]))]]
        window = VisibleWindow(
            aos=first.time,
            aos_az=first.az,
            aos_el=first.el,
            tca=peak.time,
            max_el=peak.el,
            max_el_az=peak.az,
            los=last.time,
            los_az=last.az,
            los_el=last.el,
        )
        filtered.append(replace(p, visible_window=window))

    logger.debug(f"{len(filtered)} passes have a visible window")
    return filtered
