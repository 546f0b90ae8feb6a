"""
Propagation entry point.

Selects SGP4 or SDP4 once per element set and exposes a single pure
``propagate`` call returning position/velocity in kilometres.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from .constants import XKMPER, XMNPDA, SECDAY
from .elements import OrbitalElements, PropagationMode, select_propagation_mode
from .sdp4 import DeepSpaceModel
from .sgp4 import ModelState, NearEarthModel
from .time_utils import minutes_between
from .vector_math import Vector3

logger = logging.getLogger(__name__)

# earth radii/min -> km/s
_VELOCITY_SCALE = XKMPER * XMNPDA / SECDAY


@dataclass(frozen=True)
class PropagationResult:
    """ECI state in km and km/s, with orbital phase in radians."""

    position: Vector3
    velocity: Vector3
    phase: float


def to_km(state: ModelState) -> PropagationResult:
    """Scale a normalized model state to km and km/s."""
    return PropagationResult(
        position=state.position * XKMPER,
        velocity=state.velocity * _VELOCITY_SCALE,
        phase=state.phase,
    )


class Propagator:
    """
    Analytic propagator bound to one element set.

    All coefficients are computed here, so repeated calls to
    :meth:`propagate` are independent of each other and of call order.
    """

    def __init__(self, elements: OrbitalElements, mode: Optional[PropagationMode] = None) -> None:
        self.elements = elements
        self.mode = mode if mode is not None else select_propagation_mode(elements)
        self._model: Union[NearEarthModel, DeepSpaceModel]
        if self.mode is PropagationMode.DEEP_SPACE:
            self._model = DeepSpaceModel(elements)
        else:
            self._model = NearEarthModel(elements)
        logger.debug(f"Initialized {self.mode.value} propagator for catalog {elements.catalog_number}")

    def propagate_raw(self, tsince: float) -> ModelState:
        """State in earth radii and earth radii/min."""
        return self._model.propagate(tsince)

    def propagate(self, tsince: float) -> PropagationResult:
        """
        State ``tsince`` minutes after epoch.

        Args:
            tsince: Minutes since element epoch (may be negative)

        Returns:
            PropagationResult in km and km/s
        """
        return to_km(self._model.propagate(tsince))

    def propagate_jd(self, jd: float) -> PropagationResult:
        return self.propagate(minutes_between(self.elements.epoch_jd, jd))


def propagate(
    elements: OrbitalElements, mode: PropagationMode, tsince: float
) -> PropagationResult:
    """One-shot propagation; builds a :class:`Propagator` for the call."""
    return Propagator(elements, mode).propagate(tsince)
