"""
Satellite Pass Predictor

SGP4/SDP4 orbit propagation, AOS/LOS search and naked-eye visibility
classification for a ground observer.
"""

from .config import PredictionConfig, load_prediction_config, load_sites
from .elements import OrbitalElements, PropagationMode
from .passes import Pass, PassDetail, VisibleWindow
from .propagation import PropagationResult, Propagator, propagate
from .satellite import OrbitType, Satellite, SatelliteState
from .search import PassPredictor, SearchDidNotConverge, filter_visible, get_pass, get_passes
from .site import ObserverSite
from .solar import find_sun
from .tle import TLE, TLEFormatError
from .visibility import SatVisibility

__version__ = "0.1.0"
__author__ = "Pass Predictor Team"

__all__ = [
    "TLE",
    "TLEFormatError",
    "OrbitalElements",
    "PropagationMode",
    "Propagator",
    "PropagationResult",
    "propagate",
    "Satellite",
    "SatelliteState",
    "OrbitType",
    "ObserverSite",
    "PassPredictor",
    "SearchDidNotConverge",
    "Pass",
    "PassDetail",
    "VisibleWindow",
    "SatVisibility",
    "PredictionConfig",
    "load_prediction_config",
    "load_sites",
    "find_sun",
    "get_pass",
    "get_passes",
    "filter_visible",
]
