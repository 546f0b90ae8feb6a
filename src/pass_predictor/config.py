"""
Prediction configuration.

Search tuning parameters live in :class:`PredictionConfig`. They can be
loaded from ``config/prediction.yaml``, which may also define named observer
sites::

    prediction:
      min_elevation_deg: 10.0
      time_resolution_s: 10
    sites:
      - name: Galway
        latitude: 53.10
        longitude: -8.98
        altitude: 60
"""

import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml  # type: ignore[import-untyped]

from .site import ObserverSite

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "PASS_PREDICTOR_CONFIG"


# =============================================================================
# PREDICTION PARAMETERS
# =============================================================================


@dataclass(frozen=True)
class PredictionConfig:
    """Tuning knobs for the pass search."""

    min_elevation_deg: float = 10.0  # passes peaking lower are skipped
    time_resolution_s: float = 10.0  # smallest sampling step within a pass
    num_entries: int = 20  # target number of samples per pass
    twilight_threshold_deg: float = -6.0  # sun elevation for a dark sky
    pass_margin_days: float = 0.014  # restart offset after LOS (~20 min)
    max_search_iterations: int = 100000  # cap for each AOS/LOS root-finding loop
    max_pass_candidates: int = 500  # cap on sub-threshold passes skipped per search
    apply_refraction: bool = False

    def __post_init__(self) -> None:
        if not 0.0 <= self.min_elevation_deg <= 90.0:
            raise ValueError(f"min_elevation_deg must be in [0, 90], got {self.min_elevation_deg}")
        if self.time_resolution_s <= 0:
            raise ValueError(f"time_resolution_s must be > 0, got {self.time_resolution_s}")
        if self.num_entries < 1:
            raise ValueError(f"num_entries must be >= 1, got {self.num_entries}")
        if not -90.0 <= self.twilight_threshold_deg <= 90.0:
            raise ValueError(
                f"twilight_threshold_deg must be in [-90, 90], got {self.twilight_threshold_deg}"
            )
        if self.pass_margin_days <= 0:
            raise ValueError(f"pass_margin_days must be > 0, got {self.pass_margin_days}")
        if self.max_search_iterations < 1:
            raise ValueError(f"max_search_iterations must be >= 1, got {self.max_search_iterations}")
        if self.max_pass_candidates < 1:
            raise ValueError(f"max_pass_candidates must be >= 1, got {self.max_pass_candidates}")

    @property
    def time_resolution_days(self) -> float:
        return self.time_resolution_s / 86400.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PredictionConfig":
        """
        Build from a mapping, rejecting unknown keys.

        Raises:
            ValueError: On unknown keys or invalid values
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown prediction config keys: {unknown}. Valid keys: {sorted(known)}")
        return cls(**data)


# =============================================================================
# LOADING
# =============================================================================


def default_config_paths() -> List[Path]:
    """Candidate locations of ``prediction.yaml``, in search order."""
    paths = []
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        paths.append(Path(env_path))
    paths.extend(
        [
            Path(__file__).parent.parent.parent / "config" / "prediction.yaml",
            Path("config/prediction.yaml"),
        ]
    )
    return paths


def _read_yaml(path: Path) -> Dict[str, Any]:
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping at the top level")
    return data


def _find_config_file(path: Optional[Union[str, Path]]) -> Optional[Path]:
    if path is not None:
        config_file = Path(path)
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        return config_file

    for candidate in default_config_paths():
        if candidate.exists():
            return candidate
    return None


def load_prediction_config(path: Optional[Union[str, Path]] = None) -> PredictionConfig:
    """
    Load prediction settings from YAML.

    Args:
        path: Explicit config file. If omitted the default locations are
            searched and built-in defaults are used when none exists.

    Returns:
        PredictionConfig

    Raises:
        FileNotFoundError: If an explicit path does not exist
        ValueError: If the file content is invalid
    """
    config_file = _find_config_file(path)
    if config_file is None:
        logger.warning(
            "Prediction config file not found, using built-in defaults. "
            f"Searched: {[str(p) for p in default_config_paths()]}"
        )
        return PredictionConfig()

    data = _read_yaml(config_file)
    section = data.get("prediction") or {}
    if not isinstance(section, dict):
        raise ValueError(f"'prediction' in {config_file} must be a mapping")

    config = PredictionConfig.from_dict(section)
    logger.info(f"Loaded prediction configuration from {config_file}")
    return config


def load_sites(path: Optional[Union[str, Path]] = None) -> Dict[str, ObserverSite]:
    """
    Load named observer sites from the ``sites:`` list of the config file.

    Returns:
        Mapping of site name to ObserverSite (empty if no file or no sites)
    """
    config_file = _find_config_file(path)
    if config_file is None:
        return {}

    entries = _read_yaml(config_file).get("sites") or []
    if not isinstance(entries, list):
        raise ValueError(f"'sites' in {config_file} must be a list")

    sites = {}
    for entry in entries:
        site = ObserverSite.from_dict(entry)
        sites[site.name] = site
    logger.debug(f"Loaded {len(sites)} sites from {config_file}")
    return sites
