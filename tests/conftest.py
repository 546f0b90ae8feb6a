"""
Pytest configuration and shared fixtures.

This file is automatically loaded by pytest and provides:
- Custom markers for test categorization
- Reference element sets with published propagation results
- Shared observer sites and prediction settings
"""

import sys
from pathlib import Path
from typing import Tuple

import pytest
from _pytest.config import Config

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pass_predictor.config import PredictionConfig  # noqa: E402
from pass_predictor.satellite import Satellite  # noqa: E402
from pass_predictor.site import ObserverSite  # noqa: E402
from pass_predictor.time_utils import datetime_to_julian  # noqa: E402


def pytest_configure(config: Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


# =============================================================================
# ELEMENT SETS
# =============================================================================

# Spacetrack Report #3 test cases
SGP4_TEST_LINES = (
    "1 88888U          80275.98708465  .00073094  13844-3  66816-4 0     9",
    "2 88888  72.8435 115.9689 0086731  52.6988 110.5714 16.05824518   103",
)

SDP4_TEST_LINES = (
    "1 11801U          80230.29629788  .01431103  00000-0  14311-1 0     2",
    "2 11801  46.7916 230.4354 7318036  47.4722  10.4117  2.28537848     2",
)

ISS_LINES = (
    "1 25544U 98067A   21009.59390613  .00001808  00000-0  40563-4 0  9997",
    "2 25544  51.6462  47.1650 0000551 205.9519 291.1953 15.49274498264017",
)


@pytest.fixture
def sgp4_tle_lines() -> Tuple[str, str]:
    return SGP4_TEST_LINES


@pytest.fixture
def sdp4_tle_lines() -> Tuple[str, str]:
    return SDP4_TEST_LINES


@pytest.fixture
def iss_tle_lines() -> Tuple[str, str]:
    return ISS_LINES


@pytest.fixture
def iss() -> Satellite:
    """ISS from a January 2021 element set."""
    return Satellite.from_lines("ISS (ZARYA)", *ISS_LINES)


@pytest.fixture
def iss_tle_file(tmp_path: Path) -> Path:
    """TLE file holding the ISS and the near-earth test satellite."""
    tle_file = tmp_path / "stations.tle"
    tle_file.write_text(
        f"ISS (ZARYA)\n{ISS_LINES[0]}\n{ISS_LINES[1]}\n"
        f"TEST SAT\n{SGP4_TEST_LINES[0]}\n{SGP4_TEST_LINES[1]}\n"
    )
    return tle_file


# =============================================================================
# SITES AND SETTINGS
# =============================================================================


@pytest.fixture
def galway() -> ObserverSite:
    return ObserverSite(name="Galway", latitude=53.10, longitude=-8.98, altitude=60.0)


@pytest.fixture
def san_francisco() -> ObserverSite:
    return ObserverSite(name="San Francisco", latitude=37.786759, longitude=-122.405162, altitude=10.0)


@pytest.fixture
def iss_epoch_jd() -> float:
    """Julian date of the ISS element set epoch (2021-01-09 14:15:13 UTC)."""
    from datetime import datetime

    return datetime_to_julian(datetime(2021, 1, 9, 14, 15, 13))


@pytest.fixture
def prediction_config() -> PredictionConfig:
    return PredictionConfig()
