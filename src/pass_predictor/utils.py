"""
Utility functions for the pass predictor.

Logging setup, datetime parsing and TLE download helpers shared by the CLI
and library callers.
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Union

import requests

from .tle import parse_tle_text

logger = logging.getLogger(__name__)

LOG_LEVEL_ENV_VAR = "PASS_PREDICTOR_LOG_LEVEL"


LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

# Accepted --start-time / --time layouts, tried in order; all read as UTC
DATETIME_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%dT%H:%M:%S.%fZ",
    "%Y-%m-%d",
)


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Configure the root logger for CLI runs.

    Any handlers installed earlier are replaced, so repeated calls do not
    duplicate output.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR). The
            PASS_PREDICTOR_LOG_LEVEL environment variable takes precedence.
        log_file: Also write records to this file
    """
    level = os.environ.get(LOG_LEVEL_ENV_VAR) or level
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
    logger.debug(f"Logging at {level.upper()}" + (f", copy to {log_file}" if log_file else ""))


def parse_datetime(date_string: str) -> datetime:
    """
    Read a UTC timestamp given on the command line.

    Returns:
        Naive datetime in UTC

    Raises:
        ValueError: If no layout in DATETIME_FORMATS matches
    """
    text = date_string.strip()
    for fmt in DATETIME_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise ValueError(
        f"Could not parse datetime '{date_string}', expected e.g. 2021-01-09 14:15:13"
    )


def download_tle_file(url: str, output_file: Union[str, Path], timeout: float = 30.0) -> bool:
    """
    Fetch an element set file and store it locally.

    Nothing is written unless the body parses to at least one TLE, so an
    HTML error page never replaces a good file.

    Returns:
        True once the file is written, False on any network, content or
        write failure (logged)
    """
    logger.info(f"Fetching element sets from {url}")
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"TLE request to {url} failed: {e}")
        return False

    tles = parse_tle_text(response.text)
    if not tles:
        logger.error(f"No valid TLEs in response from {url}")
        return False

    output_path = Path(output_file)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w") as f:
            f.write(response.text)
    except OSError as e:
        logger.error(f"Could not write TLE file {output_path}: {e}")
        return False

    logger.info(f"Saved {len(tles)} TLEs to {output_path}")
    return True


def get_common_tle_sources() -> Dict[str, str]:
    """
    CelesTrak GP groups by CLI source name, in TLE format.
    """
    base = "https://celestrak.org/NORAD/elements/gp.php?GROUP={}&FORMAT=tle"
    groups = {
        "celestrak_stations": "stations",
        "celestrak_visual": "visual",
        "celestrak_active": "active",
        "celestrak_amateur": "amateur",
        "celestrak_weather": "weather",
        "celestrak_noaa": "noaa",
        "celestrak_goes": "goes",
        "celestrak_geo": "geo",
        "celestrak_cubesat": "cubesat",
    }
    return {name: base.format(group) for name, group in groups.items()}


def format_duration(seconds: float) -> str:
    """
    Format a duration as ``MM:SS`` below an hour, ``H:MM:SS`` above.
    """
    total = int(round(seconds))
    sign = "-" if total < 0 else ""
    total = abs(total)
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)
    if hours:
        return f"{sign}{hours}:{minutes:02d}:{secs:02d}"
    return f"{sign}{minutes:02d}:{secs:02d}"
