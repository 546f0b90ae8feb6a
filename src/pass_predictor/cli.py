"""
Command-line interface for the pass predictor.
"""

import json
import logging
import sys
from dataclasses import replace
from datetime import datetime, timezone
from typing import List, Optional

import click
from tabulate import tabulate

from .config import PredictionConfig, load_prediction_config, load_sites
from .passes import Pass, azimuth_to_direction
from .satellite import Satellite
from .search import PassPredictor, SearchDidNotConverge
from .site import ObserverSite
from .solar import find_sun
from .time_utils import datetime_to_julian, julian_to_datetime
from .tle import TLEFormatError
from .utils import (
    download_tle_file,
    format_duration,
    get_common_tle_sources,
    parse_datetime,
    setup_logging,
)

logger = logging.getLogger(__name__)

# Errors reported to the user instead of a traceback
CLI_ERRORS = (TLEFormatError, SearchDidNotConverge, FileNotFoundError, ValueError)


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _resolve_site(
    site_name: Optional[str],
    lat: Optional[float],
    lon: Optional[float],
    alt: float,
    config_path: Optional[str],
) -> ObserverSite:
    if site_name:
        sites = load_sites(config_path)
        if site_name not in sites:
            raise ValueError(
                f"Unknown site '{site_name}'. Configured sites: {sorted(sites) or 'none'}"
            )
        return sites[site_name]
    if lat is None or lon is None:
        raise ValueError("Specify either --site NAME or both --lat and --lon")
    return ObserverSite(name=f"{lat:.4f},{lon:.4f}", latitude=lat, longitude=lon, altitude=alt)


def _start_jd(start_time: Optional[str]) -> float:
    if start_time:
        return datetime_to_julian(parse_datetime(start_time))
    return datetime_to_julian(datetime.now(timezone.utc))


def _load_config(config_path: Optional[str], min_elevation: Optional[float]) -> PredictionConfig:
    config = load_prediction_config(config_path)
    if min_elevation is not None:
        config = replace(config, min_elevation_deg=min_elevation)
    return config


def _pass_table(passes: List[Pass], visible_only: bool) -> str:
    rows = []
    for p in passes:
        if visible_only and p.visible_window is not None:
            w = p.visible_window
            aos, tca, los = w.aos, w.tca, w.los
            aos_az, max_el, los_az = w.aos_az, w.max_el, w.los_az
        else:
            aos, tca, los = p.aos, p.tca, p.los
            aos_az, max_el, los_az = p.aos_az, p.max_el, p.los_az
        magnitude = f"{p.max_apparent_magnitude:.1f}" if p.max_apparent_magnitude is not None else "-"
        rows.append(
            [
                f"{julian_to_datetime(aos):%Y-%m-%d %H:%M:%S}",
                f"{aos_az:.0f}° {azimuth_to_direction(aos_az)}",
                f"{julian_to_datetime(tca):%H:%M:%S}",
                f"{max_el:.1f}°",
                f"{julian_to_datetime(los):%H:%M:%S}",
                f"{los_az:.0f}° {azimuth_to_direction(los_az)}",
                format_duration((los - aos) * 86400.0),
                p.vis,
                magnitude,
            ]
        )
    headers = ["AOS (UTC)", "AOS Az", "TCA", "Max El", "LOS", "LOS Az", "Duration", "Vis", "Mag"]
    return tabulate(rows, headers=headers, tablefmt="simple")


# Shared options for commands that need a satellite and a site
def _prediction_options(func):
    options = [
        click.option('--tle', required=True, type=click.Path(exists=True),
                     help='Path to TLE file'),
        click.option('--satellite', required=True,
                     help='Satellite name (must match name in TLE file)'),
        click.option('--site', 'site_name', type=str,
                     help='Observer site name from the config file'),
        click.option('--lat', type=float, help='Observer latitude in degrees (north positive)'),
        click.option('--lon', type=float, help='Observer longitude in degrees (east positive)'),
        click.option('--alt', default=0.0, type=float, help='Observer altitude in metres (default: 0)'),
        click.option('--config', 'config_path', type=click.Path(),
                     help='Prediction config YAML file'),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option('--log-level', default='WARNING',
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
              help='Set logging level')
@click.option('--log-file', type=click.Path(), help='Log file path')
def main(log_level: str, log_file: Optional[str]) -> None:
    """Satellite Pass Predictor - find when satellites are observable from a site."""
    setup_logging(log_level, log_file)
    logger.debug("Starting pass predictor CLI")


def _run_pass_search(
    tle: str,
    satellite: str,
    site_name: Optional[str],
    lat: Optional[float],
    lon: Optional[float],
    alt: float,
    config_path: Optional[str],
    start_time: Optional[str],
    hours: float,
    count: int,
    min_elevation: Optional[float],
    output_format: str,
    visible_only: bool,
) -> None:
    try:
        config = _load_config(config_path, min_elevation)
        site = _resolve_site(site_name, lat, lon, alt, config_path)
        sat = Satellite.from_tle_file(tle, satellite)
        predictor = PassPredictor(sat, site, config)

        start = _start_jd(start_time)
        passes = predictor.get_passes(start, hours / 24.0, count)
        if visible_only:
            passes = predictor.filter_visible(passes)
    except CLI_ERRORS as e:
        logger.error(f"Pass prediction failed: {e}")
        _fail(str(e))
        return

    if output_format == 'json':
        click.echo(json.dumps([p.to_dict() for p in passes], indent=2))
        return

    kind = "visible passes" if visible_only else "passes"
    if not passes:
        click.echo(f"No {kind} of {sat.name} over {site} in the next {hours:g} hours")
        return

    click.echo(f"\n{len(passes)} {kind} of {sat.name} over {site}:\n")
    click.echo(_pass_table(passes, visible_only))


@main.command()
@_prediction_options
@click.option('--start-time', type=str,
              help='Start time (YYYY-MM-DD HH:MM:SS UTC, default: now)')
@click.option('--hours', default=24.0, type=float,
              help='Hours to search ahead (default: 24)')
@click.option('--count', default=10, type=int,
              help='Maximum number of passes (default: 10)')
@click.option('--min-elevation', type=float,
              help='Minimum peak elevation in degrees (overrides config)')
@click.option('--format', 'output_format', default='table',
              type=click.Choice(['table', 'json']), help='Output format')
def passes(
    tle: str,
    satellite: str,
    site_name: Optional[str],
    lat: Optional[float],
    lon: Optional[float],
    alt: float,
    config_path: Optional[str],
    start_time: Optional[str],
    hours: float,
    count: int,
    min_elevation: Optional[float],
    output_format: str,
) -> None:
    """List upcoming passes of a satellite over a site.

    Example:
    passes --tle stations.tle --satellite ISS --lat 53.10 --lon -8.98 --alt 60
    """
    _run_pass_search(
        tle, satellite, site_name, lat, lon, alt, config_path,
        start_time, hours, count, min_elevation, output_format, visible_only=False,
    )


@main.command()
@_prediction_options
@click.option('--start-time', type=str,
              help='Start time (YYYY-MM-DD HH:MM:SS UTC, default: now)')
@click.option('--hours', default=72.0, type=float,
              help='Hours to search ahead (default: 72)')
@click.option('--count', default=20, type=int,
              help='Maximum number of passes to examine (default: 20)')
@click.option('--min-elevation', type=float,
              help='Minimum elevation in degrees (overrides config)')
@click.option('--format', 'output_format', default='table',
              type=click.Choice(['table', 'json']), help='Output format')
def visible(
    tle: str,
    satellite: str,
    site_name: Optional[str],
    lat: Optional[float],
    lon: Optional[float],
    alt: float,
    config_path: Optional[str],
    start_time: Optional[str],
    hours: float,
    count: int,
    min_elevation: Optional[float],
    output_format: str,
) -> None:
    """List passes visible to the naked eye (sunlit satellite, dark sky)."""
    _run_pass_search(
        tle, satellite, site_name, lat, lon, alt, config_path,
        start_time, hours, count, min_elevation, output_format, visible_only=True,
    )


@main.command()
@_prediction_options
@click.option('--time', 'at_time', type=str,
              help='Time (YYYY-MM-DD HH:MM:SS UTC, default: now)')
def position(
    tle: str,
    satellite: str,
    site_name: Optional[str],
    lat: Optional[float],
    lon: Optional[float],
    alt: float,
    config_path: Optional[str],
    at_time: Optional[str],
) -> None:
    """Show where a satellite is at a given time."""
    try:
        config = load_prediction_config(config_path)
        site = _resolve_site(site_name, lat, lon, alt, config_path)
        sat = Satellite.from_tle_file(tle, satellite)
        predictor = PassPredictor(sat, site, config)
        jd = _start_jd(at_time)
        state = predictor.calculate(jd)
        vis = predictor.visibility(state)
        magnitude = sat.apparent_magnitude(state, site)
    except CLI_ERRORS as e:
        logger.error(f"Position calculation failed: {e}")
        _fail(str(e))
        return

    rows = [
        ["Time (UTC)", f"{julian_to_datetime(jd):%Y-%m-%d %H:%M:%S}"],
        ["Azimuth", f"{state.az:.2f}° {azimuth_to_direction(state.az)}"],
        ["Elevation", f"{state.el:.2f}°"],
        ["Range", f"{state.range:.1f} km"],
        ["Range rate", f"{state.range_rate:.3f} km/s"],
        ["Sub-satellite point", f"{state.latitude:.4f}°, {state.longitude:.4f}°"],
        ["Altitude", f"{state.altitude:.1f} km"],
        ["Speed", f"{state.speed:.3f} km/s"],
        ["Footprint", f"{state.footprint:.0f} km"],
        ["Orbit", str(state.orbit)],
        ["Visibility", vis.name],
        ["Magnitude", f"{magnitude:.1f}" if magnitude is not None else "-"],
    ]
    click.echo(f"\n{sat.name} from {site}:\n")
    click.echo(tabulate(rows, tablefmt="plain"))


@main.command()
@click.option('--site', 'site_name', type=str, help='Observer site name from the config file')
@click.option('--lat', type=float, help='Observer latitude in degrees')
@click.option('--lon', type=float, help='Observer longitude in degrees')
@click.option('--alt', default=0.0, type=float, help='Observer altitude in metres (default: 0)')
@click.option('--config', 'config_path', type=click.Path(), help='Config YAML file')
@click.option('--time', 'at_time', type=str,
              help='Time (YYYY-MM-DD HH:MM:SS UTC, default: now)')
def sun(
    site_name: Optional[str],
    lat: Optional[float],
    lon: Optional[float],
    alt: float,
    config_path: Optional[str],
    at_time: Optional[str],
) -> None:
    """Show the sun's azimuth and elevation from a site."""
    try:
        site = _resolve_site(site_name, lat, lon, alt, config_path)
        jd = _start_jd(at_time)
        az, el = find_sun(site, jd)
    except CLI_ERRORS as e:
        _fail(str(e))
        return

    click.echo(f"Sun from {site} at {julian_to_datetime(jd):%Y-%m-%d %H:%M:%S} UTC:")
    click.echo(f"Azimuth:   {az:.2f}° {azimuth_to_direction(az)}")
    click.echo(f"Elevation: {el:.2f}°")


@main.command('download-tle')
@click.option('--source', default='celestrak_stations', show_default=True,
              help='Named CelesTrak group, see list-sources')
@click.option('--output', required=True, type=click.Path(dir_okay=False),
              help='File to write the element sets to')
@click.option('--url', type=str,
              help='Fetch from this URL instead of a named source')
def download_tle(source: str, output: str, url: Optional[str]) -> None:
    """Fetch current element sets into a local TLE file."""
    sources = get_common_tle_sources()
    if url is None and source not in sources:
        _fail(f"Unknown source '{source}'. Known sources: {', '.join(sources)}")
        return

    target = url or sources[source]
    click.echo(f"Fetching {target}")
    if not download_tle_file(target, output):
        _fail("Download failed, see the log for details")
        return
    click.echo(f"Wrote {output}")


@main.command('list-sources')
def list_sources() -> None:
    """Show the named TLE sources accepted by download-tle."""
    rows = sorted(get_common_tle_sources().items())
    click.echo(tabulate(rows, headers=["Source", "URL"], tablefmt="simple"))


if __name__ == '__main__':
    main()
