"""
Julian date helpers.

All prediction code works in Julian dates (UT) as floats. These helpers
convert between that representation, NORAD TLE epochs and ``datetime``.
"""

import math
from datetime import datetime, timedelta, timezone
from typing import Optional

from .constants import TWOPI, XMNPDA
from .vector_math import frac

JD_UNIX_EPOCH = 2440587.5
_UNIX_EPOCH = datetime(1970, 1, 1)


def julian_date_of_year(year: int) -> float:
    """
    Julian date of day 0.0 of ``year`` (i.e. 00:00 UT on 31 December of the
    previous year).
    """
    year = year - 1
    a = math.floor(year / 100)
    b = 2 - a + math.floor(a / 4)
    i = math.floor(365.25 * year) + math.floor(30.6001 * 14)
    return i + 1720994.5 + b


def julian_date_of_epoch(epoch: float) -> float:
    """
    Julian date of a NORAD TLE epoch in ``YYDDD.FFFFFFFF`` form.

    Two-digit years below 57 are taken as 20xx, which keeps the format valid
    through 2056 December 31.
    """
    year = math.floor(epoch * 1e-3)
    day = frac(epoch * 1e-3) * 1e3
    year += 2000 if year < 57 else 1900
    return julian_date_of_year(year) + day


def delta_et(year: float) -> float:
    """
    Difference ET - UT in seconds.

    Least-squares fit to 1950-1991 data; it drifts for later years but is only
    used by the low-precision solar ephemeris.
    """
    return 26.465 + 0.747622 * (year - 1950) + 1.886913 * math.sin(
        TWOPI * (year - 1975) / 33
    )


def datetime_to_julian(timestamp: datetime) -> float:
    """Convert a datetime (naive = UTC) to a Julian date."""
    if timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(timezone.utc).replace(tzinfo=None)
    delta = timestamp - _UNIX_EPOCH
    return JD_UNIX_EPOCH + delta.total_seconds() / 86400.0


def julian_to_datetime(jd: float) -> datetime:
    """Convert a Julian date to a naive UTC datetime."""
    return _UNIX_EPOCH + timedelta(days=jd - JD_UNIX_EPOCH)


def current_julian_date(now: Optional[datetime] = None) -> float:
    """Julian date for ``now`` (defaults to the current UTC time)."""
    if now is None:
        now = datetime.now(timezone.utc)
    return datetime_to_julian(now)


def minutes_between(jd_start: float, jd_end: float) -> float:
    """Elapsed minutes from ``jd_start`` to ``jd_end`` (negative if earlier)."""
    return (jd_end - jd_start) * XMNPDA
