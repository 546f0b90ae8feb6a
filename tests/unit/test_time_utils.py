"""
Tests for time_utils module.
"""

from datetime import datetime, timedelta, timezone

import pytest

from pass_predictor.time_utils import (
    current_julian_date,
    datetime_to_julian,
    delta_et,
    julian_date_of_epoch,
    julian_date_of_year,
    julian_to_datetime,
    minutes_between,
)


class TestJulianDates:
    """Tests for Julian date conversions."""

    def test_day_zero_of_year(self) -> None:
        # Day 0.0 of 2000 is 1999-12-31 00:00 UT
        assert julian_date_of_year(2000) == pytest.approx(2451543.5)
        assert julian_date_of_year(2021) == pytest.approx(2459214.5)

    def test_epoch_twenty_first_century(self) -> None:
        # 2000-01-01 12:00 UT is J2000.0
        assert julian_date_of_epoch(1.5) == pytest.approx(2451545.0)

    def test_epoch_twentieth_century(self) -> None:
        jd = julian_date_of_epoch(80275.98708465)
        assert julian_to_datetime(jd).year == 1980
        assert julian_to_datetime(jd).timetuple().tm_yday == 275

    def test_epoch_pivot_year(self) -> None:
        assert julian_to_datetime(julian_date_of_epoch(56100.5)).year == 2056
        assert julian_to_datetime(julian_date_of_epoch(57100.5)).year == 1957

    def test_datetime_round_trip(self) -> None:
        dt = datetime(2021, 1, 9, 14, 15, 13)
        back = julian_to_datetime(datetime_to_julian(dt))
        assert abs((back - dt).total_seconds()) < 1e-3

    def test_aware_datetime_is_converted_to_utc(self) -> None:
        naive = datetime(2021, 6, 1, 12, 0, 0)
        aware = datetime(2021, 6, 1, 14, 0, 0, tzinfo=timezone(timedelta(hours=2)))
        assert datetime_to_julian(aware) == pytest.approx(datetime_to_julian(naive))

    def test_j2000(self) -> None:
        assert datetime_to_julian(datetime(2000, 1, 1, 12, 0, 0)) == pytest.approx(2451545.0)

    def test_current_julian_date_uses_given_time(self) -> None:
        now = datetime(2024, 3, 1, 0, 0, 0)
        assert current_julian_date(now) == pytest.approx(datetime_to_julian(now))

    def test_current_julian_date_defaults_to_now(self) -> None:
        assert current_julian_date() > 2460000.0

    def test_minutes_between(self) -> None:
        assert minutes_between(2451545.0, 2451546.0) == pytest.approx(1440.0)


class TestDeltaET:
    def test_reasonable_magnitude(self) -> None:
        # ET - UT was about 57 s in 1990
        assert 50.0 < delta_et(1990.0) < 65.0
