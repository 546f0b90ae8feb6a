"""
Tests for the AOS/LOS search and pass assembly.
"""

import re
from typing import List
from unittest.mock import patch

import pytest

from pass_predictor.config import PredictionConfig
from pass_predictor.elements import OrbitalElements
from pass_predictor.passes import Pass, PassDetail
from pass_predictor.satellite import Satellite
from pass_predictor.search import (
    HORIZON_TOLERANCE_DEG,
    PassPredictor,
    SearchDidNotConverge,
    filter_visible,
    get_pass,
    get_passes,
)
from pass_predictor.site import ObserverSite
from pass_predictor.vector_math import ZERO_VECTOR
from pass_predictor.visibility import SatVisibility

ISS_LINES = (
    "1 25544U 98067A   21009.59390613  .00001808  00000-0  40563-4 0  9997",
    "2 25544  51.6462  47.1650 0000551 205.9519 291.1953 15.49274498264017",
)

GALWAY = ObserverSite(name="Galway", latitude=53.10, longitude=-8.98, altitude=60.0)


@pytest.fixture(scope="module")
def iss_predictor() -> PassPredictor:
    return PassPredictor(Satellite.from_lines("ISS (ZARYA)", *ISS_LINES), GALWAY)


@pytest.fixture(scope="module")
def one_day_passes(iss_predictor: PassPredictor) -> List[Pass]:
    start = iss_predictor.satellite.epoch_jd
    return iss_predictor.get_passes(start, 1.0, count=10)


def _detail(time: float, el: float, visibility: SatVisibility, az: float = 0.0) -> PassDetail:
    return PassDetail(
        time=time,
        position=ZERO_VECTOR,
        velocity=ZERO_VECTOR,
        speed=7.6,
        az=az,
        el=el,
        range=1000.0,
        range_rate=0.0,
        latitude=0.0,
        longitude=0.0,
        altitude=420.0,
        mean_anomaly=0.0,
        phase=0.0,
        footprint=4500.0,
        orbit=1,
        visibility=visibility,
    )


def _synthetic_pass(details: List[PassDetail], vis: str) -> Pass:
    peak = max(details, key=lambda d: d.el)
    return Pass(
        satellite_name="SYNTH",
        aos=details[0].time,
        tca=peak.time,
        los=details[-1].time,
        aos_az=details[0].az,
        los_az=details[-1].az,
        max_el=peak.el,
        max_el_az=peak.az,
        orbit=1,
        vis=vis,
        details=tuple(details),
    )


class TestRootFinding:
    def test_find_aos_lands_on_horizon(self, iss_predictor: PassPredictor) -> None:
        start = iss_predictor.satellite.epoch_jd
        aos = iss_predictor.find_aos(start)
        assert aos is not None
        assert aos >= start
        assert abs(iss_predictor.calculate(aos).el) < HORIZON_TOLERANCE_DEG

    def test_find_los_after_aos(self, iss_predictor: PassPredictor, one_day_passes: List[Pass]) -> None:
        p = one_day_passes[-1]
        los = iss_predictor.find_los(p.aos + 0.0001)
        assert los is not None
        assert los == pytest.approx(p.los, abs=0.0005)
        assert abs(iss_predictor.calculate(los).el) < HORIZON_TOLERANCE_DEG

    def test_find_prev_aos(self, iss_predictor: PassPredictor, one_day_passes: List[Pass]) -> None:
        p = one_day_passes[-1]
        prev = iss_predictor.find_prev_aos((p.aos + p.los) / 2.0)
        assert prev is not None
        assert p.aos - 0.001 < prev <= p.aos + 1e-5
        assert iss_predictor.calculate(prev).el < 0.0

    def test_visibility_matches_samples(self, iss_predictor: PassPredictor, one_day_passes: List[Pass]) -> None:
        for d in one_day_passes[0].details:
            assert iss_predictor.visibility(iss_predictor.calculate(d.time)) is d.visibility

    def test_not_visible_below_horizon(self, iss_predictor: PassPredictor, one_day_passes: List[Pass]) -> None:
        state = iss_predictor.calculate(one_day_passes[0].aos - 0.01)
        assert state.el < 0.0
        assert iss_predictor.visibility(state) is not SatVisibility.VISIBLE

    def test_bounded_search_gives_up(self, iss_predictor: PassPredictor, one_day_passes: List[Pass]) -> None:
        after = one_day_passes[0].los + 0.002
        assert iss_predictor.find_aos(after, maxdt=0.001) is None


class TestGetPasses:
    def test_passes_found(self, one_day_passes: List[Pass]) -> None:
        assert 1 <= len(one_day_passes) <= 10

    def test_event_ordering(self, one_day_passes: List[Pass]) -> None:
        for p in one_day_passes:
            assert p.aos <= p.tca <= p.los
            assert p.los - p.aos < 15.0 / 1440.0

    def test_chronological_and_disjoint(self, one_day_passes: List[Pass]) -> None:
        for earlier, later in zip(one_day_passes, one_day_passes[1:]):
            assert earlier.los < later.aos

    def test_minimum_elevation(self, one_day_passes: List[Pass]) -> None:
        for p in one_day_passes:
            assert 10.0 <= p.max_el <= 90.0

    def test_within_horizon(self, iss_predictor: PassPredictor, one_day_passes: List[Pass]) -> None:
        start = iss_predictor.satellite.epoch_jd
        for p in one_day_passes:
            assert p.aos <= start + 1.0

    def test_horizon_crossings(self, iss_predictor: PassPredictor, one_day_passes: List[Pass]) -> None:
        for p in one_day_passes[1:]:
            assert abs(iss_predictor.calculate(p.aos).el) < HORIZON_TOLERANCE_DEG
            assert abs(iss_predictor.calculate(p.los).el) < HORIZON_TOLERANCE_DEG

    def test_details(self, one_day_passes: List[Pass]) -> None:
        config = PredictionConfig()
        for p in one_day_passes:
            assert p.details[0].time == p.aos
            assert 1 <= len(p.details) <= config.num_entries + 1
            times = [d.time for d in p.details]
            assert times == sorted(times)
            assert times[-1] <= p.los

    def test_tca_is_peak_sample(self, one_day_passes: List[Pass]) -> None:
        for p in one_day_passes:
            peak = max(p.details, key=lambda d: d.el)
            assert p.tca == peak.time
            assert p.max_el == peak.el
            assert p.max_el_az == peak.az

    def test_visibility_flags(self, one_day_passes: List[Pass]) -> None:
        for p in one_day_passes:
            assert re.fullmatch(r"[V-][D-][E-]", p.vis)
            seen = {d.visibility for d in p.details}
            assert (p.vis[0] == "V") == (SatVisibility.VISIBLE in seen)
            assert (p.vis[1] == "D") == (SatVisibility.DAYLIGHT in seen)
            assert (p.vis[2] == "E") == (SatVisibility.ECLIPSED in seen)

    def test_orbit_number(self, iss_predictor: PassPredictor, one_day_passes: List[Pass]) -> None:
        for p in one_day_passes:
            assert p.orbit == iss_predictor.satellite.orbit_number(p.aos)

    def test_count_limits_results(self, iss_predictor: PassPredictor, one_day_passes: List[Pass]) -> None:
        start = iss_predictor.satellite.epoch_jd
        two = iss_predictor.get_passes(start, 2.0, count=2)
        assert len(two) == 2
        assert two[0] == one_day_passes[0]

    def test_non_positive_count_means_default(
        self, iss_predictor: PassPredictor, one_day_passes: List[Pass]
    ) -> None:
        start = iss_predictor.satellite.epoch_jd
        assert iss_predictor.get_passes(start, 1.0, count=0) == one_day_passes

    def test_get_pass_matches_first_pass(self, iss_predictor: PassPredictor, one_day_passes: List[Pass]) -> None:
        start = iss_predictor.satellite.epoch_jd
        assert iss_predictor.get_pass(start, 1.0) == one_day_passes[0]

    def test_higher_threshold_filters(self, iss_predictor: PassPredictor, one_day_passes: List[Pass]) -> None:
        strict = PassPredictor(iss_predictor.satellite, GALWAY, PredictionConfig(min_elevation_deg=30.0))
        start = iss_predictor.satellite.epoch_jd
        high = strict.get_passes(start, 1.0, count=10)
        assert all(p.max_el >= 30.0 for p in high)
        assert len(high) <= len(one_day_passes)

    def test_module_functions(self, iss_predictor: PassPredictor, one_day_passes: List[Pass]) -> None:
        start = iss_predictor.satellite.epoch_jd
        assert get_pass(iss_predictor.satellite, GALWAY, start, 1.0) == one_day_passes[0]
        assert get_passes(iss_predictor.satellite, GALWAY, start, 1.0, count=1) == one_day_passes[:1]

    def test_get_next_pass_uses_current_time(
        self, iss_predictor: PassPredictor, one_day_passes: List[Pass]
    ) -> None:
        start = iss_predictor.satellite.epoch_jd
        with patch("pass_predictor.search.current_julian_date", return_value=start):
            assert iss_predictor.get_next_pass(1.0) == one_day_passes[0]


class TestPassInProgress:
    """Searches that start while the satellite is already above the horizon."""

    @pytest.fixture(scope="class")
    def highest(self, one_day_passes: List[Pass]) -> Pass:
        return max(one_day_passes, key=lambda p: p.max_el)

    def test_get_pass_from_mid_pass(self, iss_predictor: PassPredictor, highest: Pass) -> None:
        start = (highest.aos + highest.tca) / 2.0
        assert iss_predictor.calculate(start).el > 0.0

        current = iss_predictor.get_pass(start, 1.0)
        assert current is not None
        assert current.aos < start
        assert current.aos <= current.tca <= current.los
        assert all(current.aos <= d.time <= current.los for d in current.details)
        assert current.aos == pytest.approx(highest.aos, abs=0.001)
        assert current.los == pytest.approx(highest.los, abs=0.0005)

    def test_get_passes_starts_with_current_pass(self, iss_predictor: PassPredictor, highest: Pass) -> None:
        start = (highest.aos + highest.tca) / 2.0
        passes = iss_predictor.get_passes(start, 1.0, count=3)
        assert passes[0].aos < start < passes[0].los
        assert passes[0].los == pytest.approx(highest.los, abs=0.0005)

    def test_next_aos_beyond_horizon(self, iss_predictor: PassPredictor, highest: Pass) -> None:
        start = (highest.aos + highest.tca) / 2.0
        # Long enough to reach LOS, too short to reach the following AOS
        maxdt = 0.02
        assert iss_predictor.find_aos(start, maxdt) is None

        current = iss_predictor.get_pass(start, maxdt)
        assert current is not None
        assert current.aos < start
        assert current.los == pytest.approx(highest.los, abs=0.0005)


class TestNoPass:
    def _satellite(self, rev_per_day: float, inclination: float) -> Satellite:
        elements = OrbitalElements.from_tle_values(
            epoch=21001.5,
            inclination_deg=inclination,
            raan_deg=0.0,
            eccentricity=0.0002,
            arg_perigee_deg=0.0,
            mean_anomaly_deg=0.0,
            mean_motion_rev_per_day=rev_per_day,
        )
        return Satellite("SYNTH", elements)

    def test_geostationary(self) -> None:
        sat = self._satellite(1.0027, 0.05)
        predictor = PassPredictor(sat, GALWAY)
        assert predictor.get_pass(sat.epoch_jd, 1.0) is None
        assert predictor.find_aos(sat.epoch_jd) is None
        assert predictor.find_los(sat.epoch_jd) is None

    def test_decayed(self, iss_predictor: PassPredictor) -> None:
        late = iss_predictor.satellite.epoch_jd + 7000.0
        assert iss_predictor.get_pass(late, 1.0) is None
        assert iss_predictor.get_passes(late, 1.0) == []

    def test_unreachable_site(self) -> None:
        sat = self._satellite(15.5, 0.0)
        predictor = PassPredictor(sat, GALWAY)
        assert not predictor.can_have_aos(sat.epoch_jd)
        assert predictor.get_pass(sat.epoch_jd) is None

    def test_threshold_never_reached(self, iss_predictor: PassPredictor) -> None:
        config = PredictionConfig(min_elevation_deg=90.0, max_pass_candidates=3)
        predictor = PassPredictor(iss_predictor.satellite, GALWAY, config)
        assert predictor.get_pass(iss_predictor.satellite.epoch_jd) is None

    def test_iteration_cap(self, iss_predictor: PassPredictor) -> None:
        config = PredictionConfig(max_search_iterations=1)
        predictor = PassPredictor(iss_predictor.satellite, GALWAY, config)
        with pytest.raises(SearchDidNotConverge) as excinfo:
            predictor.get_pass(iss_predictor.satellite.epoch_jd, 1.0)
        assert excinfo.value.iterations == 1
        assert excinfo.value.phase in ("find_aos", "find_los", "find_prev_aos")
        assert isinstance(excinfo.value, RuntimeError)


class TestFilterVisible:
    def test_window_from_visible_samples(self) -> None:
        details = [
            _detail(1.0, 5.0, SatVisibility.VISIBLE, az=200.0),
            _detail(2.0, 20.0, SatVisibility.VISIBLE, az=210.0),
            _detail(3.0, 40.0, SatVisibility.DAYLIGHT, az=220.0),
            _detail(4.0, 30.0, SatVisibility.VISIBLE, az=230.0),
            _detail(5.0, 8.0, SatVisibility.VISIBLE, az=240.0),
        ]
        result = filter_visible([_synthetic_pass(details, "VD-")])
        assert len(result) == 1
        window = result[0].visible_window
        assert window is not None
        assert (window.aos, window.aos_el, window.aos_az) == (2.0, 20.0, 210.0)
        assert (window.tca, window.max_el, window.max_el_az) == (4.0, 30.0, 230.0)
        assert (window.los, window.los_el, window.los_az) == (4.0, 30.0, 230.0)
        # Full-pass fields are untouched
        assert result[0].max_el == 40.0

    def test_daylight_pass_dropped(self) -> None:
        details = [_detail(1.0, 50.0, SatVisibility.DAYLIGHT)]
        assert filter_visible([_synthetic_pass(details, "-D-")]) == []

    def test_low_visible_pass_dropped(self) -> None:
        details = [
            _detail(1.0, 3.0, SatVisibility.VISIBLE),
            _detail(2.0, 40.0, SatVisibility.ECLIPSED),
            _detail(3.0, 6.0, SatVisibility.VISIBLE),
        ]
        assert filter_visible([_synthetic_pass(details, "V-E")]) == []

    def test_uses_configured_threshold(self) -> None:
        details = [_detail(1.0, 3.0, SatVisibility.VISIBLE), _detail(2.0, 6.0, SatVisibility.VISIBLE)]
        result = filter_visible([_synthetic_pass(details, "V--")], PredictionConfig(min_elevation_deg=5.0))
        assert len(result) == 1
        assert result[0].visible_window is not None
        assert result[0].visible_window.max_el == 6.0

    def test_predictor_method(self, iss_predictor: PassPredictor, one_day_passes: List[Pass]) -> None:
        visible = iss_predictor.filter_visible(one_day_passes)
        assert all(p.is_visible and p.visible_window is not None for p in visible)
        for p in visible:
            assert p.aos <= p.visible_window.aos <= p.visible_window.los <= p.los
            assert p.visible_window.max_el >= 10.0
