"""
Tests for the SGP4/SDP4 propagators against the Spacetrack Report #3 test
cases.
"""

import logging
from typing import List, Tuple

import pytest

from pass_predictor.elements import OrbitalElements, PropagationMode
from pass_predictor.propagation import Propagator, propagate
from pass_predictor.sdp4 import DeepSpaceModel
from pass_predictor.tle import TLE

Vector = Tuple[float, float, float]

# (tsince minutes, position km, velocity km/s)
SGP4_EXPECTED: List[Tuple[float, Vector, Vector]] = [
    (0.0, (2328.97048951, -5995.22076416, 1719.97067261), (2.91207230, -0.98341546, -7.09081703)),
    (360.0, (2456.10705566, -6071.93853760, 1222.89727783), (2.67938992, -0.44829041, -7.22879231)),
    (720.0, (2567.56195068, -6112.50384522, 713.96397400), (2.44024599, 0.09810869, -7.31995916)),
    (1080.0, (2663.09078980, -6115.48229980, 196.39640427), (2.19611958, 0.65241995, -7.36282432)),
    (1440.0, (2742.55133057, -6079.67144775, -326.38095856), (1.94850229, 1.21106251, -7.35619372)),
]

SDP4_EXPECTED: List[Tuple[float, Vector, Vector]] = [
    (0.0, (7473.37066650, 428.95261765, 5828.74786377), (5.10715130, 6.44468284, -0.18613096)),
    (360.0, (-3305.22537232, 32410.86328125, -24697.17675781), (-1.30113538, -1.15131518, -0.28333528)),
    (720.0, (14271.28759766, 24110.46411133, -4725.76837158), (-0.32050445, 2.67984074, -2.08405289)),
    (1080.0, (-9990.05883789, 22717.35522461, -23616.89066250), (-1.01667246, -2.29026759, 0.72892364)),
    (1440.0, (9787.86975097, 33753.34667969, -15030.81176758), (-1.09425966, 0.92358845, -1.52230928)),
]


@pytest.fixture
def sgp4_elements(sgp4_tle_lines: Tuple[str, str]) -> OrbitalElements:
    return OrbitalElements.from_tle(TLE.from_lines(None, *sgp4_tle_lines))


@pytest.fixture
def sdp4_elements(sdp4_tle_lines: Tuple[str, str]) -> OrbitalElements:
    return OrbitalElements.from_tle(TLE.from_lines(None, *sdp4_tle_lines))


class TestNearEarth:
    """SGP4 test case, catalog 88888."""

    def test_mode(self, sgp4_elements: OrbitalElements) -> None:
        assert Propagator(sgp4_elements).mode is PropagationMode.NEAR_EARTH

    @pytest.mark.parametrize("tsince,position,velocity", SGP4_EXPECTED)
    def test_reference_vectors(
        self, sgp4_elements: OrbitalElements, tsince: float, position: Vector, velocity: Vector
    ) -> None:
        result = Propagator(sgp4_elements).propagate(tsince)
        assert result.position.as_tuple() == pytest.approx(position, abs=0.05)
        assert result.velocity.as_tuple() == pytest.approx(velocity, abs=1e-5)

    def test_phase_range(self, sgp4_elements: OrbitalElements) -> None:
        propagator = Propagator(sgp4_elements)
        for tsince in (0.0, 100.0, 1000.0, -500.0):
            assert 0.0 <= propagator.propagate(tsince).phase < 6.283185307179586


class TestDeepSpace:
    """SDP4 test case, catalog 11801."""

    def test_mode(self, sdp4_elements: OrbitalElements) -> None:
        assert Propagator(sdp4_elements).mode is PropagationMode.DEEP_SPACE

    def test_not_resonant(self, sdp4_elements: OrbitalElements) -> None:
        assert not DeepSpaceModel(sdp4_elements).resonant

    @pytest.mark.parametrize("tsince,position,velocity", SDP4_EXPECTED)
    def test_reference_vectors(
        self, sdp4_elements: OrbitalElements, tsince: float, position: Vector, velocity: Vector
    ) -> None:
        result = Propagator(sdp4_elements).propagate(tsince)
        assert result.position.as_tuple() == pytest.approx(position, abs=0.05)
        assert result.velocity.as_tuple() == pytest.approx(velocity, abs=2e-5)

class TestHighEccentricity:
    """Catalog 23333, e = 0.97 with a perigee near the surface."""

    @pytest.fixture
    def elements(self) -> OrbitalElements:
        return OrbitalElements.from_tle_values(
            epoch=94305.49999999,
            inclination_deg=28.7490,
            raan_deg=2.3720,
            eccentricity=0.9728298,
            arg_perigee_deg=30.4360,
            mean_anomaly_deg=1.3500,
            mean_motion_rev_per_day=0.07309491,
            ndot_over_2=-0.00172956,
            nddot_over_6=0.26967e-3,
            bstar=0.10000e-3,
            catalog_number=23333,
        )

    def test_mode(self, elements: OrbitalElements) -> None:
        assert Propagator(elements).mode is PropagationMode.DEEP_SPACE

    def test_kepler_converges(self, elements: OrbitalElements, caplog: pytest.LogCaptureFixture) -> None:
        propagator = Propagator(elements)
        with caplog.at_level(logging.WARNING, logger="pass_predictor.sgp4"):
            for tsince in (0.0, 120.0, 240.0, 360.0, 720.0, 1440.0, -720.0):
                propagator.propagate(tsince)
        assert not [r for r in caplog.records if "Kepler" in r.getMessage()]

    def test_outbound_track_is_continuous(self, elements: OrbitalElements) -> None:
        propagator = Propagator(elements)
        step_s = 600.0
        samples = [propagator.propagate(t) for t in range(240, 1441, 10)]
        for before, after in zip(samples, samples[1:]):
            chord = (after.position - before.position).w
            assert chord <= 2.0 * step_s * before.velocity.w
            # Climbing away from perigee
            assert after.position.w > before.position.w

    def test_radius_after_perigee(self, elements: OrbitalElements) -> None:
        # Independent SGP4 implementation: (-67053, -14995, -5898) km at t = 240 min
        assert Propagator(elements).propagate(240.0).position.w == pytest.approx(68962.0, rel=0.02)


class TestResonance:
    """Resonant orbits built from synthetic elements."""

    def _elements(self, rev_per_day: float, eccentricity: float, inclination: float) -> OrbitalElements:
        return OrbitalElements.from_tle_values(
            epoch=21001.5,
            inclination_deg=inclination,
            raan_deg=120.0,
            eccentricity=eccentricity,
            arg_perigee_deg=270.0,
            mean_anomaly_deg=10.0,
            mean_motion_rev_per_day=rev_per_day,
        )

    def test_geosynchronous_is_resonant(self) -> None:
        model = DeepSpaceModel(self._elements(1.0027, 0.0002, 0.05))
        assert model.resonant
        assert model.terms.resonance is not None
        assert model.terms.resonance.synchronous

    def test_molniya_is_resonant(self) -> None:
        model = DeepSpaceModel(self._elements(2.006, 0.72, 63.4))
        assert model.resonant
        assert model.terms.resonance is not None
        assert not model.terms.resonance.synchronous

    def test_geosynchronous_radius(self) -> None:
        propagator = Propagator(self._elements(1.0027, 0.0002, 0.05))
        for tsince in (0.0, 1440.0, 10000.0):
            assert propagator.propagate(tsince).position.w == pytest.approx(42164.0, rel=2e-3)

    def test_call_order_independence(self) -> None:
        elements = self._elements(2.006, 0.72, 63.4)
        forward = Propagator(elements)
        backward = Propagator(elements)
        times = [0.0, 500.0, 2000.0, 5000.0, -3000.0]
        results_forward = {t: forward.propagate(t) for t in times}
        results_backward = {t: backward.propagate(t) for t in reversed(times)}
        for t in times:
            assert results_forward[t] == results_backward[t]


class TestPropagatorInterface:
    """Tests for the propagation entry points."""

    def test_deterministic(self, sgp4_elements: OrbitalElements) -> None:
        propagator = Propagator(sgp4_elements)
        first = propagator.propagate(720.0)
        propagator.propagate(-1440.0)
        assert propagator.propagate(720.0) == first

    def test_module_function(self, sgp4_elements: OrbitalElements) -> None:
        result = propagate(sgp4_elements, PropagationMode.NEAR_EARTH, 360.0)
        assert result == Propagator(sgp4_elements).propagate(360.0)

    def test_propagate_jd(self, sgp4_elements: OrbitalElements) -> None:
        propagator = Propagator(sgp4_elements)
        by_jd = propagator.propagate_jd(sgp4_elements.epoch_jd + 0.25)
        by_minutes = propagator.propagate(360.0)
        assert by_jd.position.as_tuple() == pytest.approx(by_minutes.position.as_tuple(), abs=1e-3)

    def test_raw_units(self, sgp4_elements: OrbitalElements) -> None:
        raw = Propagator(sgp4_elements).propagate_raw(0.0)
        # Earth radii
        assert 1.0 < raw.position.w < 1.1

    def test_forced_mode(self, sdp4_elements: OrbitalElements) -> None:
        propagator = Propagator(sdp4_elements, PropagationMode.NEAR_EARTH)
        assert propagator.mode is PropagationMode.NEAR_EARTH
