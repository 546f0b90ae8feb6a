"""
Tests for site module.
"""

import math

import pytest

from pass_predictor.site import ObserverSite


class TestObserverSite:
    """Tests for ObserverSite dataclass."""

    def test_basic_creation(self) -> None:
        site = ObserverSite(name="Galway", latitude=53.10, longitude=-8.98, altitude=60.0)
        assert site.name == "Galway"
        assert site.latitude == 53.10
        assert site.altitude == 60.0

    def test_default_altitude(self) -> None:
        site = ObserverSite(name="Test", latitude=0.0, longitude=0.0)
        assert site.altitude == 0.0
        assert site.location is None

    def test_geodetic_units(self) -> None:
        site = ObserverSite(name="Galway", latitude=53.10, longitude=-8.98, altitude=60.0)
        assert site.geodetic.lat == pytest.approx(math.radians(53.10))
        assert site.geodetic.lon == pytest.approx(math.radians(-8.98))
        assert site.geodetic.alt == pytest.approx(0.060)

    def test_boundary_coordinates(self) -> None:
        assert ObserverSite(name="North", latitude=90.0, longitude=180.0).latitude == 90.0
        assert ObserverSite(name="South", latitude=-90.0, longitude=-180.0).latitude == -90.0

    @pytest.mark.parametrize("latitude,longitude", [(91.0, 0.0), (-90.5, 0.0), (0.0, 180.5), (0.0, -200.0)])
    def test_invalid_coordinates(self, latitude: float, longitude: float) -> None:
        with pytest.raises(ValueError, match="Invalid"):
            ObserverSite(name="Bad", latitude=latitude, longitude=longitude)

    def test_invalid_altitude(self) -> None:
        with pytest.raises(ValueError, match="altitude"):
            ObserverSite(name="Bad", latitude=0.0, longitude=0.0, altitude=float("nan"))

    def test_immutable(self) -> None:
        site = ObserverSite(name="Test", latitude=0.0, longitude=0.0)
        with pytest.raises(AttributeError):
            site.latitude = 10.0  # type: ignore[misc]

    def test_dict_round_trip(self) -> None:
        site = ObserverSite(name="Galway", latitude=53.10, longitude=-8.98, altitude=60.0, location="Ireland")
        restored = ObserverSite.from_dict(site.to_dict())
        assert restored == site
        assert restored.location == "Ireland"

    def test_from_dict_unknown_key(self) -> None:
        with pytest.raises(TypeError):
            ObserverSite.from_dict({"name": "X", "latitude": 0.0, "longitude": 0.0, "elevation": 3})

    def test_str(self) -> None:
        site = ObserverSite(name="Galway", latitude=53.10, longitude=-8.98, altitude=60.0)
        assert str(site) == "Galway (53.1000°, -8.9800°, 60 m)"


class TestMaidenhead:
    @pytest.mark.parametrize(
        "latitude,longitude,expected",
        [
            (53.10, -8.98, "IO53mc"),
            (0.0, 0.0, "JJ00aa"),
            (90.0, 180.0, "RR99xx"),
        ],
    )
    def test_locator(self, latitude: float, longitude: float, expected: str) -> None:
        site = ObserverSite(name="X", latitude=latitude, longitude=longitude)
        assert site.maidenhead_locator == expected
