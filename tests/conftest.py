import pytest

from api_adapters import ApiAdapter, GeocodingError
from api_structures import Coordinates, GeocodedPlace, RouteMetrics, TripRequest

MADRID = GeocodedPlace(display_name="Madrid, Comunidad de Madrid, España", latitude=40.4168, longitude=-3.7038)
BARCELONA = GeocodedPlace(display_name="Barcelona, Catalunya, España", latitude=41.3874, longitude=2.1686)


class FakeAdapter(ApiAdapter):
    """Answers from fixed data and records every call."""

    def __init__(self, places=None, route=None, errors=None):
        self.places = places if places is not None else {
            "Madrid, Spain": MADRID,
            "Barcelona, Spain": BARCELONA,
        }
        self.route = route or RouteMetrics(distance_meters=620000, duration_seconds=21000)
        self.errors = errors or {}
        self.calls = []

    def get_place(self, address: str) -> GeocodedPlace:
        self.calls.append(("get_place", address))
        if address in self.errors:
            raise self.errors[address]
        if address not in self.places:
            raise GeocodingError(f"Address not found: {address}")
        return self.places[address]

    def get_route(self, start_coords: Coordinates, end_coords: Coordinates) -> RouteMetrics:
        self.calls.append(("get_route", start_coords, end_coords))
        if "route" in self.errors:
            raise self.errors["route"]
        return self.route


@pytest.fixture
def fake_adapter() -> FakeAdapter:
    return FakeAdapter()


@pytest.fixture
def madrid_barcelona() -> TripRequest:
    return TripRequest(price_per_km="0.30", origin="Madrid, Spain",
                       destination="Barcelona, Spain", round_trip=False)
