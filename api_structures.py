# Defines the standardized, internal data structures for the application.

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Coordinates:
    """A standardized representation of geographic coordinates."""
    lat: float
    lon: float


@dataclass(frozen=True)
class GeocodedPlace:
    """An address resolved by a geocoding provider."""
    display_name: str
    latitude: float
    longitude: float

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(lat=self.latitude, lon=self.longitude)


@dataclass(frozen=True)
class RouteMetrics:
    """A standardized representation of a driving route's length and travel time."""
    distance_meters: float
    duration_seconds: float


@dataclass(frozen=True)
class TripRequest:
    """
    What the user typed into the form. The price stays a raw string so
    the pricing engine can report a bad value instead of failing on it.
    """
    price_per_km: str
    origin: str
    destination: str
    round_trip: bool = False


@dataclass(frozen=True)
class TripSuccess:
    """A priced trip. Origin and destination are the resolved display names."""
    origin: str
    destination: str
    distance_km: float
    price_per_km: float
    total_price: float
    duration_minutes: int
    computed_at: datetime
    round_trip: bool
    error_message: None = None

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class TripFailure:
    """
    A trip that could not be priced. The numeric fields stay at 0 so a
    failure renders and exports with the same shape as a success.
    """
    origin_input: str
    destination_input: str
    price_per_km: float
    computed_at: datetime
    round_trip: bool
    error_message: str
    distance_km: float = 0.0
    total_price: float = 0.0
    duration_minutes: int = 0

    @property
    def ok(self) -> bool:
        return False


TripResult = TripSuccess | TripFailure
