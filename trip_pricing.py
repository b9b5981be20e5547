# Turns a trip request into a priced result: validation, address resolution, pricing.

import asyncio
import logging
import math
import re
from datetime import datetime, timezone

from api_adapters import ApiAdapter
from api_structures import GeocodedPlace, RouteMetrics, TripFailure, TripRequest, TripResult, TripSuccess

logger = logging.getLogger(__name__)

# Pause between the two geocoding calls to respect the provider's rate limit.
GEOCODE_DELAY_SECONDS = 1.0

PRICE_ERROR = "price must be a positive number, e.g. 0.30"
ORIGIN_ERROR = "an origin address is required, e.g. Madrid, Spain"
DESTINATION_ERROR = "a destination address is required, e.g. Barcelona, Spain"
UNKNOWN_ERROR = "unknown error while calculating the route"

# Digits with an optional fraction and exponent; no '_' separators, no nan/inf.
DECIMAL_PATTERN = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?")


class InvalidInput(ValueError):
    """The request was rejected before any network call was made."""

    def __init__(self, message: str, price_per_km: float = 0.0):
        super().__init__(message)
        self.price_per_km = price_per_km


def round_half_up(value: float, places: int = 0) -> float:
    """Rounds halves away from zero for positive values (2.25 -> 2.3 at one place)."""
    factor = 10 ** places
    return math.floor(value * factor + 0.5) / factor


def format_duration(minutes: int) -> str:
    """Converts minutes into '1h 30min', or '45min' below one hour."""
    if minutes >= 60:
        hours, rest = divmod(minutes, 60)
        return f"{hours}h {rest}min"
    return f"{minutes}min"


def parse_price(raw: str) -> float | None:
    """Returns the price as a float, or None if it is not a plain decimal number."""
    if not isinstance(raw, str) or not DECIMAL_PATTERN.fullmatch(raw.strip()):
        return None
    price = float(raw.strip())
    if not math.isfinite(price):
        return None
    return price


def validate_request(request: TripRequest) -> float:
    """
    Checks the request in order (price, origin, destination) and returns
    the parsed price. The first problem found is raised as InvalidInput.
    """
    price = parse_price(request.price_per_km)
    if price is None or price <= 0:
        raise InvalidInput(PRICE_ERROR)
    if not request.origin.strip():
        raise InvalidInput(ORIGIN_ERROR, price_per_km=price)
    if not request.destination.strip():
        raise InvalidInput(DESTINATION_ERROR, price_per_km=price)
    return price


def derive_result(origin: GeocodedPlace, destination: GeocodedPlace, route: RouteMetrics,
                  price_per_km: float, round_trip: bool, computed_at: datetime | None = None) -> TripSuccess:
    """
    Prices a resolved trip. The total is computed from the already rounded
    distance so the displayed distance and price always agree.
    """
    multiplier = 2 if round_trip else 1
    distance_km = round_half_up(route.distance_meters / 1000 * multiplier, 1)
    duration_minutes = int(round_half_up(route.duration_seconds / 60 * multiplier))
    total_price = round_half_up(distance_km * price_per_km, 2)
    return TripSuccess(
        origin=origin.display_name,
        destination=destination.display_name,
        distance_km=distance_km,
        price_per_km=price_per_km,
        total_price=total_price,
        duration_minutes=duration_minutes,
        computed_at=computed_at or datetime.now(timezone.utc),
        round_trip=round_trip,
    )


def _failure(request: TripRequest, message: str, price_per_km: float) -> TripFailure:
    return TripFailure(
        origin_input=request.origin,
        destination_input=request.destination,
        price_per_km=price_per_km,
        computed_at=datetime.now(timezone.utc),
        round_trip=request.round_trip,
        error_message=message,
    )


class TripPricingEngine:
    """
    Geocodes both addresses, fetches the route between them and prices the trip.

    The adapter is blocking, so each call runs in a worker thread; the pause
    between the geocoding calls is a plain asyncio sleep and holds no thread.
    """

    def __init__(self, adapter: ApiAdapter, geocode_delay: float = GEOCODE_DELAY_SECONDS):
        self.adapter = adapter
        self.geocode_delay = geocode_delay

    async def compute(self, request: TripRequest) -> TripResult:
        """Never raises: every problem comes back as a TripFailure."""
        try:
            price = validate_request(request)
        except InvalidInput as e:
            logger.info("Rejected trip request: %s", e)
            return _failure(request, str(e), e.price_per_km)

        try:
            origin, destination, route = await self._resolve(request)
            result = derive_result(origin, destination, route, price, request.round_trip)
        except Exception as e:
            logger.warning("Could not price trip %r -> %r: %s",
                           request.origin, request.destination, e)
            return _failure(request, str(e) or UNKNOWN_ERROR, price)

        logger.info("Priced trip %s -> %s: %s km, %.2f",
                    result.origin, result.destination, result.distance_km, result.total_price)
        return result

    async def _resolve(self, request: TripRequest) -> tuple[GeocodedPlace, GeocodedPlace, RouteMetrics]:
        origin = await asyncio.to_thread(self.adapter.get_place, request.origin)
        await asyncio.sleep(self.geocode_delay)
        destination = await asyncio.to_thread(self.adapter.get_place, request.destination)
        route = await asyncio.to_thread(self.adapter.get_route,
                                        origin.coordinates, destination.coordinates)
        return origin, destination, route


class TripSession:
    """
    Runs at most one computation at a time. A new submission cancels the
    one in flight; the cancelled submission returns None and nothing of
    its partial work is kept.
    """

    def __init__(self, engine: TripPricingEngine):
        self.engine = engine
        self._task: asyncio.Task | None = None
        self._discarded: set[asyncio.Task] = set()

    @property
    def busy(self) -> bool:
        return self._task is not None and not self._task.done()

    def cancel(self) -> bool:
        """Cancels the computation in flight. Returns False if there was none."""
        if not self.busy:
            return False
        self._discarded.add(self._task)
        self._task.cancel()
        return True

    async def submit(self, request: TripRequest) -> TripResult | None:
        if self.cancel():
            logger.debug("Discarding the previous trip computation")
        task = asyncio.create_task(self.engine.compute(request))
        self._task = task
        try:
            return await task
        except asyncio.CancelledError:
            if task not in self._discarded:
                raise
            return None
        finally:
            self._discarded.discard(task)
            if self._task is task:
                self._task = None
