# Contains the adapter classes for communicating with external mapping APIs.

import logging
import os
from abc import ABC, abstractmethod
from urllib.parse import quote

import requests
from dotenv import load_dotenv

from api_structures import Coordinates, GeocodedPlace, RouteMetrics

logger = logging.getLogger(__name__)

# --- API Configuration ---
# Endpoints and keys are read from environment variables (or a .env file).
load_dotenv()
NOMINATIM_URL = os.getenv("NOMINATIM_URL", "https://nominatim.openstreetmap.org")
OSRM_URL = os.getenv("OSRM_URL", "https://router.project-osrm.org")
GEOCODER_USER_AGENT = os.getenv("GEOCODER_USER_AGENT", "trip-price-calculator/1.0")
TOMTOM_API_KEY = os.getenv("TOMTOM_API_KEY")
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY")
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "10"))


class ResolutionFailure(Exception):
    """An address or route could not be resolved by the mapping provider."""


class GeocodingError(ResolutionFailure):
    pass


class RoutingError(ResolutionFailure):
    pass


class ApiAdapter(ABC):
    """
    Abstract Base Class (blueprint) for all API clients.
    It ensures every adapter we create has the same public methods.
    Both methods raise a ResolutionFailure subclass instead of returning None.
    """
    @abstractmethod
    def get_place(self, address: str) -> GeocodedPlace:
        """Converts a string address into our standard GeocodedPlace object."""

    @abstractmethod
    def get_route(self, start_coords: Coordinates, end_coords: Coordinates) -> RouteMetrics:
        """Calculates a driving route and returns our standard RouteMetrics object."""


class OpenStreetMapAdapter(ApiAdapter):
    """The adapter for OpenStreetMap: Nominatim for geocoding, OSRM for routing."""
    SEARCH_PATH = "/search"
    ROUTE_PATH = "/route/v1/driving/{locations}"

    def __init__(self, nominatim_url: str | None = None, osrm_url: str | None = None,
                 timeout: float = HTTP_TIMEOUT):
        self.nominatim_url = (nominatim_url or NOMINATIM_URL).rstrip("/")
        self.osrm_url = (osrm_url or OSRM_URL).rstrip("/")
        self.timeout = timeout

    def get_place(self, address: str) -> GeocodedPlace:
        logger.debug("[OSM] Geocoding address: '%s'", address)
        params = {'q': address, 'format': 'json', 'limit': 1}
        # Nominatim's usage policy rejects requests without an identifying agent.
        headers = {'User-Agent': GEOCODER_USER_AGENT}
        try:
            response = requests.get(self.nominatim_url + self.SEARCH_PATH, params=params,
                                    headers=headers, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise GeocodingError(f"Error connecting to the geocoding service: {e}") from e
        except ValueError as e:
            raise GeocodingError(f"Invalid response from the geocoding service for: {address}") from e

        if not data:
            raise GeocodingError(f"Address not found: {address}")
        try:
            first = data[0]
            # *** NORMALIZATION to our standard GeocodedPlace object ***
            return GeocodedPlace(
                display_name=first['display_name'],
                latitude=float(first['lat']),
                longitude=float(first['lon']),
            )
        except (KeyError, IndexError, TypeError, ValueError, AttributeError) as e:
            raise GeocodingError(f"Error parsing the geocoding response for: {address}") from e

    def get_route(self, start_coords: Coordinates, end_coords: Coordinates) -> RouteMetrics:
        # OSRM expects lon,lat pairs.
        locations = f"{start_coords.lon},{start_coords.lat};{end_coords.lon},{end_coords.lat}"
        url = self.osrm_url + self.ROUTE_PATH.format(locations=locations)
        logger.debug("[OSM] Requesting route %s", locations)
        try:
            response = requests.get(url, params={'overview': 'false'}, timeout=self.timeout)
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise RoutingError(f"Error connecting to the routing service: {e}") from e
        except ValueError as e:
            raise RoutingError("Invalid response from the routing service") from e

        try:
            if data.get('code') != 'Ok':
                raise RoutingError(data.get('message') or "No route found between the two addresses")
            route = data['routes'][0]
            return RouteMetrics(distance_meters=float(route['distance']),
                                duration_seconds=float(route['duration']))
        except (KeyError, IndexError, TypeError, ValueError, AttributeError) as e:
            raise RoutingError("No route found between the two addresses") from e


class TomTomAdapter(ApiAdapter):
    """The adapter for the TomTom API."""
    GEOCODE_URL = "https://api.tomtom.com/search/2/geocode/{address}.json"
    ROUTING_URL = "https://api.tomtom.com/routing/1/calculateRoute/{locations}/json"

    def __init__(self, timeout: float = HTTP_TIMEOUT):
        if not TOMTOM_API_KEY:
            raise ValueError(
                "FATAL ERROR: The TOMTOM_API_KEY environment variable is not set.")
        self.timeout = timeout

    def get_place(self, address: str) -> GeocodedPlace:
        logger.debug("[TomTom] Geocoding address: '%s'", address)
        url = self.GEOCODE_URL.format(address=quote(address))
        params = {'key': TOMTOM_API_KEY, 'limit': 1}
        try:
            response = requests.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise GeocodingError(f"Error connecting to TomTom Geocoding API: {e}") from e

        try:
            if not data or not data.get('results'):
                raise GeocodingError(f"Address not found: {address}")
            result = data['results'][0]
            position = result['position']
            return GeocodedPlace(
                display_name=result.get('address', {}).get('freeformAddress', address),
                latitude=float(position['lat']),
                longitude=float(position['lon']),
            )
        except (KeyError, IndexError, TypeError, ValueError, AttributeError) as e:
            raise GeocodingError(f"Error parsing TomTom Geocoding API response for: {address}") from e

    def get_route(self, start_coords: Coordinates, end_coords: Coordinates) -> RouteMetrics:
        locations = f"{start_coords.lat},{start_coords.lon}:{end_coords.lat},{end_coords.lon}"
        url = self.ROUTING_URL.format(locations=locations)
        params = {
            'key': TOMTOM_API_KEY,
            'travelMode': 'car',
        }
        try:
            response = requests.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise RoutingError(f"A network error occurred for the TomTom route calculation: {e}") from e
        try:
            summary = data['routes'][0]['summary']
            return RouteMetrics(distance_meters=float(summary['lengthInMeters']),
                                duration_seconds=float(summary['travelTimeInSeconds']))
        except (KeyError, IndexError, TypeError, ValueError, AttributeError) as e:
            raise RoutingError("TomTom could not find a valid route between the two addresses") from e


class GoogleMapsAdapter(ApiAdapter):
    """The adapter for the Google Maps API."""
    GEOCODING_URL = "https://maps.googleapis.com/maps/api/geocode/json"
    DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"

    def __init__(self, timeout: float = HTTP_TIMEOUT):
        if not GOOGLE_API_KEY:
            raise ValueError(
                "FATAL ERROR: The GOOGLE_API_KEY environment variable is not set.")
        self.timeout = timeout

    def get_place(self, address: str) -> GeocodedPlace:
        logger.debug("[Google] Geocoding address: '%s'", address)
        params = {
            'address': address,
            'key': GOOGLE_API_KEY
        }
        try:
            response = requests.get(self.GEOCODING_URL, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise GeocodingError(f"Error connecting to Google Geocoding API: {e}") from e

        try:
            if data.get('status') != 'OK' or not data.get('results'):
                raise GeocodingError(
                    f"Address not found: {address}. Status: {data.get('status')}")
            result = data['results'][0]
            location = result['geometry']['location']
            return GeocodedPlace(
                display_name=result.get('formatted_address', address),
                latitude=float(location['lat']),
                longitude=float(location['lng']),
            )
        except (KeyError, IndexError, TypeError, ValueError, AttributeError) as e:
            raise GeocodingError(f"Error parsing Google Geocoding API response for: {address}") from e

    def get_route(self, start_coords: Coordinates, end_coords: Coordinates) -> RouteMetrics:
        params = {
            'origin': f"{start_coords.lat},{start_coords.lon}",
            'destination': f"{end_coords.lat},{end_coords.lon}",
            'mode': 'driving',
            'key': GOOGLE_API_KEY
        }
        try:
            response = requests.get(self.DIRECTIONS_URL, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise RoutingError(f"A network error occurred for the Google route calculation: {e}") from e

        try:
            if data.get('status') != 'OK' or not data.get('routes'):
                raise RoutingError(
                    f"Google could not find a valid route. Status: {data.get('status')}")
            leg = data['routes'][0]['legs'][0]
            return RouteMetrics(distance_meters=float(leg['distance']['value']),
                                duration_seconds=float(leg['duration']['value']))
        except (KeyError, IndexError, TypeError, ValueError, AttributeError) as e:
            raise RoutingError("Google could not find a valid route between the two addresses") from e


PROVIDERS = {
    'osm': OpenStreetMapAdapter,
    'tomtom': TomTomAdapter,
    'google': GoogleMapsAdapter,
}


def create_adapter(provider: str = 'osm') -> ApiAdapter:
    """Builds the adapter for a provider name. Raises ValueError for unknown names or missing keys."""
    try:
        adapter_class = PROVIDERS[provider]
    except KeyError:
        raise ValueError(f"Unknown mapping provider: {provider}. "
                         f"Choose one of: {', '.join(PROVIDERS)}") from None
    return adapter_class()
