"""OpenWeatherMap Direct Geocoding Module.

This module resolves a free-text city name into candidate locations using the
OpenWeatherMap direct geocoding endpoint. Responses are cached per raw city
string, so repeated identical lookups never hit the network twice.

The module follows a clean separation of concerns:
    1. Data modeling via the Coordinate and GeocodeCandidate classes.
    2. Response decoding through parse_geocoding_response.
    3. API interaction and caching through the GeocodingClient class.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import requests

from config import WeatherSettings
from weather_service import DecodingFailedError, InvalidInputError, SessionProvider, provider_get

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Coordinate:
    """A geographic position. No bounds validation is performed; the provider is the source of truth.

        Attributes:
            latitude: Geographic north-south coordinate.
            longitude: Geographic east-west coordinate.
    """
    latitude: float
    longitude: float


@dataclass(frozen=True)
class GeocodeCandidate:
    """A single geocoding match for a queried city string.

        Attributes:
            name: Name of the matched place (e.g., 'London').
            coordinate: Position of the matched place.
            country: ISO country code, when the provider reports one.
    """
    name: str
    coordinate: Coordinate
    country: Optional[str] = None


def _parse_candidate(item: Any) -> GeocodeCandidate:
    if not isinstance(item, dict):
        raise DecodingFailedError()

    name = item.get("name")
    latitude = item.get("lat")
    longitude = item.get("lon")
    country = item.get("country")

    if not isinstance(name, str):
        raise DecodingFailedError()
    # bool is an int subclass; it is not a valid coordinate
    for value in (latitude, longitude):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise DecodingFailedError()
    if country is not None and not isinstance(country, str):
        raise DecodingFailedError()

    return GeocodeCandidate(name, Coordinate(float(latitude), float(longitude)), country)


def parse_geocoding_response(response: requests.Response) -> Tuple[GeocodeCandidate, ...]:
    """Decodes a geocoding response body into an ordered tuple of candidates.

        Args:
            response: A successful provider response.

        Returns:
            The candidates in provider order. May be empty.

        Raises:
            DecodingFailedError: If the body is empty or not a JSON array of locations.
    """
    if not response.content:
        raise DecodingFailedError()
    try:
        data = response.json()
    except ValueError as err:
        raise DecodingFailedError() from err

    if not isinstance(data, list):
        raise DecodingFailedError()
    return tuple(_parse_candidate(item) for item in data)


class GeocodingClient:
    """Resolves city names to candidate locations, caching every successful response.

        The cache is keyed by the raw city string exactly as given, so 'Paris',
        'paris' and ' Paris' are distinct entries.
    """
    def __init__(self, settings: Optional[WeatherSettings] = None, sessions: Optional[SessionProvider] = None,
                 limit: Optional[int] = None):
        self.settings = settings or WeatherSettings.from_env()
        self.sessions = sessions or SessionProvider()
        self.limit = limit if limit is not None else self.settings.geocode_limit
        self._cache: Dict[str, Tuple[GeocodeCandidate, ...]] = {}
        self._lock = threading.Lock()

    def cached(self, city_name: str) -> Optional[Tuple[GeocodeCandidate, ...]]:
        """Returns the cached candidates for city_name, or None if it was never resolved."""
        with self._lock:
            return self._cache.get(city_name)

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    async def resolve(self, city_name: str) -> Tuple[GeocodeCandidate, ...]:
        """Resolves a city name to an ordered tuple of candidate locations.

            An empty tuple is a successful result: it means the provider knows no
            such place. Turning that into a not-found condition is the caller's job.

            Args:
                city_name: The name of the city to query (e.g., "London" or "Tel Aviv").

            Returns:
                The candidates in provider order, best match first.

            Raises:
                InvalidInputError: If city_name is empty or blank. No request is made.
                NetworkError: If a transport error occurs or the provider rejects the API key.
                DecodingFailedError: If the body is empty or malformed.
                CityNotFoundError: If the provider answers 404.
                ServerError: If the provider answers any other non-success status.
        """
        if not city_name or not city_name.strip():
            raise InvalidInputError()

        cached_candidates = self.cached(city_name)
        if cached_candidates is not None:
            logger.debug("Geocode cache hit for %r", city_name)
            return cached_candidates

        logger.debug("Geocode cache miss for %r, querying provider", city_name)
        params = {
            "q": city_name,
            "limit": self.limit,
            "appid": self.settings.api_key,
        }
        response = await provider_get(self.sessions, self.settings.geocoding_url, params,
                                      timeout=self.settings.request_timeout)
        candidates = parse_geocoding_response(response)

        with self._lock:
            self._cache[city_name] = candidates
        return candidates
