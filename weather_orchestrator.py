"""City Weather Lookup Orchestration Module.

This module provides the core business logic of the weather lookup. It
composes the geocoding and weather clients into a two-stage pipeline
(city name -> coordinates -> current weather), attaches the condition icon
when one can be fetched, and produces a display-ready result.

Main components:
    - DisplayWeather: The display-ready result handed to the presentation layer.
    - WeatherOrchestrator: The request-scoped pipeline with its two entry points.

Each call is independent: the orchestrator keeps no per-request state, so
several lookups may be in flight at once and a caller can discard stale
results by tracking its own request identity.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import utils
from geocoding import Coordinate, GeocodingClient
from open_weather import WeatherClient, WeatherReading
from preferences import LastSearchedCityStore
from weather_service import CityNotFoundError, InvalidInputError, WeatherServiceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DisplayWeather:
    """A fully resolved weather result, ready for rendering with no further network dependency.

        Attributes:
            city_name: Name of the location reported by the weather provider.
            temperature_fahrenheit_text: Temperature formatted as e.g. '72.3°F'.
            icon: Raw icon image bytes, or None when no icon could be fetched.
            reading: The underlying provider reading (humidity, descriptions).
    """
    city_name: str
    temperature_fahrenheit_text: str
    icon: Optional[bytes] = None
    reading: Optional[WeatherReading] = None

    @property
    def description(self) -> Optional[str]:
        """Returns the first condition description, if any."""
        if self.reading is None:
            return None
        return next((c.description for c in self.reading.conditions if c.description), None)


class WeatherOrchestrator:
    """Runs the city lookup pipeline over injected clients.

        Attributes:
            geocoding_client: Resolves city names to candidate locations.
            weather_client: Fetches readings and icons.
            last_city_store: Optional store updated after each successful city search.
    """
    def __init__(self, geocoding_client: GeocodingClient, weather_client: WeatherClient,
                 last_city_store: Optional[LastSearchedCityStore] = None):
        self.geocoding_client = geocoding_client
        self.weather_client = weather_client
        self.last_city_store = last_city_store

    def last_searched_city(self) -> Optional[str]:
        """Returns the last successfully searched city, or None if unknown."""
        if self.last_city_store is None:
            return None
        return self.last_city_store.load()

    async def fetch_by_city_name(self, city: str) -> DisplayWeather:
        """Looks up current weather for a city name.

            Flow:
                1. Reject empty or blank input.
                2. Resolve the city to candidates; the first one is the best match.
                3. Fetch weather for that candidate's coordinate (see fetch_by_coordinates).
                4. Remember the city as the last searched one.

            Args:
                city: The city name as typed by the user.

            Returns:
                The display-ready weather result.

            Raises:
                InvalidInputError: If city is empty or blank.
                CityNotFoundError: If geocoding yields no candidates or the weather provider answers 404.
                WeatherServiceError: Any other geocoding or weather failure, unchanged.
        """
        if not city or not city.strip():
            raise InvalidInputError()

        candidates = await self.geocoding_client.resolve(city)
        if not candidates:
            logger.info("No geocoding candidates for %r", city)
            raise CityNotFoundError()

        best_match = candidates[0]
        logger.debug("Resolved %r to %r", city, best_match)
        display_weather = await self.fetch_by_coordinates(best_match.coordinate)

        if self.last_city_store is not None and not self.last_city_store.save(city):
            logger.warning("Could not remember %r as the last searched city", city)
        return display_weather

    async def fetch_by_coordinates(self, coordinate: Coordinate) -> DisplayWeather:
        """Looks up current weather for a coordinate and attaches its condition icon.

            A failing icon download never fails the lookup: the result is returned
            with icon set to None instead.

            Raises:
                WeatherServiceError: Any failure of the weather fetch, unchanged.
        """
        reading = await self.weather_client.fetch_current(coordinate)

        icon = None
        icon_code = reading.primary_icon_code
        if icon_code:
            try:
                icon = await self.weather_client.fetch_icon(icon_code)
            except WeatherServiceError as e:
                logger.warning("Could not fetch icon %r, continuing without it: %r", icon_code, e)

        return DisplayWeather(reading.city_display_name,
                              utils.format_fahrenheit(reading.temperature_kelvin),
                              icon,
                              reading)
