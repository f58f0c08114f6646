"""Runtime configuration for the weather lookup core.

Values are read from environment variables so that deployments can point the
clients at a different host, or tune timeouts and cache sizes, without code
changes. Every setting has a default matching the public OpenWeatherMap API.
"""

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_WEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"
DEFAULT_GEOCODING_URL = "https://api.openweathermap.org/geo/1.0/direct"
DEFAULT_IMAGE_BASE_URL = "https://openweathermap.org/img/wn/"
DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_ICON_CACHE_CAPACITY = 50
DEFAULT_GEOCODE_LIMIT = 1
DEFAULT_LAST_CITY_TABLE = "LastSearchedCity"


@dataclass(frozen=True)
class WeatherSettings:
    """Connection and cache settings shared by the clients.

        Attributes:
            api_key: OpenWeatherMap application id sent as ``appid``. May be None,
                in which case the provider answers 401.
            weather_url: Current-weather endpoint.
            geocoding_url: Direct geocoding endpoint.
            image_base_url: Prefix of the icon URLs; the icon code and ``@2x.png`` are appended.
            request_timeout: Per-request timeout in seconds.
            icon_cache_capacity: Maximum number of icons held in memory.
            geocode_limit: Maximum number of candidates requested per city lookup.
            last_city_table: DynamoDB table holding the last searched city.
    """
    api_key: Optional[str] = None
    weather_url: str = DEFAULT_WEATHER_URL
    geocoding_url: str = DEFAULT_GEOCODING_URL
    image_base_url: str = DEFAULT_IMAGE_BASE_URL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    icon_cache_capacity: int = DEFAULT_ICON_CACHE_CAPACITY
    geocode_limit: int = DEFAULT_GEOCODE_LIMIT
    last_city_table: str = DEFAULT_LAST_CITY_TABLE

    @classmethod
    def from_env(cls) -> "WeatherSettings":
        """Builds settings from the process environment, falling back to defaults."""
        return cls(
            api_key=os.getenv("OPENWEATHER_API_KEY"),
            weather_url=os.getenv("OPENWEATHER_WEATHER_URL", DEFAULT_WEATHER_URL),
            geocoding_url=os.getenv("OPENWEATHER_GEOCODING_URL", DEFAULT_GEOCODING_URL),
            image_base_url=os.getenv("OPENWEATHER_IMAGE_BASE_URL", DEFAULT_IMAGE_BASE_URL),
            request_timeout=float(os.getenv("WEATHER_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT)),
            icon_cache_capacity=int(os.getenv("WEATHER_ICON_CACHE_CAPACITY", DEFAULT_ICON_CACHE_CAPACITY)),
            geocode_limit=int(os.getenv("WEATHER_GEOCODE_LIMIT", DEFAULT_GEOCODE_LIMIT)),
            last_city_table=os.getenv("LAST_CITY_TABLE", DEFAULT_LAST_CITY_TABLE),
        )
