"""OpenWeatherMap Current Weather Provider Module.

This module implements the integration with the OpenWeatherMap current weather
service and its icon asset host. It provides structured data models for
internal consumption, decoding of the provider's JSON body, and a client that
fetches readings by coordinate and downloads condition icons through a
bounded ImageCache.

The module follows a clean separation of concerns:
    1. Data modeling via the WeatherConditionEntry and WeatherReading classes.
    2. Response decoding through parse_weather_response and is_valid_image.
    3. API interaction through the WeatherClient class.
"""

import asyncio
import functools
import logging
import struct
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

import requests

from config import WeatherSettings
from geocoding import Coordinate
from image_cache import ImageCache
from weather_service import (
    CityNotFoundError,
    DecodingFailedError,
    InvalidInputError,
    NoDataError,
    SessionProvider,
    provider_get,
)

logger = logging.getLogger(__name__)

ICON_SUFFIX = "@2x.png"

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
JPEG_SIGNATURE = b"\xff\xd8\xff"
GIF_SIGNATURES = (b"GIF87a", b"GIF89a")


@dataclass(frozen=True)
class WeatherConditionEntry:
    """One entry of the provider's ``weather`` array.

        Attributes:
            description: Human-readable condition (e.g., 'light rain').
            icon_code: Provider icon identifier (e.g., '10d').
    """
    description: Optional[str] = None
    icon_code: Optional[str] = None


@dataclass(frozen=True)
class WeatherReading:
    """Current conditions for a location, as reported by OpenWeatherMap.

        Temperature is kept in Kelvin; conversion happens only when a result is
        prepared for display.

        Attributes:
            city_display_name: Name of the location the provider matched. Never empty.
            temperature_kelvin: Current temperature in Kelvin.
            humidity_percent: Relative humidity, when reported.
            conditions: Condition entries in provider order.
    """
    city_display_name: str
    temperature_kelvin: float
    humidity_percent: Optional[int] = None
    conditions: Tuple[WeatherConditionEntry, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.city_display_name:
            raise DecodingFailedError()

    @property
    def primary_icon_code(self) -> Optional[str]:
        """Returns the first non-empty icon code among the conditions, or None."""
        for condition in self.conditions:
            if condition.icon_code:
                return condition.icon_code
        return None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _optional_str(value: Any) -> Optional[str]:
    if value is not None and not isinstance(value, str):
        raise DecodingFailedError()
    return value


def parse_weather_response(response: requests.Response) -> WeatherReading:
    """Decodes a current weather response body into a WeatherReading.

        Args:
            response: A successful provider response.

        Returns:
            The decoded reading.

        Raises:
            NoDataError: If the body is empty.
            DecodingFailedError: If the body is not the expected JSON shape.
    """
    if not response.content:
        raise NoDataError()
    try:
        data = response.json()
    except ValueError as err:
        raise DecodingFailedError() from err

    if not isinstance(data, dict):
        raise DecodingFailedError()

    city_name = data.get("name")
    main_dict = data.get("main")
    weather_list = data.get("weather")
    if not isinstance(city_name, str) or not isinstance(main_dict, dict) or not isinstance(weather_list, list):
        raise DecodingFailedError()

    temperature = main_dict.get("temp")
    humidity = main_dict.get("humidity")
    if not _is_number(temperature):
        raise DecodingFailedError()
    # humidity is a whole percentage; 55.5 is malformed, 55.0 is not
    if humidity is not None and (not _is_number(humidity) or not float(humidity).is_integer()):
        raise DecodingFailedError()

    conditions = []
    for condition_dict in weather_list:
        if not isinstance(condition_dict, dict):
            raise DecodingFailedError()
        conditions.append(WeatherConditionEntry(_optional_str(condition_dict.get("description")),
                                                _optional_str(condition_dict.get("icon"))))

    return WeatherReading(city_name, float(temperature),
                          int(humidity) if humidity is not None else None,
                          tuple(conditions))


def is_valid_image(data: bytes) -> bool:
    """Checks that data looks like a well-formed PNG, JPEG, GIF or WebP image.

        PNG images, which is what the icon host serves, are additionally checked
        for a sane IHDR header (non-zero dimensions) and a trailing IEND chunk.
    """
    if data.startswith(PNG_SIGNATURE):
        if len(data) < 33:
            return False
        length, chunk_type, width, height = struct.unpack(">I4sII", data[8:24])
        return (length == 13 and chunk_type == b"IHDR" and width > 0 and height > 0
                and b"IEND" in data[-12:])
    if data.startswith(JPEG_SIGNATURE):
        return b"\xff\xd9" in data[-16:]
    if data.startswith(GIF_SIGNATURES):
        return len(data) > 13
    return len(data) > 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP"


class WeatherClient:
    """Fetches current weather by coordinate and weather icons by code.

        Icons are served from the injected ImageCache when present. Concurrent
        misses for the same icon code share a single download.
    """
    def __init__(self, settings: Optional[WeatherSettings] = None, sessions: Optional[SessionProvider] = None,
                 image_cache: Optional[ImageCache] = None):
        self.settings = settings or WeatherSettings.from_env()
        self.sessions = sessions or SessionProvider()
        self.image_cache = image_cache if image_cache is not None \
            else ImageCache(self.settings.icon_cache_capacity)
        self._inflight: Dict[Tuple[asyncio.AbstractEventLoop, str], asyncio.Future] = {}
        self._lock = threading.Lock()

    def icon_url(self, icon_code: str) -> str:
        """Builds the deterministic asset URL for icon_code."""
        return f"{self.settings.image_base_url}{icon_code}{ICON_SUFFIX}"

    async def fetch_current(self, coordinate: Coordinate) -> WeatherReading:
        """Fetches current weather conditions for a coordinate.

            Args:
                coordinate: The location to query.

            Returns:
                A WeatherReading with the provider's city name, temperature in Kelvin,
                optional humidity and the ordered condition list.

            Raises:
                NetworkError: On transport failure, or when the provider answers 401/403.
                CityNotFoundError: When the provider answers 404.
                ServerError: On 5xx or any other non-success status.
                NoDataError: If the body is empty.
                DecodingFailedError: If the body cannot be decoded.
        """
        params = {
            "lat": coordinate.latitude,
            "lon": coordinate.longitude,
            "appid": self.settings.api_key,
        }
        response = await provider_get(self.sessions, self.settings.weather_url, params,
                                      timeout=self.settings.request_timeout)
        reading = parse_weather_response(response)
        logger.debug("Fetched weather for %r: %s K", reading.city_display_name, reading.temperature_kelvin)
        return reading

    async def fetch_icon(self, icon_code: str) -> bytes:
        """Returns the image bytes for icon_code, downloading them on a cache miss.

            Only bytes that validate as an image are stored in the cache.

            Raises:
                InvalidInputError: If icon_code is empty.
                NetworkError: On transport failure.
                NoDataError: If the download is empty.
                DecodingFailedError: If the download is not a valid image, or the icon does not exist.
                ServerError: On any other non-success status.
        """
        if not icon_code:
            raise InvalidInputError()

        cached_icon = self.image_cache.get(icon_code)
        if cached_icon is not None:
            logger.debug("Icon cache hit for %r", icon_code)
            return cached_icon

        # a future can only be awaited from its own loop, so downloads are shared per loop
        inflight_key = (asyncio.get_running_loop(), icon_code)
        with self._lock:
            download = self._inflight.get(inflight_key)
            if download is None:
                download = asyncio.ensure_future(self._download_icon(icon_code))
                self._inflight[inflight_key] = download
                download.add_done_callback(functools.partial(self._forget_download, inflight_key))
            else:
                logger.debug("Joining in-flight download of icon %r", icon_code)

        # a cancelled waiter must not cancel the download shared with other waiters
        return await asyncio.shield(download)

    def _forget_download(self, inflight_key: Tuple[asyncio.AbstractEventLoop, str],
                         download: asyncio.Future) -> None:
        with self._lock:
            if self._inflight.get(inflight_key) is download:
                del self._inflight[inflight_key]
        if not download.cancelled():
            # marks the outcome as retrieved even when every waiter was cancelled
            download.exception()

    async def _download_icon(self, icon_code: str) -> bytes:
        logger.debug("Icon cache miss for %r, downloading", icon_code)
        try:
            response = await provider_get(self.sessions, self.icon_url(icon_code),
                                          timeout=self.settings.request_timeout)
        except CityNotFoundError as err:
            # the asset host answers 404 for unknown codes; that is a bad image, not a missing city
            raise DecodingFailedError() from err

        data = response.content
        if not data:
            raise NoDataError()
        if not is_valid_image(data):
            logger.warning("Icon %r is not a valid image, not caching it", icon_code)
            raise DecodingFailedError()

        self.image_cache.put(icon_code, data)
        return data
