import struct
import zlib

import pytest
from requests_mock import Mocker

from config import WeatherSettings

WEATHER_URL = "https://weather.test/data/2.5/weather"
GEOCODING_URL = "https://weather.test/geo/1.0/direct"
IMAGE_BASE_URL = "https://icons.test/img/wn/"


def _png_chunk(chunk_type: bytes, payload: bytes) -> bytes:
    return (struct.pack(">I", len(payload)) + chunk_type + payload
            + struct.pack(">I", zlib.crc32(chunk_type + payload) & 0xFFFFFFFF))


def make_png(width: int = 1, height: int = 1) -> bytes:
    """Builds a tiny but well-formed grayscale PNG."""
    header = struct.pack(">IIBBBBB", width, height, 8, 0, 0, 0, 0)
    pixels = zlib.compress(b"\x00" + b"\x00" * width * height)
    return (b"\x89PNG\r\n\x1a\n" + _png_chunk(b"IHDR", header) + _png_chunk(b"IDAT", pixels)
            + _png_chunk(b"IEND", b""))


@pytest.fixture
def requests_mock():
    with Mocker(case_sensitive=True) as mock:
        yield mock


@pytest.fixture
def settings():
    return WeatherSettings(api_key="test-key", weather_url=WEATHER_URL, geocoding_url=GEOCODING_URL,
                           image_base_url=IMAGE_BASE_URL, request_timeout=1.0, icon_cache_capacity=3)


@pytest.fixture
def png_bytes():
    return make_png()
