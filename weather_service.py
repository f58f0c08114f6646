"""Custom exception hierarchy and shared HTTP plumbing for the weather lookup core.

This module defines a structured set of exceptions used to report provider
and input failures. Every exception carries a stable ErrorKind so that the
presentation layer can match on the kind of failure without depending on
provider-specific details.

It also hosts the single asynchronous GET helper used by the geocoding and
weather clients, together with the HTTP status code mapping shared by both.

Example:
    try:
        weather = await orchestrator.fetch_by_city_name(city)
    except WeatherServiceError as e:
        logger.error(f"Weather lookup failed: {e.message}")
"""

import asyncio
import logging
import threading
from enum import Enum
from typing import Any, Callable, Mapping, Optional

import requests

logger = logging.getLogger(__name__)


class ErrorKind(Enum):
    """Enumeration of the matchable failure kinds exposed by the core.

        Each member contains a tuple of (id, user_message) so the presentation layer
        can render a default message without a lookup table of its own.
    """
    INVALID_URL = (0, "The URL is invalid.")
    NO_DATA = (1, "No data was received from the server.")
    DECODING_FAILED = (2, "Failed to decode the weather data.")
    NETWORK_ERROR = (3, "A network error occurred.")
    CITY_NOT_FOUND = (4, "City not found. Please try again.")
    SERVER_ERROR = (5, "The server encountered an error. Please try again later.")
    INVALID_INPUT = (6, "Please enter a city name.")


class WeatherServiceError(Exception):
    """Base class for any exception raised by the weather lookup core.

        Catching this exception will intercept any error specifically defined
        within this application, regardless of which provider call failed.

        Attributes:
            kind: The ErrorKind describing this failure.
    """
    kind: ErrorKind = None

    @property
    def message(self) -> str:
        """Returns a human-readable description suitable for display."""
        return self.kind.value[1]

    def __str__(self):
        return self.message

    def __repr__(self):
        """Returns a string representation of the error instance."""
        return f"{self.__class__.__name__}()"


class InvalidURLError(WeatherServiceError):
    """Raised when a provider request URL cannot be constructed."""
    kind = ErrorKind.INVALID_URL


class NoDataError(WeatherServiceError):
    """Raised when the transport succeeded but the response body was empty."""
    kind = ErrorKind.NO_DATA


class DecodingFailedError(WeatherServiceError):
    """Raised when a response body does not parse into the expected shape, or image bytes are invalid."""
    kind = ErrorKind.DECODING_FAILED


class CityNotFoundError(WeatherServiceError):
    """Raised when geocoding yields no candidates or the weather provider answers 404."""
    kind = ErrorKind.CITY_NOT_FOUND


class InvalidInputError(WeatherServiceError):
    """Raised when the caller passes an empty or blank city name or icon code."""
    kind = ErrorKind.INVALID_INPUT


class NetworkError(WeatherServiceError):
    """Raised when a transport-level error occurs or the provider rejects our credentials.

        Attributes:
            cause: The underlying requests exception. For 401/403 answers this is a
                requests.exceptions.HTTPError whose ``response`` holds the rejected reply.
    """
    kind = ErrorKind.NETWORK_ERROR

    def __init__(self, cause: requests.exceptions.RequestException):
        """Initializes the error with the original requests exception.

                Args:
                    cause: The source HTTPError or RequestException.
        """
        super().__init__(cause)
        self.cause = cause

    @property
    def message(self) -> str:
        return str(self.cause) or self.kind.value[1]

    def __repr__(self):
        """Returns a string representation of the NetworkError instance, including the wrapped error."""
        return f"{self.__class__.__name__}({repr(self.cause)})"


class ServerError(WeatherServiceError):
    """Raised when a provider answers 5xx or any other unrecognized non-success status.

        Attributes:
            status_code: The HTTP status code returned by the provider.
    """
    kind = ErrorKind.SERVER_ERROR

    def __init__(self, status_code: Optional[int] = None):
        super().__init__(status_code)
        self.status_code = status_code

    def __repr__(self):
        return f"{self.__class__.__name__}(status_code={self.status_code!r})"


def raise_for_provider_status(response: requests.Response) -> None:
    """Maps a non-success HTTP status onto the core's error taxonomy.

        Args:
            response: The provider response to inspect.

        Raises:
            NetworkError: On 401 or 403, wrapping an HTTPError that carries the response.
            CityNotFoundError: On 404.
            ServerError: On 5xx or any other status outside 200-299.
    """
    status_code = response.status_code
    if 200 <= status_code <= 299:
        return

    if status_code in (401, 403):
        raise NetworkError(requests.exceptions.HTTPError(
            f"{status_code} Client Error: {response.reason} for url: {response.url}", response=response))
    if status_code == 404:
        raise CityNotFoundError()
    raise ServerError(status_code)


class SessionProvider:
    """Hands every worker thread its own requests.Session.

        requests does not promise that a Session is safe to share between threads,
        and provider calls run concurrently on asyncio.to_thread workers.
    """
    def __init__(self, session_factory: Callable[[], requests.Session] = requests.Session):
        self._session_factory = session_factory
        self._local = threading.local()

    def current(self) -> requests.Session:
        """Returns the session owned by the calling thread, creating it on first use."""
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._local.session = self._session_factory()
        return session


def _send_get(sessions: SessionProvider, url: str, params: Optional[Mapping[str, Any]],
              timeout: float) -> requests.Response:
    return sessions.current().get(url, params=params, timeout=timeout)


async def provider_get(sessions: SessionProvider, url: str, params: Optional[Mapping[str, Any]] = None,
                       timeout: float = 10.0) -> requests.Response:
    """Issues a single GET request on a worker thread and maps its status.

        The call is single-shot: there are no retries at this layer. The blocking
        requests call runs via asyncio.to_thread so the event loop is never blocked,
        using the session that belongs to the worker thread.

        Args:
            sessions: Provides the requests session of the worker thread.
            url: The fully qualified endpoint URL.
            params: Query string parameters.
            timeout: Per-request timeout in seconds.

        Returns:
            The provider response with a 2xx status.

        Raises:
            InvalidURLError: If requests rejects the URL before sending.
            NetworkError: On transport failure or an authentication rejection.
            CityNotFoundError: On 404.
            ServerError: On any other non-success status.
    """
    try:
        response = await asyncio.to_thread(_send_get, sessions, url, params, timeout)
    except (requests.exceptions.MissingSchema, requests.exceptions.InvalidSchema,
            requests.exceptions.InvalidURL) as err:
        logger.warning("Could not build request for %s: %s", url, err)
        raise InvalidURLError() from err
    except requests.exceptions.RequestException as err:
        logger.warning("Request to %s failed: %s", url, err)
        raise NetworkError(err) from err

    if not 200 <= response.status_code <= 299:
        logger.warning("Provider at %s answered HTTP %s", url, response.status_code)
    raise_for_provider_status(response)
    return response
