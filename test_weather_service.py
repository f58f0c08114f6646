"""Unit tests for the error taxonomy and the shared status code mapping."""

from concurrent.futures import ThreadPoolExecutor

import pytest
import requests

from weather_service import (
    CityNotFoundError,
    ErrorKind,
    InvalidInputError,
    InvalidURLError,
    NetworkError,
    ServerError,
    SessionProvider,
    provider_get,
    raise_for_provider_status,
)


def make_response(status_code: int) -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    return response


@pytest.mark.parametrize("status_code", [200, 204, 299])
def test_success_statuses_pass(status_code):
    raise_for_provider_status(make_response(status_code))


@pytest.mark.parametrize("status_code, expected_error", [
    (401, NetworkError),
    (403, NetworkError),
    (404, CityNotFoundError),
    (500, ServerError),
    (599, ServerError),
    (301, ServerError),
    (429, ServerError),
])
def test_error_statuses_are_mapped(status_code, expected_error):
    with pytest.raises(expected_error):
        raise_for_provider_status(make_response(status_code))


def test_every_kind_has_a_message():
    assert InvalidInputError().message == "Please enter a city name."
    assert CityNotFoundError().message == ErrorKind.CITY_NOT_FOUND.value[1]
    assert len({kind.value[0] for kind in ErrorKind}) == len(ErrorKind)


def test_network_error_repr_includes_cause():
    error = NetworkError(requests.exceptions.ConnectTimeout("timed out"))

    assert repr(error).startswith("NetworkError(ConnectTimeout(")
    assert error.message == "timed out"


@pytest.mark.asyncio
async def test_malformed_url_is_invalid_url():
    with pytest.raises(InvalidURLError):
        await provider_get(SessionProvider(), "not a url")


def test_each_thread_gets_its_own_session():
    sessions = SessionProvider()
    main_session = sessions.current()

    with ThreadPoolExecutor(max_workers=1) as executor:
        worker_session = executor.submit(sessions.current).result()

    assert sessions.current() is main_session
    assert worker_session is not main_session
    assert isinstance(worker_session, requests.Session)
