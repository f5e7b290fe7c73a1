"""
Tattooed World Backend — Google Geocoder Tests
================================================

What:  GoogleGeocoder against httpx.MockTransport; no network access.

What we test:
    ✅ Address helpers: normalization, cache keys, composition
    ✅ OK response → coordinates; API key and address sent as query params
    ✅ ZERO_RESULTS → GeocodingError without tripping the breaker
    ✅ HTTP 429 / OVER_QUERY_LIMIT → GeocodeRateLimitError
    ✅ Repeated 5xx opens the circuit breaker
    ✅ No API key → GeocodingUnavailableError without any request
"""

import warnings
from unittest.mock import MagicMock

import httpx
import pytest

from tattooed_world.exceptions import (
    CircuitBreakerOpenError,
    GeocodeRateLimitError,
    GeocodingError,
    GeocodingUnavailableError,
)
from tattooed_world.services.geocoder import (
    GoogleGeocoder,
    cache_key,
    compose_address,
    normalize_address,
    provider_backoff,
)
from tattooed_world.services.resilience import CircuitBreaker


def ok_payload(lat: float = 51.5, lng: float = -0.12) -> dict:
    return {
        "status": "OK",
        "results": [
            {
                "formatted_address": "1 High St, London, UK",
                "geometry": {"location": {"lat": lat, "lng": lng}},
            }
        ],
    }


def make_geocoder(handler, threshold: int = 3, api_key: str = "test-key") -> GoogleGeocoder:
    return GoogleGeocoder(
        api_key=api_key,
        base_url="https://geocode.test/json",
        transport=httpx.MockTransport(handler),
        circuit_breaker=CircuitBreaker(failure_threshold=threshold, recovery_timeout=60),
    )


class TestAddressHelpers:

    def test_normalize_collapses_case_space_and_punctuation(self):
        assert normalize_address("  12 High St ,LONDON  ") == "12 high st, london"
        assert normalize_address("12 High St, London!") == normalize_address("12 high st , london")

    def test_normalize_keeps_accented_letters(self):
        assert normalize_address("Rue de l'Église, Montréal") == "rue de léglise, montréal"

    def test_cache_key_prefix(self):
        assert cache_key("1 High St") == "geocode:1 high st"

    def test_compose_address(self):
        assert compose_address("1 High St", "York", None, "YO1", None, "United Kingdom") == (
            "1 High St, York, YO1, United Kingdom"
        )
        assert compose_address(None, "Paris", country="France") == "Paris, France"
        assert compose_address("  ", None, country="Spain") == ""


class TestProviderBackoff:

    def test_wait_grows_and_is_capped(self):
        backoff = provider_backoff(min_wait=2, max_wait=10, jitter=1)

        first = backoff(MagicMock(attempt_number=1))
        third = backoff(MagicMock(attempt_number=3))
        capped = backoff(MagicMock(attempt_number=6))

        assert 2 <= first <= 3
        assert 8 <= third <= 9
        assert 10 <= capped <= 11

    def test_zero_settings_never_wait(self):
        backoff = provider_backoff(min_wait=0, max_wait=0, jitter=0)

        assert backoff(MagicMock(attempt_number=4)) == 0

    def test_builds_without_deprecation_warnings(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            provider_backoff(min_wait=1, max_wait=5, jitter=1)


class TestGoogleGeocoder:

    @pytest.mark.asyncio
    async def test_ok_response(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=ok_payload())

        geocoder = make_geocoder(handler)
        result = await geocoder.geocode("1 High St, London")

        assert (result.latitude, result.longitude) == (51.5, -0.12)
        assert result.formatted_address == "1 High St, London, UK"
        assert result.cached is False
        assert seen["params"] == {"address": "1 High St, London", "key": "test-key"}

    @pytest.mark.asyncio
    async def test_zero_results(self):
        geocoder = make_geocoder(lambda r: httpx.Response(200, json={"status": "ZERO_RESULTS"}))

        with pytest.raises(GeocodingError) as exc_info:
            await geocoder.geocode("nowhere at all")

        assert exc_info.value.status == "ZERO_RESULTS"
        assert geocoder.circuit_breaker.failure_count == 0

    @pytest.mark.asyncio
    async def test_http_429_is_rate_limit(self):
        geocoder = make_geocoder(lambda r: httpx.Response(429))

        with pytest.raises(GeocodeRateLimitError):
            await geocoder.geocode("1 High St")

    @pytest.mark.asyncio
    async def test_over_query_limit_is_rate_limit(self):
        geocoder = make_geocoder(
            lambda r: httpx.Response(200, json={"status": "OVER_QUERY_LIMIT"})
        )

        with pytest.raises(GeocodeRateLimitError):
            await geocoder.geocode("1 High St")

    @pytest.mark.asyncio
    async def test_request_denied_counts_as_failure(self):
        geocoder = make_geocoder(
            lambda r: httpx.Response(
                200, json={"status": "REQUEST_DENIED", "error_message": "Bad key"}
            )
        )

        with pytest.raises(GeocodingError) as exc_info:
            await geocoder.geocode("1 High St")

        assert exc_info.value.message == "Bad key"
        assert geocoder.circuit_breaker.failure_count == 1

    @pytest.mark.asyncio
    async def test_server_errors_open_breaker(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503)

        geocoder = make_geocoder(handler, threshold=2)
        for _ in range(2):
            with pytest.raises(GeocodingError):
                await geocoder.geocode("1 High St")

        with pytest.raises(CircuitBreakerOpenError):
            await geocoder.geocode("1 High St")
        assert len(calls) == 2
        assert geocoder.state() == "circuit_open"

    @pytest.mark.asyncio
    async def test_network_error_retried_then_reported(self):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        geocoder = make_geocoder(handler)

        with pytest.raises(GeocodingError) as exc_info:
            await geocoder.geocode("1 High St")

        assert exc_info.value.status == "NETWORK_ERROR"
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_unconfigured(self):
        def handler(request):
            raise AssertionError("no request expected")

        geocoder = make_geocoder(handler, api_key="")

        with pytest.raises(GeocodingUnavailableError):
            await geocoder.geocode("1 High St")
        assert geocoder.state() == "unconfigured"
