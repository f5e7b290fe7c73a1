"""
Tattooed World Backend — Google Geocoding Client
==================================================

What:  Turns a free-form address into latitude/longitude through the Google
       Geocoding HTTP API, plus the address helpers shared by the cache and
       the batch processor.
How:   One GET per address with httpx. Transient transport errors are retried
       with tenacity (exponential backoff + jitter); provider failures feed a
       circuit breaker.
Who:   GeocodingService (API endpoints) and GeocodingBatchProcessor.

Provider status mapping:
    HTTP 200 + "OK"                 → GeocodeResult
    HTTP 429 / "OVER_QUERY_LIMIT"   → GeocodeRateLimitError (callers wait and retry)
    "ZERO_RESULTS"                  → GeocodingError (address has no match)
    "REQUEST_DENIED", "INVALID_REQUEST", "UNKNOWN_ERROR", HTTP 5xx
                                    → GeocodingError + circuit breaker failure
    network error after retries     → GeocodingError("NETWORK_ERROR")
    no API key                      → GeocodingUnavailableError

No placeholder coordinates are ever returned: a failed lookup is an error.
"""

import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from tattooed_world.config import settings
from tattooed_world.exceptions import (
    GeocodeRateLimitError,
    GeocodingError,
    GeocodingUnavailableError,
)
from tattooed_world.services.resilience import CircuitBreaker

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "geocode:"

_WHITESPACE = re.compile(r"\s+")
_DISALLOWED = re.compile(r"[^\w\s,.\-]")
_COMMA = re.compile(r"\s*,\s*")
_DOT = re.compile(r"\s*\.\s*")
_HYPHEN = re.compile(r"\s*-\s*")


# ══════════════════════════════════════════════════════════════════════════
# Address helpers
# ══════════════════════════════════════════════════════════════════════════

def normalize_address(address: str) -> str:
    """
    Canonical form of an address, used as the cache key.

    "  12 High St ,LONDON  " and "12 high st, london" normalize to the same
    string. Steps: lower-case, collapse whitespace, drop punctuation other
    than , . and -, then fix spacing around those three.
    """
    value = _WHITESPACE.sub(" ", address.lower().strip())
    value = _DISALLOWED.sub("", value)
    value = _COMMA.sub(", ", value)
    value = _DOT.sub(". ", value)
    value = _HYPHEN.sub("-", value)
    return value.strip()


def cache_key(address: str) -> str:
    return CACHE_KEY_PREFIX + normalize_address(address)


def compose_address(
    address: Optional[str],
    city: Optional[str],
    state: Optional[str] = None,
    zip_code: Optional[str] = None,
    country: Optional[str] = None,
    default_country: Optional[str] = None,
) -> str:
    """
    Joins the non-empty address parts with ", ".

    Returns "" when there is neither a street address nor a city; a
    country on its own is not worth a lookup.
    """
    street = (address or "").strip()
    town = (city or "").strip()
    if not street and not town:
        return ""
    country = (country or "").strip() or (default_country or "").strip()
    parts = [street, town, (state or "").strip(), (zip_code or "").strip(), country]
    return ", ".join(part for part in parts if part)


def provider_backoff(min_wait: float, max_wait: float, jitter: float):
    """Wait before retry N: min(max_wait, min_wait * 2^(N-1)) + random(0, jitter)."""
    return wait_exponential(multiplier=min_wait, max=max_wait) + wait_random(0, jitter)


@dataclass
class GeocodeResult:
    latitude: float
    longitude: float
    formatted_address: Optional[str] = None
    cached: bool = False


# ══════════════════════════════════════════════════════════════════════════
# Google client
# ══════════════════════════════════════════════════════════════════════════

class GoogleGeocoder:
    """
    Thin async client for https://maps.googleapis.com/maps/api/geocode/json.

    `transport` lets tests plug in an httpx.MockTransport; in production it
    stays None and httpx opens real connections.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
    ):
        self.api_key = settings.google_maps_api_key if api_key is None else api_key
        self.base_url = base_url or settings.geocode_base_url
        self.timeout = timeout or settings.geocode_timeout
        self._transport = transport
        self.circuit_breaker = circuit_breaker or CircuitBreaker(
            failure_threshold=settings.cb_failure_threshold,
            recovery_timeout=settings.cb_recovery_timeout,
            name="google-geocoder",
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def state(self) -> str:
        if not self.configured:
            return "unconfigured"
        if self.circuit_breaker.is_open:
            return "circuit_open"
        return "configured"

    async def geocode(self, address: str) -> GeocodeResult:
        """
        Resolve one address.

        Raises:
            GeocodingUnavailableError: no API key configured
            CircuitBreakerOpenError: too many recent provider failures
            GeocodeRateLimitError: provider throttled us
            GeocodingError: no match, denied request, or provider unreachable
        """
        if not self.configured:
            raise GeocodingUnavailableError()

        self.circuit_breaker.can_execute()
        start = time.perf_counter()

        try:
            response = await self._get(address)
        except httpx.HTTPError as exc:
            self.circuit_breaker.record_failure()
            logger.error("Geocoding request failed for %r: %s", address, exc)
            raise GeocodingError(
                message="Geocoding provider is unreachable",
                status="NETWORK_ERROR",
                context={"error_type": type(exc).__name__},
            ) from exc

        if response.status_code == 429:
            raise GeocodeRateLimitError(context={"http_status": 429})
        if response.status_code >= 500:
            self.circuit_breaker.record_failure()
            raise GeocodingError(
                message=f"Geocoding provider returned HTTP {response.status_code}",
                status=f"HTTP_{response.status_code}",
            )
        if response.status_code >= 400:
            raise GeocodingError(
                message=f"Geocoding request rejected with HTTP {response.status_code}",
                status=f"HTTP_{response.status_code}",
            )

        try:
            payload: Dict[str, Any] = response.json()
        except ValueError as exc:
            self.circuit_breaker.record_failure()
            raise GeocodingError(
                message="Geocoding provider returned an invalid response",
                status="INVALID_RESPONSE",
            ) from exc

        result = self._parse(address, payload)
        logger.info(
            "Geocoded %r → (%.6f, %.6f) in %.0fms",
            address,
            result.latitude,
            result.longitude,
            (time.perf_counter() - start) * 1000,
        )
        return result

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=provider_backoff(
            settings.retry_min_wait, settings.retry_max_wait, settings.retry_jitter
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _get(self, address: str) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            return await client.get(
                self.base_url,
                params={"address": address, "key": self.api_key},
            )

    def _parse(self, address: str, payload: Dict[str, Any]) -> GeocodeResult:
        status = payload.get("status", "UNKNOWN_ERROR")

        if status == "OK" and payload.get("results"):
            first = payload["results"][0]
            location = first["geometry"]["location"]
            self.circuit_breaker.record_success()
            return GeocodeResult(
                latitude=float(location["lat"]),
                longitude=float(location["lng"]),
                formatted_address=first.get("formatted_address"),
            )

        if status == "OVER_QUERY_LIMIT":
            raise GeocodeRateLimitError(context={"provider_status": status})

        if status in ("ZERO_RESULTS", "OK"):
            self.circuit_breaker.record_success()
            raise GeocodingError(
                message=f"No results found for address: {address}",
                status="ZERO_RESULTS",
            )

        self.circuit_breaker.record_failure()
        raise GeocodingError(
            message=payload.get("error_message") or f"Geocoding failed with status {status}",
            status=status,
        )


geocoder = GoogleGeocoder()
