"""
Tattooed World Backend — Geocoding Batch Tests
================================================

What:  GeocodingBatchProcessor and GeocodingBatchController against the test
       database, a MockTransport geocoder and a recording sleep.

What we test:
    ✅ Only studios without real coordinates are selected (placeholder counts as missing)
    ✅ Successful lookups write coordinates and fill the cache
    ✅ Cached addresses never reach the provider
    ✅ A 429 waits and retries once, then the studio is marked failed
    ✅ One failing studio does not stop the rest
    ✅ Studios without address or city are skipped
    ✅ The stop flag halts the run before the next studio
    ✅ The controller refuses a second concurrent run
"""

import asyncio

import httpx
import pytest

from conftest import create_studio
from tattooed_world.exceptions import ConflictError, GeocodingUnavailableError
from tattooed_world.models import GeocodeStatus, Studio
from tattooed_world.services.geocode_cache import GeocodeCacheService
from tattooed_world.services.geocoder import GeocodeResult, GoogleGeocoder
from tattooed_world.services.geocoding_batch import (
    PLACEHOLDER_COORDINATES,
    GeocodingBatchController,
    GeocodingBatchProcessor,
)
from tattooed_world.services.resilience import CircuitBreaker


def ok(lat: float, lng: float) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "status": "OK",
            "results": [{"geometry": {"location": {"lat": lat, "lng": lng}}}],
        },
    )


class RecordingSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class TestBatchProcessor:

    def setup_method(self):
        self.requests = []
        self.responses = {}
        self.sleep = RecordingSleep()
        self.cache = GeocodeCacheService(ttl_seconds=3600)

    def handler(self, request: httpx.Request) -> httpx.Response:
        address = request.url.params["address"]
        self.requests.append(address)
        respond = self.responses.get(address, lambda: ok(1.0, 2.0))
        return respond()

    def processor(self, session_factory, **kwargs) -> GeocodingBatchProcessor:
        geocoder = GoogleGeocoder(
            api_key="test-key",
            transport=httpx.MockTransport(self.handler),
            circuit_breaker=CircuitBreaker(failure_threshold=10, recovery_timeout=60),
        )
        kwargs.setdefault("delay_seconds", 2.0)
        kwargs.setdefault("rate_limit_wait", 30.0)
        kwargs.setdefault("rate_limit_retries", 1)
        kwargs.setdefault("default_country", "United Kingdom")
        return GeocodingBatchProcessor(
            geocoder, self.cache, session_factory, sleep=self.sleep, **kwargs
        )

    async def _studio(self, session_factory, studio_id) -> Studio:
        async with session_factory() as db:
            return await db.get(Studio, studio_id)

    @pytest.mark.asyncio
    async def test_selects_only_pending(self, session_factory):
        located = await create_studio(
            session_factory, "Located", city="York", latitude=53.9, longitude=-1.1
        )
        placeholder = await create_studio(
            session_factory,
            "Placeholder",
            city="Leeds",
            latitude=PLACEHOLDER_COORDINATES[0],
            longitude=PLACEHOLDER_COORDINATES[1],
        )
        missing = await create_studio(session_factory, "Missing", city="Hull")
        await create_studio(session_factory, "Closed", city="Bath", is_active=False)

        report = await self.processor(session_factory).run()

        assert report.total == 2
        assert report.succeeded == 2
        assert sorted(self.requests) == ["Hull, United Kingdom", "Leeds, United Kingdom"]
        assert (await self._studio(session_factory, located.id)).latitude == 53.9
        for studio_id in (placeholder.id, missing.id):
            studio = await self._studio(session_factory, studio_id)
            assert (studio.latitude, studio.longitude) == (1.0, 2.0)
            assert studio.geocode_status == GeocodeStatus.OK.value

    @pytest.mark.asyncio
    async def test_delay_between_provider_calls(self, session_factory):
        for name in ("A", "B", "C"):
            await create_studio(session_factory, f"Studio {name}", city=f"Town {name}")

        await self.processor(session_factory, delay_seconds=2.0).run()

        assert self.sleep.calls == [2.0, 2.0]

    @pytest.mark.asyncio
    async def test_cache_hit_skips_provider(self, session_factory):
        studio = await create_studio(session_factory, "Cached", address="1 High St", city="York")
        async with session_factory() as db:
            await self.cache.set(
                db, "1 High St, York, United Kingdom", GeocodeResult(latitude=5.0, longitude=6.0)
            )
            await db.commit()

        report = await self.processor(session_factory).run()

        assert self.requests == []
        assert (report.succeeded, report.cached) == (1, 1)
        assert (await self._studio(session_factory, studio.id)).latitude == 5.0

    @pytest.mark.asyncio
    async def test_successful_lookup_fills_cache(self, session_factory):
        await create_studio(session_factory, "Fresh", city="York")

        await self.processor(session_factory).run()

        async with session_factory() as db:
            assert await self.cache.get(db, "york, united kingdom") is not None

    @pytest.mark.asyncio
    async def test_rate_limit_retried_once_then_failed(self, session_factory):
        studio = await create_studio(session_factory, "Throttled", city="York")
        self.responses["York, United Kingdom"] = lambda: httpx.Response(429)

        report = await self.processor(session_factory).run()

        assert self.requests == ["York, United Kingdom"] * 2
        assert self.sleep.calls == [30.0]
        assert report.rate_limited == 2
        assert report.failed == 1
        stored = await self._studio(session_factory, studio.id)
        assert stored.geocode_status == GeocodeStatus.FAILED.value
        assert stored.latitude is None

    @pytest.mark.asyncio
    async def test_rate_limit_recovers(self, session_factory):
        await create_studio(session_factory, "Throttled", city="York")
        replies = iter([httpx.Response(429), ok(7.0, 8.0)])
        self.responses["York, United Kingdom"] = lambda: next(replies)

        report = await self.processor(session_factory).run()

        assert report.succeeded == 1
        assert report.rate_limited == 1

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_batch(self, session_factory):
        bad = await create_studio(session_factory, "Bad", city="Atlantis")
        await create_studio(session_factory, "Good", city="York")
        self.responses["Atlantis, United Kingdom"] = lambda: httpx.Response(
            200, json={"status": "ZERO_RESULTS"}
        )

        report = await self.processor(session_factory).run()

        assert (report.processed, report.succeeded, report.failed) == (2, 1, 1)
        assert report.errors[0]["studio_id"] == str(bad.id)
        stored = await self._studio(session_factory, bad.id)
        assert stored.geocode_status == GeocodeStatus.FAILED.value
        assert "No results found" in stored.geocode_error

    @pytest.mark.asyncio
    async def test_empty_address_skipped(self, session_factory):
        studio = await create_studio(session_factory, "Nowhere", country="France")

        report = await self.processor(session_factory).run()

        assert report.skipped == 1
        assert self.requests == []
        stored = await self._studio(session_factory, studio.id)
        assert stored.geocode_status == GeocodeStatus.SKIPPED.value

    @pytest.mark.asyncio
    async def test_stop_flag_halts_run(self, session_factory):
        for name in ("A", "B", "C"):
            await create_studio(session_factory, f"Studio {name}", city=f"Town {name}")
        processor = self.processor(session_factory)

        def stopping_handler(request):
            processor.request_stop()
            return self.handler(request)

        processor.geocoder = GoogleGeocoder(
            api_key="test-key", transport=httpx.MockTransport(stopping_handler)
        )

        report = await processor.run()

        assert report.stopped is True
        assert report.processed == 1
        assert len(self.requests) == 1

    @pytest.mark.asyncio
    async def test_open_circuit_halts_run(self, session_factory):
        for name in ("A", "B", "C", "D"):
            await create_studio(session_factory, f"Studio {name}", city=f"Town {name}")
        processor = self.processor(session_factory)

        def failing_handler(request):
            self.requests.append(request.url.params["address"])
            return httpx.Response(500)

        processor.geocoder = GoogleGeocoder(
            api_key="test-key",
            transport=httpx.MockTransport(failing_handler),
            circuit_breaker=CircuitBreaker(failure_threshold=2, recovery_timeout=60),
        )

        report = await processor.run()

        assert report.stopped is True
        assert (report.processed, report.failed) == (2, 2)
        assert len(self.requests) == 2

    @pytest.mark.asyncio
    async def test_limit(self, session_factory):
        for name in ("A", "B", "C"):
            await create_studio(session_factory, f"Studio {name}", city=f"Town {name}")

        report = await self.processor(session_factory).run(limit=2)

        assert report.total == 2

    @pytest.mark.asyncio
    async def test_unconfigured_geocoder_refuses_to_run(self, session_factory):
        processor = self.processor(session_factory)
        processor.geocoder = GoogleGeocoder(api_key="")

        with pytest.raises(GeocodingUnavailableError):
            await processor.run()


class TestBatchController:

    @pytest.mark.asyncio
    async def test_single_run_at_a_time(self, session_factory):
        await create_studio(session_factory, "Slow", city="York")
        waiting = asyncio.Event()
        release = asyncio.Event()

        async def slow_sleep(seconds):
            waiting.set()
            await release.wait()

        geocoder = GoogleGeocoder(
            api_key="test-key", transport=httpx.MockTransport(lambda r: httpx.Response(429))
        )
        processor = GeocodingBatchProcessor(
            geocoder,
            GeocodeCacheService(),
            session_factory,
            rate_limit_wait=1,
            rate_limit_retries=1,
            sleep=slow_sleep,
        )
        controller = GeocodingBatchController(processor)

        controller.start()
        await asyncio.wait_for(waiting.wait(), timeout=5)
        assert controller.running is True
        with pytest.raises(ConflictError):
            controller.start()

        assert controller.stop() is True
        release.set()
        await controller.wait()

        status = controller.status()
        assert status["running"] is False
        assert status["report"]["failed"] == 1
        assert controller.stop() is False

    @pytest.mark.asyncio
    async def test_stop_right_after_start_is_honoured(self, session_factory):
        for name in ("A", "B", "C"):
            await create_studio(session_factory, f"Studio {name}", city=f"Town {name}")
        requests = []

        def handler(request):
            requests.append(request)
            return ok(1.0, 2.0)

        processor = GeocodingBatchProcessor(
            GoogleGeocoder(api_key="test-key", transport=httpx.MockTransport(handler)),
            GeocodeCacheService(),
            session_factory,
            delay_seconds=0,
        )
        controller = GeocodingBatchController(processor)

        controller.start()
        assert controller.stop() is True
        await controller.wait()

        report = controller.status()["report"]
        assert report["stopped"] is True
        assert report["processed"] == 0
        assert requests == []

    @pytest.mark.asyncio
    async def test_new_run_clears_previous_stop(self, session_factory):
        await create_studio(session_factory, "Only", city="York")
        geocoder = GoogleGeocoder(
            api_key="test-key", transport=httpx.MockTransport(lambda r: ok(1.0, 2.0))
        )
        processor = GeocodingBatchProcessor(
            geocoder, GeocodeCacheService(), session_factory, delay_seconds=0
        )
        processor.request_stop()
        controller = GeocodingBatchController(processor)

        controller.start()
        await controller.wait()

        assert controller.status()["report"]["succeeded"] == 1
