"""
Tattooed World Backend — Studio Geocoding Batch
=================================================

What:  Fills in latitude/longitude for every active studio that lacks them.
How:   Strictly sequential: one studio, at most one provider call, at a time.
Who:   Started from POST /api/geocoding/batch/start (background task) or
       from the `tattooed-world geocode-studios` CLI command.

Per-studio flow:
    ┌──────────────┐   empty    ┌──────────┐
    │ compose addr │──────────▶│ skipped  │
    └──────┬───────┘            └──────────┘
           ▼
    ┌──────────────┐    hit     ┌──────────┐
    │ cache lookup │──────────▶│ ok       │  (no provider call, no delay)
    └──────┬───────┘            └──────────┘
           ▼ miss
    ┌──────────────┐  429 → wait rate_limit_wait, retry (≤ rate_limit_retries)
    │ provider call│──────────────────────────────────────────────┐
    └──────┬───────┘                                              ▼
           ▼ OK                                             ┌──────────┐
    write lat/lng + updated_at, cache result, commit        │ failed   │
                                                            └──────────┘

Pacing:
    A fixed `delay_seconds` sleep separates two consecutive provider calls.

Failure semantics:
    Every record is committed on its own. A failure marks that studio
    `failed` with the reason and the loop moves on; nothing is rolled back
    for studios already processed. The loop ends early only when the stop
    flag is raised or the provider circuit breaker opens.

Selection:
    Active studios with latitude or longitude NULL, plus studios still
    carrying the placeholder coordinates an earlier importer wrote for
    unresolvable addresses. Studios with real coordinates are never touched.
"""

import asyncio
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from tattooed_world.config import settings
from tattooed_world.exceptions import (
    CircuitBreakerOpenError,
    ConflictError,
    GeocodeRateLimitError,
    GeocodingError,
    GeocodingUnavailableError,
)
from tattooed_world.models import GeocodeStatus, Studio
from tattooed_world.models.common import utcnow
from tattooed_world.services.geocode_cache import GeocodeCacheService
from tattooed_world.services.geocoder import GeocodeResult, GoogleGeocoder, compose_address

logger = logging.getLogger(__name__)

# Coordinates (central Montreal) written by the legacy importer when a lookup failed
PLACEHOLDER_COORDINATES = (45.5017, -73.5673)

MAX_REPORTED_ERRORS = 50

Sleeper = Callable[[float], Awaitable[None]]


@dataclass
class BatchReport:
    total: int = 0
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    cached: int = 0
    rate_limited: int = 0
    stopped: bool = False
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    errors: List[Dict[str, str]] = field(default_factory=list)

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.started_at is None:
            return None
        end = self.finished_at or utcnow()
        return round((end - self.started_at).total_seconds(), 3)

    def add_error(self, studio_id: Any, reason: str) -> None:
        if len(self.errors) < MAX_REPORTED_ERRORS:
            self.errors.append({"studio_id": str(studio_id), "error": reason})

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["duration_seconds"] = self.duration_seconds
        return data


def pending_studios_filter():
    """SQL condition selecting studios that still need coordinates."""
    lat, lng = PLACEHOLDER_COORDINATES
    return and_(
        Studio.is_active.is_(True),
        or_(
            Studio.latitude.is_(None),
            Studio.longitude.is_(None),
            and_(Studio.latitude == lat, Studio.longitude == lng),
        ),
    )


class GeocodingBatchProcessor:
    def __init__(
        self,
        geocoder: GoogleGeocoder,
        cache: GeocodeCacheService,
        session_factory: async_sessionmaker,
        *,
        delay_seconds: Optional[float] = None,
        rate_limit_wait: Optional[float] = None,
        rate_limit_retries: Optional[int] = None,
        default_country: Optional[str] = None,
        sleep: Sleeper = asyncio.sleep,
    ):
        self.geocoder = geocoder
        self.cache = cache
        self.session_factory = session_factory
        self.delay_seconds = (
            settings.geocode_delay_seconds if delay_seconds is None else delay_seconds
        )
        self.rate_limit_wait = (
            settings.geocode_rate_limit_wait_seconds if rate_limit_wait is None else rate_limit_wait
        )
        self.rate_limit_retries = (
            settings.geocode_rate_limit_retries
            if rate_limit_retries is None
            else rate_limit_retries
        )
        self.default_country = (
            settings.geocode_default_country if default_country is None else default_country
        )
        self._sleep = sleep
        self._stop_requested = False
        self.current_report: Optional[BatchReport] = None

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    def request_stop(self) -> None:
        self._stop_requested = True

    def clear_stop(self) -> None:
        self._stop_requested = False

    async def select_pending(self, db: AsyncSession, limit: Optional[int] = None) -> List[Studio]:
        query = select(Studio).where(pending_studios_filter()).order_by(Studio.created_at.asc())
        if limit:
            query = query.limit(limit)
        return list((await db.execute(query)).scalars().all())

    def compose(self, studio: Studio) -> str:
        return compose_address(
            studio.address,
            studio.city,
            studio.state,
            studio.zip_code,
            studio.country,
            default_country=self.default_country,
        )

    async def run(self, limit: Optional[int] = None) -> BatchReport:
        """
        Process pending studios once and return the report.

        Raises:
            GeocodingUnavailableError: no API key, nothing would succeed.
        """
        if not self.geocoder.configured:
            raise GeocodingUnavailableError()

        report = BatchReport(started_at=utcnow())
        self.current_report = report
        provider_calls = 0

        async with self.session_factory() as db:
            # IDs only: a rollback expires loaded rows, each studio is re-read below
            studio_ids = [studio.id for studio in await self.select_pending(db, limit)]
            report.total = len(studio_ids)
            logger.info("Geocoding batch started: %d studios pending", report.total)

            for studio_id in studio_ids:
                if self._stop_requested:
                    report.stopped = True
                    logger.info("Geocoding batch stop requested; halting")
                    break

                studio = await db.get(Studio, studio_id)
                if studio is None:
                    continue
                report.processed += 1

                address = self.compose(studio)
                if not address:
                    studio.geocode_status = GeocodeStatus.SKIPPED.value
                    studio.geocode_error = "No address or city to geocode"
                    studio.updated_at = utcnow()
                    if await self._commit(db, studio_id, report):
                        report.skipped += 1
                    continue

                cached = await self.cache.get(db, address)
                if cached is not None:
                    studio.mark_geocoded(cached.latitude, cached.longitude)
                    if await self._commit(db, studio_id, report):
                        report.succeeded += 1
                        report.cached += 1
                    continue

                if provider_calls:
                    await self._sleep(self.delay_seconds)
                provider_calls += 1

                try:
                    result = await self._geocode_with_retry(address, report)
                except CircuitBreakerOpenError as exc:
                    report.processed -= 1
                    report.stopped = True
                    logger.error("Geocoding batch halted: %s", exc.message)
                    break
                except GeocodingError as exc:
                    studio.mark_geocode_failed(exc.message)
                    if await self._commit(db, studio_id, report):
                        report.failed += 1
                        report.add_error(studio_id, exc.message)
                    logger.warning(
                        "Geocoding failed for studio %s (%s): %s", studio_id, address, exc.message
                    )
                    continue

                studio.mark_geocoded(result.latitude, result.longitude)
                try:
                    await self.cache.set(db, address, result)
                except SQLAlchemyError as exc:
                    logger.error("Could not cache geocode for %r: %s", address, exc)
                    await db.rollback()
                    studio = await db.get(Studio, studio_id)
                    studio.mark_geocoded(result.latitude, result.longitude)
                if await self._commit(db, studio_id, report):
                    report.succeeded += 1

        report.finished_at = utcnow()
        logger.info(
            "Geocoding batch finished: processed=%d ok=%d failed=%d skipped=%d cached=%d "
            "rate_limited=%d stopped=%s in %.1fs",
            report.processed,
            report.succeeded,
            report.failed,
            report.skipped,
            report.cached,
            report.rate_limited,
            report.stopped,
            report.duration_seconds or 0.0,
        )
        return report

    async def _geocode_with_retry(self, address: str, report: BatchReport) -> GeocodeResult:
        """One provider lookup; a 429 waits `rate_limit_wait` and tries again."""
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(GeocodeRateLimitError),
            stop=stop_after_attempt(self.rate_limit_retries + 1),
            wait=wait_fixed(self.rate_limit_wait),
            sleep=self._sleep,
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                try:
                    return await self.geocoder.geocode(address)
                except GeocodeRateLimitError:
                    report.rate_limited += 1
                    raise
        raise GeocodingError(message="Geocoding retries exhausted")

    async def _commit(self, db: AsyncSession, studio_id: Any, report: BatchReport) -> bool:
        """Commit one studio; a database failure is recorded against that studio only."""
        try:
            await db.commit()
            return True
        except SQLAlchemyError as exc:
            await db.rollback()
            reason = f"Database error while saving: {type(exc).__name__}"
            report.failed += 1
            report.add_error(studio_id, reason)
            logger.error("Could not save geocode result for studio %s: %s", studio_id, exc)
            return False


class GeocodingBatchController:
    """
    Runs at most one batch at a time in the background of the API process.

    start()  → 409 ConflictError while a run is in progress
    stop()   → raises the processor's stop flag; the loop exits before the next studio
    status() → live report of the current run, or the last finished one
    """

    def __init__(self, processor: GeocodingBatchProcessor):
        self.processor = processor
        self._task: Optional[asyncio.Task] = None
        self.last_report: Optional[BatchReport] = None
        self.last_error: Optional[str] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, limit: Optional[int] = None) -> None:
        if self.running:
            raise ConflictError("A geocoding batch is already running")
        if not self.processor.geocoder.configured:
            raise GeocodingUnavailableError()
        self.last_error = None
        # Cleared here, not in run(): a stop() issued before the task first runs must hold
        self.processor.clear_stop()
        self._task = asyncio.create_task(self._run(limit), name="geocoding-batch")

    async def _run(self, limit: Optional[int]) -> None:
        try:
            self.last_report = await self.processor.run(limit)
        except Exception as exc:
            self.last_error = str(exc) or type(exc).__name__
            logger.exception("Geocoding batch crashed")

    def stop(self) -> bool:
        if not self.running:
            return False
        self.processor.request_stop()
        return True

    async def wait(self) -> None:
        if self._task is not None:
            await self._task

    def status(self) -> Dict[str, Any]:
        report = self.processor.current_report if self.running else self.last_report
        return {
            "running": self.running,
            "stop_requested": self.processor.stop_requested,
            "report": report.to_dict() if report else None,
            "last_error": self.last_error,
        }


def build_batch_controller() -> GeocodingBatchController:
    from tattooed_world.database import async_session_factory
    from tattooed_world.services.geocode_cache import geocode_cache
    from tattooed_world.services.geocoder import geocoder

    return GeocodingBatchController(
        GeocodingBatchProcessor(geocoder, geocode_cache, async_session_factory)
    )


batch_controller = build_batch_controller()
