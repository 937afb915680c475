"""
Station-detail fan-out.

After every station list refresh, per-station info and access records are
fetched concurrently, collected behind a fan-in barrier, sorted by station
name and swapped into the snapshot cache as one replace per data kind.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, Sequence, TypeVar

from bart_facade.core.config import FanOutPolicy
from bart_facade.core.metrics import (
    observe_cache_refresh,
    record_fanout_item,
    record_refresh_failure,
)
from bart_facade.core.telemetry import annotate_span, refresh_span
from bart_facade.services.bart_client import BARTClient
from bart_facade.services.bart_dto import Station
from bart_facade.services.bart_errors import BARTServiceError, FanOutBatchError
from bart_facade.services.snapshot_cache import CacheSlot, SnapshotCache

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class FetchOutcome(Generic[T]):
    """Result of one per-station request: either a value or an error."""

    abbr: str
    value: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class BatchSummary:
    """Statistics for one data kind of a fan-out run."""

    kind: str
    total: int = 0
    stored: int = 0
    failed: list[str] = field(default_factory=list)
    carried_forward: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def committed(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "total": self.total,
            "stored": self.stored,
            "failed": self.failed,
            "carried_forward": self.carried_forward,
            "error": self.error,
        }


class StationDetailFanOut:
    """Fetch station info and access for a station list and publish both slots."""

    def __init__(
        self,
        client: BARTClient,
        cache: SnapshotCache,
        *,
        policy: FanOutPolicy = FanOutPolicy.BEST_EFFORT,
        max_concurrency: int = 0,
    ) -> None:
        self.client = client
        self.cache = cache
        self.policy = policy
        self.max_concurrency = max_concurrency

    async def run(self, stations: Sequence[Station]) -> dict[str, BatchSummary]:
        """Run both batches concurrently; each commits or fails on its own."""
        abbrs = list(dict.fromkeys(station.abbr for station in stations))
        logger.info("Fetching station details for %s stations", len(abbrs))

        info_summary, access_summary = await asyncio.gather(
            self._run_batch(
                "info", CacheSlot.STATION_INFO, abbrs, self.client.get_station_info
            ),
            self._run_batch(
                "access",
                CacheSlot.STATION_ACCESS,
                abbrs,
                self.client.get_station_access,
            ),
        )
        return {"info": info_summary, "access": access_summary}

    async def _run_batch(
        self,
        kind: str,
        slot: CacheSlot,
        abbrs: list[str],
        fetch: Callable[[str], Awaitable[Any]],
    ) -> BatchSummary:
        summary = BatchSummary(kind=kind, total=len(abbrs))
        with refresh_span(f"fanout.{kind}", stations=len(abbrs)) as span:
            await self._fill_batch(slot, abbrs, fetch, summary)
            annotate_span(
                span,
                stored=summary.stored,
                failed=len(summary.failed),
                carried_forward=len(summary.carried_forward),
                committed=summary.committed,
            )
        return summary

    async def _fill_batch(
        self,
        slot: CacheSlot,
        abbrs: list[str],
        fetch: Callable[[str], Awaitable[Any]],
        summary: BatchSummary,
    ) -> None:
        kind = summary.kind
        start = time.perf_counter()
        try:
            outcomes = await self._gather(kind, abbrs, fetch)
            previous = self.cache.get(slot) or ()
            records = self._aggregate(kind, outcomes, summary, previous)
        except Exception as exc:
            summary.error = str(exc)
            record_refresh_failure(slot.value)
            logger.error(
                "Station %s batch failed; keeping previous snapshot: %s", kind, exc
            )
            return

        self.cache.set(slot, records)
        summary.stored = len(records)
        observe_cache_refresh(slot.value, time.perf_counter() - start)
        logger.info(
            "Station %s cache refreshed: %s stored, %s failed",
            kind,
            summary.stored,
            len(summary.failed),
        )

    async def _gather(
        self,
        kind: str,
        abbrs: list[str],
        fetch: Callable[[str], Awaitable[Any]],
    ) -> list[FetchOutcome[Any]]:
        semaphore = (
            asyncio.Semaphore(self.max_concurrency) if self.max_concurrency > 0 else None
        )

        async def _fetch_one(abbr: str) -> FetchOutcome[Any]:
            try:
                if semaphore is None:
                    value = await fetch(abbr)
                else:
                    async with semaphore:
                        value = await fetch(abbr)
            except BARTServiceError as exc:
                record_fanout_item(kind, "error")
                logger.warning("Station %s request for %s failed: %s", kind, abbr, exc)
                return FetchOutcome(abbr=abbr, error=exc)
            record_fanout_item(kind, "success")
            return FetchOutcome(abbr=abbr, value=value)

        return list(await asyncio.gather(*(_fetch_one(abbr) for abbr in abbrs)))

    def _aggregate(
        self,
        kind: str,
        outcomes: list[FetchOutcome[Any]],
        summary: BatchSummary,
        previous: Sequence[Any] = (),
    ) -> list[Any]:
        failures = {outcome.abbr: outcome.error for outcome in outcomes if not outcome.ok}
        summary.failed = sorted(failures)

        if failures and (
            self.policy is FanOutPolicy.FAIL_FAST or len(failures) == len(outcomes)
        ):
            raise FanOutBatchError(kind, failures, len(outcomes))

        by_abbr: dict[str, Any] = {}
        for outcome in outcomes:
            if outcome.ok and outcome.abbr not in by_abbr:
                by_abbr[outcome.abbr] = outcome.value

        # Failed stations keep their record from the previous snapshot.
        previous_by_abbr = {record.abbr: record for record in previous}
        for abbr in summary.failed:
            if abbr in previous_by_abbr:
                by_abbr[abbr] = previous_by_abbr[abbr]
                summary.carried_forward.append(abbr)

        return sorted(by_abbr.values(), key=lambda record: (record.name, record.abbr))


__all__ = ["BatchSummary", "FetchOutcome", "StationDetailFanOut"]
