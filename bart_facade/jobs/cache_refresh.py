"""
Refresh cycles for the BART snapshot cache.

Each cycle fetches, normalizes and stores one kind of reference data. A
failed cycle leaves the previous snapshot in place until the next tick.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any

from bart_facade.core.config import Settings, get_settings
from bart_facade.core.metrics import observe_cache_refresh, record_refresh_failure
from bart_facade.core.telemetry import annotate_span, refresh_span
from bart_facade.jobs.station_detail_fanout import BatchSummary, StationDetailFanOut
from bart_facade.services.bart_client import BARTClient
from bart_facade.services.bart_mapping import NameCorrections
from bart_facade.services.bart_transport import BARTTransport
from bart_facade.services.snapshot_cache import CacheSlot, SnapshotCache

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RefreshSummary:
    """Outcome of one refresh cycle."""

    cycle: str
    succeeded: bool = False
    records: int = 0
    error: str | None = None
    batches: dict[str, BatchSummary] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "cycle": self.cycle,
            "succeeded": self.succeeded,
            "records": self.records,
            "error": self.error,
            "batches": {kind: batch.to_dict() for kind, batch in self.batches.items()},
        }


class StationListRefreshJob:
    """Refresh the station list, then fan out for per-station details."""

    def __init__(
        self,
        client: BARTClient,
        cache: SnapshotCache,
        fanout: StationDetailFanOut,
    ) -> None:
        self.client = client
        self.cache = cache
        self.fanout = fanout

    async def run(self) -> RefreshSummary:
        summary = RefreshSummary(cycle=CacheSlot.STATION_LIST.value)
        with refresh_span(summary.cycle) as span:
            await self._refresh(summary)
            annotate_span(
                span,
                succeeded=summary.succeeded,
                records=summary.records,
                error=summary.error,
            )
        return summary

    async def _refresh(self, summary: RefreshSummary) -> None:
        logger.info("Refreshing Station List cache...")
        start = time.perf_counter()

        try:
            stations = await self.client.get_station_list()
        except Exception as exc:
            summary.error = str(exc)
            record_refresh_failure(CacheSlot.STATION_LIST.value)
            logger.error("Station list refresh failed; keeping previous snapshot: %s", exc)
            return

        if not stations:
            summary.error = "BART returned an empty station list"
            record_refresh_failure(CacheSlot.STATION_LIST.value)
            logger.warning("No stations returned from BART; keeping previous snapshot")
            return

        self.cache.set(CacheSlot.STATION_LIST, stations)
        observe_cache_refresh(CacheSlot.STATION_LIST.value, time.perf_counter() - start)
        summary.succeeded = True
        summary.records = len(stations)
        logger.info("Station List cache refreshed with %s stations", len(stations))

        summary.batches = await self.fanout.run(stations)


class ElevatorStatusRefreshJob:
    """Refresh the system-wide elevator status snapshot."""

    def __init__(self, client: BARTClient, cache: SnapshotCache) -> None:
        self.client = client
        self.cache = cache

    async def run(self) -> RefreshSummary:
        summary = RefreshSummary(cycle=CacheSlot.ELEVATOR_STATUS.value)
        with refresh_span(summary.cycle) as span:
            await self._refresh(summary)
            annotate_span(
                span,
                succeeded=summary.succeeded,
                records=summary.records,
                error=summary.error,
            )
        return summary

    async def _refresh(self, summary: RefreshSummary) -> None:
        logger.info("Refreshing Elevator status cache...")
        start = time.perf_counter()

        try:
            status = await self.client.get_elevator_status()
        except Exception as exc:
            summary.error = str(exc)
            record_refresh_failure(CacheSlot.ELEVATOR_STATUS.value)
            logger.error(
                "Elevator status refresh failed; keeping previous snapshot: %s", exc
            )
            return

        self.cache.set(CacheSlot.ELEVATOR_STATUS, status)
        observe_cache_refresh(
            CacheSlot.ELEVATOR_STATUS.value, time.perf_counter() - start
        )
        summary.succeeded = True
        summary.records = len(status.advisories)
        logger.info("Elevator status cache refreshed.")


def build_refresh_jobs(
    client: BARTClient, cache: SnapshotCache, settings: Settings
) -> tuple[StationListRefreshJob, ElevatorStatusRefreshJob]:
    """Wire both refresh cycles against one client and one cache."""
    fanout = StationDetailFanOut(
        client,
        cache,
        policy=settings.fanout_policy,
        max_concurrency=settings.fanout_max_concurrency,
    )
    return (
        StationListRefreshJob(client, cache, fanout),
        ElevatorStatusRefreshJob(client, cache),
    )


async def run_cache_refresh(settings: Settings | None = None) -> list[RefreshSummary]:
    """Run both cycles once against a fresh cache. Convenience helper for scripts."""
    settings = settings or get_settings()
    cache = SnapshotCache()
    async with BARTTransport(settings.bart_api_key) as transport:
        client = BARTClient(
            transport, NameCorrections(settings.station_name_corrections)
        )
        station_job, elevator_job = build_refresh_jobs(client, cache, settings)
        return list(await asyncio.gather(station_job.run(), elevator_job.run()))


def _configure_logging() -> None:
    if logging.getLogger().handlers:
        return
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def _main() -> None:
    _configure_logging()
    summaries = asyncio.run(run_cache_refresh())
    for summary in summaries:
        logger.info("Refresh completed: %s", json.dumps(summary.to_dict()))


if __name__ == "__main__":
    _main()
