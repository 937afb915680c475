"""
Unit tests for StationDetailFanOut.

Covers fan-in ordering, failure policies and the concurrency cap.
"""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

import bart_facade.core.telemetry as telemetry
from bart_facade.core.config import FanOutPolicy
from bart_facade.jobs.station_detail_fanout import StationDetailFanOut
from bart_facade.services.bart_dto import Station
from bart_facade.services.bart_errors import ParseError, TransportError
from bart_facade.services.snapshot_cache import CacheSlot, SnapshotCache
from tests.fixtures import bart_payloads

STATIONS = [
    Station(abbr=abbr, name=name, latitude=lat, longitude=lon)
    for abbr, name, lat, lon in bart_payloads.DEFAULT_STATIONS
]


class StubRecord:
    def __init__(self, abbr: str, name: str):
        self.abbr = abbr
        self.name = name

    def __repr__(self) -> str:
        return f"StubRecord({self.abbr!r})"


class StubClient:
    """Answers per-station calls after a per-abbreviation delay."""

    def __init__(self, delays=None, failures=None):
        self.names = {station.abbr: station.name for station in STATIONS}
        self.delays = delays or {}
        self.failures = failures or {}
        self.in_flight = 0
        self.max_in_flight = 0
        self.calls: list[tuple[str, str]] = []

    async def _answer(self, kind: str, abbr: str) -> StubRecord:
        self.calls.append((kind, abbr))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(abbr, 0))
            failure = self.failures.get((kind, abbr))
            if failure is not None:
                raise failure
            return StubRecord(abbr, self.names[abbr])
        finally:
            self.in_flight -= 1

    async def get_station_info(self, abbr: str) -> StubRecord:
        return await self._answer("info", abbr)

    async def get_station_access(self, abbr: str) -> StubRecord:
        return await self._answer("access", abbr)


def _abbrs(records) -> list[str]:
    return [record.abbr for record in records]


@pytest.mark.asyncio
async def test_one_record_per_station_sorted_by_name_regardless_of_completion_order():
    # Reverse completion order relative to the station list.
    client = StubClient(delays={"12TH": 0.03, "COLS": 0.02, "EMBR": 0.01, "MONT": 0})
    cache = SnapshotCache()
    fanout = StationDetailFanOut(client, cache)

    summaries = await fanout.run(STATIONS)

    expected = ["12TH", "COLS", "EMBR", "MONT"]
    assert _abbrs(cache.require(CacheSlot.STATION_INFO)) == expected
    assert _abbrs(cache.require(CacheSlot.STATION_ACCESS)) == expected
    assert summaries["info"].stored == 4
    assert summaries["access"].committed


@pytest.mark.asyncio
async def test_duplicate_stations_are_fetched_once():
    client = StubClient()
    cache = SnapshotCache()

    await StationDetailFanOut(client, cache).run(STATIONS + STATIONS[:2])

    assert len(cache.require(CacheSlot.STATION_INFO)) == 4
    assert len([call for call in client.calls if call[0] == "info"]) == 4


@pytest.mark.asyncio
async def test_best_effort_on_first_run_stores_partial_batch():
    client = StubClient(failures={("info", "EMBR"): TransportError("timeout")})
    cache = SnapshotCache()

    summaries = await StationDetailFanOut(client, cache).run(STATIONS)

    assert _abbrs(cache.require(CacheSlot.STATION_INFO)) == ["12TH", "COLS", "MONT"]
    assert summaries["info"].failed == ["EMBR"]
    assert summaries["info"].carried_forward == []
    assert summaries["info"].committed
    assert len(cache.require(CacheSlot.STATION_ACCESS)) == 4


@pytest.mark.asyncio
async def test_best_effort_keeps_previous_record_of_failed_station():
    cache = SnapshotCache()
    await StationDetailFanOut(StubClient(), cache).run(STATIONS)
    previous_embr = next(
        record
        for record in cache.require(CacheSlot.STATION_INFO)
        if record.abbr == "EMBR"
    )
    client = StubClient(failures={("info", "EMBR"): TransportError("timeout")})

    summaries = await StationDetailFanOut(client, cache).run(STATIONS)

    infos = cache.require(CacheSlot.STATION_INFO)
    assert _abbrs(infos) == ["12TH", "COLS", "EMBR", "MONT"]
    assert next(record for record in infos if record.abbr == "EMBR") is previous_embr
    assert summaries["info"].failed == ["EMBR"]
    assert summaries["info"].carried_forward == ["EMBR"]
    assert summaries["info"].stored == 4


@pytest.mark.asyncio
async def test_all_failures_keep_previous_snapshot():
    failures = {("info", station.abbr): ParseError("bad") for station in STATIONS}
    client = StubClient(failures=failures)
    cache = SnapshotCache()
    previous = [StubRecord("OLD", "Old Station")]
    cache.set(CacheSlot.STATION_INFO, previous)

    summaries = await StationDetailFanOut(client, cache).run(STATIONS)

    assert _abbrs(cache.require(CacheSlot.STATION_INFO)) == ["OLD"]
    assert not summaries["info"].committed
    assert summaries["info"].failed == ["12TH", "COLS", "EMBR", "MONT"]
    # The access batch is independent of the failed info batch.
    assert len(cache.require(CacheSlot.STATION_ACCESS)) == 4


@pytest.mark.asyncio
async def test_fail_fast_keeps_previous_snapshot_on_single_failure():
    client = StubClient(failures={("access", "MONT"): TransportError("HTTP 500")})
    cache = SnapshotCache()
    cache.set(CacheSlot.STATION_ACCESS, [StubRecord("OLD", "Old Station")])

    summaries = await StationDetailFanOut(
        client, cache, policy=FanOutPolicy.FAIL_FAST
    ).run(STATIONS)

    assert _abbrs(cache.require(CacheSlot.STATION_ACCESS)) == ["OLD"]
    assert summaries["access"].error is not None
    assert summaries["access"].to_dict()["failed"] == ["MONT"]
    assert len(cache.require(CacheSlot.STATION_INFO)) == 4


@pytest.mark.asyncio
async def test_failed_batch_on_empty_cache_leaves_slot_not_ready():
    failures = {("access", station.abbr): TransportError("down") for station in STATIONS}
    cache = SnapshotCache()

    await StationDetailFanOut(StubClient(failures=failures), cache).run(STATIONS)

    assert not cache.is_ready(CacheSlot.STATION_ACCESS)
    assert cache.is_ready(CacheSlot.STATION_INFO)


@pytest.mark.asyncio
async def test_unexpected_error_fails_the_batch():
    client = StubClient(failures={("info", "12TH"): RuntimeError("bug")})
    cache = SnapshotCache()

    summaries = await StationDetailFanOut(client, cache).run(STATIONS)

    assert "bug" in summaries["info"].error
    assert not cache.is_ready(CacheSlot.STATION_INFO)


@pytest.mark.asyncio
async def test_concurrency_cap_limits_in_flight_requests():
    client = StubClient(delays={station.abbr: 0.01 for station in STATIONS})
    cache = SnapshotCache()

    await StationDetailFanOut(client, cache, max_concurrency=1).run(STATIONS)

    # One batch per kind, each capped at one request in flight.
    assert client.max_in_flight == 2


@pytest.mark.asyncio
async def test_unbounded_concurrency():
    client = StubClient(delays={station.abbr: 0.01 for station in STATIONS})
    cache = SnapshotCache()

    await StationDetailFanOut(client, cache, max_concurrency=0).run(STATIONS)

    assert client.max_in_flight == 8


@pytest.mark.asyncio
async def test_fanout_with_real_client(bart_client, snapshot_cache, fake_bart):
    summaries = await StationDetailFanOut(bart_client, snapshot_cache).run(STATIONS)

    infos = snapshot_cache.require(CacheSlot.STATION_INFO)
    assert [info.name for info in infos] == [
        "12th St. Oakland City Center",
        "Coliseum",
        "Embarcadero",
        "Montgomery St.",
    ]
    assert summaries["access"].stored == 4
    assert sorted(orig for cmd, orig in fake_bart.commands() if cmd == "stninfo") == [
        "12TH",
        "COLS",
        "EMBR",
        "MONT",
    ]


def test_default_policy_is_best_effort():
    fanout = StationDetailFanOut(MagicMock(), SnapshotCache())

    assert fanout.policy is FanOutPolicy.BEST_EFFORT


@pytest.mark.asyncio
async def test_each_batch_emits_a_span(monkeypatch):
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    monkeypatch.setattr(telemetry.trace, "get_tracer", provider.get_tracer)
    cache = SnapshotCache()
    await StationDetailFanOut(StubClient(), cache).run(STATIONS)
    client = StubClient(failures={("access", "COLS"): TransportError("timeout")})

    exporter.clear()
    await StationDetailFanOut(client, cache).run(STATIONS)

    spans = {span.name: span for span in exporter.get_finished_spans()}
    access = spans["bart.refresh.fanout.access"]
    assert access.attributes["bart.stations"] == 4
    assert access.attributes["bart.failed"] == 1
    assert access.attributes["bart.carried_forward"] == 1
    assert access.attributes["bart.committed"] is True
    assert spans["bart.refresh.fanout.info"].attributes["bart.failed"] == 0
