from __future__ import annotations

from typing import Callable

import httpx
import pytest

from bart_facade.services.bart_client import BARTClient
from bart_facade.services.bart_mapping import NameCorrections
from bart_facade.services.bart_transport import BARTTransport
from bart_facade.services.snapshot_cache import SnapshotCache
from tests.fixtures import bart_payloads

TEST_API_KEY = "TEST-KEY"


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")


class FakeBART:
    """In-memory BART API replacement used with ``httpx.MockTransport``.

    Responses are keyed by ``cmd`` (and ``orig`` for per-station commands).
    A value may be a payload string, an ``httpx.Response`` or an exception
    instance to raise from the transport.
    """

    def __init__(self) -> None:
        self.responses: dict[tuple[str, str | None], object] = {}
        self.requests: list[httpx.Request] = []

    def set(self, cmd: str, value: object, orig: str | None = None) -> None:
        self.responses[(cmd, orig)] = value

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        cmd = request.url.params.get("cmd")
        orig = request.url.params.get("orig")
        value = self.responses.get((cmd, orig), self.responses.get((cmd, None)))
        if value is None:
            return httpx.Response(404, text="unknown command")
        if isinstance(value, Exception):
            raise value
        if isinstance(value, httpx.Response):
            return value
        return httpx.Response(200, text=str(value))

    def commands(self) -> list[tuple[str | None, str | None]]:
        return [
            (request.url.params.get("cmd"), request.url.params.get("orig"))
            for request in self.requests
        ]


def default_station_details(fake: FakeBART) -> None:
    """Register info and access payloads for every default station."""
    for abbr, name, _, _ in bart_payloads.DEFAULT_STATIONS:
        fake.set("stninfo", bart_payloads.station_info_xml(abbr, name), orig=abbr)
        fake.set("stnaccess", bart_payloads.station_access_xml(abbr, name), orig=abbr)


@pytest.fixture()
def fake_bart() -> FakeBART:
    fake = FakeBART()
    fake.set("stns", bart_payloads.station_list_xml())
    fake.set("elev", bart_payloads.elevator_status_xml())
    fake.set("bsa", bart_payloads.advisories_xml())
    fake.set("count", bart_payloads.train_count_xml())
    fake.set("depart", bart_payloads.trip_xml())
    default_station_details(fake)
    return fake


@pytest.fixture()
def make_transport(fake_bart: FakeBART) -> Callable[[], BARTTransport]:
    def _factory() -> BARTTransport:
        return BARTTransport(
            TEST_API_KEY, transport=httpx.MockTransport(fake_bart.handler)
        )

    return _factory


@pytest.fixture()
def bart_client(make_transport) -> BARTClient:
    return BARTClient(make_transport(), NameCorrections())


@pytest.fixture()
def snapshot_cache() -> SnapshotCache:
    return SnapshotCache()
