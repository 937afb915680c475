from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from bart_facade.api.v1.shared.dependencies import get_query_engine, get_snapshot_cache
from bart_facade.main import create_app
from bart_facade.services.bart_dto import Station
from bart_facade.services.query_engine import QueryEngine
from bart_facade.services.snapshot_cache import CacheSlot, SnapshotCache
from tests.fixtures import bart_payloads


@pytest.fixture()
def station_list_loaded(snapshot_cache) -> SnapshotCache:
    """Fill the station list slot with the default fixture stations."""
    snapshot_cache.set(
        CacheSlot.STATION_LIST,
        [
            Station(abbr=abbr, name=name, latitude=lat, longitude=lon)
            for abbr, name, lat, lon in bart_payloads.DEFAULT_STATIONS
        ],
    )
    return snapshot_cache


@pytest.fixture()
def query_engine(snapshot_cache, bart_client) -> QueryEngine:
    return QueryEngine(snapshot_cache, bart_client)


@pytest.fixture()
def api_client(snapshot_cache, query_engine) -> TestClient:
    """TestClient wired to the fake BART upstream; the lifespan is not started."""
    app = create_app()
    app.dependency_overrides[get_snapshot_cache] = lambda: snapshot_cache
    app.dependency_overrides[get_query_engine] = lambda: query_engine
    return TestClient(app)
