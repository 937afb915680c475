"""
Shared dependency injection functions for API endpoints.
"""

from fastapi import Request

from bart_facade.services.query_engine import QueryEngine
from bart_facade.services.snapshot_cache import SnapshotCache


def get_query_engine(request: Request) -> QueryEngine:
    """Return the query engine created during application startup."""
    return request.app.state.query_engine


def get_snapshot_cache(request: Request) -> SnapshotCache:
    """Return the process-wide snapshot cache created during startup."""
    return request.app.state.snapshot_cache
