"""Shared utilities for API v1 endpoints.

This package provides dependency providers and error translation used across
multiple endpoint modules.
"""

from bart_facade.api.v1.shared.dependencies import get_query_engine, get_snapshot_cache
from bart_facade.api.v1.shared.errors import (
    snapshot_not_ready,
    station_not_found,
    to_http_exception,
    upstream_failure,
)

__all__ = [
    "get_query_engine",
    "get_snapshot_cache",
    "snapshot_not_ready",
    "station_not_found",
    "to_http_exception",
    "upstream_failure",
]
