from __future__ import annotations

from collections.abc import Mapping

from prometheus_client import Counter, Gauge, Histogram

CACHE_EVENTS = Counter(
    "bart_facade_cache_events_total",
    "Snapshot cache operations recorded by the BART facade.",
    labelnames=("cache", "event"),
)
CACHE_REFRESH_LATENCY = Histogram(
    "bart_facade_cache_refresh_seconds",
    "Latency of snapshot refresh cycles.",
    labelnames=("cache",),
)
REFRESH_FAILURES = Counter(
    "bart_facade_refresh_failures_total",
    "Background refresh cycles or batches that left the previous snapshot in place.",
    labelnames=("cache",),
)
BART_REQUESTS = Counter(
    "bart_facade_bart_requests_total",
    "Outbound BART API requests.",
    labelnames=("command", "result"),
)
BART_REQUEST_LATENCY = Histogram(
    "bart_facade_bart_request_seconds",
    "Latency of outbound BART API requests.",
    labelnames=("command",),
)
FANOUT_ITEMS = Counter(
    "bart_facade_fanout_items_total",
    "Per-station results of station-detail fan-out batches.",
    labelnames=("kind", "result"),
)
SNAPSHOT_AGE = Gauge(
    "bart_facade_snapshot_age_seconds",
    "Seconds since each snapshot slot was last replaced.",
    labelnames=("cache",),
)


def record_cache_event(cache: str, event: str) -> None:
    """Increment a cache event counter."""
    CACHE_EVENTS.labels(cache=cache, event=event).inc()


def observe_cache_refresh(cache: str, duration_seconds: float) -> None:
    """Record cache refresh latency."""
    CACHE_REFRESH_LATENCY.labels(cache=cache).observe(duration_seconds)


def record_refresh_failure(cache: str) -> None:
    """Count a refresh that was discarded in favour of the previous snapshot."""
    REFRESH_FAILURES.labels(cache=cache).inc()


def observe_bart_request(command: str, result: str, duration_seconds: float) -> None:
    """Record BART request result and latency."""
    BART_REQUESTS.labels(command=command, result=result).inc()
    BART_REQUEST_LATENCY.labels(command=command).observe(duration_seconds)


def record_fanout_item(kind: str, result: str) -> None:
    """Record the outcome of a single per-station fan-out request."""
    FANOUT_ITEMS.labels(kind=kind, result=result).inc()


def set_snapshot_ages(ages: Mapping[str, float | None]) -> None:
    """Publish snapshot ages; slots that were never filled are left unset."""
    for cache, age in ages.items():
        if age is not None:
            SNAPSHOT_AGE.labels(cache=cache).set(age)
