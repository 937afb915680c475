from contextlib import asynccontextmanager
import logging

from uuid import uuid4

from fastapi import FastAPI, Request

from bart_facade.api.metrics import router as metrics_router
from bart_facade.api.v1.routes import router as api_router
from bart_facade.core.config import Settings, get_settings
from bart_facade.core.telemetry import (
    configure_opentelemetry,
    instrument_fastapi,
    instrument_httpx,
)
from bart_facade.jobs.cache_refresh import build_refresh_jobs
from bart_facade.jobs.refresh_scheduler import RefreshScheduler
from bart_facade.services.bart_client import BARTClient
from bart_facade.services.bart_mapping import NameCorrections
from bart_facade.services.bart_transport import BARTTransport
from bart_facade.services.query_engine import QueryEngine
from bart_facade.services.snapshot_cache import SnapshotCache

logger = logging.getLogger(__name__)
REQUEST_ID_HEADER = "X-Request-Id"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def _configure_logging(log_level: str) -> None:
    """
    Configure the root handler and quiet chatty third-party loggers.

    httpx logs every request at INFO and APScheduler logs every job
    execution; both are dropped to WARNING unless LOG_LEVEL=DEBUG.
    """
    level = logging.getLevelName(log_level)
    if not isinstance(level, int):
        level = logging.INFO
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    root.setLevel(level)

    third_party_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in ("httpx", "httpcore", "apscheduler"):
        logging.getLogger(name).setLevel(third_party_level)


def _install_request_id_middleware(app: FastAPI) -> None:
    """Ensure each response includes a stable X-Request-Id header."""

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER, str(uuid4()))
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def _build_transport(settings: Settings) -> BARTTransport:
    return BARTTransport(settings.bart_api_key)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the snapshot cache, query engine and refresh scheduler."""
    settings = get_settings()

    configure_opentelemetry(
        service_name=settings.otel_service_name,
        service_version=settings.otel_service_version,
        otlp_endpoint=settings.otel_exporter_otlp_endpoint,
        otlp_headers=settings.otel_exporter_otlp_headers,
        enabled=settings.otel_enabled,
    )
    instrument_httpx(enabled=settings.otel_enabled)

    transport = _build_transport(settings)
    client = BARTClient(transport, NameCorrections(settings.station_name_corrections))
    cache = SnapshotCache()
    station_job, elevator_job = build_refresh_jobs(client, cache, settings)
    scheduler = RefreshScheduler(settings, station_job, elevator_job)

    app.state.snapshot_cache = cache
    app.state.query_engine = QueryEngine(cache, client)
    app.state.refresh_scheduler = scheduler

    if settings.scheduler_enabled:
        await scheduler.start()
    else:
        logger.info("Refresh scheduler disabled; snapshots stay empty")

    try:
        yield
    finally:
        await scheduler.stop()
        await transport.aclose()


def create_app() -> FastAPI:
    """Application factory for FastAPI."""
    settings = get_settings()
    app = FastAPI(
        title="BART Facade API",
        description="Cached, normalized access to the BART legacy XML API.",
        version="0.1.0",
        lifespan=lifespan,
    )

    _configure_logging(settings.log_level)

    instrument_fastapi(app, enabled=settings.otel_enabled)
    _install_request_id_middleware(app)

    app.include_router(metrics_router)
    app.include_router(api_router, prefix="/api/v1")

    return app


app = create_app()
