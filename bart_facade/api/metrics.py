from __future__ import annotations

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from bart_facade.core.metrics import set_snapshot_ages

router = APIRouter()


@router.get("/metrics", include_in_schema=False)
async def metrics(request: Request) -> Response:
    """Expose Prometheus metrics for scraping; snapshot ages are sampled per scrape."""
    cache = getattr(request.app.state, "snapshot_cache", None)
    if cache is not None:
        set_snapshot_ages(cache.snapshot_ages())
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
