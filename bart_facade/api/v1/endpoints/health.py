from fastapi import APIRouter, Depends

from bart_facade.api.v1.shared.dependencies import get_snapshot_cache
from bart_facade.models.bart import HealthResponse
from bart_facade.services.snapshot_cache import CacheSlot, SnapshotCache

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def healthcheck(
    cache: SnapshotCache = Depends(get_snapshot_cache),
) -> HealthResponse:
    """Lightweight readiness check; 'degraded' until the station list is loaded."""
    ready = cache.is_ready(CacheSlot.STATION_LIST)
    return HealthResponse(
        status="ok" if ready else "degraded",
        snapshots=cache.snapshot_ages(),
    )
