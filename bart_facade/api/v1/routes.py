from fastapi import APIRouter

from bart_facade.api.v1.endpoints.bart import router as bart_router
from bart_facade.api.v1.endpoints.health import router as health_router

router = APIRouter()
router.include_router(health_router, tags=["meta"])
router.include_router(bart_router, prefix="/bart", tags=["bart"])
