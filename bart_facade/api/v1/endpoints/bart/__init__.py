"""
BART endpoints package.

- stations.py: station list, nearest station, name lookup, info and access
- advisories.py: service advisories, elevator status, train count
- trips.py: next trip between two stations
"""

from fastapi import APIRouter

from bart_facade.api.v1.endpoints.bart.advisories import router as advisories_router
from bart_facade.api.v1.endpoints.bart.stations import router as stations_router
from bart_facade.api.v1.endpoints.bart.trips import router as trips_router

router = APIRouter()

router.include_router(stations_router, tags=["stations"])
router.include_router(advisories_router, tags=["advisories"])
router.include_router(trips_router, tags=["trips"])

__all__ = ["router"]
