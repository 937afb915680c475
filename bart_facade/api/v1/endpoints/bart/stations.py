"""
Station endpoints for the BART facade.

All answers come from the snapshot cache; nothing here waits on BART.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from bart_facade.api.v1.shared.dependencies import get_query_engine
from bart_facade.api.v1.shared.errors import to_http_exception
from bart_facade.models.bart import (
    NearbyStation,
    StationAccess,
    StationInfo,
    StationListResponse,
    StationName,
)
from bart_facade.services.bart_errors import BARTServiceError
from bart_facade.services.query_engine import QueryEngine

router = APIRouter()

StationAbbr = Annotated[
    str,
    Path(
        min_length=2,
        max_length=8,
        description="BART station abbreviation (e.g. '12TH').",
    ),
]


@router.get(
    "/stations",
    response_model=StationListResponse,
    summary="Get all BART stations (cached)",
)
async def list_stations(
    engine: QueryEngine = Depends(get_query_engine),
) -> StationListResponse:
    """Get the station list snapshot in upstream order."""
    try:
        stations = await engine.get_stations()
    except BARTServiceError as exc:
        raise to_http_exception(exc) from exc
    return StationListResponse.from_dtos(stations)


@router.get(
    "/stations/nearest",
    response_model=NearbyStation,
    summary="Find the station closest to a coordinate",
)
async def nearest_station(
    lat: Annotated[float, Query(ge=-90, le=90, description="Latitude.")],
    lon: Annotated[float, Query(ge=-180, le=180, description="Longitude.")],
    engine: QueryEngine = Depends(get_query_engine),
) -> NearbyStation:
    """Return the nearest cached station and its distance in miles."""
    try:
        nearby = await engine.station_by_location(lat, lon)
    except BARTServiceError as exc:
        raise to_http_exception(exc) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    return NearbyStation.from_dto(nearby)


@router.get(
    "/stations/{abbr}",
    response_model=StationName,
    summary="Resolve a station abbreviation to its name",
)
async def station_name(
    abbr: StationAbbr,
    engine: QueryEngine = Depends(get_query_engine),
) -> StationName:
    try:
        name = engine.station_name(abbr)
    except BARTServiceError as exc:
        raise to_http_exception(exc) from exc
    return StationName(abbr=abbr.upper(), name=name)


@router.get(
    "/stations/{abbr}/info",
    response_model=StationInfo,
    summary="Get cached descriptive metadata for a station",
)
async def station_info(
    abbr: StationAbbr,
    engine: QueryEngine = Depends(get_query_engine),
) -> StationInfo:
    try:
        info = await engine.get_station_info(abbr)
    except BARTServiceError as exc:
        raise to_http_exception(exc) from exc
    return StationInfo.from_dto(info)


@router.get(
    "/stations/{abbr}/access",
    response_model=StationAccess,
    summary="Get cached accessibility details for a station",
)
async def station_access(
    abbr: StationAbbr,
    engine: QueryEngine = Depends(get_query_engine),
) -> StationAccess:
    try:
        access = await engine.get_station_access(abbr)
    except BARTServiceError as exc:
        raise to_http_exception(exc) from exc
    return StationAccess.from_dto(access)
