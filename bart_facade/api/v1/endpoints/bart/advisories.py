"""
Advisory and system status endpoints.

Service advisories and the train count are fetched live on every request;
elevator status is served from the snapshot cache.
"""

from fastapi import APIRouter, Depends

from bart_facade.api.v1.shared.dependencies import get_query_engine
from bart_facade.api.v1.shared.errors import to_http_exception
from bart_facade.models.bart import AdvisoriesResponse, ElevatorStatus, SystemStatus
from bart_facade.services.bart_errors import BARTServiceError
from bart_facade.services.query_engine import QueryEngine

router = APIRouter()


@router.get(
    "/advisories",
    response_model=AdvisoriesResponse,
    summary="Get today's service advisories (live)",
)
async def service_advisories(
    engine: QueryEngine = Depends(get_query_engine),
) -> AdvisoriesResponse:
    try:
        advisories = await engine.get_service_announcements()
    except BARTServiceError as exc:
        raise to_http_exception(exc) from exc
    return AdvisoriesResponse.from_dtos(advisories)


@router.get(
    "/elevators",
    response_model=ElevatorStatus,
    summary="Get the cached elevator status",
)
async def elevator_status(
    engine: QueryEngine = Depends(get_query_engine),
) -> ElevatorStatus:
    try:
        status = await engine.get_elevator_status()
    except BARTServiceError as exc:
        raise to_http_exception(exc) from exc
    return ElevatorStatus.from_dto(status)


@router.get(
    "/status",
    response_model=SystemStatus,
    summary="Get the number of active trains (live)",
)
async def system_status(
    engine: QueryEngine = Depends(get_query_engine),
) -> SystemStatus:
    try:
        status = await engine.status()
    except BARTServiceError as exc:
        raise to_http_exception(exc) from exc
    return SystemStatus.from_dto(status)
