"""
Trip endpoint.

Schedules are fetched live; station names come from the cached station list.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from bart_facade.api.v1.shared.dependencies import get_query_engine
from bart_facade.api.v1.shared.errors import to_http_exception
from bart_facade.models.bart import TripResponse
from bart_facade.services.bart_errors import BARTServiceError
from bart_facade.services.query_engine import QueryEngine

router = APIRouter()


@router.get(
    "/trips",
    response_model=TripResponse,
    summary="Get the next trip between two stations",
)
async def next_trip(
    origin: Annotated[
        str,
        Query(min_length=2, max_length=8, description="Origin station abbreviation."),
    ],
    destination: Annotated[
        str,
        Query(
            min_length=2, max_length=8, description="Destination station abbreviation."
        ),
    ],
    engine: QueryEngine = Depends(get_query_engine),
) -> TripResponse:
    """Next departure from origin to destination with enriched legs and duration."""
    try:
        trip = await engine.get_connection_data(origin, destination)
    except BARTServiceError as exc:
        raise to_http_exception(exc) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    return TripResponse.from_dto(trip)
