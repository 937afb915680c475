"""Shared error handling utilities for API endpoints.

This module maps facade exceptions onto standardized HTTP error responses.
"""

from fastapi import HTTPException, status

from bart_facade.services.bart_errors import (
    BARTServiceError,
    NotReadyError,
    ParseError,
    StationNotFoundError,
    TransportError,
)


def station_not_found(detail: str) -> HTTPException:
    """Create a standardized HTTP 404 exception for stations.

    Args:
        detail: Description of the station that could not be resolved.

    Returns:
        An HTTPException with 404 status and detail message.
    """
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


def snapshot_not_ready(detail: str) -> HTTPException:
    """Create an HTTP 503 exception for queries issued before the first refresh."""
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=detail,
        headers={"Retry-After": "30"},
    )


def upstream_failure(detail: str) -> HTTPException:
    """Create an HTTP 502 exception for BART transport or payload failures."""
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)


def to_http_exception(exc: BARTServiceError) -> HTTPException:
    """Translate a facade exception into the matching HTTP error.

    Args:
        exc: The exception raised by the query engine.

    Returns:
        An HTTPException carrying the exception message.
    """
    if isinstance(exc, StationNotFoundError):
        return station_not_found(str(exc))
    if isinstance(exc, NotReadyError):
        return snapshot_not_ready(str(exc))
    if isinstance(exc, (TransportError, ParseError)):
        return upstream_failure(str(exc))
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
    )
