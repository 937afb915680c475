"""Point queries over the BART snapshot cache plus live pass-through calls."""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Any, Iterable

from bart_facade.services.bart_client import BARTClient
from bart_facade.services.bart_dto import (
    Advisory,
    ElevatorStatus,
    NearbyStation,
    Station,
    StationAccess,
    StationInfo,
    SystemStatus,
    TripLeg,
    TripResult,
)
from bart_facade.services.bart_errors import StationNotFoundError
from bart_facade.services.bart_geo import haversine_miles
from bart_facade.services.snapshot_cache import CacheSlot, SnapshotCache

logger = logging.getLogger(__name__)


def _coordinate(value: Any, label: str, limit: float) -> float:
    try:
        coordinate = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid {label} '{value}'.") from None
    if not math.isfinite(coordinate) or abs(coordinate) > limit:
        raise ValueError(
            f"Invalid {label} '{value}'; expected a value between -{limit:g} and {limit:g}."
        )
    return coordinate


def find_nearest(
    stations: Iterable[Station], latitude: float, longitude: float
) -> NearbyStation | None:
    """Return the station closest to the point, first in list order on ties."""
    best: NearbyStation | None = None
    for station in stations:
        distance = haversine_miles(
            latitude, longitude, station.latitude, station.longitude
        )
        if best is None or distance < best.distance_miles:
            best = NearbyStation(station=station, distance_miles=distance)
    return best


class QueryEngine:
    """Answer caller queries without blocking on refresh cycles.

    Station and location queries read only from the snapshot cache and raise
    ``NotReadyError`` until the relevant slot has been filled. Advisories,
    system status and trips go straight to BART.
    """

    def __init__(self, cache: SnapshotCache, client: BARTClient) -> None:
        self._cache = cache
        self._client = client

    # ------------------------------------------------------------------
    # Cached reads
    # ------------------------------------------------------------------

    def _stations(self) -> tuple[Station, ...]:
        return self._cache.require(CacheSlot.STATION_LIST)

    async def get_stations(self) -> list[Station]:
        """Stations from the current station list snapshot, upstream order."""
        return list(self._stations())

    def station_name(self, abbr: str) -> str:
        """Resolve a station abbreviation to its display name."""
        wanted = abbr.strip().upper()
        for station in self._stations():
            if station.abbr == wanted:
                return station.name
        raise StationNotFoundError(f"Station not found for abbreviation '{abbr}'.")

    def nearest_station(self, latitude: Any, longitude: Any) -> NearbyStation:
        """Closest cached station to the coordinate and its distance in miles."""
        lat = _coordinate(latitude, "latitude", 90.0)
        lon = _coordinate(longitude, "longitude", 180.0)
        nearest = find_nearest(self._stations(), lat, lon)
        if nearest is None:
            raise StationNotFoundError("The station list snapshot is empty.")
        return nearest

    async def station_by_location(self, latitude: Any, longitude: Any) -> NearbyStation:
        return self.nearest_station(latitude, longitude)

    async def get_elevator_status(self) -> ElevatorStatus:
        return self._cache.require(CacheSlot.ELEVATOR_STATUS)

    async def get_station_info(self, abbr: str) -> StationInfo:
        wanted = abbr.strip().upper()
        for info in self._cache.require(CacheSlot.STATION_INFO):
            if info.abbr == wanted:
                return info
        raise StationNotFoundError(f"No station info cached for '{abbr}'.")

    async def get_station_access(self, abbr: str) -> StationAccess:
        wanted = abbr.strip().upper()
        for access in self._cache.require(CacheSlot.STATION_ACCESS):
            if access.abbr == wanted:
                return access
        raise StationNotFoundError(f"No station access data cached for '{abbr}'.")

    # ------------------------------------------------------------------
    # Live pass-through
    # ------------------------------------------------------------------

    async def get_service_announcements(self) -> list[Advisory]:
        """Today's service advisories, always as a list."""
        return await self._client.get_advisories()

    async def status(self) -> SystemStatus:
        """Number of trains currently active in the system."""
        return await self._client.get_train_count()

    async def get_connection_data(self, start: str, destination: str) -> TripResult:
        """Next trip from ``start`` to ``destination`` with station names filled in."""
        origin = start.strip().upper()
        target = destination.strip().upper()
        if not origin or not target:
            raise ValueError("Both start and destination abbreviations are required.")

        # Fail before the round trip when the names cannot be resolved anyway.
        self._stations()
        trip = await self._client.get_departure_trip(origin, target)
        legs = [self._enrich_leg(leg) for leg in trip.legs]
        return replace(trip, legs=legs)

    def _lookup_name(self, abbr: str | None) -> str | None:
        if not abbr:
            return None
        try:
            return self.station_name(abbr)
        except StationNotFoundError:
            logger.debug("No cached name for station %s", abbr)
            return None

    def _enrich_leg(self, leg: TripLeg) -> TripLeg:
        return replace(
            leg,
            origin_name=self._lookup_name(leg.origin),
            destination_name=self._lookup_name(leg.destination),
            train_head_station_name=self._lookup_name(leg.train_head_station),
        )


__all__ = ["QueryEngine", "find_nearest"]
