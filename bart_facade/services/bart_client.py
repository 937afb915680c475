from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

from bart_facade.services.bart_dto import (
    Advisory,
    ElevatorStatus,
    Station,
    StationAccess,
    StationInfo,
    SystemStatus,
    TripResult,
)
from bart_facade.services.bart_errors import (
    BARTServiceError,
    ParseError,
    StationNotFoundError,
    TransportError,
)
from bart_facade.services.bart_mapping import (
    NameCorrections,
    map_advisories,
    map_elevator_status,
    map_station_access,
    map_station_info,
    map_station_list,
    map_system_status,
    map_trip,
)
from bart_facade.services.bart_transport import BARTTransport
from bart_facade.services.bart_xml import parse_xml

logger = logging.getLogger(__name__)

T = TypeVar("T")

__all__ = [
    "BARTClient",
    # DTOs
    "Station",
    "StationInfo",
    "StationAccess",
    "Advisory",
    "ElevatorStatus",
    "SystemStatus",
    "TripResult",
    # Exceptions
    "BARTServiceError",
    "TransportError",
    "ParseError",
    "StationNotFoundError",
]


class BARTClient:
    """Async BART API client returning normalized DTOs.

    Each call is one request/response round trip: fetch, parse, normalize.
    Transport and parse errors propagate to the caller unchanged.
    """

    def __init__(
        self,
        transport: BARTTransport,
        corrections: NameCorrections | None = None,
    ) -> None:
        self._transport = transport
        self.corrections = corrections or NameCorrections()

    async def _request(
        self,
        command_path: str,
        params: dict[str, str],
        mapper: Callable[[dict[str, Any]], T],
    ) -> T:
        payload = await self._transport.fetch(command_path, params)
        root = parse_xml(payload)
        try:
            return mapper(root)
        except ParseError:
            logger.warning(
                "Unexpected BART payload for %s?cmd=%s",
                command_path,
                params.get("cmd"),
            )
            raise

    async def get_station_list(self) -> list[Station]:
        """Fetch all BART stations in upstream order."""
        return await self._request(
            "stn.aspx",
            {"cmd": "stns"},
            lambda root: map_station_list(root, self.corrections),
        )

    async def get_station_info(self, abbr: str) -> StationInfo:
        """Fetch descriptive metadata for one station."""
        abbr = abbr.upper()
        return await self._request(
            "stn.aspx",
            {"cmd": "stninfo", "orig": abbr},
            lambda root: map_station_info(root, self.corrections, abbr),
        )

    async def get_station_access(self, abbr: str) -> StationAccess:
        """Fetch accessibility details for one station."""
        abbr = abbr.upper()
        return await self._request(
            "stn.aspx",
            {"cmd": "stnaccess", "orig": abbr},
            lambda root: map_station_access(root, self.corrections, abbr),
        )

    async def get_elevator_status(self) -> ElevatorStatus:
        """Fetch the system-wide elevator advisory."""
        return await self._request("bsa.aspx", {"cmd": "elev"}, map_elevator_status)

    async def get_advisories(self) -> list[Advisory]:
        """Fetch today's service advisories."""
        return await self._request(
            "bsa.aspx", {"cmd": "bsa", "date": "today"}, map_advisories
        )

    async def get_train_count(self) -> SystemStatus:
        """Fetch the number of trains currently in service."""
        return await self._request("bsa.aspx", {"cmd": "count"}, map_system_status)

    async def get_departure_trip(self, origin: str, destination: str) -> TripResult:
        """Fetch the next trip leaving ``origin`` now for ``destination``."""
        return await self._request(
            "sched.aspx",
            {
                "cmd": "depart",
                "orig": origin.upper(),
                "dest": destination.upper(),
                "time": "now",
                "b": "0",
                "a": "1",
            },
            map_trip,
        )
