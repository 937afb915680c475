"""Pure mapping utilities for BART payloads."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from bart_facade.core.config import DEFAULT_STATION_NAME_CORRECTIONS
from bart_facade.services.bart_dto import (
    Advisory,
    ElevatorStatus,
    Station,
    StationAccess,
    StationInfo,
    SystemStatus,
    TripLeg,
    TripResult,
)
from bart_facade.services.bart_errors import ParseError
from bart_facade.services.bart_xml import ATTRIBUTES_KEY, TEXT_KEY

TRIP_TIMESTAMP_FORMAT = "%m/%d/%Y %I:%M %p"


class DataMapper:
    """Simplified data extraction and transformation utility."""

    @staticmethod
    def text(value: Any) -> str | None:
        """Return the trimmed text of a parsed node, or None when empty."""
        if value is None:
            return None
        if isinstance(value, Mapping):
            value = value.get(TEXT_KEY)
            if value is None:
                return None
        if isinstance(value, list):
            return DataMapper.text(value[0]) if value else None
        text = str(value).strip()
        return text or None

    @staticmethod
    def attributes(data: Any) -> dict[str, str]:
        """Return the attribute mapping of a parsed node."""
        if isinstance(data, Mapping):
            attrs = data.get(ATTRIBUTES_KEY)
            if isinstance(attrs, Mapping):
                return dict(attrs)
        return {}

    @staticmethod
    def require(data: Any, *path: str) -> Any:
        """Walk ``path`` through nested mappings, raising ParseError if it breaks."""
        current = data
        for key in path:
            if not isinstance(current, Mapping) or key not in current:
                raise ParseError(
                    f"BART payload is missing '{'.'.join(path)}' (stopped at '{key}')."
                )
            current = current[key]
        return current

    @staticmethod
    def convert_type(value: Any, target_type: type) -> Any:
        """Universal type converter with error handling."""
        value = DataMapper.text(value)
        if value is None:
            return None

        try:
            if target_type is int:
                return int(float(value))
            if target_type is float:
                return float(value)
            if target_type is bool:
                return value.lower() in ("1", "true", "yes", "y")
            return target_type(value)
        except (TypeError, ValueError):
            return None


def ensure_list(value: Any) -> list[Any]:
    """Coerce a single parsed item into a one-element list.

    BART omits the wrapping collection when a result has exactly one element,
    so every collection-valued field goes through here.
    """
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return [item for item in value if item is not None and item != ""]
    return [value]


class NameCorrections:
    """Canonical station names keyed by abbreviation, overriding upstream names."""

    def __init__(self, corrections: Mapping[str, str] | None = None) -> None:
        if corrections is None:
            corrections = DEFAULT_STATION_NAME_CORRECTIONS
        self._table = {
            abbr.strip().upper(): name for abbr, name in corrections.items()
        }

    def apply(self, abbr: str, name: str) -> str:
        return self._table.get(abbr.upper(), name)

    def __contains__(self, abbr: object) -> bool:
        return isinstance(abbr, str) and abbr.upper() in self._table

    def __len__(self) -> int:
        return len(self._table)


def _raise_on_upstream_error(root: Mapping[str, Any]) -> None:
    """BART reports request errors inside a 200 response's <message> element."""
    message = root.get("message")
    if not isinstance(message, Mapping) or "error" not in message:
        return
    error = ensure_list(message["error"])[0]
    text = DataMapper.text(error.get("text")) if isinstance(error, Mapping) else None
    details = (
        DataMapper.text(error.get("details")) if isinstance(error, Mapping) else None
    )
    reason = " - ".join(part for part in (text, details) if part) or "unknown error"
    raise ParseError(f"BART rejected the request: {reason}")


def _station_nodes(root: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    _raise_on_upstream_error(root)
    stations = DataMapper.require(root, "stations")
    if not isinstance(stations, Mapping):
        return []
    return [
        node for node in ensure_list(stations.get("station")) if isinstance(node, Mapping)
    ]


def _identity(
    node: Mapping[str, Any], corrections: NameCorrections
) -> tuple[str, str]:
    abbr = DataMapper.text(node.get("abbr"))
    name = DataMapper.text(node.get("name"))
    if not abbr or not name:
        raise ParseError("BART station record is missing its abbreviation or name.")
    abbr = abbr.upper()
    return abbr, corrections.apply(abbr, name)


def _text_list(value: Any, key: str) -> list[str]:
    """Flatten e.g. <north_routes><route>..</route></north_routes> to strings."""
    if isinstance(value, Mapping):
        value = value.get(key)
    return [
        text for text in (DataMapper.text(item) for item in ensure_list(value)) if text
    ]


def map_station(
    node: Mapping[str, Any], corrections: NameCorrections | None = None
) -> Station:
    """Map a raw station-list entry to a Station DTO."""
    abbr, name = _identity(node, corrections or NameCorrections())
    latitude = DataMapper.convert_type(node.get("gtfs_latitude"), float)
    longitude = DataMapper.convert_type(node.get("gtfs_longitude"), float)
    if latitude is None or longitude is None:
        raise ParseError(f"Station '{abbr}' has no usable coordinates.")

    return Station(
        abbr=abbr,
        name=name,
        latitude=latitude,
        longitude=longitude,
        address=DataMapper.text(node.get("address")),
        city=DataMapper.text(node.get("city")),
        county=DataMapper.text(node.get("county")),
        state=DataMapper.text(node.get("state")),
        zipcode=DataMapper.text(node.get("zipcode")),
    )


def map_station_list(
    root: Mapping[str, Any], corrections: NameCorrections | None = None
) -> list[Station]:
    """Map a ``stn.aspx?cmd=stns`` payload to Station DTOs in upstream order."""
    corrections = corrections or NameCorrections()
    return [map_station(node, corrections) for node in _station_nodes(root)]


def _single_station_node(root: Mapping[str, Any], abbr: str | None) -> Mapping[str, Any]:
    nodes = _station_nodes(root)
    if not nodes:
        raise ParseError(f"BART returned no station record for '{abbr}'.")
    if abbr:
        for node in nodes:
            if (DataMapper.text(node.get("abbr")) or "").upper() == abbr.upper():
                return node
    return nodes[0]


def map_station_info(
    root: Mapping[str, Any],
    corrections: NameCorrections | None = None,
    abbr: str | None = None,
) -> StationInfo:
    """Map a ``stn.aspx?cmd=stninfo`` payload to a StationInfo DTO."""
    node = _single_station_node(root, abbr)
    station_abbr, name = _identity(node, corrections or NameCorrections())

    return StationInfo(
        abbr=station_abbr,
        name=name,
        latitude=DataMapper.convert_type(node.get("gtfs_latitude"), float),
        longitude=DataMapper.convert_type(node.get("gtfs_longitude"), float),
        address=DataMapper.text(node.get("address")),
        city=DataMapper.text(node.get("city")),
        county=DataMapper.text(node.get("county")),
        state=DataMapper.text(node.get("state")),
        zipcode=DataMapper.text(node.get("zipcode")),
        north_routes=_text_list(node.get("north_routes"), "route"),
        south_routes=_text_list(node.get("south_routes"), "route"),
        north_platforms=_text_list(node.get("north_platforms"), "platform"),
        south_platforms=_text_list(node.get("south_platforms"), "platform"),
        platform_info=DataMapper.text(node.get("platform_info")),
        intro=DataMapper.text(node.get("intro")),
        cross_street=DataMapper.text(node.get("cross_street")),
        food=DataMapper.text(node.get("food")),
        shopping=DataMapper.text(node.get("shopping")),
        attraction=DataMapper.text(node.get("attraction")),
        link=DataMapper.text(node.get("link")),
    )


def map_station_access(
    root: Mapping[str, Any],
    corrections: NameCorrections | None = None,
    abbr: str | None = None,
) -> StationAccess:
    """Map a ``stn.aspx?cmd=stnaccess`` payload to a StationAccess DTO."""
    node = _single_station_node(root, abbr)
    station_abbr, name = _identity(node, corrections or NameCorrections())
    flags = DataMapper.attributes(node)

    return StationAccess(
        abbr=station_abbr,
        name=name,
        parking_flag=bool(DataMapper.convert_type(flags.get("parking_flag"), bool)),
        bike_flag=bool(DataMapper.convert_type(flags.get("bike_flag"), bool)),
        bike_station_flag=bool(
            DataMapper.convert_type(flags.get("bike_station_flag"), bool)
        ),
        locker_flag=bool(DataMapper.convert_type(flags.get("locker_flag"), bool)),
        entering=DataMapper.text(node.get("entering")),
        exiting=DataMapper.text(node.get("exiting")),
        parking=DataMapper.text(node.get("parking")),
        fill_time=DataMapper.text(node.get("fill_time")),
        car_share=DataMapper.text(node.get("car_share")),
        lockers=DataMapper.text(node.get("lockers")),
        bike_station_text=DataMapper.text(node.get("bike_station_text")),
        destinations=DataMapper.text(node.get("destinations")),
        transit_info=DataMapper.text(node.get("transit_info")),
        link=DataMapper.text(node.get("link")),
    )


def map_advisory(node: Any) -> Advisory:
    """Map a raw <bsa> element to an Advisory DTO."""
    if not isinstance(node, Mapping):
        return Advisory(
            id=None,
            station=None,
            type=None,
            description=DataMapper.text(node) or "",
            sms_text=None,
            posted=None,
            expires=None,
        )

    return Advisory(
        id=DataMapper.attributes(node).get("id") or None,
        station=DataMapper.text(node.get("station")),
        type=DataMapper.text(node.get("type")),
        description=DataMapper.text(node.get("description")) or "",
        sms_text=DataMapper.text(node.get("sms_text")),
        posted=DataMapper.text(node.get("posted")),
        expires=DataMapper.text(node.get("expires")),
    )


def map_advisories(root: Mapping[str, Any]) -> list[Advisory]:
    """Map a ``bsa.aspx?cmd=bsa`` payload; a lone <bsa> becomes a one-element list."""
    _raise_on_upstream_error(root)
    return [map_advisory(node) for node in ensure_list(root.get("bsa"))]


def map_elevator_status(root: Mapping[str, Any]) -> ElevatorStatus:
    """Map a ``bsa.aspx?cmd=elev`` payload to an ElevatorStatus DTO."""
    _raise_on_upstream_error(root)
    return ElevatorStatus(
        date=DataMapper.text(root.get("date")),
        time=DataMapper.text(root.get("time")),
        advisories=[map_advisory(node) for node in ensure_list(root.get("bsa"))],
    )


def map_system_status(root: Mapping[str, Any]) -> SystemStatus:
    """Map a ``bsa.aspx?cmd=count`` payload to a SystemStatus DTO."""
    _raise_on_upstream_error(root)
    train_count = DataMapper.convert_type(DataMapper.require(root, "traincount"), int)
    if train_count is None:
        raise ParseError("BART train count is not numeric.")

    return SystemStatus(
        date=DataMapper.text(root.get("date")),
        time=DataMapper.text(root.get("time")),
        train_count=train_count,
        message=DataMapper.text(root.get("message")),
    )


def parse_trip_timestamp(date_text: str | None, time_text: str | None) -> datetime | None:
    """Combine BART's 'MM/DD/YYYY' and 'h:mm AM' fields into a naive datetime."""
    date_text = (date_text or "").strip()
    time_text = (time_text or "").strip()
    if not date_text or not time_text:
        return None
    try:
        return datetime.strptime(f"{date_text} {time_text}", TRIP_TIMESTAMP_FORMAT)
    except ValueError:
        return None


def map_trip_leg(node: Any) -> TripLeg:
    """Map a raw <leg> element; station names are filled in by the query engine."""
    details = DataMapper.attributes(node)
    origin = (details.get("origin") or "").upper()
    destination = (details.get("destination") or "").upper()
    if not origin or not destination:
        raise ParseError("BART trip leg is missing its origin or destination.")

    head_station = (details.get("trainHeadStation") or "").upper() or None

    return TripLeg(
        order=DataMapper.convert_type(details.get("order"), int),
        origin=origin,
        destination=destination,
        origin_name=None,
        destination_name=None,
        train_head_station=head_station,
        train_head_station_name=None,
        departs_at=parse_trip_timestamp(
            details.get("origTimeDate"), details.get("origTimeMin")
        ),
        arrives_at=parse_trip_timestamp(
            details.get("destTimeDate"), details.get("destTimeMin")
        ),
        line=details.get("line") or None,
        bike_allowed=bool(DataMapper.convert_type(details.get("bikeflag"), bool)),
        load=DataMapper.convert_type(details.get("load"), int),
        transfer_code=details.get("transfercode") or None,
    )


def map_trip(root: Mapping[str, Any]) -> TripResult:
    """Map a ``sched.aspx?cmd=depart`` payload to the first scheduled trip."""
    _raise_on_upstream_error(root)
    trips = ensure_list(DataMapper.require(root, "schedule", "request", "trip"))
    if not trips or not isinstance(trips[0], Mapping):
        raise ParseError("BART schedule contains no trips.")
    trip = trips[0]
    details = DataMapper.attributes(trip)

    departs_at = parse_trip_timestamp(
        details.get("origTimeDate"), details.get("origTimeMin")
    )
    arrives_at = parse_trip_timestamp(
        details.get("destTimeDate"), details.get("destTimeMin")
    )
    if departs_at is None or arrives_at is None:
        raise ParseError("BART trip has unparseable departure or arrival time.")

    legs = [map_trip_leg(node) for node in ensure_list(trip.get("leg"))]
    if not legs:
        raise ParseError("BART trip has no legs.")

    return TripResult(
        origin=(details.get("origin") or legs[0].origin).upper(),
        destination=(details.get("destination") or legs[-1].destination).upper(),
        fare=details.get("fare") or None,
        clipper_fare=details.get("clipper") or None,
        departs_at=departs_at,
        arrives_at=arrives_at,
        duration_minutes=round((arrives_at - departs_at).total_seconds() / 60),
        legs=legs,
    )


__all__ = [
    "DataMapper",
    "NameCorrections",
    "ensure_list",
    "map_station",
    "map_station_list",
    "map_station_info",
    "map_station_access",
    "map_advisory",
    "map_advisories",
    "map_elevator_status",
    "map_system_status",
    "parse_trip_timestamp",
    "map_trip_leg",
    "map_trip",
]
