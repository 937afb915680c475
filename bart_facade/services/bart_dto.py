"""Data transfer objects produced by the BART normalizer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List


@dataclass(frozen=True)
class Station:
    """Entry of the BART station list."""

    abbr: str
    name: str
    latitude: float
    longitude: float
    address: str | None = None
    city: str | None = None
    county: str | None = None
    state: str | None = None
    zipcode: str | None = None


@dataclass(frozen=True)
class StationInfo:
    """Descriptive metadata for a single station."""

    abbr: str
    name: str
    latitude: float | None
    longitude: float | None
    address: str | None
    city: str | None
    county: str | None
    state: str | None
    zipcode: str | None
    north_routes: List[str]
    south_routes: List[str]
    north_platforms: List[str]
    south_platforms: List[str]
    platform_info: str | None
    intro: str | None
    cross_street: str | None
    food: str | None
    shopping: str | None
    attraction: str | None
    link: str | None


@dataclass(frozen=True)
class StationAccess:
    """Accessibility details and amenity flags for a single station."""

    abbr: str
    name: str
    parking_flag: bool
    bike_flag: bool
    bike_station_flag: bool
    locker_flag: bool
    entering: str | None
    exiting: str | None
    parking: str | None
    fill_time: str | None
    car_share: str | None
    lockers: str | None
    bike_station_text: str | None
    destinations: str | None
    transit_info: str | None
    link: str | None


@dataclass(frozen=True)
class Advisory:
    """Single BART service advisory (BSA) entry."""

    id: str | None
    station: str | None
    type: str | None
    description: str
    sms_text: str | None
    posted: str | None
    expires: str | None


@dataclass(frozen=True)
class ElevatorStatus:
    """System-wide elevator advisory snapshot."""

    date: str | None
    time: str | None
    advisories: List[Advisory]


@dataclass(frozen=True)
class SystemStatus:
    """Count of trains currently active in the system."""

    date: str | None
    time: str | None
    train_count: int
    message: str | None


@dataclass(frozen=True)
class NearbyStation:
    """Station closest to a coordinate with its distance in miles."""

    station: Station
    distance_miles: float


@dataclass(frozen=True)
class TripLeg:
    """Single leg of a scheduled trip."""

    order: int | None
    origin: str
    destination: str
    origin_name: str | None
    destination_name: str | None
    train_head_station: str | None
    train_head_station_name: str | None
    departs_at: datetime | None
    arrives_at: datetime | None
    line: str | None
    bike_allowed: bool
    load: int | None
    transfer_code: str | None


@dataclass(frozen=True)
class TripResult:
    """Next trip between two stations as scheduled by BART."""

    origin: str
    destination: str
    fare: str | None
    clipper_fare: str | None
    departs_at: datetime
    arrives_at: datetime
    duration_minutes: int
    legs: List[TripLeg]


__all__ = [
    "Station",
    "StationInfo",
    "StationAccess",
    "Advisory",
    "ElevatorStatus",
    "SystemStatus",
    "NearbyStation",
    "TripLeg",
    "TripResult",
]
