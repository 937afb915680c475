from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Iterable

from pydantic import BaseModel, Field

from bart_facade.services.bart_dto import Advisory as AdvisoryDTO
from bart_facade.services.bart_dto import (
    ElevatorStatus as ElevatorStatusDTO,
    NearbyStation as NearbyStationDTO,
    Station as StationDTO,
    StationAccess as StationAccessDTO,
    StationInfo as StationInfoDTO,
    SystemStatus as SystemStatusDTO,
    TripResult as TripResultDTO,
)


class Station(BaseModel):
    abbr: str = Field(..., description="BART station abbreviation.")
    name: str
    latitude: float
    longitude: float
    address: str | None = None
    city: str | None = None
    county: str | None = None
    state: str | None = None
    zipcode: str | None = None

    @classmethod
    def from_dto(cls, dto: StationDTO) -> "Station":
        return cls(**asdict(dto))


class StationListResponse(BaseModel):
    stations: list[Station] = Field(default_factory=list)

    @classmethod
    def from_dtos(cls, stations: Iterable[StationDTO]) -> "StationListResponse":
        return cls(stations=[Station.from_dto(dto) for dto in stations])


class NearbyStation(BaseModel):
    station: Station
    distance_miles: float = Field(..., ge=0, description="Great-circle distance.")

    @classmethod
    def from_dto(cls, dto: NearbyStationDTO) -> "NearbyStation":
        return cls(
            station=Station.from_dto(dto.station), distance_miles=dto.distance_miles
        )


class StationName(BaseModel):
    abbr: str
    name: str


class StationInfo(BaseModel):
    abbr: str
    name: str
    latitude: float | None
    longitude: float | None
    address: str | None
    city: str | None
    county: str | None
    state: str | None
    zipcode: str | None
    north_routes: list[str]
    south_routes: list[str]
    north_platforms: list[str]
    south_platforms: list[str]
    platform_info: str | None
    intro: str | None
    cross_street: str | None
    food: str | None
    shopping: str | None
    attraction: str | None
    link: str | None

    @classmethod
    def from_dto(cls, dto: StationInfoDTO) -> "StationInfo":
        return cls(**asdict(dto))


class StationAccess(BaseModel):
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

    @classmethod
    def from_dto(cls, dto: StationAccessDTO) -> "StationAccess":
        return cls(**asdict(dto))


class Advisory(BaseModel):
    id: str | None = None
    station: str | None = None
    type: str | None = None
    description: str
    sms_text: str | None = None
    posted: str | None = None
    expires: str | None = None

    @classmethod
    def from_dto(cls, dto: AdvisoryDTO) -> "Advisory":
        return cls(**asdict(dto))


class AdvisoriesResponse(BaseModel):
    advisories: list[Advisory] = Field(
        default_factory=list, description="Always a list, even for one advisory."
    )

    @classmethod
    def from_dtos(cls, advisories: Iterable[AdvisoryDTO]) -> "AdvisoriesResponse":
        return cls(advisories=[Advisory.from_dto(dto) for dto in advisories])


class ElevatorStatus(BaseModel):
    date: str | None
    time: str | None
    advisories: list[Advisory]

    @classmethod
    def from_dto(cls, dto: ElevatorStatusDTO) -> "ElevatorStatus":
        return cls(
            date=dto.date,
            time=dto.time,
            advisories=[Advisory.from_dto(item) for item in dto.advisories],
        )


class SystemStatus(BaseModel):
    date: str | None
    time: str | None
    train_count: int = Field(..., ge=0)
    message: str | None

    @classmethod
    def from_dto(cls, dto: SystemStatusDTO) -> "SystemStatus":
        return cls(**asdict(dto))


class TripLeg(BaseModel):
    order: int | None
    origin: str
    destination: str
    origin_name: str | None
    destination_name: str | None
    train_head_station: str | None
    train_head_station_name: str | None
    departs_at: datetime | None = Field(None, description="Local (Pacific) time.")
    arrives_at: datetime | None = Field(None, description="Local (Pacific) time.")
    line: str | None
    bike_allowed: bool
    load: int | None
    transfer_code: str | None


class TripResponse(BaseModel):
    origin: str
    destination: str
    fare: str | None
    clipper_fare: str | None
    departs_at: datetime
    arrives_at: datetime
    duration_minutes: int
    legs: list[TripLeg]

    @classmethod
    def from_dto(cls, dto: TripResultDTO) -> "TripResponse":
        return cls(**asdict(dto))


class HealthResponse(BaseModel):
    status: str
    snapshots: dict[str, float | None] = Field(
        default_factory=dict,
        description="Seconds since each snapshot slot was refreshed (null if never).",
    )
