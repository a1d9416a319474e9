"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator

from models.readings import (
    BoundingBox,
    CircularArea,
    GeoPoint,
    Order,
    Timeframe,
    VehicleReading,
)


class Point(BaseModel):
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)

    def to_domain(self) -> GeoPoint:
        return GeoPoint(latitude=self.latitude, longitude=self.longitude)


class BoundingBoxArea(BaseModel):
    """Rectangle given by its top-left and bottom-right corners."""

    type: Literal["bbox"] = "bbox"
    top_left: Point
    bottom_right: Point

    def to_domain(self) -> BoundingBox:
        return BoundingBox(
            top_left=self.top_left.to_domain(),
            bottom_right=self.bottom_right.to_domain(),
        )


class CircleArea(BaseModel):
    """Circle around a center point."""

    type: Literal["circle"] = "circle"
    center: Point
    radius: float = Field(..., gt=0)

    def to_domain(self) -> CircularArea:
        return CircularArea(center=self.center.to_domain(), radius=self.radius)


AreaSchema = Annotated[Union[BoundingBoxArea, CircleArea], Field(discriminator="type")]


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class TimeframeSchema(BaseModel):
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @model_validator(mode="after")
    def _check_bounds(self) -> "TimeframeSchema":
        if self.start is None and self.end is None:
            raise ValueError("timeframe needs at least one of start or end")
        if (
            self.start is not None
            and self.end is not None
            and _as_utc(self.start) > _as_utc(self.end)
        ):
            raise ValueError("timeframe start must not be after end")
        return self

    def to_domain(self) -> Timeframe:
        return Timeframe(start=self.start, end=self.end)


class OrderSchema(BaseModel):
    descending: bool = True

    def to_domain(self) -> Order:
        return Order(descending=self.descending)


class CurrentReadingsRequest(BaseModel):
    area: AreaSchema
    filter: Optional[str] = Field(
        default=None, description="Search predicate embedded as-is into the query."
    )
    measurements_required: bool = False


class HistoricalReadingsRequest(CurrentReadingsRequest):
    timeframe: TimeframeSchema
    order: Optional[OrderSchema] = None


class LatestVehicleReadingRequest(BaseModel):
    area: Optional[AreaSchema] = None
    timeframe: Optional[TimeframeSchema] = None
    filter: Optional[str] = None
    measurements_required: bool = False


class VehicleHistoryRequest(LatestVehicleReadingRequest):
    order: Optional[OrderSchema] = None


class Reading(BaseModel):
    """A vehicle telemetry reading."""

    vehicle_id: str
    timestamp: datetime
    latitude: float
    longitude: float
    measurements: Dict[str, float] = Field(default_factory=dict)

    @classmethod
    def from_domain(cls, reading: VehicleReading) -> "Reading":
        return cls(
            vehicle_id=reading.vehicle_id,
            timestamp=reading.timestamp,
            latitude=reading.latitude,
            longitude=reading.longitude,
            measurements=dict(reading.measurements),
        )


class ReadingList(BaseModel):
    count: int = Field(..., ge=0)
    readings: List[Reading] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, readings: List[VehicleReading]) -> "ReadingList":
        return cls(
            count=len(readings),
            readings=[Reading.from_domain(reading) for reading in readings],
        )
