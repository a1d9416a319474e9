"""Domain models for vehicle telemetry searches and their results."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional, Union


@dataclass(frozen=True, slots=True)
class GeoPoint:
    latitude: float
    longitude: float


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """Rectangular search area given by two opposite corners."""

    top_left: GeoPoint
    bottom_right: GeoPoint


@dataclass(frozen=True, slots=True)
class CircularArea:
    """Search area of ``radius`` backend distance units around ``center``."""

    center: GeoPoint
    radius: float


Area = Union[BoundingBox, CircularArea]


@dataclass(frozen=True, slots=True)
class Timeframe:
    """Interval on the reading timestamp; one missing bound is left open."""

    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.start is None and self.end is None:
            raise ValueError("Timeframe needs at least one of start or end.")


@dataclass(frozen=True, slots=True)
class Order:
    """Sort directive on reading time. Defaults to newest first."""

    descending: bool = True


@dataclass(slots=True)
class VehicleReading:
    """A single telemetry reading reported by a vehicle."""

    vehicle_id: str
    timestamp: datetime
    latitude: float
    longitude: float
    measurements: Dict[str, float] = field(default_factory=dict)

    def add_measurement(self, name: str, value: float) -> None:
        self.measurements[name] = value
