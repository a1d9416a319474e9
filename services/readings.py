"""Read access to vehicle telemetry stored behind DSE Search."""

from __future__ import annotations

import logging
from datetime import timezone
from functools import lru_cache
from typing import Any, List, Mapping, Optional

from cassandra.cluster import Session

from datastore.cassandra_session import build_default_session
from models.readings import Area, Order, Timeframe, VehicleReading
from search.formatter import (
    LOCATION_FIELD,
    PROPERTIES_FIELD,
    SPEED_FIELD,
    TEMPERATURE_FIELD,
    TIMESTAMP_FIELD,
    VEHICLE_FIELD,
    SearchQuery,
    format_area,
    format_filter,
    format_projection,
    format_timeframe,
    format_vehicle,
)
from settings import get_settings

CURRENT_READINGS_TABLE = "vehicle_current_reading"
HISTORICAL_READINGS_TABLE = "vehicle_historical_readings"

_module_logger = logging.getLogger(__name__)


def _strip_property_prefix(name: str) -> str:
    if name.startswith(PROPERTIES_FIELD):
        return name[len(PROPERTIES_FIELD):]
    return name


def build_reading(
    row: Optional[Mapping[str, Any]], measurements_required: bool
) -> Optional[VehicleReading]:
    """Map one result row to a reading; ``None`` in gives ``None`` out."""
    if row is None:
        return None

    timestamp = row[TIMESTAMP_FIELD]
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    point = row[LOCATION_FIELD]

    reading = VehicleReading(
        vehicle_id=row[VEHICLE_FIELD],
        timestamp=timestamp,
        latitude=point.x,
        longitude=point.y,
    )

    if not measurements_required:
        return reading

    for name in (SPEED_FIELD, TEMPERATURE_FIELD):
        value = row.get(name)
        if value is not None:
            reading.add_measurement(name, value)
    properties = row.get(PROPERTIES_FIELD) or {}
    for name, value in properties.items():
        reading.add_measurement(_strip_property_prefix(name), value)
    return reading


class ReadingRepository:
    """Builds search queries for the four read operations and maps their rows."""

    def __init__(
        self,
        session: Session,
        keyspace: str = "datastax",
        list_limit: int = 100,
        logger: Optional[logging.Logger] = None,
        escape_filters: bool = False,
    ) -> None:
        self.session = session
        self.keyspace = keyspace
        self.list_limit = list_limit
        self.escape_filters = escape_filters
        self._logger = logger or _module_logger

    def current_readings_per_area(
        self,
        area: Area,
        filter_text: Optional[str] = None,
        measurements_required: bool = False,
    ) -> List[VehicleReading]:
        query = (
            self._new_query(CURRENT_READINGS_TABLE, measurements_required, self.list_limit)
            .where(format_area(area))
            .where(self._filter(filter_text))
        )
        return self._fetch_all("current_readings_per_area", query, measurements_required)

    def historical_readings_per_area(
        self,
        area: Area,
        timeframe: Timeframe,
        filter_text: Optional[str] = None,
        order: Optional[Order] = None,
        measurements_required: bool = False,
    ) -> List[VehicleReading]:
        query = (
            self._new_query(HISTORICAL_READINGS_TABLE, measurements_required, self.list_limit)
            .where(format_area(area))
            .where(format_timeframe(timeframe))
            .where(self._filter(filter_text))
            .order_by(order)
        )
        return self._fetch_all("historical_readings_per_area", query, measurements_required)

    def latest_vehicle_reading(
        self,
        vehicle_id: str,
        area: Optional[Area] = None,
        timeframe: Optional[Timeframe] = None,
        filter_text: Optional[str] = None,
        measurements_required: bool = False,
    ) -> Optional[VehicleReading]:
        # Only the newest row is wanted, so the order is always time descending.
        query = self._vehicle_query(
            vehicle_id, area, timeframe, filter_text, measurements_required, limit=1
        ).order_by(Order(descending=True))
        cql = self._log_query("latest_vehicle_reading", query, vehicle_id=vehicle_id)
        row = self.session.execute(cql).one()
        return build_reading(row, measurements_required)

    def historical_vehicle_readings(
        self,
        vehicle_id: str,
        area: Optional[Area] = None,
        timeframe: Optional[Timeframe] = None,
        filter_text: Optional[str] = None,
        order: Optional[Order] = None,
        measurements_required: bool = False,
    ) -> List[VehicleReading]:
        query = self._vehicle_query(
            vehicle_id, area, timeframe, filter_text, measurements_required, limit=self.list_limit
        )
        if order is not None:
            # A vehicle's history is always returned oldest first when ordered.
            query.order_by(Order(descending=False))
        return self._fetch_all(
            "historical_vehicle_readings", query, measurements_required, vehicle_id=vehicle_id
        )

    def _table(self, name: str) -> str:
        return f"{self.keyspace}.{name}"

    def _filter(self, filter_text: Optional[str]) -> str:
        return format_filter(filter_text, escape=self.escape_filters)

    def _new_query(self, table: str, measurements_required: bool, limit: int) -> SearchQuery:
        return SearchQuery(
            table=self._table(table),
            projection=format_projection(measurements_required),
            limit=limit,
        )

    def _vehicle_query(
        self,
        vehicle_id: str,
        area: Optional[Area],
        timeframe: Optional[Timeframe],
        filter_text: Optional[str],
        measurements_required: bool,
        limit: int,
    ) -> SearchQuery:
        query = self._new_query(HISTORICAL_READINGS_TABLE, measurements_required, limit)
        query.where(format_vehicle(vehicle_id))
        if area is not None:
            query.where(format_area(area))
        if timeframe is not None:
            query.where(format_timeframe(timeframe))
        return query.where(self._filter(filter_text))

    def _log_query(
        self, operation: str, query: SearchQuery, vehicle_id: Optional[str] = None
    ) -> str:
        cql = query.render()
        self._logger.info(
            "Executing search query",
            extra={
                "operation": operation,
                "table": query.table,
                "vehicle_id": vehicle_id,
                "query": cql,
            },
        )
        return cql

    def _fetch_all(
        self,
        operation: str,
        query: SearchQuery,
        measurements_required: bool,
        vehicle_id: Optional[str] = None,
    ) -> List[VehicleReading]:
        cql = self._log_query(operation, query, vehicle_id=vehicle_id)
        rows = self.session.execute(cql).all()
        readings = [build_reading(row, measurements_required) for row in rows]
        self._logger.debug(
            "Mapped search results",
            extra={"operation": operation, "row_count": len(readings)},
        )
        return readings


@lru_cache
def build_default_repository() -> ReadingRepository:
    """Factory that wires the repository to the configured cluster."""
    settings = get_settings()
    return ReadingRepository(
        session=build_default_session(),
        keyspace=settings.keyspace,
        list_limit=settings.list_limit,
        escape_filters=settings.escape_filters,
    )
