"""Rendering of search criteria into DSE Search (``solr_query``) CQL statements.

Every function here is pure: it only turns its arguments into text. Each
search dimension renders to one *predicate fragment*; fragments are
AND-joined, in the order given, inside the ``q`` parameter of the
``solr_query`` payload::

    SELECT <columns> FROM <table> WHERE solr_query = '{"q":"<a> AND <b>"<sort>}' LIMIT <n>

Filter text is embedded verbatim unless escaping is requested, so a
caller-supplied filter can alter the rest of the statement. Treat it as
trusted input or enable ``escape``. Vehicle ids are always escaped.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from models.readings import Area, BoundingBox, CircularArea, GeoPoint, Order, Timeframe

LOCATION_FIELD = "lat_long"
TIMESTAMP_FIELD = "date"
VEHICLE_FIELD = "vehicle_id"
SPEED_FIELD = "speed"
TEMPERATURE_FIELD = "temperature"
PROPERTIES_FIELD = "p_"

BASE_COLUMNS = (VEHICLE_FIELD, TIMESTAMP_FIELD, LOCATION_FIELD)
MEASUREMENT_COLUMNS = (SPEED_FIELD, TEMPERATURE_FIELD, PROPERTIES_FIELD)

_OPEN_BOUND = "*"
_TERM_SPECIAL_CHARS = frozenset('+-&|!(){}[]^"~*?:\\/')


def _format_number(value: float) -> str:
    return repr(float(value))


def _format_point(point: GeoPoint) -> str:
    # The backend point type stores latitude as X and longitude as Y.
    return f"{_format_number(point.latitude)} {_format_number(point.longitude)}"


def _format_timestamp(value: Optional[datetime]) -> str:
    if value is None:
        return _OPEN_BOUND
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return f"{value.strftime('%Y-%m-%dT%H:%M:%S')}.{value.microsecond // 1000:03d}Z"


def _spatial_term(shape: str) -> str:
    return f'{LOCATION_FIELD}:\\"IsWithin({shape})\\"'


def format_area(area: Area) -> str:
    """Render ``area`` as an ``IsWithin`` spatial predicate on the location field."""
    if isinstance(area, BoundingBox):
        top = area.top_left
        bottom = area.bottom_right
        corners = [
            GeoPoint(top.latitude, top.longitude),
            GeoPoint(bottom.latitude, top.longitude),
            GeoPoint(bottom.latitude, bottom.longitude),
            GeoPoint(top.latitude, bottom.longitude),
            GeoPoint(top.latitude, top.longitude),
        ]
        ring = ", ".join(_format_point(corner) for corner in corners)
        return _spatial_term(f"POLYGON(({ring}))")
    if isinstance(area, CircularArea):
        return _spatial_term(
            f"BUFFER(POINT({_format_point(area.center)}), {_format_number(area.radius)})"
        )
    raise TypeError(f"Unsupported area type: {type(area).__name__}")


def format_timeframe(timeframe: Timeframe) -> str:
    """Render an inclusive range on the timestamp field; missing bounds stay open."""
    start = _format_timestamp(timeframe.start)
    end = _format_timestamp(timeframe.end)
    return f"{TIMESTAMP_FIELD}:[{start} TO {end}]"


def escape_term(value: str) -> str:
    """Backslash-escape query parser metacharacters and whitespace in a term."""
    return "".join(
        f"\\{char}" if char in _TERM_SPECIAL_CHARS or char.isspace() else char
        for char in value
    )


def escape_filter(filter_text: str) -> str:
    """Escape text so it stays inside the JSON string and the CQL literal."""
    return (
        filter_text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("'", "''")
    )


def format_vehicle(vehicle_id: str) -> str:
    """Render an exact-match term; the id is always escaped."""
    return f"{VEHICLE_FIELD}:{escape_filter(escape_term(vehicle_id))}"


def format_filter(filter_text: Optional[str], escape: bool = False) -> str:
    if not filter_text:
        return ""
    return escape_filter(filter_text) if escape else filter_text


def format_order(order: Optional[Order]) -> str:
    if order is None:
        return ""
    direction = "desc" if order.descending else "asc"
    return f',"sort":"{TIMESTAMP_FIELD} {direction}"'


def format_projection(measurements_required: bool) -> str:
    columns = BASE_COLUMNS + MEASUREMENT_COLUMNS if measurements_required else BASE_COLUMNS
    return ", ".join(columns)


def compose_query(
    table: str,
    projection: str,
    predicates: Iterable[Optional[str]],
    order_fragment: Optional[str],
    limit: int,
) -> str:
    """Assemble the full CQL statement.

    Predicates keep the caller's order; ``None`` and empty fragments are
    dropped, nothing is reordered or deduplicated.
    """
    terms = " AND ".join(fragment for fragment in predicates if fragment)
    payload = f'{{"q":"{terms}"{order_fragment or ""}}}'
    return f"SELECT {projection} FROM {table} WHERE solr_query = '{payload}' LIMIT {limit}"


@dataclass
class SearchQuery:
    """Ordered collection of query parts, rendered by :func:`compose_query`."""

    table: str
    projection: str
    limit: int
    predicates: List[str] = field(default_factory=list)
    order: str = ""

    def where(self, fragment: Optional[str]) -> "SearchQuery":
        if fragment:
            self.predicates.append(fragment)
        return self

    def order_by(self, order: Optional[Order]) -> "SearchQuery":
        self.order = format_order(order)
        return self

    def render(self) -> str:
        return compose_query(
            self.table, self.projection, self.predicates, self.order, self.limit
        )
