"""Tests for query composition and execution in ReadingRepository."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import pytest

from conftest import FakeSession, make_row
from models.readings import BoundingBox, CircularArea, GeoPoint, Order, Timeframe
from search.formatter import format_area, format_timeframe
from services.readings import ReadingRepository

BOX = BoundingBox(top_left=GeoPoint(52.0, 4.0), bottom_right=GeoPoint(51.0, 5.0))
CIRCLE = CircularArea(center=GeoPoint(52.37, 4.89), radius=0.5)
DAY = Timeframe(
    start=datetime(2024, 1, 1, tzinfo=timezone.utc),
    end=datetime(2024, 1, 2, tzinfo=timezone.utc),
)

BASE_COLUMNS = "vehicle_id, date, lat_long"
ALL_COLUMNS = "vehicle_id, date, lat_long, speed, temperature, p_"


def _payload(query: str) -> str:
    start = query.index("solr_query = '") + len("solr_query = '")
    end = query.rindex("' LIMIT ")
    return query[start:end]


def test_current_readings_with_area_only(fake_session: FakeSession) -> None:
    repository = ReadingRepository(session=fake_session)

    readings = repository.current_readings_per_area(BOX)

    assert fake_session.executed == [
        f"SELECT {BASE_COLUMNS} FROM datastax.vehicle_current_reading "
        f"WHERE solr_query = '{{\"q\":\"{format_area(BOX)}\"}}' LIMIT 100"
    ]
    assert " AND " not in _payload(fake_session.last_query)
    assert len(readings) == 1
    assert readings[0].measurements == {}


@pytest.mark.parametrize("filter_text", ["speed:[30 TO *]", "fuel_level:0", 'x:"a b"'])
def test_current_readings_joins_area_then_filter(filter_text: str) -> None:
    session = FakeSession()
    repository = ReadingRepository(session=session)

    repository.current_readings_per_area(CIRCLE, filter_text=filter_text)

    payload = _payload(session.last_query)
    assert payload == f'{{"q":"{format_area(CIRCLE)} AND {filter_text}"}}'


def test_current_readings_selects_measurement_columns_when_requested() -> None:
    session = FakeSession(rows=[make_row(properties={"p_fuel": 0.4})])
    repository = ReadingRepository(session=session)

    readings = repository.current_readings_per_area(BOX, measurements_required=True)

    assert session.last_query.startswith(f"SELECT {ALL_COLUMNS} FROM ")
    assert readings[0].measurements == {"speed": 48.5, "temperature": 21.0, "fuel": 0.4}


def test_historical_readings_per_area_honours_order_direction() -> None:
    session = FakeSession()
    repository = ReadingRepository(session=session)

    repository.historical_readings_per_area(BOX, DAY, order=Order(descending=True))
    repository.historical_readings_per_area(BOX, DAY, order=Order(descending=False))
    repository.historical_readings_per_area(BOX, DAY)

    descending, ascending, unordered = session.executed
    expected_terms = f"{format_area(BOX)} AND {format_timeframe(DAY)}"
    assert _payload(descending) == f'{{"q":"{expected_terms}","sort":"date desc"}}'
    assert _payload(ascending) == f'{{"q":"{expected_terms}","sort":"date asc"}}'
    assert _payload(unordered) == f'{{"q":"{expected_terms}"}}'
    assert all("FROM datastax.vehicle_historical_readings" in query for query in session.executed)
    assert all(query.endswith(" LIMIT 100") for query in session.executed)


def test_historical_readings_per_area_adds_filter_last() -> None:
    session = FakeSession()
    repository = ReadingRepository(session=session)

    repository.historical_readings_per_area(BOX, DAY, filter_text="speed:[30 TO *]")

    assert _payload(session.last_query) == (
        f'{{"q":"{format_area(BOX)} AND {format_timeframe(DAY)} AND speed:[30 TO *]"}}'
    )


def test_latest_reading_forces_descending_order_and_single_row() -> None:
    session = FakeSession(rows=[make_row()])
    repository = ReadingRepository(session=session)

    reading = repository.latest_vehicle_reading("V42", filter_text="speed>30")

    assert session.executed == [
        f"SELECT {BASE_COLUMNS} FROM datastax.vehicle_historical_readings "
        "WHERE solr_query = '{\"q\":\"vehicle_id:V42 AND speed>30\",\"sort\":\"date desc\"}' LIMIT 1"
    ]
    assert reading is not None
    assert reading.vehicle_id == "V42"


def test_latest_reading_includes_optional_dimensions_in_order() -> None:
    session = FakeSession(rows=[make_row()])
    repository = ReadingRepository(session=session)

    repository.latest_vehicle_reading("V42", area=BOX, timeframe=DAY, filter_text="speed>30")

    assert _payload(session.last_query) == (
        f'{{"q":"vehicle_id:V42 AND {format_area(BOX)} AND {format_timeframe(DAY)} '
        'AND speed>30","sort":"date desc"}'
    )


def test_latest_reading_without_rows_is_absent() -> None:
    repository = ReadingRepository(session=FakeSession(rows=[]))

    assert repository.latest_vehicle_reading("V404") is None


def test_vehicle_history_orders_ascending_whatever_the_requested_direction() -> None:
    session = FakeSession()
    repository = ReadingRepository(session=session)

    repository.historical_vehicle_readings("V42", order=Order(descending=True))
    repository.historical_vehicle_readings("V42", order=Order(descending=False))

    for query in session.executed:
        assert _payload(query) == '{"q":"vehicle_id:V42","sort":"date asc"}'
        assert query.endswith(" LIMIT 100")


def test_vehicle_history_without_order_has_no_sort_clause() -> None:
    session = FakeSession()
    repository = ReadingRepository(session=session)

    repository.historical_vehicle_readings("V42", timeframe=DAY)

    assert _payload(session.last_query) == (
        f'{{"q":"vehicle_id:V42 AND {format_timeframe(DAY)}"}}'
    )


def test_keyspace_limit_and_filter_escaping_are_configurable() -> None:
    session = FakeSession()
    repository = ReadingRepository(
        session=session, keyspace="fleet", list_limit=25, escape_filters=True
    )

    repository.current_readings_per_area(BOX, filter_text="name:\"it's\"")

    query = session.last_query
    assert "FROM fleet.vehicle_current_reading" in query
    assert query.endswith(" LIMIT 25")
    assert "name:\\\"it''s\\\"" in query


def test_backend_errors_propagate_unchanged() -> None:
    error = RuntimeError("connection reset")
    repository = ReadingRepository(session=FakeSession(error=error))

    with pytest.raises(RuntimeError) as excinfo:
        repository.historical_vehicle_readings("V42")

    assert excinfo.value is error


def test_composed_query_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("tests.readings")
    session = FakeSession(rows=[make_row(), make_row(vehicle_id="V7")])
    repository = ReadingRepository(session=session, logger=logger)
    caplog.set_level(logging.DEBUG, logger="tests.readings")

    repository.current_readings_per_area(BOX)

    executing = [record for record in caplog.records if record.message == "Executing search query"]
    mapped = [record for record in caplog.records if record.message == "Mapped search results"]
    assert len(executing) == 1
    assert executing[0].query == session.last_query
    assert executing[0].operation == "current_readings_per_area"
    assert mapped[0].row_count == 2


def test_vehicle_id_cannot_close_the_statement_literal() -> None:
    session = FakeSession(rows=[])
    repository = ReadingRepository(session=session, escape_filters=True)

    repository.latest_vehicle_reading("V1' OR x", filter_text="a'b")

    query = session.last_query
    assert _payload(query) == r"""{"q":"vehicle_id:V1''\\ OR\\ x AND a''b","sort":"date desc"}"""
    # only the two quotes delimiting the solr_query literal remain unpaired
    assert query.replace("''", "").count("'") == 2


def test_vehicle_history_escapes_ids_with_spaces() -> None:
    session = FakeSession()
    repository = ReadingRepository(session=session)

    repository.historical_vehicle_readings("fleet 7")

    assert _payload(session.last_query) == r'{"q":"vehicle_id:fleet\\ 7"}'
