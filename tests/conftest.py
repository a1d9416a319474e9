from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import pytest
from cassandra.util import Point


class FakeResultSet:
    def __init__(self, rows: Iterable[Dict[str, Any]]) -> None:
        self._rows = list(rows)

    def all(self) -> List[Dict[str, Any]]:
        return list(self._rows)

    def one(self) -> Optional[Dict[str, Any]]:
        return self._rows[0] if self._rows else None


class FakeSession:
    """Records executed statements and replays canned rows."""

    def __init__(
        self,
        rows: Optional[Iterable[Dict[str, Any]]] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.rows = list(rows or [])
        self.error = error
        self.executed: List[str] = []

    def execute(self, query: str) -> FakeResultSet:
        self.executed.append(query)
        if self.error is not None:
            raise self.error
        return FakeResultSet(self.rows)

    @property
    def last_query(self) -> str:
        return self.executed[-1]


def make_row(
    vehicle_id: str = "V42",
    timestamp: datetime = datetime(2024, 1, 1, 12, 0),
    latitude: float = 52.37,
    longitude: float = 4.89,
    speed: Optional[float] = 48.5,
    temperature: Optional[float] = 21.0,
    properties: Optional[Dict[str, float]] = None,
) -> Dict[str, Any]:
    return {
        "vehicle_id": vehicle_id,
        "date": timestamp,
        "lat_long": Point(latitude, longitude),
        "speed": speed,
        "temperature": temperature,
        "p_": properties,
    }


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession(rows=[make_row()])
