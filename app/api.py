"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import Callable, TypeVar

from cassandra import DriverException, InvalidRequest
from cassandra.cluster import NoHostAvailable
from cassandra.protocol import SyntaxException
from fastapi import APIRouter, Depends, HTTPException, status

from app.schemas import (
    CurrentReadingsRequest,
    HistoricalReadingsRequest,
    LatestVehicleReadingRequest,
    Reading,
    ReadingList,
    VehicleHistoryRequest,
)
from services.readings import ReadingRepository, build_default_repository

router = APIRouter()

# Rejected statements come from bad caller input such as a malformed filter.
_QUERY_ERRORS = (InvalidRequest, SyntaxException)
_BACKEND_ERRORS = (DriverException, NoHostAvailable)

T = TypeVar("T")


def get_repository() -> ReadingRepository:
    return build_default_repository()


def _run_search(search: Callable[[], T]) -> T:
    try:
        return search()
    except _QUERY_ERRORS as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Search query rejected: {exc}",
        ) from exc
    except _BACKEND_ERRORS as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Search backend failed: {exc}",
        ) from exc


@router.post(
    "/readings/current",
    response_model=ReadingList,
    summary="Current reading of every vehicle inside an area.",
)
def current_readings(
    request: CurrentReadingsRequest,
    repository: ReadingRepository = Depends(get_repository),
) -> ReadingList:
    readings = _run_search(
        lambda: repository.current_readings_per_area(
            area=request.area.to_domain(),
            filter_text=request.filter,
            measurements_required=request.measurements_required,
        )
    )
    return ReadingList.from_domain(readings)


@router.post(
    "/readings/historical",
    response_model=ReadingList,
    summary="Readings inside an area during a timeframe.",
)
def historical_readings(
    request: HistoricalReadingsRequest,
    repository: ReadingRepository = Depends(get_repository),
) -> ReadingList:
    readings = _run_search(
        lambda: repository.historical_readings_per_area(
            area=request.area.to_domain(),
            timeframe=request.timeframe.to_domain(),
            filter_text=request.filter,
            order=request.order.to_domain() if request.order else None,
            measurements_required=request.measurements_required,
        )
    )
    return ReadingList.from_domain(readings)


@router.post(
    "/vehicles/{vehicle_id}/readings/latest",
    response_model=Reading,
    summary="Most recent reading of a vehicle.",
)
def latest_vehicle_reading(
    vehicle_id: str,
    request: LatestVehicleReadingRequest,
    repository: ReadingRepository = Depends(get_repository),
) -> Reading:
    reading = _run_search(
        lambda: repository.latest_vehicle_reading(
            vehicle_id=vehicle_id,
            area=request.area.to_domain() if request.area else None,
            timeframe=request.timeframe.to_domain() if request.timeframe else None,
            filter_text=request.filter,
            measurements_required=request.measurements_required,
        )
    )
    if reading is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No reading found for vehicle {vehicle_id!r}.",
        )
    return Reading.from_domain(reading)


@router.post(
    "/vehicles/{vehicle_id}/readings",
    response_model=ReadingList,
    summary="Reading history of a vehicle.",
)
def vehicle_history(
    vehicle_id: str,
    request: VehicleHistoryRequest,
    repository: ReadingRepository = Depends(get_repository),
) -> ReadingList:
    readings = _run_search(
        lambda: repository.historical_vehicle_readings(
            vehicle_id=vehicle_id,
            area=request.area.to_domain() if request.area else None,
            timeframe=request.timeframe.to_domain() if request.timeframe else None,
            filter_text=request.filter,
            order=request.order.to_domain() if request.order else None,
            measurements_required=request.measurements_required,
        )
    )
    return ReadingList.from_domain(readings)


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
