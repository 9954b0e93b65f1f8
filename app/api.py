"""HTTP route definitions for the station."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status

from app.schemas import (
    AveragesResponse,
    CitySummaryOut,
    ImportResult,
    MeasurementCreate,
    MeasurementOut,
    RejectionDetail,
)
from datastore.errors import MeasurementRejected
from services.station import StationService, build_default_station

router = APIRouter()


def get_station() -> StationService:
    return build_default_station()


@router.post(
    "/measurements",
    status_code=status.HTTP_201_CREATED,
    response_model=MeasurementOut,
    responses={status.HTTP_409_CONFLICT: {"model": RejectionDetail}},
    summary="Record a temperature reading for a city.",
)
async def create_measurement(
    payload: MeasurementCreate,
    station: StationService = Depends(get_station),
) -> MeasurementOut:
    try:
        measurement = station.record(payload.to_measurement())
    except MeasurementRejected as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=RejectionDetail(reason=exc.reason, message=str(exc)).model_dump(),
        ) from exc
    return MeasurementOut.from_measurement(measurement)


@router.get(
    "/cities",
    response_model=List[str],
    summary="List cities with at least one recorded reading.",
)
async def list_cities(station: StationService = Depends(get_station)) -> List[str]:
    return station.cities()


@router.get(
    "/cities/{city}/measurements",
    response_model=List[MeasurementOut],
    summary="Full chronological history for a city.",
)
async def city_history(
    city: str,
    station: StationService = Depends(get_station),
) -> List[MeasurementOut]:
    return [MeasurementOut.from_measurement(m) for m in station.history(city)]


@router.get(
    "/cities/{city}/latest",
    response_model=MeasurementOut,
    summary="Most recent reading for a city.",
)
async def city_latest(
    city: str,
    station: StationService = Depends(get_station),
) -> MeasurementOut:
    measurement = station.latest(city)
    if measurement is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No measurements recorded for city {city!r}.",
        )
    return MeasurementOut.from_measurement(measurement)


@router.get(
    "/cities/{city}/summary",
    response_model=CitySummaryOut,
    summary="Count, extremes and mean over a city's history.",
)
async def city_summary(
    city: str,
    station: StationService = Depends(get_station),
) -> CitySummaryOut:
    try:
        summary = station.summary(city)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=exc.args[0],
        ) from exc
    return CitySummaryOut.from_summary(city, summary)


@router.get(
    "/averages",
    response_model=AveragesResponse,
    summary="Trailing average of the most recent readings for every city.",
)
async def trailing_averages(
    window: Optional[int] = Query(default=None, ge=1, description="Readings per city to average."),
    station: StationService = Depends(get_station),
) -> AveragesResponse:
    effective = window or station.average_window
    return AveragesResponse(window=effective, averages=station.averages(effective))


@router.post(
    "/imports",
    response_model=ImportResult,
    summary="Record every row of a city,timestamp,temperature CSV file.",
)
async def import_csv(
    file: UploadFile = File(..., description="CSV file containing temperature readings."),
    station: StationService = Depends(get_station),
) -> ImportResult:
    contents = await file.read()
    await file.close()
    try:
        return station.import_csv(contents)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc


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
