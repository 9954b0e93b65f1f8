"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from models.records import TemperatureMeasurement
from services.aggregator import CitySummary


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ImportStatus(str, Enum):
    """Outcome of a CSV import."""

    processed = "processed"
    partial = "partial"
    failed = "failed"


class MeasurementCreate(BaseModel):
    """Payload for recording a single reading."""

    city: str = Field(..., min_length=1, max_length=128)
    temperature: float = Field(..., allow_inf_nan=False)
    timestamp: Optional[datetime] = Field(
        default=None, description="Reading time; defaults to the time of the request."
    )

    @field_validator("timestamp")
    @classmethod
    def _normalize_timestamp(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value) if value is not None else None

    def to_measurement(self) -> TemperatureMeasurement:
        return TemperatureMeasurement(
            temperature=self.temperature,
            city=self.city,
            timestamp=self.timestamp or datetime.now(timezone.utc),
        )


class MeasurementOut(BaseModel):
    city: str
    temperature: float
    timestamp: datetime

    @classmethod
    def from_measurement(cls, measurement: TemperatureMeasurement) -> "MeasurementOut":
        return cls(
            city=measurement.city,
            temperature=measurement.temperature,
            timestamp=measurement.timestamp,
        )


class CitySummaryOut(BaseModel):
    """Statistics over a city's stored history."""

    city: str
    count: int = Field(..., ge=1)
    min_value: float
    max_value: float
    mean_value: float
    first_at: datetime
    last_at: datetime

    @classmethod
    def from_summary(cls, city: str, summary: CitySummary) -> "CitySummaryOut":
        return cls(
            city=city,
            count=summary.count,
            min_value=summary.min_value,
            max_value=summary.max_value,
            mean_value=summary.mean_value,
            first_at=summary.first_at,
            last_at=summary.last_at,
        )


class AveragesResponse(BaseModel):
    window: int = Field(..., ge=1)
    averages: Dict[str, float] = Field(default_factory=dict)


class RejectionDetail(BaseModel):
    """Body of the 409 response when a reading is refused."""

    reason: str
    message: str


class RowError(BaseModel):
    """Details about a CSV row that was not recorded."""

    row_number: int = Field(..., ge=1)
    reason: str


class ImportResult(BaseModel):
    """Full report for an imported CSV file."""

    status: ImportStatus
    accepted: int = Field(..., ge=0)
    rejected: int = Field(..., ge=0)
    summaries: List[CitySummaryOut] = Field(default_factory=list)
    errors: List[RowError] = Field(default_factory=list)
