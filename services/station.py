"""Station orchestration: recording, CSV import and snapshot wiring."""

from __future__ import annotations

import csv
import io
import logging
import math
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional

from app.schemas import (
    CitySummaryOut,
    ImportResult,
    ImportStatus,
    RowError,
)
from datastore.errors import MeasurementRejected
from datastore.measurement_store import DEFAULT_WINDOW_SIZE, MeasurementStore
from models.records import TemperatureMeasurement
from services.aggregator import Aggregator, CitySummary
from settings import get_settings
from storage.snapshots import SnapshotFile

logger = logging.getLogger(__name__)

_REQUIRED_COLUMNS = {"city", "timestamp", "temperature"}


class StationService:
    """Coordinates the measurement store, aggregation and snapshots."""

    def __init__(
        self,
        store: MeasurementStore,
        aggregator: Aggregator,
        snapshot: Optional[SnapshotFile] = None,
        average_window: int = DEFAULT_WINDOW_SIZE,
    ) -> None:
        self.store = store
        self.aggregator = aggregator
        self.snapshot = snapshot
        self.average_window = average_window

    def record(self, measurement: TemperatureMeasurement) -> TemperatureMeasurement:
        """Insert a reading, logging the outcome. Rejections are re-raised."""
        try:
            self.store.insert(measurement)
        except MeasurementRejected as exc:
            logger.warning(
                "Measurement rejected",
                extra={
                    "city": measurement.city,
                    "timestamp": measurement.timestamp,
                    "reason": exc.reason,
                },
            )
            raise
        logger.info(
            "Measurement recorded",
            extra={
                "city": measurement.city,
                "timestamp": measurement.timestamp,
                "temperature": measurement.temperature,
            },
        )
        return measurement

    def history(self, city: str) -> List[TemperatureMeasurement]:
        return self.store.history(city)

    def latest(self, city: str) -> Optional[TemperatureMeasurement]:
        return self.store.latest(city)

    def cities(self) -> List[str]:
        return sorted(self.store.keys())

    def averages(self, window: Optional[int] = None) -> Dict[str, float]:
        return self.store.trailing_average(window or self.average_window)

    def summary(self, city: str) -> CitySummary:
        summaries = self.aggregator.summarize(self.store.history(city))
        if city not in summaries:
            raise KeyError(f"No measurements recorded for city {city!r}.")
        return summaries[city]

    def import_csv(self, contents: bytes) -> ImportResult:
        """Record every row of a ``city,timestamp,temperature`` CSV in order."""
        if not contents:
            raise ValueError("Uploaded file is empty.")
        try:
            text = contents.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ValueError("Uploaded file is not valid UTF-8.") from exc

        reader = csv.DictReader(io.StringIO(text))
        if not reader.fieldnames:
            raise ValueError("CSV file is missing a header row.")

        normalized = {name.lower().strip(): name for name in reader.fieldnames if name}
        missing = sorted(_REQUIRED_COLUMNS - normalized.keys())
        if missing:
            raise ValueError(f"CSV missing required columns: {', '.join(missing)}")

        city_col = normalized["city"]
        timestamp_col = normalized["timestamp"]
        temperature_col = normalized["temperature"]

        errors: list[RowError] = []
        accepted: list[TemperatureMeasurement] = []
        for row_number, row in enumerate(reader, start=2):
            city = (row.get(city_col) or "").strip()
            timestamp_raw = (row.get(timestamp_col) or "").strip()
            temperature_raw = (row.get(temperature_col) or "").strip()

            if not city:
                errors.append(RowError(row_number=row_number, reason="missing city"))
                continue
            if not timestamp_raw:
                errors.append(RowError(row_number=row_number, reason="missing timestamp"))
                continue
            try:
                timestamp = parse_timestamp(timestamp_raw)
            except ValueError:
                errors.append(RowError(row_number=row_number, reason="invalid timestamp"))
                continue
            if not temperature_raw:
                errors.append(RowError(row_number=row_number, reason="missing temperature"))
                continue
            try:
                temperature = float(temperature_raw)
                if not math.isfinite(temperature):
                    raise ValueError("non-finite temperature")
            except ValueError:
                errors.append(
                    RowError(row_number=row_number, reason="invalid numeric value")
                )
                continue

            measurement = TemperatureMeasurement(
                temperature=temperature, city=city, timestamp=timestamp
            )
            try:
                accepted.append(self.record(measurement))
            except MeasurementRejected as exc:
                errors.append(RowError(row_number=row_number, reason=exc.reason))

        if not accepted and errors:
            status = ImportStatus.failed
        elif errors:
            status = ImportStatus.partial
        else:
            status = ImportStatus.processed

        summaries = [
            CitySummaryOut.from_summary(city, summary)
            for city, summary in sorted(self.aggregator.summarize(accepted).items())
        ]
        logger.info(
            "CSV import finished",
            extra={"accepted": len(accepted), "rejected": len(errors)},
        )
        return ImportResult(
            status=status,
            accepted=len(accepted),
            rejected=len(errors),
            summaries=summaries,
            errors=errors,
        )

    def load_snapshot(self) -> int:
        if self.snapshot is None:
            return 0
        return self.snapshot.load(self.store)

    def save_snapshot(self) -> int:
        if self.snapshot is None:
            return 0
        return self.snapshot.save(self.store)

    def shutdown(self) -> None:
        """Persist the current histories when a snapshot file is configured."""
        self.save_snapshot()


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into an aware UTC datetime."""
    candidate = value.strip()
    if not candidate:
        raise ValueError("Timestamp is empty.")

    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError as exc:
        raise ValueError("Invalid timestamp format") from exc

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed.astimezone(timezone.utc)


@lru_cache
def build_default_station(snapshot_path: Optional[str] = None) -> StationService:
    """Factory that wires the station from settings."""
    settings = get_settings()
    path = snapshot_path if snapshot_path is not None else settings.snapshot_path
    store = MeasurementStore(min_interval=timedelta(seconds=settings.min_interval_seconds))
    snapshot = SnapshotFile(Path(path)) if path else None
    return StationService(
        store=store,
        aggregator=Aggregator(),
        snapshot=snapshot,
        average_window=settings.average_window,
    )
