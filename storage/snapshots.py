from __future__ import annotations

import json
import logging
import math
from datetime import datetime, timezone
from pathlib import Path

from datastore.measurement_store import MeasurementStore
from models.records import TemperatureMeasurement

logger = logging.getLogger(__name__)


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class SnapshotFile:
    """JSON file holding a point-in-time copy of a store's histories."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def save(self, store: MeasurementStore) -> int:
        """Write every history in ``store`` and return the measurement count."""
        payload = {
            city: [
                {
                    "temperature": measurement.temperature,
                    "timestamp": measurement.timestamp.isoformat(),
                }
                for measurement in store.history(city)
            ]
            for city in store.keys()
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(payload, indent=2, sort_keys=True))
        saved = sum(len(rows) for rows in payload.values())
        logger.info("Snapshot written", extra={"path": str(self.path), "saved": saved})
        return saved

    def load(self, store: MeasurementStore) -> int:
        """Replay the snapshot into ``store`` and return how many were accepted.

        Entries go through ``store.insert`` so loaded histories obey the same
        ordering rules as live ones; rejected or malformed entries are skipped.
        """
        if not self.path.exists():
            return 0

        try:
            raw = self.path.read_text() or "{}"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError):
            logger.warning("Snapshot unreadable, starting empty", extra={"path": str(self.path)})
            return 0
        if not isinstance(data, dict):
            logger.warning("Snapshot has unexpected shape", extra={"path": str(self.path)})
            return 0

        loaded = 0
        skipped = 0
        for city, rows in data.items():
            if not isinstance(rows, list):
                logger.warning(
                    "Snapshot entry is not a list, skipping city",
                    extra={"path": str(self.path), "city": city},
                )
                skipped += 1
                continue
            for row in rows:
                try:
                    temperature = float(row["temperature"])
                    if not math.isfinite(temperature):
                        raise ValueError("non-finite temperature")
                    measurement = TemperatureMeasurement(
                        temperature=temperature,
                        city=city,
                        timestamp=_parse_timestamp(row["timestamp"]),
                    )
                    store.insert(measurement)
                except (KeyError, TypeError, ValueError):
                    # MeasurementRejected is a ValueError as well.
                    skipped += 1
                    continue
                loaded += 1

        logger.info(
            "Snapshot loaded",
            extra={"path": str(self.path), "loaded": loaded, "skipped": skipped or None},
        )
        return loaded
