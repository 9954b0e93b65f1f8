"""Summary statistics over temperature measurements."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable

from models.records import TemperatureMeasurement


@dataclass
class CitySummary:
    """Computed statistics for one city's measurements."""

    count: int
    min_value: float
    max_value: float
    mean_value: float
    first_at: datetime
    last_at: datetime


class Aggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def summarize(
        self, measurements: Iterable[TemperatureMeasurement]
    ) -> Dict[str, CitySummary]:
        totals: Dict[str, float] = {}
        summaries: Dict[str, CitySummary] = {}

        for measurement in measurements:
            value = measurement.temperature
            summary = summaries.get(measurement.city)
            if summary is None:
                summaries[measurement.city] = CitySummary(
                    count=1,
                    min_value=value,
                    max_value=value,
                    mean_value=value,
                    first_at=measurement.timestamp,
                    last_at=measurement.timestamp,
                )
                totals[measurement.city] = value
                continue

            summary.count += 1
            totals[measurement.city] += value
            summary.min_value = min(summary.min_value, value)
            summary.max_value = max(summary.max_value, value)
            summary.first_at = min(summary.first_at, measurement.timestamp)
            summary.last_at = max(summary.last_at, measurement.timestamp)

        for city, summary in summaries.items():
            summary.mean_value = totals[city] / summary.count

        return summaries
