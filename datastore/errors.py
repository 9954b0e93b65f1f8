"""Rejection errors raised by the measurement store."""

from __future__ import annotations

from models.records import TemperatureMeasurement


class MeasurementRejected(ValueError):
    """Base class for measurements the store refuses to append."""

    reason = "rejected"

    def __init__(
        self,
        message: str,
        *,
        measurement: TemperatureMeasurement,
        latest: TemperatureMeasurement,
    ) -> None:
        self.measurement = measurement
        self.latest = latest
        super().__init__(message)


class OutdatedMeasurement(MeasurementRejected):
    """The reading is not strictly newer than the latest stored one."""

    reason = "outdated"


class TooRecentMeasurement(MeasurementRejected):
    """The reading arrived within the minimum interval after the latest one."""

    reason = "too_recent"
