from __future__ import annotations

from datetime import timedelta
from threading import Lock
from typing import Dict, List, Optional

from datastore.errors import OutdatedMeasurement, TooRecentMeasurement
from models.records import TemperatureMeasurement

DEFAULT_MIN_INTERVAL = timedelta(hours=1)
DEFAULT_WINDOW_SIZE = 24


class MeasurementStore:
    """Append-only, per-city history of temperature measurements.

    Each city's history is strictly increasing in time and consecutive
    readings are more than ``min_interval`` apart.  The default of one hour is
    the station rule; any other interval changes which readings are accepted
    and is meant for tests and deployments that opt out of that rule.  A
    single lock guards the whole mapping, so inserts for the same city are
    serialised.
    """

    def __init__(self, min_interval: timedelta = DEFAULT_MIN_INTERVAL) -> None:
        self.min_interval = min_interval
        self._histories: Dict[str, List[TemperatureMeasurement]] = {}
        self._lock = Lock()

    def insert(self, measurement: TemperatureMeasurement) -> None:
        """Append ``measurement`` to its city's history.

        Raises:
            OutdatedMeasurement: the timestamp is not after the latest one.
            TooRecentMeasurement: the gap to the latest one is within
                ``min_interval``.
        """
        with self._lock:
            history = self._histories.get(measurement.city)
            if not history:
                self._histories[measurement.city] = [measurement]
                return

            last = history[-1]
            if measurement.timestamp <= last.timestamp:
                raise OutdatedMeasurement(
                    f"Measurement for {measurement.city!r} at "
                    f"{measurement.timestamp.isoformat()} is not newer than "
                    f"{last.timestamp.isoformat()}.",
                    measurement=measurement,
                    latest=last,
                )
            if measurement.timestamp - last.timestamp <= self.min_interval:
                raise TooRecentMeasurement(
                    f"Measurement for {measurement.city!r} at "
                    f"{measurement.timestamp.isoformat()} arrived within "
                    f"{self.min_interval} of {last.timestamp.isoformat()}.",
                    measurement=measurement,
                    latest=last,
                )
            history.append(measurement)

    def history(self, city: str) -> List[TemperatureMeasurement]:
        with self._lock:
            return list(self._histories.get(city, ()))

    def latest(self, city: str) -> Optional[TemperatureMeasurement]:
        with self._lock:
            history = self._histories.get(city)
            if not history:
                return None
            return history[-1]

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._histories)

    def trailing_average(self, window_size: int = DEFAULT_WINDOW_SIZE) -> Dict[str, float]:
        """Mean of the last ``window_size`` temperatures for every city.

        Histories shorter than the window are averaged over what they hold.
        """
        if window_size < 1:
            raise ValueError(f"window_size must be positive, got {window_size}.")

        with self._lock:
            averages: Dict[str, float] = {}
            for city, history in self._histories.items():
                window = history[-window_size:]
                averages[city] = sum(m.temperature for m in window) / len(window)
            return averages
