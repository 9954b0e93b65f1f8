"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class TemperatureMeasurement:
    """A single temperature reading taken in a city at a point in time."""

    temperature: float
    city: str
    timestamp: datetime
