from __future__ import annotations

from datetime import timedelta
from typing import Iterable

from services.station import build_default_station
from settings import get_settings


def _clear_caches(caches: Iterable) -> None:
    for cache in caches:
        cache.cache_clear()


def test_environment_overrides_apply(monkeypatch, tmp_path) -> None:
    snapshot_path = tmp_path / "station.json"

    monkeypatch.setenv("STATION_MIN_INTERVAL_SECONDS", "900")
    monkeypatch.setenv("STATION_AVERAGE_WINDOW", "6")
    monkeypatch.setenv("STATION_SNAPSHOT_PATH", str(snapshot_path))
    monkeypatch.setenv("LOG_LEVEL", " debug ")

    caches = (get_settings, build_default_station)
    _clear_caches(caches)

    try:
        settings = get_settings()
        station = build_default_station()

        assert settings.log_level == "DEBUG"
        assert station.store.min_interval == timedelta(minutes=15)
        assert station.average_window == 6
        assert station.snapshot is not None
        assert station.snapshot.path == snapshot_path
    finally:
        _clear_caches(caches)


def test_invalid_values_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("STATION_MIN_INTERVAL_SECONDS", "-5")
    monkeypatch.setenv("STATION_AVERAGE_WINDOW", "many")
    monkeypatch.setenv("STATION_SNAPSHOT_PATH", "   ")
    monkeypatch.delenv("LOG_LEVEL", raising=False)

    caches = (get_settings, build_default_station)
    _clear_caches(caches)

    try:
        settings = get_settings()
        station = build_default_station()

        assert settings.min_interval_seconds == 3600
        assert settings.average_window == 24
        assert settings.snapshot_path is None
        assert settings.log_level == "INFO"
        assert station.snapshot is None
        assert station.store.min_interval == timedelta(hours=1)
    finally:
        _clear_caches(caches)
