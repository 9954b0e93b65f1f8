from typing import Dict, Iterator, Optional

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from datastore.measurement_store import MeasurementStore
from services.aggregator import Aggregator
from services.station import StationService, build_default_station
from settings import get_settings
from storage.snapshots import SnapshotFile


@pytest.fixture
def api_client(tmp_path, monkeypatch) -> Iterator[TestClient]:
    stations: Dict[Optional[str], StationService] = {}

    def build_test_station(snapshot_path: Optional[str] = None) -> StationService:
        station = stations.get(snapshot_path)
        if station is None:
            station = StationService(
                store=MeasurementStore(),
                aggregator=Aggregator(),
                snapshot=SnapshotFile(tmp_path / "snapshot.json"),
            )
            stations[snapshot_path] = station
        return station

    def cache_clear() -> None:
        stations.clear()

    build_test_station.cache_clear = cache_clear  # type: ignore[attr-defined]

    monkeypatch.setattr("app.main.build_default_station", build_test_station)
    monkeypatch.setattr("app.api.build_default_station", build_test_station)

    app = create_app()
    with TestClient(app) as client:
        yield client


def _post(client: TestClient, city: str, timestamp: str, temperature: float):
    return client.post(
        "/measurements",
        json={"city": city, "temperature": temperature, "timestamp": timestamp},
    )


def test_lifespan_saves_snapshot_and_clears_cache(tmp_path, monkeypatch) -> None:
    snapshot = tmp_path / "station.json"
    monkeypatch.setenv("STATION_SNAPSHOT_PATH", str(snapshot))
    get_settings.cache_clear()
    build_default_station.cache_clear()
    try:
        with TestClient(create_app()) as client:
            response = _post(client, "Oslo", "2024-01-01T00:00:00Z", 3.5)
            assert response.status_code == 201
            station_during = build_default_station()

        assert snapshot.exists()
        station_after = build_default_station()
        assert station_after is not station_during

        with TestClient(create_app()) as client:
            history = client.get("/cities/Oslo/measurements").json()
        assert [row["temperature"] for row in history] == [3.5]
    finally:
        build_default_station.cache_clear()
        get_settings.cache_clear()


def test_record_and_query_measurements(api_client: TestClient) -> None:
    first = _post(api_client, "Oslo", "2024-01-01T00:00:00Z", 10.0)
    assert first.status_code == 201, first.text
    assert first.json() == {
        "city": "Oslo",
        "temperature": 10.0,
        "timestamp": "2024-01-01T00:00:00Z",
    }

    too_recent = _post(api_client, "Oslo", "2024-01-01T00:30:00Z", 20.0)
    assert too_recent.status_code == 409
    assert too_recent.json()["detail"]["reason"] == "too_recent"

    second = _post(api_client, "Oslo", "2024-01-01T01:01:40Z", 20.0)
    assert second.status_code == 201, second.text

    history = api_client.get("/cities/Oslo/measurements")
    assert history.status_code == 200
    assert [row["temperature"] for row in history.json()] == [10.0, 20.0]

    latest = api_client.get("/cities/Oslo/latest")
    assert latest.status_code == 200
    assert latest.json()["temperature"] == 20.0


def test_outdated_measurement_returns_conflict(api_client: TestClient) -> None:
    assert _post(api_client, "B", "2024-01-01T01:23:20Z", 5.0).status_code == 201

    response = _post(api_client, "B", "2024-01-01T01:06:40Z", 1.0)

    assert response.status_code == 409
    detail = response.json()["detail"]
    assert detail["reason"] == "outdated"
    assert "B" in detail["message"]


def test_measurement_without_timestamp_uses_now(api_client: TestClient) -> None:
    response = api_client.post("/measurements", json={"city": "Oslo", "temperature": 1.0})

    assert response.status_code == 201
    assert response.json()["timestamp"]


def test_measurement_validation(api_client: TestClient) -> None:
    response = api_client.post("/measurements", json={"city": "", "temperature": 1.0})

    assert response.status_code == 422


def test_unknown_city_queries(api_client: TestClient) -> None:
    assert api_client.get("/cities/Nowhere/measurements").json() == []
    assert api_client.get("/cities/Nowhere/latest").status_code == 404
    assert api_client.get("/cities/Nowhere/summary").status_code == 404
    assert api_client.get("/cities").json() == []


def test_cities_summary_and_averages(api_client: TestClient) -> None:
    for hour in range(0, 60, 2):
        timestamp = f"2024-01-{1 + hour // 24:02d}T{hour % 24:02d}:00:00Z"
        assert _post(api_client, "C", timestamp, float(hour // 2 + 1)).status_code == 201
    assert _post(api_client, "A", "2024-01-01T00:00:00Z", 4.0).status_code == 201

    assert api_client.get("/cities").json() == ["A", "C"]

    summary = api_client.get("/cities/C/summary").json()
    assert summary["count"] == 30
    assert summary["min_value"] == 1.0
    assert summary["max_value"] == 30.0

    averages = api_client.get("/averages").json()
    assert averages["window"] == 24
    assert averages["averages"]["C"] == pytest.approx(sum(range(7, 31)) / 24)
    assert averages["averages"]["A"] == 4.0

    small = api_client.get("/averages", params={"window": 2}).json()
    assert small["averages"]["C"] == pytest.approx(29.5)

    assert api_client.get("/averages", params={"window": 0}).status_code == 422


def test_import_csv_endpoint(api_client: TestClient) -> None:
    csv_content = """city,timestamp,temperature
Oslo,2024-01-01T00:00:00Z,1.0
Oslo,2024-01-01T00:10:00Z,2.5
Bergen,2024-01-01T00:01:00Z,2.5
"""

    response = api_client.post(
        "/imports",
        files={"file": ("readings.csv", csv_content, "text/csv")},
    )

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["status"] == "partial"
    assert body["accepted"] == 2
    assert body["errors"] == [{"row_number": 3, "reason": "too_recent"}]
    assert api_client.get("/cities").json() == ["Bergen", "Oslo"]


def test_import_empty_file_returns_bad_request(api_client: TestClient) -> None:
    response = api_client.post(
        "/imports",
        files={"file": ("empty.csv", b"", "text/csv")},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Uploaded file is empty."


def test_health_and_root(api_client: TestClient) -> None:
    assert api_client.get("/health").json() == {"status": "ok"}
    assert api_client.get("/").json()["status"] == "ok"


@pytest.mark.parametrize("temperature", ["NaN", "Infinity", "-Infinity"])
def test_non_finite_temperature_is_rejected(api_client: TestClient, temperature: str) -> None:
    response = api_client.post(
        "/measurements",
        content=f'{{"city": "Oslo", "temperature": {temperature}}}',
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 422
    assert api_client.get("/cities").json() == []
