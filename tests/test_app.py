from pathlib import Path
from typing import Iterator, List

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from services.coordinator import ReadingCoordinator, build_default_coordinator
from settings import get_settings
from storage.log_store import SensorLogStore, build_default_log_store


def _client_for(data_dir: str, monkeypatch) -> Iterator[TestClient]:
    coordinators: List[ReadingCoordinator] = []

    def build_test_coordinator(queue_size: int | None = None) -> ReadingCoordinator:
        if not coordinators:
            coordinators.append(ReadingCoordinator(store=SensorLogStore(data_dir=data_dir)))
        return coordinators[0]

    def cache_clear() -> None:
        while coordinators:
            coordinators.pop().shutdown()

    build_test_coordinator.cache_clear = cache_clear  # type: ignore[attr-defined]

    monkeypatch.setattr("app.main.build_default_coordinator", build_test_coordinator)
    monkeypatch.setattr("app.api.build_default_coordinator", build_test_coordinator)

    app = create_app()
    with TestClient(app) as client:
        yield client

    cache_clear()


@pytest.fixture
def api_client(tmp_path, monkeypatch) -> Iterator[TestClient]:
    yield from _client_for(f"{tmp_path}/", monkeypatch)


def test_lifespan_shuts_down_coordinator_and_clears_cache(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("SENSOR_DATA_DIR", f"{tmp_path}/")
    get_settings.cache_clear()
    build_default_log_store.cache_clear()
    build_default_coordinator.cache_clear()
    app = create_app()

    with TestClient(app):
        coordinator_during = build_default_coordinator()
        assert coordinator_during.is_running

    assert not coordinator_during.is_running
    coordinator_after = build_default_coordinator()
    try:
        assert coordinator_after is not coordinator_during
        assert coordinator_after.is_running
    finally:
        coordinator_after.shutdown()
        build_default_coordinator.cache_clear()
        build_default_log_store.cache_clear()
        get_settings.cache_clear()


def test_write_then_read_returns_sorted_history(api_client: TestClient, tmp_path: Path) -> None:
    first = api_client.post(
        "/readings",
        json={"sensor_id": 1, "readings": [{"timestamp": "2024-01-02", "value": 5.0}]},
    )
    second = api_client.post(
        "/readings",
        json={"sensor_id": 1, "readings": [{"timestamp": "2024-01-01", "value": 3.0}]},
    )

    assert first.status_code == 201
    assert first.json() == {"sensor_id": 1, "accepted": 1}
    assert second.status_code == 201

    response = api_client.get("/readings", params={"sensor_id": "1"})

    assert response.status_code == 200
    assert response.json() == {
        "sensor_id": 1,
        "readings": [
            {"timestamp": "2024-01-01", "value": 3.0},
            {"timestamp": "2024-01-02", "value": 5.0},
        ],
    }
    assert (tmp_path / "1").read_text() == "2024-01-02 5\n2024-01-01 3\n"


def test_read_of_fresh_sensor_returns_empty_list(api_client: TestClient) -> None:
    response = api_client.get("/readings", params={"sensor_id": "42"})

    assert response.status_code == 200
    assert response.json() == {"sensor_id": 42, "readings": []}


def test_read_without_sensor_id_is_rejected(api_client: TestClient) -> None:
    response = api_client.get("/readings")

    assert response.status_code == 400
    assert response.json()["detail"] == "Error: sensor_id not provided"


@pytest.mark.parametrize("raw", ["abc", "-1", "+5", "1.5", "4294967296", " 7"])
def test_read_with_invalid_sensor_id_is_rejected(api_client: TestClient, raw: str) -> None:
    response = api_client.get("/readings", params={"sensor_id": raw})

    assert response.status_code == 400
    assert response.json()["detail"] == "invalid sensor id"


def test_read_accepts_largest_sensor_id(api_client: TestClient) -> None:
    response = api_client.get("/readings", params={"sensor_id": "4294967295"})

    assert response.status_code == 200
    assert response.json()["sensor_id"] == 4294967295


@pytest.mark.parametrize(
    "body",
    [
        b"{not json",
        b'{"readings": []}',
        b'{"sensor_id": -1, "readings": []}',
        b'{"sensor_id": 4294967296, "readings": []}',
        b'{"sensor_id": 1, "readings": [{"timestamp": "2024 01 01", "value": 1}]}',
        b'{"sensor_id": 1, "readings": [{"timestamp": "2024-01-01", "value": "abc"}]}',
        b'{"sensor_id": 1, "readings": [{"value": 1}]}',
        b'{"sensor_id": "1", "readings": []}',
        b'{"sensor_id": 1.0, "readings": []}',
        b'{"sensor_id": 1, "readings": [{"timestamp": "t", "value": "5"}]}',
        b'{"sensor_id": 1, "readings": [{"timestamp": 20240101, "value": 5}]}',
    ],
)
def test_malformed_write_is_rejected_without_touching_disk(
    api_client: TestClient, tmp_path: Path, body: bytes
) -> None:
    response = api_client.post(
        "/readings", content=body, headers={"content-type": "application/json"}
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Error: malformed request"
    assert not (tmp_path / "1").exists()


def test_write_without_readings_is_accepted(api_client: TestClient) -> None:
    response = api_client.post("/readings", json={"sensor_id": 3})

    assert response.status_code == 201
    assert response.json() == {"sensor_id": 3, "accepted": 0}


def test_write_failure_returns_server_error(tmp_path, monkeypatch) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")

    for client in _client_for(f"{blocker}/", monkeypatch):
        response = client.post(
            "/readings",
            json={"sensor_id": 1, "readings": [{"timestamp": "t", "value": 1.0}]},
        )
        assert response.status_code == 500
        assert response.json()["detail"] == "Error writing readings"

        follow_up = client.get("/readings", params={"sensor_id": "1"})
        assert follow_up.status_code == 200
        assert follow_up.json() == {"sensor_id": 1, "readings": []}


def test_hello_greets_by_name(api_client: TestClient) -> None:
    response = api_client.get("/hello", params={"name": "Ada"})

    assert response.status_code == 200
    assert response.json() == {"message": "Hello Ada"}


def test_hello_requires_name(api_client: TestClient) -> None:
    response = api_client.get("/hello")

    assert response.status_code == 400
    assert response.json()["detail"] == "Error: name not provided"


def test_health_reports_coordinator_state(api_client: TestClient) -> None:
    response = api_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "coordinator_running": True,
        "pending_requests": 0,
    }


def test_read_of_log_with_invalid_bytes_returns_history(api_client: TestClient, tmp_path: Path) -> None:
    (tmp_path / "3").write_bytes(b"2024-01-01 1\n2024-01-02\xff 2\n")

    response = api_client.get("/readings", params={"sensor_id": "3"})

    assert response.status_code == 200
    assert response.json() == {
        "sensor_id": 3,
        "readings": [
            {"timestamp": "2024-01-01", "value": 1.0},
            {"timestamp": "2024-01-02\ufffd", "value": 2.0},
        ],
    }
