"""Tests for mission API endpoints."""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from orbitsim.config import Config, set_config
from orbitsim.dynamics.tle import ISS_TLE
from orbitsim.main import app


@pytest.fixture
def client():
    """Create test client with default configuration."""
    set_config(Config())
    yield TestClient(app)
    set_config(None)


def run_request(**overrides) -> dict:
    request = {
        "line1": ISS_TLE[0],
        "line2": ISS_TLE[1],
        "end": 5400.0,
        "step": 60.0,
    }
    request.update(overrides)
    return request


class TestRootEndpoints:
    """Tests for service endpoints."""

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["name"] == "Orbit Simulator"

    def test_health(self, client):
        response = client.get("/health")
        assert response.json() == {"status": "healthy"}


class TestElementsEndpoint:
    """Tests for POST /api/mission/elements."""

    def test_valid_tle(self, client):
        response = client.post(
            "/api/mission/elements", json={"line1": ISS_TLE[0], "line2": ISS_TLE[1]}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["elements"]["satnum"] == "25544"
        assert data["elements"]["inclination"] == pytest.approx(51.6461)

    def test_short_line_rejected(self, client):
        """Pydantic rejects lines that are too short."""
        response = client.post("/api/mission/elements", json={"line1": "1 25544U", "line2": ISS_TLE[1]})
        assert response.status_code == 422

    def test_unparseable_tle(self, client):
        """A TLE with zero mean motion is a 400."""
        response = client.post(
            "/api/mission/elements",
            json={
                "line1": "1 00000U 00000A   00000.00000000  .00000000  00000-0  00000-0 0  0000",
                "line2": "2 00000   0.0000   0.0000 0000000   0.0000   0.0000  0.00000000000000",
            },
        )
        assert response.status_code == 400
        assert "Invalid TLE" in response.json()["detail"]


class TestRunEndpoint:
    """Tests for POST /api/mission/run."""

    def test_run_returns_samples_and_windows(self, client):
        response = client.post(
            "/api/mission/run",
            json=run_request(
                groundStations=[
                    {"name": "Makinohara", "latitude": 34.74, "longitude": 138.22},
                ],
            ),
        )
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert len(data["samples"]) == 91
        assert data["samples"][0]["time"] == 0.0
        assert data["samples"][-1]["time"] == 5400.0
        assert data["deorbitTime"] is None
        assert list(data["linkWindows"]) == ["Makinohara"]
        sunlight = data["sunlightWindows"]
        assert sunlight[0]["startTime"] == 0.0
        assert sunlight[-1]["endTime"] == 5400.0
        assert {w["kind"] for w in sunlight} <= {"sunlit", "eclipse"}

    def test_run_with_maneuver(self, client):
        """A maneuver adds a boundary sample when it falls off the grid."""
        response = client.post(
            "/api/mission/run",
            json=run_request(maneuvers=[{"time": 630.0, "deltaV": [0.01, 0.0, 0.0], "label": "raise"}]),
        )
        assert response.status_code == 200
        times = [s["time"] for s in response.json()["samples"]]
        assert 630.0 in times
        assert len(times) == 92

    def test_unbound_maneuver_aborts(self, client):
        """A run that fails mid-way still returns the samples computed so far."""
        response = client.post(
            "/api/mission/run",
            json=run_request(maneuvers=[{"time": 1800.0, "deltaV": [5.0, 0.0, 0.0], "label": "escape"}]),
        )
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "aborted"
        assert data["error"]["kind"] == "unbound_orbit"
        assert data["error"]["time"] == 1800.0
        assert "escape" in data["error"]["message"]
        assert data["samples"][-1]["time"] == 1740.0

    def test_unordered_maneuvers_rejected(self, client):
        response = client.post(
            "/api/mission/run",
            json=run_request(maneuvers=[
                {"time": 1200.0, "deltaV": [0.001, 0.0, 0.0]},
                {"time": 600.0, "deltaV": [0.001, 0.0, 0.0]},
            ]),
        )
        assert response.status_code == 400

    def test_unknown_frame_rejected(self, client):
        response = client.post(
            "/api/mission/run",
            json=run_request(maneuvers=[{"time": 600.0, "deltaV": [0.001, 0.0, 0.0], "frame": "lvlh"}]),
        )
        assert response.status_code == 400

    def test_invalid_step_rejected(self, client):
        response = client.post("/api/mission/run", json=run_request(step=0.0))
        assert response.status_code == 422

    def test_end_before_start_rejected(self, client):
        response = client.post("/api/mission/run", json=run_request(start=600.0, end=0.0))
        assert response.status_code == 400

    def test_duplicate_station_names_rejected(self, client):
        """Stations with the same name would share one entry in linkWindows."""
        response = client.post(
            "/api/mission/run",
            json=run_request(groundStations=[
                {"name": "Makinohara", "latitude": 34.74, "longitude": 138.22},
                {"name": "Makinohara", "latitude": -33.15, "longitude": -70.67},
            ]),
        )
        assert response.status_code == 400
        assert "unique" in response.json()["detail"]

    def test_mission_epoch_override(self, client):
        """Sample times are relative to the requested mission epoch."""
        response = client.post(
            "/api/mission/run",
            json=run_request(epoch="2020-07-12T12:00:00", start=0.0, end=600.0),
        )
        assert response.status_code == 200
        epoch = datetime.fromisoformat(response.json()["epoch"])
        expected = datetime(2020, 7, 12, 12, 0, tzinfo=timezone.utc)
        assert abs((epoch - expected).total_seconds()) < 1e-3
