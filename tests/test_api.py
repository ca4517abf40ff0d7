import pytest
from fastapi.testclient import TestClient

from conftest import FakeClock, RecordingAction
from quota_activator.api import routes
from quota_activator.config.loader import parse_config
from quota_activator.engine.scheduler import Scheduler
from quota_activator.main import app


client = TestClient(app)


@pytest.fixture
def configured_app(valid_config_data):
    config = parse_config(valid_config_data)
    app.dependency_overrides[routes.get_app_config] = lambda: config
    yield config
    app.dependency_overrides.clear()


class TestScheduleEndpoints:
    """Integration tests for the read-only schedule endpoints."""

    def test_next_trigger(self, configured_app):
        response = client.get("/api/v1/schedule/next", params={"now": "2025-02-19T16:00:00"})

        assert response.status_code == 200
        data = response.json()
        assert data["target_time"] == "09:00"
        assert data["trigger_instant"] == "2025-02-20T04:01:00"
        assert data["reference_date"] == "2025-02-20"

    def test_next_trigger_same_day(self, configured_app):
        response = client.get("/api/v1/schedule/next", params={"now": "2025-02-19T12:00:00"})
        assert response.json()["target_time"] == "19:00"
        assert response.json()["trigger_instant"] == "2025-02-19T14:01:00"

    def test_triggers_for_date(self, configured_app):
        response = client.get("/api/v1/schedule/triggers", params={"date": "2025-02-19"})

        assert response.status_code == 200
        data = response.json()
        assert [t["trigger_instant"] for t in data["triggers"]] == [
            "2025-02-19T04:01:00",
            "2025-02-19T09:01:00",
            "2025-02-19T14:01:00",
        ]
        assert data["interval_hours"] == 5
        assert data["safety_buffer_seconds"] == 60

    def test_upcoming(self, configured_app):
        response = client.get("/api/v1/schedule/upcoming", params={"count": 2, "now": "2025-02-19T16:00:00"})

        assert response.status_code == 200
        assert [t["target_time"] for t in response.json()["triggers"]] == ["09:00", "14:00"]

    def test_schedule_unavailable_without_config(self, monkeypatch, tmp_path):
        monkeypatch.setattr(routes.settings, "config_path", str(tmp_path / "missing.yaml"))
        monkeypatch.setattr(app.state, "config", None)
        response = client.get("/api/v1/schedule/next")
        assert response.status_code == 503


class TestValidateEndpoint:
    """Integration tests for /schedule/validate."""

    def test_valid_schedule(self):
        payload = {"interval_hours": 5, "target_times": ["09:00", "14:00", "19:00"]}
        response = client.post("/api/v1/schedule/validate", json=payload)

        assert response.status_code == 200
        assert response.json()["valid"] is True

    def test_conflict_returns_422_with_diagnostics(self):
        payload = {"interval_hours": 5, "target_times": ["14:00", "18:00"]}
        response = client.post("/api/v1/schedule/validate", json=payload)

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["valid"] is False
        conflict = detail["conflicts"][0]
        assert conflict["target_a"] == "18:00"
        assert conflict["trigger_a"] == "13:00"
        assert [conflict["window_start"], conflict["window_end"]] == ["09:00", "14:00"]
        assert detail["conflict_graph"] == {"14:00": ["18:00"], "18:00": ["14:00"]}

    def test_duplicate_flagged(self):
        payload = {"interval_hours": 5, "target_times": ["09:00", "09:00"]}
        response = client.post("/api/v1/schedule/validate", json=payload)

        assert response.status_code == 422
        assert response.json()["detail"]["conflicts"][0]["duplicate"] is True

    def test_invalid_time_format(self):
        payload = {"interval_hours": 5, "target_times": ["25:00"]}
        response = client.post("/api/v1/schedule/validate", json=payload)
        assert response.status_code == 422

    def test_interval_out_of_range(self):
        payload = {"interval_hours": 200, "target_times": ["09:00"]}
        response = client.post("/api/v1/schedule/validate", json=payload)
        assert response.status_code == 422


class TestSchedulerStatusEndpoint:
    def test_status_without_scheduler(self, monkeypatch):
        monkeypatch.setattr(app.state, "scheduler", None)
        assert client.get("/api/v1/scheduler/status").status_code == 503

    def test_status_with_scheduler(self, monkeypatch, three_targets, fake_clock):
        monkeypatch.setattr(app.state, "scheduler", Scheduler(three_targets, RecordingAction(), clock=fake_clock))
        response = client.get("/api/v1/scheduler/status")

        assert response.status_code == 200
        assert response.json()["state"] == "idle"
        assert response.json()["next_trigger"]["target_time"] == "09:00"


class TestHealthCheck:
    def test_health_check(self):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert "app" in data
