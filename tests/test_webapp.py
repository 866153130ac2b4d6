"""Tests for the FastAPI endpoints."""

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from activity_tracker.models import DEFAULT_ACTIVITIES
from activity_tracker.webapp import create_app


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 3, 1, 12, 0))


@pytest.fixture
def client(tmp_path, clock):
    app = create_app(db_path=tmp_path / "api.sqlite3", clock=clock)
    with TestClient(app) as test_client:
        yield test_client


def first_activity_id(client):
    return client.get("/api/activities").json()["activities"][0]["id"]


class TestActivities:
    def test_defaults_seeded(self, client):
        activities = client.get("/api/activities").json()["activities"]
        assert [a["name"] for a in activities] == [p.name for p in DEFAULT_ACTIVITIES]

    def test_create(self, client):
        response = client.post("/api/activities", json={"name": "Music", "color": "#123456"})
        assert response.status_code == 201
        assert response.json()["name"] == "Music"

    def test_create_rejects_blank_name(self, client):
        response = client.post("/api/activities", json={"name": "   ", "color": "#123456"})
        assert response.status_code == 400

    def test_limit_from_settings(self, client):
        client.put("/api/settings", json={"max_activities": len(DEFAULT_ACTIVITIES)})
        response = client.post("/api/activities", json={"name": "Music", "color": "#123456"})
        assert response.status_code == 400

    def test_update(self, client):
        activity_id = first_activity_id(client)
        response = client.patch(f"/api/activities/{activity_id}", json={"color": "#000000"})
        assert response.status_code == 200
        assert response.json()["color"] == "#000000"

    def test_update_missing(self, client):
        response = client.patch("/api/activities/missing", json={"color": "#000000"})
        assert response.status_code == 404

    def test_delete(self, client):
        activity_id = first_activity_id(client)
        assert client.delete(f"/api/activities/{activity_id}").status_code == 204
        assert client.delete(f"/api/activities/{activity_id}").status_code == 404


class TestRecording:
    def test_start_and_stop(self, client, clock):
        activity_id = first_activity_id(client)
        started = client.post("/api/start", json={"activity_id": activity_id})
        assert started.status_code == 200
        assert started.json()["ongoing"]["end_time"] is None
        assert client.get("/api/status").json()["recording"] is True

        clock.now = datetime(2025, 3, 1, 13, 30)
        stopped = client.post("/api/stop").json()["records"]
        assert len(stopped) == 1
        assert stopped[0]["duration_seconds"] == 90 * 60
        assert client.get("/api/ongoing").json()["ongoing"] is None

    def test_start_unknown_activity(self, client):
        response = client.post("/api/start", json={"activity_id": "missing"})
        assert response.status_code == 404

    def test_stop_when_idle(self, client):
        assert client.post("/api/stop").json()["records"] == []

    def test_records_listing_and_delete(self, client, clock):
        activity_id = first_activity_id(client)
        clock.now = datetime(2025, 3, 1, 9, 0)
        client.post("/api/start", json={"activity_id": activity_id})
        clock.now = datetime(2025, 3, 1, 10, 0)
        client.post("/api/stop")

        listed = client.get("/api/records", params={"date": "2025-03-01"}).json()["records"]
        assert len(listed) == 1
        record_id = listed[0]["id"]
        assert client.delete(f"/api/records/{record_id}").status_code == 204
        assert client.get("/api/records", params={"date": "2025-03-01"}).json()["records"] == []

    def test_reset(self, client, clock):
        activity_id = first_activity_id(client)
        client.post("/api/start", json={"activity_id": activity_id})
        assert client.delete("/api/records").status_code == 204
        assert client.get("/api/ongoing").json()["ongoing"] is None

    def test_records_invalid_range(self, client):
        response = client.get("/api/records", params={"start": "2025-03-05", "end": "2025-03-01"})
        assert response.status_code == 400


class TestStats:
    def test_today_counts_open_record(self, client, clock):
        activity_id = first_activity_id(client)
        clock.now = datetime(2025, 3, 1, 10, 0)
        client.post("/api/start", json={"activity_id": activity_id})
        clock.now = datetime(2025, 3, 1, 12, 0)
        body = client.get("/api/stats", params={"date": "2025-03-01"}).json()
        assert body["total_minutes"] == pytest.approx(720)
        assert body["entries"][0]["activity_id"] == activity_id
        assert body["entries"][0]["total_minutes"] == pytest.approx(120)
        assert body["entries"][-1]["kind"] == "idle"

    def test_week_unit(self, client):
        body = client.get("/api/stats", params={"date": "2025-02-19", "unit": "week"}).json()
        assert (body["start"], body["end"]) == ("2025-02-17", "2025-02-23")
        assert body["total_minutes"] == pytest.approx(7 * 1440)

    def test_explicit_inverted_range(self, client):
        response = client.get("/api/stats", params={"start": "2025-02-10", "end": "2025-02-01"})
        assert response.status_code == 400

    def test_invalid_date(self, client):
        assert client.get("/api/stats", params={"date": "yesterday"}).status_code == 400

    def test_invalid_unit(self, client):
        assert client.get("/api/stats", params={"unit": "decade"}).status_code == 422


class TestTimeline:
    def test_today(self, client):
        blocks = client.get("/api/timeline").json()["blocks"]
        assert [b["kind"] for b in blocks] == ["idle", "future"]
        assert blocks[0]["end_minute"] == pytest.approx(720)
        assert blocks[-1]["end_minute"] == 1440

    def test_future_day(self, client):
        blocks = client.get("/api/timeline", params={"date": "2025-03-02"}).json()["blocks"]
        assert blocks == [
            {
                "kind": "future",
                "activity_id": None,
                "name": "Remaining",
                "color": "#e5e7eb",
                "start_minute": 0.0,
                "end_minute": 1440.0,
                "duration_minutes": 1440.0,
            }
        ]


class TestSettings:
    def test_defaults(self, client):
        body = client.get("/api/settings").json()
        assert body["max_activities"] == 15
        assert body["theme"]["dark_mode"] is False

    def test_update(self, client):
        payload = {"theme": {"primary_color": "#ff0000", "dark_mode": True}, "max_activities": 10}
        assert client.put("/api/settings", json=payload).json() == payload
        assert client.get("/api/settings").json() == payload
