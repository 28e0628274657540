"""
Tests for Patterns and Events API endpoints
"""
import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_store
from app.domain.recurrence import EveryNDays, Weekly
from app.main import app


@pytest.fixture
def client(store):
    """Test client with the in-memory store injected"""
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def weekly(store):
    return store.put_pattern(Weekly(), title="Laundry", duration_minutes=90)


class TestPatternsApi:
    def test_create_pattern(self, client, store):
        response = client.post("/api/patterns/", json={
            "title": "Rent",
            "frequency": "nth_weekday_of_month",
            "duration_minutes": 15,
            "nth_weekday_config": {"weekday": 5, "occurrence": -1},
        })
        assert response.status_code == 201
        data = response.json()
        assert data["frequency"] == "nth_weekday_of_month"
        assert data["nth_weekday_config"] == {"weekday": 5, "occurrence": -1}
        assert data["yearly_config"] is None
        assert data["initial_event"]["kind"] == "event"
        assert data["initial_event"]["pattern_id"] == data["id"]
        assert len(store.patterns) == 1

    def test_create_pattern_bad_config(self, client, store):
        response = client.post("/api/patterns/", json={
            "title": "Birthday", "frequency": "yearly", "duration_minutes": 60,
        })
        assert response.status_code == 400
        assert "yearly_config" in response.json()["detail"]
        assert store.patterns == {}

    def test_create_pattern_unknown_frequency(self, client):
        response = client.post("/api/patterns/", json={
            "title": "X", "frequency": "hourly", "duration_minutes": 60,
        })
        assert response.status_code == 422

    def test_create_pattern_missing_start_time(self, client):
        response = client.post("/api/patterns/", json={
            "title": "Standup", "frequency": "weekly", "duration_minutes": 15, "flexible_scheduling": False,
        })
        assert response.status_code == 400

    def test_list_and_get(self, client, weekly):
        response = client.get("/api/patterns/")
        assert response.status_code == 200
        assert [p["id"] for p in response.json()] == [weekly.id]

        response = client.get(f"/api/patterns/{weekly.id}")
        assert response.json()["title"] == "Laundry"

    def test_get_missing(self, client):
        assert client.get("/api/patterns/missing").status_code == 404

    def test_update(self, client, weekly):
        response = client.patch(f"/api/patterns/{weekly.id}", json={"title": "Wash"})
        assert response.status_code == 200
        assert response.json()["title"] == "Wash"

    def test_update_frequency_rejected(self, client, weekly):
        response = client.patch(f"/api/patterns/{weekly.id}", json={"frequency": "monthly"})
        assert response.status_code == 422

    def test_delete_deactivates(self, client, store, weekly):
        response = client.delete(f"/api/patterns/{weekly.id}")
        assert response.status_code == 204
        assert store.patterns[weekly.id].active is False

    def test_delete_missing(self, client):
        assert client.delete("/api/patterns/missing").status_code == 404

    def test_generate_instance(self, client, weekly):
        url = f"/api/patterns/{weekly.id}/generate-instance"
        response = client.post(url, json={"period_key": "2025-W42"})
        assert response.status_code == 201
        assert response.json()["deadline"] == "2025-10-19T23:59:59"

        response = client.post(url, json={"period_key": "2025-W42"})
        assert response.status_code == 409

    def test_generate_instance_bad_key(self, client, weekly):
        response = client.post(f"/api/patterns/{weekly.id}/generate-instance", json={"period_key": "2025-10"})
        assert response.status_code == 400

    def test_generate_batch(self, client, weekly):
        response = client.post("/api/patterns/generate-batch", json={
            "frequency": "weekly", "reference_date": "2025-10-08",
        })
        assert response.status_code == 200
        data = response.json()
        assert data["period_key"] == "2025-W41"
        assert [e["pattern_id"] for e in data["created"]] == [weekly.id]
        assert data["failed"] == {}

    def test_generate_batch_every_n_days(self, client):
        response = client.post("/api/patterns/generate-batch", json={"frequency": "every_n_days"})
        assert response.status_code == 400

    def test_next_date(self, client, store):
        p = store.put_pattern(EveryNDays(3))
        response = client.get(f"/api/patterns/{p.id}/next-date")
        assert response.status_code == 200
        assert response.json()["pattern_id"] == p.id

    def test_next_date_weekly_rejected(self, client, weekly):
        assert client.get(f"/api/patterns/{weekly.id}/next-date").status_code == 400


class TestEventsApi:
    def test_commit_virtual_event(self, client, weekly):
        payload = {
            "title": "Laundry", "duration_minutes": 90, "start_time": "2025-10-09T18:00:00",
            "pattern_id": weekly.id, "period_key": "2025-W41",
        }
        response = client.post("/api/events/", json=payload)
        assert response.status_code == 201
        data = response.json()
        assert data["category"] == "recurring"
        assert data["deadline"] == "2025-10-12T23:59:59"

        assert client.post("/api/events/", json=payload).status_code == 409

    def test_create_event_validation(self, client):
        response = client.post("/api/events/", json={"title": "", "duration_minutes": 30})
        assert response.status_code == 400

    def test_list_with_virtual(self, client, weekly):
        client.post("/api/events/", json={
            "title": "Laundry", "duration_minutes": 90, "start_time": "2025-10-09T18:00:00",
            "pattern_id": weekly.id, "period_key": "2025-W41",
        })
        response = client.get("/api/events/", params={
            "start": "2025-10-06T00:00:00", "end": "2025-10-19T23:59:59", "include_virtual": "true",
        })
        assert response.status_code == 200
        data = response.json()
        assert [e["period_key"] for e in data["events"]] == ["2025-W41"]
        assert [v["id"] for v in data["virtual_events"]] == [f"virtual-{weekly.id}-2025-W42"]
        assert data["virtual_events"][0]["kind"] == "virtual"

    def test_list_without_virtual(self, client, weekly):
        response = client.get("/api/events/", params={"start": "2025-10-06T00:00:00", "end": "2025-10-19T00:00:00"})
        assert response.json() == {"events": [], "virtual_events": []}

    def test_list_bad_range(self, client):
        response = client.get("/api/events/", params={"start": "2025-10-19T00:00:00", "end": "2025-10-06T00:00:00"})
        assert response.status_code == 400

    def test_reschedule(self, client):
        created = client.post("/api/events/", json={
            "title": "Dentist", "duration_minutes": 60, "start_time": "2025-10-08T15:00:00",
        }).json()
        response = client.patch(f"/api/events/{created['id']}", json={"start_time": None})
        assert response.status_code == 200
        assert response.json()["start_time"] is None

    def test_reschedule_missing(self, client):
        assert client.patch("/api/events/missing", json={"notes": "x"}).status_code == 404


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.text == "ok"
