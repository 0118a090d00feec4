from fastapi.testclient import TestClient

from questline.main import app

from conftest import signed_in_client

JOURNEY = {
    "title": "Morning Run",
    "description": "A short run every morning before work",
    "habit": "Running",
    "duration": 7,
    "theme": "adventure",
}


def create_journey(client, **overrides):
    resp = client.post("/journeys", json={**JOURNEY, **overrides})
    assert resp.status_code == 201, resp.text
    return resp.json()


def post_check_in(client, journey_id, day, **fields):
    body = {"day": day, "reflection": "Ran the whole loop today.", **fields}
    return client.post(f"/journeys/{journey_id}/check-ins", json=body)


def test_health_and_root(tables):
    client = TestClient(app)
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/").status_code == 200


def test_journeys_require_authentication(tables):
    client = TestClient(app)
    resp = client.get("/journeys")
    assert resp.status_code == 401
    assert client.get("/journeys/active").status_code == 401


def test_bearer_header_is_accepted(tables):
    client = TestClient(app)
    client.post("/auth/signup", data={"email": "runner@example.com", "password": "password123"})
    token = client.post(
        "/auth/login", data={"email": "runner@example.com", "password": "password123"}
    ).json()["access_token"]

    fresh = TestClient(app)
    resp = fresh.get("/journeys", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200
    assert resp.json() == []


def test_create_journey_returns_view(client):
    view = create_journey(client)

    assert view["journey"]["title"] == "Morning Run"
    assert view["journey"]["current_day"] == 0
    assert view["status"] == "In Progress"
    assert view["progress"] == 0
    assert view["next_action"] == "check_in"
    assert view["can_check_in"] is True
    assert [g["day"] for g in view["reflection_gates"]] == [3, 7]
    assert [m["position"] for m in view["milestones"]] == [0, 25, 50, 75, 100]


def test_missing_fields_are_reported_together(client):
    resp = client.post("/journeys", json={"title": "Half a plan"})

    assert resp.status_code == 422
    body = resp.json()
    assert body["error"] == "validation_error"
    assert body["fields"] == ["description", "habit", "duration", "theme"]


def test_active_journey_is_null_without_one(client):
    resp = client.get("/journeys/active")
    assert resp.status_code == 200
    assert resp.json() is None

    create_journey(client, start_now=False)
    assert client.get("/journeys/active").json() is None


def test_draft_can_be_started(client):
    draft = create_journey(client, start_now=False)
    assert draft["status"] == "Not Started"
    assert draft["next_action"] == "not_started"

    started = client.post(f"/journeys/{draft['journey']['id']}/start").json()
    assert started["status"] == "In Progress"
    assert client.get("/journeys/active").json()["journey"]["id"] == draft["journey"]["id"]


def test_check_in_flow_with_reflection_gate(client):
    journey_id = create_journey(client)["journey"]["id"]

    for day in range(3):
        resp = post_check_in(client, journey_id, day, truth_rating=10)
        assert resp.status_code == 201, resp.text

    view = client.get("/journeys/active").json()
    assert view["journey"]["current_day"] == 3
    assert view["journey"]["streak"] == 3
    assert view["journey"]["truth_score"] == 10
    assert view["next_action"] == "reflection_gate"
    assert [c["day"] for c in view["recent_check_ins"]] == [2, 1, 0]
    gate = view["pending_gate"]
    assert gate["day"] == 3

    blocked = post_check_in(client, journey_id, 3)
    assert blocked.status_code == 409
    assert blocked.json()["error"] == "reflection_gate_pending"
    assert blocked.json()["gate_id"] == gate["id"]

    short = client.post(
        f"/journeys/{journey_id}/gates/{gate['id']}/complete", json={"response": "meh"}
    )
    assert short.status_code == 422

    done = client.post(
        f"/journeys/{journey_id}/gates/{gate['id']}/complete",
        json={"response": "Running has started to feel like part of who I am."},
    )
    assert done.status_code == 200
    assert done.json()["completed"] is True

    assert post_check_in(client, journey_id, 3).status_code == 201


def test_duplicate_check_in_is_a_conflict(client):
    journey_id = create_journey(client)["journey"]["id"]
    assert post_check_in(client, journey_id, 0).status_code == 201

    resp = post_check_in(client, journey_id, 0)
    assert resp.status_code == 409
    assert resp.json()["error"] == "conflict"


def test_short_reflection_is_rejected(client):
    journey_id = create_journey(client)["journey"]["id"]
    resp = post_check_in(client, journey_id, 0, reflection="ok")

    assert resp.status_code == 422
    assert resp.json()["fields"] == ["reflection"]


def test_update_and_complete_journey(client):
    journey_id = create_journey(client)["journey"]["id"]

    resp = client.patch(f"/journeys/{journey_id}", json={"title": "Evening Run"})
    assert resp.status_code == 200
    assert resp.json()["title"] == "Evening Run"

    completed = client.post(f"/journeys/{journey_id}/complete").json()
    assert completed["status"] == "Completed"
    assert completed["next_action"] == "completed"
    assert completed["pending_gate"] is None
    assert client.get("/journeys/active").json() is None

    achievements = client.get("/achievements").json()
    assert "first_journey" in {item["key"] for item in achievements["earned"]}


def test_delete_journey(client):
    journey_id = create_journey(client)["journey"]["id"]

    assert client.delete(f"/journeys/{journey_id}").status_code == 204
    assert client.get(f"/journeys/{journey_id}").status_code == 404
    assert client.get("/journeys").json() == []


def test_other_users_journeys_are_not_found(client):
    journey_id = create_journey(client)["journey"]["id"]
    other = signed_in_client("other@example.com")

    resp = other.get(f"/journeys/{journey_id}")
    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found"
    assert post_check_in(other, journey_id, 0).status_code == 404
    assert other.delete(f"/journeys/{journey_id}").status_code == 404
    assert other.get("/journeys").json() == []


def test_draft_progress_cannot_be_patched(client):
    draft = create_journey(client, start_now=False)
    journey_id = draft["journey"]["id"]

    resp = client.patch(f"/journeys/{journey_id}", json={"current_day": 15, "streak": 9})
    assert resp.status_code == 422
    assert resp.json()["error"] == "validation_error"
    assert resp.json()["fields"] == ["current_day", "streak"]

    view = client.get(f"/journeys/{journey_id}").json()
    assert view["journey"]["current_day"] == 0
    assert view["progress"] == 0
