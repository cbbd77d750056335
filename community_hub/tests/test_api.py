from community_hub.api.dependencies import get_engine_settings, get_recurrence_generator
from community_hub.config.engine import CapacityPolicy, EngineSettings
from community_hub.services import ON_SITE_GUEST_NAME, RecurrenceGenerator
from community_hub.tests.conftest import ORGANIZER_ID, actor_headers
from community_hub.tests.test_recurrence import FailingEventRegistry

EVENT_BODY = {
    "title": "Monday Meetup",
    "category": "Social",
    "start_datetime": "2025-01-06T18:00:00",
    "end_datetime": "2025-01-06T20:00:00",
    "location_name": "Community Hall",
}

def create_event(client, actor, **overrides):
    response = client.post("/api/events", json={**EVENT_BODY, **overrides}, headers=actor_headers(actor))
    assert response.status_code == 201, response.text
    return response.json()

def create_task(client, actor, event_id, required=2):
    response = client.post(
        "/api/tasks",
        json={"event_id": event_id, "title": "Tea", "required_volunteers": required},
        headers=actor_headers(actor),
    )
    assert response.status_code == 201, response.text
    return response.json()

def test_health_check(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"

def test_create_and_fetch_event(client, organizer):
    created = create_event(client, organizer)

    assert created["organizer_id"] == ORGANIZER_ID
    response = client.get(f"/api/events/{created['event_id']}")
    assert response.status_code == 200
    assert response.json()["start_datetime"] == "2025-01-06T18:00:00"

def test_anonymous_and_unknown_roles_are_unauthorized(client):
    assert client.post("/api/events", json=EVENT_BODY).status_code == 401
    response = client.post("/api/events", json=EVENT_BODY,
                           headers={"X-Actor-Id": "2", "X-Actor-Role": "Wizard"})
    assert response.status_code == 401
    response = client.post("/api/events", json=EVENT_BODY, headers={"X-Actor-Id": "2"})
    assert response.status_code == 401

def test_engine_errors_map_to_status_codes(client, organizer, other_organizer, member):
    assert client.post("/api/events", json=EVENT_BODY, headers=actor_headers(member)).status_code == 403

    response = client.get("/api/events/999")
    assert response.status_code == 404
    assert response.json()["message"] == "Event 999 not found"

    response = client.post("/api/events", json={**EVENT_BODY, "category": "Party"},
                           headers=actor_headers(organizer))
    assert response.status_code == 400

    event_id = create_event(client, organizer)["event_id"]
    response = client.delete(f"/api/events/{event_id}", headers=actor_headers(other_organizer))
    assert response.status_code == 403

def test_public_listing_and_publish(client, organizer):
    event_id = create_event(client, organizer)["event_id"]
    assert [e["event_id"] for e in client.get("/api/events/public").json()] == [event_id]

    response = client.put(f"/api/events/{event_id}/publish", json={"is_published": False},
                          headers=actor_headers(organizer))
    assert response.status_code == 200
    assert client.get("/api/events/public").json() == []

def test_admin_listing_includes_organizer_name(client, organizer, admin):
    create_event(client, organizer)
    listed = client.get("/api/events", headers=actor_headers(admin)).json()
    assert listed[0]["organizer_name"] == "Omar Organizer"

def test_update_and_delete_event(client, organizer):
    event_id = create_event(client, organizer)["event_id"]
    task = create_task(client, organizer, event_id)
    client.post("/api/tasks/signup", json={"task_id": task["task_id"], "name": "Sam", "whatsapp": "+447700900100"})

    response = client.put(f"/api/events/{event_id}", json={**EVENT_BODY, "title": "Renamed"},
                          headers=actor_headers(organizer))
    assert response.json()["title"] == "Renamed"

    response = client.delete(f"/api/events/{event_id}", headers=actor_headers(organizer))
    assert response.status_code == 200
    assert response.json()["removed"] == {"signups": 1, "tasks": 1, "registrations": 0, "events": 1}
    assert client.get(f"/api/events/{event_id}").status_code == 404

def test_repeat_endpoint_statuses(client, organizer):
    event_id = create_event(client, organizer)["event_id"]
    body = {"interval_unit": "week", "interval_value": 1, "repeat_count": 2}

    response = client.post(f"/api/events/{event_id}/repeat", json=body, headers=actor_headers(organizer))
    assert response.status_code == 201
    assert [o["scheduled_start"] for o in response.json()["outcomes"]] == [
        "2025-01-13T18:00:00",
        "2025-01-20T18:00:00",
    ]

    response = client.post(f"/api/events/{event_id}/repeat", json={**body, "repeat_count": 0},
                           headers=actor_headers(organizer))
    assert response.status_code == 200
    assert response.json()["outcomes"] == []

def test_repeat_with_idempotency_header(client, organizer):
    event_id = create_event(client, organizer)["event_id"]
    body = {"interval_unit": "day", "interval_value": 7, "repeat_count": 2}
    headers = {**actor_headers(organizer), "Idempotency-Key": "january"}

    first = client.post(f"/api/events/{event_id}/repeat", json=body, headers=headers).json()
    second = client.post(f"/api/events/{event_id}/repeat", json=body, headers=headers).json()

    assert [o["status"] for o in second["outcomes"]] == ["reused", "reused"]
    assert second["created_event_ids"] == first["created_event_ids"]

def test_repeat_partial_failure_is_multi_status(app, client, database, settings, organizer):
    event_id = create_event(client, organizer)["event_id"]
    app.dependency_overrides[get_recurrence_generator] = lambda: RecurrenceGenerator(
        database, settings, event_registry=FailingEventRegistry(database, settings, fail_on=2)
    )

    response = client.post(
        f"/api/events/{event_id}/repeat",
        json={"interval_unit": "week", "interval_value": 1, "repeat_count": 3},
        headers=actor_headers(organizer),
    )

    assert response.status_code == 207
    assert [o["status"] for o in response.json()["outcomes"]] == ["created", "failed", "skipped"]

def test_task_endpoints(client, organizer):
    event_id = create_event(client, organizer)["event_id"]
    task = create_task(client, organizer, event_id, required=2)

    response = client.post("/api/tasks/signup", json={"task_id": task["task_id"], "name": "Sam", "whatsapp": "+447700900100"})
    assert response.status_code == 201
    assert response.json()["user_id"] is None

    capacity = client.get(f"/api/tasks/capacity/{task['task_id']}").json()
    assert capacity["signed_up_volunteers"] == 1
    assert capacity["remaining"] == 1

    public = client.get(f"/api/tasks/public/{event_id}").json()
    assert "volunteers" not in public[0]
    detailed = client.get(f"/api/tasks/{event_id}", headers=actor_headers(organizer)).json()
    assert detailed[0]["volunteers"][0]["name"] == "Sam"

    response = client.put(f"/api/tasks/{task['task_id']}",
                          json={"title": "Tea and cake", "required_volunteers": 3},
                          headers=actor_headers(organizer))
    assert response.json()["remaining"] == 2

    response = client.put(f"/api/tasks/{task['task_id']}",
                          json={"title": "Tea and cake", "required_volunteers": 3, "status": "Closed"},
                          headers=actor_headers(organizer))
    assert response.json()["status"] == "Closed"

    response = client.put(f"/api/tasks/{task['task_id']}",
                          json={"title": "Tea and cake", "required_volunteers": 3, "status": "Done"},
                          headers=actor_headers(organizer))
    assert response.status_code == 400

    response = client.delete(f"/api/tasks/{task['task_id']}", headers=actor_headers(organizer))
    assert response.json()["removed_signups"] == 1

def test_authenticated_signup_uses_actor(client, organizer, member):
    event_id = create_event(client, organizer)["event_id"]
    task = create_task(client, organizer, event_id)

    response = client.post("/api/tasks/signup",
                           json={"task_id": task["task_id"], "name": "Ignored", "whatsapp": "123"},
                           headers=actor_headers(member))

    assert response.json()["user_id"] == member.actor_id
    assert response.json()["guest_name"] is None

def test_signup_validation_and_enforced_capacity(app, client, organizer):
    event_id = create_event(client, organizer)["event_id"]
    task = create_task(client, organizer, event_id, required=1)

    response = client.post("/api/tasks/signup", json={"task_id": task["task_id"], "name": "Sam"})
    assert response.status_code == 400

    app.dependency_overrides[get_engine_settings] = lambda: EngineSettings(capacity_policy=CapacityPolicy.ENFORCED)
    signup = {"task_id": task["task_id"], "name": "Sam", "whatsapp": "+447700900100"}
    assert client.post("/api/tasks/signup", json=signup).status_code == 201
    assert client.post("/api/tasks/signup", json=signup).status_code == 409

def test_attendance_endpoints(client, organizer, member):
    event_id = create_event(client, organizer)["event_id"]

    response = client.post("/api/events/register", json={"event_id": event_id, "on_site": True, "children": 2})
    assert response.status_code == 201
    assert response.json()["guest_name"] == ON_SITE_GUEST_NAME

    response = client.post("/api/events/register", json={"event_id": event_id})
    assert response.status_code == 400

    headcount = client.get(f"/api/events/{event_id}/headcount").json()
    assert headcount["total"] == 3

    assert client.get(f"/api/events/{event_id}/registrations", headers=actor_headers(member)).status_code == 403
    listed = client.get(f"/api/events/{event_id}/registrations", headers=actor_headers(organizer)).json()
    assert len(listed) == 1

    details = client.get(f"/api/events/{event_id}/details", headers=actor_headers(organizer)).json()
    assert details["attendee_headcount"] == 3

def test_global_stats_endpoint(client, organizer, member):
    create_event(client, organizer, start_datetime="2099-01-01T10:00:00", end_datetime=None)

    assert client.get("/api/events/stats/global", headers=actor_headers(member)).status_code == 403
    stats = client.get("/api/events/stats/global", headers=actor_headers(organizer)).json()
    assert stats["total_events"] == 1
    assert stats["future_events"] == 1
