from datetime import datetime, timedelta, timezone

from backend.app.models import Event, EventParticipation
from backend.app.utils.jwt import create_session_token


def _auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def _login(client, user_id: str, role: str, **metadata) -> dict:
    token = create_session_token(user_id, email=f"{user_id}@example.com", role=role, **metadata)
    headers = _auth_headers(token)
    r = client.post("/bootstrap", headers=headers)
    assert r.status_code == 200, r.text
    return headers


def _iso(days: float) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


def _event_body(**overrides) -> dict:
    body = {
        "title": "Intro to Rust Workshop",
        "description": "Hands-on session",
        "type": "workshop",
        "registration_deadline": _iso(2),
        "start_date": _iso(3),
        "end_date": _iso(3.25),
        "location": "Lab 4",
        "max_participants": 30,
        "credits": 2,
    }
    body.update(overrides)
    return body


def _create(client, headers: dict, **overrides):
    return client.post("/faculty/events", json=_event_body(**overrides), headers=headers)


def test_create_event_starts_upcoming(client):
    faculty = _login(client, "fac-ev", "faculty")

    r = _create(client, faculty)
    assert r.status_code == 201, r.text
    event = r.json()
    assert event["status"] == "upcoming"
    assert event["organizer_id"] == "fac-ev"
    assert event["is_overdue"] is False
    assert event["participants"] == []

    listing = client.get("/faculty/events", headers=faculty)
    assert listing.status_code == 200, listing.text
    assert [e["id"] for e in listing.json()] == [event["id"]]


def test_institution_admin_can_organize(client):
    admin = _login(client, "admin-ev", "institution_admin")
    r = _create(client, admin)
    assert r.status_code == 201, r.text


def test_create_event_rejects_bad_windows(client):
    faculty = _login(client, "fac-window", "faculty")

    cases = [
        {"registration_deadline": _iso(-1)},
        {"end_date": _iso(2.5)},
        {"start_date": _iso(1), "end_date": _iso(1.5)},
        {"start_date": "not-a-date"},
        {"max_participants": 0},
        {"credits": -1},
        {"title": "ab"},
        {"type": None},
    ]
    for overrides in cases:
        r = _create(client, faculty, **overrides)
        assert r.status_code == 400, (overrides, r.text)
        assert r.json()["success"] is False

    assert client.get("/faculty/events", headers=faculty).json() == []


def test_students_and_recruiters_cannot_create_events(client):
    student = _login(client, "stu-noev", "student")
    recruiter = _login(client, "rec-noev", "recruiter")
    assert _create(client, student).status_code == 403
    assert _create(client, recruiter).status_code == 403


def test_only_organizer_can_change_status(client):
    owner = _login(client, "fac-owner", "faculty")
    other = _login(client, "fac-other", "faculty")
    event_id = _create(client, owner).json()["id"]

    r = client.patch("/faculty/events", json={"event_id": event_id, "status": "ongoing"}, headers=other)
    assert r.status_code == 403, r.text

    r = client.patch("/faculty/events", json={"event_id": event_id, "status": "ongoing"}, headers=owner)
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "ongoing"

    # Any status may move to any other, including back from a terminal one.
    for status in ("cancelled", "upcoming", "completed"):
        r = client.patch("/faculty/events", json={"event_id": event_id, "status": status}, headers=owner)
        assert r.status_code == 200, r.text
        assert r.json()["status"] == status


def test_status_update_validation(client):
    owner = _login(client, "fac-val", "faculty")
    event_id = _create(client, owner).json()["id"]

    r = client.patch("/faculty/events", json={"event_id": event_id, "status": "postponed"}, headers=owner)
    assert r.status_code == 400, r.text

    r = client.patch("/faculty/events", json={"event_id": 424242, "status": "ongoing"}, headers=owner)
    assert r.status_code == 404, r.text

    r = client.patch("/faculty/events", json={"status": "ongoing"}, headers=owner)
    assert r.status_code == 400, r.text


def test_overdue_event_keeps_its_status(client, db_session):
    faculty = _login(client, "fac-late", "faculty")
    event_id = _create(client, faculty).json()["id"]

    event = db_session.get(Event, event_id)
    event.registration_deadline = datetime.now(timezone.utc) - timedelta(days=3)
    event.start_date = datetime.now(timezone.utc) - timedelta(days=2)
    event.end_date = datetime.now(timezone.utc) - timedelta(days=1)
    db_session.commit()

    events = client.get("/faculty/events", headers=faculty).json()
    assert events[0]["status"] == "upcoming"
    assert events[0]["is_overdue"] is True

    r = client.patch("/faculty/events", json={"event_id": event_id, "status": "completed"}, headers=faculty)
    assert r.status_code == 200, r.text
    assert r.json()["is_overdue"] is False


def test_student_registration(client):
    faculty = _login(client, "fac-reg", "faculty")
    student = _login(client, "stu-reg", "student", full_name="Ravi")
    event_id = _create(client, faculty).json()["id"]

    open_events = client.get("/events", headers=student).json()["events"]
    assert open_events[0]["registration_open"] is True
    assert open_events[0]["registered"] is False

    r = client.post(f"/events/{event_id}/register", headers=student)
    assert r.status_code == 201, r.text
    assert r.json()["event"]["participant_count"] == 1

    r = client.post(f"/events/{event_id}/register", headers=student)
    assert r.status_code == 409, r.text

    open_events = client.get("/events", headers=student).json()["events"]
    assert open_events[0]["registered"] is True

    organizer_view = client.get("/faculty/events", headers=faculty).json()[0]
    assert [p["full_name"] for p in organizer_view["participants"]] == ["Ravi"]


def test_registration_stops_at_capacity(client, db_session):
    faculty = _login(client, "fac-cap", "faculty")
    event_id = _create(client, faculty, max_participants=2).json()["id"]

    statuses = []
    for i in range(3):
        student = _login(client, f"stu-cap-{i}", "student")
        statuses.append(client.post(f"/events/{event_id}/register", headers=student).status_code)

    assert statuses == [201, 201, 409]
    assert db_session.query(EventParticipation).filter(EventParticipation.event_id == event_id).count() == 2


def test_registration_requires_open_event(client, db_session):
    faculty = _login(client, "fac-closed", "faculty")
    student = _login(client, "stu-closed", "student")

    cancelled_id = _create(client, faculty).json()["id"]
    client.patch("/faculty/events", json={"event_id": cancelled_id, "status": "cancelled"}, headers=faculty)
    assert client.post(f"/events/{cancelled_id}/register", headers=student).status_code == 400

    late_id = _create(client, faculty).json()["id"]
    event = db_session.get(Event, late_id)
    event.registration_deadline = datetime.now(timezone.utc) - timedelta(hours=1)
    db_session.commit()
    assert client.post(f"/events/{late_id}/register", headers=student).status_code == 400

    assert client.post("/events/999999/register", headers=student).status_code == 404

    # Cancelled events drop out of the public listing.
    assert cancelled_id not in {e["id"] for e in client.get("/events", headers=student).json()["events"]}

    assert client.post(f"/events/{late_id}/register", headers=faculty).status_code == 403


def test_create_event_rejects_out_of_range_numbers(client, db_session):
    faculty = _login(client, "fac-huge-event", "faculty")

    for overrides in ({"max_participants": 10**20}, {"credits": 10**20}):
        r = _create(client, faculty, **overrides)
        assert r.status_code == 400, (overrides, r.text)

    student = _login(client, "stu-huge-event", "student")
    assert client.post(f"/events/{10**20}/register", headers=student).status_code == 400
    assert db_session.query(Event).count() == 0
