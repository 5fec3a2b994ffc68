import pytest
from sqlalchemy import func, select

from app.constants.constants import UserRole
from app.models.event import Event, Feedback, Rsvp
from app.models.invitation import Invitation
from app.models.registration import Participant, Registration
from conftest import auth_headers

EVENT_PAYLOAD = {
    "title": "Hack Night",
    "description": "Build something in four hours",
    "location": "Lab 2",
    "startTime": "2026-05-01T18:00:00Z",
    "endTime": "2026-05-01T22:00:00Z",
    "maxAttendees": 2,
}


@pytest.fixture
async def hosted(make_user, make_event):
    host = await make_user("host@example.com", role=UserRole.host)
    guest = await make_user("guest@example.com")
    event = await make_event(host)
    return {"host": host, "guest": guest, "event": event}


async def test_create_event_promotes_attendee_to_host(client, db_session, make_user):
    user = await make_user("organiser@example.com")

    response = await client.post("/api/events/", json=EVENT_PAYLOAD, headers=auth_headers(user))

    assert response.status_code == 201
    body = response.json()
    assert body["title"] == "Hack Night"
    assert body["capacity"] == 2
    assert body["start_time"] == "2026-05-01T18:00:00"
    assert body["host_id"] == user.id

    await db_session.refresh(user)
    assert user.role == UserRole.host


async def test_create_event_rejects_end_before_start(client, make_user):
    user = await make_user("organiser@example.com")
    payload = {**EVENT_PAYLOAD, "endTime": "2026-05-01T17:00:00Z"}

    response = await client.post("/api/events/", json=payload, headers=auth_headers(user))

    assert response.status_code == 422
    assert response.json()["error"] == "Validation failed"


async def test_list_events_includes_hosted_and_rsvped(client, db_session, hosted, make_user, make_event):
    other_host = await make_user("other@example.com", role=UserRole.host)
    attending = await make_event(other_host, title="Demo Day")
    await make_event(other_host, title="Not Mine")
    db_session.add(Rsvp(user_id=hosted["guest"].id, event_id=attending.id))
    await db_session.commit()

    host_view = await client.get("/api/events/", headers=auth_headers(hosted["host"]))
    guest_view = await client.get("/api/events/", headers=auth_headers(hosted["guest"]))

    assert [e["title"] for e in host_view.json()] == ["Launch Night"]
    assert [e["title"] for e in guest_view.json()] == ["Demo Day"]


async def test_event_detail_reports_attendance(client, db_session, hosted):
    event, guest = hosted["event"], hosted["guest"]
    db_session.add(Rsvp(user_id=guest.id, event_id=event.id, checked_in=True))
    await db_session.commit()

    response = await client.get(f"/api/events/{event.id}", headers=auth_headers(guest))

    assert response.status_code == 200
    body = response.json()
    assert body["rsvp_count"] == 1
    assert body["checked_in_count"] == 1
    assert body["joined"] is True
    assert body["checked_in"] is True


async def test_event_not_found(client, hosted):
    response = await client.get("/api/events/999", headers=auth_headers(hosted["guest"]))
    assert response.status_code == 404
    assert response.json() == {"error": "Event not found"}


async def test_update_event_partial(client, hosted):
    event = hosted["event"]

    response = await client.put(
        f"/api/events/{event.id}",
        json={"title": "Launch Night II", "maxAttendees": 50},
        headers=auth_headers(hosted["host"]),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "Launch Night II"
    assert body["capacity"] == 50
    assert body["location"] == "Main Hall"


async def test_update_event_checks_combined_times(client, hosted):
    event = hosted["event"]

    response = await client.put(
        f"/api/events/{event.id}",
        json={"endTime": "2026-03-14T17:00:00"},
        headers=auth_headers(hosted["host"]),
    )

    assert response.status_code == 400
    assert response.json() == {"error": "End time must be after start time"}


async def test_only_the_host_can_update(client, hosted):
    response = await client.put(
        f"/api/events/{hosted['event'].id}",
        json={"title": "Mine now"},
        headers=auth_headers(hosted["guest"]),
    )
    assert response.status_code == 403
    assert response.json() == {"error": "Unauthorized"}


async def test_delete_event_removes_dependent_rows(client, db_session, hosted, monkeypatch):
    deleted = []
    monkeypatch.setattr("app.api.v1.endpoints.uploads.delete_file_from_s3", deleted.append)

    event, guest = hosted["event"], hosted["guest"]
    event.qr_code = "https://eventpulse-test.s3.amazonaws.com/eventpulse/qr-codes/qr.png"
    registration = Registration(user_id=guest.id, event_id=event.id)
    db_session.add(registration)
    await db_session.flush()
    db_session.add_all([
        Participant(registration_id=registration.id, name="Guest"),
        Rsvp(user_id=guest.id, event_id=event.id),
        Feedback(user_id=guest.id, event_id=event.id, emoji="🎉"),
        Invitation(event_id=event.id, invited_by_id=hosted["host"].id, email=guest.email),
    ])
    await db_session.commit()

    response = await client.delete(f"/api/events/{event.id}", headers=auth_headers(hosted["host"]))

    assert response.status_code == 204
    for model in (Event, Registration, Participant, Rsvp, Feedback, Invitation):
        count = (await db_session.execute(select(func.count()).select_from(model))).scalar_one()
        assert count == 0, model.__tablename__
    assert deleted == ["https://eventpulse-test.s3.amazonaws.com/eventpulse/qr-codes/qr.png"]


async def test_rsvp_and_cancel(client, db_session, hosted):
    event, guest = hosted["event"], hosted["guest"]
    headers = auth_headers(guest)

    first = await client.post(f"/api/events/{event.id}/rsvp", headers=headers)
    again = await client.post(f"/api/events/{event.id}/rsvp", headers=headers)

    assert first.status_code == 201
    assert first.json()["checked_in"] is False
    assert again.status_code == 400
    assert again.json() == {"error": "Already RSVP'd to this event"}

    cancelled = await client.delete(f"/api/events/{event.id}/rsvp", headers=headers)
    missing = await client.delete(f"/api/events/{event.id}/rsvp", headers=headers)

    assert cancelled.status_code == 204
    assert missing.status_code == 404


async def test_rsvp_respects_capacity(client, db_session, hosted, make_user):
    event = hosted["event"]
    event.capacity = 1
    db_session.add(Rsvp(user_id=hosted["guest"].id, event_id=event.id))
    await db_session.commit()
    latecomer = await make_user("late@example.com")

    response = await client.post(f"/api/events/{event.id}/rsvp", headers=auth_headers(latecomer))

    assert response.status_code == 400
    assert response.json() == {"error": "Event is at full capacity"}


async def test_self_check_in(client, db_session, hosted):
    event, guest = hosted["event"], hosted["guest"]
    headers = auth_headers(guest)

    without_rsvp = await client.post(f"/api/events/{event.id}/check-in", headers=headers)
    assert without_rsvp.status_code == 400
    assert without_rsvp.json() == {"error": "User has not RSVP'd to this event"}

    await client.post(f"/api/events/{event.id}/rsvp", headers=headers)
    checked = await client.post(f"/api/events/{event.id}/check-in", headers=headers)
    twice = await client.post(f"/api/events/{event.id}/check-in", headers=headers)

    assert checked.status_code == 200
    assert checked.json()["checked_in"] is True
    assert checked.json()["checked_in_at"] is not None
    assert twice.status_code == 400
    assert twice.json() == {"error": "Already checked in"}


async def test_host_checks_attendee_in(client, db_session, hosted):
    event, guest = hosted["event"], hosted["guest"]
    db_session.add(Rsvp(user_id=guest.id, event_id=event.id))
    await db_session.commit()

    denied = await client.post(
        f"/api/events/{event.id}/rsvps/{guest.id}/check-in", headers=auth_headers(guest)
    )
    response = await client.post(
        f"/api/events/{event.id}/rsvps/{guest.id}/check-in", headers=auth_headers(hosted["host"])
    )
    rsvps = await client.get(f"/api/events/{event.id}/rsvps", headers=auth_headers(hosted["host"]))

    assert denied.status_code == 403
    assert response.status_code == 200
    assert [r["checked_in"] for r in rsvps.json()] == [True]
