import pytest
from sqlalchemy import func, select

from app.constants.constants import RegistrationStatus, UserRole, WaitingListStatus
from app.models.event import Rsvp
from app.models.notifications import RejectionNotification
from app.models.registration import Registration, WaitingList
from conftest import auth_headers

TEAM = [
    {"name": "Priya", "email": "priya@example.com"},
    {"name": "Dev", "phone": "+91 98765 43210"},
]


@pytest.fixture
async def hosted(make_user, make_event):
    host = await make_user("host@example.com", role=UserRole.host)
    guest = await make_user("guest@example.com")
    event = await make_event(host)
    return {"host": host, "guest": guest, "event": event}


@pytest.fixture
async def paid_event(db_session, hosted):
    event = hosted["event"]
    event.is_paid = True
    await db_session.commit()
    return event


async def rsvp_exists(db_session, user_id, event_id) -> bool:
    result = await db_session.execute(
        select(func.count()).select_from(Rsvp).where(Rsvp.user_id == user_id, Rsvp.event_id == event_id)
    )
    return result.scalar_one() == 1


async def test_register_for_free_event(client, db_session, hosted):
    event, guest = hosted["event"], hosted["guest"]

    response = await client.post(
        "/api/registrations/",
        json={"eventId": event.id, "teamName": "Night Owls", "participants": TEAM},
        headers=auth_headers(guest),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Registration successful"
    assert "waiting_list" not in body
    registration = body["registration"]
    assert registration["status"] == "approved"
    assert registration["team_name"] == "Night Owls"
    assert [p["name"] for p in registration["participants"]] == ["Priya", "Dev"]
    assert await rsvp_exists(db_session, guest.id, event.id)


async def test_register_twice(client, db_session, hosted):
    event, guest = hosted["event"], hosted["guest"]
    db_session.add(Registration(user_id=guest.id, event_id=event.id))
    await db_session.commit()

    response = await client.post("/api/registrations/", json={"eventId": event.id}, headers=auth_headers(guest))

    assert response.status_code == 400
    assert response.json() == {"error": "Already registered for this event"}


async def test_paid_event_goes_to_waiting_list(client, db_session, hosted, paid_event):
    guest = hosted["guest"]
    payload = {"eventId": paid_event.id, "participants": TEAM, "paymentProof": "https://example.com/p.png"}

    response = await client.post("/api/registrations/", json=payload, headers=auth_headers(guest))
    again = await client.post("/api/registrations/", json=payload, headers=auth_headers(guest))

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Added to waiting list"
    assert body["waiting_list"]["status"] == "waiting"
    assert body["waiting_list"]["participants"][0]["name"] == "Priya"
    assert again.status_code == 400

    check = await client.get(f"/api/waiting-list/{paid_event.id}/check", headers=auth_headers(guest))
    assert check.json() == {"on_waiting_list": True}
    assert not await rsvp_exists(db_session, guest.id, paid_event.id)


async def test_add_participants_to_own_registration(client, db_session, hosted, make_user):
    event, guest = hosted["event"], hosted["guest"]
    registration = Registration(user_id=guest.id, event_id=event.id, status=RegistrationStatus.approved)
    db_session.add(registration)
    await db_session.commit()
    other = await make_user("other@example.com")

    response = await client.post(
        f"/api/registrations/{registration.id}/participants",
        json={"participants": TEAM[:1]},
        headers=auth_headers(guest),
    )
    denied = await client.post(
        f"/api/registrations/{registration.id}/participants",
        json={"participants": TEAM[:1]},
        headers=auth_headers(other),
    )

    assert response.status_code == 200
    assert [p["name"] for p in response.json()["participants"]] == ["Priya"]
    assert denied.status_code == 403


async def test_host_lists_registrations(client, db_session, hosted):
    event, guest = hosted["event"], hosted["guest"]
    db_session.add(Registration(user_id=guest.id, event_id=event.id))
    await db_session.commit()

    response = await client.get(f"/api/registrations/?eventId={event.id}", headers=auth_headers(hosted["host"]))
    denied = await client.get(f"/api/registrations/?eventId={event.id}", headers=auth_headers(guest))
    check = await client.get(f"/api/registrations/{event.id}/check", headers=auth_headers(guest))

    assert [r["user_id"] for r in response.json()] == [guest.id]
    assert denied.status_code == 403
    assert check.json() == {"registered": True}


# ------------------------------
# Waiting list review
# ------------------------------
@pytest.fixture
async def waiting_entry(db_session, hosted, paid_event):
    entry = WaitingList(
        user_id=hosted["guest"].id,
        event_id=paid_event.id,
        team_name="Night Owls",
        participants=TEAM,
        payment_proof="https://example.com/p.png",
    )
    db_session.add(entry)
    await db_session.commit()
    return entry


async def test_host_sees_pending_entries(client, waiting_entry, hosted):
    response = await client.get(f"/api/waiting-list/{hosted['event'].id}", headers=auth_headers(hosted["host"]))
    denied = await client.get(f"/api/waiting-list/{hosted['event'].id}", headers=auth_headers(hosted["guest"]))

    assert [e["id"] for e in response.json()] == [waiting_entry.id]
    assert denied.status_code == 403


async def test_approve_moves_entry_to_registration(client, db_session, waiting_entry, hosted):
    guest = hosted["guest"]

    response = await client.post(
        f"/api/waiting-list/{waiting_entry.id}/approve", headers=auth_headers(hosted["host"])
    )
    again = await client.post(
        f"/api/waiting-list/{waiting_entry.id}/approve", headers=auth_headers(hosted["host"])
    )

    assert response.status_code == 200
    body = response.json()
    assert body["team_name"] == "Night Owls"
    assert body["payment_proof"] == "https://example.com/p.png"
    assert [p["name"] for p in body["participants"]] == ["Priya", "Dev"]
    assert again.status_code == 400

    await db_session.refresh(waiting_entry)
    assert waiting_entry.status == WaitingListStatus.promoted
    assert await rsvp_exists(db_session, guest.id, waiting_entry.event_id)


async def test_approve_when_already_registered(client, db_session, waiting_entry, hosted):
    db_session.add(Registration(user_id=hosted["guest"].id, event_id=waiting_entry.event_id))
    await db_session.commit()

    response = await client.post(
        f"/api/waiting-list/{waiting_entry.id}/approve", headers=auth_headers(hosted["host"])
    )

    assert response.status_code == 400
    assert response.json() == {"error": "User is already registered for this event"}


async def test_only_host_reviews_entries(client, waiting_entry, hosted):
    response = await client.post(
        f"/api/waiting-list/{waiting_entry.id}/approve", headers=auth_headers(hosted["guest"])
    )
    missing = await client.post("/api/waiting-list/999/approve", headers=auth_headers(hosted["host"]))

    assert response.status_code == 403
    assert missing.status_code == 404
    assert missing.json() == {"error": "Waiting list entry not found"}


async def test_reject_notifies_user(client, db_session, waiting_entry, hosted):
    response = await client.post(
        f"/api/waiting-list/{waiting_entry.id}/reject", headers=auth_headers(hosted["host"])
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Registration rejected successfully"
    await db_session.refresh(waiting_entry)
    assert waiting_entry.status == WaitingListStatus.rejected
    notification = (await db_session.execute(select(RejectionNotification))).scalar_one()
    assert notification.user_id == hosted["guest"].id
    assert "Launch Night" in notification.message


async def test_waiting_list_stats(client, db_session, hosted, paid_event, make_user):
    statuses = [WaitingListStatus.waiting, WaitingListStatus.waiting,
                WaitingListStatus.promoted, WaitingListStatus.rejected]
    for i, entry_status in enumerate(statuses):
        user = await make_user(f"applicant{i}@example.com")
        db_session.add(WaitingList(user_id=user.id, event_id=paid_event.id, status=entry_status))
    await db_session.commit()

    response = await client.get(f"/api/waiting-list/{paid_event.id}/stats", headers=auth_headers(hosted["host"]))

    assert response.json() == {
        "total": 4,
        "pending": 2,
        "approved": 1,
        "rejected": 1,
        "pending_percentage": 50,
        "approved_percentage": 25,
        "rejected_percentage": 25,
    }


async def test_bulk_approve_reports_each_entry(client, db_session, waiting_entry, hosted, make_user):
    second_user = await make_user("second@example.com")
    second = WaitingList(user_id=second_user.id, event_id=waiting_entry.event_id)
    db_session.add(second)
    await db_session.commit()

    response = await client.post(
        f"/api/waiting-list/{waiting_entry.event_id}/bulk-action",
        json={"action": "approve", "waitingIds": [waiting_entry.id, second.id, 999]},
        headers=auth_headers(hosted["host"]),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Bulk approval completed: 2 approved, 1 failed"
    assert [r["success"] for r in body["results"]] == [True, True, False]
    assert body["results"][2]["error"] == "Invalid entry"

    registrations = (await db_session.execute(select(func.count()).select_from(Registration))).scalar_one()
    assert registrations == 2


async def test_bulk_action_rejects_unknown_action(client, waiting_entry, hosted):
    response = await client.post(
        f"/api/waiting-list/{waiting_entry.event_id}/bulk-action",
        json={"action": "archive", "waitingIds": [waiting_entry.id]},
        headers=auth_headers(hosted["host"]),
    )

    assert response.status_code == 400
    assert response.json() == {"error": 'Invalid action. Use "approve" or "reject"'}
