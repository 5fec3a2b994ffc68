import pytest
from sqlalchemy import select

from app.constants.constants import InvitationStatus, UserRole
from app.models.event import Rsvp
from app.models.invitation import Invitation
from conftest import auth_headers


@pytest.fixture
async def hosted(make_user, make_event):
    host = await make_user("host@example.com", role=UserRole.host)
    guest = await make_user("guest@example.com")
    event = await make_event(host)
    return {"host": host, "guest": guest, "event": event}


async def test_send_invitations_skips_duplicates(client, db_session, hosted):
    event, host, guest = hosted["event"], hosted["host"], hosted["guest"]
    db_session.add(Invitation(event_id=event.id, invited_by_id=host.id, email="old@example.com"))
    await db_session.commit()

    response = await client.post(
        "/api/invitations/",
        json={"eventId": event.id, "emails": ["Guest@example.com", "new@example.com", "old@example.com"]},
        headers=auth_headers(host),
    )

    assert response.status_code == 201
    body = response.json()
    assert [i["email"] for i in body] == ["guest@example.com", "new@example.com"]
    assert body[0]["invited_user_id"] == guest.id
    assert body[1]["invited_user_id"] is None
    assert all(i["status"] == "pending" for i in body)


async def test_only_host_can_invite(client, hosted):
    response = await client.post(
        "/api/invitations/",
        json={"eventId": hosted["event"].id, "emails": ["friend@example.com"]},
        headers=auth_headers(hosted["guest"]),
    )
    assert response.status_code == 403


async def test_invitee_sees_their_invitations(client, db_session, hosted):
    event, host = hosted["event"], hosted["host"]
    db_session.add_all([
        Invitation(event_id=event.id, invited_by_id=host.id, email="guest@example.com"),
        Invitation(event_id=event.id, invited_by_id=host.id, email="someone@example.com"),
    ])
    await db_session.commit()

    mine = await client.get("/api/invitations/", headers=auth_headers(hosted["guest"]))
    all_for_event = await client.get(f"/api/invitations/event/{event.id}", headers=auth_headers(host))

    assert [i["email"] for i in mine.json()] == ["guest@example.com"]
    assert len(all_for_event.json()) == 2


async def test_accept_invitation_creates_rsvp(client, db_session, hosted):
    event, guest = hosted["event"], hosted["guest"]
    invitation = Invitation(event_id=event.id, invited_by_id=hosted["host"].id, email=guest.email)
    db_session.add(invitation)
    await db_session.commit()

    response = await client.patch(f"/api/invitations/{invitation.id}/accept", headers=auth_headers(guest))
    again = await client.patch(f"/api/invitations/{invitation.id}/accept", headers=auth_headers(guest))

    assert response.status_code == 200
    assert response.json()["invitation"]["status"] == "accepted"
    assert again.status_code == 400

    await db_session.refresh(invitation)
    assert invitation.invited_user_id == guest.id
    rsvp = (await db_session.execute(
        select(Rsvp).where(Rsvp.user_id == guest.id, Rsvp.event_id == event.id)
    )).scalar_one_or_none()
    assert rsvp is not None


async def test_decline_invitation(client, db_session, hosted):
    guest = hosted["guest"]
    invitation = Invitation(event_id=hosted["event"].id, invited_by_id=hosted["host"].id, email=guest.email)
    db_session.add(invitation)
    await db_session.commit()

    response = await client.patch(f"/api/invitations/{invitation.id}/decline", headers=auth_headers(guest))

    assert response.status_code == 200
    await db_session.refresh(invitation)
    assert invitation.status == InvitationStatus.declined


async def test_cannot_answer_someone_elses_invitation(client, db_session, hosted, make_user):
    invitation = Invitation(event_id=hosted["event"].id, invited_by_id=hosted["host"].id, email="guest@example.com")
    db_session.add(invitation)
    await db_session.commit()
    stranger = await make_user("stranger@example.com")

    response = await client.patch(f"/api/invitations/{invitation.id}/accept", headers=auth_headers(stranger))
    missing = await client.patch("/api/invitations/999/accept", headers=auth_headers(stranger))

    assert response.status_code == 403
    assert missing.status_code == 404
