import pytest
from httpx import ASGITransport
from sqlalchemy import select

from app.constants.constants import ErrorKind, UserRole
from app.core.security import decode_jwt_token
from app.main import app
from app.models.invitation import Invitation
from app.services.EventPulseClient import AuthRequestError, EventPulseClient
from conftest import TEST_PASSWORD, auth_headers


async def test_register_returns_token(client):
    response = await client.post("/api/auth/register", json={
        "name": "Asha Rao",
        "email": "asha@example.com",
        "password": "s3cret-pass",
    })

    assert response.status_code == 201
    payload = decode_jwt_token(response.json()["token"])
    assert payload["email"] == "asha@example.com"
    assert payload["role"] == "attendee"


async def test_register_existing_account(client, make_user):
    await make_user("asha@example.com")

    response = await client.post("/api/auth/register", json={
        "name": "Asha Again",
        "email": "asha@example.com",
        "password": "whatever",
    })

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "ACCOUNT_EXISTS"
    assert body["error"] == "Account already exists"
    assert "sign in" in body["details"]


async def test_register_race_on_unique_email(client, make_user, monkeypatch):
    await make_user("asha@example.com")

    async def not_found_yet(db, email):
        return None

    # The account appears between the existence check and the insert
    monkeypatch.setattr("app.api.v1.endpoints.auth.find_user_by_email", not_found_yet)
    response = await client.post("/api/auth/register", json={
        "name": "Asha Twin",
        "email": "asha@example.com",
        "password": "whatever",
    })

    assert response.status_code == 400
    assert response.json()["code"] == "ACCOUNT_EXISTS"


async def test_register_links_pending_invitations(client, db_session, make_user, make_event):
    host = await make_user("host@example.com", role=UserRole.host)
    event = await make_event(host)
    invitation = Invitation(event_id=event.id, invited_by_id=host.id, email="newbie@example.com")
    db_session.add(invitation)
    await db_session.commit()

    response = await client.post("/api/auth/register", json={
        "name": "Newbie",
        "email": "newbie@example.com",
        "password": "pw-123456",
    })
    assert response.status_code == 201

    await db_session.refresh(invitation)
    assert invitation.invited_user_id == int(decode_jwt_token(response.json()["token"])["sub"])


async def test_register_rejects_bad_email(client):
    response = await client.post("/api/auth/register", json={"name": "X", "email": "nope", "password": "pw"})
    assert response.status_code == 422
    assert response.json()["error"] == "Validation failed"


async def test_login_unknown_account(client):
    response = await client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "pw"})

    assert response.status_code == 401
    assert response.json()["code"] == "ACCOUNT_NOT_FOUND"


async def test_login_wrong_password(client, make_user):
    await make_user("asha@example.com")

    response = await client.post("/api/auth/login", json={"email": "asha@example.com", "password": "wrong"})

    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_PASSWORD"


async def test_login_and_me(client, make_user):
    user = await make_user("asha@example.com", name="Asha Rao")

    response = await client.post("/api/auth/login", json={"email": "asha@example.com", "password": TEST_PASSWORD})
    assert response.status_code == 200
    token = response.json()["token"]

    me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["id"] == user.id
    assert me.json()["name"] == "Asha Rao"
    assert me.json()["role"] == "attendee"


async def test_me_accepts_cookie(client, make_user):
    user = await make_user("asha@example.com")
    token = auth_headers(user)["Authorization"].split(" ", 1)[1]

    client.cookies.set("auth_token", token)
    me = await client.get("/api/auth/me")
    assert me.status_code == 200


@pytest.mark.parametrize("headers, message", [
    ({}, "Not authenticated"),
    ({"Authorization": "Bearer not-a-jwt"}, "Invalid authentication token"),
])
async def test_me_requires_valid_token(client, headers, message):
    response = await client.get("/api/auth/me", headers=headers)
    assert response.status_code == 401
    assert response.json() == {"error": message}


async def test_client_against_app_reports_error_kind(database, make_user):
    await make_user("asha@example.com")
    api = EventPulseClient(base_url="http://test", transport=ASGITransport(app=app))

    with pytest.raises(AuthRequestError) as exc:
        await api.login("asha@example.com", "wrong")
    assert exc.value.kind == ErrorKind.INVALID_PASSWORD

    assert await api.login("asha@example.com", TEST_PASSWORD) == api.token


async def test_health_check(client):
    response = await client.get("/")
    assert response.json()["status"] == "healthy"


async def test_invitation_lookup_is_scoped_to_email(client, db_session, make_user, make_event):
    host = await make_user("host@example.com", role=UserRole.host)
    event = await make_event(host)
    db_session.add(Invitation(event_id=event.id, invited_by_id=host.id, email="other@example.com"))
    await db_session.commit()

    await client.post("/api/auth/register", json={"name": "N", "email": "newbie@example.com", "password": "pw"})

    result = await db_session.execute(select(Invitation.invited_user_id))
    assert result.scalars().all() == [None]
