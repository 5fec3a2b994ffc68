from app.models.reference import College
from conftest import auth_headers


async def test_update_profile(client, db_session, make_user):
    user = await make_user("asha@example.com")
    college = College(name="City College", district="Pune", state="Maharashtra")
    db_session.add(college)
    await db_session.commit()

    response = await client.put(
        "/api/users/profile",
        json={"name": "Asha Rao", "phone": "+91 90000 00000", "collegeId": college.id},
        headers=auth_headers(user),
    )
    profile = await client.get("/api/users/profile", headers=auth_headers(user))

    assert response.status_code == 200
    assert profile.json()["name"] == "Asha Rao"
    assert profile.json()["college_id"] == college.id


async def test_update_profile_unknown_college(client, make_user):
    user = await make_user("asha@example.com")

    response = await client.put("/api/users/profile", json={"collegeId": 999}, headers=auth_headers(user))

    assert response.status_code == 404
    assert response.json() == {"error": "College not found"}
