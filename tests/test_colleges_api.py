import pytest

from app.models.reference import College


@pytest.fixture
async def colleges(db_session):
    db_session.add_all([
        College(name="Fergusson College", city="Pune", district="Pune", state="Maharashtra"),
        College(name="Symbiosis College", city="Pune", district="Pune", state="Maharashtra"),
        College(name="HPT Arts College", city="Nashik", district="Nashik", state="Maharashtra"),
        College(name="Goa College of Art", city="Panaji", district="North Goa", state="Goa"),
    ])
    await db_session.commit()


async def test_states_are_distinct_and_sorted(client, colleges):
    response = await client.get("/api/colleges/states")
    assert response.json() == {"states": ["Goa", "Maharashtra"]}


async def test_districts_for_state(client, colleges):
    response = await client.get("/api/colleges/districts/Maharashtra")
    assert response.json() == {"districts": ["Nashik", "Pune"]}


async def test_colleges_for_state_and_district(client, colleges):
    response = await client.get("/api/colleges/Maharashtra/Pune")
    names = [c["name"] for c in response.json()["colleges"]]
    assert names == ["Fergusson College", "Symbiosis College"]


async def test_search_is_case_insensitive(client, colleges):
    response = await client.get("/api/colleges/search", params={"query": "ARTS"})
    assert [c["name"] for c in response.json()["colleges"]] == ["HPT Arts College"]


async def test_search_needs_two_characters(client, colleges):
    response = await client.get("/api/colleges/search", params={"query": " a "})
    assert response.json() == {"colleges": []}


async def test_search_returns_at_most_ten(client, db_session):
    db_session.add_all([
        College(name=f"Engineering College {i:02d}", district="Pune", state="Maharashtra") for i in range(12)
    ])
    await db_session.commit()

    response = await client.get("/api/colleges/search", params={"query": "engineering"})
    assert len(response.json()["colleges"]) == 10
