"""
tests/test_athletes.py
Academy athletes: enrolment, guardians, uniqueness, search and removal.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from shared.models.models import AcademyAthlete, Profile, User
from tests.conftest import auth_headers


def _athlete(**extra):
    return {
        "name": "Lina Runner",
        "email": "lina@test.com",
        "phone_number": "0559990000",
        "birthday": "2012-05-04",
        "gender": "female",
        **extra,
    }


@pytest.mark.asyncio
async def test_create_athlete(client: AsyncClient, db: AsyncSession, academic_user, academy, sport):
    response = await client.post(
        "/athletes", json=_athlete(sport_id=sport.id), headers=auth_headers(academic_user)
    )
    assert response.status_code == 201, response.text
    data = response.json()
    assert data["name"] == "Lina Runner"
    assert data["type"] == "primary"
    assert data["sport_id"] == sport.id

    user = (await db.execute(select(User).where(User.email == "lina@test.com"))).scalar_one()
    assert user.is_athletic is True
    profile = (await db.execute(select(Profile).where(Profile.user_id == user.id))).scalar_one()
    assert profile.relationship == "self"
    assert data["profile_id"] == profile.id


@pytest.mark.asyncio
async def test_fellow_needs_guardian(client: AsyncClient, academic_user, academy):
    headers = auth_headers(academic_user)
    no_name = await client.post("/athletes", json=_athlete(type="fellow"), headers=headers)
    assert no_name.status_code == 400
    assert no_name.json()["detail"]["field"] == "first_guardian_name"

    no_relationship = await client.post(
        "/athletes", json=_athlete(type="fellow", first_guardian_name="Omar"), headers=headers
    )
    assert no_relationship.status_code == 400
    assert no_relationship.json()["detail"]["field"] == "first_guardian_relationship"

    ok = await client.post(
        "/athletes",
        json=_athlete(type="fellow", first_guardian_name="Omar", first_guardian_relationship="father"),
        headers=headers,
    )
    assert ok.status_code == 201
    assert ok.json()["first_guardian_name"] == "Omar"


@pytest.mark.asyncio
async def test_duplicate_email_and_phone(client: AsyncClient, academic_user, academy, profile):
    headers = auth_headers(academic_user)
    email = await client.post("/athletes", json=_athlete(email="sam@test.com"), headers=headers)
    assert email.status_code == 409
    assert email.json()["detail"]["field"] == "email"

    phone = await client.post("/athletes", json=_athlete(phone_number="0501234567"), headers=headers)
    assert phone.status_code == 409
    assert phone.json()["detail"]["field"] == "phone_number"


@pytest.mark.asyncio
async def test_unknown_sport(client: AsyncClient, academic_user, academy):
    response = await client.post("/athletes", json=_athlete(sport_id=999), headers=auth_headers(academic_user))
    assert response.status_code == 404
    assert response.json()["detail"]["field"] == "sport_id"


@pytest.mark.asyncio
async def test_list_get_and_search(client: AsyncClient, academic_user, academy):
    headers = auth_headers(academic_user)
    lina = (await client.post("/athletes", json=_athlete(), headers=headers)).json()
    await client.post(
        "/athletes", json=_athlete(name="Karim Swim", email="karim@test.com", phone_number="0551112222"),
        headers=headers,
    )

    listed = await client.get("/athletes", headers=headers)
    assert listed.json()["total"] == 2

    searched = await client.get("/athletes", params={"search": "lina"}, headers=headers)
    assert [a["id"] for a in searched.json()["items"]] == [lina["id"]]

    single = await client.get(f"/athletes/{lina['id']}", headers=headers)
    assert single.json()["email"] == "lina@test.com"
    assert (await client.get("/athletes/9999", headers=headers)).status_code == 404


@pytest.mark.asyncio
async def test_profile_search(client: AsyncClient, academic_user, academy, profile):
    headers = auth_headers(academic_user)
    too_short = await client.get("/athletes/profiles", params={"q": "Sa"}, headers=headers)
    assert too_short.status_code == 400
    assert too_short.json()["detail"]["field"] == "q"

    by_name = await client.get("/athletes/profiles", params={"q": "athl"}, headers=headers)
    assert [p["id"] for p in by_name.json()] == [profile.id]

    by_phone = await client.get("/athletes/profiles", params={"q": "1234567"}, headers=headers)
    assert [p["relationship"] for p in by_phone.json()] == ["self"]


@pytest.mark.asyncio
async def test_delete_keeps_users(client: AsyncClient, db: AsyncSession, academic_user, academy):
    headers = auth_headers(academic_user)
    created = (await client.post("/athletes", json=_athlete(), headers=headers)).json()

    response = await client.request("DELETE", "/athletes", json={"ids": [created["id"]]}, headers=headers)
    assert response.json()["message"] == "Deleted 1 athletes"

    assert await db.scalar(select(func.count(AcademyAthlete.id))) == 0
    assert await db.scalar(select(func.count(User.id)).where(User.email == "lina@test.com")) == 1


@pytest.mark.asyncio
async def test_regular_user_forbidden(client: AsyncClient, user):
    response = await client.get("/athletes", headers=auth_headers(user))
    assert response.status_code == 403
