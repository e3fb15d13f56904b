"""
tests/test_coaches.py
Coach CRUD with link lists and tenant-scoped package/program checks.
"""

import pytest
from httpx import AsyncClient

from shared.models.models import SpokenLanguage, SpokenLanguageTranslation
from tests.conftest import auth_headers


@pytest.mark.asyncio
async def test_create_coach_with_links(client: AsyncClient, db, academic_user, academy, sport, program, package):
    english = SpokenLanguage(translations=[SpokenLanguageTranslation(locale="en", name="English")])
    db.add(english)
    await db.commit()

    response = await client.post(
        "/coaches",
        json={
            "name": "Coach Carter",
            "title": "Head coach",
            "private_session_percentage": 25,
            "sports": [sport.id, sport.id],
            "languages": [english.id],
            "programs": [program.id],
            "packages": [package.id],
        },
        headers=auth_headers(academic_user),
    )
    assert response.status_code == 201
    data = response.json()
    assert data["private_session_percentage"] == "25%"
    assert data["sports"] == [sport.id]
    assert data["languages"] == [english.id]
    assert data["programs"] == [program.id]
    assert data["packages"] == [package.id]


@pytest.mark.asyncio
async def test_percentage_out_of_range(client: AsyncClient, academic_user, academy):
    response = await client.post(
        "/coaches", json={"name": "X", "private_session_percentage": 140}, headers=auth_headers(academic_user)
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_unknown_language_rejected(client: AsyncClient, academic_user, academy):
    response = await client.post(
        "/coaches", json={"name": "X", "languages": [77]}, headers=auth_headers(academic_user)
    )
    assert response.status_code == 404
    assert response.json()["detail"]["field"] == "languages"


@pytest.mark.asyncio
async def test_update_replaces_links(client: AsyncClient, academic_user, academy, sport, program):
    headers = auth_headers(academic_user)
    coach = (await client.post(
        "/coaches", json={"name": "Coach", "sports": [sport.id], "programs": [program.id]}, headers=headers
    )).json()

    response = await client.patch(
        f"/coaches/{coach['id']}",
        json={"sports": [], "bio": "Former pro", "private_session_percentage": 10},
        headers=headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["sports"] == []
    assert data["programs"] == [program.id]
    assert data["bio"] == "Former pro"
    assert data["private_session_percentage"] == "10%"


@pytest.mark.asyncio
async def test_list_get_delete(client: AsyncClient, academic_user, academy):
    headers = auth_headers(academic_user)
    first = (await client.post("/coaches", json={"name": "A"}, headers=headers)).json()
    await client.post("/coaches", json={"name": "B"}, headers=headers)

    listed = await client.get("/coaches", headers=headers)
    assert [c["name"] for c in listed.json()] == ["A", "B"]

    fetched = await client.get(f"/coaches/{first['id']}", headers=headers)
    assert fetched.json()["name"] == "A"

    deleted = await client.request("DELETE", "/coaches", json={"ids": [first["id"]]}, headers=headers)
    assert deleted.json()["message"] == "Deleted 1 coaches"
    assert (await client.get(f"/coaches/{first['id']}", headers=headers)).status_code == 404
