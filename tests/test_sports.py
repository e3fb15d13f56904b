"""
tests/test_sports.py
Sports catalog: cached public list, admin CRUD, translations.
"""

import json

import pytest
from httpx import AsyncClient

from tests.conftest import auth_headers


@pytest.mark.asyncio
async def test_public_catalog_is_cached(client: AsyncClient, fake_redis, sport):
    response = await client.get("/sports/all")
    assert response.status_code == 200
    assert [s["name"] for s in response.json()] == ["Football"]

    cached = json.loads(fake_redis.store["sports:catalog:en"])
    assert cached[0]["slug"] == "football"


@pytest.mark.asyncio
async def test_cached_catalog_served_without_database(client: AsyncClient, fake_redis):
    fake_redis.store["sports:catalog:en"] = json.dumps([{"id": 42, "name": "From cache"}])
    response = await client.get("/sports/all")
    assert response.json() == [{"id": 42, "name": "From cache"}]


@pytest.mark.asyncio
async def test_create_sport_invalidates_catalog(client: AsyncClient, fake_redis, admin_user, sport):
    await client.get("/sports/all")
    await client.get("/sports/all", params={"locale": "ar"})
    assert "sports:catalog:ar" in fake_redis.store

    response = await client.post(
        "/sports", json={"name": "Beach Volleyball"}, headers=auth_headers(admin_user)
    )
    assert response.status_code == 201
    data = response.json()
    assert data["slug"] == "beach-volleyball"
    assert data["name"] == "Beach Volleyball"
    assert not [k for k in fake_redis.store if k.startswith("sports:catalog:")]

    refreshed = await client.get("/sports/all")
    assert len(refreshed.json()) == 2


@pytest.mark.asyncio
async def test_create_duplicate_sport(client: AsyncClient, admin_user, sport):
    response = await client.post("/sports", json={"name": "Football"}, headers=auth_headers(admin_user))
    assert response.status_code == 409
    assert response.json()["detail"]["field"] == "name"


@pytest.mark.asyncio
async def test_only_admin_creates_sports(client: AsyncClient, academic_user):
    response = await client.post("/sports", json={"name": "Rugby"}, headers=auth_headers(academic_user))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_update_sport_name_and_image(client: AsyncClient, admin_user, sport):
    response = await client.patch(
        f"/sports/{sport.id}",
        json={"name": "Soccer", "image": "soccer.png"},
        headers=auth_headers(admin_user),
    )
    assert response.status_code == 200
    assert response.json()["name"] == "Soccer"
    assert response.json()["image"] == "soccer.png"


@pytest.mark.asyncio
async def test_list_sports_search(client: AsyncClient, admin_user, sport):
    headers = auth_headers(admin_user)
    hit = await client.get("/sports", params={"search": "foot"}, headers=headers)
    assert hit.json()["total"] == 1
    miss = await client.get("/sports", params={"search": "golf"}, headers=headers)
    assert miss.json()["total"] == 0


@pytest.mark.asyncio
async def test_delete_sports(client: AsyncClient, admin_user, sport):
    response = await client.request(
        "DELETE", "/sports", json={"ids": [sport.id]}, headers=auth_headers(admin_user)
    )
    assert response.json()["message"] == "Deleted 1 sports"
    assert (await client.get("/sports/all")).json() == []


# ── Translations ──────────────────────────────────────────────

@pytest.mark.asyncio
async def test_translation_lifecycle(client: AsyncClient, admin_user, sport):
    headers = auth_headers(admin_user)

    added = await client.post(
        f"/sports/{sport.id}/translations", json={"name": "كرة القدم", "locale": "ar"}, headers=headers
    )
    assert added.status_code == 201
    assert {t["locale"] for t in added.json()["translations"]} == {"ar", "en"}

    duplicate = await client.post(
        f"/sports/{sport.id}/translations", json={"name": "Other", "locale": "ar"}, headers=headers
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["detail"]["field"] == "locale"

    listed = await client.get(f"/sports/{sport.id}/translations", headers=headers)
    arabic = next(t for t in listed.json() if t["locale"] == "ar")

    edited = await client.patch(
        f"/sports/{sport.id}/translations/{arabic['id']}",
        json={"name": "كرة", "locale": "ar"},
        headers=headers,
    )
    assert edited.status_code == 200

    removed = await client.request(
        "DELETE", f"/sports/{sport.id}/translations", json={"ids": [arabic["id"]]}, headers=headers
    )
    assert [t["locale"] for t in removed.json()["translations"]] == ["en"]


@pytest.mark.asyncio
async def test_localized_catalog(client: AsyncClient, admin_user, sport):
    await client.post(
        f"/sports/{sport.id}/translations",
        json={"name": "كرة القدم", "locale": "ar"},
        headers=auth_headers(admin_user),
    )
    response = await client.get("/sports/all", params={"locale": "ar"})
    assert response.json()[0]["name"] == "كرة القدم"
