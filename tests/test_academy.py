"""
tests/test_academy.py
Academy self-service: details, translations, sports, onboarding, public page.
"""

import pytest
from httpx import AsyncClient

from shared.models.models import Academy, AcademyStatus, Coach, Sport, SportTranslation, Wishlist
from tests.conftest import auth_headers, fetch


@pytest.mark.asyncio
async def test_user_role_cannot_manage_academy(client: AsyncClient, user):
    response = await client.get("/academy", headers=auth_headers(user))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_get_academy_details(client: AsyncClient, academic_user, academy, sport):
    response = await client.get("/academy", headers=auth_headers(academic_user))
    assert response.status_code == 200
    data = response.json()
    assert data["slug"] == "test-academy"
    assert data["name"] == "Test Academy"
    assert data["status"] == "accepted"
    assert data["sport_ids"] == [sport.id]


@pytest.mark.asyncio
async def test_update_upserts_translations(client: AsyncClient, academic_user, academy):
    response = await client.patch(
        "/academy",
        json={
            "entry_fees": 150,
            "policy": "No refunds",
            "translations": [
                {"locale": "en", "name": "Renamed Academy"},
                {"locale": "ar", "name": "أكاديمية", "description": "وصف"},
            ],
        },
        headers=auth_headers(academic_user),
    )
    assert response.status_code == 200
    data = response.json()
    assert data["entry_fees"] == 150
    assert data["policy"] == "No refunds"
    assert [t["locale"] for t in data["translations"]] == ["ar", "en"]

    arabic = await client.get("/academy", params={"locale": "ar"}, headers=auth_headers(academic_user))
    assert arabic.json()["name"] == "أكاديمية"


@pytest.mark.asyncio
async def test_add_and_remove_sports(client: AsyncClient, db, academic_user, academy, sport):
    tennis = Sport(slug="tennis", translations=[SportTranslation(locale="en", name="Tennis")])
    db.add(tennis)
    await db.commit()
    headers = auth_headers(academic_user)

    added = await client.post("/academy/sports", json={"sport_ids": [tennis.id, sport.id]}, headers=headers)
    assert added.status_code == 200
    assert sorted(added.json()["sport_ids"]) == sorted([sport.id, tennis.id])

    removed = await client.request("DELETE", "/academy/sports", json={"sport_ids": [sport.id]}, headers=headers)
    assert removed.json()["sport_ids"] == [tennis.id]


@pytest.mark.asyncio
async def test_add_unknown_sport(client: AsyncClient, academic_user, academy):
    response = await client.post(
        "/academy/sports", json={"sport_ids": [999]}, headers=auth_headers(academic_user)
    )
    assert response.status_code == 404


# ── Onboarding ────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_onboarding_requires_branch_and_coach(client: AsyncClient, db, academic_user, academy, branch):
    headers = auth_headers(academic_user)
    no_coach = await client.post("/academy/onboard", headers=headers)
    assert no_coach.status_code == 400
    assert "coach" in no_coach.json()["detail"]

    db.add(Coach(academic_id=academy.id, name="Coach Carter"))
    await db.commit()

    done = await client.post("/academy/onboard", headers=headers)
    assert done.status_code == 200
    assert done.json()["onboarded"] is True

    again = await client.post("/academy/onboard", headers=headers)
    assert again.status_code == 409


@pytest.mark.asyncio
async def test_onboarding_requires_location(client: AsyncClient, academic_user, academy):
    response = await client.post("/academy/onboard", headers=auth_headers(academic_user))
    assert response.status_code == 400
    assert "location" in response.json()["detail"]


# ── Public page ───────────────────────────────────────────────

@pytest.mark.asyncio
async def test_public_page_with_wishlist_flag(client: AsyncClient, db, user, academy):
    anonymous = await client.get("/academy/public/test-academy")
    assert anonymous.status_code == 200
    assert anonymous.json()["in_wishlist"] is False

    db.add(Wishlist(academic_id=academy.id, user_id=user.id))
    await db.commit()
    signed_in = await client.get("/academy/public/test-academy", headers=auth_headers(user))
    assert signed_in.json()["in_wishlist"] is True


@pytest.mark.asyncio
async def test_hidden_or_pending_academy_not_public(client: AsyncClient, db, academy):
    academy.hidden = True
    await db.commit()
    assert (await client.get("/academy/public/test-academy")).status_code == 404

    academy.hidden = False
    academy.status = AcademyStatus.PENDING
    await db.commit()
    assert (await client.get("/academy/public/test-academy")).status_code == 404
    assert (await fetch(db, Academy, academy.id)).status == AcademyStatus.PENDING
