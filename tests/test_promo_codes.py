"""
tests/test_promo_codes.py
Promo codes managed by an academy and by admins: date windows,
per-owner code uniqueness and the general pool.
"""

from datetime import date

import pytest
import pytest_asyncio
from httpx import AsyncClient

from shared.models.models import Academy, AcademyStatus, DiscountType, PromoCode
from tests.conftest import auth_headers, fetch

SUMMER = {
    "code": "SUMMER25",
    "discount_type": "percentage",
    "discount_value": 15,
    "start_date": "2025-06-01",
    "end_date": "2025-08-31",
}


@pytest_asyncio.fixture
async def other_academy(db):
    academy = Academy(slug="other-academy", status=AcademyStatus.ACCEPTED, translations=[], sport_links=[])
    db.add(academy)
    await db.commit()
    return academy


@pytest_asyncio.fixture
async def foreign_code(db, other_academy):
    promo = PromoCode(
        code="THEIRS", academic_id=other_academy.id, discount_type=DiscountType.FIXED,
        discount_value=20, start_date=date(2025, 1, 1), end_date=date(2025, 12, 31),
    )
    db.add(promo)
    await db.commit()
    return promo


# ── Academy ───────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_academy_promo_code_lifecycle(client: AsyncClient, academic_user, academy):
    headers = auth_headers(academic_user)
    created = await client.post("/promo-codes", json=SUMMER, headers=headers)
    assert created.status_code == 201, created.text
    promo = created.json()
    assert promo["academic_id"] == academy.id
    assert promo["can_be_used"] == 1

    updated = await client.put(
        f"/promo-codes/{promo['id']}", json={**SUMMER, "discount_value": 20}, headers=headers
    )
    assert updated.status_code == 200
    assert updated.json()["discount_value"] == 20

    listed = await client.get("/promo-codes", headers=headers)
    assert [p["code"] for p in listed.json()] == ["SUMMER25"]

    removed = await client.request("DELETE", "/promo-codes", json={"ids": [promo["id"]]}, headers=headers)
    assert removed.json()["message"] == "Deleted 1 promo codes"


@pytest.mark.asyncio
async def test_start_must_precede_end(client: AsyncClient, academic_user, academy):
    response = await client.post(
        "/promo-codes", json={**SUMMER, "end_date": "2025-06-01"}, headers=auth_headers(academic_user)
    )
    assert response.status_code == 400
    assert response.json()["detail"]["field"] == "start_date"


@pytest.mark.asyncio
@pytest.mark.parametrize("change", [{"discount_value": 0}, {"discount_value": 120}, {"discount_type": "bogus"}])
async def test_invalid_discount_rejected(client: AsyncClient, academic_user, academy, change):
    response = await client.post("/promo-codes", json={**SUMMER, **change}, headers=auth_headers(academic_user))
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_duplicate_code_in_same_academy(client: AsyncClient, academic_user, academy, foreign_code):
    headers = auth_headers(academic_user)
    assert (await client.post("/promo-codes", json=SUMMER, headers=headers)).status_code == 201
    clash = await client.post("/promo-codes", json=SUMMER, headers=headers)
    assert clash.status_code == 409
    assert clash.json()["detail"]["field"] == "code"

    # the same code may exist in another academy
    theirs = await client.post("/promo-codes", json={**SUMMER, "code": "THEIRS"}, headers=headers)
    assert theirs.status_code == 201


@pytest.mark.asyncio
async def test_foreign_codes_are_invisible(client: AsyncClient, db, academic_user, academy, foreign_code):
    headers = auth_headers(academic_user)
    assert (await client.get("/promo-codes", headers=headers)).json() == []
    assert (await client.put(f"/promo-codes/{foreign_code.id}", json=SUMMER, headers=headers)).status_code == 404

    removed = await client.request("DELETE", "/promo-codes", json={"ids": [foreign_code.id]}, headers=headers)
    assert removed.json()["message"] == "Deleted 0 promo codes"
    assert await fetch(db, PromoCode, foreign_code.id) is not None


# ── Admin ─────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_admin_routes_need_admin(client: AsyncClient, academic_user, academy):
    response = await client.get("/admin/promo-codes", headers=auth_headers(academic_user))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_general_and_academy_codes(client: AsyncClient, admin_user, academy):
    headers = auth_headers(admin_user)
    general = await client.post("/admin/promo-codes", json={**SUMMER, "can_be_used": 3}, headers=headers)
    assert general.status_code == 201, general.text
    assert general.json()["academy_name"] == "General (All Academies)"
    assert general.json()["can_be_used"] == 3

    scoped = await client.post(
        "/admin/promo-codes", json={**SUMMER, "academic_id": academy.id}, headers=headers
    )
    assert scoped.status_code == 201
    assert scoped.json()["academy_name"] == "Test Academy"

    # a second general code with the same value clashes even though academic_id is NULL
    clash = await client.post("/admin/promo-codes", json=SUMMER, headers=headers)
    assert clash.status_code == 409

    listed = (await client.get("/admin/promo-codes", headers=headers)).json()
    assert listed["total"] == 2
    assert {p["academy_name"] for p in listed["items"]} == {"General (All Academies)", "Test Academy"}


@pytest.mark.asyncio
async def test_admin_update_excludes_itself(client: AsyncClient, admin_user, academy):
    headers = auth_headers(admin_user)
    promo = (await client.post("/admin/promo-codes", json=SUMMER, headers=headers)).json()

    same_code = await client.put(
        f"/admin/promo-codes/{promo['id']}", json={**SUMMER, "discount_value": 25}, headers=headers
    )
    assert same_code.status_code == 200

    moved = await client.put(
        f"/admin/promo-codes/{promo['id']}", json={**SUMMER, "academic_id": academy.id}, headers=headers
    )
    assert moved.json()["academic_id"] == academy.id

    fetched = await client.get(f"/admin/promo-codes/{promo['id']}", headers=headers)
    assert fetched.json()["academy_name"] == "Test Academy"


@pytest.mark.asyncio
async def test_admin_rejects_bad_input(client: AsyncClient, admin_user):
    headers = auth_headers(admin_user)
    unused = await client.post("/admin/promo-codes", json={**SUMMER, "can_be_used": 0}, headers=headers)
    assert unused.status_code == 422

    unknown = await client.post("/admin/promo-codes", json={**SUMMER, "academic_id": 4242}, headers=headers)
    assert unknown.status_code == 404
    assert unknown.json()["detail"]["field"] == "academic_id"


@pytest.mark.asyncio
async def test_admin_bulk_delete(client: AsyncClient, db, admin_user, foreign_code):
    response = await client.request(
        "DELETE", "/admin/promo-codes", json={"ids": [foreign_code.id]}, headers=auth_headers(admin_user)
    )
    assert response.json()["message"] == "Deleted 1 promo codes"
    assert await fetch(db, PromoCode, foreign_code.id) is None
