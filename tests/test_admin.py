"""
tests/test_admin.py
Admin moderation: accept / reject with notification and email, visibility,
bulk delete with cascades, impersonation and the audit log.
"""

import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy import func, select

from shared.models.models import (
    Academy,
    AcademyStatus,
    AcademyTranslation,
    AdminAuditLog,
    Branch,
    Notification,
    Program,
    User,
)
from tests.conftest import auth_headers, fetch


@pytest_asyncio.fixture
async def pending_academy(db, academic_user):
    academy = Academy(
        slug="pending-academy",
        user_id=academic_user.id,
        status=AcademyStatus.PENDING,
        translations=[AcademyTranslation(locale="en", name="Pending Academy")],
        sport_links=[],
    )
    db.add(academy)
    await db.commit()
    return academy


@pytest.mark.asyncio
async def test_non_admin_forbidden(client: AsyncClient, user: User):
    response = await client.get("/admin/academies", headers=auth_headers(user))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_list_academies_filtered_by_status(
    client: AsyncClient, admin_user: User, academy, pending_academy
):
    response = await client.get(
        "/admin/academies", params={"status": "pending"}, headers=auth_headers(admin_user)
    )
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    row = data["items"][0]
    assert row["slug"] == "pending-academy"
    assert row["name"] == "Pending Academy"
    assert row["owner_email"] == "owner@test.com"


@pytest.mark.asyncio
async def test_accept_academy_notifies_and_queues_email(
    client: AsyncClient, db, admin_user: User, pending_academy, queued_emails
):
    response = await client.post(
        f"/admin/academies/{pending_academy.id}/accept", headers=auth_headers(admin_user)
    )
    assert response.status_code == 200

    academy = await fetch(db, Academy, pending_academy.id)
    assert academy.status == AcademyStatus.ACCEPTED
    assert academy.onboarded is False

    notification = (await db.execute(
        select(Notification).where(Notification.academic_id == pending_academy.id)
    )).scalar_one()
    assert notification.user_id == pending_academy.user_id
    assert notification.title == "Academy accepted"

    assert queued_emails.calls == [((), {"academy_id": pending_academy.id})]

    logged = await db.scalar(
        select(func.count(AdminAuditLog.id)).where(AdminAuditLog.action == "ACCEPTED_ACADEMY")
    )
    assert logged == 1


@pytest.mark.asyncio
async def test_accept_twice_conflicts(client: AsyncClient, admin_user: User, academy, queued_emails):
    response = await client.post(
        f"/admin/academies/{academy.id}/accept", headers=auth_headers(admin_user)
    )
    assert response.status_code == 409
    assert queued_emails.calls == []


@pytest.mark.asyncio
async def test_reject_academy(client: AsyncClient, db, admin_user: User, pending_academy):
    response = await client.post(
        f"/admin/academies/{pending_academy.id}/reject", headers=auth_headers(admin_user)
    )
    assert response.status_code == 200
    academy = await fetch(db, Academy, pending_academy.id)
    assert academy.status == AcademyStatus.REJECTED


@pytest.mark.asyncio
async def test_accept_unknown_academy(client: AsyncClient, admin_user: User):
    response = await client.post("/admin/academies/999/accept", headers=auth_headers(admin_user))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_toggle_hidden(client: AsyncClient, admin_user: User, academy):
    headers = auth_headers(admin_user)
    first = await client.post(f"/admin/academies/{academy.id}/toggle-hidden", headers=headers)
    assert first.json() == {"id": academy.id, "hidden": True}
    second = await client.post(f"/admin/academies/{academy.id}/toggle-hidden", headers=headers)
    assert second.json()["hidden"] is False


@pytest.mark.asyncio
async def test_delete_academies_cascades_but_keeps_owner(
    client: AsyncClient, db, admin_user: User, academic_user: User, academy, program
):
    response = await client.request(
        "DELETE", "/admin/academies", json={"ids": [academy.id]}, headers=auth_headers(admin_user)
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Deleted 1 academies"

    assert await db.scalar(select(func.count(Academy.id))) == 0
    assert await db.scalar(select(func.count(Branch.id))) == 0
    assert await db.scalar(select(func.count(Program.id))) == 0
    assert await fetch(db, User, academic_user.id) is not None


# ── Impersonation ─────────────────────────────────────────────

@pytest.mark.asyncio
async def test_admin_needs_impersonation_for_academy_routes(client: AsyncClient, admin_user: User):
    response = await client.get("/academy", headers=auth_headers(admin_user))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_impersonation_round_trip(client: AsyncClient, db, admin_user: User, academy):
    headers = auth_headers(admin_user)
    started = await client.post(f"/admin/academies/{academy.id}/impersonate", headers=headers)
    assert started.status_code == 200
    token = started.json()
    assert token["impersonated_academy_id"] == academy.id

    acting = {"Authorization": f"Bearer {token['access_token']}"}
    me = await client.get("/academy", headers=acting)
    assert me.status_code == 200
    assert me.json()["id"] == academy.id

    stopped = await client.post("/admin/impersonation/stop", headers=acting)
    assert stopped.status_code == 200
    assert stopped.json()["impersonated_academy_id"] is None

    plain = {"Authorization": f"Bearer {stopped.json()['access_token']}"}
    assert (await client.get("/academy", headers=plain)).status_code == 403


@pytest.mark.asyncio
async def test_audit_log_lists_actions(client: AsyncClient, admin_user: User, academy):
    headers = auth_headers(admin_user)
    await client.post(f"/admin/academies/{academy.id}/toggle-hidden", headers=headers)
    await client.post(f"/admin/academies/{academy.id}/impersonate", headers=headers)

    response = await client.get("/admin/audit-logs", headers=headers)
    assert response.status_code == 200
    actions = {row["action"] for row in response.json()["items"]}
    assert actions == {"TOGGLE_HIDDEN_ACADEMY", "IMPERSONATE_ACADEMY"}

    filtered = await client.get(
        "/admin/audit-logs", params={"action": "impersonate_academy"}, headers=headers
    )
    assert filtered.json()["total"] == 1
    assert filtered.json()["items"][0]["admin_email"] == admin_user.email
