"""
tests/test_notifications.py
In-app notifications: listing, unread count, marking as read.
"""

import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from shared.models.models import Notification, User
from tests.conftest import auth_headers, fetch


async def _notify(db: AsyncSession, user: User, title: str = "Hello", **fields) -> Notification:
    notification = Notification(title=title, description=f"{title} body", user_id=user.id, **fields)
    db.add(notification)
    await db.commit()
    return notification


@pytest.mark.asyncio
async def test_get_notifications_empty(client: AsyncClient, user: User):
    response = await client.get("/notifications", headers=auth_headers(user))
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_only_own_notifications_listed(client: AsyncClient, db: AsyncSession, user, academic_user):
    await _notify(db, user, "Mine")
    await _notify(db, academic_user, "Theirs")

    response = await client.get("/notifications", headers=auth_headers(user))
    assert [n["title"] for n in response.json()] == ["Mine"]
    assert response.json()[0]["read_at"] is None


@pytest.mark.asyncio
async def test_unread_only_and_count(client: AsyncClient, db: AsyncSession, user):
    first = await _notify(db, user, "First")
    await _notify(db, user, "Second")
    headers = auth_headers(user)

    count = await client.get("/notifications/unread-count", headers=headers)
    assert count.json() == {"unread_count": 2}

    read = await client.post(f"/notifications/{first.id}/read", headers=headers)
    assert read.status_code == 200
    assert read.json()["read_at"] is not None

    unread = await client.get("/notifications", params={"unread_only": True}, headers=headers)
    assert [n["title"] for n in unread.json()] == ["Second"]
    count = await client.get("/notifications/unread-count", headers=headers)
    assert count.json() == {"unread_count": 1}


@pytest.mark.asyncio
async def test_paging(client: AsyncClient, db: AsyncSession, user):
    for i in range(3):
        await _notify(db, user, f"N{i}")
    response = await client.get("/notifications", params={"page": 2, "page_size": 2}, headers=auth_headers(user))
    assert len(response.json()) == 1


@pytest.mark.asyncio
async def test_mark_all_read(client: AsyncClient, db: AsyncSession, user, academic_user):
    await _notify(db, user, "A")
    await _notify(db, user, "B")
    other = await _notify(db, academic_user, "C")

    response = await client.post("/notifications/read-all", headers=auth_headers(user))
    assert response.status_code == 200
    assert response.json()["message"] == "Marked 2 notifications as read"

    untouched = await fetch(db, Notification, other.id)
    assert untouched.read_at is None


@pytest.mark.asyncio
async def test_mark_read_missing(client: AsyncClient, user):
    response = await client.post(f"/notifications/{uuid.uuid4()}/read", headers=auth_headers(user))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_cannot_read_someone_elses(client: AsyncClient, db: AsyncSession, user, academic_user):
    theirs = await _notify(db, academic_user, "Private")
    response = await client.post(f"/notifications/{theirs.id}/read", headers=auth_headers(user))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_notifications_require_auth(client: AsyncClient):
    response = await client.get("/notifications")
    assert response.status_code == 401
