"""
tests/test_pages.py
Admin content pages: default-locale writes, shortened list titles,
edits and bulk delete.
"""

import pytest
import pytest_asyncio
from httpx import AsyncClient

from shared.models.models import Page, PageTranslation
from tests.conftest import auth_headers, fetch

LONG_TITLE = "Frequently asked questions about bookings and refunds"


@pytest_asyncio.fixture
async def arabic_page(db):
    page = Page(order_by="5", translations=[PageTranslation(locale="ar", title="من نحن", content="...")])
    db.add(page)
    await db.commit()
    return page


@pytest.mark.asyncio
async def test_pages_are_admin_only(client: AsyncClient, academic_user):
    response = await client.get("/pages", headers=auth_headers(academic_user))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_and_list_pages(client: AsyncClient, admin_user):
    headers = auth_headers(admin_user)
    created = await client.post(
        "/pages",
        json={"title": LONG_TITLE, "content": "<p>Answers</p>", "order_by": "1", "image": "faq.png"},
        headers=headers,
    )
    assert created.status_code == 201, created.text
    page = created.json()
    assert page["title"] == LONG_TITLE
    assert [t["locale"] for t in page["translations"]] == ["en"]

    listed = await client.get("/pages", headers=headers)
    data = listed.json()
    assert data["total"] == 1
    assert data["items"][0]["title"] == LONG_TITLE[:50] + "..."
    assert data["items"][0]["image"] == "faq.png"


@pytest.mark.asyncio
async def test_list_falls_back_to_lowest_locale(client: AsyncClient, admin_user, arabic_page):
    response = await client.get("/pages", headers=auth_headers(admin_user))
    assert response.json()["items"][0]["title"] == "من نحن"


@pytest.mark.asyncio
async def test_get_missing_page(client: AsyncClient, admin_user):
    response = await client.get("/pages/999", headers=auth_headers(admin_user))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_edit_updates_default_translation(client: AsyncClient, db, admin_user):
    headers = auth_headers(admin_user)
    created = (await client.post(
        "/pages", json={"title": "About", "content": "v1", "order_by": "1"}, headers=headers
    )).json()

    edited = await client.patch(
        f"/pages/{created['id']}", json={"content": "v2", "order_by": "3", "image": None}, headers=headers
    )
    assert edited.status_code == 200
    body = edited.json()
    assert (body["title"], body["content"], body["order_by"]) == ("About", "v2", "3")
    assert len(body["translations"]) == 1


@pytest.mark.asyncio
async def test_edit_adds_default_translation_when_missing(client: AsyncClient, db, admin_user, arabic_page):
    headers = auth_headers(admin_user)
    partial = await client.patch(f"/pages/{arabic_page.id}", json={"title": "About"}, headers=headers)
    assert partial.status_code == 400
    assert partial.json()["detail"]["field"] == "title"

    full = await client.patch(
        f"/pages/{arabic_page.id}", json={"title": "About", "content": "Who we are"}, headers=headers
    )
    assert full.status_code == 200
    assert [t["locale"] for t in full.json()["translations"]] == ["ar", "en"]
    assert full.json()["title"] == "About"


@pytest.mark.asyncio
async def test_bulk_delete_pages(client: AsyncClient, db, admin_user, arabic_page):
    response = await client.request(
        "DELETE", "/pages", json={"ids": [arabic_page.id, 4242]}, headers=auth_headers(admin_user)
    )
    assert response.json()["message"] == "Deleted 1 pages"
    assert await fetch(db, Page, arabic_page.id) is None
