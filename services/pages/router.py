"""
services/pages/router.py
Admin-managed content pages. Create and edit write the default-locale
translation; other locales are kept as they are.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_db
from config.settings import settings
from shared.middleware.auth import require_admin
from shared.models.models import Page, PageTranslation, User
from shared.schemas.schemas import (
    IdsRequest,
    MessageResponse,
    PageCreateRequest,
    PageResponse,
    PageUpdateRequest,
)
from shared.utils.errors import field_error
from shared.utils.pagination import paginate, page_payload
from shared.utils.translations import pick_translation

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pages", tags=["Pages"])

LIST_TITLE_LENGTH = 50


def _shorten(text: Optional[str], length: int = LIST_TITLE_LENGTH) -> Optional[str]:
    if text is None or len(text) <= length:
        return text
    return text[:length] + "..."


def page_detail(page: Page, locale: Optional[str] = None) -> PageResponse:
    t = pick_translation(page.translations, locale)
    return PageResponse(
        id=page.id,
        title=t.title if t else None,
        content=t.content if t else None,
        order_by=page.order_by,
        image=page.image,
        translations=[
            {"id": r.id, "locale": r.locale, "title": r.title, "content": r.content}
            for r in sorted(page.translations, key=lambda r: r.locale)
        ],
    )


async def _get_page_or_404(db: AsyncSession, page_id: int) -> Page:
    page = await db.get(Page, page_id)
    if not page:
        raise HTTPException(status_code=404, detail="Page not found")
    return page


@router.get("")
async def list_pages(
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.PAGE_SIZE_DEFAULT, ge=1, le=100),
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Paginated pages with a shortened display title."""
    rows, total = await paginate(db, select(Page).order_by(Page.id), page, page_size)
    items = []
    for p in rows:
        t = pick_translation(p.translations)
        items.append({
            "id": p.id,
            "title": _shorten(t.title if t else None),
            "order_by": p.order_by,
            "image": p.image,
            "locales": sorted(r.locale for r in p.translations),
        })
    return page_payload(items, total, page, page_size)


@router.get("/{page_id}", response_model=PageResponse)
async def get_page(
    page_id: int,
    locale: Optional[str] = Query(None, max_length=10),
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return page_detail(await _get_page_or_404(db, page_id), locale)


@router.post("", response_model=PageResponse, status_code=201)
async def create_page(
    data: PageCreateRequest,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    page = Page(
        order_by=data.order_by,
        image=data.image,
        translations=[PageTranslation(
            locale=settings.DEFAULT_LOCALE, title=data.title, content=data.content
        )],
    )
    db.add(page)
    await db.commit()
    await db.refresh(page, ["translations"])
    logger.info(f"Page {page.id} created by admin {current_user.id}")
    return page_detail(page)


@router.patch("/{page_id}", response_model=PageResponse)
async def edit_page(
    page_id: int,
    data: PageUpdateRequest,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Update image and order; title and content go to the default-locale translation."""
    page = await _get_page_or_404(db, page_id)
    if data.order_by is not None:
        page.order_by = data.order_by
    if "image" in data.model_fields_set:
        page.image = data.image

    if data.title is not None or data.content is not None:
        t = next((r for r in page.translations if r.locale == settings.DEFAULT_LOCALE), None)
        if t is None:
            if data.title is None or data.content is None:
                raise field_error("Title and content are required for a new translation", "title")
            page.translations.append(PageTranslation(
                locale=settings.DEFAULT_LOCALE, title=data.title, content=data.content
            ))
        else:
            if data.title is not None:
                t.title = data.title
            if data.content is not None:
                t.content = data.content

    await db.commit()
    await db.refresh(page, ["translations"])
    return page_detail(page)


@router.delete("", response_model=MessageResponse)
async def delete_pages(
    data: IdsRequest,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(delete(Page).where(Page.id.in_(data.ids)))
    await db.commit()
    return MessageResponse(message=f"Deleted {result.rowcount} pages")
