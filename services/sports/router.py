"""
services/sports/router.py
Sports catalog: public cached list, admin CRUD with translations.
Every mutation returns the updated sport and drops the cached catalog.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_db
from config.redis_client import get_redis
from config.settings import settings
from services.sports.catalog import SportCatalog, sport_payload
from shared.middleware.auth import require_admin
from shared.models.models import Sport, SportTranslation, User
from shared.schemas.schemas import (
    IdsRequest,
    MessageResponse,
    SportCreateRequest,
    SportResponse,
    SportUpdateRequest,
    TranslationCreateRequest,
    TranslationResponse,
)
from shared.utils.errors import field_error
from shared.utils.pagination import paginate, page_payload
from shared.utils.security import slugify
from shared.utils.translations import (
    add_translation,
    delete_translations,
    pick_translation,
    translation_payload,
    update_translation,
)

router = APIRouter(prefix="/sports", tags=["Sports"])


async def _get_sport_or_404(db: AsyncSession, sport_id: int) -> Sport:
    sport = await db.get(Sport, sport_id)
    if not sport:
        raise HTTPException(status_code=404, detail="Sport not found")
    return sport


async def _changed(db: AsyncSession, redis, sport: Sport) -> SportResponse:
    """Commit, drop the cached catalog and return the fresh sport."""
    await db.commit()
    await SportCatalog(db, redis).invalidate()
    await db.refresh(sport, ["translations"])
    return SportResponse(**sport_payload(sport))


# ── Public ────────────────────────────────────────────────────

@router.get("/all")
async def get_all_sports(
    locale: Optional[str] = Query(None, max_length=10),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
):
    """Full catalog for pickers, served from cache."""
    return await SportCatalog(db, redis).all(locale)


# ── Admin ─────────────────────────────────────────────────────

@router.get("")
async def list_sports(
    search: Optional[str] = Query(None, min_length=1, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.PAGE_SIZE_DEFAULT, ge=1, le=100),
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    query = select(Sport).order_by(Sport.id)
    if search:
        query = query.where(Sport.translations.any(SportTranslation.name.ilike(f"%{search}%")))
    sports, total = await paginate(db, query, page, page_size)
    return page_payload([sport_payload(s) for s in sports], total, page, page_size)


@router.post("", response_model=SportResponse, status_code=201)
async def create_sport(
    data: SportCreateRequest,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
):
    slug = slugify(data.name)
    existing = await db.execute(select(Sport.id).where(Sport.slug == slug))
    if existing.first():
        raise field_error("Sport already exists", "name", status.HTTP_409_CONFLICT)

    sport = Sport(
        slug=slug,
        image=data.image,
        translations=[SportTranslation(locale=data.locale, name=data.name)],
    )
    db.add(sport)
    return await _changed(db, redis, sport)


@router.patch("/{sport_id}", response_model=SportResponse)
async def update_sport(
    sport_id: int,
    data: SportUpdateRequest,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
):
    """Edit the image and the display name (the default-locale translation)."""
    sport = await _get_sport_or_404(db, sport_id)
    if data.image is not None:
        sport.image = data.image
    if data.name is not None:
        current = pick_translation(sport.translations, settings.DEFAULT_LOCALE)
        if current and current.locale == settings.DEFAULT_LOCALE:
            current.name = data.name
        else:
            sport.translations.append(SportTranslation(locale=settings.DEFAULT_LOCALE, name=data.name))
    return await _changed(db, redis, sport)


@router.delete("", response_model=MessageResponse)
async def delete_sports(
    data: IdsRequest,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
):
    result = await db.execute(delete(Sport).where(Sport.id.in_(data.ids)))
    await db.commit()
    await SportCatalog(db, redis).invalidate()
    return MessageResponse(message=f"Deleted {result.rowcount} sports")


# ── Translations ──────────────────────────────────────────────

@router.get("/{sport_id}/translations", response_model=list[TranslationResponse])
async def get_sport_translations(
    sport_id: int,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    sport = await _get_sport_or_404(db, sport_id)
    return translation_payload(sport.translations)


@router.post("/{sport_id}/translations", response_model=SportResponse, status_code=201)
async def add_sport_translation(
    sport_id: int,
    data: TranslationCreateRequest,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
):
    sport = await _get_sport_or_404(db, sport_id)
    await add_translation(db, SportTranslation, "sport_id", sport.id, data.name, data.locale)
    return await _changed(db, redis, sport)


@router.patch("/{sport_id}/translations/{translation_id}", response_model=SportResponse)
async def edit_sport_translation(
    sport_id: int,
    translation_id: int,
    data: TranslationCreateRequest,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
):
    sport = await _get_sport_or_404(db, sport_id)
    await update_translation(
        db, SportTranslation, "sport_id", sport.id, translation_id, data.name, data.locale
    )
    return await _changed(db, redis, sport)


@router.delete("/{sport_id}/translations", response_model=SportResponse)
async def delete_sport_translations(
    sport_id: int,
    data: IdsRequest,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
):
    sport = await _get_sport_or_404(db, sport_id)
    await delete_translations(db, SportTranslation, "sport_id", sport.id, data.ids)
    return await _changed(db, redis, sport)
