"""
services/catalog/router.py
Translated reference catalogs that share one shape: facilities, genders
and spoken languages. Admin CRUD plus an unpaginated public list.
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_db
from config.settings import settings
from shared.middleware.auth import require_admin
from shared.models.models import (
    Facility,
    FacilityTranslation,
    Gender,
    GenderTranslation,
    SpokenLanguage,
    SpokenLanguageTranslation,
    User,
)
from shared.schemas.schemas import (
    CatalogItemResponse,
    IdsRequest,
    MessageResponse,
    TranslationCreateRequest,
    TranslationResponse,
)
from shared.utils.pagination import paginate, page_payload
from shared.utils.translations import (
    add_translation,
    delete_translations,
    display_name,
    translation_payload,
    update_translation,
)

router = APIRouter(prefix="/catalogs", tags=["Catalogs"])

CatalogKind = Literal["facilities", "genders", "spoken-languages"]

# kind -> (entity model, translation model, translation foreign key)
CATALOGS = {
    "facilities": (Facility, FacilityTranslation, "facility_id"),
    "genders": (Gender, GenderTranslation, "gender_id"),
    "spoken-languages": (SpokenLanguage, SpokenLanguageTranslation, "spoken_language_id"),
}


def _item(entity, locale: Optional[str] = None) -> dict:
    return {
        "id": entity.id,
        "name": display_name(entity.translations, locale),
        "translations": translation_payload(entity.translations),
    }


async def _get_or_404(db: AsyncSession, kind: str, entity_id: int):
    model, _, _ = CATALOGS[kind]
    entity = await db.get(model, entity_id)
    if not entity:
        raise HTTPException(status_code=404, detail=f"{kind} entry not found")
    return entity


async def _fresh(db: AsyncSession, entity) -> dict:
    await db.commit()
    await db.refresh(entity, ["translations"])
    return _item(entity)


@router.get("/{kind}/all")
async def list_all(
    kind: CatalogKind,
    locale: Optional[str] = Query(None, max_length=10),
    db: AsyncSession = Depends(get_db),
):
    """Unpaginated list for pickers."""
    model, _, _ = CATALOGS[kind]
    result = await db.execute(select(model).order_by(model.id))
    return [{"id": e.id, "name": display_name(e.translations, locale)} for e in result.scalars()]


@router.get("/{kind}")
async def list_entries(
    kind: CatalogKind,
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.PAGE_SIZE_DEFAULT, ge=1, le=100),
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    model, _, _ = CATALOGS[kind]
    entries, total = await paginate(db, select(model).order_by(model.id), page, page_size)
    return page_payload([_item(e) for e in entries], total, page, page_size)


@router.post("/{kind}", response_model=CatalogItemResponse, status_code=201)
async def create_entry(
    kind: CatalogKind,
    data: TranslationCreateRequest,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    model, translation_model, _ = CATALOGS[kind]
    entity = model(translations=[translation_model(name=data.name, locale=data.locale)])
    db.add(entity)
    return await _fresh(db, entity)


@router.delete("/{kind}", response_model=MessageResponse)
async def delete_entries(
    kind: CatalogKind,
    data: IdsRequest,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    model, _, _ = CATALOGS[kind]
    result = await db.execute(delete(model).where(model.id.in_(data.ids)))
    await db.commit()
    return MessageResponse(message=f"Deleted {result.rowcount} {kind}")


@router.get("/{kind}/{entity_id}/translations", response_model=list[TranslationResponse])
async def get_translations(
    kind: CatalogKind,
    entity_id: int,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    entity = await _get_or_404(db, kind, entity_id)
    return translation_payload(entity.translations)


@router.post("/{kind}/{entity_id}/translations", response_model=CatalogItemResponse, status_code=201)
async def create_translation(
    kind: CatalogKind,
    entity_id: int,
    data: TranslationCreateRequest,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    entity = await _get_or_404(db, kind, entity_id)
    _, translation_model, fk = CATALOGS[kind]
    await add_translation(db, translation_model, fk, entity.id, data.name, data.locale)
    return await _fresh(db, entity)


@router.patch("/{kind}/{entity_id}/translations/{translation_id}", response_model=CatalogItemResponse)
async def edit_translation(
    kind: CatalogKind,
    entity_id: int,
    translation_id: int,
    data: TranslationCreateRequest,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    entity = await _get_or_404(db, kind, entity_id)
    _, translation_model, fk = CATALOGS[kind]
    await update_translation(db, translation_model, fk, entity.id, translation_id, data.name, data.locale)
    return await _fresh(db, entity)


@router.delete("/{kind}/{entity_id}/translations", response_model=CatalogItemResponse)
async def remove_translations(
    kind: CatalogKind,
    entity_id: int,
    data: IdsRequest,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    entity = await _get_or_404(db, kind, entity_id)
    _, translation_model, fk = CATALOGS[kind]
    await delete_translations(db, translation_model, fk, entity.id, data.ids)
    return await _fresh(db, entity)
