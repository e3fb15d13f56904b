"""
shared/utils/translations.py
Translated entities: display-name resolution (the default locale wins,
otherwise the translation with the lowest locale code) and maintenance
of translation rows scoped to their parent entity.
"""

from typing import Optional, Sequence

from fastapi import HTTPException, status
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from shared.utils.errors import field_error


def pick_translation(translations: Sequence, locale: Optional[str] = None):
    if not translations:
        return None
    wanted = locale or settings.DEFAULT_LOCALE
    for t in translations:
        if t.locale == wanted:
            return t
    return min(translations, key=lambda t: t.locale)


def display_name(translations: Sequence, locale: Optional[str] = None) -> Optional[str]:
    t = pick_translation(translations, locale)
    return t.name if t else None


def translation_payload(translations: Sequence) -> list[dict]:
    return [
        {"id": t.id, "locale": t.locale, "name": t.name}
        for t in sorted(translations, key=lambda t: t.locale)
    ]


# ── Row maintenance ───────────────────────────────────────────

async def _locale_taken(db: AsyncSession, model, fk: str, parent_id: int, locale: str) -> bool:
    result = await db.execute(
        select(model.id).where(getattr(model, fk) == parent_id, model.locale == locale)
    )
    return result.first() is not None


async def add_translation(db: AsyncSession, model, fk: str, parent_id: int, name: str, locale: str):
    """Insert a translation row; 409 when the parent already has that locale."""
    if await _locale_taken(db, model, fk, parent_id, locale):
        raise field_error("Translation for this locale already exists", "locale", status.HTTP_409_CONFLICT)
    row = model(**{fk: parent_id}, name=name, locale=locale)
    db.add(row)
    try:
        await db.flush()
    except IntegrityError:
        raise field_error("Translation for this locale already exists", "locale", status.HTTP_409_CONFLICT)
    return row


async def update_translation(
    db: AsyncSession, model, fk: str, parent_id: int, translation_id: int, name: str, locale: str
):
    row = await db.get(model, translation_id)
    if not row or getattr(row, fk) != parent_id:
        raise HTTPException(status_code=404, detail="Translation not found")
    if locale != row.locale and await _locale_taken(db, model, fk, parent_id, locale):
        raise field_error("Translation for this locale already exists", "locale", status.HTTP_409_CONFLICT)
    row.name = name
    row.locale = locale
    return row


async def delete_translations(db: AsyncSession, model, fk: str, parent_id: int, ids: list[int]) -> int:
    """Delete the given translation ids that belong to `parent_id`; returns the count."""
    result = await db.execute(
        delete(model).where(model.id.in_(ids), getattr(model, fk) == parent_id)
    )
    return result.rowcount
