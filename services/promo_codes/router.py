"""
services/promo_codes/router.py
Promo codes. Academies manage their own; admins manage every code,
including general ones that belong to no academy.

A code is unique per owner (one academy, or the general pool).
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_db
from config.settings import settings
from shared.middleware.auth import get_current_academy, require_admin
from shared.models.models import Academy, AcademyTranslation, DiscountType, PromoCode, User
from shared.schemas.schemas import (
    AdminPromoCodeInput,
    IdsRequest,
    MessageResponse,
    PromoCodeInput,
    PromoCodeResponse,
)
from shared.utils.errors import field_error
from shared.utils.pagination import paginate, page_payload
from shared.utils.translations import display_name

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/promo-codes", tags=["Promo codes"])
admin_router = APIRouter(prefix="/admin/promo-codes", tags=["Admin"])

GENERAL_LABEL = "General (All Academies)"


def promo_payload(promo: PromoCode, academy_name: Optional[str] = None) -> PromoCodeResponse:
    return PromoCodeResponse(
        id=promo.id,
        code=promo.code,
        discount_type=promo.discount_type.value,
        discount_value=promo.discount_value,
        start_date=promo.start_date,
        end_date=promo.end_date,
        can_be_used=promo.can_be_used,
        academic_id=promo.academic_id,
        academy_name=academy_name,
    )


# ── Validation ────────────────────────────────────────────────

def _check_window(data: PromoCodeInput) -> None:
    if data.start_date >= data.end_date:
        raise field_error("Start date must be before end date", "start_date")


async def _check_code_free(
    db: AsyncSession, code: str, academic_id: Optional[int], exclude_id: Optional[int] = None
) -> None:
    """409 when the owner already has this code. NULL owners are compared explicitly."""
    owner = PromoCode.academic_id.is_(None) if academic_id is None else PromoCode.academic_id == academic_id
    query = select(PromoCode.id).where(PromoCode.code == code, owner)
    if exclude_id is not None:
        query = query.where(PromoCode.id != exclude_id)
    if (await db.execute(query)).first() is not None:
        raise field_error("Promo code already exists", "code", status.HTTP_409_CONFLICT)


def _apply(promo: PromoCode, data: PromoCodeInput) -> None:
    promo.code = data.code
    promo.discount_type = DiscountType(data.discount_type)
    promo.discount_value = data.discount_value
    promo.start_date = data.start_date
    promo.end_date = data.end_date


# ── Academy ───────────────────────────────────────────────────

async def _get_own_or_404(db: AsyncSession, academy: Academy, promo_id: int) -> PromoCode:
    promo = await db.get(PromoCode, promo_id)
    if not promo or promo.academic_id != academy.id:
        raise HTTPException(status_code=404, detail="Promo code not found")
    return promo


@router.get("", response_model=list[PromoCodeResponse])
async def list_promo_codes(
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(PromoCode)
        .where(PromoCode.academic_id == academy.id)
        .order_by(PromoCode.created_at, PromoCode.id)
    )
    return [promo_payload(p) for p in result.scalars()]


@router.post("", response_model=PromoCodeResponse, status_code=201)
async def create_promo_code(
    data: PromoCodeInput,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    _check_window(data)
    await _check_code_free(db, data.code, academy.id)
    promo = PromoCode(academic_id=academy.id)
    _apply(promo, data)
    db.add(promo)
    await db.commit()
    logger.info(f"Promo code {promo.id} created for academy {academy.id}")
    return promo_payload(promo)


@router.put("/{promo_id}", response_model=PromoCodeResponse)
async def update_promo_code(
    promo_id: int,
    data: PromoCodeInput,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    promo = await _get_own_or_404(db, academy, promo_id)
    _check_window(data)
    await _check_code_free(db, data.code, academy.id, exclude_id=promo.id)
    _apply(promo, data)
    await db.commit()
    return promo_payload(promo)


@router.delete("", response_model=MessageResponse)
async def delete_promo_codes(
    data: IdsRequest,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        delete(PromoCode).where(PromoCode.id.in_(data.ids), PromoCode.academic_id == academy.id)
    )
    await db.commit()
    return MessageResponse(message=f"Deleted {result.rowcount} promo codes")


# ── Admin ─────────────────────────────────────────────────────

async def _academy_names(db: AsyncSession, academy_ids: set[int]) -> dict[int, Optional[str]]:
    if not academy_ids:
        return {}
    result = await db.execute(
        select(AcademyTranslation).where(AcademyTranslation.academic_id.in_(academy_ids))
    )
    grouped: dict[int, list] = {}
    for t in result.scalars():
        grouped.setdefault(t.academic_id, []).append(t)
    return {aid: display_name(grouped.get(aid, [])) for aid in academy_ids}


async def _check_owner(db: AsyncSession, academic_id: Optional[int]) -> None:
    if academic_id is not None and not await db.get(Academy, academic_id):
        raise field_error("Academy not found", "academic_id", status.HTTP_404_NOT_FOUND)


async def _get_or_404(db: AsyncSession, promo_id: int) -> PromoCode:
    promo = await db.get(PromoCode, promo_id)
    if not promo:
        raise HTTPException(status_code=404, detail="Promo code not found")
    return promo


async def _admin_payload(db: AsyncSession, promo: PromoCode) -> PromoCodeResponse:
    if promo.academic_id is None:
        return promo_payload(promo, GENERAL_LABEL)
    names = await _academy_names(db, {promo.academic_id})
    return promo_payload(promo, names.get(promo.academic_id))


@admin_router.get("")
async def admin_list_promo_codes(
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.PAGE_SIZE_DEFAULT, ge=1, le=100),
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Every promo code, newest first, labelled with its academy."""
    query = select(PromoCode).order_by(PromoCode.created_at.desc(), PromoCode.id.desc())
    rows, total = await paginate(db, query, page, page_size)
    names = await _academy_names(db, {p.academic_id for p in rows if p.academic_id is not None})
    items = [
        promo_payload(p, GENERAL_LABEL if p.academic_id is None else names.get(p.academic_id))
        for p in rows
    ]
    return page_payload(items, total, page, page_size)


@admin_router.get("/{promo_id}", response_model=PromoCodeResponse)
async def admin_get_promo_code(
    promo_id: int,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await _admin_payload(db, await _get_or_404(db, promo_id))


@admin_router.post("", response_model=PromoCodeResponse, status_code=201)
async def admin_create_promo_code(
    data: AdminPromoCodeInput,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    _check_window(data)
    await _check_owner(db, data.academic_id)
    await _check_code_free(db, data.code, data.academic_id)
    promo = PromoCode(academic_id=data.academic_id, can_be_used=data.can_be_used)
    _apply(promo, data)
    db.add(promo)
    await db.commit()
    logger.info(f"Promo code {promo.id} created by admin {current_user.id}")
    return await _admin_payload(db, promo)


@admin_router.put("/{promo_id}", response_model=PromoCodeResponse)
async def admin_update_promo_code(
    promo_id: int,
    data: AdminPromoCodeInput,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    promo = await _get_or_404(db, promo_id)
    _check_window(data)
    await _check_owner(db, data.academic_id)
    await _check_code_free(db, data.code, data.academic_id, exclude_id=promo.id)
    _apply(promo, data)
    promo.academic_id = data.academic_id
    promo.can_be_used = data.can_be_used
    await db.commit()
    return await _admin_payload(db, promo)


@admin_router.delete("", response_model=MessageResponse)
async def admin_delete_promo_codes(
    data: IdsRequest,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(delete(PromoCode).where(PromoCode.id.in_(data.ids)))
    await db.commit()
    return MessageResponse(message=f"Deleted {result.rowcount} promo codes")
