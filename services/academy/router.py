"""
services/academy/router.py
Academy self-service: details, translations, offered sports, onboarding,
the booking dashboard, plus the public academy page.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_db
from services.academy.dashboard import DashboardFilters, dashboard_stats
from shared.middleware.auth import get_current_academy, get_optional_user
from shared.models.models import (
    Academy,
    AcademySport,
    AcademyStatus,
    AcademyTranslation,
    Branch,
    Coach,
    Sport,
    User,
    Wishlist,
)
from shared.schemas.schemas import AcademyResponse, AcademyUpdateRequest, SportIdsRequest
from shared.utils.junctions import link_ids, sync_links
from shared.utils.translations import pick_translation

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/academy", tags=["Academy"])


# ── Helpers ───────────────────────────────────────────────────

def academy_payload(academy: Academy, locale: Optional[str] = None) -> AcademyResponse:
    current = pick_translation(academy.translations, locale)
    return AcademyResponse(
        id=academy.id,
        slug=academy.slug,
        status=academy.status.value,
        onboarded=academy.onboarded,
        hidden=academy.hidden,
        entry_fees=academy.entry_fees,
        image=academy.image,
        policy=academy.policy,
        extra=academy.extra,
        user_id=academy.user_id,
        name=current.name if current else None,
        description=current.description if current else None,
        translations=[
            {"locale": t.locale, "name": t.name, "description": t.description}
            for t in sorted(academy.translations, key=lambda t: t.locale)
        ],
        sport_ids=link_ids(academy.sport_links, "sport_id"),
    )


async def _ensure_sports_exist(db: AsyncSession, sport_ids: list[int]) -> None:
    result = await db.execute(select(Sport.id).where(Sport.id.in_(sport_ids)))
    missing = set(sport_ids) - set(result.scalars())
    if missing:
        raise HTTPException(status_code=404, detail=f"Sports not found: {sorted(missing)}")


# ── Self-service ──────────────────────────────────────────────

@router.get("", response_model=AcademyResponse)
async def get_academy_details(
    locale: Optional[str] = Query(None, max_length=10),
    academy: Academy = Depends(get_current_academy),
):
    return academy_payload(academy, locale)


@router.patch("", response_model=AcademyResponse)
async def update_academy_details(
    data: AcademyUpdateRequest,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    """Update translations (upserted per locale) and the scalar fields given."""
    updates = data.model_dump(exclude_unset=True, exclude={"translations"})
    for field, value in updates.items():
        setattr(academy, field, value)

    for item in data.translations or []:
        existing = next((t for t in academy.translations if t.locale == item.locale), None)
        if existing:
            existing.name = item.name
            existing.description = item.description
        else:
            academy.translations.append(
                AcademyTranslation(locale=item.locale, name=item.name, description=item.description)
            )

    await db.commit()
    await db.refresh(academy, ["translations", "sport_links"])
    return academy_payload(academy)


@router.post("/sports", response_model=AcademyResponse)
async def add_academy_sports(
    data: SportIdsRequest,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    await _ensure_sports_exist(db, data.sport_ids)
    wanted = link_ids(academy.sport_links, "sport_id") + data.sport_ids
    sync_links(academy.sport_links, wanted, "sport_id", lambda sid: AcademySport(sport_id=sid))
    await db.commit()
    await db.refresh(academy, ["sport_links"])
    return academy_payload(academy)


@router.delete("/sports", response_model=AcademyResponse)
async def remove_academy_sports(
    data: SportIdsRequest,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    wanted = [sid for sid in link_ids(academy.sport_links, "sport_id") if sid not in data.sport_ids]
    sync_links(academy.sport_links, wanted, "sport_id", lambda sid: AcademySport(sport_id=sid))
    await db.commit()
    await db.refresh(academy, ["sport_links"])
    return academy_payload(academy)


@router.post("/onboard", response_model=AcademyResponse)
async def complete_onboarding(
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    """One-way flip to onboarded. Needs an accepted academy with a branch and a coach."""
    if academy.onboarded:
        raise HTTPException(status_code=409, detail="Academy is already onboarded")
    if academy.status != AcademyStatus.ACCEPTED:
        raise HTTPException(status_code=400, detail="Academy must be accepted before onboarding")

    branches = await db.scalar(select(func.count(Branch.id)).where(Branch.academic_id == academy.id))
    coaches = await db.scalar(select(func.count(Coach.id)).where(Coach.academic_id == academy.id))
    if not branches:
        raise HTTPException(status_code=400, detail="Add at least one location before onboarding")
    if not coaches:
        raise HTTPException(status_code=400, detail="Add at least one coach before onboarding")

    academy.onboarded = True
    await db.commit()
    logger.info(f"Academy {academy.id} completed onboarding")
    return academy_payload(academy)


@router.get("/dashboard")
async def get_dashboard(
    branch_id: Optional[int] = None,
    sport_id: Optional[int] = None,
    program_id: Optional[int] = None,
    gender: Optional[str] = Query(None, max_length=255),
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    """Booking statistics narrowed by location, sport, program and gender."""
    filters = DashboardFilters(
        academy_id=academy.id,
        branch_id=branch_id,
        sport_id=sport_id,
        program_id=program_id,
        gender=gender,
    )
    return await dashboard_stats(db, filters)


# ── Public ────────────────────────────────────────────────────

@router.get("/public/{slug}")
async def get_public_academy(
    slug: str,
    locale: Optional[str] = Query(None, max_length=10),
    current_user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Public academy page. Hidden or unaccepted academies are not found."""
    result = await db.execute(
        select(Academy).where(
            Academy.slug == slug,
            Academy.status == AcademyStatus.ACCEPTED,
            Academy.hidden.is_(False),
        )
    )
    academy = result.scalar_one_or_none()
    if not academy:
        raise HTTPException(status_code=404, detail="Academy not found")

    in_wishlist = False
    if current_user:
        in_wishlist = bool(await db.scalar(
            select(func.count(Wishlist.id)).where(
                Wishlist.academic_id == academy.id, Wishlist.user_id == current_user.id
            )
        ))

    payload = academy_payload(academy, locale).model_dump()
    payload["in_wishlist"] = in_wishlist
    return payload
