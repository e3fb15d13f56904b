"""
services/athletes/router.py
Athletes enrolled with the acting academy and the profile search used
when booking.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_db
from config.settings import settings
from shared.middleware.auth import get_current_academy
from shared.models.models import (
    Academy,
    AcademyAthlete,
    AthleticType,
    Profile,
    Sport,
    User,
    UserRole,
)
from shared.schemas.schemas import (
    AthleteCreateRequest,
    AthleteResponse,
    IdsRequest,
    MessageResponse,
    ProfileResponse,
)
from shared.utils.errors import field_error
from shared.utils.pagination import page_payload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/athletes", tags=["Athletes"])

PROFILE_SEARCH_MIN_LENGTH = 3


def athlete_payload(athlete: AcademyAthlete, user: User, profile: Optional[Profile]) -> AthleteResponse:
    return AthleteResponse(
        id=athlete.id,
        user_id=athlete.user_id,
        profile_id=athlete.profile_id,
        sport_id=athlete.sport_id,
        type=athlete.type.value,
        certificate=athlete.certificate,
        name=profile.name if profile else user.name,
        email=user.email,
        phone_number=user.phone_number,
        birthday=profile.birthday if profile else None,
        gender=profile.gender if profile else None,
        first_guardian_name=athlete.first_guardian_name,
        first_guardian_relationship=athlete.first_guardian_relationship,
    )


def _athletes_query(academy_id: int):
    return (
        select(AcademyAthlete, User, Profile)
        .join(User, User.id == AcademyAthlete.user_id)
        .outerjoin(Profile, Profile.id == AcademyAthlete.profile_id)
        .where(AcademyAthlete.academic_id == academy_id)
    )


# ── Endpoints ─────────────────────────────────────────────────

@router.get("")
async def list_athletes(
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.PAGE_SIZE_DEFAULT, ge=1, le=100),
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    query = _athletes_query(academy.id)
    if search:
        query = query.where(or_(Profile.name.ilike(f"%{search}%"), User.email.ilike(f"%{search}%")))

    total = await db.scalar(
        select(func.count()).select_from(query.with_only_columns(AcademyAthlete.id).subquery())
    )
    result = await db.execute(
        query.order_by(AcademyAthlete.created_at.desc(), AcademyAthlete.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    items = [athlete_payload(a, u, p) for a, u, p in result.all()]
    return page_payload(items, total or 0, page, page_size)


@router.get("/profiles", response_model=list[ProfileResponse])
async def search_profiles(
    q: str = Query(..., description="Name or phone number"),
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    """Profiles whose name or owner's phone contains `q`. Used to pick who a booking is for."""
    term = q.strip()
    if len(term) < PROFILE_SEARCH_MIN_LENGTH:
        raise field_error(
            f"Search needs at least {PROFILE_SEARCH_MIN_LENGTH} characters", "q"
        )
    result = await db.execute(
        select(Profile)
        .join(User, User.id == Profile.user_id)
        .where(or_(Profile.name.ilike(f"%{term}%"), User.phone_number.ilike(f"%{term}%")))
        .order_by(Profile.name)
        .limit(20)
    )
    return [ProfileResponse.model_validate(p) for p in result.scalars()]


@router.get("/{athlete_id}", response_model=AthleteResponse)
async def get_athlete(
    athlete_id: int,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(_athletes_query(academy.id).where(AcademyAthlete.id == athlete_id))
    row = result.first()
    if not row:
        raise HTTPException(status_code=404, detail="Athlete not found")
    return athlete_payload(*row)


@router.post("", response_model=AthleteResponse, status_code=status.HTTP_201_CREATED)
async def create_athlete(
    data: AthleteCreateRequest,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    """
    Create the athlete's user account, its `self` profile and the academy
    link in one transaction. Fellow athletes need a first guardian.
    """
    if data.type == AthleticType.FELLOW.value:
        if not data.first_guardian_name:
            raise field_error("First guardian name is required for fellow athletes", "first_guardian_name")
        if not data.first_guardian_relationship:
            raise field_error(
                "First guardian relationship is required for fellow athletes",
                "first_guardian_relationship",
            )

    if data.email:
        existing = await db.execute(select(User.id).where(User.email == data.email))
        if existing.first():
            raise field_error("User with this email already exists", "email", status.HTTP_409_CONFLICT)
    if data.phone_number:
        existing = await db.execute(select(User.id).where(User.phone_number == data.phone_number))
        if existing.first():
            raise field_error("Phone number already in use", "phone_number", status.HTTP_409_CONFLICT)
    if data.sport_id is not None and not await db.get(Sport, data.sport_id):
        raise field_error("Sport not found", "sport_id", status.HTTP_404_NOT_FOUND)

    user = User(
        name=data.name,
        email=data.email,
        phone_number=data.phone_number,
        role=UserRole.USER,
        is_athletic=True,
    )
    profile = Profile(
        name=data.name,
        gender=data.gender,
        birthday=data.birthday,
        image=data.image,
        relationship="self",
        country=data.country,
        nationality=data.nationality,
        city=data.city,
        street_address=data.street_address,
    )
    db.add(user)
    try:
        await db.flush()
        profile.user_id = user.id
        db.add(profile)
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise field_error("User with this email already exists", "email", status.HTTP_409_CONFLICT)

    athlete = AcademyAthlete(
        academic_id=academy.id,
        user_id=user.id,
        profile_id=profile.id,
        sport_id=data.sport_id,
        certificate=data.certificate,
        type=AthleticType(data.type),
        first_guardian_name=data.first_guardian_name,
        first_guardian_relationship=data.first_guardian_relationship,
        first_guardian_email=data.first_guardian_email,
        first_guardian_phone=data.first_guardian_phone,
        second_guardian_name=data.second_guardian_name,
        second_guardian_relationship=data.second_guardian_relationship,
        second_guardian_email=data.second_guardian_email,
        second_guardian_phone=data.second_guardian_phone,
    )
    db.add(athlete)
    await db.commit()
    logger.info(f"Athlete {athlete.id} (user {user.id}) enrolled with academy {academy.id}")
    return athlete_payload(athlete, user, profile)


@router.delete("", response_model=MessageResponse)
async def delete_athletes(
    data: IdsRequest,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    """Remove athletes from the academy. Their users and profiles are kept."""
    result = await db.execute(
        delete(AcademyAthlete).where(
            AcademyAthlete.id.in_(data.ids), AcademyAthlete.academic_id == academy.id
        )
    )
    await db.commit()
    return MessageResponse(message=f"Deleted {result.rowcount} athletes")
