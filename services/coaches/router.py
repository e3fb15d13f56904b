"""
services/coaches/router.py
Coaches of the acting academy with their sports, spoken languages,
packages and programs.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_db
from shared.middleware.auth import get_current_academy
from shared.models.models import (
    Academy,
    Coach,
    CoachPackage,
    CoachProgram,
    CoachSport,
    CoachSpokenLanguage,
    Package,
    Program,
    Sport,
    SpokenLanguage,
)
from shared.schemas.schemas import (
    CoachCreateRequest,
    CoachResponse,
    CoachUpdateRequest,
    IdsRequest,
    MessageResponse,
)
from shared.utils.errors import field_error
from shared.utils.junctions import link_ids, sync_links

router = APIRouter(prefix="/coaches", tags=["Coaches"])

# request field -> (relationship, link key, link model)
LINKS = {
    "sports": ("sport_links", "sport_id", CoachSport),
    "languages": ("language_links", "spoken_language_id", CoachSpokenLanguage),
    "packages": ("package_links", "package_id", CoachPackage),
    "programs": ("program_links", "program_id", CoachProgram),
}


def _percentage(value: Optional[int]) -> Optional[str]:
    return f"{value}%" if value is not None else None


def coach_payload(coach: Coach) -> CoachResponse:
    return CoachResponse(
        id=coach.id,
        name=coach.name,
        title=coach.title,
        image=coach.image,
        bio=coach.bio,
        gender=coach.gender,
        date_of_birth=coach.date_of_birth,
        private_session_percentage=coach.private_session_percentage,
        **{field: link_ids(getattr(coach, rel), key) for field, (rel, key, _) in LINKS.items()},
    )


async def _get_coach_or_404(db: AsyncSession, academy: Academy, coach_id: int) -> Coach:
    coach = await db.get(Coach, coach_id)
    if not coach or coach.academic_id != academy.id:
        raise HTTPException(status_code=404, detail="Coach not found")
    return coach


async def _check_links(db: AsyncSession, academy: Academy, data) -> None:
    """Catalog ids must exist; package and program ids must be the academy's own."""
    checks = {
        "sports": select(Sport.id).where(Sport.id.in_(data.sports or [])),
        "languages": select(SpokenLanguage.id).where(SpokenLanguage.id.in_(data.languages or [])),
        "programs": select(Program.id).where(
            Program.id.in_(data.programs or []), Program.academic_id == academy.id
        ),
        "packages": select(Package.id)
        .join(Program, Program.id == Package.program_id)
        .where(Package.id.in_(data.packages or []), Program.academic_id == academy.id),
    }
    for field, query in checks.items():
        wanted = getattr(data, field)
        if not wanted:
            continue
        found = set((await db.execute(query)).scalars())
        missing = set(wanted) - found
        if missing:
            raise field_error(f"Unknown ids: {sorted(missing)}", field, status.HTTP_404_NOT_FOUND)


@router.get("", response_model=list[CoachResponse])
async def list_coaches(
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(Coach).where(Coach.academic_id == academy.id).order_by(Coach.id))
    return [coach_payload(c) for c in result.scalars()]


@router.get("/{coach_id}", response_model=CoachResponse)
async def get_coach(
    coach_id: int,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    return coach_payload(await _get_coach_or_404(db, academy, coach_id))


@router.post("", response_model=CoachResponse, status_code=201)
async def create_coach(
    data: CoachCreateRequest,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    await _check_links(db, academy, data)
    coach = Coach(
        academic_id=academy.id,
        name=data.name,
        title=data.title,
        image=data.image,
        bio=data.bio,
        gender=data.gender,
        date_of_birth=data.date_of_birth,
        private_session_percentage=_percentage(data.private_session_percentage),
        **{
            rel: [model(**{key: i}) for i in dict.fromkeys(getattr(data, field))]
            for field, (rel, key, model) in LINKS.items()
        },
    )
    db.add(coach)
    await db.commit()
    return coach_payload(coach)


@router.patch("/{coach_id}", response_model=CoachResponse)
async def update_coach(
    coach_id: int,
    data: CoachUpdateRequest,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    """Update fields; any link list given replaces the current links."""
    coach = await _get_coach_or_404(db, academy, coach_id)
    await _check_links(db, academy, data)

    fields = data.model_dump(exclude_unset=True, exclude=set(LINKS))
    if "private_session_percentage" in fields:
        fields["private_session_percentage"] = _percentage(fields["private_session_percentage"])
    for field, value in fields.items():
        setattr(coach, field, value)

    for field, (rel, key, model) in LINKS.items():
        wanted = getattr(data, field)
        if wanted is not None:
            sync_links(getattr(coach, rel), wanted, key, lambda i, m=model, k=key: m(**{k: i}))

    await db.commit()
    await db.refresh(coach, [rel for rel, _, _ in LINKS.values()])
    return coach_payload(coach)


@router.delete("", response_model=MessageResponse)
async def delete_coaches(
    data: IdsRequest,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        delete(Coach).where(Coach.id.in_(data.ids), Coach.academic_id == academy.id)
    )
    await db.commit()
    return MessageResponse(message=f"Deleted {result.rowcount} coaches")
