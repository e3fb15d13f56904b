"""
services/locations/router.py
Academy branches (locations): CRUD, Google Places enrichment, stored reviews.

Creating a branch, or adding sports to one, also makes sure each of its
sports has an Assessment program at that branch.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_db
from config.settings import settings
from shared.middleware.auth import get_current_academy
from shared.models.models import (
    Academy,
    Branch,
    BranchFacility,
    BranchSport,
    BranchTranslation,
    Facility,
    Package,
    Program,
    Review,
    Sport,
)
from shared.schemas.schemas import (
    BranchCreateRequest,
    BranchResponse,
    BranchUpdateRequest,
    IdsRequest,
    MessageResponse,
    ReviewResponse,
)
from shared.utils.errors import field_error
from shared.utils.junctions import link_ids, sync_links
from shared.utils.places import PlaceInformation, fetch_place_information, review_rows
from shared.utils.security import slugify
from shared.utils.translations import display_name

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/locations", tags=["Locations"])


# ── Helpers ───────────────────────────────────────────────────

def branch_payload(branch: Branch) -> BranchResponse:
    return BranchResponse(
        id=branch.id,
        slug=branch.slug,
        name=display_name(branch.translations),
        name_in_google_map=branch.name_in_google_map,
        url=branch.url,
        is_default=branch.is_default,
        latitude=branch.latitude,
        longitude=branch.longitude,
        rate=branch.rate,
        reviews=branch.reviews,
        place_id=branch.place_id,
        sports=link_ids(branch.sport_links, "sport_id"),
        facilities=link_ids(branch.facility_links, "facility_id"),
    )


async def _get_branch_or_404(db: AsyncSession, academy: Academy, branch_id: int) -> Branch:
    branch = await db.get(Branch, branch_id)
    if not branch or branch.academic_id != academy.id:
        raise HTTPException(status_code=404, detail="Location not found")
    return branch


async def _check_ids(db: AsyncSession, model, ids: list[int], field: str) -> None:
    if not ids:
        return
    result = await db.execute(select(model.id).where(model.id.in_(ids)))
    missing = set(ids) - set(result.scalars())
    if missing:
        raise field_error(f"Unknown ids: {sorted(missing)}", field, status.HTTP_404_NOT_FOUND)


async def _clear_other_defaults(db: AsyncSession, academy: Academy, keep_id: Optional[int]) -> None:
    query = update(Branch).where(Branch.academic_id == academy.id)
    if keep_id is not None:
        query = query.where(Branch.id != keep_id)
    await db.execute(query.values(is_default=False))


async def _apply_place(db: AsyncSession, branch: Branch, info: PlaceInformation) -> None:
    """Copy Places data onto the branch and replace its stored reviews."""
    branch.place_id = info.place_id
    branch.rate = info.rating
    branch.reviews = info.review_count
    if info.latitude is not None and info.longitude is not None:
        branch.latitude = str(info.latitude)
        branch.longitude = str(info.longitude)

    await db.execute(delete(Review).where(Review.branch_id == branch.id))
    for row in review_rows(info):
        db.add(Review(branch_id=branch.id, **row))


async def ensure_assessment_programs(
    db: AsyncSession, academy_id: int, branch_id: int, sport_ids: list[int]
) -> list[Program]:
    """Create an Assessment program (with a free package) for sports that lack one."""
    if not sport_ids:
        return []
    result = await db.execute(
        select(Program.sport_id).where(
            Program.branch_id == branch_id,
            Program.sport_id.in_(sport_ids),
            Program.name.ilike("%assessment%"),
        )
    )
    existing = set(result.scalars())
    year = date.today().year

    created = []
    for sport_id in sport_ids:
        if sport_id in existing:
            continue
        program = Program(
            academic_id=academy_id,
            branch_id=branch_id,
            sport_id=sport_id,
            name="Assessment",
            type="PRIVATE",
            assessment_deducted_from_program=True,
            packages=[
                Package(
                    name="Assessment Package",
                    price=0,
                    start_date=date(year, 1, 1),
                    end_date=date(year, 12, 31),
                    schedules=[],
                    discount_links=[],
                )
            ],
            discounts=[],
            coach_links=[],
        )
        db.add(program)
        created.append(program)
    return created


# ── Endpoints ─────────────────────────────────────────────────

@router.get("", response_model=list[BranchResponse])
async def list_locations(
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Branch).where(Branch.academic_id == academy.id).order_by(Branch.id)
    )
    return [branch_payload(b) for b in result.scalars()]


@router.get("/{branch_id}", response_model=BranchResponse)
async def get_location(
    branch_id: int,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    return branch_payload(await _get_branch_or_404(db, academy, branch_id))


@router.post("", response_model=BranchResponse, status_code=201)
async def create_location(
    data: BranchCreateRequest,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    slug = slugify(data.name)
    taken = await db.execute(select(Branch.id).where(Branch.slug == slug))
    if taken.first():
        raise field_error("A location with this name already exists", "name", status.HTTP_409_CONFLICT)
    await _check_ids(db, Sport, data.sports, "sports")
    await _check_ids(db, Facility, data.facilities, "facilities")

    if data.is_default:
        await _clear_other_defaults(db, academy, keep_id=None)

    branch = Branch(
        academic_id=academy.id,
        slug=slug,
        name_in_google_map=data.name_in_google_map,
        url=data.url,
        is_default=data.is_default,
        latitude=str(data.latitude) if data.latitude is not None else None,
        longitude=str(data.longitude) if data.longitude is not None else None,
        translations=[BranchTranslation(locale=settings.DEFAULT_LOCALE, name=data.name)],
        sport_links=[BranchSport(sport_id=sid) for sid in dict.fromkeys(data.sports)],
        facility_links=[BranchFacility(facility_id=fid) for fid in dict.fromkeys(data.facilities)],
    )
    db.add(branch)
    try:
        await db.flush()
    except IntegrityError:
        raise field_error("A location with this name already exists", "name", status.HTTP_409_CONFLICT)

    info = await fetch_place_information(data.name_in_google_map)
    if info:
        await _apply_place(db, branch, info)

    await ensure_assessment_programs(db, academy.id, branch.id, list(dict.fromkeys(data.sports)))
    await db.commit()

    logger.info(f"Location {branch.id} created for academy {academy.id} (places: {bool(info)})")
    return branch_payload(branch)


@router.patch("/{branch_id}", response_model=BranchResponse)
async def update_location(
    branch_id: int,
    data: BranchUpdateRequest,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    """
    Update a location. Sport and facility lists replace the current links;
    removed sports lose their Assessment program at this branch.
    """
    branch = await _get_branch_or_404(db, academy, branch_id)

    if data.name is not None:
        current = next((t for t in branch.translations if t.locale == settings.DEFAULT_LOCALE), None)
        if current:
            current.name = data.name
        else:
            branch.translations.append(BranchTranslation(locale=settings.DEFAULT_LOCALE, name=data.name))
    if data.url is not None:
        branch.url = data.url
    if data.is_default is not None:
        if data.is_default:
            await _clear_other_defaults(db, academy, keep_id=branch.id)
        branch.is_default = data.is_default

    if data.facilities is not None:
        await _check_ids(db, Facility, data.facilities, "facilities")
        sync_links(branch.facility_links, data.facilities, "facility_id",
                   lambda fid: BranchFacility(facility_id=fid))

    if data.sports is not None:
        await _check_ids(db, Sport, data.sports, "sports")
        removed = set(link_ids(branch.sport_links, "sport_id")) - set(data.sports)
        sync_links(branch.sport_links, data.sports, "sport_id", lambda sid: BranchSport(sport_id=sid))
        if removed:
            await db.execute(
                delete(Program).where(
                    Program.branch_id == branch.id,
                    Program.sport_id.in_(removed),
                    Program.name.ilike("%assessment%"),
                )
            )
        await db.flush()
        await ensure_assessment_programs(db, academy.id, branch.id, list(dict.fromkeys(data.sports)))

    if data.name_in_google_map is not None and data.name_in_google_map != branch.name_in_google_map:
        branch.name_in_google_map = data.name_in_google_map
        info = await fetch_place_information(data.name_in_google_map)
        if info:
            await _apply_place(db, branch, info)

    await db.commit()
    await db.refresh(branch, ["translations", "sport_links", "facility_links"])
    return branch_payload(branch)


@router.delete("", response_model=MessageResponse)
async def delete_locations(
    data: IdsRequest,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        delete(Branch).where(Branch.id.in_(data.ids), Branch.academic_id == academy.id)
    )
    await db.commit()
    return MessageResponse(message=f"Deleted {result.rowcount} locations")


@router.get("/{branch_id}/reviews", response_model=list[ReviewResponse])
async def get_location_reviews(
    branch_id: int,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    branch = await _get_branch_or_404(db, academy, branch_id)
    result = await db.execute(
        select(Review).where(Review.branch_id == branch.id).order_by(Review.time.desc())
    )
    return [ReviewResponse.model_validate(r) for r in result.scalars()]
