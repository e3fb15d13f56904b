"""
services/programs/router.py
Programs of the acting academy, their packages (with weekly schedules)
and their discounts.

A program is created in one transaction together with its coaches,
packages and discounts.
"""

import logging
from datetime import date
from typing import Iterable, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_db
from services.programs.packages import apply_package, build_package, package_payload
from shared.middleware.auth import get_current_academy
from shared.models.models import (
    Academy,
    Branch,
    Coach,
    CoachProgram,
    Discount,
    DiscountType,
    Package,
    PackageDiscount,
    Program,
    Schedule,
    Sport,
)
from shared.schemas.schemas import (
    DiscountInput,
    DiscountResponse,
    IdsRequest,
    MessageResponse,
    PackageInput,
    PackageResponse,
    ProgramCreateRequest,
    ProgramDuplicateRequest,
    ProgramResponse,
    ProgramUpdateRequest,
)
from shared.utils.errors import field_error
from shared.utils.junctions import link_ids, sync_links

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/programs", tags=["Programs"])


# ── Payloads ──────────────────────────────────────────────────

def discount_payload(discount: Discount) -> dict:
    return {
        "id": discount.id,
        "program_id": discount.program_id,
        "type": discount.type.value,
        "value": discount.value,
        "start_date": discount.start_date,
        "end_date": discount.end_date,
        "package_ids": link_ids(discount.package_links, "package_id"),
    }


def program_payload(program: Program) -> ProgramResponse:
    return ProgramResponse(
        id=program.id,
        name=program.name,
        description=program.description,
        type=program.type,
        branch_id=program.branch_id,
        sport_id=program.sport_id,
        number_of_seats=program.number_of_seats,
        gender=program.gender,
        start_date_of_birth=program.start_date_of_birth,
        end_date_of_birth=program.end_date_of_birth,
        color=program.color,
        assessment_deducted_from_program=program.assessment_deducted_from_program,
        coaches=link_ids(program.coach_links, "coach_id"),
        packages=[package_payload(p) for p in program.packages],
        discounts=[discount_payload(d) for d in program.discounts],
    )


# ── Lookups ───────────────────────────────────────────────────

async def _get_program_or_404(db: AsyncSession, academy: Academy, program_id: int) -> Program:
    program = await db.get(Program, program_id)
    if not program or program.academic_id != academy.id:
        raise HTTPException(status_code=404, detail="Program not found")
    return program


async def _get_package_or_404(db: AsyncSession, academy: Academy, package_id: int) -> Package:
    package = await db.get(Package, package_id)
    if package:
        program = await db.get(Program, package.program_id)
        if program and program.academic_id == academy.id:
            return package
    raise HTTPException(status_code=404, detail="Package not found")


async def _get_discount_or_404(db: AsyncSession, academy: Academy, discount_id: int) -> Discount:
    discount = await db.get(Discount, discount_id)
    if discount:
        program = await db.get(Program, discount.program_id)
        if program and program.academic_id == academy.id:
            return discount
    raise HTTPException(status_code=404, detail="Discount not found")


async def _check_program_refs(
    db: AsyncSession,
    academy: Academy,
    branch_id: Optional[int],
    sport_id: Optional[int],
    coach_ids: Optional[list[int]],
) -> None:
    if branch_id is not None:
        branch = await db.get(Branch, branch_id)
        if not branch or branch.academic_id != academy.id:
            raise field_error("Location not found", "branch_id", status.HTTP_404_NOT_FOUND)
    if sport_id is not None and not await db.get(Sport, sport_id):
        raise field_error("Sport not found", "sport_id", status.HTTP_404_NOT_FOUND)
    if coach_ids:
        result = await db.execute(
            select(Coach.id).where(Coach.id.in_(coach_ids), Coach.academic_id == academy.id)
        )
        missing = set(coach_ids) - set(result.scalars())
        if missing:
            raise field_error(f"Unknown coaches: {sorted(missing)}", "coaches", status.HTTP_404_NOT_FOUND)


# ── Discount windows ──────────────────────────────────────────

def _windows_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    return a_start <= b_end and a_end >= b_start


async def _check_discount_overlap(
    db: AsyncSession,
    package_ids: Iterable[int],
    start_date: date,
    end_date: date,
    exclude_discount_id: Optional[int] = None,
) -> None:
    """409 naming the packages that already carry a discount overlapping the window."""
    query = (
        select(PackageDiscount.package_id)
        .join(Discount, Discount.id == PackageDiscount.discount_id)
        .where(
            PackageDiscount.package_id.in_(list(package_ids)),
            Discount.end_date >= start_date,
            Discount.start_date <= end_date,
        )
    )
    if exclude_discount_id is not None:
        query = query.where(Discount.id != exclude_discount_id)
    clashing = sorted(set((await db.execute(query)).scalars()))
    if clashing:
        raise field_error(
            f"Some packages already have discounts in this date range: {clashing}",
            "package_ids",
            status.HTTP_409_CONFLICT,
        )


async def _check_program_packages(db: AsyncSession, program: Program, package_ids: list[int]) -> None:
    result = await db.execute(
        select(Package.id).where(Package.id.in_(package_ids), Package.program_id == program.id)
    )
    missing = set(package_ids) - set(result.scalars())
    if missing:
        raise field_error(f"Packages not in this program: {sorted(missing)}", "package_ids")


# ── Programs ──────────────────────────────────────────────────

@router.get("", response_model=list[ProgramResponse])
async def list_programs(
    branch_id: Optional[int] = None,
    sport_id: Optional[int] = None,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    query = select(Program).where(Program.academic_id == academy.id).order_by(Program.id)
    if branch_id is not None:
        query = query.where(Program.branch_id == branch_id)
    if sport_id is not None:
        query = query.where(Program.sport_id == sport_id)
    result = await db.execute(query)
    return [program_payload(p) for p in result.scalars()]


@router.post("", response_model=ProgramResponse, status_code=201)
async def create_program(
    data: ProgramCreateRequest,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    await _check_program_refs(db, academy, data.branch_id, data.sport_id, data.coaches)

    # Discounts declared with the program reference packages by position
    per_package: dict[int, list[tuple[date, date]]] = {}
    for discount in data.discounts:
        for index in discount.package_indexes:
            if index < 0 or index >= len(data.packages):
                raise field_error(f"Package index {index} out of range", "discounts")
            for start, end in per_package.get(index, []):
                if _windows_overlap(start, end, discount.start_date, discount.end_date):
                    raise field_error(
                        f"Package '{data.packages[index].name}' has overlapping discounts",
                        "discounts",
                        status.HTTP_409_CONFLICT,
                    )
            per_package.setdefault(index, []).append((discount.start_date, discount.end_date))

    packages = [build_package(p) for p in data.packages]
    program = Program(
        academic_id=academy.id,
        branch_id=data.branch_id,
        sport_id=data.sport_id,
        name=data.name,
        description=data.description,
        type=data.type,
        number_of_seats=data.number_of_seats,
        gender=data.gender,
        start_date_of_birth=data.start_date_of_birth,
        end_date_of_birth=data.end_date_of_birth,
        color=data.color,
        assessment_deducted_from_program=data.assessment_deducted_from_program,
        packages=packages,
        discounts=[],
        coach_links=[CoachProgram(coach_id=cid) for cid in dict.fromkeys(data.coaches)],
    )
    db.add(program)
    await db.flush()

    for item in data.discounts:
        program.discounts.append(Discount(
            type=DiscountType(item.type),
            value=item.value,
            start_date=item.start_date,
            end_date=item.end_date,
            package_links=[
                PackageDiscount(package_id=packages[i].id) for i in dict.fromkeys(item.package_indexes)
            ],
        ))

    await db.commit()
    logger.info(f"Program {program.id} created with {len(packages)} packages for academy {academy.id}")
    return program_payload(program)


def _copy_package(package: Package) -> Package:
    return Package(
        name=package.name,
        price=package.price,
        start_date=package.start_date,
        end_date=package.end_date,
        months=list(package.months) if package.months is not None else None,
        session_per_week=package.session_per_week,
        session_duration=package.session_duration,
        capacity=package.capacity,
        memo=package.memo,
        entry_fees=package.entry_fees,
        entry_fees_explanation=package.entry_fees_explanation,
        entry_fees_applied_until=(
            list(package.entry_fees_applied_until)
            if package.entry_fees_applied_until is not None else None
        ),
        entry_fees_start_date=package.entry_fees_start_date,
        entry_fees_end_date=package.entry_fees_end_date,
        schedules=[
            Schedule(day=s.day, from_time=s.from_time, to_time=s.to_time, memo=s.memo)
            for s in package.schedules
        ],
        discount_links=[],
    )


@router.post("/{program_id}/duplicate", response_model=ProgramResponse, status_code=201)
async def duplicate_program(
    program_id: int,
    data: ProgramDuplicateRequest,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    """
    Copy a program, optionally into another location, with its packages,
    schedules, discounts and coaches. Bookings are not copied.
    """
    source = await _get_program_or_404(db, academy, program_id)
    await _check_program_refs(db, academy, data.branch_id, None, None)

    packages = {p.id: _copy_package(p) for p in source.packages}
    copy = Program(
        academic_id=academy.id,
        branch_id=data.branch_id if data.branch_id is not None else source.branch_id,
        sport_id=source.sport_id,
        name=data.name or source.name,
        description=source.description,
        type=source.type,
        number_of_seats=source.number_of_seats,
        gender=source.gender,
        start_date_of_birth=source.start_date_of_birth,
        end_date_of_birth=source.end_date_of_birth,
        color=source.color,
        assessment_deducted_from_program=source.assessment_deducted_from_program,
        packages=list(packages.values()),
        discounts=[],
        coach_links=[CoachProgram(coach_id=link.coach_id) for link in source.coach_links],
    )
    db.add(copy)
    await db.flush()

    for discount in source.discounts:
        copy.discounts.append(Discount(
            type=discount.type,
            value=discount.value,
            start_date=discount.start_date,
            end_date=discount.end_date,
            package_links=[
                PackageDiscount(package_id=packages[link.package_id].id)
                for link in discount.package_links
                if link.package_id in packages
            ],
        ))

    await db.commit()
    logger.info(f"Program {source.id} duplicated as {copy.id} for academy {academy.id}")
    return program_payload(copy)


# ── Packages ──────────────────────────────────────────────────

@router.post("/{program_id}/packages", response_model=PackageResponse, status_code=201)
async def create_package(
    program_id: int,
    data: PackageInput,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    program = await _get_program_or_404(db, academy, program_id)
    package = build_package(data, program_id=program.id)
    db.add(package)
    await db.commit()
    return package_payload(package)


@router.put("/packages/{package_id}", response_model=PackageResponse)
async def update_package(
    package_id: int,
    data: PackageInput,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    """Replace a package's fields and its weekly schedules."""
    package = await _get_package_or_404(db, academy, package_id)
    apply_package(package, data)
    await db.commit()
    await db.refresh(package, ["schedules"])
    return package_payload(package)


@router.delete("/packages/{package_id}", response_model=MessageResponse)
async def delete_package(
    package_id: int,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    package = await _get_package_or_404(db, academy, package_id)
    await db.execute(delete(Package).where(Package.id == package.id))
    await db.commit()
    return MessageResponse(message="Package deleted")


# ── Discounts ─────────────────────────────────────────────────

@router.get("/{program_id}/discounts", response_model=list[DiscountResponse])
async def list_discounts(
    program_id: int,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    program = await _get_program_or_404(db, academy, program_id)
    return [discount_payload(d) for d in program.discounts]


@router.post("/{program_id}/discounts", response_model=DiscountResponse, status_code=201)
async def create_discount(
    program_id: int,
    data: DiscountInput,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    program = await _get_program_or_404(db, academy, program_id)
    await _check_program_packages(db, program, data.package_ids)
    await _check_discount_overlap(db, data.package_ids, data.start_date, data.end_date)

    discount = Discount(
        program_id=program.id,
        type=DiscountType(data.type),
        value=data.value,
        start_date=data.start_date,
        end_date=data.end_date,
        package_links=[PackageDiscount(package_id=pid) for pid in dict.fromkeys(data.package_ids)],
    )
    db.add(discount)
    await db.commit()
    return discount_payload(discount)


@router.put("/discounts/{discount_id}", response_model=DiscountResponse)
async def update_discount(
    discount_id: int,
    data: DiscountInput,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    discount = await _get_discount_or_404(db, academy, discount_id)
    program = await db.get(Program, discount.program_id)
    await _check_program_packages(db, program, data.package_ids)
    await _check_discount_overlap(
        db, data.package_ids, data.start_date, data.end_date, exclude_discount_id=discount.id
    )

    discount.type = DiscountType(data.type)
    discount.value = data.value
    discount.start_date = data.start_date
    discount.end_date = data.end_date
    sync_links(discount.package_links, data.package_ids, "package_id",
               lambda pid: PackageDiscount(package_id=pid))
    await db.commit()
    await db.refresh(discount, ["package_links"])
    return discount_payload(discount)


@router.delete("/discounts/{discount_id}", response_model=MessageResponse)
async def delete_discount(
    discount_id: int,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    discount = await _get_discount_or_404(db, academy, discount_id)
    await db.execute(delete(Discount).where(Discount.id == discount.id))
    await db.commit()
    return MessageResponse(message="Discount deleted")


# ── Program by id ─────────────────────────────────────────────
# Declared after the /packages and /discounts paths so those literals win.

@router.get("/{program_id}", response_model=ProgramResponse)
async def get_program(
    program_id: int,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    return program_payload(await _get_program_or_404(db, academy, program_id))


@router.patch("/{program_id}", response_model=ProgramResponse)
async def update_program(
    program_id: int,
    data: ProgramUpdateRequest,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    """Update program fields; a coaches list replaces the coach links."""
    program = await _get_program_or_404(db, academy, program_id)
    await _check_program_refs(db, academy, data.branch_id, data.sport_id, data.coaches)

    for field, value in data.model_dump(exclude_unset=True, exclude={"coaches"}).items():
        setattr(program, field, value)
    if data.coaches is not None:
        sync_links(program.coach_links, data.coaches, "coach_id",
                   lambda cid: CoachProgram(coach_id=cid))

    await db.commit()
    await db.refresh(program, ["coach_links", "packages", "discounts"])
    return program_payload(program)


@router.delete("", response_model=MessageResponse)
async def delete_programs(
    data: IdsRequest,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        delete(Program).where(Program.id.in_(data.ids), Program.academic_id == academy.id)
    )
    await db.commit()
    return MessageResponse(message=f"Deleted {result.rowcount} programs")
