"""
services/academy/dashboard.py
Booking statistics for the academy dashboard: session counts for this
and last calendar month, the booking total and the busiest times,
packages, programs, coaches, sports and locations.

Every figure is scoped to the academy's programs and narrowed by the
optional location, sport, program and gender filters.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from services.programs.packages import month_range
from shared.models.models import (
    AcademySport,
    Booking,
    BookingSession,
    Branch,
    Coach,
    Package,
    Program,
    Sport,
)
from shared.utils.translations import display_name

TOP_N = 4


@dataclass(frozen=True)
class DashboardFilters:
    academy_id: int
    branch_id: Optional[int] = None
    sport_id: Optional[int] = None
    program_id: Optional[int] = None
    gender: Optional[str] = None


def _scoped(
    filters: DashboardFilters, *columns, sessions: bool = False, coaches: bool = False
) -> Select:
    query = (
        select(*columns)
        .select_from(Booking)
        .join(Package, Package.id == Booking.package_id)
        .join(Program, Program.id == Package.program_id)
    )
    if sessions:
        query = query.join(BookingSession, BookingSession.booking_id == Booking.id)
    if coaches:
        query = query.join(Coach, Coach.id == Booking.coach_id)
    query = query.where(Program.academic_id == filters.academy_id)
    if filters.branch_id is not None:
        query = query.where(Program.branch_id == filters.branch_id)
    if filters.sport_id is not None:
        query = query.where(Program.sport_id == filters.sport_id)
    if filters.program_id is not None:
        query = query.where(Program.id == filters.program_id)
    if filters.gender:
        query = query.where(Program.gender == filters.gender)
    return query


async def _sessions_between(db: AsyncSession, filters: DashboardFilters, start: date, end: date) -> int:
    query = _scoped(filters, func.count(BookingSession.id), sessions=True).where(
        BookingSession.date >= start, BookingSession.date <= end
    )
    return await db.scalar(query) or 0


async def _top(
    db: AsyncSession, filters: DashboardFilters, key, name=None, sessions: bool = False, coaches: bool = False
) -> list[dict]:
    """Most frequent values of `key`, most booked first; ties go to the lower key."""
    count = func.count(BookingSession.id if sessions else Booking.id)
    columns = [key, count.label("count")] if name is None else [key, name, count.label("count")]
    group = [key] if name is None else [key, name]
    query = (
        _scoped(filters, *columns, sessions=sessions, coaches=coaches)
        .where(key.is_not(None))
        .group_by(*group)
        .order_by(count.desc(), key)
        .limit(TOP_N)
    )
    rows = (await db.execute(query)).all()
    if name is None:
        return [{"id": r[0], "name": r[0], "count": r[-1]} for r in rows]
    return [{"id": r[0], "name": r[1], "count": r[2]} for r in rows]


async def _translated_names(db: AsyncSession, model, ids) -> dict[int, Optional[str]]:
    if not ids:
        return {}
    result = await db.execute(select(model).where(model.id.in_(ids)))
    return {e.id: display_name(e.translations) for e in result.scalars()}


async def _named(db: AsyncSession, model, rows: list[dict]) -> list[dict]:
    names = await _translated_names(db, model, [r["id"] for r in rows])
    return [{**r, "name": names.get(r["id"])} for r in rows]


async def filter_options(db: AsyncSession, academy_id: int) -> dict:
    programs = await db.execute(
        select(Program.id, Program.name).where(Program.academic_id == academy_id).order_by(Program.id)
    )
    branches = await db.execute(
        select(Branch).where(Branch.academic_id == academy_id).order_by(Branch.id)
    )
    sports = await db.execute(
        select(Sport)
        .join(AcademySport, AcademySport.sport_id == Sport.id)
        .where(AcademySport.academic_id == academy_id)
        .order_by(Sport.id)
    )
    return {
        "programs": [{"id": pid, "name": name} for pid, name in programs.all()],
        "locations": [{"id": b.id, "name": display_name(b.translations)} for b in branches.scalars()],
        "sports": [{"id": s.id, "name": display_name(s.translations)} for s in sports.scalars()],
    }


async def dashboard_stats(db: AsyncSession, filters: DashboardFilters, today: Optional[date] = None) -> dict:
    today = today or date.today()
    this_start, this_end = month_range(today)
    last_start, last_end = month_range(this_start - timedelta(days=1))

    return {
        "current_month_count": await _sessions_between(db, filters, this_start, this_end),
        "last_month_count": await _sessions_between(db, filters, last_start, last_end),
        "total_bookings": await db.scalar(_scoped(filters, func.count(Booking.id))) or 0,
        "time_traffic": await _top(db, filters, BookingSession.from_time, sessions=True),
        "package_traffic": await _top(db, filters, Package.id, Package.name),
        "program_traffic": await _top(db, filters, Program.id, Program.name),
        "coach_traffic": await _top(db, filters, Coach.id, Coach.name, coaches=True),
        "sport_traffic": await _named(db, Sport, await _top(db, filters, Program.sport_id)),
        "branch_traffic": await _named(db, Branch, await _top(db, filters, Program.branch_id)),
        **await filter_options(db, filters.academy_id),
    }
