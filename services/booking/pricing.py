"""
services/booking/pricing.py
Session generation and price calculation for bookings.

    final = discounted(package price - missed sessions)
            + entry fee (when charged)
            + assessment adjustment (when an earlier assessment is reused)

Entry fees are charged once per (profile, sport, program); an assessment
booking can be credited against at most one later booking.
"""

import logging
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from services.blocks.resolution import Slot, is_blocked, load_blocks
from services.programs.packages import (
    ASSESSMENT,
    MONTHLY,
    month_label,
    month_range,
    package_kind,
)
from shared.models.models import (
    Booking,
    Discount,
    DiscountType,
    EntryFeesHistory,
    Package,
    PackageDiscount,
    Program,
)
from shared.utils.errors import field_error

logger = logging.getLogger(__name__)

# date.weekday() order
WEEKDAYS = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")
TIME_FORMAT = "%H:%M"


@dataclass
class SessionDraft:
    date: date
    from_time: str
    to_time: str
    status: str = "pending"


@dataclass
class Quote:
    sessions: list[SessionDraft]
    total_price: float
    deductions: float
    discounted_price: float
    entry_fees: float = 0
    entry_fees_charged: bool = False
    assessment_deduction: float = 0
    assessment_booking_id: Optional[int] = None
    final_price: float = 0
    program: Optional[Program] = field(default=None, repr=False)

    def as_dict(self) -> dict:
        data = asdict(self)
        data.pop("program")
        data.pop("entry_fees_charged")
        return data


# ── Sessions ──────────────────────────────────────────────────

def _hhmm(value: time) -> str:
    return value.strftime(TIME_FORMAT)


def parse_booking_time(value: str) -> tuple[time, time]:
    """'16:00 17:00' -> (16:00, 17:00)."""
    try:
        start, end = (datetime.strptime(part, TIME_FORMAT).time() for part in value.split())
    except ValueError:
        raise field_error("Time must look like 'HH:MM HH:MM'", "time")
    if start >= end:
        raise field_error("End time must be after start time", "time")
    return start, end


def generate_sessions(schedules: Iterable, start: date, end: date) -> list[SessionDraft]:
    """One session per day in [start, end] for the first schedule on that weekday."""
    schedules = list(schedules)
    sessions = []
    current = start
    while current <= end:
        weekday = WEEKDAYS[current.weekday()]
        schedule = next((s for s in schedules if s.day.lower() == weekday), None)
        if schedule:
            sessions.append(SessionDraft(current, _hhmm(schedule.from_time), _hhmm(schedule.to_time)))
        current += timedelta(days=1)
    return sessions


def calculate_sessions_and_price(
    package: Package, selected_date: date, booking_time: str
) -> tuple[list[SessionDraft], float, float]:
    """Returns (sessions to book, package price, deduction for missed sessions)."""
    kind = package_kind(package.name)
    total_price = float(package.price)

    if kind == ASSESSMENT:
        start, end = parse_booking_time(booking_time)
        return [SessionDraft(selected_date, _hhmm(start), _hhmm(end))], total_price, 0.0

    if kind == MONTHLY:
        if month_label(selected_date) not in (package.months or []):
            raise field_error("Selected month is not available in this package", "date")
        range_start, range_end = month_range(selected_date)
    else:
        if not (package.start_date <= selected_date <= package.end_date):
            raise field_error("Selected date is outside the package period", "date")
        range_start, range_end = package.start_date, package.end_date

    all_sessions = generate_sessions(package.schedules, range_start, range_end)
    price_per_session = total_price / len(all_sessions) if all_sessions else 0.0
    missed = [s for s in all_sessions if s.date < selected_date]
    booked = [s for s in all_sessions if s.date >= selected_date]
    return booked, total_price, len(missed) * price_per_session


def apply_discounts(amount: float, discounts: Iterable[Discount], on_date: date) -> float:
    """Apply, in order, the discounts whose window contains `on_date`. Never below 0."""
    for discount in discounts:
        if not (discount.start_date <= on_date <= discount.end_date):
            continue
        if discount.type == DiscountType.PERCENTAGE:
            amount *= 1 - discount.value / 100
        else:
            amount -= discount.value
    return max(amount, 0.0)


def mark_blocked(
    sessions: list[SessionDraft],
    blocks: list,
    program: Program,
    package: Package,
    coach_id: Optional[int] = None,
) -> int:
    """Set blocked sessions to `rejected`; returns how many were blocked."""
    count = 0
    for session in sessions:
        slot = Slot(
            date=session.date,
            from_time=datetime.strptime(session.from_time, TIME_FORMAT).time(),
            to_time=datetime.strptime(session.to_time, TIME_FORMAT).time(),
            branch_id=program.branch_id,
            sport_id=program.sport_id,
            package_id=package.id,
            program_id=program.id,
            coach_id=coach_id,
        )
        if is_blocked(blocks, slot):
            session.status = "rejected"
            count += 1
    return count


# ── Entry fees & assessments ──────────────────────────────────

async def check_entry_fees(
    db: AsyncSession,
    profile_id: int,
    sport_id: int,
    program_id: int,
    package: Package,
    on_date: date,
) -> Optional[float]:
    """The entry fee to charge, or None when nothing is due."""
    if package.entry_fees_start_date and on_date < package.entry_fees_start_date:
        return None
    if package.entry_fees_end_date and on_date > package.entry_fees_end_date:
        return None

    paid = await db.execute(
        select(EntryFeesHistory.id).where(
            EntryFeesHistory.profile_id == profile_id,
            EntryFeesHistory.sport_id == sport_id,
            EntryFeesHistory.program_id == program_id,
        )
    )
    if paid.first():
        return None

    if package_kind(package.name) == MONTHLY and package.entry_fees_applied_until is not None:
        if month_label(on_date) not in package.entry_fees_applied_until:
            return None

    if not package.entry_fees:
        return None
    return float(package.entry_fees)


async def check_assessment_deduction(
    db: AsyncSession,
    profile_id: int,
    sport_id: int,
    branch_id: Optional[int],
    package: Package,
) -> tuple[Optional[Booking], float]:
    """
    Latest successful, not yet reused assessment booking of the profile for
    the same sport and branch, and the adjustment it brings.
    """
    already_used = select(Booking.assessment_deduction_id).where(
        Booking.assessment_deduction_id.is_not(None)
    )
    result = await db.execute(
        select(Booking)
        .join(Package, Package.id == Booking.package_id)
        .join(Program, Program.id == Package.program_id)
        .where(
            Booking.profile_id == profile_id,
            Booking.status == "success",
            func.lower(Package.name).like(f"{ASSESSMENT}%"),
            Program.assessment_deducted_from_program.is_(True),
            Program.sport_id == sport_id,
            Program.branch_id == branch_id,
            Booking.id.not_in(already_used),
        )
        .order_by(Booking.created_at.desc(), Booking.id.desc())
        .limit(1)
    )
    assessment = result.scalars().first()
    if not assessment:
        return None, 0.0
    return assessment, float(package.entry_fees or 0) - float(assessment.price)


# ── Quote ─────────────────────────────────────────────────────

async def quote_booking(
    db: AsyncSession,
    package: Package,
    program: Program,
    profile_id: int,
    selected_date: date,
    booking_time: str,
    coach_id: Optional[int] = None,
) -> Quote:
    sessions, total_price, deductions = calculate_sessions_and_price(package, selected_date, booking_time)

    if sessions:
        blocks = await load_blocks(db, program.academic_id, sessions[0].date, sessions[-1].date)
        blocked = mark_blocked(sessions, blocks, program, package, coach_id)
        if blocked:
            logger.info(f"{blocked} generated sessions of package {package.id} fall inside blocks")

    discounts = await db.execute(
        select(Discount)
        .join(PackageDiscount, PackageDiscount.discount_id == Discount.id)
        .where(PackageDiscount.package_id == package.id)
        .order_by(PackageDiscount.id)
    )
    discounted = apply_discounts(total_price - deductions, discounts.scalars(), selected_date)

    entry_fee = await check_entry_fees(db, profile_id, program.sport_id, program.id, package, selected_date)

    assessment, adjustment = None, 0.0
    if package_kind(package.name) != ASSESSMENT:
        assessment, adjustment = await check_assessment_deduction(
            db, profile_id, program.sport_id, program.branch_id, package
        )

    final_price = discounted + (entry_fee or 0.0) + adjustment
    return Quote(
        sessions=sessions,
        total_price=total_price,
        deductions=deductions,
        discounted_price=discounted,
        entry_fees=entry_fee or 0.0,
        entry_fees_charged=entry_fee is not None,
        assessment_deduction=adjustment,
        assessment_booking_id=assessment.id if assessment else None,
        final_price=final_price,
        program=program,
    )
