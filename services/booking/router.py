"""
services/booking/router.py
Bookings of the acting academy: price quotes, creation with generated
sessions, the calendar view and per-session status changes.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_db
from config.settings import settings
from services.blocks.resolution import load_blocks
from services.booking.pricing import Quote, quote_booking
from shared.middleware.auth import get_current_academy
from shared.models.models import (
    Academy,
    Booking,
    BookingSession,
    Coach,
    EntryFeesHistory,
    Package,
    Profile,
    Program,
)
from shared.schemas.schemas import (
    BookingQuoteResponse,
    BookingRequest,
    BookingResponse,
    BookingSessionResponse,
    IdsRequest,
    MessageResponse,
    SessionStatusUpdate,
)
from shared.utils.errors import field_error
from shared.utils.pagination import page_payload, paginate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def _academy_package_ids(academy_id: int):
    return (
        select(Package.id)
        .join(Program, Program.id == Package.program_id)
        .where(Program.academic_id == academy_id)
    )


def booking_payload(booking: Booking) -> BookingResponse:
    return BookingResponse(
        id=booking.id,
        status=booking.status,
        profile_id=booking.profile_id,
        package_id=booking.package_id,
        coach_id=booking.coach_id,
        price=booking.price,
        package_price=booking.package_price,
        entry_fees_paid=booking.entry_fees_paid,
        assessment_deduction_id=booking.assessment_deduction_id,
        academy_policy=booking.academy_policy,
        roap_policy=booking.roap_policy,
        created_at=booking.created_at,
        sessions=[BookingSessionResponse.model_validate(s) for s in booking.sessions],
    )


async def _resolve_request(
    db: AsyncSession, academy: Academy, data: BookingRequest
) -> tuple[Package, Program]:
    """Package, program, profile and coach checks shared by quote and create."""
    package = await db.get(Package, data.package_id)
    program = await db.get(Program, package.program_id) if package else None
    if not program or program.academic_id != academy.id:
        raise field_error("Package not found", "package_id", status.HTTP_404_NOT_FOUND)
    if program.sport_id is None:
        raise field_error("The package's program has no sport", "package_id")

    if not await db.get(Profile, data.profile_id):
        raise field_error("Profile not found", "profile_id", status.HTTP_404_NOT_FOUND)

    if data.coach_id is not None:
        coach = await db.get(Coach, data.coach_id)
        if not coach or coach.academic_id != academy.id:
            raise field_error("Coach not found", "coach_id", status.HTTP_404_NOT_FOUND)
    return package, program


async def _quote(db: AsyncSession, academy: Academy, data: BookingRequest) -> tuple[Package, Quote]:
    package, program = await _resolve_request(db, academy, data)
    quote = await quote_booking(
        db, package, program, data.profile_id, data.date, data.time, coach_id=data.coach_id
    )
    return package, quote


# ── Quote & create ────────────────────────────────────────────

@router.post("/quote", response_model=BookingQuoteResponse)
async def quote(
    data: BookingRequest,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    """Price breakdown and sessions a booking would get. Nothing is written."""
    _, result = await _quote(db, academy, data)
    return BookingQuoteResponse(**result.as_dict())


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    data: BookingRequest,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    """
    Book a package for a profile.
    The booking, its sessions and the entry-fee history row commit together;
    a reused assessment is linked through assessment_deduction_id.
    """
    package, result = await _quote(db, academy, data)
    program = result.program

    booking = Booking(
        status="success",
        profile_id=data.profile_id,
        package_id=package.id,
        coach_id=data.coach_id,
        price=result.final_price,
        package_price=package.price,
        academy_policy=data.academy_policy,
        roap_policy=data.roap_policy,
        entry_fees_paid=result.entry_fees_charged,
        sessions=[
            BookingSession(date=s.date, from_time=s.from_time, to_time=s.to_time, status=s.status)
            for s in result.sessions
        ],
    )
    db.add(booking)
    if result.entry_fees_charged:
        db.add(EntryFeesHistory(
            profile_id=data.profile_id, sport_id=program.sport_id, program_id=program.id
        ))

    try:
        await db.flush()
        if result.assessment_booking_id is not None:
            booking.assessment_deduction_id = result.assessment_booking_id
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="The assessment booking has already been deducted",
        )

    logger.info(
        f"Booking {booking.id} created: profile={booking.profile_id} "
        f"package={package.id} price={booking.price}"
    )
    return booking_payload(booking)


# ── Read ──────────────────────────────────────────────────────

@router.get("")
async def list_bookings(
    profile_id: Optional[int] = Query(None),
    booking_status: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.PAGE_SIZE_DEFAULT, ge=1, le=100),
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    query = select(Booking).where(Booking.package_id.in_(_academy_package_ids(academy.id)))
    if profile_id:
        query = query.where(Booking.profile_id == profile_id)
    if booking_status:
        query = query.where(Booking.status == booking_status)
    query = query.order_by(Booking.created_at.desc(), Booking.id.desc())

    rows, total = await paginate(db, query, page, page_size)
    return page_payload([booking_payload(b) for b in rows], total, page, page_size)


@router.get("/calendar")
async def get_calendar(
    start: date = Query(...),
    end: date = Query(...),
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    """Booking sessions and blocks within [start, end], ordered by date and time."""
    if start >= end:
        raise field_error("Start date must be before end date", "start")

    result = await db.execute(
        select(BookingSession, Booking, Program, Profile)
        .join(Booking, Booking.id == BookingSession.booking_id)
        .join(Package, Package.id == Booking.package_id)
        .join(Program, Program.id == Package.program_id)
        .join(Profile, Profile.id == Booking.profile_id)
        .where(
            Program.academic_id == academy.id,
            BookingSession.date >= start,
            BookingSession.date <= end,
        )
    )
    entries = [
        {
            "type": "session",
            "id": session.id,
            "booking_id": booking.id,
            "date": session.date,
            "from": session.from_time,
            "to": session.to_time,
            "status": session.status,
            "profile_id": profile.id,
            "profile_name": profile.name,
            "package_id": booking.package_id,
            "program_id": program.id,
            "program_name": program.name,
            "color": program.color,
        }
        for session, booking, program, profile in result.all()
    ]
    entries.extend(
        {
            "type": "block",
            "id": block.id,
            "date": block.date,
            "from": block.start_time.strftime("%H:%M"),
            "to": block.end_time.strftime("%H:%M"),
            "status": "blocked",
            "note": block.note,
        }
        for block in await load_blocks(db, academy.id, start, end)
    )
    entries.sort(key=lambda e: (e["date"], e["from"]))
    return entries


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: int,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Booking).where(
            Booking.id == booking_id,
            Booking.package_id.in_(_academy_package_ids(academy.id)),
        )
    )
    booking = result.scalar_one_or_none()
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking_payload(booking)


# ── Write ─────────────────────────────────────────────────────

@router.patch("/sessions/{session_id}", response_model=BookingSessionResponse)
async def update_session_status(
    session_id: int,
    data: SessionStatusUpdate,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(BookingSession)
        .join(Booking, Booking.id == BookingSession.booking_id)
        .where(
            BookingSession.id == session_id,
            Booking.package_id.in_(_academy_package_ids(academy.id)),
        )
    )
    session = result.scalar_one_or_none()
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")

    previous = session.status
    session.status = data.status
    await db.commit()
    logger.info(f"Session {session.id}: {previous} -> {session.status}")
    return BookingSessionResponse.model_validate(session)


@router.delete("", response_model=MessageResponse)
async def delete_bookings(
    data: IdsRequest,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        delete(Booking).where(
            Booking.id.in_(data.ids),
            Booking.package_id.in_(_academy_package_ids(academy.id)),
        )
    )
    await db.commit()
    return MessageResponse(message=f"Deleted {result.rowcount} bookings")
