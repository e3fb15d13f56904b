"""
tests/test_models.py
Database-level constraints and cascades.
"""

from datetime import date, time

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.models.models import (
    Academy,
    Block,
    BlockBranch,
    Booking,
    BookingSession,
    Branch,
    DiscountType,
    Page,
    PageTranslation,
    Program,
    PromoCode,
    SportTranslation,
    User,
    Wishlist,
)


async def _expect_integrity_error(db: AsyncSession, *rows):
    db.add_all(rows)
    with pytest.raises(IntegrityError):
        await db.commit()
    await db.rollback()


@pytest.mark.asyncio
async def test_program_type_is_checked(db: AsyncSession, academy):
    await _expect_integrity_error(db, Program(academic_id=academy.id, name="Odd", type="GROUP"))


@pytest.mark.asyncio
async def test_session_status_is_checked(db: AsyncSession, package, profile):
    booking = Booking(profile_id=profile.id, package_id=package.id, status="success")
    db.add(booking)
    await db.commit()
    await _expect_integrity_error(
        db, BookingSession(booking_id=booking.id, date=date(2025, 1, 6), from_time="16:00", to_time="17:00",
                           status="done")
    )


@pytest.mark.asyncio
async def test_booking_status_is_checked(db: AsyncSession, package, profile):
    await _expect_integrity_error(db, Booking(profile_id=profile.id, package_id=package.id, status="paid"))


@pytest.mark.asyncio
async def test_wishlist_pair_is_unique(db: AsyncSession, academy, user):
    db.add(Wishlist(academic_id=academy.id, user_id=user.id))
    await db.commit()
    await _expect_integrity_error(db, Wishlist(academic_id=academy.id, user_id=user.id))


@pytest.mark.asyncio
async def test_translation_locale_is_unique(db: AsyncSession, sport):
    await _expect_integrity_error(db, SportTranslation(sport_id=sport.id, locale="en", name="Soccer"))


@pytest.mark.asyncio
async def test_assessment_is_credited_once(db: AsyncSession, package, profile):
    assessment = Booking(profile_id=profile.id, package_id=package.id, status="success")
    db.add(assessment)
    await db.commit()

    db.add(Booking(profile_id=profile.id, package_id=package.id, assessment_deduction_id=assessment.id))
    await db.commit()
    await _expect_integrity_error(
        db, Booking(profile_id=profile.id, package_id=package.id, assessment_deduction_id=assessment.id)
    )


@pytest.mark.asyncio
async def test_assessment_must_precede_booking(db: AsyncSession, package, profile):
    booking = Booking(profile_id=profile.id, package_id=package.id)
    db.add(booking)
    await db.commit()
    with pytest.raises(ValueError):
        booking.assessment_deduction_id = booking.id + 1


@pytest.mark.asyncio
async def test_academy_delete_cascades(db: AsyncSession, academy, branch, program, academic_user):
    await db.delete(academy)
    await db.commit()

    assert await db.scalar(select(func.count(Branch.id))) == 0
    assert await db.scalar(select(func.count(Program.id))) == 0
    assert await db.scalar(select(func.count(User.id)).where(User.id == academic_user.id)) == 1


@pytest.mark.asyncio
async def test_user_delete_detaches_academy(db: AsyncSession, academy, academic_user):
    await db.delete(academic_user)
    await db.commit()

    remaining = (await db.execute(
        select(Academy).where(Academy.id == academy.id).execution_options(populate_existing=True)
    )).scalar_one()
    assert remaining.user_id is None


@pytest.mark.asyncio
async def test_block_junction_pair_is_unique(db: AsyncSession, academy, branch):
    block = Block(academic_id=academy.id, date=date(2025, 1, 6), start_time=time(10), end_time=time(11))
    db.add(block)
    await db.commit()
    await _expect_integrity_error(
        db, BlockBranch(block_id=block.id, branch_id=branch.id), BlockBranch(block_id=block.id, branch_id=branch.id)
    )


@pytest.mark.asyncio
async def test_block_time_range_is_checked(db: AsyncSession, academy):
    await _expect_integrity_error(
        db, Block(academic_id=academy.id, date=date(2025, 1, 6), start_time=time(12), end_time=time(11))
    )


@pytest.mark.asyncio
async def test_academy_delete_removes_blocks(db: AsyncSession, academy, branch):
    block = Block(academic_id=academy.id, date=date(2025, 1, 6), start_time=time(10), end_time=time(11))
    db.add(block)
    await db.commit()
    db.add(BlockBranch(block_id=block.id, branch_id=branch.id))
    await db.commit()

    await db.delete(academy)
    await db.commit()
    assert await db.scalar(select(func.count(Block.id))) == 0
    assert await db.scalar(select(func.count(BlockBranch.id))) == 0


@pytest.mark.asyncio
async def test_page_translation_locale_is_unique(db: AsyncSession):
    page = Page(order_by="1", translations=[PageTranslation(locale="en", title="About", content="Who we are")])
    db.add(page)
    await db.commit()
    await _expect_integrity_error(
        db, PageTranslation(page_id=page.id, locale="en", title="About us", content="Again")
    )


@pytest.mark.asyncio
async def test_page_delete_removes_translations(db: AsyncSession):
    page = Page(order_by="2", translations=[
        PageTranslation(locale="en", title="Terms", content="..."),
        PageTranslation(locale="ar", title="الشروط", content="..."),
    ])
    db.add(page)
    await db.commit()

    await db.delete(page)
    await db.commit()
    assert await db.scalar(select(func.count(PageTranslation.id))) == 0


def _promo(code, academic_id=None, **fields):
    return PromoCode(
        code=code,
        academic_id=academic_id,
        discount_type=DiscountType.FIXED,
        discount_value=10,
        start_date=date(2025, 1, 1),
        end_date=date(2025, 2, 1),
        **fields,
    )


@pytest.mark.asyncio
async def test_promo_code_unique_per_academy(db: AsyncSession, academy):
    db.add(_promo("SUMMER", academy.id))
    await db.commit()
    await _expect_integrity_error(db, _promo("SUMMER", academy.id))


@pytest.mark.asyncio
async def test_promo_code_use_count_is_checked(db: AsyncSession, academy):
    await _expect_integrity_error(db, _promo("NEVER", academy.id, can_be_used=0))
