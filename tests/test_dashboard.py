"""
tests/test_dashboard.py
Academy dashboard statistics: month session counts, booking totals,
traffic rankings and filters.
"""

from datetime import date, timedelta

import pytest
import pytest_asyncio
from httpx import AsyncClient

from services.academy.dashboard import DashboardFilters, dashboard_stats
from shared.models.models import Booking, BookingSession, Coach, Package
from tests.conftest import auth_headers

TODAY = date(2025, 3, 10)


def _booking(package, profile, coach=None, sessions=()):
    return Booking(
        profile_id=profile.id,
        package_id=package.id,
        coach_id=coach.id if coach else None,
        status="success",
        sessions=[BookingSession(date=d, from_time=start, to_time="23:00") for d, start in sessions],
    )


@pytest_asyncio.fixture
async def coach(db, academy):
    coach = Coach(academic_id=academy.id, name="Coach Carter")
    db.add(coach)
    await db.commit()
    return coach


@pytest_asyncio.fixture
async def bookings(db, program, package, profile, coach):
    monthly = Package(
        program_id=program.id, name="Monthly Plan", price=300,
        start_date=date(2025, 2, 1), end_date=date(2025, 3, 31),
        months=["February 2025", "March 2025"], schedules=[], discount_links=[],
    )
    db.add(monthly)
    await db.flush()
    db.add_all([
        _booking(package, profile, coach, [(date(2025, 3, 3), "16:00"), (date(2025, 3, 5), "16:00")]),
        _booking(package, profile, coach, [(date(2025, 3, 12), "18:00")]),
        _booking(monthly, profile, None, [(date(2025, 2, 15), "10:00"), (date(2025, 1, 31), "10:00")]),
    ])
    await db.commit()
    return monthly


@pytest.mark.asyncio
async def test_month_counts_and_total(db, academy, bookings):
    stats = await dashboard_stats(db, DashboardFilters(academy_id=academy.id), today=TODAY)
    assert stats["current_month_count"] == 3
    assert stats["last_month_count"] == 1
    assert stats["total_bookings"] == 3


@pytest.mark.asyncio
async def test_traffic_rankings(db, academy, program, package, coach, sport, branch, bookings):
    stats = await dashboard_stats(db, DashboardFilters(academy_id=academy.id), today=TODAY)

    # equal counts rank by the earlier time
    assert [(r["id"], r["count"]) for r in stats["time_traffic"]] == [("10:00", 2), ("16:00", 2), ("18:00", 1)]
    assert [r["name"] for r in stats["package_traffic"]] == ["Term 1", "Monthly Plan"]
    assert stats["program_traffic"] == [{"id": program.id, "name": "Juniors", "count": 3}]
    # bookings without a coach are left out
    assert stats["coach_traffic"] == [{"id": coach.id, "name": "Coach Carter", "count": 2}]
    assert stats["sport_traffic"] == [{"id": sport.id, "name": "Football", "count": 3}]
    assert stats["branch_traffic"] == [{"id": branch.id, "name": "Main Branch", "count": 3}]


@pytest.mark.asyncio
async def test_filters_narrow_every_figure(db, academy, bookings):
    stats = await dashboard_stats(
        db, DashboardFilters(academy_id=academy.id, gender="female"), today=TODAY
    )
    assert (stats["current_month_count"], stats["total_bookings"]) == (0, 0)
    assert stats["package_traffic"] == []

    other = await dashboard_stats(db, DashboardFilters(academy_id=academy.id + 1), today=TODAY)
    assert other["total_bookings"] == 0
    assert other["programs"] == []


@pytest.mark.asyncio
async def test_dashboard_endpoint(client: AsyncClient, db, academic_user, academy, program, branch, sport, package, profile):
    today = date.today()
    db.add(_booking(package, profile, sessions=[(today, "16:00"), (today.replace(day=1) - timedelta(days=1), "16:00")]))
    await db.commit()

    response = await client.get(
        "/academy/dashboard", params={"program_id": program.id}, headers=auth_headers(academic_user)
    )
    assert response.status_code == 200, response.text
    data = response.json()
    assert (data["current_month_count"], data["last_month_count"]) == (1, 1)
    assert data["programs"] == [{"id": program.id, "name": "Juniors"}]
    assert data["locations"] == [{"id": branch.id, "name": "Main Branch"}]
    assert data["sports"] == [{"id": sport.id, "name": "Football"}]


@pytest.mark.asyncio
async def test_dashboard_needs_academy(client: AsyncClient, user):
    response = await client.get("/academy/dashboard", headers=auth_headers(user))
    assert response.status_code == 403
