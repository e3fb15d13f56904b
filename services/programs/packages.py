"""
services/programs/packages.py
Package kinds and the mapping from package input to Package rows.

The kind of a package is carried by its name: "Assessment ...",
"Monthly ...", "Term ..." or anything else for a full season.
"""

import calendar
from datetime import date, datetime
from typing import Iterable

from shared.models.models import Package, Schedule
from shared.schemas.schemas import PackageInput

MONTH_FORMAT = "%B %Y"   # "January 2025"

ASSESSMENT = "assessment"
MONTHLY = "monthly"
TERM = "term"
FULL_SEASON = "full_season"


def package_kind(name: str) -> str:
    lowered = (name or "").lower()
    for prefix in (ASSESSMENT, MONTHLY, TERM):
        if lowered.startswith(prefix):
            return prefix
    return FULL_SEASON


def month_label(day: date) -> str:
    return day.strftime(MONTH_FORMAT)


def parse_month(label: str) -> date:
    return datetime.strptime(label, MONTH_FORMAT).date()


def month_range(month_start: date) -> tuple[date, date]:
    last_day = calendar.monthrange(month_start.year, month_start.month)[1]
    return month_start.replace(day=1), month_start.replace(day=last_day)


def month_bounds(months: Iterable[str]) -> tuple[date, date]:
    """First day of the earliest month, last day of the latest one."""
    parsed = sorted(parse_month(m) for m in months)
    return parsed[0], month_range(parsed[-1])[1]


def sorted_months(months: Iterable[str]) -> list[str]:
    return [month_label(d) for d in sorted({parse_month(m) for m in months})]


def _schedules(data: PackageInput) -> list[Schedule]:
    return [
        Schedule(day=s.day, from_time=s.from_time, to_time=s.to_time, memo=s.memo)
        for s in data.schedules
    ]


def _package_fields(data: PackageInput) -> dict:
    if package_kind(data.name) == MONTHLY:
        start_date, end_date = month_bounds(data.months)
        months = sorted_months(data.months)
    else:
        start_date, end_date = data.start_date, data.end_date
        months = None
    return {
        "name": data.name,
        "price": data.price,
        "start_date": start_date,
        "end_date": end_date,
        "months": months,
        "session_per_week": len(data.schedules),
        "session_duration": data.session_duration,
        "capacity": data.capacity,
        "memo": data.memo,
        "entry_fees": data.entry_fees,
        "entry_fees_explanation": data.entry_fees_explanation,
        "entry_fees_applied_until": data.entry_fees_applied_until,
        "entry_fees_start_date": data.entry_fees_start_date,
        "entry_fees_end_date": data.entry_fees_end_date,
    }


def build_package(data: PackageInput, program_id: int | None = None) -> Package:
    package = Package(**_package_fields(data), schedules=_schedules(data), discount_links=[])
    if program_id is not None:
        package.program_id = program_id
    return package


def apply_package(package: Package, data: PackageInput) -> None:
    """Overwrite a package from input; its schedules are replaced wholesale."""
    for field, value in _package_fields(data).items():
        setattr(package, field, value)
    package.schedules.clear()
    package.schedules.extend(_schedules(data))


def package_payload(package: Package) -> dict:
    return {
        "id": package.id,
        "program_id": package.program_id,
        "name": package.name,
        "price": package.price,
        "start_date": package.start_date,
        "end_date": package.end_date,
        "months": package.months,
        "session_per_week": package.session_per_week,
        "session_duration": package.session_duration,
        "capacity": package.capacity,
        "memo": package.memo,
        "entry_fees": package.entry_fees,
        "entry_fees_explanation": package.entry_fees_explanation,
        "entry_fees_applied_until": package.entry_fees_applied_until,
        "entry_fees_start_date": package.entry_fees_start_date,
        "entry_fees_end_date": package.entry_fees_end_date,
        "schedules": [
            {"id": s.id, "day": s.day, "from_time": s.from_time, "to_time": s.to_time, "memo": s.memo}
            for s in package.schedules
        ],
    }
