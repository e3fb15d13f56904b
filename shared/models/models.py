"""
shared/models/models.py
All SQLAlchemy ORM models for the academy platform.
Integer identity keys throughout. Translation uniqueness, status checks,
scope junction uniqueness and cascades are all declared on the tables.
"""

import datetime as dt
import uuid
from datetime import date, datetime, time, timezone
from enum import Enum as PyEnum
from typing import List, Optional

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from config.database import Base


# SQLite only autoincrements INTEGER PRIMARY KEY columns
BigId = BigInteger().with_variant(Integer, "sqlite")
JSONList = JSON().with_variant(JSONB, "postgresql")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Enumerations ──────────────────────────────────────────────

class UserRole(str, PyEnum):
    ADMIN = "admin"
    USER = "user"
    ACADEMIC = "academic"


class AcademyStatus(str, PyEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class BlockScope(str, PyEnum):
    ALL = "all"
    SPECIFIC = "specific"


class DiscountType(str, PyEnum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"


class AthleticType(str, PyEnum):
    PRIMARY = "primary"
    FELLOW = "fellow"


# Plain varchar columns guarded by CHECK constraints
PROGRAM_TYPES = ("TEAM", "PRIVATE")
BOOKING_STATUSES = ("pending", "success", "rejected")
SESSION_STATUSES = ("pending", "accepted", "upcoming", "rejected", "cancelled")
SCHEDULE_DAYS = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")


def _in_check(column: str, values: tuple) -> str:
    quoted = ", ".join(f"'{v}'" for v in values)
    return f"{column} IN ({quoted})"


def _enum(enum_cls, name: str) -> Enum:
    """Named database enum storing the lower-case member values."""
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


# ── Mixins ────────────────────────────────────────────────────

class TimestampMixin:
    """Adds created_at and updated_at to any model."""
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        onupdate=_utcnow,
        nullable=False,
    )


class TranslationMixin:
    """Locale-specific display name for a base entity."""
    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    locale: Mapped[str] = mapped_column(String(10), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)


_children = dict(cascade="all, delete-orphan", passive_deletes=True, lazy="selectin")


# ── Users & Profiles ──────────────────────────────────────────

class User(TimestampMixin, Base):
    """Account used for credential login. Academies, athletes and admins all have one."""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone_number: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    password: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    role: Mapped[UserRole] = mapped_column(
        _enum(UserRole, "user_roles"), nullable=False, default=UserRole.USER
    )
    is_athletic: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        UniqueConstraint("email", name="users_email_unique"),
        UniqueConstraint("phone_number", name="users_phone_number_unique"),
        Index("ix_users_role", "role"),
    )

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role})>"


class Profile(TimestampMixin, Base):
    """Athlete profile. A user may hold several (self plus family members)."""
    __tablename__ = "profiles"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    gender: Mapped[Optional[str]] = mapped_column(String(255))
    birthday: Mapped[Optional[date]] = mapped_column(Date)
    image: Mapped[Optional[str]] = mapped_column(String(255))
    relationship: Mapped[str] = mapped_column(String(255), default="self", nullable=False)
    country: Mapped[Optional[str]] = mapped_column(String(255))
    nationality: Mapped[Optional[str]] = mapped_column(String(255))
    city: Mapped[Optional[str]] = mapped_column(String(255))
    street_address: Mapped[Optional[str]] = mapped_column(String(512))

    __table_args__ = (
        UniqueConstraint("user_id", "name", name="profiles_user_id_name_unique"),
    )


# ── Geography ─────────────────────────────────────────────────

class Country(TimestampMixin, Base):
    __tablename__ = "countries"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)

    translations: Mapped[List["CountryTranslation"]] = relationship(**_children)


class CountryTranslation(TranslationMixin, TimestampMixin, Base):
    __tablename__ = "country_translations"

    country_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("countries.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("country_id", "locale", name="country_translations_country_id_locale_unique"),
    )


class State(TimestampMixin, Base):
    __tablename__ = "states"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    country_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("countries.id", ondelete="CASCADE"), nullable=False
    )

    translations: Mapped[List["StateTranslation"]] = relationship(**_children)

    __table_args__ = (Index("ix_states_country_id", "country_id"),)


class StateTranslation(TranslationMixin, TimestampMixin, Base):
    __tablename__ = "state_translations"

    state_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("states.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("state_id", "locale", name="state_translations_state_id_locale_unique"),
    )


class City(TimestampMixin, Base):
    __tablename__ = "cities"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    state_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("states.id", ondelete="CASCADE"), nullable=False
    )

    translations: Mapped[List["CityTranslation"]] = relationship(**_children)

    __table_args__ = (Index("ix_cities_state_id", "state_id"),)


class CityTranslation(TranslationMixin, TimestampMixin, Base):
    __tablename__ = "city_translations"

    city_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("cities.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("city_id", "locale", name="city_translations_city_id_locale_unique"),
    )


# ── Catalogs ──────────────────────────────────────────────────

class Sport(TimestampMixin, Base):
    __tablename__ = "sports"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    image: Mapped[Optional[str]] = mapped_column(String(255))

    translations: Mapped[List["SportTranslation"]] = relationship(**_children)


class SportTranslation(TranslationMixin, TimestampMixin, Base):
    __tablename__ = "sport_translations"

    sport_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("sports.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("sport_id", "locale", name="sport_translations_sport_id_locale_unique"),
    )


class Facility(TimestampMixin, Base):
    __tablename__ = "facilities"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)

    translations: Mapped[List["FacilityTranslation"]] = relationship(**_children)


class FacilityTranslation(TranslationMixin, TimestampMixin, Base):
    __tablename__ = "facility_translations"

    facility_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("facilities.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("facility_id", "locale", name="facility_translations_facility_id_locale_unique"),
    )


class Gender(TimestampMixin, Base):
    __tablename__ = "genders"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)

    translations: Mapped[List["GenderTranslation"]] = relationship(**_children)


class GenderTranslation(TranslationMixin, TimestampMixin, Base):
    __tablename__ = "gender_translations"

    gender_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("genders.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("gender_id", "locale", name="gender_translations_gender_id_locale_unique"),
    )


class SpokenLanguage(TimestampMixin, Base):
    __tablename__ = "spoken_languages"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)

    translations: Mapped[List["SpokenLanguageTranslation"]] = relationship(**_children)


class SpokenLanguageTranslation(TranslationMixin, TimestampMixin, Base):
    __tablename__ = "spoken_language_translations"

    spoken_language_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("spoken_languages.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            "spoken_language_id", "locale",
            name="spoken_language_translations_spoken_language_id_locale_unique",
        ),
    )


# ── Academies ─────────────────────────────────────────────────

class Academy(TimestampMixin, Base):
    """
    Tenant organization. Created `pending` at sign-up and moderated by admins.
    Deleting an academy cascades to everything it owns but never to its user.
    """
    __tablename__ = "academics"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    user_id: Mapped[Optional[int]] = mapped_column(
        BigId, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    status: Mapped[AcademyStatus] = mapped_column(
        _enum(AcademyStatus, "status"), nullable=False, default=AcademyStatus.PENDING
    )
    onboarded: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    entry_fees: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    image: Mapped[Optional[str]] = mapped_column(String(255))
    policy: Mapped[Optional[str]] = mapped_column(Text)
    extra: Mapped[Optional[str]] = mapped_column(Text)
    hidden: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    translations: Mapped[List["AcademyTranslation"]] = relationship(**_children)
    sport_links: Mapped[List["AcademySport"]] = relationship(**_children)

    __table_args__ = (
        Index("ix_academics_user_id", "user_id"),
        Index("ix_academics_status", "status"),
    )


class AcademyTranslation(TranslationMixin, TimestampMixin, Base):
    __tablename__ = "academic_translations"

    academic_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("academics.id", ondelete="CASCADE"), nullable=False
    )
    description: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        UniqueConstraint("academic_id", "locale", name="academic_translations_academic_id_locale_unique"),
    )


class AcademySport(TimestampMixin, Base):
    __tablename__ = "academic_sport"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    academic_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("academics.id", ondelete="CASCADE"), nullable=False
    )
    sport_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("sports.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("academic_id", "sport_id", name="academic_sport_academic_id_sport_id_unique"),
    )


class AcademyAthlete(TimestampMixin, Base):
    """Athlete enrolled with an academy, with optional guardian contacts."""
    __tablename__ = "academic_athletic"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    academic_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("academics.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    profile_id: Mapped[Optional[int]] = mapped_column(
        BigId, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=True
    )
    sport_id: Mapped[Optional[int]] = mapped_column(
        BigId, ForeignKey("sports.id", ondelete="CASCADE"), nullable=True
    )
    certificate: Mapped[Optional[str]] = mapped_column(String(255))
    type: Mapped[AthleticType] = mapped_column(
        _enum(AthleticType, "athletic_type"), nullable=False, default=AthleticType.PRIMARY
    )
    first_guardian_name: Mapped[Optional[str]] = mapped_column(String(255))
    first_guardian_relationship: Mapped[Optional[str]] = mapped_column(String(255))
    first_guardian_email: Mapped[Optional[str]] = mapped_column(String(255))
    first_guardian_phone: Mapped[Optional[str]] = mapped_column(String(20))
    second_guardian_name: Mapped[Optional[str]] = mapped_column(String(255))
    second_guardian_relationship: Mapped[Optional[str]] = mapped_column(String(255))
    second_guardian_email: Mapped[Optional[str]] = mapped_column(String(255))
    second_guardian_phone: Mapped[Optional[str]] = mapped_column(String(20))

    __table_args__ = (Index("ix_academic_athletic_academic_id", "academic_id"),)


# ── Branches ──────────────────────────────────────────────────

class Branch(TimestampMixin, Base):
    """Physical location of an academy, enriched from Google Places."""
    __tablename__ = "branches"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    academic_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("academics.id", ondelete="CASCADE"), nullable=False
    )
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    latitude: Mapped[Optional[str]] = mapped_column(String(255))
    longitude: Mapped[Optional[str]] = mapped_column(String(255))
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    rate: Mapped[Optional[float]] = mapped_column(Float)
    reviews: Mapped[Optional[int]] = mapped_column(Integer)
    url: Mapped[Optional[str]] = mapped_column(String(255))
    place_id: Mapped[Optional[str]] = mapped_column(String(255))
    name_in_google_map: Mapped[Optional[str]] = mapped_column(String(255))

    translations: Mapped[List["BranchTranslation"]] = relationship(**_children)
    sport_links: Mapped[List["BranchSport"]] = relationship(**_children)
    facility_links: Mapped[List["BranchFacility"]] = relationship(**_children)

    __table_args__ = (
        UniqueConstraint("slug", name="branches_slug_unique"),
        Index("ix_branches_academic_id", "academic_id"),
    )


class BranchTranslation(TranslationMixin, TimestampMixin, Base):
    __tablename__ = "branch_translations"

    branch_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("branches.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("branch_id", "locale", name="branch_translations_branch_id_locale_unique"),
    )


class BranchSport(TimestampMixin, Base):
    __tablename__ = "branch_sport"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    branch_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("branches.id", ondelete="CASCADE"), nullable=False
    )
    sport_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("sports.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("branch_id", "sport_id", name="branch_sport_branch_id_sport_id_unique"),
    )


class BranchFacility(TimestampMixin, Base):
    __tablename__ = "branch_facility"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    branch_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("branches.id", ondelete="CASCADE"), nullable=False
    )
    facility_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("facilities.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("branch_id", "facility_id", name="branch_facility_branch_id_facility_id_unique"),
    )


class Review(TimestampMixin, Base):
    """Google review copied from the branch's place details."""
    __tablename__ = "reviews"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    branch_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("branches.id", ondelete="CASCADE"), nullable=False
    )
    place_id: Mapped[str] = mapped_column(String(255), nullable=False)
    author_name: Mapped[str] = mapped_column(String(255), nullable=False)
    author_url: Mapped[Optional[str]] = mapped_column(String(512))
    language: Mapped[str] = mapped_column(String(10), nullable=False)
    original_language: Mapped[str] = mapped_column(String(10), nullable=False)
    profile_photo_url: Mapped[Optional[str]] = mapped_column(String(512))
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    relative_time_description: Mapped[str] = mapped_column(String(100), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    time: Mapped[int] = mapped_column(BigInteger, nullable=False)
    translated: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    __table_args__ = (Index("ix_reviews_branch_id", "branch_id"),)


# ── Programs, Packages, Schedules, Discounts ──────────────────

class Program(TimestampMixin, Base):
    __tablename__ = "programs"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    academic_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("academics.id", ondelete="CASCADE"), nullable=False
    )
    branch_id: Mapped[Optional[int]] = mapped_column(
        BigId, ForeignKey("branches.id", ondelete="CASCADE"), nullable=True
    )
    sport_id: Mapped[Optional[int]] = mapped_column(
        BigId, ForeignKey("sports.id", ondelete="CASCADE"), nullable=True
    )
    name: Mapped[Optional[str]] = mapped_column(String(255))
    description: Mapped[Optional[str]] = mapped_column(String(255))
    type: Mapped[Optional[str]] = mapped_column(String(255))
    number_of_seats: Mapped[Optional[int]] = mapped_column(Integer)
    gender: Mapped[Optional[str]] = mapped_column(String(255))
    start_date_of_birth: Mapped[Optional[date]] = mapped_column(Date)
    end_date_of_birth: Mapped[Optional[date]] = mapped_column(Date)
    color: Mapped[Optional[str]] = mapped_column(String(255))
    assessment_deducted_from_program: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )

    packages: Mapped[List["Package"]] = relationship(order_by="Package.id", **_children)
    discounts: Mapped[List["Discount"]] = relationship(order_by="Discount.id", **_children)
    coach_links: Mapped[List["CoachProgram"]] = relationship(**_children)

    __table_args__ = (
        CheckConstraint(_in_check("type", PROGRAM_TYPES), name="programs_type_check"),
        Index("ix_programs_academic_id", "academic_id"),
    )


class Package(TimestampMixin, Base):
    """
    Bookable offer of a program. The kind (assessment, monthly, term,
    full season) is carried by the name prefix.
    """
    __tablename__ = "packages"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    program_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("programs.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), default="Assessment Package", nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    months: Mapped[Optional[list]] = mapped_column(JSONList)           # ["January 2025", ...]
    session_per_week: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    session_duration: Mapped[Optional[int]] = mapped_column(Integer)
    capacity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    memo: Mapped[Optional[str]] = mapped_column(Text)
    entry_fees: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    entry_fees_explanation: Mapped[Optional[str]] = mapped_column(Text)
    entry_fees_applied_until: Mapped[Optional[list]] = mapped_column(JSONList)
    entry_fees_start_date: Mapped[Optional[date]] = mapped_column(Date)
    entry_fees_end_date: Mapped[Optional[date]] = mapped_column(Date)

    schedules: Mapped[List["Schedule"]] = relationship(order_by="Schedule.id", **_children)
    discount_links: Mapped[List["PackageDiscount"]] = relationship(**_children)

    __table_args__ = (Index("ix_packages_program_id", "program_id"),)


class Schedule(TimestampMixin, Base):
    __tablename__ = "schedules"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    package_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("packages.id", ondelete="CASCADE"), nullable=False
    )
    day: Mapped[str] = mapped_column(String(255), nullable=False)
    from_time: Mapped[time] = mapped_column("from", Time, nullable=False)
    to_time: Mapped[time] = mapped_column("to", Time, nullable=False)
    memo: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        CheckConstraint(_in_check("day", SCHEDULE_DAYS), name="schedules_day_check"),
    )


class Discount(TimestampMixin, Base):
    __tablename__ = "discounts"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    program_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("programs.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[DiscountType] = mapped_column(_enum(DiscountType, "discount_type"), nullable=False)
    value: Mapped[float] = mapped_column(Float, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    package_links: Mapped[List["PackageDiscount"]] = relationship(**_children)


class PackageDiscount(TimestampMixin, Base):
    __tablename__ = "package_discount"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    package_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("packages.id", ondelete="CASCADE"), nullable=False
    )
    discount_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("discounts.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("package_id", "discount_id", name="package_discount_unique"),
    )


# ── Coaches ───────────────────────────────────────────────────

class Coach(TimestampMixin, Base):
    __tablename__ = "coaches"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    academic_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("academics.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[Optional[str]] = mapped_column(String(255))
    image: Mapped[Optional[str]] = mapped_column(String(255))
    bio: Mapped[Optional[str]] = mapped_column(Text)
    gender: Mapped[Optional[str]] = mapped_column(String(255))
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date)
    private_session_percentage: Mapped[Optional[str]] = mapped_column(String(255))   # "25%"

    sport_links: Mapped[List["CoachSport"]] = relationship(**_children)
    language_links: Mapped[List["CoachSpokenLanguage"]] = relationship(**_children)
    package_links: Mapped[List["CoachPackage"]] = relationship(**_children)
    program_links: Mapped[List["CoachProgram"]] = relationship(**_children)

    __table_args__ = (Index("ix_coaches_academic_id", "academic_id"),)


class CoachSport(TimestampMixin, Base):
    __tablename__ = "coach_sport"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    coach_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("coaches.id", ondelete="CASCADE"), nullable=False
    )
    sport_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("sports.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("coach_id", "sport_id", name="coach_sport_coach_id_sport_id_unique"),
    )


class CoachSpokenLanguage(TimestampMixin, Base):
    __tablename__ = "coach_spoken_language"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    coach_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("coaches.id", ondelete="CASCADE"), nullable=False
    )
    spoken_language_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("spoken_languages.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            "coach_id", "spoken_language_id",
            name="coach_spoken_language_coach_id_spoken_language_id_unique",
        ),
    )


class CoachPackage(TimestampMixin, Base):
    __tablename__ = "coach_package"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    coach_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("coaches.id", ondelete="CASCADE"), nullable=False
    )
    package_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("packages.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("coach_id", "package_id", name="coach_package_coach_id_package_id_unique"),
    )


class CoachProgram(TimestampMixin, Base):
    __tablename__ = "coach_program"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    coach_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("coaches.id", ondelete="CASCADE"), nullable=False
    )
    program_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("programs.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("coach_id", "program_id", name="coach_program_coach_id_program_id_unique"),
    )


# ── Bookings ──────────────────────────────────────────────────

class Booking(TimestampMixin, Base):
    """
    A profile's reservation of a package.
    assessment_deduction_id points at the earlier assessment booking whose
    fee was credited against this one; each assessment is reusable once.
    """
    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    status: Mapped[str] = mapped_column(String(255), default="pending", nullable=False)
    coach_id: Mapped[Optional[int]] = mapped_column(
        BigId, ForeignKey("coaches.id", ondelete="CASCADE"), nullable=True
    )
    profile_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    package_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("packages.id", ondelete="CASCADE"), nullable=False
    )
    price: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    package_price: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    academy_policy: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    roap_policy: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    entry_fees_paid: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    assessment_deduction_id: Mapped[Optional[int]] = mapped_column(
        BigId, ForeignKey("bookings.id", ondelete="SET NULL"), nullable=True
    )

    sessions: Mapped[List["BookingSession"]] = relationship(
        order_by="BookingSession.date", **_children
    )

    __table_args__ = (
        CheckConstraint(_in_check("status", BOOKING_STATUSES), name="bookings_status_check"),
        UniqueConstraint("assessment_deduction_id", name="bookings_assessment_deduction_id_unique"),
        Index("ix_bookings_profile_id", "profile_id"),
        Index("ix_bookings_package_id", "package_id"),
    )

    @validates("assessment_deduction_id")
    def _validate_assessment_deduction(self, key, value):
        if value is not None and self.id is not None and value >= self.id:
            raise ValueError("assessment_deduction_id must reference an earlier booking")
        return value


class BookingSession(TimestampMixin, Base):
    __tablename__ = "booking_sessions"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    booking_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    from_time: Mapped[str] = mapped_column("from", String(255), nullable=False)   # "HH:MM"
    to_time: Mapped[str] = mapped_column("to", String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(255), default="pending", nullable=False)

    __table_args__ = (
        CheckConstraint(
            _in_check("status", SESSION_STATUSES), name="booking_sessions_status_check"
        ),
        Index("ix_booking_sessions_booking_id", "booking_id"),
        Index("ix_booking_sessions_date", "date"),
    )


class EntryFeesHistory(TimestampMixin, Base):
    """One row per (profile, sport, program) whose entry fee has been charged."""
    __tablename__ = "entry_fees_history"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    profile_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    sport_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("sports.id", ondelete="CASCADE"), nullable=False
    )
    program_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("programs.id", ondelete="CASCADE"), nullable=False
    )
    paid_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        Index("ix_entry_fees_history_lookup", "profile_id", "sport_id", "program_id"),
    )


# ── Blocks ────────────────────────────────────────────────────

class Block(TimestampMixin, Base):
    """
    Time-boxed closure of an academy. Each dimension is either `all` or
    `specific`, in which case the matching junction rows list the ids.
    """
    __tablename__ = "blocks"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    academic_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("academics.id", ondelete="CASCADE"), nullable=False
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    branch_scope: Mapped[BlockScope] = mapped_column(
        _enum(BlockScope, "block_scope"), default=BlockScope.ALL, nullable=False
    )
    sport_scope: Mapped[BlockScope] = mapped_column(
        _enum(BlockScope, "block_scope"), default=BlockScope.ALL, nullable=False
    )
    package_scope: Mapped[BlockScope] = mapped_column(
        _enum(BlockScope, "block_scope"), default=BlockScope.ALL, nullable=False
    )
    program_scope: Mapped[BlockScope] = mapped_column(
        _enum(BlockScope, "block_scope"), default=BlockScope.ALL, nullable=False
    )
    note: Mapped[Optional[str]] = mapped_column(String(255))

    branch_links: Mapped[List["BlockBranch"]] = relationship(**_children)
    sport_links: Mapped[List["BlockSport"]] = relationship(**_children)
    package_links: Mapped[List["BlockPackage"]] = relationship(**_children)
    program_links: Mapped[List["BlockProgram"]] = relationship(**_children)

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="blocks_time_range_check"),
        Index("ix_blocks_academic_date", "academic_id", "date"),
    )


class BlockBranch(TimestampMixin, Base):
    __tablename__ = "block_branches"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    block_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("blocks.id", ondelete="CASCADE"), nullable=False
    )
    branch_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("branches.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("block_id", "branch_id", name="block_branches_block_id_branch_id_key"),
    )


class BlockSport(TimestampMixin, Base):
    __tablename__ = "block_sports"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    block_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("blocks.id", ondelete="CASCADE"), nullable=False
    )
    sport_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("sports.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("block_id", "sport_id", name="block_sports_block_id_sport_id_key"),
    )


class BlockPackage(TimestampMixin, Base):
    __tablename__ = "block_packages"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    block_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("blocks.id", ondelete="CASCADE"), nullable=False
    )
    package_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("packages.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("block_id", "package_id", name="block_packages_block_id_package_id_key"),
    )


class BlockProgram(TimestampMixin, Base):
    __tablename__ = "block_programs"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    block_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("blocks.id", ondelete="CASCADE"), nullable=False
    )
    program_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("programs.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("block_id", "program_id", name="block_programs_block_id_program_id_key"),
    )


# ── Pages & Promo codes ───────────────────────────────────────

class Page(TimestampMixin, Base):
    """Admin-managed content page; display order is free text."""
    __tablename__ = "pages"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    order_by: Mapped[str] = mapped_column(String(255), nullable=False)
    image: Mapped[Optional[str]] = mapped_column(String(255))

    translations: Mapped[List["PageTranslation"]] = relationship(**_children)


class PageTranslation(TimestampMixin, Base):
    __tablename__ = "page_translations"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    page_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("pages.id", ondelete="CASCADE"), nullable=False
    )
    locale: Mapped[str] = mapped_column(String(10), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    __table_args__ = (
        UniqueConstraint("page_id", "locale", name="page_translations_page_id_locale_unique"),
    )


class PromoCode(TimestampMixin, Base):
    """
    Booking promo code. Owned by one academy, or general (academic_id NULL)
    when created by an admin. Codes are unique per owner.
    """
    __tablename__ = "promo_codes"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    discount_type: Mapped[DiscountType] = mapped_column(
        _enum(DiscountType, "discount_type"), nullable=False
    )
    discount_value: Mapped[float] = mapped_column(Float, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    can_be_used: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    academic_id: Mapped[Optional[int]] = mapped_column(
        BigId, ForeignKey("academics.id", ondelete="CASCADE"), nullable=True
    )

    __table_args__ = (
        UniqueConstraint("code", "academic_id", name="promo_codes_code_academic_unique"),
        CheckConstraint("can_be_used >= 1", name="promo_codes_can_be_used_check"),
    )


# ── Wishlist, Notifications, Audit ────────────────────────────

class Wishlist(TimestampMixin, Base):
    __tablename__ = "wishlist"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    academic_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("academics.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("academic_id", "user_id", name="wishlist_academic_id_user_id_unique"),
    )


class Notification(TimestampMixin, Base):
    """In-app notification addressed to a user, optionally about a profile or academy."""
    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[Optional[int]] = mapped_column(
        BigId, ForeignKey("users.id", ondelete="CASCADE"), nullable=True
    )
    profile_id: Mapped[Optional[int]] = mapped_column(
        BigId, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=True
    )
    academic_id: Mapped[Optional[int]] = mapped_column(
        BigId, ForeignKey("academics.id", ondelete="CASCADE"), nullable=True
    )
    read_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        Index("notifications_user_id_index", "user_id"),
        Index("notifications_profile_id_index", "profile_id"),
        Index("notifications_academic_id_index", "academic_id"),
    )


class AdminAuditLog(Base):
    """Immutable log of all admin actions."""
    __tablename__ = "admin_audit_logs"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    admin_id: Mapped[Optional[int]] = mapped_column(
        BigId, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    action: Mapped[str] = mapped_column(String(100), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    payload: Mapped[Optional[dict]] = mapped_column(JSONList, nullable=True)
    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )

    __table_args__ = (
        Index("ix_admin_audit_admin_id", "admin_id"),
        Index("ix_admin_audit_created_at", "created_at"),
    )
