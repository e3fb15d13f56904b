"""
shared/schemas/schemas.py
All Pydantic v2 request/response schemas for the platform.
"""

import uuid
from datetime import date, datetime, time
from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator


# ── Base ──────────────────────────────────────────────────────

class BaseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


class PaginatedResponse(BaseSchema):
    items: List[Any]
    total: int
    page: int
    page_size: int
    total_pages: int


class IdsRequest(BaseSchema):
    ids: List[int] = Field(..., min_length=1)


# ── Auth ──────────────────────────────────────────────────────

class UserResponse(BaseSchema):
    id: int
    name: Optional[str]
    email: Optional[str]
    phone_number: Optional[str]
    role: str
    is_athletic: bool
    created_at: datetime


class TokenResponse(BaseSchema):
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds
    user: UserResponse
    impersonated_academy_id: Optional[int] = None


class LoginRequest(BaseSchema):
    email: EmailStr
    password: str = Field(..., min_length=1)


class SignUpRequest(BaseSchema):
    full_name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    academy_name: str = Field(..., min_length=2, max_length=255)
    academy_description: Optional[str] = Field(None, max_length=5000)
    entry_fees: float = Field(0, ge=0)

    @field_validator("academy_name")
    @classmethod
    def academy_name_has_letters(cls, v: str) -> str:
        if not any(c.isalnum() for c in v):
            raise ValueError("Academy name must contain letters or digits")
        return v.strip()


# ── Academies ─────────────────────────────────────────────────

class AcademyTranslationInput(BaseSchema):
    locale: str = Field(..., min_length=2, max_length=10)
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None


class AcademyUpdateRequest(BaseSchema):
    translations: Optional[List[AcademyTranslationInput]] = None
    entry_fees: Optional[float] = Field(None, ge=0)
    policy: Optional[str] = None
    extra: Optional[str] = None
    image: Optional[str] = Field(None, max_length=255)


class AcademyResponse(BaseSchema):
    id: int
    slug: str
    status: str
    onboarded: bool
    hidden: bool
    entry_fees: float
    image: Optional[str]
    policy: Optional[str]
    extra: Optional[str]
    user_id: Optional[int]
    name: Optional[str] = None
    description: Optional[str] = None
    translations: List[AcademyTranslationInput] = []
    sport_ids: List[int] = []


class SportIdsRequest(BaseSchema):
    sport_ids: List[int] = Field(..., min_length=1)


# ── Catalogs & Geography ──────────────────────────────────────

class TranslationResponse(BaseSchema):
    id: int
    locale: str
    name: str


class TranslationCreateRequest(BaseSchema):
    name: str = Field(..., min_length=1, max_length=255)
    locale: str = Field(..., min_length=2, max_length=10)


class TranslationUpdateRequest(TranslationCreateRequest):
    parent_id: Optional[int] = None  # reassigns a state's country / a city's state


class GeoCreateRequest(TranslationCreateRequest):
    parent_id: Optional[int] = None


class SportCreateRequest(BaseSchema):
    name: str = Field(..., min_length=1, max_length=255)
    image: Optional[str] = Field(None, max_length=255)
    locale: str = Field("en", min_length=2, max_length=10)


class SportUpdateRequest(BaseSchema):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    image: Optional[str] = Field(None, max_length=255)


class SportResponse(BaseSchema):
    id: int
    slug: str
    image: Optional[str]
    name: Optional[str]
    translations: List[TranslationResponse] = []


class CatalogItemResponse(BaseSchema):
    id: int
    name: Optional[str]
    translations: List[TranslationResponse] = []


# ── Branches ──────────────────────────────────────────────────

class BranchCreateRequest(BaseSchema):
    name: str = Field(..., min_length=1, max_length=255)
    name_in_google_map: Optional[str] = Field(None, max_length=255)
    url: Optional[str] = Field(None, max_length=255)
    is_default: bool = False
    sports: List[int] = []
    facilities: List[int] = []
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class BranchUpdateRequest(BaseSchema):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    name_in_google_map: Optional[str] = Field(None, max_length=255)
    url: Optional[str] = Field(None, max_length=255)
    is_default: Optional[bool] = None
    sports: Optional[List[int]] = None
    facilities: Optional[List[int]] = None


class BranchResponse(BaseSchema):
    id: int
    slug: str
    name: Optional[str]
    name_in_google_map: Optional[str]
    url: Optional[str]
    is_default: bool
    latitude: Optional[str]
    longitude: Optional[str]
    rate: Optional[float]
    reviews: Optional[int]
    place_id: Optional[str]
    sports: List[int] = []
    facilities: List[int] = []


class ReviewResponse(BaseSchema):
    id: int
    author_name: str
    author_url: Optional[str]
    profile_photo_url: Optional[str]
    rating: int
    relative_time_description: str
    text: str
    language: str
    time: int


# ── Coaches ───────────────────────────────────────────────────

class CoachCreateRequest(BaseSchema):
    name: str = Field(..., min_length=1, max_length=255)
    title: Optional[str] = Field(None, max_length=255)
    image: Optional[str] = Field(None, max_length=255)
    bio: Optional[str] = None
    gender: Optional[str] = Field(None, max_length=255)
    date_of_birth: Optional[date] = None
    private_session_percentage: Optional[int] = Field(None, ge=0, le=100)
    sports: List[int] = []
    languages: List[int] = []
    packages: List[int] = []
    programs: List[int] = []


class CoachUpdateRequest(BaseSchema):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    title: Optional[str] = Field(None, max_length=255)
    image: Optional[str] = Field(None, max_length=255)
    bio: Optional[str] = None
    gender: Optional[str] = Field(None, max_length=255)
    date_of_birth: Optional[date] = None
    private_session_percentage: Optional[int] = Field(None, ge=0, le=100)
    sports: Optional[List[int]] = None
    languages: Optional[List[int]] = None
    packages: Optional[List[int]] = None
    programs: Optional[List[int]] = None


class CoachResponse(BaseSchema):
    id: int
    name: str
    title: Optional[str]
    image: Optional[str]
    bio: Optional[str]
    gender: Optional[str]
    date_of_birth: Optional[date]
    private_session_percentage: Optional[str]
    sports: List[int] = []
    languages: List[int] = []
    packages: List[int] = []
    programs: List[int] = []


# ── Programs, Packages, Discounts ─────────────────────────────

class ScheduleInput(BaseSchema):
    day: Literal["sun", "mon", "tue", "wed", "thu", "fri", "sat"]
    from_time: time
    to_time: time
    memo: Optional[str] = None

    @model_validator(mode="after")
    def check_range(self):
        if self.from_time >= self.to_time:
            raise ValueError("Schedule end time must be after start time")
        return self


class ScheduleResponse(BaseSchema):
    id: int
    day: str
    from_time: time
    to_time: time
    memo: Optional[str]


class PackageInput(BaseSchema):
    name: str = Field(..., min_length=1, max_length=255)
    price: float = Field(..., ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    months: Optional[List[str]] = None         # ["January 2025", ...]
    session_duration: Optional[int] = Field(None, ge=1)
    capacity: int = Field(0, ge=0)
    memo: Optional[str] = None
    entry_fees: float = Field(0, ge=0)
    entry_fees_explanation: Optional[str] = None
    entry_fees_applied_until: Optional[List[str]] = None
    entry_fees_start_date: Optional[date] = None
    entry_fees_end_date: Optional[date] = None
    schedules: List[ScheduleInput] = []

    @field_validator("months", "entry_fees_applied_until")
    @classmethod
    def months_are_parseable(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return v
        for label in v:
            try:
                datetime.strptime(label, "%B %Y")
            except ValueError:
                raise ValueError(f"'{label}' is not a 'Month YYYY' label")
        return v

    @model_validator(mode="after")
    def check_dates(self):
        is_monthly = self.name.lower().startswith("monthly")
        if is_monthly:
            if not self.months:
                raise ValueError("Monthly packages need at least one month")
        elif not (self.start_date and self.end_date):
            raise ValueError("start_date and end_date are required")
        elif self.start_date > self.end_date:
            raise ValueError("end_date must not be before start_date")
        return self


class PackageResponse(BaseSchema):
    id: int
    program_id: int
    name: str
    price: float
    start_date: date
    end_date: date
    months: Optional[List[str]]
    session_per_week: int
    session_duration: Optional[int]
    capacity: int
    memo: Optional[str]
    entry_fees: float
    entry_fees_explanation: Optional[str]
    entry_fees_applied_until: Optional[List[str]]
    entry_fees_start_date: Optional[date]
    entry_fees_end_date: Optional[date]
    schedules: List[ScheduleResponse] = []


class DiscountInput(BaseSchema):
    type: Literal["fixed", "percentage"]
    value: float = Field(..., gt=0)
    start_date: date
    end_date: date
    package_ids: List[int] = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_discount(self):
        if self.type == "percentage" and self.value > 100:
            raise ValueError("Percentage discount cannot exceed 100")
        if self.start_date >= self.end_date:
            raise ValueError("end_date must be after start_date")
        return self


class DiscountResponse(BaseSchema):
    id: int
    program_id: int
    type: str
    value: float
    start_date: date
    end_date: date
    package_ids: List[int] = []


class ProgramCreateRequest(BaseSchema):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=255)
    type: Literal["TEAM", "PRIVATE"]
    branch_id: int
    sport_id: int
    number_of_seats: Optional[int] = Field(None, ge=0)
    gender: Optional[str] = None
    start_date_of_birth: Optional[date] = None
    end_date_of_birth: Optional[date] = None
    color: Optional[str] = Field(None, max_length=255)
    assessment_deducted_from_program: bool = False
    coaches: List[int] = []
    packages: List[PackageInput] = []
    discounts: List["ProgramDiscountInput"] = []


class ProgramDiscountInput(BaseSchema):
    """Discount declared with its program; packages are referenced by position."""
    type: Literal["fixed", "percentage"]
    value: float = Field(..., gt=0)
    start_date: date
    end_date: date
    package_indexes: List[int] = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_discount(self):
        if self.type == "percentage" and self.value > 100:
            raise ValueError("Percentage discount cannot exceed 100")
        if self.start_date >= self.end_date:
            raise ValueError("end_date must be after start_date")
        return self


ProgramCreateRequest.model_rebuild()


class ProgramUpdateRequest(BaseSchema):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=255)
    type: Optional[Literal["TEAM", "PRIVATE"]] = None
    branch_id: Optional[int] = None
    sport_id: Optional[int] = None
    number_of_seats: Optional[int] = Field(None, ge=0)
    gender: Optional[str] = None
    start_date_of_birth: Optional[date] = None
    end_date_of_birth: Optional[date] = None
    color: Optional[str] = Field(None, max_length=255)
    assessment_deducted_from_program: Optional[bool] = None
    coaches: Optional[List[int]] = None


class ProgramDuplicateRequest(BaseSchema):
    """Copy target; defaults to the source program's branch and name."""
    branch_id: Optional[int] = None
    name: Optional[str] = Field(None, min_length=1, max_length=255)


class ProgramResponse(BaseSchema):
    id: int
    name: Optional[str]
    description: Optional[str]
    type: Optional[str]
    branch_id: Optional[int]
    sport_id: Optional[int]
    number_of_seats: Optional[int]
    gender: Optional[str]
    start_date_of_birth: Optional[date]
    end_date_of_birth: Optional[date]
    color: Optional[str]
    assessment_deducted_from_program: bool
    coaches: List[int] = []
    packages: List[PackageResponse] = []
    discounts: List[DiscountResponse] = []


# ── Athletes ──────────────────────────────────────────────────

class AthleteCreateRequest(BaseSchema):
    name: str = Field(..., min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone_number: Optional[str] = Field(None, max_length=20)
    gender: Optional[str] = None
    birthday: Optional[date] = None
    image: Optional[str] = Field(None, max_length=255)
    country: Optional[str] = None
    nationality: Optional[str] = None
    city: Optional[str] = None
    street_address: Optional[str] = Field(None, max_length=512)
    type: Literal["primary", "fellow"] = "primary"
    certificate: Optional[str] = None
    sport_id: Optional[int] = None
    first_guardian_name: Optional[str] = None
    first_guardian_relationship: Optional[str] = None
    first_guardian_email: Optional[EmailStr] = None
    first_guardian_phone: Optional[str] = Field(None, max_length=20)
    second_guardian_name: Optional[str] = None
    second_guardian_relationship: Optional[str] = None
    second_guardian_email: Optional[EmailStr] = None
    second_guardian_phone: Optional[str] = Field(None, max_length=20)


class AthleteResponse(BaseSchema):
    id: int
    user_id: int
    profile_id: Optional[int]
    sport_id: Optional[int]
    type: str
    certificate: Optional[str]
    name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    birthday: Optional[date] = None
    gender: Optional[str] = None
    first_guardian_name: Optional[str]
    first_guardian_relationship: Optional[str]


class ProfileResponse(BaseSchema):
    id: int
    user_id: int
    name: str
    gender: Optional[str]
    birthday: Optional[date]
    relationship: str


# ── Blocks ────────────────────────────────────────────────────

# "all" or an explicit id list
ScopeInput = Union[Literal["all"], List[int]]


class BlockCreateRequest(BaseSchema):
    date: date
    start_time: time
    end_time: time
    branches: ScopeInput = "all"
    sports: ScopeInput = "all"
    packages: ScopeInput = "all"
    programs: ScopeInput = "all"
    note: Optional[str] = Field(None, max_length=255)


class BlockResponse(BaseSchema):
    id: int
    date: date
    start_time: time
    end_time: time
    note: Optional[str]
    branch_scope: str
    sport_scope: str
    package_scope: str
    program_scope: str
    branches: List[int] = []
    sports: List[int] = []
    packages: List[int] = []
    programs: List[int] = []


class SlotCheckRequest(BaseSchema):
    date: date
    from_time: time
    to_time: time
    branch_id: Optional[int] = None
    sport_id: Optional[int] = None
    package_id: Optional[int] = None
    program_id: Optional[int] = None
    coach_id: Optional[int] = None


# ── Bookings ──────────────────────────────────────────────────

class BookingRequest(BaseSchema):
    profile_id: int
    package_id: int
    coach_id: Optional[int] = None
    date: date
    time: str = Field(..., pattern=r"^\d{2}:\d{2} \d{2}:\d{2}$", description="'HH:MM HH:MM'")
    academy_policy: bool = False
    roap_policy: bool = False


class SessionQuote(BaseSchema):
    date: date
    from_time: str
    to_time: str
    status: str


class BookingQuoteResponse(BaseSchema):
    sessions: List[SessionQuote]
    total_price: float
    deductions: float
    discounted_price: float
    entry_fees: float
    assessment_deduction: float
    assessment_booking_id: Optional[int]
    final_price: float


class BookingSessionResponse(BaseSchema):
    id: int
    date: date
    from_time: str
    to_time: str
    status: str


class BookingResponse(BaseSchema):
    id: int
    status: str
    profile_id: int
    package_id: int
    coach_id: Optional[int]
    price: float
    package_price: float
    entry_fees_paid: bool
    assessment_deduction_id: Optional[int]
    academy_policy: bool
    roap_policy: bool
    created_at: datetime
    sessions: List[BookingSessionResponse] = []


class SessionStatusUpdate(BaseSchema):
    status: Literal["pending", "accepted", "upcoming", "rejected", "cancelled"]


# ── Notifications ─────────────────────────────────────────────

class NotificationResponse(BaseSchema):
    id: uuid.UUID
    title: str
    description: str
    profile_id: Optional[int]
    academic_id: Optional[int]
    read_at: Optional[datetime]
    created_at: datetime


# ── Pages ─────────────────────────────────────────────────────

class PageCreateRequest(BaseSchema):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    order_by: str = Field(..., min_length=1, max_length=255)
    image: Optional[str] = Field(None, max_length=255)


class PageUpdateRequest(BaseSchema):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = Field(None, min_length=1)
    order_by: Optional[str] = Field(None, min_length=1, max_length=255)
    image: Optional[str] = Field(None, max_length=255)


class PageTranslationResponse(BaseSchema):
    id: int
    locale: str
    title: str
    content: str


class PageResponse(BaseSchema):
    id: int
    title: Optional[str]
    content: Optional[str]
    order_by: str
    image: Optional[str]
    translations: List[PageTranslationResponse] = []


# ── Promo codes ───────────────────────────────────────────────

class PromoCodeInput(BaseSchema):
    code: str = Field(..., min_length=1, max_length=50)
    discount_type: Literal["fixed", "percentage"]
    discount_value: float = Field(..., gt=0)
    start_date: date
    end_date: date

    @field_validator("code")
    @classmethod
    def strip_code(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Code cannot be blank")
        return v

    @model_validator(mode="after")
    def check_value(self):
        if self.discount_type == "percentage" and self.discount_value > 100:
            raise ValueError("Percentage discount cannot exceed 100")
        return self


class AdminPromoCodeInput(PromoCodeInput):
    academic_id: Optional[int] = None
    can_be_used: int = Field(1, ge=1)


class PromoCodeResponse(BaseSchema):
    id: int
    code: str
    discount_type: str
    discount_value: float
    start_date: date
    end_date: date
    can_be_used: int
    academic_id: Optional[int]
    academy_name: Optional[str] = None


# ── Generic ───────────────────────────────────────────────────

class MessageResponse(BaseSchema):
    message: str
    success: bool = True
