"""
services/auth/router.py
Credential authentication for academies, athletes and admins.
Implements: Sign-up → Login → JWT issue → Logout (deny-list) → Me
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_db
from config.redis_client import RedisCache, get_redis
from config.settings import settings
from shared.middleware.auth import get_current_user, security
from shared.models.models import Academy, AcademyStatus, AcademyTranslation, User, UserRole
from shared.schemas.schemas import (
    LoginRequest,
    MessageResponse,
    SignUpRequest,
    TokenResponse,
    UserResponse,
)
from shared.utils.errors import field_error
from shared.utils.security import (
    create_access_token,
    get_token_remaining_ttl,
    hash_password,
    slugify,
    verify_access_token,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


# ── Helper ────────────────────────────────────────────────────

def issue_token(user: User, impersonated_academy_id: Optional[int] = None) -> TokenResponse:
    """Sign an access token for `user`, optionally acting as an academy."""
    extra = {"impersonated_academy_id": impersonated_academy_id} if impersonated_academy_id else None
    access_token, _ = create_access_token(
        user_id=str(user.id),
        role=user.role.value,
        email=user.email,
        extra=extra,
    )
    return TokenResponse(
        access_token=access_token,
        expires_in=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=UserResponse.model_validate(user),
        impersonated_academy_id=impersonated_academy_id,
    )


# ── Endpoints ─────────────────────────────────────────────────

@router.post(
    "/signup",
    response_model=UserResponse,
    status_code=201,
    summary="Register an academy and its owner account",
)
async def sign_up(payload: SignUpRequest, db: AsyncSession = Depends(get_db)):
    """
    Creates the owner (role academic), the academy (status pending) and its
    English translation. The academy cannot log in until an admin accepts it.
    """
    existing = await db.execute(select(User.id).where(User.email == payload.email))
    if existing.first():
        raise field_error("Email already exists", "email", status.HTTP_409_CONFLICT)

    slug = slugify(payload.academy_name)
    taken = await db.execute(select(Academy.id).where(Academy.slug == slug))
    if taken.first():
        raise field_error("Academy name already exists", "academy_name", status.HTTP_409_CONFLICT)

    user = User(
        name=payload.full_name,
        email=payload.email,
        password=hash_password(payload.password),
        role=UserRole.ACADEMIC,
    )
    db.add(user)
    await db.flush()

    academy = Academy(
        slug=slug,
        user_id=user.id,
        status=AcademyStatus.PENDING,
        entry_fees=payload.entry_fees,
        translations=[
            AcademyTranslation(
                locale=settings.DEFAULT_LOCALE,
                name=payload.academy_name,
                description=payload.academy_description,
            )
        ],
        sport_links=[],
    )
    db.add(academy)
    await db.commit()

    logger.info(f"Academy '{slug}' signed up by user {user.id}")
    return UserResponse.model_validate(user)


@router.post("/login", response_model=TokenResponse, summary="Email and password login")
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(User).where(User.email == payload.email))
    user = result.scalar_one_or_none()

    if not user or not user.password or not verify_password(payload.password, user.password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is inactive")

    if user.role == UserRole.ACADEMIC:
        result = await db.execute(select(Academy.status).where(Academy.user_id == user.id))
        academy_status = result.scalar_one_or_none()
        if academy_status in (AcademyStatus.PENDING, AcademyStatus.REJECTED):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=academy_status.value)

    return issue_token(user)


@router.post("/logout", response_model=MessageResponse, summary="Logout user")
async def logout(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    current_user: User = Depends(get_current_user),
    redis=Depends(get_redis),
):
    """Adds the access token's JTI to the Redis deny-list until it expires."""
    payload = verify_access_token(credentials.credentials)
    ttl = get_token_remaining_ttl(payload)
    if ttl > 0:
        await RedisCache(redis).revoke_token(payload["jti"], ttl)
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=UserResponse, summary="Get current user")
async def get_me(current_user: User = Depends(get_current_user)):
    """Returns the authenticated user's account."""
    return UserResponse.model_validate(current_user)
