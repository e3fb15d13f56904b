"""
services/wishlist/router.py
Academies saved by the current user.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_db
from shared.middleware.auth import get_current_user
from shared.models.models import Academy, AcademyStatus, User, Wishlist
from shared.schemas.schemas import MessageResponse
from shared.utils.translations import display_name

router = APIRouter(prefix="/wishlist", tags=["Wishlist"])


@router.get("")
async def get_wishlist(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Wishlist, Academy)
        .join(Academy, Academy.id == Wishlist.academic_id)
        .where(Wishlist.user_id == current_user.id)
        .order_by(Wishlist.created_at.desc())
    )
    return [
        {
            "academy_id": academy.id,
            "slug": academy.slug,
            "name": display_name(academy.translations),
            "image": academy.image,
            "saved_at": row.created_at.isoformat(),
        }
        for row, academy in result.all()
    ]


@router.post("/{academy_id}", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def add_to_wishlist(
    academy_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    academy = await db.get(Academy, academy_id)
    if not academy or academy.status != AcademyStatus.ACCEPTED:
        raise HTTPException(status_code=404, detail="Academy not found")

    existing = await db.execute(
        select(Wishlist.id).where(
            Wishlist.academic_id == academy_id, Wishlist.user_id == current_user.id
        )
    )
    if existing.first():
        raise HTTPException(status_code=409, detail="Academy already in wishlist")

    db.add(Wishlist(academic_id=academy_id, user_id=current_user.id))
    try:
        await db.commit()
    except IntegrityError:
        # concurrent add of the same pair
        await db.rollback()
        raise HTTPException(status_code=409, detail="Academy already in wishlist")
    return MessageResponse(message="Academy added to wishlist")


@router.delete("/{academy_id}", response_model=MessageResponse)
async def remove_from_wishlist(
    academy_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        delete(Wishlist).where(
            Wishlist.academic_id == academy_id, Wishlist.user_id == current_user.id
        )
    )
    if not result.rowcount:
        raise HTTPException(status_code=404, detail="Academy not in wishlist")
    await db.commit()
    return MessageResponse(message="Academy removed from wishlist")
