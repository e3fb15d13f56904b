"""
services/admin/router.py
Admin-only endpoints: academy moderation (accept / reject / hide / delete),
impersonation, and the immutable audit log.

ALL mutations are logged to AdminAuditLog before returning.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_db
from config.settings import settings
from services.auth.router import issue_token
from shared.middleware.auth import require_admin
from shared.models.models import (
    Academy,
    AcademyStatus,
    AcademyTranslation,
    AdminAuditLog,
    Notification,
    User,
)
from shared.schemas.schemas import IdsRequest, MessageResponse, TokenResponse
from shared.utils.pagination import paginate, page_payload
from shared.utils.translations import display_name
from tasks.notification_tasks import send_academy_status_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


# ── Helpers ────────────────────────────────────────────────────────────────────

async def _log(
    db: AsyncSession,
    admin: User,
    action: str,
    entity_type: str,
    entity_id: Optional[str],
    payload: dict | None = None,
    request: Request | None = None,
):
    """Append an immutable record to AdminAuditLog."""
    log = AdminAuditLog(
        admin_id=admin.id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        payload=payload or {},
        ip_address=request.client.host if request and request.client else None,
    )
    db.add(log)


async def _get_academy_or_404(db: AsyncSession, academy_id: int) -> Academy:
    academy = await db.get(Academy, academy_id)
    if not academy:
        raise HTTPException(status_code=404, detail="Academy not found")
    return academy


def _academy_row(academy: Academy, owner: Optional[User]) -> dict:
    return {
        "id": academy.id,
        "slug": academy.slug,
        "name": display_name(academy.translations),
        "status": academy.status.value,
        "onboarded": academy.onboarded,
        "hidden": academy.hidden,
        "entry_fees": academy.entry_fees,
        "owner_email": owner.email if owner else None,
        "owner_name": owner.name if owner else None,
        "created_at": academy.created_at.isoformat(),
    }


async def _set_status(
    db: AsyncSession,
    academy: Academy,
    new_status: AcademyStatus,
    admin: User,
    request: Optional[Request],
) -> None:
    if academy.status == new_status:
        raise HTTPException(status_code=409, detail=f"Academy is already {new_status.value}")

    academy.status = new_status
    if new_status == AcademyStatus.ACCEPTED:
        academy.onboarded = False

    if academy.user_id:
        db.add(Notification(
            user_id=academy.user_id,
            academic_id=academy.id,
            title=f"Academy {new_status.value}",
            description=(
                "Your academy has been accepted. Complete onboarding to start taking bookings."
                if new_status == AcademyStatus.ACCEPTED
                else "Your academy application was not approved."
            ),
        ))

    await _log(db, admin, f"{new_status.value.upper()}_ACADEMY", "Academy", str(academy.id), {}, request)
    await db.commit()
    send_academy_status_email.delay(academy_id=academy.id)
    logger.info(f"Academy {academy.id} {new_status.value} by admin {admin.id}")


# ── Academy Moderation ─────────────────────────────────────────────────────────

@router.get("/academies")
async def list_academies(
    status_filter: Optional[AcademyStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None, min_length=1, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.PAGE_SIZE_DEFAULT, ge=1, le=100),
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """All academies, newest first, filterable by status and name."""
    query = select(Academy).order_by(Academy.created_at.desc(), Academy.id.desc())
    if status_filter:
        query = query.where(Academy.status == status_filter)
    if search:
        query = query.where(Academy.translations.any(AcademyTranslation.name.ilike(f"%{search}%")))

    academies, total = await paginate(db, query, page, page_size)

    owner_ids = {a.user_id for a in academies if a.user_id}
    owners = {}
    if owner_ids:
        result = await db.execute(select(User).where(User.id.in_(owner_ids)))
        owners = {u.id: u for u in result.scalars()}

    return page_payload(
        [_academy_row(a, owners.get(a.user_id)) for a in academies], total, page, page_size
    )


@router.post("/academies/{academy_id}/accept", response_model=MessageResponse)
async def accept_academy(
    academy_id: int,
    request: Request,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Accept an academy. It must then complete onboarding on its own."""
    academy = await _get_academy_or_404(db, academy_id)
    await _set_status(db, academy, AcademyStatus.ACCEPTED, current_user, request)
    return MessageResponse(message="Academy accepted")


@router.post("/academies/{academy_id}/reject", response_model=MessageResponse)
async def reject_academy(
    academy_id: int,
    request: Request,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    academy = await _get_academy_or_404(db, academy_id)
    await _set_status(db, academy, AcademyStatus.REJECTED, current_user, request)
    return MessageResponse(message="Academy rejected")


@router.post("/academies/{academy_id}/toggle-hidden")
async def toggle_hidden(
    academy_id: int,
    request: Request,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Hide an academy from public listings, or show it again."""
    academy = await _get_academy_or_404(db, academy_id)
    academy.hidden = not academy.hidden
    await _log(db, current_user, "TOGGLE_HIDDEN_ACADEMY", "Academy", str(academy.id),
               {"hidden": academy.hidden}, request)
    await db.commit()
    return {"id": academy.id, "hidden": academy.hidden}


@router.delete("/academies", response_model=MessageResponse)
async def delete_academies(
    data: IdsRequest,
    request: Request,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Bulk delete academies. Everything they own goes with them through
    the foreign-key cascades; the owning user accounts are kept.
    """
    result = await db.execute(delete(Academy).where(Academy.id.in_(data.ids)))
    await _log(db, current_user, "DELETE_ACADEMIES", "Academy", None, {"ids": data.ids}, request)
    await db.commit()
    return MessageResponse(message=f"Deleted {result.rowcount} academies")


# ── Impersonation ──────────────────────────────────────────────────────────────

@router.post("/academies/{academy_id}/impersonate", response_model=TokenResponse)
async def start_impersonation(
    academy_id: int,
    request: Request,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Issue an admin token that acts on the given academy's resources."""
    academy = await _get_academy_or_404(db, academy_id)
    await _log(db, current_user, "IMPERSONATE_ACADEMY", "Academy", str(academy.id), {}, request)
    await db.commit()
    return issue_token(current_user, impersonated_academy_id=academy.id)


@router.post("/impersonation/stop", response_model=TokenResponse)
async def stop_impersonation(
    request: Request,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await _log(db, current_user, "STOP_IMPERSONATION", "User", str(current_user.id), {}, request)
    await db.commit()
    return issue_token(current_user)


# ── Audit Log ─────────────────────────────────────────────────────────────────

@router.get("/audit-logs")
async def get_audit_logs(
    action: str = Query(None, description="Filter by action type e.g. ACCEPTED_ACADEMY"),
    entity_type: str = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Immutable admin audit log. Append-only, never editable."""
    query = (
        select(AdminAuditLog, User)
        .outerjoin(User, User.id == AdminAuditLog.admin_id)
        .order_by(AdminAuditLog.created_at.desc(), AdminAuditLog.id.desc())
    )
    count_query = select(func.count(AdminAuditLog.id))
    if action:
        query = query.where(AdminAuditLog.action == action.upper())
        count_query = count_query.where(AdminAuditLog.action == action.upper())
    if entity_type:
        query = query.where(AdminAuditLog.entity_type == entity_type)
        count_query = count_query.where(AdminAuditLog.entity_type == entity_type)

    total = await db.scalar(count_query) or 0
    result = await db.execute(query.offset((page - 1) * page_size).limit(page_size))
    rows = result.all()

    return page_payload(
        [
            {
                "id": row[0].id,
                "admin_name": row[1].name if row[1] else None,
                "admin_email": row[1].email if row[1] else None,
                "action": row[0].action,
                "entity_type": row[0].entity_type,
                "entity_id": row[0].entity_id,
                "payload": row[0].payload,
                "ip_address": row[0].ip_address,
                "created_at": row[0].created_at.isoformat(),
            }
            for row in rows
        ],
        total,
        page,
        page_size,
    )
