"""
tasks/notification_tasks.py
Celery tasks for academy status emails and session reminders.

All tasks are idempotent, safe to run twice.

Usage from a route:
    from tasks.notification_tasks import send_academy_status_email
    send_academy_status_email.delay(academy_id=academy.id)
"""

import logging
from collections import OrderedDict
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import select

from config.settings import settings
from shared.models.models import (
    Academy,
    AcademyStatus,
    Booking,
    BookingSession,
    Notification,
    Package,
    Profile,
    Program,
    User,
)
from shared.utils.translations import display_name
from tasks.base import DatabaseTask
from tasks.celery_app import celery_app

logger = logging.getLogger(__name__)

REMINDABLE_STATUSES = ("pending", "accepted", "upcoming")


# ── Email delivery ─────────────────────────────────────────────────────────────

def _send_email(to_email: str, subject: str, html_body: str) -> bool:
    """Send transactional email via Resend. Returns True on success."""
    try:
        import resend
        resend.api_key = settings.RESEND_API_KEY
        resend.Emails.send({
            "from": f"{settings.EMAIL_FROM_NAME} <{settings.EMAIL_FROM}>",
            "to": [to_email],
            "subject": subject,
            "html": html_body,
        })
        return True
    except Exception as e:
        logger.warning(f"Email send failed: {e}")
        return False


def academy_status_message(status: AcademyStatus, academy_name: str) -> Optional[tuple[str, str]]:
    """(subject, html) for an accepted or rejected academy; None for other states."""
    if status == AcademyStatus.ACCEPTED:
        return (
            f"{academy_name} has been accepted",
            f"<p>Your academy <strong>{academy_name}</strong> has been accepted.</p>"
            f"<p>Finish onboarding at <a href=\"{settings.FRONTEND_URL}/academy\">"
            f"{settings.FRONTEND_URL}/academy</a>.</p>",
        )
    if status == AcademyStatus.REJECTED:
        return (
            f"{academy_name} was not approved",
            f"<p>Your academy <strong>{academy_name}</strong> was not approved.</p>"
            f"<p>Reply to this email if you think this is a mistake.</p>",
        )
    return None


@celery_app.task(bind=True, base=DatabaseTask, max_retries=3, default_retry_delay=60)
def send_academy_status_email(self, academy_id: int):
    """Tell the academy owner their academy was accepted or rejected."""
    if not settings.RESEND_API_KEY:
        logger.info(f"RESEND_API_KEY not set, skipping status email for academy {academy_id}")
        return False

    db = self.get_session()
    try:
        academy = db.get(Academy, academy_id)
        if not academy:
            logger.error(f"send_academy_status_email: academy {academy_id} not found")
            return False
        owner = db.get(User, academy.user_id) if academy.user_id else None
        message = academy_status_message(academy.status, display_name(academy.translations) or academy.slug)
    finally:
        db.close()

    if not owner or not owner.email or not message:
        return False

    subject, html = message
    if not _send_email(owner.email, subject, html):
        raise self.retry(countdown=60 * (2 ** self.request.retries))
    logger.info(f"Status email sent to {owner.email} for academy {academy_id}")
    return True


# ── Periodic / Scheduled Tasks ────────────────────────────────────────────────

def reminder_title(day: date) -> str:
    return f"Session reminder for {day.strftime('%d %B %Y')}"


@celery_app.task(bind=True, base=DatabaseTask)
def send_session_reminders(self):
    """
    Beat task: runs every hour.
    One in-app notification per booking with a session SESSION_REMINDER_HOURS
    ahead, addressed to the user who owns the booked profile. A notification
    with the same title for the same profile is never written twice.
    """
    target = (datetime.now(timezone.utc) + timedelta(hours=settings.SESSION_REMINDER_HOURS)).date()
    title = reminder_title(target)

    db = self.get_session()
    try:
        rows = db.execute(
            select(BookingSession, Booking, Profile, Program)
            .join(Booking, Booking.id == BookingSession.booking_id)
            .join(Profile, Profile.id == Booking.profile_id)
            .join(Package, Package.id == Booking.package_id)
            .join(Program, Program.id == Package.program_id)
            .where(
                BookingSession.date == target,
                BookingSession.status.in_(REMINDABLE_STATUSES),
                Booking.status == "success",
            )
            .order_by(Booking.id, BookingSession.from_time)
        ).all()

        # earliest session of each booking
        first_sessions = OrderedDict()
        for session, booking, profile, program in rows:
            first_sessions.setdefault(booking.id, (session, profile, program))

        created = 0
        for session, profile, program in first_sessions.values():
            already_sent = db.execute(
                select(Notification.id).where(
                    Notification.title == title,
                    Notification.profile_id == profile.id,
                )
            ).first()
            if already_sent:
                continue
            db.add(Notification(
                title=title,
                description=(
                    f"{profile.name} has a {program.name or 'program'} session "
                    f"tomorrow from {session.from_time} to {session.to_time}."
                ),
                user_id=profile.user_id,
                profile_id=profile.id,
                academic_id=program.academic_id,
            ))
            created += 1

        db.commit()
        logger.info(f"Sent {created} session reminders for {target}")
        return created
    except Exception as e:
        db.rollback()
        logger.exception(f"send_session_reminders failed: {e}")
        raise
    finally:
        db.close()
