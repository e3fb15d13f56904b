"""
tasks/location_tasks.py
Nightly refresh of Google ratings for branches linked to a place.
"""

import logging

from sqlalchemy import select

from shared.models.models import Branch
from shared.utils.places import fetch_place_information_sync
from shared.utils.translations import display_name
from tasks.base import DatabaseTask
from tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, base=DatabaseTask)
def refresh_branch_ratings(self):
    """
    Beat task: runs nightly.
    Re-reads rating and review count of every branch that has a place id.
    Branches whose lookup fails keep their previous values.
    """
    db = self.get_session()
    try:
        branches = db.execute(
            select(Branch).where(Branch.place_id.is_not(None)).order_by(Branch.id)
        ).scalars().all()

        updated = 0
        for branch in branches:
            info = fetch_place_information_sync(
                branch.name_in_google_map or display_name(branch.translations)
            )
            if not info:
                continue
            branch.rate = info.rating
            branch.reviews = info.review_count
            updated += 1

        db.commit()
        logger.info(f"Refreshed ratings of {updated}/{len(branches)} branches")
        return updated
    except Exception as e:
        db.rollback()
        logger.exception(f"refresh_branch_ratings failed: {e}")
        raise
    finally:
        db.close()
