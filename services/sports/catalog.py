"""
services/sports/catalog.py
Read-through Redis cache for the full sports catalog.

Key: sports:catalog:<locale>. Any sport mutation drops every locale.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config.redis_client import RedisCache
from config.settings import settings
from shared.models.models import Sport
from shared.utils.translations import display_name, translation_payload

logger = logging.getLogger(__name__)

CACHE_PREFIX = "sports:catalog"


def sport_payload(sport: Sport, locale: Optional[str] = None) -> dict:
    return {
        "id": sport.id,
        "slug": sport.slug,
        "image": sport.image,
        "name": display_name(sport.translations, locale),
        "translations": translation_payload(sport.translations),
    }


class SportCatalog:
    """Serves the sports list from Redis, falling back to the database on a miss."""

    def __init__(self, db: AsyncSession, redis):
        self.db = db
        self.cache = RedisCache(redis)

    async def all(self, locale: Optional[str] = None) -> list[dict]:
        locale = locale or settings.DEFAULT_LOCALE
        key = f"{CACHE_PREFIX}:{locale}"

        cached = await self.cache.get(key)
        if cached is not None:
            return cached

        result = await self.db.execute(select(Sport).order_by(Sport.id))
        sports = [sport_payload(s, locale) for s in result.scalars()]
        await self.cache.set(key, sports, ttl=settings.SPORTS_CACHE_TTL)
        logger.debug(f"Sports catalog cached for locale '{locale}' ({len(sports)} sports)")
        return sports

    async def invalidate(self) -> int:
        return await self.cache.delete_pattern(f"{CACHE_PREFIX}:*")
