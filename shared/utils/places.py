"""
shared/utils/places.py
Google Places lookups used to enrich branches with coordinates,
rating and reviews. Async client for the API, sync client for Celery.

A missing GOOGLE_MAPS_API_KEY disables enrichment: lookups return None.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

import httpx
from pybreaker import CircuitBreakerError

from config.settings import settings
from shared.utils.resilience import circuit_breaker_manager, retry_transport

logger = logging.getLogger(__name__)

TEXT_SEARCH_URL = "https://maps.googleapis.com/maps/api/place/textsearch/json"
DETAILS_URL = "https://maps.googleapis.com/maps/api/place/details/json"

places_breaker = circuit_breaker_manager.get_breaker("google_places")


@dataclass
class PlaceInformation:
    place_id: str
    rating: Optional[float]
    latitude: Optional[float]
    longitude: Optional[float]
    reviews: list[dict] = field(default_factory=list)

    @property
    def review_count(self) -> int:
        return len(self.reviews)


# ── Response parsing ──────────────────────────────────────────

def pick_place_id(search: dict, preferred_terms: list[str]) -> Optional[str]:
    """
    First result whose address mentions a preferred region term,
    otherwise the first result.
    """
    if search.get("status") != "OK" or not search.get("results"):
        return None
    results = search["results"]
    if len(results) == 1:
        return results[0].get("place_id")
    for place in results:
        address = place.get("formatted_address") or ""
        if any(term in address for term in preferred_terms):
            return place.get("place_id")
    return results[0].get("place_id")


def parse_details(place_id: str, details: dict) -> Optional[PlaceInformation]:
    if details.get("status") != "OK":
        return None
    result = details.get("result") or {}
    location = (result.get("geometry") or {}).get("location") or {}
    return PlaceInformation(
        place_id=place_id,
        rating=result.get("rating"),
        latitude=location.get("lat"),
        longitude=location.get("lng"),
        reviews=result.get("reviews") or [],
    )


def review_rows(info: PlaceInformation) -> list[dict]:
    """Map Google review payloads onto Review column values."""
    rows = []
    for review in info.reviews:
        language = review.get("language") or "en"
        rows.append({
            "place_id": info.place_id,
            "author_name": review.get("author_name") or "",
            "author_url": review.get("author_url"),
            "language": language,
            "original_language": review.get("original_language") or language,
            "profile_photo_url": review.get("profile_photo_url"),
            "rating": int(review.get("rating") or 0),
            "relative_time_description": review.get("relative_time_description") or "",
            "text": review.get("text") or "",
            "time": int(review.get("time") or 0),
            "translated": bool(review.get("translated", False)),
        })
    return rows


# ── Async client (API) ────────────────────────────────────────

@retry_transport
async def _get_json(client: httpx.AsyncClient, url: str, params: dict) -> dict:
    response = await client.get(url, params={**params, "key": settings.GOOGLE_MAPS_API_KEY})
    response.raise_for_status()
    return response.json()


async def fetch_place_information(name: Optional[str]) -> Optional[PlaceInformation]:
    """Text search then place details. None when disabled, not found or failing."""
    if not settings.GOOGLE_MAPS_API_KEY or not name:
        return None
    try:
        with places_breaker.calling():
            async with httpx.AsyncClient(timeout=settings.GOOGLE_MAPS_TIMEOUT_SECONDS) as client:
                search = await _get_json(client, TEXT_SEARCH_URL, {"query": name})
                place_id = pick_place_id(search, settings.preferred_region_terms)
                if not place_id:
                    return None
                details = await _get_json(client, DETAILS_URL, {"place_id": place_id})
                return parse_details(place_id, details)
    except (httpx.HTTPError, CircuitBreakerError, ValueError, KeyError) as e:
        logger.warning(f"Places lookup failed for '{name}': {e}")
        return None


# ── Sync client (Celery) ──────────────────────────────────────

@retry_transport
def _get_json_sync(client: httpx.Client, url: str, params: dict) -> dict:
    response = client.get(url, params={**params, "key": settings.GOOGLE_MAPS_API_KEY})
    response.raise_for_status()
    return response.json()


def fetch_place_information_sync(name: Optional[str]) -> Optional[PlaceInformation]:
    if not settings.GOOGLE_MAPS_API_KEY or not name:
        return None
    try:
        with places_breaker.calling():
            with httpx.Client(timeout=settings.GOOGLE_MAPS_TIMEOUT_SECONDS) as client:
                search = _get_json_sync(client, TEXT_SEARCH_URL, {"query": name})
                place_id = pick_place_id(search, settings.preferred_region_terms)
                if not place_id:
                    return None
                details = _get_json_sync(client, DETAILS_URL, {"place_id": place_id})
                return parse_details(place_id, details)
    except (httpx.HTTPError, CircuitBreakerError, ValueError, KeyError) as e:
        logger.warning(f"Places lookup failed for '{name}': {e}")
        return None
