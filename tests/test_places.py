"""
tests/test_places.py
Google Places response parsing and the disabled-without-key behaviour.
"""

import pytest

from config.settings import settings
from shared.utils import places
from shared.utils.places import (
    PlaceInformation,
    fetch_place_information,
    fetch_place_information_sync,
    parse_details,
    pick_place_id,
    review_rows,
)


def test_pick_place_id_single_result():
    search = {"status": "OK", "results": [{"place_id": "a", "formatted_address": "Paris"}]}
    assert pick_place_id(search, ["UAE"]) == "a"


def test_pick_place_id_prefers_region():
    search = {
        "status": "OK",
        "results": [
            {"place_id": "a", "formatted_address": "London, UK"},
            {"place_id": "b", "formatted_address": "Dubai - United Arab Emirates"},
        ],
    }
    assert pick_place_id(search, ["United Arab Emirates", "UAE"]) == "b"
    assert pick_place_id(search, ["Qatar"]) == "a"


def test_pick_place_id_no_results():
    assert pick_place_id({"status": "ZERO_RESULTS", "results": []}, []) is None


def test_parse_details():
    details = {
        "status": "OK",
        "result": {
            "rating": 4.2,
            "geometry": {"location": {"lat": 25.0, "lng": 55.0}},
            "reviews": [{"author_name": "A"}, {"author_name": "B"}],
        },
    }
    info = parse_details("p1", details)
    assert info.rating == 4.2
    assert (info.latitude, info.longitude) == (25.0, 55.0)
    assert info.review_count == 2


def test_parse_details_not_ok():
    assert parse_details("p1", {"status": "NOT_FOUND"}) is None


def test_review_rows_fill_defaults():
    info = PlaceInformation(place_id="p", rating=None, latitude=None, longitude=None,
                            reviews=[{"author_name": "Sara", "rating": 4.0, "language": "ar"}])
    row = review_rows(info)[0]
    assert row["place_id"] == "p"
    assert row["rating"] == 4
    assert row["original_language"] == "ar"
    assert row["text"] == ""
    assert row["translated"] is False


@pytest.mark.asyncio
async def test_lookup_disabled_without_key():
    assert await fetch_place_information("Anything") is None
    assert fetch_place_information_sync("Anything") is None


def test_pick_place_id_without_id():
    search = {"status": "OK", "results": [{"formatted_address": "Dubai"}]}
    assert pick_place_id(search, ["Dubai"]) is None


@pytest.mark.asyncio
async def test_malformed_response_means_no_enrichment(monkeypatch):
    monkeypatch.setattr(settings, "GOOGLE_MAPS_API_KEY", "maps-key")

    async def _not_json(client, url, params):
        raise ValueError("Expecting value: line 1 column 1 (char 0)")

    def _not_json_sync(client, url, params):
        raise ValueError("Expecting value: line 1 column 1 (char 0)")

    monkeypatch.setattr(places, "_get_json", _not_json)
    monkeypatch.setattr(places, "_get_json_sync", _not_json_sync)

    assert await fetch_place_information("Main Branch") is None
    assert fetch_place_information_sync("Main Branch") is None


@pytest.mark.asyncio
async def test_result_without_place_id_means_no_enrichment(monkeypatch):
    monkeypatch.setattr(settings, "GOOGLE_MAPS_API_KEY", "maps-key")

    async def _search(client, url, params):
        return {"status": "OK", "results": [{"name": "Somewhere"}]}

    monkeypatch.setattr(places, "_get_json", _search)
    assert await fetch_place_information("Main Branch") is None
