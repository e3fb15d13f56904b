"""
services/geography/tree.py
The country → state → city hierarchy described as data, so one set of
routes can serve all three levels.
"""

from dataclasses import dataclass
from typing import Optional

from shared.models.models import (
    City,
    CityTranslation,
    Country,
    CountryTranslation,
    State,
    StateTranslation,
)


@dataclass(frozen=True)
class GeoLevel:
    model: type
    translation: type
    fk: str                          # translation -> entity column
    parent_attr: Optional[str] = None  # entity -> parent column
    parent_model: Optional[type] = None

    @property
    def has_parent(self) -> bool:
        return self.parent_attr is not None


LEVELS = {
    "countries": GeoLevel(Country, CountryTranslation, "country_id"),
    "states": GeoLevel(State, StateTranslation, "state_id", "country_id", Country),
    "cities": GeoLevel(City, CityTranslation, "city_id", "state_id", State),
}
