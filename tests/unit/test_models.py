"""Tests for entity parsing, search results and error payloads."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from parklens.exceptions import InvalidInputError, ProviderError, error_to_dict
from parklens.models import Attraction, Dining, Hotel, SearchResult, parse_entity


def test_parse_entity_picks_variant() -> None:
    ride = parse_entity(
        {
            "id": "1",
            "name": "Big Thunder Mountain Railroad",
            "entity_type": "ATTRACTION",
            "destination_id": "wdw",
            "thrill_level": "moderate",
            "height_requirement": {"inches": 40},
        }
    )
    food = parse_entity(
        {"id": "2", "name": "Cafe Orleans", "entity_type": "RESTAURANT", "destination_id": "dlr"}
    )
    hotel = parse_entity(
        {"id": "3", "name": "Pop Century", "entity_type": "HOTEL", "destination_id": "wdw", "tier": "value"}
    )

    assert isinstance(ride, Attraction)
    assert ride.height_requirement is not None and ride.height_requirement.inches == 40
    assert isinstance(food, Dining)
    assert isinstance(hotel, Hotel)


@pytest.mark.parametrize(
    "data",
    [
        {"id": "1", "name": "X", "entity_type": "SPACESHIP", "destination_id": "wdw"},
        {"id": "1", "name": "X", "entity_type": "ATTRACTION", "destination_id": "tdr"},
        {"id": "1", "entity_type": "ATTRACTION", "destination_id": "wdw"},
    ],
)
def test_parse_entity_rejects_bad_data(data: dict) -> None:
    with pytest.raises(ValidationError):
        parse_entity(data)


def test_search_result_to_dict(space_mountain: Attraction) -> None:
    result = SearchResult(entity=space_mountain, score=0.912345, distance=0.0917)

    assert result.to_dict() == {
        "id": "80010190",
        "name": "Space Mountain",
        "entity_type": "ATTRACTION",
        "destination_id": "wdw",
        "park_name": "Magic Kingdom Park",
        "score": 0.9123,
        "distance": 0.0917,
    }


def test_error_to_dict() -> None:
    assert error_to_dict(ProviderError("timeout", provider_id="openai")) == {
        "error": "ProviderError",
        "message": "timeout",
        "provider": "openai",
    }
    assert error_to_dict(InvalidInputError("Search query cannot be empty")) == {
        "error": "InvalidInputError",
        "message": "Search query cannot be empty",
    }


def test_invalid_input_is_a_value_error() -> None:
    assert issubclass(InvalidInputError, ValueError)
