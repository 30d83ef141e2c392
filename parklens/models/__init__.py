"""Domain models."""

from .entity import (
    Attraction,
    Destination,
    DestinationId,
    Dining,
    Entity,
    EntityBase,
    EntityType,
    Event,
    HeightRequirement,
    Hotel,
    LightningLaneInfo,
    Park,
    PriceRange,
    SearchResult,
    Shop,
    Show,
    parse_entity,
)

__all__ = [
    "Attraction",
    "Destination",
    "DestinationId",
    "Dining",
    "Entity",
    "EntityBase",
    "EntityType",
    "Event",
    "HeightRequirement",
    "Hotel",
    "LightningLaneInfo",
    "Park",
    "PriceRange",
    "SearchResult",
    "Shop",
    "Show",
    "parse_entity",
]
