"""Polymorphic schema for park entities (attractions, dining, shows, hotels, ...).

Each variant knows how to render its own type-specific phrases for the
embedding text via ``render_extension()``.
"""

import re
from typing import Annotated, Any, Literal, Mapping, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

DestinationId = Literal["wdw", "dlr"]
EntityType = Literal[
    "DESTINATION",
    "PARK",
    "ATTRACTION",
    "RESTAURANT",
    "SHOW",
    "SHOP",
    "EVENT",
    "HOTEL",
]
ThrillLevel = Literal["family", "moderate", "thrill"]
MealPeriod = Literal["breakfast", "lunch", "dinner", "snacks"]
LightningLaneTier = Literal["individual", "multi-pass", "none"]
HotelTier = Literal["value", "moderate", "deluxe", "deluxe-villa", "other"]

# Tags that add noise without semantic value
NOISE_TAGS = frozenset(
    {
        "FinderPCAttractions",
        "FinderMobileAttractions",
        "FinderPCDining",
        "FinderMobileDining",
        "FinderPCEntertainment",
        "FinderMobileEntertainment",
        "RatingsReviewsAttractions",
        "RatingsReviewsDining",
        "mobile-playapp-enabled",
        "play-disney-parks",
        "flex-rec",
    }
)

# Tags expanded to natural language
TAG_EXPANSIONS = {
    "thrill-rides": "thrilling exciting high speed adrenaline",
    "thrill-rides-rec": "thrilling exciting high speed adrenaline",
    "slow-rides": "gentle relaxed calm leisurely scenic",
    "slow-rides-rec": "gentle relaxed calm leisurely scenic",
    "big-drops": "big drops falling plunging steep descent",
    "small-drops": "small drops mild descent",
    "dark": "dark ride indoor darkness",
    "spinning": "spinning rotating twisting",
    "water-rides": "water ride splash wet getting wet",
    "indoor-attractions": "indoor air conditioned covered",
    "outdoor-attractions": "outdoor outside",
    "disney-classics": "classic nostalgic iconic legendary",
    "park-classics-rec": "classic nostalgic iconic",
    "experiences-for-little-ones-rec": "toddler friendly young children gentle",
    "character-meet": "meet character photo opportunity autograph",
    "character-dining": "dining with characters meet characters during meal",
}

THRILL_DESCRIPTIONS = {
    "thrill": "thrilling exciting high intensity adrenaline rush",
    "moderate": "moderate intensity some thrills",
    "family": "family friendly gentle all ages",
}

SERVICE_TYPE_PHRASES = {
    "table-service": "table service restaurant sit down",
    "quick-service": "quick service counter service fast food",
    "character-dining": "character dining experience meet characters",
    "fine-signature-dining": "fine dining signature restaurant upscale",
    "lounge": "lounge bar drinks",
    "food-cart": "food cart snack stand",
}

PRICE_TIER_PHRASES = {
    "$": "budget friendly",
    "$$": "moderate price",
    "$$$": "upscale",
    "$$$$": "fine dining expensive",
}

SHOW_TYPE_PHRASES = {
    "fireworks": "fireworks nighttime spectacular",
    "parade": "parade procession",
    "stage-show": "live stage show performance",
    "character-meet": "character meet and greet",
    "other": "entertainment",
}

HOTEL_TIER_PHRASES = {
    "value": "value resort budget friendly affordable",
    "moderate": "moderate resort mid-range",
    "deluxe": "deluxe resort luxury upscale",
    "deluxe-villa": "deluxe villa resort luxury DVC",
    "other": "resort accommodation",
}

SHOP_TYPE_PHRASES = {
    "merchandise": "merchandise shopping",
    "apparel": "apparel clothing fashion",
    "gifts": "gifts souvenirs",
    "specialty": "specialty unique items",
    "other": "shop store",
}

EVENT_TYPE_PHRASES = {
    "special-event": "special event limited time",
    "tour": "guided tour experience",
    "extra": "extra magic special access",
    "seasonal": "seasonal holiday celebration",
    "other": "event experience",
}

# Internal three-part slugs such as "ride-type-coaster"
_INTERNAL_TAG_RE = re.compile(r"^[a-z]+-[a-z]+-[a-z]+$")


def _semantic_tags(tags: list[str]) -> list[str]:
    """Drop noise tags, expand known ones, keep simple ones as words."""
    out: list[str] = []
    for tag in tags:
        if tag in NOISE_TAGS or "-inches-" in tag:
            continue
        expansion = TAG_EXPANSIONS.get(tag)
        if expansion:
            out.append(expansion)
        elif "-rec" not in tag and not _INTERNAL_TAG_RE.match(tag):
            out.append(tag.replace("-", " "))
    return out


class HeightRequirement(BaseModel):
    inches: int
    centimeters: Optional[int] = None
    description: str = ""


class LightningLaneInfo(BaseModel):
    tier: LightningLaneTier
    available: bool = False


class PriceRange(BaseModel):
    symbol: Literal["$", "$$", "$$$", "$$$$"]
    description: str = ""


class EntityBase(BaseModel):
    """Fields shared by every park entity."""

    id: str = Field(description="Upstream entity identifier")
    name: str = Field(description="Display name")
    slug: Optional[str] = None
    entity_type: EntityType
    destination_id: DestinationId
    park_id: Optional[str] = None
    park_name: Optional[str] = None
    url: Optional[str] = None

    def render_extension(self) -> list[str]:
        """Return type-specific phrases for the embedding text."""
        return []


class Destination(EntityBase):
    entity_type: Literal["DESTINATION"] = "DESTINATION"


class Park(EntityBase):
    entity_type: Literal["PARK"] = "PARK"


class Attraction(EntityBase):
    """A ride or walk-through attraction."""

    entity_type: Literal["ATTRACTION"] = "ATTRACTION"
    height_requirement: Optional[HeightRequirement] = None
    thrill_level: Optional[ThrillLevel] = None
    experience_type: Optional[str] = None
    duration: Optional[str] = None
    lightning_lane: Optional[LightningLaneInfo] = None
    single_rider: bool = False
    rider_swap: bool = False
    virtual_queue: bool = False
    wheelchair_accessible: bool = False
    tags: list[str] = Field(default_factory=list)

    def render_extension(self) -> list[str]:
        parts: list[str] = []
        if self.experience_type:
            parts.append(self.experience_type)

        if self.thrill_level:
            parts.append(f"{self.thrill_level} thrill level")
            parts.append(THRILL_DESCRIPTIONS[self.thrill_level])

        if self.height_requirement:
            inches = self.height_requirement.inches
            parts.append(f"height requirement {inches} inches")
            if inches >= 48:
                parts.append("tall riders older children teens adults")
            elif inches >= 40:
                parts.append("medium height requirement school age")
        else:
            parts.append("no height requirement any height")

        tags = _semantic_tags(self.tags)
        if tags:
            parts.append(". ".join(tags))

        if self.single_rider:
            parts.append("single rider line available shorter wait")
        if self.virtual_queue:
            parts.append("virtual queue available")
        if self.lightning_lane and self.lightning_lane.available:
            parts.append(f"Lightning Lane {self.lightning_lane.tier} skip the line")
        return parts


class Dining(EntityBase):
    """A restaurant, lounge or snack location."""

    entity_type: Literal["RESTAURANT"] = "RESTAURANT"
    service_type: Optional[str] = None
    meal_periods: list[MealPeriod] = Field(default_factory=list)
    cuisine_types: list[str] = Field(default_factory=list)
    price_range: Optional[PriceRange] = None
    mobile_order: bool = False
    reservations_required: bool = False
    reservations_accepted: bool = False
    character_dining: bool = False
    tags: list[str] = Field(default_factory=list)

    def render_extension(self) -> list[str]:
        parts: list[str] = []
        if self.service_type:
            parts.append(SERVICE_TYPE_PHRASES.get(self.service_type, self.service_type))
        if self.cuisine_types:
            parts.append(", ".join(self.cuisine_types))
        if self.meal_periods:
            parts.append(f"serves {', '.join(self.meal_periods)}")
        if self.price_range:
            parts.append(PRICE_TIER_PHRASES.get(self.price_range.symbol, ""))
        if self.character_dining:
            parts.append("character dining experience")
        if self.mobile_order:
            parts.append("mobile order available")
        if self.reservations_required:
            parts.append("reservations required")
        if self.tags:
            parts.append(", ".join(self.tags))
        return parts


class Show(EntityBase):
    entity_type: Literal["SHOW"] = "SHOW"
    show_type: Optional[str] = None
    duration: Optional[str] = None
    tags: list[str] = Field(default_factory=list)

    def render_extension(self) -> list[str]:
        parts: list[str] = []
        if self.show_type:
            parts.append(SHOW_TYPE_PHRASES.get(self.show_type, self.show_type))
        if self.duration:
            parts.append(f"{self.duration} duration")
        if self.tags:
            parts.append(", ".join(self.tags))
        return parts


class Hotel(EntityBase):
    entity_type: Literal["HOTEL"] = "HOTEL"
    tier: Optional[HotelTier] = None
    area: Optional[str] = None
    transportation: list[str] = Field(default_factory=list)
    amenities: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)

    def render_extension(self) -> list[str]:
        parts: list[str] = []
        if self.tier:
            parts.append(HOTEL_TIER_PHRASES.get(self.tier, self.tier))
        if self.area:
            parts.append(f"located in {self.area}")
        if self.transportation:
            parts.append(f"transportation: {', '.join(self.transportation)}")
        if self.amenities:
            parts.append(", ".join(self.amenities))
        if self.tags:
            parts.append(", ".join(self.tags))
        return parts


class Shop(EntityBase):
    entity_type: Literal["SHOP"] = "SHOP"
    shop_type: Optional[str] = None
    tags: list[str] = Field(default_factory=list)

    def render_extension(self) -> list[str]:
        parts: list[str] = []
        if self.shop_type:
            parts.append(SHOP_TYPE_PHRASES.get(self.shop_type, self.shop_type))
        if self.tags:
            parts.append(", ".join(self.tags))
        return parts


class Event(EntityBase):
    entity_type: Literal["EVENT"] = "EVENT"
    event_type: Optional[str] = None
    tags: list[str] = Field(default_factory=list)

    def render_extension(self) -> list[str]:
        parts: list[str] = []
        if self.event_type:
            parts.append(EVENT_TYPE_PHRASES.get(self.event_type, self.event_type))
        if self.tags:
            parts.append(", ".join(self.tags))
        return parts


Entity = Annotated[
    Union[Attraction, Dining, Show, Hotel, Shop, Event, Park, Destination],
    Field(discriminator="entity_type"),
]

_entity_adapter: TypeAdapter[Entity] = TypeAdapter(Entity)


def parse_entity(data: Mapping[str, Any]) -> Entity:
    """Build the matching entity variant from a mapping keyed by ``entity_type``."""
    return _entity_adapter.validate_python(dict(data))


class SearchResult(BaseModel):
    """A hydrated entity paired with its similarity score and raw distance."""

    entity: Entity
    score: float
    distance: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.entity.id,
            "name": self.entity.name,
            "entity_type": self.entity.entity_type,
            "destination_id": self.entity.destination_id,
            "park_name": self.entity.park_name,
            "score": round(self.score, 4),
            "distance": self.distance,
        }
