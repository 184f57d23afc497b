"""
Plateful Backend — Restaurant Request/Response Schemas
========================================================

What:  Pydantic models defining the API contract for restaurant endpoints.
Why:   Automatic serialization and OpenAPI doc generation, decoupled from the
       ORM model (vote rows and the version counter are never exposed).
How:   Fields are snake_case in Python and camelCase on the wire through an
       alias generator; FastAPI serializes responses by alias.
"""

from typing import Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from app.models.restaurant import Restaurant

T = TypeVar("T")


def _strings(values) -> List[str]:
    """String entries of a JSON list column; anything else is dropped."""
    if not isinstance(values, list):
        return []
    return [v for v in values if isinstance(v, str)]


def _hours(values) -> Dict[str, Optional[str]]:
    if not isinstance(values, dict):
        return {}
    return {
        day: (span if isinstance(span, str) else None)
        for day, span in values.items()
        if isinstance(day, str)
    }


class CamelModel(BaseModel):
    """Base for every API schema: camelCase JSON, snake_case attributes."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class AddressResponse(CamelModel):
    street: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None


class RestaurantResponse(CamelModel):
    """
    What:  Full representation of a restaurant listing.
    Who:   Returned by every restaurant listing, search and detail endpoint.
    """
    id: str = Field(description="Opaque restaurant identifier")
    name: str
    description: Optional[str] = None
    cuisine: Optional[str] = None
    price_level: Optional[int] = Field(default=None, description="Relative price, e.g. 1-4")
    reservation_required: bool = False
    tags: List[str] = Field(default_factory=list)
    hours: Dict[str, Optional[str]] = Field(
        default_factory=dict,
        description="Weekday (lowercase) → 'HH:MM-HH:MM'; a missing day means closed",
    )
    address: AddressResponse = Field(default_factory=AddressResponse)
    image_url: Optional[str] = None
    images: List[str] = Field(default_factory=list, description="Gallery image URLs, cover first")
    rating: Optional[float] = Field(default=None, description="Average review rating, 0-5")
    phone: Optional[str] = None
    website: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    upvote_count: int = 0
    downvote_count: int = 0
    vote_count: int = Field(default=0, description="Net score: upvotes minus downvotes")

    @classmethod
    def from_model(cls, restaurant: Restaurant) -> "RestaurantResponse":
        """Builds the response from an ORM row (address fields are nested)."""
        return cls(
            id=restaurant.id,
            name=restaurant.name,
            description=restaurant.description,
            cuisine=restaurant.cuisine,
            price_level=restaurant.price_level,
            reservation_required=bool(restaurant.reservation_required),
            tags=_strings(restaurant.tags),
            hours=_hours(restaurant.hours),
            address=AddressResponse(
                street=restaurant.street,
                city=restaurant.city,
                postcode=restaurant.postcode,
            ),
            image_url=restaurant.image_url,
            images=_strings(restaurant.images),
            rating=restaurant.rating,
            phone=restaurant.phone,
            website=restaurant.website,
            latitude=restaurant.latitude,
            longitude=restaurant.longitude,
            upvote_count=restaurant.upvote_count or 0,
            downvote_count=restaurant.downvote_count or 0,
            vote_count=restaurant.vote_count or 0,
        )


class Page(CamelModel, Generic[T]):
    """
    What:  Offset pagination wrapper used by the "my votes" endpoints.
    How:   page is zero-based; total_pages is 0 for an empty result.
    """
    content: List[T]
    page: int = Field(description="Zero-based page index")
    size: int = Field(description="Requested page size after clamping")
    total_elements: int
    total_pages: int


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(CamelModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "validation_error",
            "message": "priceMin cannot be greater than priceMax",
            "details": {"field": "priceMin"},
            "requestId": "1f0c2a9b"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(CamelModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
