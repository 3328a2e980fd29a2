"""
ALOKA Backend — Studio Request/Response Schemas
================================================

What:  Pydantic models defining the studio API contract.
Why:   Request bodies, query filters and response envelopes are validated and
       documented (OpenAPI) from one place.
How:   Input models are deliberately permissive about *presence* (every field
       Optional) so StudioService can report every missing field in one 400,
       and strict about *shape* (types, ranges) so a malformed value never
       reaches the database.

Design Decision:
    Schemas are separate from the SQLAlchemy model because the wire format
    nests `location` and renames every field to camelCase, while the table
    stores flat snake_case columns.
"""

import math
import uuid
from datetime import datetime
from typing import Any, List, Optional

from pydantic import Field, field_validator

from aloka.schemas.common import CamelModel


DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10

# Largest OFFSET/LIMIT the store accepts (signed 64-bit). Larger page or
# limit values are clamped so they read as "past the end", not an overflow.
SQL_INT_MAX = 2**63 - 1


# ══════════════════════════════════════════════════════════════════════════
# Nested value objects
# ══════════════════════════════════════════════════════════════════════════


class LocationInput(CamelModel):
    """Location as sent by the client; completeness is checked by the service."""
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None


class Location(CamelModel):
    city: str
    state: str
    zip_code: str


class EquipmentItem(CamelModel):
    name: str = Field(min_length=1)
    brand: Optional[str] = None
    model: Optional[str] = None


class ImageItem(CamelModel):
    url: str
    caption: Optional[str] = None


def _blank_to_none(value: Any) -> Any:
    """Empty strings from HTML forms mean "not supplied"."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class StudioCreate(CamelModel):
    """
    Body of POST /api/studios.

    Required (checked in StudioService.create_studio so the 400 can list them
    all): studioName, description, address, perHourCharge, location.{city,
    state, zipCode}.

    maxDistance: anything that is not a positive number falls back to 50.
    imageUrl:    a single URL, wrapped into a one-element images list.
    """
    studio_name: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    location: Optional[LocationInput] = None
    per_hour_charge: Optional[float] = Field(default=None, ge=0)
    max_distance: Optional[float] = None
    image_url: Optional[str] = None
    services: Optional[List[str]] = None
    equipment: Optional[List[EquipmentItem]] = None

    @field_validator("per_hour_charge", "image_url", mode="before")
    @classmethod
    def blank_is_missing(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("max_distance", mode="before")
    @classmethod
    def lenient_max_distance(cls, v: Any) -> Optional[float]:
        """Unparseable, zero or negative distances are replaced by the default later."""
        number = parse_optional_number(v)
        if number is None or number <= 0:
            return None
        return number


class StudioUpdate(CamelModel):
    """
    Body of PATCH /api/studios?id=...

    Partial document: a field present in the payload is applied, even when
    falsy (0, false, []); a field absent from the payload is left alone.
    Presence is read from `model_fields_set`, never from truthiness.
    """
    studio_name: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    location: Optional[LocationInput] = None
    per_hour_charge: Optional[float] = Field(default=None, ge=0)
    max_distance: Optional[float] = Field(default=None, ge=0)
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    is_active: Optional[bool] = None
    services: Optional[List[str]] = None
    equipment: Optional[List[EquipmentItem]] = None


# ══════════════════════════════════════════════════════════════════════════
# Query Parameter Model
# ══════════════════════════════════════════════════════════════════════════


def parse_optional_number(value: Any) -> Optional[float]:
    """
    Parse a query-string number, returning None for anything unusable.

    None, "", "abc", "NaN" and "inf" all mean "filter absent" rather than
    "filter at zero" or a database type error.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def _parse_positive_int(value: Any, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        number = int(str(value).strip())
    except ValueError:
        return default
    if number < 1:
        return default
    return min(number, SQL_INT_MAX)


class StudioFilters(CamelModel):
    """
    Validated listing parameters for GET /api/studios.

    Every filter is optional; absent filters impose no constraint. Text
    filters are stripped, numeric filters go through parse_optional_number.
    page and limit fall back to 1 and 10 when unparseable or < 1. limit has
    no practical upper bound: a caller may ask for every studio in one page.
    page, limit and offset are clamped to SQL_INT_MAX, so an absurd page is
    simply an empty page.
    """
    search: Optional[str] = None
    city: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_distance: Optional[float] = None
    max_distance: Optional[float] = None
    min_rating: Optional[float] = None
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @field_validator("search", "city", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @field_validator(
        "min_price", "max_price", "min_distance", "max_distance", "min_rating",
        mode="before",
    )
    @classmethod
    def lenient_number(cls, v: Any) -> Optional[float]:
        return parse_optional_number(v)

    @field_validator("page", mode="before")
    @classmethod
    def lenient_page(cls, v: Any) -> int:
        return _parse_positive_int(v, DEFAULT_PAGE)

    @field_validator("limit", mode="before")
    @classmethod
    def lenient_limit(cls, v: Any) -> int:
        return _parse_positive_int(v, DEFAULT_LIMIT)

    @property
    def offset(self) -> int:
        return min((self.page - 1) * self.limit, SQL_INT_MAX)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class StudioResponse(CamelModel):
    """
    Full representation of a studio, built straight from the ORM object.

    services / equipment / images are always lists in the response, whatever
    the row holds (older rows may carry NULL images).
    """
    id: uuid.UUID
    studio_name: str
    description: str
    address: str
    location: Location
    per_hour_charge: float
    max_distance: float
    rating: float
    services: List[str] = Field(default_factory=list)
    equipment: List[EquipmentItem] = Field(default_factory=list)
    images: List[ImageItem] = Field(default_factory=list)
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @field_validator("services", "equipment", "images", mode="before")
    @classmethod
    def none_is_empty_list(cls, v: Any) -> Any:
        return [] if v is None else v


class PaginationMeta(CamelModel):
    """
    current:    the requested page (1-indexed)
    total:      number of pages, never below 1 even for an empty result
    hasNext:    current < total
    hasPrev:    current > 1
    totalCount: rows matching the filters, ignoring pagination
    """
    current: int
    total: int
    has_next: bool
    has_prev: bool
    total_count: int


class StudioListData(CamelModel):
    studios: List[StudioResponse]
    pagination: PaginationMeta


class StudioListResponse(CamelModel):
    success: bool = True
    data: StudioListData


class StudioEnvelope(CamelModel):
    """Wrapper for create and update responses."""
    success: bool = True
    data: StudioResponse


class DeleteResponse(CamelModel):
    success: bool = True
    message: str = "Studio deleted successfully"
