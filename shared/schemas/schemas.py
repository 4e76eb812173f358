"""
shared/schemas/schemas.py
All Pydantic v2 request/response schemas for the platform.

Location rows are rendered with camelCase keys; the availability projection and
price quote keep their snake_case wire names.
"""

import uuid
from datetime import datetime
from typing import Annotated, Any, List, Literal, Optional

from pydantic import (
    AwareDatetime,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    StringConstraints,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel
from pydantic_core import from_json

from shared.models.models import AppUserRole, AppUserStatus, PricingMode


# ── Base ──────────────────────────────────────────────────────

class BaseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


class CamelSchema(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        use_enum_values=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


# ── Field types ───────────────────────────────────────────────

RequiredText = Annotated[str, StringConstraints(strict=True, strip_whitespace=True, min_length=1)]
Text = Annotated[str, Field(strict=True)]
FiniteNumber = Annotated[float, Field(strict=True, allow_inf_nan=False)]
NonNegativeInt = Annotated[int, Field(strict=True, ge=0)]
PhoneNumber = Annotated[str, StringConstraints(strict=True, pattern=r"^\+91[6-9][0-9]{9}$")]


def _decode_json_string(value: Any) -> Any:
    """JSON columns may be sent either decoded or as their string encoding."""
    if isinstance(value, str):
        return from_json(value)
    return value


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


# ── Locations ─────────────────────────────────────────────────

class PriceSlab(CamelSchema):
    """One flat-price band of a slab-priced location."""
    min_minutes: NonNegativeInt
    max_minutes: NonNegativeInt
    price_paise: NonNegativeInt

    @model_validator(mode="after")
    def check_bounds(self) -> "PriceSlab":
        if self.max_minutes < self.min_minutes:
            raise ValueError("maxMinutes must not be below minMinutes")
        return self


def slab_rows(slabs: Optional[List[PriceSlab]]) -> Optional[List[dict]]:
    """Slabs as stored in parking_locations.slab_json."""
    if slabs is None:
        return None
    return [slab.model_dump(by_alias=True) for slab in slabs]


class LocationCreate(CamelSchema):
    # Field order is the order failures are reported in.
    title: RequiredText
    address: RequiredText
    city: RequiredText
    latitude: FiniteNumber
    longitude: FiniteNumber
    total_slots: Annotated[int, Field(strict=True, ge=1)]
    pricing_mode: PricingMode
    base_price_per_hour_paise: NonNegativeInt
    photos: Optional[List[Any]] = None
    slab_json: Optional[List[PriceSlab]] = None
    description: Optional[Text] = None
    state: Optional[Text] = None
    pincode: Optional[Text] = None

    decode_json_fields = field_validator("photos", "slab_json", mode="before")(_decode_json_string)
    trim_optional_text = field_validator("description", "state", "pincode")(_blank_to_none)


class LocationUpdate(CamelSchema):
    """
    Partial edit. Only the fields below can change; anything else in the body is ignored.
    An explicit null on photos or slabJson is ignored; on any other field it is an error.
    Pass context={"total_slots": n} to bound availableSlots.
    """
    available_slots: NonNegativeInt = None
    pricing_mode: Literal["hourly", "slab"] = None
    base_price_per_hour_paise: NonNegativeInt = None
    photos: Optional[List[Any]] = None
    slab_json: Optional[List[PriceSlab]] = None
    title: RequiredText = None
    description: Text = None
    address: Text = None
    city: Text = None
    state: Text = None
    pincode: Text = None

    decode_json_fields = field_validator("photos", "slab_json", mode="before")(_decode_json_string)

    @field_validator("available_slots")
    @classmethod
    def within_total_slots(cls, value: int, info: ValidationInfo) -> int:
        total_slots = (info.context or {}).get("total_slots")
        if total_slots is not None and value > total_slots:
            raise ValueError("availableSlots cannot exceed totalSlots")
        return value


class LocationResponse(CamelSchema):
    """Full parking_locations row."""
    id: int
    owner_user_id: uuid.UUID
    title: str
    description: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    latitude: float
    longitude: float
    photos: Optional[List[Any]] = None
    total_slots: int
    available_slots: int
    pricing_mode: str
    base_price_per_hour_paise: int
    slab_json: Optional[Any] = None
    approved: bool
    approved_by: Optional[uuid.UUID] = None
    approved_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class LocationListItem(LocationResponse):
    owner_name: Optional[str] = None


class LocationDetailResponse(LocationResponse):
    owner_name: Optional[str] = None
    owner_email: Optional[str] = None


class OwnerSummary(BaseSchema):
    id: uuid.UUID
    name: str
    email: str


class PendingLocationResponse(LocationResponse):
    owner: OwnerSummary


class NearbyLocationResponse(LocationResponse):
    distance_meters: int = Field(..., alias="distance_meters")
    eta_minutes: int = Field(..., alias="eta_minutes")


class Pagination(CamelSchema):
    page: int
    page_size: int
    total: int
    total_pages: int


class LocationListResponse(BaseSchema):
    data: List[LocationListItem]
    pagination: Pagination


class AvailabilityResponse(BaseSchema):
    """Public projection: nothing beyond these two fields is exposed."""
    available_slots: int
    updated_at: datetime


# ── Roles ─────────────────────────────────────────────────────

class RolesResponse(BaseSchema):
    roles: List[str]


# ── Pricing ───────────────────────────────────────────────────

class PriceQuoteRequest(BaseSchema):
    location_id: Annotated[int, Field(gt=0)]
    start_time: AwareDatetime
    end_time: AwareDatetime

    @field_validator("location_id", mode="before")
    @classmethod
    def reject_booleans(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("location_id must be a number")
        return value


class PricingDetails(BaseSchema):
    mode: str
    applied_rate: int
    calculation_method: str


class PriceQuoteResponse(BaseSchema):
    duration_minutes: int
    price_paise: int
    pricing_details: PricingDetails


# ── App Users ─────────────────────────────────────────────────

def _lowercase(value: Optional[str]) -> Optional[str]:
    return value.lower() if value is not None else None


def _empty_to_none(value: Any) -> Any:
    return None if value == "" else value


class AppUserCreate(CamelSchema):
    auth_user_id: uuid.UUID
    name: RequiredText
    email: EmailStr
    role: AppUserRole
    phone: Optional[PhoneNumber] = None
    status: AppUserStatus = AppUserStatus.ACTIVE.value

    lowercase_email = field_validator("email")(_lowercase)
    empty_phone_is_none = field_validator("phone", mode="before")(_empty_to_none)


class AppUserUpdate(CamelSchema):
    """Partial edit; phone may be cleared with null or ""."""
    name: RequiredText = None
    email: EmailStr = None
    phone: Optional[PhoneNumber] = None
    role: AppUserRole = None
    status: AppUserStatus = None

    lowercase_email = field_validator("email")(_lowercase)
    empty_phone_is_none = field_validator("phone", mode="before")(_empty_to_none)


class AppUserResponse(CamelSchema):
    id: int
    auth_user_id: uuid.UUID
    name: str
    email: str
    phone: Optional[str] = None
    role: str
    status: str
    created_at: datetime
    updated_at: datetime


class AppUserListResponse(BaseSchema):
    data: List[AppUserResponse]
    pagination: Pagination


class AppUserDeletedResponse(BaseSchema):
    message: str
    data: AppUserResponse
