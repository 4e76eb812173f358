"""
services/location/validation.py
Body validation for creating and editing parking locations.

Bodies are parsed with the LocationCreate / LocationUpdate schemas; pydantic's
errors are then mapped onto this API's {"error", "code"} shape. Create stops at
the first failing field, edit reports every failing field at once.
"""

from typing import Any, Dict, List

from pydantic import ValidationError

from shared.schemas.schemas import LocationCreate, LocationUpdate, slab_rows
from shared.utils.errors import APIError, error_fields

NOT_AN_OBJECT = "Request body must be a JSON object"

# field -> (message, code)
CREATE_ERRORS = {
    "title": ("Title is required and must be a non-empty string", "MISSING_REQUIRED_FIELD"),
    "address": ("Address is required and must be a non-empty string", "MISSING_REQUIRED_FIELD"),
    "city": ("City is required and must be a non-empty string", "MISSING_REQUIRED_FIELD"),
    "latitude": ("Latitude is required and must be a valid number", "INVALID_LATITUDE"),
    "longitude": ("Longitude is required and must be a valid number", "INVALID_LONGITUDE"),
    "total_slots": ("Total slots is required and must be a positive integer", "INVALID_TOTAL_SLOTS"),
    "pricing_mode": (
        "Pricing mode is required and must be one of: hourly, daily, slab",
        "INVALID_PRICING_MODE",
    ),
    "base_price_per_hour_paise": (
        "Base price per hour paise is required and must be a non-negative integer",
        "INVALID_BASE_PRICE",
    ),
    "photos": ("Photos must be a valid JSON array", "INVALID_PHOTOS"),
    "slab_json": (
        "Slab JSON must be a list of {minMinutes, maxMinutes, pricePaise} with whole-number values",
        "INVALID_SLAB_JSON",
    ),
}

EDIT_ERRORS = {
    "available_slots": "availableSlots must be a non-negative integer",
    "base_price_per_hour_paise": "basePricePerHourPaise must be a non-negative integer",
    "pricing_mode": "pricingMode must be one of: hourly, slab",
    "photos": "photos must be a valid JSON array",
    "slab_json": "slabJson must be a list of {minMinutes, maxMinutes, pricePaise}",
}


def validate_new_location(body: Any) -> Dict[str, Any]:
    """Validate a POST /locations body and return column values. Raises APIError(400)."""
    if isinstance(body, dict) and ("ownerUserId" in body or "owner_user_id" in body):
        raise APIError(400, "Owner user ID cannot be provided in request body", "USER_ID_NOT_ALLOWED")

    try:
        data = LocationCreate.model_validate(body)
    except ValidationError as exc:
        field = error_fields(exc, LocationCreate)[0]
        if field is None:
            raise APIError(400, NOT_AN_OBJECT, "VALIDATION_ERROR")
        error, code = CREATE_ERRORS.get(
            field, (f"{LocationCreate.model_fields[field].alias} must be a string", "VALIDATION_ERROR")
        )
        raise APIError(400, error, code)

    values = data.model_dump(exclude={"slab_json"})
    values["slab_json"] = slab_rows(data.slab_json)
    return values


def _edit_message(field: str, err: dict) -> str:
    if field == "available_slots" and err["type"] == "value_error":
        return str(err["ctx"]["error"])
    if field == "title" and err["type"] == "string_too_short":
        return "title cannot be empty"
    return EDIT_ERRORS.get(field) or f"{LocationUpdate.model_fields[field].alias} must be a string"


def validate_location_edit(body: Any, total_slots: int) -> Dict[str, Any]:
    """
    Validate a PATCH /locations/{id} body against the editable fields.
    Unknown keys are ignored; every problem is collected into one 400 VALIDATION_ERROR.
    """
    try:
        data = LocationUpdate.model_validate(body, context={"total_slots": total_slots})
    except ValidationError as exc:
        messages: List[str] = []
        for field, err in zip(error_fields(exc, LocationUpdate), exc.errors()):
            message = NOT_AN_OBJECT if field is None else _edit_message(field, err)
            if message not in messages:
                messages.append(message)
        raise APIError(400, ", ".join(messages), "VALIDATION_ERROR")

    updates = {
        column: value
        for column, value in data.model_dump(exclude_unset=True).items()
        if value is not None
    }
    if "slab_json" in updates:
        updates["slab_json"] = slab_rows(data.slab_json)
    if not updates:
        raise APIError(400, "No valid fields to update", "NO_UPDATES")
    return updates
