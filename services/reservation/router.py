"""
services/reservation/router.py
Reservation price quotes. Nothing is booked or persisted here; slot
accounting and payment belong to other services.
"""

import math

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError

from services.location.store import LocationStore, get_location_store
from services.reservation.pricing import quote_price
from shared.schemas.schemas import PriceQuoteRequest, PriceQuoteResponse, PricingDetails
from shared.utils.errors import APIError, error_fields
from shared.utils.request import read_json_body

router = APIRouter(prefix="/reservations", tags=["Reservations"])

QUOTE_ERRORS = {
    "location_id": ("Valid location_id is required", "INVALID_LOCATION_ID"),
    "start_time": ("Valid start_time is required (ISO 8601 with offset)", "INVALID_START_TIME"),
    "end_time": ("Valid end_time is required (ISO 8601 with offset)", "INVALID_END_TIME"),
}


@router.post("/price", response_model=PriceQuoteResponse)
async def quote_reservation_price(
    request: Request,
    store: LocationStore = Depends(get_location_store),
):
    """
    Price a stay at an approved location.
    Body: {"location_id", "start_time", "end_time"} with ISO 8601 timestamps.
    """
    try:
        data = PriceQuoteRequest.model_validate(await read_json_body(request))
    except ValidationError as exc:
        field = error_fields(exc, PriceQuoteRequest)[0]
        error, code = QUOTE_ERRORS.get(field, QUOTE_ERRORS["location_id"])
        raise APIError(400, error, code)

    if data.end_time <= data.start_time:
        raise APIError(400, "end_time must be after start_time", "INVALID_TIME_RANGE")

    location = await store.get(data.location_id)
    if location is None:
        raise APIError(404, "Location not found", "LOCATION_NOT_FOUND")
    if not location.approved:
        raise APIError(400, "Location not approved", "LOCATION_NOT_APPROVED")

    duration_minutes = math.ceil((data.end_time - data.start_time).total_seconds() / 60)
    quote = quote_price(
        duration_minutes,
        location.pricing_mode,
        location.base_price_per_hour_paise,
        location.slab_json,
    )

    return PriceQuoteResponse(
        duration_minutes=quote.duration_minutes,
        price_paise=quote.price_paise,
        pricing_details=PricingDetails(
            mode=quote.mode,
            applied_rate=quote.applied_rate,
            calculation_method=quote.calculation_method,
        ),
    )
