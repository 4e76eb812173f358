"""
services/location/router.py
Parking locations: public browse/search, owner listing management,
admin approval queue, and the public availability read.

Unapproved listings are hidden from every public read: a missing id and an
unapproved id produce the same 404.
"""

import logging
import math
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_db
from config.settings import settings
from services.location.approval import approval_change
from services.location.geo import haversine_distance, walking_eta_minutes
from services.location.store import LocationStore, get_location_store
from services.location.validation import validate_location_edit, validate_new_location
from shared.middleware.auth import (
    ensure_role,
    get_current_user,
    has_role,
    require_admin,
    require_owner,
)
from shared.models.models import Role, User
from shared.schemas.schemas import (
    AvailabilityResponse,
    LocationDetailResponse,
    LocationListItem,
    LocationListResponse,
    LocationResponse,
    NearbyLocationResponse,
    OwnerSummary,
    Pagination,
    PendingLocationResponse,
)
from shared.utils.errors import APIError, parse_id
from shared.utils.request import read_json_body

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/locations", tags=["Locations"])


def _not_found(error: str = "Location not found") -> APIError:
    return APIError(404, error, "LOCATION_NOT_FOUND")


# ── Public Browse ─────────────────────────────────────────────

@router.get("", response_model=LocationListResponse)
async def list_locations(
    city: Optional[str] = Query(None),
    q: Optional[str] = Query(None, description="Substring of title or address"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, alias="pageSize"),
    store: LocationStore = Depends(get_location_store),
):
    """Approved listings, newest first. pageSize is capped at LOCATIONS_PAGE_SIZE_MAX."""
    page_size = min(page_size, settings.LOCATIONS_PAGE_SIZE_MAX)
    rows, total = await store.list_approved(page, page_size, city=city, search=q)

    return LocationListResponse(
        data=[
            LocationListItem(**LocationResponse.model_validate(loc).model_dump(), owner_name=owner_name)
            for loc, owner_name in rows
        ],
        pagination=Pagination(
            page=page,
            page_size=page_size,
            total=total,
            total_pages=-(-total // page_size),  # ceiling division
        ),
    )


@router.get("/nearby", response_model=List[NearbyLocationResponse])
async def nearby_locations(
    lat: Optional[str] = Query(None),
    lng: Optional[str] = Query(None),
    radius_meters: Optional[str] = Query(None, alias="radiusMeters"),
    store: LocationStore = Depends(get_location_store),
):
    """
    Approved listings with free slots within radiusMeters of (lat, lng),
    closest first, with walking ETA.
    """
    if not lat or not lng:
        raise APIError(400, "lat and lng are required", "MISSING_COORDINATES")

    try:
        latitude, longitude = float(lat), float(lng)
    except ValueError:
        raise APIError(400, "lat and lng must be valid numbers", "INVALID_COORDINATES")
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        raise APIError(400, "lat and lng must be valid numbers", "INVALID_COORDINATES")

    if not -90 <= latitude <= 90:
        raise APIError(400, "lat must be between -90 and 90", "INVALID_LATITUDE")
    if not -180 <= longitude <= 180:
        raise APIError(400, "lng must be between -180 and 180", "INVALID_LONGITUDE")

    radius = settings.NEARBY_DEFAULT_RADIUS_METERS
    if radius_meters:
        try:
            radius = float(radius_meters)
        except ValueError:
            radius = math.nan
        if not radius > 0:
            raise APIError(400, "radiusMeters must be a positive number", "INVALID_RADIUS")
        radius = min(radius, settings.NEARBY_MAX_RADIUS_METERS)

    candidates = await store.approved_with_free_slots(settings.NEARBY_CANDIDATE_LIMIT)

    results = []
    for loc in candidates:
        distance = haversine_distance(latitude, longitude, loc.latitude, loc.longitude)
        if round(distance) > radius:
            continue
        results.append(NearbyLocationResponse(
            **LocationResponse.model_validate(loc).model_dump(),
            distance_meters=round(distance),
            eta_minutes=walking_eta_minutes(distance, settings.WALKING_SPEED_KMH),
        ))

    results.sort(key=lambda r: r.distance_meters)
    return results[:settings.NEARBY_RESULT_LIMIT]


# ── Owner Listing Management ──────────────────────────────────

@router.post("", response_model=LocationResponse, status_code=status.HTTP_201_CREATED)
async def create_location(
    request: Request,
    current_user: User = Depends(require_owner),
    store: LocationStore = Depends(get_location_store),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a listing owned by the caller. It starts unapproved with every slot free;
    an admin must approve it before it becomes publicly visible.
    """
    values = validate_new_location(await read_json_body(request))
    location = await store.create(current_user.id, values, datetime.now(timezone.utc))
    await db.commit()

    logger.info(f"Location {location.id} created by owner {current_user.id}")
    return LocationResponse.model_validate(location)


# ── Admin Approval Queue ──────────────────────────────────────

@router.get("/pending", response_model=List[PendingLocationResponse])
async def get_pending_locations(
    current_user: User = Depends(require_admin),
    store: LocationStore = Depends(get_location_store),
):
    """Unapproved listings with their owner, newest first."""
    rows = await store.list_pending()
    return [
        PendingLocationResponse(
            **LocationResponse.model_validate(loc).model_dump(),
            owner=OwnerSummary.model_validate(owner),
        )
        for loc, owner in rows
    ]


@router.post("/{location_id}/approve", response_model=LocationResponse)
async def approve_location(
    location_id: str,
    request: Request,
    current_user: User = Depends(get_current_user),
    store: LocationStore = Depends(get_location_store),
    db: AsyncSession = Depends(get_db),
):
    """
    Approve or unapprove a listing. Body: {"approve": true|false}.
    - approve=true records the approving admin and time
    - approve=false clears both
    Existence check and update are separate statements; a delete in between
    is reported as UPDATE_FAILED.
    """
    parsed_id = parse_id(location_id, "Valid location ID is required")

    body = await read_json_body(request, "approve field must be a boolean", "INVALID_APPROVE_FIELD")
    approve = body.get("approve") if isinstance(body, dict) else None
    if not isinstance(approve, bool):
        raise APIError(400, "approve field must be a boolean", "INVALID_APPROVE_FIELD")

    await ensure_role(db, current_user, Role.ADMIN.value, "Admin role required")

    if await store.get(parsed_id) is None:
        raise _not_found()

    now = datetime.now(timezone.utc)
    updated = await store.apply_approval(
        parsed_id, approval_change(approve, current_user.id, now), now
    )
    if updated is None:
        logger.error(f"Approval update matched no rows for location {parsed_id}")
        raise APIError(500, "Failed to update location", "UPDATE_FAILED")

    await db.commit()
    logger.info(
        f"Location {parsed_id} {'approved' if approve else 'unapproved'} by admin {current_user.id}"
    )
    return LocationResponse.model_validate(updated)


# ── Single Location ───────────────────────────────────────────

@router.get("/{location_id}/availability", response_model=AvailabilityResponse)
async def get_location_availability(
    location_id: str,
    store: LocationStore = Depends(get_location_store),
):
    """Public read of free slots. Only the two projected fields are returned."""
    parsed_id = parse_id(location_id)

    row = await store.get_availability(parsed_id)
    if row is None:
        raise _not_found("Location not found or not approved")

    return AvailabilityResponse(available_slots=row.available_slots, updated_at=row.updated_at)


@router.get("/{location_id}", response_model=LocationDetailResponse)
async def get_location(
    location_id: str,
    current_user: User = Depends(get_current_user),
    store: LocationStore = Depends(get_location_store),
    db: AsyncSession = Depends(get_db),
):
    """Full listing with owner name/email. Unapproved listings are visible to their owner and admins only."""
    parsed_id = parse_id(location_id)

    found = await store.get_with_owner(parsed_id)
    if found is None:
        raise _not_found()
    location, owner = found

    if (
        not location.approved
        and location.owner_user_id != current_user.id
        and not await has_role(db, current_user.id, Role.ADMIN.value)
    ):
        raise _not_found()

    return LocationDetailResponse(
        **LocationResponse.model_validate(location).model_dump(),
        owner_name=owner.name if owner else None,
        owner_email=owner.email if owner else None,
    )


@router.patch("/{location_id}", response_model=LocationResponse)
async def update_location(
    location_id: str,
    request: Request,
    current_user: User = Depends(get_current_user),
    store: LocationStore = Depends(get_location_store),
    db: AsyncSession = Depends(get_db),
):
    """
    Edit a listing's details, pricing, or free-slot count.
    Allowed for the owner of the listing and for admins.
    """
    parsed_id = parse_id(location_id)

    location = await store.get(parsed_id)
    if location is None:
        raise _not_found()

    if location.owner_user_id != current_user.id and not await has_role(
        db, current_user.id, Role.ADMIN.value
    ):
        raise APIError(403, "Permission denied")

    updates = validate_location_edit(await read_json_body(request), location.total_slots)
    updates["updated_at"] = datetime.now(timezone.utc)

    updated = await store.update_fields(parsed_id, updates)
    if updated is None:
        raise _not_found()

    await db.commit()
    return LocationResponse.model_validate(updated)
