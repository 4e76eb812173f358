"""
tests/test_nearby.py
Tests for GET /locations/nearby and the distance helpers behind it.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from services.location.geo import haversine_distance, walking_eta_minutes
from shared.models.models import User
from tests.conftest import make_location

# MG Road metro station, Bengaluru
ORIGIN = {"lat": 12.9755, "lng": 77.6069}


def test_haversine_zero_distance():
    assert haversine_distance(12.97, 77.60, 12.97, 77.60) == 0


def test_haversine_one_degree_latitude():
    assert haversine_distance(0, 0, 1, 0) == pytest.approx(111195, rel=1e-3)


def test_walking_eta():
    # 4.5 km/h is 75 m per minute
    assert walking_eta_minutes(750, 4.5) == 10
    assert walking_eta_minutes(0, 4.5) == 0


@pytest.mark.asyncio
async def test_nearby_sorted_and_bounded(
    client: AsyncClient,
    db: AsyncSession,
    owner_user: User,
):
    far = await make_location(db, owner_user, title="Far", latitude=12.9800, longitude=77.6069, approved=True)
    near = await make_location(db, owner_user, title="Near", latitude=12.9760, longitude=77.6069, approved=True)
    await make_location(db, owner_user, title="Out of range", latitude=13.0500, longitude=77.6069, approved=True)
    await make_location(db, owner_user, title="Full", latitude=12.9756, longitude=77.6069,
                        approved=True, available_slots=0)
    await make_location(db, owner_user, title="Unapproved", latitude=12.9756, longitude=77.6069)

    response = await client.get("/locations/nearby", params=ORIGIN)
    assert response.status_code == 200
    results = response.json()
    assert [r["id"] for r in results] == [near.id, far.id]
    assert results[0]["distance_meters"] < results[1]["distance_meters"] <= 1000
    assert results[0]["eta_minutes"] == round(results[0]["distance_meters"] / 75)
    assert "availableSlots" in results[0]


@pytest.mark.asyncio
async def test_nearby_radius_widens_results(
    client: AsyncClient,
    db: AsyncSession,
    owner_user: User,
):
    await make_location(db, owner_user, title="Three km", latitude=13.0025, longitude=77.6069, approved=True)

    narrow = await client.get("/locations/nearby", params=ORIGIN)
    assert narrow.json() == []

    wide = await client.get("/locations/nearby", params={**ORIGIN, "radiusMeters": 5000})
    assert [r["title"] for r in wide.json()] == ["Three km"]


@pytest.mark.asyncio
async def test_nearby_radius_is_capped(
    client: AsyncClient,
    db: AsyncSession,
    owner_user: User,
):
    await make_location(db, owner_user, title="Twenty km", latitude=13.1555, longitude=77.6069, approved=True)

    response = await client.get("/locations/nearby", params={**ORIGIN, "radiusMeters": 50000})
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
@pytest.mark.parametrize("params, code", [
    ({"lat": "12.9"}, "MISSING_COORDINATES"),
    ({"lat": "north", "lng": "77.6"}, "INVALID_COORDINATES"),
    ({"lat": "95", "lng": "77.6"}, "INVALID_LATITUDE"),
    ({"lat": "12.9", "lng": "-181"}, "INVALID_LONGITUDE"),
    ({"lat": "12.9", "lng": "77.6", "radiusMeters": "0"}, "INVALID_RADIUS"),
    ({"lat": "12.9", "lng": "77.6", "radiusMeters": "wide"}, "INVALID_RADIUS"),
])
async def test_nearby_validation(client: AsyncClient, params: dict, code: str):
    response = await client.get("/locations/nearby", params=params)
    assert response.status_code == 400
    assert response.json()["code"] == code
