"""
services/location/store.py
Queries and updates against parking_locations.

Handlers receive a LocationStore through get_location_store, so a test can hand
them a different store without touching the database layer.
"""

import uuid
from datetime import datetime
from typing import List, Optional, Tuple

from fastapi import Depends
from sqlalchemy import func, or_, select, update
from sqlalchemy.engine import Row
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_db
from services.location.approval import ApprovalChange, approval_values
from shared.models.models import ParkingLocation, User


class LocationStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, location_id: int) -> Optional[ParkingLocation]:
        result = await self.db.execute(
            select(ParkingLocation).where(ParkingLocation.id == location_id).limit(1)
        )
        return result.scalar_one_or_none()

    async def get_with_owner(
        self, location_id: int
    ) -> Optional[Tuple[ParkingLocation, Optional[User]]]:
        result = await self.db.execute(
            select(ParkingLocation, User)
            .outerjoin(User, User.id == ParkingLocation.owner_user_id)
            .where(ParkingLocation.id == location_id)
            .limit(1)
        )
        row = result.first()
        return (row[0], row[1]) if row else None

    async def get_availability(self, location_id: int) -> Optional[Row]:
        """(available_slots, updated_at) of an approved location; None when missing or unapproved."""
        result = await self.db.execute(
            select(ParkingLocation.available_slots, ParkingLocation.updated_at)
            .where(ParkingLocation.id == location_id, ParkingLocation.approved == True)
            .limit(1)
        )
        return result.first()

    async def apply_approval(
        self, location_id: int, change: ApprovalChange, now: datetime
    ) -> Optional[ParkingLocation]:
        """Single UPDATE ... RETURNING. None when no row matched."""
        result = await self.db.execute(
            update(ParkingLocation)
            .where(ParkingLocation.id == location_id)
            .values(**approval_values(change, now))
            .returning(ParkingLocation)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def update_fields(
        self, location_id: int, values: dict
    ) -> Optional[ParkingLocation]:
        result = await self.db.execute(
            update(ParkingLocation)
            .where(ParkingLocation.id == location_id)
            .values(**values)
            .returning(ParkingLocation)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def create(self, owner_id: uuid.UUID, values: dict, now: datetime) -> ParkingLocation:
        location = ParkingLocation(
            owner_user_id=owner_id,
            available_slots=values["total_slots"],
            approved=False,
            created_at=now,
            updated_at=now,
            **values,
        )
        self.db.add(location)
        await self.db.flush()
        await self.db.refresh(location)
        return location

    async def list_approved(
        self,
        page: int,
        page_size: int,
        city: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Row], int]:
        """Approved listings with the owner's name, newest first, plus the total count."""
        conditions = [ParkingLocation.approved == True]
        if city:
            conditions.append(ParkingLocation.city == city)
        if search:
            pattern = f"%{search}%"
            conditions.append(or_(
                ParkingLocation.title.ilike(pattern),
                ParkingLocation.address.ilike(pattern),
            ))

        total = await self.db.scalar(
            select(func.count()).select_from(ParkingLocation).where(*conditions)
        )
        result = await self.db.execute(
            select(ParkingLocation, User.name)
            .outerjoin(User, User.id == ParkingLocation.owner_user_id)
            .where(*conditions)
            .order_by(ParkingLocation.created_at.desc(), ParkingLocation.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return list(result.all()), total or 0

    async def list_pending(self) -> List[Row]:
        """Unapproved listings joined to their owners, newest first."""
        result = await self.db.execute(
            select(ParkingLocation, User)
            .join(User, User.id == ParkingLocation.owner_user_id)
            .where(ParkingLocation.approved == False)
            .order_by(ParkingLocation.created_at.desc(), ParkingLocation.id.desc())
        )
        return list(result.all())

    async def approved_with_free_slots(self, limit: int) -> List[ParkingLocation]:
        result = await self.db.execute(
            select(ParkingLocation)
            .where(ParkingLocation.approved == True, ParkingLocation.available_slots > 0)
            .limit(limit)
        )
        return list(result.scalars().all())


def get_location_store(db: AsyncSession = Depends(get_db)) -> LocationStore:
    return LocationStore(db)
