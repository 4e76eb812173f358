"""
shared/models/models.py
All SQLAlchemy ORM models for the Parking Reservation Platform.
Column types stay portable (PostgreSQL in deployment, SQLite in tests).
"""

import uuid
from datetime import datetime
from enum import Enum as PyEnum
from typing import Any, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from config.database import Base


# ── Enumerations ──────────────────────────────────────────────

class Role(str, PyEnum):
    """Known role names. The user_roles.role column itself stays an open string."""
    CUSTOMER = "customer"
    OWNER = "owner"
    ADMIN = "admin"


class PricingMode(str, PyEnum):
    HOURLY = "hourly"
    DAILY = "daily"
    SLAB = "slab"


class AppUserRole(str, PyEnum):
    """Role recorded on an app_users profile row."""
    CUSTOMER = "customer"
    CLIENT = "client"
    ADMIN = "admin"


class AppUserStatus(str, PyEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"


# ── Mixins ────────────────────────────────────────────────────

class TimestampMixin:
    """Adds created_at and updated_at to any model."""
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


# ── Models ────────────────────────────────────────────────────

class User(TimestampMixin, Base):
    """Account provisioned by the auth provider. Read-only from this API."""
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class UserRole(TimestampMixin, Base):
    """One role grant per row; a user may hold several."""
    __tablename__ = "user_roles"
    __table_args__ = (
        UniqueConstraint("user_id", "role", name="uq_user_role"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[str] = mapped_column(String(50), nullable=False)


class ParkingLocation(TimestampMixin, Base):
    """A parking lot listing. Publicly discoverable only once approved."""
    __tablename__ = "parking_locations"
    __table_args__ = (
        CheckConstraint("total_slots >= 0", name="ck_total_slots_non_negative"),
        CheckConstraint("base_price_per_hour_paise >= 0", name="ck_base_price_non_negative"),
        Index("ix_parking_locations_approved_created", "approved", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    address: Mapped[Optional[str]] = mapped_column(String(500))
    city: Mapped[Optional[str]] = mapped_column(String(100), index=True)
    state: Mapped[Optional[str]] = mapped_column(String(100))
    pincode: Mapped[Optional[str]] = mapped_column(String(10))
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    photos: Mapped[Optional[List[Any]]] = mapped_column(JSON)

    # Capacity
    total_slots: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    available_slots: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    # Pricing (paise)
    pricing_mode: Mapped[str] = mapped_column(
        String(20), default=PricingMode.HOURLY.value, nullable=False
    )
    base_price_per_hour_paise: Mapped[int] = mapped_column(Integer, default=1000, nullable=False)
    slab_json: Mapped[Optional[Any]] = mapped_column(JSON)

    # Approval
    approved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    approved_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True
    )
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))


class AppUser(TimestampMixin, Base):
    """Admin-managed profile for an auth-provider account: contact details, role and status."""
    __tablename__ = "app_users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    auth_user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20))
    role: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(20), default=AppUserStatus.ACTIVE.value, nullable=False, index=True
    )
