"""
shared/middleware/auth.py
Session resolution and role checks as FastAPI dependencies.

The session resolver is an injected object: the default one trusts a bearer
JWT minted by the auth provider, and tests swap it through
app.dependency_overrides[get_session_resolver].
"""

import uuid
from abc import ABC, abstractmethod
from typing import List, Optional

from fastapi import Depends, Request
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import Headers

from config.database import get_db
from shared.models.models import Role, User, UserRole
from shared.utils.errors import APIError
from shared.utils.security import verify_access_token


class SessionResolver(ABC):
    """Resolves inbound request headers to the signed-in user, or None."""

    @abstractmethod
    async def get_session(self, headers: Headers, db: AsyncSession) -> Optional[User]:
        ...


class BearerSessionResolver(SessionResolver):
    """Reads `Authorization: Bearer <jwt>` and loads the user named by `sub`."""

    async def get_session(self, headers: Headers, db: AsyncSession) -> Optional[User]:
        scheme, _, token = headers.get("Authorization", "").partition(" ")
        if scheme.lower() != "bearer" or not token:
            return None

        try:
            payload = verify_access_token(token)
            user_id = uuid.UUID(str(payload["sub"]))
        except (JWTError, KeyError, ValueError):
            return None

        user = await db.scalar(select(User).where(User.id == user_id))
        if not user or not user.is_active:
            return None
        return user


session_resolver = BearerSessionResolver()


def get_session_resolver() -> SessionResolver:
    return session_resolver


# ── Role queries ──────────────────────────────────────────────

async def has_role(db: AsyncSession, user_id: uuid.UUID, role: str) -> bool:
    result = await db.execute(
        select(UserRole.id)
        .where(UserRole.user_id == user_id, UserRole.role == role)
        .limit(1)
    )
    return result.first() is not None


async def get_user_roles(db: AsyncSession, user_id: uuid.UUID) -> List[str]:
    result = await db.execute(select(UserRole.role).where(UserRole.user_id == user_id))
    return list(result.scalars().all())


async def ensure_role(db: AsyncSession, user: User, role: str, error: str) -> None:
    """Raise 403 unless the user holds the role."""
    if not await has_role(db, user.id, role):
        raise APIError(403, error)


# ── Dependencies ──────────────────────────────────────────────

async def get_optional_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
    resolver: SessionResolver = Depends(get_session_resolver),
) -> Optional[User]:
    """Returns the session user if there is one. For public endpoints."""
    return await resolver.get_session(request.headers, db)


async def get_current_user(
    user: Optional[User] = Depends(get_optional_user),
) -> User:
    if user is None:
        raise APIError(401, "Authentication required")
    return user


class RoleRequired:
    """Dependency factory for role-based access control against user_roles."""

    def __init__(self, role: Role, error: str):
        self.role = role
        self.error = error

    async def __call__(
        self,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
    ) -> User:
        await ensure_role(db, current_user, self.role.value, self.error)
        return current_user


# Convenience role dependencies
require_owner = RoleRequired(Role.OWNER, "Owner role required")
require_admin = RoleRequired(Role.ADMIN, "Admin access required")
