"""
tests/test_roles.py
Tests for GET /roles/me and session resolver injection.
"""

from typing import Optional

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from main import app
from shared.middleware.auth import SessionResolver, get_session_resolver
from shared.models.models import Role, User, UserRole
from tests.conftest import auth_headers, make_user


@pytest.mark.asyncio
async def test_roles_me_requires_session(client: AsyncClient):
    response = await client.get("/roles/me")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_roles_me_single_role(client: AsyncClient, admin_user: User):
    response = await client.get("/roles/me", headers=auth_headers(admin_user))
    assert response.status_code == 200
    assert response.json() == {"roles": ["admin"]}


@pytest.mark.asyncio
async def test_roles_me_multiple_roles(client: AsyncClient, db: AsyncSession):
    both = await make_user(db, "Owner Admin", Role.OWNER, Role.ADMIN)

    response = await client.get("/roles/me", headers=auth_headers(both))
    assert response.status_code == 200
    assert sorted(response.json()["roles"]) == ["admin", "owner"]


@pytest.mark.asyncio
async def test_roles_me_no_roles_is_empty_list(client: AsyncClient, db: AsyncSession):
    nobody = await make_user(db, "No Roles")

    response = await client.get("/roles/me", headers=auth_headers(nobody))
    assert response.status_code == 200
    assert response.json() == {"roles": []}


@pytest.mark.asyncio
async def test_roles_me_includes_unknown_role_names(client: AsyncClient, user: User, db: AsyncSession):
    db.add(UserRole(user_id=user.id, role="valet"))
    await db.commit()

    response = await client.get("/roles/me", headers=auth_headers(user))
    assert sorted(response.json()["roles"]) == ["customer", "valet"]


@pytest.mark.asyncio
async def test_injected_session_resolver(client: AsyncClient, owner_user: User):
    """Handlers use whatever resolver is injected, not the bearer-token default."""

    class FixedResolver(SessionResolver):
        async def get_session(self, headers, db) -> Optional[User]:
            return owner_user

    app.dependency_overrides[get_session_resolver] = FixedResolver

    response = await client.get("/roles/me")
    assert response.status_code == 200
    assert response.json() == {"roles": ["owner"]}


@pytest.mark.asyncio
async def test_resolver_failure_returns_500(client: AsyncClient):
    class BrokenResolver(SessionResolver):
        async def get_session(self, headers, db) -> Optional[User]:
            raise RuntimeError("session store unavailable")

    app.dependency_overrides[get_session_resolver] = BrokenResolver

    response = await client.get("/roles/me")
    assert response.status_code == 500
    assert response.json()["error"] == "Internal server error: session store unavailable"
