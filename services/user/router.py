"""
services/user/router.py
Admin management of app user profiles (app_users): search, create, edit, delete.

Every endpoint requires the admin role. A profile points at exactly one
auth-provider account, and emails are unique and stored lowercased.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Type

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import BaseModel, ValidationError
from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_db
from config.settings import settings
from shared.middleware.auth import require_admin
from shared.models.models import AppUser, AppUserRole, AppUserStatus, User
from shared.schemas.schemas import (
    AppUserCreate,
    AppUserDeletedResponse,
    AppUserListResponse,
    AppUserResponse,
    AppUserUpdate,
    Pagination,
)
from shared.utils.errors import APIError, error_fields, parse_id
from shared.utils.request import read_json_body

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])

# field -> (message, code)
APP_USER_ERRORS = {
    "auth_user_id": ("authUserId is required and must be a valid user ID", "MISSING_AUTH_USER_ID"),
    "name": ("Name is required and must be non-empty", "INVALID_NAME"),
    "email": ("Valid email is required", "INVALID_EMAIL"),
    "role": ("Role must be one of: customer, client, admin", "INVALID_ROLE"),
    "phone": ("Phone must be in +91 format (e.g., +919876543210)", "INVALID_PHONE"),
    "status": ("Status must be one of: active, inactive", "INVALID_STATUS"),
}


def _validate(schema: Type[BaseModel], body) -> BaseModel:
    """First failing field decides the error code."""
    try:
        return schema.model_validate(body)
    except ValidationError as exc:
        field = error_fields(exc, schema)[0]
        if field is None:
            raise APIError(400, "Request body must be a JSON object", "VALIDATION_ERROR")
        error, code = APP_USER_ERRORS[field]
        raise APIError(400, error, code)


def _not_found() -> APIError:
    return APIError(404, "App user not found", "USER_NOT_FOUND")


async def _get_app_user(db: AsyncSession, app_user_id: int) -> Optional[AppUser]:
    result = await db.execute(select(AppUser).where(AppUser.id == app_user_id))
    return result.scalar_one_or_none()


async def _email_taken(db: AsyncSession, email: str, exclude_id: Optional[int] = None) -> bool:
    query = select(AppUser.id).where(AppUser.email == email)
    if exclude_id is not None:
        query = query.where(AppUser.id != exclude_id)
    return await db.scalar(query.limit(1)) is not None


# ── Search ─────────────────────────────────────────────────────────────────────

@router.get("", response_model=AppUserListResponse)
async def list_app_users(
    page: int = Query(1),
    page_size: int = Query(10, alias="pageSize"),
    search: Optional[str] = Query(None, description="Substring of name or email"),
    role: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Newest first. Unknown role/status filter values are ignored."""
    if page < 1 or page_size < 1:
        raise APIError(400, "Page and pageSize must be positive integers", "INVALID_PAGINATION")
    page_size = min(page_size, settings.USERS_PAGE_SIZE_MAX)

    conditions = []
    if search:
        pattern = f"%{search}%"
        conditions.append(or_(AppUser.name.ilike(pattern), AppUser.email.ilike(pattern)))
    if role in {r.value for r in AppUserRole}:
        conditions.append(AppUser.role == role)
    if status_filter in {s.value for s in AppUserStatus}:
        conditions.append(AppUser.status == status_filter)

    total = await db.scalar(select(func.count()).select_from(AppUser).where(*conditions)) or 0
    result = await db.execute(
        select(AppUser)
        .where(*conditions)
        .order_by(AppUser.created_at.desc(), AppUser.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )

    return AppUserListResponse(
        data=[AppUserResponse.model_validate(u) for u in result.scalars().all()],
        pagination=Pagination(
            page=page,
            page_size=page_size,
            total=total,
            total_pages=-(-total // page_size),  # ceiling division
        ),
    )


# ── Create ─────────────────────────────────────────────────────────────────────

@router.post("", response_model=AppUserResponse, status_code=status.HTTP_201_CREATED)
async def create_app_user(
    request: Request,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    data: AppUserCreate = _validate(AppUserCreate, await read_json_body(request))

    if await db.scalar(select(User.id).where(User.id == data.auth_user_id)) is None:
        raise APIError(400, "Referenced user does not exist", "USER_NOT_FOUND")
    if await _email_taken(db, data.email):
        raise APIError(409, "Email already exists", "EMAIL_DUPLICATE")
    if await db.scalar(select(AppUser.id).where(AppUser.auth_user_id == data.auth_user_id)):
        raise APIError(409, "User is already registered in app_users", "AUTH_USER_DUPLICATE")

    now = datetime.now(timezone.utc)
    app_user = AppUser(**data.model_dump(), created_at=now, updated_at=now)
    db.add(app_user)
    await db.flush()
    await db.refresh(app_user)
    await db.commit()

    logger.info(f"App user {app_user.id} created for {data.auth_user_id} by admin {current_user.id}")
    return AppUserResponse.model_validate(app_user)


# ── Single Profile ─────────────────────────────────────────────────────────────

@router.get("/{app_user_id}", response_model=AppUserResponse)
async def get_app_user(
    app_user_id: str,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    app_user = await _get_app_user(db, parse_id(app_user_id))
    if app_user is None:
        raise _not_found()
    return AppUserResponse.model_validate(app_user)


@router.patch("/{app_user_id}", response_model=AppUserResponse)
async def update_app_user(
    app_user_id: str,
    request: Request,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Partial edit of name, email, phone, role or status."""
    parsed_id = parse_id(app_user_id)
    data: AppUserUpdate = _validate(AppUserUpdate, await read_json_body(request))

    updates = data.model_dump(exclude_unset=True)
    if not updates:
        raise APIError(400, "No valid fields to update", "NO_UPDATES")

    if await _get_app_user(db, parsed_id) is None:
        raise _not_found()
    if "email" in updates and await _email_taken(db, updates["email"], exclude_id=parsed_id):
        raise APIError(409, "Email already exists", "EMAIL_DUPLICATE")

    updates["updated_at"] = datetime.now(timezone.utc)
    result = await db.execute(
        update(AppUser)
        .where(AppUser.id == parsed_id)
        .values(**updates)
        .returning(AppUser)
        .execution_options(populate_existing=True)
    )
    updated = result.scalar_one_or_none()
    if updated is None:
        raise _not_found()

    await db.commit()
    logger.info(f"App user {parsed_id} updated by admin {current_user.id}: {sorted(updates)}")
    return AppUserResponse.model_validate(updated)


@router.delete("/{app_user_id}", response_model=AppUserDeletedResponse)
async def delete_app_user(
    app_user_id: str,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Removes the profile only; the auth-provider account is untouched."""
    app_user = await _get_app_user(db, parse_id(app_user_id))
    if app_user is None:
        raise _not_found()

    deleted = AppUserResponse.model_validate(app_user)
    await db.delete(app_user)
    await db.commit()

    logger.info(f"App user {deleted.id} deleted by admin {current_user.id}")
    return AppUserDeletedResponse(message="App user deleted successfully", data=deleted)
