"""
services/roles/router.py
Role lookup for the signed-in user. Portals use it to decide which views to show.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_db
from shared.middleware.auth import get_current_user, get_user_roles
from shared.models.models import User
from shared.schemas.schemas import RolesResponse

router = APIRouter(prefix="/roles", tags=["Roles"])


@router.get("/me", response_model=RolesResponse)
async def get_my_roles(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Every role granted to the caller, in table order. No roles is an empty list, not an error."""
    return RolesResponse(roles=await get_user_roles(db, current_user.id))
