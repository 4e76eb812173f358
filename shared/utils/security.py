"""
shared/utils/security.py
JWT creation/verification for session bearer tokens.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from config.settings import settings


def create_access_token(
    user_id: str,
    email: str,
    extra: Optional[dict] = None,
    expires_minutes: Optional[int] = None,
) -> str:
    """
    Create a signed JWT access token for a user.
    The auth provider issues these in deployment; tests mint them directly.
    """
    now = datetime.now(timezone.utc)
    minutes = settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES if expires_minutes is None else expires_minutes
    expire = now + timedelta(minutes=minutes)

    payload = {
        "sub": str(user_id),
        "email": email,
        "jti": str(uuid.uuid4()),
        "iat": now,
        "exp": expire,
        "type": "access",
        **(extra or {}),
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def verify_access_token(token: str) -> dict:
    """
    Decode and verify a JWT access token.
    Raises JWTError on invalid/expired token.
    """
    payload = jwt.decode(
        token,
        settings.JWT_SECRET_KEY,
        algorithms=[settings.JWT_ALGORITHM],
    )
    if payload.get("type") != "access":
        raise JWTError("Invalid token type")
    return payload
