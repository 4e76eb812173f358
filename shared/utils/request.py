"""
shared/utils/request.py
Reads JSON request bodies inside handlers, after authentication has run.
"""

from typing import Any

from fastapi import Request

from shared.utils.errors import APIError


async def read_json_body(
    request: Request,
    error: str = "Request body must be valid JSON",
    code: str = "VALIDATION_ERROR",
) -> Any:
    try:
        return await request.json()
    except ValueError:
        raise APIError(400, error, code)
