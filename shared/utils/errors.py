"""
shared/utils/errors.py
API error type rendered as {"error": ..., "code": ...} by the app's exception handlers,
plus helpers that turn bad ids and failed request schemas into it.
"""

import re
from typing import List, Optional, Type

from fastapi import HTTPException
from pydantic import BaseModel, ValidationError

_ID_PATTERN = re.compile(r"-?[0-9]+")


class APIError(HTTPException):
    """HTTPException carrying an optional machine-readable error code."""

    def __init__(self, status_code: int, error: str, code: Optional[str] = None):
        super().__init__(status_code=status_code, detail=error)
        self.code = code

    def to_dict(self) -> dict:
        body = {"error": self.detail}
        if self.code:
            body["code"] = self.code
        return body


def parse_id(raw: str, error: str = "Valid ID is required") -> int:
    """Parse a path id made of ASCII digits (optionally signed) or raise 400 INVALID_ID."""
    if not isinstance(raw, str) or not _ID_PATTERN.fullmatch(raw):
        raise APIError(400, error, "INVALID_ID")
    return int(raw)


def error_fields(exc: ValidationError, model: Type[BaseModel]) -> List[Optional[str]]:
    """
    Field names of each validation error, in the order pydantic reported them.
    Errors against the body as a whole (wrong top-level type) give None.
    """
    by_key = {}
    for name, field in model.model_fields.items():
        by_key[name] = name
        if field.alias:
            by_key[field.alias] = name

    fields = []
    for err in exc.errors():
        loc = err.get("loc") or ()
        fields.append(by_key.get(loc[0]) if loc else None)
    return fields
