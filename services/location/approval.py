"""
services/location/approval.py
Approval state changes as a tagged value mapped onto parking_locations columns.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Union


@dataclass(frozen=True)
class Approve:
    by: uuid.UUID
    at: datetime


@dataclass(frozen=True)
class Unapprove:
    pass


ApprovalChange = Union[Approve, Unapprove]


def approval_change(approve: bool, admin_id: uuid.UUID, now: datetime) -> ApprovalChange:
    return Approve(by=admin_id, at=now) if approve else Unapprove()


def approval_values(change: ApprovalChange, now: datetime) -> dict:
    """Column assignments for an approval change. updated_at always moves to `now`."""
    if isinstance(change, Approve):
        values = {"approved": True, "approved_by": change.by, "approved_at": change.at}
    elif isinstance(change, Unapprove):
        values = {"approved": False, "approved_by": None, "approved_at": None}
    else:
        raise TypeError(f"Unknown approval change: {change!r}")
    values["updated_at"] = now
    return values
