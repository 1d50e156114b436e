"""
Shared status vocabulary for the leave, grab-code and business-trip workflows.
"""
import enum
from datetime import datetime, timezone


class RequestStatus(str, enum.Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    CANCELLED = "Cancelled"


class RequestKind(str, enum.Enum):
    LEAVE = "leave"
    GRAB_CODE = "grab"
    BUSINESS_TRIP = "biztrip"


def utcnow() -> datetime:
    """Python-side timestamp default; keeps sub-second ordering on every backend."""
    return datetime.now(timezone.utc)
