from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import date, datetime
from typing import List, Optional, Union

from hris.models.request_status import RequestStatus
from hris.schemas.employee import EmployeeBrief

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class TripEventIn(BaseModel):
    event_name: str = Field(..., min_length=1)
    agenda: Optional[str] = None
    start_date: date
    end_date: date
    start_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    end_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    location: Optional[str] = None


class ParticipantRef(BaseModel):
    employee_id: int


class BusinessTripCreate(BaseModel):
    destination: str = Field(..., min_length=1)
    start_date: date
    end_date: date
    events: List[TripEventIn] = Field(..., min_length=1)
    # Either bare employee ids or {"employee_id": ...} objects
    participants: List[Union[int, ParticipantRef]] = []

    @field_validator("participants")
    @classmethod
    def participant_ids(cls, v):
        ids = []
        for item in v:
            employee_id = item.employee_id if isinstance(item, ParticipantRef) else item
            if employee_id not in ids:
                ids.append(employee_id)
        return ids


class TripRejectRequest(BaseModel):
    rejection_reason: Optional[str] = None


class TripEventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    event_name: str
    agenda: Optional[str] = None
    start_date: date
    end_date: date
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    location: Optional[str] = None


class TripParticipantOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    employee: Optional[EmployeeBrief] = None


class BusinessTripOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    destination: str
    start_date: date
    end_date: date
    status: RequestStatus
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None

    employee: Optional[EmployeeBrief] = None
    approved_by_user: Optional[EmployeeBrief] = Field(None, validation_alias="approver")
    events: List[TripEventOut] = []
    participants: List[TripParticipantOut] = []
