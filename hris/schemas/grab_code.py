from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import date, datetime
from typing import List, Optional

from hris.core.security import decrypt_codes
from hris.models.grab_code_request import GrabService
from hris.models.request_status import RequestStatus
from hris.schemas.employee import EmployeeBrief


class GrabCodeCreate(BaseModel):
    service_needed: GrabService
    purpose: str = Field(..., min_length=1)
    counterpart_name: str = Field(..., min_length=1)
    usage_date: date
    usage_time: str = Field(..., pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    meeting_location: str = Field(..., min_length=1)
    code_needed: int = Field(..., gt=0)


class GrabCodeStatusUpdate(BaseModel):
    status: RequestStatus
    approved_codes: Optional[List[str]] = None
    rejection_reason: Optional[str] = None


class GrabCodeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    service_needed: GrabService
    purpose: str
    counterpart_name: str
    usage_date: date
    usage_time: str
    meeting_location: str
    code_needed: int
    status: RequestStatus
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    approved_codes: List[str] = []
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None

    employee: Optional[EmployeeBrief] = None
    approved_by_user: Optional[EmployeeBrief] = Field(None, validation_alias="approver")

    @field_validator("approved_codes", mode="before")
    @classmethod
    def decrypt_stored_codes(cls, v):
        # Stored as a Fernet token; lists pass through untouched
        if v is None or isinstance(v, str):
            return decrypt_codes(v)
        return v
