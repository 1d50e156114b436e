from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import date, datetime
from typing import List, Optional

from hris.models.leave_type import LeaveTypeEffect
from hris.models.request_status import RequestStatus
from hris.schemas.employee import EmployeeBrief


class LeaveTypeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1)
    max_days_per_year: Optional[int] = Field(None, ge=0)
    requires_approval: bool = True
    requires_document: bool = False
    is_active: bool = True
    type: LeaveTypeEffect = LeaveTypeEffect.SUBTRACTION
    # Decimals allowed (e.g. 0.5 for half days)
    value: float = Field(0, ge=0)


class LeaveTypeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1)
    max_days_per_year: Optional[int] = Field(None, ge=0)
    requires_approval: Optional[bool] = None
    requires_document: Optional[bool] = None
    is_active: Optional[bool] = None
    type: Optional[LeaveTypeEffect] = None
    value: Optional[float] = Field(None, ge=0)


class LeaveTypeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    max_days_per_year: Optional[int] = None
    requires_approval: bool
    requires_document: bool
    is_active: bool
    type: LeaveTypeEffect
    value: float


class LeaveTypeBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class LeaveRequestCreate(BaseModel):
    leave_type_id: int
    start_date: date
    end_date: date
    reason: Optional[str] = Field(None, max_length=1000)
    document_links: List[str] = []

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Reason cannot be empty")
        return v


class LeaveRejectRequest(BaseModel):
    rejection_reason: Optional[str] = None


class LeaveRequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    leave_type_id: int
    start_date: date
    end_date: date
    days_requested: float
    reason: Optional[str] = None
    document_links: Optional[List[str]] = None
    status: RequestStatus
    created_at: Optional[datetime] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    leave_type: Optional[LeaveTypeBrief] = None
    employee: Optional[EmployeeBrief] = None
    approved_by_user: Optional[EmployeeBrief] = Field(None, validation_alias="approver")


# Resolve forward references for Pydantic V2
LeaveRequestOut.model_rebuild()
