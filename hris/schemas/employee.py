from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional
from datetime import date, datetime
from hris.models.employee import EmployeeRole, EmploymentType, EmployeeStatus


class EmployeeBrief(BaseModel):
    """Embedded employee reference (requester, approver, manager...)."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    email: Optional[str] = None


class DepartmentBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class EmployeeCreate(BaseModel):
    full_name: str = Field(..., min_length=2, max_length=100)
    email: Optional[EmailStr] = None
    nik: str = Field(..., min_length=3, max_length=50)
    department_id: Optional[int] = None
    employment_type: EmploymentType
    leave_balance: float = Field(0, ge=0)
    start_date: date
    role: EmployeeRole = EmployeeRole.EMPLOYEE
    manager_id: Optional[int] = None
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=500)
    position: Optional[str] = Field(None, max_length=100)
    salary: Optional[float] = Field(None, ge=0)


class EmployeeUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=2, max_length=100)
    email: Optional[EmailStr] = None
    nik: Optional[str] = Field(None, min_length=3, max_length=50)
    department_id: Optional[int] = None
    employment_type: Optional[EmploymentType] = None
    leave_balance: Optional[float] = Field(None, ge=0)
    start_date: Optional[date] = None
    role: Optional[EmployeeRole] = None
    manager_id: Optional[int] = None
    status: Optional[EmployeeStatus] = None
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=500)
    position: Optional[str] = Field(None, max_length=100)
    salary: Optional[float] = Field(None, ge=0)


class EmployeeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    nik: str
    full_name: str
    email: Optional[str] = None
    role: EmployeeRole
    employment_type: EmploymentType
    status: EmployeeStatus
    department_id: Optional[int] = None
    manager_id: Optional[int] = None
    leave_balance: float
    start_date: date
    phone: Optional[str] = None
    address: Optional[str] = None
    position: Optional[str] = None
    salary: Optional[float] = None
    password_changed: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    manager: Optional[EmployeeBrief] = None
    department: Optional[DepartmentBrief] = None
