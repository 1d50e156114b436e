from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime

from hris.schemas.employee import EmployeeBrief


class DepartmentCreate(BaseModel):
    """Schema for creating a new department."""
    name: str = Field(..., min_length=2, max_length=100)
    details: Optional[str] = Field(None, max_length=1000)
    head_id: Optional[int] = None
    employee_ids: Optional[List[int]] = None


class DepartmentUpdate(BaseModel):
    """Schema for updating a department. `employee_ids` replaces the member list when given."""
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    details: Optional[str] = Field(None, max_length=1000)
    head_id: Optional[int] = None
    employee_ids: Optional[List[int]] = None


class DepartmentAssign(BaseModel):
    position: Optional[str] = Field("Staff", max_length=100)


class DepartmentMemberOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    position: str
    assigned_at: Optional[datetime] = None
    employee: Optional[EmployeeBrief] = None


class DepartmentOut(BaseModel):
    """Schema for department response."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    details: Optional[str] = None
    head_id: Optional[int] = None
    head: Optional[EmployeeBrief] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Computed fields
    employee_count: int = 0


class DepartmentDetail(DepartmentOut):
    department_employees: List[DepartmentMemberOut] = []
