from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional
from hris.models.employee import EmployeeRole


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class AuthUser(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: Optional[str] = None
    role: EmployeeRole
    full_name: str


class LoginResponse(BaseModel):
    message: str
    token: str
    user: AuthUser


class TokenData(BaseModel):
    employee_id: Optional[int] = None
    role: Optional[str] = None


class PasswordChange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_password: str = Field(..., alias="currentPassword", min_length=1)
    new_password: str = Field(..., alias="newPassword", min_length=8)
