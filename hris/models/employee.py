"""
Employee Model.
An employee is also the login principal: credentials and role live on the same row.
"""
from sqlalchemy import Column, Integer, String, Enum, Date, DateTime, Boolean, Float, ForeignKey, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from hris.database import Base


class EmployeeRole(str, enum.Enum):
    """
    Roles with their approval reach.

    - ADMIN / HR: act on any employee and any request
    - MANAGER: acts on direct subordinates only (manager_id equality)
    - EMPLOYEE: self-service access
    """
    EMPLOYEE = "Employee"
    MANAGER = "Manager"
    ADMIN = "Admin"
    HR = "HR"


class EmploymentType(str, enum.Enum):
    PERMANENT = "Permanent"
    CONTRACT = "Contract"


class EmployeeStatus(str, enum.Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


ADMIN_ROLES = [EmployeeRole.ADMIN, EmployeeRole.HR]
APPROVER_ROLES = [EmployeeRole.MANAGER, EmployeeRole.ADMIN, EmployeeRole.HR]


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    nik = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=True)
    password_hash = Column(String, nullable=True)
    password_changed = Column(Boolean, default=False, nullable=False)

    role = Column(Enum(EmployeeRole), default=EmployeeRole.EMPLOYEE, nullable=False)
    employment_type = Column(Enum(EmploymentType), default=EmploymentType.PERMANENT, nullable=False)
    status = Column(Enum(EmployeeStatus), default=EmployeeStatus.ACTIVE, nullable=False)

    department_id = Column(Integer, ForeignKey("departments.id", use_alter=True, name="fk_employee_department_id"), nullable=True)
    manager_id = Column(Integer, ForeignKey("employees.id"), nullable=True, index=True)

    # Running total: replaced by the accrual job, decremented by Annual Leave approvals
    leave_balance = Column(Float, default=0, nullable=False)
    start_date = Column(Date, nullable=False)

    phone = Column(String(20), nullable=True)
    address = Column(Text, nullable=True)
    position = Column(String(100), nullable=True)
    salary = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    manager = relationship("Employee", remote_side=[id], back_populates="subordinates")
    subordinates = relationship("Employee", back_populates="manager")
    department = relationship("Department", foreign_keys=[department_id], back_populates="members")
    leave_requests = relationship("LeaveRequest", foreign_keys="[LeaveRequest.employee_id]", back_populates="employee")

    def __repr__(self):
        return f"<Employee {self.nik} ({self.role.value})>"

    @property
    def is_active(self) -> bool:
        return self.status == EmployeeStatus.ACTIVE

    @property
    def is_admin(self) -> bool:
        """Admin and HR share administrative reach."""
        return self.role in ADMIN_ROLES

    @property
    def can_approve(self) -> bool:
        """Check if employee can approve requests (leave, trips, etc.)."""
        return self.role in APPROVER_ROLES
