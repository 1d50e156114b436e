# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import (
    employee, department, leave_type, leave_request,
    holiday, service, grab_code_request, business_trip,
    performance_survey, audit_log
)

# Explicit class exports for cleaner imports
from .employee import Employee, EmployeeRole, EmploymentType, EmployeeStatus
from .department import Department, DepartmentEmployee
from .leave_type import LeaveType, LeaveTypeEffect
from .leave_request import LeaveRequest
from .request_status import RequestStatus

__all__ = [
    "Employee",
    "EmployeeRole",
    "EmploymentType",
    "EmployeeStatus",
    "Department",
    "DepartmentEmployee",
    "LeaveType",
    "LeaveTypeEffect",
    "LeaveRequest",
    "RequestStatus",
]
