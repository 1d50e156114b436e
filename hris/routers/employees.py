from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from hris.core.schemas import paginate
from hris.database import get_db
from hris.models.employee import Employee, EmployeeRole, EmployeeStatus, EmploymentType
from hris.routers.auth_deps import require_admin, require_approver
from hris.schemas.employee import EmployeeCreate, EmployeeOut, EmployeeUpdate
from hris.services import employee_service

router = APIRouter(
    prefix="/employees",
    tags=["employees"]
)


@router.get("")
def list_employees(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    department: Optional[int] = None,
    manager: Optional[str] = None,
    hire_date_from: Optional[date] = Query(None, alias="hireDateFrom"),
    hire_date_to: Optional[date] = Query(None, alias="hireDateTo"),
    employment_type: Optional[EmploymentType] = Query(None, alias="employmentType"),
    employee_status: Optional[EmployeeStatus] = Query(None, alias="status"),
    role: Optional[EmployeeRole] = None,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_approver()),
):
    query = employee_service.directory_query(
        db, current_user,
        search=search,
        department=department,
        manager=manager,
        hire_date_from=hire_date_from,
        hire_date_to=hire_date_to,
        employment_type=employment_type,
        status=employee_status,
        role=role,
    )
    items, pagination = paginate(query, page, limit)
    return {
        "employees": [EmployeeOut.model_validate(e) for e in items],
        "total": pagination["total"],
        "page": pagination["page"],
        "totalPages": pagination["pages"],
    }


@router.get("/managers/list")
def list_managers(db: Session = Depends(get_db), current_user: Employee = Depends(require_admin())):
    return {"managers": [EmployeeOut.model_validate(m) for m in employee_service.list_managers(db)]}


@router.get("/{employee_id}")
def get_employee(employee_id: int, db: Session = Depends(get_db), current_user: Employee = Depends(require_approver())):
    employee = employee_service.get_visible_employee(db, current_user, employee_id)
    return {"employee": EmployeeOut.model_validate(employee)}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_employee(data: EmployeeCreate, db: Session = Depends(get_db), current_user: Employee = Depends(require_admin())):
    employee, temporary_password = employee_service.create_employee(db, data)
    return {
        "message": "Employee created successfully",
        "employee": EmployeeOut.model_validate(employee),
        "temporary_password": temporary_password,
    }


@router.put("/{employee_id}")
def update_employee(
    employee_id: int,
    data: EmployeeUpdate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin()),
):
    employee = employee_service.update_employee(db, employee_id, data)
    return {"message": "Employee updated successfully", "employee": EmployeeOut.model_validate(employee)}


@router.post("/{employee_id}/generate-password")
def generate_password(employee_id: int, db: Session = Depends(get_db), current_user: Employee = Depends(require_admin())):
    temporary_password = employee_service.reset_password(db, employee_id)
    return {"message": "New password generated successfully", "temporary_password": temporary_password}
