from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from hris.core.schemas import paginate
from hris.database import get_db
from hris.models.employee import Employee
from hris.routers.auth_deps import get_current_user, require_admin
from hris.schemas.department import (
    DepartmentAssign,
    DepartmentCreate,
    DepartmentDetail,
    DepartmentMemberOut,
    DepartmentOut,
    DepartmentUpdate,
)
from hris.schemas.employee import EmployeeOut
from hris.services import department_service

router = APIRouter(
    prefix="/departments",
    tags=["departments"]
)


@router.get("")
def list_departments(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    """Paginated department list with member counts."""
    items, pagination = paginate(department_service.list_departments_query(db, search), page, limit)
    return {
        "departments": [DepartmentOut.model_validate(d) for d in items],
        "pagination": pagination,
    }


@router.get("/unassigned-employees")
def unassigned_employees(db: Session = Depends(get_db), current_user: Employee = Depends(require_admin())):
    return {"employees": [EmployeeOut.model_validate(e) for e in department_service.unassigned_employees(db)]}


@router.get("/{department_id}")
def get_department(department_id: int, db: Session = Depends(get_db), current_user: Employee = Depends(get_current_user)):
    department = department_service.get_department(db, department_id)
    return {"department": DepartmentDetail.model_validate(department)}


@router.get("/{department_id}/employees")
def department_employees(department_id: int, db: Session = Depends(get_db), current_user: Employee = Depends(get_current_user)):
    members = department_service.department_members(db, department_id)
    return {"employees": [DepartmentMemberOut.model_validate(m) for m in members]}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_department(data: DepartmentCreate, db: Session = Depends(get_db), current_user: Employee = Depends(require_admin())):
    department = department_service.create_department(db, data)
    return {"message": "Department created successfully", "department": DepartmentDetail.model_validate(department)}


@router.put("/{department_id}")
def update_department(
    department_id: int,
    data: DepartmentUpdate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin()),
):
    department = department_service.update_department(db, department_id, data)
    return {"message": "Department updated successfully", "department": DepartmentDetail.model_validate(department)}


@router.delete("/{department_id}")
def delete_department(department_id: int, db: Session = Depends(get_db), current_user: Employee = Depends(require_admin())):
    department_service.delete_department(db, department_id)
    return {"message": "Department deleted successfully"}


@router.post("/{department_id}/employees/{employee_id}", status_code=status.HTTP_201_CREATED)
def assign_employee(
    department_id: int,
    employee_id: int,
    data: Optional[DepartmentAssign] = None,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin()),
):
    position = data.position if data else None
    assignment = department_service.assign_employee(db, department_id, employee_id, position)
    return {"message": "Employee assigned to department successfully", "assignment": DepartmentMemberOut.model_validate(assignment)}


@router.delete("/{department_id}/employees/{employee_id}")
def remove_employee(
    department_id: int,
    employee_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin()),
):
    department_service.remove_employee(db, department_id, employee_id)
    return {"message": "Employee removed from department successfully"}
