"""
Department Service: departments and their membership rows.

Membership is stored twice: a DepartmentEmployee row (with position) and the
employee's department_id. Every write here keeps both in step.
"""
import logging
from typing import Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session, selectinload

from hris.core.exceptions import ConflictError, InvalidRequestError, NotFoundError
from hris.models.department import Department, DepartmentEmployee
from hris.models.employee import Employee, EmployeeStatus
from hris.schemas.department import DepartmentCreate, DepartmentUpdate

logger = logging.getLogger(__name__)

DEFAULT_POSITION = "Staff"


def _commit(db: Session):
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


def get_department(db: Session, department_id: int) -> Department:
    department = db.get(Department, department_id)
    if not department:
        raise NotFoundError("Department not found")
    return department


def list_departments_query(db: Session, search: Optional[str] = None) -> Query:
    query = db.query(Department).options(selectinload(Department.assignments), selectinload(Department.head))
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(Department.name.ilike(pattern), Department.details.ilike(pattern)))
    return query.order_by(Department.name)


def _ensure_unique_name(db: Session, name: str, exclude_id: Optional[int] = None):
    query = db.query(Department.id).filter(Department.name == name)
    if exclude_id is not None:
        query = query.filter(Department.id != exclude_id)
    if query.first():
        raise ConflictError("Department with this name already exists")


def _validate_head(db: Session, head_id: Optional[int]):
    if head_id is not None and not db.get(Employee, head_id):
        raise InvalidRequestError("Invalid department head")


def _load_employees(db: Session, employee_ids: Iterable[int]) -> List[Employee]:
    ids = list(dict.fromkeys(employee_ids))
    employees = db.query(Employee).filter(Employee.id.in_(ids)).all() if ids else []
    if len(employees) != len(ids):
        missing = sorted(set(ids) - {e.id for e in employees})
        raise InvalidRequestError(f"Invalid employee IDs: {missing}")
    return employees


def sync_membership(db: Session, employee: Employee, department_id: Optional[int], position: Optional[str] = None):
    """
    Move an employee to department_id (or out of any department when None).

    Does not commit.
    """
    stale = db.query(DepartmentEmployee).filter(DepartmentEmployee.employee_id == employee.id)
    if department_id is not None:
        stale = stale.filter(DepartmentEmployee.department_id != department_id)
    stale.delete(synchronize_session="fetch")
    employee.department_id = department_id
    if department_id is None:
        return
    existing = db.query(DepartmentEmployee).filter(
        DepartmentEmployee.employee_id == employee.id,
        DepartmentEmployee.department_id == department_id,
    ).first()
    if not existing:
        db.add(DepartmentEmployee(
            department_id=department_id,
            employee_id=employee.id,
            position=position or employee.position or DEFAULT_POSITION,
        ))


def _replace_members(db: Session, department: Department, employee_ids: List[int]):
    employees = _load_employees(db, employee_ids)
    keep = {e.id for e in employees}
    for assignment in list(department.assignments):
        if assignment.employee_id not in keep:
            if assignment.employee is not None and assignment.employee.department_id == department.id:
                assignment.employee.department_id = None
            department.assignments.remove(assignment)
    db.flush()
    for employee in employees:
        sync_membership(db, employee, department.id)


def create_department(db: Session, data: DepartmentCreate) -> Department:
    name = data.name.strip()
    _ensure_unique_name(db, name)
    _validate_head(db, data.head_id)

    members = _load_employees(db, data.employee_ids or [])

    department = Department(name=name, details=data.details, head_id=data.head_id)
    db.add(department)
    try:
        db.flush()
        for employee in members:
            sync_membership(db, employee, department.id)
        _commit(db)
    except IntegrityError:
        db.rollback()
        raise ConflictError("Department with this name already exists")
    db.refresh(department)
    logger.info(f"Department {department.id} '{department.name}' created")
    return department


def update_department(db: Session, department_id: int, data: DepartmentUpdate) -> Department:
    department = get_department(db, department_id)
    changes = data.model_dump(exclude_unset=True)

    if changes.get("name") is not None:
        changes["name"] = changes["name"].strip()
        _ensure_unique_name(db, changes["name"], exclude_id=department_id)
    if "head_id" in changes:
        _validate_head(db, changes["head_id"])

    for field in ("name", "details", "head_id"):
        if field in changes and not (field == "name" and changes[field] is None):
            setattr(department, field, changes[field])
    if changes.get("employee_ids") is not None:
        _replace_members(db, department, changes["employee_ids"])

    try:
        _commit(db)
    except IntegrityError:
        raise ConflictError("Department with this name already exists")
    db.refresh(department)
    logger.info(f"Department {department.id} updated")
    return department


def delete_department(db: Session, department_id: int):
    department = get_department(db, department_id)
    if department.assignments or department.members:
        raise InvalidRequestError("Cannot delete department with assigned employees. Please reassign employees first.")
    db.delete(department)
    _commit(db)


def assign_employee(db: Session, department_id: int, employee_id: int, position: Optional[str] = None) -> DepartmentEmployee:
    department = get_department(db, department_id)
    employee = db.get(Employee, employee_id)
    if not employee:
        raise NotFoundError("Employee not found")
    already = db.query(DepartmentEmployee).filter(
        DepartmentEmployee.department_id == department.id,
        DepartmentEmployee.employee_id == employee.id,
    ).first()
    if already:
        raise ConflictError("Employee is already assigned to this department")

    sync_membership(db, employee, department.id, position or DEFAULT_POSITION)
    _commit(db)
    return db.query(DepartmentEmployee).filter(
        DepartmentEmployee.department_id == department.id,
        DepartmentEmployee.employee_id == employee.id,
    ).one()


def remove_employee(db: Session, department_id: int, employee_id: int):
    assignment = db.query(DepartmentEmployee).filter(
        DepartmentEmployee.department_id == department_id,
        DepartmentEmployee.employee_id == employee_id,
    ).first()
    if not assignment:
        raise NotFoundError("Employee is not assigned to this department")
    employee = assignment.employee
    db.delete(assignment)
    if employee is not None and employee.department_id == department_id:
        employee.department_id = None
    _commit(db)


def unassigned_employees(db: Session) -> List[Employee]:
    return (
        db.query(Employee)
        .filter(Employee.department_id.is_(None), Employee.status == EmployeeStatus.ACTIVE)
        .order_by(Employee.full_name)
        .all()
    )


def department_members(db: Session, department_id: int) -> List[DepartmentEmployee]:
    department = get_department(db, department_id)
    return department.department_employees
