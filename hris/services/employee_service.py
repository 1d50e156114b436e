"""
Employee Service: onboarding records, updates and directory queries.

Employees are never deleted; deactivation is a status change.
"""
import logging
from datetime import date
from typing import Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session, aliased, joinedload

from hris.core.exceptions import ConflictError, InvalidRequestError, NotFoundError
from hris.models.department import Department
from hris.models.employee import Employee, EmployeeRole, EmployeeStatus, EmploymentType
from hris.schemas.employee import EmployeeCreate, EmployeeUpdate
from hris.services import auth as auth_service
from hris.services.department_service import sync_membership

logger = logging.getLogger(__name__)

MANAGER_ROLES = (EmployeeRole.MANAGER, EmployeeRole.ADMIN)


def _commit(db: Session):
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


def _ensure_unique(db: Session, nik: Optional[str], email: Optional[str], exclude_id: Optional[int] = None):
    if nik:
        query = db.query(Employee.id).filter(Employee.nik == nik)
        if exclude_id is not None:
            query = query.filter(Employee.id != exclude_id)
        if query.first():
            raise ConflictError("NIK already exists")
    if email:
        query = db.query(Employee.id).filter(func.lower(Employee.email) == email.lower())
        if exclude_id is not None:
            query = query.filter(Employee.id != exclude_id)
        if query.first():
            raise ConflictError("Email already exists")


def _validate_manager(db: Session, manager_id: Optional[int], employee_id: Optional[int] = None):
    if manager_id is None:
        return
    if employee_id is not None and manager_id == employee_id:
        raise InvalidRequestError("An employee cannot be their own manager")
    manager = db.get(Employee, manager_id)
    if not manager or manager.status != EmployeeStatus.ACTIVE:
        raise InvalidRequestError("Invalid manager ID")
    if manager.role not in MANAGER_ROLES:
        raise InvalidRequestError("Assigned manager must have Manager or Admin role")


def _validate_department(db: Session, department_id: Optional[int]):
    if department_id is not None and not db.get(Department, department_id):
        raise InvalidRequestError("Invalid department ID")


def get_employee(db: Session, employee_id: int) -> Employee:
    employee = db.get(Employee, employee_id)
    if not employee:
        raise NotFoundError("Employee not found")
    return employee


def get_visible_employee(db: Session, actor: Employee, employee_id: int) -> Employee:
    """Managers may only open their direct subordinates (404 otherwise)."""
    employee = get_employee(db, employee_id)
    if actor.role == EmployeeRole.MANAGER and employee.manager_id != actor.id and employee.id != actor.id:
        raise NotFoundError("Employee not found")
    return employee


def create_employee(db: Session, data: EmployeeCreate) -> Tuple[Employee, str]:
    """
    Create an employee with a generated temporary password.

    Returns:
        (employee, temporary_password); the plain password is never stored.
    """
    email = data.email.lower() if data.email else None
    _ensure_unique(db, data.nik, email)
    _validate_manager(db, data.manager_id)
    _validate_department(db, data.department_id)

    temporary_password = auth_service.generate_temporary_password()
    employee = Employee(
        **data.model_dump(exclude={"email", "department_id"}),
        email=email,
        password_hash=auth_service.get_password_hash(temporary_password),
        password_changed=False,
        status=EmployeeStatus.ACTIVE,
    )
    db.add(employee)
    db.flush()
    if data.department_id is not None:
        sync_membership(db, employee, data.department_id)
    _commit(db)
    db.refresh(employee)
    logger.info(f"Employee {employee.id} ({employee.nik}) created")
    return employee, temporary_password


def update_employee(db: Session, employee_id: int, data: EmployeeUpdate) -> Employee:
    employee = get_employee(db, employee_id)
    changes = data.model_dump(exclude_unset=True)

    if "email" in changes and changes["email"]:
        changes["email"] = changes["email"].lower()
    _ensure_unique(db, changes.get("nik"), changes.get("email"), exclude_id=employee.id)
    if "manager_id" in changes:
        _validate_manager(db, changes["manager_id"], employee_id=employee.id)
    if "department_id" in changes:
        _validate_department(db, changes["department_id"])

    department_changed = "department_id" in changes and changes["department_id"] != employee.department_id
    department_id = changes.pop("department_id", employee.department_id)
    for field, value in changes.items():
        setattr(employee, field, value)
    if department_changed:
        sync_membership(db, employee, department_id)

    _commit(db)
    db.refresh(employee)
    if changes.get("status") == EmployeeStatus.INACTIVE:
        logger.info(f"Employee {employee.id} deactivated")
    return employee


def reset_password(db: Session, employee_id: int) -> str:
    employee = get_employee(db, employee_id)
    temporary_password = auth_service.generate_temporary_password()
    employee.password_hash = auth_service.get_password_hash(temporary_password)
    employee.password_changed = False
    _commit(db)
    return temporary_password


def list_managers(db: Session):
    return (
        db.query(Employee)
        .options(joinedload(Employee.department))
        .filter(Employee.role.in_(MANAGER_ROLES), Employee.status == EmployeeStatus.ACTIVE)
        .order_by(Employee.full_name)
        .all()
    )


def directory_query(
    db: Session,
    actor: Employee,
    search: Optional[str] = None,
    department: Optional[int] = None,
    manager: Optional[str] = None,
    hire_date_from: Optional[date] = None,
    hire_date_to: Optional[date] = None,
    employment_type: Optional[EmploymentType] = None,
    status: Optional[EmployeeStatus] = None,
    role: Optional[EmployeeRole] = None,
) -> Query:
    """Filtered employee directory, newest first. Managers only see their subordinates."""
    query = db.query(Employee).options(joinedload(Employee.manager), joinedload(Employee.department))
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            Employee.full_name.ilike(pattern),
            Employee.email.ilike(pattern),
            Employee.nik.ilike(pattern),
        ))
    if department is not None:
        query = query.filter(Employee.department_id == department)
    if manager:
        manager_alias = aliased(Employee)
        query = query.join(manager_alias, Employee.manager_id == manager_alias.id).filter(
            manager_alias.full_name.ilike(f"%{manager.strip()}%")
        )
    if hire_date_from:
        query = query.filter(Employee.start_date >= hire_date_from)
    if hire_date_to:
        query = query.filter(Employee.start_date <= hire_date_to)
    if employment_type:
        query = query.filter(Employee.employment_type == employment_type)
    if status:
        query = query.filter(Employee.status == status)
    if role:
        query = query.filter(Employee.role == role)
    if actor.role == EmployeeRole.MANAGER:
        query = query.filter(Employee.manager_id == actor.id)
    return query.order_by(Employee.created_at.desc(), Employee.id.desc())
