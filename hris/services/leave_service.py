"""
Leave Service: leave types, request submission and the approval decisions.

Architecture: Router → Service → Models. Routers handle HTTP concerns; these
functions take an injected Session, raise AppException subclasses and own
the commit for the operations they perform.
"""
import logging
from datetime import date, timedelta
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session, joinedload

from hris.core.exceptions import ConflictError, InvalidRequestError, NotFoundError
from hris.models.employee import Employee, EmployeeRole
from hris.models.leave_request import LeaveRequest
from hris.models.leave_type import LeaveType
from hris.models.request_status import RequestKind, RequestStatus
from hris.schemas.leave import LeaveRequestCreate, LeaveTypeCreate, LeaveTypeUpdate
from hris.services import workflow
from hris.services.audit import AuditService

logger = logging.getLogger(__name__)

MIN_REJECTION_REASON_LENGTH = 10
BLOCKING_STATUSES = (RequestStatus.PENDING, RequestStatus.APPROVED)


def calculate_business_days(start_date: date, end_date: date) -> int:
    """
    Count Monday to Friday days in [start_date, end_date], both ends inclusive.

    Holidays are not excluded.
    """
    if end_date < start_date:
        return 0
    days = 0
    current = start_date
    while current <= end_date:
        if current.weekday() < 5:
            days += 1
        current += timedelta(days=1)
    return days


def _commit(db: Session):
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


# ---------------------------------------------------------------------------
# Leave types
# ---------------------------------------------------------------------------

def list_leave_types(db: Session, include_inactive: bool = False):
    query = db.query(LeaveType)
    if not include_inactive:
        query = query.filter(LeaveType.is_active.is_(True))
    return query.order_by(LeaveType.name).all()


def get_leave_type(db: Session, leave_type_id: int) -> LeaveType:
    leave_type = db.get(LeaveType, leave_type_id)
    if not leave_type:
        raise NotFoundError("Leave type not found")
    return leave_type


def _ensure_unique_type_name(db: Session, name: str, exclude_id: Optional[int] = None):
    query = db.query(LeaveType).filter(LeaveType.name == name)
    if exclude_id is not None:
        query = query.filter(LeaveType.id != exclude_id)
    if query.first():
        raise ConflictError("Leave type with this name already exists")


def create_leave_type(db: Session, data: LeaveTypeCreate) -> LeaveType:
    name = data.name.strip()
    _ensure_unique_type_name(db, name)
    leave_type = LeaveType(**data.model_dump(exclude={"name"}), name=name)
    db.add(leave_type)
    try:
        _commit(db)
    except IntegrityError:
        raise ConflictError("Leave type with this name already exists")
    db.refresh(leave_type)
    return leave_type


def update_leave_type(db: Session, leave_type_id: int, data: LeaveTypeUpdate) -> LeaveType:
    leave_type = get_leave_type(db, leave_type_id)
    changes = data.model_dump(exclude_unset=True)
    if "name" in changes:
        changes["name"] = changes["name"].strip()
        _ensure_unique_type_name(db, changes["name"], exclude_id=leave_type_id)
    for field, value in changes.items():
        setattr(leave_type, field, value)
    try:
        _commit(db)
    except IntegrityError:
        raise ConflictError("Leave type with this name already exists")
    db.refresh(leave_type)
    return leave_type


def delete_leave_type(db: Session, leave_type_id: int):
    leave_type = get_leave_type(db, leave_type_id)
    in_use = db.query(LeaveRequest.id).filter(LeaveRequest.leave_type_id == leave_type_id).first()
    if in_use:
        raise InvalidRequestError("Cannot delete leave type that is being used in leave requests")
    db.delete(leave_type)
    _commit(db)


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------

def submit_leave_request(
    db: Session,
    employee: Employee,
    data: LeaveRequestCreate,
    today: Optional[date] = None,
) -> LeaveRequest:
    """
    Validate and store a new Pending leave request.

    Raises:
        InvalidRequestError: any rule below is violated; nothing is written.
    """
    today = today or date.today()
    if data.start_date < today:
        raise InvalidRequestError("Start date cannot be in the past")
    if data.end_date < data.start_date:
        raise InvalidRequestError("End date cannot be before start date")

    days_requested = calculate_business_days(data.start_date, data.end_date)
    if days_requested <= 0:
        raise InvalidRequestError("Leave request must include at least one business day")

    leave_type = db.get(LeaveType, data.leave_type_id)
    if not leave_type:
        raise InvalidRequestError("Invalid leave type")

    if leave_type.is_annual_leave and (employee.leave_balance or 0) < days_requested:
        raise InvalidRequestError(
            f"Insufficient leave balance. Available: {employee.leave_balance or 0} days, "
            f"Requested: {days_requested} days"
        )

    overlapping = (
        db.query(LeaveRequest.id)
        .filter(
            LeaveRequest.employee_id == employee.id,
            LeaveRequest.status.in_(BLOCKING_STATUSES),
            LeaveRequest.start_date <= data.end_date,
            LeaveRequest.end_date >= data.start_date,
        )
        .first()
    )
    if overlapping:
        raise InvalidRequestError("You have overlapping leave requests for these dates")

    leave = LeaveRequest(
        employee_id=employee.id,
        leave_type_id=leave_type.id,
        start_date=data.start_date,
        end_date=data.end_date,
        days_requested=days_requested,
        reason=data.reason,
        document_links=data.document_links or [],
        status=RequestStatus.PENDING,
    )
    db.add(leave)
    _commit(db)
    db.refresh(leave)
    logger.info(f"Leave request {leave.id} submitted by employee {employee.id} ({days_requested} days)")
    return leave


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------

def _base_query(db: Session) -> Query:
    return db.query(LeaveRequest).options(
        joinedload(LeaveRequest.leave_type),
        joinedload(LeaveRequest.employee),
        joinedload(LeaveRequest.approver),
    )


def my_requests_query(db: Session, employee: Employee, status: Optional[RequestStatus] = None) -> Query:
    query = _base_query(db).filter(LeaveRequest.employee_id == employee.id)
    if status:
        query = query.filter(LeaveRequest.status == status)
    return query.order_by(LeaveRequest.created_at.desc())


def approval_queue_query(db: Session, actor: Employee, status: Optional[RequestStatus] = RequestStatus.PENDING) -> Query:
    """Managers see their direct subordinates only; Admin/HR see everyone."""
    query = _base_query(db)
    if actor.role == EmployeeRole.MANAGER:
        subordinate_ids = db.query(Employee.id).filter(Employee.manager_id == actor.id)
        query = query.filter(LeaveRequest.employee_id.in_(subordinate_ids))
    if status:
        query = query.filter(LeaveRequest.status == status)
    return query.order_by(LeaveRequest.created_at.desc())


def all_requests_query(db: Session) -> Query:
    return _base_query(db).order_by(LeaveRequest.created_at.desc())


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------

def _load_for_decision(db: Session, request_id: int, actor: Employee, target: RequestStatus) -> LeaveRequest:
    leave = db.get(LeaveRequest, request_id)
    if not leave:
        raise NotFoundError("Leave request not found")
    workflow.transition(RequestKind.LEAVE, leave.status, target)
    workflow.ensure_can_act(actor, leave.employee)
    return leave


def approve_leave_request(db: Session, request_id: int, actor: Employee) -> LeaveRequest:
    """
    Approve a Pending request.

    Annual Leave deducts days_requested from the employee's stored balance in
    the same transaction; other types leave the balance untouched. The status
    write is conditional, so a request already decided by someone else raises
    ConflictError before any balance change.
    """
    leave = _load_for_decision(db, request_id, actor, RequestStatus.APPROVED)
    days = leave.days_requested
    deducts = leave.leave_type is not None and leave.leave_type.is_annual_leave

    workflow.apply_status_change(
        db, LeaveRequest, leave.id, RequestKind.LEAVE,
        current=RequestStatus.PENDING, target=RequestStatus.APPROVED, actor_id=actor.id,
    )
    if deducts:
        db.execute(
            update(Employee)
            .where(Employee.id == leave.employee_id)
            .values(leave_balance=Employee.leave_balance - days)
            .execution_options(synchronize_session=False)
        )
    AuditService.log(
        db,
        action="approve_leave",
        entity_type="leave_request",
        entity_id=leave.id,
        user_id=actor.id,
        user_role=actor.role,
        details={"employee_id": leave.employee_id, "days_requested": days, "balance_deducted": deducts},
        before_state={"status": RequestStatus.PENDING},
        after_state={"status": RequestStatus.APPROVED},
    )
    _commit(db)

    db.refresh(leave)
    if leave.employee is not None:
        db.refresh(leave.employee)
    return leave


def reject_leave_request(db: Session, request_id: int, actor: Employee, reason: Optional[str]) -> LeaveRequest:
    reason = (reason or "").strip()
    if len(reason) < MIN_REJECTION_REASON_LENGTH:
        raise InvalidRequestError("Rejection reason must be at least 10 characters")

    leave = _load_for_decision(db, request_id, actor, RequestStatus.REJECTED)
    workflow.apply_status_change(
        db, LeaveRequest, leave.id, RequestKind.LEAVE,
        current=RequestStatus.PENDING, target=RequestStatus.REJECTED, actor_id=actor.id,
        rejection_reason=reason,
    )
    AuditService.log(
        db,
        action="reject_leave",
        entity_type="leave_request",
        entity_id=leave.id,
        user_id=actor.id,
        user_role=actor.role,
        details={"employee_id": leave.employee_id, "reason": reason},
        before_state={"status": RequestStatus.PENDING},
        after_state={"status": RequestStatus.REJECTED},
    )
    _commit(db)

    db.refresh(leave)
    return leave
