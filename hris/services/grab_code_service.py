"""
Grab Code Service: transport voucher requests.

Only HR/Admin decide these requests. Issued codes are encrypted before they
reach the database.
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Query, Session, joinedload

from hris.core.exceptions import AccessDeniedError, InvalidRequestError, NotFoundError
from hris.core.security import encrypt_codes
from hris.models.employee import Employee
from hris.models.grab_code_request import GrabCodeRequest
from hris.models.request_status import RequestKind, RequestStatus
from hris.schemas.grab_code import GrabCodeCreate, GrabCodeStatusUpdate
from hris.services import workflow
from hris.services.audit import AuditService

logger = logging.getLogger(__name__)


def _commit(db: Session):
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


def _base_query(db: Session) -> Query:
    return db.query(GrabCodeRequest).options(
        joinedload(GrabCodeRequest.employee),
        joinedload(GrabCodeRequest.approver),
    )


def create_request(db: Session, employee: Employee, data: GrabCodeCreate) -> GrabCodeRequest:
    request = GrabCodeRequest(
        employee_id=employee.id,
        service_needed=data.service_needed,
        purpose=data.purpose.strip(),
        counterpart_name=data.counterpart_name.strip(),
        usage_date=data.usage_date,
        usage_time=data.usage_time,
        meeting_location=data.meeting_location.strip(),
        code_needed=data.code_needed,
        status=RequestStatus.PENDING,
    )
    db.add(request)
    _commit(db)
    db.refresh(request)
    logger.info(f"Grab code request {request.id} created by employee {employee.id}")
    return request


def my_requests_query(db: Session, employee: Employee, status: Optional[RequestStatus] = None) -> Query:
    query = _base_query(db).filter(GrabCodeRequest.employee_id == employee.id)
    if status:
        query = query.filter(GrabCodeRequest.status == status)
    return query.order_by(GrabCodeRequest.created_at.desc())


def all_requests_query(db: Session, status: Optional[RequestStatus] = None) -> Query:
    query = _base_query(db)
    if status:
        query = query.filter(GrabCodeRequest.status == status)
    return query.order_by(GrabCodeRequest.created_at.desc())


def get_request(db: Session, request_id: int) -> GrabCodeRequest:
    request = _base_query(db).filter(GrabCodeRequest.id == request_id).first()
    if not request:
        raise NotFoundError("Grab code request not found")
    return request


def get_visible_request(db: Session, actor: Employee, request_id: int) -> GrabCodeRequest:
    """Employees may only open their own requests; approvers may open any."""
    request = get_request(db, request_id)
    if not actor.can_approve and request.employee_id != actor.id:
        raise AccessDeniedError("You can only view your own requests")
    return request


def _validate_codes(codes: Optional[List[str]], code_needed: int) -> List[str]:
    if not codes:
        raise InvalidRequestError("Approved codes are required when approving request")
    if len(codes) != code_needed:
        raise InvalidRequestError(
            f"Number of codes ({len(codes)}) must match requested amount ({code_needed})"
        )
    if any(not isinstance(code, str) or not code.strip() for code in codes):
        raise InvalidRequestError("All codes must be non-empty strings")
    return [code.strip() for code in codes]


def update_status(db: Session, request_id: int, actor: Employee, data: GrabCodeStatusUpdate) -> GrabCodeRequest:
    """
    Approve (with exactly code_needed codes) or reject (with a reason) a Pending request.
    """
    if data.status not in (RequestStatus.APPROVED, RequestStatus.REJECTED):
        raise InvalidRequestError("Invalid status")

    request = get_request(db, request_id)
    workflow.transition(RequestKind.GRAB_CODE, request.status, data.status)

    values = {}
    if data.status == RequestStatus.APPROVED:
        codes = _validate_codes(data.approved_codes, request.code_needed)
        values["approved_codes"] = encrypt_codes(codes)
    else:
        reason = (data.rejection_reason or "").strip()
        if not reason:
            raise InvalidRequestError("Rejection reason is required")
        values["rejection_reason"] = reason

    workflow.apply_status_change(
        db, GrabCodeRequest, request.id, RequestKind.GRAB_CODE,
        current=RequestStatus.PENDING, target=data.status, actor_id=actor.id, **values,
    )
    AuditService.log(
        db,
        action=f"{data.status.value.lower()}_grab_code",
        entity_type="grab_code_request",
        entity_id=request.id,
        user_id=actor.id,
        user_role=actor.role,
        details={"employee_id": request.employee_id, "code_needed": request.code_needed},
        before_state={"status": RequestStatus.PENDING},
        after_state={"status": data.status},
    )
    _commit(db)
    db.refresh(request)
    return request
