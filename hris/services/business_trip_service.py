"""
Business Trip Service: trip requests with agenda events and participants.
"""
import logging
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session, selectinload

from hris.core.exceptions import AccessDeniedError, InvalidRequestError, NotFoundError
from hris.models.business_trip import BusinessTripEvent, BusinessTripParticipant, BusinessTripRequest
from hris.models.employee import Employee, EmployeeRole
from hris.models.request_status import RequestKind, RequestStatus
from hris.schemas.business_trip import BusinessTripCreate
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
    return db.query(BusinessTripRequest).options(
        selectinload(BusinessTripRequest.employee),
        selectinload(BusinessTripRequest.approver),
        selectinload(BusinessTripRequest.events),
        selectinload(BusinessTripRequest.participants).selectinload(BusinessTripParticipant.employee),
    )


def create_trip(db: Session, employee: Employee, data: BusinessTripCreate) -> BusinessTripRequest:
    if data.end_date < data.start_date:
        raise InvalidRequestError("End date must be after start date")
    for event in data.events:
        if event.end_date < event.start_date:
            raise InvalidRequestError(f"Event '{event.event_name}' ends before it starts")

    if data.participants:
        found = {row.id for row in db.query(Employee.id).filter(Employee.id.in_(data.participants))}
        missing = [pid for pid in data.participants if pid not in found]
        if missing:
            raise InvalidRequestError(f"Invalid participant IDs: {missing}")

    trip = BusinessTripRequest(
        employee_id=employee.id,
        destination=data.destination.strip(),
        start_date=data.start_date,
        end_date=data.end_date,
        status=RequestStatus.PENDING,
    )
    trip.events = [BusinessTripEvent(**event.model_dump()) for event in data.events]
    trip.participants = [BusinessTripParticipant(employee_id=pid) for pid in data.participants]
    db.add(trip)
    _commit(db)
    logger.info(f"Business trip {trip.id} to {trip.destination} created by employee {employee.id}")
    return get_trip(db, trip.id)


def get_trip(db: Session, trip_id: int) -> BusinessTripRequest:
    trip = _base_query(db).filter(BusinessTripRequest.id == trip_id).first()
    if not trip:
        raise NotFoundError("Business trip request not found")
    return trip


def my_trips_query(db: Session, employee: Employee, status: Optional[RequestStatus] = None) -> Query:
    """Trips the employee created or travels on."""
    participating = db.query(BusinessTripParticipant.business_trip_id).filter(
        BusinessTripParticipant.employee_id == employee.id
    )
    query = _base_query(db).filter(or_(
        BusinessTripRequest.employee_id == employee.id,
        BusinessTripRequest.id.in_(participating),
    ))
    if status:
        query = query.filter(BusinessTripRequest.status == status)
    return query.order_by(BusinessTripRequest.created_at.desc())


def approval_queue_query(db: Session, actor: Employee, status: Optional[RequestStatus] = RequestStatus.PENDING) -> Query:
    query = _base_query(db)
    if actor.role == EmployeeRole.MANAGER:
        subordinate_ids = db.query(Employee.id).filter(Employee.manager_id == actor.id)
        query = query.filter(BusinessTripRequest.employee_id.in_(subordinate_ids))
    if status:
        query = query.filter(BusinessTripRequest.status == status)
    return query.order_by(BusinessTripRequest.created_at.desc())


def all_trips_query(db: Session) -> Query:
    return _base_query(db).order_by(BusinessTripRequest.created_at.desc())


def _decide(db: Session, trip_id: int, actor: Employee, target: RequestStatus, **values) -> BusinessTripRequest:
    trip = get_trip(db, trip_id)
    workflow.transition(RequestKind.BUSINESS_TRIP, trip.status, target)
    workflow.ensure_can_act(actor, trip.employee)
    workflow.apply_status_change(
        db, BusinessTripRequest, trip.id, RequestKind.BUSINESS_TRIP,
        current=RequestStatus.PENDING, target=target, actor_id=actor.id, **values,
    )
    AuditService.log(
        db,
        action=f"{target.value.lower()}_business_trip",
        entity_type="business_trip_request",
        entity_id=trip.id,
        user_id=actor.id,
        user_role=actor.role,
        details={"employee_id": trip.employee_id, **values},
        before_state={"status": RequestStatus.PENDING},
        after_state={"status": target},
    )
    _commit(db)
    db.refresh(trip)
    return trip


def approve_trip(db: Session, trip_id: int, actor: Employee) -> BusinessTripRequest:
    return _decide(db, trip_id, actor, RequestStatus.APPROVED)


def reject_trip(db: Session, trip_id: int, actor: Employee, reason: Optional[str]) -> BusinessTripRequest:
    reason = (reason or "").strip()
    if not reason:
        raise InvalidRequestError("Rejection reason is required")
    return _decide(db, trip_id, actor, RequestStatus.REJECTED, rejection_reason=reason)


def cancel_trip(db: Session, trip_id: int, actor: Employee) -> BusinessTripRequest:
    """Owner-initiated withdrawal while still Pending."""
    trip = get_trip(db, trip_id)
    if trip.employee_id != actor.id:
        raise AccessDeniedError("You can only cancel your own requests")
    workflow.transition(RequestKind.BUSINESS_TRIP, trip.status, RequestStatus.CANCELLED)
    workflow.apply_status_change(
        db, BusinessTripRequest, trip.id, RequestKind.BUSINESS_TRIP,
        current=RequestStatus.PENDING, target=RequestStatus.CANCELLED,
    )
    _commit(db)
    db.refresh(trip)
    return trip
