"""
Approval workflow shared by leave, grab-code and business-trip requests.

Allowed status changes are decided in one table; the status write itself is a
conditional UPDATE guarded on the status the caller read, so two approvers
racing on the same request cannot both succeed.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, FrozenSet, Optional, Type

from sqlalchemy import update
from sqlalchemy.orm import Session

from hris.core.exceptions import AccessDeniedError, ConflictError, InvalidTransitionError
from hris.models.employee import Employee, EmployeeRole
from hris.models.request_status import RequestKind, RequestStatus

logger = logging.getLogger(__name__)

_DECISIONS = frozenset({RequestStatus.APPROVED, RequestStatus.REJECTED})

TRANSITIONS: Dict[RequestKind, Dict[RequestStatus, FrozenSet[RequestStatus]]] = {
    RequestKind.LEAVE: {RequestStatus.PENDING: _DECISIONS},
    RequestKind.GRAB_CODE: {RequestStatus.PENDING: _DECISIONS},
    RequestKind.BUSINESS_TRIP: {RequestStatus.PENDING: _DECISIONS | {RequestStatus.CANCELLED}},
}

_LABELS = {
    RequestKind.LEAVE: "Leave request",
    RequestKind.GRAB_CODE: "Grab code request",
    RequestKind.BUSINESS_TRIP: "Business trip request",
}


def transition(kind: RequestKind, current: RequestStatus, target: RequestStatus) -> RequestStatus:
    """Validate a status change and return the new status."""
    allowed = TRANSITIONS[kind].get(RequestStatus(current), frozenset())
    if RequestStatus(target) not in allowed:
        if RequestStatus(current) != RequestStatus.PENDING:
            raise InvalidTransitionError(f"{_LABELS[kind]} is not pending")
        raise InvalidTransitionError(
            f"{_LABELS[kind]} cannot move from {RequestStatus(current).value} to {RequestStatus(target).value}"
        )
    return RequestStatus(target)


def ensure_can_act(actor: Employee, owner: Optional[Employee]):
    """Admin/HR act on anyone; a Manager only on direct subordinates."""
    if actor.role in (EmployeeRole.ADMIN, EmployeeRole.HR):
        return
    if actor.role == EmployeeRole.MANAGER and owner is not None and owner.manager_id == actor.id:
        return
    raise AccessDeniedError("You can only act on requests from your direct subordinates")


def apply_status_change(
    db: Session,
    model: Type,
    request_id: int,
    kind: RequestKind,
    current: RequestStatus,
    target: RequestStatus,
    actor_id: Optional[int] = None,
    **values,
) -> RequestStatus:
    """
    Write a status change only if the row still holds `current`.

    Raises:
        InvalidTransitionError: target not reachable from current.
        ConflictError: the row changed status since it was read.
    """
    new_status = transition(kind, current, target)
    if actor_id is not None and new_status in _DECISIONS:
        values.setdefault("approved_by", actor_id)
        values.setdefault("approved_at", datetime.now(timezone.utc))

    result = db.execute(
        update(model)
        .where(model.id == request_id, model.status == current)
        .values(status=new_status, **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.warning(f"{_LABELS[kind]} {request_id} changed concurrently; {new_status.value} refused")
        raise ConflictError(f"{_LABELS[kind]} was already processed by another user")
    return new_status
