import pytest
from datetime import date
from sqlalchemy import update

from hris.core.exceptions import AccessDeniedError, ConflictError, InvalidTransitionError
from hris.models.leave_request import LeaveRequest
from hris.models.request_status import RequestKind, RequestStatus
from hris.services import workflow


@pytest.mark.parametrize("kind", list(RequestKind))
@pytest.mark.parametrize("target", [RequestStatus.APPROVED, RequestStatus.REJECTED])
def test_pending_requests_can_be_decided(kind, target):
    assert workflow.transition(kind, RequestStatus.PENDING, target) == target


@pytest.mark.parametrize("current", [RequestStatus.APPROVED, RequestStatus.REJECTED, RequestStatus.CANCELLED])
def test_decided_requests_are_final(current):
    with pytest.raises(InvalidTransitionError) as exc:
        workflow.transition(RequestKind.LEAVE, current, RequestStatus.APPROVED)
    assert "not pending" in exc.value.message


def test_only_business_trips_can_be_cancelled():
    assert workflow.transition(RequestKind.BUSINESS_TRIP, RequestStatus.PENDING, RequestStatus.CANCELLED) == RequestStatus.CANCELLED
    with pytest.raises(InvalidTransitionError):
        workflow.transition(RequestKind.LEAVE, RequestStatus.PENDING, RequestStatus.CANCELLED)
    with pytest.raises(InvalidTransitionError):
        workflow.transition(RequestKind.GRAB_CODE, RequestStatus.PENDING, RequestStatus.CANCELLED)


def test_admin_and_hr_act_on_anyone(admin, hr, make_employee):
    stranger = make_employee()
    workflow.ensure_can_act(admin, stranger)
    workflow.ensure_can_act(hr, stranger)


def test_manager_acts_on_direct_subordinate_only(manager, employee, make_employee):
    workflow.ensure_can_act(manager, employee)
    other = make_employee()
    with pytest.raises(AccessDeniedError):
        workflow.ensure_can_act(manager, other)


def test_employee_cannot_act(employee, make_employee):
    with pytest.raises(AccessDeniedError):
        workflow.ensure_can_act(employee, make_employee())


def test_status_change_refused_after_concurrent_decision(db_session, employee, annual_leave, admin):
    """The conditional update only succeeds while the row still holds the status read."""
    leave = LeaveRequest(
        employee_id=employee.id, leave_type_id=annual_leave.id,
        start_date=date(2030, 1, 7), end_date=date(2030, 1, 7), days_requested=1,
    )
    db_session.add(leave)
    db_session.commit()

    # Another approver got there first
    db_session.execute(update(LeaveRequest).where(LeaveRequest.id == leave.id).values(status=RequestStatus.APPROVED))
    db_session.commit()

    with pytest.raises(ConflictError):
        workflow.apply_status_change(
            db_session, LeaveRequest, leave.id, RequestKind.LEAVE,
            current=RequestStatus.PENDING, target=RequestStatus.APPROVED, actor_id=admin.id,
        )


def test_status_change_sets_decision_fields(db_session, employee, annual_leave, admin):
    leave = LeaveRequest(
        employee_id=employee.id, leave_type_id=annual_leave.id,
        start_date=date(2030, 1, 7), end_date=date(2030, 1, 7), days_requested=1,
    )
    db_session.add(leave)
    db_session.commit()

    workflow.apply_status_change(
        db_session, LeaveRequest, leave.id, RequestKind.LEAVE,
        current=RequestStatus.PENDING, target=RequestStatus.REJECTED, actor_id=admin.id,
        rejection_reason="Team is short-staffed that week",
    )
    db_session.commit()
    db_session.refresh(leave)
    assert leave.status == RequestStatus.REJECTED
    assert leave.approved_by == admin.id
    assert leave.approved_at is not None
    assert leave.rejection_reason == "Team is short-staffed that week"
