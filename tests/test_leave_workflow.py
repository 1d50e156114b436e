import pytest
from datetime import date, timedelta
from sqlalchemy import update

from hris.core.exceptions import ConflictError
from hris.models.audit_log import AuditLog
from hris.models.leave_request import LeaveRequest
from hris.models.request_status import RequestStatus
from hris.services import leave_service
from hris.services.audit import AuditService


def _submit(client, headers, leave_type, start, end, reason="Family event"):
    return client.post(
        "/api/leaves",
        headers=headers,
        json={
            "leave_type_id": leave_type.id,
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "reason": reason,
        },
    )


def _pending(db_session, employee, leave_type, start, days):
    leave = LeaveRequest(
        employee_id=employee.id, leave_type_id=leave_type.id,
        start_date=start, end_date=start + timedelta(days=days - 1), days_requested=days,
        status=RequestStatus.PENDING,
    )
    db_session.add(leave)
    db_session.commit()
    return leave


# --- Submission ---

def test_submit_leave_request(client, db_session, employee, annual_leave, auth_header, next_monday):
    """Mon-Fri counts five business days."""
    response = _submit(client, auth_header(employee), annual_leave, next_monday, next_monday + timedelta(days=4))
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Leave request submitted successfully"
    assert body["leave_request"]["days_requested"] == 5
    assert body["leave_request"]["status"] == "Pending"


def test_weekend_days_are_not_counted(client, employee, sick_leave, auth_header, next_monday):
    friday = next_monday + timedelta(days=4)
    response = _submit(client, auth_header(employee), sick_leave, friday, friday + timedelta(days=3))
    assert response.status_code == 201
    assert response.json()["leave_request"]["days_requested"] == 2


def test_end_before_start_is_rejected(client, db_session, employee, annual_leave, auth_header, next_monday):
    response = _submit(client, auth_header(employee), annual_leave, next_monday + timedelta(days=2), next_monday)
    assert response.status_code == 400
    assert response.json()["error"] == "End date cannot be before start date"
    assert db_session.query(LeaveRequest).filter(LeaveRequest.employee_id == employee.id).count() == 0


def test_past_start_is_rejected(client, employee, annual_leave, auth_header):
    yesterday = date.today() - timedelta(days=1)
    response = _submit(client, auth_header(employee), annual_leave, yesterday, yesterday + timedelta(days=3))
    assert response.status_code == 400
    assert response.json()["error"] == "Start date cannot be in the past"


def test_weekend_only_request_is_rejected(client, employee, sick_leave, auth_header, next_monday):
    saturday = next_monday + timedelta(days=5)
    response = _submit(client, auth_header(employee), sick_leave, saturday, saturday + timedelta(days=1))
    assert response.status_code == 400


def test_unknown_leave_type_is_rejected(client, employee, auth_header, next_monday):
    response = client.post(
        "/api/leaves",
        headers=auth_header(employee),
        json={"leave_type_id": 9999, "start_date": next_monday.isoformat(), "end_date": next_monday.isoformat()},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid leave type"


def test_blank_reason_is_rejected(client, employee, annual_leave, auth_header, next_monday):
    response = _submit(client, auth_header(employee), annual_leave, next_monday, next_monday, reason="   ")
    assert response.status_code == 400
    assert response.json()["error"] == "Reason cannot be empty"


def test_annual_leave_needs_balance(client, make_employee, annual_leave, auth_header, next_monday):
    short = make_employee(leave_balance=2)
    response = _submit(client, auth_header(short), annual_leave, next_monday, next_monday + timedelta(days=4))
    assert response.status_code == 400
    assert response.json()["error"] == "Insufficient leave balance. Available: 2.0 days, Requested: 5 days"


def test_other_types_ignore_balance(client, make_employee, sick_leave, auth_header, next_monday):
    broke = make_employee(leave_balance=0)
    response = _submit(client, auth_header(broke), sick_leave, next_monday, next_monday + timedelta(days=4))
    assert response.status_code == 201


def test_overlapping_request_is_rejected(client, employee, annual_leave, sick_leave, auth_header, next_monday):
    headers = auth_header(employee)
    assert _submit(client, headers, annual_leave, next_monday, next_monday + timedelta(days=2)).status_code == 201
    response = _submit(client, headers, sick_leave, next_monday + timedelta(days=2), next_monday + timedelta(days=4))
    assert response.status_code == 400
    assert response.json()["error"] == "You have overlapping leave requests for these dates"


def test_rejected_request_does_not_block(client, db_session, employee, annual_leave, auth_header, next_monday):
    old = _pending(db_session, employee, annual_leave, next_monday, 3)
    old.status = RequestStatus.REJECTED
    db_session.commit()
    response = _submit(client, auth_header(employee), annual_leave, next_monday, next_monday + timedelta(days=1))
    assert response.status_code == 201


def test_adjacent_ranges_do_not_overlap(client, employee, annual_leave, auth_header, next_monday):
    headers = auth_header(employee)
    assert _submit(client, headers, annual_leave, next_monday, next_monday + timedelta(days=1)).status_code == 201
    response = _submit(client, headers, annual_leave, next_monday + timedelta(days=2), next_monday + timedelta(days=3))
    assert response.status_code == 201


# --- Listings ---

def test_my_requests(client, db_session, employee, annual_leave, auth_header, next_monday):
    _pending(db_session, employee, annual_leave, next_monday, 1)
    response = client.get("/api/leaves/my-requests", headers=auth_header(employee))
    assert response.status_code == 200
    body = response.json()
    assert body["pagination"]["total"] == 1
    assert body["leave_requests"][0]["leave_type"]["name"] == "Annual Leave"


def test_manager_queue_shows_subordinates_only(client, db_session, manager, employee, make_employee, annual_leave, auth_header, next_monday):
    _pending(db_session, employee, annual_leave, next_monday, 1)
    _pending(db_session, make_employee(), annual_leave, next_monday, 1)
    response = client.get("/api/leaves/for-approval", headers=auth_header(manager))
    assert response.status_code == 200
    owners = {r["employee_id"] for r in response.json()["leave_requests"]}
    assert owners == {employee.id}


def test_admin_queue_shows_everyone(client, db_session, admin, employee, make_employee, annual_leave, auth_header, next_monday):
    _pending(db_session, employee, annual_leave, next_monday, 1)
    _pending(db_session, make_employee(), annual_leave, next_monday, 1)
    response = client.get("/api/leaves/for-approval", headers=auth_header(admin))
    assert response.json()["pagination"]["total"] == 2


def test_employee_cannot_see_approval_queue(client, employee, auth_header):
    assert client.get("/api/leaves/for-approval", headers=auth_header(employee)).status_code == 403


def test_dashboard_requires_admin(client, manager, hr, auth_header):
    assert client.get("/api/leaves/dashboard/all", headers=auth_header(manager)).status_code == 403
    assert client.get("/api/leaves/dashboard/all", headers=auth_header(hr)).status_code == 200


# --- Decisions ---

def test_approving_annual_leave_deducts_balance(client, db_session, manager, make_employee, annual_leave, auth_header, next_monday):
    person = make_employee(manager=manager, leave_balance=10)
    leave = _pending(db_session, person, annual_leave, next_monday, 3)

    response = client.put(f"/api/leaves/{leave.id}/approve", headers=auth_header(manager))
    assert response.status_code == 200
    body = response.json()
    assert body["leave_request"]["status"] == "Approved"
    assert body["leave_request"]["approved_by"] == manager.id
    db_session.refresh(person)
    assert person.leave_balance == 7


def test_approving_other_type_keeps_balance(client, db_session, manager, make_employee, sick_leave, auth_header, next_monday):
    person = make_employee(manager=manager, leave_balance=10)
    leave = _pending(db_session, person, sick_leave, next_monday, 3)
    assert client.put(f"/api/leaves/{leave.id}/approve", headers=auth_header(manager)).status_code == 200
    db_session.refresh(person)
    assert person.leave_balance == 10


def test_approval_is_audited(client, db_session, admin, employee, annual_leave, auth_header, next_monday):
    leave = _pending(db_session, employee, annual_leave, next_monday, 1)
    client.put(f"/api/leaves/{leave.id}/approve", headers=auth_header(admin))
    entry = db_session.query(AuditLog).filter(AuditLog.action == "approve_leave", AuditLog.entity_id == leave.id).one()
    assert entry.after_state == {"status": "Approved"}


def test_failed_audit_does_not_block_approval(client, db_session, admin, make_employee, annual_leave, auth_header, next_monday, monkeypatch):
    """An audit row that cannot be written is dropped; the decision still commits."""
    person = make_employee(leave_balance=10)
    leave = _pending(db_session, person, annual_leave, next_monday, 3)
    original = AuditService.log_action

    def without_action(self, action, *args, **kwargs):
        return original(self, None, *args, **kwargs)

    monkeypatch.setattr(AuditService, "log_action", without_action)
    response = client.put(f"/api/leaves/{leave.id}/approve", headers=auth_header(admin))
    assert response.status_code == 200
    assert response.json()["leave_request"]["status"] == "Approved"

    db_session.refresh(leave)
    db_session.refresh(person)
    assert leave.status == RequestStatus.APPROVED
    assert person.leave_balance == 7
    assert db_session.query(AuditLog).filter(AuditLog.entity_id == leave.id).count() == 0


def test_manager_cannot_approve_non_subordinate(client, db_session, manager, make_employee, annual_leave, auth_header, next_monday):
    leave = _pending(db_session, make_employee(), annual_leave, next_monday, 1)
    response = client.put(f"/api/leaves/{leave.id}/approve", headers=auth_header(manager))
    assert response.status_code == 403
    db_session.refresh(leave)
    assert leave.status == RequestStatus.PENDING


def test_cannot_approve_twice(client, db_session, admin, make_employee, annual_leave, auth_header, next_monday):
    person = make_employee(leave_balance=10)
    leave = _pending(db_session, person, annual_leave, next_monday, 3)
    headers = auth_header(admin)
    assert client.put(f"/api/leaves/{leave.id}/approve", headers=headers).status_code == 200
    response = client.put(f"/api/leaves/{leave.id}/approve", headers=headers)
    assert response.status_code == 400
    db_session.refresh(person)
    assert person.leave_balance == 7


def test_concurrent_approval_deducts_once(db_session, admin, make_employee, annual_leave, next_monday, monkeypatch):
    """A second approver holding a stale Pending read gets a conflict and no balance change."""
    person = make_employee(leave_balance=10)
    leave = _pending(db_session, person, annual_leave, next_monday, 3)

    original = leave_service._load_for_decision

    def load_then_race(db, request_id, actor, target):
        loaded = original(db, request_id, actor, target)
        # Someone else approves between our read and our write
        db.execute(update(LeaveRequest).where(LeaveRequest.id == request_id).values(status=RequestStatus.APPROVED))
        return loaded

    monkeypatch.setattr(leave_service, "_load_for_decision", load_then_race)
    with pytest.raises(ConflictError):
        leave_service.approve_leave_request(db_session, leave.id, admin)

    db_session.refresh(person)
    assert person.leave_balance == 10


def test_reject_requires_reason(client, db_session, admin, employee, annual_leave, auth_header, next_monday):
    leave = _pending(db_session, employee, annual_leave, next_monday, 1)
    headers = auth_header(admin)

    missing = client.put(f"/api/leaves/{leave.id}/reject", headers=headers, json={})
    short = client.put(f"/api/leaves/{leave.id}/reject", headers=headers, json={"rejection_reason": "  too short"})
    assert missing.status_code == 400
    assert short.status_code == 400
    assert short.json()["error"] == "Rejection reason must be at least 10 characters"
    db_session.refresh(leave)
    assert leave.status == RequestStatus.PENDING


def test_reject_with_reason(client, db_session, manager, employee, annual_leave, auth_header, next_monday):
    leave = _pending(db_session, employee, annual_leave, next_monday, 1)
    response = client.put(
        f"/api/leaves/{leave.id}/reject",
        headers=auth_header(manager),
        json={"rejection_reason": "Quarter-end close needs everyone"},
    )
    assert response.status_code == 200
    assert response.json()["leave_request"]["status"] == "Rejected"
    assert response.json()["leave_request"]["rejection_reason"] == "Quarter-end close needs everyone"


def test_unknown_request_is_404(client, admin, auth_header):
    assert client.put("/api/leaves/9999/approve", headers=auth_header(admin)).status_code == 404


# --- Leave types ---

def test_leave_type_crud(client, admin, auth_header):
    headers = auth_header(admin)
    created = client.post(
        "/api/leaves/types",
        headers=headers,
        json={"name": "Study Leave", "description": "Exams", "type": "Subtraction", "value": 0.5},
    )
    assert created.status_code == 201
    type_id = created.json()["leave_type"]["id"]
    assert created.json()["leave_type"]["value"] == 0.5

    updated = client.put(f"/api/leaves/types/{type_id}", headers=headers, json={"is_active": False})
    assert updated.json()["leave_type"]["is_active"] is False

    active = client.get("/api/leaves/types", headers=headers).json()["leave_types"]
    assert type_id not in [t["id"] for t in active]
    everything = client.get("/api/leaves/types?include_inactive=true", headers=headers).json()["leave_types"]
    assert type_id in [t["id"] for t in everything]

    assert client.delete(f"/api/leaves/types/{type_id}", headers=headers).status_code == 200


def test_duplicate_leave_type_name(client, admin, annual_leave, auth_header):
    response = client.post(
        "/api/leaves/types",
        headers=auth_header(admin),
        json={"name": "Annual Leave", "description": "again"},
    )
    assert response.status_code == 409


def test_leave_type_validation(client, admin, auth_header):
    headers = auth_header(admin)
    bad_type = client.post("/api/leaves/types", headers=headers, json={"name": "X", "description": "Y", "type": "Multiply"})
    negative = client.post("/api/leaves/types", headers=headers, json={"name": "X", "description": "Y", "value": -1})
    assert bad_type.status_code == 400
    assert negative.status_code == 400


def test_leave_type_in_use_cannot_be_deleted(client, db_session, admin, employee, annual_leave, auth_header, next_monday):
    _pending(db_session, employee, annual_leave, next_monday, 1)
    response = client.delete(f"/api/leaves/types/{annual_leave.id}", headers=auth_header(admin))
    assert response.status_code == 400
    assert response.json()["error"] == "Cannot delete leave type that is being used in leave requests"


def test_employee_cannot_create_leave_type(client, employee, auth_header):
    response = client.post("/api/leaves/types", headers=auth_header(employee), json={"name": "X", "description": "Y"})
    assert response.status_code == 403
