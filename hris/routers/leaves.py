from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from hris.core.schemas import paginate
from hris.database import get_db
from hris.models.employee import Employee
from hris.models.request_status import RequestStatus
from hris.routers.auth_deps import get_current_user, require_admin, require_approver
from hris.schemas.leave import (
    LeaveRejectRequest,
    LeaveRequestCreate,
    LeaveRequestOut,
    LeaveTypeCreate,
    LeaveTypeOut,
    LeaveTypeUpdate,
)
from hris.services import leave_service

router = APIRouter(
    prefix="/leaves",
    tags=["leave"]
)


# --- Leave types ---

@router.get("/types")
def list_leave_types(
    include_inactive: bool = False,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    leave_types = leave_service.list_leave_types(db, include_inactive)
    return {"leave_types": [LeaveTypeOut.model_validate(t) for t in leave_types]}


@router.post("/types", status_code=status.HTTP_201_CREATED)
def create_leave_type(data: LeaveTypeCreate, db: Session = Depends(get_db), current_user: Employee = Depends(require_admin())):
    leave_type = leave_service.create_leave_type(db, data)
    return {"message": "Leave type created successfully", "leave_type": LeaveTypeOut.model_validate(leave_type)}


@router.put("/types/{leave_type_id}")
def update_leave_type(
    leave_type_id: int,
    data: LeaveTypeUpdate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin()),
):
    leave_type = leave_service.update_leave_type(db, leave_type_id, data)
    return {"message": "Leave type updated successfully", "leave_type": LeaveTypeOut.model_validate(leave_type)}


@router.delete("/types/{leave_type_id}")
def delete_leave_type(leave_type_id: int, db: Session = Depends(get_db), current_user: Employee = Depends(require_admin())):
    leave_service.delete_leave_type(db, leave_type_id)
    return {"message": "Leave type deleted successfully"}


# --- Leave requests ---

@router.post("", status_code=status.HTTP_201_CREATED)
def submit_leave_request(
    data: LeaveRequestCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    leave = leave_service.submit_leave_request(db, current_user, data)
    return {"message": "Leave request submitted successfully", "leave_request": LeaveRequestOut.model_validate(leave)}


@router.get("/my-requests")
def my_leave_requests(
    request_status: Optional[RequestStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    items, pagination = paginate(leave_service.my_requests_query(db, current_user, request_status), page, limit)
    return {"leave_requests": [LeaveRequestOut.model_validate(r) for r in items], "pagination": pagination}


@router.get("/for-approval")
def leave_requests_for_approval(
    request_status: Optional[RequestStatus] = Query(RequestStatus.PENDING, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_approver()),
):
    """Managers see only their direct subordinates' requests."""
    query = leave_service.approval_queue_query(db, current_user, request_status)
    items, pagination = paginate(query, page, limit)
    return {"leave_requests": [LeaveRequestOut.model_validate(r) for r in items], "pagination": pagination}


@router.get("/dashboard/all")
def all_leave_requests(db: Session = Depends(get_db), current_user: Employee = Depends(require_admin())):
    requests = leave_service.all_requests_query(db).all()
    return {"leave_requests": [LeaveRequestOut.model_validate(r) for r in requests]}


@router.put("/{request_id}/approve")
def approve_leave_request(request_id: int, db: Session = Depends(get_db), current_user: Employee = Depends(require_approver())):
    leave = leave_service.approve_leave_request(db, request_id, current_user)
    return {"message": "Leave request approved successfully", "leave_request": LeaveRequestOut.model_validate(leave)}


@router.put("/{request_id}/reject")
def reject_leave_request(
    request_id: int,
    data: LeaveRejectRequest,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_approver()),
):
    leave = leave_service.reject_leave_request(db, request_id, current_user, data.rejection_reason)
    return {"message": "Leave request rejected successfully", "leave_request": LeaveRequestOut.model_validate(leave)}
