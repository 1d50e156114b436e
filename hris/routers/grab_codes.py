from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from hris.core.schemas import paginate
from hris.database import get_db
from hris.models.employee import Employee
from hris.models.request_status import RequestStatus
from hris.routers.auth_deps import get_current_user, require_admin
from hris.schemas.grab_code import GrabCodeCreate, GrabCodeOut, GrabCodeStatusUpdate
from hris.services import grab_code_service

router = APIRouter(
    prefix="/grab-code-requests",
    tags=["grab-codes"]
)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_grab_code_request(
    data: GrabCodeCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    request = grab_code_service.create_request(db, current_user, data)
    return {"message": "Grab code request created successfully", "grab_code_request": GrabCodeOut.model_validate(request)}


@router.get("/my-requests")
def my_grab_code_requests(
    request_status: Optional[RequestStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    query = grab_code_service.my_requests_query(db, current_user, request_status)
    items, pagination = paginate(query, page, limit)
    return {"grab_code_requests": [GrabCodeOut.model_validate(r) for r in items], "pagination": pagination}


@router.get("/dashboard/all")
def all_grab_code_requests(db: Session = Depends(get_db), current_user: Employee = Depends(require_admin())):
    requests = grab_code_service.all_requests_query(db).all()
    return {"grab_code_requests": [GrabCodeOut.model_validate(r) for r in requests]}


@router.get("")
def list_grab_code_requests(
    request_status: Optional[RequestStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin()),
):
    query = grab_code_service.all_requests_query(db, request_status)
    items, pagination = paginate(query, page, limit)
    return {"grab_code_requests": [GrabCodeOut.model_validate(r) for r in items], "pagination": pagination}


@router.get("/{request_id}")
def get_grab_code_request(request_id: int, db: Session = Depends(get_db), current_user: Employee = Depends(get_current_user)):
    request = grab_code_service.get_visible_request(db, current_user, request_id)
    return {"grab_code_request": GrabCodeOut.model_validate(request)}


@router.put("/{request_id}/status")
def update_grab_code_status(
    request_id: int,
    data: GrabCodeStatusUpdate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin()),
):
    request = grab_code_service.update_status(db, request_id, current_user, data)
    return {"message": "Grab code request updated successfully", "grab_code_request": GrabCodeOut.model_validate(request)}
