from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from hris.database import get_db
from hris.models.employee import Employee
from hris.models.request_status import RequestKind, RequestStatus
from hris.routers.auth_deps import get_current_user
from hris.services import request_service

router = APIRouter(
    prefix="/requests",
    tags=["requests"]
)


@router.get("/my-requests")
def my_all_requests(
    request_type: Optional[RequestKind] = Query(None, alias="type"),
    request_status: Optional[RequestStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    """Leave, grab-code and business-trip requests of the caller, merged newest first."""
    return request_service.my_all_requests(
        db, current_user, kind=request_type, status=request_status, page=page, limit=limit
    )
