from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from hris.core.schemas import paginate
from hris.database import get_db
from hris.models.employee import Employee
from hris.models.request_status import RequestStatus
from hris.routers.auth_deps import get_current_user, require_admin, require_approver
from hris.schemas.business_trip import BusinessTripCreate, BusinessTripOut, TripRejectRequest
from hris.services import business_trip_service

router = APIRouter(
    prefix="/business-trips",
    tags=["business-trips"]
)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_business_trip(
    data: BusinessTripCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    trip = business_trip_service.create_trip(db, current_user, data)
    return {"message": "Business trip request created successfully", "business_trip_request": BusinessTripOut.model_validate(trip)}


@router.get("/my-requests")
def my_business_trips(
    request_status: Optional[RequestStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    """Trips the user created or is travelling on."""
    items, pagination = paginate(business_trip_service.my_trips_query(db, current_user, request_status), page, limit)
    return {"business_trip_requests": [BusinessTripOut.model_validate(t) for t in items], "pagination": pagination}


@router.put("/{trip_id}/cancel")
def cancel_business_trip(trip_id: int, db: Session = Depends(get_db), current_user: Employee = Depends(get_current_user)):
    trip = business_trip_service.cancel_trip(db, trip_id, current_user)
    return {"message": "Business trip request cancelled successfully", "business_trip_request": BusinessTripOut.model_validate(trip)}


@router.get("/for-approval")
def business_trips_for_approval(
    request_status: Optional[RequestStatus] = Query(RequestStatus.PENDING, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_approver()),
):
    query = business_trip_service.approval_queue_query(db, current_user, request_status)
    items, pagination = paginate(query, page, limit)
    return {"business_trip_requests": [BusinessTripOut.model_validate(t) for t in items], "pagination": pagination}


@router.get("/dashboard/all")
def all_business_trips(db: Session = Depends(get_db), current_user: Employee = Depends(require_admin())):
    trips = business_trip_service.all_trips_query(db).all()
    return {"business_trip_requests": [BusinessTripOut.model_validate(t) for t in trips]}


@router.put("/{trip_id}/approve")
def approve_business_trip(trip_id: int, db: Session = Depends(get_db), current_user: Employee = Depends(require_approver())):
    trip = business_trip_service.approve_trip(db, trip_id, current_user)
    return {"message": "Business trip request approved successfully", "business_trip_request": BusinessTripOut.model_validate(trip)}


@router.put("/{trip_id}/reject")
def reject_business_trip(
    trip_id: int,
    data: TripRejectRequest,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_approver()),
):
    trip = business_trip_service.reject_trip(db, trip_id, current_user, data.rejection_reason)
    return {"message": "Business trip request rejected successfully", "business_trip_request": BusinessTripOut.model_validate(trip)}
