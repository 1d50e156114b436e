"""
Combined "my requests" view over leave, grab-code and business-trip requests.
"""
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from hris.core.schemas import paginate_list
from hris.models.business_trip import BusinessTripRequest
from hris.models.employee import Employee
from hris.models.request_status import RequestKind, RequestStatus
from hris.schemas.business_trip import BusinessTripOut
from hris.schemas.grab_code import GrabCodeOut
from hris.schemas.leave import LeaveRequestOut
from hris.services import business_trip_service, grab_code_service, leave_service


def _tagged(schema, rows, kind: RequestKind):
    items = []
    for row in rows:
        item = schema.model_validate(row).model_dump()
        item["request_type"] = kind.value
        items.append(item)
    return items


def my_all_requests(
    db: Session,
    employee: Employee,
    kind: Optional[RequestKind] = None,
    status: Optional[RequestStatus] = None,
    page: int = 1,
    limit: int = 10,
) -> Dict[str, Any]:
    """
    The employee's own requests of every kind, newest first, paginated
    after merging. Business trips count only when the employee created them.
    """
    leaves, grabs, trips = [], [], []
    if kind in (None, RequestKind.LEAVE):
        leaves = _tagged(LeaveRequestOut, leave_service.my_requests_query(db, employee, status).all(), RequestKind.LEAVE)
    if kind in (None, RequestKind.GRAB_CODE):
        grabs = _tagged(GrabCodeOut, grab_code_service.my_requests_query(db, employee, status).all(), RequestKind.GRAB_CODE)
    if kind in (None, RequestKind.BUSINESS_TRIP):
        query = business_trip_service.all_trips_query(db).filter(BusinessTripRequest.employee_id == employee.id)
        if status:
            query = query.filter(BusinessTripRequest.status == status)
        trips = _tagged(BusinessTripOut, query.all(), RequestKind.BUSINESS_TRIP)

    merged = sorted(leaves + grabs + trips, key=lambda r: (r["created_at"] is not None, r["created_at"]), reverse=True)
    page_items, pagination = paginate_list(merged, page, limit)
    return {
        "requests": page_items,
        "pagination": pagination,
        "summary": {
            "total_leave_requests": len(leaves),
            "total_grab_requests": len(grabs),
            "total_business_trip_requests": len(trips),
            "total_requests": len(merged),
        },
    }
