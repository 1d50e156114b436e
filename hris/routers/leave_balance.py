from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from hris.database import get_db
from hris.models.employee import Employee
from hris.routers.auth_deps import get_current_user, require_admin
from hris.services import leave_balance as balance_service

router = APIRouter(
    prefix="/leave-balance",
    tags=["leave-balance"]
)


@router.get("")
def get_leave_balances(db: Session = Depends(get_db), current_user: Employee = Depends(require_admin())):
    """Balance report for every active employee, ordered by name."""
    employees = balance_service.get_active_employees(db)
    return {"data": balance_service.build_balance_report(db, employees)}


@router.post("/calculate")
def calculate_leave_balances(db: Session = Depends(get_db), current_user: Employee = Depends(require_admin())):
    """Run the monthly accrual now, then return the refreshed report."""
    result = balance_service.recalculate_leave_balances(db, actor=current_user)
    employees = balance_service.get_active_employees(db)
    return {
        "message": "Leave balances calculated successfully",
        "updatedCount": len(result["updates"]),
        "updates": result["updates"],
        "calculationDate": result["calculation_date"].isoformat(),
        "data": balance_service.build_balance_report(db, employees),
    }


@router.get("/rules")
def get_leave_balance_rules(current_user: Employee = Depends(get_current_user)):
    return {"rules": balance_service.LEAVE_BALANCE_RULES}
