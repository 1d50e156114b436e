"""
Leave Balance Accrual Service.

Policy:
- months_joined = floor(days since start_date / 30.44), an average-month
  approximation rather than calendar-month subtraction.
- Accrual rate per month: 1.25 days (Permanent) or 1.00 day (Contract).
- Cutoff: an employee hired in the current calendar month accrues only if
  they started on or before the 16th. Earlier hires are always eligible.
- The prescribed balance REPLACES the stored balance. It is the total ever
  accrued as of today, not a monthly delta.

Architecture: Router → Service. Functions take an injected Session; the pure
date/arithmetic helpers take no session at all.
"""
import logging
import math
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hris.models.employee import Employee, EmployeeStatus, EmploymentType
from hris.models.leave_request import LeaveRequest
from hris.models.leave_type import LeaveType, LeaveTypeEffect
from hris.models.request_status import RequestStatus
from hris.services.audit import AuditService

logger = logging.getLogger(__name__)

AVERAGE_DAYS_PER_MONTH = 30.44
ACCRUAL_CUTOFF_DAY = 16
ACCRUAL_RATES = {
    EmploymentType.PERMANENT: 1.25,
    EmploymentType.CONTRACT: 1.0,
}

LEAVE_BALANCE_RULES = {
    "permanent_employee_rate": ACCRUAL_RATES[EmploymentType.PERMANENT],
    "contract_employee_rate": ACCRUAL_RATES[EmploymentType.CONTRACT],
    "calculation_unit": "per month",
    "cutoff_rule": "Employees who join after the 16th of the month will not receive leave balance for that month",
    "balance_calculation": "Total balance = Months joined × Rate; current balance = total balance + added days − used days",
}


# ---------------------------------------------------------------------------
# Pure calculations
# ---------------------------------------------------------------------------

def calculate_months_joined(start_date: date, today: Optional[date] = None) -> int:
    """
    Whole average-length months elapsed since start_date.

    Returns a negative number for a start date in the future.
    """
    today = today or date.today()
    return math.floor((today - start_date).days / AVERAGE_DAYS_PER_MONTH)


def is_eligible_this_month(start_date: date, today: Optional[date] = None) -> bool:
    """Apply the 16th-of-month cutoff to hires in the current calendar month only."""
    today = today or date.today()
    if (start_date.year, start_date.month) == (today.year, today.month):
        return start_date.day <= ACCRUAL_CUTOFF_DAY
    return True


def calculate_prescribed_balance(employment_type: EmploymentType, months_joined: int) -> float:
    """
    Total entitled balance for the elapsed months.

    Args:
        employment_type: Permanent or Contract.
        months_joined: Output of calculate_months_joined.

    Returns:
        months_joined × rate, or 0 when no whole month has elapsed.
    """
    if months_joined <= 0:
        return 0.0
    rate = ACCRUAL_RATES[EmploymentType(employment_type)]
    return months_joined * rate


def split_approved_days(leaves: List[Tuple[float, Optional[LeaveTypeEffect]]]) -> Tuple[float, float]:
    """Sum approved days by polarity: (total_added, total_balance_used)."""
    total_added = 0.0
    total_used = 0.0
    for days, effect in leaves:
        if effect == LeaveTypeEffect.ADDITION:
            total_added += days or 0
        else:
            # Legacy types without a polarity count as used
            total_used += days or 0
    return total_added, total_used


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------

def get_active_employees(db: Session) -> List[Employee]:
    return (
        db.query(Employee)
        .filter(Employee.status == EmployeeStatus.ACTIVE)
        .order_by(Employee.full_name)
        .all()
    )


def _fetch_approved_leaves(db: Session, employee_id: int) -> List[Tuple[float, Optional[LeaveTypeEffect]]]:
    rows = (
        db.query(LeaveRequest.days_requested, LeaveType.type)
        .join(LeaveType, LeaveRequest.leave_type_id == LeaveType.id)
        .filter(
            LeaveRequest.employee_id == employee_id,
            LeaveRequest.status == RequestStatus.APPROVED,
        )
        .all()
    )
    return [(days, effect) for days, effect in rows]


def _persist_balance(db: Session, employee: Employee, new_balance: float, now: datetime):
    employee.leave_balance = new_balance
    employee.updated_at = now
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


def build_balance_report(db: Session, employees: List[Employee], today: Optional[date] = None) -> List[Dict[str, Any]]:
    """
    Read-only balance report.

    An employee whose approved leaves cannot be fetched is logged and left
    out of the report; the rest of the batch is unaffected.
    """
    today = today or date.today()
    report = []
    for employee in employees:
        try:
            with db.begin_nested():
                approved = _fetch_approved_leaves(db, employee.id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch approved leaves for employee {employee.id}: {e}", exc_info=True)
            continue

        total_added, total_used = split_approved_days(approved)
        total_balance = employee.leave_balance or 0
        report.append({
            "employee_id": employee.id,
            "name": employee.full_name,
            "email": employee.email or "",
            "join_date": employee.start_date.isoformat(),
            "months_joined": calculate_months_joined(employee.start_date, today),
            "employment_type": employee.employment_type.value,
            "total_balance": total_balance,
            "total_balance_used": total_used,
            "total_added": total_added,
            "current_leave_balance": total_balance + total_added - total_used,
        })
    return report


def recalculate_leave_balances(db: Session, today: Optional[date] = None, actor: Optional[Employee] = None) -> Dict[str, Any]:
    """
    Recompute and store every active employee's accrued balance.

    Only changed balances are written. A failed write is logged and skipped,
    never retried, and does not stop the remaining employees.

    Returns:
        {"updates": [...], "calculation_date": datetime}
    """
    today = today or date.today()
    now = datetime.now(timezone.utc)
    updates = []

    for employee in get_active_employees(db):
        if not is_eligible_this_month(employee.start_date, today):
            continue

        months_joined = calculate_months_joined(employee.start_date, today)
        new_balance = calculate_prescribed_balance(employee.employment_type, months_joined)
        old_balance = employee.leave_balance or 0
        if round(new_balance, 2) == round(old_balance, 2):
            continue

        # Capture before the commit expires the instance
        employee_id = employee.id
        employee_name = employee.full_name
        employment_type = employee.employment_type.value
        try:
            _persist_balance(db, employee, new_balance, now)
        except SQLAlchemyError as e:
            logger.error(f"Failed to update leave balance for employee {employee_id}: {e}", exc_info=True)
            continue

        updates.append({
            "employee_id": employee_id,
            "employee_name": employee_name,
            "old_balance": old_balance,
            "new_balance": new_balance,
            "months_joined": months_joined,
            "employment_type": employment_type,
        })

    logger.info(f"Leave balance recalculation updated {len(updates)} employee(s)")
    if actor is not None:
        AuditService.log(
            db,
            action="recalculate_leave_balances",
            entity_type="employee",
            entity_id=None,
            user_id=actor.id,
            user_role=actor.role,
            details={"updated_count": len(updates), "as_of": today.isoformat()},
        )
        db.commit()
    return {"updates": updates, "calculation_date": now}
