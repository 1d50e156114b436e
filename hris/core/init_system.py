import logging
from typing import Optional

from sqlalchemy.orm import Session

from hris.database import SessionLocal
from hris.models.leave_type import ANNUAL_LEAVE, LeaveType, LeaveTypeEffect

logger = logging.getLogger(__name__)

DEFAULT_LEAVE_TYPES = [
    {"name": ANNUAL_LEAVE, "description": "Paid annual leave deducted from the accrued balance",
     "requires_document": False, "value": 1.0},
    {"name": "Sick Leave", "description": "Leave for illness, supported by a doctor's note",
     "requires_document": True, "value": 1.0},
    {"name": "Emergency Leave", "description": "Unplanned leave for urgent personal matters",
     "requires_document": False, "value": 1.0},
    {"name": "Maternity Leave", "description": "Leave for childbirth and recovery",
     "requires_document": True, "value": 90.0},
    {"name": "Paternity Leave", "description": "Leave for a new father",
     "requires_document": True, "value": 14.0},
]


def init_system_data(db: Optional[Session] = None) -> int:
    """
    Seeds the default leave types when the catalogue is empty.
    Returns the number of types created.
    """
    own_session = db is None
    db = db or SessionLocal()
    try:
        count = db.query(LeaveType).count()
        if count:
            logger.info(f"System initialization check: {count} leave type(s) found.")
            return 0

        for fields in DEFAULT_LEAVE_TYPES:
            db.add(LeaveType(type=LeaveTypeEffect.SUBTRACTION, is_active=True, requires_approval=True, **fields))
        db.commit()
        logger.info(f"✓ Seeded {len(DEFAULT_LEAVE_TYPES)} default leave types")
        return len(DEFAULT_LEAVE_TYPES)
    except Exception as e:
        db.rollback()
        logger.error(f"Error during system initialization check: {str(e)}", exc_info=True)
        return 0
    finally:
        if own_session:
            db.close()
