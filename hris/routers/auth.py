import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session, joinedload

from hris.core.config import settings
from hris.core.exceptions import AuthenticationError, InvalidRequestError
from hris.core.limiter import limiter
from hris.database import get_db
from hris.models.employee import Employee
from hris.routers.auth_deps import get_current_user
from hris.schemas.auth import LoginRequest, LoginResponse, PasswordChange
from hris.schemas.employee import EmployeeOut
from hris.services import auth as auth_service
from hris.services.audit import AuditService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)


@router.post("/login", response_model=LoginResponse)
@limiter.limit(settings.login_rate_limit)
def login(request: Request, login_data: LoginRequest, db: Session = Depends(get_db)):
    try:
        employee = auth_service.authenticate(db, login_data.email, login_data.password)
    except AuthenticationError as e:
        AuditService.log(
            db,
            action="failed_login",
            entity_type="employee",
            entity_id=None,
            user_id=None,
            user_role=None,
            details={"email": login_data.email, "reason": e.message},
        )
        db.commit()
        logger.info(f"Failed login for {login_data.email}: {e.message}")
        raise

    token = auth_service.create_token_for(employee)
    AuditService.log(
        db,
        action="login",
        entity_type="employee",
        entity_id=employee.id,
        user_id=employee.id,
        user_role=employee.role,
        details={"email": employee.email},
    )
    db.commit()

    return {
        "message": "Login successful",
        "token": token,
        "user": employee,
    }


@router.get("/profile")
def get_profile(db: Session = Depends(get_db), current_user: Employee = Depends(get_current_user)):
    employee = (
        db.query(Employee)
        .options(joinedload(Employee.manager), joinedload(Employee.department))
        .filter(Employee.id == current_user.id)
        .one()
    )
    return {"user": EmployeeOut.model_validate(employee)}


@router.put("/change-password")
def change_password(
    data: PasswordChange,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    """Securely update the current employee's password."""
    if not auth_service.verify_password(data.current_password, current_user.password_hash):
        raise InvalidRequestError("Current password is incorrect")

    current_user.password_hash = auth_service.get_password_hash(data.new_password)
    current_user.password_changed = True
    AuditService.log(
        db,
        action="change_password",
        entity_type="employee",
        entity_id=current_user.id,
        user_id=current_user.id,
        user_role=current_user.role,
        details={"status": "success"},
    )
    db.commit()

    return {"message": "Password changed successfully"}
