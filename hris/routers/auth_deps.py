"""
RBAC Dependencies.
Resolves the calling employee from the bearer token and gates endpoints by role.
"""
import logging
from typing import Callable, List

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from hris.database import get_db
from hris.models.employee import ADMIN_ROLES, APPROVER_ROLES, Employee, EmployeeRole
from hris.schemas.auth import TokenData
from hris.services import auth as auth_service

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> Employee:
    """
    Extracts and validates the current employee from the JWT token.
    """
    if not token:
        raise _unauthorized("Access token required")

    payload = auth_service.decode_access_token(token)
    if payload is None:
        logger.warning("Authentication failed: Invalid token")
        raise _unauthorized("Invalid token")

    if payload.get("error") == "TOKEN_EXPIRED":
        logger.info("Authentication failed: Token expired")
        raise _unauthorized("TOKEN_EXPIRED")

    if payload.get("type") != "access":
        logger.warning("Authentication failed: Invalid token type")
        raise _unauthorized("Invalid token type")

    try:
        token_data = TokenData(employee_id=int(payload.get("sub")), role=payload.get("role"))
    except (TypeError, ValueError):
        logger.warning("Authentication failed: Missing subject in token")
        raise _unauthorized("Invalid token")

    employee = db.get(Employee, token_data.employee_id)
    if employee is None:
        logger.warning(f"Authentication failed: Employee {token_data.employee_id} not found")
        raise _unauthorized("Invalid token")
    if not employee.is_active:
        logger.warning(f"Authentication failed: Employee {employee.id} is inactive")
        raise _unauthorized("Account is inactive")
    return employee


def require_role(allowed_roles: List[EmployeeRole]) -> Callable:
    """
    Dependency factory that checks if the employee has one of the allowed roles.

    Usage:
        @router.get("/admin-only")
        def admin_endpoint(user: Employee = Depends(require_role([EmployeeRole.ADMIN]))):
            ...
    """
    def role_checker(current_user: Employee = Depends(get_current_user)):
        if current_user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return current_user
    return role_checker


def require_admin():
    """Shorthand for the administrative roles (Admin, HR)."""
    return require_role(ADMIN_ROLES)


def require_approver():
    """Shorthand for roles that may decide requests (Manager, Admin, HR)."""
    return require_role(APPROVER_ROLES)
