"""
Credential hashing, token issuance and temporary password generation.
"""
import logging
import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import func
from sqlalchemy.orm import Session

from hris.core.config import settings
from hris.core.exceptions import AuthenticationError
from hris.models.employee import Employee

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

SYMBOLS = "!@#$%^&*"
TEMP_PASSWORD_LENGTH = 12


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Malformed hash stored for a legacy account
        logger.warning("Password hash could not be identified")
        return False


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)


def create_token_for(employee: Employee) -> str:
    return create_access_token({"sub": str(employee.id), "role": employee.role.value})


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Returns the payload, {"error": "TOKEN_EXPIRED"} for an expired token,
    or None when the token cannot be trusted at all.
    """
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        return {"error": "TOKEN_EXPIRED"}
    except JWTError:
        return None


def generate_temporary_password(length: int = TEMP_PASSWORD_LENGTH) -> str:
    """Random password with at least one upper, lower, digit and symbol."""
    pools = [string.ascii_uppercase, string.ascii_lowercase, string.digits, SYMBOLS]
    chars = [secrets.choice(pool) for pool in pools]
    alphabet = "".join(pools)
    chars += [secrets.choice(alphabet) for _ in range(length - len(chars))]
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)


def authenticate(db: Session, email: str, password: str) -> Employee:
    """
    Resolve an employee by case-insensitive email and check the password.

    Raises:
        AuthenticationError: unknown email, inactive account or bad password.
    """
    employee = db.query(Employee).filter(func.lower(Employee.email) == email.strip().lower()).first()
    if not employee:
        raise AuthenticationError("Invalid credentials")
    if not employee.is_active:
        raise AuthenticationError("Account is inactive")
    if not verify_password(password, employee.password_hash):
        raise AuthenticationError("Invalid credentials")
    return employee
