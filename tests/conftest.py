import pytest
import os
from datetime import date, timedelta
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from hris.database import Base, get_db
from hris.main import app
from hris.models.employee import Employee, EmployeeRole, EmployeeStatus, EmploymentType
from hris.models.leave_type import LeaveType, LeaveTypeEffect
from hris.services import auth as auth_service
from fastapi.testclient import TestClient

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
DEFAULT_PASSWORD = "Password123!"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# pysqlite does not emit BEGIN itself; take over so SAVEPOINTs nest inside the test transaction
@event.listens_for(engine, "connect")
def _disable_pysqlite_transactions(dbapi_connection, connection_record):
    dbapi_connection.isolation_level = None


@event.listens_for(engine, "begin")
def _emit_begin(conn):
    conn.exec_driver_sql("BEGIN")


TestingSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    join_transaction_mode="create_savepoint",
)

_password_hash = {}


def _hash_default_password():
    if "value" not in _password_hash:
        _password_hash["value"] = auth_service.get_password_hash(DEFAULT_PASSWORD)
    return _password_hash["value"]


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Create tables once for the whole test session."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Get a clean database session for each test function with rollback safety."""
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(scope="function")
def make_employee(db_session):
    """Factory for employees; every one shares DEFAULT_PASSWORD."""
    counter = {"n": 0}

    def _make(
        role=EmployeeRole.EMPLOYEE,
        full_name=None,
        email=None,
        manager=None,
        employment_type=EmploymentType.PERMANENT,
        start_date=None,
        leave_balance=12.0,
        status=EmployeeStatus.ACTIVE,
    ):
        counter["n"] += 1
        n = counter["n"]
        employee = Employee(
            nik=f"NIK{n:04d}",
            full_name=full_name or f"{role.value} {n}",
            email=email if email is not None else f"{role.value.lower()}{n}@plugo.co",
            password_hash=_hash_default_password(),
            role=role,
            employment_type=employment_type,
            status=status,
            manager_id=manager.id if manager else None,
            leave_balance=leave_balance,
            start_date=start_date or date.today() - timedelta(days=400),
        )
        db_session.add(employee)
        db_session.commit()
        db_session.refresh(employee)
        return employee
    return _make


@pytest.fixture(scope="function")
def admin(make_employee):
    return make_employee(role=EmployeeRole.ADMIN, full_name="System Admin", email="admin@plugo.co")


@pytest.fixture(scope="function")
def hr(make_employee):
    return make_employee(role=EmployeeRole.HR, full_name="Helen HR", email="hr@plugo.co")


@pytest.fixture(scope="function")
def manager(make_employee):
    return make_employee(role=EmployeeRole.MANAGER, full_name="Mona Manager", email="manager@plugo.co")


@pytest.fixture(scope="function")
def employee(make_employee, manager):
    """Direct subordinate of `manager`."""
    return make_employee(full_name="Eddie Employee", email="employee@plugo.co", manager=manager)


@pytest.fixture(scope="function")
def make_leave_type(db_session):
    def _make(name, effect=LeaveTypeEffect.SUBTRACTION, is_active=True):
        leave_type = LeaveType(name=name, description=f"{name} description", type=effect, is_active=is_active, value=1)
        db_session.add(leave_type)
        db_session.commit()
        db_session.refresh(leave_type)
        return leave_type
    return _make


@pytest.fixture(scope="function")
def annual_leave(make_leave_type):
    return make_leave_type("Annual Leave")


@pytest.fixture(scope="function")
def sick_leave(make_leave_type):
    return make_leave_type("Sick Leave")


@pytest.fixture(scope="function")
def get_token():
    """Helper fixture to create access tokens for an employee."""
    def _get_token(employee):
        return auth_service.create_token_for(employee)
    return _get_token


@pytest.fixture(scope="function")
def auth_header(get_token):
    def _auth_header(employee):
        return {"Authorization": f"Bearer {get_token(employee)}"}
    return _auth_header


@pytest.fixture(scope="function")
def client(db_session):
    """Get a TestClient that uses the test database session via dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def next_monday():
    """A Monday at least a week ahead, so a Mon-Fri range never starts in the past."""
    start = date.today() + timedelta(days=7)
    return start + timedelta(days=(0 - start.weekday()) % 7)
