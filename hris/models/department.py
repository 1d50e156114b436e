"""
Department Model with explicit membership rows.
`employees.department_id` mirrors the membership so either side can be queried.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from hris.database import Base


class Department(Base):
    __tablename__ = "departments"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False, index=True)
    details = Column(Text, nullable=True)

    # Department head (an employee)
    head_id = Column(Integer, ForeignKey("employees.id", use_alter=True, name="fk_department_head_id"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    head = relationship("Employee", foreign_keys=[head_id])
    members = relationship("Employee", foreign_keys="Employee.department_id", back_populates="department")
    assignments = relationship("DepartmentEmployee", back_populates="department", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Department {self.id}: {self.name}>"

    @property
    def employee_count(self) -> int:
        return len(self.assignments)

    @property
    def department_employees(self):
        """Membership rows ordered by assignment time."""
        return sorted(self.assignments, key=lambda a: (a.assigned_at is None, a.assigned_at, a.id))


class DepartmentEmployee(Base):
    __tablename__ = "department_employees"
    __table_args__ = (UniqueConstraint("department_id", "employee_id", name="uq_department_employee"),)

    id = Column(Integer, primary_key=True, index=True)
    department_id = Column(Integer, ForeignKey("departments.id", ondelete="CASCADE"), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    position = Column(String(100), default="Staff", nullable=False)
    assigned_at = Column(DateTime(timezone=True), server_default=func.now())

    department = relationship("Department", back_populates="assignments")
    employee = relationship("Employee")
