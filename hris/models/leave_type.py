from sqlalchemy import Column, Integer, String, Boolean, Float, Enum, DateTime, Text
from sqlalchemy.sql import func
from hris.database import Base
import enum


class LeaveTypeEffect(str, enum.Enum):
    """Polarity: whether approved use of the type adds to or subtracts from balance."""
    ADDITION = "Addition"
    SUBTRACTION = "Subtraction"


# Legacy type name whose approval deducts days_requested from the stored balance
ANNUAL_LEAVE = "Annual Leave"


class LeaveType(Base):
    __tablename__ = "leave_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False, index=True)
    description = Column(Text, nullable=False)
    max_days_per_year = Column(Integer, nullable=True)
    requires_approval = Column(Boolean, default=True, nullable=False)
    requires_document = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    type = Column(Enum(LeaveTypeEffect), default=LeaveTypeEffect.SUBTRACTION, nullable=False)
    value = Column(Float, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    @property
    def is_annual_leave(self) -> bool:
        return self.name == ANNUAL_LEAVE
