from sqlalchemy import Column, Integer, String, Date, Enum, ForeignKey, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from hris.database import Base
from hris.models.request_status import RequestStatus, utcnow
import enum


class GrabService(str, enum.Enum):
    GRAB_CAR = "GrabCar"
    GRAB_BIKE = "GrabBike"
    GRAB_EXPRESS = "GrabExpress"
    GRAB_FOOD = "GrabFood"


class GrabCodeRequest(Base):
    __tablename__ = "grab_code_requests"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    service_needed = Column(Enum(GrabService), nullable=False)
    purpose = Column(Text, nullable=False)
    counterpart_name = Column(String, nullable=False)
    usage_date = Column(Date, nullable=False)
    usage_time = Column(String(5), nullable=False)  # HH:MM
    meeting_location = Column(String, nullable=False)
    code_needed = Column(Integer, nullable=False)
    status = Column(Enum(RequestStatus), default=RequestStatus.PENDING, nullable=False, index=True)

    approved_by = Column(Integer, ForeignKey("employees.id"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    # Fernet token of the JSON-encoded code list
    approved_codes = Column(Text, nullable=True)
    rejection_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    employee = relationship("Employee", foreign_keys=[employee_id])
    approver = relationship("Employee", foreign_keys=[approved_by])
