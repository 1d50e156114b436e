"""
Business trip requests with their agenda events and travelling participants.
"""
from sqlalchemy import Column, Integer, String, Date, Enum, ForeignKey, DateTime, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from hris.database import Base
from hris.models.request_status import RequestStatus, utcnow


class BusinessTripRequest(Base):
    __tablename__ = "business_trip_requests"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    destination = Column(String, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    status = Column(Enum(RequestStatus), default=RequestStatus.PENDING, nullable=False, index=True)

    approved_by = Column(Integer, ForeignKey("employees.id"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    employee = relationship("Employee", foreign_keys=[employee_id])
    approver = relationship("Employee", foreign_keys=[approved_by])
    events = relationship(
        "BusinessTripEvent", back_populates="trip",
        cascade="all, delete-orphan", order_by="BusinessTripEvent.start_date",
    )
    participants = relationship("BusinessTripParticipant", back_populates="trip", cascade="all, delete-orphan")


class BusinessTripEvent(Base):
    __tablename__ = "business_trip_events"

    id = Column(Integer, primary_key=True, index=True)
    business_trip_id = Column(Integer, ForeignKey("business_trip_requests.id", ondelete="CASCADE"), nullable=False, index=True)
    event_name = Column(String, nullable=False)
    agenda = Column(Text, nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    start_time = Column(String(5), nullable=True)
    end_time = Column(String(5), nullable=True)
    location = Column(String, nullable=True)

    trip = relationship("BusinessTripRequest", back_populates="events")


class BusinessTripParticipant(Base):
    __tablename__ = "business_trip_participants"
    __table_args__ = (UniqueConstraint("business_trip_id", "employee_id", name="uq_trip_participant"),)

    id = Column(Integer, primary_key=True, index=True)
    business_trip_id = Column(Integer, ForeignKey("business_trip_requests.id", ondelete="CASCADE"), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)

    trip = relationship("BusinessTripRequest", back_populates="participants")
    employee = relationship("Employee")
