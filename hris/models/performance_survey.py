"""
Performance appraisal surveys.

A survey owns pages, pages own ordered questions. Assignments pair a reviewer
with a reviewee for one survey; responses are unique per (assignment, question).
"""
from sqlalchemy import Column, Integer, String, Boolean, Date, DateTime, Enum, ForeignKey, Text, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from hris.database import Base
from hris.models.request_status import utcnow
import enum


class QuestionType(str, enum.Enum):
    RATING_SCALE = "rating_scale"
    FREE_TEXT = "free_text"
    MULTIPLE_CHOICE = "multiple_choice"
    CHECKBOX = "checkbox"


class AssignmentStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class PerformanceSurvey(Base):
    __tablename__ = "performance_surveys"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey("employees.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    creator = relationship("Employee")
    pages = relationship("SurveyPage", back_populates="survey", cascade="all, delete-orphan", order_by="SurveyPage.page_number")
    questions = relationship("SurveyQuestion", back_populates="survey", cascade="all, delete-orphan", order_by="SurveyQuestion.question_order")
    assignments = relationship("SurveyAssignment", back_populates="survey", cascade="all, delete-orphan")


class SurveyPage(Base):
    __tablename__ = "survey_pages"

    id = Column(Integer, primary_key=True, index=True)
    survey_id = Column(Integer, ForeignKey("performance_surveys.id", ondelete="CASCADE"), nullable=False, index=True)
    page_number = Column(Integer, nullable=False)
    title = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)

    survey = relationship("PerformanceSurvey", back_populates="pages")
    questions = relationship("SurveyQuestion", back_populates="page", order_by="SurveyQuestion.question_order")


class SurveyQuestion(Base):
    __tablename__ = "survey_questions"

    id = Column(Integer, primary_key=True, index=True)
    survey_id = Column(Integer, ForeignKey("performance_surveys.id", ondelete="CASCADE"), nullable=False, index=True)
    page_id = Column(Integer, ForeignKey("survey_pages.id", ondelete="CASCADE"), nullable=True, index=True)
    question_text = Column(Text, nullable=False)
    question_type = Column(Enum(QuestionType), nullable=False)
    question_order = Column(Integer, nullable=False)
    is_required = Column(Boolean, default=False, nullable=False)
    scale_min = Column(Integer, nullable=True)
    scale_max = Column(Integer, nullable=True)
    scale_min_label = Column(String(255), nullable=True)
    scale_max_label = Column(String(255), nullable=True)
    options = Column(JSON, nullable=True)

    survey = relationship("PerformanceSurvey", back_populates="questions")
    page = relationship("SurveyPage", back_populates="questions")
    responses = relationship("SurveyResponse", back_populates="question", cascade="all, delete-orphan")


class SurveyAssignment(Base):
    __tablename__ = "survey_assignments"
    __table_args__ = (UniqueConstraint("survey_id", "reviewer_id", "reviewee_id", name="uq_survey_assignment"),)

    id = Column(Integer, primary_key=True, index=True)
    survey_id = Column(Integer, ForeignKey("performance_surveys.id", ondelete="CASCADE"), nullable=False, index=True)
    reviewer_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    reviewee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    status = Column(Enum(AssignmentStatus), default=AssignmentStatus.PENDING, nullable=False)
    due_date = Column(Date, nullable=True)
    assigned_at = Column(DateTime(timezone=True), default=utcnow)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    survey = relationship("PerformanceSurvey", back_populates="assignments")
    reviewer = relationship("Employee", foreign_keys=[reviewer_id])
    reviewee = relationship("Employee", foreign_keys=[reviewee_id])
    responses = relationship("SurveyResponse", back_populates="assignment", cascade="all, delete-orphan")


class SurveyResponse(Base):
    __tablename__ = "survey_responses"
    __table_args__ = (UniqueConstraint("assignment_id", "question_id", name="uq_survey_response"),)

    id = Column(Integer, primary_key=True, index=True)
    assignment_id = Column(Integer, ForeignKey("survey_assignments.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(Integer, ForeignKey("survey_questions.id", ondelete="CASCADE"), nullable=False, index=True)
    answer = Column(JSON, nullable=True)
    response_text = Column(Text, nullable=True)
    response_number = Column(Integer, nullable=True)
    response_options = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    assignment = relationship("SurveyAssignment", back_populates="responses")
    question = relationship("SurveyQuestion", back_populates="responses")
