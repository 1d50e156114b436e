from pydantic import BaseModel, ConfigDict, Field, model_validator
from datetime import date
from typing import Any, List, Optional


class QuestionIn(BaseModel):
    """Question as sent by the survey builder (camelCase scale fields)."""
    model_config = ConfigDict(populate_by_name=True)

    text: Optional[str] = None
    question_text: Optional[str] = None
    type: str
    required: bool = False
    options: Optional[List[str]] = None
    scale_min: Optional[int] = Field(None, alias="scaleMin")
    scale_max: Optional[int] = Field(None, alias="scaleMax")
    scale_min_label: Optional[str] = Field(None, alias="scaleMinLabel")
    scale_max_label: Optional[str] = Field(None, alias="scaleMaxLabel")

    @model_validator(mode="after")
    def require_text(self):
        if not (self.text or self.question_text or "").strip():
            raise ValueError("Question text is required")
        return self

    @property
    def body(self) -> str:
        return (self.text or self.question_text).strip()


class SurveyCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    questions: List[QuestionIn] = []


class SurveyUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    questions: Optional[List[QuestionIn]] = None


class AssignmentIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    assignee_id: int = Field(..., alias="assigneeId")
    reviewer_id: int = Field(..., alias="reviewerId")
    due_date: Optional[date] = Field(None, alias="dueDate")


class AssignSurveyRequest(BaseModel):
    survey_id: int
    assignments: List[AssignmentIn] = Field(..., min_length=1)


class ResponseItem(BaseModel):
    question_id: int
    answer: Any = None


class SaveResponsesRequest(BaseModel):
    assignment_id: int
    responses: List[ResponseItem] = []
    is_submission: bool = False


class LegacyResponseItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question_id: int = Field(..., alias="questionId")
    response_text: Optional[str] = Field(None, alias="responseText")
    response_number: Optional[int] = Field(None, alias="responseNumber")
    response_options: Optional[List[str]] = Field(None, alias="responseOptions")


class LegacySubmitRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    assignment_id: int = Field(..., alias="assignmentId")
    responses: List[LegacyResponseItem] = []
