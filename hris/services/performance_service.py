"""
Performance Appraisal Service: surveys, reviewer assignments and responses.

Assignment lifecycle: pending -> in_progress (first draft saved) -> completed
(submitted). A completed assignment is read-only.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from hris.core.exceptions import (
    AccessDeniedError,
    ConflictError,
    InvalidRequestError,
    NotFoundError,
)
from hris.models.employee import Employee
from hris.models.performance_survey import (
    AssignmentStatus,
    PerformanceSurvey,
    QuestionType,
    SurveyAssignment,
    SurveyPage,
    SurveyQuestion,
    SurveyResponse,
)
from hris.schemas.performance import (
    AssignSurveyRequest,
    LegacySubmitRequest,
    QuestionIn,
    SaveResponsesRequest,
    SurveyCreate,
    SurveyUpdate,
)

logger = logging.getLogger(__name__)

# Survey builder shorthands
QUESTION_TYPE_ALIASES = {
    "rating": QuestionType.RATING_SCALE,
    "text": QuestionType.FREE_TEXT,
}


def _commit(db: Session):
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


def _now() -> datetime:
    return datetime.now(timezone.utc)


def resolve_question_type(raw: str) -> QuestionType:
    value = (raw or "").strip()
    if value in QUESTION_TYPE_ALIASES:
        return QUESTION_TYPE_ALIASES[value]
    try:
        return QuestionType(value)
    except ValueError:
        raise InvalidRequestError(f"Invalid question type: {raw}")


def _build_questions(survey: PerformanceSurvey, page: SurveyPage, questions: List[QuestionIn]) -> List[SurveyQuestion]:
    built = []
    for order, question in enumerate(questions, start=1):
        built.append(SurveyQuestion(
            survey=survey,
            page=page,
            question_text=question.body,
            question_type=resolve_question_type(question.type),
            question_order=order,
            is_required=question.required,
            scale_min=question.scale_min,
            scale_max=question.scale_max,
            scale_min_label=question.scale_min_label,
            scale_max_label=question.scale_max_label,
            options=question.options,
        ))
    return built


# ---------------------------------------------------------------------------
# Surveys
# ---------------------------------------------------------------------------

def list_surveys(db: Session) -> List[PerformanceSurvey]:
    return (
        db.query(PerformanceSurvey)
        .options(selectinload(PerformanceSurvey.creator))
        .filter(PerformanceSurvey.is_active.is_(True))
        .order_by(PerformanceSurvey.created_at.desc(), PerformanceSurvey.id.desc())
        .all()
    )


def get_survey(db: Session, survey_id: int) -> PerformanceSurvey:
    survey = (
        db.query(PerformanceSurvey)
        .options(selectinload(PerformanceSurvey.pages).selectinload(SurveyPage.questions))
        .filter(PerformanceSurvey.id == survey_id)
        .first()
    )
    if not survey:
        raise NotFoundError("Survey not found")
    return survey


def create_survey(db: Session, actor: Employee, data: SurveyCreate) -> PerformanceSurvey:
    """Create a survey with one default page holding every question."""
    # Resolve types first so a bad type writes nothing
    for question in data.questions:
        resolve_question_type(question.type)

    survey = PerformanceSurvey(title=data.title.strip(), description=data.description, created_by=actor.id)
    page = SurveyPage(survey=survey, page_number=1, title=survey.title, description=data.description)
    db.add(survey)
    db.add_all(_build_questions(survey, page, data.questions))
    _commit(db)
    logger.info(f"Survey {survey.id} created by employee {actor.id} with {len(data.questions)} questions")
    return get_survey(db, survey.id)


def update_survey(db: Session, survey_id: int, data: SurveyUpdate) -> PerformanceSurvey:
    """Update title/description; a question list, when given, replaces the old one."""
    survey = get_survey(db, survey_id)
    if data.questions is not None:
        for question in data.questions:
            resolve_question_type(question.type)

    if data.title is not None:
        survey.title = data.title.strip()
    if "description" in data.model_fields_set:
        survey.description = data.description

    if data.questions is not None:
        page = survey.pages[0] if survey.pages else SurveyPage(survey=survey, page_number=1, title=survey.title)
        for question in list(survey.questions):
            survey.questions.remove(question)
        db.flush()
        db.add_all(_build_questions(survey, page, data.questions))

    _commit(db)
    db.expire_all()
    return get_survey(db, survey_id)


def delete_survey(db: Session, survey_id: int):
    survey = db.get(PerformanceSurvey, survey_id)
    if not survey:
        raise NotFoundError("Survey not found")
    db.delete(survey)
    _commit(db)
    logger.info(f"Survey {survey_id} deleted")


def serialize_question(question: SurveyQuestion) -> Dict:
    return {
        "id": question.id,
        "page_id": question.page_id,
        "text": question.question_text,
        "type": question.question_type.value,
        "order": question.question_order,
        "required": question.is_required,
        "options": question.options,
        "scaleMin": question.scale_min,
        "scaleMax": question.scale_max,
        "scaleMinLabel": question.scale_min_label,
        "scaleMaxLabel": question.scale_max_label,
    }


def serialize_survey(survey: PerformanceSurvey, with_questions: bool = True) -> Dict:
    body = {
        "id": survey.id,
        "title": survey.title,
        "description": survey.description,
        "created_by": survey.created_by,
        "created_by_name": survey.creator.full_name if survey.creator else None,
        "is_active": survey.is_active,
        "created_at": survey.created_at,
    }
    if with_questions:
        body["pages"] = [
            {
                "id": page.id,
                "page_number": page.page_number,
                "title": page.title,
                "description": page.description,
                "questions": [serialize_question(q) for q in page.questions],
            }
            for page in survey.pages
        ]
        body["questions"] = [serialize_question(q) for q in survey.questions]
    return body


# ---------------------------------------------------------------------------
# Assignments
# ---------------------------------------------------------------------------

def assign_survey(db: Session, data: AssignSurveyRequest) -> List[SurveyAssignment]:
    if not db.get(PerformanceSurvey, data.survey_id):
        raise NotFoundError("Survey not found")

    wanted_ids = {a.assignee_id for a in data.assignments} | {a.reviewer_id for a in data.assignments}
    found = {row.id for row in db.query(Employee.id).filter(Employee.id.in_(wanted_ids))}
    missing = sorted(wanted_ids - found)
    if missing:
        raise InvalidRequestError(f"Invalid employee IDs: {missing}")

    pairs = set()
    created = []
    for item in data.assignments:
        pair = (item.reviewer_id, item.assignee_id)
        exists = db.query(SurveyAssignment.id).filter(
            SurveyAssignment.survey_id == data.survey_id,
            SurveyAssignment.reviewer_id == item.reviewer_id,
            SurveyAssignment.reviewee_id == item.assignee_id,
        ).first()
        if pair in pairs or exists:
            raise ConflictError("Survey is already assigned to this reviewer for this employee")
        pairs.add(pair)
        created.append(SurveyAssignment(
            survey_id=data.survey_id,
            reviewer_id=item.reviewer_id,
            reviewee_id=item.assignee_id,
            due_date=item.due_date,
            status=AssignmentStatus.PENDING,
        ))
    db.add_all(created)
    _commit(db)
    logger.info(f"Survey {data.survey_id} assigned {len(created)} times")
    return created


def get_assignment(db: Session, assignment_id: int) -> SurveyAssignment:
    assignment = db.get(SurveyAssignment, assignment_id)
    if not assignment:
        raise NotFoundError("Assignment not found")
    return assignment


def user_assignments(db: Session, reviewer: Employee) -> List[SurveyAssignment]:
    return (
        db.query(SurveyAssignment)
        .options(selectinload(SurveyAssignment.survey), selectinload(SurveyAssignment.reviewee))
        .filter(SurveyAssignment.reviewer_id == reviewer.id)
        .order_by(SurveyAssignment.assigned_at.desc(), SurveyAssignment.id.desc())
        .all()
    )


def survey_assignments(db: Session, survey_id: int) -> List[SurveyAssignment]:
    if not db.get(PerformanceSurvey, survey_id):
        raise NotFoundError("Survey not found")
    return (
        db.query(SurveyAssignment)
        .options(selectinload(SurveyAssignment.reviewer), selectinload(SurveyAssignment.reviewee))
        .filter(SurveyAssignment.survey_id == survey_id)
        .order_by(SurveyAssignment.assigned_at.desc(), SurveyAssignment.id.desc())
        .all()
    )


def delete_assignment(db: Session, assignment_id: int):
    assignment = get_assignment(db, assignment_id)
    db.delete(assignment)
    _commit(db)


def serialize_assignment(assignment: SurveyAssignment) -> Dict:
    return {
        "id": assignment.id,
        "survey_id": assignment.survey_id,
        "assignee_id": assignment.reviewee_id,
        "reviewer_id": assignment.reviewer_id,
        "status": assignment.status.value,
        "assigned_at": assignment.assigned_at,
        "started_at": assignment.started_at,
        "completed_at": assignment.completed_at,
        "due_date": assignment.due_date,
        "assignee_name": assignment.reviewee.full_name if assignment.reviewee else "Unknown",
        "reviewer_name": assignment.reviewer.full_name if assignment.reviewer else "Unknown",
    }


def serialize_user_assignment(assignment: SurveyAssignment) -> Dict:
    body = serialize_assignment(assignment)
    body["survey"] = serialize_survey(assignment.survey, with_questions=False) if assignment.survey else None
    reviewee = assignment.reviewee
    body["reviewee"] = (
        {"id": reviewee.id, "full_name": reviewee.full_name, "email": reviewee.email} if reviewee else None
    )
    return body


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

def _ensure_reviewer(actor: Employee, assignment: SurveyAssignment):
    if assignment.reviewer_id != actor.id and not actor.is_admin:
        raise AccessDeniedError("You can only answer surveys assigned to you")


def _ensure_open(assignment: SurveyAssignment):
    if assignment.status == AssignmentStatus.COMPLETED:
        raise InvalidRequestError("This survey has already been submitted")


def _survey_question_ids(db: Session, survey_id: int) -> Dict[int, SurveyQuestion]:
    return {q.id: q for q in db.query(SurveyQuestion).filter(SurveyQuestion.survey_id == survey_id)}


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, (str, list, dict)) and len(value) == 0) or (
        isinstance(value, str) and not value.strip()
    )


def _upsert_response(db: Session, assignment: SurveyAssignment, question_id: int, **fields) -> SurveyResponse:
    response = db.query(SurveyResponse).filter(
        SurveyResponse.assignment_id == assignment.id,
        SurveyResponse.question_id == question_id,
    ).first()
    if response is None:
        response = SurveyResponse(assignment_id=assignment.id, question_id=question_id)
        db.add(response)
    for field, value in fields.items():
        setattr(response, field, value)
    return response


def _advance(assignment: SurveyAssignment, submit: bool):
    now = _now()
    if assignment.started_at is None:
        assignment.started_at = now
    if submit:
        assignment.status = AssignmentStatus.COMPLETED
        assignment.completed_at = now
    else:
        assignment.status = AssignmentStatus.IN_PROGRESS


def save_responses(db: Session, actor: Employee, data: SaveResponsesRequest) -> SurveyAssignment:
    """
    Upsert answers for an assignment, as a draft or as the final submission.

    Raises:
        NotFoundError: unknown assignment.
        AccessDeniedError: actor is neither the reviewer nor Admin/HR.
        InvalidRequestError: assignment already completed, a question from
            another survey, or a required question unanswered on submission.
    """
    assignment = get_assignment(db, data.assignment_id)
    _ensure_reviewer(actor, assignment)
    _ensure_open(assignment)

    questions = _survey_question_ids(db, assignment.survey_id)
    unknown = [r.question_id for r in data.responses if r.question_id not in questions]
    if unknown:
        raise InvalidRequestError(f"Questions do not belong to this survey: {unknown}")

    if data.is_submission:
        # Answers sent now replace any saved draft for the same question
        effective = {
            r.question_id: r.answer
            for r in db.query(SurveyResponse).filter(SurveyResponse.assignment_id == assignment.id)
        }
        effective.update({r.question_id: r.answer for r in data.responses})
        unanswered = [
            q.id for q in questions.values()
            if q.is_required and _is_blank(effective.get(q.id))
        ]
        if unanswered:
            raise InvalidRequestError("Please answer all required questions before submitting")

    for item in data.responses:
        _upsert_response(db, assignment, item.question_id, answer=item.answer)
    _advance(assignment, data.is_submission)
    _commit(db)
    db.refresh(assignment)
    return assignment


def submit_legacy_responses(db: Session, actor: Employee, data: LegacySubmitRequest) -> SurveyAssignment:
    """Typed-column submission used by older clients; always completes the assignment."""
    assignment = get_assignment(db, data.assignment_id)
    _ensure_reviewer(actor, assignment)
    _ensure_open(assignment)

    questions = _survey_question_ids(db, assignment.survey_id)
    unknown = [r.question_id for r in data.responses if r.question_id not in questions]
    if unknown:
        raise InvalidRequestError(f"Questions do not belong to this survey: {unknown}")

    for item in data.responses:
        _upsert_response(
            db, assignment, item.question_id,
            response_text=item.response_text,
            response_number=item.response_number,
            response_options=item.response_options,
        )
    _advance(assignment, submit=True)
    _commit(db)
    db.refresh(assignment)
    return assignment


def get_responses(db: Session, actor: Employee, assignment_id: int, with_questions: bool = False) -> List[Dict]:
    assignment = get_assignment(db, assignment_id)
    _ensure_reviewer(actor, assignment)
    rows = (
        db.query(SurveyResponse)
        .options(selectinload(SurveyResponse.question))
        .filter(SurveyResponse.assignment_id == assignment_id)
        .order_by(SurveyResponse.question_id)
        .all()
    )
    results = []
    for row in rows:
        body = {
            "id": row.id,
            "assignment_id": row.assignment_id,
            "question_id": row.question_id,
            "answer": row.answer,
            "response_text": row.response_text,
            "response_number": row.response_number,
            "response_options": row.response_options,
            "created_at": row.created_at,
            "updated_at": row.updated_at,
        }
        if with_questions and row.question is not None:
            body["question"] = serialize_question(row.question)
        results.append(body)
    return results
