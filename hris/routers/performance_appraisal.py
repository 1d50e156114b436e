from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from hris.database import get_db
from hris.models.employee import Employee
from hris.routers.auth_deps import get_current_user, require_admin
from hris.schemas.performance import (
    AssignSurveyRequest,
    LegacySubmitRequest,
    SaveResponsesRequest,
    SurveyCreate,
    SurveyUpdate,
)
from hris.services import performance_service

router = APIRouter(
    prefix="/performance-appraisal",
    tags=["performance-appraisal"]
)


# --- Surveys ---

@router.get("/surveys")
def list_surveys(db: Session = Depends(get_db), current_user: Employee = Depends(require_admin())):
    surveys = performance_service.list_surveys(db)
    return {"surveys": [performance_service.serialize_survey(s, with_questions=False) for s in surveys]}


@router.post("/surveys", status_code=status.HTTP_201_CREATED)
def create_survey(data: SurveyCreate, db: Session = Depends(get_db), current_user: Employee = Depends(require_admin())):
    survey = performance_service.create_survey(db, current_user, data)
    return {"survey": performance_service.serialize_survey(survey), "message": "Survey created successfully"}


# Declared before /surveys/{survey_id} so "assign" is not read as an id
@router.post("/surveys/assign")
def assign_survey(data: AssignSurveyRequest, db: Session = Depends(get_db), current_user: Employee = Depends(require_admin())):
    performance_service.assign_survey(db, data)
    return {"message": "Survey assigned successfully"}


@router.get("/surveys/{survey_id}")
def get_survey_details(survey_id: int, db: Session = Depends(get_db), current_user: Employee = Depends(get_current_user)):
    survey = performance_service.get_survey(db, survey_id)
    return {"survey": performance_service.serialize_survey(survey)}


@router.put("/surveys/{survey_id}")
def update_survey(
    survey_id: int,
    data: SurveyUpdate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin()),
):
    survey = performance_service.update_survey(db, survey_id, data)
    return {"survey": performance_service.serialize_survey(survey), "message": "Survey updated successfully"}


@router.delete("/surveys/{survey_id}")
def delete_survey(survey_id: int, db: Session = Depends(get_db), current_user: Employee = Depends(require_admin())):
    performance_service.delete_survey(db, survey_id)
    return {"message": "Survey deleted successfully"}


@router.get("/surveys/{survey_id}/assignments")
def survey_assignments(survey_id: int, db: Session = Depends(get_db), current_user: Employee = Depends(require_admin())):
    assignments = performance_service.survey_assignments(db, survey_id)
    return {"assignments": [performance_service.serialize_assignment(a) for a in assignments]}


# --- Assignments ---

@router.post("/assignments")
def create_assignments(data: AssignSurveyRequest, db: Session = Depends(get_db), current_user: Employee = Depends(require_admin())):
    performance_service.assign_survey(db, data)
    return {"message": "Survey assigned successfully"}


@router.get("/assignments")
def my_assignments(db: Session = Depends(get_db), current_user: Employee = Depends(get_current_user)):
    assignments = performance_service.user_assignments(db, current_user)
    return {"assignments": [performance_service.serialize_user_assignment(a) for a in assignments]}


@router.get("/user-assignments")
def user_assignments(db: Session = Depends(get_db), current_user: Employee = Depends(get_current_user)):
    return my_assignments(db, current_user)


@router.delete("/assignments/{assignment_id}")
def delete_assignment(assignment_id: int, db: Session = Depends(get_db), current_user: Employee = Depends(require_admin())):
    performance_service.delete_assignment(db, assignment_id)
    return {"message": "Assignment deleted successfully"}


# --- Responses ---

@router.post("/responses")
def save_responses(data: SaveResponsesRequest, db: Session = Depends(get_db), current_user: Employee = Depends(get_current_user)):
    performance_service.save_responses(db, current_user, data)
    return {"message": "Survey submitted successfully" if data.is_submission else "Draft saved successfully"}


@router.post("/responses/submit")
def submit_survey_response(data: LegacySubmitRequest, db: Session = Depends(get_db), current_user: Employee = Depends(get_current_user)):
    performance_service.submit_legacy_responses(db, current_user, data)
    return {"message": "Survey response submitted successfully"}


@router.get("/responses/admin/{assignment_id}")
def get_survey_responses_admin(assignment_id: int, db: Session = Depends(get_db), current_user: Employee = Depends(require_admin())):
    return {"responses": performance_service.get_responses(db, current_user, assignment_id, with_questions=True)}


@router.get("/responses/{assignment_id}")
def get_responses(assignment_id: int, db: Session = Depends(get_db), current_user: Employee = Depends(get_current_user)):
    return {"responses": performance_service.get_responses(db, current_user, assignment_id)}
