import pytest

from hris.models.performance_survey import AssignmentStatus, SurveyAssignment

BASE = "/api/performance-appraisal"


def _survey_payload(**overrides):
    payload = {
        "title": "Mid-year review",
        "description": "H1 appraisal",
        "questions": [
            {"text": "Overall rating", "type": "rating", "required": True, "scaleMin": 1, "scaleMax": 5,
             "scaleMinLabel": "Poor", "scaleMaxLabel": "Excellent"},
            {"question_text": "Strengths", "type": "text"},
            {"text": "Focus area", "type": "multiple_choice", "options": ["Delivery", "Quality"], "required": True},
        ],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def survey(client, admin, auth_header):
    return client.post(f"{BASE}/surveys", headers=auth_header(admin), json=_survey_payload()).json()["survey"]


@pytest.fixture
def assignment(client, db_session, admin, manager, employee, auth_header, survey):
    """`manager` reviews `employee`."""
    client.post(
        f"{BASE}/surveys/assign",
        headers=auth_header(admin),
        json={"survey_id": survey["id"], "assignments": [{"assigneeId": employee.id, "reviewerId": manager.id}]},
    )
    return db_session.query(SurveyAssignment).filter(SurveyAssignment.survey_id == survey["id"]).one()


def _question_ids(survey):
    return [q["id"] for q in survey["questions"]]


# --- Surveys ---

def test_create_survey(client, admin, auth_header):
    response = client.post(f"{BASE}/surveys", headers=auth_header(admin), json=_survey_payload())
    assert response.status_code == 201
    survey = response.json()["survey"]
    assert survey["created_by_name"] == "System Admin"
    assert [q["type"] for q in survey["questions"]] == ["rating_scale", "free_text", "multiple_choice"]
    assert [q["order"] for q in survey["questions"]] == [1, 2, 3]
    assert survey["questions"][0]["scaleMaxLabel"] == "Excellent"
    assert len(survey["pages"]) == 1
    assert len(survey["pages"][0]["questions"]) == 3


def test_invalid_question_type(client, db_session, admin, auth_header):
    payload = _survey_payload(questions=[{"text": "Mood", "type": "emoji"}])
    response = client.post(f"{BASE}/surveys", headers=auth_header(admin), json=payload)
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid question type: emoji"
    assert client.get(f"{BASE}/surveys", headers=auth_header(admin)).json()["surveys"] == []


def test_question_needs_text(client, admin, auth_header):
    payload = _survey_payload(questions=[{"type": "text"}])
    assert client.post(f"{BASE}/surveys", headers=auth_header(admin), json=payload).status_code == 400


def test_list_surveys_without_questions(client, admin, auth_header, survey):
    surveys = client.get(f"{BASE}/surveys", headers=auth_header(admin)).json()["surveys"]
    assert [s["id"] for s in surveys] == [survey["id"]]
    assert "questions" not in surveys[0]


def test_employee_cannot_manage_surveys(client, employee, auth_header, survey):
    headers = auth_header(employee)
    assert client.get(f"{BASE}/surveys", headers=headers).status_code == 403
    assert client.post(f"{BASE}/surveys", headers=headers, json=_survey_payload()).status_code == 403
    assert client.get(f"{BASE}/surveys/{survey['id']}", headers=headers).status_code == 200


def test_update_replaces_questions(client, admin, auth_header, survey):
    response = client.put(
        f"{BASE}/surveys/{survey['id']}",
        headers=auth_header(admin),
        json={"title": "H1 review", "questions": [{"text": "Anything else?", "type": "free_text"}]},
    )
    assert response.status_code == 200
    updated = response.json()["survey"]
    assert updated["title"] == "H1 review"
    assert updated["description"] == "H1 appraisal"
    assert [q["text"] for q in updated["questions"]] == ["Anything else?"]


def test_delete_survey(client, admin, auth_header, survey):
    headers = auth_header(admin)
    assert client.delete(f"{BASE}/surveys/{survey['id']}", headers=headers).status_code == 200
    assert client.get(f"{BASE}/surveys/{survey['id']}", headers=headers).status_code == 404


# --- Assignments ---

def test_assign_survey(client, admin, manager, employee, auth_header, survey, assignment):
    assert assignment.status == AssignmentStatus.PENDING
    rows = client.get(f"{BASE}/surveys/{survey['id']}/assignments", headers=auth_header(admin)).json()["assignments"]
    assert rows[0]["assignee_name"] == "Eddie Employee"
    assert rows[0]["reviewer_name"] == "Mona Manager"
    assert rows[0]["status"] == "pending"


def test_duplicate_assignment(client, admin, manager, employee, auth_header, survey, assignment):
    response = client.post(
        f"{BASE}/assignments",
        headers=auth_header(admin),
        json={"survey_id": survey["id"], "assignments": [{"assigneeId": employee.id, "reviewerId": manager.id}]},
    )
    assert response.status_code == 409


def test_assign_unknown_people(client, admin, auth_header, survey):
    response = client.post(
        f"{BASE}/surveys/assign",
        headers=auth_header(admin),
        json={"survey_id": survey["id"], "assignments": [{"assigneeId": 777, "reviewerId": 778}]},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid employee IDs: [777, 778]"


def test_assign_unknown_survey(client, admin, employee, manager, auth_header):
    response = client.post(
        f"{BASE}/surveys/assign",
        headers=auth_header(admin),
        json={"survey_id": 404, "assignments": [{"assigneeId": employee.id, "reviewerId": manager.id}]},
    )
    assert response.status_code == 404


def test_reviewer_sees_own_assignments(client, manager, employee, auth_header, assignment):
    rows = client.get(f"{BASE}/user-assignments", headers=auth_header(manager)).json()["assignments"]
    assert [r["id"] for r in rows] == [assignment.id]
    assert rows[0]["reviewee"]["full_name"] == "Eddie Employee"
    assert rows[0]["survey"]["title"] == "Mid-year review"
    assert client.get(f"{BASE}/assignments", headers=auth_header(employee)).json()["assignments"] == []


def test_delete_assignment(client, admin, auth_header, assignment):
    headers = auth_header(admin)
    assert client.delete(f"{BASE}/assignments/{assignment.id}", headers=headers).status_code == 200
    assert client.delete(f"{BASE}/assignments/{assignment.id}", headers=headers).status_code == 404


# --- Responses ---

def test_save_draft_then_submit(client, db_session, manager, auth_header, survey, assignment):
    rating, strengths, focus = _question_ids(survey)
    headers = auth_header(manager)

    draft = client.post(
        f"{BASE}/responses",
        headers=headers,
        json={"assignment_id": assignment.id, "responses": [{"question_id": rating, "answer": 4}]},
    )
    assert draft.json()["message"] == "Draft saved successfully"
    db_session.refresh(assignment)
    assert assignment.status == AssignmentStatus.IN_PROGRESS
    assert assignment.started_at is not None

    final = client.post(
        f"{BASE}/responses",
        headers=headers,
        json={
            "assignment_id": assignment.id,
            "responses": [{"question_id": strengths, "answer": "Ownership"}, {"question_id": focus, "answer": "Quality"}],
            "is_submission": True,
        },
    )
    assert final.status_code == 200
    assert final.json()["message"] == "Survey submitted successfully"
    db_session.refresh(assignment)
    assert assignment.status == AssignmentStatus.COMPLETED
    assert assignment.completed_at is not None

    answers = client.get(f"{BASE}/responses/{assignment.id}", headers=headers).json()["responses"]
    assert {r["question_id"]: r["answer"] for r in answers} == {rating: 4, strengths: "Ownership", focus: "Quality"}


def test_draft_answers_are_overwritten(client, manager, auth_header, survey, assignment):
    rating = _question_ids(survey)[0]
    headers = auth_header(manager)
    for value in (2, 5):
        client.post(f"{BASE}/responses", headers=headers,
                    json={"assignment_id": assignment.id, "responses": [{"question_id": rating, "answer": value}]})
    answers = client.get(f"{BASE}/responses/{assignment.id}", headers=headers).json()["responses"]
    assert [r["answer"] for r in answers] == [5]


def test_submission_requires_required_answers(client, db_session, manager, auth_header, survey, assignment):
    strengths = _question_ids(survey)[1]
    response = client.post(
        f"{BASE}/responses",
        headers=auth_header(manager),
        json={"assignment_id": assignment.id, "responses": [{"question_id": strengths, "answer": "x"}], "is_submission": True},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Please answer all required questions before submitting"
    db_session.refresh(assignment)
    assert assignment.status == AssignmentStatus.PENDING


def test_submission_cannot_blank_a_drafted_required_answer(client, db_session, manager, auth_header, survey, assignment):
    rating, _, focus = _question_ids(survey)
    headers = auth_header(manager)
    client.post(
        f"{BASE}/responses",
        headers=headers,
        json={"assignment_id": assignment.id, "responses": [
            {"question_id": rating, "answer": 4}, {"question_id": focus, "answer": "Quality"},
        ]},
    )

    response = client.post(
        f"{BASE}/responses",
        headers=headers,
        json={"assignment_id": assignment.id, "responses": [{"question_id": rating, "answer": None}], "is_submission": True},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Please answer all required questions before submitting"
    db_session.refresh(assignment)
    assert assignment.status == AssignmentStatus.IN_PROGRESS
    answers = client.get(f"{BASE}/responses/{assignment.id}", headers=headers).json()["responses"]
    assert {r["question_id"]: r["answer"] for r in answers}[rating] == 4


def test_completed_assignment_is_read_only(client, manager, auth_header, survey, assignment):
    rating, _, focus = _question_ids(survey)
    headers = auth_header(manager)
    body = {
        "assignment_id": assignment.id,
        "responses": [{"question_id": rating, "answer": 3}, {"question_id": focus, "answer": "Delivery"}],
        "is_submission": True,
    }
    assert client.post(f"{BASE}/responses", headers=headers, json=body).status_code == 200
    again = client.post(f"{BASE}/responses", headers=headers, json=body)
    assert again.status_code == 400
    assert again.json()["error"] == "This survey has already been submitted"


def test_foreign_question_is_rejected(client, admin, manager, auth_header, assignment):
    other = client.post(f"{BASE}/surveys", headers=auth_header(admin), json=_survey_payload(title="Other")).json()["survey"]
    foreign = other["questions"][0]["id"]
    response = client.post(
        f"{BASE}/responses",
        headers=auth_header(manager),
        json={"assignment_id": assignment.id, "responses": [{"question_id": foreign, "answer": 1}]},
    )
    assert response.status_code == 400
    assert response.json()["error"] == f"Questions do not belong to this survey: [{foreign}]"


def test_only_reviewer_answers(client, employee, auth_header, survey, assignment):
    rating = _question_ids(survey)[0]
    response = client.post(
        f"{BASE}/responses",
        headers=auth_header(employee),
        json={"assignment_id": assignment.id, "responses": [{"question_id": rating, "answer": 5}]},
    )
    assert response.status_code == 403
    assert client.get(f"{BASE}/responses/{assignment.id}", headers=auth_header(employee)).status_code == 403


def test_legacy_submission(client, db_session, admin, manager, auth_header, survey, assignment):
    rating, strengths, focus = _question_ids(survey)
    response = client.post(
        f"{BASE}/responses/submit",
        headers=auth_header(manager),
        json={
            "assignmentId": assignment.id,
            "responses": [
                {"questionId": rating, "responseNumber": 4},
                {"questionId": strengths, "responseText": "Calm under pressure"},
                {"questionId": focus, "responseOptions": ["Delivery"]},
            ],
        },
    )
    assert response.status_code == 200
    db_session.refresh(assignment)
    assert assignment.status == AssignmentStatus.COMPLETED

    answers = client.get(f"{BASE}/responses/admin/{assignment.id}", headers=auth_header(admin)).json()["responses"]
    by_question = {r["question_id"]: r for r in answers}
    assert by_question[rating]["response_number"] == 4
    assert by_question[strengths]["question"]["text"] == "Strengths"
    assert by_question[focus]["response_options"] == ["Delivery"]
