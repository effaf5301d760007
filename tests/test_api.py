import datetime as dt

import pytest
from rest_framework.test import APIClient

from assessments.models import ExamSession, StudentAnswer
from cores.models import AuditLog

from .conftest import SECOND, T0, T1

pytestmark = pytest.mark.django_db

ENTER = "/api/session/enter/"
QUESTIONS = "/api/session/questions/"
ANSWER = "/api/session/answers/"
BULK = "/api/session/answers/bulk/"
FINISH = "/api/session/finish/"
STATUS = "/api/session/status/"
WINDOW = "/api/session/window/"


def test_login_returns_token_pair(participant):
    client = APIClient()
    response = client.post("/api/auth/login/", {"username": "peserta1", "password": "peserta-pass-1"}, format="json")

    assert response.status_code == 200
    assert "access" in response.data
    assert response.data["user"]["role"] == "participant"


def test_session_endpoints_require_authentication(assigned):
    response = APIClient().post(ENTER, {}, format="json")
    assert response.status_code == 401


def test_enter_uses_the_assignment(api, assigned, clock):
    response = api.post(ENTER, {}, format="json")

    assert response.status_code == 200
    assert response.data["exam_id"] == assigned.exam_id
    assert response.data["state"] == "in_progress"
    assert response.data["gate"] == "open"
    assert response.data["seconds_remaining"] == 7200


def test_enter_before_start_reports_countdown(api, assigned, clock):
    clock.set(T0 - dt.timedelta(minutes=2))
    response = api.post(ENTER, {}, format="json")

    assert response.status_code == 403
    assert response.data["gate"] == "not_started"
    assert response.data["state"] == "not_started"
    assert response.data["seconds_until_start"] == 120


def test_enter_after_end_reports_closed(api, assigned, clock):
    clock.set(T1)
    response = api.post(ENTER, {}, format="json")

    assert response.status_code == 403
    assert response.data["gate"] == "closed"


def test_enter_other_exam_is_forbidden(api, assigned, make_exam, clock):
    other = make_exam(title="Ujian Lain")
    response = api.post(ENTER, {"exam_id": other.id}, format="json")

    assert response.status_code == 403
    assert response.data["code"] == "exam_not_assigned"


def test_question_sheet_has_no_answer_keys(api, assigned, clock):
    api.post(ENTER, {}, format="json")
    response = api.get(QUESTIONS)

    assert response.status_code == 200
    assert response.data["total_questions"] == 5
    assert "correct_option" not in response.data["questions"][0]
    assert response.data["questions"][0]["answered"] is False


def test_client_correctness_flag_is_ignored(api, assigned, questions, clock):
    api.post(ENTER, {}, format="json")
    response = api.post(
        ANSWER,
        {"question_id": questions[0].id, "selected_option": "d", "is_correct": True},
        format="json",
    )

    assert response.status_code == 200
    assert response.data["is_correct"] is False
    assert StudentAnswer.objects.get().is_correct is False


def test_bulk_autosave(api, assigned, questions, clock):
    api.post(ENTER, {}, format="json")
    response = api.post(BULK, {"answers": [
        {"question_id": questions[0].id, "selected_option": "a"},
        {"question_id": questions[1].id, "selected_option": "B"},
    ]}, format="json")

    assert response.status_code == 200
    assert response.data["saved_count"] == 2
    assert all(a["is_correct"] for a in response.data["answers"])


def test_invalid_option_is_a_bad_request(api, assigned, questions, clock):
    api.post(ENTER, {}, format="json")
    response = api.post(ANSWER, {"question_id": questions[0].id, "selected_option": "z"}, format="json")

    assert response.status_code == 400
    assert response.data["code"] == "invalid_option"


def test_answer_after_end_is_rejected_with_state(api, assigned, questions, clock):
    api.post(ENTER, {}, format="json")
    clock.set(T1)
    response = api.post(ANSWER, {"question_id": questions[0].id, "selected_option": "a"}, format="json")

    assert response.status_code == 403
    assert response.data["code"] == "window_closed"
    assert response.data["state"] == "in_progress"


def test_finish_then_replay(api, assigned, questions, clock):
    api.post(ENTER, {}, format="json")
    api.post(ANSWER, {"question_id": questions[0].id, "selected_option": "a"}, format="json")
    api.post(ANSWER, {"question_id": questions[1].id, "selected_option": "b"}, format="json")
    api.post(ANSWER, {"question_id": questions[2].id, "selected_option": "a"}, format="json")
    clock.advance(dt.timedelta(minutes=30))

    first = api.post(FINISH, {}, format="json")
    clock.advance(SECOND)
    second = api.post(FINISH, {}, format="json")

    assert first.status_code == 200
    assert first.data["already_submitted"] is False
    assert first.data["result"] == {
        "total_questions": 5, "answered": 3, "correct": 2, "wrong": 1, "unanswered": 2, "percentage": 40.0,
    }
    assert second.status_code == 200
    assert second.data["already_submitted"] is True
    assert second.data["submitted_at"] == first.data["submitted_at"]
    assert second.data["result"] == first.data["result"]


def test_answer_after_finish_is_rejected_with_recorded_result(api, assigned, questions, clock):
    api.post(ENTER, {}, format="json")
    finished = api.post(FINISH, {}, format="json")
    response = api.post(ANSWER, {"question_id": questions[0].id, "selected_option": "a"}, format="json")

    assert response.status_code == 409
    assert response.data["code"] == "session_not_in_progress"
    assert response.data["state"] == "submitted"
    assert response.data["submitted_at"] == finished.data["submitted_at"]
    assert response.data["result"] == finished.data["result"]


def test_reenter_after_finish_conflicts(api, assigned, clock):
    api.post(ENTER, {}, format="json")
    api.post(FINISH, {}, format="json")
    response = api.post(ENTER, {}, format="json")

    assert response.status_code == 409
    assert response.data["code"] == "already_submitted"
    assert response.data["result"]["percentage"] == 0.0


def test_status_without_assignment_is_default(api):
    response = api.get(STATUS)

    assert response.status_code == 200
    assert response.data["state"] == "not_logged_in"
    assert response.data["login_at"] is None
    assert response.data["result"] is None


def test_status_tracks_the_session(api, assigned, clock):
    api.post(ENTER, {}, format="json")
    response = api.get(STATUS)

    assert response.data["state"] == "in_progress"
    assert response.data["login_at"] is not None
    assert response.data["submitted_at"] is None


def test_admin_result_review(admin_user, assigned, questions, clock, api):
    api.post(ENTER, {}, format="json")
    api.post(ANSWER, {"question_id": questions[0].id, "selected_option": "a"}, format="json")
    admin = APIClient()
    admin.force_authenticate(user=admin_user)

    response = admin.get(f"/api/admin/sessions/{assigned.pk}/result/")

    assert response.status_code == 200
    assert response.data["is_final"] is False
    assert response.data["result"]["correct"] == 1
    assigned.refresh_from_db()
    assert assigned.state == ExamSession.State.IN_PROGRESS
    assert admin.get("/api/admin/sessions/999999/result/").status_code == 404


def test_result_review_is_admin_only(api, assigned):
    assert api.get(f"/api/admin/sessions/{assigned.pk}/result/").status_code == 403


def test_audit_log_lists_transitions(admin_user, api, assigned, clock):
    api.post(ENTER, {}, format="json")
    api.post(FINISH, {}, format="json")
    admin = APIClient()
    admin.force_authenticate(user=admin_user)

    response = admin.get("/api/admin/audit-logs/", {"action": "SUBMIT"})

    assert response.status_code == 200
    assert [entry["action"] for entry in response.data] == ["SUBMIT"]
    assert response.data[0]["actor_username"] == "peserta1"
    assert AuditLog.objects.count() == 2


def test_unassigned_participant_is_forbidden_everywhere(other_participant, exam, questions, clock):
    client = APIClient()
    client.force_authenticate(user=other_participant)

    responses = [
        client.post(ENTER, {"exam_id": exam.id}, format="json"),
        client.get(QUESTIONS, {"exam_id": exam.id}),
        client.post(ANSWER, {"exam_id": exam.id, "question_id": questions[0].id, "selected_option": "a"}, format="json"),
        client.post(FINISH, {"exam_id": exam.id}, format="json"),
    ]

    assert [r.status_code for r in responses] == [403, 403, 403, 403]
    assert {r.data["code"] for r in responses} == {"exam_not_assigned"}
    assert not ExamSession.objects.filter(user=other_participant).exists()


def test_window_check_is_read_only(api, assigned, clock):
    clock.set(T0 - dt.timedelta(minutes=5))
    response = api.get(WINDOW)

    assert response.status_code == 200
    assert response.data["exam_id"] == assigned.exam_id
    assert response.data["title"] == "Ujian Matematika"
    assert response.data["gate"] == "not_started"
    assert response.data["seconds_until_start"] == 300
    assert response.data["state"] == "not_logged_in"
    assigned.refresh_from_db()
    assert assigned.state == ExamSession.State.NOT_LOGGED_IN


def test_question_by_ordinal(api, assigned, questions, clock):
    api.post(ENTER, {}, format="json")
    api.post(ANSWER, {"question_id": questions[2].id, "selected_option": "c"}, format="json")

    response = api.get(f"{QUESTIONS}3/")

    assert response.status_code == 200
    assert response.data["id"] == questions[2].id
    assert response.data["selected_option"] == "c"
    assert "correct_option" not in response.data
    assert api.get(f"{QUESTIONS}42/").status_code == 404


def test_list_own_answers(api, assigned, questions, clock):
    api.post(ENTER, {}, format="json")
    api.post(ANSWER, {"question_id": questions[1].id, "selected_option": "b"}, format="json")

    response = api.get(ANSWER)

    assert response.status_code == 200
    assert response.data["total_answers"] == 1
    assert response.data["answers"][0]["ordinal"] == 2
    assert response.data["answers"][0]["selected_option"] == "b"


def test_admin_role_reviews_results_without_staff_flag(exam_admin, assigned):
    admin = APIClient()
    admin.force_authenticate(user=exam_admin)

    assert admin.get(f"/api/admin/sessions/{assigned.pk}/result/").status_code == 200
    assert admin.get("/api/admin/audit-logs/").status_code == 200
