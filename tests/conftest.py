import datetime as dt

import pytest
from rest_framework.test import APIClient

from assessments.clock import FixedClock
from assessments.models import ExamSession
from exams.models import Exam, Question

T0 = dt.datetime(2025, 10, 1, 1, 0, tzinfo=dt.timezone.utc)
T1 = T0 + dt.timedelta(hours=2)
SECOND = dt.timedelta(seconds=1)


@pytest.fixture
def participant(django_user_model):
    return django_user_model.objects.create_user(username="peserta1", password="peserta-pass-1")


@pytest.fixture
def other_participant(django_user_model):
    return django_user_model.objects.create_user(username="peserta2", password="peserta-pass-2")


@pytest.fixture
def make_exam(db):
    def _make(keys=("a", "b", "c", "d", "e"), starts_at=T0, ends_at=T1, title="Ujian Matematika"):
        exam = Exam.objects.create(title=title, starts_at=starts_at, ends_at=ends_at)
        for ordinal, key in enumerate(keys, start=1):
            Question.objects.create(
                exam=exam,
                ordinal=ordinal,
                text=f"Question {ordinal}",
                option_a="one",
                option_b="two",
                option_c="three",
                option_d="four",
                option_e="five",
                correct_option=key,
            )
        return exam
    return _make


@pytest.fixture
def exam(make_exam):
    return make_exam()


@pytest.fixture
def questions(exam):
    return list(exam.questions.order_by("ordinal"))


@pytest.fixture
def assign(db):
    """Administrative assignment of a participant to an exam."""
    def _assign(user, exam):
        user.assigned_exam = exam
        user.save(update_fields=["assigned_exam"])
        return user
    return _assign


@pytest.fixture
def assigned(participant, exam, assign):
    """The participant, assigned to ``exam``, with their session row already in place."""
    assign(participant, exam)
    return ExamSession.objects.create(user=participant, exam=exam)


@pytest.fixture
def exam_admin(django_user_model):
    return django_user_model.objects.create_user(
        username="panitia", password="panitia-pass", role=django_user_model.Role.ADMIN,
    )


@pytest.fixture
def clock(monkeypatch):
    clock = FixedClock(T0)
    monkeypatch.setattr("assessments.services.utc_now", clock.now)
    return clock


@pytest.fixture
def api(participant):
    client = APIClient()
    client.force_authenticate(user=participant)
    return client
