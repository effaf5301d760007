"""
Read-only view of the exam catalog for the session lifecycle.

The session code never touches ``Exam``/``Question`` rows directly; it asks
this module for immutable snapshots so that grading works on plain values.
Lookups of unknown exams raise ``Exam.DoesNotExist``.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from .models import Exam, Question


@dataclass(frozen=True)
class ExamWindow:
    exam_id: int
    starts_at: datetime
    ends_at: datetime


@dataclass(frozen=True)
class QuestionKey:
    id: int
    ordinal: int
    correct_option: str


@dataclass(frozen=True)
class ExamDefinition:
    exam_id: int
    starts_at: datetime
    ends_at: datetime
    questions: Tuple[QuestionKey, ...]

    @property
    def window(self) -> ExamWindow:
        return ExamWindow(self.exam_id, self.starts_at, self.ends_at)


@dataclass(frozen=True)
class ExamSummary:
    exam_id: int
    title: str
    description: str
    starts_at: datetime
    ends_at: datetime

    @property
    def window(self) -> ExamWindow:
        return ExamWindow(self.exam_id, self.starts_at, self.ends_at)


def _key(question) -> QuestionKey:
    return QuestionKey(
        id=question.id,
        ordinal=question.ordinal,
        correct_option=(question.correct_option or '').lower(),
    )


def get_exam_window(exam_id: int) -> ExamWindow:
    starts_at, ends_at = Exam.objects.values_list('starts_at', 'ends_at').get(pk=exam_id)
    return ExamWindow(exam_id, starts_at, ends_at)


def get_exam_summary(exam_id: int) -> ExamSummary:
    title, description, starts_at, ends_at = (
        Exam.objects.values_list('title', 'description', 'starts_at', 'ends_at').get(pk=exam_id)
    )
    return ExamSummary(exam_id, title, description, starts_at, ends_at)


def get_questions(exam_id: int) -> Tuple[QuestionKey, ...]:
    """Answer keys for an exam, ordered by ordinal."""
    questions = Question.objects.filter(exam_id=exam_id).order_by('ordinal').only('id', 'ordinal', 'correct_option')
    return tuple(_key(q) for q in questions)


def get_exam_definition(exam_id: int) -> ExamDefinition:
    window = get_exam_window(exam_id)
    return ExamDefinition(
        exam_id=exam_id,
        starts_at=window.starts_at,
        ends_at=window.ends_at,
        questions=get_questions(exam_id),
    )


def get_question_key(exam_id: int, question_id: int) -> Optional[QuestionKey]:
    """The key of ``question_id`` if it belongs to ``exam_id``, else None."""
    question = Question.objects.filter(exam_id=exam_id, pk=question_id).only('id', 'ordinal', 'correct_option').first()
    if question is None:
        return None
    return _key(question)


SHEET_FIELDS = ('id', 'ordinal', 'text', 'option_a', 'option_b', 'option_c', 'option_d', 'option_e')


def get_question_sheet(exam_id: int):
    """Questions with their option texts, ordered by ordinal. Keys are left out."""
    return list(Question.objects.filter(exam_id=exam_id).order_by('ordinal').values(*SHEET_FIELDS))


def get_sheet_question(exam_id: int, ordinal: int) -> Optional[dict]:
    return Question.objects.filter(exam_id=exam_id, ordinal=ordinal).values(*SHEET_FIELDS).first()
