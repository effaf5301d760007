"""
Exam session lifecycle.

Every operation that changes a session runs in one transaction holding the
row lock on the (participant, exam) session, and performs its time-window
and state checks under that lock, so callers never see a gap between the
check and the write.

States move ``not_logged_in -> not_started -> in_progress -> submitted``;
``submitted`` is terminal and the row is never written again.
"""
import functools
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from django.db import DatabaseError, transaction

from cores.models import AuditLog
from exams import catalog
from exams.models import Exam

from . import store, windows
from .clock import utc_now
from .exceptions import (
    AlreadySubmitted,
    ExamNotFound,
    ExamNotStarted,
    InvalidOption,
    PersistenceFailure,
    QuestionNotInExam,
    SessionNotInProgress,
    WindowClosed,
)
from .grading import ScoreResult, grade, is_correct_option, is_valid_option, normalize_option
from .models import ExamSession

logger = logging.getLogger(__name__)

State = ExamSession.State


@dataclass(frozen=True)
class EnterResult:
    exam_id: int
    state: str
    gate: str
    login_at: Optional[datetime]
    server_time: datetime
    seconds_until_start: Optional[int] = None
    seconds_remaining: Optional[int] = None


@dataclass(frozen=True)
class AnswerResult:
    question_id: int
    ordinal: int
    selected_option: str
    is_correct: bool
    answered_at: datetime


@dataclass(frozen=True)
class FinishResult:
    exam_id: int
    submitted_at: datetime
    result: ScoreResult
    already_submitted: bool = False

    @property
    def state(self):
        return State.SUBMITTED


@dataclass(frozen=True)
class SessionStatus:
    exam_id: int
    state: str
    login_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None
    result: Optional[ScoreResult] = None


@dataclass(frozen=True)
class WindowCheck:
    exam_id: int
    title: str
    description: str
    starts_at: datetime
    ends_at: datetime
    server_time: datetime
    gate: str
    state: str
    seconds_until_start: Optional[int] = None
    seconds_remaining: Optional[int] = None


@dataclass(frozen=True)
class QuestionSheet:
    exam_id: int
    server_time: datetime
    seconds_remaining: int
    questions: list

    @property
    def total_questions(self):
        return len(self.questions)


def _surface_store_errors(func):
    """Report database failures as PersistenceFailure. Nothing is retried here."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DatabaseError as exc:
            logger.exception("Session store failure in %s", func.__name__)
            raise PersistenceFailure() from exc
    return wrapper


def _now(now):
    return now if now is not None else utc_now()


def _load_window(exam_id):
    try:
        return catalog.get_exam_window(exam_id)
    except Exam.DoesNotExist:
        raise ExamNotFound(state=State.NOT_LOGGED_IN)


def _rejection(exc_class, session, message=None):
    if session is None:
        return exc_class(message, state=State.NOT_LOGGED_IN)
    return exc_class(
        message,
        state=session.state,
        submitted_at=session.submitted_at,
        result=store.stored_result(session),
    )


@_surface_store_errors
def enter(participant_id, exam_id, now=None) -> EnterResult:
    now = _now(now)
    position = windows.locate(_load_window(exam_id), now)

    with transaction.atomic():
        session = store.lock_session(participant_id, exam_id)

        if position.gate == windows.NOT_STARTED:
            if session.state == State.NOT_LOGGED_IN:
                session.state = State.NOT_STARTED
                session.save(update_fields=['state', 'updated_at'])

        elif position.is_open:
            if session.is_submitted:
                logger.warning("Participant %s re-entered submitted exam %s", participant_id, exam_id)
                raise _rejection(AlreadySubmitted, session)

            first_entry = session.login_at is None
            if session.state != State.IN_PROGRESS or first_entry:
                session.state = State.IN_PROGRESS
                if first_entry:
                    session.login_at = now
                session.save(update_fields=['state', 'login_at', 'updated_at'])
            if first_entry:
                AuditLog.record(participant_id, 'ENTER', session, details=f"Entered exam {exam_id}")
                logger.info("Participant %s entered exam %s at %s", participant_id, exam_id, now.isoformat())

    return EnterResult(
        exam_id=exam_id,
        state=session.state,
        gate=position.gate,
        login_at=session.login_at,
        server_time=now,
        seconds_until_start=position.seconds_until_start,
        seconds_remaining=position.seconds_remaining,
    )


def _writable_session(participant_id, exam_id, now):
    """Lock the session and check it may take answers at ``now``."""
    position = windows.locate(_load_window(exam_id), now)
    session = store.lock_session(participant_id, exam_id, create=False)

    if position.gate == windows.CLOSED:
        raise _rejection(WindowClosed, session)
    if position.gate == windows.NOT_STARTED:
        raise _rejection(ExamNotStarted, session)
    if session is None or session.state != State.IN_PROGRESS:
        raise _rejection(SessionNotInProgress, session)
    return session


def _record_answers(participant_id, exam_id, answers, now) -> List[AnswerResult]:
    results = []
    with transaction.atomic():
        session = _writable_session(participant_id, exam_id, now)
        for _, option in answers:
            if not is_valid_option(option):
                raise _rejection(InvalidOption, session, f"'{option}' is not one of the exam's options.")

        for question_id, option in answers:
            key = catalog.get_question_key(exam_id, question_id)
            if key is None:
                raise _rejection(QuestionNotInExam, session)

            selected = normalize_option(option)
            correct = is_correct_option(selected, key.correct_option)
            answer = store.upsert_answer(session, key.id, selected, correct)
            results.append(AnswerResult(
                question_id=key.id,
                ordinal=key.ordinal,
                selected_option=selected,
                is_correct=correct,
                answered_at=answer.answered_at,
            ))
    return results


@_surface_store_errors
def submit_answer(participant_id, exam_id, question_id, selected_option, now=None) -> AnswerResult:
    """Store (or overwrite) one answer. Correctness is always computed here."""
    now = _now(now)
    return _record_answers(participant_id, exam_id, [(question_id, selected_option)], now)[0]


@_surface_store_errors
def submit_answers(participant_id, exam_id, answers, now=None) -> List[AnswerResult]:
    """Auto-save a batch of ``(question_id, selected_option)`` pairs; all or nothing."""
    now = _now(now)
    results = _record_answers(participant_id, exam_id, list(answers), now)
    logger.info("Auto-saved %d answers for participant %s on exam %s", len(results), participant_id, exam_id)
    return results


def _replay(session) -> FinishResult:
    return FinishResult(
        exam_id=session.exam_id,
        submitted_at=session.submitted_at,
        result=store.stored_result(session),
        already_submitted=True,
    )


@_surface_store_errors
def finish(participant_id, exam_id, now=None, action='SUBMIT') -> FinishResult:
    """Finalize the session and lock in its score, exactly once.

    A session that is already submitted is not an error: the recorded
    ``submitted_at`` and score are returned unchanged with
    ``already_submitted=True``.
    """
    now = _now(now)
    _load_window(exam_id)

    with transaction.atomic():
        session = store.lock_session(participant_id, exam_id)
        if session.is_submitted:
            logger.warning("Participant %s finished exam %s again; replaying result", participant_id, exam_id)
            return _replay(session)

        result = grade(catalog.get_exam_definition(exam_id), store.answers_for(session))
        if not store.mark_submitted(session, now, result):
            session.refresh_from_db()
            return _replay(session)

        actor_id = participant_id if action == 'SUBMIT' else None
        AuditLog.record(
            actor_id, action, session,
            details=f"Score {result.percentage} ({result.correct}/{result.total_questions} correct)",
        )

    logger.info(
        "Participant %s submitted exam %s: %s%% (%d/%d)",
        participant_id, exam_id, result.percentage, result.correct, result.total_questions,
    )
    return FinishResult(
        exam_id=exam_id,
        submitted_at=session.submitted_at,
        result=store.stored_result(session),
    )


def get_session_status(participant_id, exam_id) -> SessionStatus:
    session = store.get_session(participant_id, exam_id)
    if session is None:
        return SessionStatus(exam_id=exam_id, state=State.NOT_LOGGED_IN)
    return SessionStatus(
        exam_id=exam_id,
        state=session.state,
        login_at=session.login_at,
        submitted_at=session.submitted_at,
        result=store.stored_result(session),
    )


def check_window(participant_id, exam_id, now=None) -> WindowCheck:
    """Where ``now`` falls in the exam window. Read-only: the session is never touched."""
    now = _now(now)
    try:
        summary = catalog.get_exam_summary(exam_id)
    except Exam.DoesNotExist:
        raise ExamNotFound(state=State.NOT_LOGGED_IN)

    position = windows.locate(summary.window, now)
    session = store.get_session(participant_id, exam_id)
    return WindowCheck(
        exam_id=exam_id,
        title=summary.title,
        description=summary.description,
        starts_at=summary.starts_at,
        ends_at=summary.ends_at,
        server_time=now,
        gate=position.gate,
        state=session.state if session is not None else State.NOT_LOGGED_IN,
        seconds_until_start=position.seconds_until_start,
        seconds_remaining=position.seconds_remaining,
    )


def _readable_session(participant_id, exam_id, now):
    """The session, if its questions may be shown at ``now``."""
    position = windows.locate(_load_window(exam_id), now)
    session = store.get_session(participant_id, exam_id)

    if position.gate == windows.CLOSED:
        raise _rejection(WindowClosed, session)
    if position.gate == windows.NOT_STARTED:
        raise _rejection(ExamNotStarted, session)
    if session is None or session.state != State.IN_PROGRESS:
        raise _rejection(SessionNotInProgress, session)
    return session, position


def _with_selection(question, chosen):
    question['selected_option'] = chosen.get(question['id'])
    question['answered'] = question['id'] in chosen
    return question


def get_question_sheet(participant_id, exam_id, now=None) -> QuestionSheet:
    """Questions for an in-progress session, without answer keys."""
    now = _now(now)
    session, position = _readable_session(participant_id, exam_id, now)

    chosen = store.selected_options(session)
    questions = [_with_selection(q, chosen) for q in catalog.get_question_sheet(exam_id)]

    return QuestionSheet(
        exam_id=exam_id,
        server_time=now,
        seconds_remaining=position.seconds_remaining,
        questions=questions,
    )


def get_question(participant_id, exam_id, ordinal, now=None) -> dict:
    """One question by its ordinal, with the participant's current answer."""
    now = _now(now)
    session, _ = _readable_session(participant_id, exam_id, now)

    question = catalog.get_sheet_question(exam_id, ordinal)
    if question is None:
        raise _rejection(QuestionNotInExam, session, f"The exam has no question number {ordinal}.")
    return _with_selection(question, store.selected_options(session))


def list_answers(participant_id, exam_id) -> List[AnswerResult]:
    """The participant's saved answers, in question order. Empty before the first answer."""
    rows = store.saved_answers(store.get_session(participant_id, exam_id))
    return [
        AnswerResult(
            question_id=row['question_id'],
            ordinal=row['question__ordinal'],
            selected_option=row['selected_option'],
            is_correct=row['is_correct'],
            answered_at=row['answered_at'],
        )
        for row in rows
    ]


def inspect_result(session_id) -> ScoreResult:
    """Score a session for review without changing anything.

    Submitted sessions report their recorded result; others are graded on the
    fly from the answers saved so far.
    """
    session = ExamSession.objects.get(pk=session_id)
    if session.is_submitted:
        return store.stored_result(session)
    return grade(catalog.get_exam_definition(session.exam_id), store.answers_for(session))


def finalize_expired_sessions(now=None) -> List[FinishResult]:
    """Finish every in-progress session whose exam window has closed."""
    now = _now(now)
    expired = (
        ExamSession.objects.filter(state=State.IN_PROGRESS, exam__ends_at__lte=now)
        .order_by('id')
        .values_list('user_id', 'exam_id')
    )
    finalized = []
    for participant_id, exam_id in list(expired):
        outcome = finish(participant_id, exam_id, now=now, action='AUTO_SUBMIT')
        if not outcome.already_submitted:
            finalized.append(outcome)
    logger.info("Finalized %d expired exam sessions", len(finalized))
    return finalized
