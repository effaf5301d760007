"""
Session and answer store.

Owns every read and write of ``ExamSession`` and ``StudentAnswer`` rows. The
locking helpers must be called inside ``transaction.atomic()``.
"""
from decimal import Decimal
from typing import List, Optional

from django.contrib.auth import get_user_model

from .exceptions import ExamNotAssigned
from .grading import GradedAnswer, ScoreResult
from .models import ExamSession, StudentAnswer

User = get_user_model()


def assigned_exam_id(participant_id) -> Optional[int]:
    """The exam an admin assigned to the participant, or None."""
    return User.objects.filter(pk=participant_id).values_list('assigned_exam_id', flat=True).first()


def resolve_exam_id(participant_id, requested_exam_id=None) -> int:
    assigned = assigned_exam_id(participant_id)
    if assigned is None:
        raise ExamNotAssigned("The participant has not been assigned to an exam.")
    if requested_exam_id is not None and int(requested_exam_id) != assigned:
        raise ExamNotAssigned()
    return assigned


def get_session(participant_id, exam_id) -> Optional[ExamSession]:
    return ExamSession.objects.filter(user_id=participant_id, exam_id=exam_id).first()


def lock_session(participant_id, exam_id, create=True) -> Optional[ExamSession]:
    """Row-lock the (participant, exam) session.

    With ``create`` a missing row is created in ``not_logged_in``, but only
    for the participant's assigned exam.
    """
    pk = ExamSession.objects.filter(user_id=participant_id, exam_id=exam_id).values_list('pk', flat=True).first()
    if pk is None:
        if not create:
            return None
        if assigned_exam_id(participant_id) != exam_id:
            raise ExamNotAssigned(state=ExamSession.State.NOT_LOGGED_IN)
        session, _ = ExamSession.objects.get_or_create(user_id=participant_id, exam_id=exam_id)
        pk = session.pk
    return ExamSession.objects.select_for_update().get(pk=pk)


def upsert_answer(session, question_id, selected_option, is_correct) -> StudentAnswer:
    answer, _ = StudentAnswer.objects.update_or_create(
        session=session,
        question_id=question_id,
        defaults={'selected_option': selected_option, 'is_correct': is_correct},
    )
    return answer


def answers_for(session) -> List[GradedAnswer]:
    rows = StudentAnswer.objects.filter(session=session).values_list('question_id', 'selected_option')
    return [GradedAnswer(question_id=qid, selected_option=option) for qid, option in rows]


def selected_options(session) -> dict:
    if session is None:
        return {}
    return dict(StudentAnswer.objects.filter(session=session).values_list('question_id', 'selected_option'))


def stored_result(session) -> Optional[ScoreResult]:
    if session is None or session.score is None:
        return None
    return ScoreResult(
        total_questions=session.total_questions,
        answered=session.answered_count,
        correct=session.correct_count,
        wrong=session.wrong_count,
        unanswered=session.unanswered_count,
        percentage=float(session.score),
    )


def mark_submitted(session, submitted_at, result: ScoreResult) -> bool:
    """Finalize ``session`` unless someone already did. Returns False if it was already submitted."""
    score = Decimal(str(result.percentage))
    updated = ExamSession.objects.filter(pk=session.pk, submitted_at__isnull=True).update(
        state=ExamSession.State.SUBMITTED,
        submitted_at=submitted_at,
        total_questions=result.total_questions,
        answered_count=result.answered,
        correct_count=result.correct,
        wrong_count=result.wrong,
        unanswered_count=result.unanswered,
        score=score,
        updated_at=submitted_at,
    )
    if not updated:
        return False
    User.objects.filter(pk=session.user_id).update(score=score)
    session.refresh_from_db()
    return True


def saved_answers(session) -> list:
    """The session's answer rows with their question ordinals, ordered by ordinal."""
    if session is None:
        return []
    return list(
        StudentAnswer.objects.filter(session=session)
        .order_by('question__ordinal')
        .values('question_id', 'question__ordinal', 'selected_option', 'is_correct', 'answered_at')
    )
