import datetime as dt
import threading
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import pytest
from django.db import DatabaseError, connection, connections, transaction

from assessments import services, store
from assessments.grading import ScoreResult
from assessments.models import ExamSession
from cores.models import AuditLog

from .conftest import T0

pytestmark = pytest.mark.django_db(transaction=True)

WORKERS = 8


def finish_in_thread(participant_id, exam_id, now):
    try:
        return services.finish(participant_id, exam_id, now=now)
    finally:
        connections.close_all()


def mark_submitted_in_thread(session_pk, participant_id, submitted_at, result, start):
    start.wait()
    try:
        with transaction.atomic():
            # The conditional update is the first statement of the transaction
            session = ExamSession(pk=session_pk, user_id=participant_id)
            return store.mark_submitted(session, submitted_at, result)
    except DatabaseError:
        # Lost the write lock to another thread
        return None
    finally:
        connections.close_all()


def test_concurrent_submits_record_one_score(participant, assigned):
    start = threading.Barrier(WORKERS)
    attempts = [
        (T0 + dt.timedelta(seconds=i), ScoreResult(5, i % 6, i % 6, 0, 5 - i % 6, float(i % 6 * 20)))
        for i in range(WORKERS)
    ]

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        futures = [
            pool.submit(mark_submitted_in_thread, assigned.pk, participant.id, submitted_at, result, start)
            for submitted_at, result in attempts
        ]
        outcomes = [f.result() for f in futures]

    assert outcomes.count(True) == 1
    assert all(o in (False, None) for o in outcomes if o is not True)

    winner_time, winner_result = attempts[outcomes.index(True)]
    assigned.refresh_from_db()
    participant.refresh_from_db()
    assert assigned.state == ExamSession.State.SUBMITTED
    assert assigned.submitted_at == winner_time
    assert store.stored_result(assigned) == winner_result
    assert participant.score == Decimal(str(winner_result.percentage))


# SQLite ignores SELECT ... FOR UPDATE; run against a server database to exercise the row lock.
@pytest.mark.skipif(
    not connection.features.has_select_for_update,
    reason="needs a database with row-level locks",
)
def test_concurrent_finish_is_exactly_once(participant, assigned, questions):
    exam_id = assigned.exam_id
    services.enter(participant.id, exam_id, now=T0)
    services.submit_answer(participant.id, exam_id, questions[0].id, "a", now=T0)

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        futures = [
            pool.submit(finish_in_thread, participant.id, exam_id, T0 + dt.timedelta(seconds=i))
            for i in range(WORKERS)
        ]
        outcomes = [f.result() for f in futures]

    assert sum(not o.already_submitted for o in outcomes) == 1
    assert len({o.submitted_at for o in outcomes}) == 1
    assert len({o.result for o in outcomes}) == 1
    assert ExamSession.objects.get(user=participant, exam_id=exam_id).state == ExamSession.State.SUBMITTED
    assert AuditLog.objects.filter(action="SUBMIT").count() == 1
