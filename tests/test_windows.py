import datetime as dt

import pytest

from assessments import windows
from exams.catalog import ExamWindow

from .conftest import SECOND, T0, T1

WINDOW = ExamWindow(exam_id=1, starts_at=T0, ends_at=T1)


@pytest.mark.parametrize("now, gate", [
    (T0 - SECOND, windows.NOT_STARTED),
    (T0, windows.OPEN),
    (T1 - SECOND, windows.OPEN),
    (T1, windows.CLOSED),
    (T1 + SECOND, windows.CLOSED),
])
def test_window_is_closed_open(now, gate):
    assert windows.locate(WINDOW, now).gate == gate


def test_seconds_until_start():
    position = windows.locate(WINDOW, T0 - dt.timedelta(minutes=5))
    assert position.seconds_until_start == 300
    assert position.seconds_remaining is None


def test_seconds_remaining_rounds_up_partial_seconds():
    position = windows.locate(WINDOW, T1 - dt.timedelta(milliseconds=200))
    assert position.is_open
    assert position.seconds_remaining == 1


def test_closed_window_has_nothing_remaining():
    assert windows.locate(WINDOW, T1).seconds_remaining == 0
