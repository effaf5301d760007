"""
Grading engine.

Pure functions over catalog snapshots and answer values. Nothing here reads
or writes the database, so results can be inspected any number of times;
only ``services.finish`` persists a score.
"""
from dataclasses import dataclass
from typing import Iterable, Tuple

from django.conf import settings


@dataclass(frozen=True)
class GradedAnswer:
    question_id: int
    selected_option: str


@dataclass(frozen=True)
class ScoreResult:
    total_questions: int
    answered: int
    correct: int
    wrong: int
    unanswered: int
    percentage: float


def option_alphabet() -> Tuple[str, ...]:
    return tuple(settings.CBT_OPTION_ALPHABET.lower())


def normalize_option(option) -> str:
    return str(option or '').strip().lower()


def is_valid_option(option) -> bool:
    normalized = normalize_option(option)
    return len(normalized) == 1 and normalized in option_alphabet()


def is_correct_option(selected_option, correct_option) -> bool:
    selected = normalize_option(selected_option)
    return bool(selected) and selected == normalize_option(correct_option)


def percentage(correct: int, total: int) -> float:
    if total == 0:
        return 0.0
    return round(correct / total * 100, 2)


def grade(definition, answers: Iterable[GradedAnswer]) -> ScoreResult:
    """Score ``answers`` against every question of ``definition``.

    Answers for questions outside the exam are ignored. Unanswered questions
    are never counted as correct.
    """
    keys = {q.id: q.correct_option for q in definition.questions}
    selected = {}
    for answer in answers:
        if answer.question_id in keys:
            selected[answer.question_id] = answer.selected_option

    total = len(keys)
    answered = len(selected)
    correct = sum(1 for qid, option in selected.items() if is_correct_option(option, keys[qid]))
    return ScoreResult(
        total_questions=total,
        answered=answered,
        correct=correct,
        wrong=answered - correct,
        unanswered=total - answered,
        percentage=percentage(correct, total),
    )
