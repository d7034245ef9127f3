"""Attempt grading.

An answer is correct only when the selected option is exactly equal to the
stored ``correct_answer``: case-sensitive, whitespace-sensitive, no partial
credit.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from quizmaster.core.errors import IncompleteSubmission
from quizmaster.db.models import Question

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GradedAttempt:
    score: int
    total_questions: int
    answers: list[dict]


def is_correct(selected_answer: str, correct_answer: str) -> bool:
    return selected_answer == correct_answer


def grade_answers(
    questions: Sequence[Question],
    selections: Mapping[uuid.UUID, str],
) -> GradedAttempt:
    """Grade one selection per question, in question order.

    Raises:
        IncompleteSubmission: if any question has no selection.
    """
    missing = [q.order_number for q in questions if q.id not in selections]
    if missing:
        raise IncompleteSubmission(
            "Please answer all questions before submitting",
            details=f"Unanswered question numbers: {', '.join(map(str, missing))}",
        )

    score = 0
    answers: list[dict] = []
    for q in questions:
        selected = selections[q.id]
        correct = is_correct(selected, q.correct_answer)
        if correct:
            score += 1
        answers.append(
            {"question_id": str(q.id), "selected_answer": selected, "correct": correct}
        )

    logger.debug("Graded %d/%d", score, len(questions))
    return GradedAttempt(score=score, total_questions=len(questions), answers=answers)
