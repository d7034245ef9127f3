"""Quiz-taking state machine for one (student, quiz) pair.

    NOT_STARTED ──start()──▶ IN_PROGRESS ──submit()──▶ SUBMITTED
         └──────── start() finds an attempt ─────────────▲

``SUBMITTED`` is terminal. Selections live only in memory until
``submit()``; abandoning the flow writes nothing.
"""

import enum
import logging
import uuid

from quizmaster.client.api import QuizMasterClient
from quizmaster.core.errors import (
    AlreadyAttempted,
    IncompleteSubmission,
    InvalidInput,
    QuizMasterError,
    SubmissionFailed,
)
from quizmaster.schemas.attempt import AttemptRead, AttemptReview
from quizmaster.schemas.quiz import QuestionPublic, QuestionRead, QuizRead

logger = logging.getLogger(__name__)


class TakingState(str, enum.Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"


class QuizTakingFlow:
    def __init__(self, client: QuizMasterClient, quiz_id: uuid.UUID) -> None:
        self._client = client
        self.quiz_id = quiz_id
        self.state = TakingState.NOT_STARTED
        self.quiz: QuizRead | None = None
        self.questions: list[QuestionPublic] | list[QuestionRead] = []
        self.current = 0
        self.attempt: AttemptRead | None = None
        self._selected: dict[int, str] = {}

    def _require(self, state: TakingState) -> None:
        if self.state != state:
            raise InvalidInput(f"Quiz is {self.state.value}, expected {state.value}")

    # ── lifecycle ─────────────────────────────────────────────────────────

    def start(self) -> TakingState:
        """Enter the quiz, or go straight to SUBMITTED if already taken."""
        if self.state == TakingState.SUBMITTED:
            return self.state

        existing = self._client.get_my_attempt(self.quiz_id)
        if existing is not None:
            logger.info("Quiz %s already attempted, redirecting to review", self.quiz_id)
            self.attempt = existing
            self.state = TakingState.SUBMITTED
            return self.state

        self.quiz = self._client.get_quiz(self.quiz_id)
        self.questions = self._client.get_questions(self.quiz_id)
        self.current = 0
        self._selected = {}
        self.state = TakingState.IN_PROGRESS
        return self.state

    # ── navigation & selection (local only) ───────────────────────────────

    @property
    def current_question(self) -> QuestionPublic | QuestionRead:
        self._require(TakingState.IN_PROGRESS)
        return self.questions[self.current]

    def select(self, option: str, index: int | None = None) -> None:
        self._require(TakingState.IN_PROGRESS)
        index = self.current if index is None else index
        if not 0 <= index < len(self.questions):
            raise InvalidInput(f"No question at index {index}")
        if option not in self.questions[index].options:
            raise InvalidInput("Selected answer is not one of the options")
        self._selected[index] = option

    def selected(self, index: int) -> str | None:
        return self._selected.get(index)

    def next(self) -> int:
        if self.current < len(self.questions) - 1:
            self.current += 1
        return self.current

    def previous(self) -> int:
        if self.current > 0:
            self.current -= 1
        return self.current

    def jump(self, index: int) -> int:
        if 0 <= index < len(self.questions):
            self.current = index
        return self.current

    @property
    def unanswered(self) -> list[int]:
        return [i for i in range(len(self.questions)) if i not in self._selected]

    @property
    def progress(self) -> float:
        if not self.questions:
            return 0.0
        return len(self._selected) / len(self.questions)

    # ── submission ────────────────────────────────────────────────────────

    def submit(self) -> AttemptRead:
        """Send every selection for grading.

        Raises:
            IncompleteSubmission: a question has no selection (nothing is sent).
            SubmissionFailed: the server refused or failed the write; the
                flow stays IN_PROGRESS and ``submit()`` may be called again.
        """
        self._require(TakingState.IN_PROGRESS)
        if self.unanswered:
            raise IncompleteSubmission("Please answer all questions before submitting")

        selections = [(q.id, self._selected[i]) for i, q in enumerate(self.questions)]
        try:
            attempt = self._client.submit_attempt(self.quiz_id, selections)
        except AlreadyAttempted:
            attempt = self._client.get_my_attempt(self.quiz_id)
            if attempt is None:
                raise SubmissionFailed("Failed to submit quiz")
            logger.info("Quiz %s was already submitted elsewhere", self.quiz_id)
        except QuizMasterError as exc:
            logger.warning("Submission of quiz %s failed: %s", self.quiz_id, exc.message)
            raise SubmissionFailed(exc.message, details=exc.details) from exc

        self.attempt = attempt
        self.state = TakingState.SUBMITTED
        return attempt

    def review(self) -> AttemptReview:
        self._require(TakingState.SUBMITTED)
        return self._client.get_review(self.quiz_id)
