"""Quiz generation pipeline.

Turns a professor's topic prompt into one ``quizzes`` row and its ordered
``questions`` rows:

1. validate input, then the caller
2. ask the AI provider for the questions (validated in ``ai_client``)
3. commit the quiz row
4. commit the question rows, ``order_number`` 1..N in generation order

The two commits are independent. If step 4 fails the quiz row from step 3
is deleted again (compensating delete). That delete is best-effort: if it
fails too, the error is logged and an orphan quiz without questions remains.
Nothing is written when steps 1–2 fail.
"""

import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from quizmaster.core.errors import Forbidden, InvalidInput, StorageError, Unauthorized
from quizmaster.db.models import Question, Quiz, RoleEnum, User
from quizmaster.schemas.quiz import GeneratedQuiz, QuizGenerateRequest
from quizmaster.services.ai_client import QuizAIClient

logger = logging.getLogger(__name__)


def _write_questions(db: Session, quiz_id: uuid.UUID, generated: GeneratedQuiz) -> None:
    db.add_all(
        Question(
            quiz_id=quiz_id,
            question_text=item.question,
            options=list(item.options),
            correct_answer=item.correct_answer,
            order_number=position,
        )
        for position, item in enumerate(generated.questions, start=1)
    )
    db.commit()


def _delete_quiz(db: Session, quiz_id: uuid.UUID) -> None:
    db.query(Quiz).filter(Quiz.id == quiz_id).delete(synchronize_session=False)
    db.commit()


def _compensate(db: Session, quiz_id: uuid.UUID) -> None:
    try:
        _delete_quiz(db, quiz_id)
        logger.warning("Deleted quiz %s after question insert failed", quiz_id)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(
            "Compensating delete failed, quiz %s left without questions: %s",
            quiz_id,
            exc,
        )


def generate_quiz(
    db: Session,
    caller: User | None,
    body: QuizGenerateRequest,
    ai: QuizAIClient,
) -> Quiz:
    """Run the pipeline and return the committed quiz (without questions)."""
    title = (body.title or "").strip()
    prompt = (body.prompt or "").strip()
    if not title or not prompt:
        raise InvalidInput("Prompt and title are required")
    if caller is None:
        raise Unauthorized("Unauthorized")
    if caller.role != RoleEnum.PROFESSOR:
        raise Forbidden("Professor access required")

    logger.info("Generating quiz for user %s: %r", caller.id, prompt[:80])
    generated = ai.generate_questions(prompt)

    quiz = Quiz(
        professor_id=caller.id,
        title=title,
        description=body.description or "",
        ai_prompt=prompt,
    )
    try:
        db.add(quiz)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Error creating quiz: %s", exc)
        raise StorageError("Failed to create quiz") from exc
    db.refresh(quiz)
    quiz_id = quiz.id
    logger.info("Quiz created: %s", quiz_id)

    try:
        _write_questions(db, quiz_id, generated)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Error creating questions for quiz %s: %s", quiz_id, exc)
        _compensate(db, quiz_id)
        raise StorageError("Failed to create questions") from exc

    logger.info("Stored %d questions for quiz %s", len(generated.questions), quiz_id)
    return quiz
