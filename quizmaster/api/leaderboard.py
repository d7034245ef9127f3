"""Leaderboard and CSV export routes."""

import logging
import uuid
from urllib.parse import quote

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from quizmaster.api.deps import ensure_owner, get_current_user, get_quiz_or_404, require_professor
from quizmaster.core.errors import LoadFailed
from quizmaster.db.models import Quiz, QuizAttempt, RoleEnum, User
from quizmaster.db.session import get_db
from quizmaster.schemas.leaderboard import LeaderboardEntry, LeaderboardRead
from quizmaster.services.leaderboard import (
    build_entries,
    compute_stats,
    csv_filename,
    podium,
    rank_attempts,
    render_csv,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def _load_attempts(db: Session, quiz_id: uuid.UUID) -> list[QuizAttempt]:
    return (
        db.query(QuizAttempt)
        .filter(QuizAttempt.quiz_id == quiz_id)
        .order_by(QuizAttempt.completed_at.asc())
        .all()
    )


def _load_quiz(db: Session, quiz_id: uuid.UUID) -> Quiz:
    try:
        return get_quiz_or_404(db, quiz_id)
    except SQLAlchemyError as exc:
        logger.error("Quiz read failed for leaderboard %s: %s", quiz_id, exc)
        raise LoadFailed("Failed to load leaderboard") from exc


def _ranked_entries(db: Session, quiz: Quiz) -> tuple[list[QuizAttempt], list[LeaderboardEntry]]:
    try:
        attempts = _load_attempts(db, quiz.id)
    except SQLAlchemyError as exc:
        logger.error("Leaderboard read failed for quiz %s: %s", quiz.id, exc)
        raise LoadFailed("Failed to load leaderboard") from exc
    return attempts, build_entries(rank_attempts(attempts))


@router.get("/{quiz_id}/leaderboard", response_model=LeaderboardRead)
def get_leaderboard(
    quiz_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Ranked attempts with summary statistics.

    Open to the owning professor and to students; students do not see
    other students' email addresses.
    """
    quiz = _load_quiz(db, quiz_id)
    if current_user.role == RoleEnum.PROFESSOR:
        ensure_owner(quiz, current_user)

    attempts, entries = _ranked_entries(db, quiz)
    if current_user.role == RoleEnum.STUDENT:
        entries = [
            e if e.student_id == current_user.id else e.model_copy(update={"student_email": None})
            for e in entries
        ]

    return LeaderboardRead(
        quiz_id=quiz.id,
        quiz_title=quiz.title,
        stats=compute_stats(attempts),
        podium=podium(entries),
        entries=entries,
    )


@router.get("/{quiz_id}/leaderboard.csv")
def export_leaderboard_csv(
    quiz_id: uuid.UUID,
    current_user: User = Depends(require_professor),
    db: Session = Depends(get_db),
):
    """Download the ranked attempts as ``{title}-leaderboard.csv``."""
    quiz = _load_quiz(db, quiz_id)
    ensure_owner(quiz, current_user)

    _, entries = _ranked_entries(db, quiz)
    filename = csv_filename(quiz.title)
    ascii_name = filename.encode("ascii", "replace").decode("ascii").replace('"', "'")
    logger.info("Exporting leaderboard for quiz %s (%d rows)", quiz.id, len(entries))
    return Response(
        content=render_csv(entries),
        media_type="text/csv",
        headers={
            "Content-Disposition": (
                f'attachment; filename="{ascii_name}"; '
                f"filename*=UTF-8''{quote(filename)}"
            )
        },
    )
