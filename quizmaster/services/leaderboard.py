"""Leaderboard ranking, statistics and CSV export.

All functions here are pure: they take attempts already read from the
store (in store order) and derive the displayed view.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal

from quizmaster.db.models import QuizAttempt
from quizmaster.schemas.leaderboard import LeaderboardEntry, LeaderboardStats

PODIUM_SIZE = 3

CSV_HEADER = ["Rank", "Student Name", "Email", "Score", "Percentage", "Completed Date"]


def round_half_up(value: float) -> int:
    """Round to the nearest integer, .5 away from zero (Python's round() is banker's)."""
    return int(Decimal(repr(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def percentage(score: int, total_questions: int) -> float:
    if not total_questions:
        return 0.0
    return score / total_questions * 100


def rank_attempts(attempts: Sequence[QuizAttempt]) -> list[QuizAttempt]:
    """Highest score first; ties keep the order the store returned them in."""
    return sorted(attempts, key=lambda a: a.score, reverse=True)


def build_entries(ranked: Sequence[QuizAttempt]) -> list[LeaderboardEntry]:
    return [
        LeaderboardEntry(
            rank=position,
            attempt_id=a.id,
            student_id=a.student_id,
            student_name=a.student_name or "Anonymous",
            student_email=a.student_email or "N/A",
            score=a.score,
            total_questions=a.total_questions,
            percentage=round_half_up(percentage(a.score, a.total_questions)),
            completed_at=a.completed_at,
        )
        for position, a in enumerate(ranked, start=1)
    ]


def compute_stats(attempts: Sequence[QuizAttempt]) -> LeaderboardStats:
    if not attempts:
        return LeaderboardStats()
    scores = [percentage(a.score, a.total_questions) for a in attempts]
    return LeaderboardStats(
        total_students=len(attempts),
        average=round_half_up(sum(scores) / len(scores)),
        highest=round_half_up(max(scores)),
        lowest=round_half_up(min(scores)),
    )


def podium(entries: Sequence[LeaderboardEntry]) -> list[LeaderboardEntry]:
    """Top three, or nothing when fewer than three students took the quiz."""
    if len(entries) < PODIUM_SIZE:
        return []
    return list(entries[:PODIUM_SIZE])


def render_csv(entries: Sequence[LeaderboardEntry]) -> str:
    """One header row plus one row per entry, in rank order.

    Fields containing a comma, quote or newline are quoted; everything else
    is written bare, one ``\\n``-terminated line per row.
    """
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for e in entries:
        writer.writerow(
            [
                e.rank,
                e.student_name,
                e.student_email,
                f"{e.score}/{e.total_questions}",
                f"{e.percentage}%",
                e.completed_at.date().isoformat(),
            ]
        )
    return buf.getvalue()


def csv_filename(quiz_title: str) -> str:
    return f"{quiz_title}-leaderboard.csv"
