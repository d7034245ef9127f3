"""Leaderboard schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel


class LeaderboardEntry(BaseModel):
    rank: int
    attempt_id: uuid.UUID
    student_id: uuid.UUID
    student_name: str
    student_email: str | None = None
    score: int
    total_questions: int
    percentage: int
    completed_at: datetime


class LeaderboardStats(BaseModel):
    total_students: int = 0
    average: int = 0
    highest: int = 0
    lowest: int = 0


class LeaderboardRead(BaseModel):
    """GET /api/quizzes/{quiz_id}/leaderboard"""

    quiz_id: uuid.UUID
    quiz_title: str
    stats: LeaderboardStats
    podium: list[LeaderboardEntry]
    entries: list[LeaderboardEntry]
