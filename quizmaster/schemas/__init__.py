"""Pydantic schemas, re-exported for convenience."""

from quizmaster.schemas.common import ErrorResponse, MessageResponse  # noqa: F401
from quizmaster.schemas.user import (  # noqa: F401
    AuthResponse,
    Role,
    UserCreate,
    UserLogin,
    UserRead,
)
from quizmaster.schemas.quiz import (  # noqa: F401
    GeneratedQuestion,
    GeneratedQuiz,
    QuestionPublic,
    QuestionRead,
    QuestionUpdate,
    QuizGenerateRequest,
    QuizGenerateResponse,
    QuizRead,
)
from quizmaster.schemas.attempt import (  # noqa: F401
    AnswerRecord,
    AnswerSelection,
    AttemptRead,
    AttemptReview,
    AttemptSubmit,
    ReviewItem,
)
from quizmaster.schemas.leaderboard import (  # noqa: F401
    LeaderboardEntry,
    LeaderboardRead,
    LeaderboardStats,
)
