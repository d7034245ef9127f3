"""API route package; imports all routers for main.py."""

from quizmaster.api.health import router as health_router  # noqa: F401
from quizmaster.api.users import router as users_router  # noqa: F401
from quizmaster.api.quizzes import router as quizzes_router  # noqa: F401
from quizmaster.api.questions import router as questions_router  # noqa: F401
from quizmaster.api.attempts import router as attempts_router  # noqa: F401
from quizmaster.api.leaderboard import router as leaderboard_router  # noqa: F401
