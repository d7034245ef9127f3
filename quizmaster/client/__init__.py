"""Python client for the QuizMaster API.."""

from quizmaster.client.api import QuizMasterClient  # noqa: F401
from quizmaster.client.session import Session, SessionState  # noqa: F401
from quizmaster.client.taking import QuizTakingFlow, TakingState  # noqa: F401
from quizmaster.client.throttle import GenerationCooldown  # noqa: F401
