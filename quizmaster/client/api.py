"""HTTP client for the QuizMaster API.

Wraps an ``httpx.Client`` (any subclass works, including FastAPI's
``TestClient``), keeps the session in a ``SessionState``, and turns error
envelopes back into ``quizmaster.core.errors`` exceptions. Every response
body is validated into a schema before it is returned.
"""

import logging
import time
import uuid
from collections.abc import Callable, Iterable
from typing import Any

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from quizmaster.client.session import Session, SessionState
from quizmaster.client.throttle import GenerationCooldown
from quizmaster.config import settings
from quizmaster.core.errors import (
    EmailTaken,
    Forbidden,
    InvalidInput,
    NotFound,
    QuizMasterError,
    StorageError,
    Unauthorized,
    error_from_response,
)
from quizmaster.schemas.attempt import AttemptRead, AttemptReview
from quizmaster.schemas.leaderboard import LeaderboardRead
from quizmaster.schemas.quiz import (
    QuestionPublic,
    QuestionRead,
    QuizGenerateResponse,
    QuizRead,
)
from quizmaster.schemas.user import AuthResponse, Role, UserRead

logger = logging.getLogger(__name__)


def _parse(model: Any, data: Any) -> Any:
    try:
        if isinstance(model, type) and issubclass(model, BaseModel):
            return model.model_validate(data)
        return TypeAdapter(model).validate_python(data)
    except ValidationError as exc:
        logger.warning("Unexpected response shape for %s: %s", model, exc)
        raise StorageError("Unexpected response from server", details=str(exc)) from exc


class QuizMasterClient:
    """Synchronous API client.

    Leaving a ``with`` block calls ``close()``, which drops session listeners
    and closes the HTTP client if this instance created it.
    """

    def __init__(
        self,
        base_url: str = f"http://localhost:{settings.PORT}",
        *,
        http: httpx.Client | None = None,
        cooldown_seconds: float = settings.GENERATION_COOLDOWN_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._owns_http = http is None
        self._http = http or httpx.Client(base_url=base_url.rstrip("/"), timeout=30.0)
        self.session = SessionState()
        self.cooldown = GenerationCooldown(cooldown_seconds, clock=clock)

    def __enter__(self) -> "QuizMasterClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self.session.close()
        if self._owns_http:
            self._http.close()

    # ── transport ─────────────────────────────────────────────────────────

    def _request(
        self,
        method: str,
        path: str,
        *,
        provider_call: bool = False,
        conflict: type[QuizMasterError] | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            r = self._http.request(method, path, headers=self.session.auth_headers(), **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise QuizMasterError("Network error", details=str(exc)) from exc

        if r.is_success:
            return r

        try:
            payload = r.json()
        except ValueError:
            payload = None
        if not isinstance(payload, dict):
            payload = {"error": r.text or r.reason_phrase}
        if conflict is not None and r.status_code == 409:
            raise conflict(str(payload.get("error", "Conflict")), payload.get("details"))
        if r.status_code == 401 and self.session.session is not None:
            # token expired or user deactivated
            self.session.clear()
        raise error_from_response(r.status_code, payload, provider_call=provider_call)

    # ── auth ──────────────────────────────────────────────────────────────

    def _start_session(self, r: httpx.Response) -> UserRead:
        auth = _parse(AuthResponse, r.json())
        self.session.set(Session(access_token=auth.access_token, user=auth.user))
        logger.info("Signed in as %s (%s)", auth.user.email, auth.user.role.value)
        return auth.user

    def sign_up(
        self, email: str, password: str, full_name: str, role: Role = Role.STUDENT
    ) -> UserRead:
        if len(password) < 6:
            raise InvalidInput("Password must be at least 6 characters")
        if not full_name.strip():
            raise InvalidInput("Please enter your full name")
        r = self._request(
            "POST",
            "/api/users/register",
            conflict=EmailTaken,
            json={
                "email": email.strip(),
                "password": password,
                "full_name": full_name.strip(),
                "role": Role(role).value,
            },
        )
        return self._start_session(r)

    def sign_in(self, email: str, password: str) -> UserRead:
        r = self._request(
            "POST", "/api/users/login", json={"email": email.strip(), "password": password}
        )
        return self._start_session(r)

    def sign_out(self) -> None:
        self.session.clear()

    def me(self) -> UserRead:
        return _parse(UserRead, self._request("GET", "/api/users/me").json())

    # ── quizzes ───────────────────────────────────────────────────────────

    def list_quizzes(self) -> list[QuizRead]:
        return _parse(list[QuizRead], self._request("GET", "/api/quizzes/").json())

    def get_quiz(self, quiz_id: uuid.UUID) -> QuizRead:
        return _parse(QuizRead, self._request("GET", f"/api/quizzes/{quiz_id}").json())

    def get_questions(self, quiz_id: uuid.UUID) -> list[QuestionRead] | list[QuestionPublic]:
        data = self._request("GET", f"/api/quizzes/{quiz_id}/questions").json()
        if data and "correct_answer" in data[0]:
            return _parse(list[QuestionRead], data)
        return _parse(list[QuestionPublic], data)

    def generate_quiz(
        self, title: str, prompt: str, description: str | None = None
    ) -> QuizRead:
        """Generate a quiz, subject to the local cooldown.

        Raises ``CooldownActive`` without touching the network when the
        previous successful generation was less than ``cooldown.seconds`` ago.
        """
        if not title.strip() or not prompt.strip():
            raise InvalidInput("Prompt and title are required")
        self.cooldown.check()
        if self.session.user is None:
            raise Unauthorized("Not signed in")
        if not self.session.is_professor:
            raise Forbidden("Professor access required")

        r = self._request(
            "POST",
            "/api/quizzes/generate",
            provider_call=True,
            json={"title": title, "description": description, "prompt": prompt},
            timeout=None,
        )
        quiz = _parse(QuizGenerateResponse, r.json()).quiz
        self.cooldown.record_success()
        return quiz

    def delete_quiz(self, quiz_id: uuid.UUID) -> None:
        self._request("DELETE", f"/api/quizzes/{quiz_id}")

    def update_question(self, question_id: uuid.UUID, **changes: Any) -> QuestionRead:
        r = self._request("PATCH", f"/api/questions/{question_id}", json=changes)
        return _parse(QuestionRead, r.json())

    def delete_question(self, question_id: uuid.UUID) -> None:
        self._request("DELETE", f"/api/questions/{question_id}")

    # ── attempts ──────────────────────────────────────────────────────────

    def get_my_attempt(self, quiz_id: uuid.UUID) -> AttemptRead | None:
        try:
            r = self._request("GET", f"/api/quizzes/{quiz_id}/attempts/me")
        except NotFound:
            return None
        return _parse(AttemptRead, r.json())

    def submit_attempt(
        self, quiz_id: uuid.UUID, selections: Iterable[tuple[uuid.UUID, str]]
    ) -> AttemptRead:
        body = {
            "answers": [
                {"question_id": str(qid), "selected_answer": answer}
                for qid, answer in selections
            ]
        }
        r = self._request("POST", f"/api/quizzes/{quiz_id}/attempts", json=body)
        return _parse(AttemptRead, r.json())

    def get_review(self, quiz_id: uuid.UUID) -> AttemptReview:
        return _parse(AttemptReview, self._request("GET", f"/api/quizzes/{quiz_id}/review").json())

    def list_my_attempts(self) -> list[AttemptRead]:
        return _parse(list[AttemptRead], self._request("GET", "/api/attempts/").json())

    # ── leaderboard ───────────────────────────────────────────────────────

    def get_leaderboard(self, quiz_id: uuid.UUID) -> LeaderboardRead:
        r = self._request("GET", f"/api/quizzes/{quiz_id}/leaderboard")
        return _parse(LeaderboardRead, r.json())

    def export_leaderboard_csv(self, quiz_id: uuid.UUID) -> str:
        return self._request("GET", f"/api/quizzes/{quiz_id}/leaderboard.csv").text
