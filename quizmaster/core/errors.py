"""Error taxonomy shared by the API and the client library.

Every error carries an HTTP status and renders as the standard envelope
``{"error": message, "details": details}`` (see ``quizmaster.main``).
"""

import math
from typing import Any


class QuizMasterError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class InvalidInput(QuizMasterError):
    status_code = 400


class IncompleteSubmission(QuizMasterError):
    status_code = 400


class Unauthorized(QuizMasterError):
    status_code = 401


class Forbidden(QuizMasterError):
    status_code = 403


class NotFound(QuizMasterError):
    status_code = 404


class EmailTaken(QuizMasterError):
    status_code = 409


class AlreadyAttempted(QuizMasterError):
    """The student already has an attempt; ``details`` holds its id."""

    status_code = 409


class RateLimited(QuizMasterError):
    status_code = 429


class ProviderQuotaOrAuthError(QuizMasterError):
    """Provider quota exhausted (402) or credentials rejected (403)."""

    status_code = 403

    def __init__(
        self, message: str, details: str | None = None, *, status_code: int = 403
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code


class MalformedGenerationResult(QuizMasterError):
    status_code = 500


class GenerationFailed(QuizMasterError):
    status_code = 500


class StorageError(QuizMasterError):
    status_code = 500


class SubmissionFailed(QuizMasterError):
    status_code = 500


class LoadFailed(QuizMasterError):
    status_code = 500


class CooldownActive(QuizMasterError):
    """Raised locally by the client; never sent over the wire."""

    status_code = 429

    def __init__(self, wait_seconds: float) -> None:
        self.wait_seconds = wait_seconds
        super().__init__(
            f"Please wait {max(1, math.ceil(wait_seconds))} seconds before "
            "generating another quiz."
        )


_BY_STATUS: dict[int, type[QuizMasterError]] = {
    400: InvalidInput,
    401: Unauthorized,
    404: NotFound,
    409: AlreadyAttempted,
    429: RateLimited,
}

# 500s share a status, so the envelope message picks the class.
_BY_MESSAGE: dict[str, type[QuizMasterError]] = {
    "Failed to load leaderboard": LoadFailed,
    "Invalid quiz structure": MalformedGenerationResult,
    "Invalid AI response format": MalformedGenerationResult,
    "Failed to create quiz": StorageError,
    "Failed to create questions": StorageError,
    "Storage error": StorageError,
    "Failed to generate quiz content": GenerationFailed,
    "API key not configured": GenerationFailed,
    "Failed to submit quiz": SubmissionFailed,
}

# Role and ownership checks raised by the API itself.
_FORBIDDEN_MESSAGES = frozenset(
    {
        "Professor access required",
        "Student access required",
        "You do not own this quiz",
    }
)


def error_from_response(
    status_code: int, payload: Any, *, provider_call: bool = False
) -> QuizMasterError:
    """Rebuild a domain error from an API error response.

    ``provider_call`` marks responses from the generation endpoint, where a
    403 comes from the AI provider unless its message is one of our own
    role or ownership checks.
    """
    message = "Request failed"
    details = None
    if isinstance(payload, dict):
        message = str(payload.get("error") or message)
        if payload.get("details") is not None:
            details = str(payload["details"])

    if status_code == 402 or (
        status_code == 403 and provider_call and message not in _FORBIDDEN_MESSAGES
    ):
        return ProviderQuotaOrAuthError(message, details, status_code=status_code)
    if status_code == 403:
        return Forbidden(message, details)
    if status_code >= 500 and message in _BY_MESSAGE:
        return _BY_MESSAGE[message](message, details)
    error_cls = _BY_STATUS.get(status_code)
    if error_cls is not None:
        return error_cls(message, details)
    err = QuizMasterError(message, details)
    err.status_code = status_code
    return err
