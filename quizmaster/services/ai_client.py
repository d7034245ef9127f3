"""Gemini client for quiz question generation (singleton).

The request is made in function-calling mode: the model is forced to call a
single ``create_quiz`` function whose parameter schema describes the question
list, so the arguments arrive as structured data. If the provider still
answers with a text part, that text is parsed as JSON (markdown fences
stripped). Whichever path produced the payload, it is validated before it
leaves this module.
"""

import json
import logging
from typing import Any

import httpx
from google import genai
from google.genai import errors, types
from pydantic import ValidationError

from quizmaster.config import settings
from quizmaster.core.errors import (
    GenerationFailed,
    MalformedGenerationResult,
    ProviderQuotaOrAuthError,
    RateLimited,
)
from quizmaster.schemas.quiz import GeneratedQuiz

logger = logging.getLogger(__name__)

_FUNCTION_NAME = "create_quiz"

_SYSTEM_PROMPT = (
    "You are a quiz generator. You write clear, unambiguous multiple-choice "
    "questions for university students. Each question has exactly one correct "
    "option, and the correct_answer field repeats that option's text verbatim."
)

_USER_PROMPT = """\
Generate a quiz with exactly {count} multiple-choice questions based on: {topic}

Each question must have exactly {options} distinct options and one correct answer.
Call the {fn} function with the questions."""


def _quiz_function() -> types.FunctionDeclaration:
    question_schema = types.Schema(
        type=types.Type.OBJECT,
        properties={
            "question": types.Schema(type=types.Type.STRING, description="Question text"),
            "options": types.Schema(
                type=types.Type.ARRAY,
                items=types.Schema(type=types.Type.STRING),
                min_items=settings.OPTIONS_PER_QUESTION,
                max_items=settings.OPTIONS_PER_QUESTION,
            ),
            "correct_answer": types.Schema(
                type=types.Type.STRING,
                description="The exact text of the correct option",
            ),
        },
        required=["question", "options", "correct_answer"],
    )
    return types.FunctionDeclaration(
        name=_FUNCTION_NAME,
        description="Store a generated multiple-choice quiz.",
        parameters=types.Schema(
            type=types.Type.OBJECT,
            properties={
                "questions": types.Schema(
                    type=types.Type.ARRAY,
                    items=question_schema,
                    min_items=settings.QUESTIONS_PER_QUIZ,
                    max_items=settings.QUESTIONS_PER_QUIZ,
                )
            },
            required=["questions"],
        ),
    )


# ── Response parsing ─────────────────────────────────────────────────────────


def strip_code_fences(raw: str) -> str:
    """Remove a surrounding markdown code fence (```json ... ```), if any."""
    text = raw.strip()
    if text.startswith("```"):
        text = text[3:]
        if text.lower().startswith("json"):
            text = text[4:]
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


def _payload_from_response(response: Any) -> Any:
    """Pull the raw question payload out of a Gemini response."""
    for call in getattr(response, "function_calls", None) or []:
        if call.name == _FUNCTION_NAME:
            return dict(call.args or {})

    text = getattr(response, "text", None)
    if not text:
        raise MalformedGenerationResult("Invalid AI response format")

    logger.info("Gemini answered in text instead of a function call, parsing")
    try:
        return json.loads(strip_code_fences(text))
    except json.JSONDecodeError as exc:
        logger.warning("Unparseable Gemini text response: %s", text[:200])
        raise MalformedGenerationResult(
            "Invalid AI response format", details=str(exc)
        ) from exc


def parse_generated_quiz(payload: Any) -> GeneratedQuiz:
    """Validate a provider payload into a ``GeneratedQuiz``."""
    if isinstance(payload, list):
        payload = {"questions": payload}
    try:
        return GeneratedQuiz.model_validate(payload)
    except ValidationError as exc:
        logger.warning("Generated quiz failed validation: %s", exc.errors()[:3])
        raise MalformedGenerationResult(
            "Invalid quiz structure", details=str(exc)
        ) from exc


def _map_provider_error(exc: errors.APIError) -> Exception:
    status = exc.code
    logger.error("Gemini API error: %s %s", status, exc.message)
    if status == 429:
        return RateLimited("Rate limit exceeded. Please try again later.")
    if status == 402:
        return ProviderQuotaOrAuthError(
            "AI provider quota exhausted. Please contact the administrator.",
            status_code=402,
        )
    if status in (401, 403):
        return ProviderQuotaOrAuthError(
            "Invalid API key or API not enabled.", status_code=403
        )
    return GenerationFailed(
        "Failed to generate quiz content",
        details=f"Gemini API returned {status}: {exc.message}",
    )


# ── Client ───────────────────────────────────────────────────────────────────


class QuizAIClient:
    """Thin wrapper around the Gemini ``generate_content`` API."""

    def __init__(
        self,
        api_key: str = settings.GEMINI_API_KEY,
        model_name: str = settings.GEMINI_MODEL,
        *,
        client: genai.Client | None = None,
    ) -> None:
        self._api_key = api_key
        self.model_name = model_name
        self._client = client

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            if not self._api_key:
                logger.error("GEMINI_API_KEY not configured")
                raise GenerationFailed("API key not configured")
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    def _config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            system_instruction=_SYSTEM_PROMPT,
            temperature=settings.GEMINI_TEMPERATURE,
            max_output_tokens=settings.GEMINI_MAX_OUTPUT_TOKENS,
            tools=[types.Tool(function_declarations=[_quiz_function()])],
            tool_config=types.ToolConfig(
                function_calling_config=types.FunctionCallingConfig(
                    mode=types.FunctionCallingConfigMode.ANY,
                    allowed_function_names=[_FUNCTION_NAME],
                )
            ),
        )

    def generate_questions(self, topic: str) -> GeneratedQuiz:
        """Ask the model for a quiz about *topic* and return the validated result.

        Raises:
            RateLimited: provider returned 429.
            ProviderQuotaOrAuthError: provider returned 402 / 401 / 403.
            GenerationFailed: any other provider or transport failure.
            MalformedGenerationResult: the response has the wrong shape.
        """
        prompt = _USER_PROMPT.format(
            count=settings.QUESTIONS_PER_QUIZ,
            options=settings.OPTIONS_PER_QUESTION,
            topic=topic,
            fn=_FUNCTION_NAME,
        )
        logger.info("Calling Gemini (%s)…", self.model_name)
        try:
            response = self.client.models.generate_content(
                model=self.model_name, contents=prompt, config=self._config()
            )
        except errors.APIError as exc:
            raise _map_provider_error(exc) from exc
        except httpx.HTTPError as exc:
            logger.error("Gemini transport error: %s", exc)
            raise GenerationFailed(
                "Failed to generate quiz content", details=str(exc)
            ) from exc

        quiz = parse_generated_quiz(_payload_from_response(response))
        logger.info("Gemini returned %d valid questions", len(quiz.questions))
        return quiz


# ── singleton accessor ────────────────────────────────────────────────────────

_instance: QuizAIClient | None = None


def get_ai_client() -> QuizAIClient:
    global _instance
    if _instance is None:
        _instance = QuizAIClient()
        logger.info("Quiz AI client initialised → %s", _instance.model_name)
    return _instance
