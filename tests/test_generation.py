"""Quiz generation endpoint: validation, authorization, provider errors, storage."""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from google.genai import errors
from sqlalchemy.exc import OperationalError

from conftest import auth, register
from quizmaster.db.models import Question, Quiz
from quizmaster.main import app
from quizmaster.services.ai_client import QuizAIClient, get_ai_client

BODY = {"title": "Python Basics", "description": "Intro", "prompt": "Python basics"}


def _genai_client(*, response=None, error=None) -> MagicMock:
    fake = MagicMock()
    if error is not None:
        fake.models.generate_content.side_effect = error
    else:
        fake.models.generate_content.return_value = response
    return fake


def _use_real_ai(fake_genai: MagicMock) -> None:
    ai = QuizAIClient(api_key="test-key", model_name="gemini-test", client=fake_genai)
    app.dependency_overrides[get_ai_client] = lambda: ai


def _api_error(code: int, status: str) -> errors.ClientError:
    return errors.ClientError(code, {"error": {"code": code, "message": "nope", "status": status}})


def test_generate_happy_path(client: TestClient, professor, fake_ai, db):
    response = client.post("/api/quizzes/generate", json=BODY, headers=auth(professor))
    assert response.status_code == 200
    quiz = response.json()["quiz"]
    assert quiz["title"] == "Python Basics"
    assert quiz["ai_prompt"] == "Python basics"
    assert quiz["professor_id"] == professor["user"]["id"]
    fake_ai.generate_questions.assert_called_once_with("Python basics")

    questions = client.get(f"/api/quizzes/{quiz['id']}/questions", headers=auth(professor)).json()
    assert [q["order_number"] for q in questions] == [1, 2, 3, 4, 5]
    assert [q["question_text"] for q in questions] == [
        f"Python question {i}?" for i in range(1, 6)
    ]
    for q in questions:
        assert len(q["options"]) == 4
        assert q["correct_answer"] in q["options"]


@pytest.mark.parametrize(
    "body",
    [
        {"title": "", "prompt": "Python basics"},
        {"title": "Python", "prompt": "   "},
        {"description": "no title or prompt"},
    ],
)
def test_generate_requires_title_and_prompt(client: TestClient, professor, fake_ai, db, body):
    response = client.post("/api/quizzes/generate", json=body, headers=auth(professor))
    assert response.status_code == 400
    assert response.json()["error"] == "Prompt and title are required"
    fake_ai.generate_questions.assert_not_called()
    assert db.query(Quiz).count() == 0


def test_generate_input_checked_before_session(client: TestClient, fake_ai):
    response = client.post("/api/quizzes/generate", json={"title": "", "prompt": ""})
    assert response.status_code == 400


def test_generate_requires_session(client: TestClient, fake_ai, db):
    response = client.post("/api/quizzes/generate", json=BODY)
    assert response.status_code == 401
    fake_ai.generate_questions.assert_not_called()
    assert db.query(Quiz).count() == 0


def test_generate_forbidden_for_students(client: TestClient, student, fake_ai, db):
    response = client.post("/api/quizzes/generate", json=BODY, headers=auth(student))
    assert response.status_code == 403
    fake_ai.generate_questions.assert_not_called()
    assert db.query(Quiz).count() == 0


@pytest.mark.parametrize(
    "code, status, expected_status, message",
    [
        (429, "RESOURCE_EXHAUSTED", 429, "Rate limit exceeded. Please try again later."),
        (402, "PAYMENT_REQUIRED", 402, "AI provider quota exhausted. Please contact the administrator."),
        (403, "PERMISSION_DENIED", 403, "Invalid API key or API not enabled."),
        (401, "UNAUTHENTICATED", 403, "Invalid API key or API not enabled."),
        (400, "INVALID_ARGUMENT", 500, "Failed to generate quiz content"),
    ],
)
def test_generate_provider_errors(
    client: TestClient, professor, db, code, status, expected_status, message
):
    _use_real_ai(_genai_client(error=_api_error(code, status)))

    response = client.post("/api/quizzes/generate", json=BODY, headers=auth(professor))
    assert response.status_code == expected_status
    assert response.json()["error"] == message
    assert db.query(Quiz).count() == 0


def test_generate_provider_server_error(client: TestClient, professor, db):
    error = errors.ServerError(503, {"error": {"code": 503, "message": "overloaded", "status": "UNAVAILABLE"}})
    _use_real_ai(_genai_client(error=error))

    response = client.post("/api/quizzes/generate", json=BODY, headers=auth(professor))
    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Failed to generate quiz content"
    assert "503" in body["details"]


def test_generate_wrong_question_count_writes_nothing(client: TestClient, professor, db):
    questions = [
        {"question": f"Q{i}?", "options": ["a", "b", "c", "d"], "correct_answer": "a"}
        for i in range(4)
    ]
    call = SimpleNamespace(name="create_quiz", args={"questions": questions})
    _use_real_ai(_genai_client(response=SimpleNamespace(function_calls=[call], text=None)))

    response = client.post("/api/quizzes/generate", json=BODY, headers=auth(professor))
    assert response.status_code == 500
    assert response.json()["error"] == "Invalid quiz structure"
    assert db.query(Quiz).count() == 0
    assert db.query(Question).count() == 0


def test_generate_unparseable_text_writes_nothing(client: TestClient, professor, db):
    _use_real_ai(_genai_client(response=SimpleNamespace(function_calls=None, text="Sure! Here it is")))

    response = client.post("/api/quizzes/generate", json=BODY, headers=auth(professor))
    assert response.status_code == 500
    assert response.json()["error"] == "Invalid AI response format"
    assert db.query(Quiz).count() == 0


def test_question_write_failure_deletes_quiz(client: TestClient, professor, db):
    with patch(
        "quizmaster.services.quiz_generation._write_questions",
        side_effect=OperationalError("INSERT", {}, Exception("disk full")),
    ):
        response = client.post("/api/quizzes/generate", json=BODY, headers=auth(professor))

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to create questions"
    assert db.query(Quiz).count() == 0
    assert db.query(Question).count() == 0


def test_failed_compensation_leaves_orphan_quiz(client: TestClient, professor, db):
    boom = OperationalError("DELETE", {}, Exception("connection lost"))
    with patch(
        "quizmaster.services.quiz_generation._write_questions", side_effect=boom
    ), patch("quizmaster.services.quiz_generation._delete_quiz", side_effect=boom):
        response = client.post("/api/quizzes/generate", json=BODY, headers=auth(professor))

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to create questions"
    assert db.query(Quiz).count() == 1
    assert db.query(Question).count() == 0


def test_list_quizzes_by_role(client: TestClient, professor, student, fake_ai):
    other = register(client, "other@uni.edu", role="professor")
    for owner, title in [(professor, "Mine 1"), (other, "Theirs"), (professor, "Mine 2")]:
        response = client.post(
            "/api/quizzes/generate",
            json={"title": title, "prompt": "anything"},
            headers=auth(owner),
        )
        assert response.status_code == 200

    mine = client.get("/api/quizzes/", headers=auth(professor)).json()
    assert sorted(q["title"] for q in mine) == ["Mine 1", "Mine 2"]

    everything = client.get("/api/quizzes/", headers=auth(student)).json()
    assert len(everything) == 3


def test_questions_hidden_answers_for_students(client: TestClient, quiz, student):
    response = client.get(f"/api/quizzes/{quiz['id']}/questions", headers=auth(student))
    assert response.status_code == 200
    questions = response.json()
    assert len(questions) == 5
    assert all("correct_answer" not in q for q in questions)


def test_other_professor_cannot_read_answers(client: TestClient, quiz):
    other = register(client, "other@uni.edu", role="professor")
    response = client.get(f"/api/quizzes/{quiz['id']}/questions", headers=auth(other))
    assert response.status_code == 403
