"""Attempt submission, one-attempt rule and review."""

from unittest.mock import patch

from fastapi.testclient import TestClient

from conftest import auth, register
from quizmaster.db.models import QuizAttempt


def _questions(client: TestClient, quiz: dict, token) -> list[dict]:
    response = client.get(f"/api/quizzes/{quiz['id']}/questions", headers=auth(token))
    assert response.status_code == 200
    return response.json()


def _submit(client: TestClient, quiz: dict, token, picks: list[str]):
    questions = _questions(client, quiz, token)
    answers = [
        {"question_id": q["id"], "selected_answer": pick}
        for q, pick in zip(questions, picks)
    ]
    return client.post(
        f"/api/quizzes/{quiz['id']}/attempts", json={"answers": answers}, headers=auth(token)
    )


def test_submit_grades_attempt(client: TestClient, quiz, student):
    # conftest quizzes always have option B correct
    response = _submit(client, quiz, student, ["B1", "B2", "B3", "B4", "A5"])
    assert response.status_code == 201
    attempt = response.json()
    assert attempt["score"] == 4
    assert attempt["total_questions"] == 5
    assert attempt["student_name"] == "Sam Student"
    assert attempt["student_email"] == "stud@uni.edu"
    assert [a["correct"] for a in attempt["answers"]] == [True, True, True, True, False]


def test_second_attempt_is_refused(client: TestClient, quiz, student, db):
    first = _submit(client, quiz, student, ["B1", "B2", "B3", "B4", "B5"])
    assert first.status_code == 201

    second = _submit(client, quiz, student, ["A1", "A2", "A3", "A4", "A5"])
    assert second.status_code == 409
    body = second.json()
    assert body["error"] == "You have already taken this quiz!"
    assert body["details"] == first.json()["id"]

    attempts = db.query(QuizAttempt).all()
    assert len(attempts) == 1
    assert attempts[0].score == 5


def test_concurrent_duplicate_hits_unique_constraint(client: TestClient, quiz, student, db):
    # both requests pass the existence check; the second insert must fail
    with patch("quizmaster.api.attempts._find_attempt", return_value=None):
        first = _submit(client, quiz, student, ["B1", "B2", "B3", "B4", "B5"])
        second = _submit(client, quiz, student, ["A1", "A2", "A3", "A4", "A5"])

    assert first.status_code == 201
    assert second.status_code == 500
    assert second.json() == {"error": "Failed to submit quiz"}
    assert db.query(QuizAttempt).count() == 1
    assert db.query(QuizAttempt).one().score == 5


def test_incomplete_submission_rejected(client: TestClient, quiz, student, db):
    response = _submit(client, quiz, student, ["B1", "B2"])
    assert response.status_code == 400
    assert response.json()["error"] == "Please answer all questions before submitting"
    assert db.query(QuizAttempt).count() == 0


def test_answers_for_another_quiz_rejected(client: TestClient, quiz, professor, student, db):
    other = client.post(
        "/api/quizzes/generate",
        json={"title": "Other", "prompt": "other"},
        headers=auth(professor),
    ).json()["quiz"]
    foreign = _questions(client, other, student)
    answers = [{"question_id": q["id"], "selected_answer": "B1"} for q in foreign]

    response = client.post(
        f"/api/quizzes/{quiz['id']}/attempts", json={"answers": answers}, headers=auth(student)
    )
    assert response.status_code == 400
    assert db.query(QuizAttempt).count() == 0


def test_professor_cannot_submit(client: TestClient, quiz, professor):
    response = client.post(
        f"/api/quizzes/{quiz['id']}/attempts", json={"answers": []}, headers=auth(professor)
    )
    assert response.status_code == 403


def test_submit_to_missing_quiz(client: TestClient, student):
    response = client.post(
        "/api/quizzes/00000000-0000-0000-0000-000000000000/attempts",
        json={"answers": []},
        headers=auth(student),
    )
    assert response.status_code == 404


def test_my_attempt_lookup(client: TestClient, quiz, student):
    missing = client.get(f"/api/quizzes/{quiz['id']}/attempts/me", headers=auth(student))
    assert missing.status_code == 404

    submitted = _submit(client, quiz, student, ["B1", "B2", "B3", "B4", "B5"]).json()
    found = client.get(f"/api/quizzes/{quiz['id']}/attempts/me", headers=auth(student))
    assert found.status_code == 200
    assert found.json()["id"] == submitted["id"]


def test_review_shows_answers_and_correct_options(client: TestClient, quiz, student):
    _submit(client, quiz, student, ["A1", "B2", "B3", "B4", "B5"])

    response = client.get(f"/api/quizzes/{quiz['id']}/review", headers=auth(student))
    assert response.status_code == 200
    review = response.json()
    assert review["quiz_title"] == "Python Basics"
    assert review["attempt"]["score"] == 4
    first = review["items"][0]
    assert first["order_number"] == 1
    assert first["selected_answer"] == "A1"
    assert first["correct_answer"] == "B1"
    assert first["correct"] is False
    assert len(first["options"]) == 4


def test_review_before_attempt(client: TestClient, quiz, student):
    response = client.get(f"/api/quizzes/{quiz['id']}/review", headers=auth(student))
    assert response.status_code == 404


def test_review_keeps_removed_questions(client: TestClient, quiz, professor, student):
    _submit(client, quiz, student, ["B1", "B2", "B3", "B4", "B5"])
    first_id = _questions(client, quiz, professor)[0]["id"]
    assert client.delete(f"/api/questions/{first_id}", headers=auth(professor)).status_code == 200

    review = client.get(f"/api/quizzes/{quiz['id']}/review", headers=auth(student)).json()
    assert len(review["items"]) == 5
    assert review["items"][0]["question_text"] == "(question removed)"
    assert review["items"][0]["correct"] is True
    assert review["attempt"]["score"] == 5


def test_list_my_attempts(client: TestClient, quiz, student):
    other_student = register(client, "other@uni.edu")
    _submit(client, quiz, student, ["B1", "B2", "B3", "B4", "B5"])
    _submit(client, quiz, other_student, ["A1", "A2", "A3", "A4", "A5"])

    mine = client.get("/api/attempts/", headers=auth(student)).json()
    assert len(mine) == 1
    assert mine[0]["score"] == 5
