"""Question editing, question deletion and quiz deletion."""

from fastapi.testclient import TestClient

from conftest import auth, register
from quizmaster.db.models import Question, Quiz, QuizAttempt


def _questions(client: TestClient, quiz: dict, professor) -> list[dict]:
    return client.get(f"/api/quizzes/{quiz['id']}/questions", headers=auth(professor)).json()


def test_edit_question(client: TestClient, quiz, professor):
    target = _questions(client, quiz, professor)[0]

    response = client.patch(
        f"/api/questions/{target['id']}",
        json={"question_text": "Edited?", "options": ["w", "x", "y", "z"], "correct_answer": "y"},
        headers=auth(professor),
    )
    assert response.status_code == 200
    assert response.json()["question_text"] == "Edited?"
    assert response.json()["correct_answer"] == "y"
    assert _questions(client, quiz, professor)[0]["options"] == ["w", "x", "y", "z"]


def test_edit_only_correct_answer(client: TestClient, quiz, professor):
    target = _questions(client, quiz, professor)[0]
    response = client.patch(
        f"/api/questions/{target['id']}", json={"correct_answer": "C1"}, headers=auth(professor)
    )
    assert response.status_code == 200
    assert response.json()["correct_answer"] == "C1"


def test_edit_rejects_answer_not_in_options(client: TestClient, quiz, professor):
    target = _questions(client, quiz, professor)[0]

    response = client.patch(
        f"/api/questions/{target['id']}",
        json={"options": ["w", "x", "y", "z"]},
        headers=auth(professor),
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid question"
    assert _questions(client, quiz, professor)[0]["options"] == ["A1", "B1", "C1", "D1"]


def test_edit_rejects_wrong_option_count(client: TestClient, quiz, professor):
    target = _questions(client, quiz, professor)[0]
    response = client.patch(
        f"/api/questions/{target['id']}",
        json={"options": ["A1", "B1", "C1"]},
        headers=auth(professor),
    )
    assert response.status_code == 400


def test_edit_requires_ownership(client: TestClient, quiz, professor, student):
    target = _questions(client, quiz, professor)[0]
    other = register(client, "other@uni.edu", role="professor")

    assert client.patch(
        f"/api/questions/{target['id']}", json={"correct_answer": "C1"}, headers=auth(other)
    ).status_code == 403
    assert client.patch(
        f"/api/questions/{target['id']}", json={"correct_answer": "C1"}, headers=auth(student)
    ).status_code == 403


def test_delete_question_renumbers(client: TestClient, quiz, professor):
    before = _questions(client, quiz, professor)

    response = client.delete(f"/api/questions/{before[1]['id']}", headers=auth(professor))
    assert response.status_code == 200

    after = _questions(client, quiz, professor)
    assert [q["order_number"] for q in after] == [1, 2, 3, 4]
    assert [q["id"] for q in after] == [before[i]["id"] for i in (0, 2, 3, 4)]


def test_delete_missing_question(client: TestClient, professor):
    response = client.delete(
        "/api/questions/00000000-0000-0000-0000-000000000000", headers=auth(professor)
    )
    assert response.status_code == 404


def test_delete_quiz_removes_children(client: TestClient, quiz, professor, student, db):
    questions = client.get(f"/api/quizzes/{quiz['id']}/questions", headers=auth(student)).json()
    client.post(
        f"/api/quizzes/{quiz['id']}/attempts",
        json={"answers": [{"question_id": q["id"], "selected_answer": "B1"} for q in questions]},
        headers=auth(student),
    )
    assert db.query(QuizAttempt).count() == 1

    response = client.delete(f"/api/quizzes/{quiz['id']}", headers=auth(professor))
    assert response.status_code == 200
    assert response.json()["message"] == "Quiz deleted"
    assert db.query(Quiz).count() == 0
    assert db.query(Question).count() == 0
    assert db.query(QuizAttempt).count() == 0

    assert client.get(f"/api/quizzes/{quiz['id']}", headers=auth(professor)).status_code == 404


def test_delete_quiz_requires_ownership(client: TestClient, quiz, db):
    other = register(client, "other@uni.edu", role="professor")
    response = client.delete(f"/api/quizzes/{quiz['id']}", headers=auth(other))
    assert response.status_code == 403
    assert db.query(Quiz).count() == 1
