"""Shared pytest fixtures for backend tests."""

import pytest
from unittest.mock import MagicMock
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from quizmaster.db.session import Base, get_db
from quizmaster.main import app
from quizmaster.schemas.quiz import GeneratedQuestion, GeneratedQuiz
from quizmaster.services.ai_client import get_ai_client


# Use an in-memory SQLite database for testing with static pool
SQLALCHEMY_TEST_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_TEST_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,  # Use StaticPool to keep connection alive
    echo=False,
)
TestSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def make_generated_quiz(n: int = 5, topic: str = "Python") -> GeneratedQuiz:
    """A provider result with *n* valid questions; the answer is always option B.

    Built with ``model_construct`` so tests can fake a wrong question count.
    """
    return GeneratedQuiz.model_construct(
        questions=[
            GeneratedQuestion(
                question=f"{topic} question {i}?",
                options=[f"A{i}", f"B{i}", f"C{i}", f"D{i}"],
                correct_answer=f"B{i}",
            )
            for i in range(1, n + 1)
        ]
    )


@pytest.fixture(scope="function")
def db():
    """Fresh tables and DB session for each test (routes commit)."""
    Base.metadata.create_all(bind=engine)
    session = TestSession()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def fake_ai():
    """Stand-in for the Gemini client; returns five valid questions by default."""
    ai = MagicMock()
    ai.generate_questions.return_value = make_generated_quiz()
    return ai


@pytest.fixture(scope="function")
def client(db: Session, fake_ai):
    """FastAPI test client with overridden DB and AI dependencies."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ai_client] = lambda: fake_ai

    # Remove TrustedHostMiddleware for tests to allow 'testserver' host
    app.user_middleware = [m for m in app.user_middleware if "TrustedHost" not in str(m)]

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def register(client: TestClient, email: str, role: str = "student", name: str = "Test User") -> dict:
    response = client.post(
        "/api/users/register",
        json={"email": email, "password": "secret1", "full_name": name, "role": role},
    )
    assert response.status_code == 201, response.text
    return response.json()


def auth(token_or_body) -> dict:
    token = token_or_body if isinstance(token_or_body, str) else token_or_body["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def professor(client: TestClient) -> dict:
    return register(client, "prof@uni.edu", role="professor", name="Prof Ada")


@pytest.fixture
def student(client: TestClient) -> dict:
    return register(client, "stud@uni.edu", role="student", name="Sam Student")


@pytest.fixture
def quiz(client: TestClient, professor: dict) -> dict:
    """A generated quiz owned by ``professor``."""
    response = client.post(
        "/api/quizzes/generate",
        json={"title": "Python Basics", "description": "Intro", "prompt": "Python basics"},
        headers=auth(professor),
    )
    assert response.status_code == 200, response.text
    return response.json()["quiz"]
