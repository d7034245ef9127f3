"""FastAPI dependencies shared across routes."""

import uuid

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from quizmaster.core.errors import Forbidden, NotFound, Unauthorized
from quizmaster.core.security import decode_access_token
from quizmaster.db.models import Quiz, RoleEnum, User
from quizmaster.db.session import get_db

# auto_error=False: a missing header reaches us as None and fails with our own envelope
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/users/login", auto_error=False)


def resolve_user(token: str | None, db: Session) -> User | None:
    """Return the active user a session token belongs to, or None."""
    if not token:
        return None
    payload = decode_access_token(token)
    if payload is None or payload.get("sub") is None:
        return None
    try:
        user_id = uuid.UUID(payload["sub"])
    except ValueError:
        return None
    user = db.query(User).filter(User.id == user_id).first()
    if user is None or not user.is_active:
        return None
    return user


def get_optional_user(
    token: str | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User | None:
    return resolve_user(token, db)


def get_current_user(user: User | None = Depends(get_optional_user)) -> User:
    """Return the authenticated user, or 401."""
    if user is None:
        raise Unauthorized("Invalid or expired session")
    return user


def require_professor(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != RoleEnum.PROFESSOR:
        raise Forbidden("Professor access required")
    return current_user


def require_student(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != RoleEnum.STUDENT:
        raise Forbidden("Student access required")
    return current_user


def get_quiz_or_404(db: Session, quiz_id: uuid.UUID) -> Quiz:
    quiz = db.query(Quiz).filter(Quiz.id == quiz_id).first()
    if quiz is None:
        raise NotFound("Quiz not found")
    return quiz


def ensure_owner(quiz: Quiz, user: User) -> None:
    if quiz.professor_id != user.id:
        raise Forbidden("You do not own this quiz")
