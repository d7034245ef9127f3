"""User registration, login, and profile routes."""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from quizmaster.api.deps import get_current_user
from quizmaster.core.errors import EmailTaken, InvalidInput, Unauthorized
from quizmaster.core.security import create_access_token, hash_password, verify_password
from quizmaster.db.models import RoleEnum, User
from quizmaster.db.session import get_db
from quizmaster.schemas.user import AuthResponse, UserCreate, UserLogin, UserRead

logger = logging.getLogger(__name__)
router = APIRouter()


def _auth_response(user: User) -> AuthResponse:
    token = create_access_token(str(user.id), user.role.value)
    return AuthResponse(access_token=token, user=UserRead.model_validate(user))


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(body: UserCreate, db: Session = Depends(get_db)):
    """Create a new student or professor account."""
    email = body.email.strip().lower()
    if db.query(User).filter(User.email == email).first():
        raise EmailTaken("Email already registered")

    try:
        hashed = hash_password(body.password)
    except ValueError as exc:
        raise InvalidInput(str(exc)) from exc

    user = User(
        email=email,
        hashed_password=hashed,
        full_name=body.full_name,
        role=RoleEnum(body.role.value),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered %s (%s)", user.email, user.role.value)
    return _auth_response(user)


@router.post("/login", response_model=AuthResponse)
def login(body: UserLogin, db: Session = Depends(get_db)):
    """Authenticate and return a session token + user profile."""
    user = db.query(User).filter(User.email == body.email.strip().lower()).first()
    if not user or not verify_password(body.password, user.hashed_password):
        raise Unauthorized("Invalid email or password")
    if not user.is_active:
        raise Unauthorized("Account deactivated")
    return _auth_response(user)


@router.get("/me", response_model=UserRead)
def me(current_user: User = Depends(get_current_user)):
    """Return the authenticated user's profile."""
    return current_user
