"""Password hashing and session token utilities."""

from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from quizmaster.config import settings

# ── Password hashing ──────────────────────────────────────────────────────────

_BCRYPT_MAX_BYTES = 72


def hash_password(plain: str) -> str:
    """Return the bcrypt hash of *plain*.

    Raises:
        ValueError: If the password is longer than bcrypt's 72-byte limit.
    """
    encoded = plain.encode("utf-8")
    if len(encoded) > _BCRYPT_MAX_BYTES:
        raise ValueError(
            f"Password is {len(encoded)} bytes, but bcrypt has a "
            f"{_BCRYPT_MAX_BYTES}-byte limit. Please use a shorter password."
        )
    return bcrypt.hashpw(encoded, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Check *plain* against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


# ── Session tokens (JWT) ──────────────────────────────────────────────────────


def create_access_token(
    user_id: str,
    role: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Issue a signed session token for *user_id*."""
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    claims = {"sub": user_id, "role": role, "exp": expire}
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict | None:
    """Decode and validate a session token. Returns the claims or None."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
