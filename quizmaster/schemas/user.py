"""User & authentication schemas."""

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, EmailStr, Field, field_validator


class Role(str, Enum):
    STUDENT = "student"
    PROFESSOR = "professor"


class UserCreate(BaseModel):
    """POST /api/users/register"""

    email: EmailStr
    password: str = Field(min_length=6)
    full_name: str
    role: Role = Role.STUDENT

    @field_validator("full_name")
    @classmethod
    def _full_name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please enter your full name")
        return v


class UserLogin(BaseModel):
    """POST /api/users/login"""

    email: EmailStr
    password: str


class UserRead(BaseModel):
    """User returned from API; never exposes password."""

    id: uuid.UUID
    email: str
    full_name: str
    role: Role
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    """Session token + user profile."""

    access_token: str
    token_type: str = "bearer"
    user: UserRead
