"""Shared / generic schemas."""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error envelope returned by every failing route."""

    error: str
    details: str | None = None


class MessageResponse(BaseModel):
    message: str = "ok"
