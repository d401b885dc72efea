"""Shared / generic schemas."""

from typing import Any

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Error envelope rendered for every QuizError (``error_code`` is stable, ``message`` is not)."""

    success: bool = False
    error_code: str
    message: str
    details: dict[str, Any] | None = None
