"""
User API schemas (request/response models).
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from email_validator import EmailNotValidError, validate_email
from pydantic import AfterValidator, BaseModel, Field


def _check_email(value: str) -> str:
    # Bare addr-spec only; stored exactly as sent.
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValueError(f"value is not a valid email address: {exc}") from exc
    return value


EmailAddress = Annotated[str, AfterValidator(_check_email)]


class UserWrite(BaseModel):
    """
    Body for both create and update; updates replace both fields.
    """

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailAddress


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    created_at: datetime
    updated_at: datetime
