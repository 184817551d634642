"""
Token claim models.

Tokens are never persisted in this shape; they are signed JWTs. Every token
carries an audience that pins it to exactly one consuming flow:

- session             — bearer credential for protected requests
- email-verification  — confirms ownership of the signup email
- password-reset      — authorizes one password change
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class TokenAudience(str, Enum):
    SESSION = "session"
    EMAIL_VERIFICATION = "email-verification"
    PASSWORD_RESET = "password-reset"


class SessionClaims(BaseModel):
    """Verified claims of a session token."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_id: str = Field(alias="userId")
    email: str
    username: Optional[str] = None
    access_level: int
    iss: str
    aud: str
    iat: int
    exp: int

    @property
    def expires_at(self) -> datetime:
        return datetime.fromtimestamp(self.exp, tz=timezone.utc)

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> "SessionClaims":
        return cls.model_validate(claims)
