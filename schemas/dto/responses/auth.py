"""
Response DTOs for authentication endpoints.

UserProfileResponse   — sanitized user, used in login and profile
SignupResponse        — POST /auth/signup  (201)
LoginResponse         — POST /auth/login  (200)
SessionStatusResponse — GET  /auth/validate-session  (200)
TokenClaimsResponse   — GET  /auth/verify-token  (200)
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict

from schemas.models.token import SessionClaims
from schemas.models.user import UserProfile


class UserProfileResponse(BaseModel):
    """User shape returned to clients; never carries hashes or token fields."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    email: str
    username: Optional[str] = None
    name: str = ""
    access_level: int
    is_verified: bool
    status: str
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "UserProfileResponse":
        return cls.model_validate(profile.model_dump(mode="json"))


class SignupResponse(BaseModel):
    """Response body for POST /auth/signup (201)."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    user_id: str
    access_level: int
    verification_token: str


class LoginResponse(BaseModel):
    """Response body for POST /auth/login (200)."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserProfileResponse


class SessionStatusResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    valid: bool
    access_level: int


class TokenClaimsResponse(BaseModel):
    """Response body for GET /auth/verify-token (200)."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str
    email: str
    username: Optional[str] = None
    access_level: int
    issued_at: datetime
    expires_at: datetime

    @classmethod
    def from_claims(cls, claims: SessionClaims) -> "TokenClaimsResponse":
        return cls(
            user_id=claims.user_id,
            email=claims.email,
            username=claims.username,
            access_level=claims.access_level,
            issued_at=datetime.fromtimestamp(claims.iat, tz=timezone.utc),
            expires_at=claims.expires_at,
        )
