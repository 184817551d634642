"""
Request DTOs for authentication endpoints.

SignupRequest              — POST /auth/signup
ConfirmEmailRequest        — POST /auth/confirm-email
ResendVerificationRequest  — POST /auth/resend-verification
LoginRequest               — POST /auth/login
ForgotPasswordRequest      — POST /auth/forgot-password
ResetPasswordRequest       — POST /auth/reset-password

DTOs check shape only. Content rules (email format, password policy,
username charset) live in AuthService so every entry point shares them.
"""

from __future__ import annotations

from typing import Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class SignupRequest(BaseModel):
    """Request body for POST /auth/signup.

    ``ref`` is an optional access-level hint; it is ignored unless
    ACCESS_LEVEL_HINT_ENABLED is on.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    email: str
    password: str
    username: Optional[str] = None
    ref: Optional[Union[int, str]] = None


class ConfirmEmailRequest(BaseModel):
    """Request body for POST /auth/confirm-email."""

    model_config = ConfigDict(populate_by_name=True)

    token: str


class ResendVerificationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str


class LoginRequest(BaseModel):
    """Request body for POST /auth/login.

    ``identifier`` is an email or a username; ``email`` and ``username`` are
    accepted as alternative keys.
    """

    model_config = ConfigDict(populate_by_name=True)

    identifier: str = Field(
        validation_alias=AliasChoices("identifier", "email", "username")
    )
    password: str


class ForgotPasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str


class ResetPasswordRequest(BaseModel):
    """Request body for POST /auth/reset-password."""

    model_config = ConfigDict(populate_by_name=True)

    token: str
    new_password: str = Field(
        validation_alias=AliasChoices("new_password", "newPassword", "password")
    )
