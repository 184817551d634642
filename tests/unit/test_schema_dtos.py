"""Unit tests for request and response DTOs."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from schemas.dto.requests.auth import (
    ConfirmEmailRequest,
    ForgotPasswordRequest,
    LoginRequest,
    ResendVerificationRequest,
    ResetPasswordRequest,
    SignupRequest,
)
from schemas.dto.responses.auth import (
    LoginResponse,
    SessionStatusResponse,
    TokenClaimsResponse,
    UserProfileResponse,
)
from schemas.dto.responses.common import ErrorResponse, HealthResponse, MessageResponse
from schemas.models.token import SessionClaims
from schemas.models.user import UserProfile, UserStatus


# ── SignupRequest ──────────────────────────────────────────────────────────────


class TestSignupRequest:
    def test_minimal(self):
        req = SignupRequest.model_validate({"email": "a@x.com", "password": "pw"})
        assert req.name is None
        assert req.username is None
        assert req.ref is None

    def test_requires_email_and_password(self):
        with pytest.raises(ValidationError):
            SignupRequest.model_validate({"email": "a@x.com"})
        with pytest.raises(ValidationError):
            SignupRequest.model_validate({"password": "pw"})

    @pytest.mark.parametrize("ref", [3, "3", "admin"])
    def test_ref_accepts_int_or_string(self, ref):
        req = SignupRequest.model_validate(
            {"email": "a@x.com", "password": "pw", "ref": ref}
        )
        assert req.ref == ref


# ── LoginRequest ───────────────────────────────────────────────────────────────


class TestLoginRequest:
    @pytest.mark.parametrize("key", ["identifier", "email", "username"])
    def test_identifier_aliases(self, key):
        req = LoginRequest.model_validate({key: "alice", "password": "pw"})
        assert req.identifier == "alice"

    def test_requires_identifier(self):
        with pytest.raises(ValidationError):
            LoginRequest.model_validate({"password": "pw"})


# ── ResetPasswordRequest ───────────────────────────────────────────────────────


class TestResetPasswordRequest:
    @pytest.mark.parametrize("key", ["new_password", "newPassword", "password"])
    def test_password_aliases(self, key):
        req = ResetPasswordRequest.model_validate({"token": "t", key: "NewPass456!"})
        assert req.new_password == "NewPass456!"

    def test_requires_token(self):
        with pytest.raises(ValidationError):
            ResetPasswordRequest.model_validate({"new_password": "x"})


class TestSingleFieldRequests:
    def test_confirm_email(self):
        assert ConfirmEmailRequest.model_validate({"token": "t"}).token == "t"

    @pytest.mark.parametrize("model", [ResendVerificationRequest, ForgotPasswordRequest])
    def test_email_required(self, model):
        assert model.model_validate({"email": "a@x.com"}).email == "a@x.com"
        with pytest.raises(ValidationError):
            model.model_validate({})


# ── Responses ──────────────────────────────────────────────────────────────────


def _profile(**overrides) -> UserProfile:
    data = {
        "id": "u1",
        "email": "a@x.com",
        "username": "alice",
        "name": "Alice",
        "access_level": 2,
        "is_verified": True,
        "status": UserStatus.ACTIVE,
        "created_at": datetime(2025, 1, 1, tzinfo=timezone.utc),
    }
    data.update(overrides)
    return UserProfile(**data)


class TestUserProfileResponse:
    def test_from_profile(self):
        resp = UserProfileResponse.from_profile(_profile())
        assert resp.id == "u1"
        assert resp.status == "active"
        assert resp.access_level == 2
        assert resp.last_login_at is None

    def test_serialized_shape_has_no_secrets(self):
        body = json.loads(UserProfileResponse.from_profile(_profile()).model_dump_json())
        assert not any("hash" in key or "token" in key for key in body)


class TestLoginResponse:
    def test_defaults_to_bearer(self):
        resp = LoginResponse(
            access_token="tok",
            expires_in=3600,
            user=UserProfileResponse.from_profile(_profile()),
        )
        assert resp.token_type == "bearer"
        assert resp.model_dump()["user"]["email"] == "a@x.com"


class TestTokenClaimsResponse:
    def test_from_claims(self):
        claims = SessionClaims.from_claims(
            {
                "userId": "u1",
                "email": "a@x.com",
                "access_level": 3,
                "iss": "authentique",
                "aud": "session",
                "iat": 1_700_000_000,
                "exp": 1_700_003_600,
                "jti": "ignored",
            }
        )
        resp = TokenClaimsResponse.from_claims(claims)
        assert resp.user_id == "u1"
        assert resp.username is None
        assert resp.issued_at == datetime.fromtimestamp(1_700_000_000, tz=timezone.utc)
        assert (resp.expires_at - resp.issued_at).total_seconds() == 3600


class TestCommonResponses:
    def test_error_response_optional_fields(self):
        resp = ErrorResponse(error="nope", code="token_invalid")
        assert resp.field is None
        assert resp.details is None

    def test_health_response(self):
        resp = HealthResponse(status="healthy", checks={"store": "ok"})
        assert resp.model_dump() == {"status": "healthy", "checks": {"store": "ok"}}

    def test_message_response(self):
        assert MessageResponse(success=True).message is None

    def test_session_status(self):
        assert SessionStatusResponse(valid=True, access_level=1).valid is True
