"""
Authentication endpoints.

POST /auth/signup               — create an unverified account, send confirmation
POST /auth/confirm-email        — consume an email-verification token
POST /auth/resend-verification  — re-issue the confirmation link
POST /auth/login                — exchange credentials for a session token (+ cookie)
POST /auth/logout               — clear the session cookie
POST /auth/forgot-password      — start password recovery (always the same answer)
POST /auth/reset-password       — consume a password-reset token
GET  /auth/validate-session     — is the presented session usable?
GET  /auth/verify-token         — claims view of the presented session
GET  /auth/profile              — stored profile of the session's user

Handlers only translate between HTTP and AuthService; errors propagate to the
handlers registered in errors.register_error_handlers.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from config import AppSettings
from dependencies import get_auth_service, get_settings, require_session
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
    SignupResponse,
    TokenClaimsResponse,
    UserProfileResponse,
)
from schemas.dto.responses.common import ErrorResponse, MessageResponse
from schemas.models.token import SessionClaims
from services.auth_service import AuthService
from shared.cookies import clear_session_cookie, set_session_cookie

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)


@router.post(
    "/signup", status_code=status.HTTP_201_CREATED, response_model=SignupResponse
)
async def signup(
    body: SignupRequest, auth: AuthService = Depends(get_auth_service)
) -> SignupResponse:
    result = await auth.signup(
        name=body.name,
        email=body.email,
        password=body.password,
        username=body.username,
        access_level_hint=body.ref,
    )
    return SignupResponse(
        success=True,
        message="Account created. Check your email to confirm your address.",
        user_id=result.user_id,
        access_level=result.access_level,
        verification_token=result.verification_token,
    )


@router.post("/confirm-email", response_model=MessageResponse)
async def confirm_email(
    body: ConfirmEmailRequest, auth: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    result = await auth.confirm_email(body.token)
    message = (
        "Email is already confirmed."
        if result.already_verified
        else "Email confirmed. You can now log in."
    )
    return MessageResponse(success=True, message=message)


@router.post("/resend-verification", response_model=MessageResponse)
async def resend_verification(
    body: ResendVerificationRequest, auth: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    message = await auth.resend_verification(body.email)
    return MessageResponse(success=True, message=message)


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
    settings: AppSettings = Depends(get_settings),
) -> LoginResponse:
    result = await auth.login(body.identifier, body.password)
    set_session_cookie(response, result.token, settings)
    return LoginResponse(
        access_token=result.token,
        expires_in=settings.jwt.session_token_ttl_seconds,
        user=UserProfileResponse.from_profile(result.user),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    claims: SessionClaims = Depends(require_session),
    settings: AppSettings = Depends(get_settings),
) -> MessageResponse:
    # Sessions are stateless; the token stays valid until it expires
    clear_session_cookie(response, settings)
    return MessageResponse(success=True, message="Logged out.")


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    body: ForgotPasswordRequest, auth: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    message = await auth.forgot_password(body.email)
    return MessageResponse(success=True, message=message)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    body: ResetPasswordRequest, auth: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    await auth.reset_password(body.token, body.new_password)
    return MessageResponse(
        success=True, message="Password has been reset. You can now log in."
    )


@router.get("/validate-session", response_model=SessionStatusResponse)
async def validate_session(
    claims: SessionClaims = Depends(require_session),
) -> SessionStatusResponse:
    return SessionStatusResponse(valid=True, access_level=claims.access_level)


@router.get("/verify-token", response_model=TokenClaimsResponse)
async def verify_token(
    claims: SessionClaims = Depends(require_session),
) -> TokenClaimsResponse:
    return TokenClaimsResponse.from_claims(claims)


@router.get("/profile", response_model=UserProfileResponse)
async def profile(
    claims: SessionClaims = Depends(require_session),
    auth: AuthService = Depends(get_auth_service),
) -> UserProfileResponse:
    user = await auth.get_profile(claims.user_id)
    return UserProfileResponse.from_profile(user)
