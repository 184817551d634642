"""
Token engine: mints and verifies the three token kinds.

Every token is a JWT signed with the shared key material and tagged with an
issuer and an audience (see schemas.models.token.TokenAudience). verify()
only accepts a token for the audience the caller names, so a password-reset
token can never pass as a session and vice versa.

Expiry is checked against the injected clock rather than PyJWT's wall clock,
which keeps the engine a pure function of key + payload + clock.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Optional, Tuple

import jwt

from config import JWTSettings
from errors import TokenExpired, TokenInvalid
from schemas.models.token import TokenAudience
from shared.generators import generate_token_id

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    def __init__(self, settings: JWTSettings, clock: Clock = utc_now) -> None:
        self._settings = settings
        self._clock = clock
        if settings.use_rs256:
            # Support keys provided via env with literal \n sequences
            self._algorithm = "RS256"
            self._signing_key: Any = settings.jwt_private_key.replace("\\n", "\n")
            self._verify_key: Any = settings.jwt_public_key.replace("\\n", "\n")
        else:
            if not settings.jwt_secret:
                raise RuntimeError(
                    "JWT_SECRET must be set when RS256 keys are not provided"
                )
            self._algorithm = "HS256"
            self._signing_key = settings.jwt_secret
            self._verify_key = settings.jwt_secret

    @property
    def issuer(self) -> str:
        return self._settings.jwt_issuer

    # ── Minting ──────────────────────────────────────────────────────────────

    def _encode(self, payload: dict, audience: TokenAudience, ttl_seconds: int) -> str:
        issued_at = int(self._clock().timestamp())
        claims = {
            **payload,
            "iss": self._settings.jwt_issuer,
            "aud": audience.value,
            "iat": issued_at,
            "exp": issued_at + ttl_seconds,
            "jti": generate_token_id(),
        }
        return jwt.encode(claims, self._signing_key, algorithm=self._algorithm)

    @staticmethod
    def _expiry_of(token: str) -> datetime:
        """Read the ``exp`` claim back out of a freshly minted token."""
        claims = jwt.decode(token, options={"verify_signature": False})
        return datetime.fromtimestamp(claims["exp"], tz=timezone.utc)

    def mint_session(
        self,
        user_id: str,
        email: str,
        access_level: int,
        username: Optional[str] = None,
    ) -> str:
        payload: dict[str, Any] = {
            "userId": str(user_id),
            "email": email,
            "access_level": access_level,
        }
        if username:
            payload["username"] = username
        return self._encode(
            payload, TokenAudience.SESSION, self._settings.session_token_ttl_seconds
        )

    def mint_verification(self, email: str) -> Tuple[str, datetime]:
        token = self._encode(
            {"email": email},
            TokenAudience.EMAIL_VERIFICATION,
            self._settings.verification_token_ttl_seconds,
        )
        return token, self._expiry_of(token)

    def mint_password_reset(self, user_id: str) -> Tuple[str, datetime]:
        token = self._encode(
            {"userId": str(user_id)},
            TokenAudience.PASSWORD_RESET,
            self._settings.password_reset_token_ttl_seconds,
        )
        return token, self._expiry_of(token)

    # ── Verification ─────────────────────────────────────────────────────────

    def verify(self, token: str, expected_audience: TokenAudience) -> dict[str, Any]:
        """Verify signature, issuer, audience and expiry; return the claims.

        Raises:
            TokenExpired: signature and audience are fine but ``exp`` has passed.
            TokenInvalid: anything else (bad signature, wrong audience or
                issuer, malformed token, missing claims).
        """
        if not token:
            raise TokenInvalid("Token is missing.")
        try:
            claims = jwt.decode(
                token,
                self._verify_key,
                algorithms=[self._algorithm],
                audience=TokenAudience(expected_audience).value,
                issuer=self._settings.jwt_issuer,
                options={
                    "require": ["exp", "iat", "iss", "aud"],
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                },
            )
        except jwt.InvalidTokenError as e:
            raise TokenInvalid("Invalid token.", details=type(e).__name__) from e

        exp = claims.get("exp")
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            raise TokenInvalid("Invalid token.", details="InvalidExpClaim")
        if self._clock().timestamp() >= exp:
            raise TokenExpired("Token has expired.")
        return claims
