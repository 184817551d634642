"""Unit tests for TokenService: minting, audiences, expiry and signing modes."""

from datetime import datetime, timezone

import jwt
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from config import JWTSettings
from errors import TokenExpired, TokenInvalid
from schemas.models.token import SessionClaims, TokenAudience
from services.token_service import TokenService


def _rsa_pair() -> tuple[str, str]:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode()
    public = (
        key.public_key()
        .public_bytes(
            serialization.Encoding.PEM,
            serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        .decode()
    )
    return private, public


class TestMintSession:
    def test_claims(self, token_service, clock):
        token = token_service.mint_session("u1", "a@x.com", 2, username="alice")
        claims = token_service.verify(token, TokenAudience.SESSION)
        assert claims["userId"] == "u1"
        assert claims["email"] == "a@x.com"
        assert claims["username"] == "alice"
        assert claims["access_level"] == 2
        assert claims["iss"] == "authentique"
        assert claims["aud"] == "session"
        assert claims["iat"] == int(clock.now.timestamp())
        assert claims["exp"] == claims["iat"] + 3600

    def test_username_omitted_when_absent(self, token_service):
        token = token_service.mint_session("u1", "a@x.com", 1)
        assert "username" not in token_service.verify(token, TokenAudience.SESSION)

    def test_claims_model(self, token_service):
        token = token_service.mint_session("u1", "a@x.com", 3)
        claims = SessionClaims.from_claims(
            token_service.verify(token, TokenAudience.SESSION)
        )
        assert claims.user_id == "u1"
        assert claims.access_level == 3
        assert claims.expires_at.tzinfo is not None


class TestMintSingleUse:
    def test_verification_expiry_matches_exp_claim(self, token_service, clock):
        token, expires_at = token_service.mint_verification("a@x.com")
        claims = token_service.verify(token, TokenAudience.EMAIL_VERIFICATION)
        assert claims["email"] == "a@x.com"
        assert expires_at == datetime.fromtimestamp(claims["exp"], tz=timezone.utc)
        assert (expires_at - clock.now).total_seconds() == 86400

    def test_password_reset_expiry(self, token_service, clock):
        token, expires_at = token_service.mint_password_reset("u1")
        claims = token_service.verify(token, TokenAudience.PASSWORD_RESET)
        assert claims["userId"] == "u1"
        assert (expires_at - clock.now).total_seconds() == 3600

    def test_tokens_minted_in_same_second_differ(self, token_service):
        first, _ = token_service.mint_password_reset("u1")
        second, _ = token_service.mint_password_reset("u1")
        assert first != second

    def test_custom_ttls(self, clock):
        settings = JWTSettings(
            jwt_secret="s" * 32,
            verification_token_ttl_seconds=60,
            password_reset_token_ttl_seconds=120,
        )
        service = TokenService(settings, clock=clock)
        _, verification_expiry = service.mint_verification("a@x.com")
        _, reset_expiry = service.mint_password_reset("u1")
        assert (verification_expiry - clock.now).total_seconds() == 60
        assert (reset_expiry - clock.now).total_seconds() == 120


class TestVerifyAudience:
    @pytest.mark.parametrize(
        "mint, wrong_audience",
        [
            ("reset", TokenAudience.SESSION),
            ("reset", TokenAudience.EMAIL_VERIFICATION),
            ("verification", TokenAudience.SESSION),
            ("verification", TokenAudience.PASSWORD_RESET),
            ("session", TokenAudience.PASSWORD_RESET),
            ("session", TokenAudience.EMAIL_VERIFICATION),
        ],
    )
    def test_cross_audience_rejected(self, token_service, mint, wrong_audience):
        if mint == "reset":
            token, _ = token_service.mint_password_reset("u1")
        elif mint == "verification":
            token, _ = token_service.mint_verification("a@x.com")
        else:
            token = token_service.mint_session("u1", "a@x.com", 5)
        with pytest.raises(TokenInvalid) as exc_info:
            token_service.verify(token, wrong_audience)
        assert not isinstance(exc_info.value, TokenExpired)

    def test_accepts_plain_string_audience(self, token_service):
        token = token_service.mint_session("u1", "a@x.com", 1)
        assert token_service.verify(token, "session")["userId"] == "u1"


class TestVerifyExpiry:
    def test_valid_just_before_expiry(self, token_service, clock):
        token = token_service.mint_session("u1", "a@x.com", 1)
        clock.advance(seconds=3599)
        assert token_service.verify(token, TokenAudience.SESSION)

    def test_expired_at_exp(self, token_service, clock):
        token = token_service.mint_session("u1", "a@x.com", 1)
        clock.advance(seconds=3600)
        with pytest.raises(TokenExpired):
            token_service.verify(token, TokenAudience.SESSION)

    def test_expired_is_a_token_invalid(self, token_service, clock):
        token, _ = token_service.mint_verification("a@x.com")
        clock.advance(days=2)
        with pytest.raises(TokenInvalid) as exc_info:
            token_service.verify(token, TokenAudience.EMAIL_VERIFICATION)
        assert exc_info.value.error_code == "token_expired"

    def test_token_from_the_future_clock_is_accepted(self, token_service, clock):
        # Tokens minted by a clock ahead of ours still verify until exp
        clock.advance(minutes=10)
        token = token_service.mint_session("u1", "a@x.com", 1)
        clock.advance(minutes=-10)
        assert token_service.verify(token, TokenAudience.SESSION)


class TestVerifyIntegrity:
    def test_empty_token(self, token_service):
        with pytest.raises(TokenInvalid):
            token_service.verify("", TokenAudience.SESSION)

    def test_garbage(self, token_service):
        with pytest.raises(TokenInvalid):
            token_service.verify("not-a-jwt", TokenAudience.SESSION)

    def test_tampered_signature(self, token_service):
        token = token_service.mint_session("u1", "a@x.com", 1)
        head, payload, sig = token.split(".")
        tampered = ".".join([head, payload, sig[:-2] + ("AA" if sig[-2:] != "AA" else "BB")])
        with pytest.raises(TokenInvalid):
            token_service.verify(tampered, TokenAudience.SESSION)

    def test_other_secret_rejected(self, token_service, clock):
        other = TokenService(JWTSettings(jwt_secret="another-secret-" * 3), clock=clock)
        token = other.mint_session("u1", "a@x.com", 1)
        with pytest.raises(TokenInvalid):
            token_service.verify(token, TokenAudience.SESSION)

    def test_wrong_issuer_rejected(self, token_service, clock):
        now = int(clock.now.timestamp())
        token = jwt.encode(
            {"iss": "someone-else", "aud": "session", "iat": now, "exp": now + 60},
            "test-secret-that-is-long-enough-for-hs256",
            algorithm="HS256",
        )
        with pytest.raises(TokenInvalid):
            token_service.verify(token, TokenAudience.SESSION)

    def test_missing_exp_rejected(self, token_service, clock):
        now = int(clock.now.timestamp())
        token = jwt.encode(
            {"iss": "authentique", "aud": "session", "iat": now},
            "test-secret-that-is-long-enough-for-hs256",
            algorithm="HS256",
        )
        with pytest.raises(TokenInvalid):
            token_service.verify(token, TokenAudience.SESSION)


class TestSigningModes:
    def test_hs256_by_default(self, token_service):
        token = token_service.mint_session("u1", "a@x.com", 1)
        assert jwt.get_unverified_header(token)["alg"] == "HS256"

    def test_rs256_when_keys_configured(self, clock):
        private, public = _rsa_pair()
        service = TokenService(
            JWTSettings(
                jwt_private_key=private.replace("\n", "\\n"),
                jwt_public_key=public.replace("\n", "\\n"),
            ),
            clock=clock,
        )
        token = service.mint_session("u1", "a@x.com", 1)
        assert jwt.get_unverified_header(token)["alg"] == "RS256"
        assert service.verify(token, TokenAudience.SESSION)["userId"] == "u1"

    def test_empty_secret_without_keys_raises(self):
        with pytest.raises(RuntimeError):
            TokenService(JWTSettings(jwt_secret="", jwt_private_key="", jwt_public_key=""))
