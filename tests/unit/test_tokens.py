"""Unit tests for TokenService."""

import base64
import json
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from sessionauth.config import Settings
from sessionauth.kernel.identity.tokens import (
    AccessTokenClaims,
    InvalidToken,
    RefreshTokenClaims,
    TokenService,
)
from sessionauth.kernel.models.identity import Identity

ACCESS_SECRET = "token-test-access-secret-0123456789abcdef"
REFRESH_SECRET = "token-test-refresh-secret-0123456789abcde"


@pytest.fixture
def token_service() -> TokenService:
    return TokenService(access_secret=ACCESS_SECRET, refresh_secret=REFRESH_SECRET)


def _b64(data: dict) -> str:
    raw = json.dumps(data).encode()
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


def _tamper_signature(token: str) -> str:
    header, payload, signature = token.split(".")
    # Middle characters carry a full 6 bits of signature
    pos = len(signature) // 2
    swapped = "A" if signature[pos] != "A" else "B"
    return ".".join([header, payload, signature[:pos] + swapped + signature[pos + 1:]])


def _make_identity(username: str) -> Identity:
    return Identity(
        id=uuid.uuid4(),
        username=username,
        email=f"{username}@example.com",
        full_name=username.title(),
        password_hash="x",
    )


class TestAccessTokens:

    def test_round_trip_claims(self, token_service: TokenService, transient_identity: Identity):
        token, expires_at = token_service.issue_access_token(transient_identity)

        claims = token_service.verify_access_token(token)

        assert isinstance(claims, AccessTokenClaims)
        assert claims.identity_id == transient_identity.id
        assert claims.username == "carol"
        assert claims.email == "carol@example.com"
        assert claims.full_name == "Carol Example"
        assert claims.type == "access"
        assert abs((claims.exp - expires_at).total_seconds()) < 1

    def test_default_lifetime_is_minutes(self, token_service: TokenService, transient_identity: Identity):
        _, expires_at = token_service.issue_access_token(transient_identity)
        remaining = expires_at - datetime.now(timezone.utc)

        assert timedelta(minutes=14) < remaining <= timedelta(minutes=15)

    def test_tokens_are_unique_per_issue(self, token_service: TokenService, transient_identity: Identity):
        first, _ = token_service.issue_access_token(transient_identity)
        second, _ = token_service.issue_access_token(transient_identity)

        assert first != second

    @pytest.mark.parametrize("username", ["alice", "bob", "mallory", "x" * 60])
    def test_tampered_signature_rejected(self, token_service: TokenService, username: str):
        token, _ = token_service.issue_access_token(_make_identity(username))

        with pytest.raises(InvalidToken):
            token_service.verify_access_token(_tamper_signature(token))

    def test_tampered_payload_rejected(self, token_service: TokenService, transient_identity: Identity):
        token, _ = token_service.issue_access_token(transient_identity)
        header, _, signature = token.split(".")
        forged_payload = _b64({
            "sub": str(uuid.uuid4()),
            "username": "admin",
            "email": "admin@example.com",
            "full_name": "Admin",
            "iat": 0,
            "exp": 9999999999,
            "jti": "x",
            "type": "access",
        })

        with pytest.raises(InvalidToken):
            token_service.verify_access_token(f"{header}.{forged_payload}.{signature}")

    def test_expired_rejected(self, token_service: TokenService, transient_identity: Identity):
        token, _ = token_service.issue_access_token(
            transient_identity, expires_delta=timedelta(seconds=-30)
        )

        with pytest.raises(InvalidToken):
            token_service.verify_access_token(token)

    def test_wrong_secret_rejected(self, transient_identity: Identity):
        issuer = TokenService(access_secret="a" * 40, refresh_secret="b" * 40)
        verifier = TokenService(access_secret="c" * 40, refresh_secret="b" * 40)
        token, _ = issuer.issue_access_token(transient_identity)

        with pytest.raises(InvalidToken):
            verifier.verify_access_token(token)

    def test_unsigned_token_rejected(self, token_service: TokenService):
        header = _b64({"alg": "none", "typ": "JWT"})
        payload = _b64({
            "sub": str(uuid.uuid4()),
            "username": "u",
            "email": "u@example.com",
            "full_name": "U",
            "iat": 0,
            "exp": 9999999999,
            "jti": "x",
            "type": "access",
        })

        with pytest.raises(InvalidToken):
            token_service.verify_access_token(f"{header}.{payload}.")

    @pytest.mark.parametrize("garbage", ["", "not-a-token", "a.b.c", "....", None])
    def test_malformed_rejected(self, token_service: TokenService, garbage):
        with pytest.raises(InvalidToken):
            token_service.verify_access_token(garbage)

    def test_missing_claims_rejected(self, token_service: TokenService):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {
                "sub": str(uuid.uuid4()),
                "iat": now,
                "exp": now + timedelta(minutes=5),
                "type": "access",
            },
            ACCESS_SECRET,
            algorithm="HS256",
        )

        with pytest.raises(InvalidToken):
            token_service.verify_access_token(token)

    def test_non_uuid_subject_rejected(self, token_service: TokenService):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {
                "sub": "42",
                "username": "u",
                "email": "u@example.com",
                "full_name": "U",
                "iat": now,
                "exp": now + timedelta(minutes=5),
                "jti": "x",
                "type": "access",
            },
            ACCESS_SECRET,
            algorithm="HS256",
        )

        with pytest.raises(InvalidToken):
            token_service.verify_access_token(token)


class TestRefreshTokens:

    def test_round_trip_claims(self, token_service: TokenService, transient_identity: Identity):
        token, _ = token_service.issue_refresh_token(transient_identity)

        claims = token_service.verify_refresh_token(token)

        assert isinstance(claims, RefreshTokenClaims)
        assert claims.identity_id == transient_identity.id
        assert claims.type == "refresh"

    def test_refresh_claims_are_minimal(self, token_service: TokenService, transient_identity: Identity):
        token, _ = token_service.issue_refresh_token(transient_identity)
        payload = jwt.get_unverified_claims(token)

        assert set(payload) == {"sub", "exp", "iat", "jti", "type"}

    def test_default_lifetime_is_days(self, token_service: TokenService, transient_identity: Identity):
        _, expires_at = token_service.issue_refresh_token(transient_identity)
        remaining = expires_at - datetime.now(timezone.utc)

        assert timedelta(days=9) < remaining <= timedelta(days=10)

    def test_expired_rejected(self, token_service: TokenService, transient_identity: Identity):
        token, _ = token_service.issue_refresh_token(
            transient_identity, expires_delta=timedelta(seconds=-30)
        )

        with pytest.raises(InvalidToken):
            token_service.verify_refresh_token(token)

    def test_tampered_signature_rejected(self, token_service: TokenService, transient_identity: Identity):
        token, _ = token_service.issue_refresh_token(transient_identity)

        with pytest.raises(InvalidToken):
            token_service.verify_refresh_token(_tamper_signature(token))


class TestTokenKinds:

    def test_access_token_not_accepted_as_refresh(self, token_service: TokenService, transient_identity: Identity):
        access, _ = token_service.issue_access_token(transient_identity)

        with pytest.raises(InvalidToken):
            token_service.verify_refresh_token(access)

    def test_refresh_token_not_accepted_as_access(self, token_service: TokenService, transient_identity: Identity):
        refresh, _ = token_service.issue_refresh_token(transient_identity)

        with pytest.raises(InvalidToken):
            token_service.verify_access_token(refresh)

    def test_type_claim_enforced_with_shared_secret(self, transient_identity: Identity):
        """Even with one secret for both kinds, the type claim keeps them apart."""
        service = TokenService(access_secret="s" * 40, refresh_secret="s" * 40)
        refresh, _ = service.issue_refresh_token(transient_identity)

        with pytest.raises(InvalidToken):
            service.verify_access_token(refresh)


class TestConstruction:

    def test_from_settings(self, transient_identity: Identity):
        settings = Settings(
            access_token_secret=ACCESS_SECRET,
            refresh_token_secret=REFRESH_SECRET,
            access_token_expire_minutes=5,
            refresh_token_expire_days=2,
        )
        service = TokenService.from_settings(settings)

        assert service.access_token_expire_minutes == 5
        assert service.refresh_token_expire_days == 2
        token, _ = service.issue_access_token(transient_identity)
        assert jwt.decode(token, ACCESS_SECRET, algorithms=["HS256"])["sub"] == str(transient_identity.id)

    def test_secrets_required(self):
        with pytest.raises(ValueError):
            TokenService(access_secret="", refresh_secret="x" * 40)

    def test_repr_hides_secrets(self, token_service: TokenService):
        assert ACCESS_SECRET not in repr(token_service)
        assert REFRESH_SECRET not in repr(token_service)

    def test_issue_token_pair(self, token_service: TokenService, transient_identity: Identity):
        pair = token_service.issue_token_pair(transient_identity)

        assert token_service.verify_access_token(pair.access_token).identity_id == transient_identity.id
        assert token_service.verify_refresh_token(pair.refresh_token).identity_id == transient_identity.id
        assert pair.token_type == "bearer"
        assert 0 < pair.expires_in <= 15 * 60
