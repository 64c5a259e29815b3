"""
Task Management API: Token and Credential Tests
===============================================

What:  Tests for JWT issue/verify, password hashing and the credential
       verifier.

What we test:
    ✅ Token claims, expiry window and uniqueness
    ✅ Rejection of expired, foreign-key, wrong-audience and garbage tokens
    ✅ Programming-error guards on issue()
    ✅ Verifier outcomes and the telemetry they emit
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest
import pytest_asyncio

from taskmanager.exceptions import AuthenticationError, InvalidArgumentError, MissingArgumentError
from taskmanager.models.user import ROLE_ADMIN, ROLE_USER, User
from taskmanager.services.credential_service import CredentialVerifier, VerificationStatus
from taskmanager.services.passwords import hash_password, verify_password
from taskmanager.services.token_service import TokenService
from taskmanager.stores import UserStore

from conftest import make_settings


def make_user(user_id: int = 1, username: str = "alice", role: str = ROLE_USER) -> User:
    return User(
        id=user_id,
        username=username,
        password_digest="x",
        role=role,
        created_at=datetime.now(timezone.utc),
        is_active=True,
    )


class TestTokenIssue:

    def setup_method(self):
        self.settings = make_settings(jwt_expiration_minutes=60)
        self.service = TokenService(self.settings)

    def test_claims_are_embedded(self):
        issued = self.service.issue(make_user(7, "alice", ROLE_ADMIN))
        claims = self.service.decode(issued.token)

        assert claims["sub"] == "7"
        assert claims["name"] == "alice"
        assert claims["role"] == ROLE_ADMIN
        assert claims["iss"] == self.settings.jwt_issuer
        assert claims["aud"] == self.settings.jwt_audience

    def test_expiry_lies_within_configured_window(self):
        now = datetime.now(timezone.utc)
        issued = self.service.issue(make_user())
        exp = datetime.fromtimestamp(self.service.decode(issued.token)["exp"], tz=timezone.utc)

        assert now + timedelta(minutes=59) <= exp <= now + timedelta(minutes=61)
        assert issued.expires_at == exp

    def test_tokens_for_different_users_differ(self):
        first = self.service.issue(make_user(1, "alice"))
        second = self.service.issue(make_user(2, "bob"))
        assert first.token != second.token

    def test_tokens_for_same_user_differ(self):
        user = make_user()
        assert self.service.issue(user).token != self.service.issue(user).token

    def test_issue_without_user_fails(self):
        with pytest.raises(MissingArgumentError):
            self.service.issue(None)

    def test_issue_with_empty_username_fails(self):
        with pytest.raises(InvalidArgumentError):
            self.service.issue(make_user(username=""))


class TestTokenVerify:

    def setup_method(self):
        self.settings = make_settings()
        self.service = TokenService(self.settings)

    def _forge(self, **overrides):
        now = datetime.now(timezone.utc)
        claims = {
            "sub": "1",
            "name": "alice",
            "role": ROLE_USER,
            "iat": now,
            "nbf": now,
            "exp": now + timedelta(minutes=5),
            "iss": self.settings.jwt_issuer,
            "aud": self.settings.jwt_audience,
        }
        key = overrides.pop("key", self.settings.jwt_secret_key)
        claims.update(overrides)
        return jwt.encode(claims, key, algorithm="HS256")

    def test_valid_token_yields_principal(self):
        principal = self.service.authenticate(self._forge())
        assert principal.username == "alice"
        assert principal.has_role(ROLE_USER)
        assert not principal.has_role(ROLE_ADMIN)

    def test_expired_token_is_rejected(self):
        past = datetime.now(timezone.utc) - timedelta(minutes=10)
        token = self._forge(iat=past, nbf=past, exp=past + timedelta(minutes=1))
        with pytest.raises(AuthenticationError, match="expired"):
            self.service.authenticate(token)

    @pytest.mark.parametrize("override", [
        {"key": "AnotherSigningKeyThatIsAlsoLongEnough!!"},
        {"aud": "SomeoneElse"},
        {"iss": "SomeoneElse"},
    ])
    def test_foreign_tokens_are_rejected(self, override):
        with pytest.raises(AuthenticationError, match="Invalid token"):
            self.service.authenticate(self._forge(**override))

    def test_garbage_is_rejected(self):
        with pytest.raises(AuthenticationError):
            self.service.authenticate("not-a-jwt")


class TestPasswords:

    def test_hash_round_trip(self):
        digest = hash_password("Secret123!", rounds=4)
        assert digest != "Secret123!"
        assert verify_password("Secret123!", digest)
        assert not verify_password("secret123!", digest)

    def test_malformed_digest_never_matches(self):
        assert verify_password("anything", "not-a-bcrypt-digest") is False


@pytest_asyncio.fixture
async def verifier(database, telemetry):
    users = UserStore(database)
    await users.add_all([
        User(
            username="alice",
            password_digest=hash_password("Secret123!", rounds=4),
            role=ROLE_ADMIN,
            created_at=datetime.now(timezone.utc),
            is_active=True,
        ),
        User(
            username="ghost",
            password_digest=hash_password("Secret123!", rounds=4),
            role=ROLE_USER,
            created_at=datetime.now(timezone.utc),
            is_active=False,
        ),
    ])
    return CredentialVerifier(users, telemetry)


class TestCredentialVerifier:

    @pytest.mark.asyncio
    async def test_valid_credentials_verify(self, verifier, telemetry):
        result = await verifier.verify("alice", "Secret123!")

        assert result.status is VerificationStatus.VERIFIED
        assert result.user.username == "alice"
        assert telemetry.events == [
            ("UserLoginSuccess", {"Username": "alice", "Role": ROLE_ADMIN, "Success": True})
        ]

    @pytest.mark.asyncio
    async def test_wrong_password_is_bad_credential(self, verifier, telemetry):
        result = await verifier.verify("alice", "wrong-password")

        assert result.status is VerificationStatus.BAD_CREDENTIAL
        assert not result.ok
        assert telemetry.names() == ["UserLoginFailed"]

    @pytest.mark.asyncio
    async def test_username_match_is_case_sensitive(self, verifier):
        result = await verifier.verify("ALICE", "Secret123!")
        assert result.status is VerificationStatus.NOT_FOUND

    @pytest.mark.asyncio
    async def test_inactive_user_is_not_found(self, verifier, telemetry):
        result = await verifier.verify("ghost", "Secret123!")

        assert result.status is VerificationStatus.NOT_FOUND
        assert telemetry.events[0][1]["Role"] == "Unknown"
