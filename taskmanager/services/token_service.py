"""
Task Management API: Token Service (JWT issue and verify)
=========================================================

What:  Issues signed, time-bounded bearer tokens for verified users and
       verifies tokens presented to protected endpoints.
How:   PyJWT with HS256 and the configured symmetric key. The same instance
       (and therefore the same key) does both jobs.

Claims:
    sub   user id (string)
    name  username
    role  user role ("User" / "Admin")
    iat   issued-at (seconds)
    nbf   not-before (= iat)
    exp   iat + jwt_expiration_minutes
    iss   jwt_issuer
    aud   jwt_audience
    jti   random id, so two tokens are distinct even within one second

Verification checks signature, issuer, audience, expiry and not-before with
`jwt_clock_skew_seconds` of leeway (default zero).
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from taskmanager.config import Settings
from taskmanager.exceptions import AuthenticationError, InvalidArgumentError, MissingArgumentError
from taskmanager.models.user import User

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
REQUIRED_CLAIMS = ["exp", "iat", "sub", "iss", "aud"]


@dataclass(frozen=True)
class IssuedToken:
    token: str
    expires_at: datetime


@dataclass(frozen=True)
class Principal:
    """Identity established from a verified bearer token."""

    user_id: str
    username: str
    role: str

    def has_role(self, role: str) -> bool:
        return self.role == role


class TokenService:
    def __init__(self, settings: Settings):
        self._key = settings.jwt_secret_key
        self._issuer = settings.jwt_issuer
        self._audience = settings.jwt_audience
        self._lifetime = timedelta(minutes=settings.jwt_expiration_minutes)
        self._leeway = settings.jwt_clock_skew_seconds

    def issue(self, user: Optional[User]) -> IssuedToken:
        """
        Sign a token for `user`.

        Raises:
            MissingArgumentError: user is None
            InvalidArgumentError: user has an empty username
        """
        if user is None:
            raise MissingArgumentError("user")
        if not user.username:
            raise InvalidArgumentError(
                message="Cannot issue a token for a user without a username",
                context={"user_id": user.id},
            )

        issued_at = datetime.now(timezone.utc)
        expires_at = issued_at + self._lifetime
        claims: Dict[str, Any] = {
            "sub": str(user.id),
            "name": user.username,
            "role": user.role,
            "iat": issued_at,
            "nbf": issued_at,
            "exp": expires_at,
            "iss": self._issuer,
            "aud": self._audience,
            "jti": uuid.uuid4().hex,
        }
        token = jwt.encode(claims, self._key, algorithm=ALGORITHM)
        logger.debug("Issued token for user %s (expires %s)", user.username, expires_at.isoformat())
        # exp is serialized as whole seconds; report what the token actually says
        return IssuedToken(token=token, expires_at=expires_at.replace(microsecond=0))

    def decode(self, token: str) -> Dict[str, Any]:
        """
        Verify `token` and return its claims.

        Raises:
            AuthenticationError: bad signature, wrong issuer/audience, expired,
                                 not yet valid, missing claims or malformed
        """
        try:
            return jwt.decode(
                token,
                self._key,
                algorithms=[ALGORITHM],
                audience=self._audience,
                issuer=self._issuer,
                leeway=self._leeway,
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token has expired")
        except jwt.PyJWTError as e:
            logger.info("Rejected bearer token: %s", type(e).__name__)
            raise AuthenticationError("Invalid token")

    def authenticate(self, token: str) -> Principal:
        claims = self.decode(token)
        username = claims.get("name")
        role = claims.get("role")
        if not username or not role:
            raise AuthenticationError("Invalid token")
        return Principal(user_id=str(claims["sub"]), username=username, role=role)
