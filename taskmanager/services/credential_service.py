"""
Task Management API: Credential Verifier
========================================

What:  Checks a username/password pair against the active users.
How:   Exact username lookup (active users only) → bcrypt comparison in a
       worker thread. Every attempt emits a login telemetry event.
Who:   Called by POST /auth/login after the payload passed validation.

Result (tagged, never raised):
    VERIFIED        user found and password matches
    NOT_FOUND       no active user with that username
    BAD_CREDENTIAL  user found, password does not match

The endpoint maps NOT_FOUND and BAD_CREDENTIAL to the same generic 401 so
clients cannot probe which usernames exist.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from starlette.concurrency import run_in_threadpool

from taskmanager.models.user import User
from taskmanager.services.passwords import verify_password
from taskmanager.services.telemetry import TelemetryService
from taskmanager.stores.user_store import UserStore

logger = logging.getLogger(__name__)

UNKNOWN_ROLE = "Unknown"


class VerificationStatus(str, enum.Enum):
    VERIFIED = "verified"
    NOT_FOUND = "not_found"
    BAD_CREDENTIAL = "bad_credential"


@dataclass(frozen=True)
class VerificationResult:
    status: VerificationStatus
    user: Optional[User] = None

    @property
    def ok(self) -> bool:
        return self.status is VerificationStatus.VERIFIED


class CredentialVerifier:
    def __init__(self, users: UserStore, telemetry: TelemetryService):
        self._users = users
        self._telemetry = telemetry

    async def verify(self, username: str, password: str) -> VerificationResult:
        user = await self._users.find_active_by_username(username)
        if user is None:
            logger.warning("Login attempt with unknown username: %s", username)
            self._telemetry.track_user_login(username, UNKNOWN_ROLE, False)
            return VerificationResult(VerificationStatus.NOT_FOUND)

        # bcrypt blocks for the whole cost factor; run it in a worker thread
        matches = await run_in_threadpool(verify_password, password, user.password_digest)
        if not matches:
            logger.warning("Failed login attempt for user: %s", username)
            self._telemetry.track_user_login(user.username, user.role, False)
            return VerificationResult(VerificationStatus.BAD_CREDENTIAL)

        logger.info("Successful login for user: %s", user.username)
        self._telemetry.track_user_login(user.username, user.role, True)
        return VerificationResult(VerificationStatus.VERIFIED, user)
