"""
Task Management API: Request Dependencies and Auth Gate
=======================================================

What:  FastAPI dependencies that hand route handlers their collaborators and
       enforce authentication / authorization.
How:   Services live on `app.state` (built once by `create_app`); getters
       read them from the current request. The auth gate is two layers:
       `get_current_user` verifies the bearer token (→ 401), and
       `require_role(role)` checks the verified principal's role (→ 403).
       Both raise application errors that the app-level handlers render.
"""

from typing import Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from taskmanager.exceptions import AuthenticationError, PermissionDeniedError
from taskmanager.services.credential_service import CredentialVerifier
from taskmanager.services.task_service import TaskService
from taskmanager.services.telemetry import TelemetryService
from taskmanager.services.token_service import Principal, TokenService

# auto_error=False so a missing header reaches our own 401 instead of FastAPI's 403
bearer_scheme = HTTPBearer(auto_error=False)


def get_task_service(request: Request) -> TaskService:
    return request.app.state.task_service


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_credential_verifier(request: Request) -> CredentialVerifier:
    return request.app.state.credential_verifier


def get_telemetry(request: Request) -> TelemetryService:
    return request.app.state.telemetry


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> Principal:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Authentication required")
    principal = tokens.authenticate(credentials.credentials)
    request.state.user = principal
    return principal


def require_role(role: str) -> Callable[..., Principal]:
    """Dependency factory: the caller must be authenticated AND hold `role`."""

    async def check_role(principal: Principal = Depends(get_current_user)) -> Principal:
        if not principal.has_role(role):
            raise PermissionDeniedError(required_role=role)
        return principal

    return check_role
