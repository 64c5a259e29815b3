"""
Task Management API: Authentication Routes
==========================================

What:  POST /auth/login exchanges a username/password for a bearer token.
How:   validate payload → verify credentials → issue token.

Outcomes:
    400  {field: [messages]}   payload failed validation (no lookup attempted)
    401  error envelope         unknown user, inactive user or wrong password
                                (one generic message for all three)
    200  {token, expiration, username, role}

GET /auth/test-users lists the demo accounts; it is exempt from rate
limiting and needs no token.
"""

import logging

from fastapi import APIRouter, Depends, Request

from taskmanager.dependencies import get_credential_verifier, get_token_service
from taskmanager.exceptions import STATUS_BY_KIND, ErrorKind
from taskmanager.middleware.responses import build_error_response, build_validation_response
from taskmanager.schemas.auth import LoginRequest, LoginResponse
from taskmanager.schemas.common import ErrorResponse
from taskmanager.seed import DEMO_USERS
from taskmanager.services.credential_service import CredentialVerifier
from taskmanager.services.token_service import TokenService
from taskmanager.validation import login_validator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])

INVALID_CREDENTIALS = "Invalid username or password"


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        400: {"description": "Validation failed; body maps field → messages"},
        401: {"description": "Invalid username or password", "model": ErrorResponse},
    },
    summary="Log in and receive a bearer token",
)
async def login(
    payload: LoginRequest,
    request: Request,
    verifier: CredentialVerifier = Depends(get_credential_verifier),
    tokens: TokenService = Depends(get_token_service),
):
    validation = login_validator.validate(payload)
    if not validation.is_valid:
        logger.info("Login payload rejected: %s", sorted(validation.to_dict()))
        return build_validation_response(validation.to_dict())

    result = await verifier.verify(payload.username, payload.password)
    if not result.ok:
        return build_error_response(
            request,
            STATUS_BY_KIND[ErrorKind.UNAUTHENTICATED],
            INVALID_CREDENTIALS,
        )

    issued = tokens.issue(result.user)
    return LoginResponse(
        token=issued.token,
        expiration=issued.expires_at,
        username=result.user.username,
        role=result.user.role,
    )


@router.get("/test-users", summary="Demo credentials for local testing")
async def test_users():
    return DEMO_USERS
