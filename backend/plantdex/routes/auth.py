"""
PlantDex Backend — Account Route Handlers
==========================================

What:  Register, log in, log out, and "who am I" for the session cookie.
How:   The session (Starlette SessionMiddleware, signed cookie) stores only
       the user id under SESSION_USER_KEY.
"""

import logging

from fastapi import APIRouter, Depends, Request

from plantdex.dependencies import SESSION_USER_KEY, get_auth_service, require_user
from plantdex.schemas.common import ErrorResponse
from plantdex.schemas.user import Credentials, UserRecord, UserResponse
from plantdex.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Auth"])


@router.post(
    "/register",
    status_code=201,
    response_model=UserResponse,
    responses={400: {"description": "Invalid or taken username", "model": ErrorResponse}},
    summary="Create an account and sign in",
)
async def register(
    credentials: Credentials,
    request: Request,
    service: AuthService = Depends(get_auth_service),
) -> UserResponse:
    user = await service.register(credentials.username, credentials.password)
    request.session[SESSION_USER_KEY] = user.id
    return UserResponse.model_validate(user)


@router.post(
    "/login",
    response_model=UserResponse,
    responses={401: {"description": "Wrong credentials", "model": ErrorResponse}},
    summary="Sign in",
)
async def login(
    credentials: Credentials,
    request: Request,
    service: AuthService = Depends(get_auth_service),
) -> UserResponse:
    user = await service.authenticate(credentials.username, credentials.password)
    request.session.clear()
    request.session[SESSION_USER_KEY] = user.id
    return UserResponse.model_validate(user)


@router.post("/logout", summary="Sign out")
async def logout(request: Request) -> dict:
    request.session.clear()
    return {"message": "Logged out"}


@router.get(
    "/user",
    response_model=UserResponse,
    responses={401: {"description": "Not signed in", "model": ErrorResponse}},
    summary="Current user",
)
async def current_user(user: UserRecord = Depends(require_user)) -> UserResponse:
    return UserResponse.model_validate(user)
