"""
Brainswarm Backend — Auth & Account Route Handlers
===================================================

What:  POST /api/register, /api/login, /api/logout; GET /api/user and
       GET /api/me/teams.
Who:   Called by the frontend sign-up/sign-in forms and the account menu.
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from brainswarm.database import get_db_session
from brainswarm.models.access_token import AccessToken
from brainswarm.models.user import User
from brainswarm.schemas.auth import (
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from brainswarm.schemas.common import ErrorResponse, MessageResponse
from brainswarm.schemas.team import TeamListResponse
from brainswarm.security import get_current_token, get_current_user
from brainswarm.services.auth_service import auth_service
from brainswarm.services.team_service import team_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Auth"])


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Email already registered", "model": ErrorResponse}},
    summary="Register a new account",
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    return await auth_service.register(db, payload)


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={401: {"description": "Invalid credentials", "model": ErrorResponse}},
    summary="Exchange email and password for a bearer token",
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    return await auth_service.login(db, payload)


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Revoke the bearer token used for this request",
)
async def logout(
    token: AccessToken = Depends(get_current_token),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await auth_service.logout(db, token)
    return MessageResponse(message="Successfully logged out")


@router.get("/user", response_model=UserResponse, summary="Current user")
async def current_user(user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(user)


@router.get(
    "/me/teams",
    response_model=TeamListResponse,
    summary="Teams of the current user",
)
async def my_teams(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TeamListResponse:
    return await team_service.list_teams(db, user)
