"""
Brainswarm Backend — Team Route Handlers
=========================================

What:  /api/teams: listing, creation, joining, invite links, admin-only
       updates, admin management, leaving and deletion.
How:   Thin handlers; every rule lives in team_service and
       brainswarm.core.access.

Route order matters: the literal `/teams/join` and `/teams/invite/...`
paths are declared before the `/teams/{team_id}` ones.
"""

import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from brainswarm.database import get_db_session
from brainswarm.models.user import User
from brainswarm.schemas.common import ErrorResponse, MessageResponse
from brainswarm.schemas.team import (
    AcceptInviteRequest,
    AdminChangeRequest,
    GenerateInviteRequest,
    InviteLinkResponse,
    InvitePreviewResponse,
    JoinByCodeRequest,
    TeamCreateRequest,
    TeamEnvelope,
    TeamListResponse,
    TeamMessageResponse,
    TeamNameRequest,
    TeamSettingsRequest,
)
from brainswarm.security import get_current_user, get_optional_user
from brainswarm.services.team_service import team_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/teams", tags=["Teams"])

_FORBIDDEN = {403: {"description": "Not allowed for this user", "model": ErrorResponse}}
_NOT_FOUND = {404: {"description": "Team not found", "model": ErrorResponse}}


@router.get("", response_model=TeamListResponse, summary="Teams the current user belongs to")
async def list_teams(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TeamListResponse:
    return await team_service.list_teams(db, user)


@router.post(
    "",
    response_model=TeamMessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Team code already taken", "model": ErrorResponse}},
    summary="Create a team; the caller becomes its founder and admin",
)
async def create_team(
    payload: TeamCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TeamMessageResponse:
    return await team_service.create_team(db, user, payload)


# ── Joining ───────────────────────────────────────────────────────────────


@router.post(
    "/join",
    response_model=TeamMessageResponse,
    responses=_NOT_FOUND,
    summary="Join a team by its team code",
)
async def join_by_code(
    payload: JoinByCodeRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TeamMessageResponse:
    return await team_service.join_by_code(db, user, payload.team_code)


@router.get(
    "/join/{token}",
    response_model=TeamMessageResponse,
    responses=_NOT_FOUND,
    summary="Join a team through an invite link",
)
async def join_by_link(
    token: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TeamMessageResponse:
    return await team_service.join_by_link(db, user, token)


@router.post(
    "/invite/accept",
    response_model=Union[TeamMessageResponse, InvitePreviewResponse],
    responses=_NOT_FOUND,
    summary="Accept an invite, or preview it when not signed in",
)
async def accept_invite(
    payload: AcceptInviteRequest,
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> Union[TeamMessageResponse, InvitePreviewResponse]:
    return await team_service.accept_invite(db, user, payload.invite_token)


# ── Single team ───────────────────────────────────────────────────────────


@router.get(
    "/{team_id}",
    response_model=TeamEnvelope,
    responses={**_FORBIDDEN, **_NOT_FOUND},
    summary="Team details, including whether the caller is an admin",
)
async def get_team(
    team_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TeamEnvelope:
    return await team_service.get_team(db, user, team_id)


@router.post(
    "/{team_id}/invite/generate",
    response_model=InviteLinkResponse,
    responses={**_FORBIDDEN, **_NOT_FOUND},
    summary="Issue a fresh invite link (admins only)",
)
async def generate_invite(
    team_id: int,
    payload: Optional[GenerateInviteRequest] = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> InviteLinkResponse:
    expires_in_days = (payload or GenerateInviteRequest()).expires_in_days
    return await team_service.generate_invite(db, user, team_id, expires_in_days)


@router.patch(
    "/{team_id}/name",
    response_model=TeamMessageResponse,
    responses={**_FORBIDDEN, **_NOT_FOUND},
    summary="Rename the team (admins only)",
)
async def update_name(
    team_id: int,
    payload: TeamNameRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TeamMessageResponse:
    return await team_service.update_name(db, user, team_id, payload.name)


@router.patch(
    "/{team_id}/settings",
    response_model=TeamMessageResponse,
    responses={**_FORBIDDEN, **_NOT_FOUND},
    summary="Merge keys into the team settings (admins only)",
)
async def update_settings(
    team_id: int,
    payload: TeamSettingsRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TeamMessageResponse:
    return await team_service.update_settings(db, user, team_id, payload.settings)


@router.post(
    "/{team_id}/admins/add",
    response_model=MessageResponse,
    responses={**_FORBIDDEN, **_NOT_FOUND},
    summary="Promote a member to admin",
)
async def add_admin(
    team_id: int,
    payload: AdminChangeRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await team_service.add_admin(db, user, team_id, payload.user_id)


@router.post(
    "/{team_id}/admins/remove",
    response_model=MessageResponse,
    responses={**_FORBIDDEN, **_NOT_FOUND},
    summary="Demote an admin; the founder cannot be demoted",
)
async def remove_admin(
    team_id: int,
    payload: AdminChangeRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await team_service.remove_admin(db, user, team_id, payload.user_id)


@router.delete(
    "/{team_id}/leave",
    response_model=MessageResponse,
    responses={**_FORBIDDEN, **_NOT_FOUND},
    summary="Leave a team (not available to its founder)",
)
async def leave_team(
    team_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await team_service.leave_team(db, user, team_id)


@router.delete(
    "/{team_id}",
    response_model=MessageResponse,
    responses={**_FORBIDDEN, **_NOT_FOUND},
    summary="Delete the team with its entries and memberships (admins only)",
)
async def delete_team(
    team_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await team_service.delete_team(db, user, team_id)
