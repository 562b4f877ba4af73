"""
Brainswarm Backend — Team Schemas
==================================

What:  Request bodies for team management and the team representation.

The invite token is only included for admins of the team; everyone else
gets `invite_token: null`.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from brainswarm.schemas.auth import UserPublic


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class TeamCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    team_code: str = Field(min_length=1, max_length=50)

    @field_validator("name", "team_code")
    @classmethod
    def not_blank(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("must not be blank")
        return stripped


class JoinByCodeRequest(BaseModel):
    team_code: str = Field(min_length=1, max_length=50)


class AcceptInviteRequest(BaseModel):
    invite_token: str = Field(min_length=1)


class GenerateInviteRequest(BaseModel):
    expires_in_days: int = Field(default=7, ge=1, le=365)


class TeamNameRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)


class TeamSettingsRequest(BaseModel):
    settings: Dict[str, Any] = Field(description="Keys merged into the team's settings")


class AdminChangeRequest(BaseModel):
    user_id: int = Field(ge=1)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class TeamResponse(BaseModel):
    id: int
    name: str
    team_code: str
    invite_token: Optional[str] = None
    invite_expires_at: Optional[datetime] = None
    founder_user_id: int
    settings: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: datetime
    founder: Optional[UserPublic] = None
    is_admin: Optional[bool] = Field(
        default=None, description="Whether the current user administers this team"
    )

    model_config = {"from_attributes": True}


class TeamEnvelope(BaseModel):
    team: TeamResponse


class TeamListResponse(BaseModel):
    teams: List[TeamResponse]


class TeamMessageResponse(BaseModel):
    message: str
    team: TeamResponse


class TeamPreview(BaseModel):
    """What an unauthenticated invite holder may see."""

    # Strict so a full team payload never passes for a preview
    model_config = ConfigDict(extra="forbid")

    id: int
    name: str
    invite_token: str


class InvitePreviewResponse(BaseModel):
    message: str
    team: TeamPreview


class InviteLinkResponse(BaseModel):
    message: str
    invite_token: str
    invite_link: str
    expires_at: datetime
