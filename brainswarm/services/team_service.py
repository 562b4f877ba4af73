"""
Brainswarm Backend — Team Service
==================================

What:  Team lifecycle: create, list, show, join (by code, by link, by
       invite acceptance), invite links, name/settings updates, admin
       promotion/demotion, leaving and deletion.
How:   Every guarded method loads the team, snapshots the caller's
       membership and asks brainswarm.core.access before mutating.
Who:   Called by the /api/teams routes and GET /api/me/teams.

Join Paths:
    POST /teams/join {team_code}      → code is permanent, never expires
    GET  /teams/join/{token}          → invite link, honours expiry
    POST /teams/invite/accept {token} → same as link, but callable
                                        without auth (returns a preview)

All three are idempotent: joining a team twice answers 200 with
"You are already a member of this team".
"""

import logging
import secrets
import string
from datetime import timedelta
from typing import Optional, Union

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from brainswarm.config import settings as app_settings
from brainswarm.core.access import (
    MembershipSnapshot,
    Operation,
    can_administer_team,
    require,
)
from brainswarm.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from brainswarm.models.entry import Entry
from brainswarm.models.membership import Membership
from brainswarm.models.team import Team
from brainswarm.models.user import User, utcnow
from brainswarm.schemas.auth import UserPublic
from brainswarm.schemas.common import MessageResponse
from brainswarm.schemas.team import (
    InviteLinkResponse,
    InvitePreviewResponse,
    TeamCreateRequest,
    TeamEnvelope,
    TeamListResponse,
    TeamMessageResponse,
    TeamPreview,
    TeamResponse,
)
from brainswarm.services.membership_service import membership_service

logger = logging.getLogger(__name__)

_INVITE_ALPHABET = string.ascii_letters + string.digits

ALREADY_MEMBER = "You are already a member of this team"
JOINED = "Successfully joined the team"
INVALID_INVITE = "Team not found or invite token expired"


def generate_invite_token(length: Optional[int] = None) -> str:
    length = length or app_settings.invite_token_length
    return "".join(secrets.choice(_INVITE_ALPHABET) for _ in range(length))


def build_invite_link(token: str) -> str:
    return f"{app_settings.app_url}/api/teams/join/{token}"


class TeamService:

    # ── Serialization ─────────────────────────────────────────────────────

    async def _to_response(
        self,
        db: AsyncSession,
        team: Team,
        is_admin: bool,
        founder: Optional[User] = None,
    ) -> TeamResponse:
        if founder is None:
            founder = await db.get(User, team.founder_user_id)
        response = TeamResponse.model_validate(team)
        return response.model_copy(
            update={
                "founder": UserPublic.model_validate(founder) if founder else None,
                "is_admin": is_admin,
                "invite_token": team.invite_token if is_admin else None,
            }
        )

    async def _find_by_invite(self, db: AsyncSession, token: str) -> Team:
        result = await db.execute(
            select(Team).where(
                Team.invite_token == token,
                or_(
                    Team.invite_expires_at.is_(None),
                    Team.invite_expires_at > utcnow(),
                ),
            )
        )
        team = result.scalar_one_or_none()
        if team is None:
            raise NotFoundError(resource="invite", message=INVALID_INVITE)
        return team

    async def _join(self, db: AsyncSession, user: User, team: Team) -> TeamMessageResponse:
        snapshot = await membership_service.snapshot(db, team, user.id)
        if snapshot.is_member:
            return TeamMessageResponse(
                message=ALREADY_MEMBER,
                team=await self._to_response(db, team, snapshot.is_admin),
            )

        await membership_service.add_member(db, team.id, user.id, is_admin=False)
        return TeamMessageResponse(
            message=JOINED, team=await self._to_response(db, team, False)
        )

    # ── Listing & lookup ──────────────────────────────────────────────────

    async def list_teams(self, db: AsyncSession, user: User) -> TeamListResponse:
        """Teams the user belongs to, each with its founder and the user's admin flag."""
        result = await db.execute(
            select(Team, User, Membership.is_admin)
            .join(Membership, Membership.team_id == Team.id)
            .join(User, User.id == Team.founder_user_id)
            .where(Membership.user_id == user.id)
            .order_by(Team.id)
        )
        teams = [
            await self._to_response(db, team, is_admin, founder=founder)
            for team, founder, is_admin in result.all()
        ]
        return TeamListResponse(teams=teams)

    async def get_team(self, db: AsyncSession, user: User, team_id: int) -> TeamEnvelope:
        team = await membership_service.get_team(db, team_id)
        snapshot = await membership_service.snapshot(db, team, user.id)
        require(
            Operation.VIEW_TEAM,
            user.id,
            snapshot,
            message="You do not have permission to view this team",
        )
        return TeamEnvelope(team=await self._to_response(db, team, snapshot.is_admin))

    # ── Creation & joining ────────────────────────────────────────────────

    async def create_team(
        self, db: AsyncSession, user: User, payload: TeamCreateRequest
    ) -> TeamMessageResponse:
        """
        Create a team founded by `user`.

        The founder is attached as an admin member in the same
        transaction, and a fresh invite token valid for
        `invite_expiry_days` is issued.

        Raises:
            ConflictError: team_code already taken (→ 409)
        """
        existing = await db.execute(
            select(Team.id).where(Team.team_code == payload.team_code)
        )
        if existing.scalar_one_or_none() is not None:
            raise ConflictError("The team code has already been taken.", field="team_code")

        team = Team(
            name=payload.name,
            team_code=payload.team_code,
            invite_token=generate_invite_token(),
            invite_expires_at=utcnow() + timedelta(days=app_settings.invite_expiry_days),
            founder_user_id=user.id,
            settings=dict(app_settings.default_team_settings),
        )
        db.add(team)
        try:
            await db.flush()
        except IntegrityError:
            raise ConflictError("The team code has already been taken.", field="team_code")

        await membership_service.add_member(db, team.id, user.id, is_admin=True)
        logger.info("User %s created team %s (%s)", user.id, team.id, team.team_code)

        return TeamMessageResponse(
            message="Team created successfully",
            team=await self._to_response(db, team, True, founder=user),
        )

    async def join_by_code(
        self, db: AsyncSession, user: User, team_code: str
    ) -> TeamMessageResponse:
        result = await db.execute(select(Team).where(Team.team_code == team_code))
        team = result.scalar_one_or_none()
        if team is None:
            raise NotFoundError(resource="team", message="Team not found")
        return await self._join(db, user, team)

    async def join_by_link(
        self, db: AsyncSession, user: User, token: str
    ) -> TeamMessageResponse:
        team = await self._find_by_invite(db, token)
        return await self._join(db, user, team)

    async def accept_invite(
        self, db: AsyncSession, user: Optional[User], token: str
    ) -> Union[TeamMessageResponse, InvitePreviewResponse]:
        """
        Accept an invitation, or preview it when nobody is signed in.

        Anonymous callers get just enough to render "join <team>" and the
        token to replay after registering.
        """
        team = await self._find_by_invite(db, token)

        if user is None:
            return InvitePreviewResponse(
                message="Please register or login to join this team",
                team=TeamPreview(id=team.id, name=team.name, invite_token=team.invite_token),
            )

        response = await self._join(db, user, team)
        if response.message == JOINED:
            response.message = "Invitation accepted successfully"
        return response

    # ── Admin-only updates ────────────────────────────────────────────────

    async def _admin_snapshot(
        self, db: AsyncSession, user: User, team_id: int, operation: Operation, message: str
    ) -> tuple[Team, MembershipSnapshot]:
        team = await membership_service.get_team(db, team_id)
        snapshot = await membership_service.snapshot(db, team, user.id)
        require(operation, user.id, snapshot, message=message)
        return team, snapshot

    async def generate_invite(
        self, db: AsyncSession, user: User, team_id: int, expires_in_days: int
    ) -> InviteLinkResponse:
        """Rotate the invite token; the previous link stops working immediately."""
        team, _ = await self._admin_snapshot(
            db,
            user,
            team_id,
            Operation.MANAGE_INVITES,
            "You do not have permission to generate invite links for this team",
        )

        team.invite_token = generate_invite_token()
        team.invite_expires_at = utcnow() + timedelta(days=expires_in_days)
        await db.flush()
        logger.info("Invite link rotated for team %s (%d days)", team.id, expires_in_days)

        return InviteLinkResponse(
            message="Invite link generated successfully",
            invite_token=team.invite_token,
            invite_link=build_invite_link(team.invite_token),
            expires_at=team.invite_expires_at,
        )

    async def update_name(
        self, db: AsyncSession, user: User, team_id: int, name: str
    ) -> TeamMessageResponse:
        team, _ = await self._admin_snapshot(
            db,
            user,
            team_id,
            Operation.UPDATE_TEAM,
            "You do not have permission to update this team's name",
        )
        team.name = name
        await db.flush()
        return TeamMessageResponse(
            message="Team name updated successfully",
            team=await self._to_response(db, team, True),
        )

    async def update_settings(
        self, db: AsyncSession, user: User, team_id: int, new_settings: dict
    ) -> TeamMessageResponse:
        team, _ = await self._admin_snapshot(
            db,
            user,
            team_id,
            Operation.UPDATE_TEAM,
            "You do not have permission to update this team's settings",
        )
        # Reassign (not mutate) so the JSON column is flagged dirty
        team.settings = {**(team.settings or {}), **new_settings}
        await db.flush()
        return TeamMessageResponse(
            message="Team settings updated successfully",
            team=await self._to_response(db, team, True),
        )

    # ── Admin management ──────────────────────────────────────────────────

    async def _target_snapshot(
        self, db: AsyncSession, user: User, team_id: int, target_user_id: int, operation: Operation
    ) -> tuple[Team, MembershipSnapshot, MembershipSnapshot]:
        team = await membership_service.get_team(db, team_id)
        snapshot = await membership_service.snapshot(db, team, user.id)
        if not can_administer_team(user.id, snapshot):
            raise PermissionDeniedError(
                "You do not have permission to manage admins of this team",
                operation=operation.value,
            )

        target = await membership_service.snapshot(db, team, target_user_id)
        if not target.is_member:
            raise ValidationError("User is not a member of this team", field="user_id")
        return team, snapshot, target

    async def add_admin(
        self, db: AsyncSession, user: User, team_id: int, target_user_id: int
    ) -> MessageResponse:
        team, snapshot, target = await self._target_snapshot(
            db, user, team_id, target_user_id, Operation.ADD_ADMIN
        )
        if target.is_admin:
            raise ValidationError("User is already an admin of this team", field="user_id")

        require(Operation.ADD_ADMIN, user.id, snapshot, target=target)
        membership = await membership_service.get_membership(db, team.id, target_user_id)
        membership.is_admin = True
        await db.flush()
        logger.info("User %s promoted %s in team %s", user.id, target_user_id, team.id)
        return MessageResponse(message="User added as admin successfully")

    async def remove_admin(
        self, db: AsyncSession, user: User, team_id: int, target_user_id: int
    ) -> MessageResponse:
        team, snapshot, target = await self._target_snapshot(
            db, user, team_id, target_user_id, Operation.REMOVE_ADMIN
        )
        if target.is_founder:
            raise PermissionDeniedError(
                "The team founder cannot be removed as admin",
                operation=Operation.REMOVE_ADMIN.value,
            )
        if not target.is_admin:
            raise ValidationError("User is not an admin of this team", field="user_id")

        require(Operation.REMOVE_ADMIN, user.id, snapshot, target=target)
        membership = await membership_service.get_membership(db, team.id, target_user_id)
        membership.is_admin = False
        await db.flush()
        logger.info("User %s demoted %s in team %s", user.id, target_user_id, team.id)
        return MessageResponse(message="Admin privileges removed successfully")

    # ── Leaving & deletion ────────────────────────────────────────────────

    async def leave_team(self, db: AsyncSession, user: User, team_id: int) -> MessageResponse:
        team = await membership_service.get_team(db, team_id)
        snapshot = await membership_service.snapshot(db, team, user.id)
        if not snapshot.is_member:
            raise NotFoundError(
                resource="membership", message="You are not a member of this team"
            )
        require(
            Operation.LEAVE_TEAM,
            user.id,
            snapshot,
            message=(
                "You cannot leave a team you founded. "
                "Transfer ownership or delete the team instead."
            ),
        )

        await db.execute(
            delete(Membership).where(
                Membership.team_id == team.id, Membership.user_id == user.id
            )
        )
        logger.info("User %s left team %s", user.id, team.id)
        return MessageResponse(message="Successfully left the team")

    async def delete_team(self, db: AsyncSession, user: User, team_id: int) -> MessageResponse:
        """Hard-delete the team with all of its entries (trashed ones included) and memberships."""
        team, _ = await self._admin_snapshot(
            db,
            user,
            team_id,
            Operation.DELETE_TEAM,
            "You do not have permission to delete this team",
        )

        await db.execute(delete(Entry).where(Entry.team_id == team.id))
        await db.execute(delete(Membership).where(Membership.team_id == team.id))
        await db.delete(team)
        await db.flush()
        logger.info("User %s deleted team %s", user.id, team_id)
        return MessageResponse(message="Team deleted successfully")


# ── Singleton Instance ────────────────────────────────────────────────────
team_service = TeamService()
