"""
Brainswarm Backend — Membership Lookups
========================================

What:  Reads the team_user pivot and turns it into MembershipSnapshot
       values that the access-control predicates consume.
Who:   team_service and entry_service, before every guarded operation.

Looking up the team and the caller's membership happens here once per
request; the predicates in brainswarm.core.access never touch the
database.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from brainswarm.core.access import MembershipSnapshot
from brainswarm.exceptions import NotFoundError
from brainswarm.models.membership import Membership
from brainswarm.models.team import Team

logger = logging.getLogger(__name__)


class MembershipService:

    async def get_team(self, db: AsyncSession, team_id: int) -> Team:
        team = await db.get(Team, team_id)
        if team is None:
            raise NotFoundError(
                resource="team", resource_id=str(team_id), message="Team not found"
            )
        return team

    async def get_membership(
        self, db: AsyncSession, team_id: int, user_id: int
    ) -> Optional[Membership]:
        result = await db.execute(
            select(Membership).where(
                Membership.team_id == team_id,
                Membership.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def snapshot(
        self, db: AsyncSession, team: Team, user_id: int
    ) -> MembershipSnapshot:
        """Everything the predicates need to know about `user_id` in `team`."""
        membership = await self.get_membership(db, team.id, user_id)
        if membership is None:
            return MembershipSnapshot.outsider(user_id, team.id)
        return MembershipSnapshot(
            user_id=user_id,
            team_id=team.id,
            is_member=True,
            is_admin=membership.is_admin,
            is_founder=team.founder_user_id == user_id,
        )

    async def add_member(
        self, db: AsyncSession, team_id: int, user_id: int, is_admin: bool = False
    ) -> Membership:
        membership = Membership(team_id=team_id, user_id=user_id, is_admin=is_admin)
        db.add(membership)
        await db.flush()
        logger.info(
            "User %s joined team %s (admin=%s)", user_id, team_id, is_admin
        )
        return membership


# ── Singleton Instance ────────────────────────────────────────────────────
membership_service = MembershipService()
