"""
Brainswarm Backend — Entry Service
===================================

What:  Entry lifecycle inside a team: list, create, show, update,
       soft delete, trash listing, restore, permanent delete and CSV export.
How:   Loads the team and the caller's membership snapshot, checks the
       operation against brainswarm.core.access, then reads/writes with
       explicit `select(Entry, User)` joins so the author block never
       needs a lazy load on the async session.
Who:   Called by the /api/teams/{team_id}/entries routes.

Ranking:
    final_prio is persisted, never computed on read. It is recomputed on
    create and on any update that touches one of the four priority
    fields, using the stored values overlaid with the incoming ones.

Soft Delete:
    DELETE sets deleted_at; every read except the trash listing, restore
    and force delete filters `deleted_at IS NULL`.
"""

import csv
import io
import logging
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from brainswarm.core.access import EntryRef, MembershipSnapshot, Operation, require
from brainswarm.core.priority import (
    PriorityInputs,
    compute_priority,
    merge_priority_fields,
    touches_priority,
)
from brainswarm.exceptions import NotFoundError
from brainswarm.models.entry import Entry
from brainswarm.models.team import Team
from brainswarm.models.user import User, utcnow
from brainswarm.schemas.auth import UserPublic
from brainswarm.schemas.common import MessageResponse
from brainswarm.schemas.entry import (
    EntryCreateRequest,
    EntryEnvelope,
    EntryListResponse,
    EntryMessageResponse,
    EntryResponse,
    EntryUpdateRequest,
)
from brainswarm.services.membership_service import membership_service

logger = logging.getLogger(__name__)

CSV_HEADER = [
    "ID",
    "Problem",
    "Solution",
    "Area",
    "Time Saved Per Year",
    "Gross Profit Per Year",
    "Effort",
    "Monetary Explanation",
    "Link",
    "Anonymous",
    "Final Priority",
    "Created At",
]

CSV_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def to_entry_response(entry: Entry, author: Optional[User]) -> EntryResponse:
    """Serialize an entry; anonymous entries never expose their author."""
    response = EntryResponse.model_validate(entry)
    if entry.anonymous or author is None:
        return response
    return response.model_copy(update={"user": UserPublic.model_validate(author)})


def entry_csv_row(entry: Entry) -> list:
    return [
        entry.id,
        entry.problem,
        entry.solution,
        entry.area,
        entry.time_saved_per_year if entry.time_saved_per_year is not None else "",
        entry.gross_profit_per_year if entry.gross_profit_per_year is not None else "",
        entry.effort.value if entry.effort is not None else "",
        entry.monetary_explanation,
        entry.link or "",
        "Yes" if entry.anonymous else "No",
        entry.final_prio,
        entry.created_at.strftime(CSV_DATETIME_FORMAT) if entry.created_at else "",
    ]


class EntryService:

    # ── Lookups ───────────────────────────────────────────────────────────

    async def _team_context(
        self, db: AsyncSession, user: User, team_id: int
    ) -> Tuple[Team, MembershipSnapshot]:
        team = await membership_service.get_team(db, team_id)
        snapshot = await membership_service.snapshot(db, team, user.id)
        return team, snapshot

    async def _member_context(
        self, db: AsyncSession, user: User, team_id: int
    ) -> MembershipSnapshot:
        """Team lookup plus the membership gate, run before any entry id is resolved."""
        _, snapshot = await self._team_context(db, user, team_id)
        require(Operation.VIEW_ANY_ENTRIES, user.id, snapshot)
        return snapshot

    async def _find_entry(
        self,
        db: AsyncSession,
        team_id: int,
        entry_id: int,
        with_trashed: bool = False,
        only_trashed: bool = False,
    ) -> Tuple[Entry, User]:
        """
        Fetch an entry of `team_id` together with its author.

        An entry that exists under another team answers 404 here, the
        same as a missing one. `only_trashed` restricts the lookup to
        soft-deleted entries, `with_trashed` widens it to live and trashed.
        """
        query = (
            select(Entry, User)
            .join(User, User.id == Entry.user_id)
            .where(Entry.id == entry_id, Entry.team_id == team_id)
        )
        if only_trashed:
            query = query.where(Entry.deleted_at.is_not(None))
        elif not with_trashed:
            query = query.where(Entry.deleted_at.is_(None))

        row = (await db.execute(query)).first()
        if row is None:
            raise NotFoundError(
                resource="entry", resource_id=str(entry_id), message="Entry not found"
            )
        return row[0], row[1]

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_entries(
        self,
        db: AsyncSession,
        user: User,
        team_id: int,
        area: Optional[str] = None,
    ) -> EntryListResponse:
        """
        Live entries of the team, highest final_prio first.

        Query plan:
            SELECT ... FROM entries JOIN users
            WHERE team_id = :team AND deleted_at IS NULL [AND area = :area]
            ORDER BY final_prio DESC
            → Uses idx_entries_team_prio
        """
        await self._member_context(db, user, team_id)

        query = (
            select(Entry, User)
            .join(User, User.id == Entry.user_id)
            .where(Entry.team_id == team_id, Entry.deleted_at.is_(None))
        )
        if area:
            query = query.where(Entry.area == area)
        query = query.order_by(Entry.final_prio.desc(), Entry.id.asc())

        result = await db.execute(query)
        return EntryListResponse(
            entries=[to_entry_response(entry, author) for entry, author in result.all()]
        )

    async def list_deleted(
        self, db: AsyncSession, user: User, team_id: int
    ) -> EntryListResponse:
        await self._member_context(db, user, team_id)

        result = await db.execute(
            select(Entry, User)
            .join(User, User.id == Entry.user_id)
            .where(Entry.team_id == team_id, Entry.deleted_at.is_not(None))
            .order_by(Entry.deleted_at.desc(), Entry.id.desc())
        )
        return EntryListResponse(
            entries=[to_entry_response(entry, author) for entry, author in result.all()]
        )

    async def get_entry(
        self, db: AsyncSession, user: User, team_id: int, entry_id: int
    ) -> EntryEnvelope:
        snapshot = await self._member_context(db, user, team_id)
        entry, author = await self._find_entry(db, team_id, entry_id)
        require(
            Operation.VIEW_ENTRY,
            user.id,
            snapshot,
            entry=EntryRef(team_id=entry.team_id, creator_id=entry.user_id),
        )
        return EntryEnvelope(entry=to_entry_response(entry, author))

    # ── Writes ────────────────────────────────────────────────────────────

    async def create_entry(
        self, db: AsyncSession, user: User, team_id: int, payload: EntryCreateRequest
    ) -> EntryEnvelope:
        """
        Create an entry authored by `user` in `team_id`.

        Raises:
            NotFoundError: Team does not exist (→ 404)
            PermissionDeniedError: Caller is not a member (→ 403)
            InvalidEffortError: Effort outside low|medium|high (→ 400)
        """
        _, snapshot = await self._team_context(db, user, team_id)
        require(Operation.CREATE_ENTRY, user.id, snapshot)

        final_prio = compute_priority(
            payload.manual_override_prio,
            payload.time_saved_per_year,
            payload.gross_profit_per_year,
            payload.effort,
        )

        entry = Entry(
            team_id=team_id,
            user_id=user.id,
            final_prio=final_prio,
            **payload.model_dump(),
        )
        db.add(entry)
        await db.flush()
        logger.info(
            "Entry %s created in team %s by user %s (final_prio=%d)",
            entry.id, team_id, user.id, final_prio,
        )
        return EntryEnvelope(entry=to_entry_response(entry, user))

    async def update_entry(
        self,
        db: AsyncSession,
        user: User,
        team_id: int,
        entry_id: int,
        payload: EntryUpdateRequest,
    ) -> EntryEnvelope:
        """
        Apply a partial update.

        final_prio is recomputed only when the payload carries at least
        one priority field; the formula then sees the stored values with
        the incoming ones laid over them.
        """
        snapshot = await self._member_context(db, user, team_id)
        entry, author = await self._find_entry(db, team_id, entry_id)
        require(
            Operation.UPDATE_ENTRY,
            user.id,
            snapshot,
            entry=EntryRef(team_id=entry.team_id, creator_id=entry.user_id),
        )

        changes = payload.model_dump(exclude_unset=True)
        if touches_priority(changes):
            merged = merge_priority_fields(PriorityInputs.from_record(entry), changes)
            entry.final_prio = merged.compute()

        for field, value in changes.items():
            setattr(entry, field, value)
        await db.flush()

        logger.info(
            "Entry %s updated by user %s (fields=%s)",
            entry.id, user.id, ",".join(sorted(changes)) or "-",
        )
        return EntryEnvelope(entry=to_entry_response(entry, author))

    async def delete_entry(
        self, db: AsyncSession, user: User, team_id: int, entry_id: int
    ) -> MessageResponse:
        snapshot = await self._member_context(db, user, team_id)
        entry, _ = await self._find_entry(db, team_id, entry_id)
        require(
            Operation.DELETE_ENTRY,
            user.id,
            snapshot,
            entry=EntryRef(team_id=entry.team_id, creator_id=entry.user_id),
        )

        entry.deleted_at = utcnow()
        await db.flush()
        logger.info("Entry %s moved to trash by user %s", entry.id, user.id)
        return MessageResponse(message="Entry deleted successfully")

    async def restore_entry(
        self, db: AsyncSession, user: User, team_id: int, entry_id: int
    ) -> EntryMessageResponse:
        """Bring an entry back from the trash. Live entries are not found here."""
        snapshot = await self._member_context(db, user, team_id)
        entry, author = await self._find_entry(db, team_id, entry_id, only_trashed=True)
        require(
            Operation.RESTORE_ENTRY,
            user.id,
            snapshot,
            entry=EntryRef(team_id=entry.team_id, creator_id=entry.user_id),
        )

        entry.deleted_at = None
        await db.flush()
        logger.info("Entry %s restored by user %s", entry.id, user.id)
        return EntryMessageResponse(
            message="Entry restored successfully",
            entry=to_entry_response(entry, author),
        )

    async def force_delete_entry(
        self, db: AsyncSession, user: User, team_id: int, entry_id: int
    ) -> MessageResponse:
        """Permanently remove an entry, live or trashed. Team admins only."""
        snapshot = await self._member_context(db, user, team_id)
        entry, _ = await self._find_entry(db, team_id, entry_id, with_trashed=True)
        require(
            Operation.FORCE_DELETE_ENTRY,
            user.id,
            snapshot,
            entry=EntryRef(team_id=entry.team_id, creator_id=entry.user_id),
        )

        await db.delete(entry)
        await db.flush()
        logger.warning("Entry %s permanently deleted by user %s", entry_id, user.id)
        return MessageResponse(message="Entry permanently deleted")

    # ── Export ────────────────────────────────────────────────────────────

    async def export_csv(self, db: AsyncSession, user: User, team_id: int) -> str:
        """
        Render the team's live entries as CSV, highest priority first.

        Author names are not part of the export, so anonymous entries need
        no special casing beyond the Yes/No column.
        """
        await self._member_context(db, user, team_id)

        result = await db.execute(
            select(Entry)
            .where(Entry.team_id == team_id, Entry.deleted_at.is_(None))
            .order_by(Entry.final_prio.desc(), Entry.id.asc())
        )
        entries = list(result.scalars().all())

        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(CSV_HEADER)
        for entry in entries:
            writer.writerow(entry_csv_row(entry))

        logger.info("Exported %d entries of team %s", len(entries), team_id)
        return output.getvalue()


# ── Singleton Instance ────────────────────────────────────────────────────
entry_service = EntryService()
