"""
Brainswarm Backend — Entry Service Unit Tests
==============================================

What:  Tests for EntryService business logic (create, update, delete, export).
How:   Mock DB sessions and a patched membership_service; no real database.

What we test:
    ✅ final_prio computed on create and recomputed on priority updates only
    ✅ Anonymous entries hide their author
    ✅ Access denials raise PermissionDeniedError before any write
    ✅ Missing entries raise NotFoundError
    ✅ CSV export layout
"""

import csv
import io
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from brainswarm.core.access import MembershipSnapshot
from brainswarm.core.priority import Effort
from brainswarm.exceptions import NotFoundError, PermissionDeniedError
from brainswarm.models.entry import Entry
from brainswarm.schemas.entry import EntryCreateRequest, EntryUpdateRequest
from brainswarm.services.entry_service import CSV_HEADER, EntryService

TEAM_ID = 7
CREATED = datetime(2026, 3, 14, 9, 26, 53, tzinfo=timezone.utc)


def make_entry(**overrides) -> Entry:
    fields = dict(
        id=11,
        team_id=TEAM_ID,
        user_id=1,
        problem="Slow onboarding",
        solution="Self-service checklist",
        area="HR",
        time_saved_per_year=300,
        gross_profit_per_year=6000,
        effort=Effort.LOW,
        monetary_explanation="Fewer support hours",
        link=None,
        anonymous=False,
        manual_override_prio=0,
        final_prio=27,
        created_at=CREATED,
        updated_at=CREATED,
        deleted_at=None,
    )
    fields.update(overrides)
    return Entry(**fields)


def snapshot(user_id, member=True, admin=False):
    if not member:
        return MembershipSnapshot.outsider(user_id, TEAM_ID)
    return MembershipSnapshot(
        user_id=user_id, team_id=TEAM_ID, is_member=True, is_admin=admin
    )


def row_result(entry, author):
    result = MagicMock()
    result.first.return_value = (entry, author) if entry is not None else None
    return result


@pytest.fixture
def memberships():
    with patch("brainswarm.services.entry_service.membership_service") as mock_ms:
        team = MagicMock()
        team.id = TEAM_ID
        mock_ms.get_team = AsyncMock(return_value=team)
        mock_ms.snapshot = AsyncMock()
        yield mock_ms


class TestEntryServiceCreate:

    def setup_method(self):
        self.service = EntryService()
        self.payload = EntryCreateRequest(
            problem="Manual invoice matching",
            solution="Rules engine",
            area="Finance",
            time_saved_per_year=300,
            gross_profit_per_year=6000,
            effort="low",
            monetary_explanation="Two days a month",
        )

    def _stamp_on_flush(self, session):
        async def fake_flush():
            entry = session.add.call_args[0][0]
            entry.id = 99
            entry.created_at = entry.updated_at = CREATED
        session.flush = AsyncMock(side_effect=fake_flush)

    @pytest.mark.asyncio
    async def test_create_computes_final_prio(self, mock_db_session, memberships, user_factory):
        user = user_factory(user_id=1)
        memberships.snapshot.return_value = snapshot(1)
        self._stamp_on_flush(mock_db_session)

        result = await self.service.create_entry(mock_db_session, user, TEAM_ID, self.payload)

        assert result.entry.final_prio == 27
        assert result.entry.id == 99
        assert result.entry.user.name == user.name
        added = mock_db_session.add.call_args[0][0]
        assert added.team_id == TEAM_ID
        assert added.user_id == 1

    @pytest.mark.asyncio
    async def test_create_anonymous_hides_author(self, mock_db_session, memberships, user_factory):
        memberships.snapshot.return_value = snapshot(1)
        self._stamp_on_flush(mock_db_session)
        payload = self.payload.model_copy(update={"anonymous": True})

        result = await self.service.create_entry(
            mock_db_session, user_factory(user_id=1), TEAM_ID, payload
        )

        assert result.entry.anonymous is True
        assert result.entry.user is None

    @pytest.mark.asyncio
    async def test_non_member_cannot_create(self, mock_db_session, memberships, user_factory):
        memberships.snapshot.return_value = snapshot(5, member=False)

        with pytest.raises(PermissionDeniedError):
            await self.service.create_entry(
                mock_db_session, user_factory(user_id=5), TEAM_ID, self.payload
            )
        mock_db_session.add.assert_not_called()


class TestEntryServiceUpdate:

    def setup_method(self):
        self.service = EntryService()

    @pytest.mark.asyncio
    async def test_effort_change_recomputes(self, mock_db_session, memberships, user_factory):
        author = user_factory(user_id=1)
        entry = make_entry()
        memberships.snapshot.return_value = snapshot(1)
        mock_db_session.execute.return_value = row_result(entry, author)

        result = await self.service.update_entry(
            mock_db_session, author, TEAM_ID, entry.id, EntryUpdateRequest(effort="high")
        )

        assert result.entry.final_prio == 9
        assert entry.effort == Effort.HIGH

    @pytest.mark.asyncio
    async def test_non_priority_update_keeps_final_prio(
        self, mock_db_session, memberships, user_factory
    ):
        author = user_factory(user_id=1)
        # Stored value deliberately differs from the formula
        entry = make_entry(final_prio=100)
        memberships.snapshot.return_value = snapshot(1)
        mock_db_session.execute.return_value = row_result(entry, author)

        result = await self.service.update_entry(
            mock_db_session, author, TEAM_ID, entry.id, EntryUpdateRequest(problem="Renamed")
        )

        assert result.entry.final_prio == 100
        assert result.entry.problem == "Renamed"

    @pytest.mark.asyncio
    async def test_clearing_time_saved_drops_computed_term(
        self, mock_db_session, memberships, user_factory
    ):
        author = user_factory(user_id=1)
        entry = make_entry(manual_override_prio=4, final_prio=31)
        memberships.snapshot.return_value = snapshot(1)
        mock_db_session.execute.return_value = row_result(entry, author)

        result = await self.service.update_entry(
            mock_db_session,
            author,
            TEAM_ID,
            entry.id,
            EntryUpdateRequest(time_saved_per_year=None),
        )

        assert result.entry.final_prio == 4
        assert entry.time_saved_per_year is None

    @pytest.mark.asyncio
    async def test_admin_can_update_others_entry(self, mock_db_session, memberships, user_factory):
        author = user_factory(user_id=1)
        admin = user_factory(user_id=2, name="Grace")
        entry = make_entry()
        memberships.snapshot.return_value = snapshot(2, admin=True)
        mock_db_session.execute.return_value = row_result(entry, author)

        result = await self.service.update_entry(
            mock_db_session, admin, TEAM_ID, entry.id, EntryUpdateRequest(area="Ops")
        )

        assert result.entry.area == "Ops"
        # The author block still names the creator, not the editor
        assert result.entry.user.id == 1

    @pytest.mark.asyncio
    async def test_member_cannot_update_others_entry(
        self, mock_db_session, memberships, user_factory
    ):
        entry = make_entry()
        memberships.snapshot.return_value = snapshot(3)
        mock_db_session.execute.return_value = row_result(entry, user_factory(user_id=1))

        with pytest.raises(PermissionDeniedError):
            await self.service.update_entry(
                mock_db_session,
                user_factory(user_id=3),
                TEAM_ID,
                entry.id,
                EntryUpdateRequest(effort="high"),
            )
        assert entry.effort == Effort.LOW
        assert entry.final_prio == 27

    @pytest.mark.asyncio
    async def test_missing_entry_raises_not_found(
        self, mock_db_session, memberships, user_factory
    ):
        memberships.snapshot.return_value = snapshot(1)
        mock_db_session.execute.return_value = row_result(None, None)

        with pytest.raises(NotFoundError):
            await self.service.update_entry(
                mock_db_session, user_factory(user_id=1), TEAM_ID, 404, EntryUpdateRequest()
            )


class TestEntryServiceTrash:

    def setup_method(self):
        self.service = EntryService()

    @pytest.mark.asyncio
    async def test_soft_delete_sets_deleted_at(self, mock_db_session, memberships, user_factory):
        author = user_factory(user_id=1)
        entry = make_entry()
        memberships.snapshot.return_value = snapshot(1)
        mock_db_session.execute.return_value = row_result(entry, author)

        result = await self.service.delete_entry(mock_db_session, author, TEAM_ID, entry.id)

        assert result.message == "Entry deleted successfully"
        assert entry.deleted_at is not None
        mock_db_session.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_restore_clears_deleted_at(self, mock_db_session, memberships, user_factory):
        author = user_factory(user_id=1)
        entry = make_entry(deleted_at=CREATED)
        memberships.snapshot.return_value = snapshot(1)
        mock_db_session.execute.return_value = row_result(entry, author)

        result = await self.service.restore_entry(mock_db_session, author, TEAM_ID, entry.id)

        assert result.message == "Entry restored successfully"
        assert entry.deleted_at is None
        assert result.entry.deleted_at is None

    @pytest.mark.asyncio
    async def test_restore_of_live_entry_raises_not_found(
        self, mock_db_session, memberships, user_factory
    ):
        memberships.snapshot.return_value = snapshot(1)
        # The trashed-only query finds nothing for a live entry
        mock_db_session.execute.return_value = row_result(None, None)

        with pytest.raises(NotFoundError):
            await self.service.restore_entry(
                mock_db_session, user_factory(user_id=1), TEAM_ID, 11
            )

        query = mock_db_session.execute.call_args[0][0]
        assert "deleted_at IS NOT NULL" in str(query)

    @pytest.mark.asyncio
    async def test_outsider_denied_before_entry_lookup(
        self, mock_db_session, memberships, user_factory
    ):
        memberships.snapshot.return_value = snapshot(9, member=False)
        outsider = user_factory(user_id=9)

        for call in (
            self.service.get_entry,
            self.service.delete_entry,
            self.service.restore_entry,
            self.service.force_delete_entry,
        ):
            with pytest.raises(PermissionDeniedError):
                await call(mock_db_session, outsider, TEAM_ID, 404)
        mock_db_session.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_creator_cannot_force_delete(self, mock_db_session, memberships, user_factory):
        author = user_factory(user_id=1)
        entry = make_entry()
        memberships.snapshot.return_value = snapshot(1)
        mock_db_session.execute.return_value = row_result(entry, author)

        with pytest.raises(PermissionDeniedError):
            await self.service.force_delete_entry(mock_db_session, author, TEAM_ID, entry.id)
        mock_db_session.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_admin_force_delete(self, mock_db_session, memberships, user_factory):
        entry = make_entry()
        memberships.snapshot.return_value = snapshot(2, admin=True)
        mock_db_session.execute.return_value = row_result(entry, user_factory(user_id=1))

        await self.service.force_delete_entry(
            mock_db_session, user_factory(user_id=2), TEAM_ID, entry.id
        )
        mock_db_session.delete.assert_awaited_once_with(entry)


class TestEntryServiceExport:

    def setup_method(self):
        self.service = EntryService()

    @pytest.mark.asyncio
    async def test_export_layout(self, mock_db_session, memberships, user_factory):
        memberships.snapshot.return_value = snapshot(1)
        entries = [
            make_entry(id=1, final_prio=27, anonymous=True, link="https://wiki.example.com/a"),
            make_entry(
                id=2,
                final_prio=5,
                time_saved_per_year=None,
                effort=Effort.HIGH,
                problem='Quote "this", please',
            ),
        ]
        result = MagicMock()
        result.scalars.return_value.all.return_value = entries
        mock_db_session.execute.return_value = result

        content = await self.service.export_csv(mock_db_session, user_factory(user_id=1), TEAM_ID)
        rows = list(csv.reader(io.StringIO(content)))

        assert rows[0] == CSV_HEADER
        assert rows[0][0] == "ID"
        assert len(rows) == 3
        assert rows[1][9] == "Yes"
        assert rows[1][8] == "https://wiki.example.com/a"
        assert rows[1][11] == "2026-03-14 09:26:53"
        assert rows[2][9] == "No"
        assert rows[2][4] == ""
        assert rows[2][6] == "high"
        assert rows[2][1] == 'Quote "this", please'

    @pytest.mark.asyncio
    async def test_outsider_cannot_export(self, mock_db_session, memberships, user_factory):
        memberships.snapshot.return_value = snapshot(9, member=False)

        with pytest.raises(PermissionDeniedError):
            await self.service.export_csv(mock_db_session, user_factory(user_id=9), TEAM_ID)
        mock_db_session.execute.assert_not_called()
