"""
Brainswarm Backend — Access Control Unit Tests
===============================================

What:  Tests for the membership predicates and the authorize/require dispatch.
How:   Pure functions over MembershipSnapshot values; no database.
"""

import pytest

from brainswarm.core.access import (
    EntryRef,
    MembershipSnapshot,
    Operation,
    authorize,
    can_add_admin,
    can_administer_team,
    can_force_delete_entry,
    can_leave_team,
    can_remove_admin,
    can_update_entry,
    can_view_entry,
    require,
)
from brainswarm.exceptions import PermissionDeniedError

TEAM = 10
OTHER_TEAM = 20

FOUNDER = 1
ADMIN = 2
MEMBER = 3
OUTSIDER = 4


def snap(user_id, team_id=TEAM, member=True, admin=False, founder=False):
    if not member:
        return MembershipSnapshot.outsider(user_id, team_id)
    return MembershipSnapshot(
        user_id=user_id,
        team_id=team_id,
        is_member=True,
        is_admin=admin,
        is_founder=founder,
    )


class TestEntryPredicates:

    def setup_method(self):
        self.founder = snap(FOUNDER, admin=True, founder=True)
        self.admin = snap(ADMIN, admin=True)
        self.member = snap(MEMBER)
        self.outsider = snap(OUTSIDER, member=False)
        self.members_entry = EntryRef(team_id=TEAM, creator_id=MEMBER)
        self.admins_entry = EntryRef(team_id=TEAM, creator_id=ADMIN)

    def test_creator_can_update_own_entry(self):
        assert can_update_entry(MEMBER, self.member, self.members_entry)

    def test_admin_can_update_any_entry_of_team(self):
        assert can_update_entry(ADMIN, self.admin, self.members_entry)

    def test_member_cannot_update_others_entry(self):
        assert not can_update_entry(MEMBER, self.member, self.admins_entry)

    def test_admin_of_other_team_cannot_update(self):
        foreign_admin = snap(ADMIN, team_id=OTHER_TEAM, admin=True)
        assert not can_update_entry(ADMIN, foreign_admin, self.members_entry)

    def test_snapshot_of_another_user_grants_nothing(self):
        assert not can_update_entry(MEMBER, self.admin, self.admins_entry)

    def test_view_requires_membership_of_entry_team(self):
        assert can_view_entry(MEMBER, self.member, self.admins_entry)
        assert not can_view_entry(OUTSIDER, self.outsider, self.admins_entry)
        foreign = snap(MEMBER, team_id=OTHER_TEAM)
        assert not can_view_entry(MEMBER, foreign, self.admins_entry)

    def test_force_delete_is_admin_only(self):
        assert can_force_delete_entry(ADMIN, self.admin, self.members_entry)
        assert can_force_delete_entry(FOUNDER, self.founder, self.members_entry)
        # Even the creator needs admin rights for a permanent delete
        assert not can_force_delete_entry(MEMBER, self.member, self.members_entry)

    @pytest.mark.parametrize(
        "operation",
        [Operation.UPDATE_ENTRY, Operation.DELETE_ENTRY, Operation.RESTORE_ENTRY],
    )
    def test_update_family_shares_rule(self, operation):
        assert authorize(operation, MEMBER, self.member, entry=self.members_entry)
        assert authorize(operation, ADMIN, self.admin, entry=self.members_entry)
        assert not authorize(operation, MEMBER, self.member, entry=self.admins_entry)

    def test_list_and_create_require_membership(self):
        for operation in (Operation.VIEW_ANY_ENTRIES, Operation.CREATE_ENTRY):
            assert authorize(operation, MEMBER, self.member)
            assert not authorize(operation, OUTSIDER, self.outsider)

    def test_entry_operation_without_entry_is_denied(self):
        assert not authorize(Operation.UPDATE_ENTRY, ADMIN, self.admin)


class TestTeamPredicates:

    def setup_method(self):
        self.founder = snap(FOUNDER, admin=True, founder=True)
        self.admin = snap(ADMIN, admin=True)
        self.member = snap(MEMBER)
        self.outsider = snap(OUTSIDER, member=False)

    def test_founder_cannot_leave(self):
        assert not can_leave_team(FOUNDER, self.founder)

    def test_member_and_admin_can_leave(self):
        assert can_leave_team(MEMBER, self.member)
        assert can_leave_team(ADMIN, self.admin)

    def test_outsider_cannot_leave(self):
        assert not can_leave_team(OUTSIDER, self.outsider)

    def test_only_admins_administer(self):
        assert can_administer_team(FOUNDER, self.founder)
        assert can_administer_team(ADMIN, self.admin)
        assert not can_administer_team(MEMBER, self.member)
        for operation in (
            Operation.UPDATE_TEAM,
            Operation.MANAGE_INVITES,
            Operation.DELETE_TEAM,
        ):
            assert not authorize(operation, MEMBER, self.member)
            assert authorize(operation, ADMIN, self.admin)

    def test_add_admin_requires_non_admin_member_target(self):
        assert can_add_admin(ADMIN, self.admin, self.member)
        assert not can_add_admin(ADMIN, self.admin, self.founder)
        assert not can_add_admin(ADMIN, self.admin, self.outsider)
        assert not can_add_admin(MEMBER, self.member, snap(5))

    def test_founder_can_never_be_removed_as_admin(self):
        assert not can_remove_admin(ADMIN, self.admin, self.founder)
        assert not can_remove_admin(FOUNDER, self.founder, self.founder)

    def test_remove_admin(self):
        assert can_remove_admin(FOUNDER, self.founder, self.admin)
        assert not can_remove_admin(FOUNDER, self.founder, self.member)
        assert not can_remove_admin(MEMBER, self.member, self.admin)

    def test_target_from_other_team_is_denied(self):
        foreign = snap(MEMBER, team_id=OTHER_TEAM)
        assert not can_add_admin(ADMIN, self.admin, foreign)

    def test_target_operation_without_target_is_denied(self):
        assert not authorize(Operation.ADD_ADMIN, ADMIN, self.admin)


class TestRequire:

    def test_require_passes_silently(self):
        require(Operation.VIEW_TEAM, MEMBER, snap(MEMBER))

    def test_require_raises_with_operation(self):
        with pytest.raises(PermissionDeniedError) as exc_info:
            require(
                Operation.LEAVE_TEAM,
                FOUNDER,
                snap(FOUNDER, admin=True, founder=True),
                message="Founders stay",
            )
        assert exc_info.value.message == "Founders stay"
        assert exc_info.value.context["operation"] == "leave"
        assert exc_info.value.status_code == 403
