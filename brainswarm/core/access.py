"""
Brainswarm Backend — Access Control Model
==========================================

What:  Decides whether an actor may perform an operation on a team or entry.
How:   Pure predicates over a MembershipSnapshot (the actor's role facts for
       one team) plus the ownership facts of the resource. No I/O.
Who:   Services resolve the snapshot through MembershipRepository, then call
       authorize() or require() before every listing or mutating operation.

Rules:
    VIEW_ANY_ENTRIES / VIEW_ENTRY / CREATE_ENTRY / VIEW_TEAM
                                    member of the team
    UPDATE_ENTRY / DELETE_ENTRY / RESTORE_ENTRY
                                    creator of the entry, or team admin
    FORCE_DELETE_ENTRY              team admin (ownership is not enough)
    UPDATE_TEAM / MANAGE_INVITES / DELETE_TEAM
                                    team admin
    ADD_ADMIN                       admin; target is a member, not yet admin
    REMOVE_ADMIN                    admin; target is an admin, not the founder
    LEAVE_TEAM                      member, not the founder

Predicates always return a bool. Missing records resolve to an outsider
snapshot (not a member, not an admin) on the caller's side.
"""

import enum
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from brainswarm.exceptions import PermissionDeniedError


class Operation(str, enum.Enum):
    VIEW_ANY_ENTRIES = "viewAny"
    VIEW_ENTRY = "view"
    CREATE_ENTRY = "create"
    UPDATE_ENTRY = "update"
    DELETE_ENTRY = "delete"
    RESTORE_ENTRY = "restore"
    FORCE_DELETE_ENTRY = "forceDelete"
    VIEW_TEAM = "viewTeam"
    UPDATE_TEAM = "updateTeam"
    MANAGE_INVITES = "manageInvites"
    ADD_ADMIN = "addAdmin"
    REMOVE_ADMIN = "removeAdmin"
    LEAVE_TEAM = "leave"
    DELETE_TEAM = "deleteTeam"


@dataclass(frozen=True)
class MembershipSnapshot:
    """A user's role in one team at the moment of the check."""

    user_id: int
    team_id: int
    is_member: bool = False
    is_admin: bool = False
    is_founder: bool = False

    @classmethod
    def outsider(cls, user_id: int, team_id: int) -> "MembershipSnapshot":
        return cls(user_id=user_id, team_id=team_id)

    @property
    def is_team_admin(self) -> bool:
        # An admin flag without a membership row grants nothing
        return self.is_member and self.is_admin


@dataclass(frozen=True)
class EntryRef:
    """Ownership facts of an entry: which team holds it and who wrote it."""

    team_id: int
    creator_id: int


# ── Entry predicates ──────────────────────────────────────────────────────

def _same_team(snapshot: MembershipSnapshot, entry: EntryRef) -> bool:
    return snapshot.team_id == entry.team_id


def can_view_any_entries(actor_id: int, snapshot: MembershipSnapshot) -> bool:
    return snapshot.user_id == actor_id and snapshot.is_member


def can_create_entry(actor_id: int, snapshot: MembershipSnapshot) -> bool:
    return can_view_any_entries(actor_id, snapshot)


def can_view_entry(actor_id: int, snapshot: MembershipSnapshot, entry: EntryRef) -> bool:
    return _same_team(snapshot, entry) and can_view_any_entries(actor_id, snapshot)


def can_update_entry(actor_id: int, snapshot: MembershipSnapshot, entry: EntryRef) -> bool:
    if entry.creator_id == actor_id:
        return True
    return (
        _same_team(snapshot, entry)
        and snapshot.user_id == actor_id
        and snapshot.is_team_admin
    )


def can_delete_entry(actor_id: int, snapshot: MembershipSnapshot, entry: EntryRef) -> bool:
    return can_update_entry(actor_id, snapshot, entry)


def can_restore_entry(actor_id: int, snapshot: MembershipSnapshot, entry: EntryRef) -> bool:
    return can_update_entry(actor_id, snapshot, entry)


def can_force_delete_entry(
    actor_id: int, snapshot: MembershipSnapshot, entry: EntryRef
) -> bool:
    return (
        _same_team(snapshot, entry)
        and snapshot.user_id == actor_id
        and snapshot.is_team_admin
    )


# ── Team predicates ───────────────────────────────────────────────────────

def can_view_team(actor_id: int, snapshot: MembershipSnapshot) -> bool:
    return snapshot.user_id == actor_id and snapshot.is_member


def can_administer_team(actor_id: int, snapshot: MembershipSnapshot) -> bool:
    """Covers team name/settings updates, invite links and team deletion."""
    return snapshot.user_id == actor_id and snapshot.is_team_admin


def can_add_admin(
    actor_id: int, snapshot: MembershipSnapshot, target: MembershipSnapshot
) -> bool:
    return (
        can_administer_team(actor_id, snapshot)
        and target.team_id == snapshot.team_id
        and target.is_member
        and not target.is_admin
    )


def can_remove_admin(
    actor_id: int, snapshot: MembershipSnapshot, target: MembershipSnapshot
) -> bool:
    return (
        can_administer_team(actor_id, snapshot)
        and target.team_id == snapshot.team_id
        and not target.is_founder
        and target.is_team_admin
    )


def can_leave_team(actor_id: int, snapshot: MembershipSnapshot) -> bool:
    return snapshot.user_id == actor_id and snapshot.is_member and not snapshot.is_founder


# ── Dispatch ──────────────────────────────────────────────────────────────

_TEAM_RULES: Dict[Operation, Callable[[int, MembershipSnapshot], bool]] = {
    Operation.VIEW_ANY_ENTRIES: can_view_any_entries,
    Operation.CREATE_ENTRY: can_create_entry,
    Operation.VIEW_TEAM: can_view_team,
    Operation.UPDATE_TEAM: can_administer_team,
    Operation.MANAGE_INVITES: can_administer_team,
    Operation.DELETE_TEAM: can_administer_team,
    Operation.LEAVE_TEAM: can_leave_team,
}

_ENTRY_RULES: Dict[Operation, Callable[[int, MembershipSnapshot, EntryRef], bool]] = {
    Operation.VIEW_ENTRY: can_view_entry,
    Operation.UPDATE_ENTRY: can_update_entry,
    Operation.DELETE_ENTRY: can_delete_entry,
    Operation.RESTORE_ENTRY: can_restore_entry,
    Operation.FORCE_DELETE_ENTRY: can_force_delete_entry,
}

_TARGET_RULES: Dict[
    Operation, Callable[[int, MembershipSnapshot, MembershipSnapshot], bool]
] = {
    Operation.ADD_ADMIN: can_add_admin,
    Operation.REMOVE_ADMIN: can_remove_admin,
}


def authorize(
    operation: Operation,
    actor_id: int,
    snapshot: MembershipSnapshot,
    entry: Optional[EntryRef] = None,
    target: Optional[MembershipSnapshot] = None,
) -> bool:
    """
    Single entry point over all predicates.

    `entry` is required for entry-level operations and `target` for admin
    changes; when the needed one is missing the answer is False.
    """
    if operation in _TEAM_RULES:
        return _TEAM_RULES[operation](actor_id, snapshot)
    if operation in _ENTRY_RULES:
        if entry is None:
            return False
        return _ENTRY_RULES[operation](actor_id, snapshot, entry)
    if operation in _TARGET_RULES:
        if target is None:
            return False
        return _TARGET_RULES[operation](actor_id, snapshot, target)
    return False


def require(
    operation: Operation,
    actor_id: int,
    snapshot: MembershipSnapshot,
    entry: Optional[EntryRef] = None,
    target: Optional[MembershipSnapshot] = None,
    message: str = "This action is unauthorized.",
) -> None:
    """authorize(), raising PermissionDeniedError on a denial."""
    if not authorize(operation, actor_id, snapshot, entry=entry, target=target):
        raise PermissionDeniedError(message=message, operation=operation.value)
