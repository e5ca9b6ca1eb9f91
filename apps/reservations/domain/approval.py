"""
Approval policy.

The whole role/region matrix lives in the lookup tables below and is
evaluated by ``check_transition``; nothing here touches the database.

    action          source states                   target
    approve_first   FIRST_PENDING                   SECOND_PENDING
    approve_second  FIRST_PENDING, SECOND_PENDING   FINAL_APPROVED
    reject          FIRST_PENDING, SECOND_PENDING   REJECTED

Role rights narrow the source states per action. First approvers are
additionally limited to spaces in their own region.
"""

from __future__ import annotations

from enum import Enum
from typing import Mapping, Optional

from apps.users.roles import Role

from .status import ReservationStatus


class ApprovalAction(str, Enum):
    APPROVE_FIRST = "approve_first"
    APPROVE_SECOND = "approve_second"
    REJECT = "reject"


class ApprovalError(ValueError):
    """Base class for refused transitions."""


class SourceStateMismatch(ApprovalError):
    """The reservation is not in a state the action can start from."""

    def __init__(self, action: ApprovalAction, status: str):
        self.action = action
        self.status = status
        super().__init__(f"{action.value} is not allowed from {status}")


class ApprovalNotPermitted(ApprovalError):
    """The actor's role or region does not allow the action."""

    def __init__(self, action: ApprovalAction, role: str, reason: str = "role"):
        self.action = action
        self.role = role
        self.reason = reason
        super().__init__(f"{role} may not {action.value} ({reason})")


_PENDING = frozenset({ReservationStatus.FIRST_PENDING, ReservationStatus.SECOND_PENDING})

SOURCE_STATES: Mapping[ApprovalAction, frozenset] = {
    ApprovalAction.APPROVE_FIRST: frozenset({ReservationStatus.FIRST_PENDING}),
    ApprovalAction.APPROVE_SECOND: _PENDING,
    ApprovalAction.REJECT: _PENDING,
}

TARGET_STATE: Mapping[ApprovalAction, ReservationStatus] = {
    ApprovalAction.APPROVE_FIRST: ReservationStatus.SECOND_PENDING,
    ApprovalAction.APPROVE_SECOND: ReservationStatus.FINAL_APPROVED,
    ApprovalAction.REJECT: ReservationStatus.REJECTED,
}

# role -> action -> statuses the role may act on
ROLE_RIGHTS: Mapping[str, Mapping[ApprovalAction, frozenset]] = {
    Role.SECOND_APPROVER: {
        ApprovalAction.APPROVE_FIRST: frozenset({ReservationStatus.FIRST_PENDING}),
        ApprovalAction.APPROVE_SECOND: _PENDING,
        ApprovalAction.REJECT: _PENDING,
    },
    Role.FIRST_APPROVER: {
        ApprovalAction.APPROVE_FIRST: frozenset({ReservationStatus.FIRST_PENDING}),
        ApprovalAction.REJECT: frozenset({ReservationStatus.FIRST_PENDING}),
    },
}

REGION_GATED_ROLES = frozenset({Role.FIRST_APPROVER})


def region_matches(actor_region_id: Optional[int], space_region_id: Optional[int]) -> bool:
    return actor_region_id is not None and actor_region_id == space_region_id


def check_transition(
    action: ApprovalAction,
    *,
    role: str,
    status: str,
    actor_region_id: Optional[int] = None,
    space_region_id: Optional[int] = None,
) -> ReservationStatus:
    """
    Validate an approval action and return the target status.

    The source state is checked before the actor, so a stale request on an
    already processed reservation reports the precondition, not the role.
    """
    if status not in SOURCE_STATES[action]:
        raise SourceStateMismatch(action, status)

    allowed = ROLE_RIGHTS.get(role, {}).get(action, frozenset())
    if status not in allowed:
        raise ApprovalNotPermitted(action, role)

    if role in REGION_GATED_ROLES and not region_matches(actor_region_id, space_region_id):
        raise ApprovalNotPermitted(action, role, reason="region")

    return TARGET_STATE[action]


def is_permitted(
    action: ApprovalAction,
    *,
    role: str,
    status: str,
    actor_region_id: Optional[int] = None,
    space_region_id: Optional[int] = None,
) -> bool:
    try:
        check_transition(
            action,
            role=role,
            status=status,
            actor_region_id=actor_region_id,
            space_region_id=space_region_id,
        )
    except ApprovalError:
        return False
    return True


def is_approvable_for(role: str, status: str, actor_region_id=None, space_region_id=None) -> bool:
    """True when the actor could move the reservation forward by any approval tier."""
    return any(
        is_permitted(
            action,
            role=role,
            status=status,
            actor_region_id=actor_region_id,
            space_region_id=space_region_id,
        )
        for action in (ApprovalAction.APPROVE_FIRST, ApprovalAction.APPROVE_SECOND)
    )


def is_rejectable_for(role: str, status: str, actor_region_id=None, space_region_id=None) -> bool:
    return is_permitted(
        ApprovalAction.REJECT,
        role=role,
        status=status,
        actor_region_id=actor_region_id,
        space_region_id=space_region_id,
    )
