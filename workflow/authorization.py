"""Role gate consulted before every booking operation.

The gate is a pure function of the caller's role, the requested action and,
for owner-scoped actions, whether the caller requested the booking. It holds
no state and performs no I/O.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional

from common.models import Booking, BookingStatus, RoleEnum


class Action(str, Enum):
    CREATE = "create"
    APPROVE = "approve"
    REJECT = "reject"
    CANCEL = "cancel"
    VIEW = "view"
    DELETE = "delete"


_ROLE_ACTIONS: dict[RoleEnum, frozenset[Action]] = {
    RoleEnum.STUDENT: frozenset({Action.CREATE}),
    RoleEnum.FACULTY: frozenset({Action.CREATE}),
    RoleEnum.ADMIN: frozenset({Action.APPROVE, Action.REJECT, Action.CANCEL, Action.VIEW, Action.DELETE}),
}

# granted to any role when the caller owns the booking
_OWNER_ACTIONS = frozenset({Action.CANCEL, Action.VIEW})

_TARGET_ACTIONS = {
    BookingStatus.APPROVED: Action.APPROVE,
    BookingStatus.REJECTED: Action.REJECT,
    BookingStatus.CANCELLED: Action.CANCEL,
}


def action_for_status(target: BookingStatus) -> Optional[Action]:
    """Map a requested target status to the action that reaches it, if any."""

    return _TARGET_ACTIONS.get(target)


def can_perform(
    actor_role: RoleEnum | str,
    action: Action | str,
    booking: Optional[Booking] = None,
    actor_id: Optional[int] = None,
) -> bool:
    try:
        role = RoleEnum(actor_role)
        action = Action(action)
    except ValueError:
        return False

    if action in _ROLE_ACTIONS.get(role, frozenset()):
        return True
    if action in _OWNER_ACTIONS and booking is not None and actor_id is not None:
        return booking.requester_id == actor_id
    return False
