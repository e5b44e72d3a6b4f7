"""Booking state machine and the two operations allowed to write it.

``create_booking`` and ``transition`` are the sole writers of a booking's
``status`` and ``approver_id``. Both run their read-check-write sequence while
holding the resource lock from :meth:`BookingStore.lock_resource`.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from common.errors import Forbidden, InvalidTransition, NotFound, ResourceConflict
from common.models import Booking, BookingStatus, Resource
from common.schemas import Actor

from .authorization import Action, action_for_status, can_perform
from .conflicts import find_conflict, normalize_timestamp, validate_interval
from .store import BookingStore

logger = logging.getLogger("workflow.lifecycle")

BOOKING_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.APPROVED, BookingStatus.REJECTED, BookingStatus.CANCELLED}),
    BookingStatus.APPROVED: frozenset({BookingStatus.CANCELLED}),
    BookingStatus.REJECTED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}

_STAMPS_APPROVER = frozenset({BookingStatus.APPROVED, BookingStatus.REJECTED})


def is_allowed_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in BOOKING_TRANSITIONS.get(current, frozenset())


def assert_transition(current: BookingStatus, target: BookingStatus) -> None:
    if not is_allowed_transition(current, target):
        raise InvalidTransition(current.value, target.value)


def is_bookable(resource: Optional[Resource]) -> bool:
    return resource is not None and resource.is_active


def create_booking(
    store: BookingStore,
    actor: Actor,
    resource_id: int,
    start: datetime,
    end: datetime,
) -> Booking:
    if not can_perform(actor.actor_role, Action.CREATE):
        logger.info("booking.create denied actor=%s role=%s", actor.actor_id, actor.actor_role.value)
        raise Forbidden("Only students and faculty can request bookings")

    start, end = normalize_timestamp(start), normalize_timestamp(end)
    validate_interval(start, end)

    # unknown ids never reach the lock registry
    if not is_bookable(store.get_resource(resource_id)):
        raise NotFound("Resource", resource_id)

    with store.lock_resource(resource_id) as resource:
        if not is_bookable(resource):
            raise NotFound("Resource", resource_id)

        conflict = find_conflict(store, resource_id, start, end)
        if conflict is not None:
            logger.info(
                "booking.conflict resource=%s requested=[%s, %s) blocked_by=%s",
                resource_id,
                start.isoformat(),
                end.isoformat(),
                conflict.id,
            )
            raise ResourceConflict(resource_id, conflict.id, conflict.start_time, conflict.end_time)

        booking = store.insert_booking(
            resource_id=resource_id,
            requester_id=actor.actor_id,
            start_time=start,
            end_time=end,
        )

    logger.info(
        "booking.created id=%s resource=%s requester=%s [%s, %s)",
        booking.id,
        resource_id,
        actor.actor_id,
        start.isoformat(),
        end.isoformat(),
    )
    return booking


def transition(
    store: BookingStore,
    booking_id: int,
    actor: Actor,
    target_status: BookingStatus,
) -> Booking:
    booking = store.get_booking(booking_id)
    if booking is None:
        raise NotFound("Booking", booking_id)

    target_status = BookingStatus(target_status)
    with store.lock_resource(booking.resource_id):
        store.reload_booking(booking)
        current = booking.status
        # pairs outside the table are InvalidTransition for every actor,
        # including ones the gate would refuse
        assert_transition(current, target_status)

        action = action_for_status(target_status)
        if action is None or not can_perform(actor.actor_role, action, booking, actor.actor_id):
            logger.info(
                "booking.transition denied id=%s actor=%s role=%s target=%s",
                booking_id,
                actor.actor_id,
                actor.actor_role.value,
                target_status.value,
            )
            raise Forbidden(f"Not allowed to move this booking to {target_status.value}")

        approver_id = actor.actor_id if target_status in _STAMPS_APPROVER else None
        booking = store.update_booking_status(booking.id, target_status, approver_id)

    logger.info(
        "booking.transition id=%s %s -> %s actor=%s",
        booking.id,
        current.value,
        target_status.value,
        actor.actor_id,
    )
    return booking
