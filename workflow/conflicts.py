"""Overlap detection for bookings on a single resource."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from common.errors import InvalidInterval
from common.models import ACTIVE_STATUSES, Booking

from .store import BookingStore


def normalize_timestamp(value: datetime) -> datetime:
    """Timestamps are stored as naive UTC; convert aware values accordingly."""

    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def validate_interval(start: datetime, end: datetime) -> None:
    if not start < end:
        raise InvalidInterval(start, end)


def intervals_overlap(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    """Half-open overlap: ``[a)`` and ``[b)`` touching at an endpoint do not overlap."""

    return start_a < end_b and start_b < end_a


def find_conflict(
    store: BookingStore,
    resource_id: int,
    start: datetime,
    end: datetime,
    exclude_booking_id: Optional[int] = None,
) -> Optional[Booking]:
    """Return the first pending/approved booking overlapping ``[start, end)``."""

    start, end = normalize_timestamp(start), normalize_timestamp(end)
    validate_interval(start, end)
    for booking in store.find_bookings_by_resource(resource_id, ACTIVE_STATUSES, start, end):
        if exclude_booking_id is not None and booking.id == exclude_booking_id:
            continue
        if intervals_overlap(start, end, booking.start_time, booking.end_time):
            return booking
    return None


def has_conflict(
    store: BookingStore,
    resource_id: int,
    start: datetime,
    end: datetime,
    exclude_booking_id: Optional[int] = None,
) -> bool:
    return find_conflict(store, resource_id, start, end, exclude_booking_id) is not None
