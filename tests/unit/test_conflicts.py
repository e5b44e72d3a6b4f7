"""Unit tests for overlap detection."""
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from common.errors import InvalidInterval
from common.models import ACTIVE_STATUSES, BookingStatus
from workflow.conflicts import find_conflict, has_conflict, intervals_overlap, normalize_timestamp

DAY = datetime(2024, 1, 1)


def at(hour: float) -> datetime:
    return DAY + timedelta(hours=hour)


class FakeStore:
    """Implements only the read the conflict checker needs."""

    def __init__(self, *bookings):
        self.bookings = list(bookings)
        self.calls = []

    def find_bookings_by_resource(self, resource_id, statuses, start=None, end=None):
        self.calls.append((resource_id, frozenset(statuses)))
        return [b for b in self.bookings if b.resource_id == resource_id and b.status in statuses]


def booking(id, start, end, status=BookingStatus.APPROVED, resource_id=1):
    return SimpleNamespace(id=id, resource_id=resource_id, start_time=start, end_time=end, status=status)


class TestIntervalsOverlap:
    def test_partial_overlap(self):
        assert intervals_overlap(at(9), at(10.5), at(10), at(11))

    def test_containment(self):
        assert intervals_overlap(at(9), at(12), at(10), at(11))
        assert intervals_overlap(at(10), at(11), at(9), at(12))

    def test_back_to_back_does_not_overlap(self):
        assert not intervals_overlap(at(9), at(10.5), at(10.5), at(11.5))
        assert not intervals_overlap(at(10.5), at(11.5), at(9), at(10.5))

    def test_disjoint(self):
        assert not intervals_overlap(at(9), at(10), at(13), at(14))


class TestFindConflict:
    def test_reports_overlapping_approved_booking(self):
        store = FakeStore(booking(1, at(9), at(10.5)))
        conflict = find_conflict(store, 1, at(10), at(11))
        assert conflict is not None and conflict.id == 1

    def test_boundary_is_free(self):
        store = FakeStore(booking(1, at(9), at(10.5)))
        assert has_conflict(store, 1, at(10.5), at(11.5)) is False

    def test_pending_bookings_block(self):
        store = FakeStore(booking(1, at(9), at(10), status=BookingStatus.PENDING))
        assert has_conflict(store, 1, at(9.5), at(9.75)) is True

    @pytest.mark.parametrize("status", [BookingStatus.REJECTED, BookingStatus.CANCELLED])
    def test_terminal_bookings_never_block(self, status):
        store = FakeStore(booking(1, at(9), at(10), status=status))
        assert has_conflict(store, 1, at(9), at(10)) is False

    def test_only_active_statuses_are_requested(self):
        store = FakeStore()
        has_conflict(store, 4, at(9), at(10))
        assert store.calls == [(4, frozenset(ACTIVE_STATUSES))]

    def test_other_resources_are_ignored(self):
        store = FakeStore(booking(1, at(9), at(10), resource_id=2))
        assert has_conflict(store, 1, at(9), at(10)) is False

    def test_excluded_booking_is_skipped(self):
        store = FakeStore(booking(1, at(9), at(10)))
        assert has_conflict(store, 1, at(9), at(10), exclude_booking_id=1) is False
        assert has_conflict(store, 1, at(9), at(10), exclude_booking_id=2) is True

    @pytest.mark.parametrize("start,end", [(at(10), at(9)), (at(10), at(10))])
    def test_invalid_interval_is_rejected(self, start, end):
        with pytest.raises(InvalidInterval):
            has_conflict(FakeStore(), 1, start, end)


class TestNormalizeTimestamp:
    def test_naive_values_pass_through(self):
        assert normalize_timestamp(at(9)) == at(9)

    def test_aware_values_become_naive_utc(self):
        aware = datetime(2024, 1, 1, 11, 0, tzinfo=timezone(timedelta(hours=2)))
        assert normalize_timestamp(aware) == at(9)
