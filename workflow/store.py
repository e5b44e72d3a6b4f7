"""SQLAlchemy-backed persistence for the booking workflow."""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Iterable, Iterator, List, Optional

from sqlalchemy.orm import Session

from common.errors import NotFound
from common.models import Booking, BookingStatus, Resource

logger = logging.getLogger("workflow.store")


class ResourceLocks:
    """Process-wide registry of one mutex per resource id."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[int, threading.Lock] = {}

    def get(self, resource_id: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(resource_id)
            if lock is None:
                lock = self._locks[resource_id] = threading.Lock()
            return lock

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, resource_id: int) -> Iterator[None]:
        with self.get(resource_id):
            yield


resource_locks = ResourceLocks()


class BookingStore:
    """Reads and writes bookings through a single request-scoped session.

    ``lock_resource`` is the only way the workflow serializes writers: it takes
    the in-process mutex for the resource and then a row lock on the resource
    (``SELECT ... FOR UPDATE``) inside the session's transaction. Both are held
    until the caller commits or the block raises.
    """

    def __init__(self, db: Session, locks: ResourceLocks = resource_locks) -> None:
        self.db = db
        self._locks = locks

    def get_resource(self, resource_id: int) -> Optional[Resource]:
        return self.db.get(Resource, resource_id)

    def list_resources(self, active_only: bool = True) -> List[Resource]:
        query = self.db.query(Resource)
        if active_only:
            query = query.filter(Resource.is_active.is_(True))
        return query.order_by(Resource.name).all()

    @contextmanager
    def lock_resource(self, resource_id: int) -> Iterator[Optional[Resource]]:
        with self._locks.hold(resource_id):
            try:
                resource = (
                    self.db.query(Resource)
                    .filter(Resource.id == resource_id)
                    .with_for_update()
                    .first()
                )
                yield resource
            except Exception:
                self.db.rollback()
                raise

    def find_bookings_by_resource(
        self,
        resource_id: int,
        statuses: Iterable[BookingStatus],
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Booking]:
        """Bookings for a resource in the given statuses, ordered by start time.

        When ``start`` and ``end`` are both given only rows that could overlap
        the window are fetched; callers still apply the precise overlap test.
        """

        query = self.db.query(Booking).filter(
            Booking.resource_id == resource_id,
            Booking.status.in_(list(statuses)),
        )
        if start is not None and end is not None:
            query = query.filter(Booking.start_time < end, Booking.end_time > start)
        return query.order_by(Booking.start_time).all()

    def insert_booking(
        self,
        *,
        resource_id: int,
        requester_id: int,
        start_time: datetime,
        end_time: datetime,
        status: BookingStatus = BookingStatus.PENDING,
    ) -> Booking:
        booking = Booking(
            resource_id=resource_id,
            requester_id=requester_id,
            start_time=start_time,
            end_time=end_time,
            status=status,
            approver_id=None,
            created_at=datetime.utcnow(),
        )
        self.db.add(booking)
        self.db.commit()
        self.db.refresh(booking)
        return booking

    def get_booking(self, booking_id: int) -> Optional[Booking]:
        return self.db.get(Booking, booking_id)

    def reload_booking(self, booking: Booking) -> Booking:
        """Re-read a booking under a row lock so its status is current."""

        self.db.refresh(booking, with_for_update=True)
        return booking

    def update_booking_status(
        self,
        booking_id: int,
        status: BookingStatus,
        approver_id: Optional[int] = None,
    ) -> Booking:
        booking = self.db.get(Booking, booking_id)
        if booking is None:
            raise NotFound("Booking", booking_id)
        booking.status = status
        if approver_id is not None:
            booking.approver_id = approver_id
        self.db.commit()
        self.db.refresh(booking)
        return booking

    def list_bookings(
        self,
        requester_id: Optional[int] = None,
        status: Optional[BookingStatus] = None,
    ) -> List[Booking]:
        query = self.db.query(Booking)
        if requester_id is not None:
            query = query.filter(Booking.requester_id == requester_id)
        if status is not None:
            query = query.filter(Booking.status == status)
        return query.order_by(Booking.start_time.desc()).all()

    def delete_booking(self, booking_id: int) -> None:
        booking = self.db.get(Booking, booking_id)
        if booking is not None:
            self.db.delete(booking)
            self.db.commit()
            logger.info("booking.deleted id=%s", booking_id)
