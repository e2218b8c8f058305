"""
Reservation client and time-slot conflict checks.

Conflict rule: two reservations conflict when they are on the same day in
the same time slot. If both name a table, only the same table conflicts;
if either leaves the table open, any booking in that slot conflicts.
Cancelled and no-show reservations free their slot.

Conflict checks fail closed - if the lookup fails the error reaches the
caller instead of being reported as "no conflict".
"""

import logging
from datetime import date, datetime
from typing import Iterable, Optional, Union
from uuid import uuid4

from dashboard.filters import ALL, DateBucket, SortField, filter_reservations, group_by_status
from dashboard.services.base import CollectionClient, ServiceError
from dashboard.stats import ReservationStats, compute_reservation_stats
from restaurant.data_store import RESERVATIONS
from restaurant.models import Reservation, ReservationStatus

logger = logging.getLogger("reservation_client")

# Statuses that no longer hold a table
RELEASED_STATUSES = {ReservationStatus.CANCELLED.value, ReservationStatus.NO_SHOW.value}

# Fields staff may edit after booking
EDITABLE_FIELDS = {
    "customer_name",
    "customer_phone",
    "customer_email",
    "date",
    "time",
    "party_size",
    "table_number",
    "special_requests",
}


def _day(value: Union[date, datetime]) -> date:
    return value.date() if isinstance(value, datetime) else value


def find_conflicts(
    reservations: Iterable[Reservation],
    day: Union[date, datetime],
    time: str,
    table_number: Optional[str] = None,
    exclude_id: Optional[str] = None,
) -> list[Reservation]:
    """Reservations that would clash with a booking for `day` at `time`."""
    target = _day(day)
    conflicts = []
    for reservation in reservations:
        if exclude_id and reservation.id == exclude_id:
            continue
        if reservation.status in RELEASED_STATUSES:
            continue
        if _day(reservation.date) != target or reservation.time != time:
            continue
        if table_number and reservation.table_number:
            if reservation.table_number == table_number:
                conflicts.append(reservation)
            continue
        conflicts.append(reservation)
    return conflicts


class ReservationClient(CollectionClient):
    """Reservations for the current user's restaurant."""

    collection = RESERVATIONS
    kind = "Reservation"

    def get_reservations(self) -> list[Reservation]:
        return self._list()

    def get_reservation(self, reservation_id: str) -> Optional[Reservation]:
        return self._get(reservation_id)

    def get_reservations_by_status(self, status: ReservationStatus) -> list[Reservation]:
        return [r for r in self._list() if r.status == status]

    def get_reservations_by_date(self, day: Union[date, datetime]) -> list[Reservation]:
        """Reservations for one day, in time-slot order."""
        target = _day(day)
        return sorted(
            (r for r in self._list() if _day(r.date) == target),
            key=lambda r: r.time,
        )

    def check_conflict(
        self,
        day: Union[date, datetime],
        time: str,
        table_number: Optional[str] = None,
        exclude_id: Optional[str] = None,
    ) -> bool:
        """True if booking `day` at `time` would clash with an existing reservation."""
        return bool(find_conflicts(self._list(), day, time, table_number, exclude_id))

    def create_reservation(
        self,
        customer_name: str,
        customer_phone: str,
        day: datetime,
        time: str,
        party_size: int,
        customer_email: Optional[str] = None,
        table_number: Optional[str] = None,
        special_requests: Optional[str] = None,
        allow_conflict: bool = False,
    ) -> Reservation:
        """
        Book a pending reservation.

        Raises:
            ServiceError: code "conflict" if the slot is taken and
                          allow_conflict is False
        """
        if not allow_conflict and self.check_conflict(day, time, table_number):
            raise ServiceError("conflict", f"Time slot {time} on {_day(day)} is already booked")

        now = self._now()
        reservation = Reservation(
            id=f"res-{uuid4().hex[:8]}",
            restaurant_id=self.restaurant_id,
            customer_name=customer_name,
            customer_phone=customer_phone,
            customer_email=customer_email,
            date=day,
            time=time,
            party_size=party_size,
            table_number=table_number,
            status=ReservationStatus.PENDING,
            special_requests=special_requests,
            created_at=now,
            updated_at=now,
        )
        self.data_store.save_reservation(reservation)
        logger.info(f"Reservation created: {reservation.id} for {customer_name}, party of {party_size}")
        return reservation

    def update_reservation(self, reservation_id: str, **changes) -> Reservation:
        """
        Edit booking details.

        Raises:
            ServiceError: code "invalid-field" for fields staff can't edit
            NotFoundError: unknown reservation
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ServiceError("invalid-field", f"Cannot update: {', '.join(sorted(unknown))}")
        updated = self._update(reservation_id, updated_at=self._now(), **changes)
        logger.info(f"Reservation updated: {reservation_id}")
        return updated

    def update_reservation_status(
        self,
        reservation_id: str,
        status: ReservationStatus,
    ) -> Reservation:
        updated = self._update(reservation_id, status=status, updated_at=self._now())
        logger.info(f"Reservation {reservation_id} status: {updated.status}")
        return updated

    def delete_reservation(self, reservation_id: str) -> None:
        self._delete(reservation_id)

    def stats(self, now: Optional[datetime] = None) -> ReservationStats:
        return compute_reservation_stats(self._list(), self._now(now))

    def view(
        self,
        search: str = "",
        status: str = ALL,
        date_bucket: DateBucket = DateBucket.ALL,
        sort: Optional[SortField] = None,
        descending: Optional[bool] = None,
        now: Optional[datetime] = None,
    ) -> list[Reservation]:
        return filter_reservations(
            self._list(), self._now(now), search, status, date_bucket, sort, descending
        )

    def board(self) -> dict[str, list[Reservation]]:
        return group_by_status(self._list(), ReservationStatus)
